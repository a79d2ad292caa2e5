"""
Tests for logging setup.
"""

import logging

from agda_bdist.core.observability.logging_config import (
    WorkflowCommandFormatter,
    in_github_actions,
    resolve_level,
    setup_logging,
)


def _record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord("agda_bdist.test", level, __file__, 1, msg, None, None)


class TestResolveLevel:
    def test_flags_win(self):
        env = {"AGDA_BDIST_LOG_LEVEL": "ERROR"}
        assert resolve_level(debug=True, environ=env) == "DEBUG"
        assert resolve_level(verbose=True, environ=env) == "INFO"
        assert resolve_level(quiet=True, environ={}) == "ERROR"

    def test_environment(self):
        assert resolve_level(environ={"AGDA_BDIST_LOG_LEVEL": "INFO"}) == "INFO"
        assert resolve_level(environ={}) == "WARNING"


class TestWorkflowCommands:
    def test_detects_github_actions(self):
        assert in_github_actions({"GITHUB_ACTIONS": "true"})
        assert not in_github_actions({})

    def test_warning_annotation(self):
        formatter = WorkflowCommandFormatter("%(message)s")
        text = formatter.format(_record(logging.WARNING, "Failed to upload:\nbin/agda 100%"))
        assert text == "::warning::Failed to upload:%0Abin/agda 100%25"

    def test_error_annotation(self):
        formatter = WorkflowCommandFormatter("%(message)s")
        assert formatter.format(_record(logging.ERROR, "broken")) == "::error::broken"

    def test_info_is_plain(self):
        formatter = WorkflowCommandFormatter("%(message)s")
        assert formatter.format(_record(logging.INFO, "Found package")) == "Found package"


class TestSetupLogging:
    def test_console_level(self, restore_root_logger):
        setup_logging("INFO", workflow_commands=False)
        assert restore_root_logger.level == logging.INFO
        assert len(restore_root_logger.handlers) == 1
        assert not isinstance(restore_root_logger.handlers[0].formatter, WorkflowCommandFormatter)

    def test_file_handler(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "agda-bdist.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG", workflow_commands=True)
        assert restore_root_logger.level == logging.DEBUG
        assert isinstance(restore_root_logger.handlers[0].formatter, WorkflowCommandFormatter)

        logging.getLogger("agda_bdist.test").debug("written to file only")
        for handler in restore_root_logger.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()

    def test_unknown_level_falls_back(self, restore_root_logger):
        setup_logging("CHATTY", workflow_commands=False)
        assert restore_root_logger.level == logging.WARNING

    def test_only_root_is_configured(self, restore_root_logger):
        download_logger = logging.getLogger("agda_bdist.core.services.bdist.execution.download")
        download_logger.setLevel(logging.NOTSET)
        setup_logging("ERROR", workflow_commands=False)
        assert download_logger.level == logging.NOTSET
        assert download_logger.getEffectiveLevel() == logging.ERROR
