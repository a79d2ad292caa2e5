"""
Logging configuration for agda-bdist runs.

``main.py`` calls :func:`setup_logging` once per process; modules only
ever do ``logger = logging.getLogger(__name__)``.

Console level, highest priority first:
    --debug / --verbose / --quiet  >  AGDA_BDIST_LOG_LEVEL  >  WARNING

AGDA_BDIST_LOG_FILE adds a file handler (level AGDA_BDIST_LOG_FILE_LEVEL,
or the console level when unset).

Inside a GitHub Actions job (``GITHUB_ACTIONS=true``) console warnings
and errors become workflow commands (``::warning::…``), which the runner
shows as annotations.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Mapping

ENV_LOG_LEVEL = "AGDA_BDIST_LOG_LEVEL"
ENV_LOG_FILE = "AGDA_BDIST_LOG_FILE"
ENV_LOG_FILE_LEVEL = "AGDA_BDIST_LOG_FILE_LEVEL"

# ── Formats ────────────────────────────────────────────────────

# (highest level the format applies to, format, date format)
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_DEFAULT_FORMAT = "%(message)s"

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s"
_FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class WorkflowCommandFormatter(logging.Formatter):
    """Render warnings and errors as GitHub Actions workflow commands.

    The runner reads one command per line, so ``%``, CR and LF in the
    message are percent-encoded.
    """

    _COMMANDS = {
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        command = self._COMMANDS.get(record.levelno)
        if command is None:
            return text
        escaped = text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
        return f"::{command}::{escaped}"


def resolve_level(
    *,
    verbose: bool = False,
    quiet: bool = False,
    debug: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Console level name from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get(ENV_LOG_LEVEL, "WARNING")


def in_github_actions(environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return env.get("GITHUB_ACTIONS") == "true"


def _console_handler(level: int, workflow_commands: bool) -> logging.Handler:
    fmt, datefmt = _CONSOLE_DEFAULT_FORMAT, None
    for threshold, candidate, candidate_datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            fmt, datefmt = candidate, candidate_datefmt
            break
    formatter_cls = WorkflowCommandFormatter if workflow_commands else logging.Formatter
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter_cls(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATE_FORMAT))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    workflow_commands: bool | None = None,
) -> None:
    """Install the console (and optional file) handler on the root logger.

    Args:
        level: Console level name; unknown names mean WARNING.
        log_file: Also write records to this file.
        log_file_level: Level for ``log_file``; the console level if None.
        workflow_commands: Emit ``::warning::``/``::error::`` prefixes.
            None means "only on GitHub Actions".
    """
    console_level = _parse_level(level)
    if workflow_commands is None:
        workflow_commands = in_github_actions()

    handlers = [_console_handler(console_level, workflow_commands)]
    root_level = console_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))
        # The root must let through whatever either handler wants.
        root_level = min(root_level, file_level)

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(root_level)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; WARNING when unknown."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
