"""
Tests for the agda-bdist CLI.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from agda_bdist import __version__
from agda_bdist.core.models.options import BuildOptions
from agda_bdist.core.models.package_info import PackageInfoCache
from agda_bdist.core.models.receipt import UploadResult
from agda_bdist.core.services.bdist.orchestration.setup import SetupError, SetupResult
from agda_bdist.main import cli

DETECT = "agda_bdist.core.services.bdist.detect_context"
SETUP = "agda_bdist.core.services.bdist.orchestration.setup.setup_agda"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def context(make_context):
    return make_context(
        "linux",
        cache=PackageInfoCache(package_info={"2.6.3": "normal", "2.6.4": "normal"}),
    )


class TestCliBasics:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("options", "features", "name", "setup"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestOptionsCommand:
    def test_defaults_as_json(self, runner):
        result = runner.invoke(cli, ["options", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["agda-version"] == "latest"
        assert data["ghc-version-range"] == "*"
        assert data["force-build"] is False

    def test_inputs(self, runner):
        result = runner.invoke(cli, [
            "options", "--json",
            "-i", "agda-version=2.6.4",
            "-i", "force-build=true",
        ])
        data = json.loads(result.output)
        assert data["agda-version"] == "2.6.4"
        assert data["force-build"] is True

    def test_from_env(self, runner):
        result = runner.invoke(
            cli, ["options", "--json", "--from-env", "-i", "agda-version=2.6.3"],
            env={"INPUT_AGDA-VERSION": "2.6.4", "INPUT_BDIST-UPLOAD": "yes"},
        )
        data = json.loads(result.output)
        assert data["agda-version"] == "2.6.3"
        assert data["bdist-upload"] is True

    def test_conflicting_flags(self, runner):
        result = runner.invoke(cli, [
            "options", "-i", "force-build=true", "-i", "force-no-build=true",
        ])
        assert result.exit_code == 1
        assert "mutually exclusive" in result.output

    def test_malformed_input(self, runner):
        result = runner.invoke(cli, ["options", "-i", "agda-version"])
        assert result.exit_code == 2
        assert "Expected name=value" in result.output

    def test_table_output(self, runner):
        result = runner.invoke(cli, ["options", "-i", "agda-version=2.6.4"])
        assert result.exit_code == 0
        assert "agda-version" in result.output
        assert "'2.6.4'" in result.output


class TestFeaturesCommand:
    def test_json(self, runner, context):
        with patch(DETECT, return_value=context):
            result = runner.invoke(cli, ["features", "--json", "-i", "agda-version=2.6.4"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["features"]["cluster-counting"] is True
        assert data["features"]["executable-static"] is False
        assert "clauses" not in data

    def test_explain(self, runner, context):
        with patch(DETECT, return_value=context):
            result = runner.invoke(cli, [
                "features", "--json", "--explain",
                "-i", "agda-version=2.6.4", "-i", "disable-cluster-counting=true",
            ])
        data = json.loads(result.output)
        assert data["features"]["cluster-counting"] is False
        assert data["clauses"]["cluster-counting"]["user_allows_cluster_counting"] is False
        assert data["clauses"]["cluster-counting"]["agda_has_cluster_counting"] is True

    def test_latest_is_resolved(self, runner, context):
        with patch(DETECT, return_value=context):
            result = runner.invoke(cli, ["features"])
        assert result.exit_code == 0
        assert "Agda 2.6.4 on x64-linux" in result.output


class TestNameCommand:
    def test_default_name(self, runner, context):
        with patch(DETECT, return_value=context):
            result = runner.invoke(cli, ["name", "-i", "agda-version=2.6.3"])
        assert result.output.strip() == "agda-2.6.3-x64-linux"

    def test_custom_template(self, runner, context):
        args = [
            "name",
            "-i", "agda-version=2.6.3",
            "-i", "bdist-name=agda-{{{agda-version}}}-{{{release}}}",
        ]
        with patch(DETECT, return_value=context):
            custom = runner.invoke(cli, args)
            probe = runner.invoke(cli, [*args, "--default"])
        assert custom.output.strip() == f"agda-2.6.3-{context.release}"
        assert probe.output.strip() == "agda-2.6.3-x64-linux"

    def test_invalid_template(self, runner, context):
        with patch(DETECT, return_value=context):
            result = runner.invoke(cli, ["name", "-i", "bdist-name={{#arch}}"])
        assert result.exit_code == 1
        assert "Could not parse bdist-name" in result.output


class TestSetupCommand:
    def test_success_json(self, runner, context, tmp_path: Path):
        outcome = SetupResult(
            install_dir=tmp_path / "agda",
            options=BuildOptions(agda_version="2.6.4"),
            source="build",
            upload=UploadResult(artifact_name="agda-2.6.4-x64-linux"),
        )
        with patch(DETECT, return_value=context), patch(SETUP, return_value=outcome) as setup:
            result = runner.invoke(cli, ["setup", "--json", "--artifact-dir", str(tmp_path / "out")])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["source"] == "build"
        assert data["artifact"]["artifact_name"] == "agda-2.6.4-x64-linux"
        pipeline = setup.call_args.kwargs["pipeline"]
        assert pipeline.store.root == tmp_path / "out"

    def test_failure(self, runner, context):
        with patch(DETECT, return_value=context), \
             patch(SETUP, side_effect=SetupError("No prebuilt Agda 2.6.4")):
            result = runner.invoke(cli, ["setup", "-i", "force-no-build=true"])
        assert result.exit_code == 1
        assert "No prebuilt Agda 2.6.4" in result.output

    def test_failure_json(self, runner, context):
        with patch(DETECT, return_value=context), \
             patch(SETUP, side_effect=SetupError("boom")):
            result = runner.invoke(cli, ["setup", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data == {"ok": False, "error": "boom", "report": data["report"]}
        assert data["report"]["status"] == "ok"

    def test_file_system_error(self, runner, context):
        with patch(DETECT, return_value=context), \
             patch(SETUP, side_effect=PermissionError("Permission denied: '/opt/agda'")):
            result = runner.invoke(cli, ["setup"])
        assert result.exit_code == 1
        assert "Permission denied" in result.output
        assert not isinstance(result.exception, PermissionError)
