"""
Tests for the top-level setup flow: bdist first, build as fallback.
"""

import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest

from agda_bdist.adapters.mock import MockToolkit
from agda_bdist.core.models.options import BuildOptions, SetupHaskellInputs
from agda_bdist.core.models.package_info import PackageInfoCache
from agda_bdist.core.services.bdist.orchestration.pipeline import PackagingPipeline
from agda_bdist.core.services.bdist.orchestration.setup import (
    SetupError,
    build_from_sdist,
    setup_agda,
)

PIPELINE = "agda_bdist.core.services.bdist.orchestration.pipeline"
SETUP = "agda_bdist.core.services.bdist.orchestration.setup"
STRATEGIES = "agda_bdist.core.services.bdist.execution.build_strategies"

CABAL_FILE = """\
name:            Agda
version:         2.6.4
tested-with:     GHC == 8.10.7
                 GHC == 9.2.8
                 GHC == 9.4.5
"""


@pytest.fixture
def context(make_context):
    return make_context(
        "linux",
        index={"agda-2.6.4-x64-linux": "https://example.org/agda-2.6.4-x64-linux.zip"},
        cache=PackageInfoCache(package_info={"2.6.3": "normal", "2.6.4": "normal"}),
    )


@pytest.fixture
def toolkit(context) -> MockToolkit:
    return MockToolkit(context)


@pytest.fixture
def pipeline(context, toolkit) -> PackagingPipeline:
    return PackagingPipeline(context, toolkit=toolkit)


@pytest.fixture
def bdist_zip(tmp_path: Path) -> Path:
    archive = tmp_path / "agda-2.6.4-x64-linux.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("bin/agda", "#!/bin/sh\n")
        zf.writestr("bin/agda-mode", "#!/bin/sh\n")
        zf.writestr("data/lib/prim/Agda/Primitive.agda", "module Agda.Primitive where\n")
    return archive


@pytest.fixture
def sdist(context) -> Path:
    """An unpacked Agda 2.6.4 sdist where fetch_sdist expects it."""
    source_dir = context.source_dir("2.6.4")
    (source_dir / "src" / "data" / "lib").mkdir(parents=True)
    (source_dir / "Agda.cabal").write_text(CABAL_FILE)
    return source_dir


class TestSetupFromBdist:
    def test_installs_prebuilt(self, context, pipeline, bdist_zip):
        with patch(f"{PIPELINE}.download_file", return_value=bdist_zip):
            result = setup_agda(BuildOptions(agda_version="latest"), context, pipeline=pipeline)

        assert result.source == "bdist"
        assert result.options.agda_version == "2.6.4"
        assert result.install_dir == context.install_dir("2.6.4")
        assert (result.install_dir / "bin" / "agda").is_file()

    def test_missing_bdist_with_force_no_build(self, context, pipeline):
        options = BuildOptions(agda_version="2.6.3", force_no_build=True)
        with pytest.raises(SetupError, match="No prebuilt Agda 2.6.3 for x64-linux"):
            setup_agda(options, context, pipeline=pipeline)

    def test_force_build_skips_download(self, context, pipeline):
        options = BuildOptions(agda_version="2.6.4", force_build=True)
        with patch(f"{PIPELINE}.download_file") as dl, \
             patch(f"{SETUP}.build_from_sdist", return_value=(Path("/opt/agda"), options)) as build:
            result = setup_agda(options, context, pipeline=pipeline)
        dl.assert_not_called()
        build.assert_called_once()
        assert result.source == "build"
        assert result.upload is None

    def test_download_failure_falls_back_to_build(self, context, pipeline):
        options = BuildOptions(agda_version="2.6.4")
        with patch(f"{PIPELINE}.download_file", side_effect=OSError("connection reset")), \
             patch(f"{SETUP}.build_from_sdist", return_value=(Path("/opt/agda"), options)):
            result = setup_agda(options, context, pipeline=pipeline)
        assert result.source == "build"
        assert pipeline.report.steps("download")[0].failed

    def test_corrupt_download_falls_back_to_build(self, context, pipeline, tmp_path):
        page = tmp_path / "agda-2.6.4-x64-linux.zip"
        page.write_bytes(b"<html>502</html>")
        options = BuildOptions(agda_version="2.6.4")
        with patch(f"{PIPELINE}.download_file", return_value=page), \
             patch(f"{SETUP}.build_from_sdist", return_value=(Path("/opt/agda"), options)) as build:
            result = setup_agda(options, context, pipeline=pipeline)
        build.assert_called_once()
        assert result.source == "build"
        assert pipeline.report.steps("download")[0].ok
        assert pipeline.report.steps("install")[0].failed

    def test_build_then_upload(self, context, pipeline):
        options = BuildOptions(agda_version="2.6.3", bdist_upload=True)
        with patch(f"{SETUP}.build_from_sdist", return_value=(Path("/opt/agda"), options)), \
             patch.object(pipeline, "upload", return_value="uploaded") as upload:
            result = setup_agda(options, context, pipeline=pipeline)
        upload.assert_called_once_with(Path("/opt/agda"), options)
        assert result.upload == "uploaded"


class TestBuildFromSdist:
    def test_cabal_build(self, context, toolkit, sdist):
        installed: list[SetupHaskellInputs] = []
        commands: list[list[str]] = []

        def fake_get_output(cmd, **kwargs):
            commands.append(cmd)
            return ""

        options = BuildOptions(agda_version="2.6.4", ghc_version_range="<9.4")
        with patch(f"{SETUP}.get_program_version", return_value="3.10.1.0"), \
             patch(f"{STRATEGIES}.get_output", side_effect=fake_get_output):
            install_dir, built = build_from_sdist(options, context, toolkit, installed.append)

        assert built.ghc_supported_versions == ("8.10.7", "9.2.8", "9.4.5")
        assert built.ghc_version == "9.2.8"
        assert built.cabal_version == "3.10.1.0"
        assert installed[0].ghc_version == "9.2.8"
        assert built.icu_version == "71.1"
        assert toolkit.calls("install_icu") == ["71.1"]
        assert built.extra_lib_dirs == (str(context.icu_dir("71.1") / "lib"),)

        configure = next(c for c in commands if c[:2] == ["cabal", "v2-configure"])
        assert "--with-compiler=ghc-9.2.8" in configure
        assert "--flags=+enable-cluster-counting" in configure
        assert (install_dir / "data" / "lib").is_dir()

    def test_no_ghc_in_range(self, context, toolkit, sdist):
        options = BuildOptions(agda_version="2.6.4", ghc_version_range=">=9.6")
        with pytest.raises(SetupError, match="No GHC version in range"):
            build_from_sdist(options, context, toolkit, lambda inputs: None)
