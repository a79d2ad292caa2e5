"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from agda_bdist.core.context import RuntimeContext
from agda_bdist.core.models.package_index import PackageIndex
from agda_bdist.core.models.package_info import PackageInfoCache

_PLATFORMS = {"linux": "linux", "macos": "darwin", "windows": "win32"}

_RELEASES = {"linux": "5.15.0-1041-azure", "macos": "22.6.0", "windows": "10.0.20348"}


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def make_context(tmp_path: Path):
    """Factory for a RuntimeContext on a chosen OS, rooted in tmp_path."""

    def _make(
        os: str = "linux",
        *,
        arch: str = "x64",
        release: str | None = None,
        index: dict[str, str] | None = None,
        cache: PackageInfoCache | None = None,
    ) -> RuntimeContext:
        return RuntimeContext(
            os=os,
            arch=arch,
            platform=_PLATFORMS.get(os, os),
            release=release if release is not None else _RELEASES.get(os, "1.0"),
            home=tmp_path / "home",
            package_index=PackageIndex(index or {}),
            package_info_cache=cache or PackageInfoCache(),
        )

    return _make


@pytest.fixture
def linux_context(make_context) -> RuntimeContext:
    return make_context("linux")


@pytest.fixture
def install_dir(tmp_path: Path) -> Path:
    """A minimal Agda install: two executables and a data directory."""
    root = tmp_path / "install"
    (root / "bin").mkdir(parents=True)
    for name in ("agda", "agda-mode"):
        exe = root / "bin" / name
        exe.write_text(f"#!/bin/sh\necho {name}\n")
        exe.chmod(0o755)
    prim = root / "data" / "lib" / "prim" / "Agda"
    prim.mkdir(parents=True)
    (prim / "Primitive.agda").write_text("module Agda.Primitive where\n")
    return root


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo setup_logging() calls made by the CLI under test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
