"""
L4 Execution — UPX setup and executable compression.

UPX is fetched from the package index (``upx-<version>-<arch>-<platform>``)
and unpacked into ``<agda-dir>/upx/<version>``.  An existing unpacked
copy is reused.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any

from agda_bdist.core.context import RuntimeContext
from agda_bdist.core.services.bdist.data.constants import UPX_VERSION
from agda_bdist.core.services.bdist.execution.archive import extract, make_executable
from agda_bdist.core.services.bdist.execution.download import download_file
from agda_bdist.core.services.bdist.execution.subprocess_runner import run_command

logger = logging.getLogger(__name__)


def setup_upx(context: RuntimeContext, version: str = UPX_VERSION) -> Path:
    """Make UPX ``version`` available and return its executable.

    Raises:
        PackageNotFound: If the package index has no UPX for this platform.
        OSError: If the download or extraction fails.
    """
    upx_dir = context.upx_dir(version)
    upx_exe = upx_dir / context.exe_name("upx")
    if upx_exe.is_file():
        logger.debug("Using cached UPX at %s", upx_exe)
        return upx_exe

    url = context.package_index.find_pkg_url("upx", version, context.arch, context.platform)
    with tempfile.TemporaryDirectory(prefix="upx-") as tmp:
        archive = download_file(url, Path(tmp))
        # Release archives wrap everything in one upx-<version>-<target>/ folder.
        extract(archive, upx_dir, strip_components=1)

    if not upx_exe.is_file():
        raise OSError(f"UPX archive from {url} has no {upx_exe.name}")
    make_executable(upx_exe)
    logger.info("Installed UPX %s to %s", version, upx_dir)
    return upx_exe


def compress_exe(upx_exe: Path, exe: Path) -> dict[str, Any]:
    """Compress ``exe`` in place with ``upx --best``.

    Returns:
        The :func:`run_command` result dict.
    """
    return run_command([str(upx_exe), "--best", str(exe)], timeout=600)
