"""
Windows toolkit — prebuilt ICU zips, ``dumpbin`` for inspection.

Windows finds DLLs next to the executable, so bundling only copies the
ICU DLLs into ``bin/``.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from agda_bdist.adapters.base import IcuPaths, PlatformToolkit
from agda_bdist.core.models.options import BuildOptions
from agda_bdist.core.services.bdist.data.constants import ICU_DOWNLOADS
from agda_bdist.core.services.bdist.execution.archive import extract
from agda_bdist.core.services.bdist.execution.download import download_file
from agda_bdist.core.services.bdist.execution.subprocess_runner import get_output

logger = logging.getLogger(__name__)

_ICU_DLLS = ("icudt", "icuin", "icuuc")


class WindowsToolkit(PlatformToolkit):

    @property
    def os(self) -> str:
        return "windows"

    def install_icu(self, version: str) -> IcuPaths:
        download = ICU_DOWNLOADS.get(("windows", version))
        if download is None:
            raise ValueError(f"Could not install ICU-{version} for windows")
        install_dir = self.context.icu_dir(version)
        with tempfile.TemporaryDirectory(prefix="icu-") as tmp:
            archive = download_file(download["url"], Path(tmp))
            extract(archive, install_dir)
        root = install_dir / download["root"]
        logger.info("Installed ICU %s to %s", version, root)
        return IcuPaths(lib_dir=root / "bin64", include_dir=root / "include")

    def bundle_icu(self, bdist_dir: Path, options: BuildOptions) -> list[Path]:
        major = (options.icu_version or "").split(".")[0]
        lib_dir = self._icu_lib_dir(options)
        dlls = [lib_dir / f"{name}{major}.dll" for name in _ICU_DLLS]
        return self._copy_libs([dll for dll in dlls if dll.exists()], bdist_dir / "bin")

    def needed_libraries(self, binary: Path) -> str:
        return get_output(["dumpbin", "/imports", str(binary)])
