"""
Linux toolkit — prebuilt ICU tarballs, ``patchelf`` for inspection and rpaths.
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

# The Ubuntu tarballs unpack to ./icu/usr/local/{lib,include,...}.
_ICU_STRIP_COMPONENTS = 4

_ICU_LIBS = ("libicudata", "libicui18n", "libicuuc")


class LinuxToolkit(PlatformToolkit):

    @property
    def os(self) -> str:
        return "linux"

    def install_icu(self, version: str) -> IcuPaths:
        download = ICU_DOWNLOADS.get(("linux", version))
        if download is None:
            raise ValueError(f"Could not install ICU-{version} for linux")
        install_dir = self.context.icu_dir(version)
        with tempfile.TemporaryDirectory(prefix="icu-") as tmp:
            archive = download_file(download["url"], Path(tmp))
            extract(archive, install_dir, strip_components=_ICU_STRIP_COMPONENTS)
        logger.info("Installed ICU %s to %s", version, install_dir)
        return IcuPaths(lib_dir=install_dir / "lib", include_dir=install_dir / "include")

    def bundle_icu(self, bdist_dir: Path, options: BuildOptions) -> list[Path]:
        major = (options.icu_version or "").split(".")[0]
        lib_dir = self._icu_lib_dir(options)
        libs = [lib_dir / f"{name}.so.{major}" for name in _ICU_LIBS]
        copied = self._copy_libs([lib for lib in libs if lib.exists()], bdist_dir / "lib")
        for exe in self.executables(bdist_dir):
            get_output(["patchelf", "--set-rpath", "$ORIGIN/../lib", str(exe)])
        return copied

    def needed_libraries(self, binary: Path) -> str:
        return get_output(["patchelf", "--print-needed", str(binary)])
