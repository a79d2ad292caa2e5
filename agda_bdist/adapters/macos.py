"""
macOS toolkit — ICU through Homebrew, ``otool``/``install_name_tool``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from agda_bdist.adapters.base import IcuPaths, PlatformToolkit
from agda_bdist.core.models.options import BuildOptions
from agda_bdist.core.services.bdist.execution.subprocess_runner import get_output

logger = logging.getLogger(__name__)

# Homebrew only carries the current icu4c.
_BREW_ICU_VERSIONS = ("71.1",)

_OTOOL_LIB_RE = re.compile(r"^\s+(\S*libicu\S*\.dylib)\s", re.MULTILINE)


class MacOSToolkit(PlatformToolkit):

    @property
    def os(self) -> str:
        return "macos"

    def install_icu(self, version: str) -> IcuPaths:
        if version not in _BREW_ICU_VERSIONS:
            raise ValueError(f"Could not install ICU-{version} for macos")
        prefix = Path(get_output(["brew", "--prefix"]).strip())
        get_output(["brew", "install", "icu4c"], timeout=1200)
        install_path = prefix / "opt" / "icu4c"
        logger.info("Installed ICU through Homebrew at %s", install_path)
        return IcuPaths(lib_dir=install_path / "lib", include_dir=install_path / "include")

    def bundle_icu(self, bdist_dir: Path, options: BuildOptions) -> list[Path]:
        major = (options.icu_version or "").split(".")[0]
        lib_dir = self._icu_lib_dir(options)
        libs = sorted(lib_dir.glob(f"libicu*.{major}.dylib"))
        copied = self._copy_libs(libs, bdist_dir / "lib")
        for exe in self.executables(bdist_dir):
            for old in _OTOOL_LIB_RE.findall(self.needed_libraries(exe)):
                new = f"@executable_path/../lib/{Path(old).name}"
                get_output(["install_name_tool", "-change", old, new, str(exe)])
        return copied

    def needed_libraries(self, binary: Path) -> str:
        return get_output(["otool", "-L", str(binary)])
