"""
Runtime context — the process-wide facts every component reads.

Established ONCE at startup by whichever entry point launches the run:

    - CLI:    main.py  → detect_context()
    - Tests:  conftest → RuntimeContext(os="linux", ..., home=tmp_path)

and then passed explicitly to every component that needs it.  Nothing
reads these facts from module globals, so tests can inject any OS,
architecture or package index.

Design notes:
    - Frozen dataclass: the detected OS and the package index never
      change during a run.
    - Directory helpers only compute paths; they never create them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from agda_bdist.core.models.package_info import PackageInfoCache
from agda_bdist.core.models.package_index import PackageIndex

OS = Literal["linux", "macos", "windows"]


@dataclass(frozen=True)
class RuntimeContext:
    """Immutable platform facts plus the static package data."""

    os: OS
    arch: str
    platform: str
    release: str
    home: Path
    package_index: PackageIndex = field(default_factory=PackageIndex)
    package_info_cache: PackageInfoCache = field(default_factory=PackageInfoCache)

    # ── Directories ──

    def agda_dir(self) -> Path:
        """Root of everything this tool installs."""
        if self.os == "windows":
            return self.home / "AppData" / "Roaming" / "agda"
        return self.home / ".agda"

    def install_dir(self, agda_version: str) -> Path:
        return self.agda_dir() / "agda" / agda_version

    def bdist_dir(self, bdist_name: str) -> Path:
        return self.agda_dir() / "bdist" / bdist_name

    def icu_dir(self, icu_version: str) -> Path:
        return self.agda_dir() / "icu" / icu_version

    def upx_dir(self, upx_version: str) -> Path:
        return self.agda_dir() / "upx" / upx_version

    def source_dir(self, agda_version: str) -> Path:
        return self.agda_dir() / "src" / agda_version

    # ── Executables ──

    def exe_name(self, name: str) -> str:
        """Executable file name on this OS (``agda`` / ``agda.exe``)."""
        return f"{name}.exe" if self.os == "windows" else name
