"""
Platform toolkit base — the contract between the pipeline and the OS.

Everything that differs between Linux, macOS and Windows lives behind
this interface: how ICU is installed, how it is bundled into a
distribution, and which tool lists an executable's needed libraries.
Shared logic never checks the OS itself; it asks the registry for the
toolkit of ``context.os``.

To add a platform:
    1. Subclass PlatformToolkit
    2. Implement os, install_icu, bundle_icu, needed_libraries
    3. Register it in ``registry.TOOLKITS``
"""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from agda_bdist.core.context import RuntimeContext
from agda_bdist.core.models.options import BuildOptions
from agda_bdist.core.services.bdist.data.constants import AGDA_BIN_NAMES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IcuPaths:
    """Where an installed ICU keeps its libraries and headers."""

    lib_dir: Path
    include_dir: Path


class PlatformToolkit(ABC):
    """Per-OS operations used by the build driver and the pipeline."""

    def __init__(self, context: RuntimeContext):
        self.context = context

    @property
    @abstractmethod
    def os(self) -> str:
        """The OS family this toolkit serves (``linux``, ``macos``, ``windows``)."""

    @abstractmethod
    def install_icu(self, version: str) -> IcuPaths:
        """Install ICU ``version`` and return its directories.

        Raises:
            OSError: On download/extraction failures.
            CommandError: If an installer command fails.
            ValueError: If this platform has no ICU ``version``.
        """

    @abstractmethod
    def bundle_icu(self, bdist_dir: Path, options: BuildOptions) -> list[Path]:
        """Copy the ICU libraries into ``bdist_dir`` and point the
        executables at them.  Returns the copied files.
        """

    @abstractmethod
    def needed_libraries(self, binary: Path) -> str:
        """Raw output of the platform's dependency inspector.

        Raises:
            CommandError: If the inspector is missing or fails.
        """

    # ── Shared helpers ──

    def exe_names(self) -> list[str]:
        """Executable file names of an Agda distribution."""
        return [self.context.exe_name(name) for name in AGDA_BIN_NAMES]

    def executables(self, bdist_dir: Path) -> list[Path]:
        return [bdist_dir / "bin" / name for name in self.exe_names()]

    def _icu_lib_dir(self, options: BuildOptions) -> Path:
        if not options.extra_lib_dirs:
            raise FileNotFoundError("No ICU library directory recorded in options")
        return Path(options.extra_lib_dirs[0])

    def _copy_libs(self, libs: list[Path], dest: Path) -> list[Path]:
        if not libs:
            raise FileNotFoundError(f"No ICU libraries to copy into {dest}")
        dest.mkdir(parents=True, exist_ok=True)
        copied = []
        for lib in libs:
            target = dest / lib.name
            # follow_symlinks: the soname link must become a real file.
            shutil.copy2(lib, target, follow_symlinks=True)
            copied.append(target)
            logger.debug("Bundled %s", target)
        return copied

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} os={self.os!r}>"
