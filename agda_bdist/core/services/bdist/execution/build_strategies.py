"""
L4 Execution — Build strategies.

Two ways to build Agda from an unpacked sdist:

    cabal   configure + build, then a separate ``cabal install`` step
            that copies the executables into the install directory
    stack   ``stack build --copy-bins`` produces final executables
            directly; they are moved out of ``stack path --local-bin``

Both strategies derive their flags from the compatibility rules, and
both copy the Agda data directory next to ``bin/``.

The flags follow Agda's own deploy workflow:
https://github.com/agda/agda/blob/d5b5d90a3e34cf8cbae838bc20e94b74a20fea9c/src/github/workflows/deploy.yml#L37-L47
"""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

from agda_bdist.core.context import RuntimeContext
from agda_bdist.core.models.options import BuildOptions
from agda_bdist.core.services.bdist.data.constants import AGDA_BIN_NAMES, BUILD_TIMEOUT_TIERS
from agda_bdist.core.services.bdist.domain.compatibility import (
    should_enable_cluster_counting,
    should_enable_executable_static,
    should_enable_optimise_heavily,
    should_enable_split_sections,
)
from agda_bdist.core.services.bdist.execution.subprocess_runner import get_output

logger = logging.getLogger(__name__)

_BUILD_TIMEOUT = BUILD_TIMEOUT_TIERS["huge"]


def copy_data_dir(source_dir: Path, install_dir: Path) -> Path:
    """Copy ``src/data`` of an Agda sdist to ``<install_dir>/data``."""
    src = source_dir / "src" / "data"
    dest = install_dir / "data"
    if not src.is_dir():
        raise FileNotFoundError(f"No data directory in {source_dir}")
    shutil.copytree(src, dest, dirs_exist_ok=True)
    return dest


class BuildStrategy(ABC):
    """A way to turn an Agda source tree into ``bin/`` and ``data/``."""

    name: str = ""

    @abstractmethod
    def build_flags(self, options: BuildOptions, context: RuntimeContext) -> list[str]:
        """Flags for the configure/build step."""

    @abstractmethod
    def build(
        self,
        source_dir: Path,
        install_dir: Path,
        options: BuildOptions,
        context: RuntimeContext,
    ) -> Path:
        """Build and install into ``install_dir``; return ``install_dir``.

        Raises:
            CommandError: If any build command fails.
        """


class CabalStrategy(BuildStrategy):
    """Build with cabal-install."""

    name = "cabal"

    def build_flags(self, options: BuildOptions, context: RuntimeContext) -> list[str]:
        flags: list[str] = []
        # Use the selected GHC:
        if options.ghc_version != "latest":
            flags.append(f"--with-compiler=ghc-{options.ghc_version}")
        # Disable profiling:
        flags.append("--disable-executable-profiling")
        flags.append("--disable-library-profiling")
        # If supported, build with split sections:
        if should_enable_split_sections(options, context):
            flags.append("--enable-split-sections")
        # If supported, build a static executable:
        if should_enable_executable_static(options, context):
            flags.append("--enable-executable-static")
        # If supported, pass Agda flags:
        if should_enable_cluster_counting(options, context):
            flags.append("--flags=+enable-cluster-counting")
        if should_enable_optimise_heavily(options, context):
            flags.append("--flags=+optimise-heavily")
        for include_dir in options.extra_include_dirs:
            flags.append(f"--extra-include-dirs={include_dir}")
        for lib_dir in options.extra_lib_dirs:
            flags.append(f"--extra-lib-dirs={lib_dir}")
        return flags

    def build(
        self,
        source_dir: Path,
        install_dir: Path,
        options: BuildOptions,
        context: RuntimeContext,
    ) -> Path:
        bin_dir = install_dir / "bin"
        bin_dir.mkdir(parents=True, exist_ok=True)
        targets = [f"exe:{name}" for name in AGDA_BIN_NAMES]

        get_output(["cabal", "v2-update"], timeout=600)
        get_output(
            ["cabal", "v2-configure", *self.build_flags(options, context)],
            cwd=source_dir,
        )
        logger.info("Building Agda %s with Cabal", options.agda_version)
        get_output(["cabal", "v2-build", *targets], cwd=source_dir, timeout=_BUILD_TIMEOUT)
        get_output(
            [
                "cabal", "v2-install", *targets,
                "--install-method=copy",
                "--overwrite-policy=always",
                f"--installdir={bin_dir}",
            ],
            cwd=source_dir,
            timeout=_BUILD_TIMEOUT,
        )
        copy_data_dir(source_dir, install_dir)
        return install_dir


class StackStrategy(BuildStrategy):
    """Build with Stack."""

    name = "stack"

    def build_flags(self, options: BuildOptions, context: RuntimeContext) -> list[str]:
        flags: list[str] = []
        # Load default configuration from 'stack-<ghc-version>.yaml':
        flags.append(f"--stack-yaml=stack-{options.ghc_version}.yaml")
        # Disable Stack managed GHC:
        if not options.stack_setup_ghc:
            flags.append("--no-install-ghc")
            flags.append("--system-ghc")
        # Disable profiling:
        flags.append("--no-executable-profiling")
        flags.append("--no-library-profiling")
        # If supported, pass Agda flags:
        if should_enable_cluster_counting(options, context):
            flags.append("--flag=Agda:enable-cluster-counting")
        if should_enable_optimise_heavily(options, context):
            flags.append("--flag=Agda:optimise-heavily")
        for include_dir in options.extra_include_dirs:
            flags.append(f"--extra-include-dirs={include_dir}")
        for lib_dir in options.extra_lib_dirs:
            flags.append(f"--extra-lib-dirs={lib_dir}")
        return flags

    def local_bin_dir(self, options: BuildOptions, source_dir: Path) -> Path:
        """Where ``--copy-bins`` puts executables."""
        output = get_output(
            ["stack", "path", "--local-bin", f"--stack-yaml=stack-{options.ghc_version}.yaml"],
            cwd=source_dir,
        )
        return Path(output.strip())

    def build(
        self,
        source_dir: Path,
        install_dir: Path,
        options: BuildOptions,
        context: RuntimeContext,
    ) -> Path:
        bin_dir = install_dir / "bin"
        bin_dir.mkdir(parents=True, exist_ok=True)

        logger.info("Building Agda %s with Stack", options.agda_version)
        get_output(
            ["stack", "build", *self.build_flags(options, context), "--copy-bins"],
            cwd=source_dir,
            timeout=_BUILD_TIMEOUT,
        )

        local_bin = self.local_bin_dir(options, source_dir)
        for name in AGDA_BIN_NAMES:
            exe = context.exe_name(name)
            shutil.copy2(local_bin / exe, bin_dir / exe)
            try:
                (local_bin / exe).unlink()
            except OSError:
                logger.debug("Could not clean up executable at %s", local_bin / exe)
        copy_data_dir(source_dir, install_dir)
        return install_dir


def get_strategy(options: BuildOptions) -> BuildStrategy:
    """The build strategy selected by ``enable-stack``."""
    return StackStrategy() if options.enable_stack else CabalStrategy()
