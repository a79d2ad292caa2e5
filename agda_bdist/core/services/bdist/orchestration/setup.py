"""
L5 Orchestration — Set up Agda.

Top-level coordinator for one run:

    1. resolve ``agda-version: latest`` against the package info
    2. unless ``force-build``: probe for a prebuilt bdist and install it
    3. otherwise (or on a miss) build from the Hackage sdist:
       supported GHCs → GHC selection → GHC installer → ICU → build
    4. if ``bdist-upload``: package, verify and publish the build

The GHC installer is an external collaborator, passed in as a callable
that receives the :class:`SetupHaskellInputs`.  The default runs ghcup.
"""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Literal

from agda_bdist.adapters.base import PlatformToolkit
from agda_bdist.core.context import RuntimeContext
from agda_bdist.core.models.options import BuildOptions, SetupHaskellInputs
from agda_bdist.core.models.receipt import UploadResult
from agda_bdist.core.services.bdist.data.constants import HACKAGE_URL
from agda_bdist.core.services.bdist.detection.package_info import get_package_info
from agda_bdist.core.services.bdist.detection.program_version import (
    get_program_version,
    supported_ghc_versions,
)
from agda_bdist.core.services.bdist.domain.ghc_selection import select_ghc_version
from agda_bdist.core.services.bdist.execution.archive import extract
from agda_bdist.core.services.bdist.execution.build_strategies import get_strategy
from agda_bdist.core.services.bdist.execution.download import download_file
from agda_bdist.core.services.bdist.execution.subprocess_runner import get_output
from agda_bdist.core.services.bdist.orchestration.pipeline import PackagingPipeline
from agda_bdist.core.services.bdist.resolver.icu_version import resolve_icu_version
from agda_bdist.core.services.bdist.resolver.options_resolver import (
    pick_setup_haskell_inputs,
    resolve_agda_version,
)

logger = logging.getLogger(__name__)

GhcInstaller = Callable[[SetupHaskellInputs], None]


class SetupError(RuntimeError):
    """Raised when Agda cannot be set up with the given options."""


@dataclass
class SetupResult:
    """Outcome of :func:`setup_agda`."""

    install_dir: Path
    options: BuildOptions
    source: Literal["bdist", "build"]
    upload: UploadResult | None = None


# ── GHC installer ──────────────────────────────────────────────


def ghcup_install(inputs: SetupHaskellInputs) -> None:
    """Install and select GHC (and Cabal or Stack) with ghcup.

    Raises:
        CommandError: If ghcup fails.
    """
    if inputs.enable_stack and inputs.stack_setup_ghc:
        logger.info("Stack will install GHC %s", inputs.ghc_version)
    else:
        get_output(["ghcup", "install", "ghc", inputs.ghc_version], timeout=1800)
        get_output(["ghcup", "set", "ghc", inputs.ghc_version])
    if inputs.enable_stack:
        get_output(["ghcup", "install", "stack", inputs.stack_version], timeout=600)
    else:
        get_output(["ghcup", "install", "cabal", inputs.cabal_version], timeout=600)
        get_output(["ghcup", "set", "cabal", inputs.cabal_version])


# ── Build from source ──────────────────────────────────────────


def fetch_sdist(agda_version: str, context: RuntimeContext) -> Path:
    """Download and unpack the Agda sdist from Hackage."""
    source_dir = context.source_dir(agda_version)
    if (source_dir / "Agda.cabal").is_file():
        logger.debug("Using cached sources at %s", source_dir)
        return source_dir
    package = f"Agda-{agda_version}"
    url = f"{HACKAGE_URL}/package/{package}/{package}.tar.gz"
    with tempfile.TemporaryDirectory(prefix="agda-sdist-") as tmp:
        archive = download_file(url, Path(tmp))
        extract(archive, source_dir, strip_components=1)
    return source_dir


def _detect_tool_versions(options: BuildOptions) -> BuildOptions:
    """Replace ``latest`` tool versions by what is actually installed."""
    updates = {}
    for program, attr in (("cabal", "cabal_version"), ("stack", "stack_version")):
        if program == "stack" and not options.enable_stack:
            continue
        version = get_program_version(program)
        if version is not None:
            updates[attr] = version
    return options.with_updates(**updates) if updates else options


def build_from_sdist(
    options: BuildOptions,
    context: RuntimeContext,
    toolkit: PlatformToolkit,
    install_ghc: GhcInstaller = ghcup_install,
) -> tuple[Path, BuildOptions]:
    """Build Agda from its Hackage sdist.

    Returns:
        ``(install_dir, options)``; the returned options carry the
        selected GHC, the detected tool versions and the ICU setup.

    Raises:
        SetupError: If no supported GHC lies in ``ghc-version-range``.
        CommandError: If an installer or build command fails.
    """
    source_dir = fetch_sdist(options.agda_version, context)

    supported = supported_ghc_versions(source_dir, enable_stack=options.enable_stack)
    options = options.with_updates(ghc_supported_versions=tuple(supported))
    ghc_version = select_ghc_version(options)
    if ghc_version is None:
        raise SetupError(
            f"No GHC version in range {options.ghc_version_range!r} is supported "
            f"by Agda {options.agda_version} (supported: {', '.join(supported)})"
        )
    logger.info("Selected GHC %s", ghc_version)
    options = options.with_updates(ghc_version=ghc_version)

    install_ghc(pick_setup_haskell_inputs(options))
    options = _detect_tool_versions(options)

    options = resolve_icu_version(options, context)
    if options.icu_version is not None:
        icu = toolkit.install_icu(options.icu_version)
        options = options.with_updates(
            extra_lib_dirs=options.extra_lib_dirs + (str(icu.lib_dir),),
            extra_include_dirs=options.extra_include_dirs + (str(icu.include_dir),),
        )

    install_dir = context.install_dir(options.agda_version)
    get_strategy(options).build(source_dir, install_dir, options, context)
    return install_dir, options


# ── Entry point ────────────────────────────────────────────────


def setup_agda(
    options: BuildOptions,
    context: RuntimeContext,
    *,
    pipeline: PackagingPipeline | None = None,
    install_ghc: GhcInstaller = ghcup_install,
    refresh_package_info: bool = False,
) -> SetupResult:
    """Install Agda, from a prebuilt bdist if possible.

    Raises:
        SetupError: If a build is required but ``force-no-build`` is set,
            or no usable GHC exists.
        VerificationError: If a freshly built bdist fails its smoke test.
        CommandError: If a required external command fails.
    """
    cache = get_package_info(context.package_info_cache, refresh=refresh_package_info)
    options = resolve_agda_version(options, cache)
    pipeline = pipeline or PackagingPipeline(context)

    if not options.force_build:
        archive = pipeline.download(options)
        if archive is not None:
            install_dir = pipeline.install_bdist(archive, options)
            if install_dir is not None:
                return SetupResult(install_dir=install_dir, options=options, source="bdist")

    if options.force_no_build:
        raise SetupError(
            f"No prebuilt Agda {options.agda_version} for "
            f"{context.arch}-{context.platform} and 'force-no-build' is set"
        )

    install_dir, options = build_from_sdist(options, context, pipeline.toolkit, install_ghc)
    upload = None
    if options.bdist_upload:
        upload = pipeline.upload(install_dir, options)
    return SetupResult(install_dir=install_dir, options=options, source="build", upload=upload)
