"""
L1 Domain — Build feature compatibility rules (pure).

Each rule decides whether one optional build feature is safe to enable
for a combination of Agda version, GHC/Cabal version and OS.  A rule is
a conjunction of clauses, and each clause encodes exactly one historical
fact (a flag's introduction, a dependency bug, a platform limitation).
Adding a new fact means adding a clause; no other clause changes.

Clauses share one signature, ``(options, context) -> bool``, so they can
be listed, evaluated and explained uniformly.  Rules never raise: a
clause that cannot be evaluated (e.g. ``ghc-version`` is still
``"latest"``, or no context was given for an OS check) counts as False.
"""

from __future__ import annotations

import logging
from typing import Callable

from agda_bdist.core.context import RuntimeContext
from agda_bdist.core.models.options import BuildOptions
from agda_bdist.core.services.bdist.domain import simver

logger = logging.getLogger(__name__)

Clause = Callable[[BuildOptions, "RuntimeContext | None"], bool]


# ── Cluster counting ───────────────────────────────────────────


def agda_has_cluster_counting(options: BuildOptions, context: RuntimeContext | None) -> bool:
    """Agda only has the ``enable-cluster-counting`` flag from 2.5.3 on.

    https://github.com/agda/agda/blob/f50c14d3a4e92ed695783e26dbe11ad1ad7b73f7/doc/release-notes/2.5.3.md
    """
    return simver.gte(options.agda_version, "2.5.3")


def user_allows_cluster_counting(options: BuildOptions, context: RuntimeContext | None) -> bool:
    """The user did not pass ``disable-cluster-counting``."""
    return not options.disable_cluster_counting


def build_tool_finds_icu(options: BuildOptions, context: RuntimeContext | None) -> bool:
    """Stack ignores pkg-config dependencies when resolving native search paths.

    Passing ``--extra-lib-dirs``/``--extra-include-dirs`` explicitly would
    work around it; until then, Stack builds go without ICU.
    """
    return not options.enable_stack


def text_icu_builds_with_modern_icu(options: BuildOptions, context: RuntimeContext | None) -> bool:
    """Agda 2.5.3 – 2.6.2 depend on text-icu ^0.7, and text-icu 0.7.0.0 – 0.7.1.0
    do not compile against icu68+.
    """
    return simver.gte(options.agda_version, "2.6.2")


# ── Optimise heavily ───────────────────────────────────────────


def agda_has_optimise_heavily(options: BuildOptions, context: RuntimeContext | None) -> bool:
    """Agda only has the ``optimise-heavily`` flag from 2.6.2 on.

    https://github.com/agda/agda/blob/1175c41210716074340da4bd4caa09f4dfe2cc1d/doc/release-notes/2.6.2.md
    """
    return simver.gte(options.agda_version, "2.6.2")


# ── Static executables ─────────────────────────────────────────


def static_linking_platform_ok(options: BuildOptions, context: RuntimeContext | None) -> bool:
    """Static linking fails on the Ubuntu 20.04 CI runners."""
    return context is not None and context.os != "linux"


def ghc_has_executable_static(options: BuildOptions, context: RuntimeContext | None) -> bool:
    """``--enable-executable-static`` needs GHC 8.4 or later.

    https://cabal.readthedocs.io/en/latest/cabal-project.html#cfg-field-executable-static
    """
    return simver.gte(options.ghc_version, "8.4")


# ── Split sections ─────────────────────────────────────────────


def split_sections_platform_ok(options: BuildOptions, context: RuntimeContext | None) -> bool:
    """``--split-sections`` does nothing on macOS.

    https://github.com/agda/agda/issues/5940
    """
    return context is not None and context.os in ("linux", "windows")


def ghc_has_split_sections(options: BuildOptions, context: RuntimeContext | None) -> bool:
    """GHC supports ``-split-sections`` from 8.0 on."""
    return simver.gte(options.ghc_version, "8.0")


def cabal_has_split_sections(options: BuildOptions, context: RuntimeContext | None) -> bool:
    """Cabal has the ``split-sections`` field from 2.2 on.

    https://cabal.readthedocs.io/en/latest/cabal-project.html#cfg-field-split-sections
    """
    return simver.gte(options.cabal_version, "2.2")


# ── Executable compression ─────────────────────────────────────


def user_requested_compression(options: BuildOptions, context: RuntimeContext | None) -> bool:
    """The user passed ``bdist-compress-exe``."""
    return options.bdist_compress_exe


def compression_platform_ok(options: BuildOptions, context: RuntimeContext | None) -> bool:
    """Compressed executables are unsigned, which breaks the security
    policies on macOS and Windows.
    """
    return context is not None and context.os not in ("macos", "windows")


def upx_runs_on_platform(options: BuildOptions, context: RuntimeContext | None) -> bool:
    """UPX does not support macOS 11 Big Sur (Darwin 20) or earlier."""
    if context is None:
        return False
    return context.os != "macos" or simver.gte(context.release, "21")


# ── Rule table ─────────────────────────────────────────────────

RULES: dict[str, tuple[Clause, ...]] = {
    "cluster-counting": (
        agda_has_cluster_counting,
        user_allows_cluster_counting,
        build_tool_finds_icu,
        text_icu_builds_with_modern_icu,
    ),
    "optimise-heavily": (
        agda_has_optimise_heavily,
    ),
    "executable-static": (
        static_linking_platform_ok,
        ghc_has_executable_static,
    ),
    "split-sections": (
        split_sections_platform_ok,
        ghc_has_split_sections,
        cabal_has_split_sections,
    ),
    "compress-exe": (
        user_requested_compression,
        compression_platform_ok,
        upx_runs_on_platform,
    ),
    "upx": (
        upx_runs_on_platform,
    ),
}


def _holds(clause: Clause, options: BuildOptions, context: RuntimeContext | None) -> bool:
    try:
        return bool(clause(options, context))
    except Exception as e:
        logger.debug("Clause %s could not be evaluated: %s", clause.__name__, e)
        return False


def evaluate(rule: str, options: BuildOptions, context: RuntimeContext | None = None) -> bool:
    """Evaluate a rule by name.  Unknown rules raise KeyError."""
    return all(_holds(clause, options, context) for clause in RULES[rule])


def explain(
    rule: str,
    options: BuildOptions,
    context: RuntimeContext | None = None,
) -> list[tuple[str, bool]]:
    """Every clause of ``rule`` with its individual result."""
    return [(clause.__name__, _holds(clause, options, context)) for clause in RULES[rule]]


def feature_matrix(options: BuildOptions, context: RuntimeContext | None = None) -> dict[str, bool]:
    """All rule decisions for ``options`` on ``context``."""
    return {rule: evaluate(rule, options, context) for rule in RULES}


# ── Named rules ────────────────────────────────────────────────


def should_enable_cluster_counting(options: BuildOptions, context: RuntimeContext | None = None) -> bool:
    return evaluate("cluster-counting", options, context)


def should_enable_optimise_heavily(options: BuildOptions, context: RuntimeContext | None = None) -> bool:
    return evaluate("optimise-heavily", options, context)


def should_enable_executable_static(options: BuildOptions, context: RuntimeContext | None = None) -> bool:
    return evaluate("executable-static", options, context)


def should_enable_split_sections(options: BuildOptions, context: RuntimeContext | None = None) -> bool:
    return evaluate("split-sections", options, context)


def should_compress_exe(options: BuildOptions, context: RuntimeContext | None = None) -> bool:
    return evaluate("compress-exe", options, context)


def supports_upx(context: RuntimeContext | None) -> bool:
    """Whether UPX can run on this platform at all."""
    return evaluate("upx", BuildOptions(), context)
