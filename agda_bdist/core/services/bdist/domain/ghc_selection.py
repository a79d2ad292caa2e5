"""
L1 Domain — GHC version selection (pure).

Agda's sources list the GHC versions they were tested with (Stack
``stack-<ghc>.yaml`` files, Cabal ``tested-with`` fields).  The selected
GHC must be one of those (exactly, or up to major.minor) and lie inside
the user's ``ghc-version-range``.
"""

from __future__ import annotations

import logging
from typing import Iterable

from agda_bdist.core.models.options import BuildOptions
from agda_bdist.core.services.bdist.domain import simver
from agda_bdist.core.services.bdist.domain.version_range import satisfies

logger = logging.getLogger(__name__)


def ghc_version_match(options: BuildOptions, v1: str, v2: str) -> bool:
    """Whether two GHC versions count as the same for this build.

    With ``ghc-version-match-exact`` the strings must be identical;
    otherwise major and minor version must agree (``9.2.4`` ~ ``9.2.8``).
    """
    if options.ghc_version_match_exact:
        return v1 == v2
    p1 = simver.parse(v1)
    if p1 is None or len(p1) < 2:
        logger.warning("Could not parse GHC version %s", v1)
        return False
    p2 = simver.parse(v2)
    if p2 is None or len(p2) < 2:
        logger.warning("Could not parse GHC version %s", v2)
        return False
    return p1[:2] == p2[:2]


def select_ghc_version(
    options: BuildOptions,
    candidates: Iterable[str] | None = None,
) -> str | None:
    """Pick the GHC version to build with.

    Args:
        options: Resolved options; ``ghc_supported_versions`` and
            ``ghc_version_range`` are consulted.
        candidates: Versions that could be installed.  Defaults to the
            supported versions themselves.

    Returns:
        The newest candidate that matches a supported version and lies
        in the range, or None if there is none.
    """
    supported = list(options.ghc_supported_versions)
    pool = list(candidates) if candidates is not None else supported
    eligible = [
        v for v in pool
        if satisfies(v, options.ghc_version_range)
        and any(ghc_version_match(options, v, s) for s in supported)
    ]
    if not eligible:
        logger.debug(
            "No GHC version in %s matches %s within range %r",
            pool, supported, options.ghc_version_range,
        )
        return None
    return max(eligible, key=simver.sort_key)
