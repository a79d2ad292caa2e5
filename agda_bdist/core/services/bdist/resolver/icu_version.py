"""
L2 Resolver — ICU version.

Cluster counting links Agda against ICU through text-icu.  Which ICU
release to use depends on the text-icu bounds of the Agda release.
"""

from __future__ import annotations

import logging

from agda_bdist.core.context import RuntimeContext
from agda_bdist.core.models.options import BuildOptions
from agda_bdist.core.services.bdist.domain import simver
from agda_bdist.core.services.bdist.domain.compatibility import (
    should_enable_cluster_counting,
)

logger = logging.getLogger(__name__)


def icu_version_for(agda_version: str) -> str | None:
    """ICU release for ``agda_version``, or None if it cannot use ICU."""
    if simver.gte(agda_version, "2.6.2"):
        return "71.1"
    if simver.gte(agda_version, "2.5.3"):
        return "67.1"
    return None


def resolve_icu_version(options: BuildOptions, context: RuntimeContext | None = None) -> BuildOptions:
    """Set ``icu-version`` when the build will enable cluster counting."""
    if not should_enable_cluster_counting(options, context):
        return options
    icu_version = icu_version_for(options.agda_version)
    if icu_version is None:
        return options
    logger.debug("Agda %s will be built with ICU %s", options.agda_version, icu_version)
    return options.with_updates(icu_version=icu_version)
