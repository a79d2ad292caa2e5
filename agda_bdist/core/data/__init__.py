"""
Central data registry for the static metadata shipped with the package.

Loads ``action.yml``, the package index and the package-info cache from
``agda_bdist/core/data/`` once at first access and caches them for the
lifetime of the registry instance.

Usage::

    from agda_bdist.core.data import DataRegistry

    registry = DataRegistry()
    spec = registry.input_spec            # InputSpec
    index = registry.package_index        # dict[str, str]
    cache = registry.package_info_cache   # PackageInfoCache
"""

from __future__ import annotations

import logging
from functools import cached_property
from pathlib import Path

from agda_bdist.core.config.loader import (
    load_input_spec,
    load_package_index,
    load_package_info_cache,
)
from agda_bdist.core.models.input_spec import InputSpec
from agda_bdist.core.models.package_info import PackageInfoCache

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent

ACTION_YML = DATA_DIR / "action.yml"
PACKAGE_INDEX_JSON = DATA_DIR / "package-index.json"
PACKAGE_INFO_DIR = DATA_DIR / "package-info"


class DataRegistry:
    """Lazily loaded static metadata.

    Pass a different ``data_dir`` to read an alternative set of files
    (tests do this).
    """

    def __init__(self, data_dir: Path | None = None):
        self._dir = data_dir or DATA_DIR

    @cached_property
    def input_spec(self) -> InputSpec:
        """Declared inputs and defaults."""
        return load_input_spec(self._dir / "action.yml")

    @cached_property
    def package_index(self) -> dict[str, str]:
        """Key → URL for prebuilt bdists and helper tools."""
        return load_package_index(self._dir / "package-index.json")

    @cached_property
    def package_info_cache(self) -> PackageInfoCache:
        """Hackage lifecycle status of every Agda release."""
        return load_package_info_cache(self._dir / "package-info" / "Agda.json")
