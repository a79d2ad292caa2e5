"""
L0 Data — constants for the bdist service.

Re-exports everything from ``constants`` for convenient access.
"""

from agda_bdist.core.services.bdist.data.constants import (  # noqa: F401
    AGDA_BIN_NAMES,
    BDIST_NAME_DEFAULT_TEMPLATE,
    BDIST_RETENTION_DAYS,
    BUILD_TIMEOUT_TIERS,
    FALSY_FLAG_VALUES,
    HACKAGE_URL,
    ICU_DOWNLOADS,
    NAME_TEMPLATE_FIELDS,
    UPX_VERSION,
    _ARCH_MAP,
    _PLATFORM_MAP,
)
