"""
PackageInfoCache — cached Hackage lifecycle status per package version.

A cache, not a source of truth: it carries its ``lastModified`` date so
callers can decide whether it is too old to rely on.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from email.utils import parsedate_to_datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PackageStatus = Literal["normal", "deprecated"]


class PackageInfoCache(BaseModel):
    """Version → status mapping, as served by Hackage."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    package_info: dict[str, PackageStatus] = Field(default_factory=dict, alias="packageInfo")
    last_modified: str = Field("", alias="lastModified")

    def status(self, version: str) -> PackageStatus | None:
        """Lifecycle status of ``version``, or None if unknown."""
        return self.package_info.get(version)

    def versions(self, include_deprecated: bool = False) -> list[str]:
        """Known versions, optionally including deprecated ones."""
        return [
            v for v, status in self.package_info.items()
            if include_deprecated or status == "normal"
        ]

    def last_modified_at(self) -> datetime | None:
        """``lastModified`` as an aware datetime, or None if unparseable."""
        if not self.last_modified:
            return None
        try:
            return parsedate_to_datetime(self.last_modified)
        except (TypeError, ValueError):
            return None

    def is_stale(self, max_age: timedelta, now: datetime | None = None) -> bool:
        """Whether the cache is older than ``max_age``.

        A cache without a usable date is always stale.
        """
        modified = self.last_modified_at()
        if modified is None:
            return True
        return (now or datetime.now(UTC)) - modified > max_age
