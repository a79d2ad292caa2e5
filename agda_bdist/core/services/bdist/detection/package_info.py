"""
L3 Detection — Hackage package info.

The bundled ``package-info/Agda.json`` is a cache of Hackage's version
list.  :func:`get_package_info` returns it as-is while it is fresh
enough, and otherwise asks Hackage for updates.  A failed refresh keeps
the cached data.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from datetime import timedelta

from agda_bdist.core.models.package_info import PackageInfoCache
from agda_bdist.core.services.bdist.data.constants import HACKAGE_URL

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(days=30)


def fetch_package_info(
    package: str,
    *,
    last_modified: str = "",
    timeout: int = 15,
) -> PackageInfoCache | None:
    """Fetch ``{version: status}`` for ``package`` from Hackage.

    Args:
        package: Hackage package name.
        last_modified: Sent as ``If-Modified-Since`` when set.
        timeout: HTTP request timeout in seconds.

    Returns:
        A fresh cache, or None when Hackage reports no change or the
        request fails.
    """
    url = f"{HACKAGE_URL}/package/{package}.json"
    headers = {"Accept": "application/json", "User-Agent": "agda-bdist/1.0"}
    if last_modified:
        headers["If-Modified-Since"] = last_modified

    try:
        req = urllib.request.Request(url, headers=headers)
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            data = json.loads(resp.read())
            modified = resp.headers.get("Last-Modified", "")
    except urllib.error.HTTPError as e:
        if e.code == 304:
            logger.debug("Package info for %s is up to date", package)
        else:
            logger.warning("Could not fetch package info for %s: %s", package, e)
        return None
    except Exception as e:
        logger.warning("Could not fetch package info for %s: %s", package, e)
        return None

    try:
        return PackageInfoCache(package_info=data, last_modified=modified)
    except Exception as e:
        logger.warning("Unexpected package info for %s: %s", package, e)
        return None


def get_package_info(
    cache: PackageInfoCache,
    package: str = "Agda",
    *,
    max_age: timedelta = DEFAULT_MAX_AGE,
    refresh: bool = True,
) -> PackageInfoCache:
    """Return ``cache``, refreshed from Hackage if it is stale.

    Args:
        cache: The bundled cache.
        package: Hackage package name.
        max_age: How old the cache may be before a refresh is attempted.
        refresh: Set to False to never touch the network.
    """
    if not refresh or not cache.is_stale(max_age):
        return cache
    logger.info("Package info cache for %s is stale, refreshing", package)
    fresh = fetch_package_info(package, last_modified=cache.last_modified)
    return fresh if fresh is not None else cache
