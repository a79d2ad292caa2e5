"""
L3 Detection — Platform facts.

Detects the OS family, architecture, platform identifier and OS release
of the running host.  Called once at startup; the result is frozen into
a :class:`RuntimeContext`.
"""

from __future__ import annotations

import logging
import platform
import sys
from pathlib import Path

from agda_bdist.core.context import RuntimeContext
from agda_bdist.core.data import DataRegistry
from agda_bdist.core.models.package_index import PackageIndex
from agda_bdist.core.services.bdist.data.constants import _ARCH_MAP, _PLATFORM_MAP

logger = logging.getLogger(__name__)


class UnsupportedPlatformError(RuntimeError):
    """Raised on a host OS this tool cannot package for."""


def detect_os(sys_platform: str | None = None) -> tuple[str, str]:
    """Return ``(os family, platform identifier)`` for the host.

    Raises:
        UnsupportedPlatformError: On anything but Linux, macOS or Windows.
    """
    key = sys_platform or sys.platform
    # sys.platform is "linux" on Python 3, but older builds said "linux2".
    if key.startswith("linux"):
        key = "linux"
    try:
        return _PLATFORM_MAP[key]
    except KeyError:
        raise UnsupportedPlatformError(f"Unsupported platform {key}") from None


def detect_arch(machine: str | None = None) -> str:
    """Normalized architecture name (``x64``, ``arm64``, ``ia32``)."""
    raw = machine or platform.machine()
    return _ARCH_MAP.get(raw, raw.lower())


def detect_release() -> str:
    """Kernel release string (Darwin version on macOS, e.g. ``21.6.0``)."""
    return platform.release()


def detect_context(
    registry: DataRegistry | None = None,
    home: Path | None = None,
) -> RuntimeContext:
    """Build the process-wide :class:`RuntimeContext` for this host."""
    registry = registry or DataRegistry()
    os_family, platform_id = detect_os()
    context = RuntimeContext(
        os=os_family,
        arch=detect_arch(),
        platform=platform_id,
        release=detect_release(),
        home=home or Path.home(),
        package_index=PackageIndex(registry.package_index),
        package_info_cache=registry.package_info_cache,
    )
    logger.debug(
        "Detected %s/%s (%s, release %s)",
        context.os, context.arch, context.platform, context.release,
    )
    return context
