"""
PackageIndex — key → URL lookup for prebuilt bdists and helper tools.

A read-only mapping from a composite key to a download URL.  Two kinds
of key share the index:

    agda-2.6.4-x64-linux          rendered bdist names (see name_template)
    upx-3.96-x64-linux            helper tools, keyed pkg-version-arch-platform
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType


class PackageNotFound(LookupError):
    """Raised by :meth:`PackageIndex.find_pkg_url` on a miss."""


def package_key(pkg: str, version: str, arch: str, platform: str) -> str:
    """Composite key for a helper package."""
    return f"{pkg}-{version}-{arch}-{platform}"


class PackageIndex(Mapping[str, str]):
    """Immutable key → URL index, loaded once per process."""

    def __init__(self, entries: Mapping[str, str] | None = None):
        self._entries = MappingProxyType(dict(entries or {}))

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, key: str) -> str | None:
        """URL for ``key``, or None.  A miss is not an error."""
        return self._entries.get(key)

    def find_pkg_url(self, pkg: str, version: str, arch: str, platform: str) -> str:
        """URL for a helper package.

        Raises:
            PackageNotFound: If the index has no entry for the key.
        """
        key = package_key(pkg, version, arch, platform)
        url = self._entries.get(key)
        if url is None:
            raise PackageNotFound(f"No package for {key}")
        return url

    def __repr__(self) -> str:
        return f"<PackageIndex entries={len(self._entries)}>"
