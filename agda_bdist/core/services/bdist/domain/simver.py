"""
L1 Domain — Simple version comparison (pure).

Compares dot-separated numeric versions such as ``"8.4"``, ``"9.2.8"``
or ``"2.6.2.2"``.  Missing trailing components count as zero, so
``"8.4" == "8.4.0"``.  This is NOT semantic versioning: there are no
pre-release or build tags.

Every predicate fails closed.  Anything that does not parse (``"nightly"``,
``"latest"``, ``"9.2-rc1"``) makes the predicate return ``False`` instead of
raising, so compatibility rules degrade to "feature off".
"""

from __future__ import annotations

import re

_VERSION_RE = re.compile(r"^\d+(?:\.\d+)*$")


def parse(version: str) -> tuple[int, ...] | None:
    """Parse a version string into a tuple of integers.

    Returns:
        The numeric components, or ``None`` if ``version`` is not a
        dot-separated sequence of non-negative integers.
    """
    if not isinstance(version, str):
        return None
    if not _VERSION_RE.match(version):
        return None
    return tuple(int(part) for part in version.split("."))


def compare(v1: str, v2: str) -> int | None:
    """Three-way comparison of two versions.

    Returns:
        ``-1``, ``0`` or ``1``; ``None`` if either side does not parse.
    """
    p1 = parse(v1)
    p2 = parse(v2)
    if p1 is None or p2 is None:
        return None
    width = max(len(p1), len(p2))
    p1 = p1 + (0,) * (width - len(p1))
    p2 = p2 + (0,) * (width - len(p2))
    return (p1 > p2) - (p1 < p2)


def eq(v1: str, v2: str) -> bool:
    return compare(v1, v2) == 0


def gt(v1: str, v2: str) -> bool:
    return compare(v1, v2) == 1


def gte(v1: str, v2: str) -> bool:
    return compare(v1, v2) in (0, 1)


def lt(v1: str, v2: str) -> bool:
    return compare(v1, v2) == -1


def lte(v1: str, v2: str) -> bool:
    return compare(v1, v2) in (-1, 0)


def is_valid(version: str) -> bool:
    """Whether ``version`` parses as a simple version."""
    return parse(version) is not None


def sort_key(version: str) -> tuple[int, ...]:
    """Sort key for parseable versions; unparseable ones sort first."""
    parsed = parse(version)
    if parsed is None:
        return (-1,)
    # Strip trailing zeros so "8.4" and "8.4.0" sort together.
    parts = list(parsed)
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)
