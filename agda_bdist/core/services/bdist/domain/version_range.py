"""
L1 Domain — Version ranges (pure).

Parses the node-semver range grammar used by the ``ghc-version-range``
input and tests simple versions against it.

Supported syntax::

    *  ""  9.x  9.2.x          X-ranges (any / any 9 / any 9.2)
    >=8.10  <9.4  >9  <=9.2    primitive comparators
    =9.2.8  9.2.8              exact match
    ~9.2  ~9.2.4               tilde: patch-level changes
    ^9.2.4  ^0.2               caret: no change to the left-most non-zero part
    8.10 - 9.4                 hyphen range (inclusive)
    >=8.10 <9.4 || 9.6.x       whitespace = AND, ``||`` = OR

Partial versions are padded with zero, matching ``simver``.
Pre-release tags are not supported and make the range invalid.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from agda_bdist.core.services.bdist.domain import simver

_OP_SPACE_RE = re.compile(r"(<=|>=|~>|<|>|=|~|\^)\s+")
_COMPARATOR_RE = re.compile(r"^(<=|>=|~>|<|>|=|~|\^)?(.*)$")
_WILDCARDS = {"x", "X", "*"}


class RangeSyntaxError(ValueError):
    """Raised when a version range does not parse."""


@dataclass(frozen=True)
class Comparator:
    """A primitive comparison: ``op`` is one of ``= < <= > >=``."""

    op: str
    version: tuple[int, ...]

    def test(self, version: tuple[int, ...]) -> bool:
        c = _cmp(version, self.version)
        if self.op == "=":
            return c == 0
        if self.op == "<":
            return c < 0
        if self.op == "<=":
            return c <= 0
        if self.op == ">":
            return c > 0
        return c >= 0

    def __str__(self) -> str:
        return f"{self.op}{'.'.join(str(p) for p in self.version)}"


@dataclass(frozen=True)
class VersionRange:
    """A union of comparator sets.  An empty set matches everything."""

    raw: str
    sets: tuple[tuple[Comparator, ...], ...]

    def satisfied_by(self, version: str) -> bool:
        """Whether ``version`` lies in the range.  Unparseable → False."""
        parsed = simver.parse(version)
        if parsed is None:
            return False
        return any(all(c.test(parsed) for c in cset) for cset in self.sets)

    def __str__(self) -> str:
        return " || ".join(
            " ".join(str(c) for c in cset) or "*" for cset in self.sets
        )


# ── Parsing ────────────────────────────────────────────────────


def parse_range(text: str) -> VersionRange:
    """Parse a range string.

    Raises:
        RangeSyntaxError: If any part of ``text`` is not valid range syntax.
    """
    if not isinstance(text, str):
        raise RangeSyntaxError(f"Expected a string, got {type(text).__name__}")
    sets: list[tuple[Comparator, ...]] = []
    for alternative in text.split("||"):
        sets.append(_parse_set(alternative.strip()))
    return VersionRange(raw=text, sets=tuple(sets))


def valid_range(text: str) -> bool:
    """Whether ``text`` parses as a version range."""
    try:
        parse_range(text)
    except RangeSyntaxError:
        return False
    return True


def satisfies(version: str, text: str) -> bool:
    """Whether ``version`` satisfies the range ``text``.  Invalid → False."""
    try:
        return parse_range(text).satisfied_by(version)
    except RangeSyntaxError:
        return False


def max_satisfying(versions: Iterable[str], text: str) -> str | None:
    """The highest version in ``versions`` that satisfies ``text``."""
    try:
        rng = parse_range(text)
    except RangeSyntaxError:
        return None
    matching = [v for v in versions if rng.satisfied_by(v)]
    if not matching:
        return None
    return max(matching, key=simver.sort_key)


def _parse_set(text: str) -> tuple[Comparator, ...]:
    text = _OP_SPACE_RE.sub(r"\1", text)
    tokens = text.split()
    if not tokens:
        return ()

    # Hyphen range: "A - B"
    if len(tokens) == 3 and tokens[1] == "-":
        return _hyphen(tokens[0], tokens[2])
    if "-" in tokens:
        raise RangeSyntaxError(f"Invalid hyphen range: {text!r}")

    comparators: list[Comparator] = []
    for token in tokens:
        comparators.extend(_parse_comparator(token))
    return tuple(comparators)


def _parse_comparator(token: str) -> list[Comparator]:
    match = _COMPARATOR_RE.match(token)
    op = (match.group(1) or "") if match else ""
    partial = _parse_partial(match.group(2) if match else token)
    n = len(partial)

    if op in ("", "="):
        if n == 0:
            return []
        if n >= 3:
            return [Comparator("=", partial)]
        return [Comparator(">=", partial), Comparator("<", _bump(partial, n - 1))]

    if op == ">=":
        return [Comparator(">=", partial)] if n else []

    if op == ">":
        if n == 0:
            return [Comparator("<", (0,))]  # matches nothing
        if n >= 3:
            return [Comparator(">", partial)]
        return [Comparator(">=", _bump(partial, n - 1))]

    if op == "<":
        return [Comparator("<", partial if n else (0,))]

    if op == "<=":
        if n == 0:
            return []
        if n >= 3:
            return [Comparator("<=", partial)]
        return [Comparator("<", _bump(partial, n - 1))]

    if op in ("~", "~>"):
        if n == 0:
            return []
        return [
            Comparator(">=", partial),
            Comparator("<", _bump(partial, 0 if n == 1 else 1)),
        ]

    # op == "^"
    if n == 0:
        return []
    first_nonzero = next((i for i, p in enumerate(partial) if p != 0), None)
    upper = _bump(partial, first_nonzero if first_nonzero is not None else n - 1)
    return [Comparator(">=", partial), Comparator("<", upper)]


def _hyphen(low: str, high: str) -> tuple[Comparator, ...]:
    lo = _parse_partial(low)
    hi = _parse_partial(high)
    comparators: list[Comparator] = []
    if lo:
        comparators.append(Comparator(">=", lo))
    if len(hi) >= 3:
        comparators.append(Comparator("<=", hi))
    elif hi:
        comparators.append(Comparator("<", _bump(hi, len(hi) - 1)))
    return tuple(comparators)


def _parse_partial(text: str) -> tuple[int, ...]:
    """Parse ``9``, ``9.2``, ``9.x``, ``*`` … into the numeric prefix."""
    if text.startswith(("v", "V")):
        text = text[1:]
    if text == "":
        raise RangeSyntaxError("Missing version after operator")
    numbers: list[int] = []
    wildcard = False
    for part in text.split("."):
        if part in _WILDCARDS:
            wildcard = True
        elif part.isdigit() and not wildcard:
            numbers.append(int(part))
        else:
            raise RangeSyntaxError(f"Invalid version: {text!r}")
    return tuple(numbers)


def _bump(version: tuple[int, ...], index: int) -> tuple[int, ...]:
    """Increment component ``index`` and drop everything to its right."""
    return version[:index] + (version[index] + 1,)


def _cmp(a: tuple[int, ...], b: tuple[int, ...]) -> int:
    width = max(len(a), len(b))
    a = a + (0,) * (width - len(a))
    b = b + (0,) * (width - len(b))
    return (a > b) - (a < b)
