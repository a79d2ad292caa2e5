"""
L2 Resolver — Input lookup capability.

Options can come from an explicit mapping, from the environment the way
CI runners expose action inputs (``INPUT_AGDA-VERSION``), or from an
arbitrary callback.  All of them are adapted at the boundary to one
interface with one method::

    lookup(name) -> str | bool | None

``None`` means "not given"; the resolver then falls back to the declared
default.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Callable, Mapping, Union


class InputLookup(ABC):
    """Source of raw input values, keyed by declared input name."""

    @abstractmethod
    def lookup(self, name: str) -> str | bool | None:
        """Raw value for ``name``, or None if it was not given."""


class MappingLookup(InputLookup):
    """Inputs from an explicit key-value mapping."""

    def __init__(self, values: Mapping[str, str | bool | None] | None = None):
        self._values = dict(values or {})

    def lookup(self, name: str) -> str | bool | None:
        return self._values.get(name)


class CallableLookup(InputLookup):
    """Inputs from a callback, e.g. a CI toolkit's ``get_input``."""

    def __init__(self, fn: Callable[[str], str | bool | None]):
        self._fn = fn

    def lookup(self, name: str) -> str | bool | None:
        return self._fn(name)


class EnvironmentLookup(InputLookup):
    """Inputs from environment variables named ``INPUT_<NAME>``.

    The name is upper-cased and spaces become underscores; hyphens are
    kept, matching how GitHub Actions exposes inputs.
    """

    def __init__(self, environ: Mapping[str, str] | None = None, prefix: str = "INPUT_"):
        self._environ = environ if environ is not None else os.environ
        self._prefix = prefix

    def env_name(self, name: str) -> str:
        return self._prefix + name.replace(" ", "_").upper()

    def lookup(self, name: str) -> str | None:
        return self._environ.get(self.env_name(name))


InputSource = Union[
    InputLookup,
    Mapping[str, Union[str, bool, None]],
    Callable[[str], Union[str, bool, None]],
    None,
]


def as_lookup(source: InputSource) -> InputLookup:
    """Adapt any supported input source to :class:`InputLookup`."""
    if isinstance(source, InputLookup):
        return source
    if source is None:
        return MappingLookup()
    if isinstance(source, Mapping):
        return MappingLookup(source)
    if callable(source):
        return CallableLookup(source)
    raise TypeError(f"Unsupported input source: {type(source).__name__}")
