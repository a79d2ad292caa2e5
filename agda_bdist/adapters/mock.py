"""
Mock toolkit — test double for platform operations.

Records every call and never touches external tools.  Each operation
can be configured to fail.
"""

from __future__ import annotations

from pathlib import Path

from agda_bdist.adapters.base import IcuPaths, PlatformToolkit
from agda_bdist.core.context import RuntimeContext
from agda_bdist.core.models.options import BuildOptions
from agda_bdist.core.services.bdist.execution.subprocess_runner import CommandError


class MockToolkit(PlatformToolkit):
    """Platform toolkit that succeeds unless told otherwise."""

    def __init__(self, context: RuntimeContext, needed_output: str = "[mock] libc.so.6"):
        super().__init__(context)
        self._needed_output = needed_output
        self._failures: dict[str, Exception] = {}
        self._call_log: list[tuple[str, object]] = []

    @property
    def os(self) -> str:
        return self.context.os

    @property
    def call_log(self) -> list[tuple[str, object]]:
        """All ``(operation, argument)`` pairs this mock has received."""
        return self._call_log

    def calls(self, operation: str) -> list[object]:
        return [arg for op, arg in self._call_log if op == operation]

    def set_failure(self, operation: str, error: Exception | None = None) -> None:
        """Make ``operation`` raise ``error`` (a CommandError by default)."""
        self._failures[operation] = error or CommandError(
            [operation], {"ok": False, "error": "Mock failure"}
        )

    def _record(self, operation: str, arg: object) -> None:
        self._call_log.append((operation, arg))
        if operation in self._failures:
            raise self._failures[operation]

    def install_icu(self, version: str) -> IcuPaths:
        self._record("install_icu", version)
        icu_dir = self.context.icu_dir(version)
        return IcuPaths(lib_dir=icu_dir / "lib", include_dir=icu_dir / "include")

    def bundle_icu(self, bdist_dir: Path, options: BuildOptions) -> list[Path]:
        self._record("bundle_icu", bdist_dir)
        return []

    def needed_libraries(self, binary: Path) -> str:
        self._record("needed_libraries", binary)
        return self._needed_output
