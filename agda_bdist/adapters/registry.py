"""
Toolkit registry — dispatch from OS family to platform toolkit.
"""

from __future__ import annotations

from agda_bdist.adapters.base import PlatformToolkit
from agda_bdist.adapters.linux import LinuxToolkit
from agda_bdist.adapters.macos import MacOSToolkit
from agda_bdist.adapters.windows import WindowsToolkit
from agda_bdist.core.context import RuntimeContext

TOOLKITS: dict[str, type[PlatformToolkit]] = {
    "linux": LinuxToolkit,
    "macos": MacOSToolkit,
    "windows": WindowsToolkit,
}


def get_toolkit(context: RuntimeContext) -> PlatformToolkit:
    """The toolkit for ``context.os``.

    Raises:
        KeyError: If no toolkit serves the OS.
    """
    try:
        cls = TOOLKITS[context.os]
    except KeyError:
        raise KeyError(f"No platform toolkit for {context.os!r}") from None
    return cls(context)
