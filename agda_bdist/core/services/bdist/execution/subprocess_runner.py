"""
L4 Execution — Core subprocess runner.

The SINGLE PLACE where ``subprocess.run`` is called for build and
packaging operations.  Logging and error handling are centralised here.

Two entry points:
    run_command()   never raises; returns ``{"ok": ...}`` result dicts,
                    for optional steps that degrade on failure.
    get_output()    returns stdout or raises :class:`CommandError`,
                    for steps the run cannot continue without.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_TAIL = 2000


class CommandError(RuntimeError):
    """Raised by :func:`get_output` when a required command fails."""

    def __init__(self, cmd: list[str], result: dict[str, Any]):
        self.cmd = cmd
        self.result = result
        detail = result.get("stderr") or result.get("stdout") or ""
        message = f"{' '.join(cmd)}: {result.get('error', 'failed')}"
        super().__init__(f"{message}\n{detail}".rstrip())


def run_command(
    cmd: list[str],
    *,
    timeout: int = 120,
    env_overrides: dict[str, str] | None = None,
    cwd: str | Path | None = None,
) -> dict[str, Any]:
    """Run a command and capture its output.

    Args:
        cmd: Command list for ``subprocess.run()``.
        timeout: Seconds before ``TimeoutExpired``.
        env_overrides: Extra env vars (e.g. ``Agda_datadir``).
        cwd: Working directory for the command.

    Returns:
        ``{"ok": True, "stdout": "...", "elapsed_ms": N}`` on success,
        ``{"ok": False, "error": "...", ...}`` on failure.
    """
    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    logger.debug("Running %s", cmd)
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            cwd=str(cwd) if cwd is not None else None,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out ({timeout}s)"}
    except OSError as e:
        return {"ok": False, "error": str(e)}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = result.stdout or ""
    if result.returncode == 0:
        return {
            "ok": True,
            "stdout": stdout,
            "elapsed_ms": elapsed_ms,
        }

    return {
        "ok": False,
        "error": f"Command failed (exit {result.returncode})",
        "stderr": (result.stderr or "")[-_TAIL:],
        "stdout": stdout[-_TAIL:],
        "elapsed_ms": elapsed_ms,
    }


def get_output(
    cmd: list[str],
    *,
    timeout: int = 120,
    env_overrides: dict[str, str] | None = None,
    cwd: str | Path | None = None,
) -> str:
    """Run a command and return its stdout.

    Raises:
        CommandError: If the command cannot be run or exits non-zero.
    """
    result = run_command(cmd, timeout=timeout, env_overrides=env_overrides, cwd=cwd)
    if not result["ok"]:
        raise CommandError(cmd, result)
    return result["stdout"]
