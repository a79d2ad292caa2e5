"""
L3 Detection — Program versions and supported GHC versions.

Read-only probes: runs version commands of the Haskell toolchain and
parses output, and reads the GHC versions an Agda source tree was
tested with.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from pathlib import Path

from agda_bdist.core.services.bdist.domain import simver

logger = logging.getLogger(__name__)

VERSION_COMMANDS: dict[str, tuple[list[str], str]] = {
    "ghc":   (["ghc", "--numeric-version"],   r"(\d+(?:\.\d+)+)"),
    "cabal": (["cabal", "--numeric-version"], r"(\d+(?:\.\d+)+)"),
    "stack": (["stack", "--numeric-version"], r"(\d+(?:\.\d+)+)"),
    "upx":   (["upx", "--version"],           r"upx\s+(\d+(?:\.\d+)+)"),
    "agda":  (["agda", "--numeric-version"],  r"(\d+(?:\.\d+)+)"),
}

_TESTED_WITH_RE = re.compile(r"GHC == (\d+\.\d+\.\d+)")


def get_program_version(program: str, executable: str | None = None) -> str | None:
    """Get the installed version of a toolchain program.

    Args:
        program: Key in ``VERSION_COMMANDS``.
        executable: Path to use instead of the program found on PATH.

    Returns:
        Version string (e.g. ``"9.2.8"``) or ``None`` if the program is
        not installed or its version can't be determined.
    """
    entry = VERSION_COMMANDS.get(program)
    if entry is None:
        return None
    cmd, pattern = entry
    cmd = [executable or cmd[0], *cmd[1:]]
    if executable is None and not shutil.which(cmd[0]):
        return None

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("Could not run %s: %s", cmd, e)
        return None

    output = (result.stdout or "") + (result.stderr or "")
    match = re.search(pattern, output)
    return match.group(1) if match else None


def ghc_versions_tested_with(cabal_file: Path) -> list[str]:
    """GHC versions named in ``tested-with: GHC == x.y.z`` clauses."""
    text = cabal_file.read_text(encoding="utf-8", errors="replace")
    versions = []
    for version in _TESTED_WITH_RE.findall(text):
        if simver.is_valid(version):
            versions.append(version)
        else:
            logger.warning("Could not parse GHC version %s in %s", version, cabal_file)
    return versions


def ghc_versions_from_stack_yamls(source_dir: Path) -> list[str]:
    """GHC versions with a ``stack-<ghc>.yaml`` in ``source_dir``."""
    versions = []
    for path in sorted(source_dir.glob("stack-*.yaml")):
        version = path.stem[len("stack-"):]
        if simver.is_valid(version):
            versions.append(version)
        else:
            logger.warning("Could not parse GHC version from %s", path.name)
    return versions


def supported_ghc_versions(source_dir: Path, *, enable_stack: bool) -> list[str]:
    """The GHC versions an Agda source tree supports.

    Stack builds need a matching ``stack-<ghc>.yaml``; Cabal builds use the
    ``tested-with`` field of ``Agda.cabal``.

    Raises:
        FileNotFoundError: If the source tree has neither.
    """
    if enable_stack:
        versions = ghc_versions_from_stack_yamls(source_dir)
        if not versions:
            raise FileNotFoundError(f"No files matching 'stack-*.yaml' in {source_dir}")
        return versions

    cabal_files = sorted(source_dir.glob("*.cabal"))
    if not cabal_files:
        raise FileNotFoundError(f"No .cabal file in {source_dir}")
    return ghc_versions_tested_with(cabal_files[0])
