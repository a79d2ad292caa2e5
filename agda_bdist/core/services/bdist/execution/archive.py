"""
L4 Execution — Archive extraction.

Supports ``.zip``, ``.tar.gz``/``.tgz`` and ``.tar.xz``.  Zip archives do
not carry Unix permissions through ``ZipFile.extractall``, so the mode
bits stored in each entry are restored after extraction.
"""

from __future__ import annotations

import logging
import os
import stat
import tarfile
import zipfile
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)


class ArchiveError(OSError):
    """Raised when an archive cannot be extracted."""


def _strip(name: str, strip_components: int) -> str | None:
    parts = PurePosixPath(name).parts[strip_components:]
    return str(PurePosixPath(*parts)) if parts else None


def _extract_tar(archive: Path, dest: Path, strip_components: int) -> None:
    with tarfile.open(archive, "r:*") as tf:
        members = []
        for member in tf.getmembers():
            name = _strip(member.name, strip_components)
            if name is None:
                continue
            member.name = name
            members.append(member)
        tf.extractall(dest, members=members, filter="data")


def _extract_zip(archive: Path, dest: Path, strip_components: int) -> None:
    with zipfile.ZipFile(archive, "r") as zf:
        for info in zf.infolist():
            name = _strip(info.filename, strip_components)
            if name is None:
                continue
            target = (dest / name).resolve()
            if not target.is_relative_to(dest.resolve()):
                raise ArchiveError(f"Unsafe path in {archive.name}: {info.filename}")
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as src, open(target, "wb") as out:
                while True:
                    chunk = src.read(8192)
                    if not chunk:
                        break
                    out.write(chunk)
            mode = (info.external_attr >> 16) & 0o777
            if mode:
                os.chmod(target, mode)


def extract(archive: Path, dest: Path, *, strip_components: int = 0) -> Path:
    """Extract ``archive`` into ``dest``.

    Args:
        archive: A zip or tar archive.
        dest: Target directory; created if missing.
        strip_components: Leading path components to drop from every
            entry, like ``tar --strip-components``.

    Returns:
        ``dest``.

    Raises:
        ArchiveError: On an unsupported or corrupt archive.
    """
    dest.mkdir(parents=True, exist_ok=True)
    name = archive.name.lower()
    logger.debug("Extracting %s to %s", archive, dest)
    try:
        if name.endswith(".zip"):
            _extract_zip(archive, dest, strip_components)
        elif name.endswith((".tar.gz", ".tgz", ".tar.xz", ".txz", ".tar")):
            _extract_tar(archive, dest, strip_components)
        else:
            raise ArchiveError(f"Unsupported archive format: {archive.name}")
    except (tarfile.TarError, zipfile.BadZipFile) as e:
        raise ArchiveError(f"Extract failed for {archive.name}: {e}") from e
    return dest


def make_executable(path: Path) -> None:
    """Add the executable bits wherever the read bits are set."""
    mode = path.stat().st_mode
    exec_bits = (mode & (stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH)) >> 2
    os.chmod(path, mode | exec_bits)
