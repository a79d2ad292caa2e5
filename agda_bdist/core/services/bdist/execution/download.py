"""
L4 Execution — Download and checksum verification.
"""

from __future__ import annotations

import hashlib
import logging
import urllib.request
from pathlib import Path
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


def _verify_checksum(path: Path, expected: str) -> bool:
    """Verify file checksum.  Format: ``algo:hex``.

    Supports any algorithm ``hashlib`` knows (sha256, sha1, md5, …).
    """
    algo, expected_hash = expected.split(":", 1)
    h = hashlib.new(algo)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest() == expected_hash


def file_name_from_url(url: str) -> str:
    """Last path segment of ``url`` (``agda-2.6.4-x64-linux.zip``)."""
    return Path(urlparse(url).path).name or "download"


def download_file(
    url: str,
    dest_dir: Path,
    *,
    checksum: str = "",
    timeout: int = 60,
) -> Path:
    """Download ``url`` into ``dest_dir``.

    Args:
        url: Source URL.
        dest_dir: Directory to write into; created if missing.
        checksum: Optional ``algo:hex`` digest to verify.
        timeout: Socket timeout in seconds.

    Returns:
        Path of the downloaded file.

    Raises:
        OSError: On network or file-system errors (``URLError`` is an
            ``OSError``), or a checksum mismatch.
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    dest = dest_dir / file_name_from_url(url)
    logger.info("Downloading %s", url)

    req = urllib.request.Request(url, headers={"User-Agent": "agda-bdist/1.0"})
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        with open(dest, "wb") as f:
            while True:
                chunk = resp.read(8192)
                if not chunk:
                    break
                f.write(chunk)

    if checksum and not _verify_checksum(dest, checksum):
        dest.unlink(missing_ok=True)
        raise OSError(f"Checksum mismatch for {dest.name}")

    logger.debug("Downloaded %s (%d bytes)", dest, dest.stat().st_size)
    return dest
