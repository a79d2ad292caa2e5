"""
L4 Execution — Artifact storage.

The pipeline only needs the upload contract::

    upload(name, files, base_dir, retention_days) -> UploadResult

Partial failures are reported through ``UploadResult.failed_items``;
``upload`` raises only when it cannot start at all.
"""

from __future__ import annotations

import json
import logging
import shutil
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path

from agda_bdist.core.models.receipt import UploadResult

logger = logging.getLogger(__name__)


class ArtifactStore(ABC):
    """Remote (or local) storage for named artifacts."""

    @abstractmethod
    def upload(
        self,
        name: str,
        files: list[Path],
        base_dir: Path,
        retention_days: int | None = None,
    ) -> UploadResult:
        """Upload ``files`` (all under ``base_dir``) as artifact ``name``."""


class LocalArtifactStore(ArtifactStore):
    """Stores artifacts as directories under ``root``.

    Each artifact gets a ``manifest.json`` next to its files listing what
    was stored and for how long it should be kept.
    """

    MANIFEST = "manifest.json"

    def __init__(self, root: Path):
        self.root = root

    def upload(
        self,
        name: str,
        files: list[Path],
        base_dir: Path,
        retention_days: int | None = None,
    ) -> UploadResult:
        target = self.root / name
        target.mkdir(parents=True, exist_ok=True)

        uploaded: list[str] = []
        failed: list[str] = []
        for path in files:
            try:
                rel = path.relative_to(base_dir)
            except ValueError:
                logger.error("Not under %s, skipping: %s", base_dir, path)
                failed.append(str(path))
                continue
            dest = target / rel
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(path, dest)
            except OSError as e:
                logger.error("Failed to store %s: %s", rel, e)
                failed.append(rel.as_posix())
                continue
            uploaded.append(rel.as_posix())

        manifest = {
            "name": name,
            "created_at": datetime.now(UTC).isoformat(),
            "retention_days": retention_days,
            "files": uploaded,
        }
        (target / self.MANIFEST).write_text(json.dumps(manifest, indent=2), encoding="utf-8")

        return UploadResult(
            artifact_name=name,
            failed_items=failed,
            uploaded_items=uploaded,
            retention_days=retention_days,
        )
