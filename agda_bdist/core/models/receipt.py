"""
StepReceipt and UploadResult — the outcome contract of pipeline steps.

Optional pipeline steps (download, compression, bundling, diagnostics)
never raise to the pipeline: their outcome is captured in a receipt.
Mandatory steps (verification) raise, and the receipt records the
failure before the exception propagates.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StepReceipt(BaseModel):
    """Result of one pipeline step."""

    step: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the step succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the step failed."""
        return self.status == "failed"

    @classmethod
    def success(cls, step: str, output: str = "", **kwargs: Any) -> StepReceipt:
        """Create a success receipt."""
        return cls(step=step, status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, step: str, error: str, **kwargs: Any) -> StepReceipt:
        """Create a failure receipt."""
        return cls(step=step, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, step: str, reason: str = "", **kwargs: Any) -> StepReceipt:
        """Create a skip receipt."""
        return cls(step=step, status="skipped", output=reason, **kwargs)


class UploadResult(BaseModel):
    """What the artifact store reports back after an upload.

    A partial upload is still a named, meaningful result: files that
    failed are listed in ``failed_items`` instead of raising.
    """

    artifact_name: str
    failed_items: list[str] = Field(default_factory=list)
    uploaded_items: list[str] = Field(default_factory=list)
    retention_days: int | None = None

    @property
    def complete(self) -> bool:
        return not self.failed_items
