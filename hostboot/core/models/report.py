"""
StageResult and PipelineReport — the run record.

One ``StageResult`` per pipeline stage, in execution order. After a
fatal failure every later stage is listed as ``skipped``, so a report
always names the whole pipeline.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StageResult(BaseModel):
    """Outcome of a single stage."""

    stage: str
    status: Literal["ok", "skipped", "failed"] = "ok"
    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0
    detail: str = ""
    error: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"


class PipelineReport(BaseModel):
    """Everything a run produced, minus the credential itself."""

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = ""
    stages: list[StageResult] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    credential_path: str | None = None

    @property
    def failed_stage(self) -> str | None:
        for result in self.stages:
            if result.failed:
                return result.stage
        return None

    @property
    def ok(self) -> bool:
        return self.failed_stage is None and self.credential_path is not None

    @property
    def status(self) -> str:
        if self.ok:
            return "ok"
        return "failed"

    def add(self, result: StageResult) -> None:
        self.stages.append(result)

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["status"] = self.status
        data["failed_stage"] = self.failed_stage
        return data
