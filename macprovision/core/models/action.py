"""
Receipt model — what a command runner or step action reports back.

Runners never raise: a command that cannot start, exits non-zero or is
suppressed by dry-run mode is described by a Receipt. Step actions may
return one so the executor can tell success, failure and skip apart.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Receipt(BaseModel):
    """Result of running one command (or one whole action)."""

    runner: str = ""
    command: list[str] = Field(default_factory=list)
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    return_code: int | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the command succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the command failed."""
        return self.status == "failed"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @classmethod
    def success(cls, output: str = "", **kwargs: Any) -> Receipt:
        """Create a success receipt."""
        return cls(status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, error: str, **kwargs: Any) -> Receipt:
        """Create a failure receipt."""
        return cls(status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, reason: str = "", **kwargs: Any) -> Receipt:
        """Create a skip receipt; the reason travels in ``output``."""
        return cls(status="skipped", output=reason, **kwargs)
