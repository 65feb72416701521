"""
Step, StepResult and PipelineReport — the pipeline's data model.

Steps are declared once from configuration and never change during a
run. Every step yields exactly one StepResult, created once and never
mutated. The PipelineReport is the ordered, immutable record of a run.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Answer(str, Enum):
    """Operator answer to a yes/no question."""

    YES = "yes"
    NO = "no"


class StepState(str, Enum):
    """Lifecycle of a step within one run."""

    PENDING = "pending"
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self is not StepState.PENDING


# Skip reasons recorded by the pipeline itself
REASON_DECLINED = "declined"
REASON_ABORTED = "aborted by prior failure"


class Step(BaseModel):
    """One declared unit of provisioning work.

    ``action`` is called with no arguments. It may return None (success),
    a bool, or a Receipt, and it may raise; the executor normalizes all
    of these. Idempotence is the action's job, not the pipeline's.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    action: Callable[[], Any]
    description: str = ""
    optional: bool = False

    # ── Confirmation ────────────────────────────────────────────
    requires_confirmation: bool = False
    question: str = ""
    default_answer: Answer = Answer.NO
    confirm_group: str | None = None   # one question gates the whole group
    within: str | None = None          # offered only if this group was accepted

    @property
    def prompt_text(self) -> str:
        return self.question or f"Run {self.name}?"


class StepResult(BaseModel):
    """Outcome of one step. Created once by the executor or pipeline."""

    model_config = ConfigDict(frozen=True)

    step_name: str
    state: StepState
    optional: bool = False
    error_detail: str | None = None
    reason: str = ""
    output: str = ""

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    @model_validator(mode="after")
    def _check_detail(self) -> StepResult:
        if self.state is StepState.PENDING:
            raise ValueError("a StepResult must carry a terminal state")
        if self.state is StepState.FAILED and not self.error_detail:
            raise ValueError("failed results need an error_detail")
        if self.state is not StepState.FAILED and self.error_detail is not None:
            raise ValueError("error_detail is only allowed on failed results")
        return self

    @property
    def succeeded(self) -> bool:
        return self.state is StepState.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.state is StepState.FAILED

    @property
    def skipped(self) -> bool:
        return self.state is StepState.SKIPPED

    @classmethod
    def skipped_for(cls, step: Step, reason: str) -> StepResult:
        """A result for a step whose action was never invoked."""
        return cls(
            step_name=step.name,
            state=StepState.SKIPPED,
            optional=step.optional,
            reason=reason,
        )


class PipelineReport(BaseModel):
    """Ordered record of a full provisioning run."""

    model_config = ConfigDict(frozen=True)

    results: tuple[StepResult, ...] = ()

    def __len__(self) -> int:
        return len(self.results)

    def __getitem__(self, index: int) -> StepResult:
        return self.results[index]

    def get(self, step_name: str) -> StepResult | None:
        """Look up a result by step name."""
        for result in self.results:
            if result.step_name == step_name:
                return result
        return None

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> list[StepResult]:
        return [r for r in self.results if r.succeeded]

    @property
    def failed(self) -> list[StepResult]:
        return [r for r in self.results if r.failed]

    @property
    def skipped(self) -> list[StepResult]:
        return [r for r in self.results if r.skipped]

    @property
    def mandatory_failure(self) -> StepResult | None:
        """The mandatory step that aborted the run, if any."""
        for result in self.results:
            if result.failed and not result.optional:
                return result
        return None

    @property
    def status(self) -> str:
        if self.mandatory_failure is not None:
            return "failed"
        if self.failed:
            return "partial"
        return "ok"

    @property
    def exit_code(self) -> int:
        """0 unless a mandatory step failed."""
        return 1 if self.mandatory_failure is not None else 0

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "total": self.total,
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
            "results": [r.model_dump(mode="json") for r in self.results],
        }
