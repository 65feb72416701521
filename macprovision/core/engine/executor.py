"""
Step executor — runs one step's action and isolates its failure.

The executor never raises for anything an action does. Whatever the
action returns or raises is normalized into exactly one StepResult:

    None / True / 0 / ok Receipt  → succeeded
    False / failed Receipt        → failed
    non-zero int (exit status)    → failed
    skipped Receipt               → skipped (reason from the receipt)
    any Exception                 → failed (detail captured)

There are no retries here. An action that talks to a flaky network
retries on its own terms before reporting.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime

from macprovision.core.errors import StepFailure
from macprovision.core.models.action import Receipt
from macprovision.core.models.step import Step, StepResult, StepState

logger = logging.getLogger(__name__)

_MARKERS = {
    StepState.SUCCEEDED: "✓",
    StepState.FAILED: "✗",
    StepState.SKIPPED: "⊘",
}


class Executor:
    """Invoke step actions and turn their outcome into StepResults."""

    def execute(self, step: Step) -> StepResult:
        """Run ``step.action`` once and describe what happened."""
        started_at = datetime.now(UTC).isoformat()
        start = time.monotonic()

        state, detail, reason, output = self._invoke(step)

        result = StepResult(
            step_name=step.name,
            state=state,
            optional=step.optional,
            error_detail=detail,
            reason=reason,
            output=output,
            started_at=started_at,
            ended_at=datetime.now(UTC).isoformat(),
            duration_ms=int((time.monotonic() - start) * 1000),
        )

        logger.info("%s %s → %s", _MARKERS[state], step.name, state.value)
        if result.failed:
            logger.debug("%s failed: %s", step.name, detail)
        return result

    def _invoke(self, step: Step) -> tuple[StepState, str | None, str, str]:
        try:
            outcome = step.action()
        except StepFailure as e:
            return StepState.FAILED, str(e) or type(e).__name__, "", e.output
        except Exception as e:
            logger.debug("Action for %s raised", step.name, exc_info=True)
            return StepState.FAILED, f"{type(e).__name__}: {e}", "", ""

        if isinstance(outcome, Receipt):
            if outcome.failed:
                return StepState.FAILED, _receipt_detail(outcome), "", outcome.output
            if outcome.skipped:
                return StepState.SKIPPED, None, outcome.output, ""
            return StepState.SUCCEEDED, None, "", outcome.output

        if outcome is False:
            return StepState.FAILED, "action reported failure", "", ""

        # An exit status, as returned by subprocess.call
        if isinstance(outcome, int) and not isinstance(outcome, bool) and outcome != 0:
            return StepState.FAILED, f"exit status {outcome}", "", ""

        return StepState.SUCCEEDED, None, "", ""


def _receipt_detail(receipt: Receipt) -> str:
    detail = receipt.error or "command failed"
    if receipt.command:
        detail = f"{' '.join(receipt.command)}: {detail}"
    return detail
