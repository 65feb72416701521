"""
Pipeline — the provisioning run loop.

Steps run strictly in declaration order, one at a time. For each step:

    1. offered only if its ``within`` group was accepted, else skipped
    2. confirmation (asked once per confirm_group), declined → skipped
    3. executor runs the action
    4. mandatory failure → every remaining step skipped, run ends
       optional failure  → recorded, run continues

The privilege keeper, when given, is started before the first step and
stopped exactly once on every way out of ``run``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from macprovision.core.engine.executor import Executor
from macprovision.core.errors import PrerequisiteError
from macprovision.core.models.step import (
    REASON_ABORTED,
    REASON_DECLINED,
    Answer,
    PipelineReport,
    Step,
    StepResult,
)
from macprovision.core.prompt import Prompt

logger = logging.getLogger(__name__)


class Keeper(Protocol):
    """Anything with a start/stop lifecycle spanning the run."""

    def start(self) -> None: ...

    def stop(self) -> None: ...


class Pipeline:
    """Ordered, sequential step runner with per-step failure isolation."""

    def __init__(
        self,
        executor: Executor | None = None,
        prompt: Prompt | None = None,
        keeper: Keeper | None = None,
    ):
        self._executor = executor or Executor()
        self._prompt = prompt or Prompt()
        self._keeper = keeper

    def run(self, steps: Sequence[Step]) -> PipelineReport:
        """Run every step and return the ordered report.

        Raises:
            PrerequisiteError: If two steps share a name. Nothing has run.
        """
        check_unique_names(steps)

        if self._keeper is not None:
            self._keeper.start()
        try:
            results = self._run_steps(steps)
        finally:
            if self._keeper is not None:
                self._keeper.stop()

        return PipelineReport(results=tuple(results))

    def _run_steps(self, steps: Sequence[Step]) -> list[StepResult]:
        results: list[StepResult] = []
        answers: dict[str, Answer] = {}

        for index, step in enumerate(steps):
            if step.within is not None and answers.get(step.within) is not Answer.YES:
                logger.info("⊘ %s → skipped (%s not accepted)", step.name, step.within)
                results.append(StepResult.skipped_for(step, REASON_DECLINED))
                continue

            if step.requires_confirmation and self._confirm(step, answers) is Answer.NO:
                logger.info("⊘ %s → skipped (declined)", step.name)
                results.append(StepResult.skipped_for(step, REASON_DECLINED))
                continue

            result = self._executor.execute(step)
            results.append(result)

            if result.failed and not step.optional:
                remaining = steps[index + 1:]
                logger.warning(
                    "Mandatory step %s failed, skipping %d remaining step(s)",
                    step.name,
                    len(remaining),
                )
                results.extend(StepResult.skipped_for(s, REASON_ABORTED) for s in remaining)
                break

        return results

    def _confirm(self, step: Step, answers: dict[str, Answer]) -> Answer:
        group = step.confirm_group
        if group is not None and group in answers:
            return answers[group]

        answer = self._prompt.confirm(step.prompt_text, step.default_answer)
        if group is not None:
            answers[group] = answer
        return answer


def check_unique_names(steps: Sequence[Step]) -> None:
    """Raise PrerequisiteError if any step name repeats."""
    seen: set[str] = set()
    dupes: list[str] = []
    for step in steps:
        if step.name in seen and step.name not in dupes:
            dupes.append(step.name)
        seen.add(step.name)
    if dupes:
        raise PrerequisiteError(f"Duplicate step names: {', '.join(dupes)}")
