"""
Provision use case — the full vertical slice of one run.

    load config → check prerequisites → build steps → acquire sudo
    → run pipeline (keeper alive) → write ledger

Prerequisite problems are reported in ``ProvisionResult.error`` before
any step has run. Everything after that ends up in the report.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from macprovision.adapters.base import CommandRunner
from macprovision.adapters.mock import DryRunRunner, MockCommandRunner
from macprovision.adapters.shell.command import ShellCommandRunner
from macprovision.core.config.loader import ConfigSource, YamlConfigSource
from macprovision.core.engine.executor import Executor
from macprovision.core.engine.pipeline import Pipeline, check_unique_names
from macprovision.core.errors import PrerequisiteError
from macprovision.core.models.config import ProvisionConfig
from macprovision.core.models.step import PipelineReport, Step
from macprovision.core.persistence.audit import AuditEntry, AuditWriter
from macprovision.core.prerequisites import check_prerequisites
from macprovision.core.privilege import PrivilegeKeeper
from macprovision.core.prompt import Prompt
from macprovision.core.services.actions import ProvisionContext
from macprovision.core.services.catalog import build_steps

logger = logging.getLogger(__name__)

# Stable process exit codes
EXIT_OK = 0
EXIT_STEP_FAILED = 1
EXIT_PREREQUISITE = 2


@dataclass
class ProvisionResult:
    """Result of a provisioning run (or of planning one)."""

    run_id: str = ""
    mode: str = "live"
    report: PipelineReport | None = None
    steps: list[Step] = field(default_factory=list)
    config: ProvisionConfig | None = None
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error:
            return EXIT_PREREQUISITE
        if self.report is not None:
            return self.report.exit_code
        return EXIT_OK

    def to_dict(self) -> dict:
        result: dict = {"run_id": self.run_id, "mode": self.mode}
        if self.error:
            result["error"] = self.error
            return result
        result["steps_planned"] = len(self.steps)
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def generate_run_id() -> str:
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    return f"run-{now}-{uuid.uuid4().hex[:6]}"


def make_runner(*, mock: bool = False, dry_run: bool = False) -> CommandRunner:
    runner: CommandRunner = MockCommandRunner() if mock else ShellCommandRunner()
    if dry_run:
        runner = DryRunRunner(runner)
    return runner


def plan_provisioning(
    source: ConfigSource | None = None,
    *,
    runner: CommandRunner | None = None,
    prompt: Prompt | None = None,
    include_reboot: bool = True,
) -> ProvisionResult:
    """Load the config and build the ordered step list, running nothing."""
    result = ProvisionResult(run_id=generate_run_id(), mode="plan")
    try:
        config = (source or YamlConfigSource()).load()
        ctx = ProvisionContext(runner=runner or MockCommandRunner(), prompt=prompt or Prompt())
        result.config = config
        result.steps = build_steps(config, ctx, include_reboot=include_reboot)
        check_unique_names(result.steps)
    except PrerequisiteError as e:
        result.error = str(e)
    return result


def run_provisioning(
    source: ConfigSource | None = None,
    *,
    runner: CommandRunner | None = None,
    prompt: Prompt | None = None,
    keeper: PrivilegeKeeper | None = None,
    audit_writer: AuditWriter | None = None,
    mock: bool = False,
    dry_run: bool = False,
    include_reboot: bool = True,
) -> ProvisionResult:
    """Provision this machine.

    Args:
        source: Where the configuration comes from (default: provision.yml).
        runner: Command runner; built from ``mock``/``dry_run`` when omitted.
        prompt: Operator prompt (default: stdin/stdout).
        keeper: Sudo keep-alive; built on ``runner`` when omitted.
            Not used in dry-run mode.
        audit_writer: Run ledger (default: ~/.macprovision/audit.ndjson).
        mock: Use a mock runner and skip host checks.
        dry_run: Plan and prompt, but turn every command into a skip.
        include_reboot: Whether the run may end with a reboot.
    """
    mode = "mock" if mock else "dry-run" if dry_run else "live"
    result = ProvisionResult(run_id=generate_run_id(), mode=mode)
    source = source or YamlConfigSource()
    runner = runner or make_runner(mock=mock, dry_run=dry_run)
    prompt = prompt or Prompt()

    # ── Prerequisites: nothing has been touched yet ─────────────
    try:
        config = source.load()
        result.config = config
        check_prerequisites(offline=mock)

        ctx = ProvisionContext(runner=runner, prompt=prompt)
        steps = build_steps(config, ctx, include_reboot=include_reboot)
        check_unique_names(steps)
        result.steps = steps

        if not dry_run:
            keeper = keeper or PrivilegeKeeper(runner)
            keeper.acquire()
        else:
            keeper = None
    except PrerequisiteError as e:
        logger.error("Prerequisite check failed: %s", e)
        result.error = str(e)
        return result

    # ── Run ─────────────────────────────────────────────────────
    logger.info("Starting %s run %s with %d steps", mode, result.run_id, len(steps))
    pipeline = Pipeline(executor=Executor(), prompt=prompt, keeper=keeper)
    report = pipeline.run(steps)
    result.report = report

    # ── Ledger ──────────────────────────────────────────────────
    config_path = getattr(source, "path", None)
    entry = AuditEntry.from_report(
        report,
        run_id=result.run_id,
        mode=mode,
        config_path=str(config_path) if config_path else "",
    )
    (audit_writer or AuditWriter()).write(entry)

    logger.info("Run %s finished: %s", result.run_id, report.status)
    return result
