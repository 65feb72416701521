"""
Tests for the provision and plan use cases — full runs on a mock runner.
"""

from pathlib import Path

import pytest

from macprovision.adapters.mock import DryRunRunner, MockCommandRunner
from macprovision.core.config.loader import StaticConfigSource, YamlConfigSource
from macprovision.core.errors import PrerequisiteError
from macprovision.core.models.config import Extra, ProvisionConfig
from macprovision.core.models.step import REASON_ABORTED, REASON_DECLINED, StepState
from macprovision.core.persistence.audit import AuditWriter
from macprovision.core.use_cases import provision
from macprovision.core.use_cases.provision import (
    EXIT_OK,
    EXIT_PREREQUISITE,
    EXIT_STEP_FAILED,
    make_runner,
    plan_provisioning,
    run_provisioning,
)

from conftest import scripted_prompt


class SpyKeeper:
    def __init__(self, fail: bool = False):
        self.events: list[str] = []
        self._fail = fail

    def acquire(self):
        self.events.append("acquire")
        if self._fail:
            raise PrerequisiteError("Could not obtain administrator privileges: denied")

    def start(self):
        self.events.append("start")

    def stop(self):
        self.events.append("stop")


def _config(**kwargs) -> ProvisionConfig:
    kwargs.setdefault("reboot", False)
    return ProvisionConfig(**kwargs)


@pytest.fixture
def audit(tmp_path: Path) -> AuditWriter:
    return AuditWriter(tmp_path / "audit.ndjson")


# ── make_runner ──────────────────────────────────────────────────────


class TestMakeRunner:
    def test_mock(self):
        assert isinstance(make_runner(mock=True), MockCommandRunner)

    def test_dry_run_wraps(self):
        runner = make_runner(mock=True, dry_run=True)
        assert isinstance(runner, DryRunRunner)


# ── Runs ─────────────────────────────────────────────────────────────


class TestRunProvisioning:
    def test_minimal_run_succeeds(self, audit: AuditWriter):
        runner = MockCommandRunner()
        keeper = SpyKeeper()
        result = run_provisioning(
            StaticConfigSource(_config(formulae=["git"])),
            runner=runner,
            prompt=scripted_prompt(),
            keeper=keeper,
            audit_writer=audit,
            mock=True,
        )

        assert result.error is None
        assert result.exit_code == EXIT_OK
        assert result.report.status == "ok"
        assert result.report.get("formula:git").state is StepState.SUCCEEDED
        assert keeper.events == ["acquire", "start", "stop"]
        assert runner.ran("brew", "install", "git")

    def test_blank_git_answers_skip_identity(self, audit: AuditWriter):
        result = run_provisioning(
            StaticConfigSource(_config()),
            runner=MockCommandRunner(),
            prompt=scripted_prompt(),
            keeper=SpyKeeper(),
            audit_writer=audit,
            mock=True,
        )
        git = result.report.get("git-identity")
        assert git.state is StepState.SKIPPED

    def test_optional_failure_is_partial(self, audit: AuditWriter):
        runner = MockCommandRunner()
        runner.set_failure(["brew", "install", "nope"], "No available formula")
        result = run_provisioning(
            StaticConfigSource(_config(formulae=["nope", "git"])),
            runner=runner,
            prompt=scripted_prompt(),
            keeper=SpyKeeper(),
            audit_writer=audit,
            mock=True,
        )

        assert result.exit_code == EXIT_OK
        assert result.report.status == "partial"
        assert result.report.get("formula:nope").failed
        assert result.report.get("formula:git").state is StepState.SUCCEEDED

    def test_mandatory_failure_aborts(self, audit: AuditWriter):
        runner = MockCommandRunner()
        runner.set_failure(["brew", "update"], "network down")
        keeper = SpyKeeper()
        result = run_provisioning(
            StaticConfigSource(_config(formulae=["git"])),
            runner=runner,
            prompt=scripted_prompt(),
            keeper=keeper,
            audit_writer=audit,
            mock=True,
        )

        assert result.exit_code == EXIT_STEP_FAILED
        assert result.report.mandatory_failure.step_name == "homebrew-update"
        assert result.report.get("formula:git").reason == REASON_ABORTED
        assert not runner.ran("brew", "install", "git")
        assert keeper.events[-1] == "stop"

    def test_declined_extra(self, audit: AuditWriter):
        runner = MockCommandRunner()
        config = _config(extras=[Extra(name="games", casks=["steam"])])
        # node choice, then the extra's question, then git name and email
        result = run_provisioning(
            StaticConfigSource(config),
            runner=runner,
            prompt=scripted_prompt("", "n", "", ""),
            keeper=SpyKeeper(),
            audit_writer=audit,
            mock=True,
        )
        assert result.report.get("games:cask:steam").reason == REASON_DECLINED
        assert not runner.ran("brew", "install", "--cask", "steam")

    def test_ledger_written(self, audit: AuditWriter):
        result = run_provisioning(
            StaticConfigSource(_config()),
            runner=MockCommandRunner(),
            prompt=scripted_prompt(),
            keeper=SpyKeeper(),
            audit_writer=audit,
            mock=True,
        )
        entries = audit.read_all()
        assert len(entries) == 1
        assert entries[0].run_id == result.run_id
        assert entries[0].mode == "mock"
        assert entries[0].status == "ok"

    def test_ledger_records_config_path(self, write_config, audit: AuditWriter):
        path = write_config("reboot: false\n")
        run_provisioning(
            YamlConfigSource(path),
            runner=MockCommandRunner(),
            prompt=scripted_prompt(),
            keeper=SpyKeeper(),
            audit_writer=audit,
            mock=True,
        )
        assert audit.read_all()[0].config_path == str(path)

    def test_dry_run_runs_nothing_and_skips_keeper(self, audit: AuditWriter):
        inner = MockCommandRunner()
        keeper = SpyKeeper()
        result = run_provisioning(
            StaticConfigSource(_config(formulae=["git"])),
            runner=DryRunRunner(inner),
            prompt=scripted_prompt(),
            keeper=keeper,
            audit_writer=audit,
            mock=True,
            dry_run=True,
        )

        assert result.mode == "dry-run"
        assert result.exit_code == EXIT_OK
        assert inner.call_count == 0
        assert keeper.events == []
        assert result.report.get("formula:git").state is StepState.SKIPPED


# ── Prerequisite errors ──────────────────────────────────────────────


class TestPrerequisiteErrors:
    def test_missing_config(self, tmp_path: Path, audit: AuditWriter):
        runner = MockCommandRunner()
        result = run_provisioning(
            YamlConfigSource(tmp_path / "missing.yml"),
            runner=runner,
            prompt=scripted_prompt(),
            keeper=SpyKeeper(),
            audit_writer=audit,
            mock=True,
        )
        assert result.exit_code == EXIT_PREREQUISITE
        assert "not found" in result.error
        assert runner.call_count == 0
        assert audit.read_all() == []

    def test_host_check_failure(self, monkeypatch, audit: AuditWriter):
        def _offline(*, offline=False):
            raise PrerequisiteError("No internet connection")

        monkeypatch.setattr(provision, "check_prerequisites", _offline)
        runner = MockCommandRunner()
        keeper = SpyKeeper()
        result = run_provisioning(
            StaticConfigSource(_config()),
            runner=runner,
            prompt=scripted_prompt(),
            keeper=keeper,
            audit_writer=audit,
        )
        assert result.exit_code == EXIT_PREREQUISITE
        assert result.error == "No internet connection"
        assert keeper.events == []
        assert runner.call_count == 0

    def test_sudo_refused(self, audit: AuditWriter):
        keeper = SpyKeeper(fail=True)
        runner = MockCommandRunner()
        result = run_provisioning(
            StaticConfigSource(_config()),
            runner=runner,
            prompt=scripted_prompt(),
            keeper=keeper,
            audit_writer=audit,
            mock=True,
        )
        assert result.exit_code == EXIT_PREREQUISITE
        assert "administrator" in result.error
        assert keeper.events == ["acquire"]
        assert result.report is None

    def test_duplicate_step_names(self, audit: AuditWriter):
        config = _config(
            extras=[Extra(name="a", formulae=["x", "x"])],
        )
        result = run_provisioning(
            StaticConfigSource(config),
            runner=MockCommandRunner(),
            prompt=scripted_prompt(),
            keeper=SpyKeeper(),
            audit_writer=audit,
            mock=True,
        )
        assert result.exit_code == EXIT_PREREQUISITE
        assert "Duplicate step names" in result.error


# ── Plan ─────────────────────────────────────────────────────────────


class TestPlan:
    def test_plan_lists_steps_without_running(self):
        runner = MockCommandRunner()
        result = plan_provisioning(
            StaticConfigSource(_config(formulae=["git"], reboot=True)),
            runner=runner,
        )
        names = [s.name for s in result.steps]
        assert names[0] == "software-update"
        assert "formula:git" in names
        assert names[-1] == "reboot"
        assert runner.call_count == 0

    def test_plan_without_reboot(self):
        result = plan_provisioning(
            StaticConfigSource(_config(reboot=True)),
            include_reboot=False,
        )
        assert "reboot" not in [s.name for s in result.steps]

    def test_plan_reports_config_error(self, tmp_path: Path):
        result = plan_provisioning(YamlConfigSource(tmp_path / "missing.yml"))
        assert result.exit_code == EXIT_PREREQUISITE
        assert result.steps == []
