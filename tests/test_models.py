"""
Tests for domain models — steps, results, reports and config directives.
"""

import pytest
from pydantic import ValidationError

from macprovision.core.models import (
    DefaultsWrite,
    PipelineReport,
    ProvisionConfig,
    Receipt,
    Setting,
    Step,
    StepResult,
    StepState,
)


def _noop():
    return None


# ── Step Tests ───────────────────────────────────────────────────────


class TestStep:
    def test_defaults(self):
        step = Step(name="a", action=_noop)
        assert not step.optional
        assert not step.requires_confirmation
        assert step.prompt_text == "Run a?"

    def test_frozen(self):
        step = Step(name="a", action=_noop)
        with pytest.raises(ValidationError):
            step.name = "b"

    def test_action_must_be_callable(self):
        with pytest.raises(ValidationError):
            Step(name="a", action="brew install git")


# ── StepResult Tests ─────────────────────────────────────────────────


class TestStepResult:
    def test_failed_requires_detail(self):
        with pytest.raises(ValidationError):
            StepResult(step_name="a", state=StepState.FAILED)

    def test_detail_only_on_failure(self):
        with pytest.raises(ValidationError):
            StepResult(step_name="a", state=StepState.SUCCEEDED, error_detail="x")

    def test_pending_not_allowed(self):
        with pytest.raises(ValidationError):
            StepResult(step_name="a", state=StepState.PENDING)

    def test_skipped_for(self):
        step = Step(name="a", action=_noop, optional=True)
        result = StepResult.skipped_for(step, "declined")
        assert result.skipped
        assert result.optional
        assert result.reason == "declined"

    def test_terminal_states(self):
        assert not StepState.PENDING.terminal
        assert StepState.SKIPPED.terminal
        assert StepState.FAILED.terminal


# ── PipelineReport Tests ─────────────────────────────────────────────


class TestPipelineReport:
    def _report(self, *specs) -> PipelineReport:
        results = []
        for name, state, optional in specs:
            results.append(
                StepResult(
                    step_name=name,
                    state=state,
                    optional=optional,
                    error_detail="boom" if state is StepState.FAILED else None,
                )
            )
        return PipelineReport(results=tuple(results))

    def test_ok(self):
        report = self._report(("a", StepState.SUCCEEDED, False), ("b", StepState.SKIPPED, False))
        assert report.status == "ok"
        assert report.exit_code == 0
        assert len(report) == 2

    def test_partial(self):
        report = self._report(("a", StepState.FAILED, True), ("b", StepState.SUCCEEDED, False))
        assert report.status == "partial"
        assert report.exit_code == 0
        assert report.mandatory_failure is None

    def test_failed(self):
        report = self._report(("a", StepState.FAILED, False), ("b", StepState.SKIPPED, False))
        assert report.status == "failed"
        assert report.exit_code == 1
        assert report.mandatory_failure.step_name == "a"

    def test_groups(self):
        report = self._report(
            ("a", StepState.SUCCEEDED, False),
            ("b", StepState.FAILED, True),
            ("c", StepState.SKIPPED, True),
        )
        assert [r.step_name for r in report.succeeded] == ["a"]
        assert [r.step_name for r in report.failed] == ["b"]
        assert [r.step_name for r in report.skipped] == ["c"]
        assert report.get("b").error_detail == "boom"
        assert report.get("zzz") is None

    def test_to_dict(self):
        report = self._report(("a", StepState.FAILED, True))
        data = report.to_dict()
        assert data["failed"] == 1
        assert data["results"][0]["state"] == "failed"

    def test_immutable(self):
        report = self._report(("a", StepState.SUCCEEDED, False))
        with pytest.raises(ValidationError):
            report.results = ()


# ── Receipt Tests ────────────────────────────────────────────────────


class TestReceipt:
    def test_factories(self):
        assert Receipt.success(output="x").ok
        assert Receipt.failure(error="x").failed
        skip = Receipt.skip(reason="why")
        assert skip.skipped
        assert skip.output == "why"


# ── Config Model Tests ───────────────────────────────────────────────


class TestSettings:
    def test_defaults_bool(self):
        setting = Setting(defaults=DefaultsWrite(domain="com.apple.finder", key="ShowPathbar", value=True))
        assert setting.argv() == ["defaults", "write", "com.apple.finder", "ShowPathbar", "-bool", "true"]
        assert setting.label == "com.apple.finder.ShowPathbar"

    def test_defaults_current_host_int(self):
        directive = DefaultsWrite(domain="NSGlobalDomain", key="KeyRepeat", type="int", value=2, current_host=True)
        assert directive.argv() == ["defaults", "-currentHost", "write", "NSGlobalDomain", "KeyRepeat", "-int", "2"]

    def test_command(self):
        setting = Setting(name="restart-dock", command=["killall", "Dock"])
        assert setting.argv() == ["killall", "Dock"]
        assert setting.label == "restart-dock"

    def test_needs_exactly_one_form(self):
        with pytest.raises(ValidationError):
            Setting()
        with pytest.raises(ValidationError):
            Setting(
                defaults=DefaultsWrite(domain="d", key="k", value=1),
                command=["true"],
            )


class TestProvisionConfig:
    def test_defaults(self):
        config = ProvisionConfig()
        assert config.update_frequency == 43200
        assert config.reboot
        assert config.git.color_ui
        assert config.dock.empty

    def test_update_frequency_positive(self):
        with pytest.raises(ValidationError):
            ProvisionConfig(update_frequency=0)

    def test_duplicate_extras(self):
        with pytest.raises(ValidationError, match="duplicate extra names"):
            ProvisionConfig.model_validate({"extras": [{"name": "db"}, {"name": "db"}]})
