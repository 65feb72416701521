"""
Domain models — Pydantic types for the provisioner.

All models are re-exported here for convenient access:

    from macprovision.core.models import Step, StepResult, PipelineReport, ProvisionConfig
"""

from macprovision.core.models.action import Receipt
from macprovision.core.models.config import (
    DefaultsWrite,
    DockConfig,
    DockReplacement,
    Extra,
    Followup,
    GitConfig,
    ProvisionConfig,
    Setting,
)
from macprovision.core.models.step import (
    REASON_ABORTED,
    REASON_DECLINED,
    Answer,
    PipelineReport,
    Step,
    StepResult,
    StepState,
)

__all__ = [
    "Answer",
    "DefaultsWrite",
    "DockConfig",
    "DockReplacement",
    "Extra",
    "Followup",
    "GitConfig",
    "PipelineReport",
    "ProvisionConfig",
    "REASON_ABORTED",
    "REASON_DECLINED",
    "Receipt",
    "Setting",
    "Step",
    "StepResult",
    "StepState",
]
