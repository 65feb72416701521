"""
Error taxonomy for a provisioning run.

    ProvisionError
    ├── PrerequisiteError   fatal, raised before any step runs
    │   └── ConfigError     missing or invalid provision.yml
    ├── StepFailure         local to one step, captured by the executor
    └── PromptError         unreadable operator input, resolved to a default

Only PrerequisiteError is expected to reach the CLI. StepFailure is
raised by actions and always turned into a failed StepResult.
PromptError never leaves the Prompt.
"""

from __future__ import annotations


class ProvisionError(Exception):
    """Base class for all provisioning errors."""


class PrerequisiteError(ProvisionError):
    """A precondition for the whole run is not met (config, network, sudo)."""


class ConfigError(PrerequisiteError):
    """Raised when provision configuration is invalid or missing."""


class StepFailure(ProvisionError):
    """An action could not complete its unit of work."""

    def __init__(self, message: str, *, output: str = ""):
        super().__init__(message)
        self.output = output


class PromptError(ProvisionError):
    """The operator input stream could not be read."""
