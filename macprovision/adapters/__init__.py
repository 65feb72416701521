"""Adapters — command runners for the package managers and OS tools.

Public re-exports for convenient access.
"""

from macprovision.adapters.base import CommandRunner
from macprovision.adapters.mock import DryRunRunner, MockCommandRunner
from macprovision.adapters.shell.command import ShellCommandRunner

__all__ = [
    "CommandRunner",
    "DryRunRunner",
    "MockCommandRunner",
    "ShellCommandRunner",
]
