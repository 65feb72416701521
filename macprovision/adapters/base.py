"""
Command runner base — the contract between step actions and the OS.

Step actions never call subprocess directly. They go through a
CommandRunner, so the same catalog can run for real, in dry-run mode,
or against a mock in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from macprovision.core.models.action import Receipt


class CommandRunner(ABC):
    """Abstract base class for all command runners.

    Runners perform external side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The runner identifier (e.g., 'shell', 'mock', 'dry-run')."""

    @abstractmethod
    def is_available(self, program: str, env: Mapping[str, str] | None = None) -> bool:
        """Whether ``program`` can be found on PATH. Never raises.

        ``env`` overlays os.environ, so a PATH exported earlier in the
        run (Homebrew's shellenv) is honored.
        """

    @abstractmethod
    def run(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        interactive: bool = False,
    ) -> Receipt:
        """Run one command to completion and describe the outcome.

        Args:
            argv: Program and arguments. Never passed through a shell.
            env: Extra environment variables layered over os.environ.
            interactive: Inherit the terminal instead of capturing output
                (sudo password prompts, mysql_secure_installation).
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
