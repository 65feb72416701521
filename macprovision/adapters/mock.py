"""
Mock and dry-run runners — command runners that touch nothing.

MockCommandRunner is the universal test double: it records every
command and answers with success unless told otherwise. It also backs
the CLI's ``--mock`` mode. DryRunRunner wraps a real runner, keeps its
PATH lookups and turns every command into a skip receipt.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from macprovision.adapters.base import CommandRunner
from macprovision.core.models.action import Receipt


@dataclass
class RecordedCall:
    """One command a mock runner received."""

    argv: list[str]
    env: dict[str, str] = field(default_factory=dict)
    interactive: bool = False


class MockCommandRunner(CommandRunner):
    """Record commands and return canned receipts.

    Responses are keyed by the command's leading words: a response for
    ``("brew", "install")`` matches every ``brew install ...`` call. The
    longest matching prefix wins.
    """

    def __init__(
        self,
        runner_name: str = "mock",
        available: set[str] | None = None,
        default_output: str = "[mock] executed",
    ):
        self._name = runner_name
        self._available = set(available or ())
        self._default_output = default_output
        self._responses: dict[tuple[str, ...], Receipt] = {}
        self._calls: list[RecordedCall] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def calls(self) -> list[RecordedCall]:
        """All commands this mock has received, in order."""
        return self._calls

    @property
    def call_count(self) -> int:
        return len(self._calls)

    def commands(self) -> list[list[str]]:
        return [c.argv for c in self._calls]

    def ran(self, *prefix: str) -> bool:
        """Whether any recorded command starts with ``prefix``."""
        return any(tuple(c.argv[: len(prefix)]) == prefix for c in self._calls)

    def set_available(self, *programs: str) -> None:
        self._available.update(programs)

    def is_available(self, program: str, env: Mapping[str, str] | None = None) -> bool:
        return program in self._available

    def set_response(self, prefix: Sequence[str], receipt: Receipt) -> None:
        """Answer commands starting with ``prefix`` with ``receipt``."""
        self._responses[tuple(prefix)] = receipt

    def set_failure(self, prefix: Sequence[str], error: str = "Mock failure") -> None:
        """Configure commands starting with ``prefix`` to fail."""
        self._responses[tuple(prefix)] = Receipt.failure(
            runner=self._name,
            command=list(prefix),
            error=error,
            return_code=1,
        )

    def run(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        interactive: bool = False,
    ) -> Receipt:
        cmd = list(argv)
        self._calls.append(RecordedCall(argv=cmd, env=dict(env or {}), interactive=interactive))

        best: tuple[str, ...] | None = None
        for prefix in self._responses:
            if tuple(cmd[: len(prefix)]) == prefix and (best is None or len(prefix) > len(best)):
                best = prefix
        if best is not None:
            return self._responses[best].model_copy(update={"command": cmd})

        return Receipt.success(
            runner=self._name,
            command=cmd,
            output=self._default_output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear recorded calls and custom responses."""
        self._calls.clear()
        self._responses.clear()


class DryRunRunner(CommandRunner):
    """Wrap a runner: answer PATH lookups for real, skip every command."""

    def __init__(self, inner: CommandRunner):
        self._inner = inner

    @property
    def name(self) -> str:
        return "dry-run"

    def is_available(self, program: str, env: Mapping[str, str] | None = None) -> bool:
        return self._inner.is_available(program, env)

    def run(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        interactive: bool = False,
    ) -> Receipt:
        return Receipt.skip(
            reason=f"[dry-run] would run: {' '.join(argv)}",
            runner=self.name,
            command=list(argv),
            metadata={"dry_run": True},
        )
