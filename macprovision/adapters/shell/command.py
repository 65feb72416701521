"""
Shell command runner — the SINGLE PLACE where subprocess.run is called.

Commands are argv lists, never shell strings. Pipelines such as
``curl ... | sh`` are spelled out by the caller as ``["/bin/sh", "-c", ...]``
with a fixed script, so no configuration value is ever evaluated.

No timeout is applied: a hung installer hangs the run, as it would
when run by hand.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from collections.abc import Mapping, Sequence

from macprovision.adapters.base import CommandRunner
from macprovision.core.models.action import Receipt

logger = logging.getLogger(__name__)

# Keep only the tail of captured output in receipts
_OUTPUT_TAIL = 2000


class ShellCommandRunner(CommandRunner):
    """Execute commands and capture their output."""

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self, program: str, env: Mapping[str, str] | None = None) -> bool:
        path = (env or {}).get("PATH") or os.environ.get("PATH")
        return shutil.which(program, path=path) is not None

    def run(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        interactive: bool = False,
    ) -> Receipt:
        cmd = list(argv)
        full_env = os.environ.copy()
        if env:
            full_env.update(env)

        logger.debug("Executing: %s%s", " ".join(cmd), " (interactive)" if interactive else "")
        start = time.monotonic()

        try:
            if interactive:
                result = subprocess.run(cmd, env=full_env)
                stdout, stderr = "", ""
            else:
                result = subprocess.run(
                    cmd,
                    env=full_env,
                    capture_output=True,
                    text=True,
                )
                stdout = (result.stdout or "")[-_OUTPUT_TAIL:].strip()
                stderr = (result.stderr or "")[-_OUTPUT_TAIL:].strip()
        except FileNotFoundError:
            return Receipt.failure(
                runner=self.name,
                command=cmd,
                error=f"Command not found: {cmd[0]}",
            )
        except Exception as e:
            logger.exception("Subprocess error: %s", cmd)
            return Receipt.failure(
                runner=self.name,
                command=cmd,
                error=f"Command execution error: {e}",
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)

        if result.returncode == 0:
            return Receipt.success(
                runner=self.name,
                command=cmd,
                output=stdout,
                duration_ms=elapsed_ms,
                return_code=0,
                metadata={"stderr": stderr} if stderr else {},
            )

        return Receipt.failure(
            runner=self.name,
            command=cmd,
            error=stderr or f"Command exited with code {result.returncode}",
            output=stdout,
            duration_ms=elapsed_ms,
            return_code=result.returncode,
        )
