"""
PrivilegeKeeper — keep sudo credentials alive for the whole run.

Long installs (Xcode tools, casks, softwareupdate) easily outlast the
sudo timestamp. After the operator enters the password once, a daemon
thread re-asserts it with ``sudo -n true`` every ``interval`` seconds
until ``stop()`` is called.

The thread waits on a ``threading.Event`` so ``stop()`` takes effect
immediately. Being a daemon thread, it cannot outlive the process that
owns the pipeline; no parent-alive polling is needed.

If re-assertion fails (credential revoked, sudoers changed) the thread
exits quietly. The next step that needs root will fail or prompt on
its own.
"""

from __future__ import annotations

import logging
import os
import threading

from macprovision.adapters.base import CommandRunner
from macprovision.core.errors import PrerequisiteError

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_S = 60.0

_ACQUIRE_CMD = ("sudo", "-v")
_REFRESH_CMD = ("sudo", "-n", "true")


class PrivilegeKeeper:
    """Background refresher for the sudo credential cache."""

    def __init__(self, runner: CommandRunner, interval: float = DEFAULT_INTERVAL_S):
        self._runner = runner
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._refresh_count = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def refresh_count(self) -> int:
        """How many successful re-assertions the thread has made."""
        return self._refresh_count

    def acquire(self) -> None:
        """Ask the operator for the sudo password, interactively.

        Raises:
            PrerequisiteError: If credentials cannot be obtained.
        """
        if os.geteuid() == 0:
            logger.debug("Running as root, no sudo needed")
            return

        receipt = self._runner.run(list(_ACQUIRE_CMD), interactive=True)
        if receipt.failed:
            raise PrerequisiteError(f"Could not obtain administrator privileges: {receipt.error}")
        logger.info("Administrator privileges acquired")

    def start(self) -> None:
        """Start the refresher thread. Calling it twice is a no-op."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._refresh_loop,
            daemon=True,
            name="sudo-keepalive",
        )
        self._thread.start()
        logger.debug("Sudo keep-alive started (every %.0fs)", self._interval)

    def stop(self) -> None:
        """Signal the thread and wait briefly for it to finish."""
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=max(self._interval, 1.0))
        logger.debug("Sudo keep-alive stopped after %d refreshes", self._refresh_count)

    def __enter__(self) -> PrivilegeKeeper:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _refresh_loop(self) -> None:
        while not self._stop_event.wait(self._interval):
            receipt = self._runner.run(list(_REFRESH_CMD))
            if not receipt.ok:
                logger.debug("Sudo refresh failed, keep-alive exiting: %s", receipt.error)
                return
            self._refresh_count += 1
