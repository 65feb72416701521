"""
Run ledger — append-only record of provisioning runs.

Every run writes one entry to an NDJSON file so an operator can see
later what a machine was provisioned with and what was left undone.
Entries are never modified or deleted.

Location: $MACPROV_STATE_DIR/audit.ndjson, default ~/.macprovision.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from macprovision.core.models.step import PipelineReport

logger = logging.getLogger(__name__)

ENV_STATE_DIR = "MACPROV_STATE_DIR"
DEFAULT_STATE_DIR = ".macprovision"
DEFAULT_AUDIT_FILE = "audit.ndjson"


class AuditEntry(BaseModel):
    """A single run, summarized."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    run_id: str = ""
    mode: str = "live"             # live, mock, dry-run
    config_path: str = ""

    status: str = ""               # ok, partial, failed
    steps_total: int = 0
    steps_succeeded: int = 0
    steps_failed: int = 0
    steps_skipped: int = 0

    failed: dict[str, str] = Field(default_factory=dict)    # step → detail
    skipped: dict[str, str] = Field(default_factory=dict)   # step → reason

    @classmethod
    def from_report(cls, report: PipelineReport, **kwargs: str) -> AuditEntry:
        return cls(
            status=report.status,
            steps_total=report.total,
            steps_succeeded=len(report.succeeded),
            steps_failed=len(report.failed),
            steps_skipped=len(report.skipped),
            failed={r.step_name: r.error_detail or "" for r in report.failed},
            skipped={r.step_name: r.reason for r in report.skipped},
            **kwargs,
        )


def default_audit_path() -> Path:
    state_dir = os.environ.get(ENV_STATE_DIR)
    base = Path(state_dir) if state_dir else Path.home() / DEFAULT_STATE_DIR
    return base / DEFAULT_AUDIT_FILE


class AuditWriter:
    """Append-only ledger writer. Write errors are logged, never raised."""

    def __init__(self, path: Path | None = None):
        self._path = path or default_audit_path()

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> bool:
        """Append one entry. Returns whether it reached the disk."""
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            logger.error("Failed to write run ledger %s: %s", self._path, e)
            return False
        logger.debug("Run ledger entry written: %s", entry.run_id)
        return True

    def read_all(self) -> list[AuditEntry]:
        """Read all entries, oldest first. Corrupt lines are skipped."""
        if not self._path.is_file():
            return []

        entries = []
        with self._path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(AuditEntry.model_validate(json.loads(line)))
                except ValueError as e:
                    logger.warning("Skipping corrupt ledger entry at line %d: %s", line_num, e)
        return entries
