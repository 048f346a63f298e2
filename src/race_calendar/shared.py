"""race_calendar.shared

Shared utilities used by the import, scheduling and CLI layers.
Includes the error taxonomy, RunCounters and report-writing support.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class RaceCalendarError(Exception):
    """Base class for recoverable calendar errors reported to the caller."""


class ValidationError(RaceCalendarError):
    """Raised when a raw record or a write carries a missing/malformed field."""

    def __init__(
        self,
        message: str,
        *,
        record_index: int | None = None,
        field: str | None = None,
    ) -> None:
        self.record_index = record_index
        self.field = field
        prefix = f"record {record_index}: " if record_index is not None else ""
        super().__init__(f"{prefix}{message}")


@dataclass(frozen=True)
class Conflict:
    """A resource already committed to another event on the same date."""

    resource_kind: str  # 'member' | 'vehicle'
    resource_id: str
    event_id: str
    date: date

    def describe(self) -> str:
        return (
            f"{self.resource_kind} {self.resource_id} already assigned to "
            f"event {self.event_id} on {self.date.isoformat()}"
        )


class ConflictError(RaceCalendarError):
    """Raised when a write would double-book a member or vehicle."""

    def __init__(self, conflicts: list[Conflict]) -> None:
        self.conflicts = list(conflicts)
        super().__init__("; ".join(c.describe() for c in self.conflicts))


class ReferentialIntegrityError(RaceCalendarError):
    """Raised when deleting a championship/city that events still reference."""

    def __init__(self, kind: str, entity_id: str, event_ids: list[str]) -> None:
        self.kind = kind
        self.entity_id = entity_id
        self.event_ids = list(event_ids)
        super().__init__(
            f"cannot delete {kind} {entity_id}: referenced by "
            f"{len(self.event_ids)} event(s) {self.event_ids}"
        )


class NotFoundError(RaceCalendarError):
    """Raised when a mutation targets an id absent from the current snapshot."""

    def __init__(self, table: str, entity_id: str) -> None:
        self.table = table
        self.entity_id = entity_id
        super().__init__(f"{table} {entity_id!r} not found")


# ---------------------------------------------------------------------------
# RunCounters
# ---------------------------------------------------------------------------

_PLURALS = {"championship": "championships", "city": "cities", "member": "members"}


@dataclass
class RunCounters:
    records_read: int = 0
    records_rejected: int = 0
    events_assembled: int = 0
    championships_matched_existing: int = 0
    championships_matched_batch: int = 0
    championships_created: int = 0
    cities_matched_existing: int = 0
    cities_matched_batch: int = 0
    cities_created: int = 0
    members_matched_existing: int = 0
    members_matched_batch: int = 0
    members_created: int = 0
    rows_inserted: int = 0
    rows_updated: int = 0
    rows_deleted: int = 0
    conflicts_detected: int = 0
    warnings: list[str] = field(default_factory=list)

    def record_resolution(self, kind: str, outcome: str) -> None:
        """Bump ``<plural>_<outcome>`` (outcome: matched_existing | matched_batch | created)."""
        attr = f"{_PLURALS[kind]}_{outcome}"
        setattr(self, attr, getattr(self, attr) + 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "records_read": self.records_read,
            "records_rejected": self.records_rejected,
            "events_assembled": self.events_assembled,
            "championships_matched_existing": self.championships_matched_existing,
            "championships_matched_batch": self.championships_matched_batch,
            "championships_created": self.championships_created,
            "cities_matched_existing": self.cities_matched_existing,
            "cities_matched_batch": self.cities_matched_batch,
            "cities_created": self.cities_created,
            "members_matched_existing": self.members_matched_existing,
            "members_matched_batch": self.members_matched_batch,
            "members_created": self.members_created,
            "rows_inserted": self.rows_inserted,
            "rows_updated": self.rows_updated,
            "rows_deleted": self.rows_deleted,
            "conflicts_detected": self.conflicts_detected,
            "warnings": self.warnings[:50],
        }


# ---------------------------------------------------------------------------
# Report writer
# ---------------------------------------------------------------------------

def write_run_report(
    run_id: str,
    started_at: str,
    mode: str,
    dry_run: bool,
    extra: dict[str, Any],
    counters: RunCounters,
    reports_dir: Path = Path("./artifacts/reports"),
) -> Path:
    report = {
        "run_id": run_id,
        "mode": mode,
        "started_at": started_at,
        "finished_at": datetime.utcnow().isoformat(),
        "dry_run": dry_run,
        **extra,
        "counters": counters.to_dict(),
    }
    report_path = reports_dir / f"{run_id}.json"
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(json.dumps(report, indent=2, default=str))
    return report_path
