"""race_calendar.conflicts

Per-date resource occupancy: which members and vehicles are already
committed to some event on a given calendar date.

Everything here is a pure function of the event collection passed in.  The
write path re-runs these checks against a freshly fetched snapshot (see
``race_calendar.scheduling``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from race_calendar.models import Event
from race_calendar.shared import Conflict, ConflictError


@dataclass(frozen=True)
class Occupancy:
    """Resources taken on one date, each mapped to the first event holding it."""

    date: date
    member_holders: dict[str, str] = field(default_factory=dict)
    vehicle_holders: dict[str, str] = field(default_factory=dict)

    @property
    def member_ids(self) -> frozenset[str]:
        return frozenset(self.member_holders)

    @property
    def vehicle_ids(self) -> frozenset[str]:
        return frozenset(self.vehicle_holders)

    def is_free(self, resource_kind: str, resource_id: str) -> bool:
        holders = self.member_holders if resource_kind == "member" else self.vehicle_holders
        return resource_id not in holders


def occupied(
    events: Iterable[Event],
    on_date: date,
    exclude_event_id: str | None = None,
) -> Occupancy:
    """Union the rosters and fleets of every event dated ``on_date``.

    ``exclude_event_id`` is the event being edited, so it never conflicts
    with itself.
    """
    member_holders: dict[str, str] = {}
    vehicle_holders: dict[str, str] = {}
    for event in events:
        if event.date != on_date or event.id == exclude_event_id:
            continue
        for member_id in event.member_ids:
            member_holders.setdefault(member_id, event.id)
        for vehicle_id in event.vehicle_ids:
            vehicle_holders.setdefault(vehicle_id, event.id)
    return Occupancy(on_date, member_holders, vehicle_holders)


def find_conflicts(events: Iterable[Event], candidate: Event) -> list[Conflict]:
    """Return every resource of ``candidate`` already taken on its date."""
    occ = occupied(events, candidate.date, exclude_event_id=candidate.id)
    conflicts: list[Conflict] = []
    for member_id in dict.fromkeys(candidate.member_ids):
        holder = occ.member_holders.get(member_id)
        if holder is not None:
            conflicts.append(Conflict("member", member_id, holder, candidate.date))
    for vehicle_id in dict.fromkeys(candidate.vehicle_ids):
        holder = occ.vehicle_holders.get(vehicle_id)
        if holder is not None:
            conflicts.append(Conflict("vehicle", vehicle_id, holder, candidate.date))
    return conflicts


def assert_no_conflicts(events: Iterable[Event], candidate: Event) -> None:
    """Raise ConflictError when ``candidate`` would double-book a resource."""
    conflicts = find_conflicts(events, candidate)
    if conflicts:
        raise ConflictError(conflicts)


def find_batch_conflicts(events: Iterable[Event], batch: Iterable[Event]) -> list[Conflict]:
    """Check new events against the stored ones and against each other.

    Batch events are accepted in order; a later batch event conflicts with an
    earlier one that already claimed the same resource on the same date.
    """
    accepted = list(events)
    conflicts: list[Conflict] = []
    for candidate in batch:
        conflicts.extend(find_conflicts(accepted, candidate))
        accepted.append(candidate)
    return conflicts
