"""race_calendar.guard

Delete-time referential checks: a championship or city may not be deleted
while any event still points at it.
"""

from __future__ import annotations

from typing import Iterable

from race_calendar.models import Event
from race_calendar.shared import ReferentialIntegrityError

GUARDED_KINDS = {
    "championship": "championship_id",
    "city": "city_id",
}

GUARDED_TABLES = {
    "championships": "championship",
    "cities": "city",
}


def referencing_events(kind: str, entity_id: str, events: Iterable[Event]) -> list[Event]:
    """Return the events whose ``<kind>_id`` equals ``entity_id``."""
    try:
        attr = GUARDED_KINDS[kind]
    except KeyError:
        raise ValueError(
            f"Invalid kind '{kind}'. Must be one of {sorted(GUARDED_KINDS)}."
        ) from None
    return [e for e in events if getattr(e, attr) == entity_id]


def can_delete(kind: str, entity_id: str, events: Iterable[Event]) -> bool:
    return not referencing_events(kind, entity_id, events)


def assert_can_delete(kind: str, entity_id: str, events: Iterable[Event]) -> None:
    refs = referencing_events(kind, entity_id, events)
    if refs:
        raise ReferentialIntegrityError(kind, entity_id, [e.id for e in refs])
