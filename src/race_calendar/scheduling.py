"""race_calendar.scheduling

Validated write boundary for the calendar.

Every mutation here runs inside one Data Store transaction and re-reads a
fresh snapshot before deciding, so checks made against a stale UI snapshot
are repeated where the write actually happens:

  - save_event          → edited event must still exist, referenced
                          championship/city must exist, forecast
                          pruned, no member/vehicle double-booked on the date
  - set_event_forecast  → quantity 0 removes the model from the forecast
  - delete_record       → championships/cities still used by events are kept
  - commit_batch        → import batch inserts in dependency order, optionally
                          conflict-checked first

The date of every event write is locked (``DataStore.lock_date``) before the
snapshot is read, so two writers booking the same date are serialized.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Callable, Iterable

from race_calendar.assembler import ImportBatch
from race_calendar.conflicts import Occupancy, find_batch_conflicts, find_conflicts, occupied
from race_calendar.datastore import DataStore
from race_calendar.forecast import check_quantity, prune_forecast, set_forecast_quantity
from race_calendar.guard import GUARDED_TABLES, assert_can_delete
from race_calendar.models import (
    TABLES,
    AppData,
    Event,
    Member,
    ModelForecast,
    Vehicle,
    new_id,
)
from race_calendar.normalize import sort_key
from race_calendar.shared import ConflictError, NotFoundError, RunCounters, ValidationError

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Event writes
# ---------------------------------------------------------------------------

def _require(snapshot: AppData, table: str, entity_id: str) -> Any:
    record = snapshot.find(table, entity_id)
    if record is None:
        raise NotFoundError(table, entity_id)
    return record


def save_event(
    store: DataStore,
    event: Event,
    *,
    create: bool = False,
    counters: RunCounters | None = None,
) -> Event:
    """Insert ``event`` (``create=True``) or update the stored event with its id.

    Raises:
        NotFoundError: championship or city id unknown, or (when editing) the
            event is no longer in the store.
        ValidationError: ``create`` with an id already stored, or the forecast
            holds a negative or non-integer quantity.
        ConflictError: a member or vehicle is already booked on that date.
    """
    ctrs = counters if counters is not None else RunCounters()
    event = replace(
        event,
        member_ids=tuple(dict.fromkeys(event.member_ids)),
        vehicle_ids=tuple(dict.fromkeys(event.vehicle_ids)),
        model_forecast=prune_forecast(event.model_forecast),
    )

    with store.transaction():
        store.lock_date(event.date)
        snapshot = store.fetch_all()
        existing = snapshot.find("events", event.id)
        if create and existing is not None:
            raise ValidationError(f"event {event.id!r} already exists", field="id")
        if not create and existing is None:
            raise NotFoundError("events", event.id)
        _require(snapshot, "championships", event.championship_id)
        _require(snapshot, "cities", event.city_id)

        conflicts = find_conflicts(snapshot.events, event)
        if conflicts:
            ctrs.conflicts_detected += len(conflicts)
            log.warning("rejected event %s: %d conflict(s)", event.id, len(conflicts))
            raise ConflictError(conflicts)

        if existing is None:
            store.insert("events", event)
            ctrs.rows_inserted += 1
        else:
            before = existing.to_row()
            changed = {k: v for k, v in event.to_row().items() if before[k] != v}
            store.update("events", event.id, changed)
            ctrs.rows_updated += 1

    return event


def create_event(
    store: DataStore,
    *,
    championship_id: str,
    city_id: str,
    date: date,
    stage: str,
    member_ids: Iterable[str] = (),
    vehicle_ids: Iterable[str] = (),
    model_forecast: Iterable[ModelForecast] = (),
    confirmed: bool = True,
    id_factory: Callable[[], str] = new_id,
    counters: RunCounters | None = None,
) -> Event:
    event = Event(
        id=id_factory(),
        championship_id=championship_id,
        city_id=city_id,
        date=date,
        stage=stage,
        member_ids=tuple(member_ids),
        vehicle_ids=tuple(vehicle_ids),
        model_forecast=tuple(model_forecast),
        confirmed=confirmed,
    )
    return save_event(store, event, create=True, counters=counters)


def update_event(
    store: DataStore,
    event_id: str,
    counters: RunCounters | None = None,
    **changes: Any,
) -> Event:
    """Apply ``changes`` (Event field names) to a stored event and save it.

    The read and the write share one transaction; ``save_event`` re-checks
    that the event still exists after taking the date lock.
    """
    with store.transaction():
        current = _require(store.fetch_all(), "events", event_id)
        return save_event(store, replace(current, **changes), counters=counters)


def set_event_forecast(
    store: DataStore,
    event_id: str,
    model_id: str,
    quantity: int,
) -> Event:
    """Set the forecast quantity of one model on one event (0 removes it)."""
    quantity = check_quantity(model_id, quantity)
    with store.transaction():
        snapshot = store.fetch_all()
        event = _require(snapshot, "events", event_id)
        if quantity:
            _require(snapshot, "models", model_id)
        forecast = set_forecast_quantity(event.model_forecast, model_id, quantity)
        updated = replace(event, model_forecast=forecast)
        store.update("events", event_id, {"model_forecast": updated.to_row()["model_forecast"]})
    return updated


# ---------------------------------------------------------------------------
# Deletes
# ---------------------------------------------------------------------------

def check_delete(snapshot: AppData, table: str, entity_id: str) -> None:
    """Raise unless ``entity_id`` can be deleted from ``table`` in ``snapshot``."""
    if table not in TABLES:
        raise ValueError(f"Unknown table '{table}'. Must be one of {list(TABLES)}.")
    _require(snapshot, table, entity_id)
    if table in GUARDED_TABLES:
        assert_can_delete(GUARDED_TABLES[table], entity_id, snapshot.events)


def delete_record(
    store: DataStore,
    table: str,
    entity_id: str,
    counters: RunCounters | None = None,
) -> None:
    """Delete one row; championships and cities still referenced are refused.

    Members, vehicles and models delete freely: events keep the dangling ids
    and render them as "N/A".

    Raises:
        NotFoundError: no such row in the current snapshot.
        ReferentialIntegrityError: events still reference the championship/city.
    """
    ctrs = counters if counters is not None else RunCounters()
    with store.transaction():
        check_delete(store.fetch_all(), table, entity_id)
        store.delete(table, entity_id)
        ctrs.rows_deleted += 1
    log.info("deleted %s %s", table, entity_id)


# ---------------------------------------------------------------------------
# Import batch commit
# ---------------------------------------------------------------------------

def commit_batch(
    store: DataStore,
    batch: ImportBatch,
    *,
    check_conflicts: bool = False,
    counters: RunCounters | None = None,
) -> None:
    """Persist an assembled import batch.

    Rows go in dependency order (cities, championships, members, then events)
    inside one transaction; any failure leaves nothing behind and the whole
    import can be retried from the source text.

    Raises:
        ValueError: the batch was already committed.
        ConflictError: ``check_conflicts`` is set and an imported event would
            double-book a member against stored events or earlier batch events.
    """
    if batch.committed:
        raise ValueError("import batch already committed; assemble a new one")
    ctrs = counters if counters is not None else RunCounters()

    with store.transaction():
        if check_conflicts:
            for d in sorted({e.date for e in batch.new_events}):
                store.lock_date(d)
            snapshot = store.fetch_all()
            conflicts = find_batch_conflicts(snapshot.events, batch.new_events)
            if conflicts:
                ctrs.conflicts_detected += len(conflicts)
                raise ConflictError(conflicts)

        for table, records in (
            ("cities", batch.new_cities),
            ("championships", batch.new_championships),
            ("members", batch.new_members),
            ("events", batch.new_events),
        ):
            for record in records:
                store.insert(table, record)
                ctrs.rows_inserted += 1

    batch.committed = True
    log.info("committed import batch: %d events", len(batch.new_events))


# ---------------------------------------------------------------------------
# Read-side helpers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Availability:
    occupancy: Occupancy
    members: list[Member]
    vehicles: list[Vehicle]


def available_resources(
    snapshot: AppData,
    on_date: date,
    exclude_event_id: str | None = None,
) -> Availability:
    """Active members and in-service vehicles still free on ``on_date``."""
    occ = occupied(snapshot.events, on_date, exclude_event_id)
    members = sorted(
        (m for m in snapshot.members if m.active and occ.is_free("member", m.id)),
        key=lambda m: sort_key(m.name),
    )
    vehicles = sorted(
        (v for v in snapshot.vehicles if v.status and occ.is_free("vehicle", v.id)),
        key=lambda v: sort_key(v.plate),
    )
    return Availability(occ, members, vehicles)


def event_summary(event: Event, snapshot: AppData) -> dict[str, Any]:
    """Display-ready view of an event; unknown ids show as 'N/A'."""
    city = snapshot.find("cities", event.city_id)
    return {
        "id": event.id,
        "date": event.date.isoformat(),
        "stage": event.stage,
        "championship": snapshot.label("championships", event.championship_id),
        "city": f"{city.name}/{city.state}" if city else snapshot.label("cities", event.city_id),
        "members": sorted(
            (snapshot.label("members", mid) for mid in event.member_ids), key=sort_key
        ),
        "vehicles": [snapshot.label("vehicles", vid) for vid in event.vehicle_ids],
        "forecast": [
            {"model": snapshot.label("models", f.model_id), "quantity": f.quantity}
            for f in event.model_forecast
        ],
        "confirmed": event.confirmed,
    }
