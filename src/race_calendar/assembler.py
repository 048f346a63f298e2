"""race_calendar.assembler

Turns an ordered list of extractor records into one import batch.

Processing order per record (records are processed strictly in order):
  1.  Validate the raw mapping (ValidationError names the record index)
  2.  Resolve championship name → championship_id
  3.  Resolve city name (+ optional state code) → city_id
  4.  Resolve each member name → member_id (duplicates within a record dropped)
  5.  Build a new Event: fresh id, empty fleet and forecast, confirmed by default

Assembly is pure: nothing is written.  If any record fails, the exception
propagates and the caller gets no batch at all, so no entity from that run is
ever considered created.  Persisting the batch is ``scheduling.commit_batch``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from race_calendar.config import ImportDefaults
from race_calendar.models import AppData, Championship, City, Event, Member, new_id
from race_calendar.raw_records import parse_raw_record
from race_calendar.reconcile import ReconciliationEngine
from race_calendar.shared import RunCounters, ValidationError

log = logging.getLogger(__name__)


@dataclass
class ImportBatch:
    """New entities and events produced by one import run."""

    new_cities: list[City] = field(default_factory=list)
    new_championships: list[Championship] = field(default_factory=list)
    new_members: list[Member] = field(default_factory=list)
    new_events: list[Event] = field(default_factory=list)
    committed: bool = False

    def is_empty(self) -> bool:
        return not (
            self.new_cities or self.new_championships or self.new_members or self.new_events
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "new_cities": [c.to_row() for c in self.new_cities],
            "new_championships": [c.to_row() for c in self.new_championships],
            "new_members": [m.to_row() for m in self.new_members],
            "new_events": [e.to_row() for e in self.new_events],
        }


def assemble(
    raw_records: Iterable[dict[str, Any]],
    snapshot: AppData,
    defaults: ImportDefaults | None = None,
    id_factory: Callable[[], str] = new_id,
    counters: RunCounters | None = None,
) -> ImportBatch:
    """Resolve every raw record against ``snapshot`` and build the batch.

    Args:
        raw_records: Extractor mappings in source order.
        snapshot: Current Data Store contents; rebuild it before a second run.
        defaults: Field defaults for minted entities.
        id_factory: Source of new opaque ids.
        counters: Optional run counters updated in place.

    Raises:
        ValidationError: On the first malformed record; no batch is returned.
    """
    defaults = defaults or ImportDefaults()
    ctrs = counters if counters is not None else RunCounters()
    engine = ReconciliationEngine(snapshot, defaults, id_factory, ctrs)
    events: list[Event] = []

    for idx, data in enumerate(raw_records):
        ctrs.records_read += 1
        try:
            record = parse_raw_record(data, idx, ctrs)
            champ = engine.resolve("championship", record.championship_name)
            city = engine.resolve("city", record.city_name, state_code=record.state_code)
            member_ids: list[str] = []
            for name in record.member_names:
                member_ids.append(engine.resolve("member", name).id)
        except ValidationError as exc:
            ctrs.records_rejected += 1
            if exc.record_index is None:
                raise ValidationError(str(exc), record_index=idx, field=exc.field) from exc
            raise

        events.append(
            Event(
                id=id_factory(),
                championship_id=champ.id,
                city_id=city.id,
                date=record.date,
                stage=record.stage_name,
                member_ids=tuple(dict.fromkeys(member_ids)),
                vehicle_ids=(),
                model_forecast=(),
                confirmed=defaults.imported_event_confirmed,
            )
        )
        ctrs.events_assembled += 1

    batch = ImportBatch(
        new_cities=engine.new_cities,
        new_championships=engine.new_championships,
        new_members=engine.new_members,
        new_events=events,
    )
    log.info(
        "assembled %d events (%d new championships, %d new cities, %d new members)",
        len(batch.new_events),
        len(batch.new_championships),
        len(batch.new_cities),
        len(batch.new_members),
    )
    return batch
