"""race_calendar.models

Value records for the calendar snapshot and the raw records produced by the
schedule text extractor.  Every record converts to and from a Data Store row
(snake_case column names) via ``to_row()`` / ``from_row()``.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any

from race_calendar.normalize import parse_iso_date

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TABLES = ("cities", "championships", "members", "vehicles", "models", "events")

ACCESS_LEVELS = frozenset({"Master", "Admin", "User"})

UNKNOWN_LABEL = "N/A"


def new_id() -> str:
    """Return a fresh opaque id (UUIDv4 string)."""
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class City:
    id: str
    name: str
    state: str = "XX"

    def to_row(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> City:
        return cls(id=str(row["id"]), name=row["name"], state=row.get("state") or "XX")


@dataclass(frozen=True)
class Championship:
    id: str
    name: str

    def to_row(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Championship:
        return cls(id=str(row["id"]), name=row["name"])


@dataclass(frozen=True)
class Member:
    id: str
    name: str
    role: str = ""
    active: bool = True
    email: str | None = None
    access_level: str | None = None

    def to_row(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Member:
        return cls(
            id=str(row["id"]),
            name=row["name"],
            role=row.get("role") or "",
            active=bool(row.get("active", True)),
            email=row.get("email"),
            access_level=row.get("access_level"),
        )


@dataclass(frozen=True)
class Vehicle:
    id: str
    type: str = ""
    plate: str = ""
    brand: str = ""
    model: str = ""
    status: bool = True

    @property
    def name(self) -> str:
        return " ".join(p for p in (self.plate, self.brand, self.model) if p)

    def to_row(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Vehicle:
        return cls(
            id=str(row["id"]),
            type=row.get("type") or "",
            plate=row.get("plate") or "",
            brand=row.get("brand") or "",
            model=row.get("model") or "",
            status=bool(row.get("status", True)),
        )


@dataclass(frozen=True)
class EquipmentModel:
    """Inventory catalog item that events forecast quantities of."""

    id: str
    type: str = ""
    brand: str = ""
    model: str = ""

    @property
    def name(self) -> str:
        return " ".join(p for p in (self.type, self.brand, self.model) if p)

    def to_row(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> EquipmentModel:
        return cls(
            id=str(row["id"]),
            type=row.get("type") or "",
            brand=row.get("brand") or "",
            model=row.get("model") or "",
        )


@dataclass(frozen=True)
class ModelForecast:
    model_id: str
    quantity: int


@dataclass(frozen=True)
class Event:
    id: str
    championship_id: str
    city_id: str
    date: date
    stage: str
    member_ids: tuple[str, ...] = ()
    vehicle_ids: tuple[str, ...] = ()
    model_forecast: tuple[ModelForecast, ...] = ()
    confirmed: bool = True

    def __post_init__(self) -> None:
        # Accept any iterable from callers; store tuples so events stay hashable.
        object.__setattr__(self, "member_ids", tuple(self.member_ids))
        object.__setattr__(self, "vehicle_ids", tuple(self.vehicle_ids))
        object.__setattr__(self, "model_forecast", tuple(self.model_forecast))

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "championship_id": self.championship_id,
            "city_id": self.city_id,
            "date": self.date,
            "stage": self.stage,
            "member_ids": list(self.member_ids),
            "vehicle_ids": list(self.vehicle_ids),
            "model_forecast": [
                {"model_id": f.model_id, "quantity": f.quantity}
                for f in self.model_forecast
            ],
            "confirmed": self.confirmed,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Event:
        event_date = parse_iso_date(row["date"])
        if event_date is None:
            raise ValueError(f"event {row.get('id')!r} has unparseable date {row['date']!r}")
        return cls(
            id=str(row["id"]),
            championship_id=str(row["championship_id"]),
            city_id=str(row["city_id"]),
            date=event_date,
            stage=row.get("stage") or "",
            member_ids=tuple(str(m) for m in row.get("member_ids") or ()),
            vehicle_ids=tuple(str(v) for v in row.get("vehicle_ids") or ()),
            model_forecast=tuple(
                ModelForecast(model_id=str(f["model_id"]), quantity=int(f["quantity"]))
                for f in row.get("model_forecast") or ()
            ),
            confirmed=bool(row.get("confirmed", True)),
        )


_RECORD_TYPES: dict[str, type] = {
    "cities": City,
    "championships": Championship,
    "members": Member,
    "vehicles": Vehicle,
    "models": EquipmentModel,
    "events": Event,
}


def record_type(table: str) -> type:
    """Return the record class stored in ``table``."""
    try:
        return _RECORD_TYPES[table]
    except KeyError:
        raise ValueError(f"Unknown table '{table}'. Must be one of {list(TABLES)}.") from None


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AppData:
    """Point-in-time snapshot of every collection in the Data Store."""

    cities: tuple[City, ...] = ()
    championships: tuple[Championship, ...] = ()
    members: tuple[Member, ...] = ()
    vehicles: tuple[Vehicle, ...] = ()
    models: tuple[EquipmentModel, ...] = ()
    events: tuple[Event, ...] = ()

    def collection(self, table: str) -> tuple[Any, ...]:
        record_type(table)
        return getattr(self, table)

    def find(self, table: str, entity_id: str) -> Any | None:
        """Return the record with ``entity_id`` in ``table``, or None."""
        for record in self.collection(table):
            if record.id == entity_id:
                return record
        return None

    def label(self, table: str, entity_id: str) -> str:
        """Display name for an id; dangling ids render as 'N/A'."""
        record = self.find(table, entity_id)
        if record is None:
            return UNKNOWN_LABEL
        if isinstance(record, Event):
            return record.stage
        return record.name


# ---------------------------------------------------------------------------
# Raw extractor output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RawEventRecord:
    """One candidate event as produced by the schedule text extractor."""

    championship_name: str
    stage_name: str
    date: date
    city_name: str
    state_code: str | None = None
    member_names: tuple[str, ...] = field(default_factory=tuple)
