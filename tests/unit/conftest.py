"""Unit test fixtures: an in-memory Data Store and snapshot builders."""

from __future__ import annotations

import itertools
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Any, Iterator

import pytest

from race_calendar.models import (
    TABLES,
    AppData,
    Championship,
    City,
    Event,
    Member,
    Vehicle,
    record_type,
)
from race_calendar.shared import NotFoundError


class MemoryStore:
    """Dict-backed DataStore; transactions restore the tables on error."""

    def __init__(self, data: AppData | None = None) -> None:
        data = data or AppData()
        self.tables: dict[str, list[Any]] = {t: list(data.collection(t)) for t in TABLES}
        self.locked_dates: list[date] = []
        self.writes: list[tuple[str, str, str]] = []
        self.fail_on_insert: str | None = None

    def __enter__(self) -> MemoryStore:
        return self

    def __exit__(self, *exc: object) -> None:
        return None

    def fetch_all(self) -> AppData:
        return AppData(**{t: tuple(rows) for t, rows in self.tables.items()})

    def insert(self, table: str, record: Any) -> None:
        if self.fail_on_insert == table:
            raise RuntimeError(f"simulated insert failure on {table}")
        self.tables[table].append(record)
        self.writes.append(("insert", table, record.id))

    def update(self, table: str, entity_id: str, partial: dict[str, Any]) -> None:
        rows = self.tables[table]
        for idx, rec in enumerate(rows):
            if rec.id == entity_id:
                merged = {**rec.to_row(), **partial}
                rows[idx] = record_type(table).from_row(merged)
                self.writes.append(("update", table, entity_id))
                return
        raise NotFoundError(table, entity_id)

    def delete(self, table: str, entity_id: str) -> None:
        rows = self.tables[table]
        for idx, rec in enumerate(rows):
            if rec.id == entity_id:
                del rows[idx]
                self.writes.append(("delete", table, entity_id))
                return
        raise NotFoundError(table, entity_id)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        saved = {t: list(rows) for t, rows in self.tables.items()}
        try:
            yield
        except BaseException:
            self.tables = saved
            raise

    def lock_date(self, on_date: date) -> None:
        self.locked_dates.append(on_date)


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"new-{next(counter)}"


@pytest.fixture
def snapshot() -> AppData:
    return AppData(
        cities=(City("CT1", "Curitiba", "PR"), City("CT2", "São Paulo", "SP")),
        championships=(Championship("C1", "Copa Truck"), Championship("C9", "Stock Car")),
        members=(
            Member("M1", "Ana Souza", "Mecânica"),
            Member("M7", "João Silva", "Piloto"),
            Member("M8", "Bruno Lima", "Chefe de Equipe", active=False),
        ),
        vehicles=(
            Vehicle("V1", "Caminhão", "ABC1D23", "Scania", "R450"),
            Vehicle("V2", "Van", "XYZ9K87", "Fiat", "Ducato", status=False),
        ),
        events=(
            Event("E1", "C1", "CT1", date(2026, 6, 15), "Etapa 3",
                  member_ids=("M7",), vehicle_ids=("V1",)),
            Event("E5", "C9", "CT2", date(2026, 7, 1), "Etapa 4", member_ids=("M1",)),
        ),
    )


@pytest.fixture
def store(snapshot) -> MemoryStore:
    return MemoryStore(snapshot)


@pytest.fixture
def make_event():
    """Build an event on 2026-06-15 for C1/CT1, overriding any field."""
    def _make(event_id: str = "E2", **changes: Any) -> Event:
        base = Event(event_id, "C1", "CT1", date(2026, 6, 15), "Etapa 1")
        return replace(base, **changes)
    return _make
