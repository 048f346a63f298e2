"""race_calendar.datastore

Data Store collaborator: a full-snapshot read plus per-row insert / update /
delete by table and id.

``PgDataStore`` is the PostgreSQL implementation (schema in
migrations/0001_core_entities.sql).  It is constructed with a DSN and opened
explicitly; callers pass the handle down instead of reaching for a global
connection:

    with PgDataStore(dsn) as store:
        snapshot = store.fetch_all()
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from typing import Any, Iterator, Protocol

import psycopg
from psycopg.pq import TransactionStatus
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from race_calendar.models import TABLES, AppData, record_type
from race_calendar.shared import NotFoundError

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Column maps
# ---------------------------------------------------------------------------

_COLUMNS: dict[str, tuple[str, ...]] = {
    "cities": ("id", "name", "state"),
    "championships": ("id", "name"),
    "members": ("id", "name", "role", "active", "email", "access_level"),
    "vehicles": ("id", "type", "plate", "brand", "model", "status"),
    "models": ("id", "type", "brand", "model"),
    "events": (
        "id", "championship_id", "city_id", "date", "stage",
        "member_ids", "vehicle_ids", "model_forecast", "confirmed",
    ),
}

_JSON_COLUMNS = frozenset({"model_forecast"})


def _check_table(table: str) -> tuple[str, ...]:
    if table not in _COLUMNS:
        raise ValueError(f"Unknown table '{table}'. Must be one of {list(TABLES)}.")
    return _COLUMNS[table]


def _check_columns(table: str, row: dict[str, Any]) -> None:
    unknown = set(row) - set(_check_table(table))
    if unknown:
        raise ValueError(f"Unknown columns for {table}: {sorted(unknown)}")


def _adapt(column: str, value: Any) -> Any:
    if column in _JSON_COLUMNS:
        return Jsonb(value)
    return value


def _as_row(record: Any) -> dict[str, Any]:
    return record.to_row() if hasattr(record, "to_row") else dict(record)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class DataStore(Protocol):
    def fetch_all(self) -> AppData:
        """Return every collection as one consistent snapshot."""
        ...

    def insert(self, table: str, record: Any) -> None: ...

    def update(self, table: str, entity_id: str, partial: dict[str, Any]) -> None:
        """Raise NotFoundError when no row has ``entity_id``."""
        ...

    def delete(self, table: str, entity_id: str) -> None:
        """Raise NotFoundError when no row has ``entity_id``."""
        ...

    def transaction(self) -> Any:
        """Context manager grouping the enclosed writes."""
        ...

    def lock_date(self, on_date: date) -> None:
        """Serialize writers touching the same calendar date until the transaction ends."""
        ...


# ---------------------------------------------------------------------------
# PostgreSQL implementation
# ---------------------------------------------------------------------------

class PgDataStore:
    """psycopg-backed Data Store with an explicit open/close lifecycle."""

    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._conn: psycopg.Connection | None = None

    def open(self) -> PgDataStore:
        if self._conn is None:
            self._conn = psycopg.connect(self._dsn, autocommit=True, row_factory=dict_row)
        return self

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> PgDataStore:
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def conn(self) -> psycopg.Connection:
        if self._conn is None:
            raise RuntimeError("PgDataStore is not open; call open() first")
        return self._conn

    # -- reads ---------------------------------------------------------------

    def fetch_all(self) -> AppData:
        collections: dict[str, tuple[Any, ...]] = {}
        outermost = self.conn.info.transaction_status == TransactionStatus.IDLE
        with self.conn.transaction():
            if outermost:
                # One REPEATABLE READ snapshot for all six tables.
                self.conn.execute("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ")
            for table in TABLES:
                cols = ", ".join(_COLUMNS[table])
                rows = self.conn.execute(f"SELECT {cols} FROM {table} ORDER BY seq").fetchall()
                cls = record_type(table)
                collections[table] = tuple(cls.from_row(r) for r in rows)
        return AppData(**collections)

    # -- writes --------------------------------------------------------------

    def insert(self, table: str, record: Any) -> None:
        row = _as_row(record)
        _check_columns(table, row)
        cols = list(row)
        placeholders = ", ".join(["%s"] * len(cols))
        self.conn.execute(
            f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({placeholders})",
            [_adapt(c, row[c]) for c in cols],
        )
        log.debug("inserted %s %s", table, row.get("id"))

    def update(self, table: str, entity_id: str, partial: dict[str, Any]) -> None:
        _check_columns(table, partial)
        sets = {c: v for c, v in partial.items() if c != "id"}
        if not sets:
            return
        assignments = ", ".join(f"{c} = %s" for c in sets)
        cur = self.conn.execute(
            f"UPDATE {table} SET {assignments} WHERE id = %s",
            [*(_adapt(c, v) for c, v in sets.items()), entity_id],
        )
        if cur.rowcount == 0:
            raise NotFoundError(table, entity_id)
        log.debug("updated %s %s (%s)", table, entity_id, ", ".join(sets))

    def delete(self, table: str, entity_id: str) -> None:
        _check_table(table)
        cur = self.conn.execute(f"DELETE FROM {table} WHERE id = %s", (entity_id,))
        if cur.rowcount == 0:
            raise NotFoundError(table, entity_id)
        log.debug("deleted %s %s", table, entity_id)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self.conn.transaction():
            yield

    def lock_date(self, on_date: date) -> None:
        self.conn.execute(
            "SELECT pg_advisory_xact_lock(hashtext(%s))",
            (f"events:{on_date.isoformat()}",),
        )
