"""Integration test fixtures.

Applies the calendar schema against an ephemeral PostgreSQL database
provided by pytest-postgresql before any integration test runs.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

import psycopg
import pytest
from pytest_postgresql import factories

from race_calendar.datastore import PgDataStore
from race_calendar.models import Championship, City, Event, Member, Vehicle

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).parent.parent.parent
MIGRATIONS = [
    PROJECT_ROOT / "migrations" / "0001_core_entities.sql",
]

# ---------------------------------------------------------------------------
# pytest-postgresql process fixture
# ---------------------------------------------------------------------------

postgresql_proc = factories.postgresql_proc()
postgresql = factories.postgresql("postgresql_proc")


# ---------------------------------------------------------------------------
# Schema fixture
# ---------------------------------------------------------------------------

@pytest.fixture(scope="function")
def db_conn(postgresql):
    """Return a psycopg connection with schema applied, plus its DSN.

    Each test gets a fresh schema via function scope so tests are isolated.
    """
    dsn = (
        f"host={postgresql.info.host} "
        f"port={postgresql.info.port} "
        f"dbname={postgresql.info.dbname} "
        f"user={postgresql.info.user} "
        f"password={postgresql.info.password or ''}"
    )
    conn = psycopg.connect(dsn, autocommit=True)
    try:
        for migration in MIGRATIONS:
            conn.execute(migration.read_text(encoding="utf-8"))
        yield conn, dsn
    finally:
        conn.close()


@pytest.fixture
def pg_store(db_conn):
    """Open PgDataStore seeded with a small calendar."""
    _, dsn = db_conn
    with PgDataStore(dsn) as store:
        for table, record in (
            ("cities", City("CT1", "Curitiba", "PR")),
            ("cities", City("CT2", "São Paulo", "SP")),
            ("championships", Championship("C1", "Copa Truck")),
            ("championships", Championship("C9", "Stock Car")),
            ("members", Member("M1", "Ana Souza", "Mecânica")),
            ("members", Member("M7", "João Silva", "Piloto", access_level="User")),
            ("vehicles", Vehicle("V1", "Caminhão", "ABC1D23", "Scania", "R450")),
            ("events", Event("E1", "C1", "CT1", date(2026, 6, 15), "Etapa 3",
                             member_ids=("M7",), vehicle_ids=("V1",))),
            ("events", Event("E5", "C9", "CT2", date(2026, 7, 1), "Etapa 4",
                             member_ids=("M1",))),
        ):
            store.insert(table, record)
        yield store
