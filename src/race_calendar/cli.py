"""race_calendar.cli

Unified CLI entrypoint for the race calendar.

Modes (--mode):
  import_schedule  - assemble extractor records into a batch and commit it
  availability     - show which members/vehicles are free on a date
  delete           - delete one row (championship/city deletes are guarded)

Usage (import_schedule):
    python -m race_calendar.cli \\
        --mode import_schedule \\
        --db-dsn "$RACE_CALENDAR_DB_DSN" \\
        --records-path "artifacts/extracted/calendar_2026.json" \\
        --defaults-file "config/import_defaults.yml" \\
        --dry-run

Usage (availability):
    python -m race_calendar.cli --mode availability --date 2026-06-15
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from datetime import datetime
from pathlib import Path

import click

from race_calendar.assembler import assemble
from race_calendar.config import DB_DSN_ENV, ImportDefaults, load_import_defaults
from race_calendar.datastore import PgDataStore
from race_calendar.models import TABLES
from race_calendar.normalize import parse_iso_date
from race_calendar.raw_records import load_raw_records
from race_calendar.scheduling import (
    available_resources,
    check_delete,
    commit_batch,
    delete_record,
)
from race_calendar.shared import RaceCalendarError, RunCounters, write_run_report

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

def build_import_report(ctrs: RunCounters, dry_run: bool = False) -> str:
    lines = [
        "=" * 60,
        "Schedule Import Report",
        f"  dry_run: {dry_run}",
        "=" * 60,
        f"  records read:                   {ctrs.records_read}",
        f"  records rejected:               {ctrs.records_rejected}",
        f"  events assembled:               {ctrs.events_assembled}",
        f"  championships existing/batch/new: "
        f"{ctrs.championships_matched_existing}/{ctrs.championships_matched_batch}/"
        f"{ctrs.championships_created}",
        f"  cities existing/batch/new:      "
        f"{ctrs.cities_matched_existing}/{ctrs.cities_matched_batch}/{ctrs.cities_created}",
        f"  members existing/batch/new:     "
        f"{ctrs.members_matched_existing}/{ctrs.members_matched_batch}/{ctrs.members_created}",
        f"  rows inserted:                  {ctrs.rows_inserted}",
        f"  conflicts detected:             {ctrs.conflicts_detected}",
    ]
    if ctrs.warnings:
        lines.append(f"\nWarnings ({len(ctrs.warnings)}):")
        for w in ctrs.warnings[:20]:
            lines.append(f"  {w}")
        if len(ctrs.warnings) > 20:
            lines.append(f"  ... and {len(ctrs.warnings) - 20} more")
    lines.append("=" * 60)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Mode runners
# ---------------------------------------------------------------------------

def _run_import_schedule(
    run_id: str,
    store: PgDataStore,
    counters: RunCounters,
    *,
    records_path: str,
    defaults: ImportDefaults,
    dry_run: bool,
    check_conflicts: bool,
) -> None:
    raw = load_raw_records(records_path)
    snapshot = store.fetch_all()
    batch = assemble(raw, snapshot, defaults=defaults, counters=counters)
    if dry_run:
        click.echo(json.dumps(batch.to_dict(), indent=2, default=str))
        click.echo(f"[{run_id}] DRY RUN: nothing written.")
    else:
        commit_batch(store, batch, check_conflicts=check_conflicts, counters=counters)
        click.echo(f"[{run_id}] Committed {len(batch.new_events)} events.")
    click.echo(build_import_report(counters, dry_run=dry_run))


def _run_availability(
    run_id: str,
    store: PgDataStore,
    *,
    on_date_raw: str | None,
    exclude_event_id: str | None,
) -> None:
    on_date = parse_iso_date(on_date_raw)
    if on_date is None:
        click.echo(f"[{run_id}] ERROR: --date YYYY-MM-DD is required for availability", err=True)
        sys.exit(1)
    snapshot = store.fetch_all()
    avail = available_resources(snapshot, on_date, exclude_event_id)
    click.echo(f"[{run_id}] Availability on {on_date.isoformat()}")
    click.echo("  Occupied members:")
    for mid, eid in sorted(avail.occupancy.member_holders.items()):
        click.echo(
            f"    {snapshot.label('members', mid)} ({mid}) held by event "
            f"{snapshot.label('events', eid)} ({eid})"
        )
    click.echo("  Occupied vehicles:")
    for vid, eid in sorted(avail.occupancy.vehicle_holders.items()):
        click.echo(
            f"    {snapshot.label('vehicles', vid)} ({vid}) held by event "
            f"{snapshot.label('events', eid)} ({eid})"
        )
    click.echo("  Free members:")
    for m in avail.members:
        click.echo(f"    {m.name} ({m.role})")
    click.echo("  Free vehicles:")
    for v in avail.vehicles:
        click.echo(f"    {v.plate} {v.brand} {v.model}".rstrip())


# ---------------------------------------------------------------------------
# Unified CLI
# ---------------------------------------------------------------------------

@click.command()
@click.option(
    "--mode",
    default="import_schedule",
    type=click.Choice(["import_schedule", "availability", "delete"]),
    show_default=True,
    help="Operation mode",
)
@click.option("--db-dsn", required=True, envvar=DB_DSN_ENV, help="PostgreSQL DSN")
# import_schedule flags
@click.option("--records-path", default=None, type=click.Path(), help="[import_schedule] Extractor output (JSON or YAML list)")
@click.option("--defaults-file", default=None, type=click.Path(), help="[import_schedule] YAML defaults for minted entities")
@click.option(
    "--check-conflicts/--no-check-conflicts",
    default=False,
    show_default=True,
    help="[import_schedule] Refuse the batch if an imported event double-books a member",
)
# availability flags
@click.option("--date", "on_date", default=None, help="[availability] Date YYYY-MM-DD")
@click.option("--exclude-event-id", default=None, help="[availability] Event being edited (ignored when computing conflicts)")
# delete flags
@click.option("--table", default=None, type=click.Choice(list(TABLES)), help="[delete] Table name")
@click.option("--entity-id", default=None, help="[delete] Row id")
# shared flags
@click.option("--dry-run", is_flag=True, default=False)
@click.option("--run-id", default=None, help="Override UUID for log correlation")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    show_default=True,
)
@click.option("--reports-dir", default="./artifacts/reports", show_default=True, type=click.Path())
def main(
    mode: str,
    db_dsn: str,
    records_path: str | None,
    defaults_file: str | None,
    check_conflicts: bool,
    on_date: str | None,
    exclude_event_id: str | None,
    table: str | None,
    entity_id: str | None,
    dry_run: bool,
    run_id: str | None,
    log_level: str,
    reports_dir: str,
) -> None:
    """Unified race calendar CLI."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_id = run_id or str(uuid.uuid4())
    started_at = datetime.utcnow().isoformat()
    counters = RunCounters()

    click.echo(f"[{run_id}] Starting {mode} run (dry_run={dry_run})")

    if mode == "import_schedule" and not records_path:
        click.echo(f"[{run_id}] ERROR: --records-path is required for import_schedule", err=True)
        sys.exit(1)
    if mode == "delete" and not (table and entity_id):
        click.echo(f"[{run_id}] ERROR: --table and --entity-id are required for delete", err=True)
        sys.exit(1)

    try:
        defaults = load_import_defaults(Path(defaults_file)) if defaults_file else ImportDefaults()
    except (OSError, ValueError) as exc:
        click.echo(f"[{run_id}] ERROR: cannot load defaults file: {exc}", err=True)
        sys.exit(1)

    failed = False
    with PgDataStore(db_dsn) as store:
        try:
            if mode == "import_schedule":
                _run_import_schedule(
                    run_id, store, counters,
                    records_path=records_path,  # type: ignore[arg-type]
                    defaults=defaults,
                    dry_run=dry_run,
                    check_conflicts=check_conflicts,
                )
            elif mode == "availability":
                _run_availability(
                    run_id, store,
                    on_date_raw=on_date,
                    exclude_event_id=exclude_event_id,
                )
            elif mode == "delete":
                if dry_run:
                    check_delete(store.fetch_all(), table, entity_id)  # type: ignore[arg-type]
                    click.echo(f"[{run_id}] DRY RUN: would delete {table} {entity_id}.")
                else:
                    delete_record(store, table, entity_id, counters)  # type: ignore[arg-type]
                    click.echo(f"[{run_id}] Deleted {table} {entity_id}.")
        except RaceCalendarError as exc:
            log.warning("%s run failed: %s", mode, exc)
            click.echo(f"[{run_id}] {type(exc).__name__}: {exc}", err=True)
            counters.warnings.append(f"{type(exc).__name__}: {exc}")
            failed = True

    report_path = write_run_report(
        run_id, started_at, mode, dry_run,
        {"records_path": records_path, "date": on_date, "table": table, "entity_id": entity_id},
        counters,
        reports_dir=Path(reports_dir),
    )
    click.echo(f"[{run_id}] Run report: {report_path}")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
