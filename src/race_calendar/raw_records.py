"""race_calendar.raw_records

Boundary with the schedule text extractor.

The extractor (an external service) turns free prose into a list of candidate
events.  Its output is handed over as a JSON or YAML file containing a list of
mappings with these keys:

    championshipName  (required)
    stageName         (required)
    date              (required, YYYY-MM-DD)
    cityName          (required)
    stateCode         (optional, two-letter UF)
    memberNames       (optional, list of names)
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from race_calendar.models import RawEventRecord
from race_calendar.normalize import normalize_space, normalize_state_code, parse_iso_date, trim
from race_calendar.shared import RunCounters, ValidationError

REQUIRED_KEYS = ("championshipName", "stageName", "date", "cityName")


def load_raw_records(path: Path | str) -> list[dict[str, Any]]:
    """Read the extractor output file (JSON is valid YAML, so one loader serves both)."""
    p = Path(path)
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValidationError(f"records file {p} must contain a list, got {type(data).__name__}")
    for idx, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValidationError("record must be a mapping", record_index=idx)
    return data


def parse_raw_record(
    data: dict[str, Any],
    index: int,
    counters: RunCounters | None = None,
) -> RawEventRecord:
    """Validate one extractor record.

    Raises:
        ValidationError: A required field is missing, blank or malformed.
    """
    for key in REQUIRED_KEYS:
        value = data.get(key)
        if key == "date" and isinstance(value, date):
            # Unquoted YAML dates arrive already parsed.
            continue
        if not isinstance(value, str) or trim(value) is None:
            raise ValidationError(f"missing or blank '{key}'", record_index=index, field=key)

    event_date = parse_iso_date(data["date"])
    if event_date is None:
        raise ValidationError(
            f"unparseable date {data['date']!r} (expected YYYY-MM-DD)",
            record_index=index,
            field="date",
        )

    raw_state = data.get("stateCode")
    state_code = normalize_state_code(raw_state) if isinstance(raw_state, str) else None
    if raw_state not in (None, "") and state_code is None and counters is not None:
        counters.warnings.append(f"record {index}: ignored malformed stateCode {raw_state!r}")

    raw_members = data.get("memberNames") or ()
    if isinstance(raw_members, (str, bytes)) or not isinstance(raw_members, Sequence):
        raise ValidationError(
            "'memberNames' must be a list of names", record_index=index, field="memberNames"
        )
    bad = [m for m in raw_members if not isinstance(m, str)]
    if bad:
        raise ValidationError(
            f"'memberNames' entries must be strings, got {bad!r}",
            record_index=index,
            field="memberNames",
        )
    # Blank names are skipped.
    member_names = tuple(n for n in (normalize_space(m) for m in raw_members) if n)

    return RawEventRecord(
        championship_name=normalize_space(data["championshipName"]),  # type: ignore[arg-type]
        stage_name=normalize_space(data["stageName"]),  # type: ignore[arg-type]
        date=event_date,
        city_name=normalize_space(data["cityName"]),  # type: ignore[arg-type]
        state_code=state_code,
        member_names=member_names,
    )
