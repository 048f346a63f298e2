"""Normalization functions for calendar names, region codes and dates.

All functions accept str | None and return the appropriate type or None.
"""

from __future__ import annotations

import re
import unicodedata
from datetime import date, datetime

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_STATE_CODE_RE = re.compile(r"^[A-Z]{2}$")


# ---------------------------------------------------------------------------
# Rule 1: trim
# ---------------------------------------------------------------------------

def trim(value: str | None) -> str | None:
    """Strip leading/trailing whitespace; treat empty string as None."""
    if value is None:
        return None
    v = value.strip()
    return v if v else None


# ---------------------------------------------------------------------------
# Rule 2: normalize_space
# ---------------------------------------------------------------------------

def normalize_space(value: str | None) -> str | None:
    """Collapse internal runs of whitespace to single spaces, then trim."""
    v = trim(value)
    if v is None:
        return None
    return re.sub(r"\s+", " ", v)


# ---------------------------------------------------------------------------
# Rule 3: fold_name  (reconciliation key)
# ---------------------------------------------------------------------------

def fold_name(value: str | None) -> str | None:
    """Case- and accent-insensitive key for name matching.

    Mirrors a pt-BR collation at base sensitivity: "São Paulo", "SAO PAULO"
    and "são paulo" fold to the same key.  Punctuation is kept, so
    "Copa Truck" and "Copa-Truck" stay distinct.
    """
    v = normalize_space(value)
    if v is None:
        return None
    # Decompose unicode (e.g. accented chars) then drop combining marks
    v = unicodedata.normalize("NFKD", v)
    v = "".join(c for c in v if not unicodedata.combining(c))
    v = v.casefold()
    return v if v else None


def sort_key(value: str | None) -> tuple[str, str]:
    """Sort key that orders names alphabetically ignoring case and accents.

    The raw value breaks ties so the ordering stays total and deterministic.
    """
    return (fold_name(value) or "", value or "")


# ---------------------------------------------------------------------------
# Rule 4: normalize_state_code
# ---------------------------------------------------------------------------

def normalize_state_code(value: str | None) -> str | None:
    """Return a two-letter upper-case region code (UF), or None."""
    v = trim(value)
    if v is None:
        return None
    v = v.upper()
    return v if _STATE_CODE_RE.match(v) else None


# ---------------------------------------------------------------------------
# Rule 5: parse_iso_date
# ---------------------------------------------------------------------------

def parse_iso_date(value: str | date | None) -> date | None:
    """Parse a strict 'YYYY-MM-DD' calendar date.  Anything else → None."""
    if isinstance(value, datetime):
        return None
    if isinstance(value, date):
        return value
    v = trim(value)
    if v is None or not _ISO_DATE_RE.match(v):
        return None
    try:
        return datetime.strptime(v, "%Y-%m-%d").date()
    except ValueError:
        return None
