"""race_calendar.config

YAML-based defaults for entities minted by a schedule import.

Usage:
    from pathlib import Path
    from race_calendar.config import load_import_defaults

    defaults = load_import_defaults(Path("config/import_defaults.yml"))
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from race_calendar.normalize import normalize_state_code, trim

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

KNOWN_KEYS = frozenset({
    "new_member_role",
    "new_member_active",
    "unknown_state_code",
    "imported_event_confirmed",
})

DB_DSN_ENV = "RACE_CALENDAR_DB_DSN"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ImportDefaultsValidationError(ValueError):
    """Raised when an import defaults file fails schema validation."""


# ---------------------------------------------------------------------------
# ImportDefaults dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImportDefaults:
    """Field values for entities the import has to create from a bare name."""

    new_member_role: str = "Novo"
    new_member_active: bool = True
    unknown_state_code: str = "XX"
    imported_event_confirmed: bool = True


# ---------------------------------------------------------------------------
# Loader + validator
# ---------------------------------------------------------------------------

def load_import_defaults(yaml_path: Path) -> ImportDefaults:
    """Load, validate, and return ImportDefaults from a YAML file.

    Keys absent from the file keep their built-in default.

    Raises:
        ImportDefaultsValidationError: If a key is unknown or has a bad value.
        FileNotFoundError: If the YAML file does not exist.
    """
    raw = yaml_path.read_text(encoding="utf-8")
    data: dict[str, Any] = yaml.safe_load(raw) or {}
    validate_import_defaults(data)
    base = ImportDefaults()
    return ImportDefaults(
        new_member_role=trim(data.get("new_member_role")) or base.new_member_role,
        new_member_active=data.get("new_member_active", base.new_member_active),
        unknown_state_code=data.get("unknown_state_code", base.unknown_state_code),
        imported_event_confirmed=data.get(
            "imported_event_confirmed", base.imported_event_confirmed
        ),
    )


def validate_import_defaults(data: dict[str, Any]) -> None:
    """Raise ImportDefaultsValidationError if data does not match the schema."""
    if not isinstance(data, dict):
        raise ImportDefaultsValidationError("YAML root must be a mapping.")

    unknown = set(data.keys()) - KNOWN_KEYS
    if unknown:
        raise ImportDefaultsValidationError(f"Unknown keys: {sorted(unknown)}")

    role = data.get("new_member_role")
    if role is not None and not (isinstance(role, str) and role.strip()):
        raise ImportDefaultsValidationError("'new_member_role' must be a non-empty string.")

    for key in ("new_member_active", "imported_event_confirmed"):
        if key in data and not isinstance(data[key], bool):
            raise ImportDefaultsValidationError(f"'{key}' must be true or false.")

    if "unknown_state_code" in data:
        code = data["unknown_state_code"]
        if not isinstance(code, str) or normalize_state_code(code) != code:
            raise ImportDefaultsValidationError(
                f"'unknown_state_code' value {code!r} must be two upper-case letters."
            )
