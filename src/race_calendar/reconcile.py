"""race_calendar.reconcile

Free-text name reconciliation for championships, cities and members.

Resolution order for a raw name:
  1. Fold the name (trim, collapse spaces, drop case and accents).
  2. Existing entity in the snapshot directory      → matched_existing
  3. Entity already minted earlier in this batch     → matched_batch
  4. Otherwise mint a new entity with import defaults → created

The batch-local directory is shared by every record of one import run, so a
name seen twice in the batch is only ever created once.  First occurrence
wins as the canonical spelling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal

from race_calendar.config import ImportDefaults
from race_calendar.directory import EntityDirectory
from race_calendar.models import AppData, Championship, City, Member, new_id
from race_calendar.normalize import fold_name, normalize_space
from race_calendar.shared import RunCounters, ValidationError

log = logging.getLogger(__name__)

EntityKind = Literal["championship", "city", "member"]

KINDS: tuple[EntityKind, ...] = ("championship", "city", "member")


@dataclass(frozen=True)
class Resolution:
    id: str
    is_new: bool
    outcome: str  # matched_existing | matched_batch | created


# ---------------------------------------------------------------------------
# Entity minting
# ---------------------------------------------------------------------------

def _mint(
    kind: EntityKind,
    name: str,
    entity_id: str,
    state_code: str | None,
    defaults: ImportDefaults,
) -> Any:
    if kind == "championship":
        return Championship(id=entity_id, name=name)
    if kind == "city":
        return City(id=entity_id, name=name, state=state_code or defaults.unknown_state_code)
    if kind == "member":
        return Member(
            id=entity_id,
            name=name,
            role=defaults.new_member_role,
            active=defaults.new_member_active,
        )
    raise ValueError(f"Invalid entity kind '{kind}'. Must be one of {list(KINDS)}.")


# ---------------------------------------------------------------------------
# Single-name resolution
# ---------------------------------------------------------------------------

def resolve(
    kind: EntityKind,
    raw_name: str | None,
    existing: EntityDirectory[Any],
    batch_local: EntityDirectory[Any],
    *,
    state_code: str | None = None,
    defaults: ImportDefaults | None = None,
    id_factory: Callable[[], str] = new_id,
) -> Resolution:
    """Resolve ``raw_name`` to an id, minting a new entity when needed.

    ``batch_local`` is mutated: newly minted entities are appended to it.

    Raises:
        ValidationError: If the name is blank after normalization.
    """
    name = normalize_space(raw_name)
    if fold_name(name) is None:
        raise ValidationError(f"blank {kind} name", field=kind)

    hit = existing.lookup(name)
    if hit is not None:
        return Resolution(hit.id, False, "matched_existing")

    hit = batch_local.lookup(name)
    if hit is not None:
        return Resolution(hit.id, False, "matched_batch")

    entity = _mint(kind, name, id_factory(), state_code, defaults or ImportDefaults())
    batch_local.add(entity)
    log.debug("minted %s %s for %r", kind, entity.id, name)
    return Resolution(entity.id, True, "created")


# ---------------------------------------------------------------------------
# Engine bound to one snapshot + one batch
# ---------------------------------------------------------------------------

class ReconciliationEngine:
    """Holds the snapshot directories and the batch-local new entities."""

    def __init__(
        self,
        snapshot: AppData,
        defaults: ImportDefaults | None = None,
        id_factory: Callable[[], str] = new_id,
        counters: RunCounters | None = None,
    ) -> None:
        self._defaults = defaults or ImportDefaults()
        self._id_factory = id_factory
        self._counters = counters
        self._existing: dict[str, EntityDirectory[Any]] = {
            "championship": EntityDirectory.build(snapshot.championships),
            "city": EntityDirectory.build(snapshot.cities),
            "member": EntityDirectory.build(snapshot.members),
        }
        self._minted: dict[str, EntityDirectory[Any]] = {k: EntityDirectory() for k in KINDS}

    def resolve(
        self,
        kind: EntityKind,
        raw_name: str | None,
        state_code: str | None = None,
    ) -> Resolution:
        if kind not in self._existing:
            raise ValueError(f"Invalid entity kind '{kind}'. Must be one of {list(KINDS)}.")
        result = resolve(
            kind,
            raw_name,
            self._existing[kind],
            self._minted[kind],
            state_code=state_code,
            defaults=self._defaults,
            id_factory=self._id_factory,
        )
        if self._counters is not None:
            self._counters.record_resolution(kind, result.outcome)
        return result

    @property
    def new_championships(self) -> list[Championship]:
        return list(self._minted["championship"])

    @property
    def new_cities(self) -> list[City]:
        return list(self._minted["city"])

    @property
    def new_members(self) -> list[Member]:
        return list(self._minted["member"])
