"""Unit tests for race_calendar.guard: delete-time reference checks."""

from __future__ import annotations

import pytest

from race_calendar.guard import assert_can_delete, can_delete, referencing_events
from race_calendar.shared import ReferentialIntegrityError


class TestCanDelete:
    def test_referenced_championship_blocked(self, snapshot):
        assert can_delete("championship", "C9", snapshot.events) is False

    def test_referenced_city_blocked(self, snapshot):
        assert can_delete("city", "CT1", snapshot.events) is False

    def test_unreferenced_allowed(self, snapshot):
        assert can_delete("championship", "C-unused", snapshot.events) is True

    def test_kind_selects_the_right_field(self, snapshot):
        # "C9" is a championship id, not a city id
        assert can_delete("city", "C9", snapshot.events) is True

    def test_unknown_kind(self, snapshot):
        with pytest.raises(ValueError):
            can_delete("member", "M1", snapshot.events)


class TestAssertCanDelete:
    def test_error_lists_referencing_events(self, snapshot):
        with pytest.raises(ReferentialIntegrityError) as exc_info:
            assert_can_delete("championship", "C9", snapshot.events)
        assert exc_info.value.event_ids == ["E5"]
        assert exc_info.value.kind == "championship"

    def test_referencing_events(self, snapshot):
        assert [e.id for e in referencing_events("city", "CT2", snapshot.events)] == ["E5"]
