"""Unit tests for race_calendar.models."""

from __future__ import annotations

from datetime import date

import pytest

from race_calendar.models import (
    AppData,
    City,
    Event,
    ModelForecast,
    Vehicle,
    record_type,
)


class TestEventRows:
    def test_from_row_parses_text_date_and_forecast(self):
        row = {
            "id": "E1",
            "championship_id": "C1",
            "city_id": "CT1",
            "date": "2026-06-15",
            "stage": "Etapa 3",
            "member_ids": ["M7"],
            "vehicle_ids": None,
            "model_forecast": [{"model_id": "MD2", "quantity": "3"}],
            "confirmed": True,
        }
        e = Event.from_row(row)
        assert e.date == date(2026, 6, 15)
        assert e.vehicle_ids == ()
        assert e.model_forecast == (ModelForecast("MD2", 3),)

    def test_to_row_uses_lists(self):
        e = Event("E1", "C1", "CT1", date(2026, 6, 15), "Etapa 3", member_ids=["M7"])
        row = e.to_row()
        assert row["member_ids"] == ["M7"]
        assert Event.from_row(row) == e

    def test_bad_date(self):
        with pytest.raises(ValueError):
            Event.from_row({"id": "E1", "championship_id": "C1", "city_id": "CT1", "date": "15/06"})

    def test_lists_coerced_to_tuples(self):
        e = Event("E1", "C1", "CT1", date(2026, 6, 15), "x", member_ids=["M1"])
        assert isinstance(e.member_ids, tuple)
        hash(e)


class TestAppData:
    def test_find_and_label(self, snapshot):
        assert snapshot.find("cities", "CT1") == City("CT1", "Curitiba", "PR")
        assert snapshot.label("championships", "C9") == "Stock Car"
        assert snapshot.label("events", "E1") == "Etapa 3"

    def test_dangling_id_label(self, snapshot):
        assert snapshot.find("members", "M99") is None
        assert snapshot.label("members", "M99") == "N/A"

    def test_unknown_table(self):
        with pytest.raises(ValueError):
            AppData().find("users", "U1")

    def test_record_type(self):
        assert record_type("vehicles") is Vehicle

    def test_vehicle_name(self):
        assert Vehicle("V1", "Caminhão", "ABC1D23", "Scania", "R450").name == "ABC1D23 Scania R450"
