"""Unit tests for race_calendar.raw_records: extractor output boundary."""

from __future__ import annotations

import json
from datetime import date

import pytest

from race_calendar.raw_records import load_raw_records, parse_raw_record
from race_calendar.shared import RunCounters, ValidationError

GOOD = {
    "championshipName": " Copa  Truck ",
    "stageName": "Etapa 1",
    "date": "2026-06-15",
    "cityName": "Cascavel",
    "stateCode": "pr",
    "memberNames": ["João Silva", " Ana Souza "],
}


class TestParseRawRecord:
    def test_valid_record(self):
        rec = parse_raw_record(GOOD, 0)
        assert rec.championship_name == "Copa Truck"
        assert rec.date == date(2026, 6, 15)
        assert rec.state_code == "PR"
        assert rec.member_names == ("João Silva", "Ana Souza")

    @pytest.mark.parametrize("key", ["championshipName", "stageName", "date", "cityName"])
    def test_missing_required_field(self, key):
        data = {k: v for k, v in GOOD.items() if k != key}
        with pytest.raises(ValidationError) as exc_info:
            parse_raw_record(data, 3)
        assert exc_info.value.record_index == 3
        assert exc_info.value.field == key

    def test_blank_city_rejected(self):
        with pytest.raises(ValidationError):
            parse_raw_record({**GOOD, "cityName": "   "}, 0)

    def test_malformed_date(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_raw_record({**GOOD, "date": "June 15"}, 2)
        assert "record 2" in str(exc_info.value)

    def test_yaml_native_date_accepted(self):
        assert parse_raw_record({**GOOD, "date": date(2026, 6, 15)}, 0).date == date(2026, 6, 15)

    def test_missing_optional_fields(self):
        data = {k: v for k, v in GOOD.items() if k not in ("stateCode", "memberNames")}
        rec = parse_raw_record(data, 0)
        assert rec.state_code is None
        assert rec.member_names == ()

    def test_malformed_state_warns_and_is_dropped(self):
        ctrs = RunCounters()
        rec = parse_raw_record({**GOOD, "stateCode": "Paraná"}, 4, ctrs)
        assert rec.state_code is None
        assert ctrs.warnings == ["record 4: ignored malformed stateCode 'Paraná'"]

    def test_member_names_must_be_list(self):
        with pytest.raises(ValidationError):
            parse_raw_record({**GOOD, "memberNames": "João Silva"}, 0)

    def test_member_names_tuple_accepted(self):
        rec = parse_raw_record({**GOOD, "memberNames": ("Ana Souza", "João Silva")}, 0)
        assert rec.member_names == ("Ana Souza", "João Silva")

    def test_member_names_bytes_rejected(self):
        with pytest.raises(ValidationError):
            parse_raw_record({**GOOD, "memberNames": b"Ana"}, 0)

    def test_non_string_member_name_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_raw_record({**GOOD, "memberNames": ["Ana Souza", 123]}, 5)
        assert exc_info.value.record_index == 5
        assert exc_info.value.field == "memberNames"


class TestLoadRawRecords:
    def test_json_file(self, tmp_path):
        p = tmp_path / "records.json"
        p.write_text(json.dumps([GOOD]), encoding="utf-8")
        assert load_raw_records(p) == [GOOD]

    def test_yaml_file(self, tmp_path):
        p = tmp_path / "records.yml"
        p.write_text(
            "- championshipName: Copa Truck\n"
            "  stageName: Etapa 1\n"
            "  date: 2026-06-15\n"
            "  cityName: Cascavel\n",
            encoding="utf-8",
        )
        (data,) = load_raw_records(p)
        assert data["date"] == date(2026, 6, 15)
        assert parse_raw_record(data, 0).city_name == "Cascavel"

    def test_empty_file(self, tmp_path):
        p = tmp_path / "empty.json"
        p.write_text("", encoding="utf-8")
        assert load_raw_records(p) == []

    def test_non_list_rejected(self, tmp_path):
        p = tmp_path / "obj.json"
        p.write_text(json.dumps(GOOD), encoding="utf-8")
        with pytest.raises(ValidationError):
            load_raw_records(p)

    def test_non_mapping_item_rejected(self, tmp_path):
        p = tmp_path / "bad.json"
        p.write_text(json.dumps([GOOD, "oops"]), encoding="utf-8")
        with pytest.raises(ValidationError) as exc_info:
            load_raw_records(p)
        assert exc_info.value.record_index == 1
