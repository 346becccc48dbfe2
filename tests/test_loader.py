"""Tests for turning uploads / backend responses into records."""

import json
from datetime import datetime

import pandas as pd
import pytest

from baywatch.columns import delay_minutes
from baywatch.loader import load_records, parse_patch, records_from_frame, records_from_payload


CSV_EXPORT = """Incident Number,Location,Severity,Est. Fire Start Time,Time of Report,Estimated Cost,lat,lng
101,"12 Main St, Springfield",HIGH,2024-05-01 10:00:00,2024-05-01 10:07:30,1234.5,47.6,-122.3
102,"9 Oak Ave, Shelbyville",low,,2024-05-01 11:00:00,,,
103,1 Elm St,catastrophic,2024-05-01 12:00:00,2024-05-01 11:30:00,-20,,
"""


class TestLoadCsv:

    @pytest.fixture
    def loaded(self, tmp_path):
        path = tmp_path / "upload.csv"
        path.write_text(CSV_EXPORT, encoding="utf-8")
        return load_records(str(path))

    def test_headers_matched_tolerantly(self, loaded):
        r = loaded.get("101")
        assert r.location == ("12 Main St", "Springfield")
        assert r.severity == "high"
        assert r.est_fire_start_time == datetime(2024, 5, 1, 10, 0, 0)
        assert r.est_cost == 1234.5
        assert (r.latitude, r.longitude) == (47.6, -122.3)
        assert delay_minutes(r) == 7

    def test_blanks_become_none(self, loaded):
        r = loaded.get("102")
        assert r.est_fire_start_time is None
        assert r.est_cost is None
        assert not r.is_geotagged()

    def test_unranked_severity_kept(self, loaded):
        assert loaded.get("103").severity == "catastrophic"

    def test_negative_cost_dropped(self, loaded):
        assert loaded.get("103").est_cost is None

    def test_order_preserved(self, loaded):
        assert loaded.ids() == ["101", "102", "103"]


class TestPayload:

    def test_backend_response(self):
        payload = {"result": [{
            "id": "a",
            "location": ["1 Elm St", "Town"],
            "severity": "low",
            "estFireStartTime": "2024-05-01T10:00:00Z",
            "timeOfReport": "2024-05-01T10:30:00Z",
            "estCost": 12.5,
        }]}
        rs = records_from_payload(payload)
        r = rs.get("a")
        assert r.location == ("1 Elm St", "Town")
        assert r.est_fire_start_time.tzinfo is None
        assert delay_minutes(r) == 30

    def test_epoch_millis(self):
        rs = records_from_payload([{"id": "a", "estFireStartTime": 0, "timeOfReport": 90_000}])
        assert delay_minutes(rs.get("a")) == 1

    def test_ids_default_to_position(self):
        rs = records_from_payload([{"severity": "high"}, {"severity": "low"}])
        assert rs.ids() == ["0", "1"]

    def test_empty_result(self):
        assert len(records_from_payload({"result": []})) == 0

    def test_bad_payload(self):
        with pytest.raises(ValueError):
            records_from_payload({"items": "nope"})

    def test_json_file(self, tmp_path):
        path = tmp_path / "resp.json"
        path.write_text(json.dumps({"result": [{"id": 7, "severity": "medium"}]}), encoding="utf-8")
        assert load_records(str(path)).get("7").severity == "medium"

    def test_no_incident_columns(self):
        with pytest.raises(ValueError, match="No incident columns"):
            records_from_frame(pd.DataFrame([{"foo": 1}]))

    def test_unsupported_extension(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported"):
            load_records(str(tmp_path / "data.txt"))


class TestParsePatch:

    def test_typed_values(self):
        patch = parse_patch(["estCost=99.5", "severity=Medium", "Time of Report=2024-05-01 11:00"])
        assert patch == {
            "est_cost": 99.5,
            "severity": "medium",
            "time_of_report": datetime(2024, 5, 1, 11, 0),
        }

    def test_location_and_clearing(self):
        patch = parse_patch(["location=1 Elm St, Town", "estCost="])
        assert patch == {"location": ("1 Elm St", "Town"), "est_cost": None}

    @pytest.mark.parametrize("pair", ["nope=1", "estCost=abc", "timeOfReport=someday", "severity"])
    def test_rejects(self, pair):
        with pytest.raises(ValueError):
            parse_patch([pair])
