"""Tests for column derivation, rendering and ordering."""

from datetime import datetime, timedelta, timezone
from itertools import permutations

import pytest

from baywatch.columns import (
    COLUMNS,
    UNRANKED,
    ColumnKey,
    FilterKind,
    column_for,
    compare_delay,
    compare_severity,
    delay_minutes,
    derive_value,
    filter_value,
    render_row,
    sort_records,
)
from baywatch.dsa import merge_sort
from baywatch.errors import MissingField
from baywatch.models import Record
from conftest import make_record


# ============================================================================
# Derived values
# ============================================================================


class TestDeriveValue:

    def test_delay_seven_and_a_half_minutes_floors_to_seven(self):
        r = make_record("a", start=(10, 0, 0), report=(10, 7, 30))
        assert derive_value(r, ColumnKey.EST_FIRE_DELAY_TIME) == 7
        assert column_for("estFireDelayTime").cell(r) == "7 minutes"

    def test_delay_is_absolute_when_report_precedes_start(self):
        r = make_record("a", start=(12, 30, 0), report=(12, 0, 0))
        assert delay_minutes(r) == 30

    def test_delay_under_a_minute_is_zero(self):
        r = make_record("a", start=(10, 0, 0), report=(10, 0, 59))
        assert delay_minutes(r) == 0

    def test_delay_across_timezones(self):
        start = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        report = datetime(2024, 5, 1, 12, 5, tzinfo=timezone(timedelta(hours=2)))
        r = Record(id="a", est_fire_start_time=start, time_of_report=report)
        assert delay_minutes(r) == 5

    def test_missing_timestamp_raises_missing_field(self):
        r = make_record("a", start=None)
        with pytest.raises(MissingField) as exc:
            derive_value(r, "estFireDelayTime")
        assert exc.value.field == "estFireStartTime"
        assert exc.value.record_id == "a"

    def test_cost_sorts_on_raw_number_and_renders_currency(self):
        r = make_record("a", cost=1234.5)
        assert derive_value(r, "estCost") == 1234.5
        assert column_for(ColumnKey.EST_COST).cell(r) == "$1234.50"

    def test_cost_rounds_half_up_to_two_digits(self):
        r = make_record("a", cost=10.125)
        assert column_for(ColumnKey.EST_COST).cell(r) == "$10.13"
        assert column_for(ColumnKey.EST_COST).cell(make_record("b", cost=0.005)) == "$0.01"
        assert column_for(ColumnKey.EST_COST).cell(make_record("c", cost=7.0)) == "$7.00"

    def test_location_joined(self):
        r = make_record("a", location=("1 Elm St", "Shelbyville", "WA"))
        assert column_for("location").cell(r) == "1 Elm St, Shelbyville, WA"

    def test_timestamp_rendering(self):
        r = make_record("a", start=(15, 4, 5))
        assert column_for("estFireStartTime").cell(r) == "05/01/2024, 03:04:05 PM"

    def test_unknown_column(self):
        with pytest.raises(ValueError, match="Unknown column"):
            derive_value(make_record("a"), "address")


class TestCells:

    def test_missing_values_render_placeholder(self):
        r = make_record("a", start=None, cost=None, severity=None)
        row = dict(zip([c.key for c in COLUMNS], render_row(r, placeholder="n/a")))
        assert row[ColumnKey.EST_FIRE_START_TIME] == "n/a"
        assert row[ColumnKey.EST_FIRE_DELAY_TIME] == "n/a"
        assert row[ColumnKey.EST_COST] == "n/a"
        assert row[ColumnKey.SEVERITY] == "n/a"
        assert row[ColumnKey.TIME_OF_REPORT] == "05/01/2024, 10:07:30 AM"

    def test_filter_value_is_raw_and_none_when_missing(self):
        assert filter_value(make_record("a", cost=12.0), "estCost") == 12.0
        assert filter_value(make_record("a", report=None), "estFireDelayTime") is None

    def test_filter_kinds(self):
        kinds = {c.key: c.filter_kind for c in COLUMNS}
        assert kinds[ColumnKey.SEVERITY] is FilterKind.CATEGORICAL
        assert kinds[ColumnKey.LOCATION] is None
        for key in (ColumnKey.EST_FIRE_START_TIME, ColumnKey.TIME_OF_REPORT,
                    ColumnKey.EST_FIRE_DELAY_TIME, ColumnKey.EST_COST):
            assert kinds[key] is FilterKind.RANGE


# ============================================================================
# Comparators
# ============================================================================


class TestCompareSeverity:

    @pytest.mark.parametrize("a,b", list(permutations(["high", "medium", "low"], 2)))
    def test_antisymmetric_for_ranked(self, a, b):
        ra, rb = make_record("a", severity=a), make_record("b", severity=b)
        assert compare_severity(ra, rb) == -compare_severity(rb, ra)
        assert compare_severity(ra, rb) != 0

    @pytest.mark.parametrize("unranked", ["unknown", "", None, "HIGH"])
    def test_unranked_after_every_ranked(self, unranked):
        u = make_record("u", severity=unranked)
        for s in ("high", "medium", "low"):
            assert compare_severity(make_record("r", severity=s), u) < 0
            assert compare_severity(u, make_record("r", severity=s)) > 0

    def test_ties_compare_equal(self):
        assert compare_severity(make_record("a", severity="low"), make_record("b", severity="low")) == 0
        assert compare_severity(make_record("a", severity="x"), make_record("b", severity=None)) == 0

    def test_sort_by_severity(self):
        rows = [make_record(str(i), severity=s) for i, s in enumerate(["low", "high", "medium", "unknown"])]
        out = sort_records(rows, ColumnKey.SEVERITY)
        assert [r.severity for r in out] == ["high", "medium", "low", "unknown"]

    def test_sort_does_not_depend_on_input_order(self):
        for perm in permutations(["low", "high", "medium", "unknown"]):
            rows = [make_record(str(i), severity=s) for i, s in enumerate(perm)]
            assert [r.severity for r in sort_records(rows, "severity")] == ["high", "medium", "low", "unknown"]

    def test_unranked_sentinel(self):
        assert UNRANKED > 3


class TestCompareDelay:

    def test_matches_displayed_value(self, records):
        ranked = [r for r in records if r.est_fire_start_time and r.time_of_report]
        for a in ranked:
            for b in ranked:
                expected = derive_value(a, "estFireDelayTime") - derive_value(b, "estFireDelayTime")
                assert (compare_delay(a, b) > 0) == (expected > 0)
                assert (compare_delay(a, b) == 0) == (expected == 0)

    def test_missing_timestamp_sorts_last_without_raising(self, records):
        out = sort_records(records, ColumnKey.EST_FIRE_DELAY_TIME)
        assert [r.id for r in out] == ["r1", "r4", "r2", "r3"]

    def test_descending_keeps_unranked_last(self, records):
        out = sort_records(records, ColumnKey.EST_FIRE_DELAY_TIME, descending=True)
        assert [r.id for r in out] == ["r2", "r4", "r1", "r3"]

    def test_same_minute_is_a_tie(self):
        a = make_record("a", start=(10, 0, 0), report=(10, 7, 1))
        b = make_record("b", start=(10, 0, 0), report=(10, 7, 59))
        assert compare_delay(a, b) == 0
        assert [r.id for r in sort_records([b, a], "estFireDelayTime")] == ["b", "a"]


class TestSortRecords:

    def test_severity_descending_keeps_unknown_last(self):
        rows = [make_record(str(i), severity=s) for i, s in enumerate(["low", "unknown", "high", "medium"])]
        out = sort_records(rows, "severity", descending=True)
        assert [r.severity for r in out] == ["low", "medium", "high", "unknown"]

    def test_cost_missing_last(self, records):
        out = sort_records(records, "estCost")
        assert [r.id for r in out] == ["r1", "r4", "r2", "r3"]

    def test_input_is_not_mutated(self, records):
        before = list(records)
        sort_records(records, "estCost", descending=True)
        assert records == before

    def test_aware_and_naive_timestamps_sort_together(self, records):
        aware = Record(
            id="utc",
            est_fire_start_time=datetime(2020, 1, 1, 8, 0, tzinfo=timezone.utc),
            time_of_report=datetime(2020, 1, 1, 10, 10, tzinfo=timezone(timedelta(hours=2))),
        )
        assert aware.est_fire_start_time.tzinfo is None
        assert aware.time_of_report.tzinfo is None
        assert delay_minutes(aware) == 10
        out = sort_records(records + [aware], "estFireStartTime")
        assert [r.id for r in out] == ["utc", "r2", "r1", "r4", "r3"]
        out = sort_records(records + [aware], "timeOfReport", descending=True)
        assert out[-1].id == "utc"


class TestMergeSort:

    def test_stable(self):
        pairs = [(1, "a"), (0, "b"), (1, "c"), (0, "d")]
        out = merge_sort(pairs, lambda x, y: x[0] - y[0])
        assert out == [(0, "b"), (0, "d"), (1, "a"), (1, "c")]

    def test_empty_and_single(self):
        assert merge_sort([], lambda x, y: 0) == []
        assert merge_sort([5], lambda x, y: 0) == [5]
