"""Shared fixtures for the Baywatch test suite."""

from datetime import datetime

import pytest

from baywatch.engine import Dashboard
from baywatch.models import Record, RecordSet


def make_record(rid, severity="high", start=(10, 0, 0), report=(10, 7, 30), cost=100.0, **kw):
    """Build a Record on 2024-05-01 with start/report given as (h, m, s)."""
    day = (2024, 5, 1)
    return Record(
        id=rid,
        location=kw.pop("location", ("12 Main St", "Springfield")),
        severity=severity,
        est_fire_start_time=datetime(*day, *start) if start is not None else None,
        time_of_report=datetime(*day, *report) if report is not None else None,
        est_cost=cost,
        **kw,
    )


@pytest.fixture
def records():
    return [
        make_record("r1", "high", (10, 0, 0), (10, 7, 30), 100.0, latitude=47.6, longitude=-122.3),
        make_record("r2", "low", (9, 0, 0), (9, 45, 0), 500.0, latitude=47.7, longitude=-122.4),
        make_record("r3", "medium", None, (11, 0, 0), None),
        make_record("r4", "unknown", (12, 30, 0), (12, 0, 0), 250.0),
    ]


@pytest.fixture
def record_set(records):
    return RecordSet(tuple(records))


@pytest.fixture
def dashboard(record_set):
    dash = Dashboard()
    dash.load(record_set)
    return dash
