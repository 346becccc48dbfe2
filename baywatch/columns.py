"""
Column model
============

The incident table has a closed set of columns. Each `Column` carries its own
derivation, rendering and ordering functions, so the table never looks values
up on a record by string name:

    derive(record)  -> raw value (the value sorts and filters operate on)
    render(value)   -> display string
    compare(a, b)   -> negative / zero / positive over two records

Two columns are computed rather than stored:

- estFireDelayTime: |timeOfReport - estFireStartTime| in whole minutes
- estCost: raw number, rendered as "$1234.50"

Records with a missing timestamp or cost raise `MissingField` from `derive`;
`Column.cell` renders them as a placeholder, and every comparator treats them
as "unranked" so they sort after all ranked rows instead of raising.
"""

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .dsa import merge_sort
from .errors import MissingField
from .models import Record

logger = logging.getLogger(__name__)

LOCATION_DELIMITER = ", "
CURRENCY_PREFIX = "$"
TIMESTAMP_FORMAT = "%m/%d/%Y, %I:%M:%S %p"
PLACEHOLDER = "-"

SEVERITY_ORDER = {"high": 1, "medium": 2, "low": 3}
# any severity outside SEVERITY_ORDER ranks after all of them
UNRANKED = 999


class ColumnKey(str, enum.Enum):
    LOCATION = "location"
    SEVERITY = "severity"
    EST_FIRE_START_TIME = "estFireStartTime"
    TIME_OF_REPORT = "timeOfReport"
    EST_FIRE_DELAY_TIME = "estFireDelayTime"
    EST_COST = "estCost"


class FilterKind(str, enum.Enum):
    """How the filter UI should treat a column's raw values."""
    CATEGORICAL = "select"
    RANGE = "range"


# -----------------------------
# Derivations
# -----------------------------

def _start_time(r: Record) -> datetime:
    if r.est_fire_start_time is None:
        raise MissingField("estFireStartTime", r.id)
    return r.est_fire_start_time


def _report_time(r: Record) -> datetime:
    if r.time_of_report is None:
        raise MissingField("timeOfReport", r.id)
    return r.time_of_report


def _cost(r: Record) -> float:
    if r.est_cost is None:
        raise MissingField("estCost", r.id)
    return r.est_cost


def delay_minutes(r: Record) -> int:
    """Absolute delay between fire start and report, in whole minutes.

    Both the delay cell and `compare_delay` go through this function.
    """
    delta = abs(_report_time(r) - _start_time(r))
    millis = delta // timedelta(milliseconds=1)
    return millis // 60_000


def severity_rank(r: Record) -> int:
    return SEVERITY_ORDER.get(r.severity, UNRANKED)


# -----------------------------
# Renderers
# -----------------------------

def _render_location(parts: Tuple[str, ...]) -> str:
    return LOCATION_DELIMITER.join(parts)


def _render_timestamp(ts: datetime) -> str:
    return ts.strftime(TIMESTAMP_FORMAT)


def _render_delay(minutes: int) -> str:
    return f"{minutes} minutes"


def _render_cost(amount: float) -> str:
    # exact halves round up (10.125 -> 10.13), not to even
    cents = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{CURRENCY_PREFIX}{cents}"


# -----------------------------
# Comparators
# -----------------------------

def _value_or_none(derive: Callable[[Record], Any], r: Record) -> Any:
    try:
        return derive(r)
    except MissingField:
        return None


def _compare_values(a: Any, b: Any) -> int:
    """Three-way compare with None after every other value."""
    if a is None and b is None:
        return 0
    if a is None:
        return 1
    if b is None:
        return -1
    return (a > b) - (a < b)


def compare_severity(a: Record, b: Record) -> int:
    """high < medium < low < anything else; equal ranks compare equal."""
    return severity_rank(a) - severity_rank(b)


def compare_delay(a: Record, b: Record) -> int:
    return _compare_values(_value_or_none(delay_minutes, a), _value_or_none(delay_minutes, b))


def _compare_by(derive: Callable[[Record], Any]) -> Callable[[Record, Record], int]:
    def compare(a: Record, b: Record) -> int:
        return _compare_values(_value_or_none(derive, a), _value_or_none(derive, b))
    return compare


def _missing_by(derive: Callable[[Record], Any]) -> Callable[[Record], bool]:
    return lambda r: _value_or_none(derive, r) is None


# -----------------------------
# Column descriptors
# -----------------------------

@dataclass(frozen=True)
class Column:
    key: ColumnKey
    header: str
    derive: Callable[[Record], Any]
    render: Callable[[Any], str]
    compare: Optional[Callable[[Record, Record], int]] = None
    filter_kind: Optional[FilterKind] = None
    unranked: Callable[[Record], bool] = lambda r: False

    @property
    def sortable(self) -> bool:
        return self.compare is not None

    def cell(self, record: Record, placeholder: str = PLACEHOLDER) -> str:
        """Rendered cell text; a placeholder when the value can't be derived."""
        try:
            value = self.derive(record)
        except MissingField as e:
            logger.debug("Placeholder cell for %s: %s", self.key.value, e)
            return placeholder
        if value is None:
            return placeholder
        return self.render(value)


COLUMNS: Tuple[Column, ...] = (
    Column(
        key=ColumnKey.LOCATION,
        header="Location",
        derive=lambda r: r.location,
        render=_render_location,
        compare=_compare_by(lambda r: _render_location(r.location)),
    ),
    Column(
        key=ColumnKey.SEVERITY,
        header="Severity",
        derive=lambda r: r.severity,
        render=str,
        compare=compare_severity,
        filter_kind=FilterKind.CATEGORICAL,
        unranked=lambda r: severity_rank(r) == UNRANKED,
    ),
    Column(
        key=ColumnKey.EST_FIRE_START_TIME,
        header="Est. Fire Start Time",
        derive=_start_time,
        render=_render_timestamp,
        compare=_compare_by(_start_time),
        filter_kind=FilterKind.RANGE,
        unranked=_missing_by(_start_time),
    ),
    Column(
        key=ColumnKey.TIME_OF_REPORT,
        header="Time of Report",
        derive=_report_time,
        render=_render_timestamp,
        compare=_compare_by(_report_time),
        filter_kind=FilterKind.RANGE,
        unranked=_missing_by(_report_time),
    ),
    Column(
        key=ColumnKey.EST_FIRE_DELAY_TIME,
        header="Estimated Fire Delay Time",
        derive=delay_minutes,
        render=_render_delay,
        compare=compare_delay,
        filter_kind=FilterKind.RANGE,
        unranked=_missing_by(delay_minutes),
    ),
    Column(
        key=ColumnKey.EST_COST,
        header="Estimated Cost",
        derive=_cost,
        render=_render_cost,
        compare=_compare_by(_cost),
        filter_kind=FilterKind.RANGE,
        unranked=_missing_by(_cost),
    ),
)

_BY_KEY: Dict[ColumnKey, Column] = {c.key: c for c in COLUMNS}


def column_for(key: Union[ColumnKey, str]) -> Column:
    """Resolve a column by key. Raises ValueError for unknown keys."""
    try:
        return _BY_KEY[ColumnKey(key)]
    except ValueError:
        keys = ", ".join(k.value for k in ColumnKey)
        raise ValueError(f"Unknown column {key!r}. Columns: {keys}") from None


def derive_value(record: Record, key: Union[ColumnKey, str]) -> Any:
    """Raw derived value for one cell. May raise MissingField."""
    return column_for(key).derive(record)


def filter_value(record: Record, key: Union[ColumnKey, str]) -> Any:
    """The value filters operate on; None when it can't be derived."""
    return _value_or_none(column_for(key).derive, record)


def render_row(record: Record, placeholder: str = PLACEHOLDER) -> List[str]:
    return [c.cell(record, placeholder) for c in COLUMNS]


def sort_records(records: Sequence[Record], key: Union[ColumnKey, str], descending: bool = False) -> List[Record]:
    """Stable sort by one column.

    Unranked rows (missing values, unknown severities) stay last in both
    directions; only the ranked rows are reversed for a descending sort.
    """
    column = column_for(key)
    if not column.sortable:
        raise ValueError(f"Column {column.key.value!r} is not sortable")
    if not descending:
        return merge_sort(records, column.compare)
    ranked = [r for r in records if not column.unranked(r)]
    rest = [r for r in records if column.unranked(r)]
    return merge_sort(ranked, lambda a, b: column.compare(b, a)) + rest
