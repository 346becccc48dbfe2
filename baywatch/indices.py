"""
Indices (precomputed lookup tables)
===================================

Built once per load so table filters don't rescan every record:

- categorical columns: value -> sorted list of row positions
  (`by_category[ColumnKey.SEVERITY]["high"]`)
- range columns: row positions ordered by the column's raw value, searched
  with binary search (`range_positions(idx, ColumnKey.EST_COST, 100, 500)`)

Rows whose value can't be derived are left out of range indices, so a range
filter never matches them.
"""

from __future__ import annotations
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .columns import COLUMNS, ColumnKey, FilterKind, filter_value
from .models import RecordSet


@dataclass
class Indices:
    """Container of precomputed indices for fast filtering."""
    by_category: Dict[ColumnKey, Dict[Any, List[int]]]
    range_values: Dict[ColumnKey, List[Any]]
    range_rows: Dict[ColumnKey, List[int]]


def build_indices(record_set: RecordSet) -> Indices:
    by_category: Dict[ColumnKey, Dict[Any, List[int]]] = {}
    range_values: Dict[ColumnKey, List[Any]] = {}
    range_rows: Dict[ColumnKey, List[int]] = {}

    for col in COLUMNS:
        if col.filter_kind is FilterKind.CATEGORICAL:
            groups: Dict[Any, List[int]] = {}
            for pos, r in enumerate(record_set):
                groups.setdefault(filter_value(r, col.key), []).append(pos)
            by_category[col.key] = groups
        elif col.filter_kind is FilterKind.RANGE:
            pairs = [(filter_value(r, col.key), pos) for pos, r in enumerate(record_set)]
            pairs = sorted((p for p in pairs if p[0] is not None), key=lambda p: p[0])
            range_values[col.key] = [v for v, _ in pairs]
            range_rows[col.key] = [pos for _, pos in pairs]

    return Indices(by_category=by_category, range_values=range_values, range_rows=range_rows)


def category_positions(idx: Indices, key: ColumnKey, values) -> List[int]:
    """Sorted row positions whose value is one of `values`."""
    groups = idx.by_category.get(key)
    if groups is None:
        raise ValueError(f"Column {key.value!r} is not a categorical filter")
    out: List[int] = []
    for v in set(values):
        out.extend(groups.get(v, []))
    out.sort()
    return out


def range_positions(idx: Indices, key: ColumnKey, lo: Optional[Any] = None, hi: Optional[Any] = None) -> List[int]:
    """Sorted row positions with lo <= value <= hi (either bound may be open)."""
    values = idx.range_values.get(key)
    if values is None:
        raise ValueError(f"Column {key.value!r} is not a range filter")
    start = bisect_left(values, lo) if lo is not None else 0
    end = bisect_right(values, hi) if hi is not None else len(values)
    out = idx.range_rows[key][start:end]
    return sorted(out)
