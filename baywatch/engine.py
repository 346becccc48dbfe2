"""
Dashboard (application shell)
=============================

The dashboard owns everything the three views share:

1) record_set   -> the records of the current load (immutable RecordSet)
2) coordinator  -> which record is active, is the drawer open
3) store        -> drawer edits, committed back as a new RecordSet
4) table        -> table-only state: visible rows, sort, checked rows

Views only read these and call the operations below; none of them mutates a
RecordSet or a SelectionState directly.

A new load resets the selection to Idle. A drawer edit resets it only when
the edited (or removed) record is the active one.
"""

from __future__ import annotations
import csv
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple, Union

from .columns import ColumnKey, FilterKind, column_for, delay_minutes, sort_records
from .dsa import intersect_sorted
from .errors import MissingField
from .indices import Indices, build_indices, category_positions, range_positions
from .models import Record, RecordSet
from .selection import SelectionCoordinator, SelectionState
from .store import EditableStore

logger = logging.getLogger(__name__)

EXPORT_FIELDS = [
    "id", "location", "severity", "estFireStartTime", "timeOfReport",
    "estFireDelayTime", "estCost", "latitude", "longitude",
]


@dataclass
class TableState:
    """Table-only view state (never shared with the map or drawer)."""
    visible: List[int]
    sort: Optional[Tuple[ColumnKey, bool]] = None
    checked_ids: Set[str] = field(default_factory=set)


@dataclass
class Dashboard:
    """One dashboard session over one record set at a time."""
    record_set: RecordSet = field(default_factory=RecordSet)
    source_path: Optional[str] = None
    # Commands that changed the table (for reproducibility in reports)
    command_log: List[str] = field(default_factory=list)
    coordinator: SelectionCoordinator = field(default_factory=SelectionCoordinator)
    store: EditableStore = field(init=False)
    idx: Indices = field(init=False)
    table: TableState = field(init=False)

    # Active filters as (kind, column, args); re-applied after every commit
    _filters: List[Tuple[str, ColumnKey, Tuple[Any, ...]]] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self.store = EditableStore(self.record_set)
        self.store.on_commit(self._on_commit)
        self.idx = build_indices(self.record_set)
        self.table = TableState(visible=list(range(len(self.record_set))))

    # ---------------- Loading ----------------
    def load(self, record_set: RecordSet, source_path: Optional[str] = None) -> None:
        """Replace the record set wholesale (new upload/response)."""
        logger.info("Loaded %d records%s", len(record_set), f" from {source_path}" if source_path else "")
        self.record_set = record_set
        self.source_path = source_path
        self.store.reset(record_set)
        self.idx = build_indices(record_set)
        self._filters.clear()
        self.table = TableState(visible=list(range(len(record_set))))
        # a previously active id may not exist in the new set
        self.coordinator.record_set_replaced()

    def _on_commit(self, new_set: RecordSet, touched_id: str) -> None:
        self.record_set = new_set
        self.idx = build_indices(new_set)
        self.table.checked_ids &= set(new_set.ids())
        self._apply_filters()
        if self.coordinator.active_record_id == touched_id:
            self.coordinator.record_set_replaced()

    # ---------------- Table rows ----------------
    def rows(self) -> List[Record]:
        """Visible records, in the current sort order."""
        rows = [self.record_set.records[i] for i in self.table.visible]
        if self.table.sort is not None:
            key, descending = self.table.sort
            rows = sort_records(rows, key, descending=descending)
        return rows

    def sort(self, key: Union[ColumnKey, str], descending: bool = False) -> List[Record]:
        column = column_for(key)
        if not column.sortable:
            raise ValueError(f"Column {column.key.value!r} is not sortable")
        self.table.sort = (column.key, descending)
        return self.rows()

    def clear_sort(self) -> None:
        self.table.sort = None

    # ---------------- Filters ----------------
    def filter_categorical(self, key: Union[ColumnKey, str], values) -> int:
        """Keep rows whose value is one of `values`. Returns visible count."""
        column = column_for(key)
        if column.filter_kind is not FilterKind.CATEGORICAL:
            raise ValueError(f"Column {column.key.value!r} has no categorical filter")
        self._filters.append(("category", column.key, tuple(values)))
        self._apply_filters()
        return len(self.table.visible)

    def filter_range(self, key: Union[ColumnKey, str], lo: Any = None, hi: Any = None) -> int:
        """Keep rows with lo <= value <= hi. Returns visible count."""
        column = column_for(key)
        if column.filter_kind is not FilterKind.RANGE:
            raise ValueError(f"Column {column.key.value!r} has no range filter")
        self._filters.append(("range", column.key, (lo, hi)))
        self._apply_filters()
        return len(self.table.visible)

    def reset_filters(self) -> None:
        self._filters.clear()
        self._apply_filters()

    def _apply_filters(self) -> None:
        visible = list(range(len(self.record_set)))
        for kind, key, args in self._filters:
            if kind == "category":
                ids = category_positions(self.idx, key, args)
            else:
                ids = range_positions(self.idx, key, *args)
            visible = intersect_sorted(visible, ids)
        self.table.visible = visible

    # ---------------- Row checkboxes (table only) ----------------
    def toggle_row(self, record_id: str) -> bool:
        """Flip one row's checkbox. Returns the new checked flag."""
        self.record_set.position(record_id)
        checked = self.table.checked_ids
        if record_id in checked:
            checked.discard(record_id)
            return False
        checked.add(record_id)
        return True

    def toggle_all(self) -> bool:
        """Check every visible row, or uncheck them if all are checked.

        Returns whether the visible rows end up checked; with no visible rows
        nothing changes and the result is False.
        """
        visible_ids = {r.id for r in self.rows()}
        if not visible_ids:
            return False
        if visible_ids <= self.table.checked_ids:
            self.table.checked_ids -= visible_ids
            return False
        self.table.checked_ids |= visible_ids
        return True

    def checked_records(self) -> List[Record]:
        return [r for r in self.rows() if r.id in self.table.checked_ids]

    # ---------------- Selection ----------------
    @property
    def selection(self) -> SelectionState:
        return self.coordinator.state

    def select_from_table(self, record_id: str) -> SelectionState:
        self.record_set.position(record_id)
        return self.coordinator.select_from_table(record_id)

    def select_from_map(self, record_id: str) -> SelectionState:
        self.record_set.position(record_id)
        return self.coordinator.select_from_map(record_id)

    def open_drawer(self) -> SelectionState:
        return self.coordinator.open_drawer()

    def close_drawer(self) -> SelectionState:
        return self.coordinator.close_drawer()

    def active_record(self) -> Optional[Record]:
        rid = self.coordinator.active_record_id
        if rid is None or rid not in self.record_set:
            return None
        return self.record_set.get(rid)

    # ---------------- Edits ----------------
    def edit(self, record_id: str, patch: Mapping[str, Any]) -> RecordSet:
        return self.store.apply_edit(record_id, patch)

    def remove(self, record_id: str) -> RecordSet:
        return self.store.remove_record(record_id)

    # ---------------- Export (current table) ----------------
    def export_csv(self, path: str) -> None:
        rows = [_export_row(r) for r in self.rows()]
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=EXPORT_FIELDS)
            w.writeheader()
            for row in rows:
                row["location"] = json.dumps(row["location"])
                w.writerow(row)

    def export_json(self, path: str) -> None:
        """Export the current table as a backend-style `{"result": [...]}` payload."""
        payload = {"result": [_export_row(r) for r in self.rows()]}
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)


def _export_row(r: Record) -> Dict[str, Any]:
    try:
        delay = delay_minutes(r)
    except MissingField:
        delay = None
    return {
        "id": r.id,
        "location": list(r.location),
        "severity": r.severity,
        "estFireStartTime": r.est_fire_start_time.isoformat() if r.est_fire_start_time else None,
        "timeOfReport": r.time_of_report.isoformat() if r.time_of_report else None,
        "estFireDelayTime": delay,
        "estCost": r.est_cost,
        "latitude": r.latitude,
        "longitude": r.longitude,
    }
