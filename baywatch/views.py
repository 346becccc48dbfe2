"""
Terminal views
==============

Three views over one dashboard. Each subscribes to the selection coordinator
and keeps the last `SelectionState` it was handed; rendering reads only that
state plus the dashboard's current record set.

- TableView:  visible rows, current sort, checkbox column, active row marker
- MapView:    one marker per geotagged record, active marker highlighted
- DrawerView: details of the active record while the drawer is open

Clicks and button presses go through the dashboard, never straight to the
state objects.
"""

from __future__ import annotations
import logging
from typing import Any, List, Mapping, Optional

from .columns import COLUMNS
from .config import DashboardConfig
from .engine import Dashboard
from .errors import NoActiveRecord, RecordNotFound
from .models import Record
from .selection import SelectionState

logger = logging.getLogger(__name__)


class _View:
    def __init__(self, dashboard: Dashboard, config: Optional[DashboardConfig] = None) -> None:
        self.dashboard = dashboard
        self.config = config or DashboardConfig()
        self.state: Optional[SelectionState] = None
        self._unsubscribe = dashboard.coordinator.subscribe(self._on_selection)

    def _on_selection(self, state: SelectionState) -> None:
        self.state = state

    @property
    def active_id(self) -> Optional[str]:
        return self.state.active_record_id if self.state else None

    def close(self) -> None:
        self._unsubscribe()


class TableView(_View):

    def click(self, record_id: str) -> SelectionState:
        return self.dashboard.select_from_table(record_id)

    def render(self, limit: Optional[int] = None) -> str:
        rows = self.dashboard.rows()
        shown = rows if limit is None else rows[:limit]
        header = ["", "", "id"] + [self._header(c) for c in COLUMNS]
        lines = [" | ".join(header)]
        checked = self.dashboard.table.checked_ids
        for r in shown:
            marker = ">" if r.id == self.active_id else " "
            box = "[x]" if r.id in checked else "[ ]"
            cells = [c.cell(r, self.config.placeholder) for c in COLUMNS]
            lines.append(" | ".join([marker, box, r.id] + cells))
        if len(rows) > len(shown):
            lines.append(f"... ({len(rows)} rows, showing {len(shown)})")
        return "\n".join(lines)

    def _header(self, column) -> str:
        sort = self.dashboard.table.sort
        if sort is not None and sort[0] is column.key:
            return column.header + (" (desc)" if sort[1] else " (asc)")
        return column.header


class MapView(_View):

    def click(self, record_id: str) -> SelectionState:
        return self.dashboard.select_from_map(record_id)

    def markers(self) -> List[Record]:
        return [r for r in self.dashboard.record_set if r.is_geotagged()]

    def render(self) -> str:
        markers = self.markers()
        lines = []
        for r in markers:
            pin = "(@)" if r.id == self.active_id else "( )"
            where = ", ".join(r.location)
            lines.append(f"{pin} {r.id} @ {r.latitude:.5f}, {r.longitude:.5f} {r.severity or ''} {where}".rstrip())
        missing = len(self.dashboard.record_set) - len(markers)
        if missing:
            lines.append(f"({missing} records without coordinates)")
        return "\n".join(lines) if lines else "(no markers)"


class DrawerView(_View):
    """Detail drawer. Saving edits routes through the dashboard's store."""

    def __init__(self, dashboard: Dashboard, config: Optional[DashboardConfig] = None) -> None:
        super().__init__(dashboard, config)
        # Last user-visible message (e.g. an edit that couldn't be applied)
        self.notice: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return bool(self.state and self.state.drawer_open)

    def record(self) -> Optional[Record]:
        if not self.is_open:
            return None
        rid = self.active_id
        if rid is None or rid not in self.dashboard.record_set:
            return None
        return self.dashboard.record_set.get(rid)

    def open(self) -> bool:
        """The "open details" button. Ignored when nothing is selected."""
        try:
            self.dashboard.open_drawer()
        except NoActiveRecord:
            logger.debug("Drawer open ignored: nothing selected")
            return False
        return True

    def dismiss(self) -> SelectionState:
        return self.dashboard.close_drawer()

    def save(self, patch: Mapping[str, Any]) -> bool:
        """Apply `patch` to the record shown in the drawer.

        A record that vanished from the record set, or a patch the record
        rejects, leaves everything as is and sets `notice`.
        """
        self.notice = None
        rid = self.active_id
        if rid is None:
            self.notice = "Nothing selected."
            return False
        try:
            self.dashboard.edit(rid, patch)
        except (RecordNotFound, ValueError) as e:
            self.notice = f"Could not save: {e}"
            return False
        self.notice = f"Saved {rid}."
        return True

    def render(self) -> str:
        record = self.record()
        if record is None:
            return ""
        lines = [f"Incident {record.id}"]
        for c in COLUMNS:
            lines.append(f"  {c.header}: {c.cell(record, self.config.placeholder)}")
        if record.is_geotagged():
            lines.append(f"  Coordinates: {record.latitude:.5f}, {record.longitude:.5f}")
        return "\n".join(lines)


def mount_views(dashboard: Dashboard, config: Optional[DashboardConfig] = None):
    """Create and subscribe the table, map and drawer views."""
    return TableView(dashboard, config), MapView(dashboard, config), DrawerView(dashboard, config)
