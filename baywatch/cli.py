"""
Baywatch Command Line Interface (CLI)
=====================================

Interactive terminal dashboard:

    python -m baywatch.cli --data "path/to/incidents.csv"

The table, map and drawer are printed views over one dashboard session.
Clicking a row (`select`) previews it; clicking a marker (`click`) opens the
drawer; all three views always show the same active incident.

The CLI never writes to the loaded file. Edits change the in-memory record
set only; use `export` to save them.
"""

from __future__ import annotations
import argparse
import logging
import shlex

from .columns import ColumnKey, FilterKind, column_for
from .config import DashboardConfig
from .engine import Dashboard
from .loader import load_records, parse_field_value, parse_patch
from .views import DrawerView, MapView, TableView, mount_views

logger = logging.getLogger(__name__)

HELP = """
Commands:
  help
  load "<file>"                     (.csv, .xlsx or .json backend response)

  show [n]                          table view (> marks the active row)
  map                               map view   (@ marks the active marker)
  drawer                            detail drawer (if open)
  state                             current selection

  select <id>                       click a table row   (preview, drawer closed)
  click <id>                        click a map marker  (drawer opens)
  open                              open the drawer for the active incident
  close                             close the drawer (incident stays active)

  sort <column> [asc|desc]
  unsort
  filter severity <value> [value ...]
  filter <column> <min|-> <max|->   (range columns; '-' leaves a bound open)
  reset                             clear filters

  check <id> | checkall | checked   row checkboxes (table only)

  edit <field=value> [...]          edit the incident shown in the drawer
  remove <id>

  export csv "<out.csv>" | export json "<out.json>"
  report "<out.docx>"
  quit

Columns: location, severity, estFireStartTime, timeOfReport, estFireDelayTime, estCost
"""

# Commands that don't change what the table shows
_READ_ONLY = ("help", "show", "map", "drawer", "state", "checked", "quit", "exit")


class Session:
    """Dashboard plus its three mounted views."""

    def __init__(self, dashboard: Dashboard, config: DashboardConfig) -> None:
        self.dashboard = dashboard
        self.config = config
        self.table: TableView
        self.map: MapView
        self.drawer: DrawerView
        self.table, self.map, self.drawer = mount_views(dashboard, config)


def main(argv=None):
    """Entry point for the Baywatch CLI.

    1) Load dataset (optional, `load` works inside the REPL too)
    2) Mount table, map and drawer views
    3) Start an interactive REPL
    """
    ap = argparse.ArgumentParser(prog="baywatch")
    ap.add_argument("--data", help="Incident file (.csv, .xlsx, .json)")
    ap.add_argument("--rows", type=int, default=DashboardConfig.preview_rows, help="Rows shown by 'show'")
    ap.add_argument("--placeholder", default=DashboardConfig.placeholder, help="Text for cells that can't be derived")
    ap.add_argument("--log-level", default=DashboardConfig.log_level)
    args = ap.parse_args(argv)

    config = DashboardConfig(placeholder=args.placeholder, preview_rows=args.rows, log_level=args.log_level.upper())
    logging.basicConfig(level=config.log_level, format=config.log_format)

    session = Session(Dashboard(), config)
    if args.data:
        print("Loading dataset...")
        session.dashboard.load(load_records(args.data), source_path=args.data)
        print(f"Loaded {len(session.dashboard.record_set)} incidents. Type 'help' for commands.")

    while True:
        try:
            line = input("baywatch> ")
        except EOFError:
            break
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.lower() in ("quit", "exit"):
            break
        if stripped.split()[0].lower() not in _READ_ONLY:
            session.dashboard.command_log.append(stripped)
        try:
            handle(session, stripped)
        except Exception as e:
            logger.debug("Command failed: %s", stripped, exc_info=True)
            print(f"Error: {e}")


def handle(session: Session, line: str) -> None:
    """Handle one CLI command line."""
    dash = session.dashboard
    parts = shlex.split(line)
    cmd = parts[0].lower()

    if cmd == "help":
        print(HELP)
        return

    if cmd == "load":
        path = parts[1]
        dash.load(load_records(path), source_path=path)
        print(f"Loaded {len(dash.record_set)} incidents. Selection cleared.")
        return

    if cmd == "show":
        n = int(parts[1]) if len(parts) >= 2 else session.config.preview_rows
        print(session.table.render(limit=n))
        return

    if cmd == "map":
        print(session.map.render())
        return

    if cmd == "drawer":
        print(session.drawer.render() or "Drawer is closed.")
        return

    if cmd == "state":
        s = dash.selection
        print(f"{s.phase.value} | active={s.active_record_id} | drawer_open={s.drawer_open}")
        return

    if cmd == "select":
        session.table.click(parts[1])
        print(f"Previewing {parts[1]}.")
        return

    if cmd == "click":
        session.map.click(parts[1])
        print(session.drawer.render())
        return

    if cmd == "open":
        if session.drawer.open():
            print(session.drawer.render())
        else:
            print("Nothing selected.")
        return

    if cmd == "close":
        session.drawer.dismiss()
        print("Drawer closed.")
        return

    if cmd == "sort":
        column = column_for(parts[1])
        order = parts[2].lower() if len(parts) >= 3 and parts[2].lower() in ("asc", "desc") else "asc"
        rows = dash.sort(column.key, descending=(order == "desc"))
        print(f"Sorted {len(rows)} incidents by {column.header} ({order}).")
        print(session.table.render(limit=session.config.preview_rows))
        return

    if cmd == "unsort":
        dash.clear_sort()
        print("Sort cleared.")
        return

    if cmd == "filter":
        column = column_for(parts[1])
        if column.filter_kind is FilterKind.CATEGORICAL:
            size = dash.filter_categorical(column.key, [v.lower() for v in parts[2:]])
        elif column.filter_kind is FilterKind.RANGE:
            lo, hi = _bound(column.key, parts[2]), _bound(column.key, parts[3])
            size = dash.filter_range(column.key, lo, hi)
        else:
            raise ValueError(f"{column.header} can't be filtered")
        print(f"Filtered {column.header}. Size={size}")
        return

    if cmd == "reset":
        dash.reset_filters()
        print(f"Filters cleared. Size={len(dash.table.visible)}")
        return

    if cmd == "check":
        on = dash.toggle_row(parts[1])
        print(f"{parts[1]} {'checked' if on else 'unchecked'}.")
        return

    if cmd == "checkall":
        on = dash.toggle_all()
        print("All visible rows checked." if on else "All visible rows unchecked.")
        return

    if cmd == "checked":
        ids = [r.id for r in dash.checked_records()]
        print(", ".join(ids) if ids else "No rows checked.")
        return

    if cmd == "edit":
        if not session.drawer.is_open:
            print("Open the drawer first (click <id> or open).")
            return
        session.drawer.save(parse_patch(parts[1:]))
        print(session.drawer.notice)
        return

    if cmd == "remove":
        dash.remove(parts[1])
        print(f"Removed {parts[1]}. Size={len(dash.table.visible)}")
        return

    if cmd == "export":
        if len(parts) < 3:
            print('Usage: export csv "out.csv"  OR  export json "out.json"')
            return
        fmt, out_path = parts[1].lower(), parts[2]
        if not dash.table.visible:
            print("Nothing to export: table is empty.")
            return
        if fmt == "csv":
            dash.export_csv(out_path)
        elif fmt == "json":
            dash.export_json(out_path)
        else:
            print("Unknown export format. Use: csv or json")
            return
        print(f"Exported {fmt.upper()} to {out_path}")
        return

    if cmd == "report":
        from .report import ReportConfig, generate_docx_report
        path = parts[1]
        cfg = ReportConfig(
            placeholder=session.config.placeholder,
            source_name=dash.source_path,
            command_log=dash.command_log,
        )
        generate_docx_report(dash.rows(), path, config=cfg, active=dash.active_record())
        print(f"Report written to {path}")
        return

    print("Unknown command. Type 'help'.")


def _bound(key: ColumnKey, raw: str):
    if raw in ("-", ""):
        return None
    if key in (ColumnKey.EST_FIRE_START_TIME, ColumnKey.TIME_OF_REPORT):
        return parse_field_value("time_of_report", raw)
    if key is ColumnKey.EST_FIRE_DELAY_TIME:
        return int(raw)
    return float(raw)


if __name__ == "__main__":
    main()
