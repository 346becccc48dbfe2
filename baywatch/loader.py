"""
Dataset loader (upload / backend response -> RecordSet)
=======================================================

Turns an uploaded file or a backend response into a `RecordSet`.

Key ideas:
- Column names vary between exports ("estFireStartTime", "Est. Fire Start
  Time", "est_fire_start_time"), so columns are matched after normalizing.
- Conversion helpers (_to_float/_to_str/_to_time/...) turn blanks and junk
  into None instead of failing the whole load. A missing timestamp shows up
  later as a placeholder cell, not as a load error.
- Aware timestamps are converted to host-local naive time so every record
  can be compared with every other.
"""

from __future__ import annotations
import json
import logging
import numbers
import os
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .columns import LOCATION_DELIMITER
from .models import Record, RecordSet

logger = logging.getLogger(__name__)

# Record field -> accepted source column names
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "id": ("id", "incident_id", "Incident Number"),
    "location": ("location", "address"),
    "severity": ("severity",),
    "est_fire_start_time": ("estFireStartTime", "Est. Fire Start Time", "fire_start_time"),
    "time_of_report": ("timeOfReport", "Time of Report", "report_time"),
    "est_cost": ("estCost", "Estimated Cost", "cost"),
    "latitude": ("latitude", "lat"),
    "longitude": ("longitude", "lng", "lon"),
}


def _is_blank(x) -> bool:
    if x is None:
        return True
    if isinstance(x, (list, tuple)):
        return False
    try:
        return bool(pd.isna(x))
    except (TypeError, ValueError):
        return False


def _to_float(x) -> Optional[float]:
    """Convert a cell to float, returning None if missing/invalid."""
    if _is_blank(x): return None
    try: return float(str(x).replace("$", "").replace(",", "")) if isinstance(x, str) else float(x)
    except (TypeError, ValueError): return None


def _to_str(x) -> str:
    if _is_blank(x): return ""
    return str(x).strip()


def _to_id(x, fallback: int) -> str:
    if _is_blank(x) or _to_str(x) == "":
        return str(fallback)
    if isinstance(x, float) and x.is_integer():
        return str(int(x))
    return _to_str(x)


def _to_time(x) -> Optional[datetime]:
    """Convert a cell to a naive local datetime, None if missing/invalid.

    Numbers are read as epoch milliseconds.
    """
    if _is_blank(x): return None
    if isinstance(x, numbers.Number) and not isinstance(x, bool):
        ts = pd.to_datetime(x, unit="ms", utc=True, errors="coerce")
    else:
        ts = pd.to_datetime(x, errors="coerce")
    if pd.isna(ts):
        return None
    out = ts.to_pydatetime()
    if out.tzinfo is not None:
        out = out.astimezone().replace(tzinfo=None)
    return out


def _to_location(x) -> Tuple[str, ...]:
    if _is_blank(x):
        return ()
    if isinstance(x, (list, tuple)):
        return tuple(_to_str(p) for p in x if _to_str(p))
    s = _to_str(x)
    if s.startswith("["):
        try:
            return _to_location(json.loads(s))
        except json.JSONDecodeError:
            pass
    return tuple(p.strip() for p in s.split(LOCATION_DELIMITER.strip()) if p.strip())


def _to_severity(x) -> Optional[str]:
    s = _to_str(x).lower()
    return s or None


def _to_cost(x, record_id: str) -> Optional[float]:
    v = _to_float(x)
    if v is not None and v < 0:
        logger.warning("Ignoring negative estCost %s on record %r", v, record_id)
        return None
    return v


def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())


def _col(df: pd.DataFrame, *names: str) -> Optional[str]:
    cols = list(df.columns)
    for n in names:
        if n in cols:
            return n
    norm_map = {_norm(c): c for c in cols}
    for n in names:
        nn = _norm(n)
        if nn in norm_map:
            return norm_map[nn]
    return None


def records_from_frame(df: pd.DataFrame) -> RecordSet:
    """Build a RecordSet from a DataFrame of incident rows."""
    df = df.rename(columns={c: str(c).strip() for c in df.columns})
    cols = {f: _col(df, f, *aliases) for f, aliases in FIELD_ALIASES.items()}
    if all(cols[f] is None for f in FIELD_ALIASES if f != "id"):
        raise ValueError(f"No incident columns found. Available={list(df.columns)}")
    missing = [f for f, c in cols.items() if c is None]
    if missing:
        logger.info("Columns not present in upload: %s", ", ".join(missing))

    def cell(row, f):
        c = cols[f]
        return row[c] if c is not None else None

    records: List[Record] = []
    for pos, (_, row) in enumerate(df.iterrows()):
        rid = _to_id(cell(row, "id"), pos)
        records.append(Record(
            id=rid,
            location=_to_location(cell(row, "location")),
            severity=_to_severity(cell(row, "severity")),
            est_fire_start_time=_to_time(cell(row, "est_fire_start_time")),
            time_of_report=_to_time(cell(row, "time_of_report")),
            est_cost=_to_cost(cell(row, "est_cost"), rid),
            latitude=_to_float(cell(row, "latitude")),
            longitude=_to_float(cell(row, "longitude")),
        ))
    return RecordSet(tuple(records))


def records_from_payload(payload: Any) -> RecordSet:
    """Backend response `{"result": [...]}` (or a bare list of rows)."""
    rows = payload.get("result") if isinstance(payload, dict) else payload
    if not isinstance(rows, list):
        raise ValueError("Expected a list of incidents under 'result'")
    if not rows:
        return RecordSet()
    return records_from_frame(pd.DataFrame(rows))


def load_records(path: str) -> RecordSet:
    """Load incidents from .csv, .xlsx/.xls or .json."""
    ext = os.path.splitext(path)[1].lower()
    if ext == ".csv":
        df = pd.read_csv(path)
    elif ext in (".xlsx", ".xls"):
        df = pd.read_excel(path, engine="openpyxl" if ext == ".xlsx" else None)
    elif ext == ".json":
        with open(path, encoding="utf-8") as f:
            return records_from_payload(json.load(f))
    else:
        raise ValueError(f"Unsupported file type {ext!r} (use .csv, .xlsx or .json)")
    return records_from_frame(df)


# -----------------------------
# Drawer edits typed at the CLI
# -----------------------------

_FIELD_BY_NORM = {_norm(a): f for f, aliases in FIELD_ALIASES.items() for a in (f,) + aliases}


def parse_field_value(field: str, raw: str) -> Any:
    """Coerce one typed-in value for a Record field. Blank clears the field."""
    raw = raw.strip()
    if field == "id":
        if not raw:
            raise ValueError("id cannot be empty")
        return raw
    if field == "location":
        return _to_location(raw)
    if field == "severity":
        return _to_severity(raw)
    if field in ("est_fire_start_time", "time_of_report"):
        ts = _to_time(raw) if raw else None
        if raw and ts is None:
            raise ValueError(f"Invalid timestamp: {raw!r}")
        return ts
    v = _to_float(raw) if raw else None
    if raw and v is None:
        raise ValueError(f"Invalid number: {raw!r}")
    return v


def parse_patch(pairs: Iterable[str]) -> Dict[str, Any]:
    """Turn `field=value` strings into a typed patch for `EditableStore`.

    Field names accept the same spellings as upload columns (`estCost`,
    `est_cost`, `Estimated Cost`). An empty value clears optional fields.
    """
    patch: Dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Expected field=value, got {pair!r}")
        name, raw = pair.split("=", 1)
        f = _FIELD_BY_NORM.get(_norm(name))
        if f is None:
            raise ValueError(f"Unknown field {name!r}")
        patch[f] = parse_field_value(f, raw)
    return patch
