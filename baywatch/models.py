"""
Data model (Record, RecordSet)
==============================

Each incident row from an upload or backend response becomes a `Record`.
Records are immutable (`frozen=True`): the drawer never edits a record in
place, it asks the store for a new `RecordSet` with one record swapped out.

A `RecordSet` is the ordered collection for one load plus an id -> position
lookup, so views can resolve the active record id in O(1).
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import RecordNotFound

SEVERITIES = ("high", "medium", "low")


@dataclass(frozen=True)
class Record:
    """One fire incident."""
    id: str
    location: Tuple[str, ...] = ()
    severity: Optional[str] = None
    est_fire_start_time: Optional[datetime] = None
    time_of_report: Optional[datetime] = None
    # fractional currency units, never negative
    est_cost: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def __post_init__(self) -> None:
        if not isinstance(self.location, tuple):
            object.__setattr__(self, "location", tuple(self.location))
        for name in ("est_fire_start_time", "time_of_report"):
            ts = getattr(self, name)
            if ts is not None and ts.tzinfo is not None:
                # host-local naive time, so every record compares with every other
                object.__setattr__(self, name, ts.astimezone().replace(tzinfo=None))
        if self.est_cost is not None and self.est_cost < 0:
            raise ValueError(f"est_cost must be non-negative, got {self.est_cost}")

    def is_geotagged(self) -> bool:
        return self.latitude is not None and self.longitude is not None


RECORD_FIELDS = tuple(f.name for f in fields(Record))


@dataclass(frozen=True)
class RecordSet:
    """Ordered, id-indexed records from one load.

    Replacing a record returns a new RecordSet; untouched records are shared
    between the old and the new set.
    """
    records: Tuple[Record, ...] = ()
    _positions: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.records, tuple):
            object.__setattr__(self, "records", tuple(self.records))
        positions: Dict[str, int] = {}
        for i, r in enumerate(self.records):
            if r.id in positions:
                raise ValueError(f"Duplicate record id: {r.id!r}")
            positions[r.id] = i
        object.__setattr__(self, "_positions", positions)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._positions

    def ids(self) -> List[str]:
        return [r.id for r in self.records]

    def position(self, record_id: str) -> int:
        try:
            return self._positions[record_id]
        except KeyError:
            raise RecordNotFound(record_id) from None

    def get(self, record_id: str) -> Record:
        return self.records[self.position(record_id)]

    def replace(self, record_id: str, record: Record) -> "RecordSet":
        i = self.position(record_id)
        return RecordSet(self.records[:i] + (record,) + self.records[i + 1:])

    def without(self, record_id: str) -> "RecordSet":
        i = self.position(record_id)
        return RecordSet(self.records[:i] + self.records[i + 1:])
