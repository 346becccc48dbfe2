"""
Editable store
==============

The drawer edits one record at a time. Records are immutable, so an edit
builds a new `RecordSet` with the merged record swapped in and every other
record shared, then hands the new set to the listeners (the dashboard), which
replace the set they hold.
"""

from __future__ import annotations
import dataclasses
import logging
from typing import Any, Callable, List, Mapping

from .errors import RecordNotFound
from .models import RECORD_FIELDS, RecordSet

logger = logging.getLogger(__name__)

CommitListener = Callable[[RecordSet, str], None]


class EditableStore:
    """Working copy of the record set that the drawer may change."""

    def __init__(self, record_set: RecordSet) -> None:
        self.record_set = record_set
        self._listeners: List[CommitListener] = []

    def on_commit(self, listener: CommitListener) -> None:
        """Register `listener(new_record_set, touched_record_id)`."""
        self._listeners.append(listener)

    def reset(self, record_set: RecordSet) -> None:
        """Start over from a freshly loaded record set (no listeners fire)."""
        self.record_set = record_set

    def apply_edit(self, record_id: str, patch: Mapping[str, Any]) -> RecordSet:
        """Merge `patch` into one record and commit the new record set.

        Raises RecordNotFound (record set unchanged) when the id is absent,
        ValueError for fields a Record doesn't have.
        """
        if record_id not in self.record_set:
            logger.warning("Edit dropped, record %r not in current record set", record_id)
            raise RecordNotFound(record_id)
        unknown = sorted(set(patch) - set(RECORD_FIELDS))
        if unknown:
            raise ValueError(f"Unknown record field(s): {', '.join(unknown)}")
        merged = dataclasses.replace(self.record_set.get(record_id), **dict(patch))
        return self._commit(self.record_set.replace(record_id, merged), record_id)

    def remove_record(self, record_id: str) -> RecordSet:
        if record_id not in self.record_set:
            logger.warning("Remove dropped, record %r not in current record set", record_id)
            raise RecordNotFound(record_id)
        return self._commit(self.record_set.without(record_id), record_id)

    def _commit(self, new_set: RecordSet, record_id: str) -> RecordSet:
        logger.debug("Committing record set (%d records), touched %r", len(new_set), record_id)
        self.record_set = new_set
        for listener in list(self._listeners):
            listener(new_set, record_id)
        return new_set
