"""
Error types
===========

Every failure in the dashboard core is recoverable. Core operations raise one
of these and the calling view decides the fallback:

- MissingField   -> render a placeholder cell
- RecordNotFound -> keep the record set as is, show a notice
- NoActiveRecord -> ignore the request
"""


class BaywatchError(Exception):
    """Base class for dashboard errors."""


class MissingField(BaywatchError):
    """A value needed for a derived column is absent on the record."""

    def __init__(self, field: str, record_id: str = None) -> None:
        self.field = field
        self.record_id = record_id
        where = f" on record {record_id!r}" if record_id is not None else ""
        super().__init__(f"Missing field {field!r}{where}")


class RecordNotFound(BaywatchError, KeyError):
    """The requested record id is not part of the current record set."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(record_id)

    def __str__(self) -> str:
        return f"Record not found: {self.record_id!r}"


class NoActiveRecord(BaywatchError):
    """The drawer was asked to open while nothing is selected."""

    def __init__(self) -> None:
        super().__init__("No active record to open in the drawer")
