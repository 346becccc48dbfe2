"""
Selection coordination
======================

The table, the map and the drawer all show "the active record". Instead of
each view tracking its own clicked row, they share one `SelectionCoordinator`
that owns a single immutable `SelectionState`:

    Idle          no active record, drawer closed
    Previewed(r)  r is highlighted, drawer closed   (table click)
    Detailed(r)   r is highlighted, drawer open     (map click / open button)

Every transition replaces the state object wholesale and then hands the new
object to each subscribed view. If a view triggers another transition while
it is being notified, delivery of the older state stops and restarts with the
newest one, so no view ever applies a state the coordinator has moved past.
"""

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .errors import NoActiveRecord

logger = logging.getLogger(__name__)


class Phase(str, enum.Enum):
    IDLE = "idle"
    PREVIEWED = "previewed"
    DETAILED = "detailed"


@dataclass(frozen=True)
class SelectionState:
    active_record_id: Optional[str] = None
    drawer_open: bool = False

    def __post_init__(self) -> None:
        if self.drawer_open and self.active_record_id is None:
            raise ValueError("drawer cannot be open without an active record")

    @property
    def phase(self) -> Phase:
        if self.active_record_id is None:
            return Phase.IDLE
        return Phase.DETAILED if self.drawer_open else Phase.PREVIEWED

    def is_active(self, record_id: str) -> bool:
        return self.active_record_id is not None and self.active_record_id == record_id


IDLE = SelectionState()

Observer = Callable[[SelectionState], None]


class SelectionCoordinator:
    """Single source of truth for the active record and drawer visibility."""

    def __init__(self) -> None:
        self._state: SelectionState = IDLE
        self._observers: List[Observer] = []
        self._notifying = False

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def active_record_id(self) -> Optional[str]:
        return self._state.active_record_id

    @property
    def drawer_open(self) -> bool:
        return self._state.drawer_open

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register a view. The view immediately receives the current state.

        Returns a function that unsubscribes it.
        """
        self._observers.append(observer)
        observer(self._state)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)
        return unsubscribe

    # ---------------- Transitions ----------------
    def select_from_table(self, record_id: str) -> SelectionState:
        return self._move(SelectionState(record_id, drawer_open=False), "select_from_table")

    def select_from_map(self, record_id: str) -> SelectionState:
        return self._move(SelectionState(record_id, drawer_open=True), "select_from_map")

    def open_drawer(self) -> SelectionState:
        if self._state.active_record_id is None:
            raise NoActiveRecord()
        return self._move(SelectionState(self._state.active_record_id, drawer_open=True), "open_drawer")

    def close_drawer(self) -> SelectionState:
        return self._move(SelectionState(self._state.active_record_id, drawer_open=False), "close_drawer")

    def record_set_replaced(self) -> SelectionState:
        return self._move(IDLE, "record_set_replaced")

    # ---------------- Notification ----------------
    def _move(self, new_state: SelectionState, reason: str) -> SelectionState:
        if new_state == self._state:
            return self._state
        logger.debug("%s: %s -> %s", reason, self._state, new_state)
        self._state = new_state
        if not self._notifying:
            self._notify()
        return new_state

    def _notify(self) -> None:
        """Deliver the newest state to every observer.

        A failing observer does not stop delivery to the rest; the first
        error is re-raised once every observer holds the final state.
        """
        error: Optional[Exception] = None
        self._notifying = True
        try:
            while True:
                state = self._state
                for observer in list(self._observers):
                    if self._state is not state:
                        break
                    try:
                        observer(state)
                    except Exception as e:
                        logger.exception("Observer %r failed on %s", observer, state)
                        if error is None:
                            error = e
                if self._state is state:
                    break
        finally:
            self._notifying = False
        if error is not None:
            raise error
