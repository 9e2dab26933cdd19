"""
Timeline Engine Module
======================

Dual-mode drag/click state machine producing a committed time window.

States:
    Idle
    Dragging(handle)        handle in {single, start, end}

Mode (orthogonal to drag state):
    SINGLE  -> window [slot(handle), slot(handle) + 1h)
    RANGE   -> window [slot(start), slot(end))

Clamp policy (violations are corrected, never rejected):
    single  in [0, N-1]
    start   in [0, end-1]
    end     in [start+1, N-1]

Design:
- Explicit tagged state values, no ambient booleans
- Both modes keep their last handle positions across switches
- Every committed change notifies subscribers synchronously
- Pure in-memory index arithmetic (safe to call from UI/control threads)
"""

import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, List, Union

from isotherm_timeline.slots import HOURS_PER_DAY, TimelineWindow

logger = logging.getLogger(__name__)

RANGE_WIDTH = HOURS_PER_DAY


class Mode(str, Enum):
    """Selection mode."""
    SINGLE = "single"
    RANGE = "range"


class Handle(str, Enum):
    """Draggable control point."""
    SINGLE = "single"
    RANGE_START = "start"
    RANGE_END = "end"


_MODE_HANDLES = {
    Mode.SINGLE: {Handle.SINGLE},
    Mode.RANGE: {Handle.RANGE_START, Handle.RANGE_END},
}


@dataclass(frozen=True)
class Idle:
    """No active drag."""
    pass


@dataclass(frozen=True)
class Dragging:
    """A drag bound to one handle."""
    handle: Handle


DragState = Union[Idle, Dragging]
IDLE = Idle()


@dataclass(frozen=True)
class SingleSelection:
    handle: int


@dataclass(frozen=True)
class RangeSelection:
    """Range handles; start < end always."""
    start: int
    end: int

    def __post_init__(self):
        if not self.start < self.end:
            raise ValueError(f"Range start must be < end, got {self.start} >= {self.end}")

    @property
    def hours(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class CommittedWindow:
    """Resolved (start, end, mode) emitted on every committed change."""
    start: datetime
    end: datetime
    mode: Mode

    @property
    def duration_hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600

    def to_dict(self) -> dict:
        return {
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'mode': self.mode.value,
        }


TimelineSubscriber = Callable[[datetime, datetime, Mode], None]


class TimelineEngine:
    """
    Interactive timeline state machine.

    Usage:
        engine = TimelineEngine()
        engine.subscribe(lambda start, end, mode: print(start, end, mode))

        engine.set_mode(Mode.RANGE)
        engine.pointer_down(Handle.RANGE_END)
        engine.pointer_move(0.75)     # emits on change
        engine.pointer_up()

        engine.click(0.1)             # moves the nearer range handle
        engine.go_to_now()

    Thread Safety:
        Single writer by contract. An RLock serializes state changes and
        emissions so subscribers observe commits in order; subscribers may
        call back into the engine.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        window: TimelineWindow | None = None,
    ):
        """
        Args:
            clock: Local wall-clock source (naive datetimes)
            window: Slot window (default: 30 days around clock())
        """
        self.clock = clock
        now = clock()
        self.window = window or TimelineWindow.around(now)

        today = self.window.today_index
        self._single = SingleSelection(self.window.now_index(now))
        self._range = RangeSelection(today, min(today + RANGE_WIDTH, self.window.last_index))
        self._mode = Mode.SINGLE
        self._drag: DragState = IDLE

        self._subscribers: List[TimelineSubscriber] = []
        self._lock = threading.RLock()

    # ─────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def drag_state(self) -> DragState:
        return self._drag

    @property
    def single(self) -> SingleSelection:
        return self._single

    @property
    def range(self) -> RangeSelection:
        return self._range

    @property
    def selection(self) -> Union[SingleSelection, RangeSelection]:
        """Selection of the active mode."""
        return self._single if self._mode is Mode.SINGLE else self._range

    def resolved(self) -> CommittedWindow:
        """Window for the current selection."""
        with self._lock:
            if self._mode is Mode.SINGLE:
                start = self.window.slot_time(self._single.handle)
                return CommittedWindow(start, start + timedelta(hours=1), Mode.SINGLE)
            return CommittedWindow(
                self.window.slot_time(self._range.start),
                self.window.slot_time(self._range.end),
                Mode.RANGE,
            )

    def describe(self) -> str:
        """Display text for the current selection."""
        fmt = self.window.format_slot
        with self._lock:
            if self._mode is Mode.SINGLE:
                return f"Selected: {fmt(self._single.handle)}"
            hours = self._range.hours
            days = math.floor(hours / HOURS_PER_DAY * 10 + 0.5) / 10
            return (
                f"Range: {fmt(self._range.start)} -> {fmt(self._range.end)} "
                f"({hours} hours, {days:g} days)"
            )

    # ─────────────────────────────────────────────────────────────────────
    # Pointer input
    # ─────────────────────────────────────────────────────────────────────

    def pointer_down(self, handle: Handle | str) -> None:
        """
        Idle/Dragging -> Dragging(handle). A new press rebinds the drag.

        Raises:
            ValueError: If the handle does not belong to the current mode
        """
        handle = Handle(handle)
        with self._lock:
            if handle not in _MODE_HANDLES[self._mode]:
                raise ValueError(
                    f"Handle '{handle.value}' is not available in {self._mode.value} mode"
                )
            self._drag = Dragging(handle)

    def pointer_move(self, fraction: float) -> bool:
        """
        Move the bound handle to the slot under `fraction` (drag only).

        Returns:
            True if a handle changed (and a commit was emitted)
        """
        with self._lock:
            if not isinstance(self._drag, Dragging):
                return False
            index = self.window.index_at(fraction)
            return self._move(self._drag.handle, index)

    def pointer_up(self) -> None:
        """Dragging -> Idle, wherever the pointer is."""
        with self._lock:
            self._drag = IDLE

    def click(self, fraction: float) -> bool:
        """
        Click on the track without dragging.

        Single mode jumps the handle; range mode moves the nearer handle
        (ties go to start). Ignored while dragging.

        Returns:
            True if a handle changed (and a commit was emitted)
        """
        with self._lock:
            if isinstance(self._drag, Dragging):
                return False

            index = self.window.index_at(fraction)
            if self._mode is Mode.SINGLE:
                return self._move(Handle.SINGLE, index)

            to_start = abs(index - self._range.start)
            to_end = abs(index - self._range.end)
            handle = Handle.RANGE_START if to_start <= to_end else Handle.RANGE_END
            return self._move(handle, index)

    # ─────────────────────────────────────────────────────────────────────
    # Mode and shortcuts
    # ─────────────────────────────────────────────────────────────────────

    def set_mode(self, mode: Mode | str) -> bool:
        """Switch mode, keeping both modes' handles. Releases any drag."""
        mode = Mode(mode)
        with self._lock:
            if mode is self._mode:
                return False
            self._mode = mode
            self._drag = IDLE
            logger.debug(f"Timeline mode: {mode.value}")
            self._emit()
            return True

    def go_to_now(self) -> bool:
        """Jump to the slot of the current local hour."""
        return self._jump(self.window.now_index(self.clock()))

    def go_to_today(self) -> bool:
        """Jump to local midnight of the start day."""
        return self._jump(self.window.today_index)

    # ─────────────────────────────────────────────────────────────────────
    # Subscribers
    # ─────────────────────────────────────────────────────────────────────

    def subscribe(self, subscriber: TimelineSubscriber) -> Callable[[], None]:
        """
        Register a commit subscriber, called with (start, end, mode).

        Returns:
            Callable that unsubscribes
        """
        with self._lock:
            self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            with self._lock:
                if subscriber in self._subscribers:
                    self._subscribers.remove(subscriber)

        return unsubscribe

    # ─────────────────────────────────────────────────────────────────────
    # Internals (caller holds the lock)
    # ─────────────────────────────────────────────────────────────────────

    def _move(self, handle: Handle, index: int) -> bool:
        last = self.window.last_index

        if handle is Handle.SINGLE:
            new = SingleSelection(max(0, min(last, index)))
            if new == self._single:
                return False
            self._single = new
        elif handle is Handle.RANGE_START:
            new = RangeSelection(max(0, min(self._range.end - 1, index)), self._range.end)
            if new == self._range:
                return False
            self._range = new
        else:
            new = RangeSelection(self._range.start, max(self._range.start + 1, min(last, index)))
            if new == self._range:
                return False
            self._range = new

        self._emit()
        return True

    def _jump(self, index: int) -> bool:
        with self._lock:
            if self._mode is Mode.SINGLE:
                return self._move(Handle.SINGLE, index)

            last = self.window.last_index
            start = max(0, min(last - 1, index))
            end = max(start + 1, min(last, start + RANGE_WIDTH))
            new = RangeSelection(start, end)
            if new == self._range:
                return False
            self._range = new
            self._emit()
            return True

    def _emit(self) -> None:
        committed = self.resolved()
        for subscriber in list(self._subscribers):
            try:
                subscriber(committed.start, committed.end, committed.mode)
            except Exception as e:
                logger.error(f"Timeline subscriber failed: {e}", exc_info=True)
