"""
Timeline Slots Module
=====================

Fixed hourly slot window - NO interaction state.

Design:
- 30 days of hourly slots, 15 before / 15 after the start day (720 slots)
- Slot times are local wall-clock (naive) datetimes
- Index arithmetic only; never blocks, never does I/O
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List

DAYS_BEFORE = 15
DAYS_TOTAL = 30
HOURS_PER_DAY = 24
SLOT_COUNT = DAYS_TOTAL * HOURS_PER_DAY


@dataclass(frozen=True)
class TimelineMark:
    """Daily tick on the timeline track."""
    index: int
    label: str
    is_today: bool


@dataclass(frozen=True)
class TimelineWindow:
    """
    Immutable hourly slot window.

    Attributes:
        origin: Local midnight of the first day (slot 0)
        slot_count: Number of hourly slots (N)
        days_before: Days between origin and the start day

    Example:
        >>> window = TimelineWindow.around(datetime(2026, 10, 19, 14, 30))
        >>> window.slot_time(window.today_index)
        datetime.datetime(2026, 10, 19, 0, 0)
    """
    origin: datetime
    slot_count: int = SLOT_COUNT
    days_before: int = DAYS_BEFORE

    def __post_init__(self):
        """Validate invariants."""
        if self.slot_count < 2:
            raise ValueError(f"slot_count must be >= 2, got {self.slot_count}")
        if (self.origin.hour, self.origin.minute, self.origin.second, self.origin.microsecond) != (0, 0, 0, 0):
            raise ValueError(f"origin must be a midnight, got {self.origin}")

    @classmethod
    def around(cls, now: datetime) -> 'TimelineWindow':
        """Window whose start day is `now`'s local date."""
        start_day = now.date() - timedelta(days=DAYS_BEFORE)
        return cls(origin=datetime.combine(start_day, time(0, 0)))

    @property
    def last_index(self) -> int:
        return self.slot_count - 1

    @property
    def today_index(self) -> int:
        """Slot of local midnight of the start day."""
        return self.days_before * HOURS_PER_DAY

    @property
    def start_day(self) -> date:
        return self.origin.date() + timedelta(days=self.days_before)

    def slot_time(self, index: int) -> datetime:
        """Local wall-clock time at the start of slot `index`."""
        if not 0 <= index < self.slot_count:
            raise IndexError(f"Slot index out of range [0, {self.last_index}]: {index}")
        day, hour = divmod(index, HOURS_PER_DAY)
        return datetime.combine(self.origin.date() + timedelta(days=day), time(hour, 0))

    def clamp(self, index: int) -> int:
        return max(0, min(self.last_index, index))

    def now_index(self, now: datetime) -> int:
        """Slot whose local date and hour match `now` (clamped to the window)."""
        days = (now.date() - self.origin.date()).days
        return self.clamp(days * HOURS_PER_DAY + now.hour)

    def index_at(self, fraction: float) -> int:
        """
        Map a [0, 1] track position linearly onto [0, N-1].

        Rounds half up; positions outside [0, 1] are clamped first.
        """
        fraction = max(0.0, min(1.0, float(fraction)))
        return int(math.floor(fraction * self.last_index + 0.5))

    def fraction_of(self, index: int) -> float:
        """Inverse of index_at (track position of a slot)."""
        return index / self.last_index

    def format_slot(self, index: int) -> str:
        """Human-readable slot time, e.g. "10/19/2026 14:00" ("" if out of range)."""
        if not 0 <= index < self.slot_count:
            return ""
        t = self.slot_time(index)
        return f"{t.month}/{t.day}/{t.year} {t.hour}:00"

    def marks(self) -> List[TimelineMark]:
        """One mark per day at local midnight."""
        marks = []
        for index in range(0, self.slot_count, HOURS_PER_DAY):
            t = self.slot_time(index)
            marks.append(TimelineMark(
                index=index,
                label=f"{t:%b} {t.day}",
                is_today=index == self.today_index,
            ))
        return marks


@dataclass(frozen=True)
class TrackGeometry:
    """Horizontal extent of the rendered track, in pointer coordinates."""
    left: float
    width: float

    def __post_init__(self):
        if self.width <= 0:
            raise ValueError(f"Track width must be > 0, got {self.width}")

    def fraction_at(self, x: float) -> float:
        """Pointer x -> clamped [0, 1] track position."""
        return max(0.0, min(1.0, (x - self.left) / self.width))


def date_range(today: date, days_before: int = DAYS_BEFORE, days_after: int = DAYS_BEFORE) -> List[str]:
    """ISO dates from `days_before` before to `days_after` after `today` (inclusive)."""
    return [
        (today + timedelta(days=offset)).isoformat()
        for offset in range(-days_before, days_after + 1)
    ]
