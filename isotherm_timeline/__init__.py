"""
Isotherm Timeline
=================

Bounded Context: Temporal window selection over a fixed hourly slot range.

Architecture:

    isotherm_timeline/
    ├── slots.py    # TimelineWindow, TrackGeometry, marks, date_range (pure)
    └── engine.py   # TimelineEngine drag/click state machine (stateful)

Usage:

    from isotherm_timeline import TimelineEngine, Mode, Handle

    engine = TimelineEngine()
    engine.subscribe(on_window)     # on_window(start, end, mode)
    engine.set_mode(Mode.RANGE)
    engine.click(0.25)
"""

from isotherm_timeline.slots import (
    DAYS_BEFORE,
    SLOT_COUNT,
    TimelineMark,
    TimelineWindow,
    TrackGeometry,
    date_range,
)
from isotherm_timeline.engine import (
    IDLE,
    RANGE_WIDTH,
    CommittedWindow,
    Dragging,
    Handle,
    Idle,
    Mode,
    RangeSelection,
    SingleSelection,
    TimelineEngine,
)

__all__ = [
    # Slots
    "DAYS_BEFORE",
    "SLOT_COUNT",
    "TimelineMark",
    "TimelineWindow",
    "TrackGeometry",
    "date_range",
    # Engine
    "IDLE",
    "RANGE_WIDTH",
    "CommittedWindow",
    "Dragging",
    "Handle",
    "Idle",
    "Mode",
    "RangeSelection",
    "SingleSelection",
    "TimelineEngine",
]

__version__ = "1.0.0"
