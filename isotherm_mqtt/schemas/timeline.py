"""
Timeline Window Schema
======================

Bounded Context: Committed Time Window

Message Flow:
    TimelineEngine → TimelineWindowPublisher → MQTT → Map / dashboards
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from .common import Timestamp

TIMELINE_MODES = ("single", "range")


@dataclass(frozen=True)
class TimelineWindowMessage:
    """
    Committed timeline window.

    Attributes:
        start: Window start (local wall-clock, ISO 8601)
        end: Window end, exclusive (ISO 8601)
        mode: "single" or "range"
        timestamp: Publication time

    Invariants:
        - start < end
    """
    start: str
    end: str
    mode: str
    timestamp: Timestamp

    def __post_init__(self):
        """Validate invariants."""
        if self.mode not in TIMELINE_MODES:
            raise ValueError(f"mode must be one of {TIMELINE_MODES}, got {self.mode!r}")
        if not datetime.fromisoformat(self.start) < datetime.fromisoformat(self.end):
            raise ValueError(f"start must be < end, got {self.start} >= {self.end}")

    @classmethod
    def from_window(cls, start: datetime, end: datetime, mode: str) -> 'TimelineWindowMessage':
        return cls(
            start=start.isoformat(),
            end=end.isoformat(),
            mode=str(getattr(mode, 'value', mode)),
            timestamp=Timestamp.now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'start': self.start,
            'end': self.end,
            'mode': self.mode,
            'timestamp': self.timestamp.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TimelineWindowMessage':
        """Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            return cls(
                start=str(data['start']),
                end=str(data['end']),
                mode=str(data['mode']),
                timestamp=Timestamp(value=data['timestamp']),
            )
        except KeyError as e:
            raise ValueError(f"Missing required TimelineWindowMessage field: {e}")
        except TypeError as e:
            raise ValueError(f"Invalid TimelineWindowMessage data: {e}")

    @property
    def duration_hours(self) -> float:
        delta = datetime.fromisoformat(self.end) - datetime.fromisoformat(self.start)
        return delta.total_seconds() / 3600
