"""
Common Schema Types
==================

Bounded Context: Shared Data Structures

Design Principles:
- Immutability: frozen=True prevents accidental mutation
- Serialization: to_dict() for JSON export
- Validation: Constructor validates invariants

Types:
- Timestamp: ISO 8601 timestamp wrapper
"""

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class Timestamp:
    """
    Immutable ISO 8601 timestamp wrapper.

    Attributes:
        value: ISO 8601 formatted timestamp string

    Example:
        >>> ts = Timestamp.now()
        >>> ts.value
        '2026-10-19T15:30:45.123456+00:00'
    """
    value: str

    @classmethod
    def now(cls) -> 'Timestamp':
        """Create timestamp from current UTC time."""
        return cls(value=datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> str:
        """Serialize to JSON (as string)."""
        return self.value
