"""
Draw Event Schema
=================

Bounded Context: Map Drawing Input

Polygon lifecycle events emitted by the map's drawing tool.

Message Flow:
    Map draw tool → MQTT → DrawEventSubscriber → PolygonStore

Payload:
    {"action": "create", "polygon_id": "poly-1",
     "ring": [[lng, lat], ...], "source_id": "temperature"}

Ring contents are validated by the geometry layer, not here; this schema
only checks the envelope.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class DrawAction(str, Enum):
    """Polygon lifecycle action."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class DrawEvent:
    """
    Single draw event.

    Attributes:
        action: create / update / delete
        polygon_id: Polygon identifier assigned by the map
        ring: Raw [lng, lat] vertex list (None for delete)
        source_id: Optional data source to bind the polygon to

    Invariants:
        - polygon_id is a non-empty string
        - create/update carry a ring list
    """
    action: DrawAction
    polygon_id: str
    ring: Optional[List[Any]] = None
    source_id: Optional[str] = None

    def __post_init__(self):
        """Validate invariants."""
        if not isinstance(self.polygon_id, str) or not self.polygon_id:
            raise ValueError(f"polygon_id must be a non-empty string, got {self.polygon_id!r}")
        if self.action is not DrawAction.DELETE and not isinstance(self.ring, list):
            raise ValueError(f"'{self.action.value}' requires a ring list")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result: Dict[str, Any] = {
            'action': self.action.value,
            'polygon_id': self.polygon_id,
        }
        if self.ring is not None:
            result['ring'] = self.ring
        if self.source_id is not None:
            result['source_id'] = self.source_id
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DrawEvent':
        """Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            source_id = data.get('source_id')
            return cls(
                action=DrawAction(data['action']),
                polygon_id=data['polygon_id'],
                ring=data.get('ring'),
                source_id=str(source_id) if source_id is not None else None,
            )
        except KeyError as e:
            raise ValueError(f"Missing required DrawEvent field: {e}")
        except (TypeError, AttributeError) as e:
            raise ValueError(f"Invalid DrawEvent data: {e}")
