"""
Render Command Schema
=====================

Bounded Context: Map Rendering Output

Commands telling the map which layers and markers to draw.

Message Flow:
    PolygonStore → RenderCommandPublisher → MQTT → Map
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .common import Timestamp


class RenderCommandType(str, Enum):
    """Map renderer operation."""
    RENDER_POLYGON = "render_polygon"
    REMOVE_POLYGON = "remove_polygon"
    PLACE_MARKER = "place_marker"
    REMOVE_MARKER = "remove_marker"


@dataclass(frozen=True)
class RenderCommand:
    """
    Single render command.

    Attributes:
        command: Renderer operation
        polygon_id: Layer/marker key
        timestamp: Creation time
        ring: Closed [lng, lat] ring (render_polygon)
        color: Fill color (render_polygon)
        centroid: (lng, lat) marker position (place_marker)
        label: Marker text (place_marker)

    Example:
        >>> RenderCommand(
        ...     command=RenderCommandType.PLACE_MARKER,
        ...     polygon_id="poly-1",
        ...     timestamp=Timestamp.now(),
        ...     centroid=(78.9, 20.6),
        ...     label="Avg Temp: 21.40°C",
        ... )
    """
    command: RenderCommandType
    polygon_id: str
    timestamp: Timestamp
    ring: Optional[List[List[float]]] = None
    color: Optional[str] = None
    centroid: Optional[Tuple[float, float]] = None
    label: Optional[str] = None

    def __post_init__(self):
        """Validate invariants."""
        if self.command is RenderCommandType.RENDER_POLYGON and (self.ring is None or self.color is None):
            raise ValueError("render_polygon requires ring and color")
        if self.command is RenderCommandType.PLACE_MARKER and (self.centroid is None or self.label is None):
            raise ValueError("place_marker requires centroid and label")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict (optional fields omitted when unset)."""
        result: Dict[str, Any] = {
            'command': self.command.value,
            'polygon_id': self.polygon_id,
        }
        if self.ring is not None:
            result['ring'] = self.ring
        if self.color is not None:
            result['color'] = self.color
        if self.centroid is not None:
            result['centroid'] = list(self.centroid)
        if self.label is not None:
            result['label'] = self.label
        result['timestamp'] = self.timestamp.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderCommand':
        """Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            centroid = data.get('centroid')
            return cls(
                command=RenderCommandType(data['command']),
                polygon_id=str(data['polygon_id']),
                timestamp=Timestamp(value=data['timestamp']),
                ring=data.get('ring'),
                color=data.get('color'),
                centroid=(float(centroid[0]), float(centroid[1])) if centroid is not None else None,
                label=data.get('label'),
            )
        except KeyError as e:
            raise ValueError(f"Missing required RenderCommand field: {e}")
        except (TypeError, IndexError) as e:
            raise ValueError(f"Invalid RenderCommand data: {e}")
