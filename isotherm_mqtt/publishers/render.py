"""
Render Command Publisher
========================

Bounded Context: Map Rendering Output

Implements the map renderer protocol by publishing one RenderCommand per
call. The PolygonStore drives it from inside its generation-checked writer,
so commands leave in generation order.

Message Flow:
    PolygonStore → RenderCommandPublisher → MQTT Broker → Map

Example:
    >>> publisher = RenderCommandPublisher(
    ...     broker_host="localhost",
    ...     topic="isotherm/map-1/render",
    ...     logger=create_logger("render"),
    ... )
    >>> publisher.connect()
    >>> store = PolygonStore(sampler, renderers=[publisher])
"""

from typing import Any, Dict, List, Optional, Tuple

from .base import BasePublisher
from ..schemas import RenderCommand, RenderCommandType, Timestamp
from ..logging import StructuredLogger, LogEvent


class RenderCommandPublisher(BasePublisher):
    """Publisher for map render commands (layers and markers keyed by polygon id)."""

    def __init__(
        self,
        broker_host: str,
        topic: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "isotherm_render_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0
    ):
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            topic=topic,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos
        )

    def format_message(self, command: RenderCommand) -> Dict[str, Any]:
        """
        Raises:
            ValueError: If the command cannot be serialized
        """
        try:
            return command.to_dict()
        except Exception as e:
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message="Failed to serialize render command",
                exc_info=e,
                metadata={'polygon_id': getattr(command, 'polygon_id', None)}
            )
            raise ValueError(f"Failed to format render command: {e}")

    def publish_command(self, command: RenderCommand) -> bool:
        """Publish one render command. Returns True on success."""
        success = self.publish(self.format_message(command))
        if success:
            self.logger.info(
                event=LogEvent.RENDER_COMMAND_PUBLISHED,
                message=f"Published {command.command.value}",
                metadata={'polygon_id': command.polygon_id, 'topic': self.topic}
            )
        return success

    # ─────────────────────────────────────────────────────────────────────
    # Map renderer protocol
    # ─────────────────────────────────────────────────────────────────────

    def render_polygon(self, polygon_id: str, ring: List[List[float]], color: str) -> None:
        self.publish_command(RenderCommand(
            command=RenderCommandType.RENDER_POLYGON,
            polygon_id=polygon_id,
            timestamp=Timestamp.now(),
            ring=ring,
            color=color,
        ))

    def remove_polygon(self, polygon_id: str) -> None:
        self.publish_command(RenderCommand(
            command=RenderCommandType.REMOVE_POLYGON,
            polygon_id=polygon_id,
            timestamp=Timestamp.now(),
        ))

    def place_marker(self, polygon_id: str, centroid: Tuple[float, float], label: str) -> None:
        self.publish_command(RenderCommand(
            command=RenderCommandType.PLACE_MARKER,
            polygon_id=polygon_id,
            timestamp=Timestamp.now(),
            centroid=centroid,
            label=label,
        ))

    def remove_marker(self, polygon_id: str) -> None:
        self.publish_command(RenderCommand(
            command=RenderCommandType.REMOVE_MARKER,
            polygon_id=polygon_id,
            timestamp=Timestamp.now(),
        ))
