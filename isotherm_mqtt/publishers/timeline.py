"""
Timeline Window Publisher
=========================

Bounded Context: Committed Time Window Output

Publishes every committed timeline window (retained, so late subscribers
see the current selection).

Message Flow:
    TimelineEngine.subscribe → TimelineWindowPublisher → MQTT Broker
"""

from datetime import datetime
from typing import Any, Dict, Optional

from .base import BasePublisher
from ..schemas import TimelineWindowMessage
from ..logging import StructuredLogger, LogEvent


class TimelineWindowPublisher(BasePublisher):
    """
    Publisher for committed timeline windows.

    Example:
        >>> publisher = TimelineWindowPublisher(
        ...     broker_host="localhost",
        ...     topic="isotherm/map-1/timeline",
        ...     logger=create_logger("timeline"),
        ... )
        >>> engine.subscribe(publisher.publish_window)
    """

    def __init__(
        self,
        broker_host: str,
        topic: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "isotherm_timeline_publisher",
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

    def format_message(self, window: TimelineWindowMessage) -> Dict[str, Any]:
        return window.to_dict()

    def publish_window(self, start: datetime, end: datetime, mode) -> bool:
        """Timeline subscriber: publish (start, end, mode) as a retained message."""
        message = TimelineWindowMessage.from_window(start, end, mode)
        success = self.publish(self.format_message(message), retain=True)
        if success:
            self.logger.info(
                event=LogEvent.TIMELINE_WINDOW_PUBLISHED,
                message=f"Published {message.mode} window",
                metadata={
                    'start': message.start,
                    'end': message.end,
                    'hours': message.duration_hours
                }
            )
        return success
