"""
Structured Logging for Isotherm MQTT
====================================

Bounded Context: Observability

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from isotherm_mqtt.logging import create_logger, LogEvent
    >>> logger = create_logger("draw")
    >>> logger.info(
    ...     event=LogEvent.DRAW_EVENT_RECEIVED,
    ...     message="Received create",
    ...     metadata={'polygon_id': 'poly-1'}
    ... )
"""

from .events import LogEvent
from .structured import StructuredLogger, JSONFormatter, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'JSONFormatter',
    'create_logger',
]
