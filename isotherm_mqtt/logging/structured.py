"""
Structured JSON Logger
=====================

Bounded Context: Observability Infrastructure

JSON-lines logger for the MQTT surface.

Design:
- JSON output (compatible with log aggregators)
- Thread-safe (uses standard logging module)
- Contextual metadata (polygon_id, topic, etc.)
- Type-safe events (LogEvent enum)

Example:
    >>> logger = StructuredLogger(component="render")
    >>> logger.info(
    ...     event=LogEvent.RENDER_COMMAND_PUBLISHED,
    ...     message="Published render_polygon",
    ...     metadata={'polygon_id': 'poly-1'}
    ... )

Output:
    {
        "timestamp": "2026-10-19T15:30:45.123456+00:00",
        "level": "INFO",
        "component": "render",
        "event": "render.command.published",
        "message": "Published render_polygon",
        "metadata": {"polygon_id": "poly-1"}
    }
"""

import json
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from .events import LogEvent


class StructuredLogger:
    """
    JSON structured logger.

    Attributes:
        component: Component name (e.g., "render", "draw")
        logger: Underlying Python logger instance

    Thread Safety:
        Thread-safe via Python's logging module.
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        logger_name: Optional[str] = None
    ):
        """
        Args:
            component: Component identifier
            level: Logging level (default: INFO)
            logger_name: Custom logger name (default: isotherm_mqtt.<component>)
        """
        self.component = component
        self.logger_name = logger_name or f"isotherm_mqtt.{component}"
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)
            # Already JSON; root handlers would re-format it
            self.logger.propagate = False

    def _log(
        self,
        level: str,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level,
            'component': self.component,
            'event': event.value,
            'message': message,
        }

        if metadata:
            log_entry['metadata'] = metadata

        if exc_info:
            log_entry['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info)
            }

        self.logger.log(
            getattr(logging, level),
            json.dumps(log_entry, default=str),
        )

    def debug(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        self._log('DEBUG', event, message, metadata)

    def info(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log INFO level message."""
        self._log('INFO', event, message, metadata)

    def warning(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log WARNING level message."""
        self._log('WARNING', event, message, metadata)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """
        Log ERROR level message.

        Example:
            >>> try:
            ...     json.loads(payload)
            ... except ValueError as e:
            ...     logger.error(
            ...         event=LogEvent.DESERIALIZATION_ERROR,
            ...         message="Failed to decode draw event",
            ...         exc_info=e,
            ...         metadata={'topic': topic}
            ...     )
        """
        self._log('ERROR', event, message, metadata, exc_info)


class JSONFormatter(logging.Formatter):
    """Pass-through formatter: StructuredLogger messages are already JSON."""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def create_logger(
    component: str,
    level: int = logging.INFO
) -> StructuredLogger:
    """
    Factory function to create configured StructuredLogger.

    Example:
        >>> logger = create_logger("render", level=logging.DEBUG)
    """
    return StructuredLogger(component=component, level=level)
