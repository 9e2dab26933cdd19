"""
Isotherm MQTT Communication Package
===================================

Bounded Context: Map Messaging

MQTT surface between the zone map service and the map client: draw events
in, render commands and timeline windows out.

Architecture:
- schemas/: Immutable message types (DrawEvent, RenderCommand, TimelineWindowMessage)
- publishers/: RenderCommandPublisher (map renderer), TimelineWindowPublisher
- subscriber.py: DrawEventSubscriber
- logging/: Structured JSON logging

Topics (templates formatted with service_id):
    isotherm/{service_id}/draw       map → service
    isotherm/{service_id}/render     service → map
    isotherm/{service_id}/timeline   service → map (retained)
"""

__version__ = "1.0.0"

from .schemas import (
    Timestamp,
    DrawAction,
    DrawEvent,
    RenderCommandType,
    RenderCommand,
    TimelineWindowMessage,
)

from .publishers import (
    BasePublisher,
    RenderCommandPublisher,
    TimelineWindowPublisher,
)

from .subscriber import DrawEventSubscriber

from .logging import (
    LogEvent,
    StructuredLogger,
    create_logger,
)

__all__ = [
    '__version__',
    # Schemas
    'Timestamp',
    'DrawAction',
    'DrawEvent',
    'RenderCommandType',
    'RenderCommand',
    'TimelineWindowMessage',
    # Publishers
    'BasePublisher',
    'RenderCommandPublisher',
    'TimelineWindowPublisher',
    # Subscriber
    'DrawEventSubscriber',
    # Logging
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
