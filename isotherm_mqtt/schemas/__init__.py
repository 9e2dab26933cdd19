"""
Isotherm MQTT Schemas
=====================

Bounded Context: Data Structures

Design:
- Frozen dataclasses (immutability)
- to_dict() for JSON serialization
- from_dict() for deserialization (ValueError on invalid data)

Public API
----------
Common Types:
    Timestamp

Draw Types:
    DrawAction, DrawEvent

Render Types:
    RenderCommandType, RenderCommand

Timeline Types:
    TimelineWindowMessage
"""

from .common import Timestamp
from .draw import DrawAction, DrawEvent
from .render import RenderCommandType, RenderCommand
from .timeline import TIMELINE_MODES, TimelineWindowMessage

__all__ = [
    'Timestamp',
    'DrawAction',
    'DrawEvent',
    'RenderCommandType',
    'RenderCommand',
    'TIMELINE_MODES',
    'TimelineWindowMessage',
]
