"""
MQTT Publishers
==============

Bounded Context: Message Production

Public API
----------
    BasePublisher: Abstract publisher (connection management)
    RenderCommandPublisher: Map renderer over MQTT
    TimelineWindowPublisher: Committed timeline windows
"""

from .base import BasePublisher
from .render import RenderCommandPublisher
from .timeline import TimelineWindowPublisher

__all__ = [
    'BasePublisher',
    'RenderCommandPublisher',
    'TimelineWindowPublisher',
]
