"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for structured logging.

Event Naming Convention:
    <component>.<category>.<action>

    component: mqtt, draw, render, timeline, error
    category: connected, publish, received
    action: success, failed

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.polygon_id
    | filter event = "render.command.published"
    | stats count() by bin(5m)
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - mqtt.*: MQTT broker interactions
    - draw.*: Draw events consumed from the map
    - render.*: Render commands produced for the map
    - timeline.*: Committed timeline windows
    - error.*: Error conditions
    """

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully published to broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed."""

    # ========== Draw Events ==========
    DRAW_EVENT_RECEIVED = "draw.event.received"
    """Draw event (create/update/delete) received by subscriber."""

    DRAW_GEOMETRY_REJECTED = "draw.geometry.rejected"
    """Drawn ring rejected as invalid geometry."""

    # ========== Render Events ==========
    RENDER_COMMAND_PUBLISHED = "render.command.published"
    """Render command published to the map."""

    # ========== Timeline Events ==========
    TIMELINE_WINDOW_PUBLISHED = "timeline.window.published"
    """Committed timeline window published."""

    # ========== Error Events ==========
    SERIALIZATION_ERROR = "error.serialization"
    """Failed to serialize message to JSON."""

    DESERIALIZATION_ERROR = "error.deserialization"
    """Failed to deserialize message from JSON."""

    SCHEMA_VALIDATION_ERROR = "error.schema_validation"
    """Message failed schema validation."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Error during message publication."""


# Event categories for filtering
MQTT_EVENTS = {
    LogEvent.MQTT_CONNECTED,
    LogEvent.MQTT_DISCONNECTED,
    LogEvent.MQTT_PUBLISH_SUCCESS,
    LogEvent.MQTT_PUBLISH_FAILED,
}

MAP_EVENTS = {
    LogEvent.DRAW_EVENT_RECEIVED,
    LogEvent.DRAW_GEOMETRY_REJECTED,
    LogEvent.RENDER_COMMAND_PUBLISHED,
    LogEvent.TIMELINE_WINDOW_PUBLISHED,
}

ERROR_EVENTS = {
    LogEvent.SERIALIZATION_ERROR,
    LogEvent.DESERIALIZATION_ERROR,
    LogEvent.SCHEMA_VALIDATION_ERROR,
    LogEvent.MQTT_CONNECTION_ERROR,
    LogEvent.MQTT_PUBLISH_ERROR,
}
