"""
Draw Event Subscriber
=====================

Bounded Context: Message Consumption

Receives polygon draw events from the map and hands typed DrawEvent
instances to a callback.

Design:
- Callback-based (callbacks run on the paho network thread)
- Automatic deserialization with error handling
- Invalid payloads are logged as schema errors and dropped

Message Flow:
    1. Subscriber receives JSON from MQTT
    2. Deserializes to DrawEvent
    3. Invokes user callback with typed message
    4. Continues listening (non-blocking)

Example:
    >>> def on_draw(event: DrawEvent):
    ...     if event.action is DrawAction.DELETE:
    ...         store.remove(event.polygon_id)
    ...     else:
    ...         store.update(event.polygon_id, event.ring)
    >>>
    >>> subscriber = DrawEventSubscriber(
    ...     broker_host="localhost",
    ...     draw_topic="isotherm/map-1/draw",
    ...     on_draw=on_draw,
    ...     logger=create_logger("draw"),
    ... )
    >>> subscriber.connect()
    >>> subscriber.start()
"""

import json
import threading
from typing import Callable, Optional
import paho.mqtt.client as mqtt

from .schemas import DrawEvent
from .logging import StructuredLogger, LogEvent


class DrawEventSubscriber:
    """
    MQTT subscriber for draw events.

    Attributes:
        broker_host: MQTT broker hostname
        broker_port: MQTT broker port
        draw_topic: Topic for draw events
        client_id: MQTT client identifier
        logger: Structured logger instance
        on_draw: Callback for draw events

    Thread Safety:
        Thread-safe via paho-mqtt's loop_start() and threading.Event.
        Callbacks run in the MQTT thread; keep them fast (PolygonStore
        returns futures, so it never blocks here).
    """

    def __init__(
        self,
        broker_host: str,
        draw_topic: str,
        on_draw: Callable[[DrawEvent], None],
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "isotherm_draw_subscriber",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.draw_topic = draw_topic
        self.client_id = client_id
        self.logger = logger
        self.qos = qos
        self.on_draw = on_draw

        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
        if username and password:
            self.client.username_pw_set(username, password)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

        self._connected = threading.Event()
        self._running = False
        self._stats_lock = threading.Lock()
        self._message_count = {'received': 0, 'rejected': 0}

    @property
    def broker(self) -> str:
        return f"{self.broker_host}:{self.broker_port}"

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        """Subscribe on every (re)connect."""
        if reason_code == 0:
            self._connected.set()
            client.subscribe(self.draw_topic, qos=self.qos)
            self.logger.info(
                event=LogEvent.MQTT_CONNECTED,
                message="Connected to MQTT broker and subscribed to draw topic",
                metadata={'broker': self.broker, 'draw_topic': self.draw_topic}
            )
        else:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message=f"Failed to connect to broker (rc={reason_code})",
                metadata={'broker': self.broker}
            )

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None) -> None:
        self._connected.clear()
        self.logger.warning(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from MQTT broker",
            metadata={'broker': self.broker, 'reason_code': str(reason_code)}
        )

    def _on_message(self, client, userdata, msg) -> None:
        """Decode JSON and route by topic."""
        try:
            data = json.loads(msg.payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self._count('rejected')
            self.logger.error(
                event=LogEvent.DESERIALIZATION_ERROR,
                message="Failed to decode JSON message",
                exc_info=e,
                metadata={'topic': msg.topic}
            )
            return

        if msg.topic != self.draw_topic:
            self.logger.warning(
                event=LogEvent.DESERIALIZATION_ERROR,
                message=f"Received message from unknown topic: {msg.topic}"
            )
            return

        self._handle_draw_event(data)

    def _handle_draw_event(self, data) -> None:
        try:
            if not isinstance(data, dict):
                raise ValueError(f"Draw event must be a JSON object, got {type(data).__name__}")
            event = DrawEvent.from_dict(data)
        except ValueError as e:
            self._count('rejected')
            self.logger.error(
                event=LogEvent.SCHEMA_VALIDATION_ERROR,
                message="Draw event failed schema validation",
                exc_info=e,
                metadata={'data': data}
            )
            return

        self._count('received')
        self.logger.info(
            event=LogEvent.DRAW_EVENT_RECEIVED,
            message=f"Received {event.action.value}",
            metadata={'polygon_id': event.polygon_id, 'source_id': event.source_id}
        )

        try:
            self.on_draw(event)
        except ValueError as e:
            self._count('rejected')
            self.logger.warning(
                event=LogEvent.DRAW_GEOMETRY_REJECTED,
                message=f"Draw event rejected: {e}",
                metadata={'polygon_id': event.polygon_id, 'action': event.action.value}
            )
        except Exception as e:
            self.logger.error(
                event=LogEvent.DESERIALIZATION_ERROR,
                message="Error handling draw event",
                exc_info=e,
                metadata={'polygon_id': event.polygon_id}
            )

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self._message_count[key] += 1

    def connect(self, timeout: float = 10.0) -> bool:
        """
        Connect to MQTT broker.

        Returns:
            True if connected successfully, False otherwise
        """
        try:
            self.client.connect(self.broker_host, self.broker_port)
            self.client.loop_start()

            if self._connected.wait(timeout=timeout):
                self._running = True
                return True

            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Connection timeout",
                metadata={'timeout': timeout}
            )
            return False

        except Exception as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Failed to connect to broker",
                exc_info=e,
                metadata={'broker': self.broker}
            )
            return False

    def stop(self) -> None:
        """Stop network loop and disconnect."""
        self._running = False
        self.client.loop_stop()
        self.client.disconnect()
        self.logger.info(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Subscriber stopped",
            metadata=self.get_stats()
        )

    def is_connected(self) -> bool:
        return self._connected.is_set()

    def is_running(self) -> bool:
        return self._running

    def get_stats(self) -> dict:
        with self._stats_lock:
            return {
                'draw_events_received': self._message_count['received'],
                'draw_events_rejected': self._message_count['rejected'],
                'connected': self._connected.is_set(),
                'running': self._running,
                'draw_topic': self.draw_topic,
                'broker': self.broker
            }
