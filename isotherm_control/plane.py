"""
MQTTControlPlane - MQTT control plane for the zone map service

Bounded Context: MQTT connection management + command reception
Responsibilities:
  - MQTT connection lifecycle (connect, disconnect)
  - Command message reception (subscribe to command topic)
  - Status publishing (publish to status topic, with optional data)
  - Command delegation to CommandRegistry

QoS Policy:
  - Commands: QoS 1 (at-least-once delivery)
  - Status: QoS 1 + retained (last status persisted)

Threading:
  - MQTT client runs own background thread (loop_start/loop_stop)
  - Command handlers run in MQTT thread (keep them fast!)
"""

import json
import logging
from datetime import datetime, timezone
from threading import Event
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from .registry import CommandRegistry, CommandNotAvailableError

logger = logging.getLogger(__name__)


class MQTTControlPlane:
    """
    MQTT Control Plane for receiving commands and publishing status.

    Example:
        control_plane = MQTTControlPlane(
            broker_host="localhost",
            broker_port=1883,
            command_topic="isotherm/control/map-1/commands",
            status_topic="isotherm/control/map-1/status",
            client_id="isotherm_map-1",
        )
        control_plane.command_registry.register(
            'timeline_now', lambda data: engine.go_to_now(), "Jump to now"
        )
        control_plane.connect(timeout=5.0)
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        command_topic: str,
        status_topic: str,
        client_id: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.command_topic = command_topic
        self.status_topic = status_topic
        self.client_id = client_id

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect

        if username and password:
            self.client.username_pw_set(username, password)

        self._connected = Event()
        self._running = False

        self.command_registry = CommandRegistry()

    def connect(self, timeout: float = 5.0) -> bool:
        """
        Connect to MQTT broker with timeout.

        Returns:
            True if connected successfully, False otherwise
        """
        try:
            logger.info(f"🔌 Connecting to MQTT broker: {self.broker_host}:{self.broker_port}")
            self.client.connect(self.broker_host, self.broker_port, keepalive=60)
            self.client.loop_start()
            self._running = True

            if self._connected.wait(timeout=timeout):
                logger.info("✅ MQTT Control Plane connected")
                return True

            logger.error(f"❌ Connection timeout after {timeout}s")
            return False

        except Exception as e:
            logger.error(f"❌ Error connecting to MQTT: {e}")
            return False

    def disconnect(self) -> None:
        """Disconnect from MQTT broker. Safe to call multiple times."""
        if self._running:
            logger.info("🔌 Disconnecting from MQTT broker")
            self.publish_status("disconnected")
            self.client.loop_stop()
            self.client.disconnect()
            self._running = False
            self._connected.clear()
            logger.info("✅ MQTT Control Plane disconnected")

    def is_connected(self) -> bool:
        return self._connected.is_set()

    def publish_status(self, status: str, data: Optional[Dict[str, Any]] = None) -> None:
        """
        Publish status update (QoS 1, retained).

        Args:
            status: Status string (e.g., "running", "polygon_rejected")
            data: Extra JSON-serializable fields merged into the message

        Thread Safety: Safe to call from any thread
        """
        message = {
            "status": status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "client_id": self.client_id,
        }
        if data:
            message.update(data)

        try:
            self.client.publish(
                self.status_topic,
                json.dumps(message, default=str),
                qos=1,
                retain=True,
            )
            logger.debug(f"📤 Status published: {status}")
        except Exception as e:
            logger.error(f"❌ Error publishing status: {e}")

    # ===== MQTT Callbacks (run in MQTT thread) =====

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code == 0:
            logger.info(f"✅ Connected to broker (rc={reason_code})")
            client.subscribe(self.command_topic, qos=1)
            logger.info(f"📥 Subscribed to: {self.command_topic} (QoS 1)")
            self.publish_status("connected")
            self._connected.set()
        else:
            logger.error(f"❌ Connection failed (rc={reason_code})")
            self._connected.clear()

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code != 0:
            logger.warning(f"⚠️ Unexpected disconnection (rc={reason_code})")
        else:
            logger.info("✅ Disconnected from broker")
        self._connected.clear()

    def _on_message(self, client, userdata, msg):
        """Decode a command payload and dispatch it through the registry."""
        try:
            payload = msg.payload.decode('utf-8')
            logger.debug(f"📦 Command received: {payload}")
            command_data = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"❌ Error decoding JSON: {msg.payload!r} ({e})")
            return

        if not isinstance(command_data, dict):
            logger.warning(f"⚠️ Command payload must be a JSON object: {command_data!r}")
            return

        command = str(command_data.get('command', '')).lower()
        if not command:
            logger.warning("⚠️ Empty command received")
            return

        logger.info(f"🎯 Executing command: {command}")
        try:
            self.command_registry.execute(command, command_data)
            logger.debug(f"✅ Command '{command}' executed successfully")

        except CommandNotAvailableError as e:
            logger.warning(f"⚠️ {e}")

        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"⚠️ Command '{command}' rejected: {e}")
            self.publish_status("command_rejected", {"command": command, "error": str(e)})

        except Exception as e:
            logger.error(f"❌ Error executing '{command}': {e}", exc_info=True)
