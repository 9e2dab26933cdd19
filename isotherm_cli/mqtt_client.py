"""
MQTT client wrapper for sending messages to the zone map service.

Handles MQTT connection, publishing, and disconnection.
"""

import json
import paho.mqtt.client as mqtt
from typing import Dict, Any, Optional


class MQTTCommandClient:
    """
    One-shot MQTT publisher for control commands and draw events.

    Publishes with QoS 1 and waits for the broker acknowledgement.
    """

    def __init__(
        self,
        broker: str = "localhost",
        port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 5.0
    ):
        self.broker = broker
        self.port = port
        self.timeout = timeout

        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)

        if username and password:
            self.client.username_pw_set(username, password)

    def send(
        self,
        topic: str,
        message: Dict[str, Any],
        qos: int = 1
    ) -> None:
        """
        Publish one JSON message.

        Args:
            topic: MQTT topic (e.g., "isotherm/control/map-1/commands")
            message: JSON-serializable dict
            qos: Quality of Service (default: 1)

        Raises:
            ValueError: If the message is not JSON-serializable
            ConnectionError: If unable to connect to the broker
            RuntimeError: If the publish is not acknowledged in time
        """
        try:
            payload = json.dumps(message)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid message data: {e}")

        try:
            self.client.connect(self.broker, self.port, keepalive=60)
        except (ConnectionRefusedError, OSError) as e:
            raise ConnectionError(
                f"Unable to connect to MQTT broker at {self.broker}:{self.port}. "
                f"Is mosquitto running? ({e})"
            )

        self.client.loop_start()
        try:
            result = self.client.publish(topic, payload, qos=qos)
            result.wait_for_publish(timeout=self.timeout)
            if not result.is_published():
                raise RuntimeError(f"Publish to {topic} not acknowledged within {self.timeout}s")
        finally:
            self.client.loop_stop()
            self.client.disconnect()

    def send_command(self, topic: str, command: Dict[str, Any], qos: int = 1) -> None:
        """Publish a control command and report it."""
        self.send(topic, command, qos=qos)
        print(f"✅ Command sent: {command.get('command', 'unknown')}")
