"""
isotherm_control - Control plane for the zone map service

Bounded Context: MQTT-based command-and-control
Responsibilities:
  - MQTT connection management (Control Plane)
  - Command registration and parameter validation
  - Command execution delegation

Architecture:
  - CommandRegistry: Explicit registration pattern
  - MQTTControlPlane: MQTT client + command reception + retained status
  - QoS 1 for control commands (at-least-once delivery)
"""

from .registry import CommandRegistry, CommandNotAvailableError, CommandParameterError
from .plane import MQTTControlPlane

__all__ = [
    "CommandRegistry",
    "CommandNotAvailableError",
    "CommandParameterError",
    "MQTTControlPlane",
]
