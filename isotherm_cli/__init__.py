"""
Isotherm CLI - Command-line interface for the zone map service.

Sends draw events and control commands over MQTT without hand-writing JSON.

Usage:
    isotherm-cli draw config/polygons/field_7.yaml
    isotherm-cli delete field-7
    isotherm-cli mode range
    isotherm-cli click 0.5
    isotherm-cli list-polygons
"""

__version__ = "1.0.0"
