"""
Isotherm CLI - Main entry point.

Command-line interface for the zone map service: publishes draw events the
way the map's drawing tool does, and timeline/polygon control commands.
"""

import argparse
import yaml
import sys
from pathlib import Path
from typing import Dict, Any

from .mqtt_client import MQTTCommandClient

DRAW_TOPIC = "isotherm/{service_id}/draw"
COMMAND_TOPIC = "isotherm/control/{service_id}/commands"


def load_yaml_config(config_path: str) -> Dict[str, Any]:
    """
    Load YAML file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If YAML is invalid
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}")


def build_draw_event(action: str, polygon: Dict[str, Any]) -> Dict[str, Any]:
    """
    Draw event payload from a polygon YAML document.

    Example YAML:
        polygon_id: "field-7"
        source_id: "temperature"     # optional
        ring:
          - [78.90, 20.50]
          - [79.00, 20.50]
          - [79.00, 20.60]

    Raises:
        ValueError: If polygon_id or ring is missing
    """
    if not isinstance(polygon, dict):
        raise ValueError("Polygon file must contain a mapping")
    if not polygon.get("polygon_id"):
        raise ValueError("Polygon file is missing 'polygon_id'")
    if not isinstance(polygon.get("ring"), list):
        raise ValueError("Polygon file is missing a 'ring' list")

    event = {
        "action": action,
        "polygon_id": str(polygon["polygon_id"]),
        "ring": [[float(lng), float(lat)] for lng, lat in polygon["ring"]],
    }
    if polygon.get("source_id"):
        event["source_id"] = str(polygon["source_id"])
    return event


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="isotherm-cli",
        description="Isotherm CLI - Draw polygons and drive the timeline over MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Draw / redraw a polygon from YAML
  isotherm-cli draw config/polygons/field_7.yaml
  isotherm-cli update config/polygons/field_7.yaml

  # Delete a polygon
  isotherm-cli delete field-7

  # Timeline
  isotherm-cli mode range
  isotherm-cli click 0.25
  isotherm-cli now
  isotherm-cli today

  # Polygons
  isotherm-cli list-polygons
  isotherm-cli assign-source field-7 humidity
"""
    )

    parser.add_argument(
        "--service-id",
        default="map-1",
        help="Target service ID (default: map-1)"
    )
    parser.add_argument(
        "--broker",
        default="localhost",
        help="MQTT broker host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=1883,
        help="MQTT broker port (default: 1883)"
    )
    parser.add_argument(
        "--draw-topic",
        default=DRAW_TOPIC,
        help=f"Draw topic template (default: {DRAW_TOPIC})"
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    draw = subparsers.add_parser('draw', help='Create a polygon from YAML')
    draw.add_argument('polygon', help='Path to polygon YAML')

    update = subparsers.add_parser('update', help='Replace a polygon ring from YAML')
    update.add_argument('polygon', help='Path to polygon YAML')

    delete = subparsers.add_parser('delete', help='Delete a polygon by ID')
    delete.add_argument('polygon_id', help='Polygon ID to delete')

    mode = subparsers.add_parser('mode', help='Switch timeline mode')
    mode.add_argument('mode', choices=['single', 'range'])

    click = subparsers.add_parser('click', help='Click the timeline track')
    click.add_argument('fraction', type=float, help='Track position in [0, 1]')

    assign = subparsers.add_parser('assign-source', help='Bind a polygon to a data source')
    assign.add_argument('polygon_id')
    assign.add_argument('source_id')

    subparsers.add_parser('now', help='Jump the timeline to the current hour')
    subparsers.add_parser('today', help="Jump the timeline to today's midnight")
    subparsers.add_parser('timeline-status', help='Report the current timeline selection')
    subparsers.add_parser('list-polygons', help='List polygons with derived state')
    subparsers.add_parser('list-sources', help='List data sources and legends')

    return parser


def build_message(args: argparse.Namespace):
    """(topic template, payload) for parsed arguments."""
    if args.command in ('draw', 'update'):
        action = 'create' if args.command == 'draw' else 'update'
        return args.draw_topic, build_draw_event(action, load_yaml_config(args.polygon))

    if args.command == 'delete':
        return args.draw_topic, {'action': 'delete', 'polygon_id': args.polygon_id}

    if args.command == 'mode':
        return COMMAND_TOPIC, {'command': 'timeline_mode', 'mode': args.mode}

    if args.command == 'click':
        return COMMAND_TOPIC, {'command': 'timeline_click', 'fraction': args.fraction}

    if args.command == 'assign-source':
        return COMMAND_TOPIC, {
            'command': 'assign_source',
            'polygon_id': args.polygon_id,
            'source_id': args.source_id,
        }

    simple = {
        'now': 'timeline_now',
        'today': 'timeline_today',
        'timeline-status': 'timeline_status',
        'list-polygons': 'list_polygons',
        'list-sources': 'list_sources',
    }
    return COMMAND_TOPIC, {'command': simple[args.command]}


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        topic_template, message = build_message(args)
        topic = topic_template.format(service_id=args.service_id)

        client = MQTTCommandClient(broker=args.broker, port=args.port)
        if 'command' in message:
            client.send_command(topic, message)
        else:
            client.send(topic, message)
            print(f"✅ Draw event sent: {message['action']} {message['polygon_id']}")

    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
