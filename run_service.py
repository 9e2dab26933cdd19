#!/usr/bin/env python3
"""
Zone Map Service - Entry Point
==============================

This script starts the Isotherm zone map service, which:
- Consumes polygon draw events from the map (MQTT)
- Samples the weather provider at every polygon vertex
- Classifies each polygon and publishes render commands (MQTT)
- Runs the timeline and resamples polygons for each committed window
- Responds to control commands via the MQTT control plane

Usage:
    python run_service.py --config config/service.yaml

Lifecycle:
    1. Load configuration from YAML
    2. Setup logging (console + file)
    3. Create control plane and publishers
    4. Create ZoneMapService and wire it
    5. Start service (non-blocking)
    6. Wait for stop signal (Ctrl+C or SIGTERM)
    7. Graceful shutdown

Logs:
    - Console: INFO level
    - File: logs/service.log (INFO level)
"""

import argparse
import signal
import sys
import logging
from pathlib import Path
from typing import Optional

from isotherm_control import MQTTControlPlane
from isotherm_mqtt import RenderCommandPublisher, TimelineWindowPublisher, create_logger
from isotherm_service import ServiceConfig, ZoneMapService


def setup_logging(log_file: Optional[Path] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Configure root logging (console + optional file).

    Args:
        log_file: Optional path to log file
        level: Root log level
    """
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ]
    )

    return logging.getLogger(__name__)


class ServiceApp:
    """
    Application wrapper for ZoneMapService.

    Handles:
    - Configuration loading
    - Component initialization (control plane, publishers)
    - Signal handling (SIGTERM, SIGINT)
    - Graceful shutdown
    """

    def __init__(self, config_path: Path, log_file: Optional[Path] = None, verbose: bool = False):
        self.config_path = config_path
        self.log_file = log_file
        self.logger = setup_logging(log_file, logging.DEBUG if verbose else logging.INFO)

        self.config: Optional[ServiceConfig] = None
        self.control_plane: Optional[MQTTControlPlane] = None
        self.render_publisher: Optional[RenderCommandPublisher] = None
        self.timeline_publisher: Optional[TimelineWindowPublisher] = None
        self.service: Optional[ZoneMapService] = None

        self._shutdown_requested = False

    def setup(self):
        """Load configuration and build all components."""
        self.logger.info("=" * 80)
        self.logger.info("🚀 Isotherm Zone Map Service - Starting")
        self.logger.info("=" * 80)

        self.logger.info(f"📄 Loading configuration: {self.config_path}")
        self.config = ServiceConfig.from_yaml(self.config_path)
        self.logger.info(f"✅ Configuration loaded (service_id={self.config.service_id})")

        mqtt_config = self.config.mqtt_config
        service_id = self.config.service_id
        topics = self.config.topics

        self.logger.info("🔌 Creating MQTT control plane")
        self.control_plane = MQTTControlPlane(
            broker_host=mqtt_config.broker,
            broker_port=mqtt_config.port,
            command_topic=self.config.command_topic,
            status_topic=self.config.status_topic,
            client_id=f"isotherm_{service_id}",
            username=mqtt_config.username,
            password=mqtt_config.password,
        )

        self.logger.info("📤 Creating MQTT publishers")
        self.render_publisher = RenderCommandPublisher(
            broker_host=mqtt_config.broker,
            broker_port=mqtt_config.port,
            topic=topics["render"],
            logger=create_logger(component="render"),
            client_id=f"isotherm_render_{service_id}",
            username=mqtt_config.username,
            password=mqtt_config.password,
            qos=mqtt_config.qos,
        )
        self.timeline_publisher = TimelineWindowPublisher(
            broker_host=mqtt_config.broker,
            broker_port=mqtt_config.port,
            topic=topics["timeline"],
            logger=create_logger(component="timeline"),
            client_id=f"isotherm_timeline_{service_id}",
            username=mqtt_config.username,
            password=mqtt_config.password,
            qos=mqtt_config.qos,
        )
        for name, topic in topics.items():
            self.logger.info(f"  - {name} topic: {topic}")

        self.logger.info("🏗️  Creating zone map service")
        self.service = ZoneMapService(
            config=self.config,
            control_plane=self.control_plane,
            render_publisher=self.render_publisher,
            timeline_publisher=self.timeline_publisher,
        )
        self.service.setup()

        self.logger.info("=" * 80)

    def run(self):
        """Run the service. Blocks until shutdown is requested."""
        if not self.service:
            raise RuntimeError("Service not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        try:
            self.service.start()

            self.logger.info("✅ Service started successfully")
            self.logger.info("Press Ctrl+C to stop")
            self.logger.info("=" * 80)

            self.service.wait()

        except KeyboardInterrupt:
            self.logger.info("⚠️  KeyboardInterrupt received")
            self.shutdown()

        except Exception as e:
            self.logger.error(f"❌ Service error: {e}", exc_info=True)
            self.shutdown()
            sys.exit(1)

    def shutdown(self):
        """Stop the service once."""
        if self._shutdown_requested:
            self.logger.warning("⚠️  Shutdown already in progress")
            return

        self._shutdown_requested = True

        self.logger.info("=" * 80)
        self.logger.info("🛑 Shutting down zone map service")
        self.logger.info("=" * 80)

        if self.service:
            try:
                self.service.stop()
            except Exception as e:
                self.logger.error(f"❌ Error stopping service: {e}")

        if self.control_plane:
            try:
                self.control_plane.disconnect()
            except Exception as e:
                self.logger.error(f"❌ Error disconnecting control plane: {e}")

        self.logger.info("✅ Shutdown complete")

    def _signal_handler(self, signum, frame):
        signal_name = signal.Signals(signum).name
        self.logger.info(f"⚠️  Received signal {signal_name} ({signum})")
        self.shutdown()
        sys.exit(0)


def parse_args():
    parser = argparse.ArgumentParser(
        description="Isotherm Zone Map Service - polygons + weather + timeline over MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start with the bundled config
  python run_service.py --config config/service.yaml

  # Console only, debug logs
  python run_service.py --config config/service.yaml --no-log-file --verbose
        """
    )

    parser.add_argument(
        '--config',
        type=Path,
        required=True,
        help='Path to service configuration YAML file'
    )
    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/service.log'),
        help='Path to log file (default: logs/service.log)'
    )
    parser.add_argument(
        '--no-log-file',
        action='store_true',
        help='Disable file logging (console only)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable DEBUG logging'
    )

    return parser.parse_args()


def main():
    args = parse_args()

    log_file = None if args.no_log_file else args.log_file

    if not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    app = ServiceApp(config_path=args.config, log_file=log_file, verbose=args.verbose)

    try:
        app.setup()
        app.run()
    except Exception as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
