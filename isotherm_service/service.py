"""
Zone Map Service - Polygon classification + timeline orchestrator.

This module provides the ZoneMapService class which wires the polygon
store, the timeline engine and the MQTT surface together: draw events
become store mutations, classified polygons become render commands, and
every committed timeline window resamples all polygons.

Threading Model:
- Draw Subscriber Thread (paho-mqtt internal, calls on_draw)
- Control Plane Thread (paho-mqtt internal, command handlers)
- Sampling Pass Threads (PolygonStore executor, render + listeners)
- Vertex Fetch Threads (TemperatureSampler executor, HTTP I/O)

Nothing on the MQTT threads blocks on I/O: store mutations return futures.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional

from isotherm_mqtt import (
    DrawAction,
    DrawEvent,
    DrawEventSubscriber,
    RenderCommandPublisher,
    TimelineWindowPublisher,
    create_logger,
)
from isotherm_timeline import Mode, TimelineEngine
from isotherm_zone import (
    InvalidGeometry,
    MapCanvasRenderer,
    OpenMeteoProvider,
    PolygonEvent,
    PolygonSnapshot,
    PolygonStore,
    Ring,
    TemperatureSampler,
    TimeRange,
)
from isotherm_zone.classification import legend
from isotherm_service.config import ServiceConfig

logger = logging.getLogger(__name__)


class ZoneMapService:
    """
    Main zone map service.

    Usage:
        config = ServiceConfig.from_yaml("config/service.yaml")
        control_plane = MQTTControlPlane(...)
        render_publisher = RenderCommandPublisher(...)
        timeline_publisher = TimelineWindowPublisher(...)

        service = ZoneMapService(
            config=config,
            control_plane=control_plane,
            render_publisher=render_publisher,
            timeline_publisher=timeline_publisher,
        )

        service.setup()
        service.start()
        service.wait()  # Blocks until stop()
    """

    def __init__(
        self,
        config: ServiceConfig,
        control_plane,  # MQTTControlPlane
        render_publisher: RenderCommandPublisher,
        timeline_publisher: TimelineWindowPublisher,
        draw_subscriber: Optional[DrawEventSubscriber] = None,
        provider=None,  # WeatherProvider
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            config: Service configuration
            control_plane: MQTT control plane for commands/status
            render_publisher: Map renderer over MQTT
            timeline_publisher: Committed window publisher
            draw_subscriber: Draw event subscriber (default: built in setup())
            provider: Weather provider (default: OpenMeteoProvider from config)
            clock: Local wall-clock source for the timeline
        """
        self.config = config
        self.control_plane = control_plane
        self.render_publisher = render_publisher
        self.timeline_publisher = timeline_publisher
        self.draw_subscriber = draw_subscriber

        self.bindings = config.bindings()
        self.provider = provider or OpenMeteoProvider(
            base_url=config.provider.base_url,
            timeout=config.provider.timeout,
        )
        self.sampler = TemperatureSampler(
            self.provider,
            max_workers=config.provider.max_workers,
            pass_timeout=config.provider.pass_timeout,
        )

        self.canvas: Optional[MapCanvasRenderer] = None
        renderers = [render_publisher]
        if config.canvas is not None:
            self.canvas = MapCanvasRenderer(
                bounds=config.canvas.bounds,
                resolution_wh=config.canvas.resolution_wh,
            )
            renderers.append(self.canvas)

        self.store = PolygonStore(
            self.sampler,
            binding_for=self.bindings.source_binding,
            renderers=renderers,
            max_passes=config.max_passes,
        )
        self.timeline = TimelineEngine(clock=clock)

        self._unsubscribers: List[Callable[[], None]] = []
        self._running = False
        self._stopped_event = threading.Event()

        logger.info(f"ZoneMapService initialized for service_id={config.service_id}")

    def setup(self):
        """
        Wire collaborators. Must be called before start().
        """
        self._unsubscribers.append(self.timeline.subscribe(self.timeline_publisher.publish_window))
        self._unsubscribers.append(self.timeline.subscribe(self._on_window))
        self._unsubscribers.append(self.store.subscribe(self._on_polygon_event))

        # Sample against the initial selection
        committed = self.timeline.resolved()
        self.store.set_window(TimeRange(committed.start, committed.end))

        self._setup_control_handlers()

        if self.draw_subscriber is None:
            mqtt_config = self.config.mqtt_config
            self.draw_subscriber = DrawEventSubscriber(
                broker_host=mqtt_config.broker,
                broker_port=mqtt_config.port,
                draw_topic=self.config.topics["draw"],
                on_draw=self.on_draw,
                logger=create_logger("draw"),
                client_id=f"isotherm_draw_{self.config.service_id}",
                username=mqtt_config.username,
                password=mqtt_config.password,
            )

        logger.info("Service setup complete")

    def _setup_control_handlers(self):
        """Register command handlers with the control plane's registry."""
        registry = self.control_plane.command_registry

        # Timeline pointer input
        registry.register(
            "timeline_pointer_down",
            self._handle_pointer_down,
            "Press a timeline handle (single | start | end)",
            params=("handle",),
        )
        registry.register(
            "timeline_pointer_move",
            self._handle_pointer_move,
            "Move the pressed handle to a track position in [0, 1]",
            params=("fraction",),
        )
        registry.register(
            "timeline_pointer_up",
            self._handle_pointer_up,
            "Release the pressed handle",
        )
        registry.register(
            "timeline_click",
            self._handle_click,
            "Click the track at a position in [0, 1]",
            params=("fraction",),
        )

        # Timeline mode and shortcuts
        registry.register(
            "timeline_mode",
            self._handle_mode,
            "Switch selection mode (single | range)",
            params=("mode",),
        )
        registry.register("timeline_now", self._handle_now, "Jump to the current hour")
        registry.register("timeline_today", self._handle_today, "Jump to today's midnight")
        registry.register("timeline_status", self._handle_timeline_status, "Report the current selection")

        # Polygons
        registry.register("list_polygons", self._handle_list_polygons, "List polygons with derived state")
        registry.register("list_sources", self._handle_list_sources, "List data sources and legends")
        registry.register(
            "assign_source",
            self._handle_assign_source,
            "Bind a polygon to a data source and resample it",
            params=("polygon_id", "source_id"),
        )
        registry.register("refresh_polygons", self._handle_refresh_polygons, "Resample every polygon")

        logger.info(f"Control handlers registered: {registry.count()}")

    def start(self):
        """
        Start the service (non-blocking).

        Lifecycle:
        1. Connect control plane
        2. Connect publishers
        3. Connect draw subscriber
        4. Publish the current timeline window
        """
        if self._running:
            logger.warning("Service already running")
            return

        logger.info("Starting zone map service")

        if not self.control_plane.connect(timeout=5.0):
            raise RuntimeError("Failed to connect to MQTT broker (control plane)")

        self.render_publisher.connect()
        self.timeline_publisher.connect()
        self.draw_subscriber.connect()

        committed = self.timeline.resolved()
        self.timeline_publisher.publish_window(committed.start, committed.end, committed.mode)

        self._running = True
        self._stopped_event.clear()
        self.control_plane.publish_status("running", {"timeline": self.timeline.describe()})
        logger.info("✅ Zone map service started")

    def wait(self):
        """Block until stop() is called."""
        if not self._running:
            logger.warning("Service not running")
            return

        try:
            while not self._stopped_event.wait(timeout=1.0):
                pass
        except KeyboardInterrupt:
            logger.info("Received KeyboardInterrupt, stopping...")
            self.stop()

    def stop(self):
        """
        Stop the service gracefully.

        Lifecycle:
        1. Stop draw subscriber (no new mutations)
        2. Drain sampling passes, shut down the sampler and provider
        3. Save canvas snapshot (if configured)
        4. Disconnect publishers and control plane
        """
        if not self._running:
            logger.warning("Service not running")
            return

        logger.info("Stopping zone map service")

        try:
            self.draw_subscriber.stop()
        except Exception as e:
            logger.error(f"Error stopping draw subscriber: {e}")

        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

        self.store.close()
        self.sampler.shutdown()
        self.provider.close()

        self._save_snapshot()

        self.render_publisher.disconnect()
        self.timeline_publisher.disconnect()

        self.control_plane.publish_status("stopped")
        self.control_plane.disconnect()

        self._running = False
        self._stopped_event.set()
        logger.info("✅ Zone map service stopped")

    # ─────────────────────────────────────────────────────────────────────
    # Collaborator callbacks
    # ─────────────────────────────────────────────────────────────────────

    def on_draw(self, event: DrawEvent) -> None:
        """
        Apply a draw event to the store (Draw Subscriber Thread).

        Raises:
            InvalidGeometry: After reporting `polygon_rejected` on the status topic
            ValueError: Unknown source_id (reported as `polygon_rejected`)
        """
        polygon_id = event.polygon_id

        if event.action is DrawAction.DELETE:
            self.store.remove(polygon_id)
            self.bindings.unassign(polygon_id)
            return

        try:
            # Validate source and geometry before touching bindings or the store
            if event.source_id is not None:
                self.bindings.source(event.source_id)
            Ring.from_coordinates(event.ring)

            if event.source_id is not None:
                self.bindings.assign(polygon_id, event.source_id)

            if event.action is DrawAction.CREATE:
                self.store.register(polygon_id, event.ring)
            else:
                self.store.update(polygon_id, event.ring)

        except InvalidGeometry as e:
            logger.warning(f"Rejected geometry for {polygon_id}: {e}")
            self.control_plane.publish_status(
                "polygon_rejected",
                {"polygon_id": polygon_id, "action": event.action.value, "error": str(e)},
            )
            raise

        except KeyError as e:
            logger.warning(f"Rejected {event.action.value} for {polygon_id}: {e}")
            self.control_plane.publish_status(
                "polygon_rejected",
                {"polygon_id": polygon_id, "action": event.action.value, "error": str(e)},
            )
            raise ValueError(str(e)) from e

    def _on_window(self, start: datetime, end: datetime, mode: Mode) -> None:
        """Timeline subscriber: resample every polygon for the new window."""
        self.store.set_window(TimeRange(start, end))

    def _on_polygon_event(self, event: PolygonEvent, snapshot: PolygonSnapshot) -> None:
        """Store listener (Sampling Pass Thread)."""
        logger.debug(
            f"Polygon {event.value}: {snapshot.polygon_id} color={snapshot.color} "
            f"generation={snapshot.generation}"
        )
        self._save_snapshot()

    def _save_snapshot(self) -> None:
        if self.canvas is None or self.config.canvas.snapshot_path is None:
            return
        try:
            self.canvas.save(self.config.canvas.snapshot_path)
        except (IOError, OSError) as e:
            logger.error(f"Failed to save canvas snapshot: {e}")

    # ─────────────────────────────────────────────────────────────────────
    # Command Handlers (called by Control Plane Thread)
    # ─────────────────────────────────────────────────────────────────────

    def _timeline_state(self) -> Dict:
        return {
            "timeline": self.timeline.describe(),
            "window": self.timeline.resolved().to_dict(),
        }

    def _handle_pointer_down(self, command: Dict):
        self.timeline.pointer_down(command["handle"])

    def _handle_pointer_move(self, command: Dict):
        self.timeline.pointer_move(float(command["fraction"]))

    def _handle_pointer_up(self, command: Dict):
        self.timeline.pointer_up()

    def _handle_click(self, command: Dict):
        if self.timeline.click(float(command["fraction"])):
            self.control_plane.publish_status("timeline_updated", self._timeline_state())

    def _handle_mode(self, command: Dict):
        self.timeline.set_mode(command["mode"])
        self.control_plane.publish_status("timeline_updated", self._timeline_state())
        logger.info(f"Timeline mode: {self.timeline.mode.value}")

    def _handle_now(self, command: Dict):
        self.timeline.go_to_now()
        self.control_plane.publish_status("timeline_updated", self._timeline_state())

    def _handle_today(self, command: Dict):
        self.timeline.go_to_today()
        self.control_plane.publish_status("timeline_updated", self._timeline_state())

    def _handle_timeline_status(self, command: Dict):
        self.control_plane.publish_status("timeline_status", self._timeline_state())

    def _handle_list_polygons(self, command: Dict):
        polygons = [snapshot.to_dict() for snapshot in self.store.list()]
        self.control_plane.publish_status("polygons_list", {"polygons": polygons})
        logger.info(f"Listed polygons: {self.store.ids()}")

    def _handle_list_sources(self, command: Dict):
        sources = {
            source.source_id: {
                "field": source.field,
                "label": source.label,
                "unit": source.unit,
                "legend": [list(entry) for entry in legend(source.thresholds)],
            }
            for source in self.bindings.sources
        }
        self.control_plane.publish_status(
            "sources_list",
            {"sources": sources, "default_source": self.bindings.default_source},
        )

    def _handle_assign_source(self, command: Dict):
        polygon_id = command["polygon_id"]
        source_id = command["source_id"]
        self.bindings.assign(polygon_id, source_id)
        self.store.refresh(polygon_id)
        self.control_plane.publish_status(
            "source_assigned", {"polygon_id": polygon_id, "source_id": source_id}
        )
        logger.info(f"Polygon {polygon_id} bound to source {source_id}")

    def _handle_refresh_polygons(self, command: Dict):
        count = len(self.store.refresh_all())
        self.control_plane.publish_status("polygons_refreshed", {"count": count})
