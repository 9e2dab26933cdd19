"""
Configuration schema for the zone map service.

Defines the service's data sources (what each polygon samples and how it is
classified), the weather provider, MQTT topics and the optional local canvas.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import yaml

from isotherm_zone.classification import DEFAULT_TEMPERATURE_RULES, ThresholdRule
from isotherm_zone.sampling import OPEN_METEO_FIELDS, OPEN_METEO_URL
from isotherm_zone.store import SourceBinding

SUPPORTED_PROVIDERS = {"open-meteo"}


@dataclass(frozen=True)
class ProviderConfig:
    """Weather provider HTTP settings."""

    base_url: str = OPEN_METEO_URL
    timeout: float = 10.0
    max_workers: int = 8  # Per-pass vertex fetch concurrency
    pass_timeout: float = 30.0

    def __post_init__(self):
        if not self.base_url:
            raise ValueError("provider base_url cannot be empty")
        if self.timeout <= 0:
            raise ValueError(f"provider timeout must be > 0, got {self.timeout}")
        if not 1 <= self.max_workers <= 64:
            raise ValueError(
                f"max_workers must be in [1, 64], got {self.max_workers}"
            )
        if self.pass_timeout <= 0:
            raise ValueError(f"pass_timeout must be > 0, got {self.pass_timeout}")


@dataclass(frozen=True)
class DataSourceConfig:
    """
    One measurement source bound to polygons.

    thresholds are evaluated top-to-bottom; first match wins.
    """

    source_id: str
    provider: str = "open-meteo"
    field: str = "temperature_2m"
    label: str = "Temp"
    unit: str = "°C"
    thresholds: Tuple[ThresholdRule, ...] = DEFAULT_TEMPERATURE_RULES
    polygons: Tuple[str, ...] = ()

    def __post_init__(self):
        """Validate data source configuration."""
        if not self.source_id:
            raise ValueError("source_id cannot be empty")

        if self.provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Invalid provider for source '{self.source_id}': {self.provider}. "
                f"Must be one of {SUPPORTED_PROVIDERS}"
            )

        if self.field not in OPEN_METEO_FIELDS:
            raise ValueError(
                f"Invalid field for source '{self.source_id}': {self.field}. "
                f"Must be one of {OPEN_METEO_FIELDS}"
            )

        if not self.thresholds:
            raise ValueError(f"Source '{self.source_id}' needs at least one threshold")

    @property
    def binding(self) -> SourceBinding:
        """Sampling/classification binding handed to the polygon store."""
        return SourceBinding(
            field=self.field,
            thresholds=self.thresholds,
            label=self.label,
            unit=self.unit,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "DataSourceConfig":
        thresholds = data.get("thresholds")
        return cls(
            source_id=data["source_id"],
            provider=data.get("provider", "open-meteo"),
            field=data.get("field", "temperature_2m"),
            label=data.get("label", "Temp"),
            unit=data.get("unit", "°C"),
            thresholds=(
                tuple(ThresholdRule.from_dict(rule) for rule in thresholds)
                if thresholds is not None else DEFAULT_TEMPERATURE_RULES
            ),
            polygons=tuple(str(p) for p in data.get("polygons", [])),
        )


DEFAULT_SOURCE = DataSourceConfig(source_id="temperature")


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration. Topics are templates formatted with service_id."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 0  # Render/timeline data plane QoS

    draw_topic: str = "isotherm/{service_id}/draw"
    render_topic: str = "isotherm/{service_id}/render"
    timeline_topic: str = "isotherm/{service_id}/timeline"

    def __post_init__(self):
        """Validate MQTT configuration."""
        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

    def topics(self, service_id: str) -> Dict[str, str]:
        """Resolved topic names."""
        return {
            "draw": self.draw_topic.format(service_id=service_id),
            "render": self.render_topic.format(service_id=service_id),
            "timeline": self.timeline_topic.format(service_id=service_id),
        }


@dataclass(frozen=True)
class CanvasConfig:
    """Local raster renderer (equirectangular map of `bounds`)."""

    bounds: Tuple[float, float, float, float]  # (min_lng, min_lat, max_lng, max_lat)
    resolution_wh: Tuple[int, int] = (1280, 720)
    snapshot_path: Optional[Path] = None

    def __post_init__(self):
        min_lng, min_lat, max_lng, max_lat = self.bounds
        if not (min_lng < max_lng and min_lat < max_lat):
            raise ValueError(f"canvas bounds must be (min_lng, min_lat, max_lng, max_lat), got {self.bounds}")

        width, height = self.resolution_wh
        if width <= 0 or height <= 0:
            raise ValueError(
                f"resolution_wh must have positive dimensions, got {self.resolution_wh}"
            )
        if width > 4096 or height > 4096:
            raise ValueError(
                f"resolution_wh dimensions too large (max 4096x4096), got {self.resolution_wh}"
            )


class SourceBindings:
    """
    Polygon id -> data source resolution.

    Polygons listed under a source's `polygons` (or assigned at runtime) use
    that source; everything else uses the default source.

    Thread Safety: assign() and binding_for() are lock-protected.
    """

    def __init__(self, sources: List[DataSourceConfig], default_source: Optional[str] = None):
        if not sources:
            sources = [DEFAULT_SOURCE]

        self._sources: Dict[str, DataSourceConfig] = {}
        for source in sources:
            if source.source_id in self._sources:
                raise ValueError(f"Duplicate source_id: {source.source_id}")
            self._sources[source.source_id] = source

        self.default_source = default_source or sources[0].source_id
        if self.default_source not in self._sources:
            raise ValueError(
                f"default_source '{self.default_source}' is not a configured source "
                f"({', '.join(self._sources)})"
            )

        self._configured: Dict[str, str] = {}
        for source in sources:
            for polygon_id in source.polygons:
                self._configured[polygon_id] = source.source_id
        self._assignments: Dict[str, str] = dict(self._configured)
        self._lock = threading.Lock()

    @property
    def sources(self) -> List[DataSourceConfig]:
        return list(self._sources.values())

    def source(self, source_id: str) -> DataSourceConfig:
        """
        Raises:
            KeyError: If source_id is unknown
        """
        try:
            return self._sources[source_id]
        except KeyError:
            raise KeyError(
                f"Unknown source '{source_id}'. Available: {', '.join(self._sources)}"
            ) from None

    def binding_for(self, polygon_id: str) -> DataSourceConfig:
        with self._lock:
            source_id = self._assignments.get(polygon_id, self.default_source)
        return self._sources[source_id]

    def source_binding(self, polygon_id: str) -> SourceBinding:
        """Store-facing resolver."""
        return self.binding_for(polygon_id).binding

    def assign(self, polygon_id: str, source_id: str) -> None:
        """
        Bind a polygon to a source (takes effect on its next sampling pass).

        Raises:
            KeyError: If source_id is unknown
        """
        self.source(source_id)
        with self._lock:
            self._assignments[polygon_id] = source_id

    def unassign(self, polygon_id: str) -> None:
        """Drop a runtime assignment; configured polygons fall back to their YAML source."""
        with self._lock:
            if polygon_id in self._configured:
                self._assignments[polygon_id] = self._configured[polygon_id]
            else:
                self._assignments.pop(polygon_id, None)

    def assignments(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._assignments)


@dataclass(frozen=True)
class ServiceConfig:
    """
    Main configuration for the zone map service.

    Loaded from YAML and validated at startup. Immutable after construction.
    """

    service_id: str
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    data_sources: Tuple[DataSourceConfig, ...] = ()
    default_source: Optional[str] = None
    mqtt_config: MQTTConfig = field(default_factory=MQTTConfig)
    canvas: Optional[CanvasConfig] = None
    max_passes: int = 4  # Concurrent sampling passes across polygons

    def __post_init__(self):
        """Validate service configuration."""
        if not self.service_id:
            raise ValueError("service_id cannot be empty")

        if not 1 <= self.max_passes <= 32:
            raise ValueError(
                f"max_passes must be in [1, 32], got {self.max_passes}"
            )

        # Fail at load time, not on the first polygon
        self.bindings()

    def bindings(self) -> SourceBindings:
        """Fresh SourceBindings for this configuration."""
        return SourceBindings(list(self.data_sources), self.default_source)

    @property
    def topics(self) -> Dict[str, str]:
        return self.mqtt_config.topics(self.service_id)

    @property
    def command_topic(self) -> str:
        return f"isotherm/control/{self.service_id}/commands"

    @property
    def status_topic(self) -> str:
        return f"isotherm/control/{self.service_id}/status"

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "ServiceConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            service_id: "map-1"

            provider:
              base_url: "https://api.open-meteo.com/v1/forecast"
              timeout: 10.0
              max_workers: 8

            data_sources:
              - source_id: "temperature"
                field: "temperature_2m"
                label: "Temp"
                unit: "°C"
                thresholds:
                  - {operator: "<", value: 10, color: "#FF0000", label: "Cold"}
                  - {operator: ">=", value: 10, color: "#0000FF", label: "Moderate"}
                polygons: []

            default_source: "temperature"

            mqtt_config:
              broker: "localhost"
              port: 1883

            canvas:
              bounds: [78.8, 20.4, 79.2, 20.8]
              resolution_wh: [1280, 720]
              snapshot_path: "./snapshots/map.png"
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        provider = ProviderConfig(**data.get("provider", {}))
        mqtt_config = MQTTConfig(**data.get("mqtt_config", {}))

        data_sources = tuple(
            DataSourceConfig.from_dict(source)
            for source in data.get("data_sources", [])
        )

        canvas = None
        canvas_data = data.get("canvas")
        if canvas_data:
            snapshot_path = canvas_data.get("snapshot_path")
            canvas = CanvasConfig(
                bounds=tuple(float(v) for v in canvas_data["bounds"]),
                resolution_wh=tuple(canvas_data.get("resolution_wh", [1280, 720])),
                snapshot_path=Path(snapshot_path) if snapshot_path else None,
            )

        return cls(
            service_id=data["service_id"],
            provider=provider,
            data_sources=data_sources,
            default_source=data.get("default_source"),
            mqtt_config=mqtt_config,
            canvas=canvas,
            max_passes=data.get("max_passes", 4),
        )
