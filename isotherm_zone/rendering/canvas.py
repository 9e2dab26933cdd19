"""
Map Canvas Renderer Module
==========================

Local raster implementation of the map renderer protocol.

Design:
- Equirectangular projection of a fixed (lng, lat) bounding box
- Keeps its own layer/marker maps keyed by polygon id
- Drawing is stateless: draw() composes a fresh frame from the maps
- Uses supervision drawing utilities

Dependencies:
- supervision (draw utilities, Color, Point)
- numpy (arrays)
- opencv (PNG snapshot)
"""

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import cv2
import numpy as np
import supervision as sv

from isotherm_zone.classification import NEUTRAL_COLOR
from isotherm_zone.geometry import LngLat

logger = logging.getLogger(__name__)

Bounds = Tuple[float, float, float, float]


class MapCanvasRenderer:
    """
    Renders classified polygons and centroid labels onto an image.

    Usage:
        canvas = MapCanvasRenderer(bounds=(78.8, 20.4, 79.2, 20.8))
        store = PolygonStore(sampler, renderers=[canvas])
        ...
        frame = canvas.draw()
        canvas.save("runs/map.png")

    Thread Safety:
        Layer/marker maps are guarded by a lock; draw() works on a copy.
    """

    def __init__(
        self,
        bounds: Bounds,
        resolution_wh: Tuple[int, int] = (1280, 720),
        background_color: sv.Color = sv.Color(r=245, g=245, b=245),
        outline_color: sv.Color = sv.Color(r=0, g=0, b=0),
        text_color: sv.Color = sv.Color(r=255, g=255, b=255),
        thickness: int = 2,
        text_scale: float = 0.5,
        text_thickness: int = 1,
        text_padding: int = 6,
        opacity: float = 0.6,
    ):
        """
        Args:
            bounds: (min_lng, min_lat, max_lng, max_lat) mapped onto the canvas
            resolution_wh: (width, height) of the canvas in pixels
            background_color: Canvas fill
            outline_color: Polygon outline color
            text_color: Marker text color (background uses the polygon color)
            thickness: Outline thickness
            text_scale: Scale factor for marker text
            text_thickness: Thickness for marker text
            text_padding: Padding around marker text
            opacity: Polygon fill opacity (0-1)
        """
        min_lng, min_lat, max_lng, max_lat = bounds
        if max_lng <= min_lng or max_lat <= min_lat:
            raise ValueError(f"bounds must have positive extent, got {bounds}")
        width, height = resolution_wh
        if width <= 0 or height <= 0:
            raise ValueError(f"resolution_wh must be positive, got {resolution_wh}")

        self.bounds = bounds
        self.resolution_wh = resolution_wh
        self.background_color = background_color
        self.outline_color = outline_color
        self.text_color = text_color
        self.thickness = thickness
        self.text_scale = text_scale
        self.text_thickness = text_thickness
        self.text_padding = text_padding
        self.opacity = opacity

        self._layers: Dict[str, Tuple[List[List[float]], str]] = {}
        self._markers: Dict[str, Tuple[LngLat, str]] = {}
        self._lock = threading.Lock()

    # ===== MapRenderer protocol =====

    def render_polygon(self, polygon_id: str, ring: List[List[float]], color: str) -> None:
        """Add or replace the polygon layer for `polygon_id`."""
        with self._lock:
            self._layers[polygon_id] = (ring, color)

    def remove_polygon(self, polygon_id: str) -> None:
        with self._lock:
            self._layers.pop(polygon_id, None)

    def place_marker(self, polygon_id: str, centroid: LngLat, label: str) -> None:
        """Add or replace the centroid marker for `polygon_id`."""
        with self._lock:
            self._markers[polygon_id] = (centroid, label)

    def remove_marker(self, polygon_id: str) -> None:
        with self._lock:
            self._markers.pop(polygon_id, None)

    # ===== Introspection =====

    @property
    def polygon_ids(self) -> List[str]:
        with self._lock:
            return list(self._layers.keys())

    @property
    def marker_ids(self) -> List[str]:
        with self._lock:
            return list(self._markers.keys())

    # ===== Drawing =====

    def project(self, lng: float, lat: float) -> Tuple[int, int]:
        """(lng, lat) -> (x, y) pixel, y growing southwards."""
        min_lng, min_lat, max_lng, max_lat = self.bounds
        width, height = self.resolution_wh
        x = (lng - min_lng) / (max_lng - min_lng) * (width - 1)
        y = (max_lat - lat) / (max_lat - min_lat) * (height - 1)
        return int(round(x)), int(round(y))

    def _fill(self, color: str) -> sv.Color:
        """Layer color as sv.Color; non-hex strings fall back to the neutral color."""
        try:
            return sv.Color.from_hex(color)
        except ValueError:
            logger.warning(f"Unsupported canvas color {color!r}, using {NEUTRAL_COLOR}")
            return sv.Color.from_hex(NEUTRAL_COLOR)

    def _pixels(self, ring: List[List[float]]) -> np.ndarray:
        return np.array([self.project(lng, lat) for lng, lat in ring], dtype=np.int32)

    def draw(self, frame: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Compose all layers and markers.

        Args:
            frame: Optional base image (default: blank canvas)

        Returns:
            BGR frame with polygons and labels drawn
        """
        if frame is None:
            width, height = self.resolution_wh
            frame = np.zeros((height, width, 3), dtype=np.uint8)
            frame[:] = self.background_color.as_bgr()

        with self._lock:
            layers = list(self._layers.values())
            markers = [(pid, m, self._layers.get(pid)) for pid, m in self._markers.items()]

        for ring, color in layers:
            polygon = self._pixels(ring)
            frame = sv.draw_filled_polygon(
                scene=frame,
                polygon=polygon,
                color=self._fill(color),
                opacity=self.opacity,
            )
            frame = sv.draw_polygon(
                scene=frame,
                polygon=polygon,
                color=self.outline_color,
                thickness=self.thickness,
            )

        for _, (centroid, label), layer in markers:
            x, y = self.project(*centroid)
            background = self._fill(layer[1]) if layer else self.outline_color
            frame = sv.draw_text(
                scene=frame,
                text=label,
                text_anchor=sv.Point(x=x, y=y),
                text_color=self.text_color,
                text_scale=self.text_scale,
                text_thickness=self.text_thickness,
                text_padding=self.text_padding,
                background_color=background,
            )

        return frame

    def save(self, path: str | Path) -> Path:
        """Write a PNG snapshot of the current canvas."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if not cv2.imwrite(str(path), self.draw()):
            raise IOError(f"Failed to write canvas snapshot: {path}")
        return path
