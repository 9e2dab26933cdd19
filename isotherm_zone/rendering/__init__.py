"""
Rendering Layer
===============

Bounded Context: Local raster rendering of classified polygons.

Responsibilities:
- Map renderer protocol implementation (layers + markers by polygon id)
- Projection of (lng, lat) onto an image
- NO sampling, NO classification
"""

from isotherm_zone.rendering.canvas import MapCanvasRenderer

__all__ = [
    "MapCanvasRenderer",
]
