"""
Geometry Layer
==============

Bounded Context: Pure geographic shapes.

Responsibilities:
- Ring representation (immutable)
- Closing-duplicate handling and distinct-vertex validation
- Centroid of distinct vertices
- NO state, NO sampling, NO rendering
"""

from isotherm_zone.geometry.shapes import Ring, InvalidGeometry, LngLat

__all__ = [
    "Ring",
    "InvalidGeometry",
    "LngLat",
]
