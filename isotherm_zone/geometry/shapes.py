"""
Geometric Shapes Module
========================

Pure geographic ring representation - NO state, NO side effects.

Design:
- Immutable shapes (frozen dataclass pattern)
- Closing duplicate kept for rendering, excluded from every derivation
- Fail-fast validation at construction
- Thread-safe (immutable)
"""

import numpy as np
from dataclasses import dataclass
from typing import Sequence, Tuple

LngLat = Tuple[float, float]


class InvalidGeometry(ValueError):
    """Raised when a ring has fewer than 3 distinct vertices."""
    pass


def _as_vertex(point) -> LngLat:
    """Coerce one (lng, lat) pair, rejecting anything that is not two numbers."""
    try:
        lng, lat = point
    except (TypeError, ValueError):
        raise InvalidGeometry(f"Vertex must be a (lng, lat) pair, got {point!r}")

    for value in (lng, lat):
        if isinstance(value, bool) or not isinstance(value, (int, float, np.floating, np.integer)):
            raise InvalidGeometry(f"Vertex coordinates must be numeric, got {point!r}")
        if not np.isfinite(value):
            raise InvalidGeometry(f"Vertex coordinates must be finite, got {point!r}")

    return float(lng), float(lat)


@dataclass(frozen=True)
class Ring:
    """
    Immutable closed ring of (longitude, latitude) vertices.

    Design:
    - `coordinates` is the ring as drawn, always closed (first == last)
    - `vertices` holds the distinct vertices in drawing order
    - Centroid computed once at init

    Attributes:
        coordinates: Closed ring, tuple of (lng, lat)
        vertices: Distinct vertices (closing duplicate and repeats removed)

    Invariants:
        - len(vertices) >= 3
    """

    coordinates: Tuple[LngLat, ...]
    vertices: Tuple[LngLat, ...]

    def __post_init__(self):
        """Validate and precompute centroid."""
        if len(self.vertices) < 3:
            raise InvalidGeometry(
                f"Ring must have at least 3 distinct vertices, got {len(self.vertices)}"
            )

        centroid = np.asarray(self.vertices, dtype=np.float64).mean(axis=0)
        object.__setattr__(self, '_centroid', (float(centroid[0]), float(centroid[1])))

    @classmethod
    def from_coordinates(cls, points: Sequence[Sequence[float]]) -> 'Ring':
        """
        Build a ring from drawn coordinates.

        The input may or may not repeat the first vertex at the end; either
        way the stored `coordinates` are closed and `vertices` are distinct.

        Args:
            points: Sequence of (lng, lat) pairs

        Returns:
            Ring instance

        Raises:
            InvalidGeometry: If malformed or fewer than 3 distinct vertices
        """
        if points is None:
            raise InvalidGeometry("Ring coordinates are required")

        drawn = [_as_vertex(p) for p in points]

        open_ring = drawn[:-1] if len(drawn) > 1 and drawn[0] == drawn[-1] else drawn

        distinct = []
        seen = set()
        for vertex in open_ring:
            if vertex not in seen:
                seen.add(vertex)
                distinct.append(vertex)

        closed = tuple(open_ring) + (open_ring[0],) if open_ring else ()
        return cls(coordinates=closed, vertices=tuple(distinct))

    @property
    def centroid(self) -> LngLat:
        """(lng, lat) arithmetic mean of the distinct vertices."""
        return self._centroid

    def __len__(self) -> int:
        """Number of distinct vertices."""
        return len(self.vertices)

    def to_list(self) -> list:
        """Closed ring as nested lists (GeoJSON-style)."""
        return [[lng, lat] for lng, lat in self.coordinates]
