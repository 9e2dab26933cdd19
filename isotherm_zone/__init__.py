"""
Isotherm Zone
=============

Bounded Context: Geographic polygons classified by sampled measurements.

Design Philosophy:
- Separation of Concerns: Geometry, Classification, Sampling, Rendering separated
- KISS: Simple to read, not simple to write once
- Pragmatism > Purism: numpy for means, supervision for drawing

Architecture:

    isotherm_zone/
    ├── geometry/          # Pure geometry (immutable, stateless)
    │   └── shapes.py      # Ring, InvalidGeometry
    │
    ├── classification/    # Threshold palettes (pure)
    │   └── rules.py       # ThresholdRule, classify
    │
    ├── sampling/          # Per-vertex I/O (stateless, concurrent)
    │   ├── provider.py    # OpenMeteoProvider
    │   └── sampler.py     # TemperatureSampler, aggregate
    │
    ├── rendering/         # Visualization (stateless drawing)
    │   └── canvas.py      # MapCanvasRenderer
    │
    └── store.py           # PolygonStore (stateful orchestration)

Usage:

    from isotherm_zone import (
        OpenMeteoProvider, TemperatureSampler, PolygonStore, MapCanvasRenderer
    )

    sampler = TemperatureSampler(OpenMeteoProvider())
    canvas = MapCanvasRenderer(bounds=(78.8, 20.4, 79.2, 20.8))
    store = PolygonStore(sampler, renderers=[canvas])

    snapshot = store.register("poly-1", ring).result()
    print(snapshot.color, snapshot.aggregate)
"""

# Geometry Layer (immutable, stateless)
from isotherm_zone.geometry import Ring, InvalidGeometry

# Classification Layer (pure)
from isotherm_zone.classification import (
    NEUTRAL_COLOR,
    DEFAULT_TEMPERATURE_RULES,
    Operator,
    ThresholdRule,
    classify,
)

# Sampling Layer (I/O)
from isotherm_zone.sampling import (
    OpenMeteoProvider,
    SampleFetchFailure,
    TemperatureSampler,
    TimeRange,
    aggregate,
)

# Rendering Layer (stateless)
from isotherm_zone.rendering import MapCanvasRenderer

# Store (orchestration)
from isotherm_zone.store import (
    DEFAULT_BINDING,
    DerivedState,
    MapRenderer,
    PolygonEvent,
    PolygonSnapshot,
    PolygonStore,
    SourceBinding,
)

__all__ = [
    # Geometry
    "Ring",
    "InvalidGeometry",
    # Classification
    "NEUTRAL_COLOR",
    "DEFAULT_TEMPERATURE_RULES",
    "Operator",
    "ThresholdRule",
    "classify",
    # Sampling
    "OpenMeteoProvider",
    "SampleFetchFailure",
    "TemperatureSampler",
    "TimeRange",
    "aggregate",
    # Rendering
    "MapCanvasRenderer",
    # Store
    "DEFAULT_BINDING",
    "DerivedState",
    "MapRenderer",
    "PolygonEvent",
    "PolygonSnapshot",
    "PolygonStore",
    "SourceBinding",
]

__version__ = "1.0.0"
