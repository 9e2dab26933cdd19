"""
Sampling Layer
==============

Bounded Context: Per-vertex measurement fetch and aggregation (stateless I/O).

Responsibilities:
- Provider protocol + Open-Meteo client
- Concurrent fan-out/fan-in with per-vertex failure isolation
- Mean over present samples
"""

from isotherm_zone.sampling.provider import (
    OPEN_METEO_FIELDS,
    OPEN_METEO_URL,
    OpenMeteoProvider,
    SampleFetchFailure,
    TimeRange,
    WeatherProvider,
)
from isotherm_zone.sampling.sampler import TemperatureSampler, aggregate

__all__ = [
    "OPEN_METEO_FIELDS",
    "OPEN_METEO_URL",
    "OpenMeteoProvider",
    "SampleFetchFailure",
    "TimeRange",
    "WeatherProvider",
    "TemperatureSampler",
    "aggregate",
]
