"""
Shared fixtures: fake weather providers, a fixed clock, mocked MQTT collaborators.
"""

import threading
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from isotherm_control import CommandRegistry
from isotherm_zone.sampling import SampleFetchFailure


FIXED_NOW = datetime(2026, 10, 19, 14, 30)


class FakeProvider:
    """
    In-memory WeatherProvider.

    value_for(lat, lng) -> float, or raise SampleFetchFailure for points in `failures`.
    Points in `gated` block until `gate` is set.
    """

    def __init__(self, value_for=None, failures=(), gated=(), gate=None):
        self.value_for = value_for or (lambda lat, lng: 20.0)
        self.failures = set(failures)
        self.gated = set(gated)
        self.gate = gate or threading.Event()
        self.calls = []
        self.closed = False
        self._lock = threading.Lock()

    def fetch_series(self, latitude, longitude, field, window=None):
        with self._lock:
            self.calls.append((latitude, longitude, field, window))
        if (latitude, longitude) in self.gated:
            self.gate.wait(timeout=5.0)
        if (latitude, longitude) in self.failures:
            raise SampleFetchFailure(f"no data at ({latitude}, {longitude})")
        return [self.value_for(latitude, longitude), 0.0]

    def close(self):
        self.closed = True


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def renderer():
    """Mock map renderer (render_polygon / remove_polygon / place_marker / remove_marker)."""
    return MagicMock(spec=["render_polygon", "remove_polygon", "place_marker", "remove_marker"])


@pytest.fixture
def control_plane():
    plane = MagicMock()
    plane.connect.return_value = True
    # Real registry so registration and dispatch are exercised
    plane.command_registry = CommandRegistry()
    return plane


SQUARE = [[78.90, 20.50], [79.00, 20.50], [79.00, 20.60], [78.90, 20.60], [78.90, 20.50]]
