"""
Tests for the Open-Meteo provider and the concurrent vertex sampler.
"""

import threading
from datetime import datetime
from unittest.mock import MagicMock

import pytest
import requests

from isotherm_zone.sampling import (
    OpenMeteoProvider,
    SampleFetchFailure,
    TemperatureSampler,
    TimeRange,
    aggregate,
)

from conftest import FakeProvider

VERTICES = [(78.90, 20.50), (79.00, 20.50), (79.00, 20.60), (78.90, 20.60)]


def _provider_with(payload=None, status_error=None, json_error=None, get_error=None):
    session = MagicMock()
    response = MagicMock()
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    if get_error is not None:
        session.get.side_effect = get_error
    else:
        session.get.return_value = response
    return OpenMeteoProvider(timeout=3.0, session=session), session


@pytest.mark.unit
class TestOpenMeteoProvider:

    def test_returns_hourly_series(self):
        provider, session = _provider_with({'hourly': {'temperature_2m': [21.5, 22.0]}})

        series = provider.fetch_series(20.5, 78.9, "temperature_2m")

        assert series == [21.5, 22.0]
        session.get.assert_called_once()
        _, kwargs = session.get.call_args
        assert kwargs['timeout'] == 3.0
        assert kwargs['params'] == {
            'latitude': 20.5,
            'longitude': 78.9,
            'hourly': 'temperature_2m',
            'timezone': 'auto',
        }

    def test_window_narrows_query(self):
        provider, session = _provider_with({'hourly': {'temperature_2m': [18.0]}})
        window = TimeRange(datetime(2026, 10, 19, 14), datetime(2026, 10, 19, 15))

        provider.fetch_series(20.5, 78.9, "temperature_2m", window)

        params = session.get.call_args.kwargs['params']
        assert params['start_hour'] == "2026-10-19T14:00"
        assert params['end_hour'] == "2026-10-19T15:00"

    def test_transport_error(self):
        provider, _ = _provider_with(get_error=requests.ConnectionError("refused"))

        with pytest.raises(SampleFetchFailure):
            provider.fetch_series(20.5, 78.9, "temperature_2m")

    def test_http_error_status(self):
        provider, _ = _provider_with({}, status_error=requests.HTTPError("503"))

        with pytest.raises(SampleFetchFailure):
            provider.fetch_series(20.5, 78.9, "temperature_2m")

    def test_invalid_json(self):
        provider, _ = _provider_with(json_error=ValueError("Expecting value"))

        with pytest.raises(SampleFetchFailure, match="Invalid JSON"):
            provider.fetch_series(20.5, 78.9, "temperature_2m")

    @pytest.mark.parametrize("payload", [
        {},
        {'hourly': {}},
        {'hourly': {'temperature_2m': []}},
        {'hourly': {'temperature_2m': [None, 20.0]}},
        {'hourly': {'temperature_2m': ["21.0"]}},
        [1, 2, 3],
    ])
    def test_unusable_payloads(self, payload):
        provider, _ = _provider_with(payload)

        with pytest.raises(SampleFetchFailure):
            provider.fetch_series(20.5, 78.9, "temperature_2m")

    def test_close_releases_session(self):
        provider, session = _provider_with({})

        provider.close()

        session.close.assert_called_once()


@pytest.mark.unit
class TestAggregate:

    def test_mean_of_present_samples(self):
        assert aggregate([20.0, None, 30.0]) == 25.0

    def test_all_absent(self):
        assert aggregate([None, None]) is None

    def test_empty(self):
        assert aggregate([]) is None


@pytest.mark.unit
class TestTemperatureSampler:

    def test_samples_align_with_vertices(self):
        provider = FakeProvider(value_for=lambda lat, lng: lng * 10)
        with TemperatureSampler(provider, max_workers=4) as sampler:
            samples = sampler.sample(VERTICES)

        assert samples == pytest.approx((789.0, 790.0, 790.0, 789.0))
        # (lng, lat) vertices are queried as (lat, lng)
        assert {(lat, lng) for lat, lng, _, _ in provider.calls} == {
            (lat, lng) for lng, lat in VERTICES
        }

    def test_failed_vertex_is_absent(self):
        provider = FakeProvider(failures={(20.60, 79.00)})
        with TemperatureSampler(provider, max_workers=4) as sampler:
            samples = sampler.sample(VERTICES)

        assert samples == (20.0, 20.0, None, 20.0)
        assert sampler.aggregate(samples) == 20.0

    def test_all_failed(self):
        provider = FakeProvider(failures={(lat, lng) for lng, lat in VERTICES})
        with TemperatureSampler(provider, max_workers=2) as sampler:
            samples = sampler.sample(VERTICES)

        assert samples == (None, None, None, None)
        assert aggregate(samples) is None

    def test_non_numeric_value_is_absent(self):
        provider = FakeProvider(value_for=lambda lat, lng: "n/a" if lat == 20.50 else 10.0)
        with TemperatureSampler(provider, max_workers=4) as sampler:
            samples = sampler.sample(VERTICES)

        assert samples == (None, None, 10.0, 10.0)

    def test_non_finite_value_is_absent(self):
        values = {78.90: float("nan"), 79.00: float("inf")}
        provider = FakeProvider(value_for=lambda lat, lng: values[lng] if lat == 20.50 else 10.0)
        with TemperatureSampler(provider, max_workers=4) as sampler:
            samples = sampler.sample(VERTICES)

        assert samples == (None, None, 10.0, 10.0)
        assert aggregate(samples) == 10.0

    def test_field_and_window_passed_through(self):
        provider = FakeProvider()
        window = TimeRange(datetime(2026, 10, 19), datetime(2026, 10, 20))
        with TemperatureSampler(provider, max_workers=2) as sampler:
            sampler.sample(VERTICES[:3], field="relative_humidity_2m", window=window)

        assert {(field, w) for _, _, field, w in provider.calls} == {("relative_humidity_2m", window)}

    def test_empty_vertices(self):
        provider = FakeProvider()
        with TemperatureSampler(provider) as sampler:
            assert sampler.sample([]) == ()
        assert provider.calls == []

    def test_late_vertex_is_absent_after_pass_timeout(self):
        gate = threading.Event()
        provider = FakeProvider(gated={(20.50, 78.90)}, gate=gate)
        sampler = TemperatureSampler(provider, max_workers=4, pass_timeout=0.2)
        try:
            samples = sampler.sample(VERTICES)
        finally:
            gate.set()
            sampler.shutdown()

        assert samples == (None, 20.0, 20.0, 20.0)

    def test_invalid_pool_size(self):
        with pytest.raises(ValueError):
            TemperatureSampler(FakeProvider(), max_workers=0)
