"""
Weather Provider Module
=======================

Bounded Context: Outbound point queries against an hourly weather API.

Design:
- Protocol for providers (injectable, fakeable in tests)
- Open-Meteo forecast client over a shared requests.Session
- Every failure mode surfaces as SampleFetchFailure; callers decide recovery

API Documentation: https://open-meteo.com/en/docs
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol, Tuple

import requests

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"

OPEN_METEO_FIELDS = (
    'temperature_2m',
    'relative_humidity_2m',
    'precipitation',
    'wind_speed_10m',
    'wind_direction_10m',
    'pressure_msl',
    'cloud_cover',
    'visibility',
)


class SampleFetchFailure(Exception):
    """Raised when one point query yields no usable value."""
    pass


@dataclass(frozen=True)
class TimeRange:
    """Half-open [start, end) window used to narrow hourly series."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError(f"TimeRange end must be after start, got {self.start} -> {self.end}")


class WeatherProvider(Protocol):
    """Protocol for hourly point-series providers (interface)."""

    def fetch_series(
        self,
        latitude: float,
        longitude: float,
        field: str,
        window: Optional[TimeRange] = None,
    ) -> List[float]:
        """
        Fetch the hourly series for one point.

        Raises:
            SampleFetchFailure: On any transport, status or payload problem
        """
        ...


def _hour_param(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:00")


class OpenMeteoProvider:
    """
    Open-Meteo forecast client.

    Thread Safety:
        requests.Session is shared by the sampler's worker threads for
        plain GETs; no per-request state is kept on the provider.

    Example:
        >>> provider = OpenMeteoProvider(timeout=5.0)
        >>> provider.fetch_series(20.59, 78.96, "temperature_2m")[0]
        31.4
    """

    def __init__(
        self,
        base_url: str = OPEN_METEO_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            base_url: Forecast endpoint
            timeout: Per-request timeout in seconds
            session: Optional session (default: new requests.Session)
        """
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def build_params(
        self,
        latitude: float,
        longitude: float,
        field: str,
        window: Optional[TimeRange] = None,
    ) -> dict:
        """Query parameters for one point request."""
        params = {
            'latitude': latitude,
            'longitude': longitude,
            'hourly': field,
            'timezone': 'auto',
        }
        if window is not None:
            params['start_hour'] = _hour_param(window.start)
            params['end_hour'] = _hour_param(window.end)
        return params

    def fetch_series(
        self,
        latitude: float,
        longitude: float,
        field: str,
        window: Optional[TimeRange] = None,
    ) -> List[float]:
        """
        Fetch the hourly series of `field` at (latitude, longitude).

        Returns:
            Non-empty list whose first element is a finite number

        Raises:
            SampleFetchFailure: Transport error, non-2xx, bad JSON, or
                missing/empty/non-numeric series
        """
        params = self.build_params(latitude, longitude, field, window)

        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise SampleFetchFailure(f"Request failed for ({latitude}, {longitude}): {e}") from e
        except ValueError as e:
            raise SampleFetchFailure(f"Invalid JSON for ({latitude}, {longitude}): {e}") from e

        hourly = data.get('hourly') if isinstance(data, dict) else None
        series = hourly.get(field) if isinstance(hourly, dict) else None

        if not isinstance(series, list) or len(series) == 0:
            raise SampleFetchFailure(
                f"Missing hourly '{field}' series for ({latitude}, {longitude})"
            )

        first = series[0]
        if isinstance(first, bool) or not isinstance(first, (int, float)) or not math.isfinite(first):
            raise SampleFetchFailure(
                f"Non-numeric first '{field}' value for ({latitude}, {longitude}): {first!r}"
            )

        return series

    def close(self) -> None:
        """Release pooled connections."""
        self.session.close()


def split_lng_lat(vertex: Tuple[float, float]) -> Tuple[float, float]:
    """(lng, lat) -> (lat, lng) in provider argument order."""
    lng, lat = vertex
    return lat, lng
