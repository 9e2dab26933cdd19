"""
Temperature Sampler Module
==========================

Concurrent per-vertex fetch and aggregation.

Design:
- Fan-out: one task per distinct vertex on a bounded thread pool
- Fan-in: results written into a fixed-size buffer by vertex index
- Isolation: a failed, malformed or late fetch is absent for that vertex only
- No retries (single attempt per vertex)

Threading:
- Workers share no mutable state; each resolves one slot
- sample() blocks the calling thread until all slots resolve or the
  pass deadline expires; callers must run it off interactive threads
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import wait as wait_all
from typing import List, Optional, Sequence, Tuple

import numpy as np

from isotherm_zone.sampling.provider import (
    SampleFetchFailure,
    TimeRange,
    WeatherProvider,
    split_lng_lat,
)

logger = logging.getLogger(__name__)

Samples = Tuple[Optional[float], ...]


def aggregate(samples: Sequence[Optional[float]]) -> Optional[float]:
    """
    Arithmetic mean over present samples.

    Returns:
        Mean value, or None if the set is empty or all absent

    Example:
        >>> aggregate([20.0, None, 30.0])
        25.0
    """
    present = [s for s in samples if s is not None]
    if not present:
        return None
    return float(np.mean(np.asarray(present, dtype=np.float64)))


class TemperatureSampler:
    """
    Samples a measurement at every vertex of a ring, concurrently.

    Usage:
        sampler = TemperatureSampler(OpenMeteoProvider(), max_workers=8)
        samples = sampler.sample(ring.vertices)      # (21.3, None, 22.1)
        mean = sampler.aggregate(samples)            # 21.7
        sampler.shutdown()
    """

    def __init__(
        self,
        provider: WeatherProvider,
        max_workers: int = 8,
        pass_timeout: Optional[float] = 30.0,
    ):
        """
        Args:
            provider: Point-series provider
            max_workers: Thread pool size for vertex fetches
            pass_timeout: Deadline for a whole pass in seconds (None = no deadline)
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")

        self.provider = provider
        self.pass_timeout = pass_timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="vertex-sampler",
        )

    def _fetch_one(
        self,
        vertex: Tuple[float, float],
        field: str,
        window: Optional[TimeRange],
    ) -> float:
        lat, lng = split_lng_lat(vertex)
        series = self.provider.fetch_series(lat, lng, field, window)
        first = series[0] if series else None
        if isinstance(first, bool) or not isinstance(first, (int, float)) or not math.isfinite(first):
            raise SampleFetchFailure(f"Non-numeric sample {first!r} at ({lat}, {lng})")
        return float(first)

    def sample(
        self,
        vertices: Sequence[Tuple[float, float]],
        field: str = "temperature_2m",
        window: Optional[TimeRange] = None,
    ) -> Samples:
        """
        Fetch one sample per vertex, concurrently.

        Args:
            vertices: Distinct (lng, lat) vertices
            field: Provider field name
            window: Optional time window passed through to the provider

        Returns:
            Tuple aligned with `vertices`; None where the fetch failed
        """
        if not vertices:
            return ()

        futures = [
            self._executor.submit(self._fetch_one, vertex, field, window)
            for vertex in vertices
        ]
        wait_all(futures, timeout=self.pass_timeout)

        results: List[Optional[float]] = [None] * len(futures)
        for index, future in enumerate(futures):
            lng, lat = vertices[index]
            if not future.done():
                future.cancel()
                logger.warning(
                    f"Sample timed out at ({lat}, {lng}) field={field}"
                )
                continue
            try:
                results[index] = future.result()
            except Exception as e:
                logger.warning(
                    f"Sample failed at ({lat}, {lng}) field={field}: {e}"
                )

        present = sum(1 for r in results if r is not None)
        logger.debug(f"Sampled {present}/{len(results)} vertices (field={field})")
        return tuple(results)

    @staticmethod
    def aggregate(samples: Sequence[Optional[float]]) -> Optional[float]:
        """Mean over present samples (see module-level aggregate)."""
        return aggregate(samples)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pool."""
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def __enter__(self) -> 'TemperatureSampler':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
