"""
Polygon Store - Thread-safe polygon registry with derived state.

This module provides the PolygonStore class, the authoritative registry of
drawn polygons. It validates geometry, runs sampling passes off the caller's
thread, classifies the aggregate and publishes the result to renderers and
listeners.

Staleness control:
- Every register/update/refresh bumps the polygon's generation
- A sampling pass carries the generation it was launched for
- A queued pass whose generation is already superseded skips sampling
- A finished pass is applied only if that generation is still current and
  the polygon was not removed meanwhile; otherwise it is discarded

Thread Safety:
- Store lock protects the id -> entry dict (always taken before entry lock)
- Entry lock serializes generation bumps and result application per polygon
- Renderer commands and listener callbacks run under the entry lock, so
  they are observed in generation order (keep them fast!)
- Snapshots are immutable (frozen dataclasses)
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Set, Tuple

from isotherm_zone.classification import (
    DEFAULT_TEMPERATURE_RULES,
    NEUTRAL_COLOR,
    ThresholdRule,
    classify,
)
from isotherm_zone.geometry import LngLat, Ring
from isotherm_zone.sampling import TemperatureSampler, TimeRange, aggregate

logger = logging.getLogger(__name__)


class PolygonEvent(str, Enum):
    """Kind of change reported to store listeners."""
    UPDATED = "updated"
    REMOVED = "removed"


class MapRenderer(Protocol):
    """Protocol for map renderer collaborators (interface)."""

    def render_polygon(self, polygon_id: str, ring: List[List[float]], color: str) -> None:
        ...

    def remove_polygon(self, polygon_id: str) -> None:
        ...

    def place_marker(self, polygon_id: str, centroid: LngLat, label: str) -> None:
        ...

    def remove_marker(self, polygon_id: str) -> None:
        ...


@dataclass(frozen=True)
class SourceBinding:
    """
    What to sample for a polygon and how to classify it.

    Attributes:
        field: Provider field (e.g. "temperature_2m")
        thresholds: Ordered classification rules
        label: Short label used in marker text
        unit: Unit suffix used in marker text
    """
    field: str = "temperature_2m"
    thresholds: Tuple[ThresholdRule, ...] = DEFAULT_TEMPERATURE_RULES
    label: str = "Temp"
    unit: str = "°C"

    def marker_label(self, value: Optional[float]) -> str:
        """Marker text for an aggregate."""
        if value is None:
            return f"Avg {self.label}: n/a"
        return f"Avg {self.label}: {value:.2f}{self.unit}"


DEFAULT_BINDING = SourceBinding()


@dataclass(frozen=True)
class DerivedState:
    """
    Result of one sampling pass, applied atomically.

    All fields come from the same generation's samples.
    """
    generation: int
    samples: Tuple[Optional[float], ...]
    aggregate: Optional[float]
    color: str
    centroid: LngLat
    label: str


@dataclass(frozen=True)
class PolygonSnapshot:
    """
    Immutable view of one polygon.

    Design:
    - `ring`/`generation` reflect the latest accepted geometry
    - `derived` is the latest applied pass, possibly for an older generation
      (previous color stays visible until the new pass resolves)
    """
    polygon_id: str
    ring: Ring
    generation: int
    derived: Optional[DerivedState] = None

    @property
    def updating(self) -> bool:
        """True while derived state lags the current generation."""
        return self.derived is None or self.derived.generation != self.generation

    @property
    def color(self) -> str:
        return self.derived.color if self.derived else NEUTRAL_COLOR

    @property
    def aggregate(self) -> Optional[float]:
        return self.derived.aggregate if self.derived else None

    @property
    def samples(self) -> Tuple[Optional[float], ...]:
        return self.derived.samples if self.derived else ()

    @property
    def centroid(self) -> Optional[LngLat]:
        return self.derived.centroid if self.derived else None

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {
            'polygon_id': self.polygon_id,
            'ring': self.ring.to_list(),
            'generation': self.generation,
            'updating': self.updating,
            'color': self.color,
            'aggregate': self.aggregate,
            'samples': list(self.samples),
            'centroid': list(self.centroid) if self.centroid else None,
        }


@dataclass
class _Entry:
    """Mutable per-polygon record (private to the store)."""
    polygon_id: str
    ring: Ring
    generation: int = 0
    derived: Optional[DerivedState] = None
    removed: bool = False
    resources: Set[str] = field(default_factory=set)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def snapshot(self) -> PolygonSnapshot:
        return PolygonSnapshot(
            polygon_id=self.polygon_id,
            ring=self.ring,
            generation=self.generation,
            derived=self.derived,
        )


Listener = Callable[[PolygonEvent, PolygonSnapshot], None]


class PolygonStore:
    """
    Thread-safe registry of polygons and their derived state.

    Usage:
        store = PolygonStore(sampler, renderers=[publisher])

        future = store.register("poly-1", [[78.9, 20.5], [79.0, 20.5], [79.0, 20.6], [78.9, 20.5]])
        snapshot = future.result()   # applied PolygonSnapshot, or None if superseded

        store.update("poly-1", new_ring)
        store.remove("poly-1")       # idempotent
    """

    def __init__(
        self,
        sampler: TemperatureSampler,
        binding_for: Optional[Callable[[str], SourceBinding]] = None,
        renderers: Sequence[MapRenderer] = (),
        max_passes: int = 4,
    ):
        """
        Args:
            sampler: Per-vertex sampler
            binding_for: Resolves the source binding of a polygon id
                (default: temperature with the default palette)
            renderers: Map renderer collaborators receiving commands
            max_passes: Concurrent sampling passes across polygons
        """
        self.sampler = sampler
        self.binding_for = binding_for or (lambda polygon_id: DEFAULT_BINDING)
        self.renderers = list(renderers)

        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._listeners: List[Listener] = []
        self._listeners_lock = threading.Lock()
        self._window: Optional[TimeRange] = None
        self._executor = ThreadPoolExecutor(
            max_workers=max_passes,
            thread_name_prefix="sampling-pass",
        )

    # ─────────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────────

    def register(self, polygon_id: str, coordinates) -> 'Future[Optional[PolygonSnapshot]]':
        """
        Register a polygon and start sampling it.

        Raises:
            InvalidGeometry: If fewer than 3 distinct vertices (nothing stored)
        """
        ring = Ring.from_coordinates(coordinates)
        return self._upsert(polygon_id, ring)

    def update(self, polygon_id: str, coordinates) -> 'Future[Optional[PolygonSnapshot]]':
        """
        Replace a polygon's geometry and resample (implicit register if unknown).

        The previous derived state stays visible until the new pass resolves.

        Raises:
            InvalidGeometry: If fewer than 3 distinct vertices (nothing mutated)
        """
        ring = Ring.from_coordinates(coordinates)
        return self._upsert(polygon_id, ring)

    def remove(self, polygon_id: str) -> bool:
        """
        Remove a polygon and release its renderer resources.

        Returns:
            True if the polygon existed, False for an unknown id (no-op)
        """
        with self._lock:
            entry = self._entries.pop(polygon_id, None)

        if entry is None:
            logger.debug(f"Remove ignored, unknown polygon: {polygon_id}")
            return False

        with entry.lock:
            entry.removed = True
            self._release(entry)
            snapshot = entry.snapshot()
            self._notify(PolygonEvent.REMOVED, snapshot)

        logger.info(f"Polygon removed: {polygon_id}")
        return True

    def refresh(self, polygon_id: str) -> Optional['Future[Optional[PolygonSnapshot]]']:
        """Resample a polygon with its current geometry and binding."""
        with self._lock:
            entry = self._entries.get(polygon_id)
            if entry is None:
                return None
            with entry.lock:
                entry.generation += 1
                generation, ring = entry.generation, entry.ring

        return self._launch(entry, generation, ring)

    def refresh_all(self) -> List['Future[Optional[PolygonSnapshot]]']:
        """Resample every polygon."""
        futures = []
        for polygon_id in self.ids():
            future = self.refresh(polygon_id)
            if future is not None:
                futures.append(future)
        return futures

    def set_window(self, window: Optional[TimeRange]) -> List['Future[Optional[PolygonSnapshot]]']:
        """
        Set the time window passed to the provider and resample everything.

        Every polygon reads as `updating` until its new pass resolves.
        """
        self._window = window
        logger.info(
            f"Sampling window set: "
            f"{window.start.isoformat() if window else None} -> "
            f"{window.end.isoformat() if window else None}"
        )
        return self.refresh_all()

    # ─────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────

    def get(self, polygon_id: str) -> Optional[PolygonSnapshot]:
        """Immutable snapshot of one polygon, or None if unknown."""
        with self._lock:
            entry = self._entries.get(polygon_id)
        if entry is None:
            return None
        with entry.lock:
            return entry.snapshot()

    def list(self) -> List[PolygonSnapshot]:
        """Immutable snapshots of all polygons (registration order)."""
        with self._lock:
            entries = list(self._entries.values())

        snapshots = []
        for entry in entries:
            with entry.lock:
                snapshots.append(entry.snapshot())
        return snapshots

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._entries.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def window(self) -> Optional[TimeRange]:
        return self._window

    # ─────────────────────────────────────────────────────────────────────
    # Observers
    # ─────────────────────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a derived-state listener.

        Returns:
            Callable that unsubscribes the listener
        """
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Stop accepting passes and wait for in-flight ones."""
        self._executor.shutdown(wait=True)

    # ─────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────

    def _upsert(self, polygon_id: str, ring: Ring) -> 'Future[Optional[PolygonSnapshot]]':
        with self._lock:
            entry = self._entries.get(polygon_id)
            created = entry is None
            if created:
                entry = _Entry(polygon_id=polygon_id, ring=ring)
                self._entries[polygon_id] = entry

            with entry.lock:
                entry.ring = ring
                entry.generation += 1
                generation = entry.generation

        if created:
            logger.info(f"Polygon registered: {polygon_id} ({len(ring)} vertices)")
        else:
            logger.info(
                f"Polygon updated: {polygon_id} ({len(ring)} vertices, generation={generation})"
            )

        return self._launch(entry, generation, ring)

    def _launch(self, entry: _Entry, generation: int, ring: Ring) -> 'Future[Optional[PolygonSnapshot]]':
        binding = self.binding_for(entry.polygon_id)
        return self._executor.submit(
            self._run_pass, entry, generation, ring, binding, self._window
        )

    def _run_pass(
        self,
        entry: _Entry,
        generation: int,
        ring: Ring,
        binding: SourceBinding,
        window: Optional[TimeRange],
    ) -> Optional[PolygonSnapshot]:
        """Sample, aggregate, classify, then apply if still current (pass thread)."""
        with entry.lock:
            if entry.removed or entry.generation != generation:
                logger.debug(
                    f"Skipped superseded pass for {entry.polygon_id} "
                    f"(pass={generation}, current={entry.generation}, removed={entry.removed})"
                )
                return None

        try:
            samples = self.sampler.sample(ring.vertices, binding.field, window)
        except Exception as e:
            logger.error(
                f"Sampling pass failed for {entry.polygon_id} (generation={generation}): {e}",
                exc_info=True,
            )
            raise

        value = aggregate(samples)
        derived = DerivedState(
            generation=generation,
            samples=samples,
            aggregate=value,
            color=classify(value, binding.thresholds),
            centroid=ring.centroid,
            label=binding.marker_label(value),
        )

        with entry.lock:
            if entry.removed or entry.generation != generation:
                logger.debug(
                    f"Discarded stale pass for {entry.polygon_id} "
                    f"(pass={generation}, current={entry.generation}, removed={entry.removed})"
                )
                return None

            entry.derived = derived
            snapshot = entry.snapshot()
            self._render(entry, snapshot)
            self._notify(PolygonEvent.UPDATED, snapshot)

        logger.info(
            f"Polygon classified: {entry.polygon_id} aggregate={value} color={derived.color} "
            f"(generation={generation})"
        )
        return snapshot

    def _render(self, entry: _Entry, snapshot: PolygonSnapshot) -> None:
        """Push derived state to renderers (caller holds entry.lock)."""
        derived = snapshot.derived
        ring = snapshot.ring.to_list()
        for renderer in self.renderers:
            try:
                renderer.render_polygon(entry.polygon_id, ring, derived.color)
                renderer.place_marker(entry.polygon_id, derived.centroid, derived.label)
            except Exception as e:
                logger.error(f"Renderer failed for {entry.polygon_id}: {e}", exc_info=True)
        entry.resources.update(("polygon", "marker"))

    def _release(self, entry: _Entry) -> None:
        """Release held renderer resources exactly once (caller holds entry.lock)."""
        for resource in ("marker", "polygon"):
            if resource not in entry.resources:
                continue
            entry.resources.discard(resource)
            for renderer in self.renderers:
                try:
                    if resource == "marker":
                        renderer.remove_marker(entry.polygon_id)
                    else:
                        renderer.remove_polygon(entry.polygon_id)
                except Exception as e:
                    logger.error(
                        f"Renderer release of {resource} failed for {entry.polygon_id}: {e}",
                        exc_info=True,
                    )

    def _notify(self, event: PolygonEvent, snapshot: PolygonSnapshot) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, snapshot)
            except Exception as e:
                logger.error(f"Store listener failed on {event.value}: {e}", exc_info=True)
