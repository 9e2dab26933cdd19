"""
Tests for PolygonStore: lifecycle, staleness, resource release, listeners.
"""

import threading
import time
from datetime import datetime, timedelta
from unittest.mock import MagicMock, call

import pytest

from isotherm_zone import (
    NEUTRAL_COLOR,
    InvalidGeometry,
    PolygonEvent,
    PolygonStore,
    SourceBinding,
    TemperatureSampler,
    ThresholdRule,
    TimeRange,
)

from conftest import SQUARE, FakeProvider

OTHER = [[79.10, 20.70], [79.20, 20.70], [79.20, 20.80], [79.10, 20.70]]
GATED_VERTEX = (20.50, 78.90)  # (lat, lng) of SQUARE's first vertex


@pytest.fixture
def gate():
    gate = threading.Event()
    yield gate
    gate.set()


def _store(provider, renderer=None, **kwargs):
    sampler = TemperatureSampler(provider, max_workers=16, pass_timeout=5.0)
    store = PolygonStore(sampler, renderers=[renderer] if renderer else [], **kwargs)
    return store, sampler


@pytest.fixture
def make_store():
    created = []

    def factory(provider, renderer=None, **kwargs):
        store, sampler = _store(provider, renderer, **kwargs)
        created.append((store, sampler))
        return store

    yield factory

    for store, sampler in created:
        store.close()
        sampler.shutdown()


@pytest.mark.unit
class TestRegister:

    def test_register_classifies_and_renders(self, make_store, renderer):
        store = make_store(FakeProvider(value_for=lambda lat, lng: 5.0), renderer)

        snapshot = store.register("p1", SQUARE).result(timeout=5)

        assert snapshot.polygon_id == "p1"
        assert snapshot.generation == 1
        assert snapshot.updating is False
        assert snapshot.samples == (5.0, 5.0, 5.0, 5.0)
        assert snapshot.aggregate == 5.0
        assert snapshot.color == "#FF0000"
        assert snapshot.centroid == pytest.approx((78.95, 20.55))

        renderer.render_polygon.assert_called_once_with("p1", snapshot.ring.to_list(), "#FF0000")
        renderer.place_marker.assert_called_once_with("p1", snapshot.centroid, "Avg Temp: 5.00°C")

    def test_all_samples_absent_is_neutral(self, make_store, renderer):
        failures = {(20.50, 78.90), (20.50, 79.00), (20.60, 79.00), (20.60, 78.90)}
        store = make_store(FakeProvider(failures=failures), renderer)

        snapshot = store.register("p1", SQUARE).result(timeout=5)

        assert snapshot.aggregate is None
        assert snapshot.color == NEUTRAL_COLOR
        renderer.place_marker.assert_called_once_with("p1", snapshot.centroid, "Avg Temp: n/a")

    def test_partial_failure_averages_present_samples(self, make_store):
        provider = FakeProvider(
            value_for=lambda lat, lng: 20.0 if lng == 78.90 else 30.0,
            failures={(20.60, 79.00)},
        )
        store = make_store(provider)

        snapshot = store.register("p1", SQUARE).result(timeout=5)

        assert snapshot.samples == (20.0, 30.0, None, 20.0)
        assert snapshot.aggregate == pytest.approx(70.0 / 3)

    def test_invalid_geometry_stores_nothing(self, make_store, renderer):
        store = make_store(FakeProvider(), renderer)

        with pytest.raises(InvalidGeometry):
            store.register("p1", [[0, 0], [1, 1], [0, 0]])

        assert store.get("p1") is None
        assert len(store) == 0
        renderer.render_polygon.assert_not_called()

    def test_invalid_update_keeps_previous_geometry(self, make_store):
        store = make_store(FakeProvider())
        first = store.register("p1", SQUARE).result(timeout=5)

        with pytest.raises(InvalidGeometry):
            store.update("p1", [[0, 0], [0, 0], [0, 0]])

        current = store.get("p1")
        assert current.ring == first.ring
        assert current.generation == 1

    def test_update_unknown_id_registers(self, make_store):
        store = make_store(FakeProvider())

        snapshot = store.update("p9", SQUARE).result(timeout=5)

        assert snapshot.generation == 1
        assert store.ids() == ["p9"]

    def test_binding_selects_field_and_palette(self, make_store):
        provider = FakeProvider(value_for=lambda lat, lng: 80.0)
        binding = SourceBinding(
            field="relative_humidity_2m",
            thresholds=(ThresholdRule(">", 70, "#123456"),),
            label="Humidity",
            unit="%",
        )
        store = make_store(provider, binding_for=lambda polygon_id: binding)

        snapshot = store.register("p1", SQUARE).result(timeout=5)

        assert snapshot.color == "#123456"
        assert snapshot.derived.label == "Avg Humidity: 80.00%"
        assert {field for _, _, field, _ in provider.calls} == {"relative_humidity_2m"}


@pytest.mark.unit
class TestStaleness:

    def test_superseded_pass_is_discarded(self, make_store, renderer, gate):
        provider = FakeProvider(gated={GATED_VERTEX}, gate=gate)
        store = make_store(provider, renderer)

        slow = store.register("p1", SQUARE)
        fast = store.update("p1", OTHER)

        latest = fast.result(timeout=5)
        assert latest.generation == 2
        assert store.get("p1").updating is False

        gate.set()
        assert slow.result(timeout=5) is None

        current = store.get("p1")
        assert current.derived.generation == 2
        assert current.ring.to_list() == OTHER
        renderer.render_polygon.assert_called_once_with("p1", OTHER, current.color)

    def test_previous_color_visible_while_updating(self, make_store, gate):
        provider = FakeProvider(
            value_for=lambda lat, lng: 5.0 if lng < 79.05 else 15.0,
            gated={(20.70, 79.10)},
            gate=gate,
        )
        store = make_store(provider)
        store.register("p1", SQUARE).result(timeout=5)

        pending = store.update("p1", OTHER)
        during = store.get("p1")

        assert during.updating is True
        assert during.generation == 2
        assert during.color == "#FF0000"

        gate.set()
        assert pending.result(timeout=5).color == "#0000FF"

    def test_remove_during_pass(self, make_store, renderer, gate):
        listener = MagicMock()
        provider = FakeProvider(gated={GATED_VERTEX}, gate=gate)
        store = make_store(provider, renderer)
        store.subscribe(listener)

        pending = store.register("p1", SQUARE)
        assert store.remove("p1") is True

        gate.set()
        assert pending.result(timeout=5) is None

        assert store.get("p1") is None
        renderer.render_polygon.assert_not_called()
        renderer.place_marker.assert_not_called()
        renderer.remove_polygon.assert_not_called()
        assert [c.args[0] for c in listener.call_args_list] == [PolygonEvent.REMOVED]

    def test_set_window_resamples_everything(self, make_store):
        provider = FakeProvider()
        store = make_store(provider)
        store.register("p1", SQUARE).result(timeout=5)
        store.register("p2", OTHER).result(timeout=5)
        window = TimeRange(datetime(2026, 10, 19, 14), datetime(2026, 10, 19, 15))

        futures = store.set_window(window)
        snapshots = [f.result(timeout=5) for f in futures]

        assert store.window == window
        assert [s.generation for s in snapshots] == [2, 2]
        windows = [w for _, _, _, w in provider.calls]
        assert windows.count(window) == 7

    def test_queued_superseded_passes_skip_sampling(self, make_store, gate):
        provider = FakeProvider(gated={GATED_VERTEX}, gate=gate)
        store = make_store(provider, max_passes=1)
        first = store.register("p1", SQUARE)

        # Hold the only pass worker inside the first pass
        deadline = time.monotonic() + 5.0
        while not provider.calls and time.monotonic() < deadline:
            time.sleep(0.01)
        assert provider.calls

        start = datetime(2026, 10, 19, 0)
        windows = [
            TimeRange(start + timedelta(hours=i), start + timedelta(hours=i + 1))
            for i in range(20)
        ]
        queued = [store.set_window(window)[0] for window in windows]

        gate.set()
        results = [future.result(timeout=5) for future in queued]

        assert first.result(timeout=5) is None
        assert results[:-1] == [None] * 19
        assert results[-1].generation == 21
        assert len(provider.calls) == 8
        assert [w for _, _, _, w in provider.calls[4:]] == [windows[-1]] * 4

    def test_refresh_unknown_id(self, make_store):
        store = make_store(FakeProvider())

        assert store.refresh("nope") is None
        assert store.refresh_all() == []


@pytest.mark.unit
class TestRemove:

    def test_releases_resources_exactly_once(self, make_store, renderer):
        store = make_store(FakeProvider(), renderer)
        store.register("p1", SQUARE).result(timeout=5)

        assert store.remove("p1") is True
        assert store.remove("p1") is False

        assert renderer.remove_marker.call_args_list == [call("p1")]
        assert renderer.remove_polygon.call_args_list == [call("p1")]
        assert len(store) == 0

    def test_remove_unknown_is_noop(self, make_store, renderer):
        store = make_store(FakeProvider(), renderer)

        assert store.remove("ghost") is False
        renderer.remove_polygon.assert_not_called()

    def test_renderer_failure_does_not_break_store(self, make_store, renderer):
        renderer.render_polygon.side_effect = RuntimeError("map gone")
        store = make_store(FakeProvider(), renderer)

        snapshot = store.register("p1", SQUARE).result(timeout=5)

        assert snapshot is not None
        assert store.remove("p1") is True


@pytest.mark.unit
class TestListeners:

    def test_updated_then_removed(self, make_store):
        events = []
        store = make_store(FakeProvider())
        store.subscribe(lambda event, snapshot: events.append((event, snapshot.polygon_id)))

        store.register("p1", SQUARE).result(timeout=5)
        store.remove("p1")

        assert events == [(PolygonEvent.UPDATED, "p1"), (PolygonEvent.REMOVED, "p1")]

    def test_unsubscribe(self, make_store):
        listener = MagicMock()
        store = make_store(FakeProvider())
        unsubscribe = store.subscribe(listener)

        unsubscribe()
        store.register("p1", SQUARE).result(timeout=5)

        listener.assert_not_called()

    def test_failing_listener_is_isolated(self, make_store):
        seen = []
        store = make_store(FakeProvider())
        store.subscribe(MagicMock(side_effect=RuntimeError("boom")))
        store.subscribe(lambda event, snapshot: seen.append(event))

        store.register("p1", SQUARE).result(timeout=5)

        assert seen == [PolygonEvent.UPDATED]

    def test_list_in_registration_order(self, make_store):
        store = make_store(FakeProvider())
        store.register("b", SQUARE).result(timeout=5)
        store.register("a", OTHER).result(timeout=5)

        assert [s.polygon_id for s in store.list()] == ["b", "a"]
        assert store.get("a").to_dict()['ring'] == OTHER
