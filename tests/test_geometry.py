"""
Tests for Ring construction and validation.
"""

import math

import pytest

from isotherm_zone.geometry import InvalidGeometry, Ring


@pytest.mark.unit
class TestRingFromCoordinates:

    def test_closing_duplicate_excluded_from_vertices(self):
        ring = Ring.from_coordinates([[0, 0], [2, 0], [2, 2], [0, 2], [0, 0]])

        assert ring.vertices == ((0.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0))
        assert len(ring) == 4

    def test_open_input_is_closed(self):
        ring = Ring.from_coordinates([[0, 0], [2, 0], [2, 2]])

        assert ring.coordinates[0] == ring.coordinates[-1]
        assert ring.coordinates == ((0.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 0.0))

    def test_centroid_is_mean_of_distinct_vertices(self):
        ring = Ring.from_coordinates([[0, 0], [2, 0], [2, 2], [0, 2], [0, 0]])

        assert ring.centroid == (1.0, 1.0)

    def test_centroid_of_triangle(self):
        ring = Ring.from_coordinates([[0, 0], [3, 0], [0, 3], [0, 0]])

        cx, cy = ring.centroid
        assert math.isclose(cx, 1.0)
        assert math.isclose(cy, 1.0)

    def test_repeated_vertices_counted_once(self):
        ring = Ring.from_coordinates([[0, 0], [1, 0], [1, 0], [1, 1], [0, 0]])

        assert len(ring) == 3

    def test_to_list_is_closed_nested_lists(self):
        ring = Ring.from_coordinates([[0, 0], [1, 0], [1, 1]])

        assert ring.to_list() == [[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 0.0]]


@pytest.mark.unit
class TestRingValidation:

    @pytest.mark.parametrize("points", [
        [],
        [[0, 0]],
        [[0, 0], [1, 1], [0, 0]],
        [[0, 0], [1, 1], [1, 1], [0, 0]],
    ])
    def test_fewer_than_three_distinct_vertices(self, points):
        with pytest.raises(InvalidGeometry):
            Ring.from_coordinates(points)

    def test_none_rejected(self):
        with pytest.raises(InvalidGeometry):
            Ring.from_coordinates(None)

    @pytest.mark.parametrize("bad", [
        [[0, 0], [1, "a"], [1, 1]],
        [[0, 0], [1], [1, 1]],
        [[0, 0], [True, 0], [1, 1]],
        [[0, 0], [float("nan"), 0], [1, 1]],
        [[0, 0], [float("inf"), 0], [1, 1]],
    ])
    def test_malformed_vertices(self, bad):
        with pytest.raises(InvalidGeometry):
            Ring.from_coordinates(bad)

    def test_invalid_geometry_is_value_error(self):
        assert issubclass(InvalidGeometry, ValueError)
