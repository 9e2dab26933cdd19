"""
Tests for the local map canvas renderer.
"""

import cv2
import numpy as np
import pytest

from isotherm_zone import MapCanvasRenderer

BOUNDS = (78.8, 20.4, 79.2, 20.8)
SQUARE = [[78.9, 20.5], [79.0, 20.5], [79.0, 20.6], [78.9, 20.6], [78.9, 20.5]]


@pytest.fixture
def canvas():
    return MapCanvasRenderer(bounds=BOUNDS, resolution_wh=(401, 401))


@pytest.mark.unit
class TestProjection:

    def test_corners(self, canvas):
        assert canvas.project(78.8, 20.8) == (0, 0)
        assert canvas.project(79.2, 20.4) == (400, 400)

    def test_latitude_grows_upwards(self, canvas):
        _, y_north = canvas.project(79.0, 20.7)
        _, y_south = canvas.project(79.0, 20.5)

        assert y_north < y_south

    @pytest.mark.parametrize("bounds", [(79.2, 20.4, 78.8, 20.8), (78.8, 20.8, 79.2, 20.8)])
    def test_degenerate_bounds(self, bounds):
        with pytest.raises(ValueError):
            MapCanvasRenderer(bounds=bounds)


@pytest.mark.unit
class TestLayers:

    def test_protocol_keeps_layers_by_id(self, canvas):
        canvas.render_polygon("p1", SQUARE, "#FF0000")
        canvas.place_marker("p1", (78.95, 20.55), "Avg Temp: 5.00°C")
        canvas.render_polygon("p1", SQUARE, "#0000FF")

        assert canvas.polygon_ids == ["p1"]
        assert canvas.marker_ids == ["p1"]

        canvas.remove_marker("p1")
        canvas.remove_polygon("p1")
        canvas.remove_polygon("p1")

        assert canvas.polygon_ids == []
        assert canvas.marker_ids == []

    def test_draw_fills_polygon(self, canvas):
        canvas.render_polygon("p1", SQUARE, "#FF0000")

        frame = canvas.draw()

        assert frame.shape == (401, 401, 3)
        # Pixel inside the square is tinted towards red (BGR), corner stays background
        inside = frame[250, 150]
        assert inside[2] > inside[0]
        assert tuple(frame[5, 5]) == (245, 245, 245)

    def test_non_hex_color_falls_back_to_neutral(self, canvas, tmp_path):
        canvas.render_polygon("p1", SQUARE, "red")

        inside = canvas.draw()[250, 150]
        assert inside[0] == inside[1] == inside[2]
        assert inside[0] < 245

        canvas.place_marker("p1", (78.95, 20.55), "Avg Temp: 12.00°C")
        assert cv2.imread(str(canvas.save(tmp_path / "map.png"))) is not None

    def test_empty_canvas_is_background(self, canvas):
        frame = canvas.draw()

        assert np.all(frame == 245)

    def test_save_png(self, canvas, tmp_path):
        canvas.render_polygon("p1", SQUARE, "#0000FF")
        canvas.place_marker("p1", (78.95, 20.55), "Avg Temp: 12.00°C")

        path = canvas.save(tmp_path / "out" / "map.png")

        image = cv2.imread(str(path))
        assert image is not None
        assert image.shape == (401, 401, 3)
