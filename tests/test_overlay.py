"""
test_overlay.py
"""
import numpy as np
import pytest

from mandelview.escape import evaluate
from mandelview.overlay import draw_orbit
from mandelview.render import PixelBuffer
from mandelview.viewport import Viewport


def _blank(viewport):
    return PixelBuffer(np.zeros((viewport.height, viewport.width, 3), dtype=np.uint8))


def test_orbit_points_are_drawn():
    viewport = Viewport(center=-0.5 + 0j, scale=0.02, width=100, height=60, max_iterations=10)
    buffer = _blank(viewport)
    orbit = evaluate(-1 + 0j, viewport.max_iterations, capture_orbit=True).orbit

    drawn = draw_orbit(buffer, viewport, orbit)

    for z in (0j, -1 + 0j):
        x, y = viewport.complex_to_pixel(z)
        assert drawn.pixel(x, y) != (0, 0, 0)
    assert not buffer.pixels.any()
    assert drawn.resolution == buffer.resolution


def test_far_off_canvas_points_are_skipped():
    viewport = Viewport(center=0j, scale=1e-9, width=20, height=20, max_iterations=10)
    drawn = draw_orbit(_blank(viewport), viewport, [0j, 3 + 3j, -1e6 + 0j])
    assert drawn.resolution == (20, 20)


def test_empty_orbit_leaves_buffer_unchanged():
    viewport = Viewport(center=0j, scale=0.1, width=8, height=8, max_iterations=10)
    buffer = PixelBuffer(np.full((8, 8, 3), 42, dtype=np.uint8))
    assert np.array_equal(draw_orbit(buffer, viewport, ()).pixels, buffer.pixels)


def test_resolution_mismatch():
    viewport = Viewport(center=0j, scale=0.1, width=8, height=8, max_iterations=10)
    with pytest.raises(ValueError):
        draw_orbit(PixelBuffer(np.zeros((4, 8, 3), dtype=np.uint8)), viewport, [0j])
