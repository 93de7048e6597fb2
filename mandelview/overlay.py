from __future__ import annotations

from typing import Sequence

import numpy as np
from PIL import Image, ImageDraw

from mandelview.render import PixelBuffer
from mandelview.viewport import Viewport

LIGHTGRAY = (200, 200, 200)
RED = (230, 41, 55)
ORANGE = (255, 161, 0)
SKYBLUE = (102, 191, 255)


def _dot_color(index: int):
    if index == 0:
        return LIGHTGRAY
    if index == 1:
        return RED
    return ORANGE


def _near(point, size) -> bool:
    # keeps far off-canvas coordinates away from the rasteriser
    x, y = point
    width, height = size
    return -width <= x <= 2 * width and -height <= y <= 2 * height


def draw_orbit(buffer: PixelBuffer, viewport: Viewport, orbit: Sequence[complex]) -> PixelBuffer:
    """Return a copy of ``buffer`` with ``orbit`` drawn on top.

    Each point is a dot joined to the next by a line; both shrink and fade
    with the point's index. Points outside the view are clipped by the canvas.
    """
    if buffer.resolution != viewport.resolution:
        raise ValueError(f"buffer {buffer.resolution} does not match viewport {viewport.resolution}")

    base = buffer.to_image().convert("RGBA")
    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    points = [viewport.complex_to_pixel(z) for z in orbit]
    count = len(points)

    for i in range(count - 1):
        if not (_near(points[i], base.size) and _near(points[i + 1], base.size)):
            continue
        age = min(1.0, max(0.3, 1.0 - i / count))
        alpha = int(255 * age)
        size = 3.0 * age
        (x0, y0), (x1, y1) = points[i], points[i + 1]
        draw.line([(x0, y0), (x1, y1)], fill=SKYBLUE + (alpha,), width=max(1, int(round(size / 3.0))))
        draw.ellipse([x0 - size, y0 - size, x0 + size, y0 + size], fill=_dot_color(i) + (alpha,))

    composed = Image.alpha_composite(base, layer).convert("RGB")
    return PixelBuffer(np.asarray(composed, dtype=np.uint8).copy())
