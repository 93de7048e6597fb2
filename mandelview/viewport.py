from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Optional, Tuple

import numpy as np

from mandelview.errors import InvalidViewport

# Plane width shown at zoom 1.
BASE_WIDTH = 4.0
DEFAULT_CENTER = complex(-0.4, 0.0)


@dataclass(frozen=True)
class Viewport:
    """Immutable view of the complex plane.

    ``scale`` is in plane units per pixel. Screen rows grow downward while the
    imaginary axis grows upward, so ``y`` is inverted in both mappings.
    """

    center: complex
    scale: float
    width: int
    height: int
    max_iterations: int

    def __post_init__(self):
        try:
            center = complex(self.center)
            scale = float(self.scale)
            width, height, max_iterations = int(self.width), int(self.height), int(self.max_iterations)
        except (TypeError, ValueError) as e:
            raise InvalidViewport(f"invalid viewport field: {e}") from e
        if not (math.isfinite(center.real) and math.isfinite(center.imag)):
            raise InvalidViewport(f"center must be finite, got {center!r}")
        if not (math.isfinite(scale) and scale > 0):
            raise InvalidViewport(f"scale must be a positive finite number, got {scale!r}")
        if width < 1 or height < 1:
            raise InvalidViewport(f"resolution must be at least 1x1, got {width}x{height}")
        if max_iterations < 1:
            raise InvalidViewport(f"max_iterations must be >= 1, got {max_iterations}")
        object.__setattr__(self, "center", center)
        object.__setattr__(self, "scale", scale)
        object.__setattr__(self, "width", width)
        object.__setattr__(self, "height", height)
        object.__setattr__(self, "max_iterations", max_iterations)

    @classmethod
    def from_zoom(
        cls,
        *,
        center: complex = DEFAULT_CENTER,
        zoom: float = 1.0,
        width: int,
        height: int,
        max_iterations: int,
    ) -> "Viewport":
        if not (math.isfinite(zoom) and zoom > 0):
            raise InvalidViewport(f"zoom must be a positive finite number, got {zoom!r}")
        if int(width) < 1:
            raise InvalidViewport(f"resolution must be at least 1x1, got {width}x{height}")
        return cls(center=center, scale=BASE_WIDTH / (zoom * int(width)),
                   width=width, height=height, max_iterations=max_iterations)

    @property
    def resolution(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def zoom(self) -> float:
        return BASE_WIDTH / (self.scale * self.width)

    def pixel_to_complex(self, x: int, y: int) -> complex:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} grid")
        re = self.center.real + (x - self.width / 2) * self.scale
        im = self.center.imag + (self.height / 2 - y) * self.scale
        return complex(re, im)

    def complex_to_pixel(self, c: complex) -> Tuple[int, int]:
        fx = (c.real - self.center.real) / self.scale + self.width / 2
        fy = self.height / 2 - (c.imag - self.center.imag) / self.scale
        return int(math.floor(fx + 0.5)), int(math.floor(fy + 0.5))

    def contains_pixel(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def axes(self, y0: int = 0, y1: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
        """Real values of every column and imaginary values of rows ``y0..y1``.

        Same arithmetic as :meth:`pixel_to_complex`, so the grid kernel sees
        bit-identical coordinates.
        """
        if y1 is None:
            y1 = self.height
        re_values = self.center.real + (np.arange(self.width, dtype=np.int64) - self.width / 2) * self.scale
        im_values = self.center.imag + (self.height / 2 - np.arange(y0, y1, dtype=np.int64)) * self.scale
        return re_values.astype(np.float64), im_values.astype(np.float64)

    def bounds(self) -> Tuple[float, float, float, float]:
        top_left = self.pixel_to_complex(0, 0)
        bottom_right = self.pixel_to_complex(self.width - 1, self.height - 1)
        return top_left.real, bottom_right.real, bottom_right.imag, top_left.imag

    def recentered(self, c: complex) -> "Viewport":
        return replace(self, center=complex(c))

    def rescaled(self, scale: float) -> "Viewport":
        return replace(self, scale=scale)

    def zoomed(self, factor: float) -> "Viewport":
        if not (math.isfinite(factor) and factor > 0):
            raise InvalidViewport(f"zoom factor must be positive, got {factor!r}")
        return replace(self, scale=self.scale / factor)

    def panned(self, dx: float, dy: float) -> "Viewport":
        shift = complex(dx * self.scale, -dy * self.scale)
        return replace(self, center=self.center + shift)

    def with_iterations(self, max_iterations: int) -> "Viewport":
        return replace(self, max_iterations=max_iterations)

    def with_resolution(self, width: int, height: int) -> "Viewport":
        return replace(self, width=width, height=height)
