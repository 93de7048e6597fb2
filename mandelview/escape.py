from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from numba import njit

# |z| > 2, compared squared to avoid a sqrt per iteration.
ESCAPE_RADIUS_SQUARED = 4.0


@dataclass(frozen=True)
class EscapeResult:
    escaped: bool
    iterations: int
    orbit: Tuple[complex, ...] = ()

    @property
    def last(self) -> Optional[complex]:
        return self.orbit[-1] if self.orbit else None


def evaluate(c: complex, max_iterations: int, capture_orbit: bool = False) -> EscapeResult:
    """Iterate ``z = z*z + c`` from ``z = 0`` until ``|z| > 2`` or ``max_iterations``.

    The bound is tested before each step, so ``iterations`` is the index of the
    first orbit point outside the radius: any ``|c| > 2`` escapes at 1 and
    ``c = 0`` stays bounded with ``iterations == max_iterations``.
    """
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")

    c = complex(c)
    orbit = [] if capture_orbit else None
    z = 0j
    n = 0
    while True:
        if orbit is not None:
            orbit.append(z)
        if z.real * z.real + z.imag * z.imag > ESCAPE_RADIUS_SQUARED:
            escaped = True
            break
        if n == max_iterations:
            escaped = False
            break
        z = z * z + c
        n += 1

    return EscapeResult(escaped=escaped, iterations=n, orbit=tuple(orbit) if orbit is not None else ())


@njit(nogil=True)
def _escape_kernel(re_values, im_values, max_iterations, iterations_out, escaped_out):
    for row in range(im_values.shape[0]):
        ci = im_values[row]
        for col in range(re_values.shape[0]):
            cr = re_values[col]
            zr = 0.0
            zi = 0.0
            n = 0
            escaped = False
            while True:
                zr2 = zr * zr
                zi2 = zi * zi
                if zr2 + zi2 > 4.0:
                    escaped = True
                    break
                if n == max_iterations:
                    break
                # same operation order as complex z*z + c
                zi, zr = (zr * zi + zi * zr) + ci, (zr2 - zi2) + cr
                n += 1
            iterations_out[row, col] = n
            escaped_out[row, col] = escaped


def escape_grid(re_values: np.ndarray, im_values: np.ndarray, max_iterations: int) -> Tuple[np.ndarray, np.ndarray]:
    """Escape counts for every ``complex(re, im)`` of a rectangular block.

    Rows follow ``im_values`` and columns ``re_values``. Results match
    :func:`evaluate` point for point.
    """
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
    re_values = np.ascontiguousarray(re_values, dtype=np.float64)
    im_values = np.ascontiguousarray(im_values, dtype=np.float64)
    iterations = np.zeros((im_values.shape[0], re_values.shape[0]), dtype=np.int32)
    escaped = np.zeros((im_values.shape[0], re_values.shape[0]), dtype=np.bool_)
    _escape_kernel(re_values, im_values, int(max_iterations), iterations, escaped)
    return iterations, escaped
