from __future__ import annotations

from typing import Tuple

import numpy as np

from mandelview.escape import EscapeResult

INSIDE_COLOR = (0, 0, 0)
PALETTES = ("smooth", "banded")
DEFAULT_BANDS = 16


def _hsl_to_rgb(hue: np.ndarray, saturation: float, lightness: np.ndarray) -> np.ndarray:
    a = saturation * np.minimum(lightness, 1.0 - lightness)
    channels = []
    for n in (0.0, 8.0, 4.0):
        k = np.mod(n + hue * 12.0, 12.0)
        ramp = np.maximum(-1.0, np.minimum(np.minimum(k - 3.0, 9.0 - k), 1.0))
        channels.append(lightness - a * ramp)
    rgb = np.stack(channels, axis=-1)
    return np.clip(rgb * 255.0, 0.0, 255.0).astype(np.uint8)


# Escaped points stay at least this bright so they never match INSIDE_COLOR.
MIN_LIGHTNESS = 1.0 / 255.0


def _lightness(t: np.ndarray) -> np.ndarray:
    # Fades toward the inside colour as escape time approaches the cap.
    return np.maximum(0.5 * np.power(1.0 - t, 0.3), MIN_LIGHTNESS)


def colorize(
    iterations: np.ndarray,
    escaped: np.ndarray,
    max_iterations: int,
    *,
    palette: str = "smooth",
    bands: int = DEFAULT_BANDS,
) -> np.ndarray:
    """Map escape counts to an ``(h, w, 3)`` uint8 image.

    Lightness never increases with the iteration count, so a point escaping
    later is never further from the inside colour than one escaping sooner.
    """
    if palette not in PALETTES:
        raise ValueError(f"palette must be one of: {', '.join(PALETTES)}")
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
    if bands < 1:
        raise ValueError("bands must be >= 1")

    iterations = np.asarray(iterations)
    escaped = np.asarray(escaped, dtype=bool)
    # t < 1 even for a point that escaped exactly at the cap
    t = np.clip(iterations.astype(np.float64) / float(max_iterations + 1), 0.0, 1.0)

    if palette == "smooth":
        hue = np.power(t, 0.7)
        lightness = _lightness(t)
    else:
        hue = np.mod(iterations, bands).astype(np.float64) / bands
        lightness = _lightness(np.floor(t * bands) / bands)

    rgb = _hsl_to_rgb(hue, 1.0, lightness)
    rgb[~escaped] = INSIDE_COLOR
    return rgb


def color_for(
    result: EscapeResult,
    max_iterations: int,
    *,
    palette: str = "smooth",
    bands: int = DEFAULT_BANDS,
) -> Tuple[int, int, int]:
    rgb = colorize(
        np.array([[result.iterations]], dtype=np.int32),
        np.array([[result.escaped]], dtype=bool),
        max_iterations,
        palette=palette,
        bands=bands,
    )
    r, g, b = (int(v) for v in rgb[0, 0])
    return r, g, b
