from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Executor, ProcessPoolExecutor, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image
from tqdm import tqdm

from mandelview.color import DEFAULT_BANDS, PALETTES, colorize
from mandelview.errors import RenderCancelled
from mandelview.escape import escape_grid, evaluate
from mandelview.util.logging_setup import configure_worker_logging, get_logger
from mandelview.viewport import Viewport

BACKENDS = ("numba", "python")

_G = {}


@dataclass(frozen=True)
class EscapeGrid:
    iterations: np.ndarray
    escaped: np.ndarray
    max_iterations: int

    @property
    def width(self) -> int:
        return int(self.iterations.shape[1])

    @property
    def height(self) -> int:
        return int(self.iterations.shape[0])


@dataclass(frozen=True)
class PixelBuffer:
    """Rendered colours, ``pixels[y, x] = (r, g, b)``."""

    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1]) if self.pixels.ndim >= 2 else 0

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0]) if self.pixels.ndim >= 1 else 0

    @property
    def resolution(self) -> Tuple[int, int]:
        return self.width, self.height

    def pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        r, g, b = (int(v) for v in self.pixels[y, x])
        return r, g, b

    def to_image(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self.pixels, dtype=np.uint8))


def _init_worker(viewport: Viewport, log_queue, log_level: int) -> None:
    _G["viewport"] = viewport
    if log_queue is not None:
        configure_worker_logging(log_queue, level=log_level)


def _python_band(viewport: Viewport, band: Tuple[int, int]):
    y0, y1 = band
    width = viewport.width
    max_iterations = viewport.max_iterations
    iterations = np.zeros((y1 - y0, width), dtype=np.int32)
    escaped = np.zeros((y1 - y0, width), dtype=np.bool_)

    for yi, y in enumerate(range(y0, y1)):
        for x in range(width):
            result = evaluate(viewport.pixel_to_complex(x, y), max_iterations)
            iterations[yi, x] = result.iterations
            escaped[yi, x] = result.escaped

    get_logger("render").debug("Rendered rows %s..%s/%s", y0, y1, viewport.height)
    return y0, iterations, escaped


def _python_band_worker(band: Tuple[int, int]):
    return _python_band(_G["viewport"], band)


def _numba_band(viewport: Viewport, band: Tuple[int, int]):
    y0, y1 = band
    re_values, im_values = viewport.axes(y0, y1)
    iterations, escaped = escape_grid(re_values, im_values, viewport.max_iterations)
    return y0, iterations, escaped


def split_bands(height: int, band_height: int) -> List[Tuple[int, int]]:
    if band_height < 1:
        raise ValueError("band_height must be >= 1")
    bands: List[Tuple[int, int]] = []
    y = 0
    while y < height:
        y1 = min(height, y + band_height)
        bands.append((y, y1))
        y = y1
    return bands


def _check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise RenderCancelled("Render cancelled; partial result discarded.")


def _make_executor(backend: str, viewport: Viewport, workers: int, log_queue, log_level: int) -> Executor:
    if backend == "numba":
        return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="mandelview-band")
    return ProcessPoolExecutor(
        max_workers=workers,
        initializer=_init_worker,
        initargs=(viewport, log_queue, log_level),
    )


def compute_escape_grid(
    viewport: Viewport,
    *,
    backend: str = "numba",
    workers: Optional[int] = None,
    band_height: int = 32,
    cancel: Optional[threading.Event] = None,
    progress: bool = False,
    log_queue=None,
    log_level: int = logging.INFO,
) -> EscapeGrid:
    """Escape counts for every pixel of ``viewport``.

    Row bands are evaluated independently and written into disjoint slices.
    With ``workers=1`` everything runs in the calling thread; otherwise the
    ``numba`` backend uses a thread pool (its kernel releases the GIL) and the
    ``python`` backend a process pool. Setting ``cancel`` aborts the render
    with :class:`RenderCancelled` and nothing is returned.
    """
    if backend not in BACKENDS:
        raise ValueError(f"backend must be one of: {', '.join(BACKENDS)}")
    if workers is not None and workers < 1:
        raise ValueError("workers must be >= 1")

    logger = get_logger("render")
    bands = split_bands(viewport.height, band_height)
    workers = min(workers or os.cpu_count() or 1, len(bands))
    iterations = np.zeros((viewport.height, viewport.width), dtype=np.int32)
    escaped = np.zeros((viewport.height, viewport.width), dtype=np.bool_)

    logger.info("Render start size=%sx%s center=%s scale=%s iter=%s backend=%s workers=%s",
                viewport.width, viewport.height, viewport.center, viewport.scale,
                viewport.max_iterations, backend, workers)
    start = time.perf_counter()
    _check_cancel(cancel)

    def _store(result) -> None:
        y0, band_iterations, band_escaped = result
        iterations[y0:y0 + band_iterations.shape[0]] = band_iterations
        escaped[y0:y0 + band_escaped.shape[0]] = band_escaped

    with tqdm(total=len(bands), desc="render", unit="band", disable=not progress) as bar:
        if workers == 1:
            run_band = _numba_band if backend == "numba" else _python_band
            for band in bands:
                _check_cancel(cancel)
                _store(run_band(viewport, band))
                bar.update(1)
        else:
            with _make_executor(backend, viewport, workers, log_queue, log_level) as pool:
                if backend == "numba":
                    pending = {pool.submit(_numba_band, viewport, band) for band in bands}
                else:
                    pending = {pool.submit(_python_band_worker, band) for band in bands}
                while pending:
                    if cancel is not None and cancel.is_set():
                        pool.shutdown(wait=False, cancel_futures=True)
                        _check_cancel(cancel)
                    done, pending = wait(pending, timeout=0.1, return_when=FIRST_COMPLETED)
                    for future in done:
                        _store(future.result())
                        bar.update(1)
    _check_cancel(cancel)

    logger.info("Render done in %.3fs", time.perf_counter() - start)
    return EscapeGrid(iterations=iterations, escaped=escaped, max_iterations=viewport.max_iterations)


def render(
    viewport: Viewport,
    *,
    palette: str = "smooth",
    bands: int = DEFAULT_BANDS,
    **grid_options,
) -> PixelBuffer:
    if palette not in PALETTES:
        raise ValueError(f"palette must be one of: {', '.join(PALETTES)}")
    grid = compute_escape_grid(viewport, **grid_options)
    return PixelBuffer(colorize(grid.iterations, grid.escaped, grid.max_iterations, palette=palette, bands=bands))
