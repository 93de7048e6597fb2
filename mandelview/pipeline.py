from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union

from mandelview.escape import EscapeResult, evaluate
from mandelview.render import PixelBuffer, render
from mandelview.util.logging_setup import get_logger
from mandelview.viewport import DEFAULT_CENTER, Viewport


@dataclass(frozen=True)
class RenderRequest:
    """A full-grid render, or a single-point inspection when ``full_grid`` is false.

    Inspection takes either a ``pixel`` of the viewport or a plane ``point``.
    """

    viewport: Viewport
    full_grid: bool = True
    pixel: Optional[Tuple[int, int]] = None
    point: Optional[complex] = None


def inspect_pixel(viewport: Viewport, x: int, y: int) -> EscapeResult:
    return evaluate(viewport.pixel_to_complex(x, y), viewport.max_iterations, capture_orbit=True)


def inspect_point(viewport: Viewport, c: complex) -> EscapeResult:
    return evaluate(c, viewport.max_iterations, capture_orbit=True)


def handle_request(request: RenderRequest, **render_options: Any) -> Union[PixelBuffer, EscapeResult]:
    if request.full_grid:
        return render(request.viewport, **render_options)
    if request.pixel is not None:
        return inspect_pixel(request.viewport, *request.pixel)
    if request.point is not None:
        return inspect_point(request.viewport, request.point)
    raise ValueError("Inspection request needs a pixel or a point.")


class ViewerSession:
    """Current view of an interactive front end.

    UI input mutates the viewport through this object; renders work on a
    snapshot taken under the lock. Any mutation cancels a render still in
    flight for the previous view.
    """

    def __init__(self, viewport: Viewport, **render_options: Any):
        self._lock = threading.Lock()
        self._viewport = viewport
        self._cancel = threading.Event()
        self._render_options: Dict[str, Any] = dict(render_options)
        self.last_inspected: Optional[complex] = None

    @property
    def viewport(self) -> Viewport:
        with self._lock:
            return self._viewport

    def _update(self, change: Callable[[Viewport], Viewport]) -> Viewport:
        with self._lock:
            viewport = change(self._viewport)
            self._viewport = viewport
            self._cancel.set()
            self._cancel = threading.Event()
        get_logger("session").debug("Viewport updated center=%s scale=%s iter=%s",
                           viewport.center, viewport.scale, viewport.max_iterations)
        return viewport

    def snapshot(self) -> Tuple[Viewport, threading.Event]:
        with self._lock:
            return self._viewport, self._cancel

    def recenter(self, c: complex) -> Viewport:
        return self._update(lambda v: v.recentered(c))

    def recenter_on_inspected(self) -> Viewport:
        with self._lock:
            c = self.last_inspected
        if c is None:
            raise ValueError("No point has been inspected yet.")
        return self.recenter(c)

    def pan(self, dx: float, dy: float) -> Viewport:
        return self._update(lambda v: v.panned(dx, dy))

    def zoom(self, factor: float) -> Viewport:
        return self._update(lambda v: v.zoomed(factor))

    def set_iterations(self, max_iterations: int) -> Viewport:
        return self._update(lambda v: v.with_iterations(max_iterations))

    def resize(self, width: int, height: int) -> Viewport:
        # keep the visible plane width when the window changes size
        return self._update(lambda v: Viewport.from_zoom(
            center=v.center, zoom=v.zoom, width=width, height=height,
            max_iterations=v.max_iterations,
        ))

    def reset(self) -> Viewport:
        return self._update(lambda v: Viewport.from_zoom(
            center=DEFAULT_CENTER, zoom=1.0, width=v.width, height=v.height,
            max_iterations=v.max_iterations,
        ))

    def render(self, **render_options: Any) -> PixelBuffer:
        viewport, cancel = self.snapshot()
        options = dict(self._render_options)
        options.update(render_options)
        return render(viewport, cancel=cancel, **options)

    def inspect_pixel(self, x: int, y: int) -> EscapeResult:
        viewport = self.viewport
        result = inspect_pixel(viewport, x, y)
        with self._lock:
            self.last_inspected = viewport.pixel_to_complex(x, y)
        return result

    def inspect_point(self, c: complex) -> EscapeResult:
        result = inspect_point(self.viewport, c)
        with self._lock:
            self.last_inspected = complex(c)
        return result
