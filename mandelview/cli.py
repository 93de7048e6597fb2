from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Dict, Optional

from mandelview.config import load_config, normalise_config, viewport_from_config
from mandelview.errors import ExportError, RenderCancelled
from mandelview.export import export
from mandelview.overlay import draw_orbit
from mandelview.pipeline import inspect_pixel, inspect_point
from mandelview.render import render
from mandelview.util.logging_setup import get_logger, logging_session
from mandelview.util.manifest import build_manifest, write_manifest


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mandelview", description="Escape-time Mandelbrot renderer and orbit inspector.")
    p.add_argument("--config", type=str, default=None, help="Path to config JSON. If omitted, built-in defaults are used.")
    p.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level.")
    p.add_argument("--log-file", type=str, default="", help="Log file path (rotating). Empty disables file logging.")

    view = argparse.ArgumentParser(add_help=False)
    view.add_argument("--width", type=int, default=None, help="Output width in pixels.")
    view.add_argument("--height", type=int, default=None, help="Output height in pixels.")
    view.add_argument("--center", type=float, nargs=2, metavar=("RE", "IM"), default=None, help="View center.")
    view.add_argument("--zoom", type=float, default=None, help="Zoom factor; 1 shows a plane width of 4.")
    view.add_argument("--scale", type=float, default=None, help="Plane units per pixel (overrides --zoom).")
    view.add_argument("--max-iterations", type=int, default=None, help="Iteration cap.")

    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("render", parents=[view], help="Render the view and export it as an image.")
    r.add_argument("--output", type=str, default=None, help="Image path (defaults to config.output).")
    r.add_argument("--palette", type=str, default=None, help="Colour palette: smooth or banded.")
    r.add_argument("--backend", type=str, default=None, help="Evaluation backend: numba or python.")
    r.add_argument("--workers", type=int, default=None, help="Worker count (1 renders in-process).")
    r.add_argument("--progress", action="store_true", help="Show a progress bar.")
    r.add_argument("--orbit", type=float, nargs=2, metavar=("RE", "IM"), default=None, help="Draw the orbit of this point.")
    r.add_argument("--manifest", type=str, default=None, help="Write a run manifest JSON to this path.")

    i = sub.add_parser("inspect", parents=[view], help="Print the escape result and orbit of one point as JSON.")
    target = i.add_mutually_exclusive_group(required=True)
    target.add_argument("--point", type=float, nargs=2, metavar=("RE", "IM"), help="Plane coordinate.")
    target.add_argument("--pixel", type=int, nargs=2, metavar=("X", "Y"), help="Pixel of the view.")

    return p


def _apply_overrides(cfg: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    out = dict(cfg)
    overrides = {
        "width": args.width,
        "height": args.height,
        "center": args.center,
        "zoom": args.zoom,
        "scale": args.scale,
        "max_iterations": args.max_iterations,
        "output": getattr(args, "output", None),
        "palette": getattr(args, "palette", None),
        "backend": getattr(args, "backend", None),
        "workers": getattr(args, "workers", None),
    }
    for key, value in overrides.items():
        if value is not None:
            out[key] = value
    if args.zoom is not None and args.scale is None:
        out["scale"] = None
    return out


def _result_payload(c: complex, result) -> Dict[str, Any]:
    return {
        "c": [c.real, c.imag],
        "escaped": result.escaped,
        "iterations": result.iterations,
        "orbit": [[z.real, z.imag] for z in result.orbit],
    }


def _run_render(args: argparse.Namespace, cfg: Dict[str, Any], viewport, log_queue, log_level: int) -> int:
    buffer = render(
        viewport,
        palette=cfg["palette"],
        backend=cfg["backend"],
        workers=cfg["workers"],
        band_height=cfg["band_height"],
        progress=args.progress,
        log_queue=log_queue,
        log_level=log_level,
    )
    if args.orbit is not None:
        c = complex(args.orbit[0], args.orbit[1])
        buffer = draw_orbit(buffer, viewport, inspect_point(viewport, c).orbit)

    path = export(buffer, cfg["output"])

    if args.manifest:
        manifest = build_manifest(
            config=cfg,
            viewport={
                "center": [viewport.center.real, viewport.center.imag],
                "scale": viewport.scale,
                "zoom": viewport.zoom,
                "width": viewport.width,
                "height": viewport.height,
                "max_iterations": viewport.max_iterations,
            },
            output=str(path),
        )
        write_manifest(args.manifest, manifest)
        get_logger("cli").info("Run manifest written: %s", args.manifest)
    return 0


def _run_inspect(args: argparse.Namespace, viewport) -> int:
    if args.pixel is not None:
        x, y = args.pixel
        c = viewport.pixel_to_complex(x, y)
        result = inspect_pixel(viewport, x, y)
    else:
        c = complex(args.point[0], args.point[1])
        result = inspect_point(viewport, c)
    print(json.dumps(_result_payload(c, result)))
    return 0


def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    log_file = args.log_file if args.log_file and args.log_file.strip() else None
    logger = get_logger("cli")

    with logging_session(level=log_level, console=True, log_file=log_file) as log_queue:
        try:
            cfg = normalise_config(_apply_overrides(load_config(args.config), args))
            viewport = viewport_from_config(cfg)

            if args.cmd == "render":
                return _run_render(args, cfg, viewport, log_queue, log_level)
            if args.cmd == "inspect":
                return _run_inspect(args, viewport)
            raise RuntimeError("Unknown command.")
        except (ValueError, IndexError) as e:
            logger.error("Invalid request: %s", e)
            return 2
        except (ExportError, RenderCancelled) as e:
            logger.error("%s", e)
            return 1
