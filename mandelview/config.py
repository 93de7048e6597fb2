import json
from typing import Any, Dict, Optional

from mandelview.color import PALETTES
from mandelview.errors import InvalidViewport
from mandelview.render import BACKENDS
from mandelview.viewport import Viewport

DEFAULTS: Dict[str, Any] = {
    "width": 800,
    "height": 800,
    "center": [-0.4, 0.0],
    "zoom": 1.0,
    "max_iterations": 500,
    "palette": "smooth",
    "backend": "numba",
    "workers": None,
    "band_height": 32,
    "output": "mandelbrot.png",
}


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    cfg = dict(DEFAULTS)
    if not config_path:
        return cfg
    with open(config_path, "r", encoding="utf-8") as f:
        loaded = json.load(f)
    if not isinstance(loaded, dict):
        raise ValueError("Config JSON must be an object.")
    cfg.update(loaded)
    return cfg


def normalise_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    required = ["width", "height", "center", "max_iterations"]
    for r in required:
        if r not in cfg:
            raise ValueError(f"Missing config field: {r}")

    width = int(cfg["width"])
    height = int(cfg["height"])
    max_iterations = int(cfg["max_iterations"])
    if width <= 0 or height <= 0:
        raise InvalidViewport("width/height must be positive.")
    if max_iterations <= 0:
        raise InvalidViewport("max_iterations must be positive.")

    center = cfg["center"]
    if not (isinstance(center, (list, tuple)) and len(center) == 2):
        raise ValueError("center must be [re, im].")

    out = dict(cfg)
    out["width"] = width
    out["height"] = height
    out["max_iterations"] = max_iterations
    out["center"] = [float(center[0]), float(center[1])]

    if cfg.get("scale") is not None:
        out["scale"] = float(cfg["scale"])
        if out["scale"] <= 0:
            raise InvalidViewport("scale must be positive.")
    else:
        out["scale"] = None
        out["zoom"] = float(cfg.get("zoom", 1.0))
        if out["zoom"] <= 0:
            raise InvalidViewport("zoom must be positive.")

    out["palette"] = str(cfg.get("palette", "smooth"))
    if out["palette"] not in PALETTES:
        raise ValueError(f"palette must be one of: {', '.join(PALETTES)}")
    out["backend"] = str(cfg.get("backend", "numba"))
    if out["backend"] not in BACKENDS:
        raise ValueError(f"backend must be one of: {', '.join(BACKENDS)}")
    out["workers"] = int(cfg["workers"]) if cfg.get("workers") is not None else None
    if out["workers"] is not None and out["workers"] < 1:
        raise ValueError("workers must be >= 1.")
    out["band_height"] = int(cfg.get("band_height", 32))
    if out["band_height"] < 1:
        raise ValueError("band_height must be >= 1.")
    out["output"] = str(cfg.get("output", "mandelbrot.png"))
    return out


def viewport_from_config(cfg: Dict[str, Any]) -> Viewport:
    center = complex(cfg["center"][0], cfg["center"][1])
    if cfg.get("scale") is not None:
        return Viewport(center=center, scale=cfg["scale"], width=cfg["width"],
                        height=cfg["height"], max_iterations=cfg["max_iterations"])
    return Viewport.from_zoom(center=center, zoom=cfg["zoom"], width=cfg["width"],
                              height=cfg["height"], max_iterations=cfg["max_iterations"])
