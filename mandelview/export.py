from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

import numpy as np

from mandelview.errors import ExportError, ExportIOFailure, InvalidBuffer
from mandelview.render import PixelBuffer
from mandelview.util.logging_setup import get_logger

# Lossless formats only; the image must keep the exact rendered colours.
_FORMATS = {".png": "PNG", ".bmp": "BMP", ".tif": "TIFF", ".tiff": "TIFF", ".ppm": "PPM"}
_LOSSLESS = tuple(sorted(set(_FORMATS.values())))


def _validate(buffer: PixelBuffer) -> None:
    pixels = getattr(buffer, "pixels", None)
    if not isinstance(pixels, np.ndarray):
        raise InvalidBuffer("buffer has no pixel array")
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise InvalidBuffer(f"buffer must be (height, width, 3), got {pixels.shape}")
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise InvalidBuffer("buffer has zero width or height")


def export(buffer: PixelBuffer, path: Union[str, os.PathLike], *, format: Optional[str] = None) -> Path:
    """Write ``buffer`` to ``path`` at its exact resolution.

    The format comes from the suffix unless given; unknown suffixes fall back
    to PNG. Only lossless formats are accepted.
    """
    _validate(buffer)
    target = Path(path)
    fmt = format.upper() if format else _FORMATS.get(target.suffix.lower(), "PNG")
    if fmt not in _LOSSLESS:
        raise ExportError(f"Unsupported image format {format!r}; expected one of: {', '.join(_LOSSLESS)}")

    try:
        if target.parent and not target.parent.exists():
            target.parent.mkdir(parents=True, exist_ok=True)
        buffer.to_image().save(target, format=fmt)
    except OSError as e:
        raise ExportIOFailure(f"Failed to write {target}: {e}") from e

    get_logger("export").info("Image written: %s (%sx%s %s)", target, buffer.width, buffer.height, fmt)
    return target
