"""
test_export.py
"""
import numpy as np
import pytest
from PIL import Image

from mandelview.errors import ExportError, ExportIOFailure, InvalidBuffer
from mandelview.export import export
from mandelview.render import PixelBuffer, render
from mandelview.viewport import Viewport


def test_export_writes_exact_pixels(tmp_path):
    buffer = render(Viewport.from_zoom(width=21, height=9, max_iterations=40), workers=1)
    path = export(buffer, tmp_path / 'view.png')

    with Image.open(path) as img:
        assert img.format == 'PNG'
        assert img.size == (21, 9)
        assert np.array_equal(np.asarray(img.convert('RGB')), buffer.pixels)


def test_export_creates_parent_directories(tmp_path):
    buffer = PixelBuffer(np.full((2, 3, 3), 7, dtype=np.uint8))
    path = export(buffer, tmp_path / 'a' / 'b' / 'view.bmp')
    assert path.exists()
    with Image.open(path) as img:
        assert img.format == 'BMP'


@pytest.mark.parametrize(
    'pixels',
    [
        np.zeros((0, 4, 3), dtype=np.uint8),
        np.zeros((4, 0, 3), dtype=np.uint8),
        np.zeros((4, 4), dtype=np.uint8),
    ],
)
def test_invalid_buffer(tmp_path, pixels):
    with pytest.raises(InvalidBuffer):
        export(PixelBuffer(pixels), tmp_path / 'bad.png')
    assert not (tmp_path / 'bad.png').exists()


def test_unwritable_target(tmp_path):
    blocker = tmp_path / 'blocker'
    blocker.write_text('not a directory')
    buffer = PixelBuffer(np.zeros((2, 2, 3), dtype=np.uint8))

    with pytest.raises(ExportIOFailure) as excinfo:
        export(buffer, blocker / 'view.png')
    assert isinstance(excinfo.value, ExportError)
    assert isinstance(excinfo.value.__cause__, OSError)


@pytest.mark.parametrize('fmt', ['JPEG', 'webp', 'NOPE'])
def test_lossy_or_unknown_formats_are_rejected(tmp_path, fmt):
    buffer = PixelBuffer(np.zeros((2, 2, 3), dtype=np.uint8))
    with pytest.raises(ExportError):
        export(buffer, tmp_path / 'view.img', format=fmt)
    assert not (tmp_path / 'view.img').exists()


def test_explicit_lossless_format(tmp_path):
    buffer = PixelBuffer(np.full((3, 2, 3), 200, dtype=np.uint8))
    path = export(buffer, tmp_path / 'view.img', format='tiff')
    with Image.open(path) as img:
        assert img.format == 'TIFF'
        assert np.array_equal(np.asarray(img.convert('RGB')), buffer.pixels)
