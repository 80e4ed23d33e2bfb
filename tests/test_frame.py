import numpy as np
import pytest

from errors import InvalidFrameGeometry
from frame import Frame


def test_from_buffer_row_major_layout():
    buf = bytes(range(2 * 3 * 4))
    f = Frame.from_buffer(buf, 2, 3)
    assert (f.width, f.height) == (2, 3)
    # pixel (x=1, y=2) starts at ((2 * 2) + 1) * 4
    assert tuple(f.pixels[2, 1]) == (20, 21, 22, 23)


@pytest.mark.parametrize("width,height,n", [(2, 2, 15), (2, 2, 17), (0, 4, 0), (3, -1, 12)])
def test_from_buffer_rejects_bad_geometry(width, height, n):
    with pytest.raises(InvalidFrameGeometry):
        Frame.from_buffer(bytes(n), width, height)


def test_from_bgr_swaps_channels_and_adds_alpha():
    bgr = np.zeros((2, 2, 3), dtype=np.uint8)
    bgr[0, 0] = (10, 20, 30)
    f = Frame.from_bgr(bgr)
    assert tuple(f.pixels[0, 0]) == (30, 20, 10, 255)


def test_pixels_view_is_read_only():
    f = Frame(np.zeros((2, 2, 4), dtype=np.uint8))
    with pytest.raises(ValueError):
        f.pixels[0, 0, 0] = 1


def test_rejects_non_rgba_arrays():
    with pytest.raises(InvalidFrameGeometry):
        Frame(np.zeros((2, 2, 3), dtype=np.uint8))
    with pytest.raises(TypeError):
        Frame(np.zeros((2, 2, 4), dtype=np.float32))
