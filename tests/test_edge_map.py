import math

import numpy as np
import pytest

from conftest import solid_frame
from edge_map import SOBEL_X, SOBEL_Y, build_edge_map, luma_plane
from frame import Frame


def direct_sobel(frame):
    """Per-neighbour luma recompute, no shared plane: the reference formulation."""
    px = frame.pixels
    h, w = frame.height, frame.width
    out = np.zeros((h, w))
    for y in range(1, h - 1):
        for x in range(1, w - 1):
            sx = sy = 0.0
            for i in (-1, 0, 1):
                for j in (-1, 0, 1):
                    r, g, b = (float(c) for c in px[y + i, x + j, :3])
                    lum = 0.299 * r + 0.587 * g + 0.114 * b
                    sx += lum * SOBEL_X[i + 1][j + 1]
                    sy += lum * SOBEL_Y[i + 1][j + 1]
            out[y, x] = math.sqrt(sx * sx + sy * sy)
    return out


def test_luma_weights():
    rgba = solid_frame(1, 1, (100, 50, 10))
    assert luma_plane(Frame(rgba))[0, 0] == pytest.approx(0.299 * 100 + 0.587 * 50 + 0.114 * 10)


@pytest.mark.parametrize("size", [1, 2])
def test_tiny_frames_have_no_interior(size):
    edges = build_edge_map(Frame(solid_frame(size, size, (255, 255, 255))))
    assert edges.shape == (size, size)
    assert not edges.any()


def test_square_edges_on_border_only(square_frame):
    edges = build_edge_map(square_frame)
    assert edges.shape == (100, 100)
    # left edge of the square, mid-height: full white column against black
    assert edges[50, 45] == pytest.approx(4 * 255, rel=1e-9)
    assert edges[50, 44] == pytest.approx(4 * 255, rel=1e-9)
    # flat interior and exterior
    assert edges[50, 50] == pytest.approx(0.0, abs=1e-9)
    assert edges[10, 10] == pytest.approx(0.0, abs=1e-9)
    assert edges[80, 20] == pytest.approx(0.0, abs=1e-9)


def test_border_is_zero_even_next_to_contrast():
    rgba = solid_frame(6, 6)
    rgba[:, :3, :3] = 255   # left half white
    rgba[:, 3:, :3] = 0
    edges = build_edge_map(Frame(rgba))
    assert not edges[0].any() and not edges[-1].any()
    assert not edges[:, 0].any() and not edges[:, -1].any()
    assert edges[2, 2] > 0 and edges[2, 3] > 0


def test_matches_direct_formulation_exactly():
    rng = np.random.default_rng(7)
    frame = Frame(rng.integers(0, 256, size=(60, 80, 4), dtype=np.uint8))
    np.testing.assert_array_equal(build_edge_map(frame), direct_sobel(frame))


def test_shared_luma_plane_gives_same_map():
    rng = np.random.default_rng(3)
    frame = Frame(rng.integers(0, 256, size=(12, 8, 4), dtype=np.uint8))
    np.testing.assert_array_equal(build_edge_map(frame), build_edge_map(frame, luma=luma_plane(frame)))
