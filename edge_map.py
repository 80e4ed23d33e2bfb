# edge_map.py - Sobel gradient magnitude on the luma plane.
import numpy as np

LUMA_WEIGHTS = (0.299, 0.587, 0.114)  # R, G, B

# Applied as correlation: sum over the 3x3 neighbourhood of luma * k[dy+1][dx+1]
SOBEL_X = np.array([[-1, 0, 1],
                    [-2, 0, 2],
                    [-1, 0, 1]], dtype=np.float64)
SOBEL_Y = np.array([[-1, -2, -1],
                    [ 0,  0,  0],
                    [ 1,  2,  1]], dtype=np.float64)


def luma_plane(frame):
    """
    Per-pixel luma (0..255, float64) of an RGBA frame.
    Computed once per frame and shared by the edge map and the extractor.
    """
    px = frame.pixels
    wr, wg, wb = LUMA_WEIGHTS
    return (wr * px[:, :, 0].astype(np.float64)
            + wg * px[:, :, 1].astype(np.float64)
            + wb * px[:, :, 2].astype(np.float64))


def build_edge_map(frame, luma=None):
    """
    Gradient magnitude sqrt(gx^2 + gy^2) for every interior pixel.

    The one-pixel border is left at 0: the kernel needs a full 3x3
    neighbourhood there. Frames under 3 pixels in either direction have no
    interior and give an all-zero map.

    Args:
        frame: Frame (RGBA8)
        luma:  optional precomputed luma_plane(frame)

    Returns:
        numpy.ndarray: (height, width) float64, non-negative
    """
    h, w = frame.height, frame.width
    edges = np.zeros((h, w), dtype=np.float64)
    if h < 3 or w < 3:
        return edges
    if luma is None:
        luma = luma_plane(frame)

    # Same term order as the per-neighbour sum, so results match it exactly
    sx = np.zeros((h - 2, w - 2), dtype=np.float64)
    sy = np.zeros((h - 2, w - 2), dtype=np.float64)
    for i in (-1, 0, 1):
        for j in (-1, 0, 1):
            win = luma[1 + i:h - 1 + i, 1 + j:w - 1 + j]
            sx += win * SOBEL_X[i + 1, j + 1]
            sy += win * SOBEL_Y[i + 1, j + 1]
    edges[1:-1, 1:-1] = np.sqrt(sx * sx + sy * sy)
    return edges
