# bright_points.py - bright-and-on-an-edge pixel extraction, ranking and truncation.
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from edge_map import build_edge_map, luma_plane


@dataclass(frozen=True)
class BrightPoint:
    x: int
    y: int
    brightness: float                     # luma, 0..255
    color: Tuple[float, float, float]     # (r, g, b) in [0, 1]


def _candidate_mask(luma, edges, brightness_threshold, edge_threshold):
    return (luma > brightness_threshold) & (edges > edge_threshold)


def _to_points(frame, luma, ys, xs):
    px = frame.pixels
    rgb = px[ys, xs, :3].astype(np.float64) / 255.0
    return [BrightPoint(int(x), int(y), float(luma[y, x]), (float(c[0]), float(c[1]), float(c[2])))
            for x, y, c in zip(xs, ys, rgb)]


def extract_bright_points(frame, edges, brightness_threshold=200.0, edge_threshold=0.2, luma=None):
    """
    Every pixel whose luma > brightness_threshold and whose edge value
    > edge_threshold. Returned in scan (row-major) order; callers should not
    rely on any ordering, rank_points imposes one.
    """
    if luma is None:
        luma = luma_plane(frame)
    ys, xs = np.nonzero(_candidate_mask(luma, edges, brightness_threshold, edge_threshold))
    return _to_points(frame, luma, ys, xs)


def rank_points(points, max_points=5) -> List[BrightPoint]:
    """
    At most max_points candidates, brightest first.
    Ties keep their input order (stable sort), so scan order breaks them.
    """
    ranked = sorted(points, key=lambda p: -p.brightness)
    return ranked[:max_points]


def find_bright_points(frame, config) -> List[BrightPoint]:
    """
    Fused edge-map + extraction + ranking for one frame.

    One luma plane feeds both the edge map and the threshold test, and ranking
    runs on arrays so only the survivors become BrightPoint records. Same
    result as rank_points(extract_bright_points(...)).
    """
    luma = luma_plane(frame)
    edges = build_edge_map(frame, luma=luma)
    ys, xs = np.nonzero(_candidate_mask(luma, edges, config.brightness_threshold, config.edge_threshold))
    if ys.size == 0:
        return []

    order = np.argsort(-luma[ys, xs], kind="stable")[:int(config.max_bright_points)]
    return _to_points(frame, luma, ys[order], xs[order])
