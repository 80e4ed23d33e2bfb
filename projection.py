# projection.py - pixel coordinates to normalised scene coordinates.
from dataclasses import dataclass
from typing import Tuple

from errors import InvalidFrameGeometry


@dataclass(frozen=True)
class ProjectedPoint:
    position: Tuple[float, float, float]
    color: Tuple[float, float, float]


def to_scene(x, y, width, height):
    """
    Map pixel (x, y) of a width x height frame to (nx, ny, 0).

    nx = x/width*2 - 1 runs left to right over [-1, 1); ny = -(y/height)*2 + 1
    flips the image's downward y so the top row lands at +1.
    """
    if width <= 0 or height <= 0:
        raise InvalidFrameGeometry(f"cannot project into a {width}x{height} frame")
    nx = x / width * 2 - 1
    ny = -(y / height) * 2 + 1
    return (nx, ny, 0.0)


def project_points(points, width, height, depth=0.1):
    """Place ranked BrightPoints in the scene, pushed back by `depth` along -z."""
    out = []
    for p in points:
        nx, ny, nz = to_scene(p.x, p.y, width, height)
        out.append(ProjectedPoint((nx, ny, nz - depth), p.color))
    return out
