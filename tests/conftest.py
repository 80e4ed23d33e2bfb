"""Shared fixtures: synthetic RGBA frames, a scripted capture source and a recording sink."""

import numpy as np
import pytest

from frame import Frame


def solid_frame(width, height, rgb=(0, 0, 0)):
    rgba = np.empty((height, width, 4), dtype=np.uint8)
    rgba[:, :, :3] = rgb
    rgba[:, :, 3] = 255
    return rgba


def white_square_frame(size=100, x0=45, side=10):
    """Black frame with a white side x side square whose top-left pixel is (x0, x0)."""
    rgba = solid_frame(size, size)
    rgba[x0:x0 + side, x0:x0 + side, :3] = 255
    return Frame(rgba)


class ScriptedSource:
    """
    Capture source double. `ready` is consulted per is_ready() call: a bool
    applies to every call, a list is consumed one entry per call.
    """

    def __init__(self, frame=None, ready=True):
        self.frame = frame
        self.ready = ready
        self.started = 0
        self.snapshots = 0

    def start(self):
        self.started += 1

    def is_ready(self):
        if isinstance(self.ready, list):
            return self.ready.pop(0) if self.ready else False
        return self.ready

    def snapshot(self):
        self.snapshots += 1
        return self.frame


class RecordingSink:
    def __init__(self):
        self.calls = []

    def render(self, points):
        self.calls.append(list(points))


@pytest.fixture()
def square_frame():
    return white_square_frame()


@pytest.fixture()
def sink():
    return RecordingSink()
