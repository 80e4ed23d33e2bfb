# pipeline.py - per-frame driver: capture -> edges -> bright points -> rank -> project -> sink.
import threading
import time
from enum import Enum

import numpy as np

from bright_points import find_bright_points
from config import DetectorConfig
from errors import InvalidFrameGeometry
from projection import project_points


class PipelineState(Enum):
    UNINITIALIZED = "uninitialized"
    AWAITING_CAPTURE = "awaiting_capture"
    RUNNING = "running"
    STOPPED = "stopped"


class ParticleBuffer:
    """
    Fixed-capacity positions/colours read by the renderer.
    Never resized; slots past `count` keep whatever the previous pass wrote.
    """

    def __init__(self, capacity):
        self.capacity = int(capacity)
        if self.capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.positions = np.zeros((self.capacity, 3), dtype=np.float32)
        self.colors = np.ones((self.capacity, 3), dtype=np.float32)
        self.count = 0
        self.version = 0  # bumped on every write, lets a renderer skip unchanged buffers

    def write(self, projected):
        n = len(projected)
        if n > self.capacity:
            raise ValueError(f"{n} points exceed particle capacity {self.capacity}")
        for i, p in enumerate(projected):
            self.positions[i] = p.position
            self.colors[i] = p.color
        self.count = n
        self.version += 1

    def live(self):
        """(positions, colors) of the slots written by the last pass."""
        return self.positions[:self.count], self.colors[:self.count]


class ReflectionPipeline:
    """
    Owns the particle buffer and drives one pass per scheduled tick.

    source: capture source with start(), is_ready(), snapshot()
    sink:   renderer with render(projected_points)
    """

    def __init__(self, source, sink, config=None, drop_late_frames=False, stop=None):
        self.source = source
        self.sink = sink
        self.config = config or DetectorConfig()
        self.drop_late_frames = drop_late_frames
        self.buffer = ParticleBuffer(self.config.max_bright_points)
        self.state = PipelineState.UNINITIALIZED
        self.stats = {"passes": 0, "idle": 0, "skipped": 0, "dropped": 0}
        self._stop = stop if stop is not None else threading.Event()
        self._reported = set()

    def _report_once(self, kind, msg):
        if kind not in self._reported:
            self._reported.add(kind)
            print(msg)

    def start(self):
        if self.state is PipelineState.UNINITIALIZED:
            self.source.start()
            self.state = PipelineState.AWAITING_CAPTURE

    def stop(self):
        self._stop.set()

    def process(self, frame):
        """Bright points of one frame, ranked and projected. Pure: no buffer or sink writes."""
        if frame.width <= 0 or frame.height <= 0:
            raise InvalidFrameGeometry(f"frame size {frame.width}x{frame.height} is not positive")
        ranked = find_bright_points(frame, self.config)
        return project_points(ranked, frame.width, frame.height, self.config.projection_distance)

    def step(self):
        """
        One scheduled invocation.

        Returns:
            list of ProjectedPoint handed to the sink, or None when no pass ran
            (stopped, capture not ready, or the frame was unusable)
        """
        if self._stop.is_set():
            self.state = PipelineState.STOPPED
            return None
        if self.state is PipelineState.UNINITIALIZED:
            self.start()

        if not self.source.is_ready():
            self.stats["idle"] += 1
            return None
        if self.state is PipelineState.AWAITING_CAPTURE:
            self.state = PipelineState.RUNNING
            print("[pipeline] capture ready, running")

        frame = self.source.snapshot()
        if frame is None:
            self.stats["skipped"] += 1
            return None
        try:
            projected = self.process(frame)
        except InvalidFrameGeometry as e:
            self._report_once("geometry", f"[pipeline] skipping pass: {e}")
            self.stats["skipped"] += 1
            return None

        self.buffer.write(projected)
        self.sink.render(projected)
        self.stats["passes"] += 1
        return projected

    def run(self, frame_interval=1.0 / 60):
        """
        Call step() every frame_interval seconds until stop() is called.

        A late pass is followed immediately by the next one, unless
        drop_late_frames is set, in which case the ticks it overran are
        skipped and counted in stats["dropped"].
        """
        interval = frame_interval
        self.start()
        next_tick = time.monotonic()
        while not self._stop.is_set():
            self.step()
            next_tick += interval
            now = time.monotonic()
            if now > next_tick:
                if self.drop_late_frames and self.state is PipelineState.RUNNING:
                    missed = int((now - next_tick) / interval) + 1
                    self.stats["dropped"] += missed
                    next_tick += missed * interval
                else:
                    next_tick = now
            self._stop.wait(max(0.0, next_tick - now))
        self.state = PipelineState.STOPPED
