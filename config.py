# config.py - detector and run knobs.
# Every knob can be overridden from the environment (see from_env) so the
# demo can be tuned over SSH without edits.
import os
import platform
from dataclasses import dataclass
from typing import Optional, Tuple, Union


def _env(name, default=None):
    v = os.environ.get(name, "").strip()
    return v if v != "" else default


def _env_flag(name, default=False):
    v = _env(name)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "on")


def _env_num(name, cast, default):
    v = _env(name)
    if v is None:
        return default
    try:
        return cast(v)
    except ValueError:
        raise ValueError(f"{name}={v!r} is not a valid {cast.__name__}") from None


@dataclass(frozen=True)
class DetectorConfig:
    brightness_threshold: float = 200.0   # luma, 0..255
    edge_threshold: float = 0.2           # Sobel magnitude, >= 0
    projection_distance: float = 0.1      # subtracted from z when writing the particle buffer
    max_bright_points: int = 5            # particle buffer capacity

    def __post_init__(self):
        if not 0 <= self.brightness_threshold <= 255:
            raise ValueError(f"brightness_threshold must be in [0, 255], got {self.brightness_threshold}")
        if self.edge_threshold < 0:
            raise ValueError(f"edge_threshold must be >= 0, got {self.edge_threshold}")
        if isinstance(self.max_bright_points, bool) or int(self.max_bright_points) != self.max_bright_points \
                or self.max_bright_points < 1:
            raise ValueError(f"max_bright_points must be a positive integer, got {self.max_bright_points}")

    @classmethod
    def from_env(cls):
        return cls(
            brightness_threshold=_env_num("BRIGHTNESS_THRESHOLD", float, cls.brightness_threshold),
            edge_threshold=_env_num("EDGE_THRESHOLD", float, cls.edge_threshold),
            projection_distance=_env_num("PROJECTION_DISTANCE", float, cls.projection_distance),
            max_bright_points=_env_num("MAX_BRIGHT_POINTS", int, cls.max_bright_points),
        )


def _default_headless():
    # Linux over SSH has no DISPLAY; Windows/macOS default to a window.
    return platform.system() == "Linux" and os.environ.get("DISPLAY", "") == ""


@dataclass(frozen=True)
class RunConfig:
    source: Union[int, str] = 0           # OpenCV device index, file path or "rtsp://..." URL
    width: Optional[int] = None
    height: Optional[int] = None
    fps: int = 30                         # requested camera rate
    exposure_ms: Optional[float] = None   # None keeps auto exposure
    use_picamera2: bool = True
    target_fps: float = 60.0              # pass scheduling rate (display refresh stand-in)
    drop_late_frames: bool = False
    headless: bool = False
    stream: bool = False
    stream_port: int = 8080
    jpeg_quality: int = 80
    view_size: Tuple[int, int] = (960, 540)
    status_line: bool = False

    def __post_init__(self):
        if self.target_fps <= 0:
            raise ValueError(f"target_fps must be positive, got {self.target_fps}")
        if not 0 <= self.jpeg_quality <= 100:
            raise ValueError(f"jpeg_quality must be in [0, 100], got {self.jpeg_quality}")
        if self.view_size[0] <= 0 or self.view_size[1] <= 0:
            raise ValueError(f"view_size must be positive, got {self.view_size}")

    @property
    def frame_interval(self):
        return 1.0 / self.target_fps

    @classmethod
    def from_env(cls):
        src = _env("SOURCE", "0")
        source = int(src) if src.lstrip("-").isdigit() else src
        view_w = _env_num("VIEW_WIDTH", int, cls.view_size[0])
        view_h = _env_num("VIEW_HEIGHT", int, cls.view_size[1])
        return cls(
            source=source,
            width=_env_num("WIDTH", int, None),
            height=_env_num("HEIGHT", int, None),
            fps=_env_num("FPS", int, cls.fps),
            exposure_ms=_env_num("EXPOSURE_MS", float, None),
            use_picamera2=_env_flag("USE_PICAMERA2", cls.use_picamera2),
            target_fps=_env_num("TARGET_FPS", float, cls.target_fps),
            drop_late_frames=_env_flag("DROP_LATE_FRAMES", cls.drop_late_frames),
            headless=_env_flag("HEADLESS", _default_headless()),
            stream=_env_flag("HEADLESS_STREAM", cls.stream),
            stream_port=_env_num("STREAM_PORT", int, cls.stream_port),
            jpeg_quality=_env_num("JPEG_QUALITY", int, cls.jpeg_quality),
            view_size=(view_w, view_h),
            status_line=_env_flag("STATUS_LINE", cls.status_line),
        )
