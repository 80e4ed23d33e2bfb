# capture_frame.py
# Cross-platform capture for the reflection pipeline:
# - Raspberry Pi (libcamera sensors): Picamera2
# - Elsewhere: OpenCV VideoCapture (device index, file path or "rtsp://..." URL)
# Frames come out as RGBA (see frame.Frame). Opening runs on a background
# thread; until it finishes (or if it fails) is_ready() stays False.

import platform
import threading
import time

import cv2

from config import RunConfig
from errors import CaptureUnavailable
from frame import Frame


def _is_pi():
    return platform.system() == "Linux" and platform.machine() in ("aarch64", "armv7l", "armv6l")


class FrameSource:
    def __init__(self, cfg=None):
        self.cfg = cfg or RunConfig()
        self.picam2 = None
        self.cap = None
        self._using_picam2 = False
        self._pending = None      # Picamera2 frame grabbed by is_ready()
        self._size = (0, 0)
        self._opened = threading.Event()
        self._released = threading.Event()
        self._thread = None
        self.error = None

    # ----- lifecycle -----
    def start(self):
        """Open the device asynchronously. Safe to call more than once."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._open_safe, name="capture-open", daemon=True)
        self._thread.start()

    def wait_opened(self, timeout=None):
        return self._opened.wait(timeout)

    def _open_safe(self):
        try:
            self._open()
            self._opened.set()
        except (CaptureUnavailable, cv2.error) as e:
            # Reported once; no retry.
            self.error = e if isinstance(e, CaptureUnavailable) else CaptureUnavailable(str(e))
            print(f"[capture] capture unavailable: {e}")

    def _open(self):
        cfg = self.cfg
        if cfg.use_picamera2 and _is_pi() and isinstance(cfg.source, int):
            try:
                self._open_picamera2()
                return
            except Exception as e:
                print(f"[capture] Picamera2 failed: {e}\n[capture] Falling back to OpenCV.")
        self._open_opencv()

    def _open_picamera2(self):
        from picamera2 import Picamera2
        cfg = self.cfg
        self.picam2 = Picamera2()

        props = getattr(self.picam2, "camera_properties", {}) or {}
        model = str(props.get("Model", "")).lower()
        size = (int(cfg.width), int(cfg.height)) if cfg.width and cfg.height else (1280, 720)

        vcfg = self.picam2.create_video_configuration(main={"size": size, "format": "RGB888"}, raw=None)
        self.picam2.configure(vcfg)
        self.picam2.start()

        if cfg.exposure_ms:
            us = int(max(1, float(cfg.exposure_ms) * 1000.0))
            self._set_controls_safe({"AeEnable": False, "ExposureTime": us})
        if cfg.fps:
            frame_us = int(max(1, 1_000_000 // int(cfg.fps)))
            self._set_controls_safe({"FrameDurationLimits": (frame_us, frame_us)})

        self._size = size
        self._using_picam2 = True
        print(f"[capture] Picamera2 active ({model or 'unknown sensor'}), size={size}")

    def _open_opencv(self):
        cfg = self.cfg
        api = cv2.CAP_DSHOW if platform.system() == "Windows" and isinstance(cfg.source, int) else cv2.CAP_ANY
        cap = cv2.VideoCapture(cfg.source, api)
        if not cap.isOpened():
            cap.release()
            raise CaptureUnavailable(f"OpenCV VideoCapture failed to open source {cfg.source!r} "
                                     "(device missing or permission denied)")
        if cfg.width:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, int(cfg.width))
        if cfg.height:
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, int(cfg.height))
        if cfg.fps:
            cap.set(cv2.CAP_PROP_FPS, int(cfg.fps))
        if cfg.exposure_ms:
            # DShow expects negative log2(seconds); drivers that ignore it are harmless
            cap.set(cv2.CAP_PROP_AUTO_EXPOSURE, 0.25)
            cap.set(cv2.CAP_PROP_EXPOSURE, float(cfg.exposure_ms))
        if self._released.is_set():
            # release() already ran; nobody else will free this device
            cap.release()
            raise CaptureUnavailable("capture released while the device was opening")
        self.cap = cap
        self._size = (int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)), int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)))
        print(f"[capture] OpenCV VideoCapture active, size={self._size[0]}x{self._size[1]}")

    # Set a control only if the driver advertises it (avoids "not advertised" errors)
    def _set_controls_safe(self, d):
        ctrl_map = getattr(self.picam2, "camera_controls", {}) or {}
        safe = {k: v for k, v in d.items() if k in ctrl_map}
        if safe:
            self.picam2.set_controls(safe)

    # ----- capture interface -----
    @property
    def available(self):
        return self._opened.is_set()

    @property
    def size(self):
        """(width, height) of the frames snapshot() returns."""
        return self._size

    def is_ready(self):
        """
        True when a full frame has been grabbed and snapshot() can decode it.
        False while the device is still opening, after an open failure, or at
        end of stream.
        """
        if not self._opened.is_set():
            return False
        if self._using_picam2:
            arr = self.picam2.capture_array("main")
            if arr is None or arr.size == 0:
                return False
            self._pending = arr
            return True
        return bool(self.cap.grab())

    def snapshot(self):
        """Decode the frame grabbed by is_ready() into an RGBA Frame, or None."""
        if self._using_picam2:
            arr, self._pending = self._pending, None
            if arr is None:
                return None
            # RGB888 on libcamera is laid out B,G,R in memory
            frame = Frame.from_bgr(arr)
        else:
            ok, img = self.cap.retrieve()
            if not ok or img is None:
                return None
            frame = Frame.from_bgr(img)
        self._size = (frame.width, frame.height)
        return frame

    def release(self):
        self._released.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
        if self._using_picam2 and self.picam2:
            try:
                self.picam2.stop()
                self.picam2.close()
            except Exception as e:
                print(f"[capture] Picamera2 stop failed: {e}")
        if self.cap is not None:
            try:
                self.cap.release()
            except Exception as e:
                print(f"[capture] VideoCapture release failed: {e}")
            self.cap = None
        self._opened.clear()


def capture_frames(cfg=None, poll=0.01):
    """Generator over RGBA frames, for scripts that prefer for-loops."""
    src = FrameSource(cfg)
    src.start()
    try:
        while src.error is None:
            if not src.available:
                time.sleep(poll)
                continue
            if not src.is_ready():
                break
            frame = src.snapshot()
            if frame is not None:
                yield frame
    finally:
        src.release()
