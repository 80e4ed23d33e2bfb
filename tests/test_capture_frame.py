import cv2
import numpy as np
import pytest

from capture_frame import FrameSource, capture_frames
from config import RunConfig


def test_missing_source_reports_once_and_never_becomes_ready(tmp_path, capsys):
    src = FrameSource(RunConfig(source=str(tmp_path / "missing.avi"), use_picamera2=False))
    src.start()
    src.start()
    src._thread.join(timeout=10)
    assert src.error is not None
    assert not src.available
    assert not src.is_ready()
    assert capsys.readouterr().out.count("capture unavailable") == 1
    src.release()


@pytest.fixture()
def video_file(tmp_path):
    path = str(tmp_path / "clip.avi")
    writer = cv2.VideoWriter(path, cv2.VideoWriter_fourcc(*"MJPG"), 10, (32, 24))
    if not writer.isOpened():
        pytest.skip("no MJPG writer in this OpenCV build")
    for i in range(3):
        img = np.zeros((24, 32, 3), dtype=np.uint8)
        img[10:14, 10 + i:14 + i] = 255
        writer.write(img)
    writer.release()
    return path


def test_file_source_yields_rgba_frames(video_file):
    src = FrameSource(RunConfig(source=video_file, use_picamera2=False))
    src.start()
    assert src.wait_opened(timeout=10)
    assert src.size == (32, 24)
    assert src.is_ready()
    frame = src.snapshot()
    assert (frame.width, frame.height) == (32, 24)
    assert frame.pixels.shape == (24, 32, 4)
    assert (frame.pixels[:, :, 3] == 255).all()
    src.release()


def test_capture_frames_generator_ends_with_stream(video_file):
    frames = list(capture_frames(RunConfig(source=video_file, use_picamera2=False)))
    assert len(frames) == 3


def test_device_opened_after_release_is_freed(video_file, capsys):
    src = FrameSource(RunConfig(source=video_file, use_picamera2=False))
    src.release()
    src._open_safe()   # open finishing late, after shutdown
    assert src.cap is None
    assert not src.available
    assert src.error is not None
    assert "released while the device was opening" in capsys.readouterr().out


class _BrokenCapture:
    def release(self):
        raise cv2.error("driver went away")


def test_release_survives_a_failing_device(capsys):
    src = FrameSource(RunConfig(use_picamera2=False))
    src.cap = _BrokenCapture()
    src.release()
    assert src.cap is None
    assert "release failed" in capsys.readouterr().out
