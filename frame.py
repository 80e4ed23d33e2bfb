# frame.py - RGBA8 frame handed from the capture source to the pipeline.
# The pipeline reads it for one pass and must not keep it afterwards.
import cv2
import numpy as np

from errors import InvalidFrameGeometry


class Frame:
    """
    Row-major RGBA8 pixel buffer, shape (height, width, 4).
    """

    __slots__ = ("_rgba",)

    def __init__(self, rgba):
        rgba = np.asarray(rgba)
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise InvalidFrameGeometry(f"expected (h, w, 4) RGBA array, got shape {rgba.shape}")
        if rgba.dtype != np.uint8:
            raise TypeError(f"expected uint8 pixels, got {rgba.dtype}")
        self._rgba = rgba

    @classmethod
    def from_buffer(cls, buf, width, height):
        """Wrap a flat RGBA buffer; len(buf) must equal width*height*4."""
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            raise InvalidFrameGeometry(f"frame size {width}x{height} is not positive")
        arr = np.frombuffer(buf, dtype=np.uint8) if not isinstance(buf, np.ndarray) else buf.astype(np.uint8, copy=False)
        if arr.size != width * height * 4:
            raise InvalidFrameGeometry(
                f"buffer holds {arr.size} bytes, {width}x{height} RGBA needs {width * height * 4}")
        return cls(arr.reshape(height, width, 4))

    @classmethod
    def from_bgr(cls, img):
        """Convert an OpenCV image (BGR, BGRA or gray) to an RGBA frame."""
        img = np.asarray(img)
        if img.size == 0:
            raise InvalidFrameGeometry("empty image")
        if img.ndim == 2:
            code = cv2.COLOR_GRAY2RGBA
        elif img.shape[2] == 4:
            code = cv2.COLOR_BGRA2RGBA
        else:
            code = cv2.COLOR_BGR2RGBA
        return cls(cv2.cvtColor(img, code))

    @property
    def width(self):
        return self._rgba.shape[1]

    @property
    def height(self):
        return self._rgba.shape[0]

    @property
    def pixels(self):
        view = self._rgba.view()
        view.flags.writeable = False
        return view

    def __repr__(self):
        return f"Frame({self.width}x{self.height})"
