# display.py - renders the projected reflection points through a perspective camera.
import time

import cv2
import numpy as np

from errors import RenderTargetUnavailable

# Scene camera: 75 deg vertical FOV at z=5 looking down -z, near 0.1 / far 1000.
FOV_DEG = 75.0
CAMERA_Z = 5.0
NEAR, FAR = 0.1, 1000.0
POINT_SIZE = 0.1  # scene units

# Scene (x right, y up, z toward viewer) -> OpenCV camera (x right, y down, z forward)
_RVEC = np.array([np.pi, 0.0, 0.0], dtype=np.float64)
_TVEC = np.array([0.0, 0.0, CAMERA_Z], dtype=np.float64)


def camera_matrix(width, height, fov_deg=FOV_DEG):
    fy = (height / 2.0) / np.tan(np.radians(fov_deg) / 2.0)
    return np.array([[fy, 0, width / 2.0],
                     [0, fy, height / 2.0],
                     [0, 0, 1]], dtype=np.float64)


def _to_int_pair(p):
    return (int(round(float(p[0]))), int(round(float(p[1]))))


def project_to_view(positions, K):
    """
    Pixel coordinates and camera depth of scene positions (N x 3).
    Points outside the near/far range come back with NaN pixels.
    """
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    if positions.shape[0] == 0:
        return np.empty((0, 2)), np.empty((0,))
    z_cam = CAMERA_Z - positions[:, 2]
    uv, _ = cv2.projectPoints(positions, _RVEC, _TVEC, K, None)
    uv = uv.reshape(-1, 2)
    uv[(z_cam < NEAR) | (z_cam > FAR)] = np.nan
    return uv, z_cam


def draw_points(img, positions, colors, K):
    """Draw each point as a filled disc POINT_SIZE wide, colour given as RGB in [0, 1]."""
    uv, z_cam = project_to_view(positions, K)
    fy = K[1, 1]
    for q, z, rgb in zip(uv, z_cam, np.asarray(colors).reshape(-1, 3)):
        if not np.all(np.isfinite(q)):
            continue
        radius = max(1, int(round(POINT_SIZE * fy / z / 2.0)))
        bgr = tuple(int(round(float(c) * 255)) for c in rgb[::-1])
        cv2.circle(img, _to_int_pair(q), radius, bgr, -1)
    return img


def draw_hud(img, lines, fps=None, origin=(10, 30), line_start_y=60, line_gap=22):
    """Draw FPS and a list of HUD lines."""
    if fps is not None:
        cv2.putText(img, f"FPS: {fps:.1f}", origin,
                    cv2.FONT_HERSHEY_SIMPLEX, 1.0, (0, 255, 0), 2)
    y = line_start_y
    for i, line in enumerate(lines or []):
        cv2.putText(img, line, (origin[0], y + i * line_gap),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 0), 2)
    return img


class PointCloudView:
    """
    Rendering sink for ReflectionPipeline.

    Presents to an OpenCV window, or when headless to an MJPEG streamer
    (anything with update(jpg_bytes) / update_points(points)). With neither,
    frames are only kept in `last_image`.
    """

    def __init__(self, size=(960, 540), headless=False, streamer=None, jpeg_quality=80,
                 stop=None, window_name="Reflections", hud=True):
        self.width, self.height = int(size[0]), int(size[1])
        self.K = camera_matrix(self.width, self.height)
        self.headless = headless
        self.streamer = streamer
        self.jpeg_quality = jpeg_quality
        self.stop = stop
        self.window_name = window_name
        self.hud = hud
        self.last_image = None
        self._t0 = time.monotonic()
        self._frames = 0

        if not headless:
            try:
                cv2.namedWindow(window_name, cv2.WINDOW_NORMAL | cv2.WINDOW_KEEPRATIO)
                cv2.resizeWindow(window_name, self.width, self.height)
            except cv2.error as e:
                raise RenderTargetUnavailable(f"cannot create window {window_name!r}: {e}") from e

    @property
    def fps(self):
        return self._frames / max(1e-6, time.monotonic() - self._t0)

    def draw(self, points):
        img = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        if points:
            draw_points(img, [p.position for p in points], [p.color for p in points], self.K)
        if self.hud:
            draw_hud(img, [f"Reflections: {len(points)}"], fps=self.fps)
        return img

    def render(self, points):
        self._frames += 1
        img = self.draw(points)
        self.last_image = img

        if not self.headless:
            cv2.imshow(self.window_name, img)
            key = cv2.waitKey(1) & 0xFF
            if key in (ord('q'), 27) and self.stop is not None:
                self.stop.set()
            elif key in (ord('s'), ord(' ')):
                cv2.imwrite(f"reflections_{int(time.time())}.png", img)
        elif self.streamer is not None:
            ok_jpg, jpg = cv2.imencode(".jpg", img, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
            if ok_jpg:
                self.streamer.update(jpg.tobytes())
            self.streamer.update_points(points)

    def close(self):
        if not self.headless:
            cv2.destroyWindow(self.window_name)
