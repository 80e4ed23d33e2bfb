# web_stream.py - MJPEG preview of the point-cloud view plus the latest points as JSON
import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer


class _FrameStore:
    def __init__(self):
        self._buf = None
        self._points = []
        self._cv = threading.Condition()
        self._running = True

    def update(self, jpg_bytes: bytes):
        with self._cv:
            self._buf = jpg_bytes
            self._cv.notify_all()

    def update_points(self, points):
        rows = [{"position": list(p.position), "color": list(p.color)} for p in points]
        with self._cv:
            self._points = rows

    def points(self):
        with self._cv:
            return list(self._points)

    def get(self, wait=True, timeout=1.0):
        with self._cv:
            if wait and self._buf is None:
                self._cv.wait(timeout=timeout)
            return self._buf

    def next(self, last, timeout=1.0):
        """Block until a frame other than `last` is stored (or timeout)."""
        with self._cv:
            if self._running and self._buf is last:
                self._cv.wait(timeout=timeout)
            return self._buf

    @property
    def running(self):
        return self._running

    def stop(self):
        with self._cv:
            self._running = False
            self._cv.notify_all()


class _Handler(BaseHTTPRequestHandler):
    server_version = "ReflectionsMJPEG/0.1"

    def log_message(self, fmt, *args):
        pass

    def _send(self, status, ctype, body):
        self.send_response(status)
        self.send_header("Content-Type", ctype)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self):
        store = self.server.store
        if self.path in ("/", "/index.html"):
            html = (b"<html><body><h2>Reflections</h2>"
                    b'<img src="/stream" style="max-width:100%"></body></html>')
            self._send(200, "text/html", html)
            return
        if self.path == "/points":
            body = json.dumps({"points": store.points()}).encode("utf-8")
            self._send(200, "application/json", body)
            return
        if self.path == "/snapshot":
            frame = store.get(wait=True)
            if not frame:
                self.send_error(503, "no frame")
                return
            self._send(200, "image/jpeg", frame)
            return
        if self.path == "/stream":
            boundary = "frameboundary"
            self.send_response(200)
            self.send_header("Age", "0")
            self.send_header("Cache-Control", "no-cache, private")
            self.send_header("Pragma", "no-cache")
            self.send_header("Content-Type", f"multipart/x-mixed-replace; boundary={boundary}")
            self.end_headers()
            frame = None
            while store.running:
                nxt = store.next(frame, timeout=1.0)
                if not nxt or nxt is frame:
                    continue
                frame = nxt
                try:
                    self.wfile.write(bytes(f"--{boundary}\r\n", "ascii"))
                    self.wfile.write(b"Content-Type: image/jpeg\r\n")
                    self.wfile.write(bytes(f"Content-Length: {len(frame)}\r\n\r\n", "ascii"))
                    self.wfile.write(frame)
                    self.wfile.write(b"\r\n")
                except (BrokenPipeError, ConnectionResetError):
                    break
            return
        self.send_error(404, "not found")


class MJPEGServer:
    def __init__(self, host="0.0.0.0", port=8080):
        self.store = _FrameStore()
        self.httpd = ThreadingHTTPServer((host, port), _Handler)
        self.httpd.daemon_threads = True
        self.httpd.store = self.store
        self._t = threading.Thread(target=self.httpd.serve_forever, daemon=True)
        self._t.start()
        print(f"[stream] serving on http://{host}:{port}/  (/stream, /snapshot, /points)")

    @property
    def port(self):
        return self.httpd.server_address[1]

    def update(self, jpg_bytes: bytes):
        self.store.update(jpg_bytes)

    def update_points(self, points):
        self.store.update_points(points)

    def stop(self):
        self.store.stop()
        self.httpd.shutdown()
        self.httpd.server_close()
