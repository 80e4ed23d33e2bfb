# main.py - reflection point cloud: camera -> bright edge points -> 3D view
import signal
import threading

from capture_frame import FrameSource
from config import DetectorConfig, RunConfig
from display import PointCloudView
from errors import RenderTargetUnavailable
from pipeline import ReflectionPipeline
from web_stream import MJPEGServer


class _StatusSink:
    """Wraps the view and prints an SSH-friendly status line after each pass."""

    def __init__(self, view):
        self.view = view

    def render(self, points):
        self.view.render(points)
        print(f"\rFPS: {self.view.fps:5.1f} | reflections: {len(points):d}   ", end="", flush=True)


def build(run_cfg, det_cfg, stop):
    """Wire capture source, view and pipeline. Raises RenderTargetUnavailable."""
    streamer = MJPEGServer(port=run_cfg.stream_port) if run_cfg.headless and run_cfg.stream else None
    try:
        view = PointCloudView(size=run_cfg.view_size, headless=run_cfg.headless, streamer=streamer,
                              jpeg_quality=run_cfg.jpeg_quality, stop=stop)
    except RenderTargetUnavailable:
        if streamer:
            streamer.stop()
        raise
    sink = _StatusSink(view) if run_cfg.status_line else view
    source = FrameSource(run_cfg)
    pipeline = ReflectionPipeline(source, sink, config=det_cfg,
                                  drop_late_frames=run_cfg.drop_late_frames, stop=stop)
    return source, view, streamer, pipeline


def main():
    run_cfg = RunConfig.from_env()
    det_cfg = DetectorConfig.from_env()
    stop = threading.Event()

    try:
        source, view, streamer, pipeline = build(run_cfg, det_cfg, stop)
    except RenderTargetUnavailable as e:
        print(f"[run] {e}")
        raise SystemExit(1)

    signal.signal(signal.SIGTERM, lambda *_: stop.set())
    print(f"[run] HEADLESS={run_cfg.headless} STREAM={run_cfg.stream} "
          f"threshold={det_cfg.brightness_threshold} edge={det_cfg.edge_threshold} "
          f"max_points={det_cfg.max_bright_points}")

    try:
        pipeline.run(frame_interval=run_cfg.frame_interval)
    except KeyboardInterrupt:
        print("\n[run] interrupted by user.")
    finally:
        stop.set()
        if streamer:
            streamer.stop()
        source.release()
        view.close()
        s = pipeline.stats
        print(f"\n[run] shutdown complete. passes={s['passes']} idle={s['idle']} "
              f"skipped={s['skipped']} dropped={s['dropped']}")


if __name__ == "__main__":
    main()
