# errors.py - failure kinds surfaced by the reflection pipeline.
# None of these reach a caller of ReflectionPipeline.step(); they are reported
# on the console and either skip the pass or abort startup.


class ReflectionError(RuntimeError):
    pass


class CaptureUnavailable(ReflectionError):
    """Camera permission denied, device missing, or stream could not be opened."""


class InvalidFrameGeometry(ReflectionError):
    """Frame width/height is zero or negative, or the buffer does not match them."""


class RenderTargetUnavailable(ReflectionError):
    """Drawing surface (window or stream) could not be created."""
