"""Video capture utilities for the project."""

from video_module.video_stream import CameraUnavailableError, FrameGrabber, VideoStream

__all__ = [
    "CameraUnavailableError",
    "FrameGrabber",
    "VideoStream",
]
