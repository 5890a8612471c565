"""OpenCV capture plus a background grabber that keeps only the newest frame."""

from __future__ import annotations

import threading
import time

import cv2
import numpy as np

from utils.log_utils import tprint


class CameraUnavailableError(RuntimeError):
    pass


class VideoStream:
    def __init__(self, device_index: int = 0) -> None:
        self.device_index = device_index
        self._cap = None

    def open(self) -> None:
        if self._cap is not None:
            return

        self._cap = cv2.VideoCapture(self.device_index)
        if not self._cap.isOpened():
            self._cap.release()
            self._cap = None
            raise CameraUnavailableError(
                f"Unable to open camera at index {self.device_index}. "
                "Check that camera access is allowed for this application."
            )
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

    def read(self):
        if self._cap is None:
            raise RuntimeError("VideoStream not opened.")
        return self._cap.read()

    def is_open(self) -> bool:
        return self._cap is not None

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None


class FrameGrabber:
    """Pull-based frame source: `current_frame()` returns the latest capture."""

    def __init__(self, stream: VideoStream) -> None:
        self.stream = stream
        self._lock = threading.Lock()
        self._frame: np.ndarray | None = None
        self._running = False
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._running:
            return
        self.stream.open()
        self._running = True
        self._thread = threading.Thread(target=self._run, name="FrameGrabber", daemon=True)
        self._thread.start()
        tprint(f"[CAMERA] Capture started on device {self.stream.device_index}")

    def _run(self) -> None:
        failures = 0
        while self._running:
            ok, frame = self.stream.read()
            if not ok or frame is None:
                failures += 1
                if failures == 30:
                    tprint("[CAMERA][WARN] Camera is not returning frames")
                time.sleep(0.05)
                continue
            failures = 0
            with self._lock:
                self._frame = frame

    def current_frame(self) -> np.ndarray | None:
        with self._lock:
            return None if self._frame is None else self._frame.copy()

    def stop(self) -> None:
        self._running = False
        if self._thread:
            self._thread.join(timeout=2)
            self._thread = None
        self.stream.close()
        with self._lock:
            self._frame = None
        tprint("[CAMERA] Capture stopped")

    def is_running(self) -> bool:
        return self._running
