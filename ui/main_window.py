"""OpenCV preview window with a status overlay and keyboard controls.

Keys: c = manual capture, n = next navigation step, r = repeat instruction /
retry camera, s = stop, q = quit.
"""

from __future__ import annotations

import time

import cv2
import numpy as np

from mode_controller.state import Mode, SessionState
from mode_controller.workflow import AssistWorkflow
from utils.event_bus import TOPIC_HAPTIC
from utils.log_utils import tprint

_GREEN = (0, 200, 0)
_RED = (0, 0, 220)
_WHITE = (255, 255, 255)
_GRAY = (160, 160, 160)
_FLASH_SECS = 0.3

GESTURE_HELP = (
    "Open Palm = Describe surroundings",
    "Peace Sign = Read text",
    "Fist = Stop",
)


def instruction_text(state: SessionState) -> list[str]:
    if state.mode is Mode.IDLE:
        return ["Show a hand gesture to choose a mode:", *GESTURE_HELP]
    if state.processing:
        return ["Analyzing... hold steady."]
    if state.mode is Mode.NAVIGATION:
        return ["Navigating. Press n for the next step, r to repeat."]
    return ["Hold steady. Auto-capturing when ready."]


def status_label(state: SessionState) -> str:
    return "Processing..." if state.processing else "Ready"


def _put_lines(image: np.ndarray, lines: list[str], origin_y: int, color=_WHITE, x: int = 16) -> None:
    for offset, line in enumerate(lines):
        cv2.putText(
            image,
            line,
            (x, origin_y + offset * 26),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.6,
            color,
            2,
        )


class MainWindow:
    def __init__(self, workflow: AssistWorkflow, *, window_name: str = "Aria Assist") -> None:
        self.workflow = workflow
        self.window_name = window_name
        self.is_open = False
        self._flash_until = 0.0
        workflow.bus.subscribe(TOPIC_HAPTIC, self._on_haptic)

    def _on_haptic(self, _payload: dict) -> None:
        self._flash_until = time.monotonic() + _FLASH_SECS

    def render_blocked(self, message: str) -> np.ndarray:
        canvas = np.zeros((480, 640, 3), dtype=np.uint8)
        _put_lines(canvas, ["Camera Access Required"], 180)
        _put_lines(canvas, [message[:70], "Allow camera access, then press r to retry."], 230, _GRAY)
        return canvas

    def render(self, frame: np.ndarray | None) -> np.ndarray:
        state = self.workflow.state
        canvas = frame.copy() if frame is not None else np.zeros((480, 640, 3), dtype=np.uint8)
        height, width = canvas.shape[:2]

        cv2.circle(canvas, (22, 24), 8, _RED if state.processing else _GREEN, -1)
        _put_lines(canvas, [status_label(state)], 30, x=40)
        reading = self.workflow.poller.last_reading
        _put_lines(
            canvas,
            [state.mode.display_name, f"Gesture: {reading.gesture.description}"],
            60,
        )
        lines = instruction_text(state)
        _put_lines(canvas, lines, height - 26 * len(lines) - 10)

        if time.monotonic() < self._flash_until:
            cv2.rectangle(canvas, (0, 0), (width - 1, height - 1), _WHITE, 8)
        return canvas

    def _handle_key(self, key: int) -> bool:
        """Return False when the window should close."""
        if key == ord("q"):
            return False
        if key == ord("c"):
            if not self.workflow.manual_capture():
                tprint("[UI] Manual capture ignored (idle or busy)")
        elif key == ord("n"):
            self.workflow.next_step()
        elif key == ord("r"):
            if self.workflow.camera_error:
                self.workflow.start()
            else:
                self.workflow.repeat_instruction()
        elif key == ord("s"):
            self.workflow.stop_session()
        return True

    def launch(self) -> None:
        self.is_open = True
        self.workflow.start()
        tprint("[UI] Main window launched")
        try:
            while self.is_open:
                if self.workflow.camera_error:
                    canvas = self.render_blocked(self.workflow.camera_error)
                else:
                    canvas = self.render(self.workflow.frame_source.current_frame())
                cv2.imshow(self.window_name, canvas)
                key = cv2.waitKey(30) & 0xFF
                if key != 0xFF and not self._handle_key(key):
                    break
        finally:
            self.close()

    def close(self) -> None:
        if not self.is_open:
            return
        self.is_open = False
        self.workflow.bus.unsubscribe(TOPIC_HAPTIC, self._on_haptic)
        cv2.destroyAllWindows()
        tprint("[UI] Main window closed")
