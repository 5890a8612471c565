"""Tests for the preview window overlay and key handling (no display needed)."""

from unittest.mock import Mock

import numpy as np

from gesture_module.gesture_classifier import NO_HAND
from mode_controller.state import Mode, SessionState
from ui.main_window import GESTURE_HELP, MainWindow, instruction_text, status_label
from utils.event_bus import TOPIC_HAPTIC, EventBus


def _window():
    workflow = Mock()
    workflow.bus = EventBus()
    workflow.state = SessionState()
    workflow.poller.last_reading = NO_HAND
    workflow.camera_error = None
    return MainWindow(workflow), workflow


class TestOverlayText:
    """Status and instruction lines per session state."""

    def test_idle_shows_gesture_guide(self):
        """Idle lists the available gestures."""
        assert instruction_text(SessionState())[1:] == list(GESTURE_HELP)

    def test_active_mode_asks_to_hold_steady(self):
        """An active mode waits for the auto-capture."""
        state = SessionState().activate(Mode.ENVIRONMENT)
        assert instruction_text(state) == ["Hold steady. Auto-capturing when ready."]
        assert status_label(state) == "Ready"

    def test_processing(self):
        """A running analysis is shown as processing."""
        state = SessionState(Mode.COMMUNICATION, locked=True, processing=True, generation=1)
        assert instruction_text(state) == ["Analyzing... hold steady."]
        assert status_label(state) == "Processing..."


class TestMainWindow:
    """Rendering and keyboard commands."""

    def test_render_keeps_frame_size(self):
        """The overlay is drawn on a copy of the frame."""
        window, _workflow = _window()
        frame = np.zeros((240, 320, 3), dtype=np.uint8)
        canvas = window.render(frame)
        assert canvas.shape == frame.shape
        assert not frame.any()
        assert canvas.any()

    def test_haptic_pulse_flashes_border(self):
        """A pulse on the bus draws a border on the next render."""
        window, workflow = _window()
        workflow.bus.publish(TOPIC_HAPTIC, {"intensity": "light"})
        canvas = window.render(np.zeros((120, 160, 3), dtype=np.uint8))
        assert canvas[0, 80].any()

    def test_blocked_screen(self):
        """The camera screen is a full canvas with text."""
        window, _workflow = _window()
        assert window.render_blocked("Unable to open camera").any()

    def test_keys_map_to_workflow(self):
        """Keys call the matching workflow operations."""
        window, workflow = _window()
        assert window._handle_key(ord("c"))
        assert window._handle_key(ord("n"))
        assert window._handle_key(ord("s"))
        assert window._handle_key(ord("r"))
        workflow.manual_capture.assert_called_once()
        workflow.next_step.assert_called_once()
        workflow.stop_session.assert_called_once()
        workflow.repeat_instruction.assert_called_once()
        assert window._handle_key(ord("q")) is False

    def test_retry_camera_when_blocked(self):
        """With the camera blocked, r retries the start."""
        window, workflow = _window()
        workflow.camera_error = "denied"
        window._handle_key(ord("r"))
        workflow.start.assert_called_once()
        workflow.repeat_instruction.assert_not_called()
