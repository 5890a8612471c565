"""Tests for GesturePoller ticks."""

from unittest.mock import Mock

import numpy as np

from gesture_module.gesture_classifier import Gesture, Joint, Landmark, LandmarkSet
from gesture_module.gesture_recognizer import GesturePoller
from mode_controller.state import GestureObserved
from utils.event_bus import TOPIC_GESTURE, EventBus


def _fist():
    points = {Joint.WRIST: Landmark(0.0, 0.0, 0.9)}
    points[Joint.INDEX_MCP] = Landmark(0.0, 100.0, 0.9)
    points[Joint.INDEX_TIP] = Landmark(0.0, 90.0, 0.9)
    return LandmarkSet(points=points, confidence=0.8)


def _poller(frame=None, landmarks=None, bus=None):
    frame_source = Mock()
    frame_source.current_frame.return_value = frame
    estimator = Mock()
    estimator.estimate.return_value = landmarks
    dispatch = Mock()
    poller = GesturePoller(frame_source, estimator, dispatch, interval_secs=0.5, bus=bus)
    return poller, estimator, dispatch


class TestGesturePoller:
    """One poll tick at a time."""

    def test_no_frame_skips_tick(self):
        """Without a frame nothing is estimated or dispatched."""
        poller, estimator, dispatch = _poller(frame=None)
        assert poller.poll_once() is None
        estimator.estimate.assert_not_called()
        dispatch.assert_not_called()

    def test_dispatches_classified_gesture(self):
        """A detected hand is classified and submitted as an event."""
        bus = EventBus()
        seen = []
        bus.subscribe(TOPIC_GESTURE, seen.append)
        frame = np.zeros((4, 4, 3), dtype=np.uint8)
        poller, _estimator, dispatch = _poller(frame=frame, landmarks=_fist(), bus=bus)

        reading = poller.poll_once()

        assert reading.gesture is Gesture.FIST
        dispatch.assert_called_once_with(GestureObserved(Gesture.FIST))
        assert poller.last_reading == reading
        assert seen[0]["gesture"] == "fist"

    def test_no_hand_dispatches_unknown(self):
        """An empty frame still ticks the state machine with Unknown."""
        frame = np.zeros((4, 4, 3), dtype=np.uint8)
        poller, _estimator, dispatch = _poller(frame=frame, landmarks=None)
        reading = poller.poll_once()
        assert reading.gesture is Gesture.UNKNOWN
        assert reading.confidence == 0.0
        dispatch.assert_called_once_with(GestureObserved(Gesture.UNKNOWN))

    def test_estimator_failure_is_treated_as_no_hand(self):
        """A crashing pose estimator degrades to Unknown."""
        frame = np.zeros((4, 4, 3), dtype=np.uint8)
        poller, estimator, dispatch = _poller(frame=frame)
        estimator.estimate.side_effect = RuntimeError("model not loaded")
        reading = poller.poll_once()
        assert reading.gesture is Gesture.UNKNOWN
        dispatch.assert_called_once_with(GestureObserved(Gesture.UNKNOWN))
