"""Fixed-cadence gesture polling that feeds classified gestures to the session.

Each tick pulls the newest camera frame, estimates the hand pose, classifies
it and submits a `GestureObserved` event. Locked sessions still receive every
tick; the state machine ignores them until a fist arrives.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from gesture_module.gesture_classifier import NO_HAND, GestureReading, classify
from mode_controller.state import GestureObserved
from utils.event_bus import TOPIC_GESTURE, EventBus
from utils.log_utils import tprint
from utils.settings_store import deep_log
from utils.threading_utils import PollingClock

POLL_INTERVAL_SECS = 0.5


class GesturePoller:
    def __init__(
        self,
        frame_source,
        estimator,
        dispatch: Callable,
        *,
        interval_secs: float = POLL_INTERVAL_SECS,
        bus: EventBus | None = None,
    ) -> None:
        self.frame_source = frame_source
        self.estimator = estimator
        self.dispatch = dispatch
        self.bus = bus
        self._clock = PollingClock(interval_secs, self.poll_once, name="GesturePoller")
        self._lock = threading.Lock()
        self._last_reading: GestureReading = NO_HAND

    def poll_once(self) -> GestureReading | None:
        """Run one tick; returns None when no frame was available."""
        frame = self.frame_source.current_frame()
        if frame is None:
            return None

        try:
            landmarks = self.estimator.estimate(frame)
        except Exception as exc:
            tprint(f"[GESTURE][ERROR] Hand pose detection failed: {exc}")
            landmarks = None
        reading = classify(landmarks)
        deep_log(
            f"[DEEP][GESTURE] extended={reading.extended_count} "
            f"gesture={reading.gesture.value} conf={reading.confidence:.2f}"
        )

        with self._lock:
            self._last_reading = reading
        if self.bus:
            self.bus.publish(TOPIC_GESTURE, reading.to_dict())
        self.dispatch(GestureObserved(reading.gesture))
        return reading

    @property
    def last_reading(self) -> GestureReading:
        with self._lock:
            return self._last_reading

    def start(self) -> None:
        if self._clock.is_running():
            tprint("[GESTURE] Poller already running")
            return
        self._clock.start()
        tprint(f"[GESTURE] Polling every {self._clock.interval_secs:.1f}s")

    def stop(self) -> None:
        self._clock.cancel()
        with self._lock:
            self._last_reading = NO_HAND
        tprint("[GESTURE] Polling stopped")

    def is_running(self) -> bool:
        return self._clock.is_running()
