"""Haptic pulses for desktop builds.

There is no vibration motor on a laptop, so a pulse is published on the event
bus (the preview window flashes its border) and logged.
"""

from __future__ import annotations

import time

from mode_controller.state import PulseIntensity
from utils.event_bus import TOPIC_HAPTIC, EventBus
from utils.log_utils import tprint


class HapticFeedback:
    def __init__(self, bus: EventBus | None = None) -> None:
        self.bus = bus
        self.last_pulse: tuple[PulseIntensity, float] | None = None

    def pulse(self, intensity: PulseIntensity | str) -> None:
        level = PulseIntensity(intensity)
        self.last_pulse = (level, time.monotonic())
        tprint(f"[HAPTIC] {level.value} pulse")
        if self.bus:
            self.bus.publish(TOPIC_HAPTIC, {"intensity": level.value})
