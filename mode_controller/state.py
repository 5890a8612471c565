"""Session state, events and effects for the gesture-driven mode machine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from enum import Enum

from gesture_module.gesture_classifier import Gesture


class Mode(str, Enum):
    IDLE = "idle"
    ENVIRONMENT = "environment"
    COMMUNICATION = "communication"
    NAVIGATION = "navigation"

    @property
    def display_name(self) -> str:
        return {
            Mode.IDLE: "Idle",
            Mode.ENVIRONMENT: "Environment Mode",
            Mode.COMMUNICATION: "Communication Mode",
            Mode.NAVIGATION: "Navigation Mode",
        }[self]


# Gestures that activate a mode from idle. Navigation has no gesture.
GESTURE_MODES: dict[Gesture, Mode] = {
    Gesture.OPEN_PALM: Mode.ENVIRONMENT,
    Gesture.PEACE_SIGN: Mode.COMMUNICATION,
}


class PulseIntensity(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"


@dataclass(frozen=True)
class SessionState:
    mode: Mode = Mode.IDLE
    locked: bool = False
    processing: bool = False
    # Bumped on every activation and reset; stale timers/results compare against it.
    generation: int = 0

    def __post_init__(self) -> None:
        if self.locked and self.mode is Mode.IDLE:
            raise ValueError("Idle session cannot be locked")

    def reset(self) -> SessionState:
        return replace(self, mode=Mode.IDLE, locked=False, generation=self.generation + 1)

    def activate(self, mode: Mode) -> SessionState:
        return replace(self, mode=mode, locked=True, generation=self.generation + 1)

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["mode"] = self.mode.value
        payload["mode_name"] = self.mode.display_name
        return payload


# ---------------------------------------------------------------- events


@dataclass(frozen=True)
class GestureObserved:
    gesture: Gesture


@dataclass(frozen=True)
class StopRequested:
    pass


@dataclass(frozen=True)
class NavigationStarted:
    destination: str
    instruction: str | None = None


@dataclass(frozen=True)
class NavigationFinished:
    pass


@dataclass(frozen=True)
class TriggerFired:
    mode: Mode
    generation: int


@dataclass(frozen=True)
class ManualCaptureRequested:
    pass


@dataclass(frozen=True)
class AnalysisFinished:
    generation: int
    text: str | None = None
    error: str | None = None


Event = (
    GestureObserved
    | StopRequested
    | NavigationStarted
    | NavigationFinished
    | TriggerFired
    | ManualCaptureRequested
    | AnalysisFinished
)


# ---------------------------------------------------------------- effects


@dataclass(frozen=True)
class Speak:
    text: str
    premium_voice: bool = False


@dataclass(frozen=True)
class Pulse:
    intensity: PulseIntensity


@dataclass(frozen=True)
class ScheduleTrigger:
    mode: Mode
    generation: int
    delay_secs: float


@dataclass(frozen=True)
class RunAnalysis:
    mode: Mode
    generation: int


@dataclass(frozen=True)
class StopNavigation:
    pass


Effect = Speak | Pulse | ScheduleTrigger | RunAnalysis | StopNavigation
