"""Gesture-driven mode state machine and its wiring."""

from mode_controller.state import GESTURE_MODES, Mode, PulseIntensity, SessionState
from mode_controller.transitions import TransitionResult, transition


def __getattr__(name):
    if name == "SessionController":
        from mode_controller.controller import SessionController

        return SessionController
    if name == "AssistWorkflow":
        from mode_controller.workflow import AssistWorkflow

        return AssistWorkflow
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    "AssistWorkflow",
    "GESTURE_MODES",
    "Mode",
    "PulseIntensity",
    "SessionController",
    "SessionState",
    "TransitionResult",
    "transition",
]
