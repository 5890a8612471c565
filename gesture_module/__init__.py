from gesture_module.gesture_classifier import Gesture, GestureReading, Joint, Landmark, LandmarkSet, classify


def __getattr__(name):
    if name == "HandTracker":
        from gesture_module.hand_tracking import HandTracker

        return HandTracker
    if name == "GesturePoller":
        from gesture_module.gesture_recognizer import GesturePoller

        return GesturePoller
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    "Gesture",
    "GesturePoller",
    "GestureReading",
    "HandTracker",
    "Joint",
    "Landmark",
    "LandmarkSet",
    "classify",
]
