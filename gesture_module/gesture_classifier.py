"""Finger-counting gesture classifier.

Each digit is "extended" when its tip sits clearly farther from the wrist than
its base joint. The count of extended digits picks the gesture:

  5, 4 -> OPEN_PALM     2 -> PEACE_SIGN     0, 1 -> FIST     3 -> UNKNOWN

Three fingers intentionally stays UNKNOWN; no gesture is bound to it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum


class Joint(str, Enum):
    WRIST = "wrist"
    THUMB_TIP = "thumb_tip"
    THUMB_IP = "thumb_ip"
    INDEX_TIP = "index_tip"
    INDEX_MCP = "index_mcp"
    MIDDLE_TIP = "middle_tip"
    MIDDLE_MCP = "middle_mcp"
    RING_TIP = "ring_tip"
    RING_MCP = "ring_mcp"
    LITTLE_TIP = "little_tip"
    LITTLE_MCP = "little_mcp"


class Gesture(str, Enum):
    OPEN_PALM = "open_palm"
    PEACE_SIGN = "peace_sign"
    FIST = "fist"
    UNKNOWN = "unknown"

    @property
    def description(self) -> str:
        return {
            Gesture.OPEN_PALM: "Open Palm",
            Gesture.PEACE_SIGN: "Peace Sign",
            Gesture.FIST: "Fist",
            Gesture.UNKNOWN: "None",
        }[self]


@dataclass(frozen=True)
class Landmark:
    x: float
    y: float
    confidence: float


@dataclass
class LandmarkSet:
    """Joint positions for one observed hand plus the estimator's confidence."""

    points: dict[Joint, Landmark] = field(default_factory=dict)
    confidence: float = 0.0

    def get(self, joint: Joint) -> Landmark | None:
        return self.points.get(joint)


@dataclass(frozen=True)
class GestureReading:
    gesture: Gesture
    confidence: float
    extended_count: int = 0

    def to_dict(self) -> dict:
        return {
            "gesture": self.gesture.value,
            "description": self.gesture.description,
            "confidence": self.confidence,
            "extended_count": self.extended_count,
        }


MIN_POINT_CONFIDENCE = 0.3
THUMB_EXTENSION_FACTOR = 1.2
FINGER_EXTENSION_FACTOR = 1.3

# (name, tip, base, factor)
DIGITS: tuple[tuple[str, Joint, Joint, float], ...] = (
    ("thumb", Joint.THUMB_TIP, Joint.THUMB_IP, THUMB_EXTENSION_FACTOR),
    ("index", Joint.INDEX_TIP, Joint.INDEX_MCP, FINGER_EXTENSION_FACTOR),
    ("middle", Joint.MIDDLE_TIP, Joint.MIDDLE_MCP, FINGER_EXTENSION_FACTOR),
    ("ring", Joint.RING_TIP, Joint.RING_MCP, FINGER_EXTENSION_FACTOR),
    ("little", Joint.LITTLE_TIP, Joint.LITTLE_MCP, FINGER_EXTENSION_FACTOR),
)

NO_HAND = GestureReading(Gesture.UNKNOWN, 0.0, 0)


def _distance(a: Landmark, b: Landmark) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def _usable(point: Landmark | None) -> bool:
    return point is not None and point.confidence > MIN_POINT_CONFIDENCE


def count_extended(landmarks: LandmarkSet) -> tuple[int, int]:
    """Return (extended digits, digits with a usable tip/base pair)."""
    wrist = landmarks.get(Joint.WRIST)
    if wrist is None:
        return 0, 0

    extended = 0
    evaluated = 0
    for _name, tip_joint, base_joint, factor in DIGITS:
        tip = landmarks.get(tip_joint)
        base = landmarks.get(base_joint)
        if not (_usable(tip) and _usable(base)):
            continue
        evaluated += 1
        if _distance(tip, wrist) > _distance(base, wrist) * factor:
            extended += 1
    return extended, evaluated


def gesture_for_count(extended_count: int) -> Gesture:
    if extended_count >= 4:
        return Gesture.OPEN_PALM
    if extended_count == 2:
        return Gesture.PEACE_SIGN
    if extended_count <= 1:
        return Gesture.FIST
    return Gesture.UNKNOWN


def classify(landmarks: LandmarkSet | None) -> GestureReading:
    """Classify a hand; missing or unreadable hands become UNKNOWN at 0 confidence."""
    if landmarks is None:
        return NO_HAND
    extended, evaluated = count_extended(landmarks)
    if evaluated == 0:
        return NO_HAND
    return GestureReading(gesture_for_count(extended), float(landmarks.confidence), extended)
