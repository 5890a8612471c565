"""MediaPipe Hands backend that turns a BGR frame into a LandmarkSet."""

from __future__ import annotations

import threading

import cv2
import mediapipe as mp
import numpy as np

from gesture_module.gesture_classifier import Joint, Landmark, LandmarkSet
from utils.log_utils import tprint

# MediaPipe Hands landmark indices.
_JOINT_INDEX = {
    Joint.WRIST: 0,
    Joint.THUMB_IP: 3,
    Joint.THUMB_TIP: 4,
    Joint.INDEX_MCP: 5,
    Joint.INDEX_TIP: 8,
    Joint.MIDDLE_MCP: 9,
    Joint.MIDDLE_TIP: 12,
    Joint.RING_MCP: 13,
    Joint.RING_TIP: 16,
    Joint.LITTLE_MCP: 17,
    Joint.LITTLE_TIP: 20,
}


class HandTracker:
    """Single-hand pose estimator.

    MediaPipe Hands reports one score per hand rather than per landmark, so
    every joint carries the hand score as its confidence.
    """

    def __init__(
        self,
        *,
        detection_confidence: float = 0.6,
        tracking_confidence: float = 0.6,
        model_complexity: int = 1,
    ) -> None:
        self.detection_confidence = detection_confidence
        self.tracking_confidence = tracking_confidence
        self.model_complexity = model_complexity
        self._hands = None
        self._lock = threading.Lock()

    def _ensure_hands(self):
        if self._hands is None:
            self._hands = mp.solutions.hands.Hands(
                static_image_mode=False,
                max_num_hands=1,
                min_detection_confidence=self.detection_confidence,
                min_tracking_confidence=self.tracking_confidence,
                model_complexity=self.model_complexity,
            )
        return self._hands

    def estimate(self, frame: np.ndarray | None) -> LandmarkSet | None:
        if frame is None:
            return None
        try:
            rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            with self._lock:
                results = self._ensure_hands().process(rgb)
        except cv2.error as exc:
            tprint(f"[HAND][WARN] Frame conversion failed: {exc}")
            return None
        if not results.multi_hand_landmarks:
            return None

        score = 1.0
        if results.multi_handedness:
            score = float(results.multi_handedness[0].classification[0].score)
        height, width = frame.shape[:2]
        return to_landmark_set(results.multi_hand_landmarks[0].landmark, score, width, height)

    def close(self) -> None:
        with self._lock:
            if self._hands is not None:
                self._hands.close()
                self._hands = None
        tprint("[HAND] Tracking stopped")


def to_landmark_set(landmarks, score: float, width: int, height: int) -> LandmarkSet:
    """Convert normalized MediaPipe landmarks to pixel-space joints."""
    points = {
        joint: Landmark(
            x=float(landmarks[index].x) * width,
            y=float(landmarks[index].y) * height,
            confidence=score,
        )
        for joint, index in _JOINT_INDEX.items()
        if index < len(landmarks)
    }
    return LandmarkSet(points=points, confidence=score)
