"""Vision-language client that describes a camera frame for the active mode."""

from __future__ import annotations

import base64
import json
import os
from urllib import parse, request
from urllib.error import HTTPError, URLError

import cv2
import numpy as np

from mode_controller.state import Mode
from utils.log_utils import tprint
from utils.settings_store import deep_log, get_settings

ENVIRONMENT_PROMPT = (
    "You describe surroundings for a blind or low-vision pedestrian. "
    "From this photo, state any obstacle directly ahead, which direction is "
    "clear to walk, and the one or two objects that matter most, with rough "
    "distances and left/right positions. Answer in at most three short, plain "
    "sentences that tell the person what to do now."
)

TEXT_READING_PROMPT = (
    "You read text aloud for a blind or low-vision person. Transcribe the "
    "readable text in this photo in natural reading order, top to bottom. "
    "Summarize long passages, mention what kind of item it is (sign, label, "
    "menu, document) first, and say 'No readable text' if there is none."
)

JPEG_QUALITY = 80


class SceneAnalysisError(RuntimeError):
    pass


class NetworkError(SceneAnalysisError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(SceneAnalysisError):
    pass


def prompt_for(mode: Mode) -> str:
    if mode is Mode.COMMUNICATION:
        return TEXT_READING_PROMPT
    return ENVIRONMENT_PROMPT


def max_tokens_for(mode: Mode) -> int:
    # Text reading needs room for whole signs or menus.
    return 500 if mode is Mode.COMMUNICATION else 150


def encode_frame(frame: np.ndarray, quality: int = JPEG_QUALITY) -> str:
    ok, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        raise SceneAnalysisError("Failed to encode frame as JPEG")
    return base64.b64encode(buffer.tobytes()).decode("ascii")


class SceneAnalyzer:
    def __init__(
        self,
        api_key: str | None = None,
        endpoint: str | None = None,
        timeout_secs: float | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or os.getenv("GEMINI_API_KEY")
        self.endpoint = endpoint or settings.get("analyzer_endpoint")
        self.timeout_secs = float(timeout_secs or settings.get("request_timeout_secs", 30))

    def build_payload(self, frame: np.ndarray, mode: Mode) -> dict:
        return {
            "contents": [
                {
                    "parts": [
                        {"text": prompt_for(mode)},
                        {"inline_data": {"mime_type": "image/jpeg", "data": encode_frame(frame)}},
                    ]
                }
            ],
            "generationConfig": {
                "temperature": 0.4,
                "topK": 32,
                "topP": 1,
                "maxOutputTokens": max_tokens_for(mode),
            },
        }

    def analyze(self, frame: np.ndarray, mode: Mode) -> str:
        if not self.api_key:
            raise NetworkError("GEMINI_API_KEY is not configured")
        payload = json.dumps(self.build_payload(frame, mode)).encode("utf-8")
        url = f"{self.endpoint}?{parse.urlencode({'key': self.api_key})}"
        req = request.Request(
            url,
            data=payload,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        tprint(f"[VISION] Sending {mode.display_name} request")
        try:
            with request.urlopen(req, timeout=self.timeout_secs) as resp:
                body = resp.read().decode("utf-8")
        except HTTPError as exc:
            raise NetworkError(f"API error with status code: {exc.code}", status_code=exc.code) from exc
        except (URLError, TimeoutError) as exc:
            raise NetworkError(f"Vision API unavailable: {exc}") from exc

        deep_log(f"[DEEP][VISION] raw_response={body[:500]}")
        return self._extract_text(body)

    @staticmethod
    def _extract_text(body: str) -> str:
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Invalid vision response: {exc}") from exc
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ParseError("Failed to parse vision response") from exc
        if not isinstance(text, str):
            raise ParseError("Vision response text is not a string")
        return text.strip()
