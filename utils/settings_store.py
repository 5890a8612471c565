"""In-memory cache for app settings."""

from __future__ import annotations

import os
import threading
from typing import Any

from utils.file_utils import load_json
from utils.log_utils import set_log_level, tprint

SETTINGS_PATH = "config/app_settings.json"

DEFAULT_SETTINGS: dict[str, Any] = {
    "log_level": "INFO",
    "camera_index": 0,
    "poll_interval_secs": 0.5,
    "activation_delay_secs": 1.5,
    "request_timeout_secs": 30,
    "analyzer_endpoint": (
        "https://generativelanguage.googleapis.com/v1beta/models/"
        "gemini-2.0-flash-exp:generateContent"
    ),
    "directions_endpoint": "https://maps.googleapis.com/maps/api/directions/json",
    "location_wait_secs": 10.0,
    "tts_voice_id": "JBFqnCBsd6RMkjVDRZzb",
    "tts_model_id": "eleven_turbo_v2_5",
    "tts_char_limit": 10000,
    "system_voice_rate": 150,
    "origin": None,
}

# Environment variables that override a settings key.
_ENV_OVERRIDES = {
    "ARIA_LOG_LEVEL": "log_level",
    "ARIA_CAMERA_INDEX": "camera_index",
    "ARIA_ANALYZER_URL": "analyzer_endpoint",
    "ARIA_DIRECTIONS_URL": "directions_endpoint",
    "ARIA_TTS_VOICE_ID": "tts_voice_id",
    "ARIA_ORIGIN": "origin",
}

_lock = threading.Lock()
_settings_cache: dict[str, Any] = {}


def _apply_env(data: dict[str, Any]) -> None:
    for env_name, key in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or not raw.strip():
            continue
        default = DEFAULT_SETTINGS.get(key)
        if isinstance(default, int) and not isinstance(default, bool):
            try:
                data[key] = int(raw)
            except ValueError:
                tprint(f"[SETTINGS][WARN] Ignoring non-integer {env_name}={raw!r}")
            continue
        data[key] = raw.strip()


def refresh_settings(path: str = SETTINGS_PATH) -> dict[str, Any]:
    """Reload settings from disk and replace the cache."""
    data = load_json(path)
    if not isinstance(data, dict):
        data = {}
    merged = dict(DEFAULT_SETTINGS)
    merged.update(data)
    _apply_env(merged)
    set_log_level(merged.get("log_level"))
    with _lock:
        _settings_cache.clear()
        _settings_cache.update(merged)
        return dict(_settings_cache)


def get_settings() -> dict[str, Any]:
    """Return a copy of the cached settings."""
    with _lock:
        if _settings_cache:
            return dict(_settings_cache)
    return refresh_settings()


def is_deep_logging() -> bool:
    """Return True when log_level requests deep tracing."""
    level = str(get_settings().get("log_level", "")).upper()
    return level in {"DEEP"}


def deep_log(message: str) -> None:
    if is_deep_logging():
        tprint(message)
