"""Timestamped logging helpers."""

from __future__ import annotations

import builtins
import time
from typing import Any


# Ordered from most to least verbose.
_LEVELS = ("DEEP", "DEBUG", "INFO", "WARN", "ERROR")
_threshold = "INFO"


def set_log_level(level: str | None) -> None:
    """Set the minimum variant that tprint emits (unknown values are ignored)."""
    global _threshold
    normalized = str(level or "").strip().upper()
    if normalized == "WARNING":
        normalized = "WARN"
    if normalized in _LEVELS:
        _threshold = normalized


def get_log_level() -> str:
    return _threshold


def _split_tags(message: str) -> tuple[list[str], str]:
    tags: list[str] = []
    remaining = message.lstrip()
    while remaining.startswith("["):
        end = remaining.find("]")
        if end == -1:
            break
        tag = remaining[1:end].strip()
        if not tag:
            break
        tags.append(tag)
        remaining = remaining[end + 1 :].lstrip()
    return tags, remaining


def _resolve(message: str) -> tuple[str, str | None, list[str], str]:
    tags, remaining = _split_tags(message)
    system = "APP"
    variant = None
    extra_tags: list[str] = []
    if tags:
        first = tags[0].upper()
        if first in _LEVELS:
            variant = first
            system = tags[1] if len(tags) > 1 else "APP"
            extra_tags = tags[2:]
        else:
            system = tags[0]
            variant = tags[1].upper() if len(tags) > 1 else None
            extra_tags = tags[2:]
    return system, variant, extra_tags, remaining


def _enabled(variant: str | None) -> bool:
    # Untagged messages count as INFO; non-level variants (e.g. [HAPTIC][light]) too.
    level = variant if variant in _LEVELS else "INFO"
    return _LEVELS.index(level) >= _LEVELS.index(_threshold)


def _format_message(message: str) -> str | None:
    system, variant, extra_tags, remaining = _resolve(message)
    if not _enabled(variant):
        return None
    extra = f" [{' '.join(extra_tags)}]" if extra_tags else ""
    suffix = f" {remaining}" if remaining else ""
    if variant:
        return f"[{system}][{variant}]{extra}{suffix}"
    return f"[{system}]{extra}{suffix}"


def tprint(*args: Any, **kwargs: Any) -> None:
    """Print with a timestamp prefix and normalized tag order."""
    message = " ".join(str(arg) for arg in args)
    formatted = _format_message(message)
    if formatted is None:
        return
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
    builtins.print(f"[{timestamp}]{formatted}", **kwargs)

