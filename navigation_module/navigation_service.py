"""Walking directions with a step cursor for spoken turn-by-turn guidance."""

from __future__ import annotations

import json
import os
import re
import threading
import time
from dataclasses import dataclass
from typing import Protocol
from urllib import parse, request
from urllib.error import HTTPError, URLError

from utils.log_utils import tprint
from utils.settings_store import deep_log, get_settings

_TAG_RE = re.compile(r"<[^>]+>")


class NavigationError(RuntimeError):
    """Base class; str(exc) is safe to speak to the user."""


class NoLocationError(NavigationError):
    def __init__(self) -> None:
        super().__init__("Unable to get current location. Please allow location access.")


class NoRouteError(NavigationError):
    def __init__(self) -> None:
        super().__init__("No route found to destination. Try a different search.")


class ApiKeyInvalidError(NavigationError):
    def __init__(self) -> None:
        super().__init__("Directions API key is invalid or missing required permissions.")


class InvalidRequestError(NavigationError):
    def __init__(self) -> None:
        super().__init__("Invalid destination. Please try a different search.")


class ApiError(NavigationError):
    def __init__(self, detail: str | None = None) -> None:
        super().__init__("Directions service error.")
        self.detail = detail


class ParseError(NavigationError):
    def __init__(self) -> None:
        super().__init__("Failed to read directions.")


_STATUS_ERRORS = {
    "ZERO_RESULTS": NoRouteError,
    "REQUEST_DENIED": ApiKeyInvalidError,
    "INVALID_REQUEST": InvalidRequestError,
}


@dataclass(frozen=True)
class NavigationStep:
    instruction: str
    distance: str
    duration: str
    maneuver: str | None = None

    def spoken(self) -> str:
        return f"{self.instruction}. In {self.distance}."


class LocationProvider(Protocol):
    def current_location(self) -> tuple[float, float] | None: ...


class StaticLocationProvider:
    """Location from configuration ("lat,lng"), for desktop use without GPS."""

    def __init__(self, origin: str | tuple[float, float] | None = None) -> None:
        if origin is None:
            origin = get_settings().get("origin")
        self._location = self._parse(origin)

    @staticmethod
    def _parse(origin) -> tuple[float, float] | None:
        if origin is None:
            return None
        if isinstance(origin, (tuple, list)) and len(origin) == 2:
            return float(origin[0]), float(origin[1])
        parts = str(origin).split(",")
        if len(parts) != 2:
            tprint(f"[NAV][WARN] Ignoring malformed origin {origin!r}")
            return None
        try:
            return float(parts[0]), float(parts[1])
        except ValueError:
            tprint(f"[NAV][WARN] Ignoring malformed origin {origin!r}")
            return None

    def update(self, latitude: float, longitude: float) -> None:
        self._location = (latitude, longitude)

    def current_location(self) -> tuple[float, float] | None:
        return self._location


def clean_instruction(html: str) -> str:
    return " ".join(_TAG_RE.sub(" ", html).split())


def parse_steps(data: dict) -> list[NavigationStep]:
    try:
        raw_steps = data["routes"][0]["legs"][0]["steps"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ParseError() from exc

    steps: list[NavigationStep] = []
    for raw in raw_steps:
        try:
            instruction = clean_instruction(raw["html_instructions"])
            distance = raw["distance"]["text"]
            duration = raw["duration"]["text"]
        except (KeyError, TypeError):
            continue
        steps.append(
            NavigationStep(
                instruction=instruction,
                distance=distance,
                duration=duration,
                maneuver=raw.get("maneuver"),
            )
        )
    return steps


class NavigationService:
    def __init__(
        self,
        location: LocationProvider | None = None,
        *,
        api_key: str | None = None,
        endpoint: str | None = None,
        timeout_secs: float | None = None,
        location_wait_secs: float | None = None,
        location_poll_secs: float = 0.5,
    ) -> None:
        settings = get_settings()
        self.location = location or StaticLocationProvider()
        self.api_key = api_key or os.getenv("GOOGLE_MAPS_API_KEY")
        self.endpoint = endpoint or settings.get("directions_endpoint")
        self.timeout_secs = float(timeout_secs or settings.get("request_timeout_secs", 30))
        wait = location_wait_secs if location_wait_secs is not None else settings.get("location_wait_secs", 10.0)
        self.location_wait_secs = float(wait)
        self.location_poll_secs = location_poll_secs

        self._lock = threading.Lock()
        self.destination = ""
        self.steps: list[NavigationStep] = []
        self.current_step_index = 0
        self.is_navigating = False

    def _wait_for_location(self) -> tuple[float, float]:
        deadline = time.monotonic() + self.location_wait_secs
        while True:
            current = self.location.current_location()
            if current is not None:
                return current
            if time.monotonic() >= deadline:
                raise NoLocationError()
            tprint("[NAV] Waiting for location...")
            time.sleep(self.location_poll_secs)

    def get_directions(self, destination: str) -> list[NavigationStep]:
        latitude, longitude = self._wait_for_location()
        query = parse.urlencode(
            {
                "origin": f"{latitude},{longitude}",
                "destination": destination,
                "mode": "walking",
                "key": self.api_key or "",
            }
        )
        tprint(f"[NAV] Requesting directions to {destination}")
        try:
            with request.urlopen(f"{self.endpoint}?{query}", timeout=self.timeout_secs) as resp:
                body = resp.read().decode("utf-8")
        except HTTPError as exc:
            raise ApiError(f"HTTP {exc.code}") from exc
        except (URLError, TimeoutError) as exc:
            raise ApiError(str(exc)) from exc

        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ParseError() from exc
        deep_log(f"[DEEP][NAV] raw_response={body[:500]}")

        status = data.get("status") if isinstance(data, dict) else None
        if status is None:
            raise ParseError()
        if status != "OK":
            if data.get("error_message"):
                tprint(f"[NAV][ERROR] Directions error: {data['error_message']}")
            error_cls = _STATUS_ERRORS.get(status)
            if error_cls is not None:
                raise error_cls()
            raise ApiError(status)

        steps = parse_steps(data)
        tprint(f"[NAV] Got {len(steps)} navigation steps")
        return steps

    def start_navigation(self, destination: str) -> list[NavigationStep]:
        steps = self.get_directions(destination)
        if not steps:
            raise NoRouteError()
        with self._lock:
            self.destination = destination
            self.steps = steps
            self.current_step_index = 0
            self.is_navigating = True
        return list(steps)

    def current_instruction(self) -> str | None:
        with self._lock:
            if not self.is_navigating or self.current_step_index >= len(self.steps):
                return None
            return self.steps[self.current_step_index].spoken()

    def advance_step(self) -> str | None:
        """Move to the next step; passing the last one ends navigation."""
        with self._lock:
            if not self.is_navigating:
                return None
            if self.current_step_index >= len(self.steps) - 1:
                self._reset()
                tprint("[NAV] Destination reached")
                return None
            self.current_step_index += 1
            return self.steps[self.current_step_index].spoken()

    def stop(self) -> None:
        with self._lock:
            was_navigating = self.is_navigating
            self._reset()
        if was_navigating:
            tprint("[NAV] Navigation stopped")

    def _reset(self) -> None:
        self.is_navigating = False
        self.current_step_index = 0
        self.steps = []
        self.destination = ""

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "navigating": self.is_navigating,
                "destination": self.destination,
                "step": self.current_step_index,
                "total_steps": len(self.steps),
            }
