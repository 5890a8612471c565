"""Helpers for running modules concurrently."""

from __future__ import annotations

import threading
from collections.abc import Callable

from utils.log_utils import tprint


def run_async(target: Callable, *, daemon: bool = True, name: str | None = None) -> threading.Thread:
    thread = threading.Thread(target=target, daemon=daemon, name=name)
    thread.start()
    return thread


class PollingClock:
    """Calls `callback` every `interval_secs` on one thread until cancelled.

    Ticks never overlap: a slow callback delays the next tick instead of
    running concurrently with it.
    """

    def __init__(self, interval_secs: float, callback: Callable[[], None], *, name: str = "PollingClock") -> None:
        if interval_secs <= 0:
            raise ValueError("interval_secs must be positive")
        self.interval_secs = interval_secs
        self._callback = callback
        self._name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self.is_running():
            return
        self._stop.clear()
        self._thread = run_async(self._run, name=self._name)

    def _run(self) -> None:
        while not self._stop.wait(self.interval_secs):
            try:
                self._callback()
            except Exception as exc:
                tprint(f"[CLOCK][ERROR] {self._name} tick failed: {exc}")

    def cancel(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout=2)
        self._thread = None

    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())


class TimerScheduler:
    """Runs one-shot callbacks after a delay on daemon timer threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: set[threading.Timer] = set()

    def call_later(self, delay_secs: float, callback: Callable[[], None]) -> threading.Timer:
        def _fire() -> None:
            with self._lock:
                self._timers.discard(timer)
            callback()

        timer = threading.Timer(max(0.0, delay_secs), _fire)
        timer.daemon = True
        with self._lock:
            self._timers.add(timer)
        timer.start()
        return timer

    def pending(self) -> int:
        with self._lock:
            return len(self._timers)

    def cancel_all(self) -> None:
        with self._lock:
            timers = list(self._timers)
            self._timers.clear()
        for timer in timers:
            timer.cancel()
