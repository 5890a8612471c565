"""Owns the session state and serializes every event that touches it."""

from __future__ import annotations

import threading

from mode_controller.effects import EffectRunner
from mode_controller.state import Event, SessionState
from mode_controller.transitions import ACTIVATION_DELAY_SECS, TransitionResult, transition
from utils.event_bus import TOPIC_SESSION_STATE, EventBus
from utils.log_utils import tprint
from utils.settings_store import deep_log


class SessionController:
    """Applies events one at a time and hands the resulting effects to the runner.

    Poll ticks, trigger timers, API calls and analysis completions all arrive on
    different threads; the re-entrant lock makes each transition atomic while
    still letting an effect dispatch a follow-up event from the same thread.
    """

    def __init__(
        self,
        effects: EffectRunner,
        *,
        bus: EventBus | None = None,
        activation_delay: float = ACTIVATION_DELAY_SECS,
    ) -> None:
        self.effects = effects
        self.bus = bus or EventBus()
        self.activation_delay = activation_delay
        self._lock = threading.RLock()
        self._state = SessionState()

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def handle(self, event: Event) -> TransitionResult:
        with self._lock:
            previous = self._state
            result = transition(previous, event, activation_delay=self.activation_delay)
            self._state = result.state
            deep_log(f"[DEEP][SESSION] event={event} state={result.state}")
            if result.state != previous:
                self._log_change(previous, result.state)
                self.bus.publish(TOPIC_SESSION_STATE, result.state.to_dict())
            self.effects.run(result.effects, self.handle)
            return result

    def _log_change(self, previous: SessionState, current: SessionState) -> None:
        if previous.mode is not current.mode or previous.locked != current.locked:
            lock = "locked" if current.locked else "unlocked"
            tprint(f"[SESSION] {previous.mode.display_name} -> {current.mode.display_name} ({lock})")
        if previous.processing != current.processing:
            tprint(f"[SESSION] processing={current.processing}")
