"""Pure transition function: (state, event) -> (state, effects).

Nothing here touches the camera, the network or a clock, so every rule can be
exercised directly in tests. `EffectRunner` carries out the returned effects.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from gesture_module.gesture_classifier import Gesture
from mode_controller.state import (
    GESTURE_MODES,
    AnalysisFinished,
    Effect,
    Event,
    GestureObserved,
    ManualCaptureRequested,
    Mode,
    NavigationFinished,
    NavigationStarted,
    Pulse,
    PulseIntensity,
    RunAnalysis,
    ScheduleTrigger,
    SessionState,
    Speak,
    StopNavigation,
    StopRequested,
    TriggerFired,
)

ACTIVATION_DELAY_SECS = 1.5
ANALYSIS_ERROR_MESSAGE = "Error analyzing scene. Please try again."


@dataclass(frozen=True)
class TransitionResult:
    state: SessionState
    effects: tuple[Effect, ...] = ()


def _unchanged(state: SessionState) -> TransitionResult:
    return TransitionResult(state)


def _reset(state: SessionState) -> TransitionResult:
    if state.mode is Mode.NAVIGATION:
        effects: tuple[Effect, ...] = (StopNavigation(), Speak("Navigation stopped"))
    else:
        effects = (Speak("Stopped"),)
    return TransitionResult(state.reset(), effects + (Pulse(PulseIntensity.LIGHT),))


def _on_gesture(state: SessionState, gesture: Gesture, activation_delay: float) -> TransitionResult:
    # A fist is the only input that breaks a lock.
    if gesture is Gesture.FIST:
        if state.mode is not Mode.IDLE or state.locked:
            return _reset(state)
        return _unchanged(state)

    if state.locked:
        return _unchanged(state)

    target = GESTURE_MODES.get(gesture)
    if state.mode is Mode.IDLE and target is not None:
        activated = state.activate(target)
        return TransitionResult(
            activated,
            (
                Speak(f"{target.display_name} activated and locked"),
                Pulse(PulseIntensity.MEDIUM),
                ScheduleTrigger(target, activated.generation, activation_delay),
            ),
        )
    return _unchanged(state)


def _start_analysis(state: SessionState) -> TransitionResult:
    busy = replace(state, processing=True)
    return TransitionResult(busy, (RunAnalysis(state.mode, state.generation),))


def transition(
    state: SessionState,
    event: Event,
    *,
    activation_delay: float = ACTIVATION_DELAY_SECS,
) -> TransitionResult:
    if isinstance(event, GestureObserved):
        return _on_gesture(state, event.gesture, activation_delay)

    if isinstance(event, StopRequested):
        if state.mode is Mode.IDLE and not state.locked:
            return _unchanged(state)
        return _reset(state)

    if isinstance(event, NavigationStarted):
        navigating = state.activate(Mode.NAVIGATION)
        announcement = event.instruction or f"Navigating to {event.destination}"
        return TransitionResult(
            navigating,
            (Speak(announcement, premium_voice=True), Pulse(PulseIntensity.MEDIUM)),
        )

    if isinstance(event, NavigationFinished):
        if state.mode is not Mode.NAVIGATION:
            return _unchanged(state)
        return TransitionResult(
            state.reset(),
            (Speak("You have arrived"), Pulse(PulseIntensity.LIGHT)),
        )

    if isinstance(event, TriggerFired):
        if (
            state.mode is event.mode
            and state.locked
            and not state.processing
            and state.generation == event.generation
        ):
            return _start_analysis(state)
        return _unchanged(state)

    if isinstance(event, ManualCaptureRequested):
        if state.mode is Mode.IDLE or state.processing:
            return _unchanged(state)
        return _start_analysis(state)

    if isinstance(event, AnalysisFinished):
        idle = replace(state, processing=False)
        # Results for an activation the user already left are dropped.
        if event.generation != state.generation:
            return TransitionResult(idle)
        if event.text:
            return TransitionResult(idle, (Speak(event.text, premium_voice=True),))
        if event.error:
            return TransitionResult(idle, (Speak(event.error),))
        return TransitionResult(idle)

    raise TypeError(f"Unsupported event: {event!r}")
