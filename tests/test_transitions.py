"""Tests for the pure session transition function."""

import pytest

from gesture_module.gesture_classifier import Gesture
from mode_controller.state import (
    AnalysisFinished,
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
from mode_controller.transitions import ACTIVATION_DELAY_SECS, ANALYSIS_ERROR_MESSAGE, transition


def _feed(state, *gestures):
    """Apply a gesture sequence, returning the final state and every result."""
    results = []
    for gesture in gestures:
        result = transition(state, GestureObserved(gesture))
        results.append(result)
        state = result.state
    return state, results


class TestSessionState:
    """Invariants of the session value itself."""

    def test_initial_state(self):
        """A fresh session is idle, unlocked and not processing."""
        state = SessionState()
        assert (state.mode, state.locked, state.processing) == (Mode.IDLE, False, False)

    def test_idle_cannot_be_locked(self):
        """Locking an idle session is rejected."""
        with pytest.raises(ValueError):
            SessionState(mode=Mode.IDLE, locked=True)

    def test_reset_keeps_processing_and_bumps_generation(self):
        """Reset returns to idle but leaves an in-flight analysis flag alone."""
        state = SessionState(Mode.ENVIRONMENT, locked=True, processing=True, generation=3)
        reset = state.reset()
        assert reset == SessionState(Mode.IDLE, False, True, 4)


class TestGestureTransitions:
    """Gesture-driven activation, locking and reset."""

    def test_open_palm_activates_environment(self):
        """Open palm from idle locks Environment and schedules one trigger."""
        result = transition(SessionState(), GestureObserved(Gesture.OPEN_PALM))
        assert result.state.mode is Mode.ENVIRONMENT
        assert result.state.locked
        assert result.effects == (
            Speak("Environment Mode activated and locked"),
            Pulse(PulseIntensity.MEDIUM),
            ScheduleTrigger(Mode.ENVIRONMENT, result.state.generation, ACTIVATION_DELAY_SECS),
        )

    def test_peace_sign_activates_communication(self):
        """Peace sign from idle locks Communication."""
        result = transition(SessionState(), GestureObserved(Gesture.PEACE_SIGN))
        assert result.state.mode is Mode.COMMUNICATION
        assert Speak("Communication Mode activated and locked") in result.effects

    def test_custom_activation_delay(self):
        """The scheduled delay follows the configured value."""
        result = transition(SessionState(), GestureObserved(Gesture.OPEN_PALM), activation_delay=0.2)
        assert result.effects[-1].delay_secs == 0.2

    def test_lock_blocks_other_gestures(self):
        """A locked session ignores every gesture except fist."""
        locked = SessionState().activate(Mode.ENVIRONMENT)
        for gesture in (Gesture.PEACE_SIGN, Gesture.OPEN_PALM, Gesture.UNKNOWN):
            result = transition(locked, GestureObserved(gesture))
            assert result.state == locked
            assert result.effects == ()

    def test_fist_resets_locked_mode(self):
        """Fist returns a locked mode to idle with a light pulse."""
        locked = SessionState().activate(Mode.ENVIRONMENT)
        result = transition(locked, GestureObserved(Gesture.FIST))
        assert result.state.mode is Mode.IDLE
        assert not result.state.locked
        assert result.effects == (Speak("Stopped"), Pulse(PulseIntensity.LIGHT))

    def test_fist_stops_navigation(self):
        """Fist during navigation stops the route before announcing."""
        navigating = SessionState().activate(Mode.NAVIGATION)
        result = transition(navigating, GestureObserved(Gesture.FIST))
        assert result.state.mode is Mode.IDLE
        assert result.effects == (
            StopNavigation(),
            Speak("Navigation stopped"),
            Pulse(PulseIntensity.LIGHT),
        )

    def test_fist_while_idle_is_noop(self):
        """Fist with nothing active does nothing."""
        result = transition(SessionState(), GestureObserved(Gesture.FIST))
        assert result.state == SessionState()
        assert result.effects == ()

    def test_unknown_while_idle_is_noop(self):
        """Unknown gestures never change an idle session."""
        result = transition(SessionState(), GestureObserved(Gesture.UNKNOWN))
        assert result.state == SessionState()
        assert result.effects == ()

    def test_fist_preserves_processing(self):
        """Reset leaves the processing flag for the analysis to clear."""
        busy = SessionState(Mode.COMMUNICATION, locked=True, processing=True, generation=1)
        result = transition(busy, GestureObserved(Gesture.FIST))
        assert result.state.processing

    def test_poll_sequence_activates_once_and_resets_once(self):
        """[Unknown, OpenPalm, OpenPalm, Fist] yields one activation and one reset."""
        state, results = _feed(
            SessionState(), Gesture.UNKNOWN, Gesture.OPEN_PALM, Gesture.OPEN_PALM, Gesture.FIST
        )
        assert [len(r.effects) for r in results] == [0, 3, 0, 2]
        schedules = [e for r in results for e in r.effects if isinstance(e, ScheduleTrigger)]
        assert len(schedules) == 1
        assert results[3].effects[0] == Speak("Stopped")
        assert state.mode is Mode.IDLE and not state.locked

    def test_lock_invariant_holds_for_every_sequence(self):
        """No gesture sequence produces a locked idle session."""
        gestures = list(Gesture) * 3
        state = SessionState()
        for first in gestures:
            for second in gestures:
                state, _ = _feed(state, first, second)
                assert not (state.locked and state.mode is Mode.IDLE)


class TestStopAndNavigation:
    """Explicit stop and navigation lifecycle events."""

    def test_stop_requested_resets(self):
        """An explicit stop behaves like a fist."""
        locked = SessionState().activate(Mode.COMMUNICATION)
        result = transition(locked, StopRequested())
        assert result.state.mode is Mode.IDLE
        assert Speak("Stopped") in result.effects

    def test_stop_requested_while_idle_is_silent(self):
        """Stopping an idle session says nothing."""
        result = transition(SessionState(), StopRequested())
        assert result.effects == ()

    def test_navigation_started_locks_navigation(self):
        """Starting navigation locks the mode and speaks the first step."""
        result = transition(SessionState(), NavigationStarted("Main St", "Head north. In 200 m."))
        assert result.state.mode is Mode.NAVIGATION
        assert result.state.locked
        assert result.effects[0] == Speak("Head north. In 200 m.", premium_voice=True)
        assert not any(isinstance(e, ScheduleTrigger) for e in result.effects)

    def test_navigation_started_overrides_active_mode(self):
        """Navigation replaces another mode and invalidates its trigger."""
        active = SessionState().activate(Mode.ENVIRONMENT)
        result = transition(active, NavigationStarted("Main St"))
        assert result.state.generation > active.generation
        assert result.effects[0] == Speak("Navigating to Main St", premium_voice=True)

    def test_navigation_finished_announces_arrival(self):
        """Finishing the route returns to idle."""
        navigating = SessionState().activate(Mode.NAVIGATION)
        result = transition(navigating, NavigationFinished())
        assert result.state.mode is Mode.IDLE
        assert result.effects[0] == Speak("You have arrived")

    def test_navigation_finished_outside_navigation_is_noop(self):
        """A late arrival notice does not disturb another mode."""
        active = SessionState().activate(Mode.ENVIRONMENT)
        assert transition(active, NavigationFinished()).state == active


class TestAnalysisTrigger:
    """Deferred trigger validation and analysis completion."""

    def test_trigger_starts_analysis(self):
        """A current trigger marks processing and requests analysis."""
        state = SessionState().activate(Mode.ENVIRONMENT)
        result = transition(state, TriggerFired(Mode.ENVIRONMENT, state.generation))
        assert result.state.processing
        assert result.effects == (RunAnalysis(Mode.ENVIRONMENT, state.generation),)

    def test_trigger_after_reset_is_noop(self):
        """A trigger whose activation was reset never analyzes."""
        active = SessionState().activate(Mode.ENVIRONMENT)
        stale = TriggerFired(Mode.ENVIRONMENT, active.generation)
        reset = transition(active, GestureObserved(Gesture.FIST)).state
        result = transition(reset, stale)
        assert result.effects == ()
        assert not result.state.processing

    def test_trigger_from_earlier_activation_of_same_mode_is_noop(self):
        """Re-entering the same mode within the delay ignores the old trigger."""
        first = SessionState().activate(Mode.ENVIRONMENT)
        stale = TriggerFired(Mode.ENVIRONMENT, first.generation)
        again = first.reset().activate(Mode.ENVIRONMENT)
        assert transition(again, stale).effects == ()

    def test_trigger_while_processing_is_noop(self):
        """No second analysis starts while one is in flight."""
        state = SessionState(Mode.ENVIRONMENT, locked=True, processing=True, generation=1)
        assert transition(state, TriggerFired(Mode.ENVIRONMENT, 1)).effects == ()

    def test_manual_capture_requires_mode(self):
        """Manual capture is ignored while idle."""
        assert transition(SessionState(), ManualCaptureRequested()).effects == ()

    def test_manual_capture_while_processing_is_noop(self):
        """Manual capture is ignored during an analysis."""
        state = SessionState(Mode.COMMUNICATION, locked=True, processing=True, generation=2)
        assert transition(state, ManualCaptureRequested()).effects == ()

    def test_manual_capture_starts_analysis(self):
        """Manual capture analyzes immediately in an active mode."""
        state = SessionState().activate(Mode.COMMUNICATION)
        result = transition(state, ManualCaptureRequested())
        assert result.state.processing
        assert result.effects == (RunAnalysis(Mode.COMMUNICATION, state.generation),)

    def test_analysis_result_is_spoken(self):
        """A successful result clears processing and is read aloud."""
        state = SessionState(Mode.ENVIRONMENT, locked=True, processing=True, generation=1)
        result = transition(state, AnalysisFinished(1, text="A desk with a laptop."))
        assert not result.state.processing
        assert result.effects == (Speak("A desk with a laptop.", premium_voice=True),)

    def test_analysis_error_is_spoken(self):
        """A failed analysis clears processing and speaks the error."""
        state = SessionState(Mode.ENVIRONMENT, locked=True, processing=True, generation=1)
        result = transition(state, AnalysisFinished(1, error=ANALYSIS_ERROR_MESSAGE))
        assert not result.state.processing
        assert result.effects == (Speak(ANALYSIS_ERROR_MESSAGE),)

    def test_stale_result_clears_processing_silently(self):
        """A result from an abandoned activation is dropped, flag still cleared."""
        state = SessionState(Mode.IDLE, locked=False, processing=True, generation=2)
        result = transition(state, AnalysisFinished(1, text="old"))
        assert not result.state.processing
        assert result.effects == ()

    def test_unknown_event_raises(self):
        """Unsupported events are a programming error."""
        with pytest.raises(TypeError):
            transition(SessionState(), object())
