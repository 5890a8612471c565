"""Carries out the effects returned by the transition function."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from mode_controller.state import (
    AnalysisFinished,
    Effect,
    Event,
    Pulse,
    RunAnalysis,
    ScheduleTrigger,
    Speak,
    StopNavigation,
    TriggerFired,
)
from mode_controller.transitions import ANALYSIS_ERROR_MESSAGE
from utils.log_utils import tprint
from utils.settings_store import deep_log
from vision_module.scene_analyzer import SceneAnalysisError


class Scheduler(Protocol):
    def call_later(self, delay_secs: float, callback: Callable[[], None]) -> Any: ...


class Runner(Protocol):
    def submit(self, fn: Callable[..., Any], *args: Any) -> Any: ...


class EffectRunner:
    def __init__(
        self,
        *,
        speech,
        haptics,
        analyzer,
        frame_source,
        navigation,
        scheduler: Scheduler,
        runner: Runner,
    ) -> None:
        self.speech = speech
        self.haptics = haptics
        self.analyzer = analyzer
        self.frame_source = frame_source
        self.navigation = navigation
        self.scheduler = scheduler
        self.runner = runner

    def run(self, effects: tuple[Effect, ...], dispatch: Callable[[Event], Any]) -> None:
        for effect in effects:
            deep_log(f"[DEEP][EFFECT] {effect}")
            try:
                self._run_one(effect, dispatch)
            except Exception as exc:
                tprint(f"[EFFECT][ERROR] {type(effect).__name__} failed: {exc}")

    def _run_one(self, effect: Effect, dispatch: Callable[[Event], Any]) -> None:
        if isinstance(effect, Speak):
            self.speech.speak(effect.text, premium_voice=effect.premium_voice)
        elif isinstance(effect, Pulse):
            self.haptics.pulse(effect.intensity)
        elif isinstance(effect, ScheduleTrigger):
            mode, generation = effect.mode, effect.generation
            self.scheduler.call_later(
                effect.delay_secs, lambda: dispatch(TriggerFired(mode, generation))
            )
        elif isinstance(effect, RunAnalysis):
            try:
                self.runner.submit(self._analyze, effect, dispatch)
            except Exception as exc:
                # The transition already set processing; report back so it clears.
                tprint(f"[ANALYSIS][ERROR] Could not start analysis: {exc}")
                dispatch(AnalysisFinished(effect.generation, error=ANALYSIS_ERROR_MESSAGE))
        elif isinstance(effect, StopNavigation):
            self.navigation.stop()
        else:
            tprint(f"[EFFECT][WARN] Unknown effect {effect!r}")

    def _analyze(self, effect: RunAnalysis, dispatch: Callable[[Event], Any]) -> None:
        """Run one analysis; always reports back so processing is cleared."""
        outcome = AnalysisFinished(effect.generation)
        try:
            frame = self.frame_source.current_frame()
            if frame is None:
                tprint("[ANALYSIS][WARN] No camera frame available")
            else:
                tprint(f"[ANALYSIS] Sending {effect.mode.display_name} frame")
                text = self.analyzer.analyze(frame, effect.mode)
                tprint(f"[ANALYSIS] Result: {text}")
                outcome = AnalysisFinished(effect.generation, text=text)
        except SceneAnalysisError as exc:
            tprint(f"[ANALYSIS][ERROR] {exc}")
            outcome = AnalysisFinished(effect.generation, error=ANALYSIS_ERROR_MESSAGE)
        except Exception as exc:
            tprint(f"[ANALYSIS][ERROR] Unexpected failure: {exc}")
            outcome = AnalysisFinished(effect.generation, error=ANALYSIS_ERROR_MESSAGE)
        finally:
            dispatch(outcome)
