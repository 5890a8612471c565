"""High-level wiring of camera, gesture polling, session state and services.

The camera stays closed until `start()`; API handlers and the preview window
talk to this object rather than to the individual services.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from gesture_module.gesture_recognizer import GesturePoller
from mode_controller.controller import SessionController
from mode_controller.effects import EffectRunner
from mode_controller.state import (
    ManualCaptureRequested,
    Mode,
    NavigationFinished,
    NavigationStarted,
    RunAnalysis,
    SessionState,
    StopRequested,
)
from navigation_module.navigation_service import NavigationError, NavigationService
from utils.event_bus import EventBus
from utils.log_utils import tprint
from utils.settings_store import get_settings
from utils.threading_utils import TimerScheduler
from video_module.video_stream import CameraUnavailableError


class AssistWorkflow:
    def __init__(
        self,
        *,
        frame_source,
        estimator,
        analyzer,
        speech,
        haptics,
        navigation: NavigationService,
        bus: EventBus | None = None,
        scheduler=None,
        runner=None,
        poll_interval: float | None = None,
        activation_delay: float | None = None,
    ) -> None:
        settings = get_settings()
        self.bus = bus or EventBus()
        self.frame_source = frame_source
        self.estimator = estimator
        self.speech = speech
        self.navigation = navigation
        self.scheduler = scheduler or TimerScheduler()
        self.runner = runner or ThreadPoolExecutor(max_workers=2, thread_name_prefix="assist-io")
        self.camera_error: str | None = None

        effects = EffectRunner(
            speech=speech,
            haptics=haptics,
            analyzer=analyzer,
            frame_source=frame_source,
            navigation=navigation,
            scheduler=self.scheduler,
            runner=self.runner,
        )
        self.controller = SessionController(
            effects,
            bus=self.bus,
            activation_delay=float(activation_delay or settings.get("activation_delay_secs", 1.5)),
        )
        self.poller = GesturePoller(
            frame_source,
            estimator,
            self.controller.handle,
            interval_secs=float(poll_interval or settings.get("poll_interval_secs", 0.5)),
            bus=self.bus,
        )

    @property
    def state(self) -> SessionState:
        return self.controller.state

    def start(self) -> bool:
        """Open the camera and begin polling; False when the camera is unavailable."""
        if self.poller.is_running():
            return True
        starter = getattr(self.frame_source, "start", None)
        if starter is not None:
            try:
                starter()
            except CameraUnavailableError as exc:
                self.camera_error = str(exc)
                tprint(f"[WORKFLOW][ERROR] {exc}")
                return False
        self.camera_error = None
        self.poller.start()
        return True

    def stop(self) -> None:
        self.poller.stop()
        self.controller.handle(StopRequested())
        stopper = getattr(self.frame_source, "stop", None)
        if stopper is not None:
            stopper()

    def shutdown(self) -> None:
        self.stop()
        cancel_all = getattr(self.scheduler, "cancel_all", None)
        if cancel_all is not None:
            cancel_all()
        shutdown = getattr(self.runner, "shutdown", None)
        if shutdown is not None:
            shutdown(wait=False)
        closer = getattr(self.estimator, "close", None)
        if closer is not None:
            closer()
        speech_close = getattr(self.speech, "close", None)
        if speech_close is not None:
            speech_close()

    def is_running(self) -> bool:
        return self.poller.is_running()

    def manual_capture(self) -> bool:
        """Analyze the current frame now; False when idle or already busy."""
        result = self.controller.handle(ManualCaptureRequested())
        return any(isinstance(effect, RunAnalysis) for effect in result.effects)

    def stop_session(self) -> SessionState:
        return self.controller.handle(StopRequested()).state

    def start_navigation(self, destination: str):
        """Fetch directions in the background; returns the pending future."""
        destination = destination.strip()
        if not destination:
            raise ValueError("destination must not be empty")
        return self.runner.submit(self._start_navigation, destination)

    def _start_navigation(self, destination: str) -> bool:
        self.speech.speak(f"Getting directions to {destination}")
        try:
            self.navigation.start_navigation(destination)
        except NavigationError as exc:
            tprint(f"[WORKFLOW][ERROR] Navigation failed: {exc}")
            self.speech.speak(str(exc))
            return False
        except Exception as exc:
            tprint(f"[WORKFLOW][ERROR] Navigation failed unexpectedly: {exc}")
            self.speech.speak("Navigation is unavailable right now.")
            return False
        self.controller.handle(
            NavigationStarted(destination, self.navigation.current_instruction())
        )
        return True

    def next_step(self) -> str | None:
        if self.controller.state.mode is not Mode.NAVIGATION:
            return None
        instruction = self.navigation.advance_step()
        if instruction is None:
            self.controller.handle(NavigationFinished())
            return None
        self.speech.speak(instruction, premium_voice=True)
        return instruction

    def repeat_instruction(self) -> str | None:
        instruction = self.navigation.current_instruction()
        if instruction:
            self.speech.speak(instruction, premium_voice=True)
        return instruction

    def status(self) -> dict:
        reading = self.poller.last_reading
        return {
            "running": self.is_running(),
            "camera_error": self.camera_error,
            "session": self.controller.state.to_dict(),
            "gesture": reading.to_dict(),
            "navigation": self.navigation.to_dict(),
        }


def build_workflow(bus: EventBus | None = None) -> AssistWorkflow:
    """Construct the workflow with the real camera, MediaPipe and cloud services."""
    from gesture_module.hand_tracking import HandTracker
    from ui.haptics import HapticFeedback
    from video_module.video_stream import FrameGrabber, VideoStream
    from vision_module.scene_analyzer import SceneAnalyzer
    from voice_module.speech_output import SpeechOutput

    settings = get_settings()
    bus = bus or EventBus()
    return AssistWorkflow(
        frame_source=FrameGrabber(VideoStream(int(settings.get("camera_index", 0)))),
        estimator=HandTracker(),
        analyzer=SceneAnalyzer(),
        speech=SpeechOutput(bus=bus),
        haptics=HapticFeedback(bus=bus),
        navigation=NavigationService(),
        bus=bus,
    )
