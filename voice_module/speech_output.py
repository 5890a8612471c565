"""Spoken feedback: a premium ElevenLabs voice with a local pyttsx3 fallback.

Utterances are played one at a time on a background thread. A new utterance
drops anything still queued and interrupts the one currently playing, so the
user always hears the latest state rather than a backlog.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import threading
from collections import deque
from dataclasses import dataclass

import pyttsx3
from elevenlabs.client import ElevenLabs

from utils.event_bus import TOPIC_SPEECH, EventBus
from utils.log_utils import tprint
from utils.settings_store import get_settings


class SpeechError(RuntimeError):
    pass


@dataclass(frozen=True)
class Utterance:
    text: str
    premium_voice: bool = False


class SystemVoice:
    """Offline text-to-speech through the platform engine (pyttsx3)."""

    def __init__(self, rate: int | None = None) -> None:
        self.rate = int(rate or get_settings().get("system_voice_rate", 150))
        self._engine = None

    def _ensure_engine(self):
        if self._engine is None:
            engine = pyttsx3.init()
            engine.setProperty("rate", self.rate)
            engine.setProperty("volume", 1.0)
            self._engine = engine
        return self._engine

    def say(self, text: str) -> None:
        engine = self._ensure_engine()
        engine.say(text)
        engine.runAndWait()

    def stop(self) -> None:
        if self._engine is not None:
            self._engine.stop()


class PremiumVoice:
    """ElevenLabs synthesis played through ffplay so playback can be cut short."""

    def __init__(
        self,
        api_key: str | None = None,
        voice_id: str | None = None,
        model_id: str | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or os.getenv("ELEVEN_LABS_API_KEY")
        self.voice_id = voice_id or settings.get("tts_voice_id")
        self.model_id = model_id or settings.get("tts_model_id")
        self._client: ElevenLabs | None = None
        self._player: subprocess.Popen | None = None
        self._stops = 0
        self._lock = threading.Lock()

    def synthesize(self, text: str) -> bytes:
        if not self.api_key:
            raise SpeechError("ELEVEN_LABS_API_KEY is not configured")
        if self._client is None:
            self._client = ElevenLabs(api_key=self.api_key)
        audio = self._client.text_to_speech.convert(
            text=text,
            voice_id=self.voice_id,
            model_id=self.model_id,
            output_format="mp3_22050_32",
        )
        data = b"".join(audio)
        if not data:
            raise SpeechError("ElevenLabs returned no audio")
        return data

    def stop_token(self) -> int:
        """Current interruption count; `say` plays only while it is unchanged."""
        with self._lock:
            return self._stops

    def _spawn_player(self, player: str) -> subprocess.Popen:
        return subprocess.Popen(
            [player, "-autoexit", "-nodisp", "-loglevel", "quiet", "-"],
            stdin=subprocess.PIPE,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

    def say(self, text: str, token: int | None = None) -> None:
        if token is None:
            token = self.stop_token()
        audio = self.synthesize(text)
        player = shutil.which("ffplay")
        if player is None:
            raise SpeechError("ffplay is required to play premium voice audio")
        with self._lock:
            # stop() during synthesis has no process to terminate.
            if self._stops != token:
                tprint("[SPEECH] Premium audio interrupted before playback")
                return
            self._player = self._spawn_player(player)
            proc = self._player
        try:
            proc.communicate(input=audio)
        except (BrokenPipeError, ValueError):
            # Interrupted by stop() while still streaming audio.
            pass
        finally:
            with self._lock:
                if self._player is proc:
                    self._player = None

    def stop(self) -> None:
        with self._lock:
            self._stops += 1
            proc = self._player
        if proc is not None and proc.poll() is None:
            proc.terminate()


class SpeechOutput:
    def __init__(
        self,
        premium=None,
        basic=None,
        *,
        bus: EventBus | None = None,
        char_limit: int | None = None,
    ) -> None:
        self.premium = premium if premium is not None else PremiumVoice()
        self.basic = basic if basic is not None else SystemVoice()
        self.bus = bus
        self.char_limit = int(char_limit or get_settings().get("tts_char_limit", 10000))
        self.premium_chars = 0
        self._cond = threading.Condition()
        self._pending: deque[Utterance] = deque()
        self._current = None
        self._busy = False
        self._closed = False
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        with self._cond:
            if self._thread and self._thread.is_alive():
                return
            self._closed = False
            self._thread = threading.Thread(target=self._run, name="SpeechOutput", daemon=True)
            self._thread.start()

    def speak(self, text: str, premium_voice: bool = False) -> None:
        text = (text or "").strip()
        if not text:
            return
        with self._cond:
            self._pending.clear()
            self._pending.append(Utterance(text, premium_voice))
            current = self._current
            self._cond.notify_all()
        if current is not None:
            current.stop()
        tprint(f"[SPEECH] Speaking: {text[:80]}")
        if self.bus:
            self.bus.publish(TOPIC_SPEECH, {"text": text, "premium_voice": premium_voice})
        self.start()

    def is_speaking(self) -> bool:
        with self._cond:
            return self._busy or bool(self._pending)

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: not self._pending and not self._busy, timeout)

    def stop(self) -> None:
        """Drop queued speech and cut off the current utterance."""
        with self._cond:
            self._pending.clear()
            current = self._current
        if current is not None:
            current.stop()

    def close(self) -> None:
        self.stop()
        with self._cond:
            self._closed = True
            self._cond.notify_all()
        if self._thread:
            self._thread.join(timeout=2)
            self._thread = None

    def quota_status(self) -> str:
        percentage = (self.premium_chars / self.char_limit) * 100 if self.char_limit else 0.0
        return f"{percentage:.0f}% used ({self.premium_chars}/{self.char_limit} chars)"

    def reset_quota(self) -> None:
        self.premium_chars = 0

    def _run(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._pending or self._closed)
                if self._closed:
                    return
                utterance = self._pending.popleft()
                self._busy = True
            try:
                self._say(utterance)
            finally:
                with self._cond:
                    self._busy = False
                    self._current = None
                    self._cond.notify_all()

    def _say(self, utterance: Utterance) -> None:
        with self._cond:
            # Superseded before it started.
            if self._pending:
                return
            if utterance.premium_voice:
                self._current = self.premium
                token = self.premium.stop_token()
        if utterance.premium_voice:
            try:
                self.premium.say(utterance.text, token=token)
                self.premium_chars += len(utterance.text)
                return
            except Exception as exc:
                tprint(f"[SPEECH][WARN] Premium voice failed, using system voice: {exc}")
            with self._cond:
                # A newer utterance arrived while the premium attempt failed.
                if self._pending:
                    return
        with self._cond:
            self._current = self.basic
        try:
            self.basic.say(utterance.text)
        except Exception as exc:
            tprint(f"[SPEECH][ERROR] System voice failed: {exc}")
