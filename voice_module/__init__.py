"""Spoken output for announcements, analysis results and directions."""

from voice_module.speech_output import PremiumVoice, SpeechError, SpeechOutput, SystemVoice

__all__ = [
    "PremiumVoice",
    "SpeechError",
    "SpeechOutput",
    "SystemVoice",
]
