# src/tts/__init__.py
# ====================
# Text-to-Speech Layer — VoiceOrder
#
# Two interchangeable Speech Synthesis Adapters:
#   - Google Cloud Text-to-Speech (TTS_PROVIDER=google)  → google_tts.py
#   - ElevenLabs (TTS_PROVIDER=elevenlabs)              → elevenlabs_tts.py
#
# Which one runs is a deployment choice (TTS_PROVIDER), resolved once by
# build_synthesizer().

from src.config import Settings
from src.errors import ConfigurationError
from src.tts.base import SpeechSynthesizer
from src.tts.elevenlabs_tts import ElevenLabsSpeechSynthesizer
from src.tts.google_tts import GoogleSpeechSynthesizer

__all__ = [
    "SpeechSynthesizer",
    "GoogleSpeechSynthesizer",
    "ElevenLabsSpeechSynthesizer",
    "build_synthesizer",
]


def build_synthesizer(settings: Settings) -> SpeechSynthesizer:
    """Construct the synthesizer selected by ``settings.tts_provider``."""
    if settings.tts_provider == "google":
        return GoogleSpeechSynthesizer(
            settings.google_cloud_api_key, timeout=settings.request_timeout
        )
    if settings.tts_provider == "elevenlabs":
        if not settings.elevenlabs_api_key:
            raise ConfigurationError("ELEVENLABS_API_KEY is not set.")
        return ElevenLabsSpeechSynthesizer(
            settings.elevenlabs_api_key, timeout=settings.request_timeout
        )
    raise ConfigurationError(f"Unknown TTS provider: {settings.tts_provider!r}")
