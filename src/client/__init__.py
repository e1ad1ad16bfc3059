# src/client/__init__.py
# =======================
# Client Layer — VoiceOrder
#
# Everything that runs next to the user interface:
#   - VoiceApiClient      async HTTP client for /api/voice/*
#   - SpeechRecognizer    platform recognition capability (+ implementations)
#   - AudioPlayer         reply playback (+ implementations)
#   - VoiceSession        the per-session state machine the UI binds to

from src.client.api_client import VoiceApiClient  # noqa: F401
from src.client.playback import AudioPlayer, NullAudioPlayer, PydubAudioPlayer  # noqa: F401
from src.client.recognition import (  # noqa: F401
    RecognitionConfig,
    ScriptedSpeechRecognizer,
    SpeechRecognizer,
    TranscriptionSpeechRecognizer,
)
from src.client.session import SessionPhase, VoiceSession, VoiceSessionState  # noqa: F401

__all__ = [
    "VoiceApiClient",
    "AudioPlayer",
    "NullAudioPlayer",
    "PydubAudioPlayer",
    "RecognitionConfig",
    "ScriptedSpeechRecognizer",
    "SpeechRecognizer",
    "TranscriptionSpeechRecognizer",
    "SessionPhase",
    "VoiceSession",
    "VoiceSessionState",
]
