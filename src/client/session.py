"""
src/client/session.py
======================
Voice Session Orchestrator — VoiceOrder client

Coordinates one UI session: capture → transcription → intent analysis →
synthesis → playback, and exposes listening/processing state to the UI.

States:

    IDLE ──start──▶ LISTENING ──final result──▶ FINALIZING ──▶ PROCESSING ──▶ IDLE
      ▲                 │                                          │
      └─────stop────────┘                                          │
    ERROR ◀────────────── any failure, from any state ─────────────┘

ERROR is a resting state like IDLE (nothing listening, nothing in flight)
that also carries a user-facing ``error`` message; listening may start
again from it.

Guarantees:
    - is_listening and is_processing are never both True: the recognizer
      is stopped before a finalized utterance is processed
    - one PROCESSING phase at a time; final results arriving meanwhile are
      dropped
    - interim results only update ``transcript``

Limitation: stop_listening() does not cancel a PROCESSING call that has
already been dispatched; that call runs to completion (or failure).
"""

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable

from src.client.api_client import VoiceApiClient
from src.client.playback import AudioPlayer
from src.client.recognition import RecognitionConfig, SpeechRecognizer
from src.errors import (
    NetworkError,
    QuotaExceeded,
    SynthesisError,
    TranscriptionError,
    VoicePipelineError,
)
from src.languages import DEFAULT_LANGUAGE_CODE, get_language, is_supported

logger = logging.getLogger("voiceorder.client.session")


class SessionPhase(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    FINALIZING = "finalizing"
    PROCESSING = "processing"
    ERROR = "error"


_RESTING_PHASES = (SessionPhase.IDLE, SessionPhase.ERROR)

# Recognizer error code → localized string key
_RECOGNIZER_ERROR_KEYS: dict[str, str] = {
    "not-allowed": "error.permission",
    "service-not-allowed": "error.permission",
    "network": "error.network",
    "audio-capture": "error.audio",
    "no-speech": "error.audio",
    "language-not-supported": "error.language",
}


@dataclass(frozen=True)
class VoiceSessionState:
    """Snapshot of the session exposed to the UI."""

    phase: SessionPhase = SessionPhase.IDLE
    is_listening: bool = False
    is_processing: bool = False
    transcript: str = ""
    response: str = ""
    language: str = DEFAULT_LANGUAGE_CODE
    error: str | None = None


StateListener = Callable[[VoiceSessionState], None]


def _error_key(exc: Exception) -> str:
    if isinstance(exc, QuotaExceeded):
        return "error.busy"
    if isinstance(exc, NetworkError):
        return "error.network"
    if isinstance(exc, (TranscriptionError, SynthesisError)):
        return "error.audio"
    # InvalidCredentials lands here too: end users never see config detail.
    return "error.unknown"


class VoiceSession:
    """State machine for one voice assistant UI session."""

    def __init__(
        self,
        api: VoiceApiClient,
        recognizer: SpeechRecognizer,
        player: AudioPlayer,
        language: str = DEFAULT_LANGUAGE_CODE,
    ):
        self._api = api
        self._recognizer = recognizer
        self._player = player
        self._state = VoiceSessionState(language=language)
        self._listeners: list[StateListener] = []
        self._task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> VoiceSessionState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener; returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _set(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)

    def _fail(self, message: str) -> None:
        if self._state.is_listening:
            self._recognizer.stop()
        self._set(
            phase=SessionPhase.ERROR,
            is_listening=False,
            is_processing=False,
            error=message,
        )

    def _localized(self, key: str) -> str:
        return get_language(self._state.language).text(key)

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def set_language(self, language: str) -> None:
        """Switch session language; restarts recognition if listening."""
        if not is_supported(language):
            raise ValueError(f"Unsupported language: {language!r}")
        was_listening = self._state.is_listening
        if was_listening:
            self.stop_listening()
        self._set(language=language)
        if was_listening:
            self.start_listening()

    def start_listening(self) -> None:
        """IDLE/ERROR → LISTENING."""
        if self._state.phase not in _RESTING_PHASES:
            logger.debug("start_listening ignored in phase %s.", self._state.phase.value)
            return

        config = RecognitionConfig(
            language=self._state.language, continuous=True, interim_results=True
        )
        try:
            self._recognizer.start(config, self._on_result, self._on_recognizer_error)
        except Exception as exc:
            logger.error("Failed to start speech recognition: %s", exc)
            self._fail(self._localized("error.audio"))
            return

        self._set(
            phase=SessionPhase.LISTENING,
            is_listening=True,
            transcript="",
            error=None,
        )

    def stop_listening(self) -> None:
        """LISTENING → IDLE, discarding the interim transcript."""
        if self._state.phase != SessionPhase.LISTENING:
            return
        self._recognizer.stop()
        self._set(phase=SessionPhase.IDLE, is_listening=False, transcript="")

    def toggle_listening(self) -> None:
        if self._state.is_listening:
            self.stop_listening()
        else:
            self.start_listening()

    async def submit_text(self, text: str) -> None:
        """Process typed text directly, bypassing recognition."""
        if self._state.phase not in _RESTING_PHASES:
            logger.warning("Text submitted while %s — ignored.", self._state.phase.value)
            return
        await self._process(text)

    async def wait_until_idle(self) -> None:
        """Await the in-flight PROCESSING phase, if any."""
        if self._task is not None:
            await asyncio.shield(self._task)

    # ------------------------------------------------------------------
    # Recognizer callbacks
    # ------------------------------------------------------------------

    def _on_result(self, transcript: str, is_final: bool) -> None:
        if self._state.phase != SessionPhase.LISTENING:
            if is_final:
                logger.warning(
                    "Final result dropped while %s.", self._state.phase.value
                )
            return

        if not is_final:
            self._set(transcript=transcript)
            return

        self._recognizer.stop()
        self._set(
            phase=SessionPhase.FINALIZING,
            is_listening=False,
            transcript=transcript,
        )

        if not transcript.strip():
            self._set(phase=SessionPhase.IDLE)
            return

        self._task = asyncio.get_running_loop().create_task(self._process(transcript))

    def _on_recognizer_error(self, code: str) -> None:
        logger.error("Speech recognition error: %s", code)
        if self._state.phase in (SessionPhase.LISTENING, SessionPhase.FINALIZING):
            self._fail(self._localized(_RECOGNIZER_ERROR_KEYS.get(code, "error.unknown")))

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    async def _process(self, text: str) -> None:
        language = self._state.language
        self._set(
            phase=SessionPhase.PROCESSING,
            is_listening=False,
            is_processing=True,
            transcript=text,
            response="",
            error=None,
        )

        try:
            result = await self._api.process_command(text, language)
            response = result.get("response") or ""
            self._set(response=response)

            audio = _decode_audio(result.get("audio"))
            if audio is None and response:
                audio = await self._api.text_to_speech(response, language)

            if audio:
                await self._player.play(audio)
        except VoicePipelineError as exc:
            logger.error("Voice command failed (%s): %s", type(exc).__name__, exc.message)
            self._fail(self._localized(_error_key(exc)))
            return
        except Exception as exc:
            logger.error("Voice command failed unexpectedly: %s", exc, exc_info=True)
            self._fail(self._localized("error.unknown"))
            return

        self._set(phase=SessionPhase.IDLE, is_processing=False)

    async def close(self) -> None:
        """Tear the session down when the UI unmounts."""
        if self._state.is_listening:
            self._recognizer.stop()
        self._listeners.clear()
        await self._api.close()


def _decode_audio(audio: object) -> bytes | None:
    if not audio or not isinstance(audio, str):
        return None
    try:
        return base64.b64decode(audio, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Backend returned undecodable audio — requesting synthesis instead.")
        return None
