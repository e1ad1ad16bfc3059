"""
src/client/recognition.py
==========================
Speech-recognition capability — VoiceOrder client

The session never touches a platform recognizer directly; it talks to the
SpeechRecognizer protocol below. Implementations:

    ScriptedSpeechRecognizer        results are pushed programmatically
                                    (tests, text-mode front ends)
    TranscriptionSpeechRecognizer   captures utterances from an injected
                                    audio source and transcribes each one
                                    through the backend speech-to-text API

Error codes passed to ``on_error`` follow the browser recognizer's names:
"not-allowed", "network", "audio-capture", "language-not-supported",
"no-speech", "aborted".
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from src.client.api_client import VoiceApiClient
from src.errors import NetworkError, VoicePipelineError

logger = logging.getLogger("voiceorder.client.recognition")

ResultCallback = Callable[[str, bool], None]   # (transcript, is_final)
ErrorCallback = Callable[[str], None]           # error code
AudioSource = Callable[[], Awaitable[bytes | None]]


@dataclass(frozen=True)
class RecognitionConfig:
    language: str
    continuous: bool = True
    interim_results: bool = True


class SpeechRecognizer(Protocol):
    """Platform speech-recognition capability."""

    def start(
        self,
        config: RecognitionConfig,
        on_result: ResultCallback,
        on_error: ErrorCallback,
    ) -> None:
        """Begin recognition; results and errors arrive via the callbacks."""

    def stop(self) -> None:
        """Stop recognition. No callbacks fire after this returns."""


class ScriptedSpeechRecognizer:
    """Recognizer driven by explicit emit_* calls."""

    def __init__(self) -> None:
        self.config: RecognitionConfig | None = None
        self.active = False
        self.start_count = 0
        self._on_result: ResultCallback | None = None
        self._on_error: ErrorCallback | None = None

    def start(self, config, on_result, on_error) -> None:
        self.config = config
        self._on_result = on_result
        self._on_error = on_error
        self.active = True
        self.start_count += 1

    def stop(self) -> None:
        self.active = False

    def emit_interim(self, transcript: str) -> None:
        if self.active and self._on_result:
            self._on_result(transcript, False)

    def emit_final(self, transcript: str) -> None:
        if self.active and self._on_result:
            self._on_result(transcript, True)

    def emit_error(self, code: str) -> None:
        if self.active and self._on_error:
            self._on_error(code)


class TranscriptionSpeechRecognizer:
    """
    Recognizer that transcribes whole utterances through the backend.

    ``capture`` returns one WAV-encoded utterance per call (None when the
    source is exhausted). Each non-empty transcript is reported as a final
    result; this recognizer produces no interim results.
    """

    def __init__(self, api: VoiceApiClient, capture: AudioSource):
        self._api = api
        self._capture = capture
        self._task: asyncio.Task | None = None

    def start(self, config, on_result, on_error) -> None:
        if self._task is not None and not self._task.done():
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(config, on_result, on_error))

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, config, on_result, on_error) -> None:
        while True:
            try:
                audio = await self._capture()
            except OSError as exc:
                logger.error("Audio capture failed: %s", exc)
                on_error("audio-capture")
                return

            if audio is None:
                return

            try:
                transcript, _ = await self._api.speech_to_text(audio, config.language)
            except NetworkError:
                on_error("network")
                return
            except VoicePipelineError as exc:
                logger.error("Backend transcription failed: %s", exc)
                on_error("audio-capture")
                return

            if transcript.strip():
                on_result(transcript, True)
            if not config.continuous:
                return
