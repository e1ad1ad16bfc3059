"""
src/stt/google_speech.py
=========================
Google Cloud Speech-to-Text Client — VoiceOrder

Responsibility:
    - Transcribe a single utterance with the Speech-to-Text REST API
    - Join the top alternative of every returned result with newlines,
      in the order the service returned them

Audio MUST already be 16-bit linear PCM at 16 kHz (see
src.audio.normalizer for converting uploads). This client does not
resample or transcode, and does not retry.

This module does NOT:
    - Detect language
    - Perform intent analysis
"""

import base64
import logging
from typing import Any

import requests

from src.errors import TranscriptionError

logger = logging.getLogger("voiceorder.stt.google_speech")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

GOOGLE_SPEECH_ENDPOINT = "https://speech.googleapis.com/v1/speech:recognize"
AUDIO_ENCODING = "LINEAR16"
SAMPLE_RATE_HERTZ = 16000


class GoogleSpeechTranscriber:
    """Speech Transcription Adapter over Google Cloud Speech-to-Text."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self._api_key = api_key
        self._timeout = timeout
        self._session = session or requests.Session()

    def speech_to_text(self, audio_bytes: bytes, language_code: str) -> str:
        """
        Transcribe LINEAR16 / 16 kHz audio.

        Args:
            audio_bytes:   Raw PCM audio (or a WAV container of it).
            language_code: BCP 47 language code (e.g. "en-US").

        Returns:
            Transcript text. Empty string when the service recognized nothing.

        Raises:
            TranscriptionError: If the request fails or the body is malformed.
        """
        payload = {
            "config": {
                "encoding": AUDIO_ENCODING,
                "sampleRateHertz": SAMPLE_RATE_HERTZ,
                "languageCode": language_code,
            },
            "audio": {"content": base64.b64encode(audio_bytes).decode("ascii")},
        }

        logger.debug(
            "Sending %d bytes to Google Speech-to-Text (language=%s).",
            len(audio_bytes),
            language_code,
        )

        try:
            resp = self._session.post(
                GOOGLE_SPEECH_ENDPOINT,
                params={"key": self._api_key},
                json=payload,
                timeout=self._timeout,
            )
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Speech-to-text request failed: %s", exc)
            raise TranscriptionError(f"Failed to convert speech to text: {exc}") from exc

        transcript = _parse_response(body)
        logger.info("Speech-to-text complete: %d chars.", len(transcript))
        return transcript


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def _parse_response(body: Any) -> str:
    """Join the top alternative of every result with newline separators."""
    if not isinstance(body, dict):
        raise TranscriptionError(
            f"Unexpected speech-to-text response: {type(body).__name__}"
        )

    results = body.get("results") or []
    if not isinstance(results, list):
        raise TranscriptionError("Malformed speech-to-text response: results is not a list")

    lines: list[str] = []
    for result in results:
        if not isinstance(result, dict):
            raise TranscriptionError("Malformed speech-to-text response: result is not an object")
        alternatives = result.get("alternatives") or []
        if not alternatives:
            continue
        top = alternatives[0] if isinstance(alternatives, list) else None
        if not isinstance(top, dict):
            raise TranscriptionError("Malformed speech-to-text response: bad alternative")
        transcript = top.get("transcript", "")
        lines.append(transcript if isinstance(transcript, str) else "")

    return "\n".join(lines)
