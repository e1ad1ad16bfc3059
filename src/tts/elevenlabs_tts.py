"""
src/tts/elevenlabs_tts.py
==========================
ElevenLabs Text-to-Speech Client — VoiceOrder

Responsibility:
    - Synthesize reply text with the ElevenLabs text-to-speech API
    - Pick the voice from a static language → voice-id map, falling back
      to the English voice for unmapped languages
    - Return the raw audio bytes from the response body

Fails with SynthesisError on any failure; no retry.
"""

import logging
from typing import Any

import requests

from src.errors import SynthesisError

logger = logging.getLogger("voiceorder.tts.elevenlabs")

ELEVENLABS_API_BASE = "https://api.elevenlabs.io/v1"
ELEVENLABS_MODEL_ID = "eleven_multilingual_v2"

DEFAULT_VOICE_LANGUAGE = "en-US"

VOICE_IDS: dict[str, str] = {
    "en-US": "EXAVITQu4vr4xnSDxMaL",
    "es-ES": "ErXwobaYiN019PkySvjV",
    "hi-IN": "AZnzlk1XvdvUeBnXmlld",
}

VOICE_SETTINGS: dict[str, float] = {
    "stability": 0.5,
    "similarity_boost": 0.75,
}


def select_voice(language_code: str) -> str:
    """Return the voice id for ``language_code`` (English voice if unmapped)."""
    return VOICE_IDS.get(language_code, VOICE_IDS[DEFAULT_VOICE_LANGUAGE])


class ElevenLabsSpeechSynthesizer:
    """Speech Synthesis Adapter over ElevenLabs."""

    provider = "elevenlabs"

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        model_id: str = ELEVENLABS_MODEL_ID,
        session: requests.Session | None = None,
    ):
        self._api_key = api_key
        self._timeout = timeout
        self._model_id = model_id
        self._session = session or requests.Session()

    def text_to_speech(self, text: str, language_code: str) -> bytes:
        """
        Synthesize ``text`` with the voice mapped to ``language_code``.

        Returns:
            MP3 audio bytes.

        Raises:
            SynthesisError: If the request fails or returns an empty body.
        """
        voice_id = select_voice(language_code)

        try:
            resp = self._session.post(
                f"{ELEVENLABS_API_BASE}/text-to-speech/{voice_id}",
                headers={
                    "Accept": "audio/mpeg",
                    "Content-Type": "application/json",
                    "xi-api-key": self._api_key,
                },
                json={
                    "text": text,
                    "model_id": self._model_id,
                    "voice_settings": dict(VOICE_SETTINGS),
                },
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.error("ElevenLabs text-to-speech failed: %s", exc)
            raise SynthesisError(
                f"Failed to convert text to speech using ElevenLabs: {exc}"
            ) from exc

        audio = resp.content
        if not audio:
            raise SynthesisError("ElevenLabs returned an empty audio body.")

        logger.info(
            "ElevenLabs text-to-speech complete: voice=%s, %d chars → %d bytes.",
            voice_id,
            len(text),
            len(audio),
        )
        return audio

    def list_voices(self) -> list[dict[str, Any]]:
        """Return the voices available to the configured account."""
        try:
            resp = self._session.get(
                f"{ELEVENLABS_API_BASE}/voices",
                headers={"xi-api-key": self._api_key},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            return resp.json().get("voices", [])
        except (requests.RequestException, ValueError) as exc:
            logger.error("Fetching ElevenLabs voices failed: %s", exc)
            raise SynthesisError(f"Failed to fetch available voices: {exc}") from exc
