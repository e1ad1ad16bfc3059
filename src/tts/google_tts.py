"""
src/tts/google_tts.py
======================
Google Cloud Text-to-Speech Client — VoiceOrder

Responsibility:
    - Synthesize reply text with the Text-to-Speech REST API
    - Select the voice directly from the language code with a neutral
      gender, MP3 output, speaking rate 1.0 and pitch 0

Fails with SynthesisError on any failure; no retry.
"""

import base64
import binascii
import logging

import requests

from src.errors import SynthesisError

logger = logging.getLogger("voiceorder.tts.google")

GOOGLE_TTS_ENDPOINT = "https://texttospeech.googleapis.com/v1/text:synthesize"

VOICE_GENDER = "NEUTRAL"
AUDIO_ENCODING = "MP3"
SPEAKING_RATE = 1.0
PITCH = 0


class GoogleSpeechSynthesizer:
    """Speech Synthesis Adapter over Google Cloud Text-to-Speech."""

    provider = "google"

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self._api_key = api_key
        self._timeout = timeout
        self._session = session or requests.Session()

    @staticmethod
    def build_request(text: str, language_code: str) -> dict:
        return {
            "input": {"text": text},
            "voice": {"languageCode": language_code, "ssmlGender": VOICE_GENDER},
            "audioConfig": {
                "audioEncoding": AUDIO_ENCODING,
                "speakingRate": SPEAKING_RATE,
                "pitch": PITCH,
            },
        }

    def text_to_speech(self, text: str, language_code: str) -> bytes:
        """
        Synthesize ``text`` in ``language_code``.

        Returns:
            MP3 audio bytes.

        Raises:
            SynthesisError: If the request fails or returns no audio.
        """
        try:
            resp = self._session.post(
                GOOGLE_TTS_ENDPOINT,
                params={"key": self._api_key},
                json=self.build_request(text, language_code),
                timeout=self._timeout,
            )
            resp.raise_for_status()
            audio_content = resp.json().get("audioContent")
        except (requests.RequestException, ValueError, AttributeError) as exc:
            logger.error("Google text-to-speech failed: %s", exc)
            raise SynthesisError(f"Failed to convert text to speech: {exc}") from exc

        if not audio_content:
            raise SynthesisError("Google text-to-speech returned no audio content.")

        try:
            audio = base64.b64decode(audio_content)
        except (binascii.Error, TypeError) as exc:
            raise SynthesisError(f"Google text-to-speech returned invalid audio: {exc}") from exc

        logger.info(
            "Google text-to-speech complete: %d chars → %d bytes (%s).",
            len(text),
            len(audio),
            language_code,
        )
        return audio
