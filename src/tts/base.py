"""Contract shared by the text-to-speech providers."""

from typing import Protocol


class SpeechSynthesizer(Protocol):
    """Converts reply text into playable audio."""

    provider: str

    def text_to_speech(self, text: str, language_code: str) -> bytes:
        """Return MP3 audio bytes for ``text`` spoken in ``language_code``."""
