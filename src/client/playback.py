"""Audio playback for synthesized replies."""

import asyncio
import io
import logging
from typing import Protocol

from pydub import AudioSegment
from pydub.playback import play

logger = logging.getLogger("voiceorder.client.playback")


class AudioPlayer(Protocol):
    async def play(self, audio: bytes) -> None:
        """Play MP3 audio; returns once playback has finished."""


class PydubAudioPlayer:
    """Plays MP3 replies on the local output device through pydub."""

    def __init__(self, audio_format: str = "mp3"):
        self._format = audio_format

    async def play(self, audio: bytes) -> None:
        segment = AudioSegment.from_file(io.BytesIO(audio), format=self._format)
        logger.debug("Playing %.1fs of audio.", len(segment) / 1000.0)
        await asyncio.to_thread(play, segment)


class NullAudioPlayer:
    """Discards audio; keeps what it was given for inspection."""

    def __init__(self) -> None:
        self.played: list[bytes] = []

    async def play(self, audio: bytes) -> None:
        self.played.append(audio)
