"""
src/audio/normalizer.py
========================
Audio Normalizer — VoiceOrder

Responsibility:
    - Validate uploaded voice clips (audio content type, size, duration)
    - Convert audio to mono, 16 kHz, 16-bit linear PCM
    - Return the raw PCM bytes the Speech Transcription Adapter expects

The transcription adapter never resamples; every upload passes through
here first.
"""

import io

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB
TARGET_SAMPLE_RATE = 16000  # Hz
TARGET_CHANNELS = 1  # mono
TARGET_SAMPLE_WIDTH = 2  # bytes → 16-bit
MAX_DURATION_SECONDS = 60  # synchronous recognition limit

# Content-type subtype → pydub/ffmpeg format name
_FORMAT_BY_SUBTYPE: dict[str, str] = {
    "wav": "wav",
    "x-wav": "wav",
    "wave": "wav",
    "mpeg": "mp3",
    "mp3": "mp3",
    "webm": "webm",
    "ogg": "ogg",
    "mp4": "mp4",
    "x-m4a": "mp4",
    "flac": "flac",
}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class AudioValidationError(Exception):
    """Raised when the uploaded audio fails validation."""
    pass


class AudioNormalizationError(Exception):
    """Raised when audio conversion fails unexpectedly."""
    pass


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_content_type(content_type: str | None) -> str:
    """
    Check that the upload is an audio file and resolve its decoder format.

    Returns:
        Format name understood by pydub, or "" to let ffmpeg detect it.

    Raises:
        AudioValidationError: If the content type is not audio/*.
    """
    if not content_type or not content_type.startswith("audio/"):
        raise AudioValidationError("Only audio files are allowed.")
    subtype = content_type.split("/", 1)[1].split(";", 1)[0].strip().lower()
    return _FORMAT_BY_SUBTYPE.get(subtype, "")


def validate_size(audio_bytes: bytes) -> None:
    if not audio_bytes:
        raise AudioValidationError("Audio file is empty.")
    if len(audio_bytes) > MAX_UPLOAD_BYTES:
        raise AudioValidationError("Audio file too large. Maximum size is 10MB.")


def validate_duration(audio: AudioSegment) -> None:
    duration_seconds = len(audio) / 1000.0
    if duration_seconds == 0:
        raise AudioValidationError("Audio file has zero duration.")
    if duration_seconds > MAX_DURATION_SECONDS:
        raise AudioValidationError(
            f"Audio duration ({duration_seconds:.1f}s) exceeds the "
            f"maximum allowed ({MAX_DURATION_SECONDS}s)."
        )


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def to_linear16(audio_bytes: bytes, content_type: str | None) -> bytes:
    """
    Validate an uploaded clip and convert it to LINEAR16 PCM.

    Steps:
        1. Validate content type and size
        2. Decode audio
        3. Validate duration
        4. Convert to mono, 16 kHz, 16-bit
        5. Return raw PCM frames

    Raises:
        AudioValidationError:    On any validation failure.
        AudioNormalizationError: On unexpected processing failure.
    """
    fmt = validate_content_type(content_type)
    validate_size(audio_bytes)

    try:
        audio = AudioSegment.from_file(io.BytesIO(audio_bytes), format=fmt or None)
    except CouldntDecodeError:
        raise AudioValidationError("Audio file is corrupt or could not be decoded.")
    except Exception as exc:
        raise AudioNormalizationError(f"Unexpected error decoding audio: {exc}")

    validate_duration(audio)

    try:
        if audio.channels != TARGET_CHANNELS:
            audio = audio.set_channels(TARGET_CHANNELS)
        if audio.frame_rate != TARGET_SAMPLE_RATE:
            audio = audio.set_frame_rate(TARGET_SAMPLE_RATE)
        if audio.sample_width != TARGET_SAMPLE_WIDTH:
            audio = audio.set_sample_width(TARGET_SAMPLE_WIDTH)
        return audio.raw_data
    except Exception as exc:
        raise AudioNormalizationError(f"Failed to convert audio to LINEAR16: {exc}")
