# src/stt/__init__.py
# ====================
# Speech-to-Text Layer — VoiceOrder
#
# Speech Transcription Adapter: LINEAR16 / 16 kHz audio → transcript text
# via Google Cloud Speech-to-Text. Uploads are normalized beforehand by
# src.audio.normalizer; this layer never resamples.
#
# Public API:
#   GoogleSpeechTranscriber(api_key).speech_to_text(audio_bytes, language_code) → str

from src.stt.google_speech import GoogleSpeechTranscriber  # noqa: F401

__all__ = ["GoogleSpeechTranscriber"]
