"""
tests/test_speech.py
=====================
Speech Adapter Tests — transcription, both synthesis providers, upload
validation

All tests are OFFLINE — HTTP sessions are MagicMocks.
"""

import base64
import os
import sys
import unittest
from unittest.mock import MagicMock, patch

import requests

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from src.audio.normalizer import (
    AudioValidationError,
    MAX_UPLOAD_BYTES,
    to_linear16,
    validate_content_type,
)
from src.config import Settings
from src.errors import ConfigurationError, SynthesisError, TranscriptionError
from src.stt.google_speech import GoogleSpeechTranscriber
from src.tts import build_synthesizer
from src.tts.elevenlabs_tts import VOICE_IDS, ElevenLabsSpeechSynthesizer, select_voice
from src.tts.google_tts import GoogleSpeechSynthesizer


def _session_returning(json_body=None, content=b"", status_error=None) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = json_body
    resp.content = content
    if status_error is not None:
        resp.raise_for_status.side_effect = status_error
    session = MagicMock()
    session.post.return_value = resp
    session.get.return_value = resp
    return session


# ===================================================================
# Speech Transcription Adapter
# ===================================================================


class TestGoogleSpeechTranscriber(unittest.TestCase):

    def test_request_shape(self):
        session = _session_returning({"results": []})
        GoogleSpeechTranscriber("key-123", timeout=7, session=session).speech_to_text(
            b"\x00\x01", "hi-IN"
        )

        kwargs = session.post.call_args.kwargs
        self.assertEqual(kwargs["params"], {"key": "key-123"})
        self.assertEqual(kwargs["timeout"], 7)
        self.assertEqual(
            kwargs["json"]["config"],
            {"encoding": "LINEAR16", "sampleRateHertz": 16000, "languageCode": "hi-IN"},
        )
        self.assertEqual(
            kwargs["json"]["audio"]["content"], base64.b64encode(b"\x00\x01").decode()
        )

    def test_results_joined_in_order(self):
        session = _session_returning({"results": [
            {"alternatives": [{"transcript": "I want biryani"}, {"transcript": "I want buryani"}]},
            {"alternatives": [{"transcript": "from Khana House"}]},
        ]})
        text = GoogleSpeechTranscriber("k", session=session).speech_to_text(b"x", "en-US")
        self.assertEqual(text, "I want biryani\nfrom Khana House")

    def test_empty_results_is_empty_transcript(self):
        session = _session_returning({"results": []})
        self.assertEqual(
            GoogleSpeechTranscriber("k", session=session).speech_to_text(b"x", "en-US"), ""
        )

    def test_missing_results_is_empty_transcript(self):
        session = _session_returning({})
        self.assertEqual(
            GoogleSpeechTranscriber("k", session=session).speech_to_text(b"x", "en-US"), ""
        )

    def test_http_failure_raises(self):
        session = _session_returning(status_error=requests.HTTPError("403 Forbidden"))
        with self.assertRaises(TranscriptionError):
            GoogleSpeechTranscriber("k", session=session).speech_to_text(b"x", "en-US")

    def test_malformed_bodies_raise_transcription_error(self):
        bodies = [
            {"results": ["not-an-object"]},
            {"results": [{"alternatives": ["not-an-object"]}]},
            {"results": [{"alternatives": {"transcript": "hi"}}]},
            {"results": "nope"},
            ["not", "a", "dict"],
        ]
        for body in bodies:
            session = _session_returning(body)
            with self.assertRaises(TranscriptionError, msg=repr(body)):
                GoogleSpeechTranscriber("k", session=session).speech_to_text(b"x", "en-US")

    def test_connection_failure_raises_once(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("down")
        with self.assertRaises(TranscriptionError):
            GoogleSpeechTranscriber("k", session=session).speech_to_text(b"x", "en-US")
        self.assertEqual(session.post.call_count, 1)


# ===================================================================
# Speech Synthesis Adapters
# ===================================================================


class TestGoogleSpeechSynthesizer(unittest.TestCase):

    def test_voice_and_audio_config(self):
        session = _session_returning({"audioContent": base64.b64encode(b"mp3").decode()})
        audio = GoogleSpeechSynthesizer("k", session=session).text_to_speech("Hola", "es-ES")

        self.assertEqual(audio, b"mp3")
        body = session.post.call_args.kwargs["json"]
        self.assertEqual(body["input"], {"text": "Hola"})
        self.assertEqual(body["voice"], {"languageCode": "es-ES", "ssmlGender": "NEUTRAL"})
        self.assertEqual(
            body["audioConfig"],
            {"audioEncoding": "MP3", "speakingRate": 1.0, "pitch": 0},
        )

    def test_missing_audio_raises(self):
        session = _session_returning({})
        with self.assertRaises(SynthesisError):
            GoogleSpeechSynthesizer("k", session=session).text_to_speech("Hi", "en-US")

    def test_http_failure_raises(self):
        session = _session_returning(status_error=requests.HTTPError("500"))
        with self.assertRaises(SynthesisError):
            GoogleSpeechSynthesizer("k", session=session).text_to_speech("Hi", "en-US")


class TestElevenLabsSpeechSynthesizer(unittest.TestCase):

    def test_hindi_voice_selected(self):
        session = _session_returning(content=b"hindi-audio")
        audio = ElevenLabsSpeechSynthesizer("k", session=session).text_to_speech("Hello", "hi-IN")

        self.assertEqual(audio, b"hindi-audio")
        url = session.post.call_args.args[0]
        self.assertTrue(url.endswith(f"/text-to-speech/{VOICE_IDS['hi-IN']}"))
        self.assertNotEqual(VOICE_IDS["hi-IN"], VOICE_IDS["en-US"])

    def test_unmapped_language_uses_english_voice(self):
        self.assertEqual(select_voice("ur-PK"), VOICE_IDS["en-US"])
        self.assertEqual(select_voice("fr-FR"), VOICE_IDS["en-US"])

    def test_voice_settings_and_headers(self):
        session = _session_returning(content=b"a")
        ElevenLabsSpeechSynthesizer("secret", session=session).text_to_speech("Hi", "en-US")

        kwargs = session.post.call_args.kwargs
        self.assertEqual(
            kwargs["json"]["voice_settings"], {"stability": 0.5, "similarity_boost": 0.75}
        )
        self.assertEqual(kwargs["headers"]["xi-api-key"], "secret")
        self.assertEqual(kwargs["headers"]["Accept"], "audio/mpeg")

    def test_failure_raises(self):
        session = MagicMock()
        session.post.side_effect = requests.Timeout("slow")
        with self.assertRaises(SynthesisError):
            ElevenLabsSpeechSynthesizer("k", session=session).text_to_speech("Hi", "en-US")

    def test_list_voices(self):
        session = _session_returning({"voices": [{"voice_id": "v1"}]})
        voices = ElevenLabsSpeechSynthesizer("k", session=session).list_voices()
        self.assertEqual(voices, [{"voice_id": "v1"}])


class TestBuildSynthesizer(unittest.TestCase):

    def test_google_provider(self):
        settings = Settings(openai_api_key="o", google_cloud_api_key="g")
        self.assertIsInstance(build_synthesizer(settings), GoogleSpeechSynthesizer)

    def test_elevenlabs_provider(self):
        settings = Settings(
            openai_api_key="o", google_cloud_api_key="g",
            elevenlabs_api_key="e", tts_provider="elevenlabs",
        )
        self.assertIsInstance(build_synthesizer(settings), ElevenLabsSpeechSynthesizer)

    def test_elevenlabs_without_key(self):
        settings = Settings(openai_api_key="o", google_cloud_api_key="g", tts_provider="elevenlabs")
        with self.assertRaises(ConfigurationError):
            build_synthesizer(settings)


# ===================================================================
# Upload normalization
# ===================================================================


class TestAudioNormalizer(unittest.TestCase):

    def test_non_audio_rejected(self):
        with self.assertRaises(AudioValidationError):
            validate_content_type("image/png")
        with self.assertRaises(AudioValidationError):
            validate_content_type(None)

    def test_format_resolution(self):
        self.assertEqual(validate_content_type("audio/wav"), "wav")
        self.assertEqual(validate_content_type("audio/webm;codecs=opus"), "webm")
        self.assertEqual(validate_content_type("audio/unknown-thing"), "")

    def test_empty_upload_rejected(self):
        with self.assertRaises(AudioValidationError):
            to_linear16(b"", "audio/wav")

    def test_oversized_upload_rejected(self):
        with self.assertRaises(AudioValidationError):
            to_linear16(b"\x00" * (MAX_UPLOAD_BYTES + 1), "audio/wav")

    @patch("src.audio.normalizer.AudioSegment")
    def test_conversion_to_linear16(self, mock_segment_cls):
        segment = MagicMock()
        segment.__len__.return_value = 2000  # ms
        segment.channels = 2
        segment.frame_rate = 44100
        segment.sample_width = 4
        segment.set_channels.return_value = segment
        segment.set_frame_rate.return_value = segment
        segment.set_sample_width.return_value = segment
        segment.raw_data = b"pcm"
        mock_segment_cls.from_file.return_value = segment

        self.assertEqual(to_linear16(b"RIFF....", "audio/wav"), b"pcm")
        segment.set_channels.assert_called_once_with(1)
        segment.set_frame_rate.assert_called_once_with(16000)
        segment.set_sample_width.assert_called_once_with(2)


if __name__ == "__main__":
    unittest.main()
