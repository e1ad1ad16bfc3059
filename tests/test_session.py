"""
tests/test_session.py
======================
Voice Session Orchestrator + API client tests

The session is driven through a ScriptedSpeechRecognizer, a NullAudioPlayer
and an AsyncMock standing in for VoiceApiClient.
"""

import asyncio
import base64
import os
import sys
import unittest
from unittest.mock import AsyncMock, MagicMock

import aiohttp

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from src.client.api_client import VoiceApiClient, _error_from_response
from src.client.playback import NullAudioPlayer
from src.client.recognition import (
    RecognitionConfig,
    ScriptedSpeechRecognizer,
    TranscriptionSpeechRecognizer,
)
from src.client.session import SessionPhase, VoiceSession
from src.errors import NetworkError, QuotaExceeded, UnknownError
from src.languages import get_language

REPLY_AUDIO = b"ID3-reply"


def _fake_api(response: str = "Sure! Two biryanis.", audio: bytes | None = REPLY_AUDIO):
    api = MagicMock()
    result = {"success": True, "response": response, "language": "en-US"}
    if audio is not None:
        result["audio"] = base64.b64encode(audio).decode()
    api.process_command = AsyncMock(return_value=result)
    api.text_to_speech = AsyncMock(return_value=b"tts-fallback")
    api.close = AsyncMock()
    return api


class _SessionTestCase(unittest.IsolatedAsyncioTestCase):

    def make_session(self, api=None, language="en-US"):
        self.api = api or _fake_api()
        self.recognizer = ScriptedSpeechRecognizer()
        self.player = NullAudioPlayer()
        self.session = VoiceSession(self.api, self.recognizer, self.player, language)
        self.history = []
        self.session.subscribe(self.history.append)
        return self.session


class TestListening(_SessionTestCase):

    async def test_start_listening(self):
        session = self.make_session(language="hi-IN")
        session.start_listening()

        self.assertEqual(session.state.phase, SessionPhase.LISTENING)
        self.assertTrue(session.state.is_listening)
        self.assertTrue(self.recognizer.active)
        self.assertEqual(self.recognizer.config.language, "hi-IN")
        self.assertTrue(self.recognizer.config.continuous)
        self.assertTrue(self.recognizer.config.interim_results)

    async def test_interim_updates_transcript_only(self):
        session = self.make_session()
        session.start_listening()
        self.recognizer.emit_interim("I want")
        self.recognizer.emit_interim("I want two")

        self.assertEqual(session.state.transcript, "I want two")
        self.assertEqual(session.state.phase, SessionPhase.LISTENING)
        self.api.process_command.assert_not_called()

    async def test_stop_discards_transcript(self):
        session = self.make_session()
        session.start_listening()
        self.recognizer.emit_interim("I want")
        session.stop_listening()

        self.assertEqual(session.state.phase, SessionPhase.IDLE)
        self.assertEqual(session.state.transcript, "")
        self.assertFalse(self.recognizer.active)
        self.api.process_command.assert_not_called()

    async def test_toggle(self):
        session = self.make_session()
        session.toggle_listening()
        self.assertTrue(session.state.is_listening)
        session.toggle_listening()
        self.assertFalse(session.state.is_listening)

    async def test_set_language_restarts_recognition(self):
        session = self.make_session()
        session.start_listening()
        session.set_language("es-ES")

        self.assertEqual(self.recognizer.start_count, 2)
        self.assertEqual(self.recognizer.config.language, "es-ES")
        self.assertTrue(session.state.is_listening)

    async def test_set_unsupported_language_rejected(self):
        session = self.make_session()
        with self.assertRaises(ValueError):
            session.set_language("fr-FR")


class TestProcessing(_SessionTestCase):

    async def test_final_result_is_processed_and_played(self):
        session = self.make_session()
        session.start_listening()
        self.recognizer.emit_final("I want 2 biryanis from Khana House")

        self.assertFalse(self.recognizer.active)
        await session.wait_until_idle()

        self.api.process_command.assert_awaited_once_with(
            "I want 2 biryanis from Khana House", "en-US"
        )
        self.assertEqual(self.player.played, [REPLY_AUDIO])
        self.assertEqual(session.state.phase, SessionPhase.IDLE)
        self.assertEqual(session.state.response, "Sure! Two biryanis.")
        self.assertFalse(session.state.is_processing)

        phases = [s.phase for s in self.history]
        self.assertLess(phases.index(SessionPhase.FINALIZING), phases.index(SessionPhase.PROCESSING))

    async def test_never_listening_and_processing_together(self):
        session = self.make_session()
        session.start_listening()
        self.recognizer.emit_interim("I want")
        self.recognizer.emit_final("I want pizza")
        await session.wait_until_idle()

        for state in self.history:
            self.assertFalse(state.is_listening and state.is_processing)

    async def test_falls_back_to_synthesis_without_audio(self):
        session = self.make_session(api=_fake_api(audio=None))
        await session.submit_text("hello")

        self.api.text_to_speech.assert_awaited_once_with("Sure! Two biryanis.", "en-US")
        self.assertEqual(self.player.played, [b"tts-fallback"])

    async def test_blank_final_returns_to_idle(self):
        session = self.make_session()
        session.start_listening()
        self.recognizer.emit_final("   ")

        self.assertEqual(session.state.phase, SessionPhase.IDLE)
        self.api.process_command.assert_not_called()

    async def test_final_during_processing_is_dropped(self):
        release = asyncio.Event()
        api = _fake_api()

        async def _slow_process(text, language):
            await release.wait()
            return {"response": "ok"}

        api.process_command = AsyncMock(side_effect=_slow_process)
        session = self.make_session(api=api)
        session.start_listening()
        self.recognizer.emit_final("first")
        await asyncio.sleep(0)

        self.assertEqual(session.state.phase, SessionPhase.PROCESSING)
        session._on_result("second", True)
        session.start_listening()
        self.assertFalse(session.state.is_listening)

        release.set()
        await session.wait_until_idle()
        self.assertEqual(api.process_command.await_count, 1)
        self.assertEqual(session.state.phase, SessionPhase.IDLE)


class TestErrors(_SessionTestCase):

    async def test_backend_failure_sets_localized_error(self):
        api = _fake_api()
        api.process_command = AsyncMock(side_effect=NetworkError("connection refused"))
        session = self.make_session(api=api, language="es-ES")
        await session.submit_text("hola")

        self.assertEqual(session.state.phase, SessionPhase.ERROR)
        self.assertFalse(session.state.is_processing)
        self.assertEqual(session.state.error, get_language("es-ES").text("error.network"))

    async def test_quota_uses_busy_message(self):
        api = _fake_api()
        api.process_command = AsyncMock(side_effect=QuotaExceeded("HTTP 429"))
        session = self.make_session(api=api)
        await session.submit_text("hello")

        self.assertEqual(session.state.error, get_language("en-US").text("error.busy"))

    async def test_unexpected_failure_is_not_stuck(self):
        api = _fake_api()
        api.process_command = AsyncMock(side_effect=RuntimeError("boom"))
        session = self.make_session(api=api)
        await session.submit_text("hello")

        self.assertEqual(session.state.phase, SessionPhase.ERROR)
        session.start_listening()
        self.assertEqual(session.state.phase, SessionPhase.LISTENING)
        self.assertIsNone(session.state.error)

    async def test_recognizer_permission_error(self):
        session = self.make_session(language="hi-IN")
        session.start_listening()
        self.recognizer.emit_error("not-allowed")

        self.assertEqual(session.state.phase, SessionPhase.ERROR)
        self.assertFalse(session.state.is_listening)
        self.assertFalse(self.recognizer.active)
        self.assertEqual(session.state.error, get_language("hi-IN").text("error.permission"))

    async def test_recognizer_start_failure(self):
        session = self.make_session()
        self.recognizer.start = MagicMock(side_effect=OSError("no microphone"))
        session.start_listening()

        self.assertEqual(session.state.phase, SessionPhase.ERROR)
        self.assertEqual(session.state.error, get_language("en-US").text("error.audio"))

    async def test_close(self):
        session = self.make_session()
        session.start_listening()
        await session.close()

        self.assertFalse(self.recognizer.active)
        self.api.close.assert_awaited_once()


class TestTranscriptionSpeechRecognizer(unittest.IsolatedAsyncioTestCase):

    async def test_utterances_become_final_results(self):
        clips = [b"wav-1", b"wav-2", None]

        async def _capture():
            return clips.pop(0)

        api = MagicMock()
        api.speech_to_text = AsyncMock(side_effect=[("hello", "en-US"), ("", "en-US")])
        results, errors = [], []

        recognizer = TranscriptionSpeechRecognizer(api, _capture)
        recognizer.start(
            RecognitionConfig("en-US"),
            lambda text, final: results.append((text, final)),
            errors.append,
        )
        await recognizer._task

        self.assertEqual(results, [("hello", True)])
        self.assertEqual(errors, [])

    async def test_network_failure_reported(self):
        async def _capture():
            return b"wav"

        api = MagicMock()
        api.speech_to_text = AsyncMock(side_effect=NetworkError("down"))
        errors = []

        recognizer = TranscriptionSpeechRecognizer(api, _capture)
        recognizer.start(RecognitionConfig("en-US"), lambda *a: None, errors.append)
        await recognizer._task

        self.assertEqual(errors, ["network"])


class TestVoiceApiClient(unittest.IsolatedAsyncioTestCase):

    def _session(self, status=200, body=None, error=None):
        session = MagicMock()
        session.closed = False
        if error is not None:
            session.post.side_effect = error
            return session
        resp = MagicMock()
        resp.status = status
        resp.json = AsyncMock(return_value=body)
        session.post.return_value.__aenter__.return_value = resp
        return session

    async def test_anonymous_request_has_no_auth_header(self):
        http = self._session(body={"success": True, "response": "hi"})
        client = VoiceApiClient("http://api.test/", session=http)
        body = await client.process_command("hello")

        self.assertEqual(body["response"], "hi")
        args, kwargs = http.post.call_args
        self.assertEqual(args[0], "http://api.test/api/voice/process")
        self.assertEqual(kwargs["headers"], {})
        self.assertEqual(kwargs["json"], {"text": "hello"})

    async def test_bearer_token_attached(self):
        http = self._session(body={"success": True})
        client = VoiceApiClient("http://api.test", token="abc", session=http)
        await client.process_command("hello", "es-ES")

        kwargs = http.post.call_args.kwargs
        self.assertEqual(kwargs["headers"], {"Authorization": "Bearer abc"})
        self.assertEqual(kwargs["json"], {"text": "hello", "language": "es-ES"})

    async def test_text_to_speech_decodes_audio(self):
        http = self._session(body={"success": True, "data": {"audio": base64.b64encode(b"mp3").decode()}})
        client = VoiceApiClient("http://api.test", session=http)
        self.assertEqual(await client.text_to_speech("hi", "en-US"), b"mp3")

    async def test_quota_status_maps_to_quota_exceeded(self):
        http = self._session(status=429, body={"success": False, "message": "busy", "retryable": True})
        client = VoiceApiClient("http://api.test", session=http)
        with self.assertRaises(QuotaExceeded):
            await client.process_command("hello")

    async def test_connection_failure_maps_to_network_error(self):
        http = self._session(error=aiohttp.ClientConnectionError("refused"))
        client = VoiceApiClient("http://api.test", session=http)
        with self.assertRaises(NetworkError):
            await client.process_command("hello")

    def test_error_from_response_keeps_retryable(self):
        error = _error_from_response(502, {"message": "tts down", "retryable": True})
        self.assertIsInstance(error, UnknownError)
        self.assertTrue(error.retryable)
        self.assertEqual(error.user_message, "tts down")


if __name__ == "__main__":
    unittest.main()
