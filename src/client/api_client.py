"""
src/client/api_client.py
=========================
Voice API Client — VoiceOrder

Async HTTP client for the voice endpoints, used by the client-side
VoiceSession. An ``Authorization: Bearer <token>`` header is attached only
when the client holds a token; anonymous use is allowed.

Non-2xx responses are mapped back onto the shared error taxonomy so the
session can pick a user-facing message without inspecting HTTP details.
"""

import asyncio
import base64
import logging
from typing import Any

import aiohttp

from src.errors import NetworkError, QuotaExceeded, UnknownError, VoicePipelineError

logger = logging.getLogger("voiceorder.client.api")


class VoiceApiClient:
    """Thin aiohttp wrapper around /api/voice/*."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: str | None = None,
        timeout: float = 30.0,
        session: aiohttp.ClientSession | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "VoiceApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def set_token(self, token: str | None) -> None:
        self._token = token

    def _headers(self) -> dict[str, str]:
        if self._token:
            return {"Authorization": f"Bearer {self._token}"}
        return {}

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _post(self, path: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            async with self._get_session().post(
                url, headers=self._headers(), timeout=self._timeout, **kwargs
            ) as resp:
                try:
                    body = await resp.json(content_type=None)
                except ValueError:
                    body = {}
                if resp.status >= 400:
                    raise _error_from_response(resp.status, body)
                return body if isinstance(body, dict) else {}
        except VoicePipelineError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("Voice API request to %s failed: %s", url, exc)
            raise NetworkError(f"Voice API request failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def process_command(self, text: str, language: str | None = None) -> dict[str, Any]:
        """POST /api/voice/process → {response, audio?, intent?, language, ...}."""
        payload: dict[str, Any] = {"text": text}
        if language:
            payload["language"] = language
        return await self._post("/api/voice/process", json=payload)

    async def text_to_speech(self, text: str, language: str) -> bytes:
        """POST /api/voice/text-to-speech → decoded audio bytes."""
        body = await self._post(
            "/api/voice/text-to-speech", json={"text": text, "language": language}
        )
        audio = (body.get("data") or {}).get("audio")
        if not audio:
            raise UnknownError("Voice API returned no audio.")
        return base64.b64decode(audio)

    async def speech_to_text(
        self, wav_audio: bytes, language: str | None = None
    ) -> tuple[str, str]:
        """POST /api/voice/speech-to-text → (transcript, language)."""
        form = aiohttp.FormData()
        form.add_field("audio", wav_audio, filename="utterance.wav", content_type="audio/wav")
        if language:
            form.add_field("language", language)
        # Intent is analyzed later through /process
        form.add_field("analyze", "false")
        body = await self._post("/api/voice/speech-to-text", data=form)
        data = body.get("data") or {}
        return data.get("text", ""), data.get("language", language or "")


def _error_from_response(status: int, body: Any) -> VoicePipelineError:
    message = "Voice request failed"
    retryable = False
    if isinstance(body, dict):
        message = body.get("message") or message
        retryable = bool(body.get("retryable", False))

    if status == 429:
        return QuotaExceeded(f"HTTP {status}: {message}", user_message=message)

    error = UnknownError(f"HTTP {status}: {message}", user_message=message)
    error.retryable = retryable
    return error
