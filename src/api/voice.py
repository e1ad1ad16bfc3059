"""
src/api/voice.py
=================
Voice API — VoiceOrder HTTP surface

Endpoints (JSON over HTTP, anonymous use permitted):
    POST /api/voice/process               text command → reply, intent, audio
    POST /api/voice/text-to-speech        text → base64 audio
    POST /api/voice/speech-to-text        audio upload → transcript, language, intent
    POST /api/voice/translate             text → translated text
    GET  /api/voice/supported-languages   language registry
    GET  /api/voice/health                liveness

The pipeline services are blocking clients, so each call runs in a worker
thread (asyncio.to_thread). Errors are mapped to status codes here;
credential problems are reported to operators via logs only. POST routes
are rate limited per client address (see limits.py).
"""

import asyncio
import base64
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, FastAPI, File, Form, Header, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator
from slowapi.errors import RateLimitExceeded

from src.api.limits import audio_limit, limiter, voice_limit
from src.audio.normalizer import (
    AudioNormalizationError,
    AudioValidationError,
    MAX_UPLOAD_BYTES,
    to_linear16,
)
from src.errors import (
    InvalidCredentials,
    QuotaExceeded,
    UnknownError,
    VoicePipelineError,
)
from src.languages import SUPPORTED_LANGUAGES, is_supported
from src.pipeline import AUTO_LANGUAGE, VoicePipeline

logger = logging.getLogger("voiceorder.api")

MAX_TEXT_LENGTH = 1000
INVALID_LANGUAGE_MESSAGE = "Invalid language code"
SUPPORTED_CODES = ", ".join(SUPPORTED_LANGUAGES)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class VoiceCommandRequest(BaseModel):
    text: str = Field(min_length=1, max_length=MAX_TEXT_LENGTH)
    language: str | None = None

    @field_validator("language")
    @classmethod
    def _known_or_auto(cls, value: str | None) -> str | None:
        if value is None or value == AUTO_LANGUAGE or is_supported(value):
            return value
        raise ValueError(INVALID_LANGUAGE_MESSAGE)


class TextToSpeechRequest(BaseModel):
    text: str = Field(min_length=1, max_length=MAX_TEXT_LENGTH)
    language: str = "en-US"

    @field_validator("language")
    @classmethod
    def _known(cls, value: str) -> str:
        if is_supported(value):
            return value
        raise ValueError(INVALID_LANGUAGE_MESSAGE)


class TranslateRequest(BaseModel):
    text: str = Field(min_length=1, max_length=MAX_TEXT_LENGTH)
    target_language: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _pipeline(request: Request) -> VoicePipeline:
    return request.app.state.pipeline


def _error(status_code: int, message: str, retryable: bool = False) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "retryable": retryable},
    )


def _require_text(text: str) -> str:
    text = text.strip()
    if not text:
        raise RequestValidationError([{"loc": ("body", "text"), "msg": "Text is required"}])
    return text


def _require_form_language(language: str | None) -> str | None:
    if language is None or language == AUTO_LANGUAGE or is_supported(language):
        return language
    raise RequestValidationError(
        [{"loc": ("body", "language"), "msg": INVALID_LANGUAGE_MESSAGE}]
    )


def _encode_audio(audio: bytes) -> str:
    return base64.b64encode(audio).decode("ascii")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

router = APIRouter(prefix="/api/voice", tags=["voice"])


@router.post("/process")
@voice_limit
async def process_voice_command(
    body: VoiceCommandRequest,
    request: Request,
    authorization: str | None = Header(default=None),
):
    """Run the full command pipeline and return reply text, intent and audio."""
    text = _require_text(body.text)
    logger.info(
        "Voice command request: %d chars, language=%s, authenticated=%s",
        len(text),
        body.language or "auto",
        bool(authorization),
    )

    result = await asyncio.to_thread(
        _pipeline(request).process_command, text, body.language
    )

    payload = result.to_dict()
    payload["audio"] = _encode_audio(result.audio)
    return {"success": True, **payload}


@router.post("/text-to-speech")
@voice_limit
async def text_to_speech(body: TextToSpeechRequest, request: Request):
    """Synthesize ``text`` and return base64 MP3 audio."""
    text = _require_text(body.text)
    audio = await asyncio.to_thread(
        _pipeline(request).text_to_speech, text, body.language
    )
    return {"success": True, "data": {"audio": _encode_audio(audio)}}


@router.post("/speech-to-text")
@audio_limit
async def speech_to_text(
    request: Request,
    audio: UploadFile = File(...),
    language: str | None = Form(default=None),
    analyze: bool = Form(default=True),
):
    """
    Transcribe an uploaded voice clip, detecting the language when it is
    not given, then analyze the command's intent and choose a reply.

    Send ``analyze=false`` for a bare transcript.
    """
    language = _require_form_language(language)
    audio_bytes = await audio.read(MAX_UPLOAD_BYTES + 1)
    logger.info(
        "Speech-to-text request: %s, %.2f KB, language=%s, analyze=%s",
        audio.content_type,
        len(audio_bytes) / 1024,
        language or "auto",
        analyze,
    )

    pcm = await asyncio.to_thread(to_linear16, audio_bytes, audio.content_type)
    result = await asyncio.to_thread(
        _pipeline(request).transcribe_command, pcm, language, analyze
    )
    return {"success": True, "data": result.to_dict()}


@router.post("/translate")
@voice_limit
async def translate(body: TranslateRequest, request: Request):
    text = _require_text(body.text)
    translated = await asyncio.to_thread(
        _pipeline(request).translate, text, body.target_language
    )
    return {"success": True, "data": {"text": translated}}


@router.get("/supported-languages")
async def supported_languages():
    return {
        "success": True,
        "data": {"languages": [lang.to_dict() for lang in SUPPORTED_LANGUAGES.values()]},
    }


@router.get("/health")
async def health(request: Request):
    pipeline = _pipeline(request)
    return {
        "success": True,
        "data": {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": {
                "textToSpeech": pipeline.synthesizer.provider,
                "speechToText": "google",
                "intentAnalysis": "openai",
            },
        },
    }


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


async def _handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.info("Rejected request to %s: %s", request.url.path, errors)
    if any(tuple(err.get("loc", ()))[-1:] == ("language",) for err in errors):
        return _error(400, f"{INVALID_LANGUAGE_MESSAGE}. Supported: {SUPPORTED_CODES}.")
    return _error(400, "Invalid request. Text is required and must be under 1000 characters.")


async def _handle_rate_limit(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit hit on %s by %s: %s", request.url.path, request.client, exc.detail)
    return _error(429, exc.detail, retryable=True)


async def _handle_audio_validation_error(request: Request, exc: AudioValidationError):
    return _error(400, str(exc))


async def _handle_audio_normalization_error(request: Request, exc: AudioNormalizationError):
    logger.error("Audio normalization failed: %s", exc)
    return _error(422, "Could not process the uploaded audio.")


async def _handle_pipeline_error(request: Request, exc: VoicePipelineError):
    if isinstance(exc, QuotaExceeded):
        logger.warning("Quota exceeded on %s: %s", request.url.path, exc.message)
        return _error(429, exc.user_message, retryable=True)

    if isinstance(exc, InvalidCredentials):
        logger.error("Credential failure on %s: %s", request.url.path, exc.message)
        return _error(502, exc.user_message)

    logger.error(
        "%s on %s: %s", type(exc).__name__, request.url.path, exc.message
    )
    return _error(502, exc.user_message, retryable=exc.retryable)


async def _handle_unexpected_error(request: Request, exc: Exception):
    logger.error("Unexpected error on %s: %s", request.url.path, exc, exc_info=True)
    return _error(500, UnknownError.user_message)


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def create_app(pipeline: VoicePipeline) -> FastAPI:
    """Build the FastAPI application around an already-constructed pipeline."""
    app = FastAPI(
        title="VoiceOrder",
        description="Voice ordering assistant — intent, speech and translation endpoints.",
        version="1.0.0",
    )
    app.state.pipeline = pipeline
    app.state.limiter = limiter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(RateLimitExceeded, _handle_rate_limit)
    app.add_exception_handler(AudioValidationError, _handle_audio_validation_error)
    app.add_exception_handler(AudioNormalizationError, _handle_audio_normalization_error)
    app.add_exception_handler(VoicePipelineError, _handle_pipeline_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)

    app.include_router(router)
    return app
