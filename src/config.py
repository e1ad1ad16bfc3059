"""
src/config.py
==============
Application Settings — VoiceOrder

Responsibility:
    - Read every setting the voice pipeline needs from the process
      environment (``.env`` is loaded via python-dotenv)
    - Validate required credentials up front and FAIL FAST with a
      ConfigurationError that names every missing or invalid variable

Settings are returned as an immutable dataclass and passed explicitly to
the services that need them. Nothing in this module is cached globally.

Environment variables:
    OPENAI_API_KEY                  (required) hosted language model
    GOOGLE_CLOUD_API_KEY            (required) speech-to-text + Google TTS
    ELEVENLABS_API_KEY              (required when TTS_PROVIDER=elevenlabs)
    TTS_PROVIDER                    google | elevenlabs (default: google)
    LLM_MODEL                       default: gpt-4o-mini
    EXTERNAL_CALL_TIMEOUT_SECONDS   default: 30
    DEFAULT_LANGUAGE                default: en-US
    LOG_LEVEL                       default: INFO
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv

from src.errors import ConfigurationError
from src.languages import DEFAULT_LANGUAGE_CODE, is_supported

logger = logging.getLogger("voiceorder.config")

TTS_PROVIDERS: tuple[str, ...] = ("google", "elevenlabs")
_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    """Validated runtime configuration."""

    openai_api_key: str
    google_cloud_api_key: str
    elevenlabs_api_key: str | None = None
    tts_provider: str = "google"
    llm_model: str = "gpt-4o-mini"
    request_timeout: float = 30.0
    default_language: str = DEFAULT_LANGUAGE_CODE
    log_level: str = "INFO"


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ`` after
                 loading ``.env`` from the working directory.

    Returns:
        Validated Settings.

    Raises:
        ConfigurationError: If any required variable is missing or any
                            variable holds an invalid value.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    problems: list[str] = []

    def _get(name: str) -> str | None:
        value = environ.get(name)
        if value is None:
            return None
        value = value.strip()
        return value or None

    openai_key = _get("OPENAI_API_KEY")
    if not openai_key:
        problems.append("OPENAI_API_KEY is not set")

    google_key = _get("GOOGLE_CLOUD_API_KEY")
    if not google_key:
        problems.append("GOOGLE_CLOUD_API_KEY is not set")

    provider = (_get("TTS_PROVIDER") or "google").lower()
    if provider not in TTS_PROVIDERS:
        problems.append(
            f"TTS_PROVIDER must be one of {', '.join(TTS_PROVIDERS)}, got {provider!r}"
        )

    elevenlabs_key = _get("ELEVENLABS_API_KEY")
    if provider == "elevenlabs" and not elevenlabs_key:
        problems.append("ELEVENLABS_API_KEY is not set (required for TTS_PROVIDER=elevenlabs)")

    raw_timeout = _get("EXTERNAL_CALL_TIMEOUT_SECONDS") or "30"
    try:
        timeout = float(raw_timeout)
        if timeout <= 0:
            raise ValueError
    except ValueError:
        problems.append(
            f"EXTERNAL_CALL_TIMEOUT_SECONDS must be a positive number, got {raw_timeout!r}"
        )
        timeout = 30.0

    default_language = _get("DEFAULT_LANGUAGE") or DEFAULT_LANGUAGE_CODE
    if not is_supported(default_language):
        problems.append(f"DEFAULT_LANGUAGE {default_language!r} is not a supported language")

    log_level = (_get("LOG_LEVEL") or "INFO").upper()
    if log_level not in _LOG_LEVELS:
        problems.append(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {log_level!r}")

    if problems:
        raise ConfigurationError("Invalid configuration: " + "; ".join(problems))

    settings = Settings(
        openai_api_key=openai_key,
        google_cloud_api_key=google_key,
        elevenlabs_api_key=elevenlabs_key,
        tts_provider=provider,
        llm_model=_get("LLM_MODEL") or "gpt-4o-mini",
        request_timeout=timeout,
        default_language=default_language,
        log_level=log_level,
    )

    logger.info(
        "Configuration loaded: model=%s, tts_provider=%s, timeout=%.0fs, default_language=%s",
        settings.llm_model,
        settings.tts_provider,
        settings.request_timeout,
        settings.default_language,
    )
    return settings
