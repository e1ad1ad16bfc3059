"""
src/errors.py
==============
Error Taxonomy — VoiceOrder

Responsibility:
    - Define the typed errors raised by every adapter in the voice pipeline
    - Carry a user-safe message and a retry hint alongside the operator detail

Propagation policy:
    - The Language Detector never raises (fail-open)
    - Every other adapter raises one of the types below on first failure
    - Only the Intent Analyzer retries, and only on rate limits

This module does NOT:
    - Log anything (callers log with their own context)
    - Map errors to HTTP status codes (see src.api.voice)
"""


class VoicePipelineError(Exception):
    """Base class for all voice pipeline failures."""

    user_message: str = "Something went wrong. Please try again."
    retryable: bool = False

    def __init__(self, message: str, user_message: str | None = None):
        self.message = message
        if user_message is not None:
            self.user_message = user_message
        super().__init__(message)


class ConfigurationError(VoicePipelineError):
    """Raised at startup when required settings are missing or invalid."""

    user_message = "The voice service is not available right now."


# ---------------------------------------------------------------------------
# Intent analysis
# ---------------------------------------------------------------------------


class IntentAnalysisError(VoicePipelineError):
    """Base class for Intent Analyzer failures."""

    user_message = "Sorry, I could not understand that. Please try again."


class QuotaExceeded(IntentAnalysisError):
    """The hosted model kept rate-limiting the request (HTTP 429)."""

    user_message = "The assistant is busy right now. Please try again in a moment."
    retryable = True


class InvalidCredentials(IntentAnalysisError):
    """The hosted model rejected the configured credentials (HTTP 401)."""

    # Credential detail stays in operator logs only.
    user_message = "The voice service is not available right now."


class AnalysisFailed(IntentAnalysisError):
    """Generic analysis failure, including unparseable model output."""


# ---------------------------------------------------------------------------
# Speech adapters
# ---------------------------------------------------------------------------


class TranscriptionError(VoicePipelineError):
    """Raised when speech-to-text conversion fails."""

    user_message = "Sorry, I could not hear that clearly. Please try again."
    retryable = True


class SynthesisError(VoicePipelineError):
    """Raised when text-to-speech conversion fails."""

    user_message = "Sorry, I could not play the response. Please try again."
    retryable = True


class NetworkError(VoicePipelineError):
    """The voice backend could not be reached or timed out."""

    user_message = "Network error. Please check your connection and try again."
    retryable = True


class TranslationError(VoicePipelineError):
    """Raised when translating text through the hosted model fails."""


class UnknownError(VoicePipelineError):
    """Catch-all for failures that fit no other category."""
