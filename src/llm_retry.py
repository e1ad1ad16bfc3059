"""
src/llm_retry.py
=================
Hosted-model retry utility — VoiceOrder

Provides a thin wrapper around ``client.chat.completions.create`` that
retries ONLY on rate-limit failures (HTTP 429) with linear back-off, plus
the classifiers the Intent Analyzer uses to type the final failure.

Usage::

    from src.llm_retry import chat_completions_with_retry

    response = chat_completions_with_retry(
        client,
        model="gpt-4o-mini",
        messages=[...],
        temperature=0.0,
    )

This module does NOT:
    - Create or manage OpenAI client instances
    - Parse model output
    - Retry on server errors, timeouts or connection failures
"""

import logging
import time
from typing import Any, Callable

import openai

logger = logging.getLogger("voiceorder.llm_retry")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

MAX_ATTEMPTS: int = 3          # total attempts, including the first
BACKOFF_STEP_SECONDS: float = 2.0


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


def backoff_delay(attempt: int) -> float:
    """
    Delay before the next attempt, given the 1-based attempt that just failed.

    Linear: attempt 1 → 2s, attempt 2 → 4s.
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return attempt * BACKOFF_STEP_SECONDS


def _status_code(exc: BaseException) -> int | None:
    code = getattr(exc, "status_code", None)
    return code if isinstance(code, int) else None


def is_rate_limit_error(exc: BaseException) -> bool:
    """Return True if the exception signals a 429 rate-limit condition."""
    if isinstance(exc, openai.RateLimitError):
        return True

    # A status code is authoritative; the message is only read without one
    status = _status_code(exc)
    if status is not None:
        return status == 429
    return "429" in str(exc)


def is_credentials_error(exc: BaseException) -> bool:
    """Return True if the exception signals missing or rejected credentials."""
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return True

    status = _status_code(exc)
    if status is not None:
        return status in (401, 403)
    message = str(exc).lower()
    return "401" in message or "api key" in message


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def chat_completions_with_retry(
    client: Any,
    *,
    max_attempts: int = MAX_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any,
) -> Any:
    """
    Call ``client.chat.completions.create(**kwargs)`` with rate-limit retry.

    Rate-limited attempts are retried up to ``max_attempts`` in total, waiting
    ``backoff_delay(attempt)`` seconds in between. Any other error is
    re-raised immediately.

    Args:
        client:       An instantiated ``openai.OpenAI`` client.
        max_attempts: Total attempts allowed.
        sleep:        Blocking sleep function (injectable for tests).
        **kwargs:     Passed directly to ``client.chat.completions.create()``.

    Returns:
        The ChatCompletion response object.

    Raises:
        The last exception if all attempts are exhausted, or the first
        non-retryable exception.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return client.chat.completions.create(**kwargs)
        except Exception as exc:
            if not is_rate_limit_error(exc):
                logger.warning("Model call failed with non-retryable error: %s", exc)
                raise

            if attempt >= max_attempts:
                logger.error(
                    "Model call still rate-limited after %d attempts: %s",
                    max_attempts,
                    exc,
                )
                raise

            delay = backoff_delay(attempt)
            logger.warning(
                "Model call rate-limited (attempt %d/%d) — retrying in %.1fs",
                attempt,
                max_attempts,
                delay,
            )
            sleep(delay)

    raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
