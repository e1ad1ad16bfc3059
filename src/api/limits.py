"""
src/api/limits.py
==================
Per-client request limits — VoiceOrder HTTP surface

Two budgets, keyed by client IP address, over a 15 minute window:

    voice  100 requests, shared by /process, /text-to-speech and /translate
    audio   30 requests, /speech-to-text (uploads are the expensive path)

Read-only routes (/supported-languages, /health) are not limited.
Counters live in process memory, so each worker enforces its own budget.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

VOICE_RATE_LIMIT = "100 per 15 minutes"
AUDIO_RATE_LIMIT = "30 per 15 minutes"

VOICE_LIMIT_MESSAGE = "Too many voice requests, please try again later."
AUDIO_LIMIT_MESSAGE = "Too many audio processing requests, please try again later."

limiter = Limiter(key_func=get_remote_address)

voice_limit = limiter.shared_limit(
    VOICE_RATE_LIMIT, scope="voice", error_message=VOICE_LIMIT_MESSAGE
)
audio_limit = limiter.limit(AUDIO_RATE_LIMIT, error_message=AUDIO_LIMIT_MESSAGE)
