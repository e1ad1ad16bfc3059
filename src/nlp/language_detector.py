"""
src/nlp/language_detector.py
=============================
Language Detection — VoiceOrder

Responsibility:
    - Classify free-form text into one of the supported language codes
      using the hosted language model
    - Fall back to the default language when the model answers with
      anything outside the supported set, or when the call fails

Fail-open: detection problems are logged and NEVER raised, so a flaky
model cannot block intent analysis. There is no retry on this path.

This module does NOT:
    - Validate input text (empty text is the caller's concern)
    - Perform intent analysis or translation
"""

import logging
from typing import Any, Iterable

from src.languages import DEFAULT_LANGUAGE_CODE, SUPPORTED_LANGUAGES, supported_codes

logger = logging.getLogger("voiceorder.nlp.language_detector")


def _build_prompt(text: str, codes: Iterable[str], default_code: str) -> str:
    options = ", ".join(codes)
    return (
        "Detect the language of this text and return the language code "
        f"from these options: {options}.\n"
        f"If the language is not supported, return '{default_code}'.\n"
        "Answer with the code only, on a single line.\n"
        f'Text: "{text}"'
    )


def _normalize_answer(raw: str) -> str:
    """Keep the first line of the answer, without quotes or backticks."""
    lines = (raw or "").strip().splitlines()
    first_line = lines[0] if lines else ""
    return first_line.strip().strip("`'\".").strip()


class LanguageDetector:
    """Closed-choice language classifier backed by a hosted chat model."""

    def __init__(
        self,
        client: Any,
        model: str = "gpt-4o-mini",
        default_language: str = DEFAULT_LANGUAGE_CODE,
    ):
        self._client = client
        self._model = model
        self._default = default_language
        self._codes = supported_codes()

    @property
    def default_language(self) -> str:
        return self._default

    def detect_language(self, text: str) -> str:
        """
        Return the supported language code for ``text``.

        Never raises: unsupported answers and call failures both return the
        default language code.
        """
        prompt = _build_prompt(text, self._codes, self._default)

        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.0,
                max_tokens=10,
            )
            answer = _normalize_answer(response.choices[0].message.content or "")
        except Exception as exc:
            logger.error(
                "Language detection failed — defaulting to %s: %s", self._default, exc
            )
            return self._default

        if answer in SUPPORTED_LANGUAGES:
            logger.info("Language detected: %s", answer)
            return answer

        logger.warning(
            "Model answered unsupported language %r — defaulting to %s.",
            answer,
            self._default,
        )
        return self._default
