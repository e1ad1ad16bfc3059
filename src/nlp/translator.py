"""
src/nlp/translator.py
======================
Translator — VoiceOrder

Responsibility:
    - Translate a piece of text into a target language using the hosted model
    - Return the translation only, without markdown or commentary

Translation failures raise TranslationError; there is no silent fallback
to the original text, so callers always know whether they got a
translation back.

This module does NOT:
    - Detect the source language
    - Perform intent analysis
"""

import logging
from typing import Any

from src.errors import TranslationError
from src.languages import SUPPORTED_LANGUAGES
from src.nlp.response_parser import strip_fences

logger = logging.getLogger("voiceorder.nlp.translator")


class Translator:
    """Single-shot text translation through a hosted chat model."""

    def __init__(self, client: Any, model: str = "gpt-4o-mini"):
        self._client = client
        self._model = model

    def translate_text(self, text: str, target_language: str) -> str:
        """
        Translate ``text`` into ``target_language``.

        Args:
            text:            Text to translate.
            target_language: Language code ("hi-IN") or plain name ("Hindi").

        Returns:
            The translated text.

        Raises:
            TranslationError: If the call fails or the model returns nothing.
        """
        if not text.strip():
            return text

        language = SUPPORTED_LANGUAGES.get(target_language)
        target_name = language.display_name if language else target_language

        prompt = (
            f"Translate the following text to {target_name}:\n"
            f'"{text}"\n\n'
            "Provide only the translation without any additional text or explanation."
        )

        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.0,
                max_tokens=1024,
            )
            raw_output = response.choices[0].message.content or ""
        except Exception as exc:
            logger.error("Translation to %s failed: %s", target_name, exc)
            raise TranslationError(f"Failed to translate text: {exc}") from exc

        translated = strip_fences(raw_output).strip().strip('"').strip()
        if not translated:
            raise TranslationError("Model returned an empty translation.")

        logger.info("Translation to %s complete (%d chars).", target_name, len(translated))
        return translated
