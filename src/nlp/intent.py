"""
src/nlp/intent.py
==================
Intent Analyzer — VoiceOrder

Responsibility:
    - Send a customer utterance and its language to the hosted model with a
      fixed food-ordering prompt
    - Parse the structured result (intent, entities, confidence, reply)
      from the model's raw text, tolerating markdown-wrapped JSON
    - Retry rate-limited calls (see src.llm_retry) and type the final
      failure as QuotaExceeded, InvalidCredentials or AnalysisFailed

Allowed intent labels (enum):
    order_food, search_restaurant, check_status, unknown

Parsing is strict about structure: an unparseable response or an intent
outside the enum is an AnalysisFailed error, never a guessed default.
Confidence is clamped to [0, 1].

This module does NOT:
    - Detect language (see src.nlp.language_detector)
    - Synthesize speech
    - Keep any state between calls
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from src.errors import AnalysisFailed, InvalidCredentials, QuotaExceeded
from src.llm_retry import (
    MAX_ATTEMPTS,
    chat_completions_with_retry,
    is_credentials_error,
    is_rate_limit_error,
)
from src.nlp.response_parser import parse_json_object

logger = logging.getLogger("voiceorder.nlp.intent")


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


class IntentLabel(str, Enum):
    """Allowed food-ordering intent labels."""

    ORDER_FOOD = "order_food"
    SEARCH_RESTAURANT = "search_restaurant"
    CHECK_STATUS = "check_status"
    UNKNOWN = "unknown"


_VALID_INTENT_LABELS: set[str] = {member.value for member in IntentLabel}


@dataclass(frozen=True)
class OrderItem:
    name: str
    quantity: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "quantity": self.quantity}


@dataclass(frozen=True)
class IntentEntities:
    restaurant: str | None = None
    items: tuple[OrderItem, ...] | None = None
    location: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "restaurant": self.restaurant,
            "items": [item.to_dict() for item in self.items] if self.items else None,
            "location": self.location,
        }


@dataclass(frozen=True)
class IntentResult:
    """Structured interpretation of one utterance."""

    intent: IntentLabel
    entities: IntentEntities = field(default_factory=IntentEntities)
    confidence: float = 0.0
    language: str = "en-US"
    response: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent.value,
            "entities": self.entities.to_dict(),
            "confidence": self.confidence,
            "language": self.language,
            "response": self.response,
        }


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

_PROMPT_TEMPLATE: str = (
    "You are the voice assistant of a food-ordering platform. "
    "Analyze the customer's text and extract their intent.\n\n"
    'Text: "{text}"\n'
    "Language: {language}\n\n"
    "RULES:\n"
    "- Return ONLY a valid JSON object. Do NOT use markdown formatting or code fences.\n"
    '- "intent" MUST be one of: "order_food", "search_restaurant", '
    '"check_status", "unknown".\n'
    '- "confidence" MUST be a number between 0.0 and 1.0.\n'
    '- "response" is a short, friendly reply to the customer written in the '
    "same language as the text.\n"
    "- Use null for anything the customer did not mention.\n\n"
    "SCHEMA:\n"
    "{{\n"
    '  "intent": "order_food" | "search_restaurant" | "check_status" | "unknown",\n'
    '  "entities": {{\n'
    '    "restaurant": string | null,\n'
    '    "items": [{{"name": string, "quantity": number}}] | null,\n'
    '    "location": string | null\n'
    "  }},\n"
    '  "confidence": number,\n'
    '  "language": string,\n'
    '  "response": string\n'
    "}}\n"
)


def _build_prompt(text: str, language: str) -> str:
    return _PROMPT_TEMPLATE.format(text=text, language=language)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _clamp_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AnalysisFailed(
            f"Confidence must be a number, got {type(value).__name__}"
        )
    confidence = float(value)
    if confidence != confidence:  # NaN
        raise AnalysisFailed("Confidence is NaN")
    return round(min(1.0, max(0.0, confidence)), 2)


def _optional_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _parse_quantity(value: Any) -> int:
    """Coerce a quantity to a positive integer; anything unusable becomes 1."""
    if isinstance(value, bool):
        return 1
    try:
        quantity = int(float(value))
    except (TypeError, ValueError):
        return 1
    return quantity if quantity >= 1 else 1


def _parse_items(raw_items: Any) -> tuple[OrderItem, ...] | None:
    if not isinstance(raw_items, list):
        return None

    items: list[OrderItem] = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        name = _optional_text(raw.get("name"))
        if not name:
            continue
        items.append(OrderItem(name=name, quantity=_parse_quantity(raw.get("quantity"))))

    return tuple(items) or None


def _parse_entities(raw_entities: Any) -> IntentEntities:
    if not isinstance(raw_entities, dict):
        return IntentEntities()
    return IntentEntities(
        restaurant=_optional_text(raw_entities.get("restaurant")),
        items=_parse_items(raw_entities.get("items")),
        location=_optional_text(raw_entities.get("location")),
    )


def parse_intent_response(raw: str, language: str) -> IntentResult:
    """
    Parse and validate raw model output into an IntentResult.

    Args:
        raw:      Raw text from the model (may be fenced or padded).
        language: Language the utterance was analyzed in; used when the
                  model omits its own ``language`` field.

    Raises:
        AnalysisFailed: If the output is not a JSON object, the intent is
                        not an allowed label, or confidence is not numeric.
    """
    parsed = parse_json_object(raw)

    label = parsed.get("intent")
    if label not in _VALID_INTENT_LABELS:
        raise AnalysisFailed(
            f"Invalid intent label: {label!r}. "
            f"Must be one of {sorted(_VALID_INTENT_LABELS)}"
        )

    reply = parsed.get("response")

    return IntentResult(
        intent=IntentLabel(label),
        entities=_parse_entities(parsed.get("entities")),
        confidence=_clamp_confidence(parsed.get("confidence")),
        language=_optional_text(parsed.get("language")) or language,
        response=reply.strip() if isinstance(reply, str) else "",
    )


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------


class IntentAnalyzer:
    """Stateless intent analysis over a configured hosted-model client."""

    def __init__(
        self,
        client: Any,
        model: str = "gpt-4o-mini",
        max_attempts: int = MAX_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._client = client
        self._model = model
        self._max_attempts = max_attempts
        self._sleep = sleep

    def analyze_intent(self, text: str, language: str) -> IntentResult:
        """
        Analyze one utterance.

        Raises:
            QuotaExceeded:      Still rate-limited after every attempt.
            InvalidCredentials: The model rejected the configured key.
            AnalysisFailed:     Any other call failure or unparseable output.
        """
        logger.info("Analyzing intent (%d chars, language=%s).", len(text), language)

        try:
            response = chat_completions_with_retry(
                self._client,
                max_attempts=self._max_attempts,
                sleep=self._sleep,
                model=self._model,
                messages=[{"role": "user", "content": _build_prompt(text, language)}],
                temperature=0.0,
                max_tokens=400,
            )
        except Exception as exc:
            raise _classify_call_error(exc) from exc

        try:
            raw_content = response.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError) as exc:
            raise AnalysisFailed(f"Unexpected model response shape: {exc}") from exc

        logger.debug("Raw intent response: %s", raw_content)

        result = parse_intent_response(raw_content, language)

        logger.info(
            "Intent analysis complete: intent=%s, confidence=%.2f",
            result.intent.value,
            result.confidence,
        )
        return result


def _classify_call_error(exc: Exception) -> Exception:
    if is_rate_limit_error(exc):
        logger.error("Intent analysis quota exceeded: %s", exc)
        return QuotaExceeded(f"Hosted model quota exceeded: {exc}")
    if is_credentials_error(exc):
        logger.error("Intent analysis rejected credentials — check OPENAI_API_KEY: %s", exc)
        return InvalidCredentials(f"Hosted model rejected credentials: {exc}")
    logger.error("Intent analysis failed: %s", exc)
    return AnalysisFailed(f"Failed to analyze user intent: {exc}")
