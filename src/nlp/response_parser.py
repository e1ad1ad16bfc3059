"""
src/nlp/response_parser.py
===========================
Model Output Parser — VoiceOrder

Pure functions that turn the hosted model's free-text output into a JSON
object. The prompt asks for bare JSON, but models still wrap answers in
markdown fences or add chatter around them, so parsing:

    1. strips ```json / ``` fences
    2. keeps the span from the first "{" to the last "}"
    3. decodes it as JSON and requires an object

Any failure raises AnalysisFailed. Nothing here calls the network.
"""

import json
import re
from typing import Any

from src.errors import AnalysisFailed

_FENCE_OPEN = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)
_OBJECT_SPAN = re.compile(r"\{.*\}", re.DOTALL)


def strip_fences(raw: str) -> str:
    """Remove markdown code fences from model output."""
    return _FENCE_OPEN.sub("", raw or "").strip()


def clean_model_response(raw: str) -> str:
    """Remove markdown fences and surrounding chatter from model output."""
    cleaned = strip_fences(raw)
    match = _OBJECT_SPAN.search(cleaned)
    if match:
        cleaned = match.group(0)
    return cleaned


def parse_json_object(raw: str) -> dict[str, Any]:
    """
    Parse model output into a JSON object.

    Raises:
        AnalysisFailed: If no JSON object can be decoded.
    """
    cleaned = clean_model_response(raw)
    if not cleaned:
        raise AnalysisFailed("Model returned an empty response.")

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise AnalysisFailed(f"Model response is not valid JSON: {raw!r}") from exc

    if not isinstance(parsed, dict):
        raise AnalysisFailed(f"Expected JSON object, got {type(parsed).__name__}")

    return parsed
