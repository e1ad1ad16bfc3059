# src/nlp/__init__.py
# ====================
# Language Layer — VoiceOrder
#
# Hosted-model text services used by the voice pipeline:
#   - Language detection (fail-open)       → language_detector.py
#   - Intent analysis with rate-limit retry → intent.py
#   - Model output parsing (pure)           → response_parser.py
#   - Localized reply templates             → responder.py
#   - Translation                           → translator.py

from src.nlp.intent import (  # noqa: F401
    IntentAnalyzer,
    IntentEntities,
    IntentLabel,
    IntentResult,
    OrderItem,
)
from src.nlp.language_detector import LanguageDetector  # noqa: F401
from src.nlp.translator import Translator  # noqa: F401

__all__ = [
    "IntentAnalyzer",
    "IntentEntities",
    "IntentLabel",
    "IntentResult",
    "OrderItem",
    "LanguageDetector",
    "Translator",
]
