"""
src/languages.py
=================
Language Registry — VoiceOrder

Responsibility:
    - Static mapping of supported language codes to display metadata
    - Localized UI strings for the voice assistant (prompts and error messages)
    - Lookup helpers used by the detector, synthesizers and the client session

The registry is immutable and built once at import time.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

DEFAULT_LANGUAGE_CODE = "en-US"


@dataclass(frozen=True)
class SupportedLanguage:
    """A language the assistant can listen, reason and speak in."""

    code: str           # BCP 47 (e.g. "en-US")
    display_name: str   # Human-readable (e.g. "English")
    flag: str
    localized_strings: Mapping[str, str] = field(default_factory=dict)

    def text(self, key: str) -> str:
        """Return a localized string, falling back to English."""
        if key in self.localized_strings:
            return self.localized_strings[key]
        return _ENGLISH_STRINGS.get(key, "")

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "name": self.display_name, "flag": self.flag}


# ---------------------------------------------------------------------------
# Localized strings
# ---------------------------------------------------------------------------

_ENGLISH_STRINGS: dict[str, str] = {
    "greeting": "Hello! How can I help you today?",
    "listening": "Listening...",
    "click_to_start": "Click the microphone to start speaking",
    "error.network": "Network error. Please check your connection.",
    "error.permission": "Microphone access denied. Please allow access.",
    "error.audio": "Audio error. Please check your microphone.",
    "error.language": "Language error. Please try again.",
    "error.busy": "The assistant is busy right now. Please try again in a moment.",
    "error.unknown": "An unexpected error occurred.",
}

_SPANISH_STRINGS: dict[str, str] = {
    "greeting": "¡Hola! ¿Cómo puedo ayudarte hoy?",
    "listening": "Escuchando...",
    "click_to_start": "Haz clic en el micrófono para empezar a hablar",
    "error.network": "Error de red. Por favor, verifica tu conexión.",
    "error.permission": "Acceso al micrófono denegado. Por favor, permite el acceso.",
    "error.audio": "Error de audio. Por favor, verifica tu micrófono.",
    "error.language": "Error de idioma. Por favor, inténtalo de nuevo.",
    "error.busy": "El asistente está ocupado. Por favor, inténtalo de nuevo en un momento.",
    "error.unknown": "Ha ocurrido un error inesperado.",
}

_HINDI_STRINGS: dict[str, str] = {
    "greeting": "नमस्ते! मैं आपकी कैसे मदद कर सकता हूं?",
    "listening": "सुन रहा हूं...",
    "click_to_start": "बोलना शुरू करने के लिए माइक्रोफोन पर क्लिक करें",
    "error.network": "नेटवर्क त्रुटि। कृपया अपना कनेक्शन जांचें।",
    "error.permission": "माइक्रोफोन एक्सेस अस्वीकृत। कृपया एक्सेस की अनुमति दें।",
    "error.audio": "ऑडियो त्रुटि। कृपया अपना माइक्रोफोन जांचें।",
    "error.language": "भाषा त्रुटि। कृपया पुनः प्रयास करें।",
    "error.busy": "सहायक अभी व्यस्त है। कृपया थोड़ी देर में पुनः प्रयास करें।",
    "error.unknown": "एक अप्रत्याशित त्रुटि हुई।",
}

_URDU_STRINGS: dict[str, str] = {
    "greeting": "Assalam o Alaikum! Main aap ki kya madad kar sakta hun?",
    "listening": "Sun raha hun...",
    "click_to_start": "Bolna shuru karne ke liye microphone par click karein",
    "error.network": "Network ka masla hai. Apna connection check karein.",
    "error.permission": "Microphone ki ijazat nahi mili. Baraye meharbani ijazat dein.",
    "error.audio": "Audio ka masla hai. Apna microphone check karein.",
    "error.language": "Zaban ka masla hai. Dobara koshish karein.",
    "error.busy": "Assistant abhi masroof hai. Thori dair baad koshish karein.",
    "error.unknown": "Aik ghair mutawaqqa masla pesh aaya.",
}


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_LANGUAGES: tuple[SupportedLanguage, ...] = (
    SupportedLanguage("en-US", "English", "🇺🇸", MappingProxyType(_ENGLISH_STRINGS)),
    SupportedLanguage("es-ES", "Spanish", "🇪🇸", MappingProxyType(_SPANISH_STRINGS)),
    SupportedLanguage("hi-IN", "Hindi", "🇮🇳", MappingProxyType(_HINDI_STRINGS)),
    SupportedLanguage("ur-PK", "Urdu", "🇵🇰", MappingProxyType(_URDU_STRINGS)),
)

SUPPORTED_LANGUAGES: Mapping[str, SupportedLanguage] = MappingProxyType(
    {lang.code: lang for lang in _LANGUAGES}
)


def supported_codes() -> list[str]:
    """Return supported language codes in registry order."""
    return [lang.code for lang in _LANGUAGES]


def is_supported(code: str | None) -> bool:
    return code in SUPPORTED_LANGUAGES


def get_language(code: str | None) -> SupportedLanguage:
    """Look up a language by code, falling back to the default language."""
    return SUPPORTED_LANGUAGES.get(code or "", SUPPORTED_LANGUAGES[DEFAULT_LANGUAGE_CODE])


def get_language_name(code: str | None) -> str:
    return get_language(code).display_name
