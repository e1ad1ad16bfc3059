"""
src/nlp/responder.py
=====================
Localized reply templates — VoiceOrder

Used when the model's suggested reply is empty: builds a short spoken
reply from the intent label in the customer's language. Hindi and Urdu
speakers get Roman-script Urdu replies so a single voice can read them.
"""

from src.nlp.intent import IntentResult

_ENGLISH: dict[str, str] = {
    "order_food": "I'd be happy to help you with your order. What would you like to order?",
    "search_restaurant": "I'll help you find restaurants. What type of cuisine are you looking for?",
    "check_status": "Let me check the status of your order for you.",
    "unknown": "I understand your request. How can I help you further?",
}

_SPANISH: dict[str, str] = {
    "order_food": "Con gusto te ayudo con tu pedido. ¿Qué te gustaría pedir?",
    "search_restaurant": "Te ayudaré a encontrar restaurantes. ¿Qué tipo de cocina buscas?",
    "check_status": "Déjame revisar el estado de tu pedido.",
    "unknown": "Entiendo tu solicitud. ¿En qué más puedo ayudarte?",
}

_ROMAN_URDU: dict[str, str] = {
    "order_food": "G bilkul, main aap ka order kar sakta hun. Aap kya order karna chahte hain?",
    "search_restaurant": "Main aap ke liye restaurant dhundta hun. Aap kaun sa cuisine prefer karte hain?",
    "check_status": "Main aap ke order ka status check karta hun.",
    "unknown": "Main samjha, aap ki request clear nahi hui. Kya main aur koi madad kar sakta hun?",
}

_TEMPLATES: dict[str, dict[str, str]] = {
    "en-US": _ENGLISH,
    "es-ES": _SPANISH,
    "hi-IN": _ROMAN_URDU,
    "ur-PK": _ROMAN_URDU,
}

_RESTAURANT_MENTION: dict[str, str] = {
    "en-US": " I see you mentioned {restaurant}.",
    "es-ES": " Veo que mencionaste {restaurant}.",
    "hi-IN": " Main dekh raha hun aap ne {restaurant} mention kiya hai.",
    "ur-PK": " Main dekh raha hun aap ne {restaurant} mention kiya hai.",
}


def template_reply(result: IntentResult, language: str) -> str:
    """Build a localized reply for ``result``."""
    templates = _TEMPLATES.get(language, _ENGLISH)
    reply = templates.get(result.intent.value, templates["unknown"])

    restaurant = result.entities.restaurant
    if restaurant:
        mention = _RESTAURANT_MENTION.get(language, _RESTAURANT_MENTION["en-US"])
        reply += mention.format(restaurant=restaurant)

    return reply


def reply_text(result: IntentResult, language: str) -> str:
    """Prefer the model's suggested reply; fall back to the template."""
    return result.response or template_reply(result, language)
