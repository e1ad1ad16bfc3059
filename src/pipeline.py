"""
src/pipeline.py
================
Voice Command Pipeline — VoiceOrder Backend

Responsibility:
    1. Resolve the utterance language (Language Detector when unknown)
    2. Analyze intent (Intent Analyzer)
    3. Choose the reply text (model suggestion, else localized template)
    4. Synthesize the reply (Speech Synthesis Adapter)
    5. Return the assembled result to the HTTP layer

Also exposes the single-step services the HTTP surface proxies:
speech-to-text, text-to-speech and translation.

Every service is constructed once (build_pipeline) and injected; the
pipeline holds no per-request state, so one instance serves concurrent
requests.

This layer MUST NOT:
    - Swallow adapter errors (only the Language Detector fails open)
    - Retry anything itself (the Intent Analyzer owns its retry policy)
"""

import logging
from dataclasses import dataclass
from typing import Any

from openai import OpenAI

from src.config import Settings
from src.languages import is_supported
from src.nlp.intent import IntentAnalyzer, IntentResult
from src.nlp.language_detector import LanguageDetector
from src.nlp.responder import reply_text
from src.nlp.translator import Translator
from src.stt.google_speech import GoogleSpeechTranscriber
from src.tts import SpeechSynthesizer, build_synthesizer

logger = logging.getLogger("voiceorder.pipeline")

AUTO_LANGUAGE = "auto"


@dataclass(frozen=True)
class VoiceCommandResult:
    """Outcome of one processed voice command."""

    text: str
    language: str
    language_detected: bool
    intent: IntentResult
    response: str
    audio: bytes

    def to_dict(self) -> dict[str, Any]:
        return {
            "originalText": self.text,
            "language": self.language,
            "detectedLanguage": self.language if self.language_detected else None,
            "intent": self.intent.to_dict(),
            "response": self.response,
        }


@dataclass(frozen=True)
class SpokenCommandResult:
    """Transcript of an uploaded clip, with its intent when one was analyzed."""

    text: str
    language: str
    language_detected: bool
    intent: IntentResult | None = None
    response: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "language": self.language,
            "detectedLanguage": self.language if self.language_detected else None,
            "intent": self.intent.to_dict() if self.intent else None,
            "confidence": self.intent.confidence if self.intent else None,
            "response": self.response,
        }


class VoicePipeline:
    """Backend orchestration of the voice command services."""

    def __init__(
        self,
        detector: LanguageDetector,
        analyzer: IntentAnalyzer,
        synthesizer: SpeechSynthesizer,
        transcriber: GoogleSpeechTranscriber,
        translator: Translator,
        default_language: str = "en-US",
    ):
        self.detector = detector
        self.analyzer = analyzer
        self.synthesizer = synthesizer
        self.transcriber = transcriber
        self.translator = translator
        self.default_language = default_language

    # ------------------------------------------------------------------
    # Language resolution
    # ------------------------------------------------------------------

    def resolve_language(self, text: str, language: str | None) -> tuple[str, bool]:
        """
        Return (language_code, was_detected).

        Supported codes pass through unchanged. Missing, "auto" or
        unsupported codes trigger detection, which itself never fails.
        """
        if language and language != AUTO_LANGUAGE and is_supported(language):
            return language, False

        if language and language != AUTO_LANGUAGE:
            logger.warning("Unsupported language %r requested — detecting instead.", language)

        return self.detector.detect_language(text), True

    # ------------------------------------------------------------------
    # Voice command
    # ------------------------------------------------------------------

    def process_command(self, text: str, language: str | None = None) -> VoiceCommandResult:
        """
        Full command pipeline: language → intent → reply → speech.

        Raises:
            IntentAnalysisError: From the Intent Analyzer.
            SynthesisError:      From the Speech Synthesis Adapter.
        """
        text = text.strip()
        resolved, detected = self.resolve_language(text, language)

        logger.info(
            "Processing voice command: %d chars, language=%s (%s).",
            len(text),
            resolved,
            "detected" if detected else "requested",
        )

        intent = self.analyzer.analyze_intent(text, resolved)
        response = reply_text(intent, resolved)
        audio = self.synthesizer.text_to_speech(response, resolved)

        logger.info(
            "Voice command processed: intent=%s, reply=%d chars, audio=%d bytes.",
            intent.intent.value,
            len(response),
            len(audio),
        )

        return VoiceCommandResult(
            text=text,
            language=resolved,
            language_detected=detected,
            intent=intent,
            response=response,
            audio=audio,
        )

    # ------------------------------------------------------------------
    # Single-step services
    # ------------------------------------------------------------------

    def text_to_speech(self, text: str, language: str | None = None) -> bytes:
        code = language if is_supported(language) else self.default_language
        return self.synthesizer.text_to_speech(text, code)

    def speech_to_text(self, pcm_audio: bytes, language: str | None = None) -> tuple[str, str]:
        """
        Transcribe LINEAR16 audio.

        When the language is unknown the clip is transcribed with the default
        language and the transcript's language is then detected.

        Returns:
            (transcript, language_code)
        """
        if language and language != AUTO_LANGUAGE and is_supported(language):
            return self.transcriber.speech_to_text(pcm_audio, language), language

        transcript = self.transcriber.speech_to_text(pcm_audio, self.default_language)
        if not transcript.strip():
            return transcript, self.default_language
        return transcript, self.detector.detect_language(transcript)

    def transcribe_command(
        self,
        pcm_audio: bytes,
        language: str | None = None,
        analyze: bool = True,
    ) -> SpokenCommandResult:
        """
        Transcribe a spoken command and, unless ``analyze`` is False,
        analyze its intent and pick the reply text.

        Silent clips skip analysis and come back with an empty transcript.

        Raises:
            TranscriptionError:  From the Speech Transcription Adapter.
            IntentAnalysisError: From the Intent Analyzer.
        """
        requested = language if language and language != AUTO_LANGUAGE else None
        transcript, resolved = self.speech_to_text(pcm_audio, language)
        detected = requested is None or not is_supported(requested)

        if not analyze or not transcript.strip():
            return SpokenCommandResult(transcript, resolved, detected)

        intent = self.analyzer.analyze_intent(transcript.strip(), resolved)
        logger.info(
            "Spoken command analyzed: intent=%s, language=%s.",
            intent.intent.value,
            resolved,
        )
        return SpokenCommandResult(
            text=transcript,
            language=resolved,
            language_detected=detected,
            intent=intent,
            response=reply_text(intent, resolved),
        )

    def translate(self, text: str, target_language: str) -> str:
        return self.translator.translate_text(text, target_language)


def build_pipeline(settings: Settings) -> VoicePipeline:
    """Construct every service from validated settings."""
    client = OpenAI(
        api_key=settings.openai_api_key,
        timeout=settings.request_timeout,
        max_retries=0,
    )

    return VoicePipeline(
        detector=LanguageDetector(
            client, model=settings.llm_model, default_language=settings.default_language
        ),
        analyzer=IntentAnalyzer(client, model=settings.llm_model),
        synthesizer=build_synthesizer(settings),
        transcriber=GoogleSpeechTranscriber(
            settings.google_cloud_api_key, timeout=settings.request_timeout
        ),
        translator=Translator(client, model=settings.llm_model),
        default_language=settings.default_language,
    )
