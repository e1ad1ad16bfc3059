"""
tests/test_config.py
=====================
Settings loading — fail-fast validation of the environment
"""

import os
import sys
import unittest
from dataclasses import fields

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from src.config import Settings, load_settings
from src.errors import ConfigurationError


BASE_ENV = {
    "OPENAI_API_KEY": "sk-test",
    "GOOGLE_CLOUD_API_KEY": "g-test",
}


class TestLoadSettings(unittest.TestCase):

    def test_defaults(self):
        settings = load_settings(dict(BASE_ENV))
        self.assertEqual(settings.tts_provider, "google")
        self.assertEqual(settings.llm_model, "gpt-4o-mini")
        self.assertEqual(settings.request_timeout, 30.0)
        self.assertEqual(settings.default_language, "en-US")
        self.assertEqual(settings.log_level, "INFO")
        self.assertIsNone(settings.elevenlabs_api_key)

    def test_missing_keys_are_all_named(self):
        with self.assertRaises(ConfigurationError) as ctx:
            load_settings({})
        message = str(ctx.exception)
        self.assertIn("OPENAI_API_KEY", message)
        self.assertIn("GOOGLE_CLOUD_API_KEY", message)

    def test_blank_key_counts_as_missing(self):
        env = dict(BASE_ENV, OPENAI_API_KEY="   ")
        with self.assertRaises(ConfigurationError) as ctx:
            load_settings(env)
        self.assertIn("OPENAI_API_KEY", str(ctx.exception))

    def test_elevenlabs_requires_its_key(self):
        env = dict(BASE_ENV, TTS_PROVIDER="elevenlabs")
        with self.assertRaises(ConfigurationError) as ctx:
            load_settings(env)
        self.assertIn("ELEVENLABS_API_KEY", str(ctx.exception))

    def test_elevenlabs_with_key(self):
        env = dict(BASE_ENV, TTS_PROVIDER="ElevenLabs", ELEVENLABS_API_KEY="el-test")
        settings = load_settings(env)
        self.assertEqual(settings.tts_provider, "elevenlabs")
        self.assertEqual(settings.elevenlabs_api_key, "el-test")

    def test_unknown_provider_rejected(self):
        with self.assertRaises(ConfigurationError):
            load_settings(dict(BASE_ENV, TTS_PROVIDER="polly"))

    def test_invalid_timeout_rejected(self):
        for raw in ("abc", "0", "-5"):
            with self.assertRaises(ConfigurationError):
                load_settings(dict(BASE_ENV, EXTERNAL_CALL_TIMEOUT_SECONDS=raw))

    def test_unsupported_default_language_rejected(self):
        with self.assertRaises(ConfigurationError):
            load_settings(dict(BASE_ENV, DEFAULT_LANGUAGE="fr-FR"))

    def test_invalid_log_level_rejected(self):
        with self.assertRaises(ConfigurationError):
            load_settings(dict(BASE_ENV, LOG_LEVEL="chatty"))

    def test_overrides(self):
        env = dict(
            BASE_ENV,
            LLM_MODEL="gpt-4o",
            EXTERNAL_CALL_TIMEOUT_SECONDS="12.5",
            DEFAULT_LANGUAGE="hi-IN",
            LOG_LEVEL="debug",
        )
        settings = load_settings(env)
        self.assertEqual(settings.llm_model, "gpt-4o")
        self.assertEqual(settings.request_timeout, 12.5)
        self.assertEqual(settings.default_language, "hi-IN")
        self.assertEqual(settings.log_level, "DEBUG")

    def test_settings_fields(self):
        self.assertEqual(
            [f.name for f in fields(Settings)],
            [
                "openai_api_key",
                "google_cloud_api_key",
                "elevenlabs_api_key",
                "tts_provider",
                "llm_model",
                "request_timeout",
                "default_language",
                "log_level",
            ],
        )


if __name__ == "__main__":
    unittest.main()
