# src/api/__init__.py
# ====================
# HTTP Layer — VoiceOrder
#
# FastAPI router for the voice endpoints and the create_app() factory.
# main.py builds the app from validated settings.

from src.api.voice import create_app  # noqa: F401

__all__ = ["create_app"]
