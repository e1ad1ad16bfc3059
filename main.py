"""
main.py
========
Central entry point for the VoiceOrder backend.

Run with:
    uvicorn main:app --reload

Configuration is validated before the app is built: a missing credential
stops the process here with a ConfigurationError instead of failing on
the first request.
"""

import logging

# Configure logging for the entire application
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Suppress SDK internal HTTP/transport logs so only pipeline logs appear.
for _transport_logger_name in (
    "openai",
    "openai._base_client",
    "httpx",
    "httpcore",
    "urllib3",
):
    logging.getLogger(_transport_logger_name).setLevel(logging.CRITICAL)

from src.api import create_app  # noqa: E402
from src.config import load_settings  # noqa: E402
from src.pipeline import build_pipeline  # noqa: E402

settings = load_settings()  # Loads .env and fails fast on missing keys
logging.getLogger().setLevel(settings.log_level)

app = create_app(build_pipeline(settings))

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
