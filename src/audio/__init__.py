# src/audio/__init__.py
# ======================
# Audio Layer — VoiceOrder
#
# Upload validation and conversion to 16 kHz mono LINEAR16 PCM before
# speech-to-text (see normalizer.py).
