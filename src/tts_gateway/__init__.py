"""
tts-gateway: Text-to-Speech API gateway.

A small FastAPI backend that proxies text-to-speech requests to Deepgram
and serves the frontend's index page.

Key Features:
    - POST /api/text-to-speech: text in, audio bytes out
    - JWT session tokens, optionally gated by single-use page nonces
    - GET /api/metadata: project metadata from deepgram.toml
    - CORS headers on every response
    - Open deployment mode without session auth (POST /tts/synthesize)

Example Usage:
    >>> from tts_gateway.core.config import Settings
    >>> from tts_gateway.main import create_app
    >>>
    >>> settings = Settings.from_raw({"provider": {"api_key": "dg-key"}})
    >>> app = create_app(settings)
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
