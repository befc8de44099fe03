"""
Synthesis Proxy.

Forwards validated text and a model identifier to the speech provider and
returns the complete audio as one byte buffer.

Pipeline:
    validate text → resolve model → provider.open_stream() → collect_chunks()

Error Classification:
    The upstream does not expose a structured "input too long" code, so
    classify_provider_error() looks for length-related words in the
    provider's message. It is the only place that heuristic lives.

        "...too long..." / "length" / "limit" / "exceed"  → TEXT_TOO_LONG (400)
        anything else                                     → SYNTHESIS_FAILED (500)
"""
from __future__ import annotations

import time
from typing import Any, AsyncIterable, Optional

from tts_gateway.core.logging import fail, get_logger, info, success, verbose, warn
from tts_gateway.services.errors import ErrorCode, GatewayError, SynthesisError
from tts_gateway.services.provider import SpeechProvider
from tts_gateway.services.validators import validate_model, validate_text

_LOG = get_logger("tts-gateway.synthesis")

AUDIO_MEDIA_TYPE = "application/octet-stream"
TEXT_TOO_LONG_MARKERS = ("too long", "length", "limit", "exceed")


async def collect_chunks(chunks: AsyncIterable[bytes]) -> bytes:
    """
    Read an ordered stream of byte chunks into one contiguous buffer.

    Chunks are joined in arrival order with nothing inserted between them.
    """
    parts = []
    async for chunk in chunks:
        parts.append(bytes(chunk))
    return b"".join(parts)


def classify_provider_error(exc: BaseException) -> SynthesisError:
    """Map an upstream failure to the SynthesisError reported to clients."""
    message = str(exc) or "An error occurred during synthesis"
    lowered = message.lower()
    if any(marker in lowered for marker in TEXT_TOO_LONG_MARKERS):
        return SynthesisError(message, ErrorCode.TEXT_TOO_LONG, 400, cause=exc)
    return SynthesisError(message, ErrorCode.SYNTHESIS_FAILED, 500, cause=exc)


class SynthesisProxy:
    """
    Text-to-speech front for a SpeechProvider.

    Usage:
        proxy = SynthesisProxy(DeepgramProvider(api_key), "aura-2-thalia-en")
        audio = await proxy.synthesize("Hello there")
    """

    def __init__(self, provider: SpeechProvider, default_model: str):
        self.provider = provider
        self.default_model = default_model

    async def synthesize(self, text: Any, model: Optional[str] = None) -> bytes:
        """
        Synthesize text to audio bytes.

        Raises:
            ValidationError: INVALID_INPUT for missing/blank text.
            SynthesisError: SYNTHESIS_FAILED, or TEXT_TOO_LONG when the
                provider rejects the input length.
        """
        text = validate_text(text)
        model = validate_model(model, self.default_model)

        info(_LOG, "synthesis_request", chars=len(text), model=model)
        t0 = time.perf_counter()

        try:
            stream = await self.provider.open_stream(text, model)
            if stream is None:
                raise SynthesisError("No audio stream returned from provider")
            t_first = time.perf_counter()
            audio = await collect_chunks(stream)
        except GatewayError as e:
            fail(_LOG, "synthesis_failed", error=e.message, code=e.code)
            raise
        except Exception as e:
            err = classify_provider_error(e)
            fail(_LOG, "synthesis_failed", error=err.message, code=err.code,
                 error_type=type(e).__name__)
            raise err from e

        t_done = time.perf_counter()
        verbose(_LOG, "stage", event="provider_headers", seconds=round(t_first - t0, 4))
        verbose(_LOG, "stage", event="stream_read", seconds=round(t_done - t_first, 4))
        if not audio:
            warn(_LOG, "synthesis_empty_audio", model=model)
        success(_LOG, "synthesis_done", bytes=len(audio), seconds=round(t_done - t0, 3))
        return audio
