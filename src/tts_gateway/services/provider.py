"""
Speech Provider Clients.

The gateway treats the speech synthesis backend as an opaque collaborator:
it accepts text plus a model identifier and answers with a stream of audio
byte chunks.

    - SpeechProvider: interface used by SynthesisProxy
    - DeepgramProvider: Deepgram Text-to-Speech REST client (httpx)

Deepgram request:
    POST {base_url}/v1/speak?model=aura-2-thalia-en
    Authorization: Token <api key>
    {"text": "Hello"}

Implementing another provider:
    Subclass SpeechProvider, implement open_stream(), and pass an instance
    to create_app(settings, provider=...).
"""
from __future__ import annotations

import json
from typing import AsyncIterator, Optional

import httpx

from tts_gateway.core.config import ProviderConfig
from tts_gateway.core.logging import debug, get_logger
from tts_gateway.services.errors import ProviderError

_LOG = get_logger("tts-gateway.provider")


class SpeechProvider:
    """
    Base class for speech synthesis backends.

    Subclasses must implement open_stream(). aclose() is called once on
    application shutdown.
    """

    name = "base"

    async def open_stream(self, text: str, model: str) -> Optional[AsyncIterator[bytes]]:
        """
        Start a synthesis request.

        Returns:
            Async iterator of audio chunks in playback order, or None if
            the backend produced no stream at all.

        Raises:
            ProviderError: If the backend rejected or failed the request.
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


def _error_message(status_code: int, body: bytes) -> str:
    """Extract a human-readable message from a Deepgram error body."""
    text = body.decode("utf-8", errors="replace").strip()
    try:
        payload = json.loads(text)
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        for key in ("err_msg", "message", "details", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return text or f"Deepgram request failed with HTTP {status_code}"


class DeepgramProvider(SpeechProvider):
    """
    Deepgram Text-to-Speech client.

    The response body is streamed: open_stream() returns as soon as the
    response headers arrive, and audio chunks are read lazily.

    Attributes:
        timeout_s: Upper bound for connect/read/write on the upstream call.
    """

    name = "deepgram"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.deepgram.com",
        timeout_s: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_s),
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: ProviderConfig) -> "DeepgramProvider":
        if not config.api_key:
            raise ValueError("provider api_key is required")
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout_s=config.timeout_s,
        )

    async def open_stream(self, text: str, model: str) -> Optional[AsyncIterator[bytes]]:
        request = self._client.build_request(
            "POST",
            f"{self._base_url}/v1/speak",
            params={"model": model},
            json={"text": text},
            headers={"Authorization": f"Token {self._api_key}"},
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise ProviderError(f"Deepgram request timed out after {self.timeout_s}s") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Deepgram request failed: {e}") from e

        debug(_LOG, "provider_response", status=response.status_code,
              content_type=response.headers.get("content-type"))

        if response.is_error:
            body = await response.aread()
            await response.aclose()
            raise ProviderError(
                _error_message(response.status_code, body),
                status_code=response.status_code,
            )

        if response.headers.get("content-length") == "0":
            await response.aclose()
            return None

        return self._iter_body(response)

    async def _iter_body(self, response: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_bytes():
                if chunk:
                    yield chunk
        except httpx.HTTPError as e:
            raise ProviderError(f"Deepgram audio stream interrupted: {e}") from e
        finally:
            await response.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()
