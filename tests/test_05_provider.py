"""
Tests for the Deepgram provider client (httpx.MockTransport, no network).

Tests cover:
- Request shape: URL, model query, JSON body, Authorization header
- Streamed body chunks
- Error bodies: JSON message keys, plain text, empty
- Content-Length: 0 → no stream
- Timeouts and connection errors → ProviderError
"""
from __future__ import annotations

import asyncio
import json
import os

import httpx
import pytest

from tts_gateway.core.config import ProviderConfig
from tts_gateway.services.errors import ProviderError
from tts_gateway.services.provider import DeepgramProvider, _error_message
from tts_gateway.services.synthesis import collect_chunks


def _provider(handler, **kwargs) -> DeepgramProvider:
    return DeepgramProvider(
        api_key="dg-key",
        base_url="https://dg.test/",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


async def _speak(provider: DeepgramProvider, text: str = "Hello", model: str = "aura-2-thalia-en"):
    try:
        stream = await provider.open_stream(text, model)
        if stream is None:
            return None
        return await collect_chunks(stream)
    finally:
        await provider.aclose()


class TestRequestShape:
    """The outgoing request matches Deepgram's speak API."""

    def test_request(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["model"] = request.url.params.get("model")
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=b"MP3DATA")

        audio = asyncio.run(_speak(_provider(handler), "Hi there", "aura-2-theia-en"))
        assert audio == b"MP3DATA"
        assert seen == {
            "method": "POST",
            "path": "/v1/speak",
            "model": "aura-2-theia-en",
            "auth": "Token dg-key",
            "body": {"text": "Hi there"},
        }

    def test_from_config(self):
        cfg = ProviderConfig(api_key="k", base_url="https://dg.test", default_model="m", timeout_s=7.0)
        provider = DeepgramProvider.from_config(cfg)
        assert provider.timeout_s == 7.0
        asyncio.run(provider.aclose())

    def test_from_config_requires_key(self):
        cfg = ProviderConfig(api_key=None, base_url="https://dg.test", default_model="m", timeout_s=7.0)
        with pytest.raises(ValueError):
            DeepgramProvider.from_config(cfg)


class TestErrors:
    """Upstream failures raise ProviderError."""

    def test_json_error_body(self):
        def handler(request):
            return httpx.Response(400, json={"err_code": "INVALID_INPUT", "err_msg": "Text is too long"})

        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(_speak(_provider(handler)))
        assert str(exc_info.value) == "Text is too long"
        assert exc_info.value.status_code == 400

    def test_plain_text_error_body(self):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(_speak(_provider(handler)))
        assert str(exc_info.value) == "Bad Gateway"

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(_speak(_provider(handler, timeout_s=3.0)))
        assert "timed out after 3.0s" in str(exc_info.value)

    def test_connect_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(_speak(_provider(handler)))
        assert "connection refused" in str(exc_info.value)


class TestNoStream:
    def test_zero_content_length(self):
        """An explicitly empty body means no stream at all."""
        def handler(request):
            return httpx.Response(200, headers={"content-length": "0"}, content=b"")

        assert asyncio.run(_speak(_provider(handler))) is None


class TestErrorMessage:
    """Tests for _error_message()."""

    @pytest.mark.parametrize("payload,expected", [
        ({"err_msg": "a"}, "a"),
        ({"message": "b"}, "b"),
        ({"details": "c"}, "c"),
        ({"error": "d"}, "d"),
    ])
    def test_json_keys(self, payload, expected):
        assert _error_message(400, json.dumps(payload).encode()) == expected

    def test_empty_body(self):
        assert _error_message(503, b"") == "Deepgram request failed with HTTP 503"

    def test_json_without_known_keys(self):
        assert _error_message(400, b'{"foo": 1}') == '{"foo": 1}'


@pytest.mark.slow
@pytest.mark.skipif(not os.getenv("DEEPGRAM_API_KEY"), reason="DEEPGRAM_API_KEY not set")
def test_live_deepgram_smoke():
    """Real round trip against Deepgram; returns non-empty audio."""
    provider = DeepgramProvider(api_key=os.environ["DEEPGRAM_API_KEY"], timeout_s=30.0)
    audio = asyncio.run(_speak(provider, "Hello from the gateway smoke test."))
    assert audio
