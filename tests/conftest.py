"""Shared fixtures: fake clock, fake speech provider, settings and app builders."""
from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from tts_gateway.core.config import Settings
from tts_gateway.services.provider import SpeechProvider

INDEX_HTML = "<!doctype html><html><head><title>TTS</title></head><body></body></html>"
META_TOML = '[meta]\ntitle = "Text-to-Speech Gateway"\nlanguage = "Python"\n'
NONCE_RE = re.compile(r'<meta name="session-nonce" content="([0-9a-f]+)">')


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider(SpeechProvider):
    """Speech provider returning canned chunks, None, or an error."""

    name = "fake"

    def __init__(
        self,
        chunks: Optional[List[bytes]] = None,
        error: Optional[BaseException] = None,
        no_stream: bool = False,
    ):
        self.chunks = [b"ID3", b"\x00\x01\x02", b"audio-tail"] if chunks is None else chunks
        self.error = error
        self.no_stream = no_stream
        self.calls: List[tuple] = []
        self.closed = False

    async def open_stream(self, text: str, model: str):
        self.calls.append((text, model))
        if self.error is not None:
            raise self.error
        if self.no_stream:
            return None
        return self._gen()

    async def _gen(self):
        for chunk in self.chunks:
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def extract_nonce(html: str) -> str:
    match = NONCE_RE.search(html)
    assert match is not None, "nonce meta tag not found"
    return match.group(1)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def files(tmp_path: Path) -> Dict[str, Path]:
    index = tmp_path / "index.html"
    index.write_text(INDEX_HTML, encoding="utf-8")
    meta = tmp_path / "deepgram.toml"
    meta.write_text(META_TOML, encoding="utf-8")
    return {"index": index, "meta": meta, "dir": tmp_path}


@pytest.fixture
def make_settings(files):
    """Build Settings pointing at temp frontend/metadata files."""

    def _make(**sections: Dict[str, Any]) -> Settings:
        raw: Dict[str, Any] = {
            "provider": {"api_key": "test-key"},
            "frontend": {"index_path": str(files["index"])},
            "metadata": {"path": str(files["meta"])},
        }
        for name, values in sections.items():
            raw.setdefault(name, {}).update(values)
        return Settings.from_raw(raw)

    return _make


@pytest.fixture
def make_client(make_settings, provider, clock):
    """Build a TestClient for an app with the fake provider and clock."""
    from fastapi.testclient import TestClient

    from tts_gateway.main import create_app

    def _make(provider_override: Optional[SpeechProvider] = None, **sections) -> TestClient:
        app = create_app(
            make_settings(**sections),
            provider=provider_override or provider,
            clock=clock,
        )
        return TestClient(app)

    return _make
