"""
Gateway - process-wide service container.

Owns every piece of mutable shared state (nonce store, signing secret,
provider HTTP client) and hands it to route handlers through FastAPI
dependency injection. One Gateway is created per application by
create_app() and stored on `app.state.gateway`.

Architecture:
    Gateway
      ├── proxy: SynthesisProxy ── provider: SpeechProvider
      ├── sessions: SessionManager (None in open mode)
      │     ├── tokens: SessionTokenService
      │     └── nonces: NonceStore ── sweeper: NonceSweeper
      ├── metadata: MetadataReader
      └── index_page: IndexPage
"""
from __future__ import annotations

import time
from typing import Callable, Optional

from tts_gateway.core.config import Settings
from tts_gateway.core.logging import get_logger, info
from tts_gateway.services.frontend import IndexPage
from tts_gateway.services.metadata import MetadataReader
from tts_gateway.services.nonces import NonceStore, NonceSweeper
from tts_gateway.services.provider import DeepgramProvider, SpeechProvider
from tts_gateway.services.sessions import SessionManager, SessionTokenService, generate_secret
from tts_gateway.services.synthesis import SynthesisProxy

_LOG = get_logger("tts-gateway.gateway")


class Gateway:
    """
    Service container for one running application.

    Usage:
        gateway = Gateway.from_settings(settings)
        await gateway.start()
        ...
        await gateway.stop()
    """

    def __init__(
        self,
        settings: Settings,
        proxy: SynthesisProxy,
        metadata: MetadataReader,
        index_page: IndexPage,
        sessions: Optional[SessionManager] = None,
    ):
        self.settings = settings
        self.proxy = proxy
        self.metadata = metadata
        self.index_page = index_page
        self.sessions = sessions
        self._sweeper: Optional[NonceSweeper] = None
        if sessions is not None:
            self._sweeper = NonceSweeper(
                sessions.nonces,
                interval_seconds=settings.session.sweep_interval_seconds,
            )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        provider: Optional[SpeechProvider] = None,
        clock: Callable[[], float] = time.time,
    ) -> "Gateway":
        """
        Build all services from settings.

        Args:
            settings: Validated settings.
            provider: Speech provider; a DeepgramProvider is built from
                settings.provider when omitted.
            clock: Time source for nonce and token expiry.

        Raises:
            MissingApiKeyError: If no provider is given and no API key is set.
        """
        if provider is None:
            settings.require_api_key()
            provider = DeepgramProvider.from_config(settings.provider)

        sessions = None
        if settings.session.enabled:
            secret = settings.session.secret or generate_secret()
            sessions = SessionManager(
                tokens=SessionTokenService(
                    secret, ttl_seconds=settings.session.token_ttl_seconds, clock=clock,
                ),
                nonces=NonceStore(ttl_seconds=settings.session.nonce_ttl_seconds, clock=clock),
                require_nonce=settings.session.require_nonce,
            )

        return cls(
            settings=settings,
            proxy=SynthesisProxy(provider, settings.provider.default_model),
            metadata=MetadataReader(settings.metadata.path),
            index_page=IndexPage.load(settings.frontend.index_path),
            sessions=sessions,
        )

    async def start(self) -> None:
        if self._sweeper is not None:
            self._sweeper.start()
        info(_LOG, "gateway_started", mode=self.settings.mode,
             provider=self.proxy.provider.name,
             frontend=self.index_page.available)

    async def stop(self) -> None:
        if self._sweeper is not None:
            await self._sweeper.stop()
        await self.proxy.provider.aclose()
        info(_LOG, "gateway_stopped")
