"""
FastAPI Application Entry Point.

create_app() wires settings, logging, the Gateway service container,
middleware and routers into a FastAPI application.

Usage:
    # Via the CLI (loads settings, checks the API key, prints routes)
    tts-gateway serve

    # Or with uvicorn's app factory support
    uvicorn tts_gateway.main:create_app --factory --port 8081
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI

from tts_gateway import __version__
from tts_gateway.api.middleware import install_exception_handlers, install_middleware
from tts_gateway.api.routes import open_router, router, session_router
from tts_gateway.core.config import Settings, load_settings
from tts_gateway.core.logging import configure_logging
from tts_gateway.services.gateway import Gateway
from tts_gateway.services.provider import SpeechProvider


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[SpeechProvider] = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Validated settings; loaded from file/environment if omitted.
        provider: Speech provider override (tests inject fakes here).
        clock: Time source for nonce and token expiry.

    Returns:
        FastAPI: Configured application instance.

    Raises:
        MissingApiKeyError: If no provider is given and no API key is configured.
    """
    if settings is None:
        settings = load_settings()

    configure_logging(
        force=True,
        config={
            "level": settings.logging.level,
            "log_dir": settings.logging.log_dir,
            "jsonl_file": settings.logging.jsonl_file,
        },
    )

    gateway = Gateway.from_settings(settings, provider=provider, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await gateway.start()
        try:
            yield
        finally:
            await gateway.stop()

    # No docs/openapi routes: every unknown path must answer 404
    app = FastAPI(
        title="tts-gateway",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.gateway = gateway

    install_middleware(app, settings.cors)
    install_exception_handlers(app)

    if settings.session.enabled:
        app.include_router(session_router)
    else:
        app.include_router(open_router)
    app.include_router(router)

    return app
