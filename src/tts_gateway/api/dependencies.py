"""
FastAPI Dependency Injection Providers.

The Gateway service container is created by create_app() and stored on
`app.state`; route handlers receive it (or parts of it) through Depends()
instead of reaching for module globals.

Usage in Route Handlers:
    @router.get("/api/metadata")
    def api_metadata(gateway: Gateway = Depends(get_gateway)):
        return gateway.metadata.read()
"""
from __future__ import annotations

from fastapi import Depends, Request

from tts_gateway.services.gateway import Gateway
from tts_gateway.services.sessions import SessionManager


def get_gateway(request: Request) -> Gateway:
    return request.app.state.gateway


def get_sessions(gateway: Gateway = Depends(get_gateway)) -> SessionManager:
    """
    Session manager for auth-gated routes.

    Only registered in session mode, where Gateway.sessions is always set.
    """
    if gateway.sessions is None:
        raise RuntimeError("session routes mounted without a session manager")
    return gateway.sessions
