"""
Gateway API Routes.

Session mode (auth-gated, default):
    GET  /, /index.html      - index page with an injected session nonce
    GET  /api/session        - issue a session token (nonce-gated with a persistent secret)
    POST /api/text-to-speech - synthesize, requires `Authorization: Bearer <token>`

Open mode:
    POST /tts/synthesize     - synthesize without authentication

Both modes:
    GET  /api/metadata       - `[meta]` table of the project descriptor

Request Flow (synthesis):
    1. Check bearer token (session mode only)
    2. Parse JSON body; malformed or non-object bodies count as missing text
    3. SynthesisProxy.synthesize(text, model)
    4. Return raw audio as application/octet-stream

Error Handling:
    GatewayError subclasses are returned as JSON via to_dict() with their
    own status code, e.g.:
    {
        "error": {
            "type": "AuthenticationError",
            "code": "INVALID_TOKEN",
            "message": "Invalid or expired session token"
        }
    }

Example Usage:
    >>> import httpx
    >>> token = httpx.get("http://localhost:8081/api/session").json()["token"]
    >>> r = httpx.post(
    ...     "http://localhost:8081/api/text-to-speech?model=aura-2-thalia-en",
    ...     json={"text": "Hello there"},
    ...     headers={"Authorization": f"Bearer {token}"},
    ... )
    >>> open("speech.mp3", "wb").write(r.content)
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse

from tts_gateway.api.dependencies import get_gateway, get_sessions
from tts_gateway.api.schemas import SessionResponse, SynthesisBody
from tts_gateway.core.logging import error, get_logger
from tts_gateway.services.errors import GatewayError, SynthesisError
from tts_gateway.services.gateway import Gateway
from tts_gateway.services.sessions import SessionManager
from tts_gateway.services.synthesis import AUDIO_MEDIA_TYPE

# Mounted in session mode
session_router = APIRouter()
# Mounted in open mode
open_router = APIRouter()
# Mounted in both modes
router = APIRouter()

_LOG = get_logger("tts-gateway.api")

FRONTEND_MISSING_MESSAGE = "Frontend not built. Run make build first."


def _error_response(err: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


async def _read_body(request: Request) -> SynthesisBody:
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        payload = {}
    return SynthesisBody.model_validate(payload)


async def _synthesis_response(request: Request, gateway: Gateway, model: Optional[str]) -> Response:
    try:
        body = await _read_body(request)
        audio = await gateway.proxy.synthesize(body.text, model)
    except GatewayError as e:
        return _error_response(e)
    except Exception as e:
        error(_LOG, "synthesis_unexpected_error", error=str(e), error_type=type(e).__name__)
        return _error_response(SynthesisError("An error occurred during synthesis", cause=e))

    return Response(content=audio, media_type=AUDIO_MEDIA_TYPE)


# =============================================================================
# Session mode
# =============================================================================

@session_router.get("/", response_class=HTMLResponse)
@session_router.get("/index.html", response_class=HTMLResponse)
async def index(
    gateway: Gateway = Depends(get_gateway),
    sessions: SessionManager = Depends(get_sessions),
):
    """
    Serve index.html with a fresh session nonce.

    Expired nonces are swept first so abandoned page loads do not
    accumulate between background sweeps.
    """
    if not gateway.index_page.available:
        return PlainTextResponse(FRONTEND_MISSING_MESSAGE, status_code=404)

    sessions.nonces.sweep()
    nonce = sessions.nonces.generate()
    return HTMLResponse(gateway.index_page.render(nonce))


@session_router.get("/api/session", response_model=SessionResponse)
async def api_session(
    x_session_nonce: Optional[str] = Header(default=None),
    sessions: SessionManager = Depends(get_sessions),
):
    """
    Issue a session token.

    With a persistent secret configured, the `X-Session-Nonce` header must
    carry an unused, unexpired nonce from the index page (403 otherwise).
    """
    try:
        token = sessions.open_session(x_session_nonce)
    except GatewayError as e:
        return _error_response(e)
    return SessionResponse(token=token)


@session_router.post("/api/text-to-speech", response_class=Response)
async def api_text_to_speech(
    request: Request,
    model: Optional[str] = Query(default=None),
    authorization: Optional[str] = Header(default=None),
    gateway: Gateway = Depends(get_gateway),
    sessions: SessionManager = Depends(get_sessions),
):
    """
    Authenticated synthesis endpoint.

    Returns:
        Raw audio bytes (application/octet-stream).

    Raises:
        401: MISSING_TOKEN / INVALID_TOKEN
        400: INVALID_INPUT, TEXT_TOO_LONG
        500: SYNTHESIS_FAILED
    """
    try:
        sessions.check_bearer(authorization)
    except GatewayError as e:
        return _error_response(e)
    return await _synthesis_response(request, gateway, model)


# =============================================================================
# Open mode
# =============================================================================

@open_router.post("/tts/synthesize", response_class=Response)
async def tts_synthesize(
    request: Request,
    model: Optional[str] = Query(default=None),
    gateway: Gateway = Depends(get_gateway),
):
    """Unauthenticated synthesis endpoint (open deployment mode)."""
    return await _synthesis_response(request, gateway, model)


# =============================================================================
# Both modes
# =============================================================================

@router.get("/api/metadata")
def api_metadata(gateway: Gateway = Depends(get_gateway)):
    """
    Return the `[meta]` table of the project descriptor.

    Runs in the threadpool since it reads the file on every call.
    """
    try:
        return gateway.metadata.read()
    except GatewayError as e:
        return _error_response(e)
