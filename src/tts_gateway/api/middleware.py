"""
HTTP middleware and catch-all handlers.

    - CORS: every response carries the configured CORS headers; OPTIONS
      requests on any path are answered with 204 before routing.
    - Request logging: each request gets a 12-char id (X-Request-Id
      response header, log correlation) and one summary log line.
    - Unknown routes (and known paths with the wrong method) answer 404
      with `{"error": "Not Found", "message": "Endpoint not found"}`.
    - Unexpected exceptions become a 500 JSON response instead of a
      dropped connection.
"""
from __future__ import annotations

import time
import uuid
from typing import Dict

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tts_gateway.api.schemas import NotFoundBody
from tts_gateway.core.config import CorsConfig
from tts_gateway.core.logging import fail, get_logger, info, set_request_id
from tts_gateway.services.errors import ErrorCode, ValidationError

_LOG = get_logger("tts-gateway.http")

ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization, X-Session-Nonce"


def cors_headers(config: CorsConfig) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": config.allow_origin,
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
    }


def install_middleware(app: FastAPI, cors: CorsConfig) -> None:
    headers = cors_headers(cors)
    if cors.allow_origin != "*":
        headers["Vary"] = "Origin"

    @app.middleware("http")
    async def cors_and_request_log(request: Request, call_next):
        rid = str(uuid.uuid4())[:12]
        set_request_id(rid)
        t0 = time.perf_counter()

        if request.method == "OPTIONS":
            response: Response = Response(status_code=204)
        else:
            try:
                response = await call_next(request)
            except Exception as e:
                fail(_LOG, "unhandled_exception", error=str(e), error_type=type(e).__name__)
                response = JSONResponse(
                    status_code=500,
                    content={
                        "error": ErrorCode.INTERNAL_SERVER_ERROR,
                        "message": "Internal server error",
                    },
                )

        response.headers.update(headers)
        response.headers["X-Request-Id"] = rid
        info(
            _LOG,
            "request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            seconds=round(time.perf_counter() - t0, 4),
        )
        return response


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content=NotFoundBody().model_dump())
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": ErrorCode.INTERNAL_SERVER_ERROR if exc.status_code >= 500 else "HTTPError",
                     "message": str(exc.detail)},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        err = ValidationError("Invalid request parameters")
        return JSONResponse(status_code=err.status_code, content=err.to_dict())
