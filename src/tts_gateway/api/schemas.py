"""
API Request/Response Schemas.

Models:
    SynthesisBody: JSON body of the synthesis endpoints
    SessionResponse: `/api/session` response
    NotFoundBody: 404 response for unknown routes

Example Request:
    POST /api/text-to-speech?model=aura-2-thalia-en
    {"text": "Hello, how are you?"}
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SynthesisBody(BaseModel):
    """
    Synthesis request body.

    `text` is untyped; missing or non-string values are reported by the
    validator as INVALID_INPUT (400).
    """
    model_config = ConfigDict(extra="ignore")

    text: Any = Field(
        default=None,
        description="Text to synthesize (non-empty string)",
    )


class SessionResponse(BaseModel):
    token: str = Field(..., description="HS256 session JWT, valid for one hour")


class NotFoundBody(BaseModel):
    error: str = "Not Found"
    message: str = "Endpoint not found"
