"""
Gateway error taxonomy.

Every failure a handler can report is a GatewayError carrying an error
type, a machine-readable code, an HTTP status and a message. Route
handlers catch GatewayError and return `to_dict()` as the JSON body.

Response shape:
    {
        "error": {
            "type": "ValidationError",
            "code": "INVALID_INPUT",
            "message": "text cannot be empty",
            "details": {"originalError": "Error: text cannot be empty"}
        }
    }
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ErrorType:
    VALIDATION = "ValidationError"
    SYNTHESIS = "SynthesisError"
    AUTHENTICATION = "AuthenticationError"


class ErrorCode:
    """Standardized error codes for API responses."""
    INVALID_INPUT = "INVALID_INPUT"                 # Bad or missing text
    SYNTHESIS_FAILED = "SYNTHESIS_FAILED"           # Upstream failure
    TEXT_TOO_LONG = "TEXT_TOO_LONG"                 # Upstream rejected length
    MISSING_TOKEN = "MISSING_TOKEN"                 # No bearer token
    INVALID_TOKEN = "INVALID_TOKEN"                 # Bad/expired token
    INVALID_NONCE = "INVALID_NONCE"                 # Session nonce rejected
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class GatewayError(Exception):
    """
    Base exception for errors reported to API clients.

    Attributes:
        message: Human-readable message.
        code: Code from ErrorCode.
        error_type: Type name from ErrorType.
        status_code: HTTP status to respond with.
        details: Extra context, serialized under "details" when present.
    """
    error_type = ErrorType.SYNTHESIS

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "type": self.error_type,
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return {"error": body}


def _original(cause: Optional[BaseException], message: str) -> Dict[str, Any]:
    if cause is None:
        return {"originalError": f"Error: {message}"}
    return {"originalError": f"{type(cause).__name__}: {cause}"}


class ValidationError(GatewayError):
    """Bad client input (400)."""
    error_type = ErrorType.VALIDATION

    def __init__(self, message: str, code: str = ErrorCode.INVALID_INPUT):
        super().__init__(message, code, 400, _original(None, message))


class SynthesisError(GatewayError):
    """Upstream synthesis failure (500, or 400 for TEXT_TOO_LONG)."""
    error_type = ErrorType.SYNTHESIS

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.SYNTHESIS_FAILED,
        status_code: int = 500,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, code, status_code, _original(cause, message))


class AuthenticationError(GatewayError):
    """Missing/invalid token (401) or rejected nonce (403)."""
    error_type = ErrorType.AUTHENTICATION

    def __init__(self, message: str, code: str, status_code: int = 401):
        super().__init__(message, code, status_code)


class InternalServerError(GatewayError):
    """Server-side failure with the flat `{error, message}` body."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.INTERNAL_SERVER_ERROR, 500)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class ProviderError(Exception):
    """
    Raised by a speech provider client when the upstream call fails.

    Never serialized directly; classify_provider_error() maps it to a
    SynthesisError.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)
