"""
Input validation for synthesis requests.

Validation runs before any upstream call so that bad input never costs a
provider request.

Usage:
    from tts_gateway.services.validators import validate_text

    text = validate_text(body.get("text"))   # raises ValidationError
"""
from __future__ import annotations

from typing import Any, Optional

from tts_gateway.services.errors import ValidationError

TEXT_REQUIRED_MESSAGE = "text field is required and must be a string"
TEXT_EMPTY_MESSAGE = "text cannot be empty"
MAX_MODEL_LENGTH = 100


def check_text(text: Any) -> Optional[str]:
    """
    Check synthesis text.

    Returns:
        None if the text is valid, otherwise the error message.
    """
    if not isinstance(text, str):
        return TEXT_REQUIRED_MESSAGE
    if not text.strip():
        return TEXT_EMPTY_MESSAGE
    return None


def validate_text(text: Any) -> str:
    """
    Validate synthesis text.

    The text is returned unchanged (not stripped) so the provider receives
    exactly what the client sent.

    Raises:
        ValidationError: INVALID_INPUT if text is missing, not a string, or
            blank after trimming.
    """
    message = check_text(text)
    if message is not None:
        raise ValidationError(message)
    return text


def validate_model(model: Optional[str], default: str) -> str:
    """
    Resolve the model identifier, falling back to the default.

    Raises:
        ValidationError: If the identifier is unreasonably long.
    """
    if not model or not model.strip():
        return default
    model = model.strip()
    if len(model) > MAX_MODEL_LENGTH:
        raise ValidationError(
            f"model exceeds maximum length ({len(model)} > {MAX_MODEL_LENGTH})"
        )
    return model
