"""
tts-gateway Services Layer.

Business logic between the HTTP layer and the speech provider:
    - errors.py: GatewayError hierarchy and error codes
    - validators.py: Input validation
    - nonces.py: Single-use session nonces
    - sessions.py: JWT session tokens and issuance policy
    - provider.py: Speech provider clients (Deepgram)
    - synthesis.py: Synthesis proxy and upstream error classification
    - metadata.py: `[meta]` table reader
    - frontend.py: Index page with nonce injection
    - gateway.py: Service container owning shared state
"""
from .errors import (
    AuthenticationError,
    ErrorCode,
    GatewayError,
    InternalServerError,
    ProviderError,
    SynthesisError,
    ValidationError,
)
from .gateway import Gateway
from .synthesis import SynthesisProxy

__all__ = [
    "Gateway",
    "SynthesisProxy",
    "GatewayError",
    "ValidationError",
    "SynthesisError",
    "AuthenticationError",
    "InternalServerError",
    "ProviderError",
    "ErrorCode",
]
