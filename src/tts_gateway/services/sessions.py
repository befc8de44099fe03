"""
Session tokens.

A session token is an HS256 JWT with `iat` and `exp` claims. Nothing is
stored server side: a token is valid if and only if its signature verifies
against the process secret and `exp` has not passed.

Secret handling:
    - session.secret configured: tokens survive restarts, and issuance
      requires a nonce from a page this process rendered.
    - no secret: a random one is generated at startup, issuance is open,
      and every restart invalidates outstanding tokens.

Example:
    >>> tokens = SessionTokenService(secret="s3cret", ttl_seconds=3600)
    >>> token = tokens.issue()
    >>> tokens.verify(token)
    True
"""
from __future__ import annotations

import secrets
import time
from typing import Callable, Optional

from jose import JWTError, jwt

from tts_gateway.core.config import Defaults
from tts_gateway.core.logging import get_logger, info, verbose, warn
from tts_gateway.services.errors import AuthenticationError, ErrorCode
from tts_gateway.services.nonces import NonceStore

_LOG = get_logger("tts-gateway.sessions")

ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer "


def generate_secret() -> str:
    """Random signing secret for deployments without a persistent one."""
    return secrets.token_hex(32)


class SessionTokenService:
    """
    Issues and verifies signed, time-limited session tokens.

    Attributes:
        ttl_seconds: Token lifetime.
    """

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = Defaults.SESSION_TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("secret must not be empty")
        self._secret = secret
        self.ttl_seconds = int(ttl_seconds)
        self._clock = clock

    def issue(self) -> str:
        now = int(self._clock())
        claims = {"iat": now, "exp": now + self.ttl_seconds}
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: Optional[str]) -> bool:
        """
        Check signature and expiry.

        Returns:
            False on any failure (malformed, bad signature, expired,
            missing exp); never raises.
        """
        if not token:
            return False
        try:
            # Expiry is checked against our own clock below
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"verify_exp": False},
            )
        except (JWTError, ValueError, TypeError) as e:
            verbose(_LOG, "token_rejected", reason=type(e).__name__)
            return False

        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            return False
        return self._clock() < exp


class SessionManager:
    """
    Session issuance policy on top of the token service and nonce store.

    Handlers call open_session() for `/api/session` and check_bearer() for
    protected routes.
    """

    def __init__(self, tokens: SessionTokenService, nonces: NonceStore, require_nonce: bool):
        self.tokens = tokens
        self.nonces = nonces
        self.require_nonce = require_nonce

    def open_session(self, nonce: Optional[str]) -> str:
        """
        Issue a token, consuming the nonce when nonces are required.

        Raises:
            AuthenticationError: INVALID_NONCE (403) if the nonce is missing,
                unknown, already used, or expired.
        """
        if self.require_nonce and not self.nonces.consume(nonce):
            warn(_LOG, "session_nonce_rejected", has_nonce=bool(nonce))
            raise AuthenticationError(
                "Valid session nonce required. Please refresh the page.",
                ErrorCode.INVALID_NONCE,
                403,
            )
        token = self.tokens.issue()
        info(_LOG, "session_issued", nonce_checked=self.require_nonce)
        return token

    def check_bearer(self, authorization: Optional[str]) -> None:
        """
        Validate an Authorization header value.

        Raises:
            AuthenticationError: MISSING_TOKEN if there is no Bearer token,
                INVALID_TOKEN if it fails verification (both 401).
        """
        header = authorization or ""
        if not header.startswith(BEARER_PREFIX):
            raise AuthenticationError(
                "Authorization header with Bearer token is required",
                ErrorCode.MISSING_TOKEN,
            )
        if not self.tokens.verify(header[len(BEARER_PREFIX):]):
            raise AuthenticationError(
                "Invalid or expired session token",
                ErrorCode.INVALID_TOKEN,
            )
