"""
Single-use session nonces.

A nonce is minted each time the index page is rendered and proves that a
client recently loaded a page served by this process. `/api/session`
consumes it in exchange for a token.

Lifecycle:
    generate() → stored with expiry now + ttl
    consume()  → removed on first lookup, valid only if not yet expired
    sweep()    → removes abandoned entries (run periodically by NonceSweeper)

Thread Safety:
    A lock guards the dict. It is held only for dict operations, never
    across an await, so request handlers cannot block each other on it.

Example:
    >>> store = NonceStore(ttl_seconds=300)
    >>> n = store.generate()
    >>> store.consume(n)
    True
    >>> store.consume(n)
    False
"""
from __future__ import annotations

import asyncio
import secrets
import threading
import time
from typing import Callable, Dict, Optional

from tts_gateway.core.config import Defaults
from tts_gateway.core.logging import debug, error, get_logger, verbose

_LOG = get_logger("tts-gateway.nonces")

NONCE_BYTES = 16


class NonceStore:
    """
    In-memory expiring set of single-use nonces.

    Attributes:
        ttl_seconds: Lifetime of a freshly generated nonce.
    """

    def __init__(
        self,
        ttl_seconds: float = Defaults.SESSION_NONCE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._expiry: Dict[str, float] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._expiry)

    def __contains__(self, nonce: object) -> bool:
        with self._lock:
            return nonce in self._expiry

    def generate(self) -> str:
        """Mint a 16-byte hex nonce and register its expiry."""
        nonce = secrets.token_hex(NONCE_BYTES)
        with self._lock:
            self._expiry[nonce] = self._clock() + self.ttl_seconds
        debug(_LOG, "nonce_generated", pending=len(self._expiry))
        return nonce

    def consume(self, nonce: Optional[str]) -> bool:
        """
        Validate and remove a nonce.

        The entry is deleted whether or not it has expired, so a nonce can
        succeed at most once.

        Returns:
            True if the nonce was known and not yet expired.
        """
        if not nonce:
            return False
        with self._lock:
            expiry = self._expiry.pop(nonce, None)
        if expiry is None:
            return False
        return self._clock() < expiry

    def sweep(self) -> int:
        """
        Remove every expired nonce.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [n for n, exp in self._expiry.items() if now >= exp]
            for n in expired:
                del self._expiry[n]
        if expired:
            verbose(_LOG, "nonces_swept", removed=len(expired))
        return len(expired)


class NonceSweeper:
    """
    Background task calling NonceStore.sweep() on a fixed interval.

    Started and stopped by the application lifespan.
    """

    def __init__(
        self,
        store: NonceStore,
        interval_seconds: float = Defaults.SESSION_SWEEP_INTERVAL_SECONDS,
    ):
        self._store = store
        self._interval = float(interval_seconds)
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="nonce-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._store.sweep()
            except Exception as e:
                error(_LOG, "nonce_sweep_failed", error=str(e), error_type=type(e).__name__)
