"""
Tests for the nonce store and background sweeper.

Tests cover:
- generate() format and uniqueness
- consume() single use, unknown, empty, expiry boundary
- sweep() removes only expired entries
- NonceSweeper start/stop lifecycle
"""
from __future__ import annotations

import asyncio
import re

from conftest import FakeClock
from tts_gateway.services.nonces import NonceStore, NonceSweeper


class TestGenerate:
    """Tests for NonceStore.generate()."""

    def test_nonce_is_32_hex_chars(self):
        store = NonceStore(clock=FakeClock())
        nonce = store.generate()
        assert re.fullmatch(r"[0-9a-f]{32}", nonce)

    def test_nonces_are_unique(self):
        store = NonceStore(clock=FakeClock())
        nonces = {store.generate() for _ in range(200)}
        assert len(nonces) == 200
        assert len(store) == 200


class TestConsume:
    """Tests for NonceStore.consume()."""

    def test_single_use(self):
        """A nonce succeeds exactly once."""
        store = NonceStore(clock=FakeClock())
        nonce = store.generate()
        assert store.consume(nonce) is True
        assert store.consume(nonce) is False
        assert nonce not in store

    def test_unknown_nonce(self):
        store = NonceStore(clock=FakeClock())
        assert store.consume("deadbeef" * 4) is False

    def test_empty_nonce(self):
        store = NonceStore(clock=FakeClock())
        store.generate()
        assert store.consume("") is False
        assert store.consume(None) is False
        assert len(store) == 1

    def test_expired_nonce_fails_and_is_removed(self):
        """An expired nonce is rejected and deleted on lookup."""
        clock = FakeClock()
        store = NonceStore(ttl_seconds=300, clock=clock)
        nonce = store.generate()
        clock.advance(301)
        assert store.consume(nonce) is False
        assert nonce not in store

    def test_expiry_boundary(self):
        """Valid strictly before expiry, invalid at the expiry instant."""
        clock = FakeClock()
        store = NonceStore(ttl_seconds=300, clock=clock)
        early = store.generate()
        exact = store.generate()
        clock.advance(299)
        assert store.consume(early) is True
        clock.advance(1)
        assert store.consume(exact) is False


class TestSweep:
    """Tests for NonceStore.sweep()."""

    def test_sweep_removes_expired_only(self):
        clock = FakeClock()
        store = NonceStore(ttl_seconds=300, clock=clock)
        old = [store.generate() for _ in range(3)]
        clock.advance(200)
        fresh = store.generate()
        clock.advance(100)

        assert store.sweep() == 3
        assert len(store) == 1
        assert fresh in store
        assert all(n not in store for n in old)

    def test_sweep_empty_store(self):
        assert NonceStore(clock=FakeClock()).sweep() == 0


class TestNonceSweeper:
    """Tests for the background sweep task."""

    def test_start_and_stop(self):
        """The sweeper runs while started and stops cleanly."""
        clock = FakeClock()
        store = NonceStore(ttl_seconds=1, clock=clock)

        async def scenario():
            store.generate()
            clock.advance(5)
            sweeper = NonceSweeper(store, interval_seconds=0.01)
            sweeper.start()
            assert sweeper.running
            await asyncio.sleep(0.05)
            await sweeper.stop()
            return sweeper.running

        assert asyncio.run(scenario()) is False
        assert len(store) == 0

    def test_stop_without_start(self):
        sweeper = NonceSweeper(NonceStore(clock=FakeClock()), interval_seconds=1)
        asyncio.run(sweeper.stop())
        assert sweeper.running is False

    def test_survives_failing_sweep(self):
        """A sweep that raises is logged and the loop keeps running."""

        class FlakyStore(NonceStore):
            calls = 0

            def sweep(self):
                FlakyStore.calls += 1
                if FlakyStore.calls == 1:
                    raise RuntimeError("boom")
                return super().sweep()

        store = FlakyStore(clock=FakeClock())

        async def scenario():
            sweeper = NonceSweeper(store, interval_seconds=0.01)
            sweeper.start()
            await asyncio.sleep(0.1)
            still_running = sweeper.running
            await sweeper.stop()
            return still_running

        assert asyncio.run(scenario()) is True
        assert FlakyStore.calls >= 2
