"""Per-signer nonce serialization.

One signer account is shared by every concurrent certification. Two
transactions signed with the same nonce collide, so nonce assignment,
signing, and broadcast happen one at a time per signer. Waiting for the
receipt happens outside the critical section so throughput is bounded by
broadcast latency, not block time.

Usage:
    async with sequencer.reserve(address, fetch_pending_nonce) as reservation:
        tx = build(nonce=reservation.nonce)
        await broadcast(tx)
        reservation.commit()
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import structlog

logger = structlog.get_logger()


@dataclass
class NonceReservation:
    """A nonce held under the signer lock.

    Attributes:
        nonce: Nonce to sign with.
        committed: Set by commit() once the transaction was accepted.
    """

    nonce: int
    committed: bool = field(default=False)

    def commit(self) -> None:
        """Mark the nonce as consumed by an accepted transaction."""
        self.committed = True


class NonceSequencer:
    """Serializes nonce assignment per signer address.

    The next nonce is the larger of the locally tracked value and the
    chain's pending nonce, so transactions sent by another process with the
    same key are not reused. A reservation that is not committed leaves the
    local counter untouched.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._next_nonce: dict[str, int] = {}

    def _lock_for(self, address: str) -> asyncio.Lock:
        key = address.lower()
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def reserve(
        self,
        address: str,
        fetch_pending_nonce: Callable[[], Awaitable[int]],
    ) -> AsyncIterator[NonceReservation]:
        """Hold the signer lock and yield the next nonce.

        Args:
            address: Signer address.
            fetch_pending_nonce: Returns the chain's pending transaction count.

        Yields:
            NonceReservation; call commit() after a successful broadcast.
        """
        key = address.lower()
        async with self._lock_for(key):
            chain_nonce = await fetch_pending_nonce()
            local_nonce = self._next_nonce.get(key, 0)
            reservation = NonceReservation(nonce=max(chain_nonce, local_nonce))
            yield reservation
            if reservation.committed:
                self._next_nonce[key] = reservation.nonce + 1

    def invalidate(self, address: str) -> None:
        """Forget the local nonce for a signer; the chain becomes authoritative."""
        if self._next_nonce.pop(address.lower(), None) is not None:
            logger.warning("nonce_cache_invalidated", signer=address)

    def peek(self, address: str) -> int | None:
        """Locally tracked next nonce, if any."""
        return self._next_nonce.get(address.lower())
