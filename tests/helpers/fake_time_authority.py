"""FakeTimeAuthority - frozen, manually advanced clock for tests.

Minting leases, audit timestamps and fallback token ids all derive from
the injected clock, so tests that reason about lease expiry advance this
clock instead of sleeping.

Usage:
    >>> clock = FakeTimeAuthority()
    >>> controller = MintingController(..., time_authority=clock)
    >>> clock.advance(seconds=601)  # a 600s lease has now expired

The monotonic reading moves with advance(), so confirmation latency seen
by the controller equals the advanced amount.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from src.application.ports.time_authority import TimeAuthorityProtocol

DEFAULT_FROZEN_AT = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


class FakeTimeAuthority(TimeAuthorityProtocol):
    """Clock frozen at ``frozen_at`` until advanced."""

    def __init__(self, frozen_at: datetime = DEFAULT_FROZEN_AT) -> None:
        if frozen_at.tzinfo is None:
            raise ValueError("FakeTimeAuthority requires a timezone-aware datetime")
        self._now = frozen_at
        self._elapsed = 0.0

    def utcnow(self) -> datetime:
        return self._now

    def monotonic(self) -> float:
        return self._elapsed

    def advance(self, seconds: float) -> None:
        """Move both clocks forward.

        Raises:
            ValueError: If seconds is negative; leases never run backwards.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time backwards, got {seconds}s")
        self._now += timedelta(seconds=seconds)
        self._elapsed += seconds

    def __repr__(self) -> str:
        return f"FakeTimeAuthority(now={self._now.isoformat()}, elapsed={self._elapsed:.3f})"
