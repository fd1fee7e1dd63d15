"""Time authority port.

Services that need timestamps inject a TimeAuthorityProtocol instead of
calling datetime.now() directly, so minting leases and audit timestamps are
deterministic under test.

For production:
    Use SystemTimeAuthority from src/application/services/time_authority_service.py

For testing:
    Use FakeTimeAuthority from tests/helpers/fake_time_authority.py
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Abstract interface for time authority."""

    @abstractmethod
    def utcnow(self) -> datetime:
        """Return the current timezone-aware UTC time."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Return a monotonic clock value in seconds.

        Use this for measuring elapsed time, not for timestamps. Only
        differences between values are meaningful.
        """
        ...
