"""
Clock -- injectable time source.

Engines never read the system clock; services receive a ``Clock`` through
their constructor so refund drafts, eligibility windows and cache expiry
are reproducible under test.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

_DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of the current time.  ``now()`` is always timezone-aware."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Starts at ``start`` (2024-01-01 12:00 UTC when omitted) and stays there
    until ``advance()`` or ``set_time()``.
    """

    def __init__(self, start: datetime | None = None):
        self._current = start or _DEFAULT_TEST_TIME

    def now(self) -> datetime:
        return self._current

    def set_time(self, moment: datetime) -> None:
        self._current = moment

    def advance(self, seconds: float = 1) -> None:
        self._current += timedelta(seconds=seconds)
