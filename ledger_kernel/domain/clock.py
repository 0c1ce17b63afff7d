"""
Injectable time source for the reporting engine.

Report builders never read the wall clock themselves.  They take a
``Clock`` and use it for two things only:

* ``generated_at`` on report metadata
* today's date, substituted for undated entries under ``DatePolicy.NOW``

Tests pass a ``DeterministicClock`` so both are reproducible.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta

DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


class Clock(ABC):
    """Source of the current, timezone-aware time."""

    @abstractmethod
    def now(self) -> datetime: ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Frozen clock for tests.

    Defaults to ``2024-01-01 12:00 UTC``.  Time only moves through
    ``advance`` and ``set_time``.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or DEFAULT_TEST_TIME

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)
