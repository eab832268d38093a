"""Fake clock for testing.

FakeTime never sleeps. Calling sleep() records the call and moves the fake
clock forward, which is how tests age cache records.
"""

from datetime import UTC, datetime, timedelta

from command_library.core.time.abc import Time

DEFAULT_FAKE_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)


class FakeTime(Time):
    """In-memory clock that tracks sleep calls without sleeping.

    This class has NO public setup methods. The starting instant is provided
    via constructor; the clock only moves through sleep().
    """

    def __init__(self, *, now: datetime = DEFAULT_FAKE_NOW) -> None:
        self._now = now
        self._sleep_calls: list[float] = []

    @property
    def sleep_calls(self) -> list[float]:
        """Read-only access to tracked sleep calls for test assertions."""
        return self._sleep_calls

    def now(self) -> datetime:
        return self._now

    def sleep(self, seconds: float) -> None:
        self._sleep_calls.append(seconds)
        self._now = self._now + timedelta(seconds=seconds)
