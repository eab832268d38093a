"""Real clock implementation."""

import time
from datetime import UTC, datetime

from command_library.core.time.abc import Time


class RealTime(Time):
    """Production implementation using the system clock and time.sleep()."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)
