from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol
import time


class ClockPort(Protocol):
    """Time source for scan timestamps and retry backoff waits."""

    def now(self) -> datetime:
        """Return the current UTC datetime, used as the scan timestamp."""
        ...

    def sleep(self, seconds: float) -> None:
        """Block the calling worker for the given seconds."""


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)
