"""Reference time source for every auction window decision."""

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    """Supplies the current time as a timezone-aware UTC datetime."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


system_clock = SystemClock()
