from datetime import date, datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


_system_clock = SystemClock()


def get_clock() -> Clock:
    """Dependency, overridden in tests with a fixed clock."""
    return _system_clock
