"""Injectable time sources."""

from datetime import datetime, date, timedelta, UTC


class Clock:
    """Supplies the current time to services."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock(Clock):
    """Clock frozen at a given instant, for deterministic runs and tests."""

    def __init__(self, instant: datetime):
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance(self, **kwargs) -> None:
        """Move the clock forward by a ``timedelta(**kwargs)``."""
        self._instant = self._instant + timedelta(**kwargs)
