"""Clock collaborator: one source of "now" for decay, staleness and day boundaries.

Instants are always timezone-aware UTC. Calendar dates are taken in a single
configured timezone (settings.engine_timezone, UTC by default) so that daily
check-ins and validation caps never depend on the caller's local clock.
"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional, Protocol
from zoneinfo import ZoneInfo

from sharaspot_engine.config.settings import settings


class Clock(Protocol):
    """Anything that can tell the current instant and calendar date."""

    def now(self) -> datetime: ...

    def today(self) -> date: ...

    def start_of_day(self) -> datetime: ...

    def start_of_month(self) -> datetime: ...


def resolve_timezone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


class SystemClock:
    """Wall clock in UTC with calendar dates in the engine timezone."""

    def __init__(self, tz_name: Optional[str] = None) -> None:
        self.tz = resolve_timezone(tz_name or settings.engine_timezone)

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().astimezone(self.tz).date()

    def start_of_month(self) -> datetime:
        local = self.now().astimezone(self.tz)
        start = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        return start.astimezone(timezone.utc)

    def start_of_day(self) -> datetime:
        local = self.now().astimezone(self.tz)
        start = local.replace(hour=0, minute=0, second=0, microsecond=0)
        return start.astimezone(timezone.utc)


class FixedClock(SystemClock):
    """Manually driven clock for tests and deterministic batch replays."""

    def __init__(self, current: datetime, tz_name: Optional[str] = None) -> None:
        super().__init__(tz_name)
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        self._current = current

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        self._current = current

    def advance(self, **delta: float) -> datetime:
        """Move forward by timedelta keyword arguments (hours=2, days=1, ...)."""
        self._current = self._current + timedelta(**delta)
        return self._current


def hours_between(earlier: datetime, later: datetime) -> float:
    """Elapsed hours from earlier to later (negative if later is earlier)."""
    return (later - earlier).total_seconds() / 3600.0
