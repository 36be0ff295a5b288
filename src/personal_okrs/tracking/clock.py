"""Time sources for the tracking engine.

Everything that needs "today" takes a Clock instead of reading the wall
clock directly, so tests and the date-override setting can freeze or shift
time without touching global state.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


class Clock(ABC):
    """Source of the current moment."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """The real wall clock, in tz (UTC by default).

    "Today" is the calendar date in tz, so a user east or west of UTC gets
    their local date around midnight.
    """

    def __init__(self, tz: tzinfo | None = None) -> None:
        self._tz = tz or timezone.utc

    def now(self) -> datetime:
        return datetime.now(self._tz)


class FixedClock(Clock):
    """A clock frozen at a single moment. Dates are taken as midnight UTC."""

    def __init__(self, moment: date | datetime) -> None:
        if not isinstance(moment, datetime):
            moment = datetime.combine(moment, time.min, tzinfo=timezone.utc)
        self._moment = moment

    def now(self) -> datetime:
        return self._moment


class OffsetClock(Clock):
    """Another clock shifted by a whole number of days."""

    def __init__(self, base: Clock, days: int) -> None:
        self._base = base
        self._days = days

    def now(self) -> datetime:
        return self._base.now() + timedelta(days=self._days)


class OverridableClock(Clock):
    """Process-wide clock whose date can be overridden from the settings screen.

    When an override is active the override date is returned with the base
    clock's time of day. The override is read on every call; nothing is cached.
    """

    def __init__(self, base: Clock | None = None) -> None:
        self._base = base or SystemClock()
        self._override: date | None = None

    def now(self) -> datetime:
        real = self._base.now()
        if self._override is None:
            return real
        return datetime.combine(self._override, real.timetz())

    def set_override(self, day: date) -> None:
        if isinstance(day, datetime):
            day = day.date()
        logger.info("Date override enabled: %s", day.isoformat())
        self._override = day

    def use_real_date(self) -> None:
        if self._override is not None:
            logger.info("Date override cleared")
        self._override = None

    def is_testing_mode(self) -> bool:
        return self._override is not None

    def override_date(self) -> date | None:
        return self._override


def parse_iso_date(value: object) -> date | None:
    """Parse the date part of an ISO string. Returns None for blank or bad input."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def zone_from_name(name: str | None) -> tzinfo:
    """IANA zone for name; UTC for blank or unknown names."""
    if not name or not name.strip():
        return timezone.utc
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r; using UTC", name)
        return timezone.utc


def clock_from_settings(settings, base: Clock | None = None) -> OverridableClock:
    """Build the process clock in the configured timezone, applying the override if any."""
    if base is None:
        base = SystemClock(zone_from_name(settings.timezone))
    clock = OverridableClock(base)
    if not settings.use_real_date:
        day = parse_iso_date(settings.override_date)
        if day is not None:
            clock.set_override(day)
        else:
            logger.warning(
                "use_real_date is off but override_date %r is not a valid date; using real date",
                settings.override_date,
            )
    return clock
