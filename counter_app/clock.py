"""
Local-time view of a site's clock.

The counter never reads the system clock or a timezone database on its
own. The host resolves the site's zone (a tzinfo, usually ZoneInfo) and
decides what "now" is; ClockView only does calendar arithmetic against
them:

    clock = ClockView(ZoneInfo("Europe/Helsinki"), now=datetime(2011, 1, 6, 12, tzinfo=timezone.utc))
    clock.today()         # LocalDate(2011, 1, 6)
    clock.current_hour()  # 14
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Union

from counter_app.errors import InvalidArgument

# Aware datetime or seconds since the epoch
Instant = Union[datetime, int, float]

HOURS_PER_DAY = 24

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def to_utc(instant: Instant) -> datetime:
    """
    Normalize an instant to an aware UTC datetime.

    Raises:
        InvalidArgument: naive datetime or something that isn't an instant
    """
    if isinstance(instant, datetime):
        if instant.tzinfo is None or instant.utcoffset() is None:
            raise InvalidArgument(f"Naive datetime has no timezone: {instant!r}")
        return instant.astimezone(timezone.utc)

    # bool is an int subclass, but True is not a timestamp
    if isinstance(instant, (int, float)) and not isinstance(instant, bool):
        try:
            return datetime.fromtimestamp(instant, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise InvalidArgument(f"Timestamp out of range: {instant!r}") from e

    raise InvalidArgument(f"Expected datetime or epoch seconds, got {type(instant).__name__}")


def to_epoch(instant: Instant) -> float:
    """Seconds since the epoch for any accepted instant"""
    return to_utc(instant).timestamp()


def check_calendar_day(year: int, month: int, day: int) -> None:
    """Reject coordinates that don't name a real calendar day (e.g. Feb 30)"""
    try:
        date(year, month, day)
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"Invalid calendar day {year}-{month}-{day}: {e}") from e


def check_hour(hour: int) -> None:
    if not isinstance(hour, int) or isinstance(hour, bool) or not 0 <= hour < HOURS_PER_DAY:
        raise InvalidArgument(f"Hour must be in 0..23, got {hour!r}")


@dataclass(frozen=True, order=True)
class LocalDate:
    """A calendar day in some site's local time"""

    year: int
    month: int
    day: int

    def __post_init__(self):
        check_calendar_day(self.year, self.month, self.day)

    @classmethod
    def from_date(cls, value: date) -> "LocalDate":
        return cls(value.year, value.month, value.day)

    @classmethod
    def parse(cls, value: str) -> "LocalDate":
        """
        Parse a strict YYYY-MM-DD string.

        Raises:
            InvalidArgument: wrong shape or not a real day
        """
        if not isinstance(value, str) or not _DATE_RE.match(value):
            raise InvalidArgument(f"Expected a YYYY-MM-DD date string, got {value!r}")
        year, month, day = (int(part) for part in value.split("-"))
        return cls(year, month, day)

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)

    def previous(self) -> "LocalDate":
        """The day before, rolling over month and year boundaries"""
        return LocalDate.from_date(self.to_date() - timedelta(days=1))

    def isoformat(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    def __str__(self) -> str:
        return self.isoformat()


@dataclass(frozen=True, order=True)
class HourBucket:
    """The (year, month, day, hour) slot a pageview is counted in"""

    year: int
    month: int
    day: int
    hour: int

    def __post_init__(self):
        check_calendar_day(self.year, self.month, self.day)
        check_hour(self.hour)

    @property
    def date(self) -> LocalDate:
        return LocalDate(self.year, self.month, self.day)


class ClockView:
    """
    Calendar coordinates of "now" (and of any other instant) in one zone.

    Stateless apart from the two injected inputs; build a new view for
    every request instead of keeping one around.
    """

    def __init__(self, tz: tzinfo, now: Instant):
        """
        Args:
            tz: Resolved timezone of the site
            now: Current instant as decided by the host
        """
        self.tz = tz
        self.now = to_utc(now)
        self._local_now = self.now.astimezone(tz)

    def local(self, instant: Instant) -> datetime:
        """Wall-clock time of an instant in this view's zone"""
        return to_utc(instant).astimezone(self.tz)

    def bucket_for(self, instant: Instant) -> HourBucket:
        local = self.local(instant)
        return HourBucket(local.year, local.month, local.day, local.hour)

    def today(self) -> LocalDate:
        return LocalDate.from_date(self._local_now.date())

    def yesterday(self) -> LocalDate:
        return self.today().previous()

    def current_hour(self) -> int:
        return self._local_now.hour

    def __repr__(self) -> str:
        return f"ClockView(tz={self.tz}, now={self.now.isoformat()})"
