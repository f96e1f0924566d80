"""
Calendar Day Helpers

Every analytics service reasons in calendar days ("did the user log today?",
"this week", "this month"). Stored instants are naive UTC; which calendar day
an instant falls on depends on the user's time zone, so the calendar is an
explicit, injectable value rather than the process clock.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

Moment = Union[datetime, date]


def utc_now() -> datetime:
    """Current instant as naive UTC (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc_naive(moment: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive input is assumed UTC already."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def finite_or_none(value: Optional[float]) -> Optional[float]:
    """Corrupted numbers (inf/nan) are treated as absent."""
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


@dataclass(frozen=True)
class DayCalendar:
    """Time zone + week convention used to bucket instants into days."""
    tz: tzinfo = field(default=timezone.utc)
    first_weekday: int = 0  # Monday, as date.weekday()

    @classmethod
    def from_settings(cls, app_settings) -> "DayCalendar":
        return cls(tz=ZoneInfo(app_settings.USER_TIMEZONE), first_weekday=app_settings.WEEK_STARTS_ON)

    def day_of(self, moment: Moment) -> date:
        if not isinstance(moment, datetime):
            return moment
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.tz).date()

    def local_time(self, moment: datetime) -> time:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.tz).time()

    def start_of_day(self, moment: Moment) -> datetime:
        """Naive UTC instant of local midnight for the day containing moment."""
        local_midnight = datetime.combine(self.day_of(moment), time.min, tzinfo=self.tz)
        return as_utc_naive(local_midnight)

    def end_of_day(self, moment: Moment) -> datetime:
        return self.start_of_day(self.day_of(moment) + timedelta(days=1)) - timedelta(microseconds=1)

    def days_between(self, start: Moment, end: Moment) -> int:
        """Calendar days from start's day to end's day (negative when end is earlier)."""
        return (self.day_of(end) - self.day_of(start)).days

    def week_bounds(self, moment: Moment) -> Tuple[date, date]:
        today = self.day_of(moment)
        offset = (today.weekday() - self.first_weekday) % 7
        start = today - timedelta(days=offset)
        return start, start + timedelta(days=6)

    def month_bounds(self, moment: Moment) -> Tuple[date, date]:
        today = self.day_of(moment)
        start = today.replace(day=1)
        if start.month == 12:
            next_month = start.replace(year=start.year + 1, month=1)
        else:
            next_month = start.replace(month=start.month + 1)
        return start, next_month - timedelta(days=1)


UTC_CALENDAR = DayCalendar()
