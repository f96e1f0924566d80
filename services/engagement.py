"""
Engagement Service

Return banner (no check-in for 14+ days) and the Compare cooldown nudge.
No guilt, no nagging: both banners stay dismissed for their cooldown.

Per-day state lives on the settings row as (calendar day, value) pairs.
"""
from datetime import datetime
from typing import Optional
import logging

from services.calendar_days import DayCalendar, UTC_CALENDAR, as_utc_naive

logger = logging.getLogger(__name__)

RETURN_BANNER_GAP_DAYS = 14
COMPARE_NUDGE_OPEN_THRESHOLD = 5

RETURN_BANNER_MESSAGE = "Welcome back. Let's just log today."
COMPARE_NUDGE_MESSAGE = "Progress shows best over weeks."


def should_show_return_banner(
    last_check_in_date: Optional[datetime],
    dismissed_at: Optional[datetime],
    now: datetime,
    calendar: DayCalendar = UTC_CALENDAR,
) -> bool:
    """
    True once the last logged day is RETURN_BANNER_GAP_DAYS or more behind,
    unless the banner was dismissed less than RETURN_BANNER_GAP_DAYS ago.
    """
    if last_check_in_date is None:
        return True
    if calendar.days_between(last_check_in_date, now) < RETURN_BANNER_GAP_DAYS:
        return False
    if dismissed_at is not None:
        return calendar.days_between(dismissed_at, now) >= RETURN_BANNER_GAP_DAYS
    return True


def dismiss_return_banner(settings, now: datetime):
    settings.return_banner_dismissed_at = as_utc_naive(now)
    return settings


def record_compare_open(settings, now: datetime, calendar: DayCalendar = UTC_CALENDAR) -> int:
    """Count one Compare open for today; returns today's count."""
    today = calendar.day_of(now)
    if settings.compare_opens_day != today:
        settings.compare_opens_day = today
        settings.compare_opens_count = 0
    settings.compare_opens_count = (settings.compare_opens_count or 0) + 1
    return settings.compare_opens_count


def compare_opens_today(settings, now: datetime, calendar: DayCalendar = UTC_CALENDAR) -> int:
    if settings.compare_opens_day != calendar.day_of(now):
        return 0
    return settings.compare_opens_count or 0


def should_show_compare_nudge(settings, now: datetime, calendar: DayCalendar = UTC_CALENDAR) -> bool:
    """Opened Compare more than COMPARE_NUDGE_OPEN_THRESHOLD times today and not dismissed today."""
    if compare_opens_today(settings, now, calendar) <= COMPARE_NUDGE_OPEN_THRESHOLD:
        return False
    return settings.compare_nudge_dismissed_on != calendar.day_of(now)


def dismiss_compare_nudge(settings, now: datetime, calendar: DayCalendar = UTC_CALENDAR):
    settings.compare_nudge_dismissed_on = calendar.day_of(now)
    return settings
