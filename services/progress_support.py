"""
Progress Support Service

Lightweight motivation and consistency helpers:
- Streaks and gaps over logged calendar days
- Adaptive reminder text
- Plateau detection (split-window averages, gated on logging consistency)
- Weekly summary
- Milestone progress toward the goal weight
- A short 3-day recovery plan after a long break

A "logged day" is a calendar day with at least one check-in that has any
content. Every function takes `now` and a calendar so results are
deterministic.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional
import logging

from models import CheckInTag, CUSTOM_TAG_PREFIX, GoalType, WeightUnit
from services.calendar_days import DayCalendar, UTC_CALENDAR, as_utc_naive, finite_or_none
from services.engagement import RETURN_BANNER_GAP_DAYS
from services.weight_trend import WeightTrendService

logger = logging.getLogger(__name__)

# Plateau detection
PLATEAU_WINDOW_DAYS = 28
PLATEAU_MIN_SAMPLES = 6
PLATEAU_MIN_HALF = 3
PLATEAU_CONSISTENCY_WINDOW_DAYS = 14
PLATEAU_CONSISTENCY_MIN_DAYS = 4

# Reminder thresholds (days since last logged day)
RESTART_AFTER_DAYS = 7
NUDGE_AFTER_DAYS = 2

RECOVERY_PLAN_LENGTH_DAYS = 3
RECOVERY_PLAN_EXPIRY_DAYS = 10

PLATEAU_MESSAGES = {
    GoalType.LOSE_WEIGHT: "Trend looks flat for ~2 weeks. Try one small shift this week: +1k daily steps or tighter weekend portions.",
    GoalType.GAIN_WEIGHT: "Trend looks flat for ~2 weeks. Try adding ~150-200 calories and keep protein consistent.",
    GoalType.GAIN_MUSCLE: "Trend looks flat for ~2 weeks. Try adding ~150-200 calories and keep protein consistent.",
    GoalType.RECOMPOSITION: "Scale trend is flat. That can happen during recomposition - keep lifting and track waist/photos.",
}


@dataclass
class StreakStats:
    current: int
    best: int


@dataclass
class WeeklySummary:
    range_start: datetime
    range_end: datetime
    logged_days: int
    photo_days: int
    wins_logged: int
    trend_change: Optional[float]


@dataclass
class MilestoneStatus:
    start_weight: float
    current_weight: float
    next_milestone_weight: float
    target_weight: float
    progress: float  # 0..1
    days_to_next_milestone: Optional[int]


@dataclass
class RecoveryPlanDay:
    index: int
    date: date
    label: str
    is_complete: bool


@dataclass
class RecoveryPlanStatus:
    start_date: date
    days: List[RecoveryPlanDay] = field(default_factory=list)
    completed_days: int = 0
    is_complete: bool = False


def logged_days(check_ins: Iterable, calendar: DayCalendar = UTC_CALENDAR) -> List[date]:
    """Distinct calendar days with real content, ascending."""
    return sorted({calendar.day_of(c.date) for c in check_ins if c.has_any_content})


def streak_stats(
    check_ins: Iterable,
    now: datetime,
    calendar: DayCalendar = UTC_CALENDAR,
) -> StreakStats:
    """
    Longest run of consecutive logged days anywhere in history, and the
    current run. The current run is 0 once the latest logged day is more
    than one day behind today.
    """
    days = logged_days(check_ins, calendar)
    if not days:
        return StreakStats(current=0, best=0)

    best = run = 1
    for previous, day in zip(days, days[1:]):
        run = run + 1 if (day - previous).days == 1 else 1
        best = max(best, run)

    if (calendar.day_of(now) - days[-1]).days > 1:
        return StreakStats(current=0, best=best)

    current = 1
    cursor = len(days) - 1
    while cursor > 0 and (days[cursor] - days[cursor - 1]).days == 1:
        current += 1
        cursor -= 1
    return StreakStats(current=current, best=best)


def days_since_last_check_in(
    check_ins: Iterable,
    now: datetime,
    calendar: DayCalendar = UTC_CALENDAR,
) -> Optional[int]:
    days = logged_days(check_ins, calendar)
    if not days:
        return None
    return (calendar.day_of(now) - days[-1]).days


def last_logged_check_in_date(check_ins: Iterable) -> Optional[datetime]:
    dates = [c.date for c in check_ins if c.has_any_content]
    return max(dates) if dates else None


def smart_reminder_message(
    check_ins: Iterable,
    reminder_time: Optional[time],
    now: datetime,
    calendar: DayCalendar = UTC_CALENDAR,
) -> Optional[str]:
    """
    Reminder text adapted to how long the user has been away.
    None when today is already logged, or when nothing is due yet.
    """
    check_ins = list(check_ins)
    days = logged_days(check_ins, calendar)
    today = calendar.day_of(now)
    if today in days:
        return None

    missed = days_since_last_check_in(check_ins, now, calendar)
    if missed is None:
        return "Take your first check-in today. One photo is enough."
    if missed >= RESTART_AFTER_DAYS:
        return f"You are {missed} days from your last log. Restart with one photo today."
    if missed >= NUDGE_AFTER_DAYS:
        return f"Quick nudge: {missed} days since your last check-in. A single photo keeps momentum."
    if reminder_time is not None:
        scheduled = reminder_time.replace(second=0, microsecond=0, tzinfo=None)
        if calendar.local_time(now) >= scheduled:
            return "Friendly reminder: log today so your streak stays alive."
    return None


def suggested_win_tags(check_ins: Iterable, limit: int = 3) -> List[CheckInTag]:
    """
    Least-used predefined tags first (ties by identifier), to surface
    variety instead of repeating the user's favorites.
    """
    base_tags = [tag for tag in CheckInTag if tag is not CheckInTag.CUSTOM]
    counts = {tag.value: 0 for tag in base_tags}
    for check_in in check_ins:
        for raw in check_in.tags or []:
            if raw.startswith(CUSTOM_TAG_PREFIX):
                continue
            counts[raw] = counts.get(raw, 0) + 1

    ordered = sorted(base_tags, key=lambda tag: (counts[tag.value], tag.value))
    return ordered[:max(0, limit)]


def plateau_message(
    check_ins: Iterable,
    goal_type: GoalType,
    unit: WeightUnit,
    now: datetime,
    calendar: DayCalendar = UTC_CALENDAR,
) -> Optional[str]:
    """
    Flat trend over the last 4 weeks while still logging consistently.

    Splits the weighted samples of the trailing 28 days into two halves
    and compares their means. Someone who simply stopped logging is not
    nagged: at least 4 logged days in the trailing 14 are required.
    """
    goal_type = GoalType(goal_type)
    now = as_utc_naive(now)
    if goal_type == GoalType.NONE:
        return None
    check_ins = list(check_ins)

    window_start = now - timedelta(days=PLATEAU_WINDOW_DAYS)
    weighted = sorted(
        (
            (c.date, finite_or_none(c.weight))
            for c in check_ins
            if finite_or_none(c.weight) is not None and c.date >= window_start
        ),
        key=lambda s: s[0],
    )
    if len(weighted) < PLATEAU_MIN_SAMPLES:
        return None
    split = len(weighted) // 2
    if split < PLATEAU_MIN_HALF:
        return None

    first_half = [w for _, w in weighted[:split]]
    second_half = [w for _, w in weighted[split:]]
    drift = finite_or_none(sum(second_half) / len(second_half) - sum(first_half) / len(first_half))
    threshold = 0.4 if unit == WeightUnit.KG else 0.8
    if drift is None or abs(drift) > threshold:
        return None

    recent_start = now - timedelta(days=PLATEAU_CONSISTENCY_WINDOW_DAYS)
    consistency_days = {
        calendar.day_of(c.date) for c in check_ins if c.has_any_content and c.date >= recent_start
    }
    if len(consistency_days) < PLATEAU_CONSISTENCY_MIN_DAYS:
        logger.debug(f"Plateau skipped: only {len(consistency_days)} logged days in last 14")
        return None

    return PLATEAU_MESSAGES.get(goal_type)


def weekly_summary(
    check_ins: Iterable,
    now: datetime,
    calendar: DayCalendar = UTC_CALENDAR,
) -> WeeklySummary:
    """Trailing 7 calendar days including today, from local midnight."""
    now = as_utc_naive(now)
    start = calendar.start_of_day(calendar.day_of(now) - timedelta(days=6))
    window = [c for c in check_ins if start <= c.date <= now and c.has_any_content]

    logged = {calendar.day_of(c.date) for c in window}
    photo_days = {calendar.day_of(c.date) for c in window if c.has_any_photo}
    wins = sum(len(c.tags or []) for c in window)
    trend_change = WeightTrendService(window).trend_change()

    return WeeklySummary(
        range_start=start,
        range_end=now,
        logged_days=len(logged),
        photo_days=len(photo_days),
        wins_logged=wins,
        trend_change=trend_change,
    )


def target_weight(settings) -> Optional[float]:
    """
    Goal weight implied by the range: the low end when losing, the high
    end when gaining, None for recomposition or no goal.
    """
    goal_type = GoalType(settings.goal_type)
    low, high = settings.goal_min_weight, settings.goal_max_weight
    if goal_type == GoalType.LOSE_WEIGHT:
        if low is not None and high is not None:
            return min(low, high)
        return low if low is not None else high
    if goal_type.is_gain:
        if low is not None and high is not None:
            return max(low, high)
        return high if high is not None else low
    return None


def milestone_step(unit: WeightUnit) -> float:
    return 0.5 if unit == WeightUnit.KG else 1.0


def milestone_status(
    check_ins: Iterable,
    settings,
    period_start_date: Optional[datetime] = None,
) -> Optional[MilestoneStatus]:
    """
    Direction-aware progress from the first weigh-in of the period toward
    the goal weight, with the next fixed-size milestone and an ETA.

    The ETA is only estimated while the weekly rate moves toward the goal.
    """
    target = finite_or_none(target_weight(settings))
    if target is None:
        return None
    unit = WeightUnit(settings.weight_unit)
    if period_start_date is not None:
        period_start_date = as_utc_naive(period_start_date)

    weighted = sorted(
        (
            c for c in check_ins
            if finite_or_none(c.weight) is not None
            and (period_start_date is None or c.date >= period_start_date)
        ),
        key=lambda c: c.date,
    )
    if not weighted:
        return None
    first_weight = weighted[0].weight

    trend_service = WeightTrendService(weighted)
    current_weight = trend_service.latest_trend
    if current_weight is None:
        current_weight = weighted[-1].weight

    total_distance = abs(target - first_weight)
    if total_distance <= 0.01:
        return None
    direction = 1.0 if target > first_weight else -1.0

    completed_distance = max(0.0, (current_weight - first_weight) * direction)
    progress = min(max(completed_distance / total_distance, 0.0), 1.0)

    step = milestone_step(unit)
    steps_completed = math.floor(completed_distance / step)
    next_distance = min(total_distance, (steps_completed + 1) * step)
    next_milestone = first_weight + next_distance * direction

    days_to_next = None
    rate = trend_service.weekly_rate()
    if rate is not None and abs(rate) > 0.01 and rate * direction > 0:
        remaining = max(0.0, abs(next_milestone - current_weight))
        days_to_next = int(math.ceil(remaining / abs(rate) * 7.0))

    return MilestoneStatus(
        start_weight=first_weight,
        current_weight=current_weight,
        next_milestone_weight=next_milestone,
        target_weight=target,
        progress=progress,
        days_to_next_milestone=days_to_next,
    )


def should_start_recovery_plan(
    last_check_in_date: Optional[datetime],
    existing_start_date: Optional[date],
    now: datetime,
    calendar: DayCalendar = UTC_CALENDAR,
) -> bool:
    """Offer a recovery plan after the same gap that shows the welcome-back banner."""
    if existing_start_date is not None or last_check_in_date is None:
        return False
    return calendar.days_between(last_check_in_date, now) >= RETURN_BANNER_GAP_DAYS


def start_recovery_plan(settings, now: datetime, calendar: DayCalendar = UTC_CALENDAR):
    settings.recovery_plan_started_on = calendar.day_of(now)
    logger.info(f"Recovery plan started on {settings.recovery_plan_started_on}")
    return settings


def clear_recovery_plan(settings):
    settings.recovery_plan_started_on = None
    return settings


def recovery_plan_status(
    start_date: Optional[date],
    check_ins: Iterable,
    now: datetime,
    calendar: DayCalendar = UTC_CALENDAR,
) -> Optional[RecoveryPlanStatus]:
    """
    Three consecutive days from the start date, each complete when that
    day is logged. Expires more than 10 days after the start even if
    unfinished.
    """
    if start_date is None:
        return None
    start = calendar.day_of(start_date)
    if (calendar.day_of(now) - start).days > RECOVERY_PLAN_EXPIRY_DAYS:
        return None

    logged = set(logged_days(check_ins, calendar))
    days = []
    for offset in range(RECOVERY_PLAN_LENGTH_DAYS):
        day = start + timedelta(days=offset)
        days.append(RecoveryPlanDay(
            index=offset,
            date=day,
            label=f"Day {offset + 1}",
            is_complete=day in logged,
        ))
    completed = sum(1 for d in days if d.is_complete)
    return RecoveryPlanStatus(
        start_date=start,
        days=days,
        completed_days=completed,
        is_complete=completed == len(days),
    )
