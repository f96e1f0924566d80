"""
Progress Period Service

Creation and transitions of goal-based progress periods. One period is
active (no end date) at a time per settings row; changing the goal closes
the active period and opens a new one in a single step.

New periods are returned to the caller, who adds them to its session.
"""
from datetime import datetime
from typing import Iterable, List, Optional
import logging

from models import GoalType, ProgressPeriod
from services.calendar_days import as_utc_naive, utc_now

logger = logging.getLogger(__name__)


def active_period(settings, periods: Iterable[ProgressPeriod]) -> Optional[ProgressPeriod]:
    """
    The period the settings row points at; falls back to the most recently
    started open period when the stored id is missing or stale.
    """
    periods = list(periods)
    active_id = settings.active_progress_period_id if settings is not None else None
    if active_id is not None:
        match = next((p for p in periods if p.id == active_id), None)
        if match is not None:
            return match
    open_periods = [p for p in periods if p.end_date is None]
    if not open_periods:
        return None
    return max(open_periods, key=lambda p: p.start_date)


def start_new_period(
    settings,
    periods: Iterable[ProgressPeriod],
    now: Optional[datetime] = None,
    note: Optional[str] = None,
    close_existing: bool = True,
) -> ProgressPeriod:
    """Open a period capturing the current goal parameters and make it active."""
    now = as_utc_naive(now) if now is not None else utc_now()
    if close_existing:
        current = active_period(settings, periods)
        if current is not None:
            current.end_date = now
            logger.info(f"Closed progress period {current.id}")

    period = ProgressPeriod(
        settings_id=settings.id,
        start_date=now,
        end_date=None,
        goal_type=settings.goal_type,
        target_range_min=settings.goal_min_weight,
        target_range_max=settings.goal_max_weight,
        pace_min_per_week=settings.pace_min_per_week,
        pace_max_per_week=settings.pace_max_per_week,
        note=note,
        created_at=now,
    )
    settings.active_progress_period_id = period.id
    logger.info(f"Opened progress period {period.id} ({GoalType(period.goal_type).value})")
    return period


def settings_match(period: ProgressPeriod, settings) -> bool:
    return (
        period.goal_type == settings.goal_type
        and period.target_range_min == settings.goal_min_weight
        and period.target_range_max == settings.goal_max_weight
        and period.pace_min_per_week == settings.pace_min_per_week
        and period.pace_max_per_week == settings.pace_max_per_week
    )


def handle_goal_change(
    settings,
    periods: Iterable[ProgressPeriod],
    now: Optional[datetime] = None,
) -> Optional[ProgressPeriod]:
    """
    If the goal-defining settings changed, close the active period and
    open a new one. Returns None when the active period already matches.
    """
    periods = list(periods)
    current = active_period(settings, periods)
    if current is not None and settings_match(current, settings):
        return None
    return start_new_period(settings, periods, now=now, close_existing=True)


def has_goal_context(settings) -> bool:
    return (
        GoalType(settings.goal_type) != GoalType.NONE
        or settings.goal_min_weight is not None
        or settings.goal_max_weight is not None
        or settings.pace_min_per_week is not None
        or settings.pace_max_per_week is not None
    )


def ensure_active_period_if_needed(
    settings,
    periods: Iterable[ProgressPeriod],
    now: Optional[datetime] = None,
) -> Optional[ProgressPeriod]:
    """
    Return the active period, creating one lazily once the user has
    expressed any goal intent. A brand-new user with no goal gets none.
    """
    periods = list(periods)
    current = active_period(settings, periods)
    if current is not None:
        if settings.active_progress_period_id is None:
            settings.active_progress_period_id = current.id
        return current
    if not has_goal_context(settings):
        return None
    return start_new_period(settings, periods, now=now, close_existing=False)


def periods_for_settings(settings, periods: Iterable[ProgressPeriod]) -> List[ProgressPeriod]:
    """Periods newest first."""
    return sorted(
        (p for p in periods if p.settings_id in (None, settings.id)),
        key=lambda p: p.start_date,
        reverse=True,
    )
