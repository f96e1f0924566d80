"""
Progress API Router

Trend, streaks, weekly summary, milestones, insight nudges, engagement
banners and the recovery plan. Every endpoint loads the history once and
delegates to the analytics services.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
import logging

from core.database import get_db
from core.dependencies import get_calendar, get_user_settings, load_check_ins, load_periods
from core.exceptions import ConflictError, NotFoundError
from models import UserSettings
from schemas import (
    BannersResponse,
    InsightsResponse,
    MilestoneResponse,
    RecoveryPlanResponse,
    StreakResponse,
    TrendPoint,
    TrendResponse,
    UserSettingsResponse,
    WeeklySummaryResponse,
)
from services import engagement, insights, progress_support
from services.calendar_days import DayCalendar, utc_now
from services.progress_periods import active_period
from services.weight_trend import WeightTrendService, format_trend, format_weekly_rate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/progress", tags=["progress"])


@router.get("/trend", response_model=TrendResponse)
def get_trend(
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
):
    unit = user_settings.weight_unit
    trend_service = WeightTrendService(load_check_ins(db))
    points = []
    for index in range(trend_service.count):
        points.append(TrendPoint(
            date=trend_service.date_at(index),
            weight=trend_service.raw_weight(index),
            trend=trend_service.trend_at(index),
        ))
    latest = trend_service.latest_trend
    rate = trend_service.weekly_rate()
    return TrendResponse(
        unit=unit,
        points=points,
        latest_trend=latest,
        latest_trend_text=format_trend(latest, unit) if latest is not None else None,
        weekly_rate=rate,
        weekly_rate_text=format_weekly_rate(rate, unit) if rate is not None else None,
    )


@router.get("/streaks", response_model=StreakResponse)
def get_streaks(
    db: Session = Depends(get_db),
    calendar: DayCalendar = Depends(get_calendar),
):
    check_ins = load_check_ins(db)
    now = utc_now()
    stats = progress_support.streak_stats(check_ins, now, calendar)
    return StreakResponse(
        current=stats.current,
        best=stats.best,
        days_since_last_check_in=progress_support.days_since_last_check_in(check_ins, now, calendar),
    )


@router.get("/weekly-summary", response_model=WeeklySummaryResponse)
def get_weekly_summary(
    db: Session = Depends(get_db),
    calendar: DayCalendar = Depends(get_calendar),
):
    return progress_support.weekly_summary(load_check_ins(db), utc_now(), calendar)


@router.get("/milestone", response_model=Optional[MilestoneResponse])
def get_milestone(
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
):
    """Milestone progress within the active period; null without a resolvable target."""
    period = active_period(user_settings, load_periods(db, user_settings))
    period_start = period.start_date if period is not None else None
    return progress_support.milestone_status(load_check_ins(db), user_settings, period_start)


@router.get("/insights", response_model=InsightsResponse)
def get_insights(
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
    calendar: DayCalendar = Depends(get_calendar),
):
    check_ins = load_check_ins(db)
    now = utc_now()
    unit = user_settings.weight_unit
    trend_service = WeightTrendService(check_ins)

    today_raw, last_raw = insights.fluctuation_inputs(check_ins, now, calendar)
    show_fluctuation = insights.should_show_fluctuation_banner(
        today_raw,
        last_raw,
        unit,
        insights.is_fluctuation_banner_dismissed(user_settings, now, calendar),
    )

    return InsightsResponse(
        fluctuation_banner=insights.fluctuation_banner_message(unit) if show_fluctuation else None,
        measurement_nudge=insights.measurement_nudge(insights.waist_points(check_ins), trend_service, unit),
        pace_context=insights.pace_context(
            trend_service.weekly_rate(),
            user_settings.pace_min_per_week,
            user_settings.pace_max_per_week,
            user_settings.goal_type,
            unit,
        ),
        plateau=progress_support.plateau_message(check_ins, user_settings.goal_type, unit, now, calendar),
        reminder=progress_support.smart_reminder_message(check_ins, user_settings.reminder_time, now, calendar),
        suggested_win_tags=progress_support.suggested_win_tags(check_ins),
    )


@router.get("/banners", response_model=BannersResponse)
def get_banners(
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
    calendar: DayCalendar = Depends(get_calendar),
):
    check_ins = load_check_ins(db)
    now = utc_now()
    last_date = progress_support.last_logged_check_in_date(check_ins)

    show_return = engagement.should_show_return_banner(
        last_date, user_settings.return_banner_dismissed_at, now, calendar
    )
    show_nudge = engagement.should_show_compare_nudge(user_settings, now, calendar)
    return BannersResponse(
        return_banner=engagement.RETURN_BANNER_MESSAGE if show_return else None,
        compare_nudge=engagement.COMPARE_NUDGE_MESSAGE if show_nudge else None,
        offer_recovery_plan=progress_support.should_start_recovery_plan(
            last_date, user_settings.recovery_plan_started_on, now, calendar
        ),
    )


@router.post("/banners/{banner}/dismiss", response_model=UserSettingsResponse)
def dismiss_banner(
    banner: str,
    user_settings: UserSettings = Depends(get_user_settings),
    calendar: DayCalendar = Depends(get_calendar),
):
    now = utc_now()
    if banner == "return":
        engagement.dismiss_return_banner(user_settings, now)
    elif banner == "fluctuation":
        insights.dismiss_fluctuation_banner(user_settings, now, calendar)
    elif banner == "compare-nudge":
        engagement.dismiss_compare_nudge(user_settings, now, calendar)
    else:
        raise NotFoundError("Banner", banner)
    return user_settings


@router.get("/recovery-plan", response_model=Optional[RecoveryPlanResponse])
def get_recovery_plan(
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
    calendar: DayCalendar = Depends(get_calendar),
):
    """Current plan status; an expired plan is cleared and reported as null."""
    status = progress_support.recovery_plan_status(
        user_settings.recovery_plan_started_on, load_check_ins(db), utc_now(), calendar
    )
    if status is None and user_settings.recovery_plan_started_on is not None:
        progress_support.clear_recovery_plan(user_settings)
    return status


@router.post("/recovery-plan", response_model=RecoveryPlanResponse, status_code=201)
def start_recovery_plan(
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
    calendar: DayCalendar = Depends(get_calendar),
):
    check_ins = load_check_ins(db)
    now = utc_now()
    last_date = progress_support.last_logged_check_in_date(check_ins)
    if not progress_support.should_start_recovery_plan(
        last_date, user_settings.recovery_plan_started_on, now, calendar
    ):
        raise ConflictError("Recovery plan is already running or not needed")
    progress_support.start_recovery_plan(user_settings, now, calendar)
    return progress_support.recovery_plan_status(
        user_settings.recovery_plan_started_on, check_ins, now, calendar
    )
