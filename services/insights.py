"""
Insight Rules

Three stateless nudge rules, all neutral in tone:
- Fluctuation banner: a large day-to-day swing on the raw scale
- Measurement nudge: flat weight trend while the waist is shrinking
- Pace context: gain goals moving faster or slower than the target band
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from models import GoalType, WeightUnit
from services.calendar_days import DayCalendar, UTC_CALENDAR, finite_or_none
from services.weight_trend import WeightTrendService, format_number

MEASUREMENT_NUDGE_MIN_DAYS = 14


def fluctuation_threshold(unit: WeightUnit) -> float:
    """Large daily change: 2.0 lb or 1.0 kg."""
    return 1.0 if unit == WeightUnit.KG else 2.0


def stable_trend_epsilon(unit: WeightUnit) -> float:
    return 0.5 if unit == WeightUnit.KG else 1.0


def should_show_fluctuation_banner(
    today_raw: Optional[float],
    last_raw: Optional[float],
    unit: WeightUnit,
    dismissed_today: bool,
) -> bool:
    today_raw, last_raw = finite_or_none(today_raw), finite_or_none(last_raw)
    if today_raw is None or last_raw is None or dismissed_today:
        return False
    return abs(today_raw - last_raw) >= fluctuation_threshold(unit)


def fluctuation_banner_message(unit: WeightUnit) -> str:
    if unit == WeightUnit.KG:
        return "Daily weight can fluctuate ±0.5–1.5 kg due to water, food, stress, and sleep. Focus on the trend."
    return "Daily weight can fluctuate ±1–3 lb due to water, food, stress, and sleep. Focus on the trend."


def fluctuation_inputs(
    check_ins: Iterable,
    now: datetime,
    calendar: DayCalendar = UTC_CALENDAR,
) -> Tuple[Optional[float], Optional[float]]:
    """
    Today's raw weight and the raw weight from the most recent earlier
    calendar day that has one.
    """
    today = calendar.day_of(now)
    weighted = sorted(
        (c for c in check_ins if finite_or_none(c.weight) is not None),
        key=lambda c: c.date,
    )
    today_raw = None
    last_raw = None
    for check_in in weighted:
        day = calendar.day_of(check_in.date)
        if day == today:
            today_raw = check_in.weight
        elif day < today:
            last_raw = check_in.weight
    return today_raw, last_raw


def is_fluctuation_banner_dismissed(settings, now: datetime, calendar: DayCalendar = UTC_CALENDAR) -> bool:
    return settings.fluctuation_banner_dismissed_on == calendar.day_of(now)


def dismiss_fluctuation_banner(settings, now: datetime, calendar: DayCalendar = UTC_CALENDAR):
    settings.fluctuation_banner_dismissed_on = calendar.day_of(now)
    return settings


def waist_points(check_ins: Iterable) -> List[Tuple[datetime, float]]:
    """Chronological (date, waist) pairs for check-ins with a usable waist value."""
    points = []
    for check_in in check_ins:
        waist = finite_or_none(check_in.waist_measurement)
        if waist is not None:
            points.append((check_in.date, waist))
    points.sort(key=lambda p: p[0])
    return points


def measurement_nudge(
    points: List[Tuple[datetime, float]],
    trend_service: Optional[WeightTrendService],
    unit: WeightUnit,
) -> Optional[str]:
    """
    Weight trend flat over ~2+ weeks but waist down -> point at progress
    the scale does not show.

    Weight counts as stable when the trend data is unavailable.
    """
    if len(points) < 2:
        return None
    (first_date, first_waist), (last_date, last_waist) = points[0], points[-1]
    if (last_date - first_date).days < MEASUREMENT_NUDGE_MIN_DAYS:
        return None
    waist_change = last_waist - first_waist

    weight_stable = True
    if trend_service is not None:
        latest = trend_service.latest_trend
        past = trend_service.trend_at(max(0, trend_service.count - 7))
        if latest is not None and past is not None:
            weight_stable = abs(latest - past) < stable_trend_epsilon(unit)

    if not weight_stable or waist_change >= 0:
        return None
    unit = WeightUnit(unit)
    return (
        f"Weight is stable, but waist is down {format_number(abs(waist_change))} {unit.length_label} "
        f"— progress can show up beyond the scale."
    )


def _signed(value: float) -> str:
    text = format_number(value)
    return text if text.startswith("-") else f"+{text}"


def pace_context(
    current_rate: Optional[float],
    pace_min: Optional[float],
    pace_max: Optional[float],
    goal_type: GoalType,
    unit: WeightUnit,
) -> Optional[str]:
    """
    e.g. "Current pace: +1.5 lb/week (target was +0.5–+1)." No alarms,
    only for weight/muscle gain goals.
    """
    if not GoalType(goal_type).is_gain:
        return None
    current_rate = finite_or_none(current_rate)
    if current_rate is None or pace_min is None or pace_max is None:
        return None
    if pace_min <= current_rate <= pace_max:
        return None
    return (
        f"Current pace: {_signed(current_rate)} {WeightUnit(unit).value}/week "
        f"(target was {_signed(pace_min)}–{_signed(pace_max)})."
    )
