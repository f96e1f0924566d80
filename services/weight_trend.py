"""
Weight Trend Service

Trend-first weight: a trailing moving average over the last 7 *logged*
samples plus a week-over-week rate. Reduces scale anxiety.

The average is sample-indexed, not calendar-windowed: a sparse logger's
trend still averages their last 7 entries. The weekly rate is date-aware.
Plateau and milestone messages depend on exactly this pairing.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from models import WeightUnit
from services.calendar_days import DayCalendar, UTC_CALENDAR, finite_or_none

TREND_WINDOW = 7


class WeightTrendService:
    """Moving-average trend over the weighted subset of a check-in history."""

    def __init__(self, check_ins: Iterable):
        samples: List[Tuple[datetime, float]] = []
        for check_in in check_ins:
            weight = finite_or_none(check_in.weight)
            if weight is None:
                continue
            samples.append((check_in.date, weight))
        samples.sort(key=lambda s: s[0])
        self._samples = samples

    @property
    def count(self) -> int:
        return len(self._samples)

    def trend_at(self, index: int) -> Optional[float]:
        """Mean of samples [index-6 .. index]; None when index is out of range."""
        if index < 0 or index >= len(self._samples):
            return None
        start = max(0, index - TREND_WINDOW + 1)
        window = [weight for _, weight in self._samples[start:index + 1]]
        return finite_or_none(sum(window) / len(window))

    @property
    def latest_trend(self) -> Optional[float]:
        if not self._samples:
            return None
        return self.trend_at(len(self._samples) - 1)

    def raw_weight(self, index: int) -> Optional[float]:
        if index < 0 or index >= len(self._samples):
            return None
        return self._samples[index][1]

    def date_at(self, index: int) -> Optional[datetime]:
        if index < 0 or index >= len(self._samples):
            return None
        return self._samples[index][0]

    def index_for_day(self, day, calendar: DayCalendar = UTC_CALENDAR) -> Optional[int]:
        """Index of the first sample on the same calendar day, or None."""
        target = calendar.day_of(day)
        for index, (sample_date, _) in enumerate(self._samples):
            if calendar.day_of(sample_date) == target:
                return index
        return None

    def weekly_rate(self) -> Optional[float]:
        """
        (trend_now - trend_~7_days_ago) / days_between * 7.

        Positive = gaining, negative = losing. Uses the sample nearest to
        seven days before the latest one; None with fewer than two samples
        or when the samples are less than a whole day apart.
        """
        if len(self._samples) < 2:
            return None
        now_index = len(self._samples) - 1
        now_trend = self.trend_at(now_index)
        if now_trend is None:
            return None
        now_date = self._samples[now_index][0]

        past_index = self._nearest_index(now_date - timedelta(days=7))
        past_trend = self.trend_at(past_index)
        if past_trend is None:
            return None
        days_between = (now_date - self._samples[past_index][0]).days
        if days_between <= 0:
            return None
        return finite_or_none((now_trend - past_trend) / days_between * 7.0)

    def trend_change(self) -> Optional[float]:
        """Latest trend minus the first trend in the series."""
        if len(self._samples) < 2:
            return None
        first, latest = self.trend_at(0), self.latest_trend
        if first is None or latest is None:
            return None
        return finite_or_none(latest - first)

    def _nearest_index(self, moment: datetime) -> int:
        # Strict '<' keeps the first sample on ties
        best = 0
        best_diff = abs((self._samples[0][0] - moment).total_seconds())
        for index in range(1, len(self._samples)):
            diff = abs((self._samples[index][0] - moment).total_seconds())
            if diff < best_diff:
                best, best_diff = index, diff
        return best


# --- Formatting (neutral language) ---

def format_number(value: float, max_decimals: int = 1) -> str:
    """Zero or up to max_decimals fraction digits: 170 -> "170", 170.46 -> "170.5"."""
    rounded = round(value, max_decimals)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:.{max_decimals}f}".rstrip("0").rstrip(".")


def format_weekly_rate(rate: float, unit: WeightUnit) -> str:
    """e.g. "↓ 0.4 lb/week" or "↑ 0.2 kg/week"."""
    arrow = "↓" if rate < 0 else "↑"
    return f"{arrow} {abs(rate):.1f} {WeightUnit(unit).value}/week"


def format_trend(value: float, unit: WeightUnit) -> str:
    return f"{format_number(value)} {WeightUnit(unit).value}"
