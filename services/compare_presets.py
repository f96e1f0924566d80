"""
Compare Preset Service

Picks (from, to) check-in pairs for the Compare screen:
first vs latest, 30 days ago vs today, this month, this week,
best visual change this month, baseline vs today.

Every preset returns None rather than a pair whose two sides are the
same check-in.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional
from uuid import UUID
import logging

from models import Pose
from services.calendar_days import DayCalendar, UTC_CALENDAR, as_utc_naive, utc_now

logger = logging.getLogger(__name__)


@dataclass
class ComparePair:
    """Two check-ins to show side by side, oldest first."""
    from_check_in: object
    to_check_in: object


def _pair(from_check_in, to_check_in) -> Optional[ComparePair]:
    if from_check_in is None or to_check_in is None:
        return None
    if from_check_in.id == to_check_in.id:
        return None
    return ComparePair(from_check_in, to_check_in)


class ComparePresetService:
    """Preset selection over a check-in history sorted ascending by date."""

    PRESETS = (
        "first_vs_latest",
        "today_vs_30_days_ago",
        "this_month_start_vs_end",
        "this_week_start_vs_end",
        "best_visual_change_this_month",
        "baseline_vs_today",
    )

    def __init__(
        self,
        check_ins: Iterable,
        baseline_check_in_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
        calendar: DayCalendar = UTC_CALENDAR,
    ):
        self.check_ins: List = sorted(check_ins, key=lambda c: c.date)
        self.baseline_check_in_id = baseline_check_in_id
        self.now = as_utc_naive(now) if now is not None else utc_now()
        self.calendar = calendar

    def first_vs_latest(self) -> Optional[ComparePair]:
        if not self.check_ins:
            return None
        return _pair(self.check_ins[0], self.check_ins[-1])

    def today_vs_30_days_ago(self) -> Optional[ComparePair]:
        """Latest check-in so far vs the one on or nearest after 30 days ago."""
        boundary = self.calendar.start_of_day(self.calendar.day_of(self.now) - timedelta(days=30))
        to_check_in = next((c for c in reversed(self.check_ins) if c.date <= self.now), None)
        from_check_in = next((c for c in reversed(self.check_ins) if c.date <= boundary), None)
        if from_check_in is None:
            from_check_in = next((c for c in self.check_ins if c.date >= boundary), None)
        return _pair(from_check_in, to_check_in)

    def this_month_start_vs_end(self) -> Optional[ComparePair]:
        in_month = self._in_month()
        if not in_month:
            return None
        return _pair(in_month[0], in_month[-1])

    def this_week_start_vs_end(self) -> Optional[ComparePair]:
        start, end = self.calendar.week_bounds(self.now)
        in_week = [c for c in self.check_ins if start <= self.calendar.day_of(c.date) <= end]
        if not in_week:
            return None
        return _pair(in_week[0], in_week[-1])

    def best_visual_change_this_month(self, pose: Pose) -> Optional[ComparePair]:
        """
        Earliest and latest check-ins this month that both carry the pose photo;
        falls back to the month's earliest vs latest regardless of photos.
        """
        in_month = self._in_month()
        with_pose = [c for c in in_month if c.photo_path(pose) is not None]
        if len(with_pose) >= 2:
            pair = _pair(with_pose[0], with_pose[-1])
            if pair is not None:
                return pair
        if not in_month:
            return None
        return _pair(in_month[0], in_month[-1])

    def baseline_vs_today(self, pose: Pose) -> Optional[ComparePair]:
        """Baseline vs latest check-in with the pose photo, else latest overall."""
        if self.baseline_check_in_id is None or not self.check_ins:
            return None
        baseline = next((c for c in self.check_ins if c.id == self.baseline_check_in_id), None)
        latest = self.check_ins[-1]
        if baseline is None or baseline.id == latest.id:
            return None
        with_pose = [c for c in self.check_ins if c.photo_path(pose) is not None]
        to_check_in = with_pose[-1] if with_pose else latest
        return _pair(baseline, to_check_in)

    def all_presets(self, pose: Pose) -> Dict[str, Optional[ComparePair]]:
        """Every preset keyed by name, for a Compare screen's preset picker."""
        return {
            "first_vs_latest": self.first_vs_latest(),
            "today_vs_30_days_ago": self.today_vs_30_days_ago(),
            "this_month_start_vs_end": self.this_month_start_vs_end(),
            "this_week_start_vs_end": self.this_week_start_vs_end(),
            "best_visual_change_this_month": self.best_visual_change_this_month(pose),
            "baseline_vs_today": self.baseline_vs_today(pose),
        }

    def _in_month(self) -> List:
        start, end = self.calendar.month_bounds(self.now)
        return [c for c in self.check_ins if start <= self.calendar.day_of(c.date) <= end]
