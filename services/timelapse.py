"""
Timelapse Frame Selection

Chooses the ordered photo frames (and optional trend overlay text) for a
timelapse of one pose. Encoding the frames into a video is done by the
client; this module only decides which images go in and in what order.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from models import Pose, WeightUnit
from services.calendar_days import DayCalendar, UTC_CALENDAR
from services.weight_trend import WeightTrendService, format_trend


@dataclass
class TimelapseFrame:
    date: datetime
    image_path: str
    overlay_text: Optional[str] = None


def timelapse_frames(
    check_ins: Iterable,
    pose: Pose,
    unit: WeightUnit,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    overlay_weight: bool = False,
    calendar: DayCalendar = UTC_CALENDAR,
) -> List[TimelapseFrame]:
    in_range = sorted(
        (
            c for c in check_ins
            if (start is None or c.date >= start) and (end is None or c.date <= end)
        ),
        key=lambda c: c.date,
    )
    trend_service = WeightTrendService(in_range)

    frames = []
    for check_in in in_range:
        path = check_in.photo_path(pose)
        if path is None:
            continue
        overlay = None
        if overlay_weight:
            index = trend_service.index_for_day(check_in.date, calendar)
            trend = trend_service.trend_at(index) if index is not None else None
            if trend is not None:
                overlay = f"Trend {format_trend(trend, unit)}"
        frames.append(TimelapseFrame(date=check_in.date, image_path=path, overlay_text=overlay))
    return frames
