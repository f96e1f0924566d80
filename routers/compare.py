"""
Compare API Router

Preset (from, to) pairs for the Compare screen, the per-day open counter
behind the cooldown nudge, and timelapse frame selection.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
import logging

from core.database import get_db
from core.dependencies import get_calendar, get_user_settings, load_check_ins
from models import Pose, UserSettings
from routers.check_ins import to_response
from schemas import (
    ComparePairResponse,
    CompareOpenResponse,
    ComparePresetsResponse,
    TimelapseFrameResponse,
    UserSettingsResponse,
)
from services import engagement
from services.calendar_days import DayCalendar, as_utc_naive, utc_now
from services.compare_presets import ComparePresetService
from services.timelapse import timelapse_frames

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/compare", tags=["compare"])


@router.get("/presets", response_model=ComparePresetsResponse)
def get_presets(
    pose: Pose = Query(default=Pose.FRONT),
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
    calendar: DayCalendar = Depends(get_calendar),
):
    selector = ComparePresetService(
        load_check_ins(db),
        baseline_check_in_id=user_settings.baseline_check_in_id,
        now=utc_now(),
        calendar=calendar,
    )
    presets = {}
    for name, pair in selector.all_presets(pose).items():
        if pair is None:
            presets[name] = None
            continue
        presets[name] = ComparePairResponse(
            from_check_in=to_response(pair.from_check_in, user_settings),
            to_check_in=to_response(pair.to_check_in, user_settings),
        )
    return ComparePresetsResponse(pose=pose, presets=presets)


@router.post("/opens", response_model=CompareOpenResponse)
def record_open(
    user_settings: UserSettings = Depends(get_user_settings),
    calendar: DayCalendar = Depends(get_calendar),
):
    now = utc_now()
    count = engagement.record_compare_open(user_settings, now, calendar)
    show_nudge = engagement.should_show_compare_nudge(user_settings, now, calendar)
    return CompareOpenResponse(
        opens_today=count,
        show_nudge=show_nudge,
        nudge_message=engagement.COMPARE_NUDGE_MESSAGE if show_nudge else None,
    )


@router.post("/nudge/dismiss", response_model=UserSettingsResponse)
def dismiss_nudge(
    user_settings: UserSettings = Depends(get_user_settings),
    calendar: DayCalendar = Depends(get_calendar),
):
    return engagement.dismiss_compare_nudge(user_settings, utc_now(), calendar)


@router.get("/timelapse", response_model=List[TimelapseFrameResponse])
def get_timelapse(
    pose: Pose = Query(default=Pose.FRONT),
    start: Optional[datetime] = Query(default=None),
    end: Optional[datetime] = Query(default=None),
    overlay_weight: bool = Query(default=False),
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
    calendar: DayCalendar = Depends(get_calendar),
):
    return timelapse_frames(
        load_check_ins(db),
        pose,
        user_settings.weight_unit,
        start=as_utc_naive(start) if start else None,
        end=as_utc_naive(end) if end else None,
        overlay_weight=overlay_weight,
        calendar=calendar,
    )
