"""
Check-in API Endpoints

One check-in per calendar day: PUT merges the submitted fields into
that day's row, creating it if needed.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from datetime import datetime
import logging

from core.database import get_db
from core.dependencies import get_calendar, get_user_settings
from core.exceptions import NotFoundError
from models import CheckIn, UserSettings
from schemas import CheckInResponse, CheckInUpsert
from services.baseline import is_baseline, set_baseline
from services.calendar_days import DayCalendar, as_utc_naive, utc_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/check-ins", tags=["check_ins"])


def to_response(check_in: CheckIn, user_settings: Optional[UserSettings] = None) -> CheckInResponse:
    return CheckInResponse(
        id=check_in.id,
        date=check_in.date,
        weight=check_in.weight,
        waist_measurement=check_in.waist_measurement,
        front_photo_path=check_in.front_photo_path,
        side_photo_path=check_in.side_photo_path,
        back_photo_path=check_in.back_photo_path,
        tags=list(check_in.tags or []),
        note=check_in.note,
        has_any_content=check_in.has_any_content,
        is_baseline=is_baseline(check_in, user_settings),
    )


@router.put("", response_model=CheckInResponse)
def upsert_check_in(
    payload: CheckInUpsert,
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
    calendar: DayCalendar = Depends(get_calendar),
):
    """Create or update the check-in for the payload's calendar day."""
    moment = as_utc_naive(payload.date) if payload.date else utc_now()
    day_start = calendar.start_of_day(moment)
    day_end = calendar.end_of_day(moment)

    check_in = db.query(CheckIn).filter(
        CheckIn.date >= day_start,
        CheckIn.date <= day_end,
    ).order_by(CheckIn.date.asc()).first()

    if check_in is None:
        check_in = CheckIn(date=moment)
        db.add(check_in)
        logger.info(f"Created check-in for {calendar.day_of(moment)}")

    for field_name in payload.model_fields_set - {"date"}:
        value = getattr(payload, field_name)
        if field_name == "tags":
            value = list(dict.fromkeys(value or []))
        setattr(check_in, field_name, value)

    db.flush()
    return to_response(check_in, user_settings)


@router.get("", response_model=List[CheckInResponse])
def list_check_ins(
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
):
    """History oldest first, optionally bounded."""
    query = db.query(CheckIn)
    if start_date:
        query = query.filter(CheckIn.date >= as_utc_naive(start_date))
    if end_date:
        query = query.filter(CheckIn.date <= as_utc_naive(end_date))
    return [to_response(c, user_settings) for c in query.order_by(CheckIn.date.asc()).all()]


@router.get("/{check_in_id}", response_model=CheckInResponse)
def get_check_in(
    check_in_id: UUID,
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
):
    check_in = db.query(CheckIn).filter(CheckIn.id == check_in_id).first()
    if not check_in:
        raise NotFoundError("Check-in", str(check_in_id))
    return to_response(check_in, user_settings)


@router.delete("/{check_in_id}", status_code=204)
def delete_check_in(
    check_in_id: UUID,
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
):
    """Delete a check-in; clears the baseline if it pointed here."""
    check_in = db.query(CheckIn).filter(CheckIn.id == check_in_id).first()
    if not check_in:
        raise NotFoundError("Check-in", str(check_in_id))
    if is_baseline(check_in, user_settings):
        set_baseline(user_settings, None)
    db.delete(check_in)
    logger.info(f"Deleted check-in {check_in_id}")
