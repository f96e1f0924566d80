"""
Settings and Progress Period API Endpoints

Goal edits go through the period manager so a new progress period opens
whenever the goal parameters actually change. Unit switches rewrite every
stored value into the new unit system.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
import logging

from core.database import get_db
from core.dependencies import get_user_settings, load_check_ins, load_periods
from core.exceptions import NotFoundError, ValidationError
from models import CheckIn, UserSettings
from schemas import (
    BaselineUpdate,
    ProgressPeriodCreate,
    ProgressPeriodResponse,
    UserSettingsResponse,
    UserSettingsUpdate,
)
from services.baseline import set_baseline
from services.progress_periods import (
    ensure_active_period_if_needed,
    handle_goal_change,
    periods_for_settings,
    start_new_period,
)
from services.unit_conversion import convert_stored_values

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["settings"])

GOAL_FIELDS = {"goal_type", "goal_min_weight", "goal_max_weight", "pace_min_per_week", "pace_max_per_week"}


@router.get("/settings", response_model=UserSettingsResponse)
def get_settings(user_settings: UserSettings = Depends(get_user_settings)):
    return user_settings


@router.patch("/settings", response_model=UserSettingsResponse)
def update_settings(
    payload: UserSettingsUpdate,
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
):
    """
    Partial update.

    A unit change is applied first so goal numbers sent in the same
    request are taken as already being in the new unit.
    """
    changes = payload.model_dump(exclude_unset=True)

    new_unit = changes.pop("weight_unit", None)
    if new_unit is not None and new_unit != user_settings.weight_unit:
        convert_stored_values(
            user_settings.weight_unit,
            new_unit,
            load_check_ins(db),
            user_settings,
            load_periods(db, user_settings),
        )

    if changes.get("goal_type", "unset") is None:
        raise ValidationError("goal_type cannot be null", field="goal_type")

    for field_name, value in changes.items():
        setattr(user_settings, field_name, value)

    if GOAL_FIELDS & changes.keys():
        periods = load_periods(db, user_settings)
        new_period = handle_goal_change(user_settings, periods)
        if new_period is not None:
            db.add(new_period)

    db.flush()
    return user_settings


@router.put("/settings/baseline", response_model=UserSettingsResponse)
def update_baseline(
    payload: BaselineUpdate,
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
):
    """Mark one check-in as the baseline, or clear it with a null id."""
    if payload.check_in_id is not None:
        exists = db.query(CheckIn.id).filter(CheckIn.id == payload.check_in_id).first()
        if not exists:
            raise NotFoundError("Check-in", str(payload.check_in_id))
    set_baseline(user_settings, payload.check_in_id)
    return user_settings


@router.get("/progress-periods", response_model=List[ProgressPeriodResponse])
def list_progress_periods(
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
):
    """All periods newest first; opens one lazily if a goal is configured."""
    periods = load_periods(db, user_settings)
    created = ensure_active_period_if_needed(user_settings, periods)
    if created is not None and created not in periods:
        db.add(created)
        db.flush()
        periods.append(created)
    return periods_for_settings(user_settings, periods)


@router.post("/progress-periods", response_model=ProgressPeriodResponse, status_code=201)
def create_progress_period(
    payload: ProgressPeriodCreate,
    db: Session = Depends(get_db),
    user_settings: UserSettings = Depends(get_user_settings),
):
    """Explicitly start a new period with the current goal parameters."""
    periods = load_periods(db, user_settings)
    period = start_new_period(
        user_settings,
        periods,
        note=payload.note,
        close_existing=payload.close_existing,
    )
    db.add(period)
    db.flush()
    return period
