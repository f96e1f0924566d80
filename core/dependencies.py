"""
Shared FastAPI dependencies and loaders.

Routers fetch and order rows here, then pass plain lists into the
analytics services.
"""
from typing import List
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from core.config import settings as app_settings
from core.database import get_db
from models import CheckIn, ProgressPeriod, UserSettings
from services.calendar_days import DayCalendar

logger = logging.getLogger(__name__)


def get_calendar() -> DayCalendar:
    return DayCalendar.from_settings(app_settings)


def get_user_settings(db: Session = Depends(get_db)) -> UserSettings:
    """The settings singleton, created with defaults on first use."""
    user_settings = db.query(UserSettings).order_by(UserSettings.id).first()
    if user_settings is None:
        user_settings = UserSettings()
        db.add(user_settings)
        db.flush()
        logger.info(f"Created settings {user_settings.id}")
    return user_settings


def load_check_ins(db: Session) -> List[CheckIn]:
    """Full history, oldest first."""
    return db.query(CheckIn).order_by(CheckIn.date.asc()).all()


def load_periods(db: Session, user_settings: UserSettings) -> List[ProgressPeriod]:
    return (
        db.query(ProgressPeriod)
        .filter(ProgressPeriod.settings_id == user_settings.id)
        .order_by(ProgressPeriod.start_date.asc())
        .all()
    )
