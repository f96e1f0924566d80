from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, List, Optional
from datetime import date, datetime, time
from uuid import UUID

from models import CUSTOM_TAG_PREFIX, CheckInTag, GoalType, Pose, WeightUnit

# Plausibility bounds, loose enough for either unit system
MAX_WEIGHT = 1500.0
MAX_WAIST = 500.0


class CheckInUpsert(BaseModel):
    """Schema for logging a check-in; one per calendar day, fields merge into that day."""
    date: Optional[datetime] = None  # defaults to now
    weight: Optional[float] = Field(default=None, gt=0, le=MAX_WEIGHT)
    waist_measurement: Optional[float] = Field(default=None, gt=0, le=MAX_WAIST)
    front_photo_path: Optional[str] = None
    side_photo_path: Optional[str] = None
    back_photo_path: Optional[str] = None
    tags: Optional[List[str]] = None
    note: Optional[str] = None

    @field_validator("tags")
    @classmethod
    def known_or_custom_tags(cls, tags):
        if tags is None:
            return tags
        known = {tag.value for tag in CheckInTag if tag is not CheckInTag.CUSTOM}
        for raw in tags:
            if raw not in known and not raw.startswith(CUSTOM_TAG_PREFIX):
                raise ValueError(f"Unknown tag: {raw}")
        return tags


class CheckInResponse(BaseModel):
    id: UUID
    date: datetime
    weight: Optional[float] = None
    waist_measurement: Optional[float] = None
    front_photo_path: Optional[str] = None
    side_photo_path: Optional[str] = None
    back_photo_path: Optional[str] = None
    tags: List[str] = []
    note: Optional[str] = None
    has_any_content: bool
    is_baseline: bool = False

    model_config = ConfigDict(from_attributes=True)


class UserSettingsUpdate(BaseModel):
    """Partial update; omitted fields are left alone, explicit nulls clear them."""
    weight_unit: Optional[WeightUnit] = None
    reminder_time: Optional[time] = None
    goal_type: Optional[GoalType] = None
    goal_min_weight: Optional[float] = None
    goal_max_weight: Optional[float] = None
    pace_min_per_week: Optional[float] = None
    pace_max_per_week: Optional[float] = None
    why_started: Optional[str] = None


class UserSettingsResponse(BaseModel):
    id: UUID
    weight_unit: WeightUnit
    reminder_time: Optional[time] = None
    goal_type: GoalType
    goal_min_weight: Optional[float] = None
    goal_max_weight: Optional[float] = None
    pace_min_per_week: Optional[float] = None
    pace_max_per_week: Optional[float] = None
    why_started: str = ""
    baseline_check_in_id: Optional[UUID] = None
    active_progress_period_id: Optional[UUID] = None
    recovery_plan_started_on: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)


class BaselineUpdate(BaseModel):
    check_in_id: Optional[UUID] = None


class ProgressPeriodCreate(BaseModel):
    note: Optional[str] = None
    close_existing: bool = True


class ProgressPeriodResponse(BaseModel):
    id: UUID
    start_date: datetime
    end_date: Optional[datetime] = None
    goal_type: GoalType
    target_range_min: Optional[float] = None
    target_range_max: Optional[float] = None
    pace_min_per_week: Optional[float] = None
    pace_max_per_week: Optional[float] = None
    note: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class TrendPoint(BaseModel):
    date: datetime
    weight: float
    trend: Optional[float] = None  # None when the window mean is not finite


class TrendResponse(BaseModel):
    unit: WeightUnit
    points: List[TrendPoint] = []
    latest_trend: Optional[float] = None
    latest_trend_text: Optional[str] = None
    weekly_rate: Optional[float] = None
    weekly_rate_text: Optional[str] = None


class StreakResponse(BaseModel):
    current: int
    best: int
    days_since_last_check_in: Optional[int] = None


class WeeklySummaryResponse(BaseModel):
    range_start: datetime
    range_end: datetime
    logged_days: int
    photo_days: int
    wins_logged: int
    trend_change: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class MilestoneResponse(BaseModel):
    start_weight: float
    current_weight: float
    next_milestone_weight: float
    target_weight: float
    progress: float
    days_to_next_milestone: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class InsightsResponse(BaseModel):
    fluctuation_banner: Optional[str] = None
    measurement_nudge: Optional[str] = None
    pace_context: Optional[str] = None
    plateau: Optional[str] = None
    reminder: Optional[str] = None
    suggested_win_tags: List[CheckInTag] = []


class BannersResponse(BaseModel):
    return_banner: Optional[str] = None
    compare_nudge: Optional[str] = None
    offer_recovery_plan: bool = False


class RecoveryPlanDayResponse(BaseModel):
    index: int
    date: date
    label: str
    is_complete: bool

    model_config = ConfigDict(from_attributes=True)


class RecoveryPlanResponse(BaseModel):
    start_date: date
    days: List[RecoveryPlanDayResponse]
    completed_days: int
    is_complete: bool

    model_config = ConfigDict(from_attributes=True)


class ComparePairResponse(BaseModel):
    from_check_in: CheckInResponse
    to_check_in: CheckInResponse


class ComparePresetsResponse(BaseModel):
    pose: Pose
    presets: Dict[str, Optional[ComparePairResponse]]


class CompareOpenResponse(BaseModel):
    opens_today: int
    show_nudge: bool
    nudge_message: Optional[str] = None


class TimelapseFrameResponse(BaseModel):
    date: datetime
    image_path: str
    overlay_text: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
