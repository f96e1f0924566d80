from sqlalchemy import Column, Integer, Float, Date, DateTime, Time, ForeignKey, Text, Index, Uuid, JSON
from sqlalchemy import Enum as SAEnum
from sqlalchemy.sql import func
from core.database import Base
from enum import Enum
import uuid
from typing import Optional


class WeightUnit(str, Enum):
    LB = "lb"
    KG = "kg"

    @property
    def length_label(self) -> str:
        """Waist follows the weight setting: lb -> inches, kg -> centimeters."""
        return "in" if self is WeightUnit.LB else "cm"


class Pose(str, Enum):
    FRONT = "front"
    SIDE = "side"
    BACK = "back"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class GoalType(str, Enum):
    LOSE_WEIGHT = "lose_weight"
    GAIN_WEIGHT = "gain_weight"
    GAIN_MUSCLE = "gain_muscle"
    RECOMPOSITION = "recomposition"
    NONE = "none"

    @property
    def display_name(self) -> str:
        return {
            GoalType.LOSE_WEIGHT: "Lose weight",
            GoalType.GAIN_WEIGHT: "Gain weight",
            GoalType.GAIN_MUSCLE: "Gain muscle",
            GoalType.RECOMPOSITION: "Recomposition",
            GoalType.NONE: "No specific goal",
        }[self]

    @property
    def is_gain(self) -> bool:
        return self in (GoalType.GAIN_WEIGHT, GoalType.GAIN_MUSCLE)


class CheckInTag(str, Enum):
    """Predefined non-scale win tags. Free text is stored as "custom:<text>"."""
    CLOTHES_FIT_BETTER = "clothes_fit_better"
    VEINS_MORE_VISIBLE = "veins_more_visible"
    MORE_DEFINITION = "more_definition"
    STRENGTH_UP = "strength_up"
    ENERGY_IMPROVED = "energy_improved"
    CUSTOM = "custom"

    @property
    def display_name(self) -> str:
        if self is CheckInTag.CUSTOM:
            return "Other"
        return self.value.replace("_", " ").capitalize()


CUSTOM_TAG_PREFIX = "custom:"


def _enum_column(enum_cls, **kwargs):
    # Stored as plain text so new members never need a migration
    return Column(
        SAEnum(enum_cls, native_enum=False, length=32, values_callable=lambda e: [m.value for m in e]),
        **kwargs,
    )


class CheckIn(Base):
    """
    One day's logged entry. Dates are naive UTC instants.

    The check-in router upserts one row per calendar day; the analytics
    services only ever read these.
    """
    __tablename__ = "check_in"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    date = Column(DateTime, nullable=False, index=True)
    weight = Column(Float, nullable=True)  # unit follows UserSettings.weight_unit
    waist_measurement = Column(Float, nullable=True)  # in or cm, follows weight unit
    front_photo_path = Column(Text, nullable=True)
    side_photo_path = Column(Text, nullable=True)
    back_photo_path = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __init__(self, **kwargs):
        kwargs.setdefault("id", uuid.uuid4())
        kwargs.setdefault("tags", [])
        super().__init__(**kwargs)

    def photo_path(self, pose: Pose) -> Optional[str]:
        return getattr(self, f"{Pose(pose).value}_photo_path")

    def set_photo_path(self, pose: Pose, path: Optional[str]) -> None:
        setattr(self, f"{Pose(pose).value}_photo_path", path)

    @property
    def has_any_photo(self) -> bool:
        return any(self.photo_path(pose) is not None for pose in Pose)

    @property
    def primary_photo_path(self) -> Optional[str]:
        return self.front_photo_path or self.side_photo_path or self.back_photo_path

    @property
    def has_any_content(self) -> bool:
        """A row that exists but holds nothing does not count as a logged day."""
        return (
            self.weight is not None
            or self.has_any_photo
            or bool(self.note)
            or bool(self.tags)
            or self.waist_measurement is not None
        )


class UserSettings(Base):
    """
    Per-user configuration singleton, mutated in place by the services
    that record state (counters, dismissals, active period).
    """
    __tablename__ = "user_settings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    weight_unit = _enum_column(WeightUnit, nullable=False, default=WeightUnit.LB)
    reminder_time = Column(Time, nullable=True)  # local time of day
    goal_type = _enum_column(GoalType, nullable=False, default=GoalType.NONE)

    # Goal range and weekly pace; unit follows weight_unit
    goal_min_weight = Column(Float, nullable=True)
    goal_max_weight = Column(Float, nullable=True)
    pace_min_per_week = Column(Float, nullable=True)  # e.g. -1.0 .. -0.25 lb/week
    pace_max_per_week = Column(Float, nullable=True)
    why_started = Column(Text, nullable=False, default="")

    baseline_check_in_id = Column(Uuid, nullable=True)
    active_progress_period_id = Column(Uuid, nullable=True)

    # --- ENGAGEMENT STATE ---
    # Per-day markers are stored as calendar days, never as formatted strings.
    fluctuation_banner_dismissed_on = Column(Date, nullable=True)
    return_banner_dismissed_at = Column(DateTime, nullable=True)
    compare_opens_day = Column(Date, nullable=True)
    compare_opens_count = Column(Integer, nullable=False, default=0)
    compare_nudge_dismissed_on = Column(Date, nullable=True)
    recovery_plan_started_on = Column(Date, nullable=True)

    def __init__(self, **kwargs):
        kwargs.setdefault("id", uuid.uuid4())
        kwargs.setdefault("weight_unit", WeightUnit.LB)
        kwargs.setdefault("goal_type", GoalType.NONE)
        kwargs.setdefault("why_started", "")
        kwargs.setdefault("compare_opens_count", 0)
        super().__init__(**kwargs)


class ProgressPeriod(Base):
    """
    A goal-consistent phase of progress. A new one opens whenever the
    goal parameters change; end_date is None while active.
    """
    __tablename__ = "progress_period"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    settings_id = Column(Uuid, ForeignKey("user_settings.id"), nullable=True, index=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    goal_type = _enum_column(GoalType, nullable=False)
    target_range_min = Column(Float, nullable=True)
    target_range_max = Column(Float, nullable=True)
    pace_min_per_week = Column(Float, nullable=True)
    pace_max_per_week = Column(Float, nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_progress_period_settings_start", "settings_id", "start_date"),
    )

    def __init__(self, **kwargs):
        kwargs.setdefault("id", uuid.uuid4())
        super().__init__(**kwargs)

    @property
    def is_active(self) -> bool:
        return self.end_date is None
