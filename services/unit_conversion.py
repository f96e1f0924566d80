"""
Unit Conversion Service

Converts stored values when the weight unit preference changes.
Waist follows the weight setting: lb -> inches, kg -> centimeters.
"""
from typing import Iterable, Optional
import logging

from models import WeightUnit
from services.calendar_days import finite_or_none

logger = logging.getLogger(__name__)

POUNDS_PER_KILOGRAM = 2.2046226218
CENTIMETERS_PER_INCH = 2.54


def _weight_factor(from_unit: WeightUnit, to_unit: WeightUnit) -> float:
    if from_unit == to_unit:
        return 1.0
    return 1 / POUNDS_PER_KILOGRAM if from_unit == WeightUnit.LB else POUNDS_PER_KILOGRAM


def _length_factor(from_unit: WeightUnit, to_unit: WeightUnit) -> float:
    if from_unit == to_unit:
        return 1.0
    return CENTIMETERS_PER_INCH if from_unit == WeightUnit.LB else 1 / CENTIMETERS_PER_INCH


def _scaled(value: Optional[float], factor: float) -> Optional[float]:
    if value is None:
        return None
    return finite_or_none(value * factor)


def convert_weight(value: Optional[float], from_unit: WeightUnit, to_unit: WeightUnit) -> Optional[float]:
    """
    Convert a mass between pounds and kilograms.

    Examples:
        >>> round(convert_weight(100, WeightUnit.KG, WeightUnit.LB), 2)
        220.46
        >>> convert_weight(None, WeightUnit.KG, WeightUnit.LB) is None
        True
    """
    return _scaled(value, _weight_factor(from_unit, to_unit))


def convert_length(value: Optional[float], from_unit: WeightUnit, to_unit: WeightUnit) -> Optional[float]:
    """Convert a waist measurement; the unit systems are named by their weight unit."""
    return _scaled(value, _length_factor(from_unit, to_unit))


def convert_stored_values(
    old_unit: WeightUnit,
    new_unit: WeightUnit,
    check_ins: Iterable,
    settings,
    periods: Iterable = (),
):
    """
    Rewrite every stored weight/waist/goal/pace value into the new unit system.

    Mutates the passed objects in place and returns the settings object so
    callers can chain the update into their own transaction.
    """
    if old_unit == new_unit:
        return settings

    weight_scale = _weight_factor(old_unit, new_unit)
    length_scale = _length_factor(old_unit, new_unit)

    converted = 0
    for check_in in check_ins:
        check_in.weight = _scaled(check_in.weight, weight_scale)
        check_in.waist_measurement = _scaled(check_in.waist_measurement, length_scale)
        converted += 1

    settings.goal_min_weight = _scaled(settings.goal_min_weight, weight_scale)
    settings.goal_max_weight = _scaled(settings.goal_max_weight, weight_scale)
    settings.pace_min_per_week = _scaled(settings.pace_min_per_week, weight_scale)
    settings.pace_max_per_week = _scaled(settings.pace_max_per_week, weight_scale)
    settings.weight_unit = new_unit

    for period in periods:
        period.target_range_min = _scaled(period.target_range_min, weight_scale)
        period.target_range_max = _scaled(period.target_range_max, weight_scale)
        period.pace_min_per_week = _scaled(period.pace_min_per_week, weight_scale)
        period.pace_max_per_week = _scaled(period.pace_max_per_week, weight_scale)

    logger.info(f"Converted stored values {old_unit.value} -> {new_unit.value} ({converted} check-ins)")
    return settings
