"""
Baseline Service

Exactly one check-in can be the baseline; its id lives on the settings row.
"""
from typing import Iterable, Optional
from uuid import UUID
import logging

logger = logging.getLogger(__name__)


def set_baseline(settings, check_in_id: Optional[UUID]):
    """Mark a check-in as the baseline (None clears it). Returns settings."""
    settings.baseline_check_in_id = check_in_id
    logger.info(f"Baseline set to {check_in_id}")
    return settings


def get_baseline(check_ins: Iterable, settings) -> Optional[object]:
    if settings is None or settings.baseline_check_in_id is None:
        return None
    return next((c for c in check_ins if c.id == settings.baseline_check_in_id), None)


def is_baseline(check_in, settings) -> bool:
    return settings is not None and settings.baseline_check_in_id == check_in.id
