"""
Tests for Progress Period Service

Opening, closing and lazily creating goal-based periods.
"""
from datetime import datetime, timedelta

from models import GoalType, ProgressPeriod, UserSettings
from services.progress_periods import (
    active_period,
    ensure_active_period_if_needed,
    handle_goal_change,
    has_goal_context,
    periods_for_settings,
    settings_match,
    start_new_period,
)


def lose_settings(**overrides):
    values = dict(goal_type=GoalType.LOSE_WEIGHT, goal_min_weight=160.0, goal_max_weight=165.0)
    values.update(overrides)
    return UserSettings(**values)


class TestStartNewPeriod:

    def test_captures_goal_and_becomes_active(self, now):
        settings = lose_settings()
        period = start_new_period(settings, [], now=now, note="spring cut")
        assert period.start_date == now
        assert period.end_date is None
        assert period.goal_type == GoalType.LOSE_WEIGHT
        assert period.target_range_min == 160.0
        assert period.note == "spring cut"
        assert period.settings_id == settings.id
        assert settings.active_progress_period_id == period.id

    def test_closes_existing(self, now):
        settings = lose_settings()
        first = start_new_period(settings, [], now=now - timedelta(days=30))
        second = start_new_period(settings, [first], now=now)
        assert first.end_date == now
        assert not first.is_active
        assert second.is_active
        assert active_period(settings, [first, second]) is second

    def test_keep_existing_open(self, now):
        settings = lose_settings()
        first = start_new_period(settings, [], now=now - timedelta(days=30))
        start_new_period(settings, [first], now=now, close_existing=False)
        assert first.end_date is None


class TestHandleGoalChange:

    def test_unchanged_goal_is_idempotent(self, now):
        settings = lose_settings()
        first = start_new_period(settings, [], now=now - timedelta(days=10))
        assert handle_goal_change(settings, [first], now=now) is None
        assert handle_goal_change(settings, [first], now=now) is None
        assert first.end_date is None

    def test_changed_goal_opens_new_period(self, now):
        settings = lose_settings()
        first = start_new_period(settings, [], now=now - timedelta(days=10))
        settings.goal_type = GoalType.GAIN_MUSCLE
        second = handle_goal_change(settings, [first], now=now)
        assert second is not None
        assert second.goal_type == GoalType.GAIN_MUSCLE
        assert first.end_date == now
        assert settings_match(second, settings)

    def test_pace_change_counts(self, now):
        settings = lose_settings()
        first = start_new_period(settings, [], now=now - timedelta(days=10))
        settings.pace_min_per_week = -1.0
        assert handle_goal_change(settings, [first], now=now) is not None


class TestActivePeriod:

    def test_stale_id_falls_back_to_latest_open(self):
        settings = lose_settings()
        older = ProgressPeriod(start_date=datetime(2024, 1, 1), goal_type=GoalType.NONE, created_at=datetime(2024, 1, 1))
        newer = ProgressPeriod(start_date=datetime(2024, 3, 1), goal_type=GoalType.NONE, created_at=datetime(2024, 3, 1))
        settings.active_progress_period_id = None
        assert active_period(settings, [older, newer]) is newer

    def test_none_when_all_closed(self):
        closed = ProgressPeriod(
            start_date=datetime(2024, 1, 1),
            end_date=datetime(2024, 2, 1),
            goal_type=GoalType.NONE,
            created_at=datetime(2024, 1, 1),
        )
        assert active_period(UserSettings(), [closed]) is None


class TestEnsureActivePeriod:

    def test_new_user_without_goal_gets_none(self, now):
        settings = UserSettings()
        assert not has_goal_context(settings)
        assert ensure_active_period_if_needed(settings, [], now=now) is None

    def test_goal_intent_creates_period(self, now):
        settings = UserSettings(goal_max_weight=180.0)
        assert has_goal_context(settings)
        period = ensure_active_period_if_needed(settings, [], now=now)
        assert period is not None
        assert settings.active_progress_period_id == period.id

    def test_returns_existing(self, now):
        settings = lose_settings()
        existing = start_new_period(settings, [], now=now)
        settings.active_progress_period_id = None
        assert ensure_active_period_if_needed(settings, [existing], now=now) is existing
        assert settings.active_progress_period_id == existing.id


def test_periods_newest_first(now):
    settings = lose_settings()
    first = start_new_period(settings, [], now=now - timedelta(days=20))
    second = start_new_period(settings, [first], now=now)
    assert periods_for_settings(settings, [first, second]) == [second, first]
