"""
API tests against an in-memory database.

Dates are relative to the real clock because the routers read the
current time themselves.
"""
from datetime import datetime, timedelta, timezone

import pytest


def iso(moment):
    return moment.replace(microsecond=0).isoformat()


@pytest.fixture
def recent_noon():
    # Noon of yesterday keeps the instant in the past and away from midnight
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(hour=12, minute=0, second=0, microsecond=0) - timedelta(days=1)


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestCheckIns:

    def test_same_day_upserts_merge(self, client):
        first = client.put("/v1/check-ins", json={"date": "2024-01-10T08:00:00", "weight": 170.5})
        assert first.status_code == 200
        second = client.put(
            "/v1/check-ins",
            json={"date": "2024-01-10T20:00:00", "tags": ["strength_up", "strength_up"], "note": "pr"},
        )
        assert second.status_code == 200
        body = second.json()
        assert body["id"] == first.json()["id"]
        assert body["weight"] == 170.5
        assert body["tags"] == ["strength_up"]
        assert body["has_any_content"] is True

        listed = client.get("/v1/check-ins").json()
        assert len(listed) == 1

    def test_unknown_tag_rejected(self, client):
        response = client.put("/v1/check-ins", json={"tags": ["abs_visible"]})
        assert response.status_code == 422

    def test_custom_tag_accepted(self, client):
        response = client.put("/v1/check-ins", json={"date": "2024-01-11T08:00:00", "tags": ["custom:new belt hole"]})
        assert response.status_code == 200

    def test_missing_check_in(self, client):
        response = client.get("/v1/check-ins/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_delete_clears_baseline(self, client):
        created = client.put("/v1/check-ins", json={"date": "2024-01-10T08:00:00", "weight": 80}).json()
        settings = client.put("/v1/settings/baseline", json={"check_in_id": created["id"]}).json()
        assert settings["baseline_check_in_id"] == created["id"]

        assert client.delete(f"/v1/check-ins/{created['id']}").status_code == 204
        assert client.get("/v1/settings").json()["baseline_check_in_id"] is None

    def test_baseline_must_exist(self, client):
        response = client.put("/v1/settings/baseline", json={"check_in_id": "00000000-0000-0000-0000-000000000000"})
        assert response.status_code == 404


class TestSettings:

    def test_defaults(self, client):
        body = client.get("/v1/settings").json()
        assert body["weight_unit"] == "lb"
        assert body["goal_type"] == "none"

    def test_unit_switch_converts_history(self, client):
        client.put("/v1/check-ins", json={"date": "2024-01-10T08:00:00", "weight": 220.46226218})
        client.patch("/v1/settings", json={"goal_min_weight": 176.3698097})

        body = client.patch("/v1/settings", json={"weight_unit": "kg"}).json()
        assert body["weight_unit"] == "kg"
        assert body["goal_min_weight"] == pytest.approx(80.0, abs=1e-6)

        check_in = client.get("/v1/check-ins").json()[0]
        assert check_in["weight"] == pytest.approx(100.0, abs=1e-6)

    def test_null_goal_type_rejected(self, client):
        response = client.patch("/v1/settings", json={"goal_type": None})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR_GOAL_TYPE"

    def test_goal_change_opens_period_once(self, client):
        client.patch("/v1/settings", json={"goal_type": "lose_weight", "goal_min_weight": 160})
        client.patch("/v1/settings", json={"goal_type": "lose_weight"})
        periods = client.get("/v1/progress-periods").json()
        assert len(periods) == 1
        assert periods[0]["is_active"] is True

        client.patch("/v1/settings", json={"goal_type": "gain_muscle"})
        periods = client.get("/v1/progress-periods").json()
        assert len(periods) == 2
        assert periods[0]["goal_type"] == "gain_muscle"
        assert periods[1]["is_active"] is False

    def test_no_goal_means_no_period(self, client):
        assert client.get("/v1/progress-periods").json() == []

    def test_explicit_period(self, client):
        response = client.post("/v1/progress-periods", json={"note": "new block"})
        assert response.status_code == 201
        assert response.json()["note"] == "new block"


class TestProgress:

    def test_trend_and_streaks(self, client, recent_noon):
        for days_ago, weight in ((2, 171.0), (1, 170.0), (0, 169.0)):
            moment = recent_noon - timedelta(days=days_ago)
            client.put("/v1/check-ins", json={"date": iso(moment), "weight": weight})

        trend = client.get("/v1/progress/trend").json()
        assert len(trend["points"]) == 3
        assert trend["latest_trend"] == pytest.approx(170.0)
        assert trend["latest_trend_text"] == "170 lb"

        streaks = client.get("/v1/progress/streaks").json()
        assert streaks["best"] == 3
        assert streaks["days_since_last_check_in"] in (0, 1)

    def test_empty_history(self, client):
        assert client.get("/v1/progress/trend").json()["points"] == []
        assert client.get("/v1/progress/milestone").json() is None
        summary = client.get("/v1/progress/weekly-summary").json()
        assert summary["logged_days"] == 0

    def test_banners_without_history(self, client):
        banners = client.get("/v1/progress/banners").json()
        assert banners["return_banner"] is not None
        assert banners["offer_recovery_plan"] is False

    def test_dismiss_return_banner(self, client):
        assert client.post("/v1/progress/banners/return/dismiss").status_code == 200
        assert client.get("/v1/progress/banners").json()["return_banner"] is not None

    def test_dismiss_unknown_banner(self, client):
        assert client.post("/v1/progress/banners/confetti/dismiss").status_code == 404

    def test_recovery_plan_after_long_break(self, client, recent_noon):
        client.put("/v1/check-ins", json={"date": iso(recent_noon - timedelta(days=20)), "weight": 80})
        assert client.get("/v1/progress/banners").json()["offer_recovery_plan"] is True

        started = client.post("/v1/progress/recovery-plan")
        assert started.status_code == 201
        assert len(started.json()["days"]) == 3

        assert client.post("/v1/progress/recovery-plan").status_code == 409
        assert client.get("/v1/progress/recovery-plan").json()["completed_days"] == 0

    def test_insights_shape(self, client):
        body = client.get("/v1/progress/insights").json()
        assert len(body["suggested_win_tags"]) == 3
        assert body["reminder"] is not None


class TestCompare:

    def test_presets(self, client):
        client.put("/v1/check-ins", json={"date": "2024-01-10T08:00:00", "weight": 80, "front_photo_path": "a.jpg"})
        client.put("/v1/check-ins", json={"date": "2024-02-10T08:00:00", "weight": 78, "front_photo_path": "b.jpg"})
        body = client.get("/v1/compare/presets", params={"pose": "front"}).json()
        pair = body["presets"]["first_vs_latest"]
        assert pair["from_check_in"]["front_photo_path"] == "a.jpg"
        assert pair["to_check_in"]["front_photo_path"] == "b.jpg"
        assert body["presets"]["baseline_vs_today"] is None

    def test_compare_nudge_after_many_opens(self, client):
        for _ in range(5):
            assert client.post("/v1/compare/opens").json()["show_nudge"] is False
        sixth = client.post("/v1/compare/opens").json()
        assert sixth["opens_today"] == 6
        assert sixth["show_nudge"] is True

        client.post("/v1/compare/nudge/dismiss")
        assert client.post("/v1/compare/opens").json()["show_nudge"] is False

    def test_timelapse(self, client):
        client.put("/v1/check-ins", json={"date": "2024-01-10T08:00:00", "weight": 80, "side_photo_path": "s1.jpg"})
        client.put("/v1/check-ins", json={"date": "2024-01-12T08:00:00", "weight": 79, "side_photo_path": "s2.jpg"})
        frames = client.get("/v1/compare/timelapse", params={"pose": "side", "overlay_weight": "true"}).json()
        assert [f["image_path"] for f in frames] == ["s1.jpg", "s2.jpg"]
        assert frames[1]["overlay_text"] == "Trend 79.5 lb"


class TestOutOfRangeWeights:
    """Stored weights whose window mean overflows must not break the trend endpoint."""

    def test_trend_with_non_finite_mean(self, client, db_session):
        from models import CheckIn

        db_session.add_all([
            CheckIn(date=datetime(2024, 1, 10, 8), weight=1e308),
            CheckIn(date=datetime(2024, 1, 11, 8), weight=1e308),
        ])
        db_session.commit()

        response = client.get("/v1/progress/trend")
        assert response.status_code == 200
        body = response.json()
        assert [p["trend"] for p in body["points"]] == [1e308, None]
        assert body["latest_trend"] is None
        assert body["latest_trend_text"] is None
        assert body["weekly_rate"] is None

    def test_implausible_values_rejected(self, client):
        response = client.put("/v1/check-ins", json={"date": "2024-01-10T08:00:00", "weight": 1e308})
        assert response.status_code == 422
        response = client.put("/v1/check-ins", json={"date": "2024-01-10T08:00:00", "waist_measurement": 600})
        assert response.status_code == 422
        assert client.get("/v1/check-ins").json() == []

    def test_heavy_but_plausible_weight_accepted(self, client):
        response = client.put("/v1/check-ins", json={"date": "2024-01-10T08:00:00", "weight": 700})
        assert response.status_code == 200


def test_lifespan_creates_schema(monkeypatch):
    from fastapi.testclient import TestClient
    import main

    calls = []
    monkeypatch.setattr(main, "init_db", lambda: calls.append("init_db"))
    with TestClient(main.app):
        pass
    assert calls == ["init_db"]
