"""
Tests for timelapse frame selection and the baseline helpers.
"""
from datetime import timedelta

from models import Pose, UserSettings, WeightUnit
from services.baseline import get_baseline, is_baseline, set_baseline
from services.timelapse import timelapse_frames


class TestTimelapseFrames:

    def test_only_pose_photos_in_order(self, make_check_in):
        check_ins = [
            make_check_in(days_ago=1, front_photo_path="b.jpg"),
            make_check_in(days_ago=3, front_photo_path="a.jpg"),
            make_check_in(days_ago=2, side_photo_path="side.jpg"),
        ]
        frames = timelapse_frames(check_ins, Pose.FRONT, WeightUnit.LB)
        assert [f.image_path for f in frames] == ["a.jpg", "b.jpg"]
        assert all(f.overlay_text is None for f in frames)

    def test_date_range(self, make_check_in, now):
        check_ins = [make_check_in(days_ago=d, back_photo_path=f"{d}.jpg") for d in (10, 5, 1)]
        frames = timelapse_frames(check_ins, Pose.BACK, WeightUnit.KG, start=now - timedelta(days=6), end=now)
        assert [f.image_path for f in frames] == ["5.jpg", "1.jpg"]

    def test_trend_overlay(self, make_check_in):
        check_ins = [
            make_check_in(days_ago=1, weight=170.0, front_photo_path="a.jpg"),
            make_check_in(days_ago=0, weight=171.0, front_photo_path="b.jpg"),
        ]
        frames = timelapse_frames(check_ins, Pose.FRONT, WeightUnit.LB, overlay_weight=True)
        assert [f.overlay_text for f in frames] == ["Trend 170 lb", "Trend 170.5 lb"]

    def test_overlay_missing_without_weight(self, make_check_in):
        frames = timelapse_frames([make_check_in(front_photo_path="a.jpg")], Pose.FRONT, WeightUnit.LB, overlay_weight=True)
        assert frames[0].overlay_text is None


class TestBaseline:

    def test_set_and_get(self, make_check_in):
        check_ins = [make_check_in(days_ago=5, weight=80), make_check_in(weight=79)]
        settings = set_baseline(UserSettings(), check_ins[0].id)
        assert get_baseline(check_ins, settings) is check_ins[0]
        assert is_baseline(check_ins[0], settings)
        assert not is_baseline(check_ins[1], settings)

    def test_setting_new_baseline_replaces_old(self, make_check_in):
        first, second = make_check_in(days_ago=5, weight=80), make_check_in(weight=79)
        settings = set_baseline(UserSettings(), first.id)
        set_baseline(settings, second.id)
        assert not is_baseline(first, settings)
        assert get_baseline([first, second], settings) is second

    def test_clear(self, make_check_in):
        check_in = make_check_in(weight=80)
        settings = set_baseline(UserSettings(), check_in.id)
        set_baseline(settings, None)
        assert get_baseline([check_in], settings) is None
