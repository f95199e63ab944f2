"""
Unit tests for the nutrition target resolver.
"""

import pytest

from nutriplan.data.models import NutritionInfo, NutritionTarget, UserProfile
from nutriplan.engine.targets import calculate_bmr, daily_progress, resolve_targets
from nutriplan.errors import InvalidProfile


def _profile(**overrides):
    data = dict(age=30, sex="male", height_cm=180, weight_kg=80,
                activity_level="moderate", goal="maintenance")
    data.update(overrides)
    return UserProfile(**data)


class TestResolveTargets:
    """Test BMR, multipliers and macro split."""

    def test_reference_profile_lands_in_expected_band(self, sample_profile):
        """30/male/180/80/moderate/maintenance resolves to 2400-2700 kcal."""
        target = resolve_targets(sample_profile)

        assert 2400 <= target.daily_calories <= 2700
        assert target.bmr == 1780
        assert target.bmi == 24.7

    def test_macro_calories_match_daily_calories(self):
        """4p + 4c + 9f stays within 2 kcal of the calorie target."""
        for goal in ("weight_loss", "maintenance", "muscle_gain"):
            for sex in ("male", "female", "other"):
                target = resolve_targets(_profile(goal=goal, sex=sex, weight_kg=67, height_cm=171, age=44))
                macro_kcal = 4 * target.protein + 4 * target.carbs + 9 * target.fats
                assert abs(macro_kcal - target.daily_calories) <= 2

    def test_macro_split_is_30_40_30(self, sample_profile):
        target = resolve_targets(sample_profile)

        assert target.protein == pytest.approx(target.daily_calories * 0.30 / 4, abs=0.05)
        assert target.carbs == pytest.approx(target.daily_calories * 0.40 / 4, abs=0.05)
        assert target.fats == pytest.approx(target.daily_calories * 0.30 / 9, abs=0.05)

    def test_goal_multipliers(self):
        maintenance = resolve_targets(_profile(goal="maintenance")).daily_calories
        loss = resolve_targets(_profile(goal="weight_loss")).daily_calories
        gain = resolve_targets(_profile(goal="muscle_gain")).daily_calories

        assert loss == pytest.approx(maintenance * 0.85, abs=1)
        assert gain == pytest.approx(maintenance * 1.10, abs=1)

    def test_activity_levels_increase_calories(self):
        levels = ["sedentary", "light", "moderate", "active", "very_active"]
        calories = [resolve_targets(_profile(activity_level=level)).daily_calories for level in levels]

        assert calories == sorted(calories)
        assert len(set(calories)) == len(levels)

    def test_other_sex_uses_mean_constant(self):
        male = calculate_bmr(80, 180, 30, "male")
        female = calculate_bmr(80, 180, 30, "female")
        other = calculate_bmr(80, 180, 30, "other")

        assert other == pytest.approx((male + female) / 2)

    def test_calorie_floor_applies(self):
        """Small, sedentary, weight-loss profiles never drop below the floor."""
        target = resolve_targets(_profile(sex="female", age=80, height_cm=150, weight_kg=40,
                                          activity_level="sedentary", goal="weight_loss"))
        assert target.daily_calories == 1200

    def test_case_and_separator_insensitive_choices(self):
        target = resolve_targets(_profile(sex="Male", activity_level="Very-Active", goal="Muscle Gain"))
        assert target.daily_calories > 0

    def test_is_deterministic(self, sample_profile):
        assert resolve_targets(sample_profile) == resolve_targets(sample_profile)


class TestInvalidProfiles:
    """Test profile validation."""

    @pytest.mark.parametrize("field,value", [
        ("age", None),
        ("age", 0),
        ("age", 121),
        ("height_cm", -5),
        ("height_cm", 300),
        ("weight_kg", 0),
        ("weight_kg", 500),
        ("weight_kg", "heavy"),
    ])
    def test_out_of_range_values(self, field, value):
        with pytest.raises(InvalidProfile) as exc_info:
            resolve_targets(_profile(**{field: value}))
        assert exc_info.value.field == field

    @pytest.mark.parametrize("field,value", [
        ("sex", "unknown"),
        ("sex", None),
        ("activity_level", "couch"),
        ("goal", "bulk"),
    ])
    def test_unknown_choices(self, field, value):
        with pytest.raises(InvalidProfile) as exc_info:
            resolve_targets(_profile(**{field: value}))
        assert exc_info.value.field == field

    def test_error_dict_names_field(self):
        with pytest.raises(InvalidProfile) as exc_info:
            resolve_targets(_profile(age=-1))

        data = exc_info.value.to_dict()
        assert data["success"] is False
        assert data["error_type"] == "invalid_profile"
        assert data["field"] == "age"


class TestDailyProgress:
    """Test intake vs target comparison."""

    def test_percent_and_remaining(self):
        target = NutritionTarget(daily_calories=2000, protein=150, carbs=200, fats=66.7)
        consumed = NutritionInfo(calories=1500, protein=160, carbs=50, fats=20)

        progress = daily_progress(consumed, target)

        assert progress["calories"]["percent"] == 75.0
        assert progress["calories"]["remaining"] == 500
        # Over target: capped at 100%, nothing remaining
        assert progress["protein"]["percent"] == 100.0
        assert progress["protein"]["remaining"] == 0
        assert progress["carbs"]["percent"] == 25.0

    def test_zero_intake(self):
        target = NutritionTarget(daily_calories=2000, protein=150, carbs=200, fats=66.7)
        progress = daily_progress(NutritionInfo(), target)

        assert all(entry["percent"] == 0 for entry in progress.values())
        assert progress["fats"]["remaining"] == 66.7
