"""
Nutrition target resolver.

Turns a physiological profile into daily calorie and macro targets using
the Mifflin-St Jeor equation, an activity multiplier and a goal multiplier.
"""

import logging
from typing import Dict

from ..canon import (
    ACTIVITY_MULTIPLIERS,
    AGE_RANGE,
    GOAL_CALORIE_MULTIPLIERS,
    HEIGHT_CM_RANGE,
    KCAL_PER_GRAM,
    MACRO_SPLIT,
    MINIMUM_DAILY_CALORIES,
    SEX_BMR_CONSTANTS,
    WEIGHT_KG_RANGE,
)
from ..data.models import NutritionInfo, NutritionTarget, UserProfile
from ..errors import InvalidProfile

logger = logging.getLogger(__name__)


def _require_number(value, field: str, bounds) -> float:
    if value is None or isinstance(value, bool):
        raise InvalidProfile(f"{field} is required", field=field)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidProfile(f"{field} must be a number, got {value!r}", field=field)
    low, high = bounds
    if number <= 0 or not low <= number <= high:
        raise InvalidProfile(f"{field} must be between {low} and {high}, got {value}", field=field)
    return number


def _require_choice(value, field: str, choices) -> str:
    if not value or not isinstance(value, str):
        raise InvalidProfile(f"{field} is required", field=field)
    key = value.strip().lower().replace("-", "_").replace(" ", "_")
    if key not in choices:
        raise InvalidProfile(
            f"Unknown {field} '{value}'. Expected one of: {', '.join(sorted(choices))}",
            field=field,
        )
    return key


def calculate_bmr(weight_kg: float, height_cm: float, age: float, sex: str) -> float:
    """Mifflin-St Jeor basal metabolic rate in kcal/day."""
    return 10 * weight_kg + 6.25 * height_cm - 5 * age + SEX_BMR_CONSTANTS[sex]


def resolve_targets(profile: UserProfile) -> NutritionTarget:
    """
    Resolve daily nutrition targets for a profile.

    Args:
        profile: User's physiological profile

    Returns:
        NutritionTarget with calories rounded to whole kcal and macros to 0.1 g

    Raises:
        InvalidProfile: If a value is missing, non-positive, out of range or unknown
    """
    age = _require_number(profile.age, "age", AGE_RANGE)
    height = _require_number(profile.height_cm, "height_cm", HEIGHT_CM_RANGE)
    weight = _require_number(profile.weight_kg, "weight_kg", WEIGHT_KG_RANGE)
    sex = _require_choice(profile.sex, "sex", SEX_BMR_CONSTANTS)
    activity = _require_choice(profile.activity_level, "activity_level", ACTIVITY_MULTIPLIERS)
    goal = _require_choice(profile.goal, "goal", GOAL_CALORIE_MULTIPLIERS)

    bmr = calculate_bmr(weight, height, age, sex)
    maintenance = bmr * ACTIVITY_MULTIPLIERS[activity]
    daily = max(maintenance * GOAL_CALORIE_MULTIPLIERS[goal], MINIMUM_DAILY_CALORIES[sex])
    daily_calories = round(daily)

    macros = {
        macro: round(daily_calories * share / KCAL_PER_GRAM[macro], 1)
        for macro, share in MACRO_SPLIT.items()
    }

    target = NutritionTarget(
        daily_calories=daily_calories,
        protein=macros["protein"],
        carbs=macros["carbs"],
        fats=macros["fats"],
        bmr=round(bmr),
        maintenance_calories=round(maintenance),
        bmi=round(weight / (height / 100) ** 2, 1),
    )
    logger.debug(f"Resolved targets: {target.daily_calories} kcal ({sex}, {activity}, {goal})")
    return target


def daily_progress(consumed: NutritionInfo, target: NutritionTarget) -> Dict[str, Dict[str, float]]:
    """
    Compare one day's intake against the targets.

    Returns:
        Per nutrient: consumed, target, percent (capped at 100) and remaining (floored at 0)
    """
    goals = target.as_nutrition()
    progress = {}
    for nutrient in ("calories", "protein", "carbs", "fats"):
        eaten = getattr(consumed, nutrient)
        goal = getattr(goals, nutrient)
        percent = min(100.0, round(eaten / goal * 100, 1)) if goal > 0 else 0.0
        progress[nutrient] = {
            "consumed": round(eaten, 1),
            "target": goal,
            "percent": percent,
            "remaining": round(max(0.0, goal - eaten), 1),
        }
    return progress
