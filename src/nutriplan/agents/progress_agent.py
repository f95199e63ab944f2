"""
Progress Agent for nutrition tracking.

Logs consumed meals and reports rollups and weekly progress against the
user's targets.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, Optional, Union

from ..canon import normalize_slot
from ..data.database import DatabaseInterface
from ..data.models import MealRecord, NutritionInfo, NutritionTarget
from ..engine.nutrition_aggregator import (
    aggregate_nutrition,
    parse_date,
    records_from_plan,
    week_start,
    weekly_progress,
)
from ..engine.targets import daily_progress, resolve_targets
from ..errors import NutriPlanError, RecipeNotFound

logger = logging.getLogger(__name__)

DateInput = Union[date, str]


class ProgressAgent:
    """Agent for meal logging and nutrition progress."""

    def __init__(self, db: DatabaseInterface):
        self.db = db
        logger.info("Progress Agent initialized")

    def _targets(self, user_id: int) -> Optional[NutritionTarget]:
        """Targets from the stored profile; None when there is no usable profile."""
        profile = self.db.get_user_profile(user_id)
        if profile is None:
            return None
        try:
            return resolve_targets(profile)
        except NutriPlanError as e:
            logger.warning(f"Stored profile for user {user_id} is invalid: {e}")
            return None

    def log_meal(
        self,
        user_id: int = 1,
        meal_date: Optional[DateInput] = None,
        meal_type: str = "dinner",
        nutrition: Optional[Dict[str, float]] = None,
        recipe_id: Optional[str] = None,
        name: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Log a consumed meal.

        When only a recipe_id is given, nutrition and name come from the catalog.

        Returns:
            Dictionary with the stored record or error details
        """
        try:
            day = parse_date(meal_date) if meal_date else date.today()

            if nutrition is None:
                if not recipe_id:
                    return {
                        "success": False,
                        "error": "Either nutrition or recipe_id is required",
                        "error_type": "invalid_request",
                    }
                recipe = self.db.get_recipe(recipe_id)
                if recipe is None:
                    raise RecipeNotFound(recipe_id)
                info = recipe.nutrition
                name = name or recipe.title
            else:
                info = NutritionInfo.from_dict(nutrition)

            record = MealRecord(
                date=day.isoformat(),
                meal_type=normalize_slot(meal_type) or meal_type.strip().lower(),
                nutrition=info,
                recipe_id=recipe_id,
                name=name,
                notes=notes,
            )
            self.db.add_meal_log(record, user_id=user_id)
            return {"success": True, "record": record.to_dict()}

        except NutriPlanError as e:
            logger.warning(f"Meal log rejected: {e}")
            return e.to_dict()
        except Exception as e:
            logger.error(f"Error logging meal: {e}", exc_info=True)
            return {"success": False, "error": str(e), "error_type": "internal"}

    def get_rollup(self, user_id: int = 1, start: Optional[DateInput] = None,
                   end: Optional[DateInput] = None) -> Dict[str, Any]:
        """
        Per-day rollup of logged meals over an inclusive range.

        Defaults to the last 7 days ending today.
        """
        try:
            end_date = parse_date(end) if end else date.today()
            start_date = parse_date(start) if start else end_date - timedelta(days=6)

            records = self.db.get_meal_logs(user_id, start_date.isoformat(), end_date.isoformat())
            rollup = aggregate_nutrition(records, date_range=(start_date, end_date))

            result = {"success": True, "rollup": rollup.to_dict()}
            target = self._targets(user_id)
            if target is not None:
                result["targets"] = target.to_dict()
                last_day = rollup.days[-1]
                result["latest_progress"] = daily_progress(last_day.as_nutrition(), target)
            return result

        except NutriPlanError as e:
            logger.warning(f"Rollup rejected: {e}")
            return e.to_dict()

    def get_weekly_progress(self, user_id: int = 1, start: Optional[DateInput] = None) -> Dict[str, Any]:
        """Seven points (Monday..Sunday) for the week containing start."""
        try:
            monday = week_start(start or date.today())
            records = self.db.get_meal_logs(
                user_id, monday.isoformat(), (monday + timedelta(days=6)).isoformat()
            )
            progress = weekly_progress(records, monday, self._targets(user_id))
            return {"success": True, **progress}

        except NutriPlanError as e:
            logger.warning(f"Weekly progress rejected: {e}")
            return e.to_dict()

    def get_plan_rollup(self, meal_plan_id: str) -> Dict[str, Any]:
        """Planned nutrition of a meal plan, one row per plan day."""
        try:
            plan = self.db.get_meal_plan(meal_plan_id)
            if not plan:
                return {"success": False, "error": "Meal plan not found", "error_type": "not_found"}

            records = records_from_plan(plan, resolve=self.db.get_recipe)
            rollup = aggregate_nutrition(records, date_range=(plan.start_date, plan.end_date))
            return {
                "success": True,
                "meal_plan_id": meal_plan_id,
                "rollup": rollup.to_dict(),
                "targets": plan.target.to_dict(),
            }

        except NutriPlanError as e:
            logger.warning(f"Plan rollup failed for {meal_plan_id}: {e}")
            return e.to_dict()
