"""
Planning Agent for meal plan generation.

Resolves the user's nutrition targets, runs the plan assembler and persists
the resulting plan. Engine errors are returned as result dictionaries.
"""

import dataclasses
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional, Union

from ..config import PlanningConfig
from ..data.database import DatabaseInterface
from ..data.models import GenerationPreferences, NutritionTarget, ResolvedRecipe, UserProfile
from ..engine.nutrition_aggregator import parse_date
from ..engine.plan_assembler import PlanAssembler
from ..engine.targets import resolve_targets
from ..errors import InvalidProfile, InvalidStatusTransition, NutriPlanError

logger = logging.getLogger(__name__)

PLAN_NOT_FOUND = {"success": False, "error": "Meal plan not found", "error_type": "not_found"}


class PlanningAgent:
    """Agent for generating and managing meal plans."""

    def __init__(self, db: DatabaseInterface, config: Optional[PlanningConfig] = None):
        """
        Initialize Planning Agent.

        Args:
            db: Database interface instance (also serves as the recipe catalog)
            config: Planning defaults
        """
        self.db = db
        self.config = config or PlanningConfig()
        self.assembler = PlanAssembler(db, self.config)
        logger.info("Planning Agent initialized")

    # ==================== Profile and targets ====================

    def calculate_targets(self, profile_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Resolve targets for an ad hoc profile without saving it.

        Args:
            profile_data: Dict with age, sex, height_cm, weight_kg, activity_level, goal

        Returns:
            Dictionary with targets or error
        """
        try:
            target = resolve_targets(UserProfile.from_dict(profile_data))
            return {"success": True, "targets": target.to_dict()}
        except NutriPlanError as e:
            logger.warning(f"Target calculation rejected: {e}")
            return e.to_dict()

    def save_profile(self, profile_data: Dict[str, Any], user_id: int = 1) -> Dict[str, Any]:
        """Validate a profile by resolving its targets, then save it."""
        try:
            profile = UserProfile.from_dict(profile_data)
            profile.user_id = user_id
            target = resolve_targets(profile)
            self.db.save_user_profile(profile)
            return {"success": True, "profile": profile.to_dict(), "targets": target.to_dict()}
        except NutriPlanError as e:
            logger.warning(f"Profile rejected for user {user_id}: {e}")
            return e.to_dict()
        except Exception as e:
            logger.error(f"Error saving profile: {e}", exc_info=True)
            return {"success": False, "error": str(e), "error_type": "internal"}

    def get_targets(self, user_id: int = 1) -> NutritionTarget:
        """
        Resolve targets from the user's stored profile.

        Raises:
            InvalidProfile: If the user has no profile or it is invalid
        """
        profile = self.db.get_user_profile(user_id)
        if profile is None:
            raise InvalidProfile(f"No profile saved for user {user_id}")
        return resolve_targets(profile)

    # ==================== Plan generation ====================

    def generate_plan(
        self,
        user_id: int = 1,
        duration_days: int = 7,
        preferences: Optional[Union[Dict[str, Any], GenerationPreferences]] = None,
        start_date: Optional[Union[date, str]] = None,
        target: Optional[NutritionTarget] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> Dict[str, Any]:
        """
        Generate and save a meal plan.

        Args:
            user_id: Plan owner
            duration_days: Number of days (1-30)
            preferences: Dietary preference, exclusions, cuisines, time ceilings
            start_date: Date of day 1 (defaults to today)
            target: Explicit daily target; resolved from the stored profile when omitted
            should_cancel: Checked between days

        Returns:
            Dictionary with meal_plan_id and the plan, or error details
        """
        try:
            if isinstance(preferences, GenerationPreferences):
                prefs = dataclasses.replace(preferences, duration_days=duration_days)
            else:
                prefs = GenerationPreferences.from_dict(dict(preferences or {}, duration_days=duration_days))

            target = target or self.get_targets(user_id)
            start = parse_date(start_date) if start_date else None

            plan = self.assembler.generate_plan(
                user_id=user_id,
                preferences=prefs,
                target=target,
                start_date=start,
                should_cancel=should_cancel,
            )
            plan_id = self.db.save_meal_plan(plan)

            return {
                "success": True,
                "meal_plan_id": plan_id,
                "plan": plan.to_dict(),
            }

        except NutriPlanError as e:
            logger.warning(f"Plan generation failed for user {user_id}: {e}")
            return e.to_dict()
        except Exception as e:
            logger.error(f"Error generating meal plan: {e}", exc_info=True)
            return {"success": False, "error": str(e), "error_type": "internal"}

    def regenerate_plan(
        self,
        plan_id: str,
        preference_overrides: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Replace a plan's days with a fresh selection.

        The stored target, start date and duration are kept. Recipes used in
        the current plan are avoided where the catalog allows.

        Returns:
            Dictionary with the regenerated plan, or error details
        """
        try:
            plan = self.db.get_meal_plan(plan_id)
            if not plan:
                return dict(PLAN_NOT_FOUND)
            if plan.status == "completed":
                raise InvalidStatusTransition("Completed plans cannot be regenerated")

            prefs_data = plan.preferences.to_dict()
            prefs_data.update(preference_overrides or {})
            prefs = GenerationPreferences.from_dict(prefs_data)
            prefs.duration_days = plan.duration_days

            fresh = self.assembler.generate_plan(
                user_id=plan.user_id,
                preferences=prefs,
                target=plan.target,
                start_date=parse_date(plan.start_date),
                avoid_recipe_ids=set(plan.recipe_occurrences()),
            )

            plan.preferences = prefs
            plan.title = fresh.title
            plan.replace_days(fresh.days)
            self.db.save_meal_plan(plan)
            logger.info(f"Regenerated meal plan {plan_id}")

            return {"success": True, "meal_plan_id": plan_id, "plan": plan.to_dict()}

        except NutriPlanError as e:
            logger.warning(f"Regeneration failed for {plan_id}: {e}")
            return e.to_dict()
        except Exception as e:
            logger.error(f"Error regenerating meal plan: {e}", exc_info=True)
            return {"success": False, "error": str(e), "error_type": "internal"}

    # ==================== Plan management ====================

    def get_plan(self, plan_id: str) -> Dict[str, Any]:
        plan = self.db.get_meal_plan(plan_id)
        if not plan:
            return dict(PLAN_NOT_FOUND)
        return {"success": True, "plan": plan.to_dict()}

    def list_plans(self, user_id: int = 1, limit: int = 10) -> Dict[str, Any]:
        plans = self.db.get_user_meal_plans(user_id, limit=limit)
        return {
            "success": True,
            "plans": [
                {
                    "id": p.id,
                    "title": p.title,
                    "status": p.status,
                    "start_date": p.start_date,
                    "end_date": p.end_date,
                    "average_daily_calories": p.nutrition_summary.average_daily_calories,
                }
                for p in plans
            ],
        }

    def set_plan_status(self, plan_id: str, status: str) -> Dict[str, Any]:
        """Move a plan along draft -> active -> completed."""
        try:
            plan = self.db.get_meal_plan(plan_id)
            if not plan:
                return dict(PLAN_NOT_FOUND)
            previous = plan.status
            plan.transition_to(status)
            self.db.save_meal_plan(plan)
            logger.info(f"Meal plan {plan_id}: {previous} -> {status}")
            return {"success": True, "meal_plan_id": plan_id, "status": plan.status}
        except NutriPlanError as e:
            logger.warning(f"Status change rejected for {plan_id}: {e}")
            return e.to_dict()

    def update_plan_title(self, plan_id: str, title: str) -> Dict[str, Any]:
        """Rename a plan; other fields are left alone."""
        title = (title or "").strip()
        if not title:
            return {"success": False, "error": "title cannot be empty", "error_type": "invalid_request"}

        plan = self.db.get_meal_plan(plan_id)
        if not plan:
            return dict(PLAN_NOT_FOUND)
        plan.title = title
        plan.updated_at = datetime.now()
        self.db.save_meal_plan(plan)
        logger.info(f"Renamed meal plan {plan_id} to {title!r}")
        return {"success": True, "meal_plan_id": plan_id, "title": plan.title}

    def delete_plan(self, plan_id: str) -> Dict[str, Any]:
        if not self.db.delete_meal_plan(plan_id):
            return dict(PLAN_NOT_FOUND)
        return {"success": True, "meal_plan_id": plan_id}

    def format_plan(self, plan_id: str) -> str:
        """
        Format a meal plan for display.

        Args:
            plan_id: ID of the meal plan

        Returns:
            Formatted plan string
        """
        plan = self.db.get_meal_plan(plan_id)
        if not plan:
            return "Meal plan not found."

        summary = plan.nutrition_summary
        lines = [
            f"{plan.title} ({plan.status})",
            f"{'='*60}",
            f"{plan.start_date} to {plan.end_date}",
            f"Target: {plan.target.daily_calories:.0f} kcal/day, "
            f"average: {summary.average_daily_calories:.0f} kcal/day",
            "",
        ]

        for day in plan.days:
            lines.append(f"\nDay {day.day_number} - {day.date}")
            lines.append("-" * 30)
            for slot, ref in day.refs():
                name = ref.recipe.title if isinstance(ref, ResolvedRecipe) else ref.recipe_id
                lines.append(f"  {slot.capitalize():<10} {name}")
            lines.append(f"  Total: {day.nutrition}")
            if day.notes:
                lines.append(f"  Note: {day.notes}")

        return "\n".join(lines)
