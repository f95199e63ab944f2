"""
Plan assembler: runs the slot allocator across N days.

The catalog is queried once per request. The repetition window is threaded
across days, and the result is either a complete plan or an exception.
"""

import logging
from collections import deque
from datetime import date, timedelta
from typing import Callable, Optional, Set

from ..config import PlanningConfig
from ..data.models import GenerationPreferences, MealPlan, NutritionSummary, NutritionTarget
from ..errors import GenerationCancelled, GenerationFailed, NoEligibleRecipes
from .slot_allocator import SlotAllocator, filter_eligible

logger = logging.getLogger(__name__)


def plan_title(preferences: GenerationPreferences) -> str:
    """e.g. "7-Day Vegetarian Meal Plan" or "3-Day Meal Plan"."""
    tag = preferences.dietary_filter
    label = f"{tag.replace('-', ' ').title()} " if tag else ""
    return f"{preferences.duration_days}-Day {label}Meal Plan"


class PlanAssembler:
    """Builds complete meal plans from a recipe catalog."""

    def __init__(self, catalog, config: Optional[PlanningConfig] = None):
        """
        Initialize the assembler.

        Args:
            catalog: Any object with find_eligible(dietary_tags, excluded_ingredients,
                max_prep_minutes, max_cook_minutes, cuisines) -> List[Recipe]
            config: Planning defaults
        """
        self.catalog = catalog
        self.config = config or PlanningConfig()

    def generate_plan(
        self,
        user_id: int,
        preferences: GenerationPreferences,
        target: NutritionTarget,
        start_date: Optional[date] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
        avoid_recipe_ids: Optional[Set[str]] = None,
    ) -> MealPlan:
        """
        Generate a complete draft meal plan.

        Args:
            user_id: Owner of the plan
            preferences: Validated generation preferences (stored verbatim on the plan)
            target: Daily nutrition target
            start_date: Date of day 1 (defaults to today)
            should_cancel: Checked between days; returning True abandons the request
            avoid_recipe_ids: Recipes treated as recently used on every day (soft)

        Returns:
            Unsaved MealPlan with status "draft"

        Raises:
            InvalidPreferences: If preferences are malformed
            GenerationFailed: If any day cannot be filled
            GenerationCancelled: If should_cancel returned True
        """
        preferences.validate()
        start_date = start_date or date.today()
        duration = preferences.duration_days

        filter_tags = [preferences.dietary_filter] if preferences.dietary_filter else []
        snapshot = self.catalog.find_eligible(
            dietary_tags=filter_tags,
            excluded_ingredients=list(preferences.excluded_ingredients),
            max_prep_minutes=preferences.max_prep_minutes,
            max_cook_minutes=preferences.max_cook_minutes,
            cuisines=list(preferences.cuisines),
        )
        logger.info(f"Generating {duration}-day plan for user {user_id} from {len(snapshot)} candidates")

        # Per-day recipe id sets for the last min(window, duration) days
        window = deque(maxlen=min(self.config.repetition_window_days, duration))

        days = []
        try:
            eligible = filter_eligible(snapshot, preferences)
            allocator = SlotAllocator(eligible, self.config, preferences.snacks_per_day)

            for offset in range(duration):
                if should_cancel and should_cancel():
                    raise GenerationCancelled(f"Generation cancelled after {offset} of {duration} days")

                recent: Set[str] = set(avoid_recipe_ids or ()).union(*window)
                day = allocator.allocate_day(
                    day_number=offset + 1,
                    day_date=start_date + timedelta(days=offset),
                    target=target,
                    recent_ids=recent,
                )
                window.append(set(day.recipe_ids()))
                days.append(day)
        except NoEligibleRecipes as e:
            day_number = len(days) + 1
            logger.warning(f"Plan generation failed on day {day_number}: {e}")
            raise GenerationFailed(
                f"Could not generate plan: {e}", cause=e, day_number=day_number
            ) from e

        summary = NutritionSummary.from_days(days)
        plan = MealPlan(
            user_id=user_id,
            title=plan_title(preferences),
            duration_days=duration,
            preferences=preferences,
            target=target,
            days=days,
            nutrition_summary=summary,
            start_date=start_date.isoformat(),
        )
        logger.info(
            f"Generated '{plan.title}': avg {summary.average_daily_calories} kcal/day, "
            f"{summary.days_outside_tolerance} day(s) outside tolerance"
        )
        return plan
