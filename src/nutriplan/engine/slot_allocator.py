"""
Slot allocator: fills one day's breakfast, lunch, dinner and snack slots.

Selection is greedy and deterministic. Each slot gets a share of the calories
still left for the day, and the candidate closest to that share wins. There is
no global optimisation.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..canon import MEAL_SLOTS
from ..config import PlanningConfig
from ..data.models import (
    GenerationPreferences,
    NutritionInfo,
    NutritionTarget,
    PlanDay,
    Recipe,
    ResolvedRecipe,
)
from ..errors import NoEligibleRecipes

logger = logging.getLogger(__name__)


def filter_eligible(recipes: Iterable[Recipe], preferences: GenerationPreferences) -> List[Recipe]:
    """
    Apply the hard filters to a recipe snapshot.

    Args:
        recipes: Catalog snapshot
        preferences: Generation preferences carrying the filters

    Returns:
        Eligible recipes ordered by id

    Raises:
        NoEligibleRecipes: If nothing survives the filters
    """
    tag = preferences.dietary_filter
    cuisines = {c.strip().lower() for c in preferences.cuisines if c.strip()}

    eligible = []
    for recipe in recipes:
        if tag and not recipe.has_tag(tag):
            continue
        if any(recipe.contains_ingredient(term) for term in preferences.excluded_ingredients):
            continue
        if preferences.max_prep_minutes and recipe.prep_minutes > preferences.max_prep_minutes:
            continue
        if preferences.max_cook_minutes and recipe.cook_minutes > preferences.max_cook_minutes:
            continue
        if cuisines and (recipe.cuisine or "").strip().lower() not in cuisines:
            continue
        eligible.append(recipe)

    if not eligible:
        filters = preferences.active_filters()
        described = ", ".join(f"{k}={v}" for k, v in filters.items()) or "no filters"
        raise NoEligibleRecipes(f"No recipes match the active filters ({described})", active_filters=filters)

    return sorted(eligible, key=lambda r: r.id)


class SlotAllocator:
    """Selects recipes for the slots of a single day."""

    def __init__(self, eligible: List[Recipe], config: Optional[PlanningConfig] = None,
                 snacks_per_day: Optional[int] = None):
        """
        Initialize the allocator over a fixed eligible set.

        Args:
            eligible: Recipes that passed the hard filters
            config: Planning defaults (tolerance, split)
            snacks_per_day: Snack entries per day (defaults to config)
        """
        if not eligible:
            raise NoEligibleRecipes("Eligible recipe set is empty")

        self.config = config or PlanningConfig()
        self.snacks_per_day = self.config.snacks_per_day if snacks_per_day is None else snacks_per_day
        self.eligible = sorted(eligible, key=lambda r: r.id)
        self.pools = {slot: self._slot_pool(slot) for slot in MEAL_SLOTS}

    def _slot_pool(self, slot: str) -> List[Recipe]:
        """Recipes hinted for the slot plus unhinted ones; all of E if none."""
        pool = [r for r in self.eligible if r.suits_slot(slot)]
        return pool or list(self.eligible)

    def _entries(self) -> List[Tuple[str, float]]:
        """(slot, calorie weight) pairs in fill order."""
        split = self.config.slot_split
        entries = [(slot, split[slot]) for slot in MEAL_SLOTS if slot != "snacks"]
        if self.snacks_per_day > 0:
            share = split["snacks"] / self.snacks_per_day
            entries.extend(("snacks", share) for _ in range(self.snacks_per_day))
        return entries

    def _tiers(self, pool: List[Recipe], recent_ids: Set[str], used_today: Set[str]) -> List[List[Recipe]]:
        fresh = [r for r in pool if r.id not in recent_ids and r.id not in used_today]
        not_today = [r for r in pool if r.id not in used_today]
        return [tier for tier in (fresh, not_today, pool) if tier]

    def _choose(
        self,
        pool: List[Recipe],
        calorie_target: float,
        protein_target: float,
        remaining_calories: float,
        recent_ids: Set[str],
        used_today: Set[str],
    ) -> Tuple[Recipe, bool]:
        """
        Pick one recipe for a slot.

        Returns:
            (recipe, forced_over) where forced_over means nothing fit the remaining budget
        """
        tiers = self._tiers(pool, recent_ids, used_today)

        def closeness(recipe: Recipe):
            return (
                abs(recipe.nutrition.calories - calorie_target),
                abs(recipe.nutrition.protein - protein_target),
                recipe.id,
            )

        for tier in tiers:
            fitting = [r for r in tier if r.nutrition.calories <= remaining_calories]
            if fitting:
                return min(fitting, key=closeness), False

        smallest = min(tiers[0], key=lambda r: (r.nutrition.calories, r.id))
        return smallest, True

    def allocate_day(
        self,
        day_number: int,
        day_date: date,
        target: NutritionTarget,
        recent_ids: Optional[Set[str]] = None,
    ) -> PlanDay:
        """
        Fill one day.

        Args:
            day_number: 1-based day index
            day_date: Calendar date of the day
            target: Daily nutrition target
            recent_ids: Recipe ids used within the repetition window

        Returns:
            PlanDay with realized nutrition, tolerance flag and notes
        """
        recent_ids = recent_ids or set()
        entries = self._entries()
        remaining_calories = float(target.daily_calories)
        remaining_protein = float(target.protein)
        remaining_weight = sum(weight for _, weight in entries)

        meals: Dict[str, List] = {slot: [] for slot in MEAL_SLOTS}
        used_today: Set[str] = set()
        realized = NutritionInfo()
        notes = []

        for slot, weight in entries:
            share = weight / remaining_weight if remaining_weight > 0 else 1.0
            calorie_target = remaining_calories * share
            protein_target = remaining_protein * share

            recipe, forced_over = self._choose(
                self.pools[slot], calorie_target, protein_target,
                remaining_calories, recent_ids, used_today,
            )
            if forced_over:
                notes.append(
                    f"over target: no {slot} recipe fit the remaining {max(remaining_calories, 0):.0f} kcal"
                )

            meals[slot].append(ResolvedRecipe(recipe))
            used_today.add(recipe.id)
            realized = realized + recipe.nutrition
            remaining_calories -= recipe.nutrition.calories
            remaining_protein -= recipe.nutrition.protein
            remaining_weight -= weight

        realized = realized.rounded(1)
        goal = float(target.daily_calories)
        deviation = realized.calories - goal
        within_tolerance = abs(deviation) <= self.config.calorie_tolerance * goal

        if not within_tolerance:
            direction = "over target" if deviation > 0 else "under target"
            percent = deviation / goal * 100 if goal else 0.0
            notes.append(
                f"{direction}: {realized.calories:.0f} kcal vs {goal:.0f} kcal target ({percent:+.0f}%)"
            )

        if notes:
            logger.debug(f"Day {day_number}: {'; '.join(notes)}")

        return PlanDay(
            day_number=day_number,
            date=day_date.isoformat(),
            meals=meals,
            nutrition=realized,
            notes="; ".join(notes) if notes else None,
            within_tolerance=within_tolerance,
        )
