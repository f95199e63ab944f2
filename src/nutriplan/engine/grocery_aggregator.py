"""
Grocery aggregator: merged, categorized shopping lines for a plan.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ..canon import DEFAULT_GROCERY_CATEGORY, normalize_grocery_category
from ..data.models import GroceryItem, MealPlan, Recipe, RecipeResolver, resolve_ref

logger = logging.getLogger(__name__)


def recipe_occurrences(plan: MealPlan, resolve: Optional[RecipeResolver] = None) -> List[Tuple[Recipe, int]]:
    """
    Count each recipe's appearances across a plan.

    Returns:
        (recipe, occurrences) pairs in first-appearance order

    Raises:
        RecipeNotFound: If an unresolved entry cannot be resolved
    """
    recipes: Dict[str, Recipe] = {}
    counts: Dict[str, int] = {}
    for day in plan.days:
        for _, ref in day.refs():
            if ref.recipe_id not in recipes:
                recipes[ref.recipe_id] = resolve_ref(ref, resolve)
                counts[ref.recipe_id] = 0
            counts[ref.recipe_id] += 1
    return [(recipes[recipe_id], counts[recipe_id]) for recipe_id in recipes]


def aggregate_ingredients(pairs: Iterable[Tuple[Recipe, int]]) -> List[GroceryItem]:
    """
    Merge ingredients across (recipe, occurrences) pairs.

    Lines merge only when the trimmed name (case-insensitive) and the trimmed
    unit (case-sensitive) both match; units are never converted. The category
    comes from the first contributing ingredient that declares a known one.
    """
    merged: Dict[Tuple[str, str], GroceryItem] = {}
    for recipe, occurrences in pairs:
        if occurrences <= 0:
            continue
        for ingredient in recipe.ingredients:
            category = normalize_grocery_category(ingredient.category)
            # Empty category until some contributor declares one
            item = GroceryItem(
                name=ingredient.name.strip(),
                quantity=ingredient.quantity * occurrences,
                unit=ingredient.unit.strip(),
                category=category or "",
                recipe_sources=[recipe.title],
            )
            existing = merged.get(item.merge_key)
            if existing is None:
                merged[item.merge_key] = item
                continue

            existing.quantity += item.quantity
            if not existing.category and category:
                existing.category = category
            if recipe.title not in existing.recipe_sources:
                existing.recipe_sources.append(recipe.title)

    items = list(merged.values())
    for item in items:
        item.quantity = round(item.quantity, 3)
        item.category = item.category or DEFAULT_GROCERY_CATEGORY
    return items


def build_grocery_list(plan: MealPlan, resolve: Optional[RecipeResolver] = None) -> List[GroceryItem]:
    """
    Build the grocery list for a plan.

    The result is a flat list in first-appearance order with every line
    unpurchased; purchased state is the shopping agent's concern.

    Raises:
        RecipeNotFound: If an unresolved entry cannot be resolved
    """
    items = aggregate_ingredients(recipe_occurrences(plan, resolve))
    logger.debug(f"Built grocery list with {len(items)} lines for plan {plan.id}")
    return items


def group_by_category(items: Iterable[GroceryItem]) -> Dict[str, List[GroceryItem]]:
    """Group lines by category, categories sorted, "other" last."""
    groups: Dict[str, List[GroceryItem]] = {}
    for item in items:
        groups.setdefault(item.category, []).append(item)
    ordered = sorted(groups, key=lambda c: (c == DEFAULT_GROCERY_CATEGORY, c))
    return {category: groups[category] for category in ordered}


def merge_purchased_state(fresh: List[GroceryItem], persisted: Optional[List[GroceryItem]]) -> List[GroceryItem]:
    """
    Carry purchased flags and manual lines from a stored list onto a freshly
    built one.

    Recipe lines are matched by merge key; recipe lines that no longer exist
    are dropped. Manual lines are kept as they were, after the recipe lines.
    """
    if not persisted:
        return fresh
    purchased = {item.merge_key for item in persisted if item.purchased and not item.manual}
    for item in fresh:
        item.purchased = item.merge_key in purchased
    return fresh + [item for item in persisted if item.manual]
