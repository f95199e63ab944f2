"""
Canonical vocabularies and constants for meal planning.

This file provides the authoritative vocabulary for:
- Meal slots and their calorie split
- Dietary preferences and recipe dietary tags
- Grocery categories
- Activity/goal multipliers used by the target resolver

Values here are defaults; the allocator's tolerance and split can be tuned
through PlanningConfig.
"""

from typing import Dict, Optional, Set, Tuple

# =============================================================================
# MEAL SLOTS
# =============================================================================
# Fixed fill order for the slot allocator
MEAL_SLOTS: Tuple[str, ...] = ("breakfast", "lunch", "dinner", "snacks")

# Share of the daily calorie budget per slot
SLOT_CALORIE_SPLIT: Dict[str, float] = {
    "breakfast": 0.25,
    "lunch": 0.35,
    "dinner": 0.30,
    "snacks": 0.10,
}

# Maps canonical slot -> user/recipe variants that normalize to it
SLOT_SYNONYMS: Dict[str, Set[str]] = {
    "breakfast": {"breakfast", "brunch", "morning"},
    "lunch": {"lunch", "midday"},
    "dinner": {"dinner", "supper", "main-dish", "main"},
    "snacks": {"snacks", "snack", "appetizers"},
}

# =============================================================================
# DIETARY TAGS
# =============================================================================
# Tags a catalog recipe may carry
CANON_DIETARY_TAGS: Set[str] = {
    "vegetarian",
    "vegan",
    "gluten-free",
    "dairy-free",
    "nut-free",
    "low-carb",
    "high-protein",
    "low-fat",
    "keto",
    "paleo",
    "mediterranean",
}

# Preferences that impose no tag filter
UNRESTRICTED_PREFERENCES: Set[str] = {"none", "non-vegetarian", ""}

DIETARY_PREFERENCES: Set[str] = CANON_DIETARY_TAGS | UNRESTRICTED_PREFERENCES

# =============================================================================
# GROCERY CATEGORIES
# =============================================================================
GROCERY_CATEGORIES: Set[str] = {
    "produce",
    "dairy",
    "meat",
    "seafood",
    "grains",
    "pantry",
    "spices",
    "beverages",
    "frozen",
    "bakery",
    "other",
}

DEFAULT_GROCERY_CATEGORY = "other"

# =============================================================================
# TARGET RESOLVER CONSTANTS
# =============================================================================
ACTIVITY_MULTIPLIERS: Dict[str, float] = {
    "sedentary": 1.2,      # Little or no exercise
    "light": 1.375,        # Light exercise 1-3 days/week
    "moderate": 1.465,     # Exercise 4-5 days/week
    "active": 1.725,       # Hard exercise 6-7 days/week
    "very_active": 1.9,    # Very hard exercise, physical job
}

GOAL_CALORIE_MULTIPLIERS: Dict[str, float] = {
    "weight_loss": 0.85,
    "maintenance": 1.0,
    "muscle_gain": 1.10,
}

# Mifflin-St Jeor sex constant
SEX_BMR_CONSTANTS: Dict[str, float] = {
    "male": 5.0,
    "female": -161.0,
    "other": -78.0,  # mean of male and female
}

MINIMUM_DAILY_CALORIES: Dict[str, float] = {
    "male": 1500.0,
    "female": 1200.0,
    "other": 1200.0,
}

# Share of calories per macro
MACRO_SPLIT: Dict[str, float] = {
    "protein": 0.30,
    "carbs": 0.40,
    "fats": 0.30,
}

KCAL_PER_GRAM: Dict[str, float] = {
    "protein": 4.0,
    "carbs": 4.0,
    "fats": 9.0,
}

# Plausible physiological ranges (inclusive)
AGE_RANGE = (1, 120)
HEIGHT_CM_RANGE = (50, 250)
WEIGHT_KG_RANGE = (20, 300)

# =============================================================================
# PLAN LIMITS
# =============================================================================
MIN_DURATION_DAYS = 1
MAX_DURATION_DAYS = 30
MAX_SNACKS_PER_DAY = 3
PLAN_STATUSES: Tuple[str, ...] = ("draft", "active", "completed")

# Allowed status transitions
STATUS_TRANSITIONS: Dict[str, Set[str]] = {
    "draft": {"active"},
    "active": {"completed"},
    "completed": set(),
}


def normalize_slot(value: str) -> Optional[str]:
    """
    Normalize a slot/meal-type string to its canonical slot.

    Args:
        value: Raw meal type (e.g., "Snack", "supper")

    Returns:
        Canonical slot name, or None if unrecognized
    """
    if not value:
        return None
    lowered = value.strip().lower()
    for canonical, variants in SLOT_SYNONYMS.items():
        if lowered in variants:
            return canonical
    return None


def normalize_dietary_preference(value: Optional[str]) -> Optional[str]:
    """
    Normalize a dietary preference.

    Returns:
        The lowercase tag to filter on, or None when no filter applies
    """
    if value is None:
        return None
    lowered = value.strip().lower().replace("_", "-")
    if lowered in UNRESTRICTED_PREFERENCES:
        return None
    return lowered


def normalize_grocery_category(value: Optional[str]) -> Optional[str]:
    """Lowercase category if it is a known aisle, else None."""
    if not value:
        return None
    lowered = value.strip().lower()
    return lowered if lowered in GROCERY_CATEGORIES else None
