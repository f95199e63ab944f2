"""
Exception taxonomy for the planning engine.

The engine raises these; agents convert them to result dictionaries.
"""

from typing import Dict, List, Optional


class NutriPlanError(Exception):
    """Base class for all engine errors."""

    error_type = "error"

    def to_dict(self) -> Dict:
        """Convert to a result dictionary for callers."""
        return {
            "success": False,
            "error": str(self),
            "error_type": self.error_type,
        }


class InvalidProfile(NutriPlanError):
    """Physiological input is missing or outside plausible ranges."""

    error_type = "invalid_profile"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["field"] = self.field
        return data


class InvalidPreferences(NutriPlanError):
    """Generation preferences are malformed (e.g., duration out of range)."""

    error_type = "invalid_preferences"


class NoEligibleRecipes(NutriPlanError):
    """No recipe passes the hard filters."""

    error_type = "no_eligible_recipes"

    def __init__(self, message: str, active_filters: Optional[Dict] = None):
        super().__init__(message)
        self.active_filters = active_filters or {}

    def suggestions(self) -> List[str]:
        """Filters the user could relax, most restrictive first."""
        hints = []
        if self.active_filters.get("excluded_ingredients"):
            hints.append("remove some excluded ingredients")
        if self.active_filters.get("cuisines"):
            hints.append("allow more cuisines")
        if self.active_filters.get("dietary_preference"):
            hints.append("relax the dietary preference")
        if self.active_filters.get("max_prep_minutes") or self.active_filters.get("max_cook_minutes"):
            hints.append("raise the prep/cook time limits")
        return hints

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["active_filters"] = self.active_filters
        data["suggestions"] = self.suggestions()
        return data


class GenerationFailed(NutriPlanError):
    """A plan could not be assembled; wraps the first per-day failure."""

    error_type = "generation_failed"

    def __init__(self, message: str, cause: Optional[NutriPlanError] = None, day_number: Optional[int] = None):
        super().__init__(message)
        self.cause = cause
        self.day_number = day_number

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["day_number"] = self.day_number
        if self.cause is not None:
            data["cause"] = self.cause.to_dict()
        return data


class GenerationCancelled(NutriPlanError):
    """The caller abandoned a generation request."""

    error_type = "generation_cancelled"


class InvalidDateRange(NutriPlanError):
    """Malformed date input for a nutrition aggregation."""

    error_type = "invalid_date_range"


class RecipeNotFound(NutriPlanError):
    """A recipe reference could not be resolved."""

    error_type = "recipe_not_found"

    def __init__(self, recipe_id: str):
        super().__init__(f"Recipe '{recipe_id}' could not be resolved")
        self.recipe_id = recipe_id


class InvalidStatusTransition(NutriPlanError):
    """A plan status change outside draft -> active -> completed."""

    error_type = "invalid_status_transition"
