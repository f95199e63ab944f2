"""
Unit tests for data models.
"""

import pytest

from nutriplan.data.models import (
    GenerationPreferences,
    Ingredient,
    NutritionInfo,
    PlanDay,
    Recipe,
    ResolvedRecipe,
    UnresolvedRecipe,
    recipe_ref_from_dict,
    resolve_ref,
)
from nutriplan.engine.plan_assembler import PlanAssembler
from nutriplan.errors import InvalidPreferences, InvalidStatusTransition, RecipeNotFound


class TestRecipe:
    """Test Recipe normalization and helpers."""

    def test_normalizes_tags_and_meal_types(self):
        recipe = Recipe(
            id=42,
            title="Pancakes",
            nutrition=NutritionInfo(450, 12, 60, 15),
            dietary_tags=["Vegetarian ", ""],
            meal_types=["Brunch", "breakfast", "dessert"],
        )

        assert recipe.id == "42"
        assert recipe.dietary_tags == ["vegetarian"]
        assert recipe.meal_types == ["breakfast"]
        assert recipe.suits_slot("breakfast")
        assert not recipe.suits_slot("dinner")

    def test_from_dict_accepts_name_and_fat_aliases(self):
        recipe = Recipe.from_dict({
            "id": "r1",
            "name": "Soup",
            "nutrition": {"calories": 300, "protein": 10, "carbs": 40, "fat": 8},
            "ingredients": [{"name": "Carrot", "quantity": 2}],
        })

        assert recipe.title == "Soup"
        assert recipe.nutrition.fats == 8
        assert recipe.ingredients[0].unit == ""
        assert recipe.ingredients[0].category is None

    def test_contains_ingredient(self, sample_recipes):
        toast = next(r for r in sample_recipes if r.id == "b4")

        assert toast.contains_ingredient("Peanut")
        assert toast.contains_ingredient(" butter ")
        assert not toast.contains_ingredient("almond")
        assert not toast.contains_ingredient("   ")

    def test_dict_round_trip_preserves_recipe(self, sample_recipes):
        for recipe in sample_recipes:
            assert Recipe.from_dict(recipe.to_dict()) == recipe


class TestNutritionInfo:
    """Test nutrition arithmetic."""

    def test_add_and_scale(self):
        a = NutritionInfo(100, 10, 20, 5)
        b = NutritionInfo(50, 5, 5, 1)

        assert a + b == NutritionInfo(150, 15, 25, 6)
        assert a.scale(2) == NutritionInfo(200, 20, 40, 10)

    def test_from_empty_dict(self):
        assert NutritionInfo.from_dict(None) == NutritionInfo()


class TestRecipeRefs:
    """Test the resolved/unresolved variants."""

    def test_from_dict(self, sample_recipes):
        resolved = recipe_ref_from_dict(ResolvedRecipe(sample_recipes[0]).to_dict())
        unresolved = recipe_ref_from_dict({"recipe_id": "b1"})

        assert isinstance(resolved, ResolvedRecipe)
        assert resolved.recipe_id == sample_recipes[0].id
        assert unresolved == UnresolvedRecipe("b1")

    def test_from_dict_rejects_empty(self):
        with pytest.raises(ValueError):
            recipe_ref_from_dict({})

    def test_resolve(self, sample_recipes, catalog):
        assert resolve_ref(ResolvedRecipe(sample_recipes[0])) is sample_recipes[0]
        assert resolve_ref(UnresolvedRecipe("b1"), catalog.get_recipe).title == "Oatmeal with Berries"

        with pytest.raises(RecipeNotFound):
            resolve_ref(UnresolvedRecipe("missing"), catalog.get_recipe)

    def test_plan_day_loads_bare_ids_as_unresolved(self):
        day = PlanDay.from_dict({
            "day_number": 1,
            "date": "2025-01-20",
            "meals": {"Breakfast": [{"recipe_id": "b1"}], "snack": [{"recipe_id": "s1"}]},
        })

        assert day.meals["breakfast"] == [UnresolvedRecipe("b1")]
        assert day.meals["snacks"] == [UnresolvedRecipe("s1")]
        assert day.meals["lunch"] == []
        assert day.recipe_ids() == ["b1", "s1"]


class TestGenerationPreferences:
    """Test preference parsing and validation."""

    def test_from_camel_case(self):
        prefs = GenerationPreferences.from_dict({
            "durationDays": 5,
            "dietaryPreference": "vegan",
            "excludedIngredients": "peanut, shrimp",
            "cuisine": ["Italian"],
            "maxPrepTime": 20,
        })

        assert prefs.duration_days == 5
        assert prefs.dietary_filter == "vegan"
        assert prefs.excluded_ingredients == ["peanut", "shrimp"]
        assert prefs.cuisines == ["Italian"]
        assert prefs.max_prep_minutes == 20
        prefs.validate()

    @pytest.mark.parametrize("kwargs", [
        {"duration_days": 0},
        {"duration_days": 31},
        {"duration_days": "7"},
        {"dietary_preference": "carnivore"},
        {"max_prep_minutes": -1},
        {"max_cook_minutes": "soon"},
        {"snacks_per_day": 4},
        {"snacks_per_day": 1.5},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(InvalidPreferences):
            GenerationPreferences(**kwargs).validate()

    def test_from_dict_coerces_numeric_strings(self):
        prefs = GenerationPreferences.from_dict({
            "duration_days": "3",
            "max_prep_minutes": "30",
            "maxCookTime": 45.0,
            "snacks_per_day": "",
        })

        assert prefs.duration_days == 3
        assert prefs.max_prep_minutes == 30
        assert prefs.max_cook_minutes == 45
        assert prefs.snacks_per_day is None
        prefs.validate()

    @pytest.mark.parametrize("data", [
        {"max_prep_minutes": "soon"},
        {"max_cook_minutes": "12.5"},
        {"snacks_per_day": True},
        {"duration_days": [7]},
    ])
    def test_from_dict_rejects_non_integers(self, data):
        with pytest.raises(InvalidPreferences):
            GenerationPreferences.from_dict(data)

    def test_active_filters_skip_empty_values(self):
        prefs = GenerationPreferences(dietary_preference="none", max_prep_minutes=0, cuisines=[])
        assert prefs.active_filters() == {}


class TestMealPlanLifecycle:
    """Test status transitions and regeneration."""

    @pytest.fixture
    def plan(self, catalog, target, three_day_preferences, start_date):
        return PlanAssembler(catalog).generate_plan(1, three_day_preferences, target, start_date=start_date)

    def test_forward_transitions(self, plan):
        plan.transition_to("active")
        assert plan.status == "active"
        assert plan.updated_at is not None

        plan.transition_to("completed")
        assert plan.status == "completed"

    @pytest.mark.parametrize("path", [
        ["completed"],
        ["active", "draft"],
        ["active", "completed", "active"],
        ["archived"],
    ])
    def test_invalid_transitions(self, plan, path):
        with pytest.raises(InvalidStatusTransition):
            for status in path:
                plan.transition_to(status)

    def test_replace_days_recomputes_summary(self, plan, catalog, target, start_date):
        other = PlanAssembler(catalog).generate_plan(
            1, plan.preferences, target, start_date=start_date,
            avoid_recipe_ids=set(plan.recipe_occurrences()),
        )

        plan.replace_days(other.days)

        assert plan.days == other.days
        assert plan.nutrition_summary == other.nutrition_summary

    def test_replace_days_requires_full_length(self, plan):
        with pytest.raises(ValueError):
            plan.replace_days(plan.days[:1])

    def test_recipe_occurrences(self, plan):
        counts = plan.recipe_occurrences()
        assert sum(counts.values()) == sum(len(d.recipe_ids()) for d in plan.days)

    def test_dict_round_trip(self, plan):
        data = plan.to_dict()
        restored = type(plan).from_dict(data)

        assert restored.to_dict() == data
        assert isinstance(restored.days[0].meals["breakfast"][0], ResolvedRecipe)
