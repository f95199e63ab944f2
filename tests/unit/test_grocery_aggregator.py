"""
Unit tests for grocery list aggregation.
"""

import pytest

from nutriplan.data.models import (
    GenerationPreferences,
    GroceryItem,
    Ingredient,
    MealPlan,
    NutritionSummary,
    NutritionTarget,
    PlanDay,
    ResolvedRecipe,
    UnresolvedRecipe,
)
from nutriplan.engine.grocery_aggregator import (
    aggregate_ingredients,
    build_grocery_list,
    group_by_category,
    merge_purchased_state,
    recipe_occurrences,
)
from nutriplan.engine.plan_assembler import PlanAssembler
from nutriplan.errors import RecipeNotFound


def _plan(days_meals):
    """Build a plan from [{slot: [recipe, ...]}, ...]."""
    days = []
    for number, meals in enumerate(days_meals, start=1):
        day = PlanDay(day_number=number, date=f"2025-01-{19 + number:02d}")
        for slot, recipes in meals.items():
            day.meals[slot] = [ResolvedRecipe(r) for r in recipes]
        days.append(day)
    return MealPlan(
        user_id=1,
        title="Test Plan",
        duration_days=len(days),
        preferences=GenerationPreferences(duration_days=len(days)),
        target=NutritionTarget(daily_calories=2000, protein=150, carbs=200, fats=66.7),
        days=days,
        nutrition_summary=NutritionSummary.from_days(days),
        start_date=days[0].date,
    )


@pytest.fixture
def pancakes(recipe_factory):
    return recipe_factory("pancakes", 500, title="Pancakes", ingredients=[
        Ingredient("Flour", 100, "g", "pantry"),
        Ingredient("milk", 200, "ml", "dairy"),
    ])


@pytest.fixture
def bread(recipe_factory):
    return recipe_factory("bread", 300, title="Bread", ingredients=[
        Ingredient(" flour ", 100, "g"),
        Ingredient("Milk", 1, "cup", "dairy"),
        Ingredient("salt", 5, "g"),
    ])


class TestAggregateIngredients:
    """Test merging and scaling."""

    def test_flour_scaled_and_merged(self, pancakes, bread):
        """100 g flour used twice plus 100 g used once gives 300 g."""
        items = aggregate_ingredients([(pancakes, 2), (bread, 1)])
        flour = next(i for i in items if i.name.lower() == "flour")

        assert flour.quantity == 300
        assert flour.unit == "g"
        assert flour.recipe_sources == ["Pancakes", "Bread"]

    def test_different_units_never_merge(self, pancakes, bread):
        items = aggregate_ingredients([(pancakes, 1), (bread, 1)])
        milks = [i for i in items if i.name.lower() == "milk"]

        assert sorted((m.quantity, m.unit) for m in milks) == [(1, "cup"), (200, "ml")]

    def test_unit_case_is_significant(self, recipe_factory):
        """Tablespoon (T) and teaspoon (t) stay separate lines."""
        soup = recipe_factory("soup", 300, title="Soup", ingredients=[Ingredient("salt", 1, "T")])
        stew = recipe_factory("stew", 300, title="Stew", ingredients=[Ingredient("Salt", 1, "t")])

        items = aggregate_ingredients([(soup, 1), (stew, 1)])

        assert [(i.quantity, i.unit) for i in items] == [(1, "T"), (1, "t")]

    def test_first_declared_category_wins(self, recipe_factory):
        first = recipe_factory("a", 100, ingredients=[Ingredient("tofu", 1, "block")])
        second = recipe_factory("b", 100, ingredients=[Ingredient("tofu", 1, "block", "produce")])
        third = recipe_factory("c", 100, ingredients=[Ingredient("tofu", 1, "block", "pantry")])

        items = aggregate_ingredients([(first, 1), (second, 1), (third, 1)])

        assert len(items) == 1
        assert items[0].category == "produce"
        assert items[0].quantity == 3

    def test_category_normalized_to_known_aisles(self, recipe_factory):
        first = recipe_factory("a", 100, ingredients=[
            Ingredient("peas", 1, "bag", "Frozen "),
            Ingredient("yeast", 1, "packet", "aisle 9"),
        ])
        second = recipe_factory("b", 100, ingredients=[Ingredient("yeast", 1, "packet", "Bakery")])

        items = aggregate_ingredients([(first, 1)])
        assert [i.category for i in items] == ["frozen", "other"]

        items = aggregate_ingredients([(first, 1), (second, 1)])
        yeast = next(i for i in items if i.name == "yeast")
        assert yeast.category == "bakery"

    def test_undeclared_category_is_other(self, pancakes, bread):
        items = aggregate_ingredients([(bread, 1)])
        salt = next(i for i in items if i.name == "salt")
        assert salt.category == "other"

    def test_first_appearance_order_and_unpurchased(self, pancakes, bread):
        items = aggregate_ingredients([(pancakes, 1), (bread, 1)])

        assert [i.name for i in items] == ["Flour", "milk", "Milk", "salt"]
        assert not any(i.purchased for i in items)

    def test_zero_occurrences_ignored(self, pancakes):
        assert aggregate_ingredients([(pancakes, 0)]) == []


class TestBuildGroceryList:
    """Test plan-level grocery lists."""

    def test_counts_occurrences_across_days(self, pancakes, bread):
        plan = _plan([
            {"breakfast": [pancakes], "lunch": [bread]},
            {"breakfast": [pancakes]},
        ])

        pairs = recipe_occurrences(plan)
        assert [(r.id, n) for r, n in pairs] == [("pancakes", 2), ("bread", 1)]

        flour = next(i for i in build_grocery_list(plan) if i.name.lower() == "flour")
        assert flour.quantity == 300

    def test_is_idempotent(self, catalog, target, start_date):
        plan = PlanAssembler(catalog).generate_plan(
            1, GenerationPreferences(duration_days=3), target, start_date=start_date
        )

        first = [i.to_dict() for i in build_grocery_list(plan)]
        second = [i.to_dict() for i in build_grocery_list(plan)]

        assert first == second
        keys = [(i["name"].strip().lower(), i["unit"].strip()) for i in first]
        assert len(keys) == len(set(keys))

    def test_unresolved_refs(self, pancakes, bread, catalog_factory):
        plan = _plan([{"breakfast": [pancakes]}])
        plan.days[0].meals["lunch"] = [UnresolvedRecipe("bread")]

        items = build_grocery_list(plan, resolve=catalog_factory([bread]).get_recipe)
        assert any(i.name == "salt" for i in items)

        with pytest.raises(RecipeNotFound) as exc_info:
            build_grocery_list(plan)
        assert exc_info.value.recipe_id == "bread"


class TestGroceryHelpers:
    """Test grouping and purchased-state merge."""

    def test_group_by_category_puts_other_last(self):
        items = [
            GroceryItem("salt", 5, "g", "other"),
            GroceryItem("milk", 1, "l", "dairy"),
            GroceryItem("apple", 3, "", "produce"),
            GroceryItem("cheese", 100, "g", "dairy"),
        ]
        groups = group_by_category(items)

        assert list(groups) == ["dairy", "produce", "other"]
        assert [i.name for i in groups["dairy"]] == ["milk", "cheese"]

    def test_merge_purchased_state(self):
        fresh = [GroceryItem("Flour", 300, "g"), GroceryItem("milk", 200, "ml")]
        persisted = [
            GroceryItem("flour", 200, "g", purchased=True),
            GroceryItem("milk", 200, "ml", purchased=False),
            GroceryItem("eggs", 6, "", purchased=True),
        ]

        merged = merge_purchased_state(fresh, persisted)

        assert [(i.name, i.purchased) for i in merged] == [("Flour", True), ("milk", False)]

    def test_merge_purchased_state_matches_unit_case(self):
        fresh = [GroceryItem("salt", 1, "t")]
        persisted = [GroceryItem("salt", 1, "T", purchased=True)]

        assert merge_purchased_state(fresh, persisted)[0].purchased is False

    def test_manual_lines_survive_merge(self):
        fresh = [GroceryItem("Flour", 300, "g")]
        persisted = [
            GroceryItem("flour", 300, "g", purchased=True),
            GroceryItem("paper towels", 2, "roll", manual=True, purchased=True),
        ]

        merged = merge_purchased_state(fresh, persisted)

        assert [(i.name, i.manual, i.purchased) for i in merged] == [
            ("Flour", False, True),
            ("paper towels", True, True),
        ]

    def test_merge_without_persisted_list(self):
        fresh = [GroceryItem("Flour", 300, "g")]
        assert merge_purchased_state(fresh, None) == fresh
