"""
Pytest configuration and shared fixtures.

Fixtures are reusable test setup that can be injected into tests.
"""

import json
import pytest
import tempfile
import shutil
from datetime import date
from pathlib import Path

from nutriplan.config import PlanningConfig
from nutriplan.data.database import DatabaseInterface
from nutriplan.data.models import (
    GenerationPreferences,
    Ingredient,
    NutritionInfo,
    NutritionTarget,
    Recipe,
    UserProfile,
)
from nutriplan.main import MealPlanningAssistant

SAMPLE_RECIPES_PATH = Path(__file__).resolve().parent.parent / "examples" / "sample_recipes.json"


class ListCatalog:
    """
    In-memory recipe catalog.

    Returns every recipe from find_eligible; the plan assembler applies the
    hard filters itself, so the snapshot may be a superset.
    """

    def __init__(self, recipes):
        self.recipes = list(recipes)
        self.calls = []

    def find_eligible(self, dietary_tags=None, excluded_ingredients=None,
                      max_prep_minutes=None, max_cook_minutes=None, cuisines=None):
        self.calls.append({
            "dietary_tags": dietary_tags,
            "excluded_ingredients": excluded_ingredients,
            "max_prep_minutes": max_prep_minutes,
            "max_cook_minutes": max_cook_minutes,
            "cuisines": cuisines,
        })
        return list(self.recipes)

    def get_recipe(self, recipe_id):
        return next((r for r in self.recipes if r.id == recipe_id), None)


def make_recipe(recipe_id, calories, meal_types=None, tags=None, ingredients=None,
                protein=None, prep=10, cook=10, cuisine="american", title=None):
    """Build a recipe with sensible macro defaults."""
    protein = calories * 0.3 / 4 if protein is None else protein
    return Recipe(
        id=recipe_id,
        title=title or f"Recipe {recipe_id}",
        nutrition=NutritionInfo(
            calories=calories,
            protein=protein,
            carbs=calories * 0.4 / 4,
            fats=calories * 0.3 / 9,
        ),
        ingredients=ingredients or [Ingredient(f"ingredient {recipe_id}", 100, "g", "pantry")],
        dietary_tags=tags or [],
        meal_types=meal_types or [],
        prep_minutes=prep,
        cook_minutes=cook,
        cuisine=cuisine,
    )


@pytest.fixture
def temp_db_dir():
    """
    Create a temporary database directory for testing.

    This fixture is automatically cleaned up after each test.
    """
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def db(temp_db_dir):
    """
    Create a fresh DatabaseInterface for each test.

    Usage in tests:
        def test_something(db):
            db.save_user_profile(...)
    """
    return DatabaseInterface(db_dir=temp_db_dir)


@pytest.fixture
def sample_recipes():
    """The 15-recipe sample catalog (4 breakfasts, 4 lunches, 4 dinners, 3 snacks)."""
    with open(SAMPLE_RECIPES_PATH, "r", encoding="utf-8") as f:
        return [Recipe.from_dict(item) for item in json.load(f)]


@pytest.fixture
def catalog(sample_recipes):
    """In-memory catalog over the sample recipes."""
    return ListCatalog(sample_recipes)


@pytest.fixture
def loaded_db(db, sample_recipes):
    """Database with the sample catalog loaded."""
    db.add_recipes(sample_recipes)
    return db


@pytest.fixture
def sample_profile():
    """30-year-old male, 180 cm, 80 kg, moderately active, maintaining weight."""
    return UserProfile(
        age=30,
        sex="male",
        height_cm=180,
        weight_kg=80,
        activity_level="moderate",
        goal="maintenance",
    )


@pytest.fixture
def target():
    """Daily target matching sample_profile."""
    return NutritionTarget(daily_calories=2608, protein=195.6, carbs=260.8, fats=86.9)


@pytest.fixture
def config():
    return PlanningConfig()


@pytest.fixture
def three_day_preferences():
    return GenerationPreferences(duration_days=3)


@pytest.fixture
def start_date():
    """A Monday."""
    return date(2025, 1, 20)


@pytest.fixture
def assistant(temp_db_dir, sample_recipes):
    """Assistant over a temporary database with the sample catalog loaded."""
    assistant = MealPlanningAssistant(db_dir=temp_db_dir, config=PlanningConfig())
    assistant.db.add_recipes(sample_recipes)
    return assistant


@pytest.fixture
def recipe_factory():
    """Factory for ad hoc recipes: recipe_factory("x1", 500, meal_types=["lunch"])."""
    return make_recipe


@pytest.fixture
def catalog_factory():
    """Factory for in-memory catalogs over arbitrary recipes."""
    return ListCatalog


@pytest.fixture
def sample_recipes_path():
    return str(SAMPLE_RECIPES_PATH)
