"""
Database interface for NutriPlan.

Manages two SQLite databases:
- recipes.db: Recipe catalog (read-only for the engine, loaded from JSON)
- user_data.db: Profiles, meal plans, grocery lists, meal logs
"""

import sqlite3
import json
import logging
import uuid
from typing import List, Optional, Dict, Iterable
from datetime import datetime
from pathlib import Path

from .models import (
    GenerationPreferences,
    GroceryItem,
    MealPlan,
    MealRecord,
    NutritionInfo,
    NutritionSummary,
    NutritionTarget,
    PlanDay,
    Recipe,
    Ingredient,
    UserProfile,
)

logger = logging.getLogger(__name__)


class DatabaseInterface:
    """Interface for interacting with SQLite databases."""

    def __init__(self, db_dir: str = "data"):
        """
        Initialize database interface.

        Args:
            db_dir: Directory containing database files
        """
        self.db_dir = Path(db_dir)
        self.db_dir.mkdir(parents=True, exist_ok=True)

        self.recipes_db = self.db_dir / "recipes.db"
        self.user_db = self.db_dir / "user_data.db"

        self._init_recipe_database()
        self._init_user_database()

    def _init_recipe_database(self):
        """Initialize recipe catalog schema."""
        with sqlite3.connect(self.recipes_db) as conn:
            cursor = conn.cursor()

            # List-valued columns hold JSON arrays
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS recipes (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT,
                    cuisine TEXT,
                    dietary_tags TEXT,
                    meal_types TEXT,
                    ingredients TEXT,
                    nutrition TEXT NOT NULL,
                    prep_minutes INTEGER DEFAULT 0,
                    cook_minutes INTEGER DEFAULT 0,
                    difficulty TEXT DEFAULT 'medium',
                    servings INTEGER DEFAULT 1
                )
            """)
            conn.commit()

    def _init_user_database(self):
        """Initialize user data database schema."""
        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()

            # User profile table (one row per user)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS user_profiles (
                    user_id INTEGER PRIMARY KEY,
                    age INTEGER NOT NULL,
                    sex TEXT NOT NULL,
                    height_cm REAL NOT NULL,
                    weight_kg REAL NOT NULL,
                    activity_level TEXT NOT NULL,
                    goal TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            # Meal plans table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS meal_plans (
                    id TEXT PRIMARY KEY,
                    user_id INTEGER NOT NULL DEFAULT 1,
                    title TEXT NOT NULL,
                    duration_days INTEGER NOT NULL,
                    start_date TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'draft',
                    preferences_json TEXT,
                    target_json TEXT NOT NULL,
                    days_json TEXT NOT NULL,
                    summary_json TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_meal_plans_user
                ON meal_plans(user_id, created_at)
            """)

            # Grocery lists table (one per meal plan)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS grocery_lists (
                    meal_plan_id TEXT PRIMARY KEY,
                    user_id INTEGER NOT NULL DEFAULT 1,
                    items_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT,
                    FOREIGN KEY (meal_plan_id) REFERENCES meal_plans(id)
                )
            """)

            # Meal logs table (consumed meals for progress tracking)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS meal_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL DEFAULT 1,
                    date TEXT NOT NULL,
                    meal_type TEXT NOT NULL,
                    recipe_id TEXT,
                    name TEXT,
                    nutrition_json TEXT NOT NULL,
                    notes TEXT,
                    created_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_meal_logs_user_date
                ON meal_logs(user_id, date)
            """)

            conn.commit()
            logger.info(f"User database initialized at {self.user_db}")

    # ==================== Recipe Operations ====================

    def add_recipes(self, recipes: Iterable[Recipe]) -> int:
        """
        Insert or replace recipes in the catalog.

        Args:
            recipes: Recipe objects

        Returns:
            Number of recipes written
        """
        count = 0
        with sqlite3.connect(self.recipes_db) as conn:
            cursor = conn.cursor()
            for recipe in recipes:
                cursor.execute(
                    """
                    INSERT OR REPLACE INTO recipes
                    (id, title, description, cuisine, dietary_tags, meal_types,
                     ingredients, nutrition, prep_minutes, cook_minutes, difficulty, servings)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        recipe.id,
                        recipe.title,
                        recipe.description,
                        recipe.cuisine,
                        json.dumps(recipe.dietary_tags),
                        json.dumps(recipe.meal_types),
                        json.dumps([ing.to_dict() for ing in recipe.ingredients]),
                        json.dumps(recipe.nutrition.to_dict()),
                        recipe.prep_minutes,
                        recipe.cook_minutes,
                        recipe.difficulty,
                        recipe.servings,
                    ),
                )
                count += 1
            conn.commit()

        logger.info(f"Loaded {count} recipes into {self.recipes_db}")
        return count

    def load_recipes_from_json(self, path: str) -> int:
        """Load a JSON array of recipe dicts into the catalog."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("recipes", [])
        return self.add_recipes(Recipe.from_dict(item) for item in data)

    def count_recipes(self) -> int:
        with sqlite3.connect(self.recipes_db) as conn:
            return conn.execute("SELECT COUNT(*) FROM recipes").fetchone()[0]

    def find_eligible(
        self,
        dietary_tags: Optional[List[str]] = None,
        excluded_ingredients: Optional[List[str]] = None,
        max_prep_minutes: Optional[int] = None,
        max_cook_minutes: Optional[int] = None,
        cuisines: Optional[List[str]] = None,
    ) -> List[Recipe]:
        """
        Find recipes passing the hard filters.

        Args:
            dietary_tags: Tags every recipe MUST carry (e.g., ["vegan"])
            excluded_ingredients: Terms that must not appear in any ingredient name
            max_prep_minutes: Prep time ceiling (None or 0 = no ceiling)
            max_cook_minutes: Cook time ceiling (None or 0 = no ceiling)
            cuisines: Allowed cuisines (None or empty = any)

        Returns:
            Matching recipes ordered by id
        """
        with sqlite3.connect(self.recipes_db) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()

            sql = "SELECT * FROM recipes WHERE 1=1"
            params = []

            # Required tags, matched as quoted JSON strings
            for tag in dietary_tags or []:
                sql += " AND LOWER(dietary_tags) LIKE ?"
                params.append(f'%"{tag.strip().lower()}"%')

            if max_prep_minutes:
                sql += " AND prep_minutes <= ?"
                params.append(max_prep_minutes)

            if max_cook_minutes:
                sql += " AND cook_minutes <= ?"
                params.append(max_cook_minutes)

            if cuisines:
                placeholders = ",".join(["?" for _ in cuisines])
                sql += f" AND LOWER(cuisine) IN ({placeholders})"
                params.extend([c.strip().lower() for c in cuisines])

            sql += " ORDER BY id"

            cursor.execute(sql, params)
            rows = cursor.fetchall()

        recipes = []
        for row in rows:
            try:
                recipe = self._row_to_recipe(row)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Error parsing recipe {row['id']}: {e}")
                continue
            # Substring exclusion is done here; LIKE on the JSON blob would also hit units/categories
            if any(recipe.contains_ingredient(term) for term in excluded_ingredients or []):
                continue
            recipes.append(recipe)

        logger.debug(f"find_eligible returned {len(recipes)} of {len(rows)} tag/time/cuisine matches")
        return recipes

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        """
        Get a specific recipe by ID.

        Args:
            recipe_id: Recipe ID

        Returns:
            Recipe object or None if not found
        """
        with sqlite3.connect(self.recipes_db) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM recipes WHERE id = ?", (str(recipe_id),))
            row = cursor.fetchone()

            if row:
                return self._row_to_recipe(row)
            return None

    def _row_to_recipe(self, row: sqlite3.Row) -> Recipe:
        """Convert database row to Recipe object."""
        return Recipe(
            id=str(row["id"]),
            title=row["title"],
            description=row["description"] or "",
            cuisine=row["cuisine"],
            dietary_tags=json.loads(row["dietary_tags"]) if row["dietary_tags"] else [],
            meal_types=json.loads(row["meal_types"]) if row["meal_types"] else [],
            ingredients=[Ingredient.from_dict(i) for i in json.loads(row["ingredients"] or "[]")],
            nutrition=NutritionInfo.from_dict(json.loads(row["nutrition"])),
            prep_minutes=row["prep_minutes"] or 0,
            cook_minutes=row["cook_minutes"] or 0,
            difficulty=row["difficulty"] or "medium",
            servings=row["servings"] or 1,
        )

    # ==================== User Profile Operations ====================

    def save_user_profile(self, profile: UserProfile, user_id: Optional[int] = None) -> bool:
        """
        Save (insert or replace) a user profile.

        Args:
            profile: UserProfile object
            user_id: Overrides profile.user_id when given

        Returns:
            True if successful
        """
        if user_id is not None:
            profile.user_id = user_id

        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO user_profiles
                (user_id, age, sex, height_cm, weight_kg, activity_level, goal, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    profile.user_id,
                    profile.age,
                    profile.sex,
                    profile.height_cm,
                    profile.weight_kg,
                    profile.activity_level,
                    profile.goal,
                    datetime.now().isoformat(),
                ),
            )
            conn.commit()

        logger.info(f"Saved profile for user {profile.user_id}")
        return True

    def get_user_profile(self, user_id: int = 1) -> Optional[UserProfile]:
        """
        Get user profile.

        Returns:
            UserProfile object or None if the user has no profile
        """
        with sqlite3.connect(self.user_db) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM user_profiles WHERE user_id = ?", (user_id,))
            row = cursor.fetchone()

            if not row:
                return None

            return UserProfile(
                user_id=row["user_id"],
                age=row["age"],
                sex=row["sex"],
                height_cm=row["height_cm"],
                weight_kg=row["weight_kg"],
                activity_level=row["activity_level"],
                goal=row["goal"],
            )

    # ==================== Meal Plan Operations ====================

    def save_meal_plan(self, meal_plan: MealPlan) -> str:
        """
        Save a meal plan to the database.

        Generates an id for new plans. Days are stored with embedded recipes
        so a plan stays readable if the catalog changes.

        Args:
            meal_plan: MealPlan object

        Returns:
            ID of saved meal plan
        """
        if not meal_plan.id:
            meal_plan.id = f"mp_{meal_plan.start_date}_{uuid.uuid4().hex[:8]}"

        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO meal_plans
                (id, user_id, title, duration_days, start_date, status,
                 preferences_json, target_json, days_json, summary_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    meal_plan.id,
                    meal_plan.user_id,
                    meal_plan.title,
                    meal_plan.duration_days,
                    meal_plan.start_date,
                    meal_plan.status,
                    json.dumps(meal_plan.preferences.to_dict()),
                    json.dumps(meal_plan.target.to_dict()),
                    json.dumps([day.to_dict() for day in meal_plan.days]),
                    json.dumps(meal_plan.nutrition_summary.to_dict()),
                    meal_plan.created_at.isoformat(),
                    meal_plan.updated_at.isoformat() if meal_plan.updated_at else None,
                ),
            )
            conn.commit()

        logger.info(f"Saved meal plan {meal_plan.id} ({meal_plan.duration_days} days, {meal_plan.status})")
        return meal_plan.id

    def get_meal_plan(self, plan_id: str, user_id: Optional[int] = None) -> Optional[MealPlan]:
        """
        Get a meal plan by ID.

        Args:
            plan_id: Meal plan ID
            user_id: Optional user ID filter

        Returns:
            MealPlan object or None
        """
        with sqlite3.connect(self.user_db) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()

            if user_id is not None:
                cursor.execute("SELECT * FROM meal_plans WHERE id = ? AND user_id = ?", (plan_id, user_id))
            else:
                cursor.execute("SELECT * FROM meal_plans WHERE id = ?", (plan_id,))
            row = cursor.fetchone()

            if row:
                return self._row_to_meal_plan(row)
            return None

    def get_user_meal_plans(self, user_id: int = 1, limit: int = 10) -> List[MealPlan]:
        """Get a user's meal plans, newest first."""
        with sqlite3.connect(self.user_db) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM meal_plans
                WHERE user_id = ?
                ORDER BY created_at DESC
                LIMIT ?
                """,
                (user_id, limit),
            )
            return [self._row_to_meal_plan(row) for row in cursor.fetchall()]

    def delete_meal_plan(self, plan_id: str) -> bool:
        """
        Delete a meal plan and its grocery list.

        Returns:
            True if a plan was deleted
        """
        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM grocery_lists WHERE meal_plan_id = ?", (plan_id,))
            cursor.execute("DELETE FROM meal_plans WHERE id = ?", (plan_id,))
            deleted = cursor.rowcount > 0
            conn.commit()

        if deleted:
            logger.info(f"Deleted meal plan {plan_id}")
        return deleted

    def _row_to_meal_plan(self, row: sqlite3.Row) -> MealPlan:
        """Convert database row to MealPlan object."""
        return MealPlan(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            duration_days=row["duration_days"],
            start_date=row["start_date"],
            status=row["status"],
            preferences=GenerationPreferences.from_dict(json.loads(row["preferences_json"] or "{}")),
            target=NutritionTarget.from_dict(json.loads(row["target_json"])),
            days=[PlanDay.from_dict(d) for d in json.loads(row["days_json"])],
            nutrition_summary=NutritionSummary.from_dict(json.loads(row["summary_json"] or "{}")),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None,
        )

    # ==================== Grocery List Operations ====================

    def save_grocery_list(self, meal_plan_id: str, items: List[GroceryItem], user_id: int = 1) -> str:
        """
        Save (replace) the grocery list for a meal plan.

        Returns:
            The meal plan ID the list is keyed by
        """
        now = datetime.now().isoformat()
        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO grocery_lists (meal_plan_id, user_id, items_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(meal_plan_id) DO UPDATE SET
                    items_json = excluded.items_json,
                    updated_at = excluded.updated_at
                """,
                (meal_plan_id, user_id, json.dumps([item.to_dict() for item in items]), now, now),
            )
            conn.commit()

        logger.info(f"Saved grocery list for {meal_plan_id} with {len(items)} items")
        return meal_plan_id

    def get_grocery_list(self, meal_plan_id: str) -> Optional[List[GroceryItem]]:
        """Get the stored grocery list for a meal plan, or None."""
        with sqlite3.connect(self.user_db) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()
            cursor.execute("SELECT items_json FROM grocery_lists WHERE meal_plan_id = ?", (meal_plan_id,))
            row = cursor.fetchone()

            if row:
                return [GroceryItem.from_dict(item) for item in json.loads(row["items_json"])]
            return None

    def set_grocery_item_purchased(
        self, meal_plan_id: str, name: str, unit: str, purchased: bool
    ) -> bool:
        """
        Mark one grocery line purchased or not.

        Lines are identified by their merge key: name ignoring case, unit as
        written.

        Returns:
            True if a matching line was found and updated
        """
        items = self.get_grocery_list(meal_plan_id)
        if items is None:
            return False

        key = (name.strip().lower(), unit.strip())
        found = False
        for item in items:
            if item.merge_key == key:
                item.purchased = purchased
                found = True

        if found:
            self.save_grocery_list(meal_plan_id, items)
        return found

    def delete_grocery_list(self, meal_plan_id: str) -> bool:
        """
        Delete the stored grocery list for a meal plan.

        Returns:
            True if a list was deleted
        """
        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM grocery_lists WHERE meal_plan_id = ?", (meal_plan_id,))
            deleted = cursor.rowcount > 0
            conn.commit()

        if deleted:
            logger.info(f"Deleted grocery list for {meal_plan_id}")
        return deleted

    # ==================== Meal Log Operations ====================

    def add_meal_log(self, record: MealRecord, user_id: int = 1) -> int:
        """
        Record a consumed meal.

        Returns:
            ID of the new log row
        """
        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO meal_logs
                (user_id, date, meal_type, recipe_id, name, nutrition_json, notes, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    record.date,
                    record.meal_type,
                    record.recipe_id,
                    record.name,
                    json.dumps(record.nutrition.to_dict()),
                    record.notes,
                    datetime.now().isoformat(),
                ),
            )
            conn.commit()
            record.id = cursor.lastrowid

        logger.info(f"Logged {record.meal_type} on {record.date} for user {user_id}")
        return record.id

    def get_meal_logs(
        self,
        user_id: int = 1,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[MealRecord]:
        """
        Get logged meals for a user, optionally within an inclusive ISO date range.
        """
        with sqlite3.connect(self.user_db) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()

            sql = "SELECT * FROM meal_logs WHERE user_id = ?"
            params = [user_id]
            if start_date:
                sql += " AND date >= ?"
                params.append(start_date)
            if end_date:
                sql += " AND date <= ?"
                params.append(end_date)
            sql += " ORDER BY date, id"

            cursor.execute(sql, params)
            return [
                MealRecord(
                    id=row["id"],
                    date=row["date"],
                    meal_type=row["meal_type"],
                    recipe_id=row["recipe_id"],
                    name=row["name"],
                    nutrition=NutritionInfo.from_dict(json.loads(row["nutrition_json"])),
                    notes=row["notes"],
                )
                for row in cursor.fetchall()
            ]
