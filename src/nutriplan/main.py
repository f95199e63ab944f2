#!/usr/bin/env python3
"""
Main orchestrator for NutriPlan.

Coordinates Planning, Shopping, and Progress agents.
"""

import logging
import argparse
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .agents.planning_agent import PlanningAgent
from .agents.progress_agent import ProgressAgent
from .agents.shopping_agent import ShoppingAgent
from .config import PlanningConfig, get_db_dir
from .data.database import DatabaseInterface

logger = logging.getLogger(__name__)


class MealPlanningAssistant:
    """Main orchestrator for the meal planning system."""

    def __init__(self, db_dir: Optional[str] = None, config: Optional[PlanningConfig] = None):
        """
        Initialize the assistant.

        Args:
            db_dir: Directory containing databases (defaults to NUTRIPLAN_DB_DIR or "data")
            config: Planning defaults (defaults to NUTRIPLAN_* environment variables)
        """
        self.db = DatabaseInterface(db_dir=db_dir or get_db_dir())
        self.config = config or PlanningConfig.from_env()

        self.planning_agent = PlanningAgent(self.db, self.config)
        self.shopping_agent = ShoppingAgent(self.db)
        self.progress_agent = ProgressAgent(self.db)

        logger.info(f"NutriPlan assistant initialized (db_dir={self.db.db_dir})")

    def load_recipes(self, path: str) -> Dict[str, Any]:
        """Load a JSON recipe catalog into recipes.db."""
        try:
            count = self.db.load_recipes_from_json(path)
            print(f"✅ Loaded {count} recipes ({self.db.count_recipes()} in catalog)")
            return {"success": True, "count": count}
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Error loading recipes from {path}: {e}", exc_info=True)
            print(f"❌ Could not load recipes: {e}")
            return {"success": False, "error": str(e)}

    def show_targets(self, profile_data: Dict[str, Any], user_id: int = 1, save: bool = False):
        """
        Resolve (and optionally save) a profile's daily targets.

        Returns:
            Result dictionary from the planning agent
        """
        if save:
            result = self.planning_agent.save_profile(profile_data, user_id=user_id)
        else:
            result = self.planning_agent.calculate_targets(profile_data)

        if not result["success"]:
            print(f"❌ {result['error']}")
            return result

        targets = result["targets"]
        print(f"\n🎯 Daily targets: {targets['daily_calories']:.0f} kcal")
        print(f"   Protein: {targets['protein']}g  Carbs: {targets['carbs']}g  Fats: {targets['fats']}g")
        print(f"   BMR: {targets['bmr']} kcal  Maintenance: {targets['maintenance_calories']} kcal  BMI: {targets['bmi']}")
        if save:
            print(f"   Saved profile for user {user_id}")
        return result

    def plan(
        self,
        user_id: int = 1,
        duration_days: int = 7,
        preferences: Optional[Dict[str, Any]] = None,
        start_date: Optional[str] = None,
    ):
        """
        Generate a meal plan and print it.

        Returns:
            Meal plan result dictionary
        """
        print(f"\n📅 Planning {duration_days} days for user {user_id}...")
        result = self.planning_agent.generate_plan(
            user_id=user_id,
            duration_days=duration_days,
            preferences=preferences,
            start_date=start_date,
        )

        if not result["success"]:
            print(f"❌ Planning failed: {result['error']}")
            for hint in result.get("cause", result).get("suggestions", []):
                print(f"   • Try to {hint}")
            return result

        print(self.planning_agent.format_plan(result["meal_plan_id"]))
        print(f"\n✅ Saved meal plan {result['meal_plan_id']}")
        return result

    def create_shopping_list(self, meal_plan_id: str):
        """
        Create and print the shopping list for a meal plan.

        Returns:
            Shopping list result dictionary
        """
        result = self.shopping_agent.create_grocery_list(meal_plan_id)

        if not result["success"]:
            print(f"❌ Shopping list failed: {result['error']}")
            return result

        print("\n" + self.shopping_agent.format_shopping_list(meal_plan_id))
        return result

    def show_progress(self, user_id: int = 1, week: Optional[str] = None):
        """
        Print weekly nutrition progress.

        Returns:
            Weekly progress result dictionary
        """
        result = self.progress_agent.get_weekly_progress(user_id=user_id, start=week)

        if not result["success"]:
            print(f"❌ {result['error']}")
            return result

        targets = result.get("targets")
        print(f"\n📈 Week of {result['week_start']}")
        print("-" * 50)
        for point in result["points"]:
            line = f"  {point['label']}  {point['calories']:>7.0f} kcal  {point['meal_count']} meal(s)"
            if targets:
                line += f"  ({point['calories'] / targets['calories'] * 100:.0f}% of target)"
            print(line)
        print(f"  Avg  {result['averages']['calories']:>7.0f} kcal")
        return result


def _preferences_from_args(args) -> Dict[str, Any]:
    prefs = {
        "dietary_preference": args.diet,
        "excluded_ingredients": args.exclude or [],
        "cuisines": args.cuisine or [],
        "max_prep_minutes": args.max_prep,
        "max_cook_minutes": args.max_cook,
    }
    if args.snacks is not None:
        prefs["snacks_per_day"] = args.snacks
    return prefs


def main(argv=None):
    """CLI entry point."""
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="NutriPlan meal planning assistant")
    parser.add_argument(
        "--db-dir",
        type=str,
        default=None,
        help="Database directory (default: $NUTRIPLAN_DB_DIR or data)",
    )
    parser.add_argument("--user-id", type=int, default=1, help="User ID (default: 1)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    load_parser = subparsers.add_parser("load-recipes", help="Load a JSON recipe catalog")
    load_parser.add_argument("path", help="Path to a JSON array of recipes")

    targets_parser = subparsers.add_parser("targets", help="Calculate daily nutrition targets")
    targets_parser.add_argument("--age", type=int, required=True)
    targets_parser.add_argument("--sex", choices=["male", "female", "other"], required=True)
    targets_parser.add_argument("--height", type=float, required=True, help="Height in cm")
    targets_parser.add_argument("--weight", type=float, required=True, help="Weight in kg")
    targets_parser.add_argument("--activity", default="sedentary", help="Activity level")
    targets_parser.add_argument("--goal", default="maintenance", help="weight_loss, maintenance or muscle_gain")
    targets_parser.add_argument("--save", action="store_true", help="Save as the user's profile")

    plan_parser = subparsers.add_parser("plan", help="Generate a meal plan")
    plan_parser.add_argument("--days", type=int, default=7, help="Plan duration in days (1-30)")
    plan_parser.add_argument("--start", type=str, help="Start date (YYYY-MM-DD), default today")
    plan_parser.add_argument("--diet", type=str, help="Dietary preference (e.g., vegetarian)")
    plan_parser.add_argument("--exclude", action="append", help="Ingredient to exclude (repeatable)")
    plan_parser.add_argument("--cuisine", action="append", help="Allowed cuisine (repeatable)")
    plan_parser.add_argument("--max-prep", type=int, help="Maximum prep minutes")
    plan_parser.add_argument("--max-cook", type=int, help="Maximum cook minutes")
    plan_parser.add_argument("--snacks", type=int, help="Snacks per day (0-3)")

    shop_parser = subparsers.add_parser("shop", help="Build the grocery list for a plan")
    shop_parser.add_argument("meal_plan_id", help="Meal plan ID")

    progress_parser = subparsers.add_parser("progress", help="Show weekly nutrition progress")
    progress_parser.add_argument("--week", type=str, help="Any date in the week (YYYY-MM-DD)")

    args = parser.parse_args(argv)

    assistant = MealPlanningAssistant(db_dir=args.db_dir)

    if args.command == "load-recipes":
        result = assistant.load_recipes(args.path)

    elif args.command == "targets":
        profile = {
            "age": args.age,
            "sex": args.sex,
            "height_cm": args.height,
            "weight_kg": args.weight,
            "activity_level": args.activity,
            "goal": args.goal,
        }
        result = assistant.show_targets(profile, user_id=args.user_id, save=args.save)

    elif args.command == "plan":
        result = assistant.plan(
            user_id=args.user_id,
            duration_days=args.days,
            preferences=_preferences_from_args(args),
            start_date=args.start,
        )

    elif args.command == "shop":
        result = assistant.create_shopping_list(args.meal_plan_id)

    else:
        result = assistant.show_progress(user_id=args.user_id, week=args.week)

    return 0 if result.get("success") else 1


if __name__ == "__main__":
    raise SystemExit(main())
