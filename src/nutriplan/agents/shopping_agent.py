"""
Shopping Agent for grocery list generation.

Takes a meal plan and generates an organized shopping list, keeping the
purchased checkmarks and hand-added lines of any list saved earlier for the
same plan.
"""

import logging
from typing import Any, Dict, List, Optional

from ..canon import DEFAULT_GROCERY_CATEGORY, normalize_grocery_category
from ..data.database import DatabaseInterface
from ..data.models import GroceryItem
from ..engine.grocery_aggregator import build_grocery_list, group_by_category, merge_purchased_state
from ..errors import NutriPlanError

logger = logging.getLogger(__name__)

PLAN_NOT_FOUND = {"success": False, "error": "Meal plan not found", "error_type": "not_found"}
LIST_NOT_FOUND = {"success": False, "error": "Grocery list not found", "error_type": "not_found"}


def _item_key(name: str, unit: str):
    """Same shape as GroceryItem.merge_key."""
    return (name.strip().lower(), unit.strip())


class ShoppingAgent:
    """Agent for generating organized grocery lists from meal plans."""

    def __init__(self, db: DatabaseInterface):
        """
        Initialize Shopping Agent.

        Args:
            db: Database interface instance
        """
        self.db = db
        logger.info("Shopping Agent initialized")

    def _list_result(self, meal_plan_id: str, items: List[GroceryItem], category: Optional[str] = None) -> Dict[str, Any]:
        if category:
            wanted = category.strip().lower()
            items = [item for item in items if item.category == wanted]
        return {
            "success": True,
            "meal_plan_id": meal_plan_id,
            "num_items": len(items),
            "items": [item.to_dict() for item in items],
            "by_category": {
                name: [item.to_dict() for item in group]
                for name, group in group_by_category(items).items()
            },
        }

    def create_grocery_list(self, meal_plan_id: str, category: Optional[str] = None) -> Dict[str, Any]:
        """
        Create (or refresh) the grocery list for a meal plan.

        Args:
            meal_plan_id: ID of the meal plan
            category: Only return lines in this category (the whole list is saved)

        Returns:
            Dictionary with grocery list results
        """
        try:
            meal_plan = self.db.get_meal_plan(meal_plan_id)
            if not meal_plan:
                return dict(PLAN_NOT_FOUND)

            logger.info(f"Creating grocery list for meal plan {meal_plan_id}")

            items = build_grocery_list(meal_plan, resolve=self.db.get_recipe)
            items = merge_purchased_state(items, self.db.get_grocery_list(meal_plan_id))
            self.db.save_grocery_list(meal_plan_id, items, user_id=meal_plan.user_id)

            logger.info(f"Created grocery list with {len(items)} items")

            return self._list_result(meal_plan_id, items, category)

        except NutriPlanError as e:
            logger.warning(f"Grocery list failed for {meal_plan_id}: {e}")
            return e.to_dict()
        except Exception as e:
            logger.error(f"Error creating grocery list: {e}", exc_info=True)
            return {
                "success": False,
                "error": str(e),
                "error_type": "internal",
            }

    def get_grocery_list(self, meal_plan_id: str, category: Optional[str] = None) -> Dict[str, Any]:
        """
        Return the stored grocery list, building it only if none exists yet.

        Args:
            meal_plan_id: ID of the meal plan
            category: Only return lines in this category
        """
        items = self.db.get_grocery_list(meal_plan_id)
        if items is None:
            return self.create_grocery_list(meal_plan_id, category=category)
        return self._list_result(meal_plan_id, items, category)

    def add_grocery_item(
        self,
        meal_plan_id: str,
        name: str,
        quantity: float = 1.0,
        unit: str = "",
        category: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Add a line by hand.

        A manual line with the same name and unit absorbs the quantity.
        Manual lines are kept when the list is rebuilt from the plan.
        """
        name = (name or "").strip()
        if not name:
            return {"success": False, "error": "name is required", "error_type": "invalid_request"}
        try:
            quantity = float(quantity)
        except (TypeError, ValueError):
            return {"success": False, "error": "quantity must be a number", "error_type": "invalid_request"}
        if quantity <= 0:
            return {"success": False, "error": "quantity must be positive", "error_type": "invalid_request"}

        meal_plan = self.db.get_meal_plan(meal_plan_id)
        if not meal_plan:
            return dict(PLAN_NOT_FOUND)

        items = self.db.get_grocery_list(meal_plan_id)
        if items is None:
            items = build_grocery_list(meal_plan, resolve=self.db.get_recipe)

        key = _item_key(name, unit or "")
        item = next((i for i in items if i.manual and i.merge_key == key), None)
        if item is None:
            item = GroceryItem(
                name=name,
                quantity=0.0,
                unit=(unit or "").strip(),
                category=normalize_grocery_category(category) or DEFAULT_GROCERY_CATEGORY,
                manual=True,
            )
            items.append(item)
        item.quantity = round(item.quantity + quantity, 3)

        self.db.save_grocery_list(meal_plan_id, items, user_id=meal_plan.user_id)
        logger.info(f"Added {item.formatted_quantity} {item.name} to grocery list {meal_plan_id}")

        return {"success": True, "meal_plan_id": meal_plan_id, "item": item.to_dict()}

    def remove_grocery_item(self, meal_plan_id: str, name: str, unit: str = "") -> Dict[str, Any]:
        """
        Remove a hand-added line.

        Recipe lines cannot be removed; they come back on every rebuild.
        """
        items = self.db.get_grocery_list(meal_plan_id)
        if items is None:
            return dict(LIST_NOT_FOUND)

        key = _item_key(name or "", unit or "")
        matches = [item for item in items if item.merge_key == key]
        manual = [item for item in matches if item.manual]
        if not manual:
            if matches:
                return {
                    "success": False,
                    "error": f"'{name}' comes from the plan's recipes and cannot be removed",
                    "error_type": "invalid_request",
                }
            return {"success": False, "error": f"No grocery item '{name}' ({unit})", "error_type": "not_found"}

        remaining = [item for item in items if item not in manual]
        self.db.save_grocery_list(meal_plan_id, remaining)
        logger.info(f"Removed {name} from grocery list {meal_plan_id}")

        return {"success": True, "meal_plan_id": meal_plan_id, "num_items": len(remaining)}

    def clear_grocery_list(self, meal_plan_id: str) -> Dict[str, Any]:
        """Drop the stored list, manual lines and checkmarks included."""
        if not self.db.delete_grocery_list(meal_plan_id):
            return dict(LIST_NOT_FOUND)
        return {"success": True, "meal_plan_id": meal_plan_id}

    def toggle_purchased(
        self,
        meal_plan_id: str,
        name: str,
        unit: str = "",
        purchased: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """
        Set or flip the purchased flag of one grocery line.

        Args:
            meal_plan_id: Plan the list belongs to
            name: Item name (case-insensitive)
            unit: Item unit (case-sensitive, "T" and "t" differ)
            purchased: New state; flips the current state when None
        """
        items = self.db.get_grocery_list(meal_plan_id)
        if items is None:
            return dict(LIST_NOT_FOUND)

        key = _item_key(name, unit)
        current = next((item for item in items if item.merge_key == key), None)
        if current is None:
            return {"success": False, "error": f"No grocery item '{name}' ({unit})", "error_type": "not_found"}

        new_state = (not current.purchased) if purchased is None else bool(purchased)
        self.db.set_grocery_item_purchased(meal_plan_id, name, unit, new_state)
        logger.info(f"Marked {current.name} as {'purchased' if new_state else 'not purchased'}")

        return {"success": True, "name": current.name, "unit": current.unit, "purchased": new_state}

    def format_shopping_list(self, meal_plan_id: str) -> str:
        """
        Format a grocery list for display.

        Args:
            meal_plan_id: ID of the meal plan the list belongs to

        Returns:
            Formatted shopping list string
        """
        items = self.db.get_grocery_list(meal_plan_id)

        if items is None:
            return "Grocery list not found."

        remaining = sum(1 for item in items if not item.purchased)
        lines = [
            f"Shopping List for {meal_plan_id}",
            f"{'='*60}",
            f"\nTotal Items: {len(items)} ({remaining} still to buy)",
            "",
        ]

        for category, group in group_by_category(items).items():
            lines.append(f"\n{category.upper()}")
            lines.append("-" * 30)

            for item in group:
                checkbox = "☑" if item.purchased else "☐"
                lines.append(f"  {checkbox} {item.name} - {item.formatted_quantity}")
                if item.manual:
                    lines.append("      Added by hand")
                    continue
                recipes = ", ".join(item.recipe_sources[:2])
                if len(item.recipe_sources) > 2:
                    recipes += f", +{len(item.recipe_sources) - 2} more"
                lines.append(f"      For: {recipes}")

        return "\n".join(lines)
