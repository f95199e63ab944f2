#!/usr/bin/env python3
"""
Flask web application for NutriPlan.

JSON API over the planning, shopping and progress agents. The assistant is
injected through create_app() so tests can supply their own.
"""

import os
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime
from typing import Any, Dict, Optional

from flask import Flask, abort, jsonify, make_response, request
from flask_cors import CORS
from dotenv import load_dotenv

from ..main import MealPlanningAssistant

logger = logging.getLogger(__name__)

# error_type -> HTTP status
ERROR_STATUS = {
    "not_found": 404,
    "recipe_not_found": 404,
    "invalid_request": 400,
    "invalid_profile": 400,
    "invalid_preferences": 400,
    "invalid_date_range": 400,
    "invalid_status_transition": 409,
    "no_eligible_recipes": 422,
    "generation_failed": 422,
    "generation_cancelled": 409,
}


def configure_logging(logs_dir: str = "logs", debug: bool = False):
    """Setup logging with both console and rotating file output."""
    os.makedirs(logs_dir, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
            RotatingFileHandler(
                os.path.join(logs_dir, "app.log"),
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
            ),
        ],
    )


def _respond(result: Dict[str, Any], success_status: int = 200):
    """Turn an agent result dict into a JSON response."""
    if result.get("success"):
        return jsonify(result), success_status
    return jsonify(result), ERROR_STATUS.get(result.get("error_type"), 500)


def _bad_request(message: str):
    return jsonify({"success": False, "error": message, "error_type": "invalid_request"}), 400


def _user_id(data: Optional[Dict[str, Any]] = None) -> int:
    """Authentication is out of scope; callers name the user explicitly."""
    if data and data.get("user_id") is not None:
        value = data["user_id"]
    else:
        value = request.args.get("user_id", 1)
    try:
        if isinstance(value, bool):
            raise TypeError(value)
        return int(value)
    except (TypeError, ValueError):
        abort(make_response(_bad_request(f"user_id must be an integer, got {value!r}")))


def create_app(assistant: Optional[MealPlanningAssistant] = None) -> Flask:
    """
    Create the Flask app.

    Args:
        assistant: Assistant to serve; built from the environment when omitted
    """
    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key-change-in-production")
    CORS(app)

    assistant = assistant or MealPlanningAssistant()
    app.config["ASSISTANT"] = assistant

    planning = assistant.planning_agent
    shopping = assistant.shopping_agent
    progress = assistant.progress_agent

    @app.route("/health")
    def health_check():
        """Health check endpoint."""
        return jsonify({"status": "healthy", "timestamp": datetime.now().isoformat()}), 200

    # ==================== Targets ====================

    @app.route("/api/targets", methods=["POST"])
    def api_targets():
        """Calculate daily targets; {"save": true} also stores the profile."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return _bad_request("JSON body required")

        if data.get("save"):
            return _respond(planning.save_profile(data, user_id=_user_id(data)))
        return _respond(planning.calculate_targets(data))

    # ==================== Plans ====================

    @app.route("/api/plan", methods=["POST"])
    def api_plan_meals():
        """Generate and save a meal plan."""
        data = request.get_json(silent=True) or {}
        try:
            duration_days = int(data.get("duration_days", data.get("num_days", 7)))
        except (TypeError, ValueError):
            return _bad_request("duration_days must be an integer")

        logger.info(f"Planning {duration_days} days for user {_user_id(data)}")
        result = planning.generate_plan(
            user_id=_user_id(data),
            duration_days=duration_days,
            preferences=data.get("preferences") or {},
            start_date=data.get("start_date"),
        )
        return _respond(result, success_status=201)

    @app.route("/api/plans", methods=["GET"])
    def api_list_plans():
        return _respond(planning.list_plans(_user_id(), limit=request.args.get("limit", default=10, type=int)))

    @app.route("/api/plan/<plan_id>", methods=["GET"])
    def api_get_plan(plan_id):
        return _respond(planning.get_plan(plan_id))

    @app.route("/api/plan/<plan_id>", methods=["DELETE"])
    def api_delete_plan(plan_id):
        return _respond(planning.delete_plan(plan_id))

    @app.route("/api/plan/<plan_id>", methods=["PATCH"])
    def api_update_plan(plan_id):
        """Rename a plan."""
        data = request.get_json(silent=True) or {}
        if "title" not in data:
            return _bad_request("title is required")
        return _respond(planning.update_plan_title(plan_id, str(data["title"] or "")))

    @app.route("/api/plan/<plan_id>/status", methods=["POST"])
    def api_plan_status(plan_id):
        data = request.get_json(silent=True) or {}
        if not data.get("status"):
            return _bad_request("status is required")
        return _respond(planning.set_plan_status(plan_id, data["status"]))

    @app.route("/api/plan/<plan_id>/regenerate", methods=["POST"])
    def api_regenerate_plan(plan_id):
        data = request.get_json(silent=True) or {}
        return _respond(planning.regenerate_plan(plan_id, data.get("preferences")))

    @app.route("/api/plan/<plan_id>/nutrition", methods=["GET"])
    def api_plan_nutrition(plan_id):
        return _respond(progress.get_plan_rollup(plan_id))

    # ==================== Shopping ====================

    @app.route("/api/plan/<plan_id>/grocery-list", methods=["GET"])
    def api_grocery_list(plan_id):
        """Stored list; built on first request only."""
        return _respond(shopping.get_grocery_list(plan_id, category=request.args.get("category")))

    @app.route("/api/plan/<plan_id>/grocery-list", methods=["POST"])
    def api_rebuild_grocery_list(plan_id):
        """Rebuild from the plan, keeping checkmarks and manual lines."""
        return _respond(shopping.create_grocery_list(plan_id, category=request.args.get("category")))

    @app.route("/api/grocery/<plan_id>", methods=["DELETE"])
    def api_clear_grocery_list(plan_id):
        return _respond(shopping.clear_grocery_list(plan_id))

    @app.route("/api/grocery/<plan_id>/items", methods=["POST"])
    def api_add_grocery_item(plan_id):
        data = request.get_json(silent=True) or {}
        if not data.get("name"):
            return _bad_request("name is required")
        result = shopping.add_grocery_item(
            plan_id,
            data["name"],
            quantity=data.get("quantity", 1),
            unit=data.get("unit", ""),
            category=data.get("category"),
        )
        return _respond(result, success_status=201)

    @app.route("/api/grocery/<plan_id>/items", methods=["DELETE"])
    def api_remove_grocery_item(plan_id):
        data = request.get_json(silent=True) or {}
        if not data.get("name"):
            return _bad_request("name is required")
        return _respond(shopping.remove_grocery_item(plan_id, data["name"], data.get("unit", "")))

    @app.route("/api/grocery/<plan_id>/toggle", methods=["POST"])
    def api_toggle_grocery_item(plan_id):
        data = request.get_json(silent=True) or {}
        if not data.get("name"):
            return _bad_request("name is required")
        return _respond(
            shopping.toggle_purchased(plan_id, data["name"], data.get("unit", ""), data.get("purchased"))
        )

    # ==================== Nutrition ====================

    @app.route("/api/nutrition/log", methods=["POST"])
    def api_log_meal():
        data = request.get_json(silent=True) or {}
        result = progress.log_meal(
            user_id=_user_id(data),
            meal_date=data.get("date"),
            meal_type=data.get("meal_type", "dinner"),
            nutrition=data.get("nutrition"),
            recipe_id=data.get("recipe_id"),
            name=data.get("name"),
            notes=data.get("notes"),
        )
        return _respond(result, success_status=201)

    @app.route("/api/nutrition/rollup", methods=["GET"])
    def api_nutrition_rollup():
        return _respond(
            progress.get_rollup(_user_id(), start=request.args.get("start"), end=request.args.get("end"))
        )

    @app.route("/api/nutrition/weekly-progress", methods=["GET"])
    def api_weekly_progress():
        return _respond(progress.get_weekly_progress(_user_id(), start=request.args.get("week")))

    return app


def main():
    """Run the development server."""
    load_dotenv()
    debug = os.environ.get("DEBUG", "false").lower() == "true"
    configure_logging(debug=debug)

    app = create_app()
    app.run(
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 5000)),
        debug=debug,
    )


if __name__ == "__main__":
    main()
