"""
Unit tests for nutrition rollups.
"""

import pytest
from datetime import date, datetime

from nutriplan.data.models import (
    GenerationPreferences,
    MealRecord,
    NutritionInfo,
    UnresolvedRecipe,
)
from nutriplan.engine.nutrition_aggregator import (
    aggregate_nutrition,
    date_span,
    parse_date,
    records_from_plan,
    week_start,
    weekly_progress,
)
from nutriplan.engine.plan_assembler import PlanAssembler
from nutriplan.errors import InvalidDateRange, RecipeNotFound


def _record(day, calories, protein=10.0, carbs=20.0, fats=5.0, meal_type="dinner"):
    return MealRecord(date=day, meal_type=meal_type,
                      nutrition=NutritionInfo(calories, protein, carbs, fats))


@pytest.fixture
def week_records():
    """Three logged days in the week of Monday 2025-01-20."""
    return [
        _record("2025-01-20", 500, meal_type="breakfast"),
        _record("2025-01-20", 700, meal_type="lunch"),
        _record("2025-01-22", 1800),
        _record("2025-01-25", 2100),
    ]


class TestParseDate:
    """Test date coercion."""

    def test_accepts_common_inputs(self):
        assert parse_date("2025-01-20") == date(2025, 1, 20)
        assert parse_date("2025-01-20T18:30:00") == date(2025, 1, 20)
        assert parse_date(datetime(2025, 1, 20, 9, 0)) == date(2025, 1, 20)
        assert parse_date(date(2025, 1, 20)) == date(2025, 1, 20)

    @pytest.mark.parametrize("value", ["20/01/2025", "", "not a date", None, 20250120])
    def test_rejects_malformed(self, value):
        with pytest.raises(InvalidDateRange):
            parse_date(value)

    def test_span_rejects_backwards_range(self):
        with pytest.raises(InvalidDateRange):
            date_span("2025-01-21", "2025-01-20")

    def test_span_is_inclusive(self):
        assert len(date_span("2025-01-20", "2025-01-26")) == 7


class TestAggregateNutrition:
    """Test per-date rollups."""

    def test_week_with_three_logged_days(self, week_records):
        """A 7-day range returns 7 rows; 4 of them zero."""
        rollup = aggregate_nutrition(week_records, date_range=("2025-01-20", "2025-01-26"))

        assert len(rollup.days) == 7
        assert sum(1 for d in rollup.days if d.is_empty) == 4
        assert [d.date for d in rollup.days][0] == "2025-01-20"
        assert rollup.days[0].calories == 1200
        assert rollup.days[0].meal_count == 2
        assert rollup.days[1].calories == 0

    def test_average_divides_by_requested_dates(self, week_records):
        rollup = aggregate_nutrition(week_records, date_range=("2025-01-20", "2025-01-26"))

        assert rollup.totals.calories == 5100
        assert rollup.averages.calories == pytest.approx(5100 / 7)
        assert rollup.start_date == "2025-01-20"
        assert rollup.end_date == "2025-01-26"

    def test_without_range_only_logged_dates(self, week_records):
        rollup = aggregate_nutrition(week_records)

        assert [d.date for d in rollup.days] == ["2025-01-20", "2025-01-22", "2025-01-25"]
        assert rollup.averages.calories == pytest.approx(1700)

    def test_explicit_dates(self, week_records):
        rollup = aggregate_nutrition(week_records, dates=["2025-01-22", date(2025, 1, 23)])

        assert [d.calories for d in rollup.days] == [1800, 0]

    def test_repeated_dates_counted_once(self):
        rollup = aggregate_nutrition([_record("2025-01-20", 500)],
                                     dates=["2025-01-20", date(2025, 1, 20)])

        assert [d.date for d in rollup.days] == ["2025-01-20"]
        assert rollup.totals.calories == 500
        assert rollup.averages.calories == 500

    def test_records_outside_range_ignored(self, week_records):
        rollup = aggregate_nutrition(week_records, date_range=("2025-01-21", "2025-01-22"))
        assert rollup.totals.calories == 1800

    def test_no_records(self):
        rollup = aggregate_nutrition([])

        assert rollup.days == []
        assert rollup.totals.calories == 0
        assert rollup.start_date is None

    def test_invalid_range(self, week_records):
        with pytest.raises(InvalidDateRange):
            aggregate_nutrition(week_records, date_range=("2025-01-26", "2025-01-20"))

    def test_malformed_record_date(self):
        with pytest.raises(InvalidDateRange):
            aggregate_nutrition([_record("yesterday", 300)])

    def test_to_dict_rounds(self, week_records):
        data = aggregate_nutrition(week_records, date_range=("2025-01-20", "2025-01-26")).to_dict()

        assert data["averages"]["calories"] == 728.6
        assert len(data["days"]) == 7


class TestWeeklyProgress:
    """Test Monday-snapped weekly charts."""

    def test_snaps_to_monday(self):
        assert week_start("2025-01-23") == date(2025, 1, 20)
        assert week_start("2025-01-20") == date(2025, 1, 20)
        assert week_start("2025-01-26") == date(2025, 1, 20)

    def test_seven_labelled_points(self, week_records, target):
        progress = weekly_progress(week_records, "2025-01-24", target)

        assert progress["week_start"] == "2025-01-20"
        assert progress["labels"] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        assert [p["calories"] for p in progress["points"]] == [1200, 0, 1800, 0, 0, 2100, 0]
        assert progress["targets"]["calories"] == target.daily_calories

    def test_without_target(self, week_records):
        assert "targets" not in weekly_progress(week_records, "2025-01-20")


class TestRecordsFromPlan:
    """Test plan -> dated records."""

    def test_one_record_per_entry(self, catalog, target, start_date):
        plan = PlanAssembler(catalog).generate_plan(
            1, GenerationPreferences(duration_days=2), target, start_date=start_date
        )
        records = records_from_plan(plan)

        assert len(records) == sum(len(d.recipe_ids()) for d in plan.days)
        rollup = aggregate_nutrition(records, date_range=(plan.start_date, plan.end_date))
        assert [d.calories for d in rollup.days] == [d.nutrition.calories for d in plan.days]

    def test_unresolved_refs_use_resolver(self, catalog, target, start_date):
        plan = PlanAssembler(catalog).generate_plan(
            1, GenerationPreferences(duration_days=1), target, start_date=start_date
        )
        day = plan.days[0]
        day.meals["lunch"] = [UnresolvedRecipe(day.meals["lunch"][0].recipe_id)]

        records = records_from_plan(plan, resolve=catalog.get_recipe)
        assert sum(r.nutrition.calories for r in records) == day.nutrition.calories

        with pytest.raises(RecipeNotFound):
            records_from_plan(plan)
