"""
Planning engine - target resolution, slot allocation, plan assembly and aggregation.
"""

from nutriplan.engine.targets import resolve_targets, daily_progress
from nutriplan.engine.slot_allocator import SlotAllocator, filter_eligible
from nutriplan.engine.plan_assembler import PlanAssembler, plan_title
from nutriplan.engine.nutrition_aggregator import (
    aggregate_nutrition,
    records_from_plan,
    weekly_progress,
)
from nutriplan.engine.grocery_aggregator import (
    build_grocery_list,
    group_by_category,
    merge_purchased_state,
)

__all__ = [
    "resolve_targets",
    "daily_progress",
    "SlotAllocator",
    "filter_eligible",
    "PlanAssembler",
    "plan_title",
    "aggregate_nutrition",
    "records_from_plan",
    "weekly_progress",
    "build_grocery_list",
    "group_by_category",
    "merge_purchased_state",
]
