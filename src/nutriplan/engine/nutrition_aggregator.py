"""
Nutrition aggregator: per-date and per-range rollups of meal records.

This is the single place where daily nutrition is summed; plan views,
progress charts and the API all go through it.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..data.models import (
    DailyRollup,
    MealPlan,
    MealRecord,
    NutritionInfo,
    NutritionRollup,
    NutritionTarget,
    RecipeResolver,
    resolve_ref,
)
from ..errors import InvalidDateRange

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]


def parse_date(value: DateLike) -> date:
    """
    Coerce a date, datetime or ISO string to a date.

    Raises:
        InvalidDateRange: On anything else
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise InvalidDateRange(f"Invalid date: {value!r}")


def date_span(start: DateLike, end: DateLike) -> List[date]:
    """
    Inclusive list of dates from start to end.

    Raises:
        InvalidDateRange: If end is before start
    """
    first, last = parse_date(start), parse_date(end)
    if last < first:
        raise InvalidDateRange(f"End date {last} is before start date {first}")
    return [first + timedelta(days=i) for i in range((last - first).days + 1)]


def group_by_date(records: Iterable[MealRecord]) -> Dict[date, DailyRollup]:
    """Sum records per calendar date, in first-seen order."""
    rollups: Dict[date, DailyRollup] = {}
    for record in records:
        day = parse_date(record.date)
        if day not in rollups:
            rollups[day] = DailyRollup(date=day.isoformat())
        rollups[day].add(record.nutrition)
    return rollups


def aggregate_nutrition(
    records: Iterable[MealRecord],
    date_range: Optional[Tuple[DateLike, DateLike]] = None,
    dates: Optional[Sequence[DateLike]] = None,
) -> NutritionRollup:
    """
    Roll meal records up per date.

    With a date_range or an explicit dates list, every requested date gets a
    row (zeros when nothing was recorded) and the averages divide by the
    number of distinct requested dates. Without either, only dates with records are
    returned, sorted.

    Args:
        records: Meal records
        date_range: Inclusive (start, end)
        dates: Explicit dates; takes precedence over date_range

    Returns:
        NutritionRollup

    Raises:
        InvalidDateRange: On malformed dates or end before start
    """
    grouped = group_by_date(records)

    if dates is not None:
        # Repeated dates collapse to their first position
        requested = list(dict.fromkeys(parse_date(d) for d in dates))
    elif date_range is not None:
        requested = date_span(*date_range)
    else:
        requested = sorted(grouped)

    days = [grouped.get(day) or DailyRollup(date=day.isoformat()) for day in requested]

    totals = NutritionInfo()
    for day in days:
        totals = totals + day.as_nutrition()
    averages = totals.scale(1 / len(days)) if days else NutritionInfo()

    return NutritionRollup(
        days=days,
        totals=totals,
        averages=averages,
        start_date=min(requested).isoformat() if requested else None,
        end_date=max(requested).isoformat() if requested else None,
    )


def records_from_plan(plan: MealPlan, resolve: Optional[RecipeResolver] = None) -> List[MealRecord]:
    """
    One record per recipe entry of a plan, dated by its plan day.

    Raises:
        RecipeNotFound: If an unresolved entry cannot be resolved
    """
    records = []
    for day in plan.days:
        for slot, ref in day.refs():
            recipe = resolve_ref(ref, resolve)
            records.append(
                MealRecord(
                    date=day.date,
                    meal_type=slot,
                    nutrition=recipe.nutrition,
                    recipe_id=recipe.id,
                    name=recipe.title,
                )
            )
    return records


def week_start(day: DateLike) -> date:
    """Monday of the week containing day."""
    parsed = parse_date(day)
    return parsed - timedelta(days=parsed.weekday())


def weekly_progress(
    records: Iterable[MealRecord],
    start: DateLike,
    target: Optional[NutritionTarget] = None,
) -> Dict:
    """
    Seven labelled daily points for the week containing start.

    Returns:
        Dict with week_start, labels (Mon..Sun), points and, when a target is
        given, the per-day targets for charting
    """
    monday = week_start(start)
    rollup = aggregate_nutrition(records, date_range=(monday, monday + timedelta(days=6)))

    points = []
    for day in rollup.days:
        point = day.to_dict()
        point["label"] = parse_date(day.date).strftime("%a")
        points.append(point)

    result = {
        "week_start": monday.isoformat(),
        "labels": [p["label"] for p in points],
        "points": points,
        "averages": rollup.averages.rounded().to_dict(),
    }
    if target is not None:
        result["targets"] = target.as_nutrition().to_dict()
    return result
