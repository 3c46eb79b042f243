"""Daily, range and period aggregation over calorie entries."""

from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta, tzinfo

from daily_tracker.domain.calorie import (
    CalorieEntry,
    CalorieGoal,
    CalorieProgress,
    DailySummary,
    EntryWithFood,
    FoodItem,
    MealBreakdown,
    MealType,
    ensure_aware,
)
from daily_tracker.services.entries import join_entries
from daily_tracker.services.filters import sort_by_date_time
from daily_tracker.services.nutrition import round_half_away, sum_nutrition

DEFAULT_DAILY_CALORIES = 2000
WEEK_DAYS = 7
MONTH_DAYS = 30


def local_date(moment: datetime, tz: tzinfo = UTC) -> date:
    """Calendar date of a timestamp in the given timezone."""
    return moment.astimezone(tz).date()


def _as_day(day: date | datetime, tz: tzinfo) -> date:
    if isinstance(day, datetime):
        return local_date(ensure_aware(day, tz), tz)
    return day


def entries_for_date(
    entries: Iterable[CalorieEntry],
    foods: Iterable[FoodItem],
    day: date | datetime,
    tz: tzinfo = UTC,
) -> list[EntryWithFood]:
    """Joined entries whose local calendar date equals `day`."""
    target = _as_day(day, tz)
    same_day = [entry for entry in entries if local_date(entry.consumed_at, tz) == target]
    return join_entries(same_day, foods)


def daily_summary(
    entries: Iterable[CalorieEntry],
    foods: Iterable[FoodItem],
    goals: Iterable[CalorieGoal],
    day: date | datetime,
    tz: tzinfo = UTC,
) -> DailySummary:
    """Totals, meal breakdown and sorted entries for one day."""
    target = _as_day(day, tz)
    joined = entries_for_date(entries, foods, target, tz)
    total_nutrition = sum_nutrition(entry.total_nutrition for entry in joined)
    buckets = {meal_type: 0.0 for meal_type in MealType}
    for entry in joined:
        buckets[entry.meal_type] += entry.total_calories
    return DailySummary(
        date=target.isoformat(),
        total_calories=total_nutrition.calories,
        total_nutrition=total_nutrition,
        entries=sort_by_date_time(joined),
        meal_breakdown=MealBreakdown(
            breakfast=buckets[MealType.BREAKFAST],
            lunch=buckets[MealType.LUNCH],
            dinner=buckets[MealType.DINNER],
            snack=buckets[MealType.SNACK],
        ),
    )


def range_summary(
    entries: Iterable[CalorieEntry],
    foods: Iterable[FoodItem],
    start: datetime,
    end: datetime,
    tz: tzinfo = UTC,
) -> list[EntryWithFood]:
    """Joined entries with `start <= consumed_at <= end`.

    Naive bounds are read as wall-clock times in `tz`.
    """
    lower = ensure_aware(start, tz)
    upper = ensure_aware(end, tz)
    in_range = [entry for entry in entries if lower <= entry.consumed_at <= upper]
    return join_entries(in_range, foods)


def active_goal(goals: Iterable[CalorieGoal]) -> CalorieGoal | None:
    """Return the active goal, if any."""
    return next((goal for goal in goals if goal.is_active), None)


def progress(
    entries: Iterable[CalorieEntry],
    foods: Iterable[FoodItem],
    goals: Iterable[CalorieGoal],
    day: date | datetime,
    tz: tzinfo = UTC,
) -> CalorieProgress:
    """Consumption against the active goal, 2000 kcal when none is active."""
    joined = entries_for_date(entries, foods, day, tz)
    consumed = sum(entry.total_calories for entry in joined)
    goal = active_goal(goals)
    target = goal.daily_calories if goal is not None else DEFAULT_DAILY_CALORIES
    percentage = round_half_away(consumed / target * 100, 0) if target > 0 else 0
    return CalorieProgress(
        consumed=consumed,
        goal=target,
        remaining=max(0, target - consumed),
        percentage=int(percentage),
    )


def trailing_average(
    entries: Iterable[CalorieEntry],
    foods: Iterable[FoodItem],
    days: int,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> float:
    """Calories over the trailing window divided by the window length.

    The divisor is fixed, so days without entries pull the average down.
    """
    current = ensure_aware(now, tz) if now is not None else datetime.now(tz=tz)
    joined = range_summary(entries, foods, current - timedelta(days=days), current)
    return sum(entry.total_calories for entry in joined) / days


def weekly_average(
    entries: Iterable[CalorieEntry],
    foods: Iterable[FoodItem],
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> float:
    return trailing_average(entries, foods, WEEK_DAYS, now, tz)


def monthly_average(
    entries: Iterable[CalorieEntry],
    foods: Iterable[FoodItem],
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> float:
    return trailing_average(entries, foods, MONTH_DAYS, now, tz)
