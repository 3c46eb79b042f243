"""Filtering, sorting and ranking over joined calorie entries."""

import calendar
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, time, timedelta, tzinfo

from daily_tracker.domain.calorie import (
    MEAL_ORDER,
    AdvancedSearchCriteria,
    CalorieFilter,
    CalorieSort,
    EntryWithFood,
    FoodCategory,
    FoodConsumption,
    FoodItem,
    MealType,
    SortDirection,
    SortField,
    ensure_aware,
)
from daily_tracker.services.nutrition import sanitize_search_query

SUGGESTION_WINDOW_DAYS = 30
HIGH_CALORIE_THRESHOLD = 300
DAY_END = time(23, 59, 59, 999000)

_SORT_KEYS: dict[SortField, Callable[[EntryWithFood], float | int | str]] = {
    SortField.CONSUMED_AT: lambda entry: entry.consumed_at.timestamp(),
    SortField.CALORIES: lambda entry: entry.total_calories,
    SortField.NAME: lambda entry: entry.food.name.lower(),
    SortField.MEAL_TYPE: lambda entry: MEAL_ORDER[entry.meal_type],
}


def end_of_day(moment: datetime) -> datetime:
    """Return 23:59:59.999 on the same calendar day."""
    return moment.replace(hour=23, minute=59, second=59, microsecond=999000)


def end_of_date_in(moment: datetime, tz: tzinfo) -> datetime:
    """Return 23:59:59.999 in `tz` on the calendar date `moment` names."""
    return datetime.combine(moment.date(), DAY_END, tzinfo=tz)


def local_now(now: datetime | None, tz: tzinfo) -> datetime:
    """`now` as wall-clock time in `tz`; naive values are read in `tz`."""
    if now is None:
        return datetime.now(tz=tz)
    return ensure_aware(now, tz).astimezone(tz)


def start_of_day(moment: datetime) -> datetime:
    """Return midnight on the same calendar day."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def filter_entries(
    entries: Iterable[EntryWithFood], criteria: CalorieFilter, tz: tzinfo = UTC
) -> list[EntryWithFood]:
    """Apply every present criterion; absent criteria do not constrain.

    `date_to` covers its whole calendar date in `tz`.
    """
    result = list(entries)
    if criteria.date_from is not None:
        lower = criteria.date_from
        result = [entry for entry in result if entry.consumed_at >= lower]
    if criteria.date_to is not None:
        upper = end_of_date_in(criteria.date_to, tz)
        result = [entry for entry in result if entry.consumed_at <= upper]
    if criteria.meal_type is not None:
        result = [entry for entry in result if entry.meal_type == criteria.meal_type]
    if criteria.category is not None:
        result = [entry for entry in result if entry.food.category == criteria.category]
    if criteria.search:
        term = sanitize_search_query(criteria.search)
        result = [entry for entry in result if _matches_entry(entry, term)]
    return result


def sort_entries(
    entries: Iterable[EntryWithFood], sort: CalorieSort
) -> list[EntryWithFood]:
    """Stable sort by a single field."""
    key = _SORT_KEYS[sort.field]
    return sorted(entries, key=key, reverse=sort.direction == SortDirection.DESC)


def sort_by_date_time(entries: Iterable[EntryWithFood]) -> list[EntryWithFood]:
    """Most recent first, breakfast before lunch on equal timestamps."""
    return sorted(
        entries,
        key=lambda entry: (-entry.consumed_at.timestamp(), MEAL_ORDER[entry.meal_type]),
    )


def filter_and_sort(
    entries: Iterable[EntryWithFood],
    criteria: CalorieFilter | None = None,
    sort: CalorieSort | None = None,
    tz: tzinfo = UTC,
) -> list[EntryWithFood]:
    """Filter then sort, falling back to the default order."""
    result = list(entries)
    if criteria is not None:
        result = filter_entries(result, criteria, tz)
    if sort is not None:
        return sort_entries(result, sort)
    return sort_by_date_time(result)


def search_foods(foods: Iterable[FoodItem], query: str) -> list[FoodItem]:
    """Match foods by name, brand or category; an empty query returns all."""
    items = list(foods)
    if not query.strip():
        return items
    term = sanitize_search_query(query)
    return [food for food in items if _matches_food(food, term)]


def foods_by_category(
    foods: Iterable[FoodItem], category: FoodCategory
) -> list[FoodItem]:
    return [food for food in foods if food.category == category]


def entries_by_meal_type(
    entries: Iterable[EntryWithFood], meal_type: MealType
) -> list[EntryWithFood]:
    return [entry for entry in entries if entry.meal_type == meal_type]


def entries_by_category(
    entries: Iterable[EntryWithFood], category: FoodCategory
) -> list[EntryWithFood]:
    return [entry for entry in entries if entry.food.category == category]


def high_calorie_entries(
    entries: Iterable[EntryWithFood], threshold: float = HIGH_CALORIE_THRESHOLD
) -> list[EntryWithFood]:
    return [entry for entry in entries if entry.total_calories > threshold]


def recent_entries(
    entries: Iterable[EntryWithFood],
    days: int = 7,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> list[EntryWithFood]:
    """Entries since midnight `days` days ago."""
    current = local_now(now, tz)
    cutoff = start_of_day(current - timedelta(days=days))
    return [entry for entry in entries if entry.consumed_at >= cutoff]


def current_week_entries(
    entries: Iterable[EntryWithFood], now: datetime | None = None, tz: tzinfo = UTC
) -> list[EntryWithFood]:
    """Entries in the Sunday-to-Saturday week containing `now`."""
    current = local_now(now, tz)
    days_since_sunday = (current.weekday() + 1) % 7
    start = start_of_day(current - timedelta(days=days_since_sunday))
    end = end_of_day(start + timedelta(days=6))
    return [entry for entry in entries if start <= entry.consumed_at <= end]


def current_month_entries(
    entries: Iterable[EntryWithFood], now: datetime | None = None, tz: tzinfo = UTC
) -> list[EntryWithFood]:
    """Entries in the calendar month containing `now`."""
    current = local_now(now, tz)
    start = start_of_day(current.replace(day=1))
    last_day = calendar.monthrange(current.year, current.month)[1]
    end = end_of_day(current.replace(day=last_day))
    return [entry for entry in entries if start <= entry.consumed_at <= end]


def most_consumed_foods(
    entries: Iterable[EntryWithFood], limit: int = 10
) -> list[FoodConsumption]:
    """Foods ranked by how many times they were logged.

    Ties keep the order in which foods were first encountered.
    """
    counts: dict[str, tuple[FoodItem, int, float]] = {}
    for entry in entries:
        food, count, calories = counts.get(entry.food_id, (entry.food, 0, 0.0))
        counts[entry.food_id] = (food, count + 1, calories + entry.total_calories)
    ranked = sorted(counts.values(), key=lambda item: item[1], reverse=True)
    return [
        FoodConsumption(food=food, count=count, total_calories=calories)
        for food, count, calories in ranked[:limit]
    ]


def food_suggestions(
    entries: Iterable[EntryWithFood],
    foods: Iterable[FoodItem],
    limit: int = 5,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> list[FoodItem]:
    """Most frequently logged foods over the last 30 days."""
    frequency: dict[str, int] = {}
    for entry in recent_entries(entries, days=SUGGESTION_WINDOW_DAYS, now=now, tz=tz):
        frequency[entry.food_id] = frequency.get(entry.food_id, 0) + 1
    ranked = sorted(frequency.items(), key=lambda item: item[1], reverse=True)
    foods_by_id = {food.id: food for food in foods}
    suggestions: list[FoodItem] = []
    for food_id, _count in ranked:
        food = foods_by_id.get(food_id)
        if food is not None:
            suggestions.append(food)
    return suggestions[:limit]


def advanced_search(
    entries: Iterable[EntryWithFood], criteria: AdvancedSearchCriteria, tz: tzinfo = UTC
) -> list[EntryWithFood]:
    """Multi-criteria search including calorie bounds."""
    result = list(entries)
    if criteria.query:
        term = sanitize_search_query(criteria.query)
        result = [
            entry
            for entry in result
            if term in entry.food.name.lower()
            or (entry.food.brand is not None and term in entry.food.brand.lower())
            or (entry.notes is not None and term in entry.notes.lower())
        ]
    if criteria.category is not None:
        result = entries_by_category(result, criteria.category)
    if criteria.meal_type is not None:
        result = entries_by_meal_type(result, criteria.meal_type)
    if criteria.date_from is not None:
        lower = criteria.date_from
        result = [entry for entry in result if entry.consumed_at >= lower]
    if criteria.date_to is not None:
        upper = end_of_date_in(criteria.date_to, tz)
        result = [entry for entry in result if entry.consumed_at <= upper]
    if criteria.min_calories is not None:
        minimum = criteria.min_calories
        result = [entry for entry in result if entry.total_calories >= minimum]
    if criteria.max_calories is not None:
        maximum = criteria.max_calories
        result = [entry for entry in result if entry.total_calories <= maximum]
    return sort_by_date_time(result)


def _matches_food(food: FoodItem, term: str) -> bool:
    return (
        term in food.name.lower()
        or (food.brand is not None and term in food.brand.lower())
        or term in food.category.value
    )


def _matches_entry(entry: EntryWithFood, term: str) -> bool:
    return _matches_food(entry.food, term) or (
        entry.notes is not None and term in entry.notes.lower()
    )
