"""Join of calorie entries with their foods."""

import logging
from collections.abc import Iterable

from daily_tracker.domain.calorie import CalorieEntry, EntryWithFood, FoodItem
from daily_tracker.services.nutrition import scale

_logger = logging.getLogger(__name__)


def join_entries(
    entries: Iterable[CalorieEntry], foods: Iterable[FoodItem]
) -> list[EntryWithFood]:
    """Attach each entry's food and computed totals.

    Entries whose food cannot be resolved are dropped with a warning so a
    dangling reference never breaks a read.
    """
    foods_by_id = {food.id: food for food in foods}
    joined: list[EntryWithFood] = []
    for entry in entries:
        food = foods_by_id.get(entry.food_id)
        if food is None:
            _logger.warning(
                "Food item not found for entry: entry_id=%s food_id=%s",
                entry.id,
                entry.food_id,
            )
            continue
        joined.append(join_entry(entry, food))
    return joined


def join_entry(entry: CalorieEntry, food: FoodItem) -> EntryWithFood:
    """Join a single entry with a resolved food."""
    total_nutrition = scale(food.nutrition, entry.quantity)
    return EntryWithFood(
        entry=entry,
        food=food,
        total_calories=total_nutrition.calories,
        total_nutrition=total_nutrition,
    )
