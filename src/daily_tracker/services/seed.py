"""Sample data used when the food catalog is empty."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta, tzinfo
from typing import Protocol
from uuid import uuid4

from daily_tracker.domain.calorie import (
    ActivityLevel,
    CalorieEntry,
    CalorieGoal,
    FoodCategory,
    FoodItem,
    GoalType,
    MealType,
    NutritionVector,
    ServingUnit,
)

# name, category, serving size, unit,
# (calories, protein, carbs, fat, fiber, sugar, sodium)
_CATALOG: list[tuple[str, FoodCategory, str, ServingUnit, tuple[float, ...]]] = [
    ("Apple", FoodCategory.FRUITS, "1", ServingUnit.PIECE, (95, 0.5, 25, 0.3, 4, 19, 2)),
    ("Banana", FoodCategory.FRUITS, "1", ServingUnit.PIECE, (105, 1.3, 27, 0.4, 3, 21, 1)),
    ("Orange", FoodCategory.FRUITS, "1", ServingUnit.PIECE, (62, 1.2, 15, 0.2, 3, 12, 0)),
    ("Broccoli", FoodCategory.VEGETABLES, "100", ServingUnit.G, (34, 2.8, 7, 0.4, 2.6, 1.5, 33)),
    ("Carrots", FoodCategory.VEGETABLES, "100", ServingUnit.G, (41, 0.9, 10, 0.2, 2.8, 4.7, 69)),
    ("Brown Rice", FoodCategory.GRAINS, "100", ServingUnit.G, (111, 2.6, 23, 0.9, 1.8, 0.4, 5)),
    ("Whole Wheat Bread", FoodCategory.GRAINS, "1", ServingUnit.SLICE, (81, 3.6, 14, 1.1, 1.9, 1.4, 144)),
    ("Chicken Breast", FoodCategory.PROTEINS, "100", ServingUnit.G, (165, 31, 0, 3.6, 0, 0, 74)),
    ("Eggs", FoodCategory.PROTEINS, "1", ServingUnit.PIECE, (70, 6, 0.6, 5, 0, 0.6, 70)),
    ("Greek Yogurt", FoodCategory.DAIRY, "100", ServingUnit.G, (59, 10, 3.6, 0.4, 0, 3.2, 36)),
    ("Milk (2%)", FoodCategory.DAIRY, "240", ServingUnit.ML, (122, 8, 12, 5, 0, 12, 115)),
    ("Almonds", FoodCategory.SNACKS, "28", ServingUnit.G, (161, 6, 6, 14, 3.5, 1.2, 0)),
    ("Water", FoodCategory.BEVERAGES, "240", ServingUnit.ML, (0, 0, 0, 0, 0, 0, 0)),
    ("Green Tea", FoodCategory.BEVERAGES, "240", ServingUnit.ML, (2, 0, 0, 0, 0, 0, 2)),
]

# food name, quantity, meal, days ago, (hour, minute), notes
_SAMPLE_ENTRIES: list[tuple[str, float, MealType, int, tuple[int, int], str | None]] = [
    ("Eggs", 2, MealType.BREAKFAST, 0, (8, 0), "Scrambled with vegetables"),
    ("Whole Wheat Bread", 2, MealType.BREAKFAST, 0, (8, 0), None),
    ("Chicken Breast", 1.5, MealType.LUNCH, 0, (12, 30), None),
    ("Brown Rice", 1, MealType.LUNCH, 0, (12, 30), None),
    ("Broccoli", 1, MealType.LUNCH, 0, (12, 30), None),
    ("Greek Yogurt", 1, MealType.BREAKFAST, 1, (8, 30), None),
    ("Banana", 1, MealType.BREAKFAST, 1, (8, 30), None),
    ("Almonds", 1, MealType.SNACK, 1, (10, 0), None),
]

_RECENT_SNACK_HOURS_AGO = 2


@dataclass(frozen=True)
class SeedData:
    """Sample entities for a fresh install."""

    food_items: list[FoodItem] = field(default_factory=list)
    calorie_entries: list[CalorieEntry] = field(default_factory=list)
    calorie_goals: list[CalorieGoal] = field(default_factory=list)


class SeedDataProvider(Protocol):
    """Source of well-formed sample entities."""

    def initialize_dummy_data(self) -> SeedData:
        """Return a fresh catalog of sample entities."""


@dataclass
class DefaultSeedDataProvider(SeedDataProvider):
    """Fixed catalog of common foods, two days of entries and one goal."""

    tz: tzinfo = UTC

    def initialize_dummy_data(self) -> SeedData:
        now = datetime.now(tz=self.tz)
        foods = create_dummy_food_items(now)
        return SeedData(
            food_items=foods,
            calorie_entries=create_dummy_calorie_entries(foods, now),
            calorie_goals=create_dummy_calorie_goals(now),
        )


def create_dummy_food_items(now: datetime) -> list[FoodItem]:
    foods = []
    for name, category, serving_size, unit, values in _CATALOG:
        calories, protein, carbs, fat, fiber, sugar, sodium = values
        foods.append(
            FoodItem(
                id=str(uuid4()),
                name=name,
                category=category,
                serving_size=serving_size,
                serving_unit=unit,
                nutrition=NutritionVector(
                    calories=calories,
                    protein=protein,
                    carbs=carbs,
                    fat=fat,
                    fiber=fiber,
                    sugar=sugar,
                    sodium=sodium,
                ),
                is_custom=False,
                created_at=now,
                updated_at=now,
            )
        )
    return foods


def create_dummy_calorie_entries(
    foods: list[FoodItem], now: datetime
) -> list[CalorieEntry]:
    ids_by_name = {food.name: food.id for food in foods}
    entries = []
    for name, quantity, meal_type, days_ago, (hour, minute), notes in _SAMPLE_ENTRIES:
        day = now - timedelta(days=days_ago)
        created = day if days_ago else now
        entries.append(
            CalorieEntry(
                id=str(uuid4()),
                food_id=ids_by_name[name],
                quantity=quantity,
                meal_type=meal_type,
                consumed_at=day.replace(hour=hour, minute=minute, second=0, microsecond=0),
                notes=notes,
                created_at=created,
                updated_at=created,
            )
        )
    entries.append(
        CalorieEntry(
            id=str(uuid4()),
            food_id=ids_by_name["Apple"],
            quantity=1,
            meal_type=MealType.SNACK,
            consumed_at=now - timedelta(hours=_RECENT_SNACK_HOURS_AGO),
            created_at=now,
            updated_at=now,
        )
    )
    return entries


def create_dummy_calorie_goals(now: datetime) -> list[CalorieGoal]:
    return [
        CalorieGoal(
            id=str(uuid4()),
            daily_calories=2000,
            protein=150,
            carbs=250,
            fat=67,
            activity_level=ActivityLevel.MODERATELY_ACTIVE,
            goal=GoalType.MAINTAIN_WEIGHT,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
    ]
