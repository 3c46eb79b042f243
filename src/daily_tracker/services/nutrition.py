"""Nutrition arithmetic and energy helpers."""

import math
import re
from collections.abc import Iterable
from datetime import datetime

from daily_tracker.domain.calorie import (
    OPTIONAL_NUTRIENTS,
    ActivityLevel,
    GoalType,
    MealType,
    NutritionVector,
)

_ACTIVITY_MULTIPLIERS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHTLY_ACTIVE: 1.375,
    ActivityLevel.MODERATELY_ACTIVE: 1.55,
    ActivityLevel.VERY_ACTIVE: 1.725,
    ActivityLevel.EXTREMELY_ACTIVE: 1.9,
}

# roughly one pound per week
_GOAL_ADJUSTMENTS: dict[GoalType, int] = {
    GoalType.LOSE_WEIGHT: -500,
    GoalType.MAINTAIN_WEIGHT: 0,
    GoalType.GAIN_WEIGHT: 500,
}

_SEARCH_STRIP = re.compile(r"[^\w\s-]")


def round_half_away(value: float, decimals: int = 2) -> float:
    """Round to `decimals` places with halves rounded away from zero."""
    factor = 10**decimals
    scaled = value * factor
    rounded = math.floor(abs(scaled) + 0.5)
    return math.copysign(rounded, scaled) / factor


def scale(vector: NutritionVector, quantity: float) -> NutritionVector:
    """Multiply every defined nutrient by a serving quantity."""
    values: dict[str, float | None] = {
        "calories": round_half_away(vector.calories * quantity),
    }
    for name in OPTIONAL_NUTRIENTS:
        amount = getattr(vector, name)
        values[name] = None if amount is None else round_half_away(amount * quantity)
    return NutritionVector(**values)


def sum_nutrition(vectors: Iterable[NutritionVector]) -> NutritionVector:
    """Sum vectors, treating a missing nutrient as unknown rather than zero.

    Calories are always summed. An optional nutrient defined on only one
    side of a pairwise merge is carried over unchanged.
    """
    total = NutritionVector(calories=0)
    for vector in vectors:
        values: dict[str, float | None] = {
            "calories": round_half_away(total.calories + vector.calories),
        }
        for name in OPTIONAL_NUTRIENTS:
            left = getattr(total, name)
            right = getattr(vector, name)
            if left is not None and right is not None:
                values[name] = round_half_away(left + right)
            else:
                values[name] = left if left is not None else right
        total = NutritionVector(**values)
    return total


def calculate_bmr(weight_kg: float, height_cm: float, age: int, sex: str) -> float:
    """Basal metabolic rate via the Mifflin-St Jeor equation."""
    bmr = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return bmr + 5 if sex == "male" else bmr - 161


def calculate_tdee(bmr: float, activity_level: ActivityLevel) -> int:
    """Total daily energy expenditure for an activity level."""
    return int(round_half_away(bmr * _ACTIVITY_MULTIPLIERS[activity_level], 0))


def calculate_calorie_goal(tdee: float, goal: GoalType) -> int:
    """Recommended daily calories for a weight goal."""
    return int(round_half_away(tdee + _GOAL_ADJUSTMENTS[goal], 0))


def calculate_progress(current: float, goal: float) -> int:
    """Whole-number percentage of a goal, uncapped."""
    if goal == 0:
        return 0
    return int(round_half_away(current / goal * 100, 0))


def meal_type_from_time(moment: datetime) -> MealType:
    """Guess the meal slot from the hour of day."""
    hour = moment.hour
    if 6 <= hour < 11:  # noqa: PLR2004
        return MealType.BREAKFAST
    if 11 <= hour < 16:  # noqa: PLR2004
        return MealType.LUNCH
    if 16 <= hour < 21:  # noqa: PLR2004
        return MealType.DINNER
    return MealType.SNACK


def sanitize_search_query(query: str) -> str:
    """Lowercase and strip characters other than word, space and hyphen."""
    return _SEARCH_STRIP.sub("", query.strip().lower())
