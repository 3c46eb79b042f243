"""Tests for nutrition arithmetic."""

from datetime import UTC, datetime

import pytest

from daily_tracker.domain.calorie import (
    ActivityLevel,
    GoalType,
    MealType,
    NutritionVector,
)
from daily_tracker.services.nutrition import (
    calculate_bmr,
    calculate_calorie_goal,
    calculate_progress,
    calculate_tdee,
    meal_type_from_time,
    round_half_away,
    sanitize_search_query,
    scale,
    sum_nutrition,
)


def test_round_half_away_from_zero() -> None:
    assert round_half_away(2.5, 0) == 3
    assert round_half_away(-2.5, 0) == -3
    assert round_half_away(0.125) == 0.13


def test_scale_multiplies_defined_fields_only() -> None:
    vector = NutritionVector(calories=95, protein=0.5, fiber=4)

    result = scale(vector, 1.5)

    assert result.calories == 142.5
    assert result.protein == 0.75
    assert result.fiber == 6
    assert result.carbs is None
    assert result.sodium is None


@pytest.mark.parametrize("quantity", [0.1, 0.5, 1, 1.5, 3, 7.25])
def test_scale_inverse_recovers_calories(quantity: float) -> None:
    vector = NutritionVector(calories=161)

    restored = scale(scale(vector, quantity), 1 / quantity)

    assert abs(restored.calories - vector.calories) <= 0.01


def test_sum_treats_missing_nutrient_as_unknown() -> None:
    first = NutritionVector(calories=100, protein=5)
    second = NutritionVector(calories=50)

    total = sum_nutrition([first, second])

    assert total.calories == 150
    assert total.protein == 5
    assert total.fat is None


def test_sum_keeps_zero_values() -> None:
    total = sum_nutrition(
        [NutritionVector(calories=0, sodium=0), NutritionVector(calories=10, sodium=3)]
    )

    assert total.calories == 10
    assert total.sodium == 3


def test_sum_of_nothing_is_zero_calories() -> None:
    total = sum_nutrition([])

    assert total.calories == 0
    assert total.protein is None


def test_energy_helpers() -> None:
    bmr = calculate_bmr(weight_kg=70, height_cm=175, age=30, sex="male")

    assert bmr == 1648.75
    assert calculate_bmr(60, 165, 30, "female") == 1320.25
    assert calculate_tdee(bmr, ActivityLevel.MODERATELY_ACTIVE) == 2556
    assert calculate_calorie_goal(2000, GoalType.LOSE_WEIGHT) == 1500
    assert calculate_calorie_goal(2000, GoalType.GAIN_WEIGHT) == 2500


def test_calculate_progress_is_uncapped() -> None:
    assert calculate_progress(2200, 2000) == 110
    assert calculate_progress(500, 0) == 0


@pytest.mark.parametrize(
    ("hour", "expected"),
    [
        (7, MealType.BREAKFAST),
        (12, MealType.LUNCH),
        (18, MealType.DINNER),
        (23, MealType.SNACK),
        (3, MealType.SNACK),
    ],
)
def test_meal_type_from_time(hour: int, expected: MealType) -> None:
    moment = datetime(2024, 3, 15, hour, 0, tzinfo=UTC)

    assert meal_type_from_time(moment) == expected


def test_sanitize_search_query() -> None:
    assert sanitize_search_query("  Greek Yogurt!? ") == "greek yogurt"
    assert sanitize_search_query("whole-wheat") == "whole-wheat"
