"""Domain models for calorie tracking."""

from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def ensure_aware(value: datetime, tz: tzinfo = UTC) -> datetime:
    """Interpret naive timestamps in `tz`, UTC unless told otherwise."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def _as_utc_if_naive(value: datetime) -> datetime:
    return ensure_aware(value)


Timestamp = Annotated[datetime, AfterValidator(_as_utc_if_naive)]
NonNegative = Annotated[float, Field(ge=0)]


class MealType(str, Enum):
    """Meal slot of a calorie entry."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


MEAL_ORDER: dict[MealType, int] = {
    MealType.BREAKFAST: 0,
    MealType.LUNCH: 1,
    MealType.DINNER: 2,
    MealType.SNACK: 3,
}


class FoodCategory(str, Enum):
    """Food catalog category."""

    FRUITS = "fruits"
    VEGETABLES = "vegetables"
    GRAINS = "grains"
    PROTEINS = "proteins"
    DAIRY = "dairy"
    SNACKS = "snacks"
    BEVERAGES = "beverages"
    OTHER = "other"


class ServingUnit(str, Enum):
    """Unit of a food serving."""

    G = "g"
    ML = "ml"
    CUP = "cup"
    PIECE = "piece"
    SLICE = "slice"
    TBSP = "tbsp"
    TSP = "tsp"
    OZ = "oz"


class ActivityLevel(str, Enum):
    """Activity level used for energy expenditure."""

    SEDENTARY = "sedentary"
    LIGHTLY_ACTIVE = "lightly-active"
    MODERATELY_ACTIVE = "moderately-active"
    VERY_ACTIVE = "very-active"
    EXTREMELY_ACTIVE = "extremely-active"


class GoalType(str, Enum):
    """Weight goal direction."""

    LOSE_WEIGHT = "lose-weight"
    MAINTAIN_WEIGHT = "maintain-weight"
    GAIN_WEIGHT = "gain-weight"


class SortField(str, Enum):
    """Sortable fields of joined entries."""

    CONSUMED_AT = "consumedAt"
    CALORIES = "calories"
    NAME = "name"
    MEAL_TYPE = "mealType"


class SortDirection(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class TrackerModel(BaseModel):
    """Base for persisted models with camelCase wire names."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class NutritionVector(TrackerModel):
    """Per-serving or per-entry nutrition values."""

    calories: NonNegative
    protein: NonNegative | None = None
    carbs: NonNegative | None = None
    fat: NonNegative | None = None
    fiber: NonNegative | None = None
    sugar: NonNegative | None = None
    sodium: NonNegative | None = None


OPTIONAL_NUTRIENTS = ("protein", "carbs", "fat", "fiber", "sugar", "sodium")


class FoodItem(TrackerModel):
    """Food in the catalog."""

    id: str
    name: str = Field(min_length=1)
    brand: str | None = None
    category: FoodCategory
    serving_size: str = Field(min_length=1)
    serving_unit: ServingUnit
    nutrition: NutritionVector
    barcode: str | None = None
    is_custom: bool = False
    created_at: Timestamp
    updated_at: Timestamp


class CalorieEntry(TrackerModel):
    """Single consumption event of a food."""

    id: str
    food_id: str = Field(min_length=1)
    user_id: str | None = None
    quantity: float = Field(ge=0.1)
    meal_type: MealType
    consumed_at: Timestamp
    notes: str | None = None
    created_at: Timestamp
    updated_at: Timestamp


class CalorieGoal(TrackerModel):
    """Daily calorie and macro target."""

    id: str
    user_id: str | None = None
    daily_calories: float = Field(ge=800, le=5000)
    protein: NonNegative | None = None
    carbs: NonNegative | None = None
    fat: NonNegative | None = None
    activity_level: ActivityLevel
    goal: GoalType
    is_active: bool = True
    created_at: Timestamp
    updated_at: Timestamp


class CreateFoodItemInput(TrackerModel):
    """Payload for creating a food."""

    name: str = Field(min_length=1)
    brand: str | None = None
    category: FoodCategory
    serving_size: str = Field(min_length=1)
    serving_unit: ServingUnit
    nutrition: NutritionVector
    barcode: str | None = None
    is_custom: bool = False


class UpdateFoodItemInput(TrackerModel):
    """Partial payload for updating a food."""

    name: str | None = Field(default=None, min_length=1)
    brand: str | None = None
    category: FoodCategory | None = None
    serving_size: str | None = Field(default=None, min_length=1)
    serving_unit: ServingUnit | None = None
    nutrition: NutritionVector | None = None
    barcode: str | None = None
    is_custom: bool | None = None


class CreateCalorieEntryInput(TrackerModel):
    """Payload for creating an entry."""

    food_id: str = Field(min_length=1)
    user_id: str | None = None
    quantity: float = Field(ge=0.1)
    meal_type: MealType
    consumed_at: Timestamp
    notes: str | None = None


class UpdateCalorieEntryInput(TrackerModel):
    """Partial payload for updating an entry."""

    food_id: str | None = Field(default=None, min_length=1)
    user_id: str | None = None
    quantity: float | None = Field(default=None, ge=0.1)
    meal_type: MealType | None = None
    consumed_at: Timestamp | None = None
    notes: str | None = None


class CreateCalorieGoalInput(TrackerModel):
    """Payload for creating a goal."""

    user_id: str | None = None
    daily_calories: float = Field(ge=800, le=5000)
    protein: NonNegative | None = None
    carbs: NonNegative | None = None
    fat: NonNegative | None = None
    activity_level: ActivityLevel
    goal: GoalType
    is_active: bool = True


class UpdateCalorieGoalInput(TrackerModel):
    """Partial payload for updating a goal."""

    user_id: str | None = None
    daily_calories: float | None = Field(default=None, ge=800, le=5000)
    protein: NonNegative | None = None
    carbs: NonNegative | None = None
    fat: NonNegative | None = None
    activity_level: ActivityLevel | None = None
    goal: GoalType | None = None
    is_active: bool | None = None


class CalorieFilter(TrackerModel):
    """Optional criteria for filtering joined entries."""

    date_from: Timestamp | None = None
    date_to: Timestamp | None = None
    meal_type: MealType | None = None
    category: FoodCategory | None = None
    search: str | None = None


class AdvancedSearchCriteria(TrackerModel):
    """Criteria for the advanced entry search."""

    query: str | None = None
    category: FoodCategory | None = None
    meal_type: MealType | None = None
    date_from: Timestamp | None = None
    date_to: Timestamp | None = None
    min_calories: float | None = None
    max_calories: float | None = None


class CalorieSort(TrackerModel):
    """Sort specification for joined entries."""

    field: SortField
    direction: SortDirection = SortDirection.DESC


@dataclass(frozen=True)
class EntryWithFood:
    """Entry joined with its food and computed totals."""

    entry: CalorieEntry
    food: FoodItem
    total_calories: float
    total_nutrition: NutritionVector

    @property
    def id(self) -> str:
        return self.entry.id

    @property
    def food_id(self) -> str:
        return self.entry.food_id

    @property
    def quantity(self) -> float:
        return self.entry.quantity

    @property
    def meal_type(self) -> MealType:
        return self.entry.meal_type

    @property
    def consumed_at(self) -> datetime:
        return self.entry.consumed_at

    @property
    def notes(self) -> str | None:
        return self.entry.notes


@dataclass(frozen=True)
class MealBreakdown:
    """Calories per meal slot."""

    breakfast: float = 0
    lunch: float = 0
    dinner: float = 0
    snack: float = 0


@dataclass(frozen=True)
class DailySummary:
    """Aggregated view of a single day."""

    date: str
    total_calories: float
    total_nutrition: NutritionVector
    entries: list[EntryWithFood]
    meal_breakdown: MealBreakdown


@dataclass(frozen=True)
class CalorieProgress:
    """Progress against the active daily goal."""

    consumed: float
    goal: float
    remaining: float
    percentage: int


@dataclass(frozen=True)
class FoodConsumption:
    """How often a food was logged and its calorie total."""

    food: FoodItem
    count: int
    total_calories: float
