"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from daily_tracker.adapters.memory_byte_store import InMemoryByteStore
from daily_tracker.config import Settings
from daily_tracker.containers import AppContainer, build_container
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
from daily_tracker.services.calories import CalorieRepository
from daily_tracker.services.history import HistoryStack
from daily_tracker.services.seed import SeedData, SeedDataProvider
from daily_tracker.services.storage import (
    ByteStore,
    CalorieStorage,
    CollectionStorage,
    TodoStorage,
)
from daily_tracker.services.todos import TodoRepository

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


@dataclass
class FailingByteStore(ByteStore):
    """Byte store whose writes can be switched to fail."""

    values: dict[str, bytes] = field(default_factory=dict)
    fail_writes: bool = False
    writes: list[str] = field(default_factory=list)

    def get(self, key: str) -> bytes | None:
        return self.values.get(key)

    def set(self, key: str, value: bytes) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        self.writes.append(key)
        self.values[key] = value

    def delete(self, key: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        self.values.pop(key, None)

    def size(self, key: str) -> int:
        return len(self.values.get(key, b""))


@dataclass
class StaticSeedDataProvider(SeedDataProvider):
    """Seed provider returning a fixed data set."""

    data: SeedData = field(default_factory=SeedData)
    calls: int = 0

    def initialize_dummy_data(self) -> SeedData:
        self.calls += 1
        return self.data


def make_food(  # noqa: PLR0913
    food_id: str = "food-1",
    name: str = "Apple",
    calories: float = 95,
    category: FoodCategory = FoodCategory.FRUITS,
    brand: str | None = None,
    **nutrients: float,
) -> FoodItem:
    return FoodItem(
        id=food_id,
        name=name,
        brand=brand,
        category=category,
        serving_size="1",
        serving_unit=ServingUnit.PIECE,
        nutrition=NutritionVector(calories=calories, **nutrients),
        created_at=NOW,
        updated_at=NOW,
    )


def make_entry(  # noqa: PLR0913
    entry_id: str = "entry-1",
    food_id: str = "food-1",
    quantity: float = 1,
    meal_type: MealType = MealType.SNACK,
    consumed_at: datetime = NOW,
    notes: str | None = None,
) -> CalorieEntry:
    return CalorieEntry(
        id=entry_id,
        food_id=food_id,
        quantity=quantity,
        meal_type=meal_type,
        consumed_at=consumed_at,
        notes=notes,
        created_at=consumed_at,
        updated_at=consumed_at,
    )


def make_goal(
    goal_id: str = "goal-1", daily_calories: float = 2000, is_active: bool = True
) -> CalorieGoal:
    return CalorieGoal(
        id=goal_id,
        daily_calories=daily_calories,
        activity_level=ActivityLevel.MODERATELY_ACTIVE,
        goal=GoalType.MAINTAIN_WEIGHT,
        is_active=is_active,
        created_at=NOW,
        updated_at=NOW,
    )


def build_calorie_repository(
    store: ByteStore | None = None, seed: SeedData | None = None
) -> CalorieRepository:
    storage = CalorieStorage(CollectionStorage(store or InMemoryByteStore()))
    provider = StaticSeedDataProvider(seed) if seed is not None else None
    return CalorieRepository(storage=storage, seed_provider=provider)


def build_todo_repository(
    store: ByteStore | None = None, max_history_size: int = 10
) -> TodoRepository:
    return TodoRepository(
        storage=TodoStorage(CollectionStorage(store or InMemoryByteStore())),
        history=HistoryStack(max_size=max_history_size),
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        environment="test",
        data_dir=tmp_path / "data",
        storage_backend="memory",
        seed_dummy_data=False,
        log_level="WARNING",
    )


@pytest.fixture
def calorie_repository() -> CalorieRepository:
    repository = build_calorie_repository()
    repository.initialize()
    return repository


@pytest.fixture
def todo_repository() -> TodoRepository:
    repository = build_todo_repository()
    repository.initialize()
    return repository


@pytest.fixture
def container(settings) -> AppContainer:
    app_container = build_container(settings)
    app_container.initialize()
    return app_container
