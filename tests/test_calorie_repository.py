"""Tests for the calorie repository."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from daily_tracker.errors import (
    NotFoundError,
    ReferentialIntegrityError,
    StorageError,
    ValidationError,
)
from daily_tracker.services.calories import RepositoryState
from daily_tracker.services.seed import SeedData
from daily_tracker.services.storage import FOODS_NAMESPACE
from tests.conftest import (
    NOW,
    FailingByteStore,
    StaticSeedDataProvider,
    build_calorie_repository,
    make_entry,
    make_food,
    make_goal,
)

FOOD_PAYLOAD = {
    "name": "Oatmeal",
    "category": "grains",
    "servingSize": "40",
    "servingUnit": "g",
    "nutrition": {"calories": 150, "protein": 5},
}

GOAL_PAYLOAD = {
    "dailyCalories": 1800,
    "activityLevel": "lightly-active",
    "goal": "lose-weight",
}


def test_initialize_seeds_empty_catalog_once() -> None:
    seed = SeedData(food_items=[make_food()], calorie_goals=[make_goal()])
    repository = build_calorie_repository(seed=seed)
    provider = repository.seed_provider
    assert isinstance(provider, StaticSeedDataProvider)

    repository.initialize()
    repository.initialize()

    assert repository.state is RepositoryState.READY
    assert provider.calls == 1
    assert [food.id for food in repository.food_items] == ["food-1"]
    assert repository.storage.load_calorie_goals()[0].id == "goal-1"


def test_initialize_loads_existing_data_without_seeding() -> None:
    store = FailingByteStore()
    build_calorie_repository(store).storage.save_food_items([make_food("stored")])
    repository = build_calorie_repository(store, seed=SeedData(food_items=[make_food()]))

    repository.initialize()

    assert [food.id for food in repository.food_items] == ["stored"]


def test_create_food_item_assigns_id_and_timestamps(calorie_repository) -> None:
    food = calorie_repository.create_food_item(FOOD_PAYLOAD)

    assert food.id
    assert food.created_at == food.updated_at
    assert food.is_custom is False
    assert calorie_repository.get_food_item(food.id) == food
    assert [item.model_dump() for item in calorie_repository.storage.load_food_items()] == [
        food.model_dump()
    ]


def test_invalid_food_lists_every_violation(calorie_repository) -> None:
    payload = {**FOOD_PAYLOAD, "name": "", "nutrition": {"calories": -1}}

    with pytest.raises(ValidationError) as excinfo:
        calorie_repository.create_food_item(payload)

    assert len(excinfo.value.errors) == 2
    assert calorie_repository.food_items == []
    assert calorie_repository.error == str(excinfo.value)


def test_update_food_item_applies_partial_changes(calorie_repository) -> None:
    food = calorie_repository.create_food_item(FOOD_PAYLOAD)

    updated = calorie_repository.update_food_item(food.id, {"brand": "Quaker"})

    assert updated.brand == "Quaker"
    assert updated.name == "Oatmeal"
    assert updated.created_at == food.created_at
    assert updated.updated_at >= food.updated_at


def test_update_missing_food_raises_not_found(calorie_repository) -> None:
    with pytest.raises(NotFoundError):
        calorie_repository.update_food_item("missing", {"brand": "x"})


def test_entry_requires_existing_food(calorie_repository) -> None:
    payload = {
        "foodId": "missing",
        "quantity": 1,
        "mealType": "lunch",
        "consumedAt": NOW.isoformat(),
    }

    with pytest.raises(NotFoundError):
        calorie_repository.create_calorie_entry(payload)

    assert calorie_repository.calorie_entries == []


def test_entry_quantity_lower_bound(calorie_repository) -> None:
    food = calorie_repository.create_food_item(FOOD_PAYLOAD)

    with pytest.raises(ValidationError):
        calorie_repository.create_calorie_entry(
            {
                "foodId": food.id,
                "quantity": 0.05,
                "mealType": "lunch",
                "consumedAt": NOW.isoformat(),
            }
        )


def test_delete_referenced_food_is_blocked(calorie_repository) -> None:
    used = calorie_repository.create_food_item(FOOD_PAYLOAD)
    unused = calorie_repository.create_food_item({**FOOD_PAYLOAD, "name": "Tea"})
    calorie_repository.create_calorie_entry(
        {
            "foodId": used.id,
            "quantity": 1,
            "mealType": "breakfast",
            "consumedAt": NOW.isoformat(),
        }
    )

    with pytest.raises(ReferentialIntegrityError):
        calorie_repository.delete_food_item(used.id)
    calorie_repository.delete_food_item(unused.id)

    assert [food.id for food in calorie_repository.food_items] == [used.id]


def test_update_and_delete_entry(calorie_repository) -> None:
    food = calorie_repository.create_food_item(FOOD_PAYLOAD)
    entry = calorie_repository.create_calorie_entry(
        {
            "foodId": food.id,
            "quantity": 1,
            "mealType": "breakfast",
            "consumedAt": NOW.isoformat(),
        }
    )

    updated = calorie_repository.update_calorie_entry(entry.id, {"quantity": 2})
    assert updated.quantity == 2
    with pytest.raises(NotFoundError):
        calorie_repository.update_calorie_entry(entry.id, {"foodId": "missing"})

    calorie_repository.delete_calorie_entry(entry.id)
    assert calorie_repository.calorie_entries == []
    with pytest.raises(NotFoundError):
        calorie_repository.delete_calorie_entry(entry.id)


def test_single_active_goal(calorie_repository) -> None:
    first = calorie_repository.create_calorie_goal(GOAL_PAYLOAD)
    second = calorie_repository.create_calorie_goal(
        {**GOAL_PAYLOAD, "dailyCalories": 2200}
    )

    active = [goal for goal in calorie_repository.calorie_goals if goal.is_active]
    assert [goal.id for goal in active] == [second.id]

    calorie_repository.update_calorie_goal(first.id, {"isActive": True})

    active = [goal for goal in calorie_repository.calorie_goals if goal.is_active]
    assert [goal.id for goal in active] == [first.id]
    assert calorie_repository.active_goal().id == first.id


def test_inactive_goal_does_not_deactivate_others(calorie_repository) -> None:
    first = calorie_repository.create_calorie_goal(GOAL_PAYLOAD)
    calorie_repository.create_calorie_goal({**GOAL_PAYLOAD, "isActive": False})

    assert calorie_repository.active_goal().id == first.id


def test_goal_calorie_bounds(calorie_repository) -> None:
    with pytest.raises(ValidationError):
        calorie_repository.create_calorie_goal({**GOAL_PAYLOAD, "dailyCalories": 500})

    goal = calorie_repository.create_calorie_goal(GOAL_PAYLOAD)
    calorie_repository.delete_calorie_goal(goal.id)
    assert calorie_repository.calorie_goals == []


def test_storage_failure_keeps_memory_and_records_error() -> None:
    store = FailingByteStore()
    repository = build_calorie_repository(store)
    repository.initialize()
    store.fail_writes = True

    with pytest.raises(StorageError):
        repository.create_food_item(FOOD_PAYLOAD)

    assert [food.name for food in repository.food_items] == ["Oatmeal"]
    assert repository.error == f"Failed to save {FOODS_NAMESPACE}"
    repository.clear_error()
    assert repository.error is None


def test_subscribe_notifies_until_unsubscribed(calorie_repository) -> None:
    events: list[str] = []
    unsubscribe = calorie_repository.subscribe(events.append)

    calorie_repository.create_food_item(FOOD_PAYLOAD)
    unsubscribe()
    calorie_repository.create_food_item({**FOOD_PAYLOAD, "name": "Tea"})

    assert events == ["food_created"]


def test_failing_listener_does_not_break_mutation(calorie_repository) -> None:
    def explode(event: str) -> None:
        raise RuntimeError(event)

    calorie_repository.subscribe(explode)

    food = calorie_repository.create_food_item(FOOD_PAYLOAD)

    assert calorie_repository.get_food_item(food.id) == food


def test_derived_reads_use_current_collections() -> None:
    store = FailingByteStore()
    repository = build_calorie_repository(store)
    storage = repository.storage
    storage.save_food_items([make_food("apple", calories=100)])
    storage.save_calorie_entries(
        [
            make_entry("today", "apple", quantity=2, consumed_at=NOW),
            make_entry("yesterday", "apple", consumed_at=NOW - timedelta(days=1)),
        ]
    )
    storage.save_calorie_goals([make_goal(daily_calories=1000)])
    repository.initialize()

    summary = repository.daily_summary(NOW)
    progress = repository.calorie_progress(NOW)

    assert summary.total_calories == 200
    assert progress.percentage == 20
    assert [entry.id for entry in repository.entries_for_date(NOW)] == ["today"]
    assert len(repository.entries_for_date_range(NOW - timedelta(days=2), NOW)) == 2
    assert repository.weekly_average(NOW) == 300 / 7
    assert repository.most_consumed_foods()[0].count == 2
    assert [food.id for food in repository.food_suggestions(now=NOW)] == ["apple"]
    assert [food.id for food in repository.search_food_items("app")] == ["apple"]


def test_import_reloads_and_clear_resets(calorie_repository) -> None:
    calorie_repository.create_food_item(FOOD_PAYLOAD)
    document = calorie_repository.export_data()
    calorie_repository.create_food_item({**FOOD_PAYLOAD, "name": "Tea"})

    calorie_repository.import_data(document)

    assert [food.name for food in calorie_repository.food_items] == ["Oatmeal"]

    calorie_repository.clear_all_data()

    assert calorie_repository.food_items == []
    assert calorie_repository.state is RepositoryState.UNINITIALIZED
    assert calorie_repository.storage.load_food_items() == []


def test_bad_import_records_error(calorie_repository) -> None:
    with pytest.raises(StorageError):
        calorie_repository.import_data("nope")

    assert calorie_repository.error == "Failed to import data"


def test_entry_food_reference_cannot_be_blanked(calorie_repository) -> None:
    food = calorie_repository.create_food_item(FOOD_PAYLOAD)
    entry = calorie_repository.create_calorie_entry(
        {
            "foodId": food.id,
            "quantity": 1,
            "mealType": "breakfast",
            "consumedAt": NOW.isoformat(),
        }
    )

    with pytest.raises(ValidationError):
        calorie_repository.update_calorie_entry(entry.id, {"food_id": ""})
    with pytest.raises(ValidationError):
        calorie_repository.create_calorie_entry(
            {
                "foodId": "",
                "quantity": 1,
                "mealType": "lunch",
                "consumedAt": NOW.isoformat(),
            }
        )

    assert [item.food_id for item in calorie_repository.calorie_entries] == [food.id]
    assert [
        item.food_id for item in calorie_repository.storage.load_calorie_entries()
    ] == [food.id]


def test_naive_read_bounds_use_repository_zone() -> None:
    store = FailingByteStore()
    repository = build_calorie_repository(store)
    repository.storage.save_food_items([make_food("apple", calories=140)])
    repository.storage.save_calorie_entries(
        [
            make_entry("noon", "apple", consumed_at=NOW),
            make_entry("late", "apple", consumed_at=NOW.replace(hour=23, minute=30)),
        ]
    )
    repository.initialize()
    naive_now = datetime(2024, 3, 16, 12, 0)

    in_utc = repository.entries_for_date_range(
        datetime(2024, 3, 15), datetime(2024, 3, 16)
    )
    repository.tz = ZoneInfo("Europe/Berlin")
    in_berlin = repository.entries_for_date_range(
        datetime(2024, 3, 15), datetime(2024, 3, 16)
    )

    assert {entry.id for entry in in_utc} == {"noon", "late"}
    assert {entry.id for entry in in_berlin} == {"noon"}
    assert repository.weekly_average(naive_now) == 40
    assert repository.monthly_average(naive_now) == 280 / 30
    assert [food.id for food in repository.food_suggestions(now=naive_now)] == ["apple"]


def test_listeners_run_after_the_write(calorie_repository) -> None:
    stored_at_notify: list[list[str]] = []

    def snapshot(event: str) -> None:
        stored_at_notify.append(
            [food.name for food in calorie_repository.storage.load_food_items()]
        )

    calorie_repository.subscribe(snapshot)

    calorie_repository.create_food_item(FOOD_PAYLOAD)

    assert stored_at_notify == [["Oatmeal"]]


def test_listeners_still_notified_when_write_fails() -> None:
    store = FailingByteStore()
    repository = build_calorie_repository(store)
    repository.initialize()
    events: list[str] = []
    repository.subscribe(events.append)
    store.fail_writes = True

    with pytest.raises(StorageError):
        repository.create_food_item(FOOD_PAYLOAD)

    assert events == ["food_created"]
    assert repository.storage.load_food_items() == []
