"""Tests for container wiring."""

from daily_tracker.adapters.file_byte_store import FileByteStore
from daily_tracker.adapters.memory_byte_store import InMemoryByteStore
from daily_tracker.config import Settings, parse_storage_backend
from daily_tracker.containers import build_container


def test_build_container_uses_memory_store(settings) -> None:
    container = build_container(settings)

    assert isinstance(container.byte_store, InMemoryByteStore)
    assert container.calorie_manager.repository is container.calorie_repository
    assert container.todo_repository.history.max_size == settings.max_history_size


def test_build_container_seeds_file_store(tmp_path) -> None:
    settings = Settings(
        data_dir=tmp_path / "data",
        storage_backend="file",
        timezone="Europe/Berlin",
    )

    container = build_container(settings)
    container.initialize()

    assert isinstance(container.byte_store, FileByteStore)
    assert len(container.calorie_repository.food_items) == 14
    assert (tmp_path / "data" / "calorie-tracker-foods.json").exists()

    reopened = build_container(settings)
    reopened.initialize()
    assert [food.id for food in reopened.calorie_repository.food_items] == [
        food.id for food in container.calorie_repository.food_items
    ]


def test_parse_storage_backend() -> None:
    assert parse_storage_backend(" In-Memory ") == "memory"
    assert parse_storage_backend("file") == "file"
    assert parse_storage_backend(None) == "file"
