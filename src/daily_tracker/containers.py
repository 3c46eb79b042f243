"""Dependency container wiring for the application."""

from dataclasses import dataclass
from zoneinfo import ZoneInfo

from daily_tracker.adapters.file_byte_store import FileByteStore
from daily_tracker.adapters.memory_byte_store import InMemoryByteStore
from daily_tracker.config import Settings, parse_storage_backend
from daily_tracker.services.calorie_manager import CalorieManager
from daily_tracker.services.calories import CalorieRepository
from daily_tracker.services.history import HistoryStack
from daily_tracker.services.seed import DefaultSeedDataProvider
from daily_tracker.services.storage import (
    ByteStore,
    CalorieStorage,
    CollectionStorage,
    TodoStorage,
)
from daily_tracker.services.todos import TodoRepository


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    byte_store: ByteStore
    calorie_repository: CalorieRepository
    calorie_manager: CalorieManager
    todo_repository: TodoRepository

    def initialize(self) -> None:
        """Load both repositories."""
        self.calorie_repository.initialize()
        self.todo_repository.initialize()


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    tz = ZoneInfo(resolved_settings.timezone)
    byte_store: ByteStore
    if parse_storage_backend(resolved_settings.storage_backend) == "memory":
        byte_store = InMemoryByteStore()
    else:
        byte_store = FileByteStore.create(resolved_settings.data_dir)
    collection_storage = CollectionStorage(byte_store)
    calorie_repository = CalorieRepository(
        storage=CalorieStorage(collection_storage),
        seed_provider=(
            DefaultSeedDataProvider(tz=tz) if resolved_settings.seed_dummy_data else None
        ),
        tz=tz,
    )
    todo_repository = TodoRepository(
        storage=TodoStorage(collection_storage),
        history=HistoryStack(max_size=resolved_settings.max_history_size),
    )

    return AppContainer(
        settings=resolved_settings,
        byte_store=byte_store,
        calorie_repository=calorie_repository,
        calorie_manager=CalorieManager(calorie_repository),
        todo_repository=todo_repository,
    )
