"""Namespaced collection storage on top of a key-value byte store."""

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from daily_tracker.domain.calorie import CalorieEntry, CalorieGoal, FoodItem
from daily_tracker.domain.todo import TodoItem
from daily_tracker.errors import StorageError

FOODS_NAMESPACE = "calorie-tracker-foods"
ENTRIES_NAMESPACE = "calorie-tracker-entries"
GOALS_NAMESPACE = "calorie-tracker-goals"
SETTINGS_NAMESPACE = "calorie-tracker-settings"
TODOS_NAMESPACE = "todos"

CALORIE_NAMESPACES = (
    FOODS_NAMESPACE,
    ENTRIES_NAMESPACE,
    GOALS_NAMESPACE,
    SETTINGS_NAMESPACE,
)

KILOBYTE = 1024

ModelT = TypeVar("ModelT", bound=BaseModel)

_logger = logging.getLogger(__name__)


class ByteStore(Protocol):
    """Key-value store of raw bytes."""

    def get(self, key: str) -> bytes | None:
        """Return the stored value, or None when absent."""

    def set(self, key: str, value: bytes) -> None:
        """Store a value, replacing any previous one."""

    def delete(self, key: str) -> None:
        """Remove a key if present."""

    def size(self, key: str) -> int:
        """Return the stored value's length in bytes, 0 when absent."""


@dataclass
class CollectionStorage:
    """Serializes pydantic collections to JSON under a namespace."""

    store: ByteStore

    def save(self, namespace: str, collection: list[ModelT]) -> None:
        """Serialize and write a collection, raising StorageError on failure."""
        try:
            payload = json.dumps(_dump(collection))
            self.store.set(namespace, payload.encode("utf-8"))
        except (OSError, ValueError, TypeError) as exc:
            _logger.error("Failed to save namespace %s: %s", namespace, exc)
            raise StorageError(f"Failed to save {namespace}") from exc

    def load(self, namespace: str, model: type[ModelT]) -> list[ModelT]:
        """Read a collection; absent or malformed data loads as empty."""
        raw = self._read(namespace)
        if raw is None:
            return []
        try:
            return TypeAdapter(list[model]).validate_json(raw)
        except PydanticValidationError as exc:
            _logger.warning(
                "Discarding malformed namespace %s: %s errors",
                namespace,
                exc.error_count(),
            )
            return []

    def save_document(self, namespace: str, document: dict[str, object]) -> None:
        """Write a plain JSON document."""
        try:
            self.store.set(namespace, json.dumps(document).encode("utf-8"))
        except (OSError, ValueError, TypeError) as exc:
            _logger.error("Failed to save namespace %s: %s", namespace, exc)
            raise StorageError(f"Failed to save {namespace}") from exc

    def load_document(self, namespace: str) -> dict[str, object]:
        """Read a plain JSON document; absent or malformed loads as empty."""
        raw = self._read(namespace)
        if raw is None:
            return {}
        try:
            document = json.loads(raw)
        except ValueError:
            _logger.warning("Discarding malformed namespace %s", namespace)
            return {}
        return document if isinstance(document, dict) else {}

    def clear(self, namespace: str) -> None:
        """Remove a namespace."""
        try:
            self.store.delete(namespace)
        except OSError as exc:
            raise StorageError(f"Failed to clear {namespace}") from exc

    def _read(self, namespace: str) -> bytes | None:
        try:
            return self.store.get(namespace)
        except OSError as exc:
            _logger.warning("Failed to read namespace %s: %s", namespace, exc)
            return None


@dataclass
class CalorieStorage:
    """Storage for the calorie domain's four namespaces."""

    storage: CollectionStorage

    def load_food_items(self) -> list[FoodItem]:
        return self.storage.load(FOODS_NAMESPACE, FoodItem)

    def save_food_items(self, foods: list[FoodItem]) -> None:
        self.storage.save(FOODS_NAMESPACE, foods)

    def load_calorie_entries(self) -> list[CalorieEntry]:
        return self.storage.load(ENTRIES_NAMESPACE, CalorieEntry)

    def save_calorie_entries(self, entries: list[CalorieEntry]) -> None:
        self.storage.save(ENTRIES_NAMESPACE, entries)

    def load_calorie_goals(self) -> list[CalorieGoal]:
        return self.storage.load(GOALS_NAMESPACE, CalorieGoal)

    def save_calorie_goals(self, goals: list[CalorieGoal]) -> None:
        self.storage.save(GOALS_NAMESPACE, goals)

    def load_settings(self) -> dict[str, object]:
        return self.storage.load_document(SETTINGS_NAMESPACE)

    def save_settings(self, settings: dict[str, object]) -> None:
        self.storage.save_document(SETTINGS_NAMESPACE, settings)

    def clear_all_data(self) -> None:
        """Remove every calorie namespace."""
        for namespace in CALORIE_NAMESPACES:
            self.storage.clear(namespace)

    def export_data(self) -> str:
        """Serialize every namespace into one JSON document."""
        document = {
            "foodItems": _dump(self.load_food_items()),
            "calorieEntries": _dump(self.load_calorie_entries()),
            "calorieGoals": _dump(self.load_calorie_goals()),
            "settings": self.load_settings(),
            "exportDate": datetime.now(tz=UTC).isoformat(),
        }
        return json.dumps(document, indent=2)

    def import_data(self, raw: str) -> None:
        """Apply each top-level key present in an exported document."""
        try:
            document = json.loads(raw)
            if not isinstance(document, dict):
                raise ValueError("Import document must be an object")
            foods = _parse(document, "foodItems", FoodItem)
            entries = _parse(document, "calorieEntries", CalorieEntry)
            goals = _parse(document, "calorieGoals", CalorieGoal)
        except (ValueError, PydanticValidationError) as exc:
            _logger.error("Failed to import data: %s", exc)
            raise StorageError("Failed to import data") from exc

        if foods is not None:
            self.save_food_items(foods)
        if entries is not None:
            self.save_calorie_entries(entries)
        if goals is not None:
            self.save_calorie_goals(goals)
        settings = document.get("settings")
        if isinstance(settings, dict):
            self.save_settings(settings)

    def storage_size(self) -> int:
        """Total bytes across calorie namespaces."""
        try:
            return sum(self.storage.store.size(key) for key in CALORIE_NAMESPACES)
        except OSError as exc:
            _logger.warning("Failed to calculate storage size: %s", exc)
            return 0

    def storage_size_formatted(self) -> str:
        return format_size(self.storage_size())


@dataclass
class TodoStorage:
    """Storage for the todo namespace."""

    storage: CollectionStorage

    def load_todos(self) -> list[TodoItem]:
        return self.storage.load(TODOS_NAMESPACE, TodoItem)

    def save_todos(self, todos: list[TodoItem]) -> None:
        self.storage.save(TODOS_NAMESPACE, todos)

    def clear_todos(self) -> None:
        self.storage.clear(TODOS_NAMESPACE)


def format_size(size: int) -> str:
    """Human readable byte count."""
    if size < KILOBYTE:
        return f"{size} bytes"
    if size < KILOBYTE * KILOBYTE:
        return f"{size / KILOBYTE:.1f} KB"
    return f"{size / (KILOBYTE * KILOBYTE):.1f} MB"


def _dump(collection: list[BaseModel]) -> list[dict[str, object]]:
    return [item.model_dump(mode="json", by_alias=True) for item in collection]


def _parse(
    document: dict[str, object], key: str, model: type[ModelT]
) -> list[ModelT] | None:
    if key not in document or document[key] is None:
        return None
    return TypeAdapter(list[model]).validate_python(document[key])
