"""Calorie repository owning foods, entries and goals."""

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, tzinfo
from enum import Enum
from uuid import uuid4

from daily_tracker.domain.calorie import (
    AdvancedSearchCriteria,
    CalorieEntry,
    CalorieFilter,
    CalorieGoal,
    CalorieProgress,
    CalorieSort,
    CreateCalorieEntryInput,
    CreateCalorieGoalInput,
    CreateFoodItemInput,
    DailySummary,
    EntryWithFood,
    FoodCategory,
    FoodConsumption,
    FoodItem,
    UpdateCalorieEntryInput,
    UpdateCalorieGoalInput,
    UpdateFoodItemInput,
)
from daily_tracker.errors import (
    NotFoundError,
    ReferentialIntegrityError,
    TrackerError,
)
from daily_tracker.services import filters, stats
from daily_tracker.services.entries import join_entries
from daily_tracker.services.seed import SeedDataProvider
from daily_tracker.services.storage import CalorieStorage
from daily_tracker.services.validation import merge_update, validate_payload

Payload = Mapping[str, object]
ChangeListener = Callable[[str], None]

_logger = logging.getLogger(__name__)


class RepositoryState(str, Enum):
    """Lifecycle of a repository."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


@dataclass
class CalorieRepository:
    """Authoritative in-memory collections with validated CRUD.

    Every mutation validates and checks references before touching memory,
    then writes the affected collection to storage. A failed write leaves the
    in-memory change in place and is reported through `error`.
    """

    storage: CalorieStorage
    seed_provider: SeedDataProvider | None = None
    tz: tzinfo = UTC
    food_items: list[FoodItem] = field(default_factory=list)
    calorie_entries: list[CalorieEntry] = field(default_factory=list)
    calorie_goals: list[CalorieGoal] = field(default_factory=list)
    settings: dict[str, object] = field(default_factory=dict)
    state: RepositoryState = RepositoryState.UNINITIALIZED
    error: str | None = None
    _listeners: list[ChangeListener] = field(default_factory=list, repr=False)

    @property
    def is_initialized(self) -> bool:
        return self.state is RepositoryState.READY

    @property
    def is_loading(self) -> bool:
        return self.state is RepositoryState.LOADING

    def initialize(self) -> None:
        """Load collections once, seeding an empty catalog."""
        if self.state is not RepositoryState.UNINITIALIZED:
            return
        self.state = RepositoryState.LOADING
        self.error = None
        try:
            with self._recording_errors():
                self._load()
                if not self.food_items and self.seed_provider is not None:
                    self._seed(self.seed_provider)
        finally:
            self.state = RepositoryState.READY
        _logger.info(
            "Calorie repository ready: foods=%s entries=%s goals=%s",
            len(self.food_items),
            len(self.calorie_entries),
            len(self.calorie_goals),
        )

    def reload(self) -> None:
        """Replace in-memory collections with the stored ones."""
        self._load()
        self._notify("reloaded")

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener and return an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear_error(self) -> None:
        self.error = None

    # Foods

    def get_food_item(self, food_id: str) -> FoodItem | None:
        return next((food for food in self.food_items if food.id == food_id), None)

    def create_food_item(self, payload: Payload | CreateFoodItemInput) -> FoodItem:
        """Validate and add a food."""
        with self._recording_errors():
            data = validate_payload(CreateFoodItemInput, payload)
            now = self._now()
            food = validate_payload(
                FoodItem,
                {**data.model_dump(), "id": _new_id(), "created_at": now, "updated_at": now},
            )
            self.food_items = [*self.food_items, food]
            self._commit("food_created", self.storage.save_food_items, self.food_items)
            return food

    def update_food_item(
        self, food_id: str, payload: Payload | UpdateFoodItemInput
    ) -> FoodItem:
        """Apply a partial update to a food."""
        with self._recording_errors():
            changes = validate_payload(UpdateFoodItemInput, payload).model_dump(
                exclude_unset=True
            )
            index = self._food_index(food_id)
            updated = merge_update(
                FoodItem,
                self.food_items[index],
                {**changes, "updated_at": self._now()},
            )
            foods = list(self.food_items)
            foods[index] = updated
            self.food_items = foods
            self._commit("food_updated", self.storage.save_food_items, self.food_items)
            return updated

    def delete_food_item(self, food_id: str) -> None:
        """Remove a food that no entry references."""
        with self._recording_errors():
            index = self._food_index(food_id)
            if any(entry.food_id == food_id for entry in self.calorie_entries):
                raise ReferentialIntegrityError(
                    "Cannot delete food item that is used in calorie entries"
                )
            self.food_items = [*self.food_items[:index], *self.food_items[index + 1 :]]
            self._commit("food_deleted", self.storage.save_food_items, self.food_items)

    # Entries

    def get_calorie_entry(self, entry_id: str) -> CalorieEntry | None:
        return next(
            (entry for entry in self.calorie_entries if entry.id == entry_id), None
        )

    def create_calorie_entry(
        self, payload: Payload | CreateCalorieEntryInput
    ) -> CalorieEntry:
        """Validate and log a consumption entry for an existing food."""
        with self._recording_errors():
            data = validate_payload(CreateCalorieEntryInput, payload)
            self._require_food(data.food_id)
            now = self._now()
            entry = validate_payload(
                CalorieEntry,
                {**data.model_dump(), "id": _new_id(), "created_at": now, "updated_at": now},
            )
            self.calorie_entries = [*self.calorie_entries, entry]
            self._commit(
                "entry_created", self.storage.save_calorie_entries, self.calorie_entries
            )
            return entry

    def update_calorie_entry(
        self, entry_id: str, payload: Payload | UpdateCalorieEntryInput
    ) -> CalorieEntry:
        """Apply a partial update to an entry."""
        with self._recording_errors():
            changes = validate_payload(UpdateCalorieEntryInput, payload).model_dump(
                exclude_unset=True
            )
            index = self._entry_index(entry_id)
            if "food_id" in changes:
                self._require_food(str(changes["food_id"]))
            updated = merge_update(
                CalorieEntry,
                self.calorie_entries[index],
                {**changes, "updated_at": self._now()},
            )
            entries = list(self.calorie_entries)
            entries[index] = updated
            self.calorie_entries = entries
            self._commit(
                "entry_updated", self.storage.save_calorie_entries, self.calorie_entries
            )
            return updated

    def delete_calorie_entry(self, entry_id: str) -> None:
        with self._recording_errors():
            index = self._entry_index(entry_id)
            self.calorie_entries = [
                *self.calorie_entries[:index],
                *self.calorie_entries[index + 1 :],
            ]
            self._commit(
                "entry_deleted", self.storage.save_calorie_entries, self.calorie_entries
            )

    # Goals

    def get_calorie_goal(self, goal_id: str) -> CalorieGoal | None:
        return next((goal for goal in self.calorie_goals if goal.id == goal_id), None)

    def create_calorie_goal(
        self, payload: Payload | CreateCalorieGoalInput
    ) -> CalorieGoal:
        """Add a goal; an active goal deactivates every other goal."""
        with self._recording_errors():
            data = validate_payload(CreateCalorieGoalInput, payload)
            now = self._now()
            goal = validate_payload(
                CalorieGoal,
                {**data.model_dump(), "id": _new_id(), "created_at": now, "updated_at": now},
            )
            goals = list(self.calorie_goals)
            if goal.is_active:
                goals = _deactivate_all(goals)
            self.calorie_goals = [*goals, goal]
            self._commit("goal_created", self.storage.save_calorie_goals, self.calorie_goals)
            return goal

    def update_calorie_goal(
        self, goal_id: str, payload: Payload | UpdateCalorieGoalInput
    ) -> CalorieGoal:
        """Apply a partial update; activating deactivates every other goal."""
        with self._recording_errors():
            changes = validate_payload(UpdateCalorieGoalInput, payload).model_dump(
                exclude_unset=True
            )
            index = self._goal_index(goal_id)
            updated = merge_update(
                CalorieGoal,
                self.calorie_goals[index],
                {**changes, "updated_at": self._now()},
            )
            goals = list(self.calorie_goals)
            if changes.get("is_active"):
                goals = _deactivate_all(goals)
            goals[index] = updated
            self.calorie_goals = goals
            self._commit("goal_updated", self.storage.save_calorie_goals, self.calorie_goals)
            return updated

    def delete_calorie_goal(self, goal_id: str) -> None:
        with self._recording_errors():
            index = self._goal_index(goal_id)
            self.calorie_goals = [
                *self.calorie_goals[:index],
                *self.calorie_goals[index + 1 :],
            ]
            self._commit("goal_deleted", self.storage.save_calorie_goals, self.calorie_goals)

    # Settings and data management

    def update_settings(self, values: Mapping[str, object]) -> dict[str, object]:
        """Merge values into the stored settings document."""
        with self._recording_errors():
            self.settings = {**self.settings, **values}
            self._commit("settings_updated", self.storage.save_settings, self.settings)
            return self.settings

    def export_data(self) -> str:
        """Export every stored namespace as one JSON document."""
        return self.storage.export_data()

    def import_data(self, raw: str) -> None:
        """Import a (possibly partial) document and reload from storage."""
        with self._recording_errors():
            self.storage.import_data(raw)
            self.reload()

    def clear_all_data(self) -> None:
        """Wipe storage and memory; the next initialize reloads or reseeds."""
        with self._recording_errors():
            self.storage.clear_all_data()
            self.food_items = []
            self.calorie_entries = []
            self.calorie_goals = []
            self.settings = {}
            self.state = RepositoryState.UNINITIALIZED
            self._notify("cleared")

    def storage_size_formatted(self) -> str:
        return self.storage.storage_size_formatted()

    # Derived reads

    def entries_with_food(self) -> list[EntryWithFood]:
        return join_entries(self.calorie_entries, self.food_items)

    def entries_for_date(self, day: date | datetime) -> list[EntryWithFood]:
        return stats.entries_for_date(self.calorie_entries, self.food_items, day, self.tz)

    def entries_for_date_range(
        self, start: datetime, end: datetime
    ) -> list[EntryWithFood]:
        return stats.range_summary(
            self.calorie_entries, self.food_items, start, end, self.tz
        )

    def daily_summary(self, day: date | datetime | None = None) -> DailySummary:
        return stats.daily_summary(
            self.calorie_entries,
            self.food_items,
            self.calorie_goals,
            day or self._now(),
            self.tz,
        )

    def active_goal(self) -> CalorieGoal | None:
        return stats.active_goal(self.calorie_goals)

    def calorie_progress(self, day: date | datetime | None = None) -> CalorieProgress:
        return stats.progress(
            self.calorie_entries,
            self.food_items,
            self.calorie_goals,
            day or self._now(),
            self.tz,
        )

    def weekly_average(self, now: datetime | None = None) -> float:
        return stats.weekly_average(
            self.calorie_entries, self.food_items, now or self._now(), self.tz
        )

    def monthly_average(self, now: datetime | None = None) -> float:
        return stats.monthly_average(
            self.calorie_entries, self.food_items, now or self._now(), self.tz
        )

    def filter_and_sort(
        self, criteria: CalorieFilter | None = None, sort: CalorieSort | None = None
    ) -> list[EntryWithFood]:
        return filters.filter_and_sort(
            self.entries_with_food(), criteria, sort, self.tz
        )

    def advanced_search(self, criteria: AdvancedSearchCriteria) -> list[EntryWithFood]:
        return filters.advanced_search(self.entries_with_food(), criteria, self.tz)

    def search_food_items(self, query: str) -> list[FoodItem]:
        return filters.search_foods(self.food_items, query)

    def foods_by_category(self, category: FoodCategory) -> list[FoodItem]:
        return filters.foods_by_category(self.food_items, category)

    def most_consumed_foods(self, limit: int = 10) -> list[FoodConsumption]:
        return filters.most_consumed_foods(self.entries_with_food(), limit)

    def food_suggestions(
        self, limit: int = 5, now: datetime | None = None
    ) -> list[FoodItem]:
        return filters.food_suggestions(
            self.entries_with_food(),
            self.food_items,
            limit,
            now or self._now(),
            self.tz,
        )

    # Internals

    def _load(self) -> None:
        self.food_items = self.storage.load_food_items()
        self.calorie_entries = self.storage.load_calorie_entries()
        self.calorie_goals = self.storage.load_calorie_goals()
        self.settings = self.storage.load_settings()

    def _seed(self, provider: SeedDataProvider) -> None:
        seed = provider.initialize_dummy_data()
        self.food_items = list(seed.food_items)
        self.calorie_entries = list(seed.calorie_entries)
        self.calorie_goals = list(seed.calorie_goals)
        _logger.info("Seeded sample data: foods=%s", len(self.food_items))
        try:
            self.storage.save_food_items(self.food_items)
            self.storage.save_calorie_entries(self.calorie_entries)
            self.storage.save_calorie_goals(self.calorie_goals)
        finally:
            self._notify("seeded")

    def _commit(self, event: str, save: Callable[[object], None], value: object) -> None:
        try:
            save(value)
        finally:
            self._notify(event)

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                _logger.exception("Change listener failed for event %s", event)

    @contextmanager
    def _recording_errors(self) -> Iterator[None]:
        try:
            yield
        except TrackerError as exc:
            self.error = str(exc)
            raise

    def _now(self) -> datetime:
        return datetime.now(tz=self.tz)

    def _food_index(self, food_id: str) -> int:
        for index, food in enumerate(self.food_items):
            if food.id == food_id:
                return index
        raise NotFoundError("Food item", food_id)

    def _entry_index(self, entry_id: str) -> int:
        for index, entry in enumerate(self.calorie_entries):
            if entry.id == entry_id:
                return index
        raise NotFoundError("Calorie entry", entry_id)

    def _goal_index(self, goal_id: str) -> int:
        for index, goal in enumerate(self.calorie_goals):
            if goal.id == goal_id:
                return index
        raise NotFoundError("Calorie goal", goal_id)

    def _require_food(self, food_id: str) -> None:
        if self.get_food_item(food_id) is None:
            raise NotFoundError("Food item", food_id)


def _deactivate_all(goals: list[CalorieGoal]) -> list[CalorieGoal]:
    return [
        goal.model_copy(update={"is_active": False}) if goal.is_active else goal
        for goal in goals
    ]


def _new_id() -> str:
    return str(uuid4())
