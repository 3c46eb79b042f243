"""Convenience operations composed from the calorie repository."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta

from daily_tracker.domain.calorie import (
    CalorieEntry,
    CalorieProgress,
    CreateCalorieEntryInput,
    DailySummary,
    FoodItem,
)
from daily_tracker.errors import NotFoundError, TrackerError
from daily_tracker.services.calories import CalorieRepository
from daily_tracker.services.nutrition import meal_type_from_time
from daily_tracker.services.stats import local_date

_logger = logging.getLogger(__name__)


@dataclass
class CalorieManager:
    """Quick-add, bulk and copy helpers over a repository."""

    repository: CalorieRepository

    def quick_add_entry(
        self, food_id: str, quantity: float = 1, notes: str | None = None
    ) -> CalorieEntry:
        """Log a food now, picking the meal slot from the local hour."""
        now = self._now()
        return self.repository.create_calorie_entry(
            {
                "food_id": food_id,
                "quantity": quantity,
                "meal_type": meal_type_from_time(now),
                "consumed_at": now,
                "notes": notes,
            }
        )

    def add_custom_food(self, payload: Mapping[str, object]) -> FoodItem:
        data = {key: value for key, value in payload.items() if key != "isCustom"}
        return self.repository.create_food_item({**data, "is_custom": True})

    def add_multiple_entries(
        self, payloads: Iterable[Mapping[str, object] | CreateCalorieEntryInput]
    ) -> list[CalorieEntry]:
        """Create entries one by one; failures are logged and skipped."""
        created = []
        for payload in payloads:
            try:
                created.append(self.repository.create_calorie_entry(payload))
            except TrackerError as exc:
                _logger.warning("Skipping calorie entry: %s", exc)
        return created

    def delete_multiple_entries(self, entry_ids: Iterable[str]) -> list[str]:
        """Delete entries one by one and return the ids that were removed."""
        deleted = []
        for entry_id in entry_ids:
            try:
                self.repository.delete_calorie_entry(entry_id)
            except TrackerError as exc:
                _logger.warning("Skipping delete of entry %s: %s", entry_id, exc)
                continue
            deleted.append(entry_id)
        return deleted

    def duplicate_entry(
        self, entry_id: str, new_date: datetime | None = None
    ) -> CalorieEntry:
        """Re-log an entry at `new_date`, or now."""
        original = self.repository.get_calorie_entry(entry_id)
        if original is None:
            raise NotFoundError("Calorie entry", entry_id)
        return self.repository.create_calorie_entry(
            {
                "food_id": original.food_id,
                "user_id": original.user_id,
                "quantity": original.quantity,
                "meal_type": original.meal_type,
                "consumed_at": new_date or self._now(),
                "notes": original.notes,
            }
        )

    def copy_yesterday_entries(self) -> list[CalorieEntry]:
        """Re-log each of yesterday's entries one day later."""
        yesterday = local_date(self._now() - timedelta(days=1), self.repository.tz)
        return self.add_multiple_entries(
            {
                "food_id": entry.food_id,
                "user_id": entry.entry.user_id,
                "quantity": entry.quantity,
                "meal_type": entry.meal_type,
                "consumed_at": entry.consumed_at + timedelta(days=1),
                "notes": entry.notes,
            }
            for entry in self.repository.entries_for_date(yesterday)
        )

    def today_summary(self) -> DailySummary:
        return self.repository.daily_summary(self._now())

    def today_progress(self) -> CalorieProgress:
        return self.repository.calorie_progress(self._now())

    def _now(self) -> datetime:
        return datetime.now(tz=self.repository.tz)
