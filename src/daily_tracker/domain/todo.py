"""Domain models for the todo list."""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import Field, field_validator

from daily_tracker.domain.calorie import SortDirection, Timestamp, TrackerModel

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000


class Priority(str, Enum):
    """Todo priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_ORDER: dict[Priority, int] = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
}


class TodoSortField(str, Enum):
    """Sortable todo fields."""

    TITLE = "title"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    PRIORITY = "priority"


class TodoItem(TrackerModel):
    """Single todo."""

    id: str
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    completed: bool = False
    priority: Priority | None = Priority.MEDIUM
    category: str | None = None
    created_at: Timestamp
    updated_at: Timestamp


class CreateTodoInput(TrackerModel):
    """Payload for creating a todo; text fields are trimmed."""

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    category: str | None = None

    @field_validator("title", "description", "category", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


class UpdateTodoInput(TrackerModel):
    """Partial payload for updating a todo."""

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    completed: bool | None = None
    priority: Priority | None = None
    category: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


class TodoFilter(TrackerModel):
    """Optional todo list criteria."""

    completed: bool | None = None
    priority: Priority | None = None
    category: str | None = None
    search: str | None = None


class TodoSort(TrackerModel):
    """Todo sort specification."""

    field: TodoSortField = TodoSortField.CREATED_AT
    direction: SortDirection = SortDirection.DESC


@dataclass(frozen=True)
class TodoStats:
    """Counts over the todo list."""

    total: int
    completed: int
    pending: int
    high_priority: int
    categories: int
    completion_rate: int
    priority_stats: dict[str, int] = field(default_factory=dict)
