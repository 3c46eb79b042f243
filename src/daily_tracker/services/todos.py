"""Todo repository with snapshot-based undo and redo."""

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from daily_tracker.domain.calorie import SortDirection
from daily_tracker.domain.todo import (
    PRIORITY_ORDER,
    CreateTodoInput,
    Priority,
    TodoFilter,
    TodoItem,
    TodoSort,
    TodoSortField,
    TodoStats,
    UpdateTodoInput,
)
from daily_tracker.errors import NotFoundError, TrackerError, ValidationError
from daily_tracker.services.calories import RepositoryState
from daily_tracker.services.history import HistoryStack
from daily_tracker.services.nutrition import round_half_away
from daily_tracker.services.storage import TodoStorage
from daily_tracker.services.validation import (
    format_errors,
    merge_update,
    validate_payload,
)

Payload = Mapping[str, object]
Snapshot = tuple[TodoItem, ...]

UNCATEGORIZED = "Uncategorized"

_logger = logging.getLogger(__name__)


@dataclass
class TodoRepository:
    """Todo list owner.

    Each mutation checkpoints the state it is about to replace. The state
    produced by the most recent mutation is only recorded when undo is
    requested, so undo always lands on the state right before that mutation.
    """

    storage: TodoStorage
    history: HistoryStack[Snapshot] = field(default_factory=HistoryStack)
    todos: list[TodoItem] = field(default_factory=list)
    state: RepositoryState = RepositoryState.UNINITIALIZED
    error: str | None = None
    _dirty: bool = field(default=False, repr=False)

    def initialize(self) -> None:
        if self.state is not RepositoryState.UNINITIALIZED:
            return
        self.state = RepositoryState.LOADING
        self.error = None
        try:
            self.todos = self.storage.load_todos()
            self.history.clear()
            self._dirty = False
        finally:
            self.state = RepositoryState.READY
        _logger.info("Todo repository ready: todos=%s", len(self.todos))

    @property
    def can_undo(self) -> bool:
        return self._dirty or self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return not self._dirty and self.history.can_redo

    def clear_error(self) -> None:
        self.error = None

    # Mutations

    def add_todo(self, payload: Payload | CreateTodoInput) -> TodoItem:
        """Validate and prepend a todo."""
        with self._recording_errors():
            data = validate_payload(CreateTodoInput, payload)
            now = datetime.now(tz=UTC)
            todo = validate_payload(
                TodoItem,
                {**data.model_dump(), "id": str(uuid4()), "created_at": now, "updated_at": now},
            )
            self._checkpoint()
            self.todos = [todo, *self.todos]
            self._persist()
            return todo

    def update_todo(
        self, todo_id: str, payload: Payload | UpdateTodoInput
    ) -> TodoItem:
        with self._recording_errors():
            changes = validate_payload(UpdateTodoInput, payload).model_dump(
                exclude_unset=True
            )
            index = self._index(todo_id)
            updated = merge_update(
                TodoItem,
                self.todos[index],
                {**changes, "updated_at": datetime.now(tz=UTC)},
            )
            self._checkpoint()
            todos = list(self.todos)
            todos[index] = updated
            self.todos = todos
            self._persist()
            return updated

    def toggle_todo(self, todo_id: str) -> TodoItem:
        with self._recording_errors():
            todo = self.todos[self._index(todo_id)]
        return self.update_todo(todo_id, {"completed": not todo.completed})

    def delete_todo(self, todo_id: str) -> None:
        with self._recording_errors():
            index = self._index(todo_id)
            self._checkpoint()
            self.todos = [*self.todos[:index], *self.todos[index + 1 :]]
            self._persist()

    def batch_update_todos(
        self, todo_ids: Iterable[str], payload: Payload | UpdateTodoInput
    ) -> list[TodoItem]:
        """Apply one update to many todos; missing or invalid ones are skipped."""
        with self._recording_errors():
            changes = validate_payload(UpdateTodoInput, payload).model_dump(
                exclude_unset=True
            )
            now = datetime.now(tz=UTC)
            todos = list(self.todos)
            updated = []
            for todo_id in todo_ids:
                try:
                    index = self._index(todo_id)
                    todos[index] = merge_update(
                        TodoItem, todos[index], {**changes, "updated_at": now}
                    )
                except TrackerError as exc:
                    _logger.warning("Skipping batch update of todo %s: %s", todo_id, exc)
                    continue
                updated.append(todos[index])
            if updated:
                self._checkpoint()
                self.todos = todos
                self._persist()
            return updated

    def batch_delete_todos(self, todo_ids: Iterable[str]) -> list[str]:
        """Remove many todos and return the ids that existed."""
        with self._recording_errors():
            wanted = set(todo_ids)
            removed = [todo.id for todo in self.todos if todo.id in wanted]
            for missing in wanted.difference(removed):
                _logger.warning("Skipping batch delete of missing todo %s", missing)
            if removed:
                self._checkpoint()
                self.todos = [todo for todo in self.todos if todo.id not in wanted]
                self._persist()
            return removed

    def clear_all_todos(self) -> None:
        with self._recording_errors():
            self._checkpoint()
            self.todos = []
            self.storage.clear_todos()

    def import_todos(self, raw: str) -> list[TodoItem]:
        """Replace the list with todos from an exported JSON array."""
        with self._recording_errors():
            try:
                imported = TypeAdapter(list[TodoItem]).validate_json(raw)
            except PydanticValidationError as exc:
                raise ValidationError(
                    [f"Failed to import todos: {message}" for message in format_errors(exc)]
                ) from exc
            self._checkpoint()
            self.todos = imported
            self._persist()
            return imported

    def export_todos(self) -> str:
        return json.dumps(
            [todo.model_dump(mode="json", by_alias=True) for todo in self.todos],
            indent=2,
        )

    def undo(self) -> bool:
        """Restore the state before the last mutation; False when none."""
        with self._recording_errors():
            if self._dirty:
                self.history.record(tuple(self.todos))
                self._dirty = False
            snapshot = self.history.undo()
            if snapshot is False:
                return False
            self.todos = list(snapshot)
            self._persist()
            return True

    def redo(self) -> bool:
        with self._recording_errors():
            if self._dirty:
                return False
            snapshot = self.history.redo()
            if snapshot is False:
                return False
            self.todos = list(snapshot)
            self._persist()
            return True

    # Queries

    def get_todo(self, todo_id: str) -> TodoItem | None:
        return next((todo for todo in self.todos if todo.id == todo_id), None)

    def search_todos(self, query: str) -> list[TodoItem]:
        """Case-insensitive match on title or description."""
        term = query.lower()
        return [todo for todo in self.todos if _matches(todo, term)]

    def todos_by_category(self) -> dict[str, list[TodoItem]]:
        grouped: dict[str, list[TodoItem]] = {}
        for todo in self.todos:
            grouped.setdefault(todo.category or UNCATEGORIZED, []).append(todo)
        return grouped

    def todos_by_priority(self) -> dict[str, list[TodoItem]]:
        grouped: dict[str, list[TodoItem]] = {
            priority.value: [] for priority in (Priority.HIGH, Priority.MEDIUM, Priority.LOW)
        }
        grouped["none"] = []
        for todo in self.todos:
            grouped[todo.priority.value if todo.priority else "none"].append(todo)
        return grouped

    def filtered_todos(
        self, criteria: TodoFilter | None = None, sort: TodoSort | None = None
    ) -> list[TodoItem]:
        """Filter then stable-sort the todo list."""
        criteria = criteria or TodoFilter()
        sort = sort or TodoSort()
        result = list(self.todos)
        if criteria.completed is not None:
            result = [todo for todo in result if todo.completed == criteria.completed]
        if criteria.priority:
            result = [todo for todo in result if todo.priority == criteria.priority]
        if criteria.category:
            result = [todo for todo in result if todo.category == criteria.category]
        if criteria.search:
            term = criteria.search.lower()
            result = [todo for todo in result if _matches(todo, term)]
        return sorted(
            result,
            key=_SORT_KEYS[sort.field],
            reverse=sort.direction is SortDirection.DESC,
        )

    def todo_stats(self) -> TodoStats:
        total = len(self.todos)
        completed = sum(1 for todo in self.todos if todo.completed)
        priority_stats = {
            priority.value: sum(1 for todo in self.todos if todo.priority == priority)
            for priority in (Priority.HIGH, Priority.MEDIUM, Priority.LOW)
        }
        rate = round_half_away(completed / total * 100, 0) if total else 0
        return TodoStats(
            total=total,
            completed=completed,
            pending=total - completed,
            high_priority=priority_stats[Priority.HIGH.value],
            categories=len({todo.category for todo in self.todos if todo.category}),
            completion_rate=int(rate),
            priority_stats=priority_stats,
        )

    # Internals

    def _checkpoint(self) -> None:
        if self._dirty or self.history.current() is None:
            self.history.record(tuple(self.todos))
        else:
            self.history.truncate()
        self._dirty = True

    def _persist(self) -> None:
        self.storage.save_todos(self.todos)

    def _index(self, todo_id: str) -> int:
        for index, todo in enumerate(self.todos):
            if todo.id == todo_id:
                return index
        raise NotFoundError("Todo", todo_id)

    @contextmanager
    def _recording_errors(self) -> Iterator[None]:
        try:
            yield
        except TrackerError as exc:
            self.error = str(exc)
            raise


_SORT_KEYS = {
    TodoSortField.TITLE: lambda todo: todo.title,
    TodoSortField.CREATED_AT: lambda todo: todo.created_at.timestamp(),
    TodoSortField.UPDATED_AT: lambda todo: todo.updated_at.timestamp(),
    TodoSortField.PRIORITY: lambda todo: PRIORITY_ORDER.get(todo.priority, 0),
}


def _matches(todo: TodoItem, term: str) -> bool:
    return term in todo.title.lower() or (
        todo.description is not None and term in todo.description.lower()
    )
