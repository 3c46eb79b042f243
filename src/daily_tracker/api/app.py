"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date, datetime

from fastapi import FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from daily_tracker.app_logging import configure_logging
from daily_tracker.containers import AppContainer
from daily_tracker.domain.calorie import (
    AdvancedSearchCriteria,
    CalorieFilter,
    CalorieSort,
    CreateCalorieEntryInput,
    CreateCalorieGoalInput,
    CreateFoodItemInput,
    DailySummary,
    EntryWithFood,
    FoodCategory,
    MealType,
    SortDirection,
    SortField,
    TrackerModel,
    UpdateCalorieEntryInput,
    UpdateCalorieGoalInput,
    UpdateFoodItemInput,
)
from daily_tracker.domain.todo import (
    CreateTodoInput,
    Priority,
    TodoFilter,
    TodoSort,
    TodoSortField,
    TodoStats,
    UpdateTodoInput,
)
from daily_tracker.errors import (
    NotFoundError,
    ReferentialIntegrityError,
    StorageError,
    ValidationError,
)


class QuickAddRequest(TrackerModel):
    """Body for logging a food right now."""

    food_id: str
    quantity: float = 1
    notes: str | None = None


class DuplicateEntryRequest(TrackerModel):
    """Body for re-logging an entry."""

    new_date: datetime | None = None


class BatchUpdateRequest(TrackerModel):
    """Body for applying one change set to many todos."""

    ids: list[str]
    changes: UpdateTodoInput


class BatchDeleteRequest(TrackerModel):
    """Body for deleting many todos."""

    ids: list[str]


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            app.state.container.initialize()
        except StorageError:
            logger.exception("Failed to persist initial data")
        yield

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.errors})

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ReferentialIntegrityError)
    async def conflict(request: Request, exc: ReferentialIntegrityError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(StorageError)
    async def storage_failure(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    # Foods

    @app.get("/calories/foods")
    async def list_foods(
        request: Request,
        search: str | None = None,
        category: FoodCategory | None = None,
    ) -> dict[str, object]:
        """List foods, optionally searched or narrowed to a category."""
        repository = _container(request).calorie_repository
        foods = repository.food_items
        if search:
            foods = repository.search_food_items(search)
        if category:
            foods = [food for food in foods if food.category == category]
        return {"foods": [_dump(food) for food in foods]}

    @app.post("/calories/foods", status_code=201)
    async def create_food(
        payload: CreateFoodItemInput, request: Request
    ) -> dict[str, object]:
        food = _container(request).calorie_repository.create_food_item(payload)
        return _dump(food)

    @app.post("/calories/foods/custom", status_code=201)
    async def create_custom_food(
        payload: CreateFoodItemInput, request: Request
    ) -> dict[str, object]:
        food = _container(request).calorie_manager.add_custom_food(
            payload.model_dump(exclude_unset=True)
        )
        return _dump(food)

    @app.get("/calories/foods/{food_id}")
    async def get_food(food_id: str, request: Request) -> dict[str, object]:
        food = _container(request).calorie_repository.get_food_item(food_id)
        if food is None:
            raise NotFoundError("Food item", food_id)
        return _dump(food)

    @app.patch("/calories/foods/{food_id}")
    async def update_food(
        food_id: str, payload: UpdateFoodItemInput, request: Request
    ) -> dict[str, object]:
        food = _container(request).calorie_repository.update_food_item(food_id, payload)
        return _dump(food)

    @app.delete("/calories/foods/{food_id}", status_code=204)
    async def delete_food(food_id: str, request: Request) -> Response:
        _container(request).calorie_repository.delete_food_item(food_id)
        return Response(status_code=204)

    # Entries

    @app.get("/calories/entries")
    async def list_entries(  # noqa: PLR0913
        request: Request,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        meal_type: MealType | None = None,
        category: FoodCategory | None = None,
        search: str | None = None,
        sort_field: SortField | None = None,
        sort_direction: SortDirection = SortDirection.DESC,
    ) -> dict[str, object]:
        """Joined entries filtered and sorted by query parameters."""
        criteria = CalorieFilter(
            date_from=date_from,
            date_to=date_to,
            meal_type=meal_type,
            category=category,
            search=search,
        )
        sort = (
            CalorieSort(field=sort_field, direction=sort_direction)
            if sort_field
            else None
        )
        entries = _container(request).calorie_repository.filter_and_sort(criteria, sort)
        return {"entries": [_entry_payload(entry) for entry in entries]}

    @app.post("/calories/entries", status_code=201)
    async def create_entry(
        payload: CreateCalorieEntryInput, request: Request
    ) -> dict[str, object]:
        entry = _container(request).calorie_repository.create_calorie_entry(payload)
        return _dump(entry)

    @app.post("/calories/entries/quick", status_code=201)
    async def quick_add_entry(
        payload: QuickAddRequest, request: Request
    ) -> dict[str, object]:
        entry = _container(request).calorie_manager.quick_add_entry(
            payload.food_id, payload.quantity, payload.notes
        )
        return _dump(entry)

    @app.post("/calories/entries/copy-yesterday", status_code=201)
    async def copy_yesterday(request: Request) -> dict[str, object]:
        entries = _container(request).calorie_manager.copy_yesterday_entries()
        return {"entries": [_dump(entry) for entry in entries]}

    @app.post("/calories/entries/search")
    async def search_entries(
        criteria: AdvancedSearchCriteria, request: Request
    ) -> dict[str, object]:
        """Multi-criteria search over joined entries."""
        entries = _container(request).calorie_repository.advanced_search(criteria)
        return {"entries": [_entry_payload(entry) for entry in entries]}

    @app.post("/calories/entries/{entry_id}/duplicate", status_code=201)
    async def duplicate_entry(
        entry_id: str, payload: DuplicateEntryRequest, request: Request
    ) -> dict[str, object]:
        entry = _container(request).calorie_manager.duplicate_entry(
            entry_id, payload.new_date
        )
        return _dump(entry)

    @app.patch("/calories/entries/{entry_id}")
    async def update_entry(
        entry_id: str, payload: UpdateCalorieEntryInput, request: Request
    ) -> dict[str, object]:
        entry = _container(request).calorie_repository.update_calorie_entry(
            entry_id, payload
        )
        return _dump(entry)

    @app.delete("/calories/entries/{entry_id}", status_code=204)
    async def delete_entry(entry_id: str, request: Request) -> Response:
        _container(request).calorie_repository.delete_calorie_entry(entry_id)
        return Response(status_code=204)

    # Goals

    @app.get("/calories/goals")
    async def list_goals(request: Request) -> dict[str, object]:
        repository = _container(request).calorie_repository
        active = repository.active_goal()
        return {
            "goals": [_dump(goal) for goal in repository.calorie_goals],
            "activeGoalId": active.id if active else None,
        }

    @app.post("/calories/goals", status_code=201)
    async def create_goal(
        payload: CreateCalorieGoalInput, request: Request
    ) -> dict[str, object]:
        goal = _container(request).calorie_repository.create_calorie_goal(payload)
        return _dump(goal)

    @app.patch("/calories/goals/{goal_id}")
    async def update_goal(
        goal_id: str, payload: UpdateCalorieGoalInput, request: Request
    ) -> dict[str, object]:
        goal = _container(request).calorie_repository.update_calorie_goal(
            goal_id, payload
        )
        return _dump(goal)

    @app.delete("/calories/goals/{goal_id}", status_code=204)
    async def delete_goal(goal_id: str, request: Request) -> Response:
        _container(request).calorie_repository.delete_calorie_goal(goal_id)
        return Response(status_code=204)

    # Aggregates

    @app.get("/calories/summary")
    async def daily_summary(
        request: Request, day: date | None = Query(default=None, alias="date")
    ) -> dict[str, object]:
        """Totals and meal breakdown for a day, today by default."""
        summary = _container(request).calorie_repository.daily_summary(day)
        return _summary_payload(summary)

    @app.get("/calories/progress")
    async def calorie_progress(
        request: Request, day: date | None = Query(default=None, alias="date")
    ) -> dict[str, object]:
        return asdict(_container(request).calorie_repository.calorie_progress(day))

    @app.get("/calories/stats")
    async def calorie_stats(request: Request, limit: int = 5) -> dict[str, object]:
        """Averages, most consumed foods and suggestions."""
        repository = _container(request).calorie_repository
        return {
            "weeklyAverage": repository.weekly_average(),
            "monthlyAverage": repository.monthly_average(),
            "mostConsumedFoods": [
                {
                    "food": _dump(item.food),
                    "count": item.count,
                    "totalCalories": item.total_calories,
                }
                for item in repository.most_consumed_foods(limit)
            ],
            "suggestions": [_dump(food) for food in repository.food_suggestions(limit)],
            "storageSize": repository.storage_size_formatted(),
        }

    @app.get("/calories/export")
    async def export_calories(request: Request) -> Response:
        document = _container(request).calorie_repository.export_data()
        return Response(content=document, media_type="application/json")

    @app.post("/calories/import")
    async def import_calories(request: Request) -> dict[str, object]:
        """Import an exported document; missing keys are left untouched."""
        raw = (await request.body()).decode("utf-8")
        repository = _container(request).calorie_repository
        repository.import_data(raw)
        return {
            "foodItems": len(repository.food_items),
            "calorieEntries": len(repository.calorie_entries),
            "calorieGoals": len(repository.calorie_goals),
        }

    # Todos

    @app.get("/todos")
    async def list_todos(  # noqa: PLR0913
        request: Request,
        completed: bool | None = None,
        priority: Priority | None = None,
        category: str | None = None,
        search: str | None = None,
        sort_field: TodoSortField = TodoSortField.CREATED_AT,
        sort_direction: SortDirection = SortDirection.DESC,
    ) -> dict[str, object]:
        """Filtered, sorted todo list."""
        todos = _container(request).todo_repository.filtered_todos(
            TodoFilter(
                completed=completed,
                priority=priority,
                category=category,
                search=search,
            ),
            TodoSort(field=sort_field, direction=sort_direction),
        )
        return {"todos": [_dump(todo) for todo in todos]}

    @app.post("/todos", status_code=201)
    async def add_todo(payload: CreateTodoInput, request: Request) -> dict[str, object]:
        return _dump(_container(request).todo_repository.add_todo(payload))

    @app.get("/todos/stats")
    async def todo_stats(request: Request) -> dict[str, object]:
        return _stats_payload(_container(request).todo_repository.todo_stats())

    @app.get("/todos/export")
    async def export_todos(request: Request) -> Response:
        document = _container(request).todo_repository.export_todos()
        return Response(content=document, media_type="application/json")

    @app.post("/todos/import")
    async def import_todos(request: Request) -> dict[str, object]:
        raw = (await request.body()).decode("utf-8")
        todos = _container(request).todo_repository.import_todos(raw)
        return {"imported": len(todos)}

    @app.post("/todos/batch-update")
    async def batch_update_todos(
        payload: BatchUpdateRequest, request: Request
    ) -> dict[str, object]:
        todos = _container(request).todo_repository.batch_update_todos(
            payload.ids, payload.changes
        )
        return {"todos": [_dump(todo) for todo in todos]}

    @app.post("/todos/batch-delete")
    async def batch_delete_todos(
        payload: BatchDeleteRequest, request: Request
    ) -> dict[str, object]:
        deleted = _container(request).todo_repository.batch_delete_todos(payload.ids)
        return {"deleted": deleted}

    @app.post("/todos/undo")
    async def undo(request: Request) -> dict[str, object]:
        repository = _container(request).todo_repository
        return {"changed": repository.undo(), **_history_flags(request)}

    @app.post("/todos/redo")
    async def redo(request: Request) -> dict[str, object]:
        repository = _container(request).todo_repository
        return {"changed": repository.redo(), **_history_flags(request)}

    @app.delete("/todos", status_code=204)
    async def clear_todos(request: Request) -> Response:
        _container(request).todo_repository.clear_all_todos()
        return Response(status_code=204)

    @app.patch("/todos/{todo_id}")
    async def update_todo(
        todo_id: str, payload: UpdateTodoInput, request: Request
    ) -> dict[str, object]:
        todo = _container(request).todo_repository.update_todo(todo_id, payload)
        return _dump(todo)

    @app.post("/todos/{todo_id}/toggle")
    async def toggle_todo(todo_id: str, request: Request) -> dict[str, object]:
        return _dump(_container(request).todo_repository.toggle_todo(todo_id))

    @app.delete("/todos/{todo_id}", status_code=204)
    async def delete_todo(todo_id: str, request: Request) -> Response:
        _container(request).todo_repository.delete_todo(todo_id)
        return Response(status_code=204)

    return app


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _dump(model: BaseModel) -> dict[str, object]:
    return model.model_dump(mode="json", by_alias=True)


def _entry_payload(entry: EntryWithFood) -> dict[str, object]:
    return {
        **_dump(entry.entry),
        "food": _dump(entry.food),
        "totalCalories": entry.total_calories,
        "totalNutrition": entry.total_nutrition.model_dump(
            mode="json", exclude_none=True
        ),
    }


def _summary_payload(summary: DailySummary) -> dict[str, object]:
    return {
        "date": summary.date,
        "totalCalories": summary.total_calories,
        "totalNutrition": summary.total_nutrition.model_dump(
            mode="json", exclude_none=True
        ),
        "mealBreakdown": asdict(summary.meal_breakdown),
        "entries": [_entry_payload(entry) for entry in summary.entries],
    }


def _stats_payload(stats: TodoStats) -> dict[str, object]:
    return {
        "total": stats.total,
        "completed": stats.completed,
        "pending": stats.pending,
        "highPriority": stats.high_priority,
        "categories": stats.categories,
        "completionRate": stats.completion_rate,
        "priorityStats": stats.priority_stats,
    }


def _history_flags(request: Request) -> dict[str, bool]:
    repository = _container(request).todo_repository
    return {"canUndo": repository.can_undo, "canRedo": repository.can_redo}
