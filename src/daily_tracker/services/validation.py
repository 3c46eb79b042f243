"""Schema validation helpers shared by repositories."""

from collections.abc import Mapping
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from daily_tracker.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_payload(
    model: type[ModelT], payload: Mapping[str, object] | BaseModel
) -> ModelT:
    """Validate a payload, raising ValidationError with every violation."""
    if isinstance(payload, model):
        return payload
    data = (
        payload.model_dump(exclude_unset=True)
        if isinstance(payload, BaseModel)
        else dict(payload)
    )
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(format_errors(exc)) from exc


def merge_update(
    model: type[ModelT], current: BaseModel, changes: Mapping[str, object]
) -> ModelT:
    """Apply partial changes to an entity and re-validate the result."""
    return validate_payload(model, {**current.model_dump(), **changes})


def format_errors(exc: PydanticValidationError) -> list[str]:
    """Flatten pydantic errors into `field: message` strings."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "input"
        messages.append(f"{location}: {error['msg']}")
    return messages
