"""Domain error taxonomy."""


class TrackerError(Exception):
    """Base class for tracker errors."""


class ValidationError(TrackerError):
    """Raised when input violates an entity schema."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("; ".join(errors) or "Invalid input")


class NotFoundError(TrackerError):
    """Raised when a referenced id does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class ReferentialIntegrityError(TrackerError):
    """Raised when a delete is blocked by a live reference."""


class StorageError(TrackerError):
    """Raised when the storage adapter fails to read or write."""
