"""In-memory byte store."""

from dataclasses import dataclass, field

from daily_tracker.services.storage import ByteStore


@dataclass
class InMemoryByteStore(ByteStore):
    """Byte store kept in a dict, for ephemeral sessions."""

    values: dict[str, bytes] = field(default_factory=dict)

    def get(self, key: str) -> bytes | None:
        return self.values.get(key)

    def set(self, key: str, value: bytes) -> None:
        self.values[key] = bytes(value)

    def delete(self, key: str) -> None:
        self.values.pop(key, None)

    def size(self, key: str) -> int:
        return len(self.values.get(key, b""))
