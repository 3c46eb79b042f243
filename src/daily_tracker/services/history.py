"""Bounded undo/redo history of full snapshots."""

from dataclasses import dataclass, field
from typing import Generic, Literal, TypeVar

SnapshotT = TypeVar("SnapshotT")

DEFAULT_MAX_HISTORY_SIZE = 10


@dataclass
class HistoryStack(Generic[SnapshotT]):
    """Linear undo history with a cursor.

    Recording while the cursor is behind the tail discards the redo branch.
    When the bound is exceeded the oldest snapshot is evicted and the cursor
    is left where it was instead of advancing.
    """

    max_size: int = DEFAULT_MAX_HISTORY_SIZE
    snapshots: list[SnapshotT] = field(default_factory=list)
    index: int = -1

    @property
    def can_undo(self) -> bool:
        return self.index > 0

    @property
    def can_redo(self) -> bool:
        return self.index < len(self.snapshots) - 1

    def record(self, snapshot: SnapshotT) -> None:
        """Append a snapshot after truncating any redo branch."""
        self.truncate()
        self.snapshots.append(snapshot)
        if len(self.snapshots) > self.max_size:
            self.snapshots.pop(0)
        else:
            self.index += 1

    def undo(self) -> SnapshotT | Literal[False]:
        """Step back and return the snapshot at the new cursor."""
        if not self.can_undo:
            return False
        self.index -= 1
        return self.snapshots[self.index]

    def redo(self) -> SnapshotT | Literal[False]:
        """Step forward and return the snapshot at the new cursor."""
        if not self.can_redo:
            return False
        self.index += 1
        return self.snapshots[self.index]

    def current(self) -> SnapshotT | None:
        """Snapshot under the cursor, if any."""
        if 0 <= self.index < len(self.snapshots):
            return self.snapshots[self.index]
        return None

    def truncate(self) -> None:
        """Drop every snapshot after the cursor."""
        if self.can_redo:
            del self.snapshots[self.index + 1 :]

    def clear(self) -> None:
        self.snapshots.clear()
        self.index = -1
