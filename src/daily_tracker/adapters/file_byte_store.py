"""File-backed byte store with one file per key."""

import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path

from daily_tracker.services.storage import ByteStore

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@dataclass
class FileByteStore(ByteStore):
    """Stores each key as a file under a data directory."""

    root: Path

    @classmethod
    def create(cls, root: Path) -> "FileByteStore":
        """Create a store, making the data directory if needed."""
        root.mkdir(parents=True, exist_ok=True)
        return cls(root=root)

    def get(self, key: str) -> bytes | None:
        """Return the file contents for a key, if present."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, key: str, value: bytes) -> None:
        """Write a key atomically via a temporary file."""
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        """Remove a key's file if present."""
        self._path(key).unlink(missing_ok=True)

    def size(self, key: str) -> int:
        """Return the file size for a key, 0 when absent."""
        path = self._path(key)
        return path.stat().st_size if path.exists() else 0

    def _path(self, key: str) -> Path:
        return self.root / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"
