"""On-disk persistence for the single :class:`~openapi_sync.models.CacheRecord`.

The record is one JSON file (``.openapi-sync.cache.json`` by default).  Writes
go through :func:`~openapi_sync.config._atomic_write`, so a concurrent reader
sees either the previous record or the new one, never a partial file.  There
is no locking: if two processes write at once, the last rename wins, and each
writer's record is self-consistent.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from openapi_sync.config import _atomic_write
from openapi_sync.exceptions import CacheCorruptedError, CacheNotFoundError, CacheWriteError
from openapi_sync.models import CacheRecord


class CacheStore:
    """Read and write the cache record file.

    Args:
        path: Canonical path of the record file.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> CacheRecord:
        """Load and validate the persisted record.

        Raises:
            CacheNotFoundError: If the file is missing or unreadable.
            CacheCorruptedError: If the content is not a valid record.
        """
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CacheNotFoundError(f"No cache record at {self._path}: {exc}") from exc
        try:
            return CacheRecord.model_validate_json(text)
        except (ValidationError, ValueError) as exc:
            raise CacheCorruptedError(f"Invalid cache record at {self._path}: {exc}") from exc

    def save(self, record: CacheRecord) -> None:
        """Persist *record* atomically (temp file + rename in the same directory).

        Raises:
            CacheWriteError: If serialisation or any filesystem step fails.
        """
        try:
            data = record.model_dump_json(indent=2) + "\n"
            _atomic_write(self._path, data)
        except (OSError, ValueError) as exc:
            raise CacheWriteError(f"Failed to write cache record {self._path}: {exc}") from exc

    def clear(self) -> bool:
        """Delete the record file.  Returns True if a file was removed."""
        try:
            self._path.unlink()
        except FileNotFoundError:
            return False
        return True
