"""
Key-Value Stores

The lowest storage layer: named slots holding text documents.

TRADEOFFS:
- One document per slot means every save rewrites the whole collection
  (fine for a handful of home games a year)
- No transactions across slots; each write is atomic on its own
"""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from poker_dues.services.storage.interface import StorageError


class KeyValueStore(ABC):
    """Get/set text documents by slot name."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored document, or None if the slot is empty."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """
    One `<slot>.json` file per slot inside a data directory.

    Writes go to a temp file in the same directory and are swapped in
    with `os.replace`, so a crash never leaves a half-written document.
    """

    def __init__(self, data_dir: Union[str, Path], write_attempts: int = 3):
        self._data_dir = Path(data_dir)
        self._write_attempts = write_attempts

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid storage slot name: {key!r}")
        return self._data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read slot {key}: {e}")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        writer = retry(
            stop=stop_after_attempt(self._write_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )(self._atomic_write)
        try:
            writer(path, value)
        except OSError as e:
            raise StorageError(f"Failed to write slot {key}: {e}")

    def _atomic_write(self, path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.stem}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete slot {key}: {e}")
