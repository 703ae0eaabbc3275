"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON document on disk is the default backend:
1. No database setup for a single-user tool
2. The user can open, copy and back up the file directly
3. Each named value is stored as its own JSON text, mirroring the
   browser app's localStorage layout

TRADEOFFS:
- The whole document is rewritten on every change (fine at personal scale)
- One process at a time; there is no file locking

Writes go to a temporary file in the same directory which then replaces
the document, so a crash mid-write never leaves a truncated file behind.
A missing file is an empty store. A corrupt file is logged and treated as
empty; it is only overwritten on the next successful write.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union

import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from money_manager.services.storage.interface import (
    KeyValueStoreInterface,
    StorageError,
)
from money_manager.services.storage.memory import dumps, loads

logger = structlog.get_logger(__name__)


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """
    Key-value store persisted as ``{key: json_text}`` in one file.

    The document is read once and cached; every mutation rewrites it.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()
        self._data: dict[str, str] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(
                "storage_file_unreadable",
                path=str(self._path),
                error=str(e),
            )
            return {}

        if not isinstance(document, dict):
            logger.warning(
                "storage_file_unexpected_shape",
                path=str(self._path),
                found=type(document).__name__,
            )
            return {}

        # Values written by hand may not be strings; keep them as JSON text.
        return {
            str(key): value if isinstance(value, str) else json.dumps(value)
            for key, value in document.items()
        }

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write(self, data: dict[str, str]) -> None:
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _commit(self, data: dict[str, str]) -> None:
        try:
            self._write(data)
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}")
        self._data = data

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return loads(key, self._data[key])

    def set(self, key: str, value: Any) -> None:
        text = dumps(key, value)
        self._commit({**self._data, key: text})

    def delete(self, key: str) -> bool:
        if key not in self._data:
            return False
        data = dict(self._data)
        del data[key]
        self._commit(data)
        return True

    def clear(self) -> None:
        self._commit({})

    def keys(self) -> list[str]:
        return list(self._data)
