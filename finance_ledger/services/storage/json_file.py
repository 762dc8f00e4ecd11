"""
JSON File Storage Implementation

DESIGN DECISION: The default backend is one JSON document on local disk
holding every key. This gives us:
1. Zero setup for a personal ledger
2. Human-readable data the user can back up by copying one file
3. Atomic multi-key writes: the whole document is written to a temp
   file and moved into place with os.replace

TRADEOFFS:
- Every write rewrites the whole document (fine for personal volumes)
- Single process only; there is no file locking
"""

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from finance_ledger.services.storage.interface import (
    CorruptDataError,
    EntityStoreInterface,
    StorageError,
)


class JsonFileEntityStore(EntityStoreInterface):
    """Entity store persisted as a single JSON object on disk."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict[str, Any]:
        """Read the whole document. A missing or empty file is an empty store."""
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}")

        if not text.strip():
            return {}

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Store file {self._path} is not valid JSON: {e}")

        if not isinstance(document, dict):
            raise CorruptDataError(
                f"Store file {self._path} must contain a JSON object, "
                f"got {type(document).__name__}"
            )
        return document

    def _write_document(self, document: dict[str, Any]) -> None:
        """Write the whole document atomically (temp file + os.replace)."""
        try:
            payload = json.dumps(document, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value is not JSON serializable: {e}")

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
        except OSError as e:
            raise StorageError(f"Failed to prepare write to {self._path}: {e}")

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to write {self._path}: {e}")

    async def load(self, key: str) -> Optional[Any]:
        return self._read_document().get(key)

    async def save(self, key: str, value: Any) -> None:
        await self.save_many({key: value})

    async def save_many(self, items: dict[str, Any]) -> None:
        document = self._read_document()
        document.update(items)
        self._write_document(document)

    async def delete(self, key: str) -> None:
        document = self._read_document()
        if key in document:
            del document[key]
            self._write_document(document)
