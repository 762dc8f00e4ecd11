"""In-memory entity store, used by tests and for embedding the ledger."""

import copy
from typing import Any, Optional

from finance_ledger.services.storage.interface import EntityStoreInterface


class InMemoryEntityStore(EntityStoreInterface):
    """
    Dict-backed store.

    Values are deep-copied on the way in and out so callers can never
    mutate stored data by accident.
    """

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    async def load(self, key: str) -> Optional[Any]:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    async def save(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def save_many(self, items: dict[str, Any]) -> None:
        # Copy everything first so a failing deepcopy leaves the store untouched
        staged = copy.deepcopy(items)
        self._data.update(staged)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def dump(self) -> dict[str, Any]:
        """Return a copy of everything stored."""
        return copy.deepcopy(self._data)
