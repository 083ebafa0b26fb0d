"""In-memory collection storage, used by tests and throwaway sessions."""

import copy
from typing import Any, Optional

from wallet_ledger.services.storage.interface import CollectionStorageInterface


class InMemoryStorage(CollectionStorageInterface):
    """
    Dict-backed storage.

    Values are deep-copied on the way in and out so callers can never
    mutate what is stored by holding on to a reference.
    """

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, collection: str) -> Optional[Any]:
        if collection not in self._data:
            return None
        return copy.deepcopy(self._data[collection])

    async def set(self, collection: str, value: Any) -> None:
        self._data[collection] = copy.deepcopy(value)

    async def remove(self, collection: str) -> bool:
        return self._data.pop(collection, None) is not None

    def raw(self, collection: str) -> Optional[Any]:
        """Direct access for assertions in tests."""
        return self._data.get(collection)
