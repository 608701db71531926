"""
Ports (interfaces) for persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Any

DECKS = "decks"
CARDS = "flashcards"

Record = dict[str, Any]


class RecordStore(ABC):
    """
    Port for a keyed record store holding plain JSON-compatible dicts.

    Every record carries an ``id`` key. All operations are awaitable and may
    fail; failures surface as StoreError and are never retried here.

    Implementations:
        - JsonFileRecordStore: one JSON file per collection on disk.
        - MemoryRecordStore: process-local dicts, used for tests and dry runs.
    """

    @abstractmethod
    async def get_all(self, collection: str) -> list[Record]:
        """
        Fetch every record in a collection.

        Args:
            collection: Collection name (``decks`` or ``flashcards``).

        Returns:
            Records in insertion order.
        """
        pass

    @abstractmethod
    async def put(self, collection: str, record: Record) -> None:
        """Insert or replace the record with the same ``id``."""
        pass

    @abstractmethod
    async def delete(self, collection: str, record_id: str) -> None:
        """Remove a record. Deleting a missing id is a no-op."""
        pass
