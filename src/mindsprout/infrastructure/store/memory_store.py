"""In-process RecordStore for tests and throwaway sessions."""

import copy

from mindsprout.domain.exceptions import StoreError
from mindsprout.domain.ports import Record, RecordStore


class MemoryRecordStore(RecordStore):
    """
    Keeps records in plain dicts. Records are deep-copied on the way in and
    out so callers never share state with the store.
    """

    def __init__(self, initial: dict[str, list[Record]] | None = None):
        self._collections: dict[str, dict[str, Record]] = {}
        for collection, records in (initial or {}).items():
            self._collections[collection] = {r["id"]: copy.deepcopy(r) for r in records}

    async def get_all(self, collection: str) -> list[Record]:
        return [copy.deepcopy(r) for r in self._collections.get(collection, {}).values()]

    async def put(self, collection: str, record: Record) -> None:
        record_id = record.get("id")
        if not record_id:
            raise StoreError(f"Record in {collection!r} has no id")
        self._collections.setdefault(collection, {})[record_id] = copy.deepcopy(record)

    async def delete(self, collection: str, record_id: str) -> None:
        self._collections.get(collection, {}).pop(record_id, None)
