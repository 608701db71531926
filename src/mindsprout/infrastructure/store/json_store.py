"""
JSON File Record Store: Infrastructure adapter for local persistence.

Implements RecordStore with one JSON array per collection under a data
directory. Writes go to a temporary file that atomically replaces the old
one, so a crash never leaves a half-written collection.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from mindsprout.domain.exceptions import StoreError
from mindsprout.domain.ports import Record, RecordStore

logger = logging.getLogger(__name__)


class JsonFileRecordStore(RecordStore):
    """
    Stores each collection as ``<data_dir>/<collection>.json``.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def _read(self, collection: str) -> list[Record]:
        path = self._path(collection)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to read {path}: {e}") from e

        if not isinstance(data, list):
            raise StoreError(f"Corrupt collection file {path}: expected a JSON array")
        return [r for r in data if isinstance(r, dict)]

    def _write(self, collection: str, records: list[Record]) -> None:
        path = self._path(collection)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.data_dir, prefix=f".{collection}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(records, f, ensure_ascii=False, indent=1)
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(f"Failed to write {path}: {e}") from e

    async def get_all(self, collection: str) -> list[Record]:
        return self._read(collection)

    async def put(self, collection: str, record: Record) -> None:
        record_id = record.get("id")
        if not record_id:
            raise StoreError(f"Record in {collection!r} has no id")

        records = self._read(collection)
        for i, existing in enumerate(records):
            if existing.get("id") == record_id:
                records[i] = record
                break
        else:
            records.append(record)

        self._write(collection, records)
        logger.debug(f"[store] put {collection}/{record_id}")

    async def delete(self, collection: str, record_id: str) -> None:
        records = self._read(collection)
        kept = [r for r in records if r.get("id") != record_id]
        if len(kept) == len(records):
            return
        self._write(collection, kept)
        logger.debug(f"[store] deleted {collection}/{record_id}")
