import json

import pytest

from mindsprout.domain.exceptions import StoreError
from mindsprout.infrastructure.store import JsonFileRecordStore, MemoryRecordStore


@pytest.mark.asyncio
async def test_put_get_replace_delete(tmp_path):
    store = JsonFileRecordStore(tmp_path / "data")

    assert await store.get_all("decks") == []

    await store.put("decks", {"id": "d1", "name": "A"})
    await store.put("decks", {"id": "d2", "name": "B"})
    await store.put("decks", {"id": "d1", "name": "A2"})

    assert await store.get_all("decks") == [{"id": "d1", "name": "A2"}, {"id": "d2", "name": "B"}]

    await store.delete("decks", "d1")
    await store.delete("decks", "missing")
    assert await store.get_all("decks") == [{"id": "d2", "name": "B"}]

    on_disk = json.loads((tmp_path / "data" / "decks.json").read_text())
    assert on_disk == [{"id": "d2", "name": "B"}]
    assert not list((tmp_path / "data").glob("*.tmp"))


@pytest.mark.asyncio
async def test_corrupt_file_raises(tmp_path):
    (tmp_path / "flashcards.json").write_text("{not json")
    store = JsonFileRecordStore(tmp_path)

    with pytest.raises(StoreError):
        await store.get_all("flashcards")


@pytest.mark.asyncio
async def test_non_array_file_raises(tmp_path):
    (tmp_path / "decks.json").write_text('{"id": "d1"}')

    with pytest.raises(StoreError):
        await JsonFileRecordStore(tmp_path).get_all("decks")


@pytest.mark.asyncio
@pytest.mark.parametrize("store_cls", [JsonFileRecordStore, MemoryRecordStore])
async def test_record_without_id_is_rejected(tmp_path, store_cls):
    store = store_cls(tmp_path) if store_cls is JsonFileRecordStore else store_cls()

    with pytest.raises(StoreError):
        await store.put("decks", {"name": "nameless"})


@pytest.mark.asyncio
async def test_memory_store_copies_records():
    record = {"id": "d1", "tags": ["a"]}
    store = MemoryRecordStore({"decks": [record]})

    record["tags"].append("b")
    fetched = await store.get_all("decks")
    fetched[0]["tags"].append("c")

    assert await store.get_all("decks") == [{"id": "d1", "tags": ["a"]}]
