import asyncio

import pytest

from billforge.domain.errors import NotFound
from billforge.infrastructure.store import CLIENTS, DOCUMENTS, InMemoryRecordStore


def test_crud_roundtrip() -> None:
    store = InMemoryRecordStore()

    async def scenario():
        await store.insert(CLIENTS, {"id": "a", "name": "Acme"})
        await store.insert(CLIENTS, {"id": "b", "name": "Bolt"})
        assert [r["id"] for r in await store.list(CLIENTS)] == ["b", "a"]

        await store.update(CLIENTS, {"id": "a", "name": "Acme Corp"})
        assert (await store.get(CLIENTS, "a"))["name"] == "Acme Corp"

        assert await store.delete(CLIENTS, "a") is True
        assert await store.delete(CLIENTS, "a") is False
        with pytest.raises(NotFound):
            await store.get(CLIENTS, "a")

    asyncio.run(scenario())


def test_stored_records_are_isolated_from_callers() -> None:
    store = InMemoryRecordStore()
    record = {"id": "d1", "items": [{"id": "1"}]}
    asyncio.run(store.insert(DOCUMENTS, record))
    record["items"].append({"id": "2"})

    fetched = asyncio.run(store.get(DOCUMENTS, "d1"))
    assert fetched["items"] == [{"id": "1"}]
    fetched["items"].clear()
    assert asyncio.run(store.get(DOCUMENTS, "d1"))["items"] == [{"id": "1"}]


def test_update_of_missing_record_raises() -> None:
    with pytest.raises(NotFound):
        asyncio.run(InMemoryRecordStore().update(DOCUMENTS, {"id": "nope"}))


def test_upsert_inserts_then_replaces() -> None:
    store = InMemoryRecordStore()
    asyncio.run(store.upsert(CLIENTS, {"id": "x", "name": "One"}))
    asyncio.run(store.upsert(CLIENTS, {"id": "x", "name": "Two"}))
    assert asyncio.run(store.list(CLIENTS)) == [{"id": "x", "name": "Two"}]


def test_unknown_collection_is_rejected() -> None:
    with pytest.raises(ValueError):
        asyncio.run(InMemoryRecordStore().list("invoices"))
