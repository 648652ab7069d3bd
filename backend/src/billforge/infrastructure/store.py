"""
Record store interface and the in-memory backend.

The billing engine keeps no state of its own. Documents, ledger
transactions, the business profile, clients and catalog items live in a
record store reached through simple CRUD calls keyed by id.

Design Decisions:
- Abstract store interface for multiple backends (memory, SQL)
- Records are JSON-friendly dicts; domain models convert on the way in/out
- ``list`` returns newest records first
- Updates replace the whole record (last write wins)
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any

from billforge.domain.errors import NotFound

logger = logging.getLogger(__name__)


DOCUMENTS = "documents"
TRANSACTIONS = "transactions"
PROFILE = "profile"
CLIENTS = "clients"
CATALOG = "catalog"

COLLECTIONS = (DOCUMENTS, TRANSACTIONS, PROFILE, CLIENTS, CATALOG)

PROFILE_ID = "default"

Record = dict[str, Any]


def _check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection: {collection}")


class RecordStore(ABC):
    """Abstract interface for record storage backends."""

    @abstractmethod
    async def get(self, collection: str, record_id: str) -> Record:
        """Return a record. Raises NotFound if it does not exist."""
        pass

    @abstractmethod
    async def list(self, collection: str) -> list[Record]:
        """Return all records of a collection, newest first."""
        pass

    @abstractmethod
    async def insert(self, collection: str, record: Record) -> Record:
        """Store a new record keyed by its ``id``."""
        pass

    @abstractmethod
    async def update(self, collection: str, record: Record) -> Record:
        """Replace an existing record. Raises NotFound if it does not exist."""
        pass

    @abstractmethod
    async def delete(self, collection: str, record_id: str) -> bool:
        """Delete a record. Returns True if deleted."""
        pass

    async def upsert(self, collection: str, record: Record) -> Record:
        """Insert or replace a record."""
        try:
            return await self.update(collection, record)
        except NotFound:
            return await self.insert(collection, record)


class InMemoryRecordStore(RecordStore):
    """
    Process-local store for development and tests.

    Records are deep-copied in and out so callers cannot mutate stored state.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Record]] = {name: {} for name in COLLECTIONS}

    async def get(self, collection: str, record_id: str) -> Record:
        _check_collection(collection)
        try:
            return copy.deepcopy(self._data[collection][record_id])
        except KeyError:
            raise NotFound(collection, record_id) from None

    async def list(self, collection: str) -> list[Record]:
        _check_collection(collection)
        return [copy.deepcopy(record) for record in reversed(self._data[collection].values())]

    async def insert(self, collection: str, record: Record) -> Record:
        _check_collection(collection)
        record_id = str(record["id"])
        if record_id in self._data[collection]:
            raise ValueError(f"{collection} record already exists: {record_id}")
        self._data[collection][record_id] = copy.deepcopy(record)
        logger.debug(f"Inserted {collection}/{record_id}")
        return copy.deepcopy(record)

    async def update(self, collection: str, record: Record) -> Record:
        _check_collection(collection)
        record_id = str(record["id"])
        if record_id not in self._data[collection]:
            raise NotFound(collection, record_id)
        self._data[collection][record_id] = copy.deepcopy(record)
        return copy.deepcopy(record)

    async def delete(self, collection: str, record_id: str) -> bool:
        _check_collection(collection)
        return self._data[collection].pop(record_id, None) is not None
