"""Record store contract over named collections."""

from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Literal, Protocol

from health_tracker.errors import StorageFault

TransactionMode = Literal["readonly", "readwrite"]
RecordKey = str | int
Record = dict[str, object]

SCHEMA_VERSION = 2


@dataclass(frozen=True)
class CollectionSpec:
    """Key layout of a logical collection."""

    name: str
    key_path: str
    auto_increment: bool = False


LEGACY_WEIGHTS = CollectionSpec("weights", "id", auto_increment=True)
SETTINGS = CollectionSpec("settings", "id")
DAILY_ENTRIES = CollectionSpec("daily_entries", "date")

COLLECTIONS: dict[str, CollectionSpec] = {
    spec.name: spec for spec in (LEGACY_WEIGHTS, SETTINGS, DAILY_ENTRIES)
}


def get_collection(name: str) -> CollectionSpec:
    """Return the spec for a collection name."""
    spec = COLLECTIONS.get(name)
    if spec is None:
        raise StorageFault(f"Unknown collection: {name}")
    return spec


def record_key(spec: CollectionSpec, record: Record) -> RecordKey | None:
    """Return the key stored at the collection's key path, if any."""
    key = record.get(spec.key_path)
    if key is None:
        return None
    if isinstance(key, bool) or not isinstance(key, str | int):
        raise StorageFault(
            f"Invalid key for {spec.name}.{spec.key_path}: {key!r}"
        )
    return key


class StoreTransaction(Protocol):
    """Operations available inside a transaction scope."""

    async def get(self, collection: str, key: RecordKey) -> Record | None:
        """Return the record stored under key, if present."""

    async def get_all(self, collection: str) -> list[Record]:
        """Return all records of a collection ordered by key."""

    async def count(self, collection: str) -> int:
        """Return the number of records in a collection."""

    async def put(self, collection: str, value: Record) -> RecordKey:
        """Insert or replace a record and return its key."""

    async def delete(self, collection: str, key: RecordKey) -> None:
        """Delete the record stored under key."""

    async def clear(self, collection: str) -> None:
        """Delete every record of a collection."""


class RecordStore(Protocol):
    """Transactional, durable key-value store.

    ``transaction`` must be implemented; the single-call helpers each run in
    their own single-collection transaction.
    """

    def transaction(
        self, collections: Sequence[str], mode: TransactionMode = "readonly"
    ) -> AbstractAsyncContextManager[StoreTransaction]:
        """Open a transaction over the given collections."""

    async def initialize(self) -> int:
        """Prepare storage and return the schema version found before."""

    async def close(self) -> None:
        """Release resources held by the store."""

    async def get(self, collection: str, key: RecordKey) -> Record | None:
        """Return one record."""
        async with self.transaction([collection]) as tx:
            return await tx.get(collection, key)

    async def get_all(self, collection: str) -> list[Record]:
        """Return all records of a collection."""
        async with self.transaction([collection]) as tx:
            return await tx.get_all(collection)

    async def count(self, collection: str) -> int:
        """Return the size of a collection."""
        async with self.transaction([collection]) as tx:
            return await tx.count(collection)

    async def put(self, collection: str, value: Record) -> RecordKey:
        """Upsert one record."""
        async with self.transaction([collection], "readwrite") as tx:
            return await tx.put(collection, value)

    async def delete(self, collection: str, key: RecordKey) -> None:
        """Delete one record."""
        async with self.transaction([collection], "readwrite") as tx:
            await tx.delete(collection, key)

    async def clear(self, collection: str) -> None:
        """Delete a whole collection."""
        async with self.transaction([collection], "readwrite") as tx:
            await tx.clear(collection)
