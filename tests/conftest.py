"""Shared test fixtures."""

import copy
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import pytest

from health_tracker.config import Settings
from health_tracker.containers import AppContainer
from health_tracker.errors import StorageFault
from health_tracker.services.backup import BackupService
from health_tracker.services.entries import EntryRepository
from health_tracker.services.migration import SchemaMigrator
from health_tracker.services.store import (
    SCHEMA_VERSION,
    CollectionSpec,
    Record,
    RecordKey,
    RecordStore,
    StoreTransaction,
    TransactionMode,
    get_collection,
    record_key,
)

FIXED_NOW = datetime(2024, 3, 10, 12, 0, tzinfo=UTC)


def fixed_clock() -> datetime:
    return FIXED_NOW


@dataclass
class InMemoryTransaction(StoreTransaction):
    """Transaction over a working copy of the in-memory data."""

    data: dict[str, dict[RecordKey, Record]]
    sequences: dict[str, int]
    scope: frozenset[str]
    mode: TransactionMode

    def _spec(self, collection: str, write: bool = False) -> CollectionSpec:
        spec = get_collection(collection)
        if spec.name not in self.scope:
            raise StorageFault(f"{collection} outside transaction scope")
        if write and self.mode != "readwrite":
            raise StorageFault("readonly transaction")
        return spec

    async def get(self, collection: str, key: RecordKey) -> Record | None:
        self._spec(collection)
        return copy.deepcopy(self.data.get(collection, {}).get(key))

    async def get_all(self, collection: str) -> list[Record]:
        self._spec(collection)
        rows = self.data.get(collection, {})
        return [copy.deepcopy(rows[key]) for key in sorted(rows)]

    async def count(self, collection: str) -> int:
        self._spec(collection)
        return len(self.data.get(collection, {}))

    async def put(self, collection: str, value: Record) -> RecordKey:
        spec = self._spec(collection, write=True)
        record = copy.deepcopy(value)
        key = record_key(spec, record)
        if key is None:
            if not spec.auto_increment:
                raise StorageFault("missing key")
            key = self.sequences.get(collection, 0) + 1
            record[spec.key_path] = key
        if spec.auto_increment and isinstance(key, int):
            self.sequences[collection] = max(self.sequences.get(collection, 0), key)
        self.data.setdefault(collection, {})[key] = record
        return key

    async def delete(self, collection: str, key: RecordKey) -> None:
        self._spec(collection, write=True)
        self.data.get(collection, {}).pop(key, None)

    async def clear(self, collection: str) -> None:
        self._spec(collection, write=True)
        self.data[collection] = {}


@dataclass
class InMemoryRecordStore(RecordStore):
    """In-memory record store for tests; commits only on clean exit."""

    data: dict[str, dict[RecordKey, Record]] = field(default_factory=dict)
    sequences: dict[str, int] = field(default_factory=dict)
    fail_on_commit: bool = False
    schema: int = 0
    closed: bool = False
    transactions: list[tuple[frozenset[str], str]] = field(default_factory=list)

    @asynccontextmanager
    async def transaction(
        self, collections: Sequence[str], mode: TransactionMode = "readonly"
    ) -> AsyncIterator[StoreTransaction]:
        scope = frozenset(get_collection(name).name for name in collections)
        self.transactions.append((scope, mode))
        working = copy.deepcopy(self.data)
        sequences = dict(self.sequences)
        yield InMemoryTransaction(working, sequences, scope, mode)
        if self.fail_on_commit:
            raise StorageFault("commit failed")
        if mode == "readwrite":
            self.data = working
            self.sequences = sequences

    async def initialize(self) -> int:
        previous = self.schema
        self.schema = SCHEMA_VERSION
        return previous

    async def close(self) -> None:
        self.closed = True

    def seed(self, collection: str, records: list[Record]) -> None:
        """Write records directly, bypassing transactions."""
        spec = get_collection(collection)
        rows = self.data.setdefault(collection, {})
        for record in records:
            stored = copy.deepcopy(record)
            key = record_key(spec, stored)
            if key is None:
                key = self.sequences.get(collection, 0) + 1
                stored[spec.key_path] = key
            if isinstance(key, int):
                self.sequences[collection] = max(self.sequences.get(collection, 0), key)
            rows[key] = stored


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(database_path=tmp_path / "tracker.db", timezone="UTC")


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def entry_repository(record_store: InMemoryRecordStore) -> EntryRepository:
    return EntryRepository(record_store, clock=fixed_clock, timezone=UTC)


@pytest.fixture
def container(
    settings: Settings,
    record_store: InMemoryRecordStore,
    entry_repository: EntryRepository,
) -> AppContainer:
    async def close_resources() -> None:
        await record_store.close()

    return AppContainer(
        settings=settings,
        timezone=UTC,
        record_store=record_store,
        migrator=SchemaMigrator(record_store, timezone=UTC, clock=fixed_clock),
        entry_repository=entry_repository,
        backup_service=BackupService(record_store, entry_repository, clock=fixed_clock),
        close_resources=close_resources,
    )
