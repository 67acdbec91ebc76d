"""SQLite implementation of the record store."""

import asyncio
import json
import logging
import sqlite3
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from health_tracker.errors import StorageFault
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

_logger = logging.getLogger(__name__)

_T = TypeVar("_T")

# record_key has no declared type so integer and text keys keep their own
# ordering (legacy ids numerically, ISO dates lexically).
_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS records (
    collection TEXT NOT NULL,
    record_key NOT NULL,
    value TEXT NOT NULL,
    PRIMARY KEY (collection, record_key)
);

CREATE TABLE IF NOT EXISTS sequences (
    collection TEXT PRIMARY KEY,
    last_key INTEGER NOT NULL
);
"""

_UPSERT_SQL = """
INSERT INTO records (collection, record_key, value) VALUES (?, ?, ?)
ON CONFLICT (collection, record_key) DO UPDATE SET value = excluded.value
"""

_BUMP_SEQUENCE_SQL = """
INSERT INTO sequences (collection, last_key) VALUES (?, ?)
ON CONFLICT (collection) DO UPDATE SET last_key = MAX(last_key, excluded.last_key)
"""


async def _run(func: Callable[..., _T], *args: object) -> _T:
    """Run a blocking SQLite call in a worker thread."""
    try:
        return await asyncio.to_thread(func, *args)
    except sqlite3.Error as exc:
        raise StorageFault(f"SQLite operation failed: {exc}") from exc


def _fetchone(
    connection: sqlite3.Connection, sql: str, params: tuple[object, ...]
) -> tuple | None:
    return connection.execute(sql, params).fetchone()


def _fetchall(
    connection: sqlite3.Connection, sql: str, params: tuple[object, ...]
) -> list[tuple]:
    return connection.execute(sql, params).fetchall()


def _next_key(connection: sqlite3.Connection, collection: str) -> int:
    row = connection.execute(
        "SELECT last_key FROM sequences WHERE collection = ?", (collection,)
    ).fetchone()
    key = (row[0] if row else 0) + 1
    connection.execute(_BUMP_SEQUENCE_SQL, (collection, key))
    return key


@dataclass
class SqliteTransaction(StoreTransaction):
    """Transaction bound to one SQLite connection."""

    connection: sqlite3.Connection
    scope: frozenset[str]
    mode: TransactionMode

    def _spec(self, collection: str, write: bool = False) -> CollectionSpec:
        spec = get_collection(collection)
        if spec.name not in self.scope:
            raise StorageFault(
                f"Collection {collection} is not part of this transaction"
            )
        if write and self.mode != "readwrite":
            raise StorageFault(f"Cannot write {collection} in a readonly transaction")
        return spec

    async def get(self, collection: str, key: RecordKey) -> Record | None:
        """Return the record stored under key."""
        self._spec(collection)
        row = await _run(
            _fetchone,
            self.connection,
            "SELECT value FROM records WHERE collection = ? AND record_key = ?",
            (collection, key),
        )
        return json.loads(row[0]) if row else None

    async def get_all(self, collection: str) -> list[Record]:
        """Return every record of the collection ordered by key."""
        self._spec(collection)
        rows = await _run(
            _fetchall,
            self.connection,
            "SELECT value FROM records WHERE collection = ? ORDER BY record_key",
            (collection,),
        )
        return [json.loads(row[0]) for row in rows]

    async def count(self, collection: str) -> int:
        """Return the number of records in the collection."""
        self._spec(collection)
        row = await _run(
            _fetchone,
            self.connection,
            "SELECT COUNT(*) FROM records WHERE collection = ?",
            (collection,),
        )
        return int(row[0]) if row else 0

    async def put(self, collection: str, value: Record) -> RecordKey:
        """Insert or replace a record, assigning a sequence key when needed."""
        spec = self._spec(collection, write=True)
        record = dict(value)
        key = record_key(spec, record)
        if key is None:
            if not spec.auto_increment:
                raise StorageFault(
                    f"Record for {collection} is missing key '{spec.key_path}'"
                )
            key = await _run(_next_key, self.connection, collection)
            record[spec.key_path] = key
        elif spec.auto_increment and isinstance(key, int):
            await _run(self.connection.execute, _BUMP_SEQUENCE_SQL, (collection, key))
        try:
            payload = json.dumps(record)
        except (TypeError, ValueError) as exc:
            raise StorageFault(f"Record for {collection} is not serializable") from exc
        await _run(self.connection.execute, _UPSERT_SQL, (collection, key, payload))
        return key

    async def delete(self, collection: str, key: RecordKey) -> None:
        """Delete a record by key; missing keys are ignored."""
        self._spec(collection, write=True)
        await _run(
            self.connection.execute,
            "DELETE FROM records WHERE collection = ? AND record_key = ?",
            (collection, key),
        )

    async def clear(self, collection: str) -> None:
        """Delete all records of the collection."""
        self._spec(collection, write=True)
        await _run(
            self.connection.execute,
            "DELETE FROM records WHERE collection = ?",
            (collection,),
        )


@dataclass
class SqliteRecordStore(RecordStore):
    """Record store persisted in a local SQLite file.

    Every transaction opens its own connection. Write transactions start with
    ``BEGIN IMMEDIATE`` so two processes cannot interleave check-then-write
    sequences.
    """

    db_path: Path
    timeout_seconds: float = 5.0

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(
            self.db_path,
            timeout=self.timeout_seconds,
            isolation_level=None,
            check_same_thread=False,
        )

    def _initialize(self) -> int:
        connection = self._connect()
        try:
            previous = connection.execute("PRAGMA user_version").fetchone()[0]
            connection.executescript(_SCHEMA_SQL)
            if previous < SCHEMA_VERSION:
                connection.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            return previous
        finally:
            connection.close()

    async def initialize(self) -> int:
        """Create tables and bump the schema version; return the old version."""
        previous = await _run(self._initialize)
        if previous < SCHEMA_VERSION:
            _logger.info(
                "Upgraded store schema: path=%s from=%s to=%s",
                self.db_path,
                previous,
                SCHEMA_VERSION,
            )
        return previous

    async def schema_version(self) -> int:
        """Return the schema version recorded in the database file."""
        connection = await _run(self._connect)
        try:
            row = await _run(_fetchone, connection, "PRAGMA user_version", ())
        finally:
            await asyncio.to_thread(connection.close)
        return int(row[0]) if row else 0

    @asynccontextmanager
    async def transaction(
        self, collections: Sequence[str], mode: TransactionMode = "readonly"
    ) -> AsyncIterator[StoreTransaction]:
        """Open a transaction that commits on success and rolls back on error."""
        scope = frozenset(get_collection(name).name for name in collections)
        connection = await _run(self._connect)
        try:
            begin = "BEGIN IMMEDIATE" if mode == "readwrite" else "BEGIN"
            await _run(connection.execute, begin)
            try:
                yield SqliteTransaction(connection=connection, scope=scope, mode=mode)
            except BaseException:
                if connection.in_transaction:
                    await _run(connection.execute, "ROLLBACK")
                raise
            await _run(connection.execute, "COMMIT")
        finally:
            await asyncio.to_thread(connection.close)

    async def close(self) -> None:
        """Connections are per transaction; nothing is held open."""
        return None
