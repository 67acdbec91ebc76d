"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import tzinfo

from health_tracker.adapters.sqlite_record_store import SqliteRecordStore
from health_tracker.config import Settings, resolve_timezone
from health_tracker.services.backup import BackupService
from health_tracker.services.entries import EntryRepository
from health_tracker.services.migration import SchemaMigrator
from health_tracker.services.store import RecordStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    timezone: tzinfo | None
    record_store: RecordStore
    migrator: SchemaMigrator
    entry_repository: EntryRepository
    backup_service: BackupService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    timezone = resolve_timezone(resolved_settings.timezone)
    record_store = SqliteRecordStore(resolved_settings.database_path)
    entry_repository = EntryRepository(record_store, timezone=timezone)

    async def close_resources() -> None:
        await record_store.close()

    return AppContainer(
        settings=resolved_settings,
        timezone=timezone,
        record_store=record_store,
        migrator=SchemaMigrator(record_store, timezone=timezone),
        entry_repository=entry_repository,
        backup_service=BackupService(record_store, entry_repository),
        close_resources=close_resources,
    )
