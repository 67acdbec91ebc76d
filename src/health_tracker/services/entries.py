"""Typed access to daily entries and settings."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, tzinfo

from health_tracker.domain.entries import DailyEntry, parse_day
from health_tracker.domain.settings import DEFAULT_SETTINGS, UserSettings
from health_tracker.errors import ValidationFault
from health_tracker.services.records import (
    SETTINGS_KEY,
    entry_from_record,
    entry_to_record,
    settings_from_record,
    settings_to_record,
    validate_entry,
    validate_settings,
)
from health_tracker.services.store import (
    DAILY_ENTRIES,
    LEGACY_WEIGHTS,
    SETTINGS,
    Record,
    RecordStore,
)

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def sort_newest_first(entries: list[DailyEntry]) -> list[DailyEntry]:
    """Return entries ordered by date descending."""
    return sorted(entries, key=lambda entry: entry.date, reverse=True)


def parse_entry_records(records: list[Record]) -> list[DailyEntry]:
    """Parse stored entry records, dropping ones without a valid date."""
    entries = []
    for record in records:
        try:
            entries.append(entry_from_record(record))
        except ValidationFault:
            _logger.warning("Ignoring stored entry with invalid date: %r", record)
    return entries


@dataclass
class EntryRepository:
    """Repository for the daily entry collection and the settings singleton."""

    store: RecordStore
    clock: Callable[[], datetime] = field(default=_utc_now)
    timezone: tzinfo | None = None

    def today(self) -> date:
        """Return the current calendar day in the configured zone."""
        return self.clock().astimezone(self.timezone).date()

    async def load_all(self) -> list[DailyEntry]:
        """Return all entries, newest first."""
        records = await self.store.get_all(DAILY_ENTRIES.name)
        return sort_newest_first(parse_entry_records(records))

    async def get(self, day: str) -> DailyEntry | None:
        """Return the entry for a calendar day, if logged."""
        if parse_day(day) is None:
            raise ValidationFault(f"Invalid entry date: {day!r}")
        record = await self.store.get(DAILY_ENTRIES.name, day)
        return entry_from_record(record) if record else None

    async def save(self, entry: DailyEntry) -> DailyEntry:
        """Insert or fully replace the entry for its day.

        ``created_at`` of an existing day is kept; ``updated_at`` is always
        refreshed. Days after today are rejected.
        """
        validate_entry(entry, self.today())
        now = self.clock()
        async with self.store.transaction([DAILY_ENTRIES.name], "readwrite") as tx:
            existing = await tx.get(DAILY_ENTRIES.name, entry.date)
            created_at = entry.created_at or now
            if existing:
                created_at = entry_from_record(existing).created_at or created_at
            stored = replace(entry, created_at=created_at, updated_at=now)
            await tx.put(DAILY_ENTRIES.name, entry_to_record(stored))
        return stored

    async def delete_by_date(self, day: str) -> None:
        """Delete the entry for a calendar day."""
        if parse_day(day) is None:
            raise ValidationFault(f"Invalid entry date: {day!r}")
        await self.store.delete(DAILY_ENTRIES.name, day)

    async def load_settings(self) -> UserSettings:
        """Return settings, storing the defaults on first access."""
        record = await self.store.get(SETTINGS.name, SETTINGS_KEY)
        if record is not None:
            return settings_from_record(record)
        async with self.store.transaction([SETTINGS.name], "readwrite") as tx:
            record = await tx.get(SETTINGS.name, SETTINGS_KEY)
            if record is None:
                await tx.put(SETTINGS.name, settings_to_record(DEFAULT_SETTINGS))
                return DEFAULT_SETTINGS
        return settings_from_record(record)

    async def save_settings(self, settings: UserSettings) -> UserSettings:
        """Replace the settings singleton."""
        validate_settings(settings)
        await self.store.put(SETTINGS.name, settings_to_record(settings))
        return settings

    async def reset_all(self) -> None:
        """Erase all data atomically and reseed default settings.

        Legacy weights are cleared too, otherwise the next startup would
        migrate them back into the emptied daily collection.
        """
        async with self.store.transaction(
            [DAILY_ENTRIES.name, SETTINGS.name, LEGACY_WEIGHTS.name], "readwrite"
        ) as tx:
            await tx.clear(DAILY_ENTRIES.name)
            await tx.clear(SETTINGS.name)
            await tx.clear(LEGACY_WEIGHTS.name)
            await tx.put(SETTINGS.name, settings_to_record(DEFAULT_SETTINGS))
        _logger.info("All tracker data reset")
