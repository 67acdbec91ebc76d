"""Export and additive import of tracker data."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

from pydantic import ValidationError

from health_tracker.domain.backup import (
    EntryDocument,
    ExportDocument,
    ImportReport,
    SettingsDocument,
)
from health_tracker.errors import ValidationFault
from health_tracker.services.entries import EntryRepository
from health_tracker.services.records import (
    entry_to_record,
    settings_to_record,
    validate_entry,
    validate_settings,
)
from health_tracker.services.store import DAILY_ENTRIES, SETTINGS, RecordStore

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class BackupService:
    """Build backup documents and merge them back into the store."""

    store: RecordStore
    repository: EntryRepository
    clock: Callable[[], datetime] = field(default=_utc_now)

    async def export_document(self) -> ExportDocument:
        """Return all entries (newest first) and settings."""
        entries = await self.repository.load_all()
        settings = await self.repository.load_settings()
        return ExportDocument(
            weights=[EntryDocument.from_entry(entry) for entry in entries],
            settings=SettingsDocument.from_settings(settings),
            export_date=self.clock(),
        )

    async def export_json(self) -> str:
        """Serialize the export document as JSON text."""
        document = await self.export_document()
        return document.model_dump_json(by_alias=True, indent=2)

    async def import_json(self, text: str | bytes) -> ImportReport:
        """Parse a JSON backup and import it."""
        try:
            document = ExportDocument.model_validate_json(text)
        except ValidationError as exc:
            raise ValidationFault(f"Invalid backup document: {exc}") from exc
        return await self.import_document(document)

    async def import_document(self, document: ExportDocument) -> ImportReport:
        """Add entries for days not yet logged and replace settings if given.

        Existing days are left untouched and days after today are rejected.
        Everything is written in one transaction.
        """
        entries = [row.to_entry() for row in document.weights]
        today = self.repository.today()
        for entry in entries:
            validate_entry(entry, today)
        settings = document.settings.to_settings() if document.settings else None
        if settings is not None:
            validate_settings(settings)

        now = self.clock()
        added = 0
        skipped = 0
        async with self.store.transaction(
            [DAILY_ENTRIES.name, SETTINGS.name], "readwrite"
        ) as tx:
            for entry in entries:
                if await tx.get(DAILY_ENTRIES.name, entry.date) is not None:
                    skipped += 1
                    continue
                stamped = replace(
                    entry,
                    created_at=entry.created_at or now,
                    updated_at=entry.updated_at or now,
                )
                await tx.put(DAILY_ENTRIES.name, entry_to_record(stamped))
                added += 1
            if settings is not None:
                await tx.put(SETTINGS.name, settings_to_record(settings))

        _logger.info(
            "Backup imported: added=%s skipped=%s settings_replaced=%s",
            added,
            skipped,
            settings is not None,
        )
        return ImportReport(
            added=added, skipped=skipped, settings_replaced=settings is not None
        )
