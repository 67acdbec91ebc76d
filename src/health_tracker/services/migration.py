"""Migration from the legacy weight log to per-day entries."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, tzinfo

from health_tracker.domain.entries import DailyEntry
from health_tracker.domain.migration import (
    MigrationReport,
    MigrationSkipped,
    MigrationStatus,
)
from health_tracker.services.records import (
    entry_to_record,
    is_valid_weight,
    legacy_from_record,
)
from health_tracker.services.store import DAILY_ENTRIES, LEGACY_WEIGHTS, RecordStore

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SchemaMigrator:
    """Convert legacy weight records into daily entries once.

    A non-empty ``daily_entries`` collection means the migration already ran.
    Legacy records added after that are not picked up, and clearing the daily
    collection by hand makes the next run migrate again.
    """

    store: RecordStore
    timezone: tzinfo | None = None
    clock: Callable[[], datetime] = field(default=_utc_now)

    async def migrate(self) -> MigrationReport:
        """Run the migration unless daily entries already exist."""
        async with self.store.transaction(
            [LEGACY_WEIGHTS.name, DAILY_ENTRIES.name], "readwrite"
        ) as tx:
            if await tx.count(DAILY_ENTRIES.name) > 0:
                _logger.debug("Daily entries present; legacy migration skipped")
                return MigrationReport(status=MigrationStatus.NOOP)

            migrated_at = self.clock()
            skipped: list[MigrationSkipped] = []
            migrated = 0
            for raw in await tx.get_all(LEGACY_WEIGHTS.name):
                legacy = legacy_from_record(raw)
                timestamp = parse_legacy_timestamp(legacy.date, self.timezone)
                if timestamp is None:
                    _logger.warning(
                        "Skipping legacy weight with unparseable date: id=%s date=%r",
                        raw.get("id"),
                        raw.get("date"),
                    )
                    skipped.append(
                        MigrationSkipped(
                            record_id=raw.get("id"),
                            raw_date=raw.get("date"),
                            reason="unparseable date",
                        )
                    )
                    continue
                weight = legacy.weight
                if weight is not None and not is_valid_weight(weight):
                    _logger.warning(
                        "Dropping out-of-range legacy weight: id=%s weight=%r",
                        raw.get("id"),
                        weight,
                    )
                    weight = None
                # Same-day records overwrite each other; the last one wins.
                entry = DailyEntry(
                    date=timestamp.date().isoformat(),
                    weight=weight,
                    note=legacy.note,
                    created_at=timestamp,
                    updated_at=migrated_at,
                )
                await tx.put(DAILY_ENTRIES.name, entry_to_record(entry))
                migrated += 1

        _logger.info(
            "Legacy weights migrated: migrated=%s skipped=%s", migrated, len(skipped)
        )
        return MigrationReport(
            status=MigrationStatus.COMPLETED, migrated=migrated, skipped=skipped
        )


def parse_legacy_timestamp(value: str, timezone: tzinfo | None) -> datetime | None:
    """Parse a legacy timestamp into an aware datetime in the local zone.

    Naive values are read as local wall-clock time. ``timezone=None`` uses the
    system zone.
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone) if timezone else parsed.astimezone()
    return parsed.astimezone(timezone)
