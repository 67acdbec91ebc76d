"""Domain models for legacy-to-daily migration results."""

from dataclasses import dataclass, field
from enum import Enum


class MigrationStatus(Enum):
    """Outcome of a migration run."""

    NOOP = "noop"
    COMPLETED = "completed"


@dataclass(frozen=True)
class MigrationSkipped:
    """Legacy record excluded from migration."""

    record_id: object
    raw_date: object
    reason: str


@dataclass(frozen=True)
class MigrationReport:
    """Summary of a migration run."""

    status: MigrationStatus
    migrated: int = 0
    skipped: list[MigrationSkipped] = field(default_factory=list)
