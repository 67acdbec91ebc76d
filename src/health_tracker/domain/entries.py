"""Domain models for daily entries and legacy weight records."""

import re
from dataclasses import dataclass
from datetime import date, datetime

_DAY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class DailyEntry:
    """Measurements logged for a single calendar day."""

    date: str
    weight: float | None = None
    water: int = 0
    calories: int | None = None
    note: str | None = None
    activity: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def day(self) -> date:
        """Return the entry's calendar day."""
        return date.fromisoformat(self.date)


@dataclass(frozen=True)
class LegacyWeightRecord:
    """Pre-migration weight measurement; several may share a day."""

    id: int
    date: str
    weight: float | None
    note: str | None = None


def parse_day(value: object) -> date | None:
    """Return the calendar day for a strict ``YYYY-MM-DD`` string."""
    if not isinstance(value, str) or not _DAY_PATTERN.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def is_valid_day(value: object) -> bool:
    """Return True when value is a valid calendar-day key."""
    return parse_day(value) is not None
