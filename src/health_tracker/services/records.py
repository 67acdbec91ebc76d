"""Conversion between typed domain objects and stored records."""

from datetime import date, datetime

from health_tracker.domain.entries import DailyEntry, LegacyWeightRecord, parse_day
from health_tracker.domain.settings import (
    WEIGHT_UNITS,
    ActivityLevel,
    Gender,
    UserSettings,
)
from health_tracker.errors import ValidationFault
from health_tracker.services.store import Record

SETTINGS_KEY = "userSettings"
MAX_WEIGHT = 500


def is_valid_weight(weight: float | None) -> bool:
    """Return True when weight is within the storable range."""
    return weight is not None and 0 < weight <= MAX_WEIGHT


def validate_entry(entry: DailyEntry, today: date | None = None) -> None:
    """Raise ValidationFault when an entry cannot be stored.

    With ``today`` given, days after it are rejected.
    """
    day = parse_day(entry.date)
    if day is None:
        raise ValidationFault(f"Invalid entry date: {entry.date!r}")
    if today is not None and day > today:
        raise ValidationFault(f"Entry date is in the future: {entry.date}")
    if entry.weight is not None and not is_valid_weight(entry.weight):
        raise ValidationFault(
            f"Weight must be greater than 0 and at most {MAX_WEIGHT}"
        )
    if isinstance(entry.water, bool) or not isinstance(entry.water, int):
        raise ValidationFault("Water must be a whole number")
    if entry.water < 0:
        raise ValidationFault("Water cannot be negative")
    if entry.calories is not None and entry.calories < 0:
        raise ValidationFault("Calories cannot be negative")


def validate_settings(settings: UserSettings) -> None:
    """Raise ValidationFault when settings cannot be stored."""
    if not 0 < settings.target_weight < MAX_WEIGHT:
        raise ValidationFault(
            f"Target weight must be between 0 and {MAX_WEIGHT}"
        )
    if settings.unit not in WEIGHT_UNITS:
        raise ValidationFault(f"Unsupported unit: {settings.unit}")
    if settings.height is not None and settings.height <= 0:
        raise ValidationFault("Height must be positive")
    if settings.age is not None and settings.age <= 0:
        raise ValidationFault("Age must be positive")


def entry_to_record(entry: DailyEntry) -> Record:
    """Serialize an entry with the persisted field names."""
    return {
        "date": entry.date,
        "weight": entry.weight,
        "water": entry.water,
        "calories": entry.calories,
        "note": entry.note,
        "activity": entry.activity,
        "createdAt": _format_timestamp(entry.created_at),
        "updatedAt": _format_timestamp(entry.updated_at),
    }


def entry_from_record(record: Record) -> DailyEntry:
    """Parse a stored entry record."""
    day = record.get("date")
    if parse_day(day) is None:
        raise ValidationFault(f"Invalid entry date: {day!r}")
    return DailyEntry(
        date=str(day),
        weight=_optional_float(record.get("weight")),
        water=int(record.get("water") or 0),
        calories=_optional_int(record.get("calories")),
        note=_optional_str(record.get("note")),
        activity=_optional_str(record.get("activity")),
        created_at=_parse_timestamp(record.get("createdAt")),
        updated_at=_parse_timestamp(record.get("updatedAt")),
    )


def legacy_from_record(record: Record) -> LegacyWeightRecord:
    """Parse a legacy weight record without interpreting its date."""
    return LegacyWeightRecord(
        id=_optional_int(record.get("id")) or 0,
        date=str(record.get("date") or ""),
        weight=_optional_float(record.get("weight")),
        note=_optional_str(record.get("note")),
    )


def settings_to_record(settings: UserSettings) -> Record:
    """Serialize the settings singleton."""
    return {
        "id": SETTINGS_KEY,
        "targetWeight": settings.target_weight,
        "unit": settings.unit,
        "height": settings.height,
        "age": settings.age,
        "gender": settings.gender.value,
        "activityLevel": settings.activity_level.value,
    }


def settings_from_record(record: Record) -> UserSettings:
    """Parse settings, falling back to defaults for absent fields."""
    defaults = UserSettings()
    target = _optional_float(record.get("targetWeight"))
    try:
        gender = Gender(record.get("gender") or defaults.gender.value)
        activity_level = ActivityLevel(
            record.get("activityLevel") or defaults.activity_level.value
        )
    except ValueError as exc:
        raise ValidationFault(str(exc)) from exc
    return UserSettings(
        target_weight=target if target is not None else defaults.target_weight,
        unit=str(record.get("unit") or defaults.unit),
        height=(
            _optional_float(record.get("height"))
            if "height" in record
            else defaults.height
        ),
        age=_optional_int(record.get("age")),
        gender=gender,
        activity_level=activity_level,
    )


def _format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_timestamp(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _optional_float(value: object) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_int(value: object) -> int | None:
    number = _optional_float(value)
    return int(number) if number is not None else None


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None
