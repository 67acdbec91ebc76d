"""Backup document models for export and import."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from health_tracker.domain.entries import DailyEntry, is_valid_day
from health_tracker.domain.settings import ActivityLevel, Gender, UserSettings


class EntryDocument(BaseModel):
    """Daily entry as written to a backup document."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: str
    weight: float | None = Field(default=None, gt=0, le=500)
    water: int = Field(default=0, ge=0)
    calories: int | None = Field(default=None, ge=0)
    note: str | None = None
    activity: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        if not is_valid_day(value):
            raise ValueError("date must be a YYYY-MM-DD calendar day")
        return value

    @field_validator("water", mode="before")
    @classmethod
    def _default_water(cls, value: object) -> object:
        return 0 if value is None else value

    @classmethod
    def from_entry(cls, entry: DailyEntry) -> "EntryDocument":
        """Build a document row from a domain entry."""
        return cls(
            date=entry.date,
            weight=entry.weight,
            water=entry.water,
            calories=entry.calories,
            note=entry.note,
            activity=entry.activity,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )

    def to_entry(self) -> DailyEntry:
        """Return the domain entry for this row."""
        return DailyEntry(
            date=self.date,
            weight=self.weight,
            water=self.water,
            calories=self.calories,
            note=self.note,
            activity=self.activity,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class SettingsDocument(BaseModel):
    """Settings as written to a backup document."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    target_weight: float = Field(default=70, gt=0, lt=500, alias="targetWeight")
    unit: Literal["kg", "lb"] = "kg"
    height: float | None = Field(default=170, gt=0)
    age: int | None = Field(default=None, gt=0)
    gender: Gender = Gender.MALE
    activity_level: ActivityLevel = Field(
        default=ActivityLevel.SEDENTARY, alias="activityLevel"
    )

    @classmethod
    def from_settings(cls, settings: UserSettings) -> "SettingsDocument":
        """Build a document from domain settings."""
        return cls(
            target_weight=settings.target_weight,
            unit=settings.unit,
            height=settings.height,
            age=settings.age,
            gender=settings.gender,
            activity_level=settings.activity_level,
        )

    def to_settings(self) -> UserSettings:
        """Return the domain settings."""
        return UserSettings(
            target_weight=self.target_weight,
            unit=self.unit,
            height=self.height,
            age=self.age,
            gender=self.gender,
            activity_level=self.activity_level,
        )


class ExportDocument(BaseModel):
    """Full backup: entries newest first plus settings."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    weights: list[EntryDocument] = Field(default_factory=list)
    settings: SettingsDocument | None = None
    export_date: datetime | None = Field(default=None, alias="exportDate")


@dataclass(frozen=True)
class ImportReport:
    """Outcome of an additive import."""

    added: int
    skipped: int
    settings_replaced: bool
