"""Pydantic models for API payloads."""

from pydantic import BaseModel, ConfigDict, Field

from health_tracker.domain.backup import EntryDocument


class EntryInput(BaseModel):
    """Full replacement payload for one day's entry."""

    model_config = ConfigDict(extra="ignore")

    weight: float | None = Field(default=None, gt=0, le=500)
    water: int = Field(default=0, ge=0)
    calories: int | None = Field(default=None, ge=0)
    note: str | None = None
    activity: str | None = None


class HistoryItem(BaseModel):
    """Entry with the weight change from the previous weighed day."""

    entry: EntryDocument
    change: float | None = None
