"""Domain models for derived statistics."""

from dataclasses import dataclass
from enum import Enum

from health_tracker.domain.entries import DailyEntry


class HealthStatus(Enum):
    """Classification of the weekly rate of weight change."""

    AGGRESSIVE = "aggressive"
    HEALTHY = "healthy"
    SLOW = "slow"
    GAIN = "gain"
    INSUFFICIENT = "insufficient"


HEALTH_MESSAGES = {
    HealthStatus.AGGRESSIVE: (
        "You are losing weight faster than recommended. "
        "Consider a smaller calorie deficit."
    ),
    HealthStatus.HEALTHY: "Great pace! You are losing weight at a healthy rate.",
    HealthStatus.SLOW: "Steady progress. Weight loss is slow but consistent.",
    HealthStatus.GAIN: "Your weight is stable or increasing this week.",
    HealthStatus.INSUFFICIENT: "Log at least a week of weights to see your rate.",
}


@dataclass(frozen=True)
class TrendPoint:
    """Fitted trend value for a day."""

    date: str
    value: float


@dataclass(frozen=True)
class HealthRate:
    """Weekly weight-change rate and its classification."""

    status: HealthStatus
    message: str
    rate_per_week: float | None = None
    latest_date: str | None = None
    anchor_date: str | None = None


@dataclass(frozen=True)
class BodyMetrics:
    """BMI, BMR and energy targets; zero means not computable."""

    bmi: float
    bmi_category: str | None
    bmr: int
    tdee: int
    calorie_target: int


@dataclass(frozen=True)
class HistoryRow:
    """Entry paired with the change from the previous weighed day."""

    entry: DailyEntry
    change: float | None


@dataclass(frozen=True)
class DashboardSummary:
    """Aggregated dashboard statistics."""

    entry_count: int
    current_weight: float | None
    current_date: str | None
    total_change: float
    to_target: float
    average_7d: float
    average_30d: float
    streak: int
    trend: list[TrendPoint]
    health: HealthRate
    body: BodyMetrics
    water_today: int
    calories_today: int | None
