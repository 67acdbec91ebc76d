"""Statistics derived from daily entries.

Every function here is pure: it takes entries ordered newest first (as
returned by ``EntryRepository.load_all``) and never touches storage. Missing
data yields sentinel values (0, an empty list, ``insufficient``) instead of
errors.
"""

import math
from datetime import date, timedelta

from health_tracker.domain.analytics import (
    HEALTH_MESSAGES,
    BodyMetrics,
    HealthRate,
    HealthStatus,
    TrendPoint,
)
from health_tracker.domain.entries import DailyEntry
from health_tracker.domain.settings import (
    ACTIVITY_MULTIPLIERS,
    ActivityLevel,
    Gender,
    UserSettings,
)

RATE_WINDOW_DAYS = 7
AGGRESSIVE_RATE = 1.5
HEALTHY_RATE = 0.5
CALORIE_DEFICIT = 500
KG_PER_LB = 0.45359237

_BMI_CATEGORIES = (
    (18.5, "Underweight"),
    (25.0, "Normal"),
    (30.0, "Overweight"),
)


def round_half_up(value: float, digits: int = 1) -> float:
    """Round with .5 going up, as the tracker UI displays numbers."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def weighted_entries(entries: list[DailyEntry]) -> list[DailyEntry]:
    """Return the entries that carry a weight."""
    return [entry for entry in entries if entry.weight is not None]


def windowed_average(
    entries: list[DailyEntry], window_days: int, today: date | None = None
) -> float:
    """Average weight of entries dated within the last ``window_days`` days."""
    reference = today or date.today()
    cutoff = reference - timedelta(days=window_days)
    weights = [
        entry.weight for entry in weighted_entries(entries) if entry.day >= cutoff
    ]
    if not weights:
        return 0
    return round_half_up(sum(weights) / len(weights))


def trend_line(entries: list[DailyEntry]) -> list[TrendPoint]:
    """Least-squares trend of weight against position, oldest at index 0.

    Points come back newest first, each paired with its entry's date.
    """
    points = weighted_entries(entries)
    count = len(points)
    if count < 2:
        return []
    # points are newest first, so position x of points[i] is count - 1 - i
    xs = [count - 1 - index for index in range(count)]
    ys = [entry.weight for entry in points]
    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys, strict=True))
    sum_xx = sum(x * x for x in xs)
    denominator = count * sum_xx - sum_x * sum_x
    if denominator == 0:
        return []
    slope = (count * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / count
    return [
        TrendPoint(date=entry.date, value=round_half_up(slope * x + intercept))
        for entry, x in zip(points, xs, strict=True)
    ]


def health_rate(entries: list[DailyEntry]) -> HealthRate:
    """Classify the weekly weight-loss rate between latest and a week-old anchor."""
    points = weighted_entries(entries)
    if len(points) < 2:
        return _insufficient()
    latest = points[0]
    cutoff = latest.day - timedelta(days=RATE_WINDOW_DAYS)
    anchor = next((entry for entry in points[1:] if entry.day <= cutoff), None)
    if anchor is None:
        return _insufficient()
    days = (latest.day - anchor.day).days
    rate = (anchor.weight - latest.weight) / days * RATE_WINDOW_DAYS
    status = classify_rate(rate)
    return HealthRate(
        status=status,
        message=HEALTH_MESSAGES[status],
        rate_per_week=round_half_up(rate, 2),
        latest_date=latest.date,
        anchor_date=anchor.date,
    )


def classify_rate(rate: float) -> HealthStatus:
    """Map kilograms lost per week to a health status."""
    if rate > AGGRESSIVE_RATE:
        return HealthStatus.AGGRESSIVE
    if rate > HEALTHY_RATE:
        return HealthStatus.HEALTHY
    if rate > 0:
        return HealthStatus.SLOW
    return HealthStatus.GAIN


def _insufficient() -> HealthRate:
    return HealthRate(
        status=HealthStatus.INSUFFICIENT,
        message=HEALTH_MESSAGES[HealthStatus.INSUFFICIENT],
    )


def logging_streak(entries: list[DailyEntry], today: date | None = None) -> int:
    """Count consecutive logged days ending today or yesterday."""
    if not entries:
        return 0
    reference = today or date.today()
    if (reference - entries[0].day).days > 1:
        return 0
    streak = 1
    for newer, older in zip(entries, entries[1:]):
        gap = (newer.day - older.day).days
        if gap == 0:
            continue
        if gap != 1:
            break
        streak += 1
    return streak


def bmi(weight: float | None, height_cm: float | None) -> float:
    """Body-mass index rounded to one decimal, 0 when not computable."""
    if not weight or not height_cm:
        return 0
    height_m = height_cm / 100
    return round_half_up(weight / (height_m * height_m))


def bmi_category(value: float) -> str | None:
    """Return the WHO category label for a BMI value."""
    if value <= 0:
        return None
    for upper, label in _BMI_CATEGORIES:
        if value < upper:
            return label
    return "Obese"


def _mifflin_st_jeor(
    weight: float | None,
    height_cm: float | None,
    age: int | None,
    gender: Gender,
) -> float:
    if not weight or not height_cm or not age:
        return 0
    offset = 5 if gender is Gender.MALE else -161
    return 10 * weight + 6.25 * height_cm + 5 * age + offset


def bmr(
    weight: float | None,
    height_cm: float | None,
    age: int | None,
    gender: Gender,
) -> int:
    """Basal metabolic rate (Mifflin-St Jeor), 0 when not computable."""
    return int(round_half_up(_mifflin_st_jeor(weight, height_cm, age, gender), 0))


def tdee(
    weight: float | None,
    height_cm: float | None,
    age: int | None,
    gender: Gender,
    activity_level: ActivityLevel,
) -> int:
    """Total daily energy expenditure, 0 when not computable."""
    base = _mifflin_st_jeor(weight, height_cm, age, gender)
    return int(round_half_up(base * ACTIVITY_MULTIPLIERS[activity_level], 0))


def calorie_target(daily_expenditure: int) -> int:
    """Suggested intake for a fixed daily deficit."""
    if daily_expenditure <= 0:
        return 0
    return daily_expenditure - CALORIE_DEFICIT


def body_metrics(weight: float | None, settings: UserSettings) -> BodyMetrics:
    """Compute body metrics for a weight given in the settings unit."""
    if weight and settings.unit == "lb":
        weight = weight * KG_PER_LB
    bmi_value = bmi(weight, settings.height)
    expenditure = tdee(
        weight,
        settings.height,
        settings.age,
        settings.gender,
        settings.activity_level,
    )
    return BodyMetrics(
        bmi=bmi_value,
        bmi_category=bmi_category(bmi_value),
        bmr=bmr(weight, settings.height, settings.age, settings.gender),
        tdee=expenditure,
        calorie_target=calorie_target(expenditure),
    )
