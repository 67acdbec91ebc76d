"""Tests for dashboard and history views."""

from datetime import date

from health_tracker.domain.analytics import HealthStatus
from health_tracker.domain.entries import DailyEntry
from health_tracker.domain.settings import Gender, UserSettings
from health_tracker.services.dashboard import build_dashboard, history_rows

TODAY = date(2024, 3, 10)


def _entries() -> list[DailyEntry]:
    return [
        DailyEntry(date="2024-03-10", weight=79, water=5, calories=1900),
        DailyEntry(date="2024-03-09", water=2),
        DailyEntry(date="2024-03-08", weight=79.6),
        DailyEntry(date="2024-03-03", weight=80),
    ]


def test_build_dashboard_summary() -> None:
    settings = UserSettings(target_weight=75, height=180, age=35, gender=Gender.MALE)

    summary = build_dashboard(_entries(), settings, TODAY)

    assert summary.entry_count == 4
    assert summary.current_weight == 79
    assert summary.current_date == "2024-03-10"
    assert summary.total_change == -1.0
    assert summary.to_target == 4.0
    assert summary.average_7d == 79.5
    assert summary.average_30d == 79.5
    assert summary.streak == 3
    assert summary.health.status is HealthStatus.HEALTHY
    assert summary.body.bmi == 24.4
    assert summary.water_today == 5
    assert summary.calories_today == 1900
    assert [point.date for point in summary.trend] == [
        "2024-03-10",
        "2024-03-08",
        "2024-03-03",
    ]


def test_build_dashboard_empty() -> None:
    summary = build_dashboard([], UserSettings(), TODAY)

    assert summary.entry_count == 0
    assert summary.current_weight is None
    assert summary.total_change == 0
    assert summary.to_target == 0
    assert summary.streak == 0
    assert summary.trend == []
    assert summary.health.status is HealthStatus.INSUFFICIENT
    assert summary.body.bmi == 0
    assert summary.water_today == 0
    assert summary.calories_today is None


def test_history_rows_change_from_previous_weighed_day() -> None:
    rows = history_rows(_entries())

    assert [row.entry.date for row in rows] == [
        "2024-03-10",
        "2024-03-09",
        "2024-03-08",
        "2024-03-03",
    ]
    assert [row.change for row in rows] == [-0.6, None, -0.4, None]
