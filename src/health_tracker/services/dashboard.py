"""Dashboard and history views built from analytics."""

from datetime import date

from health_tracker.domain.analytics import DashboardSummary, HistoryRow
from health_tracker.domain.entries import DailyEntry
from health_tracker.domain.settings import UserSettings
from health_tracker.services.analytics import (
    body_metrics,
    health_rate,
    logging_streak,
    round_half_up,
    trend_line,
    weighted_entries,
    windowed_average,
)


def build_dashboard(
    entries: list[DailyEntry], settings: UserSettings, today: date | None = None
) -> DashboardSummary:
    """Summarize newest-first entries for the dashboard."""
    reference = today or date.today()
    points = weighted_entries(entries)
    current = points[0] if points else None
    total_change = 0.0
    to_target = 0.0
    if current is not None:
        total_change = round_half_up(current.weight - points[-1].weight)
        to_target = round_half_up(current.weight - settings.target_weight)
    today_entry = next(
        (entry for entry in entries if entry.date == reference.isoformat()), None
    )
    return DashboardSummary(
        entry_count=len(entries),
        current_weight=current.weight if current else None,
        current_date=current.date if current else None,
        total_change=total_change,
        to_target=to_target,
        average_7d=windowed_average(entries, 7, reference),
        average_30d=windowed_average(entries, 30, reference),
        streak=logging_streak(entries, reference),
        trend=trend_line(entries),
        health=health_rate(entries),
        body=body_metrics(current.weight if current else None, settings),
        water_today=today_entry.water if today_entry else 0,
        calories_today=today_entry.calories if today_entry else None,
    )


def history_rows(entries: list[DailyEntry]) -> list[HistoryRow]:
    """Pair each entry with its weight change from the previous weighed day."""
    rows: list[HistoryRow] = []
    previous_weight: float | None = None
    for entry in reversed(entries):
        change = None
        if entry.weight is not None and previous_weight is not None:
            change = round_half_up(entry.weight - previous_weight)
        if entry.weight is not None:
            previous_weight = entry.weight
        rows.append(HistoryRow(entry=entry, change=change))
    rows.reverse()
    return rows
