"""
Aggregation
===========
Read-side computations over a TrackerDocument: daily totals, multi-day
series for charts, goal progress and schedule matching.

Calories are always recomputed from the day's food list. They are never
stored, so the food list stays the single source of truth.
"""

from __future__ import annotations

from typing import Iterable

from dailymetrics.models.document import (
    METRICS,
    ChartBar,
    DayTotals,
    ScheduleItem,
    SeriesPoint,
    TrackerDocument,
)
from dailymetrics.services.dates import weekday_for
from dailymetrics.services.document_store import ensure_day


def get_totals(doc: TrackerDocument, date_key: str) -> DayTotals:
    day = ensure_day(doc, date_key)
    return DayTotals(
        water_ml=day.water_ml,
        steps=day.steps,
        calories=sum(f.calories for f in day.foods),
    )


def get_series(doc: TrackerDocument, date_keys: Iterable[str]) -> list[SeriesPoint]:
    """One point per key, in input order. Duplicate keys give duplicate points."""
    series: list[SeriesPoint] = []
    for key in date_keys:
        totals = get_totals(doc, key)
        series.append(SeriesPoint(date_key=key, **totals.model_dump()))
    return series


def progress_percent(current: float, goal: float) -> float:
    """Share of *goal* reached, clamped to 0–100. A goal of 0 gives 0."""
    if goal <= 0:
        return 0.0
    return max(0.0, min(100.0, current / goal * 100))


def chart_scale(goal: float, values: Iterable[float]) -> float:
    """Denominator for a chart: the larger of the goal and the peak value, at least 1."""
    return max(goal, *values, 1)


def chart_bars(series: list[SeriesPoint], metric: str, goal: float) -> list[ChartBar]:
    """Scale one metric of *series* into bar heights (percent of the chart)."""
    if metric not in METRICS:
        raise ValueError(f"Unknown metric {metric!r}, expected one of {METRICS}")

    values = [getattr(point, metric) for point in series]
    scale = chart_scale(goal, values)
    return [
        ChartBar(
            date_key=point.date_key,
            weekday=weekday_for(point.date_key),
            value=value,
            percent=progress_percent(value, scale),
        )
        for point, value in zip(series, values)
    ]


def schedule_for_weekday(doc: TrackerDocument, weekday: int) -> list[ScheduleItem]:
    return [s for s in doc.schedule if s.weekday == weekday]


def schedule_for_date(doc: TrackerDocument, date_key: str) -> list[ScheduleItem]:
    return schedule_for_weekday(doc, weekday_for(date_key))
