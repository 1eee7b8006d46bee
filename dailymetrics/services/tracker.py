"""
Health Tracker Engine
=====================
Owns the tracker document and is the only thing that mutates it.

Every public mutation runs read-modify-persist to completion before
returning: the document is changed in memory and then written through the
blob backend. A failed write raises StorageWriteError after the in-memory
change has been applied, so the caller can warn the user while the
session keeps working.

Storage, clock and id generation are injected, so tests run against a
MemoryBlobStore with a fixed clock and predictable ids.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Iterable, Optional
from zoneinfo import ZoneInfo

from dailymetrics.config import Settings, get_settings
from dailymetrics.db.blob_store import BlobStore, FileBlobStore
from dailymetrics.models.document import (
    METRICS,
    VALID_THEMES,
    ChartBar,
    DayRecord,
    DayTotals,
    FoodEntry,
    Goals,
    ScheduleItem,
    SeriesPoint,
    Theme,
    TrackerDocument,
    WorkoutEntry,
    finite_number,
)
from dailymetrics.services import aggregation, records
from dailymetrics.services.dates import DateKeyRange, last_n_dates, today_key
from dailymetrics.services.document_store import (
    DocumentStore,
    default_document,
    ensure_day,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_CHART_DAYS = 7


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HealthTracker:
    """Daily water, steps, food and workout tracking over one persisted document."""

    def __init__(
        self,
        backend: BlobStore,
        *,
        now: Optional[Clock] = None,
        id_factory: Optional[records.IdFactory] = None,
        tz: Optional[tzinfo] = None,
        default_goals: Optional[Goals] = None,
    ) -> None:
        self._store = DocumentStore(backend)
        self._now = now or _utc_now
        self._id_factory = id_factory
        self._tz = tz
        self._default_goals = default_goals or Goals()

        doc = self._store.load(self.today(), self._default_goals)
        if doc is None:
            logger.info("No usable tracker data found, starting a new document")
            doc = self._fresh_document()
        self._doc = doc
        ensure_day(self._doc, self._doc.active_date)
        self._save()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fresh_document(self) -> TrackerDocument:
        return default_document(self.today(), self._default_goals)

    def _save(self) -> None:
        self._store.save(self._doc)

    def _completed_at(self) -> datetime:
        return self._now().astimezone(timezone.utc)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def today(self) -> str:
        return today_key(self._now(), self._tz)

    @property
    def document(self) -> TrackerDocument:
        return self._doc

    @property
    def active_date(self) -> str:
        return self._doc.active_date

    @property
    def theme(self) -> Theme:
        return self._doc.theme

    @property
    def goals(self) -> Goals:
        return self._doc.goals

    @property
    def schedule(self) -> list[ScheduleItem]:
        return self._doc.schedule

    def get_day(self, date_key: str) -> DayRecord:
        return ensure_day(self._doc, date_key)

    def get_water(self, date_key: str) -> int:
        return self.get_day(date_key).water_ml

    def get_steps(self, date_key: str) -> int:
        return self.get_day(date_key).steps

    def get_foods(self, date_key: str) -> list[FoodEntry]:
        return self.get_day(date_key).foods

    def get_workouts(self, date_key: str) -> list[WorkoutEntry]:
        return self.get_day(date_key).workouts

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_active_date(self, date_key: str) -> None:
        self._doc.active_date = date_key
        ensure_day(self._doc, date_key)
        self._save()

    def set_theme(self, theme: Any) -> None:
        value = theme.value if isinstance(theme, Theme) else theme
        if value not in VALID_THEMES:
            logger.debug("Ignoring unknown theme %r", theme)
            return
        self._doc.theme = Theme(value)
        self._save()

    def set_default_goals(
        self,
        water_ml: Any = None,
        steps: Any = None,
        calories: Any = None,
    ) -> Goals:
        """Update any goal given as a finite number; others are left alone."""
        if finite_number(water_ml) is not None:
            records.set_water_goal(self._doc, water_ml)
        if finite_number(steps) is not None:
            records.set_steps_goal(self._doc, steps)
        if finite_number(calories) is not None:
            records.set_calories_goal(self._doc, calories)
        self._save()
        return self._doc.goals

    # ------------------------------------------------------------------
    # Water and steps
    # ------------------------------------------------------------------

    def add_water(self, date_key: str, ml: Any) -> int:
        total = records.add_water(self._doc, date_key, ml)
        self._save()
        return total

    def set_water_goal(self, ml: Any) -> int:
        goal = records.set_water_goal(self._doc, ml)
        self._save()
        return goal

    def add_steps(self, date_key: str, steps: Any) -> int:
        total = records.add_steps(self._doc, date_key, steps)
        self._save()
        return total

    def set_steps_goal(self, steps: Any) -> int:
        goal = records.set_steps_goal(self._doc, steps)
        self._save()
        return goal

    # ------------------------------------------------------------------
    # Food and workouts
    # ------------------------------------------------------------------

    def add_food(self, date_key: str, name: Any, calories: Any = 0) -> Optional[FoodEntry]:
        entry = records.add_food(self._doc, date_key, name, calories, self._id_factory)
        if entry is not None:
            self._save()
        return entry

    def remove_food(self, date_key: str, entry_id: str) -> bool:
        removed = records.remove_food(self._doc, date_key, entry_id)
        self._save()
        return removed

    def add_workout(
        self, date_key: str, name: Any, duration_min: Any = 0
    ) -> Optional[WorkoutEntry]:
        entry = records.add_workout(
            self._doc, date_key, name, duration_min, self._completed_at(), self._id_factory
        )
        if entry is not None:
            self._save()
        return entry

    def remove_workout(self, date_key: str, entry_id: str) -> bool:
        removed = records.remove_workout(self._doc, date_key, entry_id)
        self._save()
        return removed

    # ------------------------------------------------------------------
    # Weekly schedule
    # ------------------------------------------------------------------

    def add_schedule_item(
        self, name: Any, duration_min: Any = 0, weekday: Any = 0
    ) -> Optional[ScheduleItem]:
        item = records.add_schedule_item(
            self._doc, name, duration_min, weekday, self._id_factory
        )
        if item is not None:
            self._save()
        return item

    def remove_schedule_item(self, item_id: str) -> bool:
        removed = records.remove_schedule_item(self._doc, item_id)
        self._save()
        return removed

    def complete_schedule_item(self, date_key: str, item_id: str) -> Optional[WorkoutEntry]:
        """Log a scheduled workout as done on *date_key*."""
        item = records.find_schedule_item(self._doc, item_id)
        if item is None:
            return None
        return self.add_workout(date_key, item.name, item.duration_min)

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def get_totals(self, date_key: str) -> DayTotals:
        return aggregation.get_totals(self._doc, date_key)

    def get_series(self, date_keys: Iterable[str]) -> list[SeriesPoint]:
        return aggregation.get_series(self._doc, date_keys)

    def get_last_n_dates(self, n: int, end_key: Optional[str] = None) -> DateKeyRange:
        return last_n_dates(n, end_key or self._doc.active_date)

    def schedule_for_weekday(self, weekday: int) -> list[ScheduleItem]:
        return aggregation.schedule_for_weekday(self._doc, weekday)

    def schedule_for_date(self, date_key: Optional[str] = None) -> list[ScheduleItem]:
        return aggregation.schedule_for_date(self._doc, date_key or self._doc.active_date)

    def progress(self, metric: str, date_key: Optional[str] = None) -> float:
        """Percent of today's (or *date_key*'s) goal reached for *metric*."""
        if metric not in METRICS:
            raise ValueError(f"Unknown metric {metric!r}, expected one of {METRICS}")
        totals = self.get_totals(date_key or self._doc.active_date)
        return aggregation.progress_percent(
            getattr(totals, metric), getattr(self._doc.goals, metric)
        )

    def chart(
        self,
        metric: str,
        n: int = DEFAULT_CHART_DAYS,
        end_key: Optional[str] = None,
    ) -> list[ChartBar]:
        """Bars for the last *n* days of *metric*, ending at the active date."""
        if metric not in METRICS:
            raise ValueError(f"Unknown metric {metric!r}, expected one of {METRICS}")
        goal = getattr(self._doc.goals, metric)
        if metric == "calories" and not goal:
            goal = self._default_goals.calories
        series = self.get_series(self.get_last_n_dates(n, end_key))
        return aggregation.chart_bars(series, metric, goal)

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def clear_all(self) -> None:
        """Throw away every record and start from a fresh default document."""
        self._doc = self._fresh_document()
        ensure_day(self._doc, self._doc.active_date)
        logger.info("Tracker data cleared")
        self._save()


# ---------------------------------------------------------------------------
# Factory / singleton
# ---------------------------------------------------------------------------

def create_tracker(settings: Optional[Settings] = None) -> HealthTracker:
    """Build a file-backed tracker from configuration."""
    settings = settings or get_settings()
    tz = ZoneInfo(settings.timezone) if settings.timezone else None
    goals = Goals(
        water_ml=settings.default_water_goal_ml,
        steps=settings.default_steps_goal,
        calories=settings.default_calories_goal,
    )
    return HealthTracker(FileBlobStore(settings.data_file), tz=tz, default_goals=goals)


_default_tracker: HealthTracker | None = None


def get_tracker() -> HealthTracker:
    global _default_tracker
    if _default_tracker is None:
        _default_tracker = create_tracker()
    return _default_tracker
