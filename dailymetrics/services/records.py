"""
Record Operations
=================
Mutations on a TrackerDocument: water, steps, food, workouts, the weekly
schedule and goals.

These functions only change the in-memory document. Persisting after each
mutation is the engine's job (see ``services.tracker``).

Input policy: numbers are clamped and floored to non-negative integers
(anything non-numeric or non-finite counts as 0); blank names make an
add a silent no-op that returns None. Nothing here raises on bad input.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from dailymetrics.models.document import (
    FoodEntry,
    ScheduleItem,
    TrackerDocument,
    WorkoutEntry,
    clamp_weekday,
    to_non_negative_int,
)
from dailymetrics.services.document_store import ensure_day

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]

# Give up on an id factory that keeps colliding rather than loop forever.
_MAX_ID_ATTEMPTS = 32


# ---------------------------------------------------------------------------
# Input normalisation
# ---------------------------------------------------------------------------

def clean_name(name: Any) -> str:
    return str(name if name is not None else "").strip()


def default_id() -> str:
    return uuid.uuid4().hex[:12]


def fresh_id(existing: Iterable[str], id_factory: Optional[IdFactory] = None) -> str:
    """Return an id from *id_factory* that is not already in *existing*."""
    factory = id_factory or default_id
    taken = set(existing)
    for _ in range(_MAX_ID_ATTEMPTS):
        candidate = factory()
        if candidate not in taken:
            return candidate
    raise RuntimeError(f"id factory produced {_MAX_ID_ATTEMPTS} colliding ids in a row")


# ---------------------------------------------------------------------------
# Water and steps
# ---------------------------------------------------------------------------

def add_water(doc: TrackerDocument, date_key: str, ml: Any) -> int:
    """Add to the day's cumulative water total and return the new total."""
    day = ensure_day(doc, date_key)
    day.water_ml += to_non_negative_int(ml)
    return day.water_ml


def set_water_goal(doc: TrackerDocument, ml: Any) -> int:
    doc.goals.water_ml = to_non_negative_int(ml)
    return doc.goals.water_ml


def add_steps(doc: TrackerDocument, date_key: str, steps: Any) -> int:
    day = ensure_day(doc, date_key)
    day.steps += to_non_negative_int(steps)
    return day.steps


def set_steps_goal(doc: TrackerDocument, steps: Any) -> int:
    doc.goals.steps = to_non_negative_int(steps)
    return doc.goals.steps


def set_calories_goal(doc: TrackerDocument, calories: Any) -> int:
    doc.goals.calories = to_non_negative_int(calories)
    return doc.goals.calories


# ---------------------------------------------------------------------------
# Food diary
# ---------------------------------------------------------------------------

def add_food(
    doc: TrackerDocument,
    date_key: str,
    name: Any,
    calories: Any,
    id_factory: Optional[IdFactory] = None,
) -> Optional[FoodEntry]:
    day = ensure_day(doc, date_key)
    trimmed = clean_name(name)
    if not trimmed:
        logger.debug("Ignoring food entry with a blank name for %s", date_key)
        return None

    entry = FoodEntry(
        id=fresh_id((f.id for f in day.foods), id_factory),
        name=trimmed,
        calories=to_non_negative_int(calories),
    )
    day.foods.append(entry)
    return entry


def remove_food(doc: TrackerDocument, date_key: str, entry_id: str) -> bool:
    """Drop the food entry with *entry_id*. Returns whether anything was removed."""
    day = ensure_day(doc, date_key)
    before = len(day.foods)
    day.foods = [f for f in day.foods if f.id != entry_id]
    return len(day.foods) != before


# ---------------------------------------------------------------------------
# Workouts
# ---------------------------------------------------------------------------

def add_workout(
    doc: TrackerDocument,
    date_key: str,
    name: Any,
    duration_min: Any,
    completed_at: datetime,
    id_factory: Optional[IdFactory] = None,
) -> Optional[WorkoutEntry]:
    day = ensure_day(doc, date_key)
    trimmed = clean_name(name)
    if not trimmed:
        logger.debug("Ignoring workout with a blank name for %s", date_key)
        return None

    entry = WorkoutEntry(
        id=fresh_id((w.id for w in day.workouts), id_factory),
        name=trimmed,
        duration_min=to_non_negative_int(duration_min),
        completed_at=completed_at,
    )
    day.workouts.append(entry)
    return entry


def remove_workout(doc: TrackerDocument, date_key: str, entry_id: str) -> bool:
    day = ensure_day(doc, date_key)
    before = len(day.workouts)
    day.workouts = [w for w in day.workouts if w.id != entry_id]
    return len(day.workouts) != before


# ---------------------------------------------------------------------------
# Weekly schedule
# ---------------------------------------------------------------------------

def add_schedule_item(
    doc: TrackerDocument,
    name: Any,
    duration_min: Any,
    weekday: Any,
    id_factory: Optional[IdFactory] = None,
) -> Optional[ScheduleItem]:
    trimmed = clean_name(name)
    if not trimmed:
        logger.debug("Ignoring schedule item with a blank name")
        return None

    item = ScheduleItem(
        id=fresh_id((s.id for s in doc.schedule), id_factory),
        name=trimmed,
        duration_min=to_non_negative_int(duration_min),
        weekday=clamp_weekday(weekday),
    )
    doc.schedule.append(item)
    return item


def remove_schedule_item(doc: TrackerDocument, item_id: str) -> bool:
    before = len(doc.schedule)
    doc.schedule = [s for s in doc.schedule if s.id != item_id]
    return len(doc.schedule) != before


def find_schedule_item(doc: TrackerDocument, item_id: str) -> Optional[ScheduleItem]:
    return next((s for s in doc.schedule if s.id == item_id), None)
