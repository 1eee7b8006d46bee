"""
Tracker Document Schemas
========================
Pydantic models for the single persisted tracker document and the
derived views computed from it.

Key design decisions:
- Persisted keys are camelCase (``waterMl``, ``durationMin``) so documents
  written by earlier versions of the tracker load unchanged. Python code
  uses the snake_case attribute names.
- Every numeric field is a non-negative integer. Stored values are
  floored and clamped on load with the same rules as user input, so a
  document is only unreadable when its structure is wrong.
- Unknown keys are kept at every level so a newer document survives a
  load/save cycle through an older engine.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Allowed values
# ---------------------------------------------------------------------------

class Theme(str, Enum):
    dark = "dark"
    light = "light"


VALID_THEMES = frozenset(t.value for t in Theme)

DEFAULT_WATER_GOAL_ML = 2000
DEFAULT_STEPS_GOAL = 10000
DEFAULT_CALORIES_GOAL = 2000

# Metrics that have both a daily total and a goal.
METRICS = ("water_ml", "steps", "calories")


# ---------------------------------------------------------------------------
# Numeric normalisation
# ---------------------------------------------------------------------------

def finite_number(value: Any) -> Optional[float]:
    """*value* as a float, or None if it is missing, non-numeric or non-finite."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_non_negative_int(value: Any) -> int:
    if isinstance(value, int):
        return max(0, value)
    number = finite_number(value)
    if number is None:
        return 0
    return max(0, math.floor(number))


def clamp_weekday(value: Any) -> int:
    return min(6, to_non_negative_int(value))


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )


# ---------------------------------------------------------------------------
# Stored records
#
# Numeric fields go through the same floor/clamp as user input, so values
# written by older versions (e.g. a fractional weekday) load instead of
# making the whole document unreadable.
# ---------------------------------------------------------------------------

class Goals(_CamelModel):
    water_ml: int = Field(DEFAULT_WATER_GOAL_ML, ge=0)
    steps: int = Field(DEFAULT_STEPS_GOAL, ge=0)
    calories: int = Field(DEFAULT_CALORIES_GOAL, ge=0)

    @field_validator("water_ml", "steps", "calories", mode="before")
    @classmethod
    def _non_negative(cls, value: Any) -> int:
        return to_non_negative_int(value)


class FoodEntry(_CamelModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    calories: int = Field(0, ge=0)

    @field_validator("calories", mode="before")
    @classmethod
    def _non_negative(cls, value: Any) -> int:
        return to_non_negative_int(value)


class WorkoutEntry(_CamelModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    duration_min: int = Field(0, ge=0)
    completed_at: datetime

    @field_validator("duration_min", mode="before")
    @classmethod
    def _non_negative(cls, value: Any) -> int:
        return to_non_negative_int(value)


class ScheduleItem(_CamelModel):
    """A recurring workout planned for one weekday (0 = Sunday)."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    duration_min: int = Field(0, ge=0)
    weekday: int = Field(0, ge=0, le=6)

    @field_validator("duration_min", mode="before")
    @classmethod
    def _non_negative(cls, value: Any) -> int:
        return to_non_negative_int(value)

    @field_validator("weekday", mode="before")
    @classmethod
    def _clamp_weekday(cls, value: Any) -> int:
        return clamp_weekday(value)


class DayRecord(_CamelModel):
    """Everything tracked for one calendar day. Water and steps are cumulative."""

    water_ml: int = Field(0, ge=0)
    steps: int = Field(0, ge=0)
    foods: list[FoodEntry] = Field(default_factory=list)
    workouts: list[WorkoutEntry] = Field(default_factory=list)

    @field_validator("water_ml", "steps", mode="before")
    @classmethod
    def _non_negative(cls, value: Any) -> int:
        return to_non_negative_int(value)


class TrackerDocument(_CamelModel):
    """Root of the persisted state. One per engine."""

    active_date: str = Field(..., description="YYYY-MM-DD")
    theme: Theme = Theme.dark
    goals: Goals = Field(default_factory=Goals)
    schedule: list[ScheduleItem] = Field(default_factory=list)
    days: dict[str, DayRecord] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------

class DayTotals(_CamelModel):
    water_ml: int = 0
    steps: int = 0
    calories: int = 0


class SeriesPoint(_CamelModel):
    date_key: str
    water_ml: int = 0
    steps: int = 0
    calories: int = 0


class ChartBar(_CamelModel):
    """One bar of a multi-day chart, scaled against goal and peak value."""

    date_key: str
    weekday: int = Field(..., ge=0, le=6)
    value: int = Field(..., ge=0)
    percent: float = Field(..., ge=0, le=100)
