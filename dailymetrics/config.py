"""
Daily Metrics Configuration
===========================
All environment variables in one place. Pydantic Settings validates
types at startup so a bad data path or goal value fails fast instead of
corrupting the stored document later.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Loaded from environment variables (``DAILYMETRICS_*``) or a .env file."""

    # --- Storage ---
    # Single JSON document holding goals, schedule and every tracked day.
    data_file: Path = Path.home() / ".dailymetrics" / "health-tracker-v1.json"

    # --- Calendar ---
    # IANA zone used for date keys, e.g. "Europe/London". Empty means the
    # system local zone.
    timezone: Optional[str] = None

    # --- Goals used for a fresh document ---
    default_water_goal_ml: int = 2000
    default_steps_goal: int = 10000
    default_calories_goal: int = 2000

    model_config = SettingsConfigDict(
        env_prefix="DAILYMETRICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
