"""
Document Store
==============
Load, migrate and save the single tracker document.

Responsibilities:
- load(): read the blob and turn it into a TrackerDocument, or None when
  there is nothing usable (missing, not JSON, wrong shape). Never raises.
- migrate(): backfill missing top-level fields of an already parsed
  document. Steps run in order, each one independent and idempotent, and
  none of them removes or renames a field.
- ensure_day(): lazily create the record for a date key.
- save(): serialise the whole document and hand it to the backend.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError

from dailymetrics.db.blob_store import BlobStore
from dailymetrics.models.document import (
    VALID_THEMES,
    DayRecord,
    Goals,
    Theme,
    TrackerDocument,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TrackerError(Exception):
    """Base class for errors raised by the tracker engine."""


class StorageWriteError(TrackerError):
    """The storage backend reported that the document could not be written."""


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

def default_document(today: str, goals: Optional[Goals] = None) -> TrackerDocument:
    return TrackerDocument(
        active_date=today,
        theme=Theme.dark,
        goals=goals.model_copy() if goals is not None else Goals(),
        schedule=[],
        days={},
    )


# ---------------------------------------------------------------------------
# Migration
# ---------------------------------------------------------------------------

def _backfill(key: str) -> Callable[[dict[str, Any], dict[str, Any]], None]:
    def step(raw: dict[str, Any], defaults: dict[str, Any]) -> None:
        if raw.get(key) is None:
            raw[key] = defaults[key]

    return step


def _backfill_active_date(raw: dict[str, Any], defaults: dict[str, Any]) -> None:
    if not raw.get("activeDate"):
        raw["activeDate"] = defaults["activeDate"]


def _backfill_theme(raw: dict[str, Any], defaults: dict[str, Any]) -> None:
    # An unrecognised theme is treated the same as a missing one.
    if raw.get("theme") not in VALID_THEMES:
        raw["theme"] = defaults["theme"]


MIGRATIONS: tuple[Callable[[dict[str, Any], dict[str, Any]], None], ...] = (
    _backfill("days"),
    _backfill("schedule"),
    _backfill("goals"),
    _backfill_active_date,
    _backfill_theme,
)


def migrate(
    raw: dict[str, Any], today: str, goals: Optional[Goals] = None
) -> dict[str, Any]:
    """Apply every migration step to *raw* in place and return it.

    Missing fields take their values from a fresh document for *today*
    with *goals* (built-in defaults when omitted).
    """
    defaults = default_document(today, goals).model_dump(by_alias=True, mode="json")
    for step in MIGRATIONS:
        step(raw, defaults)
    return raw


# ---------------------------------------------------------------------------
# Day records
# ---------------------------------------------------------------------------

def ensure_day(doc: TrackerDocument, date_key: str) -> DayRecord:
    """Return the record for *date_key*, creating an empty one if needed."""
    day = doc.days.get(date_key)
    if day is None:
        day = DayRecord()
        doc.days[date_key] = day
    return day


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class DocumentStore:
    """Reads and writes the tracker document through a blob backend."""

    def __init__(self, backend: BlobStore) -> None:
        self._backend = backend

    def load(self, today: str, goals: Optional[Goals] = None) -> Optional[TrackerDocument]:
        """Return the stored document, migrated, or None if nothing usable is stored."""
        blob = self._backend.read_blob()
        if not blob:
            return None

        try:
            raw = json.loads(blob)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Stored tracker data is not valid JSON, starting fresh: %s", exc)
            return None

        if not isinstance(raw, dict):
            logger.warning(
                "Stored tracker data is a JSON %s, expected an object; starting fresh",
                type(raw).__name__,
            )
            return None

        try:
            return TrackerDocument.model_validate(migrate(raw, today, goals))
        except ValidationError as exc:
            logger.warning(
                "Stored tracker data failed validation (%d errors), starting fresh",
                exc.error_count(),
            )
            return None

    def save(self, doc: TrackerDocument) -> None:
        """Persist *doc*. Raises StorageWriteError if the backend refuses the write."""
        payload = doc.model_dump_json(by_alias=True).encode("utf-8")
        if not self._backend.write_blob(payload):
            raise StorageWriteError("Failed to persist tracker document")
