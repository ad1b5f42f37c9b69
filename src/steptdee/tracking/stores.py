"""Stores for the profile, weight log and daily summaries.

Stores never raise database errors to their callers. A failed read or write
is logged and reported through ``LoadResult`` / ``SaveResult`` so callers
can tell "empty" apart from "could not read" and decide whether to proceed
with defaults.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from typing import Generic, Optional, Protocol, Sequence, TypeVar, runtime_checkable

from steptdee.db.connection import DatabaseConnection
from steptdee.tracking.models import DailySummary, Profile, WeightLogEntry
from steptdee.tracking.queries import ProfileQueries, SummaryQueries, WeightQueries

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class LoadResult(Generic[T]):
    """Outcome of a store read."""

    items: list[T] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SaveResult:
    """Outcome of a store write. ``changed`` is False when nothing matched."""

    ok: bool = True
    error: Optional[str] = None
    changed: bool = True

    @classmethod
    def failed(cls, error: str) -> "SaveResult":
        return cls(ok=False, error=error)


@runtime_checkable
class DailySummaryStore(Protocol):
    """Full-list store for daily summaries."""

    def load(self) -> LoadResult[DailySummary]:
        """Load all summaries in ascending date order."""
        ...

    def replace_all(self, summaries: Sequence[DailySummary]) -> SaveResult:
        """Replace the stored collection with ``summaries``."""
        ...


@runtime_checkable
class ProfileStore(Protocol):
    """Store for the single user profile."""

    def load(self) -> Optional[Profile]:
        ...

    def save(self, profile: Profile) -> SaveResult:
        ...


@runtime_checkable
class WeightLogStore(Protocol):
    """Store for weight log entries keyed by date."""

    def load_all(self) -> LoadResult[WeightLogEntry]:
        ...

    def upsert(self, entry: WeightLogEntry) -> SaveResult:
        ...

    def delete_by_date(self, day: date) -> SaveResult:
        ...


class SQLiteSummaryStore:
    """Daily summary store backed by the ``daily_summaries`` table."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def load(self) -> LoadResult[DailySummary]:
        try:
            with self.db.get_connection() as conn:
                return LoadResult(items=SummaryQueries.get_summaries(conn))
        except (sqlite3.Error, ValueError) as e:
            logger.warning("Could not load daily summaries: %s", e)
            return LoadResult(error=str(e))

    def replace_all(self, summaries: Sequence[DailySummary]) -> SaveResult:
        try:
            with self.db.get_connection() as conn:
                written = SummaryQueries.replace_summaries(conn, summaries)
        except sqlite3.Error as e:
            logger.error("Could not save daily summaries: %s", e)
            return SaveResult.failed(str(e))
        logger.debug("Saved %d daily summaries", written)
        return SaveResult()


class SQLiteProfileStore:
    """Profile store backed by the ``profile`` table."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def load(self) -> Optional[Profile]:
        try:
            with self.db.get_connection() as conn:
                return ProfileQueries.get_profile(conn)
        except (sqlite3.Error, ValueError) as e:
            logger.warning("Could not load profile: %s", e)
            return None

    def save(self, profile: Profile) -> SaveResult:
        try:
            with self.db.get_connection() as conn:
                ProfileQueries.save_profile(conn, profile)
        except sqlite3.Error as e:
            logger.error("Could not save profile: %s", e)
            return SaveResult.failed(str(e))
        return SaveResult()


class SQLiteWeightLogStore:
    """Weight log store backed by the ``weight_log`` table."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def load_all(self) -> LoadResult[WeightLogEntry]:
        try:
            with self.db.get_connection() as conn:
                return LoadResult(items=WeightQueries.get_weight_history(conn))
        except (sqlite3.Error, ValueError) as e:
            logger.warning("Could not load weight log: %s", e)
            return LoadResult(error=str(e))

    def upsert(self, entry: WeightLogEntry) -> SaveResult:
        try:
            with self.db.get_connection() as conn:
                WeightQueries.upsert_weight(conn, entry)
        except sqlite3.Error as e:
            logger.error("Could not save weight entry for %s: %s", entry.date, e)
            return SaveResult.failed(str(e))
        return SaveResult()

    def delete_by_date(self, day: date) -> SaveResult:
        try:
            with self.db.get_connection() as conn:
                removed = WeightQueries.delete_weight(conn, day)
        except sqlite3.Error as e:
            logger.error("Could not delete weight entry for %s: %s", day, e)
            return SaveResult.failed(str(e))
        if not removed:
            logger.debug("No weight entry to delete for %s", day)
        return SaveResult(changed=removed)


def clear_all_data(db: DatabaseConnection) -> SaveResult:
    """Remove the profile, weight log and daily summaries."""
    try:
        db.clear_data()
    except sqlite3.Error as e:
        logger.error("Could not clear data: %s", e)
        return SaveResult.failed(str(e))
    logger.info("Cleared all stored data")
    return SaveResult()
