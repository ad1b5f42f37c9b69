"""Pytest fixtures for steptdee tests."""

from __future__ import annotations

import tempfile
from datetime import date
from pathlib import Path
from typing import Optional

import pytest

from steptdee.db.connection import DatabaseConnection, set_db
from steptdee.steps.base import BaseStepSource
from steptdee.tracking.metrics import Sex
from steptdee.tracking.models import DailySummary, Profile
from steptdee.tracking.stores import LoadResult, SaveResult


class FakeStepSource(BaseStepSource):
    """Step source serving fixed per-day counts and recording queries."""

    def __init__(
        self,
        steps_by_day: Optional[dict[date, int]] = None,
        available: bool = True,
        error: Optional[Exception] = None,
    ):
        self.steps_by_day = steps_by_day or {}
        self.available = available
        self.error = error
        self.queried: list[date] = []

    @property
    def source_name(self) -> str:
        return "fake"

    async def is_available(self) -> bool:
        return self.available

    async def _read_day_steps(self, day: date) -> Optional[int]:
        self.queried.append(day)
        if self.error is not None:
            raise self.error
        return self.steps_by_day.get(day)


class MemorySummaryStore:
    """In-memory summary store with switchable failures."""

    def __init__(
        self,
        summaries: Optional[list[DailySummary]] = None,
        fail_load: bool = False,
        fail_save: bool = False,
    ):
        self.summaries = list(summaries or [])
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.save_calls = 0

    def load(self) -> LoadResult[DailySummary]:
        if self.fail_load:
            return LoadResult(error="disk unreadable")
        return LoadResult(items=list(self.summaries))

    def replace_all(self, summaries) -> SaveResult:
        self.save_calls += 1
        if self.fail_save:
            return SaveResult.failed("disk full")
        self.summaries = list(summaries)
        return SaveResult()


@pytest.fixture
def temp_db():
    """Create a temporary database with schema."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db = DatabaseConnection(Path(tmpdir) / "test.db")
        db.initialize_schema()
        yield db


@pytest.fixture
def cli_db(temp_db):
    """Install the temporary database as the global one for CLI commands."""
    set_db(temp_db)
    yield temp_db
    set_db(None)


@pytest.fixture
def profile():
    """A profile without a date of birth."""
    return Profile(
        profile_id="p1",
        sex=Sex.MALE,
        height_m=1.80,
        weight_kg=80.0,
        step_length_m=0.75,
    )


@pytest.fixture
def profile_with_dob():
    """A profile with a known date of birth."""
    return Profile(
        profile_id="p2",
        sex=Sex.FEMALE,
        height_m=1.65,
        weight_kg=60.0,
        step_length_m=0.68,
        date_of_birth=date(1990, 6, 15),
    )


@pytest.fixture
def make_step_source():
    """Factory for fake step sources: make_step_source({day: steps}, available=..., error=...)."""
    return FakeStepSource


@pytest.fixture
def make_summary_store():
    """Factory for in-memory summary stores: make_summary_store(summaries, fail_load=..., fail_save=...)."""
    return MemorySummaryStore
