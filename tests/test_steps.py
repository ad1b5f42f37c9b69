"""Tests for step count sources."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import zipfile
from datetime import date, datetime, timezone
from pathlib import Path

import pandas as pd
import pytest

from steptdee.steps import (
    CsvStepSource,
    DailyStepEntry,
    HealthConnectStepSource,
    StepSource,
    create_step_source,
)
from steptdee.tracking.sync import synchronize


def run(coro):
    return asyncio.run(coro)


def epoch_ms(*args) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp() * 1000)


@pytest.fixture
def steps_csv(tmp_path: Path) -> Path:
    path = tmp_path / "steps.csv"
    path.write_text(
        "date,steps\n"
        "2024-03-05,8000\n"
        "2024-03-05,512\n"
        "2024-03-07,1200\n"
    )
    return path


@pytest.fixture
def health_connect_db(tmp_path: Path) -> Path:
    path = tmp_path / "health_connect_export.db"
    conn = sqlite3.connect(path)
    conn.execute(
        "CREATE TABLE steps_record_table "
        "(row_id INTEGER PRIMARY KEY, count INTEGER, start_time INTEGER, start_zone_offset INTEGER)"
    )
    conn.execute("CREATE TABLE steps_cadence_record_table (rate REAL, start_time INTEGER)")
    conn.executemany(
        "INSERT INTO steps_record_table (count, start_time, start_zone_offset) VALUES (?, ?, ?)",
        [
            (3000, epoch_ms(2024, 3, 5, 9, 0), 0),
            (2500, epoch_ms(2024, 3, 5, 18, 0), 0),
            # 23:30 UTC at +01:00 belongs to the next local day
            (700, epoch_ms(2024, 3, 5, 23, 30), 3600),
        ],
    )
    conn.commit()
    conn.close()
    return path


class TestBaseContract:
    """Tests for the range and never-fails behavior shared by all sources."""

    def test_one_entry_per_day(self, make_step_source) -> None:
        source = make_step_source({date(2024, 3, 2): 50})
        entries = run(source.get_daily_steps_range(date(2024, 3, 1), date(2024, 3, 3)))
        assert entries == [
            DailyStepEntry(date(2024, 3, 1), 0),
            DailyStepEntry(date(2024, 3, 2), 50),
            DailyStepEntry(date(2024, 3, 3), 0),
        ]

    def test_reversed_range_is_empty(self, make_step_source) -> None:
        source = make_step_source()
        assert run(source.get_daily_steps_range(date(2024, 3, 3), date(2024, 3, 1))) == []

    def test_datetimes_truncate_to_day(self, make_step_source) -> None:
        source = make_step_source({date(2024, 3, 1): 10})
        entries = run(
            source.get_daily_steps_range(datetime(2024, 3, 1, 23, 59), datetime(2024, 3, 1, 0, 1))
        )
        assert entries == [DailyStepEntry(date(2024, 3, 1), 10)]

    def test_negative_counts_clamp(self, make_step_source) -> None:
        source = make_step_source({date(2024, 3, 1): -5})
        assert run(source.get_today_steps(date(2024, 3, 1))) == 0

    def test_today_steps(self, make_step_source) -> None:
        source = make_step_source({date(2024, 3, 1): 4321})
        assert run(source.get_today_steps(date(2024, 3, 1))) == 4321

    def test_request_permissions_follows_availability(self, make_step_source) -> None:
        assert run(make_step_source(available=True).request_permissions())
        assert not run(make_step_source(available=False).request_permissions())

    def test_variants_satisfy_protocol(self, tmp_path: Path) -> None:
        assert isinstance(CsvStepSource(tmp_path / "x.csv"), StepSource)
        assert isinstance(HealthConnectStepSource(tmp_path / "x.db"), StepSource)


class TestCsvStepSource:
    """Tests for CsvStepSource."""

    def test_sums_rows_per_day(self, steps_csv: Path) -> None:
        source = CsvStepSource(steps_csv)
        entries = run(source.get_daily_steps_range(date(2024, 3, 5), date(2024, 3, 7)))
        assert [e.steps for e in entries] == [8512, 0, 1200]

    def test_available(self, steps_csv: Path, tmp_path: Path) -> None:
        assert run(CsvStepSource(steps_csv).is_available())
        assert not run(CsvStepSource(tmp_path / "missing.csv").is_available())

    def test_missing_file_reads_zero(self, tmp_path: Path) -> None:
        source = CsvStepSource(tmp_path / "missing.csv")
        entries = run(source.get_daily_steps_range(date(2024, 3, 5), date(2024, 3, 6)))
        assert [e.steps for e in entries] == [0, 0]

    def test_missing_columns_read_zero(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.csv"
        path.write_text("day,count\n2024-03-05,100\n")
        assert run(CsvStepSource(path).get_today_steps(date(2024, 3, 5))) == 0

    def test_timestamps_use_calendar_day(self, tmp_path: Path) -> None:
        path = tmp_path / "samples.csv"
        path.write_text(
            "date,steps\n"
            "2024-03-05 08:15:00,100\n"
            "2024-03-05 21:40:00,250\n"
        )
        assert run(CsvStepSource(path).get_today_steps(date(2024, 3, 5))) == 350

    def test_unreadable_file_parsed_once(self, tmp_path: Path, monkeypatch, caplog) -> None:
        calls = []
        real_read_csv = pd.read_csv

        def counting_read_csv(*args, **kwargs):
            calls.append(args)
            return real_read_csv(*args, **kwargs)

        monkeypatch.setattr(pd, "read_csv", counting_read_csv)
        source = CsvStepSource(tmp_path / "missing.csv")

        with caplog.at_level(logging.WARNING):
            entries = run(source.get_daily_steps_range(date(2024, 1, 1), date(2024, 3, 31)))

        assert len(entries) == 91
        assert all(e.steps == 0 for e in entries)
        assert len(calls) == 1
        assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1

    def test_bootstrap_from_birth_reads_file_once(
        self, tmp_path: Path, profile_with_dob, make_summary_store, monkeypatch
    ) -> None:
        calls = []
        real_read_csv = pd.read_csv

        def counting_read_csv(*args, **kwargs):
            calls.append(args)
            return real_read_csv(*args, **kwargs)

        monkeypatch.setattr(pd, "read_csv", counting_read_csv)
        source = CsvStepSource(tmp_path / "missing.csv")

        result = run(
            synchronize(source, profile_with_dob, make_summary_store(), as_of=date(2024, 3, 5))
        )

        assert result[0].date == date(1990, 6, 15)
        assert len(calls) == 1

    def test_bad_rows_are_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "messy.csv"
        path.write_text(
            "date,steps\n"
            "2024-03-05,100\n"
            "not a date,50\n"
            ",70\n"
            "2024-03-05,\n"
            "2024-03-05,20\n"
        )
        assert run(CsvStepSource(path).get_today_steps(date(2024, 3, 5))) == 120


class TestHealthConnectStepSource:
    """Tests for HealthConnectStepSource."""

    def test_sums_records_by_local_day(self, health_connect_db: Path) -> None:
        source = HealthConnectStepSource(health_connect_db)
        entries = run(source.get_daily_steps_range(date(2024, 3, 5), date(2024, 3, 6)))
        assert [e.steps for e in entries] == [5500, 700]

    def test_reads_from_zip_backup(self, health_connect_db: Path, tmp_path: Path) -> None:
        archive = tmp_path / "backup.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.write(health_connect_db, arcname="health_connect_export.db")

        source = HealthConnectStepSource(archive)
        assert run(source.is_available())
        assert run(source.get_today_steps(date(2024, 3, 5))) == 5500

    def test_zip_without_database_unavailable(self, tmp_path: Path) -> None:
        archive = tmp_path / "backup.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("readme.txt", "nothing here")

        source = HealthConnectStepSource(archive)
        assert not run(source.is_available())
        assert run(source.get_today_steps(date(2024, 3, 5))) == 0

    def test_database_without_steps_table_reads_zero(self, tmp_path: Path) -> None:
        path = tmp_path / "other.db"
        conn = sqlite3.connect(path)
        conn.execute("CREATE TABLE sleep_session_record_table (start_time INTEGER)")
        conn.commit()
        conn.close()

        assert run(HealthConnectStepSource(path).get_today_steps(date(2024, 3, 5))) == 0

    def test_missing_backup_read_once(self, tmp_path: Path, caplog) -> None:
        path = tmp_path / "missing.db"
        source = HealthConnectStepSource(path)

        with caplog.at_level(logging.WARNING):
            entries = run(source.get_daily_steps_range(date(2024, 3, 1), date(2024, 3, 10)))

        assert [e.steps for e in entries] == [0] * 10
        assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1
        assert not path.exists()

    def test_records_without_start_time_are_skipped(self, health_connect_db: Path) -> None:
        conn = sqlite3.connect(health_connect_db)
        conn.execute(
            "INSERT INTO steps_record_table (count, start_time, start_zone_offset) VALUES (?, NULL, 0)",
            (999,),
        )
        conn.commit()
        conn.close()

        source = HealthConnectStepSource(health_connect_db)
        assert run(source.get_today_steps(date(2024, 3, 5))) == 5500


class TestCreateStepSource:
    """Tests for the step source registry."""

    def test_builds_csv(self, tmp_path: Path) -> None:
        source = create_step_source("csv", tmp_path / "steps.csv")
        assert isinstance(source, CsvStepSource)

    def test_builds_health_connect(self, tmp_path: Path) -> None:
        source = create_step_source("health_connect", tmp_path / "hc.zip")
        assert isinstance(source, HealthConnectStepSource)

    def test_unknown_kind(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Unknown step source"):
            create_step_source("fitbit", tmp_path / "x")

    def test_requires_path(self) -> None:
        with pytest.raises(ValueError, match="needs a data path"):
            create_step_source("csv", None)
