"""Step counts from a Health Connect backup database."""

from __future__ import annotations

import logging
import sqlite3
import tempfile
import zipfile
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

from steptdee.steps.base import BaseStepSource

logger = logging.getLogger(__name__)

DB_SUFFIXES = (".db", ".sqlite")


class HealthConnectStepSource(BaseStepSource):
    """Reads step records from a Health Connect export.

    Accepts the SQLite database itself or the ``.zip`` backup that contains
    it. Each steps record is attributed to the local calendar day of its
    start time, using the record's zone offset when the table has one.
    """

    def __init__(self, backup_path: Path):
        """Initialize the source.

        Args:
            backup_path: Path to backup file (zip or sqlite)
        """
        self.backup_path = Path(backup_path)
        self._totals: Optional[dict[date, int]] = None

    @property
    def source_name(self) -> str:
        return "health_connect"

    async def is_available(self) -> bool:
        if not self.backup_path.is_file():
            return False
        if self.backup_path.suffix in DB_SUFFIXES:
            return True
        if self.backup_path.suffix == ".zip":
            try:
                with zipfile.ZipFile(self.backup_path, "r") as zf:
                    return self._find_db_member(zf) is not None
            except zipfile.BadZipFile:
                return False
        return False

    async def _read_day_steps(self, day: date) -> Optional[int]:
        return self._load_totals().get(day)

    def _load_totals(self) -> dict[date, int]:
        """Per-day totals, read from the backup on first use.

        An unreadable backup counts as no data for every day; the failure is
        logged once and not retried for this instance.
        """
        if self._totals is None:
            try:
                self._totals = self._read_backup()
            except (OSError, ValueError, sqlite3.Error, zipfile.BadZipFile) as e:
                logger.warning(
                    "Could not read Health Connect backup %s, no steps available: %s",
                    self.backup_path,
                    e,
                )
                self._totals = {}
        return self._totals

    def _read_backup(self) -> dict[date, int]:
        if not self.backup_path.is_file():
            raise FileNotFoundError(f"Backup not found: {self.backup_path}")

        if self.backup_path.suffix != ".zip":
            return self._read_totals(self.backup_path)

        with tempfile.TemporaryDirectory() as tmpdir:
            with zipfile.ZipFile(self.backup_path, "r") as zf:
                member = self._find_db_member(zf)
                if member is None:
                    raise ValueError(
                        f"No Health Connect database found in {self.backup_path}"
                    )
                zf.extract(member, tmpdir)
            return self._read_totals(Path(tmpdir) / member)

    def _find_db_member(self, zf: zipfile.ZipFile) -> Optional[str]:
        """Locate the SQLite database inside a backup archive."""
        for name in zf.namelist():
            if name.endswith(DB_SUFFIXES):
                return name
        return None

    def _read_totals(self, db_path: Path) -> dict[date, int]:
        """Sum step record counts per local day."""
        totals: dict[date, int] = defaultdict(int)

        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row
        try:
            cursor = conn.cursor()
            table = self._find_steps_table(cursor)
            if table is None:
                raise ValueError(f"No steps record table in {db_path}")

            columns = self._get_columns(cursor, table)
            has_offset = "start_zone_offset" in columns
            select_offset = ", start_zone_offset" if has_offset else ""
            cursor.execute(f"SELECT count, start_time{select_offset} FROM {table}")

            for row in cursor.fetchall():
                if row["start_time"] is None:
                    continue
                offset = row["start_zone_offset"] if has_offset else None
                day = self._local_day(row["start_time"], offset)
                totals[day] += row["count"] or 0
        finally:
            conn.close()

        return dict(totals)

    def _find_steps_table(self, cursor: sqlite3.Cursor) -> Optional[str]:
        """Health Connect table names vary between versions."""
        cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
        tables = [row[0] for row in cursor.fetchall()]
        for table in tables:
            lower = table.lower()
            if lower.startswith("steps") and "record" in lower and "cadence" not in lower:
                return table
        return None

    def _get_columns(self, cursor: sqlite3.Cursor, table: str) -> set[str]:
        cursor.execute(f"PRAGMA table_info({table})")
        return {row[1] for row in cursor.fetchall()}

    def _local_day(self, start_time: Any, zone_offset_seconds: Optional[int]) -> date:
        """Calendar day of a record's start time."""
        value = float(start_time)
        # Unix timestamp (seconds or milliseconds)
        if value > 1e12:
            value = value / 1000
        if zone_offset_seconds is None:
            return datetime.fromtimestamp(value).date()
        utc = datetime.fromtimestamp(value, tz=timezone.utc)
        return (utc + timedelta(seconds=zone_offset_seconds)).date()
