"""SQLite storage for the profile, weight log and daily summaries."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from steptdee.db.schema import DATA_TABLES, SCHEMA_VERSION, get_schema_sql


class DatabaseConnection:
    """Opens short-lived connections to one SQLite file."""

    def __init__(self, db_path: Path):
        """Initialize database connection manager.

        Args:
            db_path: Path to the SQLite database file; parent directories
                are created on demand
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Yield a connection whose statements form one transaction.

        Everything executed inside the block is committed together when it
        exits normally and rolled back when it raises.

        Example:
            with db.get_connection() as conn:
                conn.execute("DELETE FROM daily_summaries")
                conn.executemany("INSERT INTO daily_summaries ...", rows)
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize_schema(self) -> None:
        """Create missing tables and stamp the schema version."""
        with self.get_connection() as conn:
            conn.executescript(get_schema_sql())
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    def schema_version(self) -> int:
        """Schema version of the file, 0 if it was never initialized."""
        with self.get_connection() as conn:
            return conn.execute("PRAGMA user_version").fetchone()[0]

    def row_counts(self) -> dict[str, int]:
        """Number of rows in each data table."""
        with self.get_connection() as conn:
            return {
                table: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
                for table in DATA_TABLES
            }

    def clear_data(self) -> None:
        """Delete every row from the data tables, keeping the schema."""
        with self.get_connection() as conn:
            for table in DATA_TABLES:
                conn.execute(f"DELETE FROM {table}")


_db: Optional[DatabaseConnection] = None


def get_db() -> DatabaseConnection:
    """Shared connection manager for the configured database path."""
    global _db
    if _db is None:
        from steptdee.config import get_settings

        _db = DatabaseConnection(get_settings().database.path)
    return _db


def set_db(db: Optional[DatabaseConnection]) -> None:
    """Replace the shared connection manager; None resets it to settings."""
    global _db
    _db = db
