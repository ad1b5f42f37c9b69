"""SQLite persistence for profile, weight log and daily summaries."""

from steptdee.db.connection import DatabaseConnection, get_db, set_db

__all__ = ["DatabaseConnection", "get_db", "set_db"]
