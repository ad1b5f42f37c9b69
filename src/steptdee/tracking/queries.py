"""Database queries for the profile, weight log and daily summaries."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Iterable, Optional

from steptdee.tracking.models import DailySummary, Profile, WeightLogEntry


def _row_to_profile(row: sqlite3.Row) -> Profile:
    return Profile(
        profile_id=row["profile_id"],
        date_of_birth=date.fromisoformat(row["date_of_birth"]) if row["date_of_birth"] else None,
        sex=row["sex"],
        height_m=row["height_m"],
        weight_kg=row["weight_kg"],
        step_length_m=row["step_length_m"],
        bmr_formula=row["bmr_formula"],
        step_goal=row["step_goal"],
        formula_sex=row["formula_sex"],
    )


class ProfileQueries:
    """Database queries for the user profile."""

    @staticmethod
    def get_profile(conn: sqlite3.Connection) -> Optional[Profile]:
        """Get the (single) stored profile."""
        row = conn.execute(
            """
            SELECT profile_id, date_of_birth, sex, height_m, weight_kg,
                   step_length_m, bmr_formula, step_goal, formula_sex
            FROM profile ORDER BY updated_at DESC LIMIT 1
            """
        ).fetchone()

        if row is None:
            return None

        return _row_to_profile(row)

    @staticmethod
    def save_profile(conn: sqlite3.Connection, profile: Profile) -> None:
        """Insert or replace the profile row."""
        conn.execute(
            """
            INSERT OR REPLACE INTO profile
            (profile_id, date_of_birth, sex, height_m, weight_kg,
             step_length_m, bmr_formula, step_goal, formula_sex, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
            """,
            (
                profile.profile_id,
                profile.date_of_birth.isoformat() if profile.date_of_birth else None,
                profile.sex.value,
                profile.height_m,
                profile.weight_kg,
                profile.step_length_m,
                profile.bmr_formula.value,
                profile.step_goal,
                profile.formula_sex.value if profile.formula_sex else None,
            ),
        )


class WeightQueries:
    """Database queries for weight log entries."""

    @staticmethod
    def upsert_weight(conn: sqlite3.Connection, entry: WeightLogEntry) -> None:
        """Add a weight entry. If one already exists for the date, it is replaced."""
        conn.execute(
            "INSERT OR REPLACE INTO weight_log (date, weight_kg) VALUES (?, ?)",
            (entry.date.isoformat(), entry.weight_kg),
        )

    @staticmethod
    def delete_weight(conn: sqlite3.Connection, day: date) -> bool:
        """Delete the entry for a date. Returns True if a row was removed."""
        cursor = conn.execute(
            "DELETE FROM weight_log WHERE date = ?", (day.isoformat(),)
        )
        return cursor.rowcount > 0

    @staticmethod
    def get_weight_history(
        conn: sqlite3.Connection,
        days: Optional[int] = None,
    ) -> list[WeightLogEntry]:
        """
        Get weight history in chronological order.

        Args:
            days: If set, return only the most recent N entries
        """
        query = "SELECT date, weight_kg FROM weight_log ORDER BY date DESC"
        params: list = []

        if days:
            query += " LIMIT ?"
            params.append(days)

        rows = conn.execute(query, params).fetchall()

        return [
            WeightLogEntry(date=date.fromisoformat(row[0]), weight_kg=row[1])
            for row in reversed(rows)  # Return in chronological order
        ]


class SummaryQueries:
    """Database queries for daily summaries."""

    @staticmethod
    def get_summaries(
        conn: sqlite3.Connection,
        days: Optional[int] = None,
    ) -> list[DailySummary]:
        """Get daily summaries in chronological order.

        Args:
            days: If set, return only the most recent N summaries
        """
        query = """
            SELECT date, steps, distance_km, kcal_walk, bmr_kcal, tdee
            FROM daily_summaries
            ORDER BY date DESC
        """
        params: list = []

        if days:
            query += " LIMIT ?"
            params.append(days)

        rows = conn.execute(query, params).fetchall()

        return [
            DailySummary(
                date=date.fromisoformat(row[0]),
                steps=row[1],
                distance_km=row[2],
                kcal_walk=row[3],
                bmr_kcal=row[4],
                tdee=row[5],
            )
            for row in reversed(rows)
        ]

    @staticmethod
    def replace_summaries(
        conn: sqlite3.Connection, summaries: Iterable[DailySummary]
    ) -> int:
        """Replace the whole summary collection. Returns the row count written.

        The caller's connection context commits or rolls back both
        statements together.
        """
        rows = [
            (
                s.date.isoformat(),
                s.steps,
                s.distance_km,
                s.kcal_walk,
                s.bmr_kcal,
                s.tdee,
            )
            for s in summaries
        ]
        conn.execute("DELETE FROM daily_summaries")
        conn.executemany(
            """
            INSERT INTO daily_summaries
            (date, steps, distance_km, kcal_walk, bmr_kcal, tdee)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            rows,
        )
        return len(rows)
