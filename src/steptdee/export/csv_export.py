"""Export of the weight log and daily summaries as sectioned CSV text.

The format has no schema version. Fields are written without quoting or
escaping; no stored field can contain a comma or newline today, but a
free-text column would require quoting before it is added here.
"""

from __future__ import annotations

from typing import Sequence, Union

from steptdee.db.connection import DatabaseConnection
from steptdee.tracking.models import DailySummary, WeightLogEntry
from steptdee.tracking.stores import SQLiteSummaryStore, SQLiteWeightLogStore

WEIGHT_SECTION_TITLE = "Weight Logs"
WEIGHT_HEADER = "date,weightKg"
SUMMARY_SECTION_TITLE = "Daily Summaries"
SUMMARY_HEADER = "date,steps,distanceKm,kcalWalk,bmrKCal,tdee"


def format_number(value: Union[int, float]) -> str:
    """Full-precision number text; integral floats lose their ``.0``."""
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return str(value)


def _row(*fields: object) -> str:
    return ",".join(
        format_number(f) if isinstance(f, (int, float)) else str(f) for f in fields
    )


def export_csv(
    weight_logs: Sequence[WeightLogEntry],
    summaries: Sequence[DailySummary],
) -> str:
    """Render both collections as CSV text.

    Each section is written only when its collection is non-empty, and the
    weight section is followed by a blank line. Returns an empty string when
    there is nothing to export.
    """
    lines: list[str] = []

    if weight_logs:
        lines.append(WEIGHT_SECTION_TITLE)
        lines.append(WEIGHT_HEADER)
        for log in weight_logs:
            lines.append(_row(log.date.isoformat(), log.weight_kg))
        lines.append("")

    if summaries:
        lines.append(SUMMARY_SECTION_TITLE)
        lines.append(SUMMARY_HEADER)
        for s in summaries:
            lines.append(
                _row(
                    s.date.isoformat(),
                    s.steps,
                    s.distance_km,
                    s.kcal_walk,
                    s.bmr_kcal,
                    s.tdee,
                )
            )

    return "".join(line + "\n" for line in lines)


def export_data_as_csv(db: DatabaseConnection) -> str:
    """Export everything persisted in ``db``. Unreadable tables export as empty."""
    weight_logs = SQLiteWeightLogStore(db).load_all().items
    summaries = SQLiteSummaryStore(db).load().items
    return export_csv(weight_logs, summaries)
