"""Step counts from a CSV export."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd

from steptdee.steps.base import BaseStepSource

logger = logging.getLogger(__name__)


class CsvStepSource(BaseStepSource):
    """Reads daily step counts from a CSV file.

    CSV format:
        date,steps
        2024-03-05,8000
        2024-03-05,512

    Rows sharing a date are summed, so exports with several samples per day
    (e.g. per phone and per watch) work as-is. ``date`` may also hold full
    timestamps; only the calendar day is used.
    """

    REQUIRED_COLUMNS = ["date", "steps"]

    def __init__(self, csv_path: Path):
        """Initialize the source.

        Args:
            csv_path: Path to the CSV file
        """
        self.csv_path = Path(csv_path)
        self._totals: Optional[dict[date, int]] = None

    @property
    def source_name(self) -> str:
        return "csv"

    async def is_available(self) -> bool:
        return self.csv_path.is_file()

    async def _read_day_steps(self, day: date) -> Optional[int]:
        return self._load_totals().get(day)

    def _load_totals(self) -> dict[date, int]:
        """Per-day totals, parsed on first use.

        A file that cannot be read counts as no data for every day; the
        failure is logged once and not retried for this instance.
        """
        if self._totals is None:
            try:
                self._totals = self._parse_totals()
            except (OSError, ValueError) as e:
                logger.warning("Could not read step CSV %s, no steps available: %s", self.csv_path, e)
                self._totals = {}
        return self._totals

    def _parse_totals(self) -> dict[date, int]:
        """Read the CSV and sum steps per calendar day.

        Rows with an unparseable date are skipped.

        Raises:
            ValueError: If required columns are missing
        """
        df = pd.read_csv(self.csv_path)

        missing = set(self.REQUIRED_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(
                f"Missing required columns: {missing}. "
                f"Required columns are: {self.REQUIRED_COLUMNS}"
            )

        df["day"] = pd.to_datetime(df["date"], errors="coerce", format="mixed")
        valid = df.dropna(subset=["day", "steps"])
        if len(valid.index) < len(df.index):
            logger.debug(
                "Skipped %d rows without a usable date or step count in %s",
                len(df.index) - len(valid.index),
                self.csv_path,
            )
        valid = valid.assign(steps=pd.to_numeric(valid["steps"], errors="coerce").fillna(0))
        grouped = valid.groupby(valid["day"].dt.date)["steps"].sum()

        return {day: int(total) for day, total in grouped.items()}
