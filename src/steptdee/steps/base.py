"""Base protocol for step count sources."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Protocol, Union, runtime_checkable

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class DailyStepEntry:
    """Step count for one local calendar day."""

    date: date
    steps: int


def to_local_day(value: DateLike) -> date:
    """Truncate a datetime to its calendar day; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


@runtime_checkable
class StepSource(Protocol):
    """Protocol for step count sources.

    Implementations must never raise from the step-reading methods: missing
    data or internal errors read as 0 steps.
    """

    @property
    def source_name(self) -> str:
        """Return the name of this data source."""
        ...

    async def is_available(self) -> bool:
        """Whether the underlying data can be read on this host."""
        ...

    async def request_permissions(self) -> bool:
        """Ask for read access to step counts. True if granted."""
        ...

    async def get_today_steps(self, today: Optional[date] = None) -> int:
        """Steps for the current local day."""
        ...

    async def get_daily_steps_range(
        self, start: DateLike, end: DateLike
    ) -> list[DailyStepEntry]:
        """One entry per calendar day in [start, end], ascending."""
        ...


class BaseStepSource(ABC):
    """Base class for step sources with the never-fails contract built in.

    Subclasses only read a single day's total; this class fills every day of
    a range, substitutes 0 for failures and clamps negative counts.
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return the name of this data source."""
        pass

    @abstractmethod
    async def is_available(self) -> bool:
        pass

    @abstractmethod
    async def _read_day_steps(self, day: date) -> Optional[int]:
        """Read the total for one day. None or an exception means no data."""
        pass

    async def request_permissions(self) -> bool:
        return await self.is_available()

    async def get_today_steps(self, today: Optional[date] = None) -> int:
        day = today or date.today()
        entries = await self.get_daily_steps_range(day, day)
        return entries[0].steps if entries else 0

    async def get_daily_steps_range(
        self, start: DateLike, end: DateLike
    ) -> list[DailyStepEntry]:
        start_day = to_local_day(start)
        end_day = to_local_day(end)
        if start_day > end_day:
            return []

        entries = []
        day = start_day
        while day <= end_day:
            entries.append(DailyStepEntry(date=day, steps=await self._safe_read(day)))
            day += timedelta(days=1)
        return entries

    async def _safe_read(self, day: date) -> int:
        try:
            steps = await self._read_day_steps(day)
        except Exception as e:
            logger.warning(
                "%s: could not read steps for %s, using 0: %s",
                self.source_name,
                day,
                e,
            )
            return 0
        if steps is None:
            return 0
        return max(int(steps), 0)
