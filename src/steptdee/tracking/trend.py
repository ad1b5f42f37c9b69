"""Moving averages for the weight log.

Both averages run over the most recent entries only (30 by default) and
step by entry, not by calendar day, so gaps between weigh-ins do not
change the window:

    moving_i     = mean(w_{i-6} .. w_i)     (fewer at the start of the view)
    cumulative_i = mean(w_0 .. w_i)

The cumulative average restarts at the first entry of the view, so it is
the running mean of what is shown rather than of the whole history.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Sequence

from steptdee.tracking.models import WeightLogEntry

DEFAULT_WINDOW = 7
DEFAULT_VIEW_SIZE = 30


@dataclass(frozen=True)
class WeightTrendPoint:
    """A weight entry with its averages."""

    date: date
    weight_kg: float
    moving_average_kg: float
    cumulative_average_kg: float


def rolling_averages(weights: Sequence[float], window: int = DEFAULT_WINDOW) -> list[float]:
    """
    Trailing mean of each value and up to ``window - 1`` values before it.

    Example:
        >>> rolling_averages([70, 72, 74], window=2)
        [70.0, 71.0, 73.0]
    """
    if window < 1:
        raise ValueError(f"window must be at least 1, got {window}")

    averages = []
    for i in range(len(weights)):
        chunk = weights[max(0, i - window + 1) : i + 1]
        averages.append(sum(chunk) / len(chunk))
    return averages


def cumulative_averages(weights: Sequence[float]) -> list[float]:
    """Running mean from the first value up to each value."""
    averages = []
    total = 0.0
    for i, weight in enumerate(weights, start=1):
        total += weight
        averages.append(total / i)
    return averages


def weight_trend(
    entries: Sequence[WeightLogEntry],
    window: int = DEFAULT_WINDOW,
    limit: int = DEFAULT_VIEW_SIZE,
) -> list[WeightTrendPoint]:
    """
    Averages over the latest ``limit`` entries.

    Args:
        entries: Weight log in any order
        window: Entries in the moving average
        limit: Most recent entries to include; earlier ones are ignored

    Returns:
        One point per included entry, oldest first
    """
    recent = sorted(entries, key=lambda e: e.date)[-limit:] if limit > 0 else []
    weights = [e.weight_kg for e in recent]

    return [
        WeightTrendPoint(
            date=entry.date,
            weight_kg=entry.weight_kg,
            moving_average_kg=moving,
            cumulative_average_kg=cumulative,
        )
        for entry, moving, cumulative in zip(
            recent, rolling_averages(weights, window), cumulative_averages(weights)
        )
    ]
