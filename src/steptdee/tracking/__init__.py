"""Step-based energy expenditure tracking.

Key components:
- Metrics: BMI, Mifflin-St Jeor BMR, step length, distance, walking kcal, TDEE
- Models: Profile, WeightLogEntry, DailySummary
- Stores: SQLite-backed stores with explicit load/save outcomes
- Sync: fills missing daily summaries from a step source
- Trend: moving and running averages over the recent weight log
"""

from __future__ import annotations

from steptdee.tracking.metrics import BmrFormula, Sex
from steptdee.tracking.models import DailySummary, Profile, WeightLogEntry
from steptdee.tracking.sync import SyncEngine, SyncOutcome, synchronize
from steptdee.tracking.trend import WeightTrendPoint, weight_trend

__all__ = [
    "BmrFormula",
    "DailySummary",
    "Profile",
    "Sex",
    "SyncEngine",
    "SyncOutcome",
    "WeightLogEntry",
    "WeightTrendPoint",
    "synchronize",
    "weight_trend",
]
