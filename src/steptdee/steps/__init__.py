"""Step count sources.

Each variant reads steps from a different platform export. The sync engine
depends only on the ``StepSource`` protocol; the variant is chosen at
startup from configuration via ``create_step_source``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from steptdee.steps.base import BaseStepSource, DailyStepEntry, StepSource
from steptdee.steps.csv_source import CsvStepSource
from steptdee.steps.health_connect import HealthConnectStepSource

STEP_SOURCES: dict[str, Callable[[Path], StepSource]] = {
    "csv": CsvStepSource,
    "health_connect": HealthConnectStepSource,
}


def create_step_source(kind: str, path: Optional[Path]) -> StepSource:
    """Build the step source variant named by ``kind``.

    Raises:
        ValueError: If the kind is unknown or no path was given
    """
    factory = STEP_SOURCES.get(kind)
    if factory is None:
        raise ValueError(
            f"Unknown step source '{kind}'. Choose from: {', '.join(STEP_SOURCES)}"
        )
    if path is None:
        raise ValueError(f"Step source '{kind}' needs a data path")
    return factory(Path(path).expanduser())


__all__ = [
    "BaseStepSource",
    "CsvStepSource",
    "DailyStepEntry",
    "HealthConnectStepSource",
    "STEP_SOURCES",
    "StepSource",
    "create_step_source",
]
