"""Data models for the profile, weight log and daily summaries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from steptdee.tracking.metrics import (
    BmrFormula,
    Sex,
    calculate_bmr,
    distance_km,
    tdee_from_steps,
    walk_kcal,
)

logger = logging.getLogger(__name__)

DEFAULT_STEP_GOAL = 10000


@dataclass
class Profile:
    """User profile with static anthropometrics.

    ``weight_kg`` is meant to mirror the latest weight log entry, but it is
    set independently; the CLI updates it when a newer weight is logged.
    """

    profile_id: str
    sex: Sex
    height_m: float
    weight_kg: float
    step_length_m: float
    date_of_birth: Optional[date] = None
    bmr_formula: BmrFormula = BmrFormula.MIFFLIN
    step_goal: int = DEFAULT_STEP_GOAL
    formula_sex: Optional[Sex] = None  # binary choice for BMR when sex is OTHER

    def __post_init__(self) -> None:
        if isinstance(self.sex, str):
            self.sex = Sex(self.sex)
        if isinstance(self.bmr_formula, str):
            self.bmr_formula = BmrFormula(self.bmr_formula)
        if isinstance(self.formula_sex, str):
            self.formula_sex = Sex(self.formula_sex)
        if self.formula_sex == Sex.OTHER:
            raise ValueError("formula_sex must be 'male' or 'female'")
        if self.height_m <= 0:
            raise ValueError(f"height_m must be positive, got {self.height_m}")
        if self.weight_kg <= 0:
            raise ValueError(f"weight_kg must be positive, got {self.weight_kg}")
        if self.step_length_m <= 0:
            raise ValueError(
                f"step_length_m must be positive, got {self.step_length_m}"
            )
        if self.step_goal < 0:
            raise ValueError(f"step_goal must be non-negative, got {self.step_goal}")

    @property
    def height_cm(self) -> float:
        return self.height_m * 100

    def resolve_bmr_sex(self) -> Sex:
        """Return the binary sex used for sex-specific formulas."""
        if self.sex in (Sex.MALE, Sex.FEMALE):
            return self.sex
        if self.formula_sex is not None:
            return self.formula_sex
        logger.warning(
            "Profile %s has sex 'other' and no formula sex; using female formula",
            self.profile_id,
        )
        return Sex.FEMALE


@dataclass(frozen=True)
class WeightLogEntry:
    """One weight observation. The date is unique within the log."""

    date: date
    weight_kg: float


@dataclass(frozen=True)
class DailySummary:
    """Steps and energy expenditure for one calendar day."""

    date: date
    steps: int
    distance_km: float
    kcal_walk: float
    bmr_kcal: float
    tdee: float

    @classmethod
    def from_inputs(
        cls,
        day: date,
        steps: int,
        profile: Profile,
        age_years: int,
    ) -> "DailySummary":
        """Derive every numeric field from the step count and profile."""
        distance = distance_km(steps, profile.step_length_m)
        kcal = walk_kcal(profile.weight_kg, distance)
        bmr = calculate_bmr(
            profile.weight_kg,
            profile.height_cm,
            age_years,
            profile.resolve_bmr_sex(),
            profile.bmr_formula,
        )
        tdee = tdee_from_steps(
            bmr_kcal=bmr,
            weight_kg=profile.weight_kg,
            steps=steps,
            step_length_m=profile.step_length_m,
        )
        return cls(
            date=day,
            steps=steps,
            distance_km=distance,
            kcal_walk=kcal,
            bmr_kcal=bmr,
            tdee=tdee,
        )
