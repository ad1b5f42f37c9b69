"""Body and activity metrics derived from steps and anthropometrics.

All functions are pure and deterministic: no I/O, no shared state. Heights
are in metres except where a function says otherwise, weights in kilograms,
distances in kilometres and energy in kcal.

BMR uses the Mifflin-St Jeor equation, which is widely validated for
estimating resting metabolic rate. Walking energy uses a flat 1.036 kcal
per kg per km approximation. TDEE here is BMR plus walking calories only;
it does not include the thermic effect of food or non-walking activity.
"""

from __future__ import annotations

import math
from datetime import date
from enum import Enum
from typing import Union


class Sex(Enum):
    """Sex as recorded on the profile."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class BmrFormula(Enum):
    """Supported BMR formulas. Add members here for new formulas."""
    MIFFLIN = "mifflin"


# Step length as a fraction of height
STEP_LENGTH_FACTORS = {
    Sex.MALE: 0.415,
    Sex.FEMALE: 0.413,
}

# Gross walking cost in kcal per kg body weight per km
WALK_KCAL_PER_KG_KM = 1.036

DAYS_PER_YEAR = 365.25

# (upper bound, label) pairs, checked in order
BMI_CATEGORIES = (
    (18.5, "Underweight"),
    (25.0, "Healthy"),
    (30.0, "Overweight"),
)

SexLike = Union[Sex, str]


def _binary_sex(sex: SexLike) -> Sex:
    """Coerce to MALE or FEMALE, refusing to guess for anything else."""
    sex_enum = Sex(sex) if isinstance(sex, str) else sex
    if sex_enum not in (Sex.MALE, Sex.FEMALE):
        raise ValueError(
            f"formula requires sex 'male' or 'female', got '{sex_enum.value}'; "
            "resolve the profile's formula sex first"
        )
    return sex_enum


def bmi(weight_kg: float, height_m: float) -> float:
    """Body Mass Index, weight / height².

    Returns 0 for a non-positive height instead of dividing by zero.
    """
    if height_m <= 0:
        return 0
    return weight_kg / (height_m * height_m)


def bmi_category(value: float) -> str:
    """Label a BMI value (Underweight, Healthy, Overweight, Obese)."""
    for upper, label in BMI_CATEGORIES:
        if value < upper:
            return label
    return "Obese"


def bmr_mifflin(
    weight_kg: float,
    height_cm: float,
    age_years: float,
    sex: SexLike,
) -> float:
    """Calculate Basal Metabolic Rate using Mifflin-St Jeor equation.

    Args:
        weight_kg: Weight in kilograms
        height_cm: Height in centimetres
        age_years: Age in years
        sex: Sex.MALE or Sex.FEMALE (or their string values)

    Returns:
        BMR in kcal per day

    Raises:
        ValueError: If sex is not male or female
    """
    sex_enum = _binary_sex(sex)
    base = (10 * weight_kg) + (6.25 * height_cm) - (5 * age_years)
    if sex_enum == Sex.MALE:
        return base + 5
    return base - 161


def calculate_bmr(
    weight_kg: float,
    height_cm: float,
    age_years: float,
    sex: SexLike,
    formula: BmrFormula = BmrFormula.MIFFLIN,
) -> float:
    """Calculate BMR with the selected formula."""
    if formula == BmrFormula.MIFFLIN:
        return bmr_mifflin(weight_kg, height_cm, age_years, sex)
    raise ValueError(f"Unsupported BMR formula: {formula}")


def estimate_step_length_m(height_m: float, sex: SexLike) -> float:
    """Population-level step length estimate from height.

    Male: 0.415 x height, female: 0.413 x height. Users may override the
    estimate with a measured value.
    """
    return height_m * STEP_LENGTH_FACTORS[_binary_sex(sex)]


def distance_km(steps: int, step_length_m: float) -> float:
    """Convert a step count to kilometres."""
    return steps * step_length_m / 1000


def walk_kcal(weight_kg: float, distance_km: float) -> float:
    """Estimate gross calories expended walking a distance."""
    return WALK_KCAL_PER_KG_KM * weight_kg * distance_km


def tdee_from_steps(
    *,
    bmr_kcal: float,
    weight_kg: float,
    steps: int,
    step_length_m: float,
) -> float:
    """Total daily energy expenditure as BMR plus walking calories."""
    kcal = walk_kcal(weight_kg, distance_km(steps, step_length_m))
    return bmr_kcal + kcal


def age_on(date_of_birth: date, day: date) -> int:
    """Whole years of age on a given day, using 365.25-day years."""
    return math.floor((day - date_of_birth).days / DAYS_PER_YEAR)
