"""Tests for body and activity metrics."""

from __future__ import annotations

from datetime import date

import pytest

from steptdee.tracking.metrics import (
    BmrFormula,
    Sex,
    age_on,
    bmi,
    bmi_category,
    bmr_mifflin,
    calculate_bmr,
    distance_km,
    estimate_step_length_m,
    tdee_from_steps,
    walk_kcal,
)


class TestBmi:
    """Tests for bmi function."""

    def test_standard(self) -> None:
        assert bmi(70, 1.75) == pytest.approx(22.857, abs=0.001)

    def test_zero_height_returns_zero(self) -> None:
        assert bmi(70, 0) == 0

    def test_negative_height_returns_zero(self) -> None:
        assert bmi(70, -1.6) == 0
        assert bmi(0, -0.1) == 0


class TestBmiCategory:
    """Tests for bmi_category thresholds."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (17.0, "Underweight"),
            (18.5, "Healthy"),
            (24.9, "Healthy"),
            (25.0, "Overweight"),
            (29.99, "Overweight"),
            (30.0, "Obese"),
        ],
    )
    def test_boundaries(self, value: float, expected: str) -> None:
        assert bmi_category(value) == expected


class TestBmrMifflin:
    """Tests for Mifflin-St Jeor BMR."""

    def test_male(self) -> None:
        # 10*80 + 6.25*180 - 5*30 + 5 = 1780
        assert bmr_mifflin(80, 180, 30, Sex.MALE) == pytest.approx(1780)

    def test_female(self) -> None:
        # 10*60 + 6.25*165 - 5*33 - 161 = 1305.25
        assert bmr_mifflin(60, 165, 33, Sex.FEMALE) == pytest.approx(1305.25)

    def test_accepts_string_values(self) -> None:
        assert bmr_mifflin(80, 180, 30, "male") == bmr_mifflin(80, 180, 30, Sex.MALE)

    def test_male_female_differ_by_166(self) -> None:
        male = bmr_mifflin(70, 170, 40, Sex.MALE)
        female = bmr_mifflin(70, 170, 40, Sex.FEMALE)
        assert male - female == pytest.approx(166)

    def test_other_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="male' or 'female"):
            bmr_mifflin(70, 170, 40, Sex.OTHER)

    def test_calculate_bmr_dispatches_mifflin(self) -> None:
        assert calculate_bmr(80, 180, 30, Sex.MALE, BmrFormula.MIFFLIN) == bmr_mifflin(
            80, 180, 30, Sex.MALE
        )


class TestStepLength:
    """Tests for estimate_step_length_m."""

    def test_male_factor(self) -> None:
        assert estimate_step_length_m(1.80, Sex.MALE) == pytest.approx(0.747)

    def test_female_factor(self) -> None:
        assert estimate_step_length_m(1.60, Sex.FEMALE) == pytest.approx(0.6608)

    def test_other_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            estimate_step_length_m(1.70, Sex.OTHER)


class TestDistanceAndWalking:
    """Tests for distance_km and walk_kcal."""

    def test_distance(self) -> None:
        assert distance_km(10000, 0.75) == pytest.approx(7.5)

    def test_zero_steps(self) -> None:
        assert distance_km(0, 0.75) == 0

    def test_walk_kcal(self) -> None:
        assert walk_kcal(80, 7.5) == pytest.approx(1.036 * 80 * 7.5)


class TestTdeeFromSteps:
    """Tests for tdee_from_steps composition."""

    @pytest.mark.parametrize(
        "weight,height_cm,age,sex,steps,step_length",
        [
            (80.0, 180.0, 30, Sex.MALE, 8000, 0.75),
            (61.3, 164.2, 47, Sex.FEMALE, 12345, 0.678),
            (95.5, 190.0, 22, Sex.MALE, 0, 0.8),
        ],
    )
    def test_equals_bmr_plus_walking(self, weight, height_cm, age, sex, steps, step_length) -> None:
        bmr = bmr_mifflin(weight, height_cm, age, sex)
        expected = bmr + walk_kcal(weight, distance_km(steps, step_length))
        result = tdee_from_steps(
            bmr_kcal=bmr, weight_kg=weight, steps=steps, step_length_m=step_length
        )
        assert result == expected

    def test_no_steps_is_bmr(self) -> None:
        assert tdee_from_steps(bmr_kcal=1500, weight_kg=70, steps=0, step_length_m=0.7) == 1500


class TestAgeOn:
    """Tests for age_on."""

    def test_day_before_birthday(self) -> None:
        assert age_on(date(1990, 6, 15), date(2024, 6, 14)) == 33

    def test_after_birthday(self) -> None:
        assert age_on(date(1990, 6, 15), date(2024, 6, 20)) == 34

    def test_birth_day(self) -> None:
        assert age_on(date(2000, 1, 1), date(2000, 1, 1)) == 0
