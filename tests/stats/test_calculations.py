"""Tests for the sports-science formulas."""

import pytest

from evalcore.stats import calculations as calc


class TestBasicMeasurements:
    def test_bmi(self):
        assert calc.bmi(70, 1.75) == 22.86
        assert calc.bmi_classification(22.86) == "Normal weight"

    def test_bmi_scales_with_weight(self):
        assert calc.bmi(140, 1.75) == pytest.approx(2 * calc.bmi(70, 1.75), abs=0.01)

    @pytest.mark.parametrize("factor", [0.5, 2.0, 4.0])
    def test_bmi_unchanged_when_weight_and_height_squared_scale_together(self, factor):
        assert calc.bmi(70 * factor, 1.75 * factor**0.5) == calc.bmi(70, 1.75)

    def test_bmi_example_scale(self):
        assert calc.bmi(280, 3.5) == calc.bmi(70, 1.75)

    @pytest.mark.parametrize(("weight", "height"), [(None, 1.75), (70, None), (70, 0), (-1, 1.8)])
    def test_bmi_missing_input_is_none(self, weight, height):
        assert calc.bmi(weight, height) is None

    @pytest.mark.parametrize(
        ("value", "label"),
        [(17.0, "Underweight"), (18.5, "Normal weight"), (25.0, "Overweight"), (31.2, "Obese"), (None, None)],
    )
    def test_bmi_classification(self, value, label):
        assert calc.bmi_classification(value) == label


class TestJumps:
    def test_height_from_flight_time(self):
        assert calc.jump_height_from_flight_time(0.5) == 0.3066

    def test_height_from_reach(self):
        assert calc.jump_height_from_reach(300, 260) == 40

    def test_takeoff_velocity(self):
        assert calc.takeoff_velocity(40) == 2.801

    def test_sayers_peak_power(self):
        assert calc.peak_power(40, 80) == 3997.0

    def test_peak_power_floored_at_zero(self):
        assert calc.peak_power(0, 21) == 0.0

    def test_relative_power(self):
        assert calc.relative_power(3997.0, 80) == 49.96
        assert calc.relative_power(3997.0, None) is None

    def test_reactive_strength_index_uses_metres(self):
        rsi = calc.reactive_strength_index(40, 0.2)

        assert rsi == 2.0
        assert calc.rsi_rating(rsi) == "good"

    def test_rsi_requires_contact_time(self):
        assert calc.reactive_strength_index(40, None) is None
        assert calc.reactive_strength_index(40, 0) is None


class TestLoadedMovements:
    def test_kinetics_estimated_from_load_and_bar_path(self):
        kinetics = calc.loaded_movement_kinetics(40, 80, 0.5, 0.25)

        assert kinetics == {
            "force_n": 549.36,
            "velocity_ms": 2.0,
            "power_w": 1098.72,
            "work_j": 274.68,
            "impulse_ns": 137.34,
        }

    def test_sensor_readings_take_precedence(self):
        kinetics = calc.loaded_movement_kinetics(40, 80, 0.5, 0.25, peak_velocity=3.0, peak_force=600)

        assert kinetics["force_n"] == 600
        assert kinetics["velocity_ms"] == 3.0
        assert kinetics["power_w"] == 1800.0

    def test_kinetics_without_body_weight_or_sensor(self):
        kinetics = calc.loaded_movement_kinetics(40, None, 0.5, 0.25)

        assert kinetics["force_n"] is None
        assert kinetics["power_w"] is None
        assert kinetics["velocity_ms"] == 2.0

    def test_one_rep_max_estimates(self):
        assert calc.one_rep_max_epley(100, 5) == 116.67
        assert calc.one_rep_max_brzycki(100, 5) == 112.51
        assert calc.one_rep_max_epley(100, 0) is None
        assert calc.one_rep_max_brzycki(100, 37) is None

    def test_velocity_based_strength_metrics(self):
        assert calc.velocity_based_one_rep_max(140, 0.6) == 116.7
        assert calc.velocity_to_load_ratio(0.6, 140) == 0.0043
        assert calc.volume_load(140, 3) == 420
        assert calc.relative_strength(144.67, 80) == 1.81
        assert calc.velocity_based_one_rep_max(140, None) is None
        assert calc.relative_strength(144.67, None) is None

    def test_jump_work_and_flight_time(self):
        assert calc.mechanical_work(80, 0.1) == 78.48
        assert calc.flight_time_from_height(0.3066) == 0.5
        assert calc.mechanical_work(None, 0.1) is None

    def test_hold_endurance_ratio(self):
        assert calc.hold_endurance_ratio(30, 120) == 0.25
        assert calc.hold_endurance_ratio(None, 120) is None

    def test_push_up_metrics(self):
        assert calc.seconds_per_rep(60, 30) == 2.0
        assert calc.reps_per_minute(30, 20) == 40.0
        assert calc.push_up_power_index(30, 80, 60) == 25.6
        assert calc.seconds_per_rep(60, 0) is None


class TestSpeed:
    def test_velocity_and_acceleration(self):
        assert calc.average_velocity(10, 2.0) == 5.0
        assert calc.acceleration(10, 2.0) == 2.5
        assert calc.average_velocity(10, 0) is None

    def test_split_peak_velocity(self):
        splits = {0.0: 0.0, 10.0: 1.8, 20.0: 3.0, 30.0: 4.1, 40.0: 5.2}

        assert calc.split_peak_velocity(splits) == pytest.approx(9.091, abs=0.001)
        assert calc.split_peak_velocity({0.0: 0.0}) is None

    @pytest.mark.parametrize(
        ("gender", "label"),
        [("male", "good"), ("FEMALE", "excellent"), (None, "good"), ("unknown", "good")],
    )
    def test_t_test_rating_by_gender(self, gender, label):
        assert calc.t_test_rating(10.2, gender) == label

    def test_illinois_rating(self):
        assert calc.illinois_rating(15.0, "MALE") == "excellent"
        assert calc.illinois_rating(25.0, "FEMALE") == "poor"
        assert calc.illinois_rating(None, "MALE") is None


class TestStamina:
    def test_vo2max_estimates(self):
        assert calc.vo2max_beep_test(10, 5) == 48.33
        assert calc.vo2max_cooper(2800) == 51.29
        assert calc.vo2max_yoyo(1000) == 44.8

    def test_vo2max_rating(self):
        assert calc.vo2max_rating(51.29, "MALE") == "good"
        assert calc.vo2max_rating(51.29, "FEMALE") == "superior"
        assert calc.vo2max_rating(None, "MALE") is None

    def test_heart_rate(self):
        assert calc.max_heart_rate(30) == 190
        assert calc.hr_recovery(180, 150) == 30
        assert calc.hr_recovery_rating(30) == "excellent"
        assert calc.hr_recovery_rating(4) == "poor"
        assert calc.hr_recovery(None, 150) is None

    def test_heart_rate_reserve_and_targets(self):
        assert calc.heart_rate_reserve(190, 60) == 130
        assert calc.target_heart_rate(190, 60, 50) == 125
        assert calc.target_heart_rate(190, 60, 70) == 151
        assert calc.heart_rate_reserve(None, 60) is None
        assert calc.target_heart_rate(190, None, 70) is None

    @pytest.mark.parametrize(("angle", "label"), [(85, "excellent"), (80, "good"), (60, "average"), (59, "poor"), (None, None)])
    def test_aslr_rating(self, angle, label):
        assert calc.aslr_rating(angle) == label

    @pytest.mark.parametrize(("distance", "label"), [(13, "excellent"), (10, "good"), (8, "average"), (7.5, "poor")])
    def test_knee_to_wall_rating(self, distance, label):
        assert calc.knee_to_wall_rating(distance) == label

    def test_sit_and_reach_rating(self):
        assert calc.sit_and_reach_rating(15, "MALE") == "excellent"
        assert calc.sit_and_reach_rating(-10, "FEMALE") == "poor"


class TestNormalization:
    def test_midpoint(self):
        assert calc.normalize_to_scale(50, 0, 100) == 50.0

    def test_inverted(self):
        assert calc.normalize_to_scale(1.5, 1.5, 2.2, invert=True) == 100.0
        assert calc.normalize_to_scale(2.2, 1.5, 2.2, invert=True) == 0.0

    def test_clamped(self):
        assert calc.normalize_to_scale(10, 0, 5) == 100.0
        assert calc.normalize_to_scale(-3, 0, 5) == 0.0

    def test_missing_value(self):
        assert calc.normalize_to_scale(None, 0, 100) is None

    def test_descriptive_statistics(self):
        assert calc.mean([1, 2, 3]) == 2.0
        assert calc.mean([]) is None
        assert calc.standard_deviation([2, 4, 4, 4, 5, 5, 7, 9]) == 2.0
        assert calc.coefficient_of_variation([10, 10]) == 0.0
        assert calc.coefficient_of_variation([]) is None

    def test_median(self):
        assert calc.median([3, 1, 2]) == 2.0
        assert calc.median([1, 2, 3, 4]) == 2.5
        assert calc.median([]) is None
