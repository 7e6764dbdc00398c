"""Tests for repeated sprint ability metrics."""

import pytest

from evalcore.stats.rsa import INSUFFICIENT_DATA, calculate_rsa_metrics, fatigue_resistance, rsa_rating

SPRINTS = [4.3, 4.0, 4.5, 4.1, 4.4, 4.2]


class TestCalculateRsaMetrics:
    def test_metrics_from_unordered_times(self):
        metrics = calculate_rsa_metrics(SPRINTS)

        assert metrics.best_time == 4.0
        assert metrics.worst_time == 4.5
        assert metrics.total_time == 25.5
        assert metrics.average_time == 4.25
        assert metrics.fatigue_index == 93.2
        assert metrics.sprint_decrement == 5.9
        assert metrics.fatigue_slope_percentage == 2.5
        assert metrics.rsa_rating == "Very Good"
        assert metrics.fatigue_resistance == "Very Good"

    def test_short_sprint_example(self):
        metrics = calculate_rsa_metrics([1.00, 1.02, 1.05, 1.10, 1.15, 1.20])

        assert metrics.best_time == 1.0
        assert metrics.worst_time == 1.2
        assert metrics.fatigue_index == 89.0
        assert metrics.sprint_decrement == 8.0
        assert metrics.fatigue_slope_percentage == 4.1

    def test_order_does_not_matter(self):
        assert calculate_rsa_metrics(SPRINTS) == calculate_rsa_metrics(sorted(SPRINTS, reverse=True))

    def test_power_needs_weight_and_distance(self):
        with_power = calculate_rsa_metrics(SPRINTS, body_weight_kg=80, distance_m=30)
        without = calculate_rsa_metrics(SPRINTS, body_weight_kg=80)

        assert with_power.peak_power == 1125
        assert with_power.mean_power < with_power.peak_power
        assert with_power.power_decrement == with_power.peak_power - with_power.mean_power
        assert without.peak_power is None

    def test_invalid_readings_are_ignored(self):
        metrics = calculate_rsa_metrics([4.0, None, 0, -1.0, 4.2, 4.4])

        assert metrics.best_time == 4.0
        assert metrics.total_time == pytest.approx(12.6)

    @pytest.mark.parametrize("times", [[], [4.0], [4.0, 4.1], [4.0, 0, None]])
    def test_fewer_than_three_sprints(self, times):
        metrics = calculate_rsa_metrics(times)

        assert metrics.fatigue_index is None
        assert metrics.sprint_decrement is None
        assert metrics.rsa_rating == INSUFFICIENT_DATA
        assert metrics.fatigue_resistance == "N/A"

    def test_identical_times_have_no_fatigue(self):
        metrics = calculate_rsa_metrics([4.0, 4.0, 4.0])

        assert metrics.fatigue_index == 100.0
        assert metrics.sprint_decrement == 0.0
        assert metrics.fatigue_slope_percentage == 0.0
        assert metrics.rsa_rating == "Excellent"


class TestRatings:
    @pytest.mark.parametrize(
        ("fi", "label"),
        [(97.0, "Excellent"), (95.0, "Excellent"), (91.0, "Very Good"), (86.0, "Good"), (80.0, "Fair"), (79.9, "Poor")],
    )
    def test_rsa_rating(self, fi, label):
        assert rsa_rating(fi) == label

    @pytest.mark.parametrize(
        ("sdec", "label"),
        [(3.0, "Excellent"), (5.0, "Excellent"), (8.0, "Very Good"), (15.0, "Good"), (19.0, "Fair"), (25.0, "Poor")],
    )
    def test_fatigue_resistance(self, sdec, label):
        assert fatigue_resistance(sdec) == label
