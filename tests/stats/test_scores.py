"""Tests for derived score aggregation."""

from evalcore.stats.batteries import BasicMeasurements
from evalcore.stats.scores import category_score, derive_scores
from evalcore.stats.speed import TenMeterSprint
from evalcore.stats.strength import CountermovementJump, PullUps, PushUp


class TestCategoryScore:
    def test_mean_of_completed_batteries(self):
        score = category_score([PullUps(reps=15), PushUp(reps=30)])

        assert score.score == 50.0
        assert score.batteries_completed == 2
        assert score.battery_scores == {"pull_ups": 50.0, "push_up": 50.0}
        assert score.dimensions == {"endurance_strength": 50.0}

    def test_incomplete_batteries_are_left_out(self):
        score = category_score([PullUps(reps=15), CountermovementJump()])

        assert score.batteries_completed == 1
        assert score.score == 50.0

    def test_nothing_completed_scores_none(self):
        score = category_score([CountermovementJump()])

        assert score.score is None
        assert score.batteries_completed == 0
        assert score.dimensions == {}


class TestDeriveScores:
    def test_no_data_has_no_scores(self):
        scores = derive_scores(None, [], [], [])

        assert scores.bmi is None
        assert scores.strength_and_power.score is None
        assert scores.overall is None

    def test_overall_weights_every_battery_equally(self):
        scores = derive_scores(
            BasicMeasurements(height_cm=175, weight_kg=70),
            [PullUps(reps=30), PushUp(reps=0)],
            [TenMeterSprint(attempts=[1.5])],
            [],
        )

        assert scores.bmi == 22.86
        assert scores.bmi_classification == "Normal weight"
        assert scores.strength_and_power.score == 50.0
        assert scores.speed_and_agility.score == 100.0
        assert scores.stamina_and_recovery.score is None
        assert scores.overall == 66.67

    def test_recompute_is_deterministic(self):
        batteries = [PullUps(reps=12), PushUp(reps=33)]

        assert derive_scores(None, batteries, [], []) == derive_scores(None, batteries, [], [])
