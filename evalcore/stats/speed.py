"""Speed & agility batteries."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from evalcore.stats import calculations as calc
from evalcore.stats.base import BatteryBase, BodyWeight, Category, GenderInput, Milliseconds, Seconds
from evalcore.stats.rsa import RSAMetrics, calculate_rsa_metrics


class _SpeedBattery(BatteryBase):
    category = Category.SPEED_AND_AGILITY


class SprintCalculated(BaseModel):
    best_time_s: float | None = None
    average_time_s: float | None = None
    average_velocity_ms: float | None = None
    acceleration_ms2: float | None = None
    peak_velocity_ms: float | None = None


class TenMeterSprint(_SpeedBattery):
    dimension = "acceleration"
    score_range = (1.5, 2.2)
    invert_score = True

    battery: Literal["ten_meter_sprint"] = "ten_meter_sprint"
    attempts: list[Seconds] = Field(default_factory=list, max_length=10)
    calculated: SprintCalculated | None = None

    def compute(self) -> SprintCalculated:
        if not self.attempts:
            return SprintCalculated()
        best = min(self.attempts)
        return SprintCalculated(
            best_time_s=best,
            average_time_s=calc.mean(self.attempts),
            average_velocity_ms=calc.average_velocity(10.0, best),
            acceleration_ms2=calc.acceleration(10.0, best),
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.best_time_s


class DashAttempt(BaseModel):
    """40 m run with optional cumulative split times."""

    time_s: Seconds
    split_10m_s: Seconds | None = None
    split_20m_s: Seconds | None = None
    split_30m_s: Seconds | None = None

    def splits(self) -> dict[float, float]:
        points = {0.0: 0.0, 10.0: self.split_10m_s, 20.0: self.split_20m_s, 30.0: self.split_30m_s, 40.0: self.time_s}
        return {d: t for d, t in points.items() if t is not None}


class FortyMeterDash(_SpeedBattery):
    dimension = "sprint_speed"
    score_range = (4.5, 6.5)
    invert_score = True

    battery: Literal["forty_meter_dash"] = "forty_meter_dash"
    attempts: list[DashAttempt] = Field(default_factory=list, max_length=10)
    calculated: SprintCalculated | None = None

    def compute(self) -> SprintCalculated:
        if not self.attempts:
            return SprintCalculated()
        best = min(self.attempts, key=lambda a: a.time_s)
        splits = best.splits()
        return SprintCalculated(
            best_time_s=best.time_s,
            average_time_s=calc.mean([a.time_s for a in self.attempts]),
            average_velocity_ms=calc.average_velocity(40.0, best.time_s),
            acceleration_ms2=calc.acceleration(10.0, best.split_10m_s),
            peak_velocity_ms=calc.split_peak_velocity(splits) if len(splits) > 2 else None,
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.best_time_s


class RepeatedSprintAbility(_SpeedBattery):
    """Repeated sprints over a fixed distance; scored on the fatigue index."""

    dimension = "repeated_sprint"
    score_range = (70.0, 100.0)

    battery: Literal["repeated_sprint_ability"] = "repeated_sprint_ability"
    distance_m: float = Field(default=30.0, ge=10, le=60)
    recovery_s: float | None = Field(default=None, ge=0, le=300)
    body_weight_kg: BodyWeight | None = None
    sprint_times: list[Seconds] = Field(default_factory=list, max_length=15)
    calculated: RSAMetrics | None = None

    def compute(self) -> RSAMetrics:
        return calculate_rsa_metrics(self.sprint_times, self.body_weight_kg, self.distance_m)

    @property
    def score_value(self) -> float | None:
        return self.calculated.fatigue_index


class AgilityCalculated(BaseModel):
    best_time_s: float | None = None
    average_time_s: float | None = None
    rating: str | None = None


class TTest(_SpeedBattery):
    dimension = "agility"
    score_range = (9.0, 13.0)
    invert_score = True

    battery: Literal["t_test"] = "t_test"
    gender: GenderInput = None
    attempts: list[Seconds] = Field(default_factory=list, max_length=10)
    calculated: AgilityCalculated | None = None

    def compute(self) -> AgilityCalculated:
        best = min(self.attempts) if self.attempts else None
        return AgilityCalculated(
            best_time_s=best,
            average_time_s=calc.mean(self.attempts),
            rating=calc.t_test_rating(best, self.gender),
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.best_time_s


class ReactiveAttempt(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total_time_s: float = Field(ge=5, le=20)
    decision_time_s: float | None = Field(default=None, ge=0.1, le=3)
    movement_time_s: float | None = Field(default=None, ge=4, le=18)
    cued_direction: Literal["left", "right", "forward", "backward"] | None = None
    response_correct: bool = True
    penalty_s: float = Field(default=0.0, ge=0, le=5)


class ReactiveAgilityCalculated(BaseModel):
    best_time_s: float | None = None
    worst_time_s: float | None = None
    average_time_s: float | None = None
    median_time_s: float | None = None
    consistency_cv: float | None = None
    reliability_score: int | None = None
    average_decision_time_s: float | None = None
    average_movement_time_s: float | None = None
    accuracy_pct: float | None = None
    total_penalty_s: float | None = None
    fatigue_index_pct: float | None = None
    learning_curve_pct: float | None = None
    estimated_planned_time_s: float | None = None
    rating: str | None = None
    cognitive_agility_score: int | None = None


class ReactiveAgilityTTest(_SpeedBattery):
    """T-test run to a live cue.

    Attempts are kept in the order run: the fatigue index compares the mean of
    the first three with the last three (needs six), and the learning curve
    compares the first attempt with the best. Reactive times are rated on the
    planned T-test bands after removing the typical cue penalty.
    """

    dimension = "agility"
    score_range = (9.0, 14.0)
    invert_score = True

    battery: Literal["reactive_agility_t_test"] = "reactive_agility_t_test"
    test_mode: Literal["reactive", "traditional"] = "reactive"
    gender: GenderInput = None
    attempts: list[ReactiveAttempt] = Field(default_factory=list, max_length=10)
    calculated: ReactiveAgilityCalculated | None = None

    def compute(self) -> ReactiveAgilityCalculated:
        if len(self.attempts) < 3:
            return ReactiveAgilityCalculated()
        times = [a.total_time_s for a in self.attempts]
        best = min(times)
        reactive = self.test_mode == "reactive"
        cv = calc.coefficient_of_variation(times)
        decisions = [a.decision_time_s for a in self.attempts if a.decision_time_s is not None]
        movements = [a.movement_time_s for a in self.attempts if a.movement_time_s is not None]
        accuracy = sum(a.response_correct for a in self.attempts) / len(self.attempts) * 100

        fatigue = None
        if len(times) >= 6:
            first, last = sum(times[:3]) / 3, sum(times[-3:]) / 3
            fatigue = round((last - first) / first * 100, 1)

        planned = max(best - calc.REACTIVE_T_TEST_PENALTY_S, 8.0) if reactive else best
        speed_score = max(0.0, 100 - (best - 9) * 10)
        return ReactiveAgilityCalculated(
            best_time_s=round(best, 2),
            worst_time_s=round(max(times), 2),
            average_time_s=calc.mean(times),
            median_time_s=calc.median(times),
            consistency_cv=cv,
            reliability_score=round(max(0.0, 100 - cv * 10)) if cv is not None else None,
            average_decision_time_s=round(sum(decisions) / len(decisions), 3) if decisions else None,
            average_movement_time_s=calc.mean(movements),
            accuracy_pct=round(accuracy, 1),
            total_penalty_s=round(sum(a.penalty_s for a in self.attempts), 2),
            fatigue_index_pct=fatigue,
            learning_curve_pct=round((times[0] - best) / times[0] * 100, 1),
            estimated_planned_time_s=round(planned, 2),
            rating=calc.t_test_rating(best - calc.REACTIVE_T_TEST_PENALTY_S if reactive else best, self.gender),
            cognitive_agility_score=round(speed_score * 0.7 + accuracy * 0.3),
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.best_time_s


class IllinoisAgility(_SpeedBattery):
    dimension = "agility"
    score_range = (15.0, 22.0)
    invert_score = True

    battery: Literal["illinois_agility"] = "illinois_agility"
    gender: GenderInput = None
    attempts: list[Seconds] = Field(default_factory=list, max_length=10)
    calculated: AgilityCalculated | None = None

    def compute(self) -> AgilityCalculated:
        best = min(self.attempts) if self.attempts else None
        return AgilityCalculated(
            best_time_s=best,
            average_time_s=calc.mean(self.attempts),
            rating=calc.illinois_rating(best, self.gender),
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.best_time_s


class FiveZeroFive(_SpeedBattery):
    """5-0-5 change-of-direction test, timed over the 10 m around the turn."""

    dimension = "agility"
    score_range = (2.0, 3.2)
    invert_score = True

    battery: Literal["five_zero_five"] = "five_zero_five"
    attempts: list[Annotated[float, Field(gt=0, le=15)]] = Field(default_factory=list, max_length=10)
    calculated: AgilityCalculated | None = None

    def compute(self) -> AgilityCalculated:
        return AgilityCalculated(
            best_time_s=min(self.attempts) if self.attempts else None,
            average_time_s=calc.mean(self.attempts),
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.best_time_s


class ReactionCalculated(BaseModel):
    best_reaction_ms: float | None = None
    average_reaction_ms: float | None = None
    consistency_cv: float | None = None


class VisualReaction(_SpeedBattery):
    """Scored on the average reaction time, which is steadier than the best."""

    dimension = "reaction_time"
    score_range = (150.0, 350.0)
    invert_score = True

    battery: Literal["visual_reaction"] = "visual_reaction"
    attempts_ms: list[Milliseconds] = Field(default_factory=list, max_length=20)
    calculated: ReactionCalculated | None = None

    def compute(self) -> ReactionCalculated:
        if not self.attempts_ms:
            return ReactionCalculated()
        return ReactionCalculated(
            best_reaction_ms=min(self.attempts_ms),
            average_reaction_ms=calc.mean(self.attempts_ms),
            consistency_cv=calc.coefficient_of_variation(self.attempts_ms) if len(self.attempts_ms) > 1 else None,
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.average_reaction_ms


class LongJumpCalculated(BaseModel):
    best_distance_m: float | None = None
    average_distance_m: float | None = None


class StandingLongJump(_SpeedBattery):
    dimension = "horizontal_power"
    score_range = (1.5, 3.2)

    battery: Literal["standing_long_jump"] = "standing_long_jump"
    attempts_m: list[float] = Field(default_factory=list, max_length=10)
    calculated: LongJumpCalculated | None = None

    def compute(self) -> LongJumpCalculated:
        distances = [d for d in self.attempts_m if d > 0]
        if not distances:
            return LongJumpCalculated()
        return LongJumpCalculated(best_distance_m=max(distances), average_distance_m=calc.mean(distances))

    @property
    def score_value(self) -> float | None:
        return self.calculated.best_distance_m


class LongJump(_SpeedBattery):
    """Running long jump."""

    dimension = "horizontal_power"
    score_range = (3.0, 8.0)

    battery: Literal["long_jump"] = "long_jump"
    attempts_m: list[Annotated[float, Field(gt=0, le=10)]] = Field(default_factory=list, max_length=10)
    calculated: LongJumpCalculated | None = None

    def compute(self) -> LongJumpCalculated:
        if not self.attempts_m:
            return LongJumpCalculated()
        return LongJumpCalculated(best_distance_m=max(self.attempts_m), average_distance_m=calc.mean(self.attempts_m))

    @property
    def score_value(self) -> float | None:
        return self.calculated.best_distance_m


SPEED_BATTERIES = (
    TenMeterSprint,
    FortyMeterDash,
    RepeatedSprintAbility,
    TTest,
    ReactiveAgilityTTest,
    IllinoisAgility,
    FiveZeroFive,
    VisualReaction,
    StandingLongJump,
    LongJump,
)
