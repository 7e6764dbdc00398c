"""Strength & power batteries."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from evalcore.stats import calculations as calc
from evalcore.stats.base import BatteryBase, BodyWeight, Category, JumpAttempt, Kilograms, LoadedAttempt, Seconds


def jump_height_cm(attempt: JumpAttempt) -> float | None:
    reach = calc.jump_height_from_reach(attempt.jump_reach_cm, attempt.standing_reach_cm)
    if reach is not None and reach >= 0:
        return reach
    height_m = calc.jump_height_from_flight_time(attempt.flight_time_s)
    return round(height_m * 100, 2) if height_m is not None else None


def _best_height(attempts: list[JumpAttempt]) -> float | None:
    heights = [h for h in (jump_height_cm(a) for a in attempts) if h is not None]
    return max(heights) if heights else None


class _StrengthBattery(BatteryBase):
    category = Category.STRENGTH_AND_POWER


class JumpCalculated(BaseModel):
    best_jump_height_cm: float | None = None
    peak_power_w: float | None = None
    relative_power_wkg: float | None = None
    takeoff_velocity_ms: float | None = None
    consistency_cv: float | None = None


class CountermovementJump(_StrengthBattery):
    dimension = "explosive_power"
    score_range = (2000.0, 6000.0)

    battery: Literal["countermovement_jump"] = "countermovement_jump"
    body_weight_kg: BodyWeight | None = None
    attempts: list[JumpAttempt] = Field(default_factory=list, max_length=10)
    calculated: JumpCalculated | None = None

    def compute(self) -> JumpCalculated:
        heights = [h for h in (jump_height_cm(a) for a in self.attempts) if h is not None]
        best = max(heights) if heights else None
        power = calc.peak_power(best, self.body_weight_kg)
        return JumpCalculated(
            best_jump_height_cm=best,
            peak_power_w=power,
            relative_power_wkg=calc.relative_power(power, self.body_weight_kg),
            takeoff_velocity_ms=calc.takeoff_velocity(best),
            consistency_cv=calc.coefficient_of_variation(heights) if len(heights) > 1 else None,
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.peak_power_w


class LoadedSquatJump(_StrengthBattery):
    """Jump with an external load; Sayers power uses body mass + load."""

    dimension = "explosive_power"
    score_range = (2500.0, 7000.0)

    battery: Literal["loaded_squat_jump"] = "loaded_squat_jump"
    body_weight_kg: BodyWeight | None = None
    load_kg: Kilograms = 0.0
    attempts: list[JumpAttempt] = Field(default_factory=list, max_length=10)
    calculated: JumpCalculated | None = None

    def compute(self) -> JumpCalculated:
        best = _best_height(self.attempts)
        total_mass = self.body_weight_kg + self.load_kg if self.body_weight_kg is not None else None
        power = calc.peak_power(best, total_mass)
        return JumpCalculated(
            best_jump_height_cm=best,
            peak_power_w=power,
            relative_power_wkg=calc.relative_power(power, self.body_weight_kg),
            takeoff_velocity_ms=calc.takeoff_velocity(best),
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.peak_power_w


class DepthJumpCalculated(BaseModel):
    best_jump_height_cm: float | None = None
    best_contact_time_s: float | None = None
    reactive_strength_index: float | None = None
    rsi_rating: str | None = None


class DepthJump(_StrengthBattery):
    dimension = "explosive_power"
    score_range = (0.5, 3.0)

    battery: Literal["depth_jump"] = "depth_jump"
    box_height_cm: float | None = Field(default=None, gt=0, le=120)
    attempts: list[JumpAttempt] = Field(default_factory=list, max_length=10)
    calculated: DepthJumpCalculated | None = None

    def compute(self) -> DepthJumpCalculated:
        best: tuple[float, float, float] | None = None
        for attempt in self.attempts:
            height = jump_height_cm(attempt)
            rsi = calc.reactive_strength_index(height, attempt.ground_contact_time_s)
            if rsi is not None and (best is None or rsi > best[0]):
                best = (rsi, height, attempt.ground_contact_time_s)
        if best is None:
            return DepthJumpCalculated(best_jump_height_cm=_best_height(self.attempts))
        rsi, height, contact = best
        return DepthJumpCalculated(
            best_jump_height_cm=height,
            best_contact_time_s=contact,
            reactive_strength_index=rsi,
            rsi_rating=calc.rsi_rating(rsi),
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.reactive_strength_index


class BallisticCalculated(BaseModel):
    peak_power_w: float | None = None
    force_n: float | None = None
    velocity_ms: float | None = None
    work_j: float | None = None
    impulse_ns: float | None = None
    optimal_load_kg: float | None = None
    relative_power_wkg: float | None = None


class BallisticBenchPress(_StrengthBattery):
    """Bar throws across loads; the optimal load is the one producing peak power."""

    dimension = "explosive_power"
    score_range = (300.0, 1500.0)

    battery: Literal["ballistic_bench_press"] = "ballistic_bench_press"
    body_weight_kg: BodyWeight | None = None
    attempts: list[LoadedAttempt] = Field(default_factory=list, max_length=10)
    calculated: BallisticCalculated | None = None

    def compute(self) -> BallisticCalculated:
        best: tuple[dict[str, float | None], float] | None = None
        for attempt in self.attempts:
            kinetics = calc.loaded_movement_kinetics(
                attempt.load_kg,
                self.body_weight_kg,
                attempt.distance_m,
                attempt.time_s,
                peak_velocity=attempt.peak_velocity_ms,
                peak_force=attempt.peak_force_n,
            )
            power = kinetics["power_w"]
            if power is not None and (best is None or power > best[0]["power_w"]):
                best = (kinetics, attempt.load_kg)
        if best is None:
            return BallisticCalculated()
        kinetics, load = best
        return BallisticCalculated(
            peak_power_w=kinetics["power_w"],
            force_n=kinetics["force_n"],
            velocity_ms=kinetics["velocity_ms"],
            work_j=kinetics["work_j"],
            impulse_ns=kinetics["impulse_ns"],
            optimal_load_kg=load,
            relative_power_wkg=calc.relative_power(kinetics["power_w"], self.body_weight_kg),
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.peak_power_w


class OneRepMaxCalculated(BaseModel):
    estimated_one_rep_max_kg: float | None = None
    brzycki_one_rep_max_kg: float | None = None
    best_velocity_ms: float | None = None
    heaviest_load_kg: float | None = None


def _one_rep_max(attempts: list[LoadedAttempt]) -> OneRepMaxCalculated:
    epley = [e for e in (calc.one_rep_max_epley(a.load_kg, a.reps) for a in attempts) if e is not None]
    brzycki = [b for b in (calc.one_rep_max_brzycki(a.load_kg, a.reps) for a in attempts) if b is not None]
    velocities = []
    for attempt in attempts:
        v = attempt.peak_velocity_ms
        if v is None:
            v = calc.average_velocity(attempt.distance_m, attempt.time_s)
        if v is not None:
            velocities.append(v)
    return OneRepMaxCalculated(
        estimated_one_rep_max_kg=max(epley) if epley else None,
        brzycki_one_rep_max_kg=max(brzycki) if brzycki else None,
        best_velocity_ms=max(velocities) if velocities else None,
        heaviest_load_kg=max((a.load_kg for a in attempts), default=None),
    )


class DeadliftCalculated(OneRepMaxCalculated):
    """1RM estimates plus kinetics and velocity metrics of the fastest loaded pull."""

    force_n: float | None = None
    velocity_ms: float | None = None
    power_w: float | None = None
    work_j: float | None = None
    impulse_ns: float | None = None
    load_velocity_product: float | None = None
    velocity_to_load_ratio: float | None = None
    velocity_based_one_rep_max_kg: float | None = None
    volume_load_kg: float | None = None
    relative_strength: float | None = None


class DeadliftVelocity(_StrengthBattery):
    """Deadlift with a bar-speed sensor or timed displacement.

    Kinetics come from the attempt with the highest load·velocity product.
    """

    dimension = "max_strength"
    score_range = (60.0, 250.0)

    battery: Literal["deadlift_velocity"] = "deadlift_velocity"
    body_weight_kg: BodyWeight | None = None
    attempts: list[LoadedAttempt] = Field(default_factory=list, max_length=10)
    calculated: DeadliftCalculated | None = None

    def compute(self) -> DeadliftCalculated:
        summary = _one_rep_max(self.attempts)
        best: tuple[float, LoadedAttempt, dict[str, float | None]] | None = None
        for attempt in self.attempts:
            kinetics = calc.loaded_movement_kinetics(
                attempt.load_kg,
                self.body_weight_kg,
                attempt.distance_m,
                attempt.time_s,
                peak_velocity=attempt.peak_velocity_ms,
                peak_force=attempt.peak_force_n,
            )
            velocity = kinetics["velocity_ms"]
            if velocity is None:
                continue
            product = attempt.load_kg * velocity
            if best is None or product > best[0]:
                best = (product, attempt, kinetics)
        if best is None:
            return DeadliftCalculated(
                **summary.model_dump(),
                relative_strength=calc.relative_strength(summary.estimated_one_rep_max_kg, self.body_weight_kg),
            )
        product, attempt, kinetics = best
        return DeadliftCalculated(
            **summary.model_dump(),
            **kinetics,
            load_velocity_product=round(product, 2),
            velocity_to_load_ratio=calc.velocity_to_load_ratio(kinetics["velocity_ms"], attempt.load_kg),
            velocity_based_one_rep_max_kg=calc.velocity_based_one_rep_max(attempt.load_kg, kinetics["velocity_ms"]),
            volume_load_kg=calc.volume_load(attempt.load_kg, attempt.reps),
            relative_strength=calc.relative_strength(summary.estimated_one_rep_max_kg, self.body_weight_kg),
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.estimated_one_rep_max_kg


class BarbellHipThrust(_StrengthBattery):
    dimension = "max_strength"
    score_range = (60.0, 300.0)

    battery: Literal["barbell_hip_thrust"] = "barbell_hip_thrust"
    attempts: list[LoadedAttempt] = Field(default_factory=list, max_length=10)
    calculated: OneRepMaxCalculated | None = None

    def compute(self) -> OneRepMaxCalculated:
        return _one_rep_max(self.attempts)

    @property
    def score_value(self) -> float | None:
        return self.calculated.estimated_one_rep_max_kg


class PushUpCalculated(BaseModel):
    reps: int | None = None
    seconds_per_rep: float | None = None
    reps_per_minute: float | None = None
    power_index: float | None = None


class PushUp(_StrengthBattery):
    dimension = "endurance_strength"
    score_range = (0.0, 60.0)

    battery: Literal["push_up"] = "push_up"
    reps: int | None = Field(default=None, ge=0, le=200)
    total_time_s: Seconds | None = None
    body_weight_kg: BodyWeight | None = None
    calculated: PushUpCalculated | None = None

    def compute(self) -> PushUpCalculated:
        return PushUpCalculated(
            reps=self.reps,
            seconds_per_rep=calc.seconds_per_rep(self.total_time_s, self.reps),
            reps_per_minute=calc.reps_per_minute(self.total_time_s, self.reps),
            power_index=calc.push_up_power_index(self.reps, self.body_weight_kg, self.total_time_s),
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.reps


class PullUpsCalculated(BaseModel):
    reps: int | None = None


class PullUps(_StrengthBattery):
    dimension = "endurance_strength"
    score_range = (0.0, 30.0)

    battery: Literal["pull_ups"] = "pull_ups"
    reps: int | None = Field(default=None, ge=0, le=100)
    calculated: PullUpsCalculated | None = None

    def compute(self) -> PullUpsCalculated:
        return PullUpsCalculated(reps=self.reps)

    @property
    def score_value(self) -> float | None:
        return self.calculated.reps


class WeightedPullUpsCalculated(BaseModel):
    reps: int | None = None
    volume_load_kg: float | None = None
    relative_added_load: float | None = None


class WeightedPullUps(_StrengthBattery):
    dimension = "endurance_strength"
    score_range = (0.0, 20.0)

    battery: Literal["weighted_pull_ups"] = "weighted_pull_ups"
    reps: int | None = Field(default=None, ge=0, le=50)
    added_load_kg: Kilograms | None = None
    body_weight_kg: BodyWeight | None = None
    calculated: WeightedPullUpsCalculated | None = None

    def compute(self) -> WeightedPullUpsCalculated:
        return WeightedPullUpsCalculated(
            reps=self.reps,
            volume_load_kg=calc.volume_load(self.added_load_kg, self.reps),
            relative_added_load=calc.relative_strength(self.added_load_kg, self.body_weight_kg),
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.reps


class BallisticPushUpsCalculated(BaseModel):
    takeoff_velocity_ms: float | None = None
    flight_time_s: float | None = None
    work_per_rep_j: float | None = None
    power_per_rep_w: float | None = None
    total_work_j: float | None = None


class BallisticPushUps(_StrengthBattery):
    """Plyometric push-ups; power needs a measured takeoff duration."""

    dimension = "explosive_power"
    score_range = (5.0, 40.0)

    battery: Literal["ballistic_push_ups"] = "ballistic_push_ups"
    reps: int | None = Field(default=None, ge=1, le=100)
    best_jump_height_cm: float | None = Field(default=None, ge=0.5, le=300)
    avg_jump_height_cm: float | None = Field(default=None, ge=0, le=300)
    takeoff_duration_s: float | None = Field(default=None, ge=0.01, le=2)
    body_weight_kg: BodyWeight | None = None
    calculated: BallisticPushUpsCalculated | None = None

    def compute(self) -> BallisticPushUpsCalculated:
        height_m = self.best_jump_height_cm / 100 if self.best_jump_height_cm is not None else None
        work = calc.mechanical_work(self.body_weight_kg, height_m)
        power = round(work / self.takeoff_duration_s, 1) if work is not None and self.takeoff_duration_s else None
        total = round(work * self.reps, 1) if work is not None and self.reps is not None else None
        return BallisticPushUpsCalculated(
            takeoff_velocity_ms=calc.takeoff_velocity(self.best_jump_height_cm),
            flight_time_s=calc.flight_time_from_height(height_m),
            work_per_rep_j=work,
            power_per_rep_w=power,
            total_work_j=total,
        )

    @property
    def score_value(self) -> float | None:
        return self.best_jump_height_cm


class BarbellRowCalculated(BaseModel):
    estimated_one_rep_max_kg: float | None = None
    volume_load_kg: float | None = None
    relative_strength: float | None = None


class BarbellRow(_StrengthBattery):
    dimension = "max_strength"
    score_range = (40.0, 180.0)

    battery: Literal["barbell_row"] = "barbell_row"
    load_kg: Kilograms | None = None
    reps: int | None = Field(default=None, ge=1, le=30)
    body_weight_kg: BodyWeight | None = None
    calculated: BarbellRowCalculated | None = None

    def compute(self) -> BarbellRowCalculated:
        one_rm = calc.one_rep_max_epley(self.load_kg, self.reps)
        return BarbellRowCalculated(
            estimated_one_rep_max_kg=one_rm,
            volume_load_kg=calc.volume_load(self.load_kg, self.reps),
            relative_strength=calc.relative_strength(one_rm, self.body_weight_kg),
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.estimated_one_rep_max_kg


class PlankHoldCalculated(BaseModel):
    core_endurance_score: float | None = None
    weighted_intensity_index: float | None = None
    endurance_ratio: float | None = None
    fatigue_pct: float | None = None
    total_hold_time_s: float | None = None


class PlankHold(_StrengthBattery):
    """Bodyweight plank to failure, optionally followed by a weighted hold."""

    dimension = "core_endurance"
    score_range = (30.0, 300.0)

    battery: Literal["plank_hold"] = "plank_hold"
    bodyweight_duration_s: int | None = Field(default=None, ge=1, le=3600)
    weighted_load_kg: float | None = Field(default=None, ge=0, le=200)
    weighted_duration_s: float | None = Field(default=None, ge=0, le=3600)
    body_weight_kg: BodyWeight | None = None
    calculated: PlankHoldCalculated | None = None

    def compute(self) -> PlankHoldCalculated:
        if self.bodyweight_duration_s is None:
            return PlankHoldCalculated()
        ces = None
        if self.body_weight_kg is not None:
            ces = round(self.bodyweight_duration_s * self.body_weight_kg, 1)
        wii = None
        if self.weighted_load_kg and self.weighted_duration_s:
            wii = round(self.weighted_load_kg * self.weighted_duration_s, 1)
        ratio = calc.hold_endurance_ratio(self.weighted_duration_s, self.bodyweight_duration_s)
        return PlankHoldCalculated(
            core_endurance_score=ces,
            weighted_intensity_index=wii,
            endurance_ratio=ratio,
            fatigue_pct=round((1 - ratio) * 100, 1) if ratio is not None else None,
            total_hold_time_s=round(self.bodyweight_duration_s + (self.weighted_duration_s or 0), 1),
        )

    @property
    def score_value(self) -> float | None:
        return self.bodyweight_duration_s


STRENGTH_BATTERIES = (
    CountermovementJump,
    LoadedSquatJump,
    DepthJump,
    BallisticBenchPress,
    BallisticPushUps,
    DeadliftVelocity,
    BarbellHipThrust,
    BarbellRow,
    PushUp,
    PullUps,
    WeightedPullUps,
    PlankHold,
)
