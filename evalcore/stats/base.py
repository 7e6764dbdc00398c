"""Shared battery types.

Every battery is a pydantic model carrying its raw inputs and a
``calculated`` sub-object. ``calculated`` is always recomputed from that
battery's own inputs when the model is validated, so a stored or submitted
value can never drift from the inputs it claims to describe.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from enum import StrEnum
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from evalcore.stats.calculations import Gender, normalize_to_scale

Seconds = Annotated[float, Field(gt=0, le=600)]
Milliseconds = Annotated[float, Field(gt=0, le=5000)]
Kilograms = Annotated[float, Field(ge=0, le=500)]
BodyWeight = Annotated[float, Field(gt=20, le=250)]


def _upper(value: object) -> object:
    return value.upper() if isinstance(value, str) else value


GenderInput = Annotated[Gender | None, BeforeValidator(_upper)]


class Category(StrEnum):
    BASIC_MEASUREMENTS = "basic_measurements"
    STRENGTH_AND_POWER = "strength_and_power"
    SPEED_AND_AGILITY = "speed_and_agility"
    STAMINA_AND_RECOVERY = "stamina_and_recovery"


class BatteryName(StrEnum):
    BASIC_MEASUREMENTS = "basic_measurements"
    # Strength & power
    COUNTERMOVEMENT_JUMP = "countermovement_jump"
    LOADED_SQUAT_JUMP = "loaded_squat_jump"
    DEPTH_JUMP = "depth_jump"
    BALLISTIC_BENCH_PRESS = "ballistic_bench_press"
    DEADLIFT_VELOCITY = "deadlift_velocity"
    BARBELL_HIP_THRUST = "barbell_hip_thrust"
    PUSH_UP = "push_up"
    PULL_UPS = "pull_ups"
    BALLISTIC_PUSH_UPS = "ballistic_push_ups"
    BARBELL_ROW = "barbell_row"
    PLANK_HOLD = "plank_hold"
    WEIGHTED_PULL_UPS = "weighted_pull_ups"
    # Speed & agility
    TEN_METER_SPRINT = "ten_meter_sprint"
    FORTY_METER_DASH = "forty_meter_dash"
    REPEATED_SPRINT_ABILITY = "repeated_sprint_ability"
    T_TEST = "t_test"
    REACTIVE_AGILITY_T_TEST = "reactive_agility_t_test"
    ILLINOIS_AGILITY = "illinois_agility"
    FIVE_ZERO_FIVE = "five_zero_five"
    VISUAL_REACTION = "visual_reaction"
    STANDING_LONG_JUMP = "standing_long_jump"
    LONG_JUMP = "long_jump"
    # Stamina & recovery
    BEEP_TEST = "beep_test"
    COOPER_TEST = "cooper_test"
    YOYO_TEST = "yoyo_test"
    SIT_AND_REACH = "sit_and_reach"
    MOBILITY_SCREEN = "mobility_screen"
    HEART_RATE_RECOVERY = "heart_rate_recovery"


class BatteryBase(BaseModel):
    """Base for all battery variants.

    Subclasses declare:
        category: Category the battery belongs to
        dimension: Sub-score bucket inside the category
        score_range: (low, high) used to normalize ``score_value`` to 0-100
        invert_score: True where lower raw values are better (times)
    and implement ``compute()`` and ``score_value``.
    """

    model_config = ConfigDict(extra="forbid")

    category: ClassVar[Category]
    dimension: ClassVar[str]
    score_range: ClassVar[tuple[float, float]]
    invert_score: ClassVar[bool] = False

    battery: str
    test_date: date | None = None
    notes: str | None = None
    calculated: Any = None

    @model_validator(mode="after")
    def _refresh_calculated(self) -> BatteryBase:
        self.calculated = self.compute()
        return self

    @abstractmethod
    def compute(self) -> BaseModel: ...

    @property
    def name(self) -> BatteryName:
        return BatteryName(self.battery)

    @property
    @abstractmethod
    def score_value(self) -> float | None:
        """Headline raw metric fed into normalization."""

    @property
    def is_complete(self) -> bool:
        """A battery counts as completed once its headline metric can be computed."""
        return self.score_value is not None

    def score(self) -> float | None:
        low, high = self.score_range
        return normalize_to_scale(self.score_value, low, high, invert=self.invert_score)


class JumpAttempt(BaseModel):
    """Single jump; height comes from reach difference when both reaches are
    recorded, otherwise from flight time."""

    model_config = ConfigDict(extra="forbid")

    attempt_number: int | None = None
    standing_reach_cm: float | None = Field(default=None, gt=0)
    jump_reach_cm: float | None = Field(default=None, gt=0)
    flight_time_s: float | None = Field(default=None, gt=0, le=2)
    ground_contact_time_s: float | None = Field(default=None, gt=0, le=2)


class LoadedAttempt(BaseModel):
    """Single loaded rep, optionally with sensor readings."""

    model_config = ConfigDict(extra="forbid")

    attempt_number: int | None = None
    load_kg: Kilograms
    reps: int | None = Field(default=None, ge=1, le=50)
    distance_m: float | None = Field(default=None, gt=0, le=3)
    time_s: float | None = Field(default=None, gt=0, le=10)
    peak_velocity_ms: float | None = Field(default=None, gt=0, le=10)
    peak_force_n: float | None = Field(default=None, gt=0)
