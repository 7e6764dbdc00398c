"""Battery registry and the closed tagged union over all battery variants.

Parsing goes through the ``battery`` discriminator, so a payload can only
ever become the variant it names, and each variant only belongs to the
category it declares.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from evalcore.stats import calculations as calc
from evalcore.stats.base import BatteryBase, BatteryName, BodyWeight, Category
from evalcore.stats.speed import (
    SPEED_BATTERIES,
    FiveZeroFive,
    FortyMeterDash,
    IllinoisAgility,
    LongJump,
    ReactiveAgilityTTest,
    RepeatedSprintAbility,
    StandingLongJump,
    TenMeterSprint,
    TTest,
    VisualReaction,
)
from evalcore.stats.stamina import (
    STAMINA_BATTERIES,
    BeepTest,
    CooperTest,
    HeartRateRecovery,
    MobilityScreen,
    SitAndReach,
    YoYoTest,
)
from evalcore.stats.strength import (
    STRENGTH_BATTERIES,
    BallisticBenchPress,
    BallisticPushUps,
    BarbellHipThrust,
    BarbellRow,
    CountermovementJump,
    DeadliftVelocity,
    DepthJump,
    LoadedSquatJump,
    PlankHold,
    PullUps,
    PushUp,
    WeightedPullUps,
)

Circumference = Annotated[float, Field(gt=0, le=250)]


class BasicMeasurementsCalculated(BaseModel):
    bmi: float | None = None
    bmi_classification: str | None = None
    waist_to_hip_ratio: float | None = None


class BasicMeasurements(BatteryBase):
    """Mandatory anthropometrics. Present once height and weight yield a BMI."""

    category = Category.BASIC_MEASUREMENTS
    dimension = "body_composition"
    score_range = (0.0, 0.0)

    battery: Literal["basic_measurements"] = "basic_measurements"
    height_cm: float | None = Field(default=None, gt=50, le=260)
    weight_kg: BodyWeight | None = None
    age: int | None = Field(default=None, ge=5, le=100)
    body_fat_pct: float | None = Field(default=None, ge=2, le=70)
    chest_cm: Circumference | None = None
    waist_cm: Circumference | None = None
    hips_cm: Circumference | None = None
    neck_cm: Circumference | None = None
    measured_by: str | None = None
    calculated: BasicMeasurementsCalculated | None = None

    def compute(self) -> BasicMeasurementsCalculated:
        height_m = self.height_cm / 100 if self.height_cm is not None else None
        value = calc.bmi(self.weight_kg, height_m)
        ratio = None
        if self.waist_cm is not None and self.hips_cm is not None:
            ratio = round(self.waist_cm / self.hips_cm, 2)
        return BasicMeasurementsCalculated(
            bmi=value,
            bmi_classification=calc.bmi_classification(value),
            waist_to_hip_ratio=ratio,
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.bmi

    def score(self) -> float | None:
        return None


StrengthBattery = Annotated[
    Union[
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
    ],
    Field(discriminator="battery"),
]

SpeedBattery = Annotated[
    Union[
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
    ],
    Field(discriminator="battery"),
]

StaminaBattery = Annotated[
    Union[BeepTest, CooperTest, YoYoTest, SitAndReach, MobilityScreen, HeartRateRecovery],
    Field(discriminator="battery"),
]

Battery = Annotated[
    Union[
        BasicMeasurements,
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
        BeepTest,
        CooperTest,
        YoYoTest,
        SitAndReach,
        MobilityScreen,
        HeartRateRecovery,
    ],
    Field(discriminator="battery"),
]

_battery_adapter: TypeAdapter[Any] = TypeAdapter(Battery)

BATTERY_TYPES: dict[BatteryName, type[BatteryBase]] = {
    BatteryName(cls.model_fields["battery"].default): cls
    for cls in (BasicMeasurements, *STRENGTH_BATTERIES, *SPEED_BATTERIES, *STAMINA_BATTERIES)
}

CATEGORY_BATTERIES: dict[Category, tuple[BatteryName, ...]] = {
    category: tuple(name for name, cls in BATTERY_TYPES.items() if cls.category == category) for category in Category
}


def battery_category(name: BatteryName | str) -> Category:
    return BATTERY_TYPES[BatteryName(name)].category


def parse_battery(name: BatteryName | str, data: dict[str, Any] | BatteryBase) -> BatteryBase:
    """Validate raw battery data as the variant ``name``.

    Raises:
        ValueError: ``name`` is not a known battery, or ``data`` is a model of another variant
        pydantic.ValidationError: ``data`` does not match the variant's inputs
    """
    battery_name = BatteryName(name)
    if isinstance(data, BatteryBase):
        if data.name != battery_name:
            raise ValueError(f"Data for {data.name} cannot be stored as {battery_name}")
        data = data.model_dump(exclude={"calculated"})
    payload = {**data, "battery": battery_name.value}
    payload.pop("calculated", None)
    return _battery_adapter.validate_python(payload)
