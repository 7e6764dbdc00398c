"""Stamina & recovery batteries."""

from __future__ import annotations

from abc import abstractmethod
from typing import Literal

from pydantic import BaseModel, Field

from evalcore.stats import calculations as calc
from evalcore.stats.base import BatteryBase, Category, GenderInput


class _StaminaBattery(BatteryBase):
    category = Category.STAMINA_AND_RECOVERY


class AerobicCalculated(BaseModel):
    vo2max: float | None = None
    fitness_rating: str | None = None


class _AerobicBattery(_StaminaBattery):
    """Field tests estimating VO2max, scored on the estimate."""

    dimension = "cardiovascular_fitness"
    score_range = (30.0, 70.0)

    gender: GenderInput = None
    calculated: AerobicCalculated | None = None

    @abstractmethod
    def _vo2max(self) -> float | None: ...

    def compute(self) -> AerobicCalculated:
        vo2max = self._vo2max()
        return AerobicCalculated(vo2max=vo2max, fitness_rating=calc.vo2max_rating(vo2max, self.gender))

    @property
    def score_value(self) -> float | None:
        return self.calculated.vo2max


class BeepTest(_AerobicBattery):
    battery: Literal["beep_test"] = "beep_test"
    level: int | None = Field(default=None, ge=1, le=21)
    shuttles: int | None = Field(default=None, ge=0, le=16)

    def _vo2max(self) -> float | None:
        return calc.vo2max_beep_test(self.level, self.shuttles)


class CooperTest(_AerobicBattery):
    battery: Literal["cooper_test"] = "cooper_test"
    distance_m: float | None = Field(default=None, gt=0, le=6000)

    def _vo2max(self) -> float | None:
        return calc.vo2max_cooper(self.distance_m)


class YoYoTest(_AerobicBattery):
    battery: Literal["yoyo_test"] = "yoyo_test"
    level: str | None = None
    distance_m: float | None = Field(default=None, ge=0, le=5000)

    def _vo2max(self) -> float | None:
        return calc.vo2max_yoyo(self.distance_m)


class SitAndReachCalculated(BaseModel):
    best_distance_cm: float | None = None
    rating: str | None = None


class SitAndReach(_StaminaBattery):
    dimension = "flexibility"
    score_range = (-10.0, 20.0)

    battery: Literal["sit_and_reach"] = "sit_and_reach"
    gender: GenderInput = None
    attempts_cm: list[float] = Field(default_factory=list, max_length=5)
    calculated: SitAndReachCalculated | None = None

    def compute(self) -> SitAndReachCalculated:
        best = max(self.attempts_cm) if self.attempts_cm else None
        return SitAndReachCalculated(best_distance_cm=best, rating=calc.sit_and_reach_rating(best, self.gender))

    @property
    def score_value(self) -> float | None:
        return self.calculated.best_distance_cm


class MobilityCalculated(BaseModel):
    aslr_worst_side_deg: float | None = None
    aslr_asymmetry_deg: float | None = None
    aslr_rating: str | None = None
    knee_to_wall_worst_side_cm: float | None = None
    knee_to_wall_asymmetry_cm: float | None = None
    knee_to_wall_rating: str | None = None


def _worst_and_asymmetry(left: float | None, right: float | None) -> tuple[float | None, float | None]:
    sides = [v for v in (left, right) if v is not None]
    if not sides:
        return None, None
    asymmetry = round(abs(left - right), 2) if len(sides) == 2 else None
    return min(sides), asymmetry


class MobilityScreen(_StaminaBattery):
    """Active straight leg raise and knee-to-wall, per side; rated on the weaker side.

    Scored on the ASLR angle.
    """

    dimension = "flexibility"
    score_range = (50.0, 90.0)

    battery: Literal["mobility_screen"] = "mobility_screen"
    aslr_left_deg: float | None = Field(default=None, ge=0, le=120)
    aslr_right_deg: float | None = Field(default=None, ge=0, le=120)
    knee_to_wall_left_cm: float | None = Field(default=None, ge=0, le=30)
    knee_to_wall_right_cm: float | None = Field(default=None, ge=0, le=30)
    calculated: MobilityCalculated | None = None

    def compute(self) -> MobilityCalculated:
        aslr, aslr_gap = _worst_and_asymmetry(self.aslr_left_deg, self.aslr_right_deg)
        ktw, ktw_gap = _worst_and_asymmetry(self.knee_to_wall_left_cm, self.knee_to_wall_right_cm)
        return MobilityCalculated(
            aslr_worst_side_deg=aslr,
            aslr_asymmetry_deg=aslr_gap,
            aslr_rating=calc.aslr_rating(aslr),
            knee_to_wall_worst_side_cm=ktw,
            knee_to_wall_asymmetry_cm=ktw_gap,
            knee_to_wall_rating=calc.knee_to_wall_rating(ktw),
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.aslr_worst_side_deg


# Karvonen intensities, % of heart rate reserve
TRAINING_ZONES = {"light": 50, "moderate": 60, "vigorous": 70, "maximum": 85}


class HeartRateCalculated(BaseModel):
    recovery_bpm: int | None = None
    recovery_rating: str | None = None
    max_hr: int | None = None
    heart_rate_reserve: int | None = None
    zone_floors_bpm: dict[str, int] | None = None


class HeartRateRecovery(_StaminaBattery):
    """Beats recovered in the minute after peak effort.

    A measured ``max_hr`` wins over the age-predicted one.
    """

    dimension = "recovery_efficiency"
    score_range = (5.0, 30.0)

    battery: Literal["heart_rate_recovery"] = "heart_rate_recovery"
    peak_hr: int | None = Field(default=None, ge=60, le=230)
    hr_after_1_min: int | None = Field(default=None, ge=30, le=230)
    resting_hr: int | None = Field(default=None, ge=25, le=120)
    max_hr: int | None = Field(default=None, ge=100, le=230)
    age: int | None = Field(default=None, ge=5, le=100)
    calculated: HeartRateCalculated | None = None

    def compute(self) -> HeartRateCalculated:
        recovery = calc.hr_recovery(self.peak_hr, self.hr_after_1_min)
        max_hr = self.max_hr if self.max_hr is not None else calc.max_heart_rate(self.age)
        reserve = calc.heart_rate_reserve(max_hr, self.resting_hr)
        zones = None
        if reserve is not None:
            zones = {
                zone: calc.target_heart_rate(max_hr, self.resting_hr, pct) for zone, pct in TRAINING_ZONES.items()
            }
        return HeartRateCalculated(
            recovery_bpm=recovery,
            recovery_rating=calc.hr_recovery_rating(recovery),
            max_hr=max_hr,
            heart_rate_reserve=reserve,
            zone_floors_bpm=zones,
        )

    @property
    def score_value(self) -> float | None:
        return self.calculated.recovery_bpm


STAMINA_BATTERIES = (BeepTest, CooperTest, YoYoTest, SitAndReach, MobilityScreen, HeartRateRecovery)
