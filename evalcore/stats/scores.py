"""Aggregate 0-100 scores from completed batteries.

Each completed battery contributes one normalized sub-score with weight one.
Batteries that were skipped or lack the inputs for their headline metric are
left out of every average; a category with nothing completed scores None.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from pydantic import BaseModel, Field

from evalcore.stats.base import BatteryBase


class CategoryScore(BaseModel):
    score: float | None = None
    batteries_completed: int = 0
    dimensions: dict[str, float] = Field(default_factory=dict)
    battery_scores: dict[str, float] = Field(default_factory=dict)


class DerivedScores(BaseModel):
    bmi: float | None = None
    bmi_classification: str | None = None
    strength_and_power: CategoryScore = Field(default_factory=CategoryScore)
    speed_and_agility: CategoryScore = Field(default_factory=CategoryScore)
    stamina_and_recovery: CategoryScore = Field(default_factory=CategoryScore)
    overall: float | None = None


def _mean(values: list[float]) -> float | None:
    return round(sum(values) / len(values), 2) if values else None


def category_score(batteries: Iterable[BatteryBase]) -> CategoryScore:
    """Count-weighted mean of the completed batteries' sub-scores, plus per-dimension means."""
    by_battery: dict[str, float] = {}
    by_dimension: dict[str, list[float]] = defaultdict(list)
    for battery in batteries:
        if not battery.is_complete:
            continue
        value = battery.score()
        if value is None:
            continue
        by_battery[battery.battery] = value
        by_dimension[battery.dimension].append(value)

    return CategoryScore(
        score=_mean(list(by_battery.values())),
        batteries_completed=len(by_battery),
        dimensions={dimension: _mean(values) for dimension, values in by_dimension.items()},
        battery_scores=by_battery,
    )


def derive_scores(
    basic_measurements: BatteryBase | None,
    strength_and_power: Iterable[BatteryBase],
    speed_and_agility: Iterable[BatteryBase],
    stamina_and_recovery: Iterable[BatteryBase],
) -> DerivedScores:
    """Recompute every derived score from the raw batteries."""
    strength = category_score(strength_and_power)
    speed = category_score(speed_and_agility)
    stamina = category_score(stamina_and_recovery)

    all_scores = [
        *strength.battery_scores.values(),
        *speed.battery_scores.values(),
        *stamina.battery_scores.values(),
    ]

    calculated = basic_measurements.calculated if basic_measurements is not None else None
    return DerivedScores(
        bmi=calculated.bmi if calculated is not None else None,
        bmi_classification=calculated.bmi_classification if calculated is not None else None,
        strength_and_power=strength,
        speed_and_agility=speed,
        stamina_and_recovery=stamina,
        overall=_mean(all_scores),
    )
