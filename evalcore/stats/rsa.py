"""Repeated sprint ability (RSA) metrics.

Sprint times are sorted ascending before analysis, so the "first three" are
the three fastest and the "last three" the three slowest efforts.

- fatigue index % = avg(first 3) / avg(last 3) × 100 (higher is better)
- sprint decrement % = 100 − best × n / total × 100 (lower is better)
- fatigue slope % = least-squares slope of time vs. sprint index / best × 100
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from pydantic import BaseModel

MIN_SPRINTS = 3
INSUFFICIENT_DATA = "Insufficient data"

# (lower bound on fatigue index, label), checked top down
RSA_RATING_BANDS = ((95.0, "Excellent"), (90.0, "Very Good"), (85.0, "Good"), (80.0, "Fair"))

# (upper bound on sprint decrement, label), checked top down
FATIGUE_RESISTANCE_BANDS = ((5.0, "Excellent"), (10.0, "Very Good"), (15.0, "Good"), (20.0, "Fair"))


class RSAMetrics(BaseModel):
    best_time: float | None = None
    worst_time: float | None = None
    total_time: float | None = None
    average_time: float | None = None
    fatigue_index: float | None = None
    sprint_decrement: float | None = None
    fatigue_slope_percentage: float | None = None
    mean_power: int | None = None
    peak_power: int | None = None
    power_decrement: int | None = None
    rsa_rating: str = INSUFFICIENT_DATA
    fatigue_resistance: str = "N/A"


def rsa_rating(fatigue_index: float) -> str:
    for lower, label in RSA_RATING_BANDS:
        if fatigue_index >= lower:
            return label
    return "Poor"


def fatigue_resistance(sprint_decrement: float) -> str:
    for upper, label in FATIGUE_RESISTANCE_BANDS:
        if sprint_decrement <= upper:
            return label
    return "Poor"


def _valid_times(times: Sequence[float | None]) -> list[float]:
    return sorted(t for t in times if t is not None and math.isfinite(t) and t > 0)


def _slope(times: list[float]) -> float:
    n = len(times)
    x_sum = n * (n + 1) / 2
    x2_sum = n * (n + 1) * (2 * n + 1) / 6
    y_sum = sum(times)
    xy_sum = sum(t * (i + 1) for i, t in enumerate(times))
    return (n * xy_sum - x_sum * y_sum) / (n * x2_sum - x_sum * x_sum)


def calculate_rsa_metrics(
    times: Sequence[float | None],
    body_weight_kg: float | None = None,
    distance_m: float | None = None,
) -> RSAMetrics:
    """Compute RSA metrics from individual sprint times.

    Args:
        times: Sprint times in seconds, in any order; non-positive or missing
            readings are ignored
        body_weight_kg: Enables power estimates, P = m·d² / t³
        distance_m: Sprint distance used for power estimates

    Returns:
        RSAMetrics; with fewer than 3 valid readings every metric is None and
        the rating is "Insufficient data"
    """
    ordered = _valid_times(times)
    if len(ordered) < MIN_SPRINTS:
        return RSAMetrics()

    n = len(ordered)
    best = ordered[0]
    worst = ordered[-1]
    total = sum(ordered)

    fi = sum(ordered[:3]) / 3 / (sum(ordered[-3:]) / 3) * 100
    sdec = 100 - best * n / total * 100
    slope_pct = _slope(ordered) / best * 100

    mean_power = peak_power = power_decrement = None
    if body_weight_kg and distance_m:
        powers = [body_weight_kg * distance_m**2 / t**3 for t in ordered]
        mean_power = round(sum(powers) / n)
        peak_power = round(max(powers))
        power_decrement = peak_power - mean_power

    return RSAMetrics(
        best_time=round(best, 2),
        worst_time=round(worst, 2),
        total_time=round(total, 2),
        average_time=round(total / n, 2),
        fatigue_index=round(fi, 1),
        sprint_decrement=round(sdec, 1),
        fatigue_slope_percentage=round(slope_pct, 1),
        mean_power=mean_power,
        peak_power=peak_power,
        power_decrement=power_decrement,
        rsa_rating=rsa_rating(fi),
        fatigue_resistance=fatigue_resistance(sdec),
    )
