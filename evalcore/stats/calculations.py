"""Sports-science formulas for physical evaluation batteries.

Every function is pure: identical inputs give identical outputs, and a
missing or unusable input yields None for that metric rather than a
substituted default.

Units:
- Distances in metres unless the name says otherwise (``_cm``)
- Times in seconds unless the name says otherwise (``_ms``)
- Masses in kilograms, power in watts
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import StrEnum

G = 9.81  # gravitational acceleration, m/s²

# Sayers et al. (1999) jump power regression
SAYERS_HEIGHT_COEF = 60.7
SAYERS_MASS_COEF = 45.3
SAYERS_INTERCEPT = 2055.0

# Share of body mass moved with the bar in upper-body ballistic lifts
BALLISTIC_BODY_MASS_FRACTION = 0.2

# Share of body mass lifted in a push-up (Ebben et al., 2011)
PUSH_UP_MASS_FRACTION = 0.64

# Mean concentric velocity at 1RM for the deadlift, m/s
MINIMUM_VELOCITY_THRESHOLD = 0.5

# Time a reactive T-test adds over the planned version, s
REACTIVE_T_TEST_PENALTY_S = 1.0


class Gender(StrEnum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


def _gender(value: str | Gender | None) -> Gender:
    if value is None:
        return Gender.OTHER
    try:
        return Gender(str(value).upper())
    except ValueError:
        return Gender.OTHER


def _positive(*values: float | None) -> bool:
    return all(v is not None and v > 0 for v in values)


# ============================================
# Basic measurements
# ============================================


def bmi(weight_kg: float | None, height_m: float | None) -> float | None:
    """Body Mass Index: weight (kg) / height (m)²."""
    if not _positive(weight_kg, height_m):
        return None
    return round(weight_kg / (height_m * height_m), 2)


def bmi_classification(value: float | None) -> str | None:
    if value is None:
        return None
    if value < 18.5:
        return "Underweight"
    if value < 25:
        return "Normal weight"
    if value < 30:
        return "Overweight"
    return "Obese"


# ============================================
# Jumps
# ============================================


def jump_height_from_flight_time(flight_time_s: float | None) -> float | None:
    """Jump height in metres from flight time: h = g·t² / 8 (Bosco et al., 1983)."""
    if not _positive(flight_time_s):
        return None
    return round(G * flight_time_s**2 / 8, 4)


def jump_height_from_reach(jump_reach_cm: float | None, standing_reach_cm: float | None) -> float | None:
    """Jump height in cm as jump reach minus standing reach."""
    if jump_reach_cm is None or standing_reach_cm is None:
        return None
    return round(jump_reach_cm - standing_reach_cm, 2)


def takeoff_velocity(jump_height_cm: float | None) -> float | None:
    """Takeoff velocity (m/s): v = √(2·g·h)."""
    if jump_height_cm is None or jump_height_cm < 0:
        return None
    return round(math.sqrt(2 * G * jump_height_cm / 100), 3)


def peak_power(jump_height_cm: float | None, total_mass_kg: float | None) -> float | None:
    """Sayers peak power (W) = 60.7·h(cm) + 45.3·m(kg) − 2055, floored at zero.

    For loaded jumps pass body mass plus external load as total_mass_kg.
    """
    if jump_height_cm is None or not _positive(total_mass_kg):
        return None
    power = SAYERS_HEIGHT_COEF * jump_height_cm + SAYERS_MASS_COEF * total_mass_kg - SAYERS_INTERCEPT
    return round(max(0.0, power), 2)


def relative_power(power_w: float | None, body_weight_kg: float | None) -> float | None:
    """Power-to-weight ratio in W/kg."""
    if power_w is None or not _positive(body_weight_kg):
        return None
    return round(power_w / body_weight_kg, 2)


def reactive_strength_index(jump_height_cm: float | None, contact_time_s: float | None) -> float | None:
    """RSI = jump height (m) / ground contact time (s)."""
    if jump_height_cm is None or not _positive(contact_time_s):
        return None
    return round((jump_height_cm / 100) / contact_time_s, 3)


def rsi_rating(value: float | None) -> str | None:
    if value is None:
        return None
    if value >= 2.5:
        return "excellent"
    if value >= 2.0:
        return "good"
    if value >= 1.5:
        return "average"
    if value >= 1.0:
        return "fair"
    return "poor"


# ============================================
# Loaded / ballistic movements
# ============================================


def loaded_movement_kinetics(
    load_kg: float | None,
    body_weight_kg: float | None,
    distance_m: float | None,
    time_s: float | None,
    peak_velocity: float | None = None,
    peak_force: float | None = None,
) -> dict[str, float | None]:
    """Force, velocity, power, work and impulse for a loaded movement.

    Sensor-reported peak force and peak velocity always take precedence over
    the estimates: force ≈ (load + 0.2·body weight)·g and velocity = d / t.

    Returns:
        Dict with force_n, velocity_ms, power_w, work_j and impulse_ns; any
        metric whose inputs are missing is None.
    """
    force = peak_force
    if force is None and load_kg is not None and body_weight_kg is not None:
        force = (load_kg + BALLISTIC_BODY_MASS_FRACTION * body_weight_kg) * G

    velocity = peak_velocity
    if velocity is None and distance_m is not None and _positive(time_s):
        velocity = distance_m / time_s

    power = force * velocity if force is not None and velocity is not None else None
    work = force * distance_m if force is not None and distance_m is not None else None
    impulse = force * time_s if force is not None and time_s is not None else None

    def _r(value: float | None) -> float | None:
        return round(value, 2) if value is not None else None

    return {
        "force_n": _r(force),
        "velocity_ms": _r(velocity),
        "power_w": _r(power),
        "work_j": _r(work),
        "impulse_ns": _r(impulse),
    }


def one_rep_max_epley(load_kg: float | None, reps: int | None) -> float | None:
    """Epley 1RM estimate: load·(1 + reps/30)."""
    if not _positive(load_kg) or reps is None or reps < 1:
        return None
    return round(load_kg * (1 + reps / 30), 2)


def one_rep_max_brzycki(load_kg: float | None, reps: int | None) -> float | None:
    """Brzycki 1RM estimate: load / (1.0278 − 0.0278·reps). Less accurate past 10 reps."""
    if not _positive(load_kg) or reps is None or reps < 1 or reps >= 37:
        return None
    return round(load_kg / (1.0278 - 0.0278 * reps), 2)


def volume_load(load_kg: float | None, reps: int | None) -> float | None:
    if load_kg is None or reps is None:
        return None
    return round(load_kg * reps, 2)


def relative_strength(one_rep_max_kg: float | None, body_weight_kg: float | None) -> float | None:
    """Estimated 1RM per kg of body weight."""
    if one_rep_max_kg is None or not _positive(body_weight_kg):
        return None
    return round(one_rep_max_kg / body_weight_kg, 2)


def velocity_to_load_ratio(velocity_ms: float | None, load_kg: float | None) -> float | None:
    if velocity_ms is None or not _positive(load_kg):
        return None
    return round(velocity_ms / load_kg, 4)


def velocity_based_one_rep_max(load_kg: float | None, velocity_ms: float | None) -> float | None:
    """1RM from bar speed, taking 0.5 m/s as the velocity expected at one rep max."""
    if not _positive(load_kg, velocity_ms):
        return None
    return round(load_kg / (velocity_ms / MINIMUM_VELOCITY_THRESHOLD), 1)


def flight_time_from_height(height_m: float | None) -> float | None:
    """Flight time (s) implied by a jump height: t = √(8h/g)."""
    if not _positive(height_m):
        return None
    return round(math.sqrt(8 * height_m / G), 3)


def mechanical_work(mass_kg: float | None, height_m: float | None) -> float | None:
    """Potential energy gained raising a mass: m·g·h (J)."""
    if not _positive(mass_kg, height_m):
        return None
    return round(mass_kg * G * height_m, 2)


def hold_endurance_ratio(weighted_s: float | None, bodyweight_s: float | None) -> float | None:
    """Weighted hold time as a share of the bodyweight hold time."""
    if weighted_s is None or not _positive(bodyweight_s):
        return None
    return round(weighted_s / bodyweight_s, 3)


# ============================================
# Push-ups
# ============================================


def seconds_per_rep(total_time_s: float | None, reps: int | None) -> float | None:
    if not _positive(total_time_s, reps):
        return None
    return round(total_time_s / reps, 2)


def reps_per_minute(total_time_s: float | None, reps: int | None) -> float | None:
    if not _positive(total_time_s) or reps is None:
        return None
    return round(reps / total_time_s * 60, 2)


def push_up_power_index(reps: int | None, body_weight_kg: float | None, total_time_s: float | None) -> float | None:
    """(reps × 0.64·body mass) / time."""
    if reps is None or not _positive(body_weight_kg, total_time_s):
        return None
    return round(reps * body_weight_kg * PUSH_UP_MASS_FRACTION / total_time_s, 2)


# ============================================
# Sprint and speed
# ============================================


def average_velocity(distance_m: float | None, time_s: float | None) -> float | None:
    if distance_m is None or not _positive(time_s):
        return None
    return round(distance_m / time_s, 3)


def acceleration(distance_m: float | None, time_s: float | None) -> float | None:
    """Mean acceleration from rest, (d/t)/t."""
    if distance_m is None or not _positive(time_s):
        return None
    return round(distance_m / time_s / time_s, 3)


def split_peak_velocity(splits: dict[float, float]) -> float | None:
    """Fastest segment velocity from cumulative split times keyed by distance (m)."""
    points = sorted((d, t) for d, t in splits.items() if d is not None and t is not None)
    if len(points) < 2:
        return None
    best: float | None = None
    for (d0, t0), (d1, t1) in zip(points, points[1:]):
        if t1 <= t0:
            continue
        velocity = (d1 - d0) / (t1 - t0)
        best = velocity if best is None else max(best, velocity)
    return round(best, 3) if best is not None else None


def t_test_rating(time_s: float | None, gender: str | Gender | None) -> str | None:
    """T-test agility rating (Pauole et al., 2000)."""
    if time_s is None:
        return None
    bands = {
        Gender.MALE: (9.5, 10.5, 11.5, 12.5),
        Gender.FEMALE: (10.5, 11.5, 12.5, 13.5),
        Gender.OTHER: (10.0, 11.0, 12.0, 13.0),
    }[_gender(gender)]
    return _rate_lower_is_better(time_s, bands, ("excellent", "good", "average", "below_average", "poor"))


def illinois_rating(time_s: float | None, gender: str | Gender | None) -> str | None:
    if time_s is None:
        return None
    bands = {
        Gender.MALE: (15.2, 16.1, 18.1, 20.0),
        Gender.FEMALE: (17.0, 17.9, 21.7, 24.0),
        Gender.OTHER: (16.0, 17.0, 20.0, 22.0),
    }[_gender(gender)]
    return _rate_lower_is_better(time_s, bands, ("excellent", "above_average", "average", "below_average", "poor"))


def _rate_lower_is_better(value: float, bands: Sequence[float], labels: Sequence[str]) -> str:
    for limit, label in zip(bands, labels):
        if value < limit:
            return label
    return labels[-1]


# ============================================
# Stamina and recovery
# ============================================


def vo2max_beep_test(level: int | None, shuttles: int | None) -> float | None:
    """Ramsbottom et al. (1988): 3.46·(L + S/(L·0.4325 + 7.0048)) + 12.2."""
    if not _positive(level) or shuttles is None or shuttles < 0:
        return None
    return round(3.46 * (level + shuttles / (level * 0.4325 + 7.0048)) + 12.2, 2)


def vo2max_cooper(distance_m: float | None) -> float | None:
    """Cooper 12-minute run: 22.351·km − 11.288."""
    if not _positive(distance_m):
        return None
    return round(22.351 * distance_m / 1000 - 11.288, 2)


def vo2max_yoyo(distance_m: float | None) -> float | None:
    """Yo-Yo IR1: distance·0.0084 + 36.4."""
    if distance_m is None or distance_m < 0:
        return None
    return round(distance_m * 0.0084 + 36.4, 2)


def vo2max_rating(vo2max: float | None, gender: str | Gender | None) -> str | None:
    if vo2max is None:
        return None
    bands = {
        Gender.MALE: (38, 44, 51, 56, 61),
        Gender.FEMALE: (27, 32, 38, 43, 49),
        Gender.OTHER: (32, 38, 44, 49, 55),
    }[_gender(gender)]
    labels = ("very_poor", "poor", "fair", "good", "excellent", "superior")
    for limit, label in zip(bands, labels):
        if vo2max < limit:
            return label
    return labels[-1]


def max_heart_rate(age: int | None) -> int | None:
    """Age-predicted HRmax = 220 − age."""
    if not _positive(age):
        return None
    return 220 - age


def heart_rate_reserve(max_hr: int | None, resting_hr: int | None) -> int | None:
    """HRR = HRmax − HRrest."""
    if max_hr is None or resting_hr is None:
        return None
    return max_hr - resting_hr


def target_heart_rate(max_hr: int | None, resting_hr: int | None, intensity_pct: float) -> int | None:
    """Karvonen target: (HRmax − HRrest)·intensity + HRrest.

    Intensity bands: 50-60 light, 60-70 moderate, 70-85 vigorous, 85-100 maximum.
    """
    reserve = heart_rate_reserve(max_hr, resting_hr)
    if reserve is None:
        return None
    return round(reserve * intensity_pct / 100 + resting_hr)


def hr_recovery(peak_hr: int | None, hr_after_1_min: int | None) -> int | None:
    """Beats recovered in the first minute after peak effort."""
    if peak_hr is None or hr_after_1_min is None:
        return None
    return peak_hr - hr_after_1_min


def hr_recovery_rating(recovery_bpm: int | None) -> str | None:
    if recovery_bpm is None:
        return None
    if recovery_bpm >= 25:
        return "excellent"
    if recovery_bpm >= 18:
        return "good"
    if recovery_bpm >= 12:
        return "average"
    if recovery_bpm >= 6:
        return "below_average"
    return "poor"


def sit_and_reach_rating(distance_cm: float | None, gender: str | Gender | None) -> str | None:
    """Sit-and-reach rating, cm past the toe line."""
    if distance_cm is None:
        return None
    excellent, good, average, fair = {
        Gender.MALE: (14, 11, 0, -5),
        Gender.FEMALE: (15, 12, 1, -4),
        Gender.OTHER: (14, 11, 0, -4),
    }[_gender(gender)]
    if distance_cm > excellent:
        return "excellent"
    if distance_cm >= good:
        return "good"
    if distance_cm >= average:
        return "average"
    if distance_cm >= fair:
        return "fair"
    return "poor"


def aslr_rating(angle_deg: float | None) -> str | None:
    """Active straight leg raise, degrees from horizontal."""
    if angle_deg is None:
        return None
    if angle_deg > 80:
        return "excellent"
    if angle_deg >= 70:
        return "good"
    if angle_deg >= 60:
        return "average"
    return "poor"


def knee_to_wall_rating(distance_cm: float | None) -> str | None:
    """Ankle dorsiflexion, toe-to-wall distance with the knee touching the wall."""
    if distance_cm is None:
        return None
    if distance_cm > 12:
        return "excellent"
    if distance_cm >= 10:
        return "good"
    if distance_cm >= 8:
        return "average"
    return "poor"


# ============================================
# Normalization and descriptive statistics
# ============================================


def normalize_to_scale(value: float | None, low: float, high: float, invert: bool = False) -> float | None:
    """Min-max normalize to 0-100 after clamping to [low, high].

    Set invert for metrics where lower is better (times).
    """
    if value is None:
        return None
    clamped = max(low, min(high, value))
    normalized = (clamped - low) / (high - low) * 100
    if invert:
        normalized = 100 - normalized
    return round(normalized, 2)


def mean(values: Sequence[float]) -> float | None:
    if not values:
        return None
    return round(sum(values) / len(values), 2)


def median(values: Sequence[float]) -> float | None:
    if not values:
        return None
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return round(ordered[mid], 2)
    return round((ordered[mid - 1] + ordered[mid]) / 2, 2)


def standard_deviation(values: Sequence[float]) -> float | None:
    """Population standard deviation."""
    if not values:
        return None
    avg = sum(values) / len(values)
    return round(math.sqrt(sum((v - avg) ** 2 for v in values) / len(values)), 3)


def coefficient_of_variation(values: Sequence[float]) -> float | None:
    """CV% = SD / mean × 100; lower means more consistent attempts."""
    avg = mean(values)
    sd = standard_deviation(values)
    if avg is None or sd is None or avg == 0:
        return None
    return round(sd / avg * 100, 2)
