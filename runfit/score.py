"""
Run-suitability scoring.

Two models turn weather into a 0-100 score:

- The UTCI model measures how far the thermal-stress index sits outside an
  ideal band and integrates that distance through an asymmetric table of
  per-degree penalty rates. It is the headline score for the current hour.
- The legacy model sums independent penalties (temperature, dew point,
  wind, precipitation, UV and two synergy terms) on the apparent
  temperature. It is cheap enough for every forecast hour and its factors
  explain a score in plain terms, so the advisory builds on it.

References:
- Ely et al. (2007): Impact of weather on marathon-running performance,
  Med Sci Sports Exerc 39(3)
- Vihma, T. (2010): Effects of weather on the performance of marathon
  runners, Int J Biometeorol 54
- Bröde et al. (2012): UTCI assessment scale
"""

from dataclasses import replace
import logging
import math
from typing import Sequence

from .config import DEFAULT_SEVERITY_MULTIPLIER
from .models import (
    Personalization,
    RunType,
    ScoreBreakdown,
    ScoreFactor,
    ScoreModel,
    Severity,
    ThermalIndex,
    WeatherSnapshot,
)
from .psychro import dew_point
from .units import clamp
from .utci import calculate_utci

_LOGGER = logging.getLogger(__name__)

# =============================================================================
# UTCI model
# =============================================================================

IDEAL_UTCI_BAND = (45.0, 49.0)  # °F

# Heat side: (from [°F], to [°F], penalty per degree)
HEAT_ZONES = [
    (49.0, 55.0, 0.4),
    (55.0, 62.0, 0.6),
    (62.0, 70.0, 0.8),
    (70.0, 78.8, 1.0),
    (78.8, 84.0, 1.2),
    (84.0, 89.6, 1.5),
    (89.6, 95.0, 2.5),    # strong heat stress
    (95.0, 100.4, 3.0),
    (100.4, math.inf, 4.0),  # very strong heat stress and beyond
]

# Cold side: (from [°F], down to [°F], penalty per degree)
COLD_ZONES = [
    (45.0, 41.0, 0.6),
    (41.0, 36.0, 0.9),
    (36.0, 32.0, 1.1),
    (32.0, 20.0, 1.3),
    (20.0, 8.6, 1.5),
    (8.6, -5.8, 1.8),      # moderate cold stress
    (-5.8, -27.4, 2.2),    # strong cold stress
    (-27.4, -math.inf, 2.5),
]

# (threshold [°F], flat penalty) applied beyond the threshold
HEAT_EXTRAS = [(100.4, 5.0), (106.0, 10.0)]
COLD_EXTRAS = [(-5.8, 5.0), (-27.4, 10.0)]

# (minimum score, label)
SCORE_LABELS = [
    (90, "Excellent"),
    (80, "Very Good"),
    (70, "Good"),
    (60, "Fair"),
    (50, "Moderate"),
    (40, "Challenging"),
    (30, "Difficult"),
    (20, "Very Difficult"),
    (10, "Extreme"),
]


def score_label(score: float) -> str:
    for minimum, label in SCORE_LABELS:
        if score >= minimum:
            return label
    return "Dangerous"


def thermal_penalty(utci_f: float) -> float:
    """Per-degree penalty accumulated outside the ideal band (unscaled)."""
    total = 0.0
    for start, end, rate in HEAT_ZONES:
        if utci_f > start:
            total += (min(utci_f, end) - start) * rate
    for start, end, rate in COLD_ZONES:
        if utci_f < start:
            total += (start - max(utci_f, end)) * rate
    return total


def extreme_penalty(utci_f: float) -> float:
    """Flat penalties for crossing into very strong or extreme stress (unscaled)."""
    total = sum(p for threshold, p in HEAT_EXTRAS if utci_f > threshold)
    total += sum(p for threshold, p in COLD_EXTRAS if utci_f < threshold)
    return total


def score_from_utci(utci_f: float, multiplier: float = DEFAULT_SEVERITY_MULTIPLIER) -> ScoreBreakdown:
    """
    Score a UTCI value.

    Args:
        utci_f: UTCI [°F], rain adjustment already applied
        multiplier: Global severity multiplier applied to every penalty

    Returns:
        ScoreBreakdown with a "temperature" (thermal stress) and an
        "extreme" (flat threshold) factor. The score never increases as
        UTCI moves away from the ideal band.
    """
    if not math.isfinite(utci_f):
        _LOGGER.debug("Non-finite UTCI %s scored as 0", utci_f)
        return ScoreBreakdown(score=0, label=score_label(0), model=ScoreModel.UTCI,
                              details={"utci": utci_f})

    thermal = thermal_penalty(utci_f) * multiplier
    extreme = extreme_penalty(utci_f) * multiplier
    score = int(clamp(round(100 - thermal - extreme), 0, 100))

    factors = _rank_factors([
        ("temperature", "Thermal stress", thermal),
        ("extreme", "Extreme conditions", extreme),
    ])
    return ScoreBreakdown(
        score=score,
        label=score_label(score),
        model=ScoreModel.UTCI,
        factors=factors,
        dominant_factors=_dominant(factors),
        details={
            "utci": utci_f,
            "ideal_band": IDEAL_UTCI_BAND,
            "multiplier": multiplier,
            "total_penalty": thermal + extreme,
        },
    )


# =============================================================================
# Legacy model
# =============================================================================

IDEAL_TEMPS = {
    RunType.WORKOUT: 43.0,
    RunType.LONG_RUN: 48.0,
    RunType.EASY: 50.0,
}
COLD_WIDTHS = {
    RunType.WORKOUT: 22.0,
    RunType.LONG_RUN: 20.0,
    RunType.EASY: 20.0,
}
HEAT_PENALTY_MAX_TEMP = 85.0  # °F where the heat penalty saturates at 99
COLD_PENALTY_MAX = 28.0

# (dew point upper bound [°F], penalty)
DEW_POINT_PENALTIES = [
    (50.0, 0.0),
    (55.0, 2.0),
    (60.0, 5.0),
    (65.0, 10.0),
    (70.0, 18.0),
    (75.0, 28.0),
]
DEW_POINT_PENALTY_MAX = 40.0

ICE_DANGER_TEMP = 34.0
ICE_DANGER_PENALTY = 10.0
COLD_HANDS_PENALTY_PER_LEVEL = 2.0

# (key, label) in declaration order; ties in ranking keep this order
LEGACY_FACTORS = [
    ("temperature", "Temperature"),
    ("humidity", "Humidity"),
    ("wind", "Wind"),
    ("precip", "Precipitation"),
    ("iceDanger", "Ice danger"),
    ("uv", "UV exposure"),
    ("coldSynergy", "Cold + wind"),
    ("heatSynergy", "Heat + humidity"),
    ("coldHands", "Cold hands"),
]


def severity_for(penalty: float) -> Severity:
    if penalty <= 0:
        return Severity.NONE
    if penalty < 5:
        return Severity.LOW
    if penalty < 15:
        return Severity.MED
    return Severity.HIGH


def _rank_factors(raw: list[tuple[str, str, float]]) -> tuple[ScoreFactor, ...]:
    total = sum(p for _, _, p in raw)
    factors = [
        ScoreFactor(key=key, label=label, penalty=penalty,
                    severity=severity_for(penalty),
                    share=penalty / total if total > 0 else 0.0)
        for key, label, penalty in raw
    ]
    # sorted() is stable, so equal penalties keep declaration order
    return tuple(sorted(factors, key=lambda f: f.penalty, reverse=True))


def _dominant(factors: Sequence[ScoreFactor], count: int = 2) -> tuple[str, ...]:
    return tuple(f.key for f in factors if f.penalty > 0)[:count]


def temperature_penalty(apparent_f: float, run_type: RunType) -> float:
    ideal = IDEAL_TEMPS[run_type]
    diff = apparent_f - ideal
    if diff >= 0:
        warm_span = max(5.0, HEAT_PENALTY_MAX_TEMP - ideal)
        return clamp(diff / warm_span, 0.0, 1.0) ** 1.6 * 99
    return (abs(diff) / COLD_WIDTHS[run_type]) ** 2 * COLD_PENALTY_MAX


def humidity_penalty(dew_point_f: float, humidity: float, apparent_f: float) -> float:
    penalty = DEW_POINT_PENALTY_MAX
    for upper, value in DEW_POINT_PENALTIES:
        if dew_point_f < upper:
            penalty = value
            break
    if humidity > 80 and apparent_f > 60:
        penalty += ((humidity - 80) / 20) ** 2 * 8
    return penalty


def wind_penalty(wind_mph: float, apparent_f: float) -> float:
    base = (max(0.0, wind_mph - 2) / 25) ** 2 * 40
    if apparent_f < 35:
        return base * 1.5
    if apparent_f < 40:
        return base * 1.3
    return base


def precip_penalty(probability: float, amount: float) -> float:
    return min(max(probability * 0.15, 0.0), 15.0) + min(max(amount * 160, 0.0), 20.0)


def uv_penalty(uv_index: float, apparent_f: float, run_type: RunType) -> float:
    if run_type is RunType.LONG_RUN:
        penalty = min(max(0.0, uv_index - 5) * 3, 15.0)
        if apparent_f >= 70:
            penalty += 3
        return penalty
    penalty = min(max(0.0, uv_index - 6) * 2.5, 10.0)
    if run_type is RunType.WORKOUT and apparent_f >= 70:
        penalty += 5
    return penalty


def cold_synergy(apparent_f: float, wind_mph: float) -> float:
    if apparent_f < 35 and wind_mph > 10:
        return (35 - apparent_f) * 0.3 * 0.6
    return 0.0


def heat_synergy(apparent_f: float, dew_point_f: float) -> float:
    penalty = 0.0
    if dew_point_f > 70:
        penalty += (dew_point_f - 70) * 0.6
    if apparent_f > 100:
        penalty += ((apparent_f - 100) / 5) ** 2 * 20
    # Heat and humidity compound super-linearly
    if apparent_f > 75 and dew_point_f > 60:
        penalty += ((apparent_f - 75) / 10) ** 1.8 * ((dew_point_f - 60) / 10) ** 1.5 * 15
    return penalty


def cold_hands_penalty(cold_hands: bool, hands_level: int) -> float:
    """Extra cost of cold weather for a runner whose hands get cold."""
    return COLD_HANDS_PENALTY_PER_LEVEL * max(0, hands_level) if cold_hands else 0.0


def compute_legacy_breakdown(snapshot: WeatherSnapshot,
                             run_type: RunType = RunType.EASY,
                             cold_hands: bool = False,
                             hands_level: int = 0) -> ScoreBreakdown:
    """
    Score an hour with the additive apparent-temperature model.

    Args:
        snapshot: Weather for the hour
        run_type: Selects the ideal temperature, cold width and UV rule
        cold_hands: The runner's cold-hands preference
        hands_level: Hand protection the outfit needs, 0 (bare) .. 4 (mittens + liner)

    Returns:
        ScoreBreakdown whose factors are ranked by penalty with severity
        and share of the total.
    """
    apparent = snapshot.apparent_temp
    dp = dew_point(snapshot.air_temp, snapshot.humidity)
    wind = max(0.0, snapshot.wind_speed)
    amount = max(0.0, snapshot.precip_rate)

    penalties = {
        "temperature": temperature_penalty(apparent, run_type),
        "humidity": humidity_penalty(dp, snapshot.humidity, apparent),
        "wind": wind_penalty(wind, apparent),
        "precip": precip_penalty(snapshot.precip_probability, amount),
        "iceDanger": ICE_DANGER_PENALTY if apparent <= ICE_DANGER_TEMP and amount > 0 else 0.0,
        "uv": uv_penalty(snapshot.uv_index, apparent, run_type),
        "coldSynergy": cold_synergy(apparent, wind),
        "heatSynergy": heat_synergy(apparent, dp),
        "coldHands": cold_hands_penalty(cold_hands, hands_level),
    }
    total = sum(penalties.values())
    score = int(round(100 - clamp(total, 0.0, 99.0)))

    factors = _rank_factors([(key, label, penalties[key]) for key, label in LEGACY_FACTORS])
    return ScoreBreakdown(
        score=score,
        label=score_label(score),
        model=ScoreModel.LEGACY,
        factors=factors,
        dominant_factors=_dominant(factors),
        details={
            "dew_point": dp,
            "ideal_temp": IDEAL_TEMPS[run_type],
            "total_penalty": total,
        },
    )


# =============================================================================
# Dispatch and long-run blending
# =============================================================================

LONG_RUN_WINDOW = 3  # hours ahead averaged into a long-run score


def blend_long_run(current: WeatherSnapshot,
                   upcoming: Sequence[WeatherSnapshot]) -> WeatherSnapshot:
    """
    Conditions a long run actually covers: the current hour averaged with
    the next three. Rain chance takes the worst hour, rain amount the sum.
    """
    window = [current, *list(upcoming)[:LONG_RUN_WINDOW]]
    if len(window) == 1:
        return current

    def mean(attr: str) -> float:
        return sum(getattr(s, attr) for s in window) / len(window)

    return replace(
        current,
        air_temp=mean("air_temp"),
        apparent_temp=mean("apparent_temp"),
        humidity=mean("humidity"),
        wind_speed=mean("wind_speed"),
        uv_index=mean("uv_index"),
        cloud_cover=mean("cloud_cover"),
        solar_radiation=mean("solar_radiation"),
        precip_probability=max(s.precip_probability for s in window),
        precip_rate=sum(s.precip_rate for s in window),
    )


def compute_score(snapshot: WeatherSnapshot, personalization: Personalization,
                  model: ScoreModel = ScoreModel.UTCI, thermal: ThermalIndex | None = None,
                  multiplier: float = DEFAULT_SEVERITY_MULTIPLIER,
                  hands_level: int = 0) -> ScoreBreakdown:
    """Score an hour with the requested model."""
    if model is ScoreModel.LEGACY:
        return compute_legacy_breakdown(snapshot, personalization.run_type,
                                        personalization.cold_hands, hands_level)
    if thermal is None:
        thermal = calculate_utci(snapshot.air_temp, snapshot.humidity, snapshot.wind_speed,
                                 precip_rate=snapshot.precip_rate)
    return score_from_utci(thermal.utci, multiplier)
