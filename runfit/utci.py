"""
Universal Thermal Climate Index (UTCI).

UTCI is the air temperature of a reference environment (50% RH capped at
20 hPa, 0.5 m/s wind at 10 m, MRT equal to air temperature) that produces
the same physiological strain as the actual environment.

The 6th-order regression itself comes from pythermalcomfort. This module
clamps the inputs into the regression's validity domain, reports what was
actually used, adds a rain correction and guards the result.

References:
- Bröde et al. (2012): Deriving the operational procedure for the
  Universal Thermal Climate Index (UTCI), Int J Biometeorol 56:481-494
- Jendritzky, de Dear & Havenith (2012): UTCI - Why another thermal index?
- Magnus-type saturation vapour pressure (Sonntag 1990 coefficients)
"""

import logging
import math

from pythermalcomfort.models import utci

from .models import DEFAULT_AIR_TEMP, DEFAULT_HUMIDITY, PrecipIntensity, StressCategory, ThermalIndex
from .units import c_to_f, clamp, clamp_finite, f_to_c, finite_or, mph_to_ms

_LOGGER = logging.getLogger(__name__)

# Validity domain of the regression
TA_RANGE = (-50.0, 50.0)    # °C
VA_RANGE = (0.5, 17.0)      # m/s at 10 m
DELTA_T_RANGE = (-30.0, 70.0)  # K, MRT - Ta
VP_RANGE = (0.0, 50.0)      # hPa

SANITY_LIMIT_C = 200.0


# =============================================================================
# Inputs
# =============================================================================

def saturation_vapor_pressure(temp_c: float) -> float:
    """Saturation vapour pressure over water [hPa]."""
    return 6.112 * math.exp(17.62 * temp_c / (243.12 + temp_c))


def vapor_pressure(temp_c: float, rh: float) -> float:
    return rh / 100.0 * saturation_vapor_pressure(temp_c)


def clamp_inputs(ta: float, va: float, delta_t: float, vp: float) -> tuple[float, float, float, float]:
    """Clamp each regression input into the validity domain."""
    return (
        min(max(ta, TA_RANGE[0]), TA_RANGE[1]),
        min(max(va, VA_RANGE[0]), VA_RANGE[1]),
        min(max(delta_t, DELTA_T_RANGE[0]), DELTA_T_RANGE[1]),
        min(max(vp, VP_RANGE[0]), VP_RANGE[1]),
    )


def utci_regression(ta: float, va: float, delta_t: float, rh: float) -> float:
    """
    Evaluate the UTCI regression through pythermalcomfort.

    Args:
        ta: Air temperature [°C]
        va: Wind speed at 10 m [m/s]
        delta_t: MRT - Ta [K]
        rh: Relative humidity [%]

    Returns:
        UTCI [°C]. Inputs are used as given; see clamp_inputs().
    """
    # limit_inputs=False: the domain is enforced here, not by a NaN result
    result = utci(
        tdb=ta,
        tr=ta + delta_t,
        v=va,
        rh=rh,
        limit_inputs=False,
    )
    return float(result.utci)


# =============================================================================
# Precipitation
# =============================================================================

# (lower bound of dry UTCI [°F], {intensity: adjustment [°F]})
RAIN_ADJUSTMENTS = [
    (89.6, {"light": -3.6, "moderate": -7.2, "heavy": -12.6}),   # strong heat
    (78.8, {"light": -2.7, "moderate": -5.4, "heavy": -9.0}),    # moderate heat
    (48.2, {"light": -1.8, "moderate": -4.5, "heavy": -7.2}),    # no stress
    (32.0, {"light": -4.5, "moderate": -9.0, "heavy": -14.4}),   # slight cold
    (8.6, {"light": -7.2, "moderate": -12.6, "heavy": -19.8}),   # moderate cold
    (-math.inf, {"light": -9.0, "moderate": -16.2, "heavy": -25.2}),  # strong cold
]


def classify_precipitation(precip_rate: float) -> PrecipIntensity:
    """Intensity of a precipitation rate [in/h]."""
    if precip_rate <= 0:
        return PrecipIntensity.NONE
    if precip_rate < 0.1:
        return PrecipIntensity.LIGHT
    if precip_rate < 0.3:
        return PrecipIntensity.MODERATE
    return PrecipIntensity.HEAVY


def rain_adjustment(utci_dry_f: float, intensity: PrecipIntensity) -> float:
    """Evaporative/convective cooling from rain [°F], never positive."""
    if intensity is PrecipIntensity.NONE:
        return 0.0
    for lower, table in RAIN_ADJUSTMENTS:
        if utci_dry_f >= lower:
            return table[intensity.value]
    return 0.0


# =============================================================================
# Stress categories
# =============================================================================

# (lower bound [°F], category), hottest first
UTCI_CATEGORIES = [
    (106.0, StressCategory("extreme_heat_stress", "Extreme Heat Stress",
                           "Heat illness is likely. Do not run outdoors.", "extreme")),
    (100.4, StressCategory("very_strong_heat_stress", "Very Strong Heat",
                           "Heat illness risk is high. Keep efforts short and easy.", "very_high")),
    (89.6, StressCategory("strong_heat_stress", "Strong Heat Stress",
                          "Hard going. Slow down and drink often.", "high")),
    (78.8, StressCategory("moderate_heat_stress", "Moderate Heat",
                          "Warm. Expect a slower pace and carry water.", "moderate")),
    (48.2, StressCategory("no_thermal_stress", "Comfortable",
                          "Little thermal strain. Good running weather.", "minimal")),
    (32.0, StressCategory("slight_cold_stress", "Slight Cold",
                          "Cool. A light extra layer helps early on.", "low")),
    (8.6, StressCategory("moderate_cold_stress", "Moderate Cold",
                         "Cold. Cover hands, ears and legs.", "moderate")),
    (-5.8, StressCategory("strong_cold_stress", "Strong Cold",
                          "Harsh cold. Full winter kit and a short loop.", "high")),
    (-27.4, StressCategory("very_strong_cold_stress", "Very Strong Cold",
                           "Frostbite risk on exposed skin. Limit time outside.", "very_high")),
    (-math.inf, StressCategory("extreme_cold_stress", "Extreme Cold",
                               "Exposed skin freezes within minutes. Stay indoors.", "extreme")),
]


def utci_category(utci_f: float) -> StressCategory:
    for lower, category in UTCI_CATEGORIES:
        if utci_f >= lower:
            return category
    return UTCI_CATEGORIES[-1][1]


# =============================================================================
# Public entry point
# =============================================================================

def calculate_utci(temp_f: float, humidity: float, wind_mph: float,
                   mrt: float | None = None, precip_rate: float = 0.0) -> ThermalIndex:
    """
    Compute UTCI for a runner, including a rain correction.

    Args:
        temp_f: Air temperature [°F]; ±inf goes to the domain edge, NaN to 59°F
        humidity: Relative humidity [%]; non-finite means 50%
        wind_mph: Wind speed [mph]; non-finite means calm
        mrt: Mean radiant temperature [°F]; air temperature when omitted
        precip_rate: Precipitation rate [in/h]

    Returns:
        ThermalIndex with the rain-adjusted and dry UTCI in °F. The
        regression inputs actually used (after clamping) are reported in
        ``inputs`` in °C, m/s, K, kPa and %. The result is always finite.
    """
    humidity = clamp(finite_or(humidity, DEFAULT_HUMIDITY), 0.0, 100.0)
    wind_mph = max(finite_or(wind_mph, 0.0), 0.0)
    precip_rate = max(finite_or(precip_rate, 0.0), 0.0)

    temp_c = clamp_finite(f_to_c(temp_f), TA_RANGE[0], TA_RANGE[1], f_to_c(DEFAULT_AIR_TEMP))
    mrt_c = f_to_c(mrt) if mrt is not None and math.isfinite(mrt) else temp_c
    wind_ms = mph_to_ms(wind_mph)
    vp = vapor_pressure(temp_c, humidity)

    ta, va, delta_t, vp_clamped = clamp_inputs(temp_c, wind_ms, mrt_c - temp_c, vp)
    rh = clamp(100.0 * vp_clamped / saturation_vapor_pressure(ta), 0.0, 100.0)
    inputs = {"ta": ta, "va": va, "delta_t": delta_t, "pa": vp_clamped / 10.0, "rh": rh}

    utci_c = utci_regression(ta, va, delta_t, rh)

    if not math.isfinite(utci_c) or abs(utci_c) > SANITY_LIMIT_C:
        _LOGGER.warning("UTCI regression returned %s for %s, using fallback", utci_c, inputs)
        fallback_f = c_to_f(ta + 0.33 * vp_clamped - 0.7 * va - 4.0)
        return ThermalIndex(
            utci=fallback_f,
            utci_dry=fallback_f,
            rain_adjustment=0.0,
            precip_intensity=PrecipIntensity.NONE,
            category=utci_category(fallback_f),
            inputs=inputs,
            fallback=True,
        )

    utci_dry_f = c_to_f(utci_c)
    intensity = classify_precipitation(precip_rate)
    adjustment = rain_adjustment(utci_dry_f, intensity)
    utci_f = utci_dry_f + adjustment

    return ThermalIndex(
        utci=utci_f,
        utci_dry=utci_dry_f,
        rain_adjustment=adjustment,
        precip_intensity=intensity,
        category=utci_category(utci_f),
        inputs=inputs,
    )
