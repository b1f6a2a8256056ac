"""
Psychrometric helpers: dew point and apparent ("feels-like") temperature.

References:
- Alduchov & Eskridge (1996): Improved Magnus form approximation of
  saturation vapor pressure
- NWS (2001): Wind Chill Temperature Index
- Rothfusz, L.P. (1990): The Heat Index Equation, NWS SR 90-23
"""

import math

from .models import UnitMode
from .units import c_to_f, f_to_c, to_display, to_internal

MAGNUS_A = 17.62
MAGNUS_B = 243.12  # °C
RH_EPSILON = 1e-6

WIND_CHILL_MAX_TEMP = 50.0  # °F
WIND_CHILL_MIN_WIND = 3.0   # mph
HEAT_INDEX_MIN_TEMP = 80.0  # °F
HEAT_INDEX_MIN_RH = 40.0    # %

# Upper bounds of each dew point comfort band [°F]
DEW_POINT_BANDS = [
    (50.0, "dry"),
    (55.0, "comfortable"),
    (60.0, "slightly-muggy"),
    (65.0, "moderate"),
    (70.0, "muggy"),
    (75.0, "very-humid"),
]


def dew_point(temp_f: float, rh: float) -> float:
    """
    Dew point via the Magnus approximation.

    Args:
        temp_f: Air temperature [°F]
        rh: Relative humidity [%]

    Returns:
        Dew point [°F]
    """
    t = f_to_c(temp_f)
    gamma = math.log(max(RH_EPSILON, rh) / 100.0) + MAGNUS_A * t / (MAGNUS_B + t)
    return c_to_f(MAGNUS_B * gamma / (MAGNUS_A - gamma))


def relative_humidity_from_dew_point(temp_f: float, dew_point_f: float) -> float:
    """Inverse Magnus: relative humidity [%] for a temperature/dew point pair."""
    t = f_to_c(temp_f)
    td = f_to_c(dew_point_f)
    rh = 100.0 * math.exp(MAGNUS_A * td / (MAGNUS_B + td) - MAGNUS_A * t / (MAGNUS_B + t))
    return max(0.0, min(100.0, rh))


def dew_point_comfort(dew_point_f: float) -> str:
    for upper, band in DEW_POINT_BANDS:
        if dew_point_f < upper:
            return band
    return "oppressive"


def wind_chill(temp_f: float, wind_mph: float) -> float:
    """NWS wind chill. Only meaningful at or below 50°F with wind above 3 mph."""
    v16 = wind_mph ** 0.16
    return 35.74 + 0.6215 * temp_f - 35.75 * v16 + 0.4275 * temp_f * v16


def heat_index(temp_f: float, rh: float) -> float:
    """Rothfusz regression with the NWS humidity adjustments, floored at temp_f."""
    t, r = temp_f, rh
    hi = (-42.379 + 2.04901523 * t + 10.14333127 * r
          - 0.22475541 * t * r - 6.83783e-3 * t * t - 5.481717e-2 * r * r
          + 1.22874e-3 * t * t * r + 8.5282e-4 * t * r * r
          - 1.99e-6 * t * t * r * r)

    if r < 13 and 80 <= t <= 112:
        hi -= ((13 - r) / 4) * math.sqrt((17 - abs(t - 95)) / 17)
    elif r > 85 and 80 <= t <= 87:
        hi += ((r - 85) / 10) * ((87 - t) / 5)

    return max(t, hi)


def apparent_temperature(temp_f: float, humidity: float, wind_mph: float) -> float:
    """
    Feels-like temperature [°F].

    Hard-branches between wind chill and heat index; the two are never
    blended. Outside both regimes the air temperature is returned.
    """
    if temp_f <= WIND_CHILL_MAX_TEMP and wind_mph > WIND_CHILL_MIN_WIND:
        return wind_chill(temp_f, wind_mph)
    if temp_f >= HEAT_INDEX_MIN_TEMP and humidity >= HEAT_INDEX_MIN_RH:
        return heat_index(temp_f, humidity)
    return temp_f


def feels_like(temp: float, wind_mph: float, humidity: float,
               unit: UnitMode = UnitMode.FAHRENHEIT) -> float:
    """apparent_temperature() for a caller working in ``unit``."""
    temp_f = to_internal(temp, unit)
    return to_display(apparent_temperature(temp_f, humidity, wind_mph), unit)
