"""
Mean radiant temperature (MRT) estimator.

MRT is the uniform enclosure temperature that would exchange the same
radiant heat with a runner as the real sky, ground and sun do. It is what
makes a sunny 50°F morning feel warmer than a cloudy one.

The estimate combines atmospheric and ground longwave emission with the
shortwave (direct, diffuse, ground-reflected) load absorbed by an upright
body, then inverts the Stefan-Boltzmann law.

References:
- Brutsaert, W. (1975): On a derivable formula for long-wave radiation
  from clear skies
- Fanger, P.O. (1970): Thermal Comfort (projected area factors)
- Thorsson et al. (2007): Different methods for estimating the mean
  radiant temperature in an outdoor urban setting
"""

import logging
import math

from .models import DEFAULT_AIR_TEMP, DEFAULT_CLOUD_COVER, DEFAULT_HUMIDITY, RadiantState
from .units import c_to_f, clamp, clamp_finite, f_to_c, finite_or

_LOGGER = logging.getLogger(__name__)

STEFAN_BOLTZMANN = 5.67e-8  # W/(m²·K⁴)
ALBEDO_URBAN = 0.15
GROUND_VIEW_FACTOR = 0.5
SKY_VIEW_FACTOR = 0.5
GROUND_EMISSIVITY = 0.95
GROUND_WARMING_K = 2.0       # ground assumed slightly warmer than air
BODY_EMISSIVITY = 0.95
BODY_ABSORPTIVITY = 0.7      # skin/clothing, shortwave
DIFFUSE_VIEW = 0.2

MIN_ENHANCEMENT = -20.0  # °F
MAX_ENHANCEMENT = 60.0   # °F

# Air temperatures fed to the radiative balance [°F], the UTCI domain
PHYSICAL_RANGE_F = (-58.0, 122.0)

# (upper bound of enhancement [°F], category)
MRT_CATEGORIES = [
    (5.0, "minimal"),
    (15.0, "moderate"),
    (25.0, "high"),
]


def _f_to_k(temp_f: float) -> float:
    return f_to_c(temp_f) + 273.15


def _k_to_f(temp_k: float) -> float:
    return c_to_f(temp_k - 273.15)


def longwave_down(temp_k: float, humidity: float, cloud_cover: float) -> float:
    """
    Atmospheric longwave irradiance [W/m²].

    Clear-sky emissivity from Brutsaert, bounded to [0.6, 1.0], then
    raised by cloud cover.
    """
    temp_c = temp_k - 273.15
    vp = 6.11 * math.exp(17.27 * temp_c / (temp_c + 237.3)) * humidity / 100.0
    clear_sky = 1.24 * (max(vp, 0.0) / temp_k) ** (1.0 / 7.0)
    emissivity = max(0.6, min(1.0, clear_sky))
    cloud = cloud_cover / 100.0
    emissivity = min(1.0, emissivity * (1 + 0.22 * cloud ** 2))
    return emissivity * STEFAN_BOLTZMANN * temp_k ** 4


def longwave_up(temp_k: float) -> float:
    return GROUND_EMISSIVITY * STEFAN_BOLTZMANN * (temp_k + GROUND_WARMING_K) ** 4


def solar_components(solar_radiation: float, solar_elevation: float,
                     cloud_cover: float) -> tuple[float, float, float]:
    """Split global radiation into (direct, diffuse, reflected) [W/m²]."""
    if not solar_radiation or solar_elevation <= 0:
        return 0.0, 0.0, 0.0
    # Clear sky is ~80% direct, overcast is all diffuse
    direct_fraction = (1 - cloud_cover / 100.0) * 0.8
    direct = solar_radiation * direct_fraction
    diffuse = solar_radiation * (1 - direct_fraction)
    reflected = solar_radiation * ALBEDO_URBAN * GROUND_VIEW_FACTOR
    return direct, diffuse, reflected


def projected_area_factor(solar_elevation: float) -> float:
    """Fraction of an upright body's area facing the sun beam."""
    if solar_elevation <= 0:
        return 0.0
    elev = math.radians(solar_elevation)
    return 0.3 * math.cos(elev) + 0.08 * math.sin(elev)


def calculate_mrt(temp_f: float, humidity: float, solar_radiation: float = 0.0,
                  solar_elevation: float = 0.0, cloud_cover: float = 50.0,
                  wind_mph: float = 0.0) -> RadiantState:
    """
    Estimate the mean radiant temperature around a runner.

    Args:
        temp_f: Air temperature [°F]; the radiative balance sees it bounded
                to PHYSICAL_RANGE_F, NaN means 59°F
        humidity: Relative humidity [%]
        solar_radiation: Global horizontal irradiance [W/m²]
        solar_elevation: Sun altitude [deg]
        cloud_cover: Cloud cover [%]
        wind_mph: Wind speed [mph]; recorded only, convection is handled by UTCI

    Returns:
        RadiantState with MRT [°F], enhancement over air temperature and a
        breakdown of the radiation components. The enhancement is always
        within [-20, +60] °F.
    """
    humidity = clamp(finite_or(humidity, DEFAULT_HUMIDITY), 0.0, 100.0)
    cloud_cover = clamp(finite_or(cloud_cover, DEFAULT_CLOUD_COVER), 0.0, 100.0)
    solar_radiation = max(0.0, finite_or(solar_radiation, 0.0))
    solar_elevation = finite_or(solar_elevation, 0.0)

    air_f = temp_f if math.isfinite(temp_f) else clamp_finite(temp_f, *PHYSICAL_RANGE_F, DEFAULT_AIR_TEMP)
    components = {"air_temp": air_f, "wind_mph": wind_mph}

    try:
        mrt_f, parts = _radiant_balance(clamp(air_f, *PHYSICAL_RANGE_F), humidity,
                                        solar_radiation, solar_elevation, cloud_cover)
    except OverflowError:
        _LOGGER.debug("MRT overflow for %s°F, using air temperature", temp_f)
        return RadiantState(mrt=air_f, enhancement=0.0, components=components)
    components.update(parts)

    if mrt_f is None:
        return RadiantState(mrt=air_f, enhancement=0.0, components=components)

    mrt_f = max(air_f + MIN_ENHANCEMENT, min(air_f + MAX_ENHANCEMENT, mrt_f))
    return RadiantState(mrt=mrt_f, enhancement=mrt_f - air_f, components=components)


def _radiant_balance(temp_f: float, humidity: float, solar_radiation: float,
                     solar_elevation: float, cloud_cover: float) -> tuple[float | None, dict[str, float]]:
    """Unclamped MRT [°F] and its components; None when the balance degenerates."""
    temp_k = _f_to_k(temp_f)
    lw_down = longwave_down(temp_k, humidity, cloud_cover)
    lw_up = longwave_up(temp_k)
    direct, diffuse, reflected = solar_components(solar_radiation, solar_elevation, cloud_cover)
    fp = projected_area_factor(solar_elevation)

    sw_total = direct * fp + diffuse * DIFFUSE_VIEW + reflected
    sw_absorbed = sw_total * BODY_ABSORPTIVITY
    lw_avg = lw_down * SKY_VIEW_FACTOR + lw_up * GROUND_VIEW_FACTOR

    parts = {
        "longwave_down": lw_down,
        "longwave_up": lw_up,
        "solar_direct": direct,
        "solar_diffuse": diffuse,
        "solar_reflected": reflected,
        "total_shortwave": sw_total,
        "absorbed_shortwave": sw_absorbed,
        "avg_longwave": lw_avg,
        "projected_area_factor": fp,
    }

    mrt_k4 = (lw_avg + sw_absorbed) / (BODY_EMISSIVITY * STEFAN_BOLTZMANN)
    if not math.isfinite(mrt_k4) or mrt_k4 <= 0:
        _LOGGER.debug("Degenerate MRT intermediate %s, using air temperature", mrt_k4)
        return None, parts
    return _k_to_f(mrt_k4 ** 0.25), parts


def mrt_category(enhancement: float) -> str:
    for upper, category in MRT_CATEGORIES:
        if enhancement < upper:
            return category
    return "extreme"


def effective_solar_temp(temp_f: float, mrt_f: float, wind_mph: float) -> float:
    """Air/MRT blend a runner feels in the sun; wind dilutes the radiant share."""
    wind_factor = max(0.3, 1 - wind_mph / 20.0)
    weight = wind_factor * 0.6
    return temp_f * (1 - weight) + mrt_f * weight
