"""
Input validation and defaults.

Providers hand us loosely typed dictionaries. The schemas below coerce them
into the engine's dataclasses: out-of-range or missing numbers are clamped
or replaced by a documented default, while structurally wrong input (a list
where a number belongs, an unknown run type) is rejected.
"""

from dataclasses import replace
from datetime import datetime
import logging
import math
from typing import Any

import pytz
import voluptuous as vol

from .models import (
    DEFAULT_AIR_TEMP,
    DEFAULT_CLOUD_COVER,
    DEFAULT_HUMIDITY,
    DEFAULT_PRESSURE_HPA,
    DEFAULT_SOLAR_RADIATION,
    Gender,
    Personalization,
    RunType,
    ScoreModel,
    UnitMode,
    WeatherSnapshot,
)
from .psychro import apparent_temperature
from .units import clamp, clamp_finite, to_internal

_LOGGER = logging.getLogger(__name__)

DEFAULT_SEVERITY_MULTIPLIER = 2.0

# Physical bounds applied to every snapshot before any model sees it
TEMP_RANGE_F = (-100.0, 150.0)      # beyond any recorded surface air temperature
WIND_RANGE_MPH = (0.0, 250.0)
PRECIP_RATE_RANGE = (0.0, 20.0)     # in/h
UV_RANGE = (0.0, 20.0)
SOLAR_RANGE = (0.0, 1500.0)         # W/m², above the solar constant
PRESSURE_RANGE_HPA = (300.0, 1100.0)


class InvalidInputError(ValueError):
    """Raised when input is structurally unusable."""


# =============================================================================
# Validators
# =============================================================================

def number(default: float | None = None, lo: float | None = None, hi: float | None = None):
    """
    Build a validator that coerces to float and clamps into [lo, hi].

    None, NaN and infinities become ``default``. Values that are not numbers
    at all (lists, dicts, free text) are rejected.
    """
    def validator(value: Any) -> float | None:
        if value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise vol.Invalid(f"expected a number, got {type(value).__name__}")
        try:
            value = float(value)
        except ValueError as err:
            raise vol.Invalid(f"expected a number, got {value!r}") from err
        if not math.isfinite(value):
            _LOGGER.debug("Non-finite value replaced by default %s", default)
            return default
        if lo is not None:
            value = max(lo, value)
        if hi is not None:
            value = min(hi, value)
        return value
    return validator


def timestamp(value: Any) -> datetime | None:
    """Accept an aware datetime, a naive one (taken as UTC) or an ISO string."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as err:
            raise vol.Invalid(f"invalid timestamp {value!r}") from err
    if not isinstance(value, datetime):
        raise vol.Invalid(f"expected datetime, got {type(value).__name__}")
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    return value


def tz_name(value: Any) -> str:
    if value is None:
        return "UTC"
    if not isinstance(value, str):
        raise vol.Invalid("timezone must be a string")
    return value


def notch(value: Any) -> int:
    """Personalization notch in -2..+2."""
    if isinstance(value, bool):
        raise vol.Invalid("expected an integer notch")
    try:
        value = int(round(float(value)))
    except (TypeError, ValueError) as err:
        raise vol.Invalid(f"expected an integer notch, got {value!r}") from err
    return int(clamp(value, -2, 2))


# =============================================================================
# Schemas
# =============================================================================

SNAPSHOT_SCHEMA = vol.Schema(
    {
        vol.Required("air_temp"): vol.All(number(), vol.NotIn([None], msg="air_temp is required")),
        vol.Optional("apparent_temp", default=None): number(),
        vol.Optional("humidity", default=DEFAULT_HUMIDITY): number(DEFAULT_HUMIDITY, 0.0, 100.0),
        vol.Optional("wind_speed", default=0.0): number(0.0, 0.0),
        vol.Optional("precip_probability", default=0.0): number(0.0, 0.0, 100.0),
        vol.Optional("precip_rate", default=0.0): number(0.0, 0.0),
        vol.Optional("uv_index", default=0.0): number(0.0, 0.0),
        vol.Optional("cloud_cover", default=DEFAULT_CLOUD_COVER): number(DEFAULT_CLOUD_COVER, 0.0, 100.0),
        vol.Optional("pressure", default=DEFAULT_PRESSURE_HPA): number(DEFAULT_PRESSURE_HPA, 0.0),
        vol.Optional("solar_radiation", default=DEFAULT_SOLAR_RADIATION): number(DEFAULT_SOLAR_RADIATION, 0.0),
        vol.Optional("is_daylight", default=True): vol.Boolean(),
        vol.Optional("timestamp", default=None): timestamp,
        vol.Optional("latitude", default=None): number(None, -90.0, 90.0),
        vol.Optional("longitude", default=None): number(None, -180.0, 180.0),
        vol.Optional("timezone", default="UTC"): tz_name,
    },
    extra=vol.REMOVE_EXTRA,
)

PERSONALIZATION_SCHEMA = vol.Schema(
    {
        vol.Optional("gender", default=Gender.FEMALE.value): vol.In([g.value for g in Gender]),
        vol.Optional("cold_hands", default=False): bool,
        vol.Optional("temperature_sensitivity", default=0): notch,
        vol.Optional("runner_boldness", default=0): notch,
        vol.Optional("run_type", default=RunType.EASY.value): vol.In([r.value for r in RunType]),
    },
    extra=vol.REMOVE_EXTRA,
)

ENGINE_OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Optional("severity_multiplier", default=DEFAULT_SEVERITY_MULTIPLIER):
            vol.All(vol.Coerce(float), vol.Range(min=0.0)),
        vol.Optional("unit", default=UnitMode.FAHRENHEIT.value): vol.In([u.value for u in UnitMode]),
        vol.Optional("headline_model", default=ScoreModel.UTCI.value): vol.In([m.value for m in ScoreModel]),
    },
    extra=vol.REMOVE_EXTRA,
)


# =============================================================================
# Loaders
# =============================================================================

def _validate(schema: vol.Schema, data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise InvalidInputError(f"{what} must be a mapping, got {type(data).__name__}")
    try:
        return schema(data)
    except vol.Invalid as err:
        raise InvalidInputError(f"Invalid {what}: {err}") from err


def load_snapshot(data: dict[str, Any], unit: UnitMode = UnitMode.FAHRENHEIT) -> WeatherSnapshot:
    """
    Build a WeatherSnapshot from a provider dictionary.

    Args:
        data: Mapping with at least ``air_temp``. Temperatures are in ``unit``,
              wind in mph, precipitation in inches per hour.
        unit: Unit of the temperatures in ``data``.

    Returns:
        WeatherSnapshot in °F. A missing apparent temperature is derived
        from air temperature, humidity and wind. Every number is clamped into
        its physical range (see sanitize_snapshot).

    Raises:
        InvalidInputError: if ``data`` is structurally invalid.
    """
    values = _validate(SNAPSHOT_SCHEMA, data, "weather snapshot")
    values["air_temp"] = clamp(to_internal(values["air_temp"], unit), *TEMP_RANGE_F)
    if values["apparent_temp"] is None:
        values["apparent_temp"] = apparent_temperature(
            values["air_temp"], values["humidity"], values["wind_speed"])
    else:
        values["apparent_temp"] = to_internal(values["apparent_temp"], unit)
    return sanitize_snapshot(WeatherSnapshot(**values))


def load_personalization(data: dict[str, Any] | None = None) -> Personalization:
    values = _validate(PERSONALIZATION_SCHEMA, data or {}, "personalization")
    return Personalization(
        gender=Gender(values["gender"]),
        cold_hands=values["cold_hands"],
        temperature_sensitivity=values["temperature_sensitivity"],
        runner_boldness=values["runner_boldness"],
        run_type=RunType(values["run_type"]),
    )


def load_engine_options(data: dict[str, Any] | None = None) -> dict[str, Any]:
    values = _validate(ENGINE_OPTIONS_SCHEMA, data or {}, "engine options")
    values["unit"] = UnitMode(values["unit"])
    values["headline_model"] = ScoreModel(values["headline_model"])
    return values


def sanitize_snapshot(snapshot: WeatherSnapshot) -> WeatherSnapshot:
    """
    Clamp every number in a snapshot into its physical range.

    Infinities go to the nearer bound; NaN takes the field's default (59°F
    for air temperature, the air temperature for apparent temperature).
    In-range snapshots come back equal to the input.
    """
    air = clamp_finite(snapshot.air_temp, *TEMP_RANGE_F, DEFAULT_AIR_TEMP)
    lat, lon = snapshot.latitude, snapshot.longitude
    if lat is not None and not math.isfinite(lat):
        lat = None
    if lon is not None and not math.isfinite(lon):
        lon = None

    cleaned = replace(
        snapshot,
        air_temp=air,
        apparent_temp=clamp_finite(snapshot.apparent_temp, *TEMP_RANGE_F, air),
        humidity=clamp_finite(snapshot.humidity, 0.0, 100.0, DEFAULT_HUMIDITY),
        wind_speed=clamp_finite(snapshot.wind_speed, *WIND_RANGE_MPH, 0.0),
        precip_probability=clamp_finite(snapshot.precip_probability, 0.0, 100.0, 0.0),
        precip_rate=clamp_finite(snapshot.precip_rate, *PRECIP_RATE_RANGE, 0.0),
        uv_index=clamp_finite(snapshot.uv_index, *UV_RANGE, 0.0),
        cloud_cover=clamp_finite(snapshot.cloud_cover, 0.0, 100.0, DEFAULT_CLOUD_COVER),
        pressure=clamp_finite(snapshot.pressure, *PRESSURE_RANGE_HPA, DEFAULT_PRESSURE_HPA),
        solar_radiation=clamp_finite(snapshot.solar_radiation, *SOLAR_RANGE, DEFAULT_SOLAR_RADIATION),
        latitude=None if lat is None else clamp(lat, -90.0, 90.0),
        longitude=None if lon is None else clamp(lon, -180.0, 180.0),
    )
    if cleaned != snapshot:
        _LOGGER.debug("Snapshot sanitised: %s", cleaned)
    return cleaned
