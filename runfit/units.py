"""
Unit conversion and numeric sanitising helpers.

All engine math runs in imperial units (°F, mph, inches). Celsius callers
are converted once at the boundary and converted back for display.
"""

import math

from .models import UnitMode

MPH_TO_MS = 0.44704


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def finite_or(value: float | None, default: float) -> float:
    """Return value as float if it is a finite number, else default."""
    if value is None:
        return default
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def clamp_finite(value: float | None, lo: float, hi: float, default: float) -> float:
    """Clamp into [lo, hi]; infinities go to the nearer edge, NaN to default."""
    if value is None or math.isnan(value):
        return default
    return clamp(value, lo, hi)


def c_to_f(c: float) -> float:
    return c * 9.0 / 5.0 + 32.0


def f_to_c(f: float) -> float:
    return (f - 32.0) * 5.0 / 9.0


def mph_to_ms(mph: float) -> float:
    return mph * MPH_TO_MS


def to_internal(temp: float, unit: UnitMode) -> float:
    """Convert a caller temperature into the engine's °F."""
    return c_to_f(temp) if unit is UnitMode.CELSIUS else temp


def to_display(temp_f: float, unit: UnitMode) -> float:
    """Convert an engine °F temperature into the caller's unit."""
    return f_to_c(temp_f) if unit is UnitMode.CELSIUS else temp_f


def delta_to_display(delta_f: float, unit: UnitMode) -> float:
    """Convert a temperature difference (not an absolute value)."""
    return delta_f * 5.0 / 9.0 if unit is UnitMode.CELSIUS else delta_f
