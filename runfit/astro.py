"""
Astronomical primitives: sun events, solar elevation and lunar position.

Closed-form, low-precision ephemerides that are good to roughly a minute
for sun events and a degree for the moon, which is plenty for deciding
whether a runner needs a headlamp.

References:
- Meeus, J. (1998): Astronomical Algorithms, 2nd ed., ch. 7, 25, 28
- NOAA Solar Calculator (equation of time, refraction-corrected horizon)
- Schlyter, P.: How to compute planetary positions (lunar elements)
"""

from datetime import date, datetime, timedelta
import logging
import math

import pytz

_LOGGER = logging.getLogger(__name__)

J2000 = 2451545.0
SYNODIC_MONTH = 29.53058867  # days
KNOWN_NEW_MOON_JD = 2451549.5  # 2000-01-06

SUNRISE_ALTITUDE = -0.833  # refraction + solar semi-diameter
CIVIL_TWILIGHT_ALTITUDE = -6.0
ECCENTRICITY = 0.016708634

EVENT_NAMES = ("sunrise", "sunset", "civil_dawn", "civil_dusk")

# (event name, altitude, rising?)
EVENTS = [
    ("sunrise", SUNRISE_ALTITUDE, True),
    ("sunset", SUNRISE_ALTITUDE, False),
    ("civil_dawn", CIVIL_TWILIGHT_ALTITUDE, True),
    ("civil_dusk", CIVIL_TWILIGHT_ALTITUDE, False),
]

COMPASS_POINTS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]

# (upper bound of phase fraction, name); New Moon wraps around 0/1
MOON_PHASES = [
    (0.0625, "New Moon"),
    (0.1875, "Waxing Crescent"),
    (0.3125, "First Quarter"),
    (0.4375, "Waxing Gibbous"),
    (0.5625, "Full Moon"),
    (0.6875, "Waning Gibbous"),
    (0.8125, "Last Quarter"),
    (0.9375, "Waning Crescent"),
]


def _wrap360(x: float) -> float:
    return x % 360.0


def _valid_location(lat, lon) -> bool:
    if lat is None or lon is None:
        return False
    try:
        lat, lon = float(lat), float(lon)
    except (TypeError, ValueError):
        return False
    return math.isfinite(lat) and math.isfinite(lon) and -90 <= lat <= 90 and -180 <= lon <= 180


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return pytz.utc.localize(ts)
    return ts.astimezone(pytz.utc)


def resolve_timezone(tz: str | None):
    """IANA zone for a name; unknown names fall back to UTC."""
    try:
        return pytz.timezone(tz or "UTC")
    except pytz.UnknownTimeZoneError:
        _LOGGER.warning("Unknown timezone %r, using UTC", tz)
        return pytz.utc


# =============================================================================
# Solar ephemeris
# =============================================================================

def julian_day(year: int, month: int, day: int) -> float:
    """Julian day at 0h UT of a Gregorian calendar date."""
    if month <= 2:
        year -= 1
        month += 12
    a = year // 100
    b = 2 - a + a // 4
    return math.floor(365.25 * (year + 4716)) + math.floor(30.6001 * (month + 1)) + day + b - 1524.5


def sun_geometry(t: float) -> tuple[float, float]:
    """
    Solar declination and equation of time.

    Args:
        t: Julian centuries since J2000.0

    Returns:
        Tuple of (declination [deg], equation of time [min])
    """
    m = _wrap360(357.52911 + t * (35999.05029 - 0.0001537 * t))
    m_rad = math.radians(m)
    c = ((1.914602 - t * (0.004817 + 0.000014 * t)) * math.sin(m_rad)
         + (0.019993 - 0.000101 * t) * math.sin(2 * m_rad)
         + 0.000289 * math.sin(3 * m_rad))
    l0 = _wrap360(280.46646 + t * (36000.76983 + 0.0003032 * t))
    true_lon = _wrap360(l0 + c)
    omega = math.radians(125.04 - 1934.136 * t)
    apparent_lon = math.radians(true_lon - 0.00569 - 0.00478 * math.sin(omega))

    u = t / 100
    eps0 = 23 + (26 + (21.448 - u * (46.815 + u * (0.00059 - 0.001813 * u))) / 60) / 60
    eps = math.radians(eps0 + 0.00256 * math.cos(omega))

    declination = math.degrees(math.asin(math.sin(eps) * math.sin(apparent_lon)))

    y = math.tan(eps / 2) ** 2
    l0_rad = math.radians(l0)
    e = ECCENTRICITY
    eot = 4 * math.degrees(
        y * math.sin(2 * l0_rad)
        - 2 * e * math.sin(m_rad)
        + 4 * e * y * math.sin(m_rad) * math.cos(2 * l0_rad)
        - 0.5 * y * y * math.sin(4 * l0_rad)
        - 1.25 * e * e * math.sin(2 * m_rad)
    )
    return declination, eot


def hour_angle(lat: float, declination: float, altitude: float) -> float | None:
    """
    Hour angle [deg] at which the sun crosses ``altitude``.

    Returns None when the sun never crosses it that day (polar day or
    polar night).
    """
    lat_rad = math.radians(lat)
    dec_rad = math.radians(declination)
    denom = math.cos(lat_rad) * math.cos(dec_rad)
    if denom == 0:
        return None
    cos_h = (math.sin(math.radians(altitude)) - math.sin(lat_rad) * math.sin(dec_rad)) / denom
    if cos_h < -1 or cos_h > 1:
        return None
    return math.degrees(math.acos(cos_h))


def _event_time(day: date, lat: float, lon: float, altitude: float, rising: bool) -> datetime | None:
    jd = julian_day(day.year, day.month, day.day)
    declination, eot = sun_geometry((jd - J2000) / 36525.0)
    angle = hour_angle(lat, declination, altitude)
    if angle is None:
        return None
    midnight = pytz.utc.localize(datetime(day.year, day.month, day.day))
    noon = midnight + timedelta(minutes=720 - 4 * lon - eot)
    offset = timedelta(hours=angle / 15)
    return noon - offset if rising else noon + offset


def compute_sun_events(ts: datetime, lat: float, lon: float,
                       tz: str | None = "UTC") -> dict[str, list[datetime]]:
    """
    Sunrise, sunset and civil twilight instants for today and tomorrow.

    "Today" is the calendar date of ``ts`` in ``tz``. Each list holds UTC
    datetimes in ascending order. A day on which the sun never crosses the
    event altitude contributes nothing, so lists may hold 0, 1 or 2 entries.

    Args:
        ts: Reference instant
        lat: Latitude [deg], north positive
        lon: Longitude [deg], east positive
        tz: IANA timezone name that defines the local calendar date

    Returns:
        Dict with keys sunrise, sunset, civil_dawn, civil_dusk
    """
    events: dict[str, list[datetime]] = {name: [] for name in EVENT_NAMES}
    if not _valid_location(lat, lon):
        _LOGGER.debug("No sun events for invalid location (%s, %s)", lat, lon)
        return events

    zone = resolve_timezone(tz)
    ts = _as_utc(ts)
    for offset in (0, 1):
        local_day = (ts + timedelta(days=offset)).astimezone(zone).date()
        for name, altitude, rising in EVENTS:
            instant = _event_time(local_day, float(lat), float(lon), altitude, rising)
            if instant is not None:
                events[name].append(instant)

    for times in events.values():
        times.sort()
    return events


def next_event_after(times: list[datetime], now: datetime) -> datetime | None:
    """First instant in ``times`` strictly after ``now``."""
    now = _as_utc(now)
    for t in times:
        if t > now:
            return t
    return None


def calculate_solar_elevation(ts: datetime, lat: float, lon: float) -> float | None:
    """Instantaneous solar altitude [deg] (None for an invalid location)."""
    if not _valid_location(lat, lon):
        return None
    ts = _as_utc(ts)
    jd = julian_day(ts.year, ts.month, ts.day)
    declination, eot = sun_geometry((jd - J2000) / 36525.0)

    utc_hours = ts.hour + ts.minute / 60 + ts.second / 3600
    solar_time = utc_hours + float(lon) / 15.0 + eot / 60.0
    ha = math.radians((solar_time - 12.0) * 15.0)

    lat_rad = math.radians(float(lat))
    dec_rad = math.radians(declination)
    sin_elev = (math.sin(lat_rad) * math.sin(dec_rad)
                + math.cos(lat_rad) * math.cos(dec_rad) * math.cos(ha))
    return math.degrees(math.asin(max(-1.0, min(1.0, sin_elev))))


def solar_status(elevation: float | None) -> str:
    """Above Horizon, Civil Twilight or Night."""
    if elevation is None:
        return "Unknown"
    if elevation > SUNRISE_ALTITUDE:
        return "Above Horizon"
    if elevation > CIVIL_TWILIGHT_ALTITUDE:
        return "Civil Twilight"
    return "Night"


# =============================================================================
# Moon
# =============================================================================

def cardinal_direction(azimuth: float) -> str:
    return COMPASS_POINTS[round(azimuth / 45) % 8]


def calculate_moon_position(ts: datetime, lat: float, lon: float) -> dict | None:
    """
    Topocentric-ish lunar altitude and azimuth from simplified elements.

    Returns:
        Dict with altitude [deg], azimuth [deg from north], is_visible and
        direction, or None for an invalid location.
    """
    if not _valid_location(lat, lon):
        return None
    ts = _as_utc(ts)
    jd = julian_day(ts.year, ts.month, ts.day)
    d = jd + (ts.hour / 24 + ts.minute / 1440 + ts.second / 86400) - J2000

    mean_lon = _wrap360(218.316 + 13.176396 * d)
    anomaly = math.radians(_wrap360(134.963 + 13.064993 * d))
    arg_lat = math.radians(_wrap360(93.272 + 13.229350 * d))
    elongation = math.radians(_wrap360(297.850 + 12.190749 * d))

    ecl_lon = math.radians(_wrap360(
        mean_lon
        + 6.289 * math.sin(anomaly)
        + 1.274 * math.sin(2 * elongation - anomaly)
        + 0.658 * math.sin(2 * elongation)
        + 0.214 * math.sin(2 * anomaly)
    ))
    ecl_lat = math.radians(
        5.128 * math.sin(arg_lat)
        + 0.280 * math.sin(anomaly + arg_lat)
        + 0.277 * math.sin(anomaly - arg_lat)
    )
    obliq = math.radians(23.439 - 0.0000004 * d)

    ra = math.atan2(math.sin(ecl_lon) * math.cos(obliq) - math.tan(ecl_lat) * math.sin(obliq),
                    math.cos(ecl_lon))
    dec = math.asin(math.sin(ecl_lat) * math.cos(obliq)
                    + math.cos(ecl_lat) * math.sin(obliq) * math.sin(ecl_lon))

    lst = _wrap360(280.46061837 + 360.98564736629 * d + float(lon))
    ha = math.radians(_wrap360(lst - math.degrees(ra)))
    lat_rad = math.radians(float(lat))

    sin_alt = math.sin(lat_rad) * math.sin(dec) + math.cos(lat_rad) * math.cos(dec) * math.cos(ha)
    altitude = math.degrees(math.asin(max(-1.0, min(1.0, sin_alt))))
    azimuth = _wrap360(math.degrees(math.atan2(
        math.sin(ha), math.cos(ha) * math.sin(lat_rad) - math.tan(dec) * math.cos(lat_rad))) + 180)

    return {
        "altitude": round(altitude, 1),
        "azimuth": round(azimuth, 1),
        "is_visible": altitude > SUNRISE_ALTITUDE,
        "direction": cardinal_direction(azimuth),
    }


def _civil_julian_day(day: date) -> int:
    a = (14 - day.month) // 12
    y = day.year + 4800 - a
    m = day.month + 12 * a - 3
    return day.day + (153 * m + 2) // 5 + 365 * y + y // 4 - y // 100 + y // 400 - 32045


def calculate_moon_phase(day: date) -> dict:
    """
    Lunar phase for a civil date.

    Returns:
        Dict with phase (0..1, 0 = new), illumination (0..1), name,
        days_to_full and days_to_new
    """
    days = _civil_julian_day(day) - KNOWN_NEW_MOON_JD
    phase = (days % SYNODIC_MONTH) / SYNODIC_MONTH
    illumination = (1 - math.cos(2 * math.pi * phase)) / 2

    name = "New Moon"
    for upper, label in MOON_PHASES:
        if phase < upper:
            name = label
            break

    age = phase * SYNODIC_MONTH
    half = SYNODIC_MONTH / 2
    days_to_full = half - age if age < half else SYNODIC_MONTH - age + half
    return {
        "phase": phase,
        "illumination": illumination,
        "name": name,
        "days_to_full": round(days_to_full, 1),
        "days_to_new": round(SYNODIC_MONTH - age, 1),
    }
