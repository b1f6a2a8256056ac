"""
Data model for the running-weather engine.

Every entity is an immutable derivation of a WeatherSnapshot plus the
runner's personalization. Nothing here carries identity or is cached.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class UnitMode(Enum):
    """Temperature unit used by the caller."""
    FAHRENHEIT = "F"
    CELSIUS = "C"


class RunType(Enum):
    EASY = "easy"
    WORKOUT = "workout"
    LONG_RUN = "longRun"


class Gender(Enum):
    FEMALE = "Female"
    MALE = "Male"


class Severity(Enum):
    """Severity tag attached to a score factor."""
    NONE = "none"
    LOW = "low"
    MED = "med"
    HIGH = "high"


class PrecipIntensity(Enum):
    NONE = "none"
    LIGHT = "light"        # < 0.1 in/h
    MODERATE = "moderate"  # < 0.3 in/h
    HEAVY = "heavy"


class ScoreModel(Enum):
    UTCI = "utci"
    LEGACY = "legacy"


# Standard sea-level pressure [hPa], substituted when a provider omits it
DEFAULT_PRESSURE_HPA = 1013.25
DEFAULT_SOLAR_RADIATION = 0.0
DEFAULT_CLOUD_COVER = 50.0
DEFAULT_HUMIDITY = 50.0
# ISA sea-level temperature [°F], substituted for a non-numeric air temperature
DEFAULT_AIR_TEMP = 59.0


@dataclass(frozen=True)
class WeatherSnapshot:
    """One hour of observed or forecast weather, in imperial units."""
    air_temp: float                        # °F
    apparent_temp: float                   # °F, provider feels-like
    humidity: float = DEFAULT_HUMIDITY     # %, 0-100
    wind_speed: float = 0.0                # mph
    precip_probability: float = 0.0        # %, 0-100
    precip_rate: float = 0.0               # in/h
    uv_index: float = 0.0
    cloud_cover: float = DEFAULT_CLOUD_COVER  # %, 0-100
    pressure: float = DEFAULT_PRESSURE_HPA    # hPa
    solar_radiation: float = DEFAULT_SOLAR_RADIATION  # W/m²
    is_daylight: bool = True
    timestamp: datetime | None = None      # timezone-aware
    latitude: float | None = None
    longitude: float | None = None
    timezone: str = "UTC"


@dataclass(frozen=True)
class Personalization:
    gender: Gender = Gender.FEMALE
    cold_hands: bool = False
    temperature_sensitivity: int = 0  # -2 (runs cold) .. +2 (runs hot)
    runner_boldness: int = 0          # -2 (cautious) .. +2 (bold)
    run_type: RunType = RunType.EASY


@dataclass(frozen=True)
class SolarState:
    elevation_deg: float
    sunrise: list[datetime] = field(default_factory=list)
    sunset: list[datetime] = field(default_factory=list)
    civil_dawn: list[datetime] = field(default_factory=list)
    civil_dusk: list[datetime] = field(default_factory=list)
    moon_altitude: float | None = None
    moon_azimuth: float | None = None
    moon_illumination: float | None = None
    moon_phase_name: str | None = None
    moon_direction: str | None = None

    @property
    def sun_is_up(self) -> bool:
        return self.elevation_deg > -0.833


@dataclass(frozen=True)
class RadiantState:
    mrt: float          # °F
    enhancement: float  # mrt - air temperature [°F]
    components: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class StressCategory:
    key: str
    label: str
    description: str
    impact: str


@dataclass(frozen=True)
class ThermalIndex:
    utci: float         # °F, including rain adjustment
    utci_dry: float     # °F, polynomial only
    rain_adjustment: float
    precip_intensity: PrecipIntensity
    category: StressCategory
    inputs: dict[str, float] = field(default_factory=dict)
    fallback: bool = False


@dataclass(frozen=True)
class ScoreFactor:
    key: str
    label: str
    penalty: float
    severity: Severity
    share: float


@dataclass(frozen=True)
class ScoreBreakdown:
    score: int
    label: str
    model: ScoreModel
    factors: tuple[ScoreFactor, ...] = ()
    dominant_factors: tuple[str, ...] = ()
    details: dict[str, Any] = field(default_factory=dict)

    def factor(self, key: str) -> ScoreFactor | None:
        """Look up a factor by key."""
        for f in self.factors:
            if f.key == key:
                return f
        return None


@dataclass(frozen=True)
class GearItem:
    key: str
    label: str
    category: str
    cold_hands: bool = False       # added because of the cold-hands preference
    effort_specific: bool = False  # in this effort's base layers only


@dataclass(frozen=True)
class OutfitRecommendation:
    performance_set: tuple[GearItem, ...]
    comfort_set: tuple[GearItem, ...]
    hand_protection_level: int
    sock_level: str
    effective_temp: float
    adjusted_temp: float

    @property
    def performance_keys(self) -> list[str]:
        return [g.key for g in self.performance_set]

    @property
    def comfort_keys(self) -> list[str]:
        return [g.key for g in self.comfort_set]


@dataclass(frozen=True)
class RoadWarning:
    kind: str     # ice, wet, visibility, heat
    level: str    # caution, warning, danger
    message: str
    advice: str


@dataclass(frozen=True)
class RoadConditions:
    severity: str = "safe"
    warnings: tuple[RoadWarning, ...] = ()

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


@dataclass(frozen=True)
class Advisory:
    tips: tuple[str, ...]
    pace_adjustment: str
    road_conditions: RoadConditions = field(default_factory=RoadConditions)
