"""
Running conditions engine.

Wires the individual models into one assessment per hour:

    solar state -> mean radiant temperature -> UTCI -> score -> outfit -> advice

The engine is stateless apart from its validated options; every call is a
pure function of its inputs. Callers may hand in WeatherSnapshot objects or
plain provider dictionaries (validated through runfit.config).

References:
- Bröde et al. (2012): Deriving the operational procedure for the UTCI
- Meeus, J. (1998): Astronomical Algorithms
"""

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from .advisory import compose_advisory
from .astro import (
    calculate_moon_phase,
    calculate_moon_position,
    calculate_solar_elevation,
    compute_sun_events,
    resolve_timezone,
)
from .config import load_engine_options, load_personalization, load_snapshot, sanitize_snapshot
from .models import (
    Advisory,
    OutfitRecommendation,
    Personalization,
    RadiantState,
    RunType,
    ScoreBreakdown,
    ScoreModel,
    SolarState,
    ThermalIndex,
    UnitMode,
    WeatherSnapshot,
)
from .mrt import calculate_mrt
from .outfit import recommend_outfit
from .score import blend_long_run, compute_legacy_breakdown, score_from_utci
from .utci import calculate_utci

_LOGGER = logging.getLogger(__name__)

SnapshotInput = WeatherSnapshot | dict[str, Any]


@dataclass(frozen=True)
class RunAssessment:
    """Everything the engine knows about one hour."""
    snapshot: WeatherSnapshot
    score: ScoreBreakdown          # headline score
    breakdown: ScoreBreakdown      # factor breakdown (legacy model)
    outfit: OutfitRecommendation
    advisory: Advisory
    solar: SolarState | None = None
    radiant: RadiantState | None = None
    thermal: ThermalIndex | None = None


def build_solar_state(snapshot: WeatherSnapshot) -> SolarState | None:
    """Sun and moon for the snapshot's instant, or None without time and place."""
    if snapshot.timestamp is None or snapshot.latitude is None or snapshot.longitude is None:
        return None

    elevation = calculate_solar_elevation(snapshot.timestamp, snapshot.latitude, snapshot.longitude)
    if elevation is None:
        return None

    events = compute_sun_events(snapshot.timestamp, snapshot.latitude, snapshot.longitude,
                                snapshot.timezone)
    moon = calculate_moon_position(snapshot.timestamp, snapshot.latitude, snapshot.longitude) or {}
    local_date = snapshot.timestamp.astimezone(resolve_timezone(snapshot.timezone)).date()
    phase = calculate_moon_phase(local_date)
    return SolarState(
        elevation_deg=elevation,
        sunrise=events["sunrise"],
        sunset=events["sunset"],
        civil_dawn=events["civil_dawn"],
        civil_dusk=events["civil_dusk"],
        moon_altitude=moon.get("altitude"),
        moon_azimuth=moon.get("azimuth"),
        moon_direction=moon.get("direction"),
        moon_illumination=phase["illumination"],
        moon_phase_name=phase["name"],
    )


class RunConditionsEngine:
    """
    Engine for scoring running conditions and recommending gear.

    Example:
        engine = RunConditionsEngine({"unit": "C"})
        result = engine.assess({"air_temp": 8, "humidity": 70, "wind_speed": 6},
                               {"run_type": "longRun", "cold_hands": True})
        print(result.score.score, result.outfit.comfort_keys)
    """

    def __init__(self, options: dict[str, Any] | None = None):
        """
        Initialize the engine.

        Args:
            options: Mapping with optional keys severity_multiplier (default 2.0),
                     unit ("F" or "C", default "F") and headline_model
                     ("utci" or "legacy", default "utci").

        Raises:
            InvalidInputError: if the options are structurally invalid.
        """
        opts = load_engine_options(options)
        self.severity_multiplier: float = opts["severity_multiplier"]
        self.unit: UnitMode = opts["unit"]
        self.headline_model: ScoreModel = opts["headline_model"]

    def _snapshot(self, data: SnapshotInput) -> WeatherSnapshot:
        if isinstance(data, WeatherSnapshot):
            return sanitize_snapshot(data)
        return load_snapshot(data, self.unit)

    @staticmethod
    def _personalization(data: Personalization | dict[str, Any] | None) -> Personalization:
        if isinstance(data, Personalization):
            return data
        return load_personalization(data)

    def thermal_state(self, snapshot: WeatherSnapshot,
                      solar: SolarState | None = None) -> tuple[RadiantState, ThermalIndex]:
        """Mean radiant temperature and UTCI for a snapshot."""
        elevation = solar.elevation_deg if solar is not None else 0.0
        radiant = calculate_mrt(
            snapshot.air_temp,
            snapshot.humidity,
            solar_radiation=snapshot.solar_radiation,
            solar_elevation=elevation,
            cloud_cover=snapshot.cloud_cover,
            wind_mph=snapshot.wind_speed,
        )
        thermal = calculate_utci(
            snapshot.air_temp,
            snapshot.humidity,
            snapshot.wind_speed,
            mrt=radiant.mrt,
            precip_rate=snapshot.precip_rate,
        )
        return radiant, thermal

    def assess(self, snapshot: SnapshotInput,
               personalization: Personalization | dict[str, Any] | None = None,
               lookahead: Sequence[SnapshotInput] = ()) -> RunAssessment:
        """
        Full assessment of one hour.

        Args:
            snapshot: Weather for the start of the run
            personalization: Runner preferences (defaults apply when omitted)
            lookahead: Following hours; used for long-run outfit drift and advice

        Returns:
            RunAssessment with the headline score from the configured model.
            The legacy breakdown is always included for the advice.
        """
        snap = self._snapshot(snapshot)
        person = self._personalization(personalization)
        upcoming = [self._snapshot(h) for h in lookahead]

        solar = build_solar_state(snap)
        radiant, thermal = self.thermal_state(snap, solar)

        outfit = recommend_outfit(
            snap,
            run_type=person.run_type,
            gender=person.gender,
            cold_hands=person.cold_hands,
            temperature_sensitivity=person.temperature_sensitivity,
            lookahead=upcoming,
        )
        breakdown = compute_legacy_breakdown(snap, person.run_type, person.cold_hands,
                                             outfit.hand_protection_level)
        if self.headline_model is ScoreModel.UTCI:
            score = score_from_utci(thermal.utci, self.severity_multiplier)
        else:
            score = breakdown
        _LOGGER.debug("Score %s (%s), UTCI %.1f°F, MRT %.1f°F",
                      score.score, score.model.value, thermal.utci, radiant.mrt)

        advisory = compose_advisory(breakdown, snap, person.run_type,
                                    person.runner_boldness, upcoming)

        return RunAssessment(
            snapshot=snap,
            score=score,
            breakdown=breakdown,
            outfit=outfit,
            advisory=advisory,
            solar=solar,
            radiant=radiant,
            thermal=thermal,
        )

    def assess_forecast(self, hours: Sequence[SnapshotInput],
                        personalization: Personalization | dict[str, Any] | None = None
                        ) -> list[RunAssessment]:
        """
        Fast per-hour assessment of a forecast using the legacy score.

        For long runs each hour is scored on the blend of itself and the next
        three hours. Radiant and UTCI state are not computed.
        """
        person = self._personalization(personalization)
        snaps = [self._snapshot(h) for h in hours]

        results = []
        for i, snap in enumerate(snaps):
            upcoming = snaps[i + 1:]
            scored = blend_long_run(snap, upcoming) if person.run_type is RunType.LONG_RUN else snap
            outfit = recommend_outfit(
                snap,
                run_type=person.run_type,
                gender=person.gender,
                cold_hands=person.cold_hands,
                temperature_sensitivity=person.temperature_sensitivity,
                lookahead=upcoming,
            )
            breakdown = compute_legacy_breakdown(scored, person.run_type, person.cold_hands,
                                                 outfit.hand_protection_level)
            results.append(RunAssessment(
                snapshot=snap,
                score=breakdown,
                breakdown=breakdown,
                outfit=outfit,
                advisory=compose_advisory(breakdown, snap, person.run_type,
                                          person.runner_boldness, upcoming),
            ))
        _LOGGER.debug("Assessed %d forecast hours", len(results))
        return results
