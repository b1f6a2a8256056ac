"""
Coach-style advice built from a score breakdown.

The composer reads the legacy factor breakdown (which factors hurt the
score most), the hour's weather and the runner's boldness, and returns an
ordered list of tips plus a pace adjustment. Road-surface hazards and a
short weather-trend line are derived here as well; the latter feeds the
structured summary handed to an external text generator.
"""

import logging
from typing import Any, Sequence

from .gear import gear_label
from .models import (
    Advisory,
    OutfitRecommendation,
    RoadConditions,
    RoadWarning,
    RunType,
    ScoreBreakdown,
    SolarState,
    ThermalIndex,
    UnitMode,
    WeatherSnapshot,
)
from .psychro import dew_point
from .units import delta_to_display, to_display

_LOGGER = logging.getLogger(__name__)

BOLDNESS_STEP = 7  # score points per boldness notch
LOOKAHEAD_HOURS = 2

SEVERITY_RANK = {"safe": 0, "caution": 1, "warning": 2, "danger": 3}


# =============================================================================
# Road conditions
# =============================================================================

ROAD_WARNINGS = {
    "ice_danger": RoadWarning(
        "ice", "danger", "Black ice likely on roads and sidewalks",
        "Avoid running outdoors. The treadmill is the safe choice. If you must run outside, "
        "stick to well-salted main roads, wear shoes with aggressive tread and shorten your stride."),
    "ice_warning": RoadWarning(
        "ice", "warning", "Potential for icy patches in shaded areas",
        "Take bridges, overpasses and shaded sections carefully and test your footing before "
        "picking up speed. An afternoon run may be safer once temperatures rise."),
    "wet_warning": RoadWarning(
        "wet", "warning", "Slippery roads and reduced visibility",
        "Avoid painted road markings, manhole covers and metal grates, which are very slick "
        "when wet. Shorten your stride, raise cadence and wear bright, reflective gear."),
    "wet_caution": RoadWarning(
        "wet", "caution", "Wet road surfaces possible",
        "Puddles can hide potholes and wet leaves are slippery. Cross driveways carefully "
        "where oil and water mix."),
    "visibility": RoadWarning(
        "visibility", "caution", "Reduced visibility for drivers",
        "Wear bright or reflective clothing even in daylight, make eye contact with drivers "
        "at intersections and never assume you have been seen."),
    "heat": RoadWarning(
        "heat", "caution", "Hot pavement can reach 140-160°F",
        "Prefer light concrete or grass and dirt paths over dark asphalt. Surfaces peak in the "
        "mid-afternoon, so run early or late."),
}


def calculate_road_conditions(temp_f: float, apparent_f: float, precip_probability: float,
                              precip: float, cloud_cover: float) -> RoadConditions:
    """
    Surface hazards for the hour.

    Args:
        temp_f: Air temperature [°F]; decides whether water can freeze
        apparent_f: Feels-like temperature [°F]; decides hot pavement
        precip_probability: Chance of precipitation [%]
        precip: Precipitation amount [in]
        cloud_cover: Cloud cover [%]

    Returns:
        RoadConditions with the worst warning level as severity
    """
    keys = []
    if temp_f <= 32 and (precip_probability > 20 or precip > 0):
        keys.append("ice_danger")
    elif 32 < temp_f <= 35 and precip_probability > 40:
        keys.append("ice_warning")

    if precip_probability > 70 or precip > 0.2:
        keys.append("wet_warning")
    elif precip_probability > 40 or precip > 0.05:
        keys.append("wet_caution")

    if cloud_cover > 85 and (precip_probability > 50 or precip > 0.1):
        keys.append("visibility")

    if apparent_f >= 85:
        keys.append("heat")

    warnings = tuple(ROAD_WARNINGS[k] for k in keys)
    severity = "safe"
    for warning in warnings:
        if SEVERITY_RANK[warning.level] > SEVERITY_RANK[severity]:
            severity = warning.level
    _LOGGER.debug("Road conditions %s: %s", severity, keys)
    return RoadConditions(severity=severity, warnings=warnings)


# =============================================================================
# Tier text
# =============================================================================

def _weather_context(top_key: str, apparent: float) -> str:
    if top_key == "temperature":
        return "warmth" if apparent > 60 else "cold"
    if top_key in ("humidity", "wind"):
        return top_key
    return "conditions"


def _weather_reason(top_key: str, apparent: float) -> str:
    if top_key == "temperature" and apparent > 70:
        return "heat"
    if top_key == "temperature" and apparent < 40:
        return "cold"
    return {
        "humidity": "humidity making it hard to cool down",
        "wind": "strong winds",
        "heatSynergy": "heat and humidity combo",
        "coldSynergy": "wind chill",
    }.get(top_key, "weather")


def _poor_factor(key: str, apparent: float) -> str | None:
    if key == "temperature" and apparent > 75:
        return "heat"
    if key == "temperature" and apparent < 35:
        return "cold"
    return {
        "humidity": "oppressive humidity",
        "wind": "high winds",
        "precip": "rain/precipitation",
        "heatSynergy": "dangerous heat index",
        "coldSynergy": "severe wind chill",
        "coldHands": "cold hands",
    }.get(key)


def _critical_factor(key: str, apparent: float) -> str | None:
    if key == "temperature" and apparent > 85:
        return "extreme heat"
    if key == "temperature" and apparent < 20:
        return "extreme cold"
    if key == "heatSynergy":
        return "heat illness risk"
    if key == "coldSynergy":
        return "frostbite risk"
    if key in ("precip", "iceDanger") and apparent <= 34:
        return "ice danger"
    if key == "wind" and apparent < 35:
        return "dangerous wind chill"
    return None


def tier_tip(adjusted_score: float, top_keys: Sequence[str], apparent: float,
             run_type: RunType) -> str:
    """Headline tip for the boldness-adjusted score."""
    workout = run_type is RunType.WORKOUT
    long_run = run_type is RunType.LONG_RUN
    top = top_keys[0] if top_keys else "conditions"

    if adjusted_score >= 85:
        if workout:
            return "Great day for a hard workout! Conditions are dialed in."
        if long_run:
            return "Beautiful day for miles. Enjoy it out there."
        return "Perfect running weather. Get after it!"

    if adjusted_score >= 70:
        context = _weather_context(top, apparent)
        if workout:
            return f"Solid conditions for speed work. The {context} will make it feel a bit harder, but nothing major."
        if long_run:
            return f"Good day for your long run. The {context} will add some resistance, but you'll be fine."
        return (f"Nice day for a run. The {context} might slow you down slightly, so run by feel "
                "rather than chasing the watch.")

    if adjusted_score >= 55:
        reason = _weather_reason(top, apparent)
        if workout:
            return (f"Tough day for intervals with the {reason}. Shorten the reps or convert to a tempo "
                    "if you're not feeling it. No shame in being smart.")
        if long_run:
            return (f"The {reason} is going to make this a grind. Maybe trim a couple miles or slow down "
                    "30s/mile. Save the suffer-fest for race day.")
        return (f"The {reason} will make your run feel harder than it should. Let the pace drift and "
                "focus on time on feet instead.")

    if adjusted_score >= 40:
        factors = [f for f in (_poor_factor(k, apparent) for k in top_keys[:2]) if f]
        listed = " and ".join(factors[:2]) if factors else "conditions"
        if workout:
            return (f"This is not the day for speed work with {listed}. Either bail to the treadmill "
                    "or just run easy. The workout can wait.")
        if long_run:
            return (f"Rough conditions for a long run with {listed}. Cut it by 30%, stay on short loops "
                    "near home and bring your phone so you're close to shelter if things deteriorate.")
        return (f"The {listed} make it tough out there. Shorten it up today and stay on loops close "
                "to home so you can bail quickly.")

    factors = [f for f in (_critical_factor(k, apparent) for k in top_keys[:2]) if f]
    danger = f"with {' and '.join(factors)}" if factors else "in these conditions"
    return (f"Seriously, hit the treadmill today {danger}. If you absolutely have to go outside, "
            "tell someone your route and expected finish time, carry your phone, and run short "
            "loops near shelter.")


def pace_adjustment(adjusted_score: float, run_type: RunType, boldness: int) -> str:
    workout = run_type is RunType.WORKOUT
    bold = boldness >= 1
    if adjusted_score >= 85:
        return ("Hit your target paces. You've got this." if workout
                else "Run your normal pace. Nothing's holding you back today.")
    if adjusted_score >= 70:
        return ("Add 5-15 seconds per mile to your interval paces. Respect the conditions, still get the work done."
                if workout else
                "Slow down 10-20 seconds per mile from your usual easy pace. It'll feel right.")
    if adjusted_score >= 55:
        return ("Tack on 15-30 seconds per mile to your workout paces, or just cut the volume by 20%. "
                "Quality over ego today." if workout else
                "Expect to slow down 25-40 seconds per mile. The effort's what counts, not the numbers.")
    if adjusted_score >= 40:
        if workout:
            return ("Add 30-50 seconds per mile or seriously cut the reps. This isn't your day for a breakthrough."
                    if bold else
                    "Add 30-50 seconds per mile or just convert to an easy run. Better yet, hit the "
                    "treadmill and actually get the workout done right.")
        return ("Slow down 45-75 seconds per mile. It's survival mode out there." if bold else
                "Slow down 45-75 seconds per mile, or just cut the distance by 30%. Don't be a hero.")
    return ("Conditions are brutal. Manage expectations heavily or move indoors." if bold else
            "Seriously, just hop on the treadmill. There's no point suffering through this for a junk run.")


# =============================================================================
# Composer
# =============================================================================

def temperature_drift(snapshot: WeatherSnapshot, upcoming: Sequence[WeatherSnapshot]) -> float:
    """Largest signed apparent-temperature change over the next hours [°F]."""
    drift = 0.0
    for future in list(upcoming)[:LOOKAHEAD_HOURS]:
        change = future.apparent_temp - snapshot.apparent_temp
        if abs(change) > abs(drift):
            drift = change
    return drift


def _will_rain(snapshot: WeatherSnapshot, upcoming: Sequence[WeatherSnapshot]) -> bool:
    if snapshot.precip_probability > 40 or snapshot.precip_rate > 0.02:
        return True
    return any(f.precip_rate > 0.02 for f in list(upcoming)[:LOOKAHEAD_HOURS])


def _penalty(breakdown: ScoreBreakdown, key: str) -> float:
    factor = breakdown.factor(key)
    return factor.penalty if factor else 0.0


def _compound_tips(snapshot: WeatherSnapshot, dp: float, breakdown: ScoreBreakdown,
                   boldness: int) -> list[str]:
    apparent = snapshot.apparent_temp
    tips = []
    if apparent >= 75 and dp >= 70:
        if boldness <= 0:
            tips.append("Heat + humidity stops sweat from cooling you, so core temperature climbs fast. "
                        "Run early morning only, take walk breaks every 10 minutes and pour water on your "
                        "head and neck. If you stop sweating or feel confused, stop immediately.")
        else:
            tips.append("Heat stress is real today. Early morning, walk breaks, aggressive hydration. "
                        "Know the signs of heat illness.")

    if apparent <= 32 and snapshot.wind_speed >= 15:
        if boldness <= 0:
            tips.append("Wind chill strips heat from exposed skin and frostbite can set in within 30 minutes "
                        "on fingers, ears and face. Cover every inch of skin, put a windproof shell over "
                        "insulation and run short loops close to shelter.")
        else:
            tips.append("Frostbite risk is real. Cover exposed skin, windproof up, and stay on short loops.")

    if apparent <= 34 and (snapshot.precip_probability >= 30 or _penalty(breakdown, "precip") > 5):
        if boldness <= 1:
            tips.append("Ice or freezing rain creates slick surfaces where one wrong step means a hard fall "
                        "(and potential injury). Traction devices (like Yaktrax) help, but treadmill is the "
                        "smart call today.")
        else:
            tips.append("Icy out there. Traction devices or treadmill.")
    return tips


def _long_run_tips(snapshot: WeatherSnapshot, dp: float, breakdown: ScoreBreakdown,
                   adjusted_score: float, boldness: int, drift: float, will_rain: bool) -> list[str]:
    apparent = snapshot.apparent_temp
    cloud = snapshot.cloud_cover
    tips = []

    if apparent >= 70 and cloud < 50 and boldness <= 0:
        tips.append("Plan your route through shade: parks with tree cover, the north sides of buildings. "
                    "Full sun can make it feel 10-15°F hotter than the air temperature.")
    elif apparent >= 75 and cloud < 50 and boldness > 0:
        tips.append("Route through shade when possible. Full sun adds major radiant heat.")

    size = round(abs(drift))
    if abs(drift) > 12 and boldness <= 0:
        if drift > 0:
            tips.append(f"Temperature's going to climb {size}°F during your run. Start with layers you can "
                        "peel off and tie around your waist as you heat up.")
        else:
            tips.append(f"Temperature's going to drop {size}°F during your run. Carry a lightweight shell "
                        "or stash an extra layer at the finish.")
    elif abs(drift) > 15 and boldness > 0:
        tips.append(f"Expect a {size}°F temp {'rise' if drift > 0 else 'drop'}. Layer smart.")

    precip = _penalty(breakdown, "precip")
    if (will_rain or (snapshot.precip_probability >= 60 and precip > 10)) and boldness <= 0:
        tips.append("Rain's coming during your run. Bring a shell and a cap, put anti-chafe on your feet "
                    "to prevent blisters, and change your shoes the second you finish.")
    elif (will_rain or (snapshot.precip_probability >= 70 and precip > 10)) and boldness > 0:
        tips.append("Rain incoming. Shell, cap, done.")

    hot_or_humid = apparent >= 75 or dp >= 65
    if adjusted_score < 60 and hot_or_humid and boldness <= 0:
        tips.append("You'll need water out there. Carry a bottle or plan stops every 3-4 miles and drink "
                    "every 15-20 minutes, not just when you're thirsty.")
    elif adjusted_score < 50 and hot_or_humid and boldness > 0:
        tips.append("Plan water stops or carry fluids.")
    return tips


def _extreme_tips(snapshot: WeatherSnapshot, top_keys: Sequence[str], boldness: int) -> list[str]:
    apparent = snapshot.apparent_temp
    wind = snapshot.wind_speed
    sunny = snapshot.cloud_cover < 50
    tips = []

    if "temperature" in top_keys:
        if apparent >= 85:
            if boldness <= 0:
                shade = (" Seek heavily shaded routes; trees and buildings cut radiant heat a lot." if sunny
                         else " Even with cloud cover, heat stress is severe.")
                tips.append("Extreme heat warning. Pre-cool with a cold shower, pour water on your head and "
                            "neck every 10 minutes and run short loops. If you feel confused or stop "
                            "sweating, stop running immediately." + shade)
            else:
                tips.append("Extreme heat. Pre-cool, frequent water on head/neck, watch for heat illness."
                            + (" Full sun = seek shade." if sunny else ""))
        if apparent <= 10:
            if boldness <= 0:
                tips.append("Extreme cold means business. Warm up indoors first, cover all skin including a "
                            "balaclava for your face, and run short loops near shelter.")
            else:
                tips.append("Extreme cold. Cover everything, warm up indoors first.")

    if "wind" in top_keys or "coldSynergy" in top_keys:
        very_windy = wind >= 20
        very_cold = apparent <= 32
        if very_windy and very_cold and boldness <= 0:
            tips.append("Wind chill is dangerous today. Windproof shell over everything, cover your face and "
                        "ears, and start into the wind so you finish with it at your back.")
        elif very_windy and very_cold:
            tips.append("Wind chill warning. Windproof layers, cover face, start into wind.")
        elif very_windy and boldness <= 1:
            tips.append("Strong winds today. Start into the wind and finish with a tailwind. This is an "
                        "effort run, not a pace run.")

    if "precip" in top_keys:
        if snapshot.precip_probability >= 70 and boldness <= 0:
            tips.append("Heavy rain expected. Use a cap to keep water off your face, a good shell, and avoid "
                        "painted road markings; they're slick as ice when wet.")
        elif snapshot.precip_probability >= 80 and boldness > 0:
            tips.append("Heavy rain. Cap, shell, watch painted surfaces.")
    return tips


def _road_tips(road: RoadConditions, boldness: int) -> list[str]:
    if road.has_warnings and boldness <= 0:
        return [f"{w.message}: {w.advice}" for w in road.warnings]
    if road.severity == "danger" and boldness > 0:
        return [w.message for w in road.warnings if w.level == "danger"]
    return []


def compose_advisory(breakdown: ScoreBreakdown, snapshot: WeatherSnapshot,
                     run_type: RunType = RunType.EASY, boldness: int = 0,
                     lookahead: Sequence[WeatherSnapshot] = ()) -> Advisory:
    """
    Build the coaching tips and pace advice for an hour.

    Args:
        breakdown: Factor breakdown of the hour (legacy model)
        snapshot: Weather for the hour
        run_type: easy, workout or longRun
        boldness: -2 (cautious) .. +2 (bold); shifts the tier ladder by 7
                  points per notch and trims warnings for bold runners
        lookahead: Following hours, used by long runs

    Returns:
        Advisory with ordered tips, a pace adjustment and road conditions
    """
    apparent = snapshot.apparent_temp
    adjusted_score = breakdown.score + BOLDNESS_STEP * boldness
    top_keys = [f.key for f in breakdown.factors[:2]]
    dp = dew_point(snapshot.air_temp, snapshot.humidity)
    road = calculate_road_conditions(snapshot.air_temp, apparent, snapshot.precip_probability,
                                     snapshot.precip_rate, snapshot.cloud_cover)

    tips = [tier_tip(adjusted_score, top_keys, apparent, run_type)]
    tips.extend(_compound_tips(snapshot, dp, breakdown, boldness))
    if run_type is RunType.LONG_RUN:
        tips.extend(_long_run_tips(snapshot, dp, breakdown, adjusted_score, boldness,
                                   temperature_drift(snapshot, lookahead),
                                   _will_rain(snapshot, lookahead)))
    tips.extend(_extreme_tips(snapshot, top_keys, boldness))
    tips.extend(_road_tips(road, boldness))

    return Advisory(
        tips=tuple(tips),
        pace_adjustment=pace_adjustment(adjusted_score, run_type, boldness),
        road_conditions=road,
    )


# =============================================================================
# Trend and prompt summary
# =============================================================================

def analyze_weather_trend(current: WeatherSnapshot, upcoming: Sequence[WeatherSnapshot],
                          run_type: RunType = RunType.EASY,
                          unit: UnitMode = UnitMode.FAHRENHEIT) -> str:
    """One-line description of how the next hour(s) differ from now."""
    if run_type is RunType.LONG_RUN:
        window, horizon = list(upcoming)[:3], "over the next ~3 hours"
    else:
        window, horizon = list(upcoming)[:1], "in the next hour"

    if not window:
        return "No forecast data available to analyze trends."

    avg_temp = sum(h.air_temp for h in window) / len(window)
    avg_wind = sum(h.wind_speed for h in window) / len(window)
    max_prob = max(h.precip_probability for h in window)
    temp_change = avg_temp - current.air_temp

    changes = []
    if abs(temp_change) > 5:
        shown = round(delta_to_display(temp_change, unit))
        changes.append(f"{'+' if shown > 0 else ''}{shown}°")
    if max_prob > 60 and current.precip_probability < 30:
        changes.append("rain likely")
    if avg_wind > current.wind_speed + 6:
        changes.append(f"wind rising to {round(avg_wind)} mph")

    if not changes:
        return f"Stable conditions {horizon}."
    return f"{', '.join(changes)} {horizon}."


def build_prompt_summary(snapshot: WeatherSnapshot, breakdown: ScoreBreakdown,
                         outfit: OutfitRecommendation, run_type: RunType = RunType.EASY,
                         thermal: ThermalIndex | None = None, solar: SolarState | None = None,
                         upcoming: Sequence[WeatherSnapshot] = (),
                         unit: UnitMode = UnitMode.FAHRENHEIT) -> dict[str, Any]:
    """Structured facts for an external text generator. No prose, no I/O."""
    def temp(value: float) -> float:
        return round(to_display(value, unit), 1)

    summary: dict[str, Any] = {
        "unit": unit.value,
        "run_type": run_type.value,
        "weather": {
            "air_temp": temp(snapshot.air_temp),
            "apparent_temp": temp(snapshot.apparent_temp),
            "dew_point": temp(dew_point(snapshot.air_temp, snapshot.humidity)),
            "humidity": round(snapshot.humidity),
            "wind_mph": round(snapshot.wind_speed, 1),
            "cloud_cover": round(snapshot.cloud_cover),
            "precip_probability": round(snapshot.precip_probability),
            "precip_in": round(snapshot.precip_rate, 2),
            "uv_index": round(snapshot.uv_index, 1),
            "solar_radiation": round(snapshot.solar_radiation),
        },
        "score": breakdown.score,
        "score_label": breakdown.label,
        "dominant_factors": list(breakdown.dominant_factors),
        "gear": {
            "performance": [{"key": g.key, "label": g.label} for g in outfit.performance_set],
            "comfort": [{"key": g.key, "label": gear_label(g.key)} for g in outfit.comfort_set],
        },
        "trend": analyze_weather_trend(snapshot, upcoming, run_type, unit),
    }
    if thermal is not None:
        summary["utci"] = temp(thermal.utci)
        summary["utci_category"] = thermal.category.label
    if solar is not None:
        summary["solar"] = {
            "status": "Above Horizon" if solar.sun_is_up else "Below Horizon",
            "elevation": round(solar.elevation_deg, 1),
        }
    return summary
