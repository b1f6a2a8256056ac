"""
Outfit decision engine.

Turns one hour of weather plus the runner's preferences into two gear
lists: a performance variant (lighter, less restrictive) and a comfort
variant (warmer, more coverage).

The pipeline is an ordered list of named stages. Each stage is a plain
function that reads an OutfitContext and adds or removes keys on a
WorkingSet. Both variants start from the same shared result and then run
their own stages, a final conflict pass and the sock overwrite.
"""

from dataclasses import dataclass, field
import logging
import math
from typing import Callable, Sequence

from .gear import (
    COMFORT_ORDER,
    CONFLICT_PAIRS,
    GLOVE_KEYS,
    GLOVE_TIERS,
    PERFORMANCE_ORDER,
    SOCK_LEVELS,
    gear_item,
    hands_level_from_gear,
    sort_keys,
)
from .models import Gender, OutfitRecommendation, RunType, WeatherSnapshot
from .psychro import wind_chill

_LOGGER = logging.getLogger(__name__)

# =============================================================================
# Threshold tables
# =============================================================================

WORKOUT_WARMTH = 10.0       # °F a hard effort adds
LONG_RUN_MAX_DRIFT = 5.0    # °F cap on the long-run warm-up allowance
LOOKAHEAD_HOURS = 2
NO_GLOVES_TEMP = 60.0

# (upper bound of adjusted temperature [°F], items); sports_bra added for Female
BASE_LADDER = [
    (0.0, ["thermal_tights", "long_sleeve", "insulated_jacket", "balaclava", "beanie",
           "neck_gaiter", "mittens", "mittens_liner"]),
    (10.0, ["thermal_tights", "long_sleeve", "insulated_jacket", "balaclava",
            "neck_gaiter", "mittens", "mittens_liner"]),
    (20.0, ["thermal_tights", "long_sleeve", "insulated_jacket", "beanie",
            "neck_gaiter", "mittens"]),
    (32.0, ["thermal_tights", "long_sleeve", "vest", "beanie", "medium_gloves", "neck_gaiter"]),
    (38.0, ["tights", "long_sleeve", "vest", "headband", "light_gloves"]),
    (45.0, ["tights", "long_sleeve", "headband", "light_gloves"]),
    (52.0, ["tights", "long_sleeve", "light_gloves"]),
    (62.0, ["shorts", "short_sleeve"]),
]

# Windbreaker sweet spot on effective temperature [°F]
WINDBREAKER_BANDS = {
    RunType.WORKOUT: (35.0, 50.0),
    RunType.LONG_RUN: (38.0, 58.0),
    RunType.EASY: (40.0, 55.0),
}
BREEZY_WIND = 5.0   # mph
WINDY_WIND = 13.0   # mph

# Glove ladders; the cold-hands table replaces the normal one
GLOVE_THRESHOLDS = {
    "normal": {"light": 55, "medium": 45, "mittens": 30, "liner": 15,
               "wind_light": 8, "wind_medium": 12, "wind_mittens": 15},
    "cold_hands": {"light": 60, "medium": 42, "mittens": 30, "liner": 18,
                   "wind_light": 5, "wind_medium": 8, "wind_mittens": 12},
}


# =============================================================================
# Working state
# =============================================================================

@dataclass
class Lookahead:
    """What the next couple of hours hold, relative to now."""
    temp_rise: float = 0.0
    max_precip_probability: float = 0.0
    max_uv: float = 0.0
    will_rain: bool = False


@dataclass(frozen=True)
class OutfitContext:
    snapshot: WeatherSnapshot
    run_type: RunType
    gender: Gender
    cold_hands: bool
    effective_temp: float
    adjusted_temp: float
    lookahead: Lookahead

    @property
    def workout(self) -> bool:
        return self.run_type is RunType.WORKOUT

    @property
    def long_run(self) -> bool:
        return self.run_type is RunType.LONG_RUN

    @property
    def glove_temp(self) -> float:
        return self.adjusted_temp - 5 if self.cold_hands else self.adjusted_temp


@dataclass
class WorkingSet:
    """Gear keys plus the subset added because of the cold-hands preference."""
    items: set[str] = field(default_factory=set)
    cold_hand_tags: set[str] = field(default_factory=set)

    def __contains__(self, key: str) -> bool:
        return key in self.items

    def add(self, *keys: str) -> None:
        self.items.update(keys)

    def remove(self, *keys: str) -> None:
        for key in keys:
            self.items.discard(key)
            self.cold_hand_tags.discard(key)

    def swap(self, old: str, new: str, cold_hands: bool = False) -> None:
        """Replace ``old`` by ``new``, carrying a cold-hands tag across tiers."""
        tagged = old in self.cold_hand_tags
        self.remove(old)
        self.items.add(new)
        if tagged and cold_hands:
            self.cold_hand_tags.add(new)

    def copy(self) -> "WorkingSet":
        return WorkingSet(set(self.items), set(self.cold_hand_tags))


Stage = Callable[[WorkingSet, OutfitContext], None]


# =============================================================================
# Temperatures
# =============================================================================

def _round_half_up(x: float) -> float:
    return float(math.floor(x + 0.5))


def effective_temperature(snapshot: WeatherSnapshot, temperature_sensitivity: int = 0) -> float:
    """
    What the runner will feel, before effort.

    Starts from the apparent temperature and layers on the runner's
    sensitivity, extra wind cooling, humid heat, direct sun and wet
    clothing. Rounded to whole degrees.
    """
    apparent = snapshot.apparent_temp
    eff = apparent + temperature_sensitivity * 5

    if apparent < 50 and snapshot.wind_speed > 10:
        eff -= min((snapshot.wind_speed - 10) * 0.3, 5.0)
    if apparent > 55 and snapshot.humidity > 60:
        eff += (snapshot.humidity - 60) / 40 * 8
    if snapshot.is_daylight and snapshot.uv_index > 3 and apparent > 45:
        eff += min((snapshot.uv_index - 3) * 1.5, 6.0)
    if snapshot.precip_probability > 50 and apparent < 60:
        eff -= 3

    return _round_half_up(eff)


def summarize_lookahead(snapshot: WeatherSnapshot, upcoming: Sequence[WeatherSnapshot]) -> Lookahead:
    """Temperature rise, rain and UV over the next LOOKAHEAD_HOURS hours."""
    result = Lookahead(
        max_precip_probability=snapshot.precip_probability,
        max_uv=snapshot.uv_index,
        will_rain=snapshot.precip_probability > 40 or snapshot.precip_rate > 0.02,
    )
    for future in list(upcoming)[:LOOKAHEAD_HOURS]:
        result.temp_rise = max(result.temp_rise, future.apparent_temp - snapshot.apparent_temp)
        result.max_precip_probability = max(result.max_precip_probability, future.precip_probability)
        result.max_uv = max(result.max_uv, future.uv_index)
        if future.precip_rate > 0.02:
            result.will_rain = True
    return result


def adjusted_temperature(effective_temp: float, run_type: RunType, temp_rise: float = 0.0) -> float:
    if run_type is RunType.WORKOUT:
        return effective_temp + WORKOUT_WARMTH
    if run_type is RunType.LONG_RUN:
        return effective_temp + min(temp_rise * 0.5, LONG_RUN_MAX_DRIFT)
    return effective_temp


def base_layers_for_temp(adjusted_temp: float, gender: Gender) -> set[str]:
    """Starting layers for a temperature band."""
    base = {"sports_bra"} if gender is Gender.FEMALE else set()
    for upper, items in BASE_LADDER:
        if adjusted_temp < upper:
            base.update(items)
            return base
    if adjusted_temp < 70:
        base.add("shorts")
        base.add("tank_top" if gender is Gender.FEMALE else "short_sleeve")
    else:
        base.update(["split_shorts", "cap"])
        if gender is Gender.FEMALE:
            base.add("tank_top")
    return base


def effort_specific_keys(effective_temp: float, run_type: RunType, gender: Gender,
                         temp_rise: float = 0.0) -> set[str]:
    """
    Base-layer keys only the chosen effort calls for.

    The ladder is evaluated for the easy, workout and long-run baselines;
    anything the other two efforts would not start from is tagged.
    """
    baselines = {
        effort: base_layers_for_temp(adjusted_temperature(effective_temp, effort, temp_rise), gender)
        for effort in RunType
    }
    others = set().union(*(keys for effort, keys in baselines.items() if effort is not run_type))
    return baselines[run_type] - others


def choose_socks(snapshot: WeatherSnapshot) -> str:
    apparent = snapshot.apparent_temp
    level = "light_socks"
    if apparent <= 50:
        level = "heavy_socks"
    if (apparent <= 25
            or (apparent <= 32 and (snapshot.precip_rate > 0 or snapshot.precip_probability >= 60))
            or (apparent <= 30 and snapshot.wind_speed >= 15)):
        level = "double_socks"
    if apparent >= 70 or (apparent >= 60 and snapshot.humidity >= 75):
        level = "light_socks"
    return level


# =============================================================================
# Shared stages
# =============================================================================

def adaptive_outer_layer(ws: WorkingSet, ctx: OutfitContext) -> None:
    s = ctx.snapshot
    if ctx.effective_temp <= 35 and (s.wind_speed >= 10 or s.precip_probability > 30
                                     or s.precip_rate > 0.02):
        ws.add("light_jacket")
    if ctx.effective_temp <= 42 and s.wind_speed >= 8:
        ws.add("vest")


def rain_protection(ws: WorkingSet, ctx: OutfitContext) -> None:
    s = ctx.snapshot
    if s.precip_probability > 40 or s.precip_rate > 0.02 or (ctx.long_run and ctx.lookahead.will_rain):
        ws.add("rain_shell", "brim_cap")


def windbreaker_band(run_type: RunType, wind_mph: float) -> tuple[float, float]:
    low, high = WINDBREAKER_BANDS[run_type]
    if wind_mph >= WINDY_WIND:
        return low + 5, high + 7
    if wind_mph >= BREEZY_WIND:
        return low, high + 3
    return low, high


def wind_protection(ws: WorkingSet, ctx: OutfitContext) -> None:
    wind = ctx.snapshot.wind_speed
    if wind < BREEZY_WIND:
        return
    low, high = windbreaker_band(ctx.run_type, wind)
    eff = ctx.effective_temp
    if low <= eff <= high and "rain_shell" not in ws:
        ws.add("windbreaker")
    if (wind >= WINDY_WIND and eff < low
            and "windbreaker" not in ws and "rain_shell" not in ws):
        ws.add("vest")


def sun_protection(ws: WorkingSet, ctx: OutfitContext) -> None:
    s = ctx.snapshot
    if s.uv_index >= 7 or (ctx.long_run and ctx.lookahead.max_uv >= 6):
        if "brim_cap" not in ws:
            ws.add("cap")
        ws.add("sunglasses", "sunscreen")
        if ctx.long_run and s.apparent_temp > 55:
            ws.add("arm_sleeves")


def heat_care(ws: WorkingSet, ctx: OutfitContext) -> None:
    s = ctx.snapshot
    if s.humidity >= 75 and s.apparent_temp >= 65:
        ws.add("anti_chafe", "hydration")
    if s.apparent_temp >= 85:
        ws.add("hydration")


def headgear(ws: WorkingSet, ctx: OutfitContext) -> None:
    eff = ctx.effective_temp
    wind = ctx.snapshot.wind_speed
    chill = wind_chill(eff, wind) if eff <= 50 and wind >= 3 else eff

    if eff <= 20 and wind >= 15:
        if ctx.workout:
            ws.add("balaclava")
            ws.remove("beanie")
        else:
            ws.add("neck_gaiter")

    if eff <= 10:
        ws.add("balaclava")
        if ctx.workout:
            ws.remove("beanie")
        elif ctx.long_run:
            ws.add("neck_gaiter")

    if eff <= 0 or chill <= 0:
        ws.add("balaclava", "neck_gaiter")
        if not ctx.workout:
            ws.add("beanie")

    # Hard efforts in milder cold only need ear cover
    if ctx.workout and 20 < eff < 35 and "beanie" in ws and wind < 10:
        ws.remove("beanie")
        ws.add("headband")


def long_run_extras(ws: WorkingSet, ctx: OutfitContext) -> None:
    if not ctx.long_run:
        return
    ws.add("hydration", "anti_chafe")
    if ctx.snapshot.apparent_temp > 50:
        ws.add("energy_nutrition")
    if ctx.lookahead.temp_rise > 8:
        ws.add("arm_sleeves")
    if ctx.lookahead.max_precip_probability > 40:
        ws.add("rain_shell")


def required_glove_level(glove_temp: float, wind_mph: float, cold_hands: bool) -> str | None:
    """Glove tier for a glove temperature, or None for bare hands."""
    if glove_temp >= NO_GLOVES_TEMP:
        return None
    t = GLOVE_THRESHOLDS["cold_hands" if cold_hands else "normal"]
    if glove_temp < t["liner"]:
        return "mittens_liner"
    if glove_temp < t["mittens"] or wind_mph >= t["wind_mittens"]:
        return "mittens"
    if glove_temp < t["medium"] or wind_mph >= t["wind_medium"]:
        return "medium_gloves"
    if glove_temp < t["light"] or wind_mph >= t["wind_light"]:
        return "light_gloves"
    return None


def hand_protection(ws: WorkingSet, ctx: OutfitContext) -> None:
    level = required_glove_level(ctx.glove_temp, ctx.snapshot.wind_speed, ctx.cold_hands)
    if level is None:
        return
    ws.remove(*GLOVE_KEYS)
    keys = ["mittens", "mittens_liner"] if level == "mittens_liner" else [level]
    ws.add(*keys)
    if ctx.cold_hands:
        ws.cold_hand_tags.update(keys)


def resolve_conflicts(ws: WorkingSet, ctx: OutfitContext) -> None:
    for winner, loser in CONFLICT_PAIRS:
        if winner in ws and loser in ws:
            ws.remove(loser)


SHARED_STAGES: list[Stage] = [
    adaptive_outer_layer,
    rain_protection,
    wind_protection,
    sun_protection,
    heat_care,
    headgear,
    long_run_extras,
    hand_protection,
]


# =============================================================================
# Performance variant
# =============================================================================

def perf_outerwear(ws: WorkingSet, ctx: OutfitContext) -> None:
    eff = ctx.effective_temp
    if "insulated_jacket" in ws and (ctx.workout or eff > 15):
        ws.swap("insulated_jacket", "light_jacket")
    if "vest" in ws and "light_jacket" in ws:
        ws.remove("vest")
    if "insulated_jacket" in ws and "light_jacket" in ws:
        ws.remove("light_jacket")
    if "vest" in ws and eff >= 38 and ctx.snapshot.wind_speed < 10:
        ws.remove("vest")


def perf_gloves(ws: WorkingSet, ctx: OutfitContext) -> None:
    eff = ctx.effective_temp
    ws.remove("mittens_liner")
    if "mittens" in ws and eff > 25:
        ws.swap("mittens", "medium_gloves", ctx.cold_hands)
    if "medium_gloves" in ws and eff > 40:
        ws.swap("medium_gloves", "light_gloves", ctx.cold_hands)
    if "light_gloves" in ws and ctx.glove_temp > 50:
        ws.remove("light_gloves")


def perf_legs_and_tops(ws: WorkingSet, ctx: OutfitContext) -> None:
    eff = ctx.effective_temp
    calm = ctx.snapshot.wind_speed < 10
    if "tights" in ws and (eff >= 45 or (eff >= 40 and calm)):
        ws.swap("tights", "shorts")
    if "long_sleeve" in ws and eff >= 52:
        ws.swap("long_sleeve", "short_sleeve")
    if ctx.gender is Gender.MALE:
        if ctx.workout and eff >= 50:
            ws.remove("long_sleeve", "short_sleeve", "tank_top")
        elif not ctx.workout and eff > 60:
            ws.remove("short_sleeve", "tank_top")


PERFORMANCE_STAGES: list[Stage] = [
    resolve_conflicts,
    perf_outerwear,
    perf_gloves,
    perf_legs_and_tops,
]


# =============================================================================
# Comfort variant
# =============================================================================

def comfort_outerwear(ws: WorkingSet, ctx: OutfitContext) -> None:
    eff = ctx.effective_temp
    if eff <= 35:
        ws.add("light_jacket")
    if eff <= 42:
        ws.add("vest")
    if "light_jacket" in ws and (ctx.snapshot.wind_speed >= 10 or eff < 45):
        ws.add("vest")
    if "insulated_jacket" in ws and "light_jacket" in ws:
        ws.remove("light_jacket")


def comfort_gloves(ws: WorkingSet, ctx: OutfitContext) -> None:
    eff = ctx.effective_temp
    if "light_gloves" in ws and eff < 40:
        ws.swap("light_gloves", "medium_gloves")
        if ctx.cold_hands:
            ws.cold_hand_tags.add("medium_gloves")
    if "medium_gloves" in ws and eff < 25:
        ws.swap("medium_gloves", "mittens")
        if ctx.cold_hands:
            ws.cold_hand_tags.add("mittens")
    if eff < 10:
        ws.add("mittens_liner")
        if ctx.cold_hands:
            ws.cold_hand_tags.add("mittens_liner")


def comfort_extras(ws: WorkingSet, ctx: OutfitContext) -> None:
    if ctx.effective_temp < 33 or ctx.snapshot.wind_speed >= 18:
        ws.add("neck_gaiter")
    if ctx.gender is Gender.MALE and ctx.adjusted_temp >= 70:
        ws.add("short_sleeve")


COMFORT_STAGES: list[Stage] = [
    resolve_conflicts,
    comfort_outerwear,
    comfort_gloves,
    comfort_extras,
]


# =============================================================================
# Finalization
# =============================================================================

def single_glove_tier(ws: WorkingSet, ctx: OutfitContext) -> None:
    """Keep only the warmest glove tier; a liner only goes under mittens."""
    present = [tier for tier in GLOVE_TIERS if tier in ws]
    for tier in present[1:]:
        ws.remove(tier)
    if "mittens_liner" in ws and "mittens" not in ws:
        ws.remove("mittens_liner")


def apply_socks(ws: WorkingSet, ctx: OutfitContext) -> None:
    ws.remove(*SOCK_LEVELS)
    ws.add(choose_socks(ctx.snapshot))


FINAL_STAGES: list[Stage] = [
    resolve_conflicts,
    single_glove_tier,
    apply_socks,
]


def run_stages(ws: WorkingSet, ctx: OutfitContext, stages: Sequence[Stage]) -> WorkingSet:
    for stage in stages:
        stage(ws, ctx)
        _LOGGER.debug("%s -> %s", stage.__name__, sorted(ws.items))
    return ws


def _finalize(ws: WorkingSet, order: list[str], effort_keys: set[str]):
    return tuple(gear_item(key, key in ws.cold_hand_tags, key in effort_keys)
                 for key in sort_keys(ws.items, order))


def build_context(snapshot: WeatherSnapshot, run_type: RunType = RunType.EASY,
                  gender: Gender = Gender.FEMALE, cold_hands: bool = False,
                  temperature_sensitivity: int = 0,
                  lookahead: Sequence[WeatherSnapshot] = ()) -> OutfitContext:
    upcoming = summarize_lookahead(snapshot, lookahead if run_type is RunType.LONG_RUN else ())
    eff = effective_temperature(snapshot, temperature_sensitivity)
    return OutfitContext(
        snapshot=snapshot,
        run_type=run_type,
        gender=gender,
        cold_hands=cold_hands,
        effective_temp=eff,
        adjusted_temp=adjusted_temperature(eff, run_type, upcoming.temp_rise),
        lookahead=upcoming,
    )


def recommend_outfit(snapshot: WeatherSnapshot, run_type: RunType = RunType.EASY,
                     gender: Gender = Gender.FEMALE, cold_hands: bool = False,
                     temperature_sensitivity: int = 0,
                     lookahead: Sequence[WeatherSnapshot] = ()) -> OutfitRecommendation:
    """
    Recommend what to wear for one hour.

    Args:
        snapshot: Weather for the start of the run
        run_type: easy, workout or longRun
        gender: Selects sports bra and warm-weather top substitutions
        cold_hands: Use the cold-hands glove ladder and a 5°F colder glove temperature
        temperature_sensitivity: -2 (runs cold) .. +2 (runs hot), 5°F per notch
        lookahead: Following hours; only long runs use them

    Returns:
        OutfitRecommendation with both variants sorted for display. The
        result is a pure function of the inputs.
    """
    ctx = build_context(snapshot, run_type, gender, cold_hands, temperature_sensitivity, lookahead)

    shared = WorkingSet(base_layers_for_temp(ctx.adjusted_temp, gender))
    run_stages(shared, ctx, SHARED_STAGES)

    performance = run_stages(run_stages(shared.copy(), ctx, PERFORMANCE_STAGES), ctx, FINAL_STAGES)
    comfort = run_stages(run_stages(shared.copy(), ctx, COMFORT_STAGES), ctx, FINAL_STAGES)
    effort_keys = effort_specific_keys(ctx.effective_temp, run_type, gender,
                                       ctx.lookahead.temp_rise)

    return OutfitRecommendation(
        performance_set=_finalize(performance, PERFORMANCE_ORDER, effort_keys),
        comfort_set=_finalize(comfort, COMFORT_ORDER, effort_keys),
        hand_protection_level=hands_level_from_gear(comfort.items),
        sock_level=choose_socks(snapshot),
        effective_temp=ctx.effective_temp,
        adjusted_temp=ctx.adjusted_temp,
    )
