from dataclasses import replace

import pytest

from runfit.advisory import (
    analyze_weather_trend,
    build_prompt_summary,
    calculate_road_conditions,
    compose_advisory,
    pace_adjustment,
    temperature_drift,
    tier_tip,
)
from runfit.models import RunType, UnitMode, WeatherSnapshot
from runfit.outfit import recommend_outfit
from runfit.score import compute_legacy_breakdown
from runfit.utci import calculate_utci


class TestRoadConditions:
    def test_freezing_drizzle_is_dangerous(self):
        road = calculate_road_conditions(31.0, 31.0, 60.0, 0.05, 50.0)
        assert road.severity == "danger"
        assert [w.kind for w in road.warnings] == ["ice", "wet"]
        assert road.warnings[0].level == "danger"

    def test_near_freezing_rain_is_a_warning(self):
        road = calculate_road_conditions(34.0, 30.0, 50.0, 0.0, 50.0)
        assert road.severity == "warning"
        assert road.warnings[0].kind == "ice"
        assert road.warnings[0].level == "warning"

    def test_dry_mild_day_is_safe(self):
        road = calculate_road_conditions(55.0, 55.0, 10.0, 0.0, 30.0)
        assert road.severity == "safe"
        assert not road.has_warnings

    def test_heavy_rain_and_low_cloud(self):
        road = calculate_road_conditions(60.0, 60.0, 90.0, 0.3, 95.0)
        assert road.severity == "warning"
        assert {w.kind for w in road.warnings} == {"wet", "visibility"}

    def test_hot_pavement(self):
        road = calculate_road_conditions(95.0, 100.0, 0.0, 0.0, 0.0)
        assert [w.kind for w in road.warnings] == ["heat"]
        assert road.severity == "caution"


class TestComposer:
    def test_perfect_day(self, mild_overcast):
        advisory = compose_advisory(compute_legacy_breakdown(mild_overcast), mild_overcast)
        assert advisory.tips[0] == "Perfect running weather. Get after it!"
        assert advisory.pace_adjustment.startswith("Run your normal pace")
        assert len(advisory.tips) == 1

    def test_icy_tip_for_cautious_runner(self, freezing_drizzle):
        breakdown = compute_legacy_breakdown(freezing_drizzle)
        advisory = compose_advisory(breakdown, freezing_drizzle, boldness=0)
        assert any("Traction" in tip for tip in advisory.tips)
        assert advisory.road_conditions.severity == "danger"
        assert any(tip.startswith("Black ice") for tip in advisory.tips)

    def test_bold_runner_gets_terse_ice_note(self, freezing_drizzle):
        breakdown = compute_legacy_breakdown(freezing_drizzle)
        advisory = compose_advisory(breakdown, freezing_drizzle, boldness=2)
        assert "Icy out there. Traction devices or treadmill." in advisory.tips
        assert "Black ice likely on roads and sidewalks" in advisory.tips

    def test_boldness_shifts_tier(self, freezing_drizzle):
        breakdown = compute_legacy_breakdown(freezing_drizzle)
        cautious = compose_advisory(breakdown, freezing_drizzle, boldness=-2)
        bold = compose_advisory(breakdown, freezing_drizzle, boldness=2)
        assert cautious.tips[0] != bold.tips[0]
        assert cautious.pace_adjustment != bold.pace_adjustment

    def test_heat_and_humidity(self):
        muggy = WeatherSnapshot(air_temp=88.0, apparent_temp=100.0, humidity=70.0, wind_speed=3.0)
        advisory = compose_advisory(compute_legacy_breakdown(muggy), muggy)
        assert any(tip.startswith("Heat + humidity") for tip in advisory.tips)
        assert any(tip.startswith("Seriously, hit the treadmill") for tip in advisory.tips)
        assert any(tip.startswith("Extreme heat warning") for tip in advisory.tips)

    def test_long_run_temperature_drift(self, mild_overcast):
        upcoming = [replace(mild_overcast, apparent_temp=55.0), replace(mild_overcast, apparent_temp=62.0)]
        assert temperature_drift(mild_overcast, upcoming) == pytest.approx(15.0)
        breakdown = compute_legacy_breakdown(mild_overcast, RunType.LONG_RUN)
        advisory = compose_advisory(breakdown, mild_overcast, RunType.LONG_RUN, 0, upcoming)
        assert any("climb 15°F" in tip for tip in advisory.tips)

    def test_drift_keeps_sign(self, mild_overcast):
        upcoming = [replace(mild_overcast, apparent_temp=40.0), replace(mild_overcast, apparent_temp=52.0)]
        assert temperature_drift(mild_overcast, upcoming) == pytest.approx(-7.0)


class TestLadders:
    @pytest.mark.parametrize("score, prefix", [
        (90, "Great day for a hard workout"),
        (75, "Solid conditions for speed work"),
        (60, "Tough day for intervals"),
        (45, "This is not the day for speed work"),
        (20, "Seriously, hit the treadmill"),
    ])
    def test_workout_tiers(self, score, prefix):
        assert tier_tip(score, ["temperature"], 50.0, RunType.WORKOUT).startswith(prefix)

    def test_pace_bold_variant(self):
        assert pace_adjustment(30, RunType.EASY, 2).startswith("Conditions are brutal")
        assert pace_adjustment(30, RunType.EASY, 0).startswith("Seriously, just hop on the treadmill")


class TestTrend:
    def test_no_forecast(self, mild_overcast):
        assert analyze_weather_trend(mild_overcast, []) == "No forecast data available to analyze trends."

    def test_stable(self, mild_overcast):
        assert analyze_weather_trend(mild_overcast, [mild_overcast]) == "Stable conditions in the next hour."
        assert (analyze_weather_trend(mild_overcast, [mild_overcast] * 3, RunType.LONG_RUN)
                == "Stable conditions over the next ~3 hours.")

    def test_changes(self, mild_overcast):
        later = replace(mild_overcast, air_temp=57.0, precip_probability=80.0, wind_speed=12.0)
        trend = analyze_weather_trend(mild_overcast, [later])
        assert trend == "+10°, rain likely, wind rising to 12 mph in the next hour."

    def test_celsius_delta(self, mild_overcast):
        later = replace(mild_overcast, air_temp=38.0)
        assert analyze_weather_trend(mild_overcast, [later], unit=UnitMode.CELSIUS).startswith("-5°")


class TestPromptSummary:
    def test_structure(self, desert_afternoon):
        breakdown = compute_legacy_breakdown(desert_afternoon)
        outfit = recommend_outfit(desert_afternoon)
        thermal = calculate_utci(98.0, 48.0, 3.0, mrt=132.157)
        summary = build_prompt_summary(desert_afternoon, breakdown, outfit, thermal=thermal,
                                       unit=UnitMode.CELSIUS)
        assert summary["unit"] == "C"
        assert summary["weather"]["air_temp"] == pytest.approx(36.7, abs=0.05)
        assert summary["score"] == breakdown.score
        assert summary["utci_category"] == "Extreme Heat Stress"
        assert {"key": "sunscreen", "label": "Sunscreen"} in summary["gear"]["performance"]
        assert summary["trend"] == "No forecast data available to analyze trends."
        assert "solar" not in summary
