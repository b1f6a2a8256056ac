from dataclasses import replace
import itertools

import pytest

from runfit.gear import CATALOG, GLOVE_KEYS, GLOVE_TIERS, SOCK_LEVELS, gear_item, hands_label, sort_keys
from runfit.models import Gender, RunType, WeatherSnapshot
from runfit.outfit import (
    adjusted_temperature,
    effective_temperature,
    effort_specific_keys,
    recommend_outfit,
    required_glove_level,
    summarize_lookahead,
    windbreaker_band,
)


def weather(temp, **kwargs):
    kwargs.setdefault("humidity", 50.0)
    return WeatherSnapshot(air_temp=temp, apparent_temp=temp, **kwargs)


class TestScenarios:
    def test_mild_overcast(self, mild_overcast):
        outfit = recommend_outfit(mild_overcast)
        assert outfit.effective_temp == 47
        assert outfit.comfort_keys == ["sports_bra", "long_sleeve", "tights", "light_gloves", "heavy_socks"]
        assert outfit.performance_keys == ["sports_bra", "long_sleeve", "shorts", "light_gloves", "heavy_socks"]
        for keys in (outfit.comfort_keys, outfit.performance_keys):
            assert "rain_shell" not in keys
            assert "windbreaker" not in keys

    def test_desert_afternoon(self, desert_afternoon):
        outfit = recommend_outfit(desert_afternoon)
        expected = {"split_shorts", "cap", "tank_top", "sports_bra", "sunglasses",
                    "sunscreen", "hydration", "light_socks"}
        assert set(outfit.comfort_keys) == expected
        assert set(outfit.performance_keys) == expected
        assert outfit.hand_protection_level == 0

    def test_extreme_cold(self):
        outfit = recommend_outfit(weather(-5.0, wind_speed=20.0))
        comfort = set(outfit.comfort_keys)
        assert {"mittens", "mittens_liner", "balaclava", "neck_gaiter", "insulated_jacket",
                "double_socks"} <= comfort
        assert "mittens" in outfit.performance_keys
        assert "mittens_liner" not in outfit.performance_keys
        assert outfit.hand_protection_level == 4
        assert outfit.sock_level == "double_socks"


class TestStages:
    def test_rain_brings_shell_and_brimmed_cap(self):
        outfit = recommend_outfit(weather(55.0, precip_probability=60.0))
        for keys in (outfit.comfort_keys, outfit.performance_keys):
            assert "rain_shell" in keys
            assert "brim_cap" in keys
            assert "cap" not in keys
            assert "windbreaker" not in keys

    def test_breeze_in_band_brings_windbreaker(self):
        outfit = recommend_outfit(weather(45.0, wind_speed=8.0))
        assert "windbreaker" in outfit.comfort_keys
        assert "windbreaker" in outfit.performance_keys

    def test_calm_air_gets_no_windbreaker(self):
        outfit = recommend_outfit(weather(45.0, wind_speed=2.0))
        assert "windbreaker" not in outfit.comfort_keys

    def test_windbreaker_band_widens_with_wind(self):
        assert windbreaker_band(RunType.EASY, 2.0) == (40.0, 55.0)
        assert windbreaker_band(RunType.EASY, 8.0) == (40.0, 58.0)
        assert windbreaker_band(RunType.EASY, 15.0) == (45.0, 62.0)

    def test_cold_hands_adds_tagged_gloves(self):
        snapshot = weather(58.0, wind_speed=3.0)
        assert not set(recommend_outfit(snapshot).comfort_keys) & GLOVE_KEYS

        outfit = recommend_outfit(snapshot, cold_hands=True)
        gloves = [g for g in outfit.comfort_set if g.key in GLOVE_KEYS]
        assert [g.key for g in gloves] == ["light_gloves"]
        assert gloves[0].cold_hands
        assert outfit.hand_protection_level == 1

    def test_male_warm_weather(self):
        outfit = recommend_outfit(weather(75.0), gender=Gender.MALE)
        assert "sports_bra" not in outfit.comfort_keys
        assert "tank_top" not in outfit.performance_keys
        assert "short_sleeve" in outfit.comfort_keys

    def test_workout_dresses_warmer_weather(self):
        easy = recommend_outfit(weather(45.0))
        workout = recommend_outfit(weather(45.0), run_type=RunType.WORKOUT)
        assert workout.adjusted_temp == easy.adjusted_temp + 10
        assert "tights" in easy.comfort_keys
        assert "tights" not in workout.comfort_keys

    def test_long_run_extras(self, mild_overcast):
        upcoming = [replace(mild_overcast, apparent_temp=53.0), replace(mild_overcast, apparent_temp=58.0)]
        outfit = recommend_outfit(mild_overcast, run_type=RunType.LONG_RUN, lookahead=upcoming)
        assert {"hydration", "anti_chafe", "arm_sleeves"} <= set(outfit.comfort_keys)
        assert outfit.adjusted_temp == 47 + 5

    def test_lookahead_only_used_by_long_runs(self, mild_overcast):
        hot = [replace(mild_overcast, apparent_temp=80.0, precip_rate=0.2)]
        assert recommend_outfit(mild_overcast, lookahead=hot) == recommend_outfit(mild_overcast)


class TestTemperatures:
    def test_rounds_half_up(self):
        assert effective_temperature(weather(47.5)) == 48
        assert effective_temperature(weather(-2.5)) == -2

    def test_sensitivity_notch_is_five_degrees(self):
        assert effective_temperature(weather(50.0), 1) == 55
        assert effective_temperature(weather(50.0), -2) == 40

    def test_adjustments(self):
        humid = WeatherSnapshot(air_temp=70.0, apparent_temp=70.0, humidity=100.0)
        assert effective_temperature(humid) == 78
        windy = weather(40.0, wind_speed=30.0)
        assert effective_temperature(windy) == 35
        sunny = weather(60.0, uv_index=9.0)
        assert effective_temperature(sunny) == 66

    def test_adjusted_temperature(self):
        assert adjusted_temperature(40.0, RunType.EASY) == 40.0
        assert adjusted_temperature(40.0, RunType.WORKOUT) == 50.0
        assert adjusted_temperature(40.0, RunType.LONG_RUN, 4.0) == 42.0
        assert adjusted_temperature(40.0, RunType.LONG_RUN, 30.0) == 45.0

    def test_lookahead_summary(self, mild_overcast):
        upcoming = [replace(mild_overcast, apparent_temp=50.0, precip_probability=70.0),
                    replace(mild_overcast, apparent_temp=45.0, precip_rate=0.05),
                    replace(mild_overcast, apparent_temp=90.0)]
        summary = summarize_lookahead(mild_overcast, upcoming)
        assert summary.temp_rise == 3.0
        assert summary.max_precip_probability == 70.0
        assert summary.will_rain


class TestGloves:
    @pytest.mark.parametrize("glove_temp, wind, cold_hands, level", [
        (65.0, 30.0, False, None),
        (56.0, 2.0, False, None),
        (50.0, 2.0, False, "light_gloves"),
        (56.0, 9.0, False, "light_gloves"),
        (40.0, 2.0, False, "medium_gloves"),
        (20.0, 2.0, False, "mittens"),
        (10.0, 2.0, False, "mittens_liner"),
        (56.0, 2.0, True, "light_gloves"),
        (41.0, 2.0, True, "medium_gloves"),
        (17.0, 2.0, True, "mittens_liner"),
    ])
    def test_required_level(self, glove_temp, wind, cold_hands, level):
        assert required_glove_level(glove_temp, wind, cold_hands) == level


class TestInvariants:
    SWEEP = list(itertools.product(
        range(-20, 111, 10),
        (0.0, 6.0, 14.0, 25.0),
        (0.0, 50.0, 90.0),
        list(RunType),
        list(Gender),
        (False, True),
    ))

    def test_sets_are_consistent(self):
        for temp, wind, prob, run_type, gender, cold_hands in self.SWEEP:
            snapshot = weather(float(temp), wind_speed=wind, precip_probability=prob, uv_index=5.0)
            outfit = recommend_outfit(snapshot, run_type, gender, cold_hands)
            for keys in (outfit.comfort_keys, outfit.performance_keys):
                assert set(keys) <= set(CATALOG)
                assert len(keys) == len(set(keys))
                assert sum(k in keys for k in GLOVE_TIERS) <= 1
                assert "mittens_liner" not in keys or "mittens" in keys
                assert not ("brim_cap" in keys and "cap" in keys)
                assert not ("rain_shell" in keys and "windbreaker" in keys)
                assert sum(k in keys for k in SOCK_LEVELS) == 1
            glove_temp = outfit.adjusted_temp - 5 if cold_hands else outfit.adjusted_temp
            if glove_temp >= 60:
                assert not set(outfit.comfort_keys) & GLOVE_KEYS
                assert not set(outfit.performance_keys) & GLOVE_KEYS
                assert outfit.hand_protection_level == 0

    def test_deterministic(self):
        for temp, wind, prob, run_type, gender, cold_hands in self.SWEEP[::7]:
            snapshot = weather(float(temp), wind_speed=wind, precip_probability=prob)
            first = recommend_outfit(snapshot, run_type, gender, cold_hands)
            assert recommend_outfit(snapshot, run_type, gender, cold_hands) == first


class TestEffortTags:
    def test_workout_base_layers_are_effort_specific(self):
        # Workout starts from the 58°F band, easy and long runs from the 48°F band
        outfit = recommend_outfit(weather(48.0), RunType.WORKOUT)
        for gear in (outfit.performance_set, outfit.comfort_set):
            assert {g.key for g in gear if g.effort_specific} == {"shorts", "short_sleeve"}

    def test_shared_baselines_tag_nothing(self):
        outfit = recommend_outfit(weather(48.0), RunType.EASY)
        assert not any(g.effort_specific for g in outfit.performance_set + outfit.comfort_set)

    def test_effort_specific_keys(self):
        assert effort_specific_keys(48.0, RunType.WORKOUT, Gender.FEMALE) == {"shorts", "short_sleeve"}
        assert effort_specific_keys(48.0, RunType.EASY, Gender.MALE) == set()

        assert effort_specific_keys(65.0, RunType.WORKOUT, Gender.MALE) == {"split_shorts", "cap"}


class TestCatalog:
    def test_unknown_key_raises(self):
        with pytest.raises(KeyError):
            gear_item("jetpack")
        with pytest.raises(KeyError):
            sort_keys(["cap", "jetpack"], [])

    def test_hands_label(self):
        assert hands_label(0) == "None"
        assert hands_label(4) == "Mittens + liner"
        assert hands_label(9) == "Mittens + liner"
