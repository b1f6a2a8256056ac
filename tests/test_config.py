from datetime import datetime

import pytest
import pytz
import voluptuous as vol

from runfit.config import (
    DEFAULT_SEVERITY_MULTIPLIER,
    TEMP_RANGE_F,
    WIND_RANGE_MPH,
    InvalidInputError,
    load_engine_options,
    load_personalization,
    load_snapshot,
    sanitize_snapshot,
)
from runfit.models import (
    DEFAULT_AIR_TEMP,
    DEFAULT_CLOUD_COVER,
    DEFAULT_HUMIDITY,
    DEFAULT_PRESSURE_HPA,
    Gender,
    RunType,
    ScoreModel,
    UnitMode,
    WeatherSnapshot,
)


class TestSnapshot:
    def test_minimal(self):
        snapshot = load_snapshot({"air_temp": 50})
        assert snapshot.air_temp == 50.0
        assert snapshot.apparent_temp == 50.0
        assert snapshot.humidity == DEFAULT_HUMIDITY
        assert snapshot.cloud_cover == DEFAULT_CLOUD_COVER
        assert snapshot.pressure == DEFAULT_PRESSURE_HPA
        assert snapshot.solar_radiation == 0.0
        assert snapshot.timestamp is None

    def test_missing_apparent_is_derived(self):
        snapshot = load_snapshot({"air_temp": 20, "wind_speed": 15})
        assert snapshot.apparent_temp < 20.0

    def test_celsius_input(self):
        snapshot = load_snapshot({"air_temp": 10, "apparent_temp": 8}, UnitMode.CELSIUS)
        assert snapshot.air_temp == pytest.approx(50.0)
        assert snapshot.apparent_temp == pytest.approx(46.4)

    def test_out_of_range_values_are_clamped(self):
        snapshot = load_snapshot({"air_temp": 50, "humidity": 150, "wind_speed": -5,
                                  "precip_probability": 120, "cloud_cover": -3})
        assert snapshot.humidity == 100.0
        assert snapshot.wind_speed == 0.0
        assert snapshot.precip_probability == 100.0
        assert snapshot.cloud_cover == 0.0

    def test_non_finite_values_take_defaults(self):
        snapshot = load_snapshot({"air_temp": 50, "humidity": float("nan"), "uv_index": None})
        assert snapshot.humidity == DEFAULT_HUMIDITY
        assert snapshot.uv_index == 0.0

    def test_numeric_strings_are_coerced(self):
        assert load_snapshot({"air_temp": "12.5"}).air_temp == 12.5

    def test_unknown_keys_are_dropped(self):
        assert load_snapshot({"air_temp": 50, "station": "KPHX"}).air_temp == 50.0

    def test_timestamps(self):
        iso = load_snapshot({"air_temp": 50, "timestamp": "2024-07-15T19:30:00Z"})
        assert iso.timestamp == pytz.utc.localize(datetime(2024, 7, 15, 19, 30))
        naive = load_snapshot({"air_temp": 50, "timestamp": datetime(2024, 7, 15, 19, 30)})
        assert naive.timestamp.tzinfo is not None

    @pytest.mark.parametrize("data", [
        {},
        {"air_temp": None},
        {"air_temp": float("nan")},
        {"air_temp": [50]},
        {"air_temp": "warm"},
        {"air_temp": 50, "timestamp": "yesterday"},
        {"air_temp": 50, "timezone": 7},
        {"air_temp": 50, "is_daylight": "maybe"},
    ])
    def test_structural_errors(self, data):
        with pytest.raises(InvalidInputError):
            load_snapshot(data)

    def test_not_a_mapping(self):
        with pytest.raises(InvalidInputError):
            load_snapshot([("air_temp", 50)])

    def test_error_chains_voluptuous(self):
        with pytest.raises(InvalidInputError) as info:
            load_snapshot({"air_temp": "warm"})
        assert isinstance(info.value.__cause__, vol.Invalid)
        assert isinstance(info.value, ValueError)

    def test_extreme_temperatures_are_bounded(self):
        assert load_snapshot({"air_temp": 1e160}).air_temp == TEMP_RANGE_F[1]
        cold = load_snapshot({"air_temp": -500, "apparent_temp": -900})
        assert cold.air_temp == TEMP_RANGE_F[0]
        assert cold.apparent_temp == TEMP_RANGE_F[0]


class TestSanitize:
    def test_in_range_snapshot_is_unchanged(self):
        snapshot = WeatherSnapshot(air_temp=47.0, apparent_temp=45.0, humidity=60.0, wind_speed=8.0)
        assert sanitize_snapshot(snapshot) == snapshot

    def test_non_finite_fields_take_defaults(self):
        nan = float("nan")
        snapshot = sanitize_snapshot(WeatherSnapshot(
            air_temp=nan, apparent_temp=nan, humidity=nan, wind_speed=nan,
            precip_rate=nan, cloud_cover=nan, pressure=nan, solar_radiation=nan,
            latitude=nan, longitude=nan,
        ))
        assert snapshot.air_temp == DEFAULT_AIR_TEMP
        assert snapshot.apparent_temp == DEFAULT_AIR_TEMP
        assert snapshot.humidity == DEFAULT_HUMIDITY
        assert snapshot.wind_speed == 0.0
        assert snapshot.precip_rate == 0.0
        assert snapshot.cloud_cover == DEFAULT_CLOUD_COVER
        assert snapshot.pressure == DEFAULT_PRESSURE_HPA
        assert snapshot.solar_radiation == 0.0
        assert snapshot.latitude is None and snapshot.longitude is None

    def test_infinities_go_to_bounds(self):
        inf = float("inf")
        snapshot = sanitize_snapshot(WeatherSnapshot(air_temp=-inf, apparent_temp=inf, wind_speed=inf))
        assert snapshot.air_temp == TEMP_RANGE_F[0]
        assert snapshot.apparent_temp == TEMP_RANGE_F[1]
        assert snapshot.wind_speed == WIND_RANGE_MPH[1]


class TestPersonalization:
    def test_defaults(self):
        person = load_personalization()
        assert person.gender is Gender.FEMALE
        assert person.run_type is RunType.EASY
        assert not person.cold_hands

    def test_values(self):
        person = load_personalization({"gender": "Male", "run_type": "longRun", "cold_hands": True,
                                       "temperature_sensitivity": "-1", "runner_boldness": 5})
        assert person.gender is Gender.MALE
        assert person.run_type is RunType.LONG_RUN
        assert person.cold_hands
        assert person.temperature_sensitivity == -1
        assert person.runner_boldness == 2

    @pytest.mark.parametrize("data", [
        {"run_type": "sprint"},
        {"gender": "other"},
        {"cold_hands": "yes"},
        {"runner_boldness": True},
        {"temperature_sensitivity": "lots"},
    ])
    def test_rejected(self, data):
        with pytest.raises(InvalidInputError):
            load_personalization(data)


class TestEngineOptions:
    def test_defaults(self):
        options = load_engine_options()
        assert options["severity_multiplier"] == DEFAULT_SEVERITY_MULTIPLIER
        assert options["unit"] is UnitMode.FAHRENHEIT
        assert options["headline_model"] is ScoreModel.UTCI

    def test_values(self):
        options = load_engine_options({"severity_multiplier": "1.5", "unit": "C", "headline_model": "legacy"})
        assert options["severity_multiplier"] == 1.5
        assert options["unit"] is UnitMode.CELSIUS
        assert options["headline_model"] is ScoreModel.LEGACY

    @pytest.mark.parametrize("data", [
        {"severity_multiplier": -1},
        {"unit": "K"},
        {"headline_model": "vibes"},
    ])
    def test_rejected(self, data):
        with pytest.raises(InvalidInputError):
            load_engine_options(data)
