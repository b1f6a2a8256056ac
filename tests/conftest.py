"""Shared weather scenarios."""

from datetime import datetime

import pytest
import pytz

from runfit.models import Personalization, RunType, WeatherSnapshot


@pytest.fixture
def mild_overcast():
    """47°F, overcast and calm: close to ideal running weather."""
    return WeatherSnapshot(
        air_temp=47.0,
        apparent_temp=47.0,
        humidity=50.0,
        wind_speed=3.0,
        precip_probability=0.0,
        precip_rate=0.0,
        uv_index=2.0,
        cloud_cover=100.0,
        solar_radiation=0.0,
    )


@pytest.fixture
def desert_afternoon():
    """Phoenix in July under a high sun."""
    return WeatherSnapshot(
        air_temp=98.0,
        apparent_temp=98.0,
        humidity=48.0,
        wind_speed=3.0,
        precip_probability=0.0,
        uv_index=9.0,
        cloud_cover=0.0,
        solar_radiation=900.0,
        is_daylight=True,
        timestamp=pytz.utc.localize(datetime(2024, 7, 15, 19, 30)),
        latitude=33.45,
        longitude=-112.07,
        timezone="America/Phoenix",
    )


@pytest.fixture
def freezing_drizzle():
    """Just below freezing with light precipitation."""
    return WeatherSnapshot(
        air_temp=31.0,
        apparent_temp=31.0,
        wind_speed=2.0,
        precip_probability=60.0,
        precip_rate=0.05,
    )


@pytest.fixture
def arctic_summer():
    return WeatherSnapshot(
        air_temp=40.0,
        apparent_temp=40.0,
        timestamp=pytz.utc.localize(datetime(2024, 6, 21, 12, 0)),
        latitude=80.0,
        longitude=15.0,
    )


@pytest.fixture
def easy_runner():
    return Personalization()


@pytest.fixture
def long_runner():
    return Personalization(run_type=RunType.LONG_RUN)
