"""Shared fixtures: cities, canned source payloads and a controllable clock."""

import random
from datetime import datetime
from unittest.mock import Mock

import pytest

from releaf_app.aggregator import DataSources, EnvironmentalDataAggregator
from releaf_app.cache import TTLCache
from releaf_app.cities import custom_city, get_city


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


WEATHER_PAYLOAD = {
    "temperature": 95.0,
    "humidity": 30.0,
    "pressure": 1010.0,
    "wind_speed": 8.0,
    "precipitation": 0.0,
    "cloud_cover": 10.0,
    "uv_index": 9.0,
    "feels_like": 97.0,
    "hour": 14,
}

AIR_PAYLOAD = {"pm2_5": 10.0, "pm10": 30.0, "o3": 80.0, "no2": 20.0, "co": 300.0}


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def phoenix():
    return get_city("phoenix")


@pytest.fixture
def hot_city():
    """Synthetic dense, hot, sparsely vegetated coastal-ish city."""
    return custom_city(
        "Synthetic Heat",
        lat=30.0,
        lon=-100.0,
        population=1000000,
        average_temperature=95.0,
        vegetation_coverage=10.0,
        elevation=100.0,
        coastal_distance=50.0,
    )


@pytest.fixture
def weather_source():
    return Mock(return_value=(dict(WEATHER_PAYLOAD), "Open-Meteo OK"))


@pytest.fixture
def air_source():
    return Mock(return_value=(dict(AIR_PAYLOAD), "Open-Meteo air quality OK"))


@pytest.fixture
def live_sources(weather_source, air_source):
    return DataSources(
        weather=weather_source,
        air_quality=air_source,
        surface_temperature=Mock(return_value=({"surface_temperature": 104.0}, "NASA POWER OK")),
        vegetation=Mock(return_value=(None, "Earth Engine not configured")),
        demographics=Mock(return_value=({"population": 1650000, "vulnerable_total": 742500}, "Census OK")),
    )


@pytest.fixture
def down_sources():
    """Every source configured, every one unavailable."""
    unavailable = Mock(return_value=(None, "service unavailable"))
    return DataSources(
        weather=unavailable,
        air_quality=unavailable,
        surface_temperature=unavailable,
        vegetation=unavailable,
        demographics=unavailable,
        emissions=unavailable,
        energy=unavailable,
    )


@pytest.fixture
def make_aggregator(fake_clock, rng):
    def factory(sources, ttl=120.0):
        return EnvironmentalDataAggregator(
            sources,
            cache=TTLCache(ttl_seconds=ttl, clock=fake_clock),
            rng=rng,
            timeout=5.0,
            clock=fake_clock,
            now=lambda: datetime(2024, 7, 10, 14, 0),
        )

    return factory


@pytest.fixture
def hot_snapshot(make_aggregator, live_sources):
    """Environmental snapshot for the 95°F / 30% humidity scenario."""
    return make_aggregator(live_sources).environmental_snapshot(30.0, -100.0, "Synthetic Heat")
