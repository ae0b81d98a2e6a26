"""
Unit tests for EnvironmentalDataAggregator with mocked data sources.
"""

import logging
import threading
from unittest.mock import Mock

import pytest

from releaf_app.aggregator import DataSources, EnvironmentalDataAggregator, MissingFallbackError
from releaf_app.cities import BASE_EMISSIONS, FALLBACK_WEATHER, VULNERABLE_POPULATIONS
from releaf_app.constants import ENVIRONMENTAL_FALLBACKS


class TestLiveSnapshot:
    """All location sources answering."""

    def test_climate_uses_weather_payload(self, make_aggregator, live_sources):
        climate = make_aggregator(live_sources).climate_snapshot(33.4484, -112.074, "Phoenix")

        assert climate.source == "live"
        assert climate.temperature == 95.0
        assert climate.humidity == 30.0
        assert climate.feels_like == 97.0
        assert climate.visibility == 10.0
        assert climate.solar_radiation == pytest.approx(175.4, abs=0.1)
        assert climate.air_quality.source == "live"
        assert climate.air_quality.pm2_5 == 10.0

    def test_environmental_provenance(self, make_aggregator, live_sources):
        snapshot = make_aggregator(live_sources).environmental_snapshot(33.4484, -112.074, "Phoenix")

        assert snapshot.surface_temperature == 104.0
        assert snapshot.provenance["surface_temperature"] == "live"
        assert snapshot.vulnerable_populations == 742500
        assert snapshot.provenance["vulnerable_populations"] == "live"
        assert snapshot.provenance["air_pollution_level"] == "live"
        assert snapshot.air_pollution_level == float(snapshot.climate.air_quality.aqi)
        assert snapshot.provenance["population_density"] == "calculated"
        # No satellite reading, so vegetation comes from the weather estimate.
        assert snapshot.provenance["vegetation_index"] == "calculated"
        assert snapshot.vegetation_index == pytest.approx(0.389)

    def test_sources_called_with_location_and_city(self, make_aggregator, live_sources, weather_source):
        make_aggregator(live_sources).environmental_snapshot(33.4484, -112.074, "Phoenix")
        weather_source.assert_called_once_with(33.4484, -112.074)
        live_sources.demographics.assert_called_once_with("Phoenix")


class TestFallbacks:
    """Unavailable sources degrade to calculated and tabulated values."""

    def test_all_sources_down_uses_city_tables(self, make_aggregator, down_sources):
        snapshot = make_aggregator(down_sources).environmental_snapshot(33.4484, -112.074, "Phoenix")
        climate = snapshot.climate

        assert climate.source == "fallback"
        assert climate.temperature == FALLBACK_WEATHER["phoenix"]["temperature"]
        assert climate.air_quality.source == "fallback"
        assert snapshot.carbon_emissions == BASE_EMISSIONS["phoenix"]
        assert snapshot.vulnerable_populations == VULNERABLE_POPULATIONS["phoenix"]["total"]
        assert snapshot.vegetation_index == ENVIRONMENTAL_FALLBACKS["vegetation_index"]
        assert snapshot.air_pollution_level == ENVIRONMENTAL_FALLBACKS["air_pollution_level"]
        assert snapshot.provenance["traffic_density"] == "calculated"
        assert snapshot.provenance["urban_heat_index"] == "fallback"

    def test_unknown_location_uses_constants(self, make_aggregator, down_sources):
        snapshot = make_aggregator(down_sources).environmental_snapshot(10.0, 10.0)
        assert snapshot.carbon_emissions == ENVIRONMENTAL_FALLBACKS["carbon_emissions"]
        assert snapshot.climate.temperature == 75.0

    def test_unconfigured_sources_are_skipped(self, make_aggregator):
        snapshot = make_aggregator(DataSources()).environmental_snapshot(33.4484, -112.074, "Phoenix")
        assert snapshot.climate.source == "fallback"
        assert set(snapshot.provenance.values()) <= {"calculated", "fallback"}

    def test_raising_source_is_logged_and_ignored(self, make_aggregator, air_source, caplog):
        failing = Mock(side_effect=RuntimeError("connection reset"))
        sources = DataSources(weather=failing, air_quality=air_source)

        with caplog.at_level(logging.WARNING, logger="releaf_app.aggregator"):
            climate = make_aggregator(sources).climate_snapshot(33.4484, -112.074, "Phoenix")

        assert climate.source == "fallback"
        assert climate.air_quality.source == "live"
        assert "connection reset" in caplog.text

    def test_slow_source_times_out_and_falls_back(self, air_source, caplog):
        release = threading.Event()

        def stalled_weather(lat, lon):
            release.wait(5)
            return {"temperature": 120.0}, "too late"

        aggregator = EnvironmentalDataAggregator(
            DataSources(weather=stalled_weather, air_quality=air_source), timeout=0.2
        )
        try:
            with caplog.at_level(logging.WARNING, logger="releaf_app.aggregator"):
                climate = aggregator.climate_snapshot(33.4484, -112.074, "Phoenix")
        finally:
            release.set()

        assert climate.source == "fallback"
        assert climate.temperature == FALLBACK_WEATHER["phoenix"]["temperature"]
        assert climate.air_quality.source == "live"
        assert "timed out" in caplog.text

    def test_missing_fallback_raises(self):
        with pytest.raises(MissingFallbackError):
            EnvironmentalDataAggregator._resolve("unknown_metric", {})

    def test_resolve_order(self):
        provenance = {}
        value = EnvironmentalDataAggregator._resolve(
            "water_quality", provenance, live=None, calculate=lambda: None, table=61.0
        )
        assert value == 61.0
        assert provenance == {"water_quality": "fallback"}

        value = EnvironmentalDataAggregator._resolve("water_quality", provenance, live=70.0, table=61.0)
        assert value == 70.0
        assert provenance["water_quality"] == "live"
