"""
Unit tests for the AQI tables and the derived-metric calculators.
"""

import random
from datetime import datetime

import pytest

from releaf_app import calculators
from releaf_app.aqi import BREAKPOINTS, overall_aqi, pollutant_aqi


class TestAirQualityIndex:
    """Breakpoint interpolation."""

    def test_pm25_boundaries(self):
        """The published PM2.5 boundaries map to their boundary AQI values."""
        assert pollutant_aqi(12.0, "pm2_5") == 50
        assert pollutant_aqi(12.1, "pm2_5") == 51
        assert pollutant_aqi(35.4, "pm2_5") == 100
        assert pollutant_aqi(35.5, "pm2_5") == 101

    @pytest.mark.parametrize("pollutant", sorted(BREAKPOINTS))
    def test_every_row_boundary_is_exact(self, pollutant):
        """Each row's low and high concentrations land on its AQI bounds."""
        for low_conc, high_conc, low_aqi, high_aqi in BREAKPOINTS[pollutant]:
            assert pollutant_aqi(low_conc, pollutant) == low_aqi
            assert pollutant_aqi(high_conc, pollutant) == high_aqi

    def test_out_of_table_values_return_zero(self):
        """Values beyond the last row are not extrapolated."""
        assert pollutant_aqi(900.0, "pm2_5") == 0

    def test_unknown_pollutant_raises(self):
        with pytest.raises(KeyError):
            pollutant_aqi(1.0, "so2")

    def test_overall_aqi_takes_worst_pollutant(self):
        """Missing readings are skipped and the worst sub-index wins."""
        assert overall_aqi({"pm2_5": 12.0, "pm10": 154, "o3": None}) == 100

    def test_overall_aqi_empty(self):
        assert overall_aqi({}) == 0


class TestVisibility:
    """Visibility estimate."""

    def test_clear_day_is_ten_km(self):
        assert calculators.visibility(0, 0, 50) == 10.0

    @pytest.mark.parametrize("axis", [0, 1, 2])
    def test_monotonic_non_increasing(self, axis):
        """Raising one input while holding the others never improves visibility."""
        grid = [0, 10, 30, 41, 50, 61, 70, 81, 85, 91, 100]
        base = [20.0, 0.0, 50.0]
        previous = None
        for value in grid:
            args = list(base)
            args[axis] = value
            current = calculators.visibility(*args)
            assert 0.1 <= current <= 10.0
            if previous is not None:
                assert current <= previous
            previous = current

    def test_worst_case_stays_in_bounds(self):
        assert calculators.visibility(100, 50, 100) == pytest.approx(10 * 0.7 * 0.5 * 0.6)


class TestHeatIndex:
    """Simplified urban heat index."""

    @pytest.mark.parametrize("temperature", [-10, 32, 60, 75, 79.9])
    def test_below_threshold_is_raw_temperature(self, temperature):
        assert calculators.heat_index(temperature, 90) == temperature

    @pytest.mark.parametrize("temperature", [80, 85, 95, 110])
    @pytest.mark.parametrize("humidity", [0, 20, 50, 100])
    def test_at_or_above_threshold_never_below_temperature(self, temperature, humidity):
        assert calculators.heat_index(temperature, humidity) >= temperature

    @pytest.mark.parametrize(
        "temperature, humidity, expected",
        [(95, 30, 96), (80, 50, 80), (100, 80, 103), (90, 0, 90)],
    )
    def test_pinned_values(self, temperature, humidity, expected):
        assert calculators.heat_index(temperature, humidity) == expected


class TestDewPoint:
    def test_saturated_air_dew_point_equals_temperature(self):
        assert calculators.dew_point(20.0, 100) == pytest.approx(20.0)

    def test_fahrenheit_wrapper(self):
        """70°F at 100 % humidity has a 70°F dew point."""
        assert calculators.dew_point_fahrenheit(70.0, 100) == pytest.approx(70.0, abs=0.1)

    def test_zero_humidity_is_clamped(self):
        """Humidity 0 would take log(0); it is clamped to 1 %."""
        assert calculators.dew_point(20.0, 0) == calculators.dew_point(20.0, 1)


class TestDerivedMetrics:
    def test_solar_radiation_zero_at_night(self):
        assert calculators.solar_radiation(8, 0, 2) == 0.0

    def test_solar_radiation_peaks_at_noon(self):
        assert calculators.solar_radiation(8, 0, 12) == pytest.approx(200.0)

    def test_building_efficiency_tiers(self):
        assert calculators.building_efficiency(70, 50) == 88
        assert calculators.building_efficiency(90, 85) == 68

    def test_carbon_emissions_uses_city_base(self):
        """Hot days and poor air push emissions above the city baseline."""
        mild = calculators.carbon_emissions(70, 40, "Phoenix")
        hot = calculators.carbon_emissions(95, 150, "Phoenix")
        assert hot == calculators.round_half_up(mild * 1.2 * 1.15)

    def test_dynamic_air_pollution_bounds(self):
        assert calculators.dynamic_air_pollution() == 50.0
        assert 20.0 <= calculators.dynamic_air_pollution(120, 20000, 0, 100) <= 100.0

    def test_noise_level_is_seeded(self):
        first = calculators.noise_level(5, random.Random(3))
        second = calculators.noise_level(5, random.Random(3))
        assert first == second
        assert 30.0 <= first <= 100.0

    def test_holidays(self):
        assert calculators.is_holiday(datetime(2024, 7, 4))
        assert calculators.is_holiday(datetime(2024, 9, 2))  # Labor Day
        assert not calculators.is_holiday(datetime(2024, 7, 10))

    def test_traffic_density_rush_hour_exceeds_night(self):
        rush = calculators.traffic_density(datetime(2024, 7, 10, 8), random.Random(1))
        night = calculators.traffic_density(datetime(2024, 7, 10, 2), random.Random(1))
        assert rush > night
        assert 5 <= night <= 100


class TestDynamicAirPollution:
    """50 baseline plus temperature, carbon, vegetation and humidity terms."""

    def test_temperature_term(self):
        # (85 - 70) / 30 of the 20-point weight.
        assert calculators.dynamic_air_pollution(temperature=85) == pytest.approx(60.0)
        assert calculators.dynamic_air_pollution(temperature=130) == pytest.approx(70.0)

    def test_carbon_term(self):
        assert calculators.dynamic_air_pollution(carbon_emissions=5000) == pytest.approx(57.5)
        assert calculators.dynamic_air_pollution(carbon_emissions=25000) == pytest.approx(65.0)

    def test_vegetation_term(self):
        assert calculators.dynamic_air_pollution(vegetation=40) == pytest.approx(56.0)
        assert calculators.dynamic_air_pollution(vegetation=100) == pytest.approx(50.0)

    def test_humidity_term(self):
        assert calculators.dynamic_air_pollution(humidity=60) == pytest.approx(53.0)

    def test_all_terms_combined(self):
        assert calculators.dynamic_air_pollution(85, 5000, 40, 60) == pytest.approx(76.5)

    def test_clamped_to_floor(self):
        assert calculators.dynamic_air_pollution(temperature=10) == 20.0

    def test_zero_readings_are_treated_as_missing(self):
        assert calculators.dynamic_air_pollution(120, 20000, 0, 100) == pytest.approx(90.0)


class TestVegetationIndex:
    def test_mild_humid_day(self):
        assert calculators.vegetation_index(70, 70, 5) == pytest.approx(0.66)

    def test_hot_dry_high_uv_day(self):
        assert calculators.vegetation_index(90, 40, 9) == pytest.approx(0.3888)

    @pytest.mark.parametrize("temperature", [-40, 70, 85, 130])
    @pytest.mark.parametrize("humidity", [0, 60, 61, 100])
    @pytest.mark.parametrize("uv_index", [0, 8, 15])
    def test_stays_within_bounds(self, temperature, humidity, uv_index):
        assert 0.1 <= calculators.vegetation_index(temperature, humidity, uv_index) <= 1.0


class TestWaterQuality:
    def test_baseline(self):
        assert calculators.water_quality(70, 0, 50, 40) == 85.0

    def test_warm_wet_day(self):
        assert calculators.water_quality(80, 3, 50, 60) == 79.0

    def test_every_penalty_and_bonus(self):
        assert calculators.water_quality(90, 6, 85, 120) == 69.0


class TestGreenSpaceCoverage:
    def test_linear_in_humidity_and_precipitation(self):
        assert calculators.green_space_coverage(50, 2) == pytest.approx(39.0)
        assert calculators.green_space_coverage(0, 0) == pytest.approx(20.0)

    def test_capped_at_hundred(self):
        assert calculators.green_space_coverage(100, 100) == 100.0
