"""Derived-metric calculators.

Pure functions that turn raw weather readings into the secondary metrics
used throughout the pipeline. Temperatures are °F unless a name says
otherwise; humidity and cloud cover are percentages.
"""

from __future__ import annotations

import math
import random
from datetime import datetime
from typing import Mapping, Optional

from .aqi import overall_aqi
from .cities import BASE_EMISSIONS, BASE_ENERGY, DEFAULT_BASE_EMISSIONS, DEFAULT_BASE_ENERGY, city_key
from .scoring import clamp_value, round_half_up

_MAGNUS_A = 17.27
_MAGNUS_B = 237.7

# (month, day) pairs treated as traffic holidays.
_FIXED_HOLIDAYS = {(1, 1), (7, 4), (12, 25), (11, 24), (9, 1), (5, 31)}


def fahrenheit_to_celsius(value: float) -> float:
    return (value - 32.0) * 5.0 / 9.0


def celsius_to_fahrenheit(value: float) -> float:
    return value * 9.0 / 5.0 + 32.0


def dew_point(temperature: float, humidity: float) -> float:
    """Magnus approximation; calibrated for °C input and returns °C."""

    humidity = clamp_value(humidity, 1.0, 100.0)
    alpha = (_MAGNUS_A * temperature) / (_MAGNUS_B + temperature) + math.log(humidity / 100)
    return (_MAGNUS_B * alpha) / (_MAGNUS_A - alpha)


def dew_point_fahrenheit(temperature_f: float, humidity: float) -> float:
    celsius = dew_point(fahrenheit_to_celsius(temperature_f), humidity)
    return round(celsius_to_fahrenheit(celsius), 1)


def visibility(cloud_cover: float, precipitation: float, humidity: float) -> float:
    km = 10.0
    if cloud_cover > 80:
        km *= 0.7
    elif cloud_cover > 60:
        km *= 0.8
    elif cloud_cover > 40:
        km *= 0.9

    if precipitation > 5:
        km *= 0.5
    elif precipitation > 2:
        km *= 0.7
    elif precipitation > 0.5:
        km *= 0.9

    if humidity > 90:
        km *= 0.6
    elif humidity > 80:
        km *= 0.8

    return clamp_value(km, 0.1, 10.0)


def solar_radiation(uv_index: float, cloud_cover: float, hour: int) -> float:
    radiation = uv_index * 25
    radiation *= (100 - cloud_cover) / 100
    radiation *= max(0.0, math.sin((hour - 6) * math.pi / 12))
    return max(0.0, radiation)


def air_quality_index(concentrations: Mapping[str, Optional[float]]) -> int:
    """AQI of the worst pollutant. Gases in ppm, particulates in µg/m³."""

    return overall_aqi(concentrations)


def heat_index(temperature: float, humidity: float) -> float:
    """Simplified urban heat index.

    Below 80°F the air temperature is returned unchanged. At or above it the
    single-step formula is used, never reporting less than the temperature
    itself.
    """

    if temperature >= 80:
        value = 0.5 * (temperature + 61.0 + (temperature - 68) * 1.2 + humidity * 0.094)
        return max(temperature, round_half_up(value))
    return temperature


def vegetation_index(temperature: float, humidity: float, uv_index: float) -> float:
    temp_factor = 1.0 if temperature < 85 else 0.8
    humidity_factor = 1.1 if humidity > 60 else 0.9
    uv_factor = 1.0 if uv_index < 8 else 0.9
    return clamp_value(0.6 * temp_factor * humidity_factor * uv_factor, 0.1, 1.0)


def building_efficiency(temperature: float, humidity: float) -> int:
    if temperature < 75:
        temp_efficiency = 85
    elif temperature < 85:
        temp_efficiency = 75
    else:
        temp_efficiency = 65

    if humidity < 60:
        humidity_efficiency = 90
    elif humidity < 80:
        humidity_efficiency = 80
    else:
        humidity_efficiency = 70

    return int(round_half_up((temp_efficiency + humidity_efficiency) / 2))


def dynamic_air_pollution(
    temperature: Optional[float] = None,
    carbon_emissions: Optional[float] = None,
    vegetation: Optional[float] = None,
    humidity: Optional[float] = None,
) -> float:
    """Air-pollution estimate from whichever inputs are known, in [20, 100]."""

    level = 50.0
    if temperature:
        level += min(1.0, (temperature - 70) / 30) * 20
    if carbon_emissions:
        level += min(1.0, carbon_emissions / 10000) * 15
    if vegetation:
        level += (100 - vegetation) / 100 * 10
    if humidity:
        level += min(1.0, humidity / 100) * 5
    return clamp_value(level, 20.0, 100.0)


def carbon_emissions(temperature: float, aqi: float, city_name: Optional[str] = None) -> int:
    base = BASE_EMISSIONS.get(city_key(city_name), DEFAULT_BASE_EMISSIONS)
    temperature_factor = 1.2 if temperature > 80 else 1.0
    activity_factor = 1.15 if aqi > 100 else 1.0
    return int(round_half_up(base * temperature_factor * activity_factor))


def energy_consumption(temperature: float, humidity: float, city_name: Optional[str] = None) -> int:
    base = BASE_ENERGY.get(city_key(city_name), DEFAULT_BASE_ENERGY)
    if temperature > 85:
        temperature_factor = 1.3
    elif temperature > 75:
        temperature_factor = 1.1
    else:
        temperature_factor = 1.0
    humidity_factor = 1.2 if humidity > 70 else 1.0
    return int(round_half_up(base * temperature_factor * humidity_factor))


def water_quality(temperature: float, precipitation: float, humidity: float, aqi: float) -> float:
    quality = 85.0
    if temperature > 85:
        quality -= 10
    elif temperature > 75:
        quality -= 5

    if precipitation > 5:
        quality += 5
    elif precipitation > 2:
        quality += 2

    if humidity > 80:
        quality -= 3

    if aqi > 100:
        quality -= 8
    elif aqi > 50:
        quality -= 3

    return clamp_value(quality, 0.0, 100.0)


def noise_level(wind_speed: float, rng: random.Random) -> float:
    return clamp_value(40 + wind_speed * 2 + rng.random() * 20, 30.0, 100.0)


def is_holiday(moment: datetime) -> bool:
    if (moment.month, moment.day) in _FIXED_HOLIDAYS:
        return True
    # Labor Day and Memorial Day fall on Mondays.
    if moment.weekday() == 0:
        if moment.month == 9 and moment.day <= 7:
            return True
        if moment.month == 5 and moment.day >= 25:
            return True
    return False


def traffic_density(
    moment: datetime,
    rng: random.Random,
    temperature: Optional[float] = None,
    precipitation: Optional[float] = None,
    visibility_km: Optional[float] = None,
) -> int:
    hour = moment.hour
    rush_hour = 7 <= hour <= 9 or 16 <= hour <= 18
    weekend = moment.weekday() >= 5

    if is_holiday(moment):
        traffic = 20.0
    elif weekend:
        traffic = 30.0
    elif rush_hour:
        traffic = 75.0
    elif hour >= 22 or hour <= 5:
        traffic = 15.0
    elif 10 <= hour <= 15:
        traffic = 50.0
    else:
        traffic = 40.0

    if precipitation is not None:
        if precipitation > 5:
            traffic *= 0.8
        elif precipitation > 2:
            traffic *= 0.9
    if temperature is not None:
        if temperature > 95 or temperature < 20:
            traffic *= 0.7
        elif temperature > 85 or temperature < 30:
            traffic *= 0.85
    if visibility_km is not None:
        if visibility_km < 3:
            traffic *= 0.6
        elif visibility_km < 5:
            traffic *= 0.8

    traffic += (rng.random() - 0.5) * 15
    return int(round_half_up(clamp_value(traffic, 5.0, 100.0)))


def green_space_coverage(humidity: float, precipitation: float) -> float:
    return clamp_value(20 + humidity * 0.3 + precipitation * 2, 5.0, 100.0)


__all__ = [
    "fahrenheit_to_celsius",
    "celsius_to_fahrenheit",
    "dew_point",
    "dew_point_fahrenheit",
    "visibility",
    "solar_radiation",
    "air_quality_index",
    "heat_index",
    "vegetation_index",
    "building_efficiency",
    "dynamic_air_pollution",
    "carbon_emissions",
    "energy_consumption",
    "water_quality",
    "noise_level",
    "is_holiday",
    "traffic_density",
    "green_space_coverage",
]
