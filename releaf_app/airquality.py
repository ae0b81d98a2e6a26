"""Air quality helpers backed by the Open-Meteo API."""

from __future__ import annotations

from statistics import mean
from typing import Dict, Optional, Tuple

import requests

from .constants import FETCH_TIMEOUT_SECONDS

API_URL = "https://air-quality-api.open-meteo.com/v1/air-quality"

# Open-Meteo hourly variable → snapshot field.
HOURLY_FIELDS = {
    "pm2_5": "pm2_5",
    "pm10": "pm10",
    "ozone": "o3",
    "nitrogen_dioxide": "no2",
    "carbon_monoxide": "co",
}

# µg/m³ → ppm at 25 °C, 1 atm (molar volume / molecular weight * 1000).
PPM_DIVISORS = {"o3": 1963.0, "no2": 1881.0, "co": 1145.0}


def _average(values: list[Optional[float]]) -> Optional[float]:
    points = [float(v) for v in values if v is not None]
    if not points:
        return None
    return mean(points)


def to_aqi_units(concentrations: Dict[str, Optional[float]]) -> Dict[str, Optional[float]]:
    """Convert gas readings from µg/m³ to the ppm the breakpoint tables use."""

    converted: Dict[str, Optional[float]] = {}
    for pollutant, value in concentrations.items():
        divisor = PPM_DIVISORS.get(pollutant)
        if value is None or divisor is None:
            converted[pollutant] = value
        else:
            converted[pollutant] = value / divisor
    return converted


def fetch_air_quality(
    lat: float, lon: float, hours: int = 24, timeout: float = FETCH_TIMEOUT_SECONDS
) -> Tuple[Optional[Dict[str, Optional[float]]], str]:
    """Return recent pollutant averages (µg/m³) near the given coordinate."""

    try:
        response = requests.get(
            API_URL,
            params={
                "latitude": lat,
                "longitude": lon,
                "hourly": ",".join(HOURLY_FIELDS),
                "past_days": 1,
                "forecast_days": 1,
                "timezone": "UTC",
            },
            timeout=timeout,
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        return None, f"Open-Meteo air-quality request failed: {exc}"

    hourly = payload.get("hourly", {})
    length = len(hourly.get("time", []))
    start_idx = max(0, length - hours)

    def window(key: str) -> list[Optional[float]]:
        series = hourly.get(key, [])
        return series[start_idx:]

    readings = {field: _average(window(key)) for key, field in HOURLY_FIELDS.items()}
    if all(value is None for value in readings.values()):
        return None, "Open-Meteo returned no pollutant readings for this location."
    return readings, f"Pollutant averages over the last {hours} h from Open-Meteo."


__all__ = ["API_URL", "PPM_DIVISORS", "to_aqi_units", "fetch_air_quality"]
