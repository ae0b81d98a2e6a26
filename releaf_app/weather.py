"""Current weather conditions from the Open-Meteo forecast API."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Tuple

import requests

from .constants import FETCH_TIMEOUT_SECONDS

API_URL = "https://api.open-meteo.com/v1/forecast"

CURRENT_FIELDS = (
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "precipitation",
    "cloudcover",
    "windspeed_10m",
    "pressure_msl",
    "surface_pressure",
)


def _hourly_value(hourly: Dict, key: str, hour: int) -> Optional[float]:
    series = hourly.get(key) or []
    if 0 <= hour < len(series) and series[hour] is not None:
        return float(series[hour])
    return None


def fetch_current_weather(
    lat: float, lon: float, timeout: float = FETCH_TIMEOUT_SECONDS
) -> Tuple[Optional[Dict[str, float]], str]:
    """Return current conditions near the coordinate in °F, mph and mm.

    The payload carries ``temperature``, ``humidity``, ``pressure``,
    ``wind_speed``, ``precipitation``, ``cloud_cover``, ``uv_index``,
    ``feels_like`` and the local ``hour`` the UV reading was taken from.
    """

    params = {
        "latitude": lat,
        "longitude": lon,
        "current": ",".join(CURRENT_FIELDS),
        "hourly": "uv_index",
        "temperature_unit": "fahrenheit",
        "windspeed_unit": "mph",
        "precipitation_unit": "mm",
        "timezone": "auto",
        "forecast_days": 1,
    }

    try:
        response = requests.get(API_URL, params=params, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        return None, f"Open-Meteo forecast request failed: {exc}"

    current = payload.get("current") or {}
    temperature = current.get("temperature_2m")
    humidity = current.get("relative_humidity_2m")
    if temperature is None or humidity is None:
        return None, "Open-Meteo returned no current conditions for this location."

    timestamp = current.get("time")
    try:
        hour = datetime.fromisoformat(timestamp).hour if timestamp else datetime.now().hour
    except ValueError:
        hour = datetime.now().hour

    pressure = current.get("pressure_msl") or current.get("surface_pressure")
    data = {
        "temperature": float(temperature),
        "humidity": float(humidity),
        "pressure": float(pressure) if pressure is not None else None,
        "wind_speed": _optional_float(current.get("windspeed_10m")),
        "precipitation": _optional_float(current.get("precipitation")),
        "cloud_cover": _optional_float(current.get("cloudcover")),
        "uv_index": _hourly_value(payload.get("hourly") or {}, "uv_index", hour),
        "feels_like": _optional_float(current.get("apparent_temperature")),
        "hour": hour,
    }
    return data, "Current conditions from Open-Meteo."


def _optional_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


__all__ = ["API_URL", "fetch_current_weather"]
