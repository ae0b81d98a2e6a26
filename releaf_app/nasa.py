"""NASA POWER API helpers."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, Optional, Tuple

import requests

from .calculators import celsius_to_fahrenheit
from .constants import FETCH_TIMEOUT_SECONDS

BASE_URL = "https://power.larc.nasa.gov/api/temporal/daily/point"
INVALID_VALUE = -999.0


def fetch_lst(
    lat: float, lon: float, days: int = 7, timeout: float = FETCH_TIMEOUT_SECONDS
) -> Tuple[Optional[float], str]:
    """Fetch average land surface temperature (earth skin temperature) in °C.

    Parameters
    ----------
    lat, lon: float
        Location of interest in decimal degrees (WGS84).
    days: int
        Number of recent days to average. Defaults to 7.

    Returns
    -------
    (value, message)
        Value in °C if available and an informational message about the source.
    """

    if days <= 0:
        days = 7
    # POWER publishes with a lag of a few days; end yesterday.
    end_date = date.today() - timedelta(days=1)
    start_date = end_date - timedelta(days=days - 1)

    params = {
        "latitude": lat,
        "longitude": lon,
        "start": start_date.strftime("%Y%m%d"),
        "end": end_date.strftime("%Y%m%d"),
        "parameters": "TS",
        "community": "SB",
        "format": "JSON",
    }

    try:
        response = requests.get(BASE_URL, params=params, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as exc:
        return None, f"NASA POWER request failed: {exc}"

    parameter = data.get("properties", {}).get("parameter", {}).get("TS", {})
    values = [float(v) for v in parameter.values() if v is not None and v != INVALID_VALUE]

    if not values:
        return None, "NASA POWER returned no skin temperature data for this window."

    average = sum(values) / len(values)
    return round(average, 2), "Skin temperature averaged from NASA POWER (daily TS)."


def fetch_surface_temperature(lat: float, lon: float) -> Tuple[Optional[Dict[str, float]], str]:
    """Surface-temperature source for the aggregator, in °F."""

    celsius, message = fetch_lst(lat, lon)
    if celsius is None:
        return None, message
    return {"surface_temperature": round(celsius_to_fahrenheit(celsius), 1)}, message


__all__ = ["fetch_lst", "fetch_surface_temperature"]
