"""EPA Air Quality Index breakpoint interpolation."""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Tuple

from .scoring import round_half_up

Breakpoint = Tuple[float, float, int, int]

# Rows are (low concentration, high concentration, low AQI, high AQI).
# PM in µg/m³, gases in ppm.
BREAKPOINTS: Dict[str, Tuple[Breakpoint, ...]] = {
    "pm2_5": (
        (0.0, 12.0, 0, 50),
        (12.1, 35.4, 51, 100),
        (35.5, 55.4, 101, 150),
        (55.5, 150.4, 151, 200),
        (150.5, 250.4, 201, 300),
        (250.5, 500.4, 301, 500),
    ),
    "pm10": (
        (0, 54, 0, 50),
        (55, 154, 51, 100),
        (155, 254, 101, 150),
        (255, 354, 151, 200),
        (355, 424, 201, 300),
        (425, 604, 301, 500),
    ),
    "o3": (
        (0.0, 0.054, 0, 50),
        (0.055, 0.070, 51, 100),
        (0.071, 0.085, 101, 150),
        (0.086, 0.105, 151, 200),
        (0.106, 0.200, 201, 300),
        (0.201, 0.604, 301, 500),
    ),
    "no2": (
        (0.0, 0.053, 0, 50),
        (0.054, 0.100, 51, 100),
        (0.101, 0.360, 101, 150),
        (0.361, 0.649, 151, 200),
        (0.650, 1.249, 201, 300),
        (1.250, 2.049, 301, 500),
    ),
    "co": (
        (0.0, 4.4, 0, 50),
        (4.5, 9.4, 51, 100),
        (9.5, 12.4, 101, 150),
        (12.5, 15.4, 151, 200),
        (15.5, 30.4, 201, 300),
        (30.5, 50.4, 301, 500),
    ),
}


def pollutant_aqi(value: float, pollutant: str) -> int:
    """Return the sub-index for one pollutant concentration.

    Values that fall between two rows or outside the table return 0; the
    table gaps (e.g. PM2.5 12.0–12.1) are left as published.
    """

    table = BREAKPOINTS.get(pollutant)
    if table is None:
        raise KeyError(f"Unknown pollutant: {pollutant}")
    for low_conc, high_conc, low_aqi, high_aqi in table:
        if low_conc <= value <= high_conc:
            slope = (high_aqi - low_aqi) / (high_conc - low_conc)
            return int(round_half_up(slope * (value - low_conc) + low_aqi))
    return 0


def overall_aqi(concentrations: Mapping[str, Optional[float]]) -> int:
    """Worst pollutant governs; missing readings are skipped."""

    values = [
        pollutant_aqi(float(value), pollutant)
        for pollutant, value in concentrations.items()
        if value is not None and pollutant in BREAKPOINTS
    ]
    return max(values) if values else 0


__all__ = ["BREAKPOINTS", "pollutant_aqi", "overall_aqi"]
