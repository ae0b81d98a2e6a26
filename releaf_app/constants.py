"""Shared constants and environment-driven settings for the Releaf app."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


ROOT_DIR = Path(__file__).resolve().parent.parent

CACHE_TTL_SECONDS = _env_float("RELEAF_CACHE_TTL_SECONDS", 120.0)
FETCH_TIMEOUT_SECONDS = _env_float("RELEAF_FETCH_TIMEOUT_SECONDS", 10.0)
TRAINING_TIMEOUT_SECONDS = _env_float("RELEAF_TRAINING_TIMEOUT_SECONDS", 30.0)

CENSUS_API_KEY: Optional[str] = os.getenv("CENSUS_API_KEY") or None
GEE_CREDENTIALS_PATH = Path(
    os.getenv("RELEAF_GEE_CREDENTIALS", str(ROOT_DIR / "credentials.json"))
)

SEVERITY_TIERS = ("critical", "high", "moderate", "low")

ACTION_TYPES = (
    "tree_planting",
    "green_roof",
    "cool_pavement",
    "urban_park",
    "shade_structure",
    "water_feature",
    "smart_irrigation",
    "cooling_center",
)

ACTION_DISPLAY = {
    "tree_planting": "Tree planting",
    "green_roof": "Green roof",
    "cool_pavement": "Cool pavement",
    "urban_park": "Urban park",
    "shade_structure": "Shade structure",
    "water_feature": "Water feature",
    "smart_irrigation": "Smart irrigation",
    "cooling_center": "Cooling center",
}

# Values used when neither a live reading nor a calculator can fill a field.
CLIMATE_FALLBACKS: Dict[str, float] = {
    "temperature": 75.0,
    "humidity": 60.0,
    "pressure": 1013.0,
    "wind_speed": 5.0,
    "uv_index": 5.0,
    "solar_radiation": 125.0,
    "precipitation": 0.0,
    "cloud_cover": 30.0,
    "visibility": 10.0,
    "dew_point": 60.0,
    "feels_like": 75.0,
}

AIR_QUALITY_FALLBACKS: Dict[str, float] = {
    "pm2_5": 15.0,
    "pm10": 25.0,
    "o3": 30.0,
    "no2": 10.0,
    "co": 200.0,
}

ENVIRONMENTAL_FALLBACKS: Dict[str, float] = {
    "carbon_emissions": 7000.0,
    "energy_consumption": 10000.0,
    "population_density": 4000.0,
    "vegetation_index": 0.4,
    "surface_temperature": 75.0,
    "urban_heat_index": 78.0,
    "air_pollution_level": 50.0,
    "water_quality": 75.0,
    "noise_level": 50.0,
    "traffic_density": 50.0,
    "green_space_coverage": 25.0,
    "building_energy_efficiency": 80.0,
    "vulnerable_populations": 288000.0,
}

SEVERITY_COLORS = {
    "critical": [220, 38, 38],
    "high": [249, 115, 22],
    "moderate": [250, 204, 21],
    "low": [34, 197, 94],
}

PRIORITY_COLORS = {
    "high": [127, 29, 29],
    "medium": [30, 64, 175],
    "low": [21, 128, 61],
}

DEFAULT_HEATMAP_COLORS = [
    [15, 118, 110],
    [125, 211, 252],
    [253, 224, 71],
    [249, 115, 22],
    [220, 38, 38],
]


__all__ = [
    "ROOT_DIR",
    "CACHE_TTL_SECONDS",
    "FETCH_TIMEOUT_SECONDS",
    "TRAINING_TIMEOUT_SECONDS",
    "CENSUS_API_KEY",
    "GEE_CREDENTIALS_PATH",
    "SEVERITY_TIERS",
    "ACTION_TYPES",
    "ACTION_DISPLAY",
    "CLIMATE_FALLBACKS",
    "AIR_QUALITY_FALLBACKS",
    "ENVIRONMENTAL_FALLBACKS",
    "SEVERITY_COLORS",
    "PRIORITY_COLORS",
    "DEFAULT_HEATMAP_COLORS",
]
