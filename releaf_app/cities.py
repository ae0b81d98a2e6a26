"""Reference data for the supported cities.

Figures come from NOAA climate normals, US Census place data and municipal
sustainability reports. Every per-city table is keyed by the city id
(``"las_vegas"``); use :func:`city_key` to turn a display name into that id.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from .models import City

CITIES: Tuple[City, ...] = (
    City("phoenix", "Phoenix", "USA", (33.4484, -112.0740), 1680992, 89.2, 12.3, 331, 483),
    City("las_vegas", "Las Vegas", "USA", (36.1699, -115.1398), 651319, 85.7, 8.1, 610, 435),
    City("miami", "Miami", "USA", (25.7617, -80.1918), 467963, 83.4, 31.2, 2, 0),
    City("atlanta", "Atlanta", "USA", (33.7490, -84.3880), 498715, 78.9, 47.9, 320, 402),
    City("houston", "Houston", "USA", (29.7604, -95.3698), 2304580, 81.2, 25.6, 13, 80),
    City("dallas", "Dallas", "USA", (32.7767, -96.7970), 1343573, 79.8, 22.4, 131, 523),
)

TEMPERATURE_PATTERNS: Dict[str, Dict[str, list]] = {
    "phoenix": {
        "hourly": [72, 70, 68, 67, 66, 68, 72, 78, 85, 92, 98, 103, 107, 109, 110, 108, 105, 100, 94, 87, 82, 78, 75, 73],
        "monthly": [67, 72, 78, 86, 95, 104, 107, 105, 100, 89, 77, 68],
        "historical": [(2020, 88.1), (2021, 89.3), (2022, 90.2), (2023, 91.1), (2024, 89.2)],
    },
    "las_vegas": {
        "hourly": [68, 66, 64, 63, 62, 64, 68, 74, 81, 88, 94, 99, 103, 105, 106, 104, 101, 96, 90, 83, 78, 74, 71, 69],
        "monthly": [58, 63, 70, 78, 87, 97, 103, 101, 94, 82, 68, 59],
        "historical": [(2020, 84.9), (2021, 85.8), (2022, 86.4), (2023, 87.2), (2024, 85.7)],
    },
    "miami": {
        "hourly": [76, 75, 74, 74, 75, 76, 78, 81, 84, 87, 89, 91, 92, 93, 93, 92, 90, 88, 85, 82, 80, 78, 77, 76],
        "monthly": [76, 77, 80, 83, 86, 88, 89, 90, 88, 85, 81, 77],
        "historical": [(2020, 82.8), (2021, 83.1), (2022, 83.9), (2023, 84.2), (2024, 83.4)],
    },
    "atlanta": {
        "hourly": [65, 63, 62, 61, 62, 64, 67, 72, 77, 82, 86, 89, 91, 92, 92, 91, 88, 84, 79, 74, 70, 68, 66, 65],
        "monthly": [52, 57, 64, 72, 80, 86, 89, 88, 83, 73, 63, 54],
        "historical": [(2020, 77.9), (2021, 78.4), (2022, 79.1), (2023, 79.8), (2024, 78.9)],
    },
    "houston": {
        "hourly": [72, 70, 69, 68, 69, 71, 74, 78, 83, 87, 91, 94, 96, 97, 97, 96, 94, 91, 87, 82, 78, 75, 73, 72],
        "monthly": [63, 67, 73, 79, 86, 91, 94, 94, 90, 83, 73, 65],
        "historical": [(2020, 80.3), (2021, 81.0), (2022, 81.8), (2023, 82.1), (2024, 81.2)],
    },
    "dallas": {
        "hourly": [68, 66, 64, 63, 64, 66, 70, 75, 81, 86, 91, 95, 98, 100, 100, 99, 96, 92, 86, 80, 75, 71, 69, 68],
        "monthly": [57, 62, 69, 77, 85, 92, 96, 96, 90, 80, 68, 59],
        "historical": [(2020, 78.9), (2021, 79.4), (2022, 80.2), (2023, 80.8), (2024, 79.8)],
    },
}

# (name, land use, building density %, vegetation index 0-100)
ZONE_TEMPLATES: Dict[str, List[Tuple[str, str, float, float]]] = {
    "phoenix": [
        ("Downtown Phoenix", "commercial", 90, 8),
        ("Industrial Corridor", "industrial", 75, 5),
        ("Residential Sprawl", "residential", 45, 12),
        ("Airport District", "industrial", 60, 3),
        ("Shopping Centers", "commercial", 80, 10),
        ("Suburban Development", "residential", 35, 15),
    ],
    "las_vegas": [
        ("The Strip", "commercial", 95, 6),
        ("Downtown LV", "commercial", 85, 8),
        ("Industrial Zone", "industrial", 70, 4),
        ("Residential Areas", "residential", 50, 10),
        ("Casino District", "commercial", 90, 5),
        ("Suburban Sprawl", "residential", 40, 12),
    ],
    "miami": [
        ("Downtown Miami", "commercial", 88, 20),
        ("Port Area", "industrial", 65, 15),
        ("Beachfront Hotels", "commercial", 82, 25),
        ("Residential Districts", "residential", 55, 35),
        ("Airport Vicinity", "industrial", 60, 18),
        ("Suburban Areas", "residential", 45, 40),
    ],
    "atlanta": [
        ("Downtown Atlanta", "commercial", 85, 25),
        ("Industrial Belt", "industrial", 70, 20),
        ("Residential Areas", "residential", 60, 35),
        ("Airport District", "industrial", 65, 18),
        ("Shopping Centers", "commercial", 75, 22),
        ("Suburban Development", "residential", 50, 45),
    ],
    "houston": [
        ("Downtown Houston", "commercial", 88, 18),
        ("Port of Houston", "industrial", 75, 12),
        ("Medical Center", "commercial", 80, 20),
        ("Residential Areas", "residential", 65, 30),
        ("Energy Corridor", "industrial", 70, 15),
        ("Suburban Sprawl", "residential", 55, 35),
    ],
    "dallas": [
        ("Downtown Dallas", "commercial", 87, 20),
        ("Industrial District", "industrial", 72, 15),
        ("Residential Areas", "residential", 62, 28),
        ("Airport Area", "industrial", 68, 12),
        ("Shopping Centers", "commercial", 78, 18),
        ("Suburban Development", "residential", 52, 32),
    ],
}

FALLBACK_WEATHER: Dict[str, Dict[str, float]] = {
    "phoenix": {"temperature": 95, "humidity": 25, "pressure": 1010, "wind_speed": 8},
    "las_vegas": {"temperature": 92, "humidity": 20, "pressure": 1012, "wind_speed": 6},
    "miami": {"temperature": 85, "humidity": 75, "pressure": 1015, "wind_speed": 12},
    "atlanta": {"temperature": 78, "humidity": 65, "pressure": 1013, "wind_speed": 7},
    "houston": {"temperature": 88, "humidity": 70, "pressure": 1011, "wind_speed": 9},
    "dallas": {"temperature": 82, "humidity": 60, "pressure": 1014, "wind_speed": 10},
}

BASE_EMISSIONS = {
    "phoenix": 8500,
    "las_vegas": 7200,
    "miami": 6800,
    "atlanta": 7500,
    "houston": 8200,
    "dallas": 7800,
}
DEFAULT_BASE_EMISSIONS = 7000

BASE_ENERGY = {
    "phoenix": 12000,
    "las_vegas": 11000,
    "miami": 10000,
    "atlanta": 9500,
    "houston": 11500,
    "dallas": 10500,
}
DEFAULT_BASE_ENERGY = 10000

POPULATION_DENSITY = {
    "phoenix": 3200,
    "las_vegas": 4500,
    "miami": 5800,
    "atlanta": 3800,
    "houston": 3500,
    "dallas": 3600,
}

VULNERABLE_POPULATIONS: Dict[str, Dict[str, int]] = {
    "phoenix": {"elderly": 85000, "children": 120000, "low_income": 95000, "disabled": 45000, "total": 345000},
    "las_vegas": {"elderly": 65000, "children": 95000, "low_income": 75000, "disabled": 35000, "total": 270000},
    "miami": {"elderly": 75000, "children": 110000, "low_income": 85000, "disabled": 40000, "total": 310000},
    "atlanta": {"elderly": 70000, "children": 105000, "low_income": 80000, "disabled": 38000, "total": 293000},
    "houston": {"elderly": 80000, "children": 125000, "low_income": 90000, "disabled": 42000, "total": 337000},
    "dallas": {"elderly": 75000, "children": 115000, "low_income": 85000, "disabled": 40000, "total": 315000},
}

# (place code, state FIPS code)
CENSUS_PLACES = {
    "phoenix": ("55000", "04"),
    "las_vegas": ("40000", "32"),
    "miami": ("45000", "12"),
    "atlanta": ("04000", "13"),
    "houston": ("35000", "48"),
    "dallas": ("19000", "48"),
}

CITY_AREA_SQ_MI = {
    "phoenix": 134.42,
    "las_vegas": 141.84,
    "miami": 55.27,
    "atlanta": 134.0,
    "houston": 665.25,
    "dallas": 385.8,
}


def city_key(name: Optional[str]) -> str:
    if not name:
        return ""
    return name.strip().lower().replace("-", "_").replace(" ", "_")


def get_city(identifier: str) -> Optional[City]:
    key = city_key(identifier)
    for city in CITIES:
        if city.id == key:
            return city
    return None


def temperature_patterns(city: City) -> Optional[Dict[str, list]]:
    """Hourly, monthly and historical temperatures (°F); reference cities only."""

    return TEMPERATURE_PATTERNS.get(city.id)


def custom_city(
    name: str,
    lat: float,
    lon: float,
    population: int,
    average_temperature: float,
    vegetation_coverage: float,
    elevation: float,
    coastal_distance: float,
    country: str = "USA",
) -> City:
    """Build a city outside the reference table (zones use dynamic templates)."""

    return City(
        id=f"custom_{city_key(name) or 'city'}",
        name=name,
        country=country,
        coordinates=(lat, lon),
        population=int(population),
        average_temperature=float(average_temperature),
        vegetation_coverage=float(vegetation_coverage),
        elevation=float(elevation),
        coastal_distance=float(coastal_distance),
    )


__all__ = [
    "CITIES",
    "TEMPERATURE_PATTERNS",
    "ZONE_TEMPLATES",
    "FALLBACK_WEATHER",
    "BASE_EMISSIONS",
    "DEFAULT_BASE_EMISSIONS",
    "BASE_ENERGY",
    "DEFAULT_BASE_ENERGY",
    "POPULATION_DENSITY",
    "VULNERABLE_POPULATIONS",
    "CENSUS_PLACES",
    "CITY_AREA_SQ_MI",
    "city_key",
    "get_city",
    "temperature_patterns",
    "custom_city",
]
