"""Data models shared across the analysis pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

Coordinate = Tuple[float, float]


@dataclass(frozen=True)
class City:
    id: str
    name: str
    country: str
    coordinates: Coordinate  # (lat, lon)
    population: int
    average_temperature: float  # °F
    vegetation_coverage: float  # %
    elevation: float  # ft
    coastal_distance: float  # mi

    @property
    def lat(self) -> float:
        return self.coordinates[0]

    @property
    def lon(self) -> float:
        return self.coordinates[1]


@dataclass(frozen=True)
class AirQuality:
    aqi: int
    pm2_5: float  # µg/m³
    pm10: float  # µg/m³
    o3: float  # µg/m³
    no2: float  # µg/m³
    co: float  # µg/m³
    source: str = "live"


@dataclass(frozen=True)
class ClimateSnapshot:
    temperature: float  # °F
    humidity: float  # %
    pressure: float  # hPa
    wind_speed: float  # mph
    precipitation: float  # mm
    cloud_cover: float  # %
    uv_index: float
    solar_radiation: float  # W/m²
    dew_point: float  # °F
    visibility: float  # km
    feels_like: float  # °F
    air_quality: AirQuality
    timestamp: float
    source: str = "live"


@dataclass(frozen=True)
class EnvironmentalSnapshot:
    carbon_emissions: float
    energy_consumption: float
    population_density: float
    vegetation_index: float
    surface_temperature: float
    urban_heat_index: float
    air_pollution_level: float
    water_quality: float
    noise_level: float
    traffic_density: float
    green_space_coverage: float
    building_energy_efficiency: float
    vulnerable_populations: int
    climate: ClimateSnapshot
    provenance: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ZonePrediction:
    temperature_increase: float
    risk_score: int
    confidence: float


@dataclass(frozen=True)
class HeatZone:
    id: str
    name: str
    coordinates: Tuple[Coordinate, ...]
    temperature: int
    severity: str
    land_use: str
    vegetation_index: float
    building_density: float
    surface_albedo: float
    population_density: float
    prediction: ZonePrediction

    @property
    def center(self) -> Coordinate:
        lat = sum(point[0] for point in self.coordinates) / len(self.coordinates)
        lon = sum(point[1] for point in self.coordinates) / len(self.coordinates)
        return lat, lon


@dataclass(frozen=True)
class ActionImpact:
    temperature_reduction: int
    carbon_sequestration: int
    energy_savings: int
    air_quality_improvement: int


@dataclass(frozen=True)
class Implementation:
    cost: int
    timeframe: str
    difficulty: str


@dataclass(frozen=True)
class ActionPlan:
    id: str
    zone_id: str
    action_type: str
    location: Coordinate
    priority: str
    impact: ActionImpact
    implementation: Implementation


@dataclass(frozen=True)
class ClimateRecommendation:
    category: str
    priority: str
    title: str
    description: str
    estimated_cost: int
    carbon_reduction: int
    implementation_time: str
    stakeholders: Tuple[str, ...]
    success_metrics: Tuple[str, ...]


@dataclass(frozen=True)
class ClimatePrediction:
    year: int
    temperature_increase: float
    sea_level_rise: float
    extreme_weather_events: int
    air_quality_index: float
    energy_demand: int
    health_impacts: int


@dataclass(frozen=True)
class ClimateImpact:
    carbon_footprint: float
    energy_consumption: float
    health_risk_score: float
    economic_impact: float
    adaptation_urgency: str
    predicted_temperature_rise: float
    vulnerable_populations: int
    infrastructure_risk: int
    biodiversity_impact: float
    impact_score: float
    recommendations: Tuple[ClimateRecommendation, ...]
    future_predictions: Tuple[ClimatePrediction, ...]


@dataclass(frozen=True)
class TrainingReport:
    model: str
    samples: int
    epochs: int
    training_loss: float
    validation_score: float
    validation_mae: Optional[float]
    duration_seconds: float


@dataclass(frozen=True)
class CityAnalysis:
    city: City
    snapshot: EnvironmentalSnapshot
    zones: Tuple[HeatZone, ...]
    plans: Tuple[ActionPlan, ...]
    impact: ClimateImpact


__all__ = [
    "Coordinate",
    "City",
    "AirQuality",
    "ClimateSnapshot",
    "EnvironmentalSnapshot",
    "ZonePrediction",
    "HeatZone",
    "ActionImpact",
    "Implementation",
    "ActionPlan",
    "ClimateRecommendation",
    "ClimatePrediction",
    "ClimateImpact",
    "TrainingReport",
    "CityAnalysis",
]
