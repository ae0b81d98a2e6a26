"""City-wide climate impact rollup, recommendations and decade projections."""

from __future__ import annotations

import logging
import math
import random
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from sklearn.neural_network import MLPRegressor

from .models import (
    City,
    ClimateImpact,
    ClimatePrediction,
    ClimateRecommendation,
    EnvironmentalSnapshot,
    HeatZone,
    TrainingReport,
)
from .predictors import LinearPredictor, NetworkPredictor, fit_model, jitter, model_seed
from .scoring import PRIORITY_ORDER, clamp_value, round_half_up, urgency_from_impact

logger = logging.getLogger(__name__)

BASELINE_TEMPERATURE = 75.0
CARBON_PER_CAPITA = 0.012
ENERGY_PER_CAPITA = 0.015
PROJECTION_STEP_YEARS = 5
PROJECTION_HORIZON_YEARS = 50

FEATURE_NAMES: Tuple[str, ...] = (
    "avg_zone_temperature",
    "zone_count",
    "critical_zones",
    "population",
    "vegetation_coverage",
    "coastal_distance",
    "elevation",
    "building_density",
    "impervious_surface",
    "energy_use",
    "carbon_footprint",
    "health_risk",
)

FALLBACK_WEIGHTS: Dict[str, float] = {
    "avg_zone_temperature": 0.25,
    "zone_count": 0.15,
    "critical_zones": 0.20,
    "population": 0.10,
    "vegetation_coverage": -0.15,
    "coastal_distance": -0.05,
    "elevation": -0.08,
    "building_density": 0.12,
    "impervious_surface": 0.18,
    "energy_use": 0.10,
    "carbon_footprint": 0.15,
    "health_risk": 0.25,
}

# High-impact urban, suburban, green, industrial, coastal. Columns follow
# FEATURE_NAMES, then the impact score.
TRAINING_PATTERNS: Tuple[Tuple[float, ...], ...] = (
    (95, 8, 3, 2000000, 15, 50, 100, 85, 80, 12000, 8500, 0.8, 0.9),
    (85, 5, 1, 800000, 35, 200, 300, 60, 55, 8000, 5500, 0.5, 0.6),
    (75, 3, 0, 400000, 65, 400, 500, 35, 30, 5000, 3200, 0.2, 0.3),
    (90, 6, 4, 1200000, 10, 150, 80, 75, 85, 15000, 12000, 0.9, 0.95),
    (82, 7, 2, 1500000, 25, 5, 10, 80, 70, 10000, 7500, 0.7, 0.8),
)
SAMPLES_PER_PATTERN = 100


def normalise_inputs(inputs: Dict[str, float]) -> Dict[str, float]:
    return {
        "avg_zone_temperature": inputs["avg_zone_temperature"] / 120,
        "zone_count": inputs["zone_count"] / 15,
        "critical_zones": inputs["critical_zones"] / 10,
        "population": inputs["population"] / 5000000,
        "vegetation_coverage": inputs["vegetation_coverage"] / 100,
        "coastal_distance": min(inputs["coastal_distance"] / 500, 1.0),
        "elevation": min(inputs["elevation"] / 1000, 1.0),
        "building_density": inputs["building_density"] / 100,
        "impervious_surface": inputs["impervious_surface"] / 100,
        "energy_use": inputs["energy_use"] / 20000,
        "carbon_footprint": inputs["carbon_footprint"] / 15000,
        "health_risk": inputs["health_risk"],
    }


def untrained_predictor() -> LinearPredictor:
    return LinearPredictor(FALLBACK_WEIGHTS, lower=0.0, upper=1.0)


def _recommendation(
    category: str,
    priority: str,
    title: str,
    description: str,
    cost: int,
    carbon: int,
    time: str,
    stakeholders: Sequence[str],
    metrics: Sequence[str],
) -> ClimateRecommendation:
    return ClimateRecommendation(
        category, priority, title, description, cost, carbon, time, tuple(stakeholders), tuple(metrics)
    )


CITY_RECOMMENDATIONS: Dict[str, Tuple[ClimateRecommendation, ...]] = {
    "phoenix": (
        _recommendation(
            "mitigation", "critical", "Phoenix Desert Heat Mitigation Program",
            "Deploy desert-adapted vegetation, extensive shade structures and cooling corridors "
            "built from native desert plants and new cooling technologies.",
            65000000, 30000, "8-15 months",
            ["Phoenix Parks Department", "Desert Botanical Garden", "Arizona State University"],
            ["Desert temperature reduction by 4-6°F", "30,000 tons CO2 sequestration/year",
             "Improved desert ecosystem health"],
        ),
        _recommendation(
            "adaptation", "critical", "Phoenix Heat Emergency Network",
            "Establish city-wide cooling centers, heat warning systems and emergency response "
            "protocols for extreme desert heat.",
            25000000, 8000, "4-8 months",
            ["Phoenix Fire Department", "Maricopa County Health", "Community Centers"],
            ["Reduced heat-related deaths by 40%", "24/7 cooling center availability", "Real-time heat alerts"],
        ),
        _recommendation(
            "resilience", "high", "Phoenix Smart Water Management",
            "Water recycling, drought-resistant landscaping and smart irrigation to keep the city "
            "cool under water scarcity.",
            45000000, 20000, "12-24 months",
            ["Phoenix Water Services", "SRP", "Landscape Architects"],
            ["40% reduction in water consumption", "20,000 tons CO2 reduction/year",
             "Sustainable desert landscaping"],
        ),
    ),
    "las_vegas": (
        _recommendation(
            "mitigation", "critical", "Las Vegas Strip Energy Efficiency Initiative",
            "Retrofit Strip buildings with efficient systems and smart lighting controls, and "
            "integrate renewable energy across the entertainment district.",
            85000000, 45000, "12-24 months",
            ["Casino Operators", "NV Energy", "Las Vegas Convention Authority"],
            ["50% reduction in Strip energy consumption", "45,000 tons CO2 reduction/year",
             "Enhanced visitor experience"],
        ),
        _recommendation(
            "adaptation", "critical", "Las Vegas Tourist Heat Protection",
            "Cooling stations, heat warnings and emergency medical response for visitors and "
            "outdoor events.",
            35000000, 12000, "6-12 months",
            ["Las Vegas Tourism Board", "Emergency Services", "Hotel Operators"],
            ["Reduced tourist heat incidents by 60%", "Enhanced tourist safety", "Improved visitor satisfaction"],
        ),
        _recommendation(
            "policy", "high", "Las Vegas Sustainable Tourism Policy",
            "Sustainability policy for the tourism industry, with green building standards and "
            "carbon-neutral event requirements.",
            20000000, 25000, "8-18 months",
            ["Las Vegas City Council", "Tourism Industry", "Environmental Groups"],
            ["Green tourism certification", "25,000 tons CO2 reduction/year", "Enhanced city reputation"],
        ),
    ),
    "miami": (
        _recommendation(
            "mitigation", "critical", "Miami Coastal Resilience Program",
            "Mangrove restoration, sea wall upgrades and storm surge protection along the coast.",
            120000000, 35000, "18-36 months",
            ["Miami-Dade County", "US Army Corps of Engineers", "Environmental Groups"],
            ["Enhanced coastal protection", "35,000 tons CO2 sequestration/year", "Improved storm resilience"],
        ),
        _recommendation(
            "adaptation", "critical", "Miami Sea Level Rise Adaptation",
            "Elevated infrastructure, flood protection systems and community relocation planning "
            "for rising seas.",
            95000000, 15000, "24-48 months",
            ["Miami City Government", "FEMA", "Community Organizations"],
            ["Protected infrastructure from flooding", "Enhanced community resilience",
             "Reduced flood damage costs"],
        ),
        _recommendation(
            "resilience", "high", "Miami Tropical Storm Preparedness",
            "Emergency shelters, evacuation protocols and post-storm recovery planning.",
            55000000, 18000, "12-24 months",
            ["Emergency Management", "Red Cross", "Community Centers"],
            ["Improved storm response times", "Enhanced evacuation efficiency", "Reduced storm damage"],
        ),
    ),
    "atlanta": (
        _recommendation(
            "mitigation", "critical", "Atlanta Urban Forest Initiative",
            "Grow the urban forest with native Georgia trees and green infrastructure.",
            75000000, 40000, "12-36 months",
            ["Atlanta Department of Parks", "Trees Atlanta", "Georgia Forestry Commission"],
            ["50% increase in tree canopy", "40,000 tons CO2 sequestration/year", "Improved air quality"],
        ),
        _recommendation(
            "adaptation", "high", "Atlanta Transportation Electrification",
            "Electric vehicle infrastructure, expanded transit and green transportation corridors "
            "across the metro area.",
            65000000, 30000, "18-36 months",
            ["MARTA", "Georgia Power", "Transportation Department"],
            ["30% reduction in transportation emissions", "30,000 tons CO2 reduction/year",
             "Improved air quality"],
        ),
        _recommendation(
            "policy", "high", "Atlanta Green Building Standards",
            "Green building codes, energy efficiency standards and sustainable development policy.",
            35000000, 25000, "12-24 months",
            ["Atlanta City Council", "Building Industry", "Environmental Groups"],
            ["Enhanced building efficiency", "25,000 tons CO2 reduction/year", "Improved indoor air quality"],
        ),
    ),
    "houston": (
        _recommendation(
            "mitigation", "critical", "Houston Energy Corridor Transformation",
            "Renewable energy systems and green building technology across the Energy Corridor.",
            95000000, 50000, "18-36 months",
            ["Energy Companies", "Houston City Government", "Technology Providers"],
            ["50% reduction in energy sector emissions", "50,000 tons CO2 reduction/year",
             "Enhanced energy security"],
        ),
        _recommendation(
            "adaptation", "critical", "Houston Flood Resilience Program",
            "Improved drainage, flood barriers and community flood preparedness.",
            110000000, 20000, "24-48 months",
            ["Harris County Flood Control", "FEMA", "Community Organizations"],
            ["Enhanced flood protection", "Reduced flood damage costs", "Improved community resilience"],
        ),
        _recommendation(
            "resilience", "high", "Houston Hurricane Preparedness",
            "Evacuation planning, emergency shelters and post-storm recovery protocols.",
            70000000, 15000, "12-24 months",
            ["Emergency Management", "Red Cross", "Community Centers"],
            ["Improved hurricane response", "Enhanced evacuation efficiency", "Reduced storm damage"],
        ),
    ),
    "dallas": (
        _recommendation(
            "mitigation", "critical", "Dallas Metroplex Green Infrastructure",
            "Urban forests, green roofs and sustainable transportation across the Dallas-Fort Worth "
            "metroplex.",
            85000000, 45000, "18-36 months",
            ["Dallas City Government", "DART", "Environmental Groups"],
            ["40% increase in green space", "45,000 tons CO2 sequestration/year", "Improved air quality"],
        ),
        _recommendation(
            "adaptation", "high", "Dallas Smart City Technology",
            "Intelligent traffic management, energy monitoring and environmental sensors.",
            60000000, 30000, "12-24 months",
            ["Dallas Innovation Office", "Technology Companies", "Utility Providers"],
            ["30% reduction in traffic emissions", "30,000 tons CO2 reduction/year", "Enhanced city efficiency"],
        ),
        _recommendation(
            "policy", "high", "Dallas Climate Action Plan",
            "A metroplex climate action plan with carbon neutrality goals and green job creation.",
            40000000, 35000, "12-36 months",
            ["Dallas City Council", "Business Community", "Environmental Groups"],
            ["Carbon neutrality progress", "35,000 tons CO2 reduction/year", "Green job creation"],
        ),
    ),
}


def dynamic_recommendations(city: City) -> List[ClimateRecommendation]:
    """Threshold-driven recommendations for cities outside the catalogue."""

    scale = city.population / 1000000
    recommendations = []

    if city.average_temperature > 85:
        excess = city.average_temperature - BASELINE_TEMPERATURE
        carbon = round_half_up(30000 * excess / 20)
        recommendations.append(
            _recommendation(
                "mitigation", "critical", f"{city.name} Extreme Heat Mitigation",
                f"Cooling infrastructure, heat warning systems and community cooling centers for {city.name}.",
                round_half_up(60000000 * scale), carbon, "8-15 months",
                [f"{city.name} City Government", "Emergency Services", "Healthcare Providers"],
                [f"Temperature reduction by {round_half_up(4 + excess / 5)}°F",
                 f"{carbon} tons CO2 reduction/year", "Improved public health"],
            )
        )

    if city.coastal_distance < 100:
        carbon = round_half_up(25000 * (100 - city.coastal_distance) / 100)
        recommendations.append(
            _recommendation(
                "adaptation", "critical", f"{city.name} Coastal Climate Adaptation",
                f"Sea level rise protection, storm surge barriers and coastal ecosystem restoration for {city.name}.",
                round_half_up(100000000 * scale), carbon, "18-36 months",
                [f"{city.name} Coastal Authority", "Environmental Agencies", "Community Organizations"],
                ["Enhanced coastal protection", f"{carbon} tons CO2 sequestration/year", "Improved storm resilience"],
            )
        )

    if city.vegetation_coverage < 30:
        shortfall = (30 - city.vegetation_coverage) / 30
        carbon = round_half_up(20000 * shortfall)
        recommendations.append(
            _recommendation(
                "mitigation", "high", f"{city.name} Urban Forest Expansion",
                f"Native trees, green corridors and community tree planting across {city.name}.",
                round_half_up(50000000 * scale), carbon, "12-36 months",
                [f"{city.name} Parks Department", "Environmental Groups", "Community Organizations"],
                [f"{round_half_up(40 * shortfall)}% increase in tree canopy",
                 f"{carbon} tons CO2 sequestration/year", "Improved air quality"],
            )
        )

    return recommendations


def recommendations_for(city: City, impact_score: float) -> List[ClimateRecommendation]:
    """Catalogue (or dynamic) entries plus impact-triggered ones, by priority."""

    scale = city.population / 1000000
    recommendations = list(CITY_RECOMMENDATIONS.get(city.id, ())) or dynamic_recommendations(city)

    if impact_score > 0.7:
        carbon = round_half_up(25000 * impact_score)
        recommendations.append(
            _recommendation(
                "mitigation", "critical", f"{city.name} Emergency Climate Response",
                f"Immediate heat mitigation, flood protection and community resilience programs for {city.name}.",
                round_half_up(50000000 * scale), carbon, "6-12 months",
                [f"{city.name} City Government", "Emergency Services", "Community Organizations"],
                [f"Temperature reduction by {round_half_up(3 + impact_score * 2)}°F",
                 f"Carbon sequestration of {carbon} tons/year", "Improved community resilience"],
            )
        )

    if impact_score > 0.4:
        carbon = round_half_up(40000 * impact_score)
        recommendations.append(
            _recommendation(
                "resilience", "high", f"{city.name} Smart Infrastructure Modernization",
                f"Energy monitoring, environmental sensors and adaptive systems for {city.name}.",
                round_half_up(75000000 * scale), carbon, "12-24 months",
                [f"{city.name} Innovation Office", "Technology Providers", "Utility Companies"],
                [f"{round_half_up(30 * impact_score)}% reduction in energy demand",
                 f"{carbon} tons CO2 reduction/year", "Enhanced city efficiency"],
            )
        )

    bare = 1 - city.vegetation_coverage / 100
    carbon = round_half_up(15000 * bare)
    recommendations.append(
        _recommendation(
            "mitigation", "high" if impact_score > 0.5 else "medium", f"{city.name} Urban Greening Program",
            f"Native vegetation, green infrastructure and community gardens across {city.name}.",
            round_half_up(10000000 * scale), carbon, "12-36 months",
            [f"{city.name} Parks Department", "Environmental Groups", "Community Organizations"],
            [f"{round_half_up(20 * bare)}% increase in green space",
             f"{carbon} tons CO2 sequestration/year", "Improved biodiversity"],
        )
    )

    # sorted() is stable: ties keep catalogue order.
    return sorted(recommendations, key=lambda rec: PRIORITY_ORDER[rec.priority], reverse=True)


def project_climate(city: City, avg_zone_temperature: float, current_year: int) -> List[ClimatePrediction]:
    """Projections every five years from ``current_year + 5`` to ``+ 50``."""

    deviation = avg_zone_temperature - BASELINE_TEMPERATURE
    coastal = city.coastal_distance < 100
    predictions = []
    for years in range(PROJECTION_STEP_YEARS, PROJECTION_HORIZON_YEARS + 1, PROJECTION_STEP_YEARS):
        predictions.append(
            ClimatePrediction(
                year=current_year + years,
                temperature_increase=round_half_up(2.5 + years * 0.1 + deviation * 0.05, 1),
                sea_level_rise=round_half_up(0.1 + years * 0.02, 1) if coastal else 0.0,
                extreme_weather_events=round_half_up(5 + years * 0.5 + deviation * 0.1),
                air_quality_index=min(5.0, round_half_up(2 + years * 0.1 + deviation * 0.02, 1)),
                energy_demand=round_half_up(8000 + years * 200 + deviation * 50),
                health_impacts=round_half_up(deviation * 0.5 + years * 0.2),
            )
        )
    return predictions


class ClimateImpactAnalyzer:
    name = "climate_impact"

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        current_year: Callable[[], int] = lambda: date.today().year,
    ) -> None:
        self.rng = rng or random.Random()
        self.current_year = current_year
        self.predictor = untrained_predictor()
        self.report: Optional[TrainingReport] = None
        self._training_seed = model_seed(self.rng)

    @property
    def is_trained(self) -> bool:
        return self.predictor.is_trained

    def training_data(self, rng: Optional[random.Random] = None) -> Tuple[np.ndarray, np.ndarray]:
        rng = rng or random.Random(self._training_seed)
        rows, labels = [], []
        for pattern in TRAINING_PATTERNS:
            temp, zones, critical, population, veg, coast, elev, bd, imperv, energy, carbon, health, impact = pattern
            for _ in range(SAMPLES_PER_PATTERN):
                zone_count = clamp_value(zones + math.floor((rng.random() - 0.5) * 4), 1, 15)
                sample = {
                    "avg_zone_temperature": jitter(rng, temp, 7.5, 65, 110),
                    "zone_count": zone_count,
                    "critical_zones": clamp_value(critical + math.floor((rng.random() - 0.5) * 2), 0, zone_count),
                    "population": jitter(rng, population, 250000, 100000, 5000000),
                    "vegetation_coverage": jitter(rng, veg, 10, 5, 100),
                    "coastal_distance": jitter(rng, coast, 50, 0, 1000),
                    "elevation": jitter(rng, elev, 100, 0, 2000),
                    "building_density": jitter(rng, bd, 7.5, 20, 100),
                    "impervious_surface": jitter(rng, imperv, 7.5, 10, 100),
                    "energy_use": jitter(rng, energy, 1500, 3000, 20000),
                    "carbon_footprint": jitter(rng, carbon, 1000, 2000, 15000),
                    "health_risk": jitter(rng, health, 0.1, 0, 1),
                }
                features = normalise_inputs(sample)
                rows.append([features[name] for name in FEATURE_NAMES])
                labels.append(jitter(rng, impact, 0.1, 0, 1))
        return np.asarray(rows, dtype=float), np.asarray(labels, dtype=float)

    def fit(self) -> Tuple[NetworkPredictor, TrainingReport]:
        features, labels = self.training_data()
        model = MLPRegressor(
            hidden_layer_sizes=(64, 32, 16, 8),
            activation="relu",
            solver="adam",
            learning_rate_init=0.001,
            max_iter=150,
            batch_size=32,
            random_state=self._training_seed,
        )
        report = fit_model(self.name, model, features, labels, self._training_seed, target_scale=1.0)
        return NetworkPredictor(model, FEATURE_NAMES, lower=0.0, upper=1.0), report

    def activate(self, predictor: NetworkPredictor, report: Optional[TrainingReport] = None) -> None:
        self.predictor = predictor
        self.report = report

    def _inputs(
        self, zones: Sequence[HeatZone], city: City, snapshot: Optional[EnvironmentalSnapshot], avg_temp: float
    ) -> Dict[str, float]:
        vegetation = snapshot.green_space_coverage if snapshot is not None else city.vegetation_coverage
        carbon = snapshot.carbon_emissions if snapshot is not None else city.population * CARBON_PER_CAPITA
        return {
            "avg_zone_temperature": avg_temp,
            "zone_count": len(zones),
            "critical_zones": sum(1 for zone in zones if zone.severity == "critical"),
            "population": city.population,
            "vegetation_coverage": vegetation,
            "coastal_distance": city.coastal_distance,
            "elevation": city.elevation,
            "building_density": snapshot.traffic_density * 0.8 if snapshot is not None else 70.0,
            "impervious_surface": 100 - vegetation,
            "energy_use": snapshot.energy_consumption if snapshot is not None else city.population * ENERGY_PER_CAPITA,
            "carbon_footprint": carbon,
            "health_risk": self._health_risk(snapshot, avg_temp, carbon, vegetation),
        }

    @staticmethod
    def _health_risk(
        snapshot: Optional[EnvironmentalSnapshot], temperature: float, carbon: float, vegetation: float
    ) -> float:
        if snapshot is not None:
            return clamp_value(snapshot.air_pollution_level / 100, 0.0, 1.0)
        traffic = 50.0
        blend = (
            0.4 * clamp_value((temperature - 70) / 30, 0.0, 1.0)
            + 0.25 * min(1.0, carbon / 15000)
            + 0.2 * (1 - vegetation / 100)
            + 0.15 * traffic / 100
        )
        return clamp_value(blend, 0.0, 1.0)

    def analyze(
        self, zones: Sequence[HeatZone], city: City, snapshot: Optional[EnvironmentalSnapshot] = None
    ) -> ClimateImpact:
        if zones:
            avg_temp = sum(zone.temperature for zone in zones) / len(zones)
        else:
            avg_temp = city.average_temperature

        inputs = self._inputs(zones, city, snapshot, avg_temp)
        impact_score = clamp_value(self.predictor.predict(normalise_inputs(inputs)), 0.0, 1.0)

        if snapshot is not None:
            vulnerable = snapshot.vulnerable_populations
            infrastructure = round_half_up(snapshot.urban_heat_index)
        else:
            vulnerable = round_half_up(city.population * (0.1 + impact_score * 0.2))
            infrastructure = round_half_up(impact_score * 100)

        return ClimateImpact(
            carbon_footprint=inputs["carbon_footprint"],
            energy_consumption=inputs["energy_use"],
            health_risk_score=round(inputs["health_risk"], 3),
            economic_impact=impact_score * city.population * 0.001,
            adaptation_urgency=urgency_from_impact(impact_score),
            predicted_temperature_rise=round(
                clamp_value(avg_temp - BASELINE_TEMPERATURE + impact_score * 5, 0.0, 25.0), 1
            ),
            vulnerable_populations=int(vulnerable),
            infrastructure_risk=int(clamp_value(infrastructure, 10, 90)),
            biodiversity_impact=clamp_value(1 - inputs["vegetation_coverage"] / 100, 0.0, 1.0),
            impact_score=round(impact_score, 4),
            recommendations=tuple(recommendations_for(city, impact_score)),
            future_predictions=tuple(project_climate(city, avg_temp, self.current_year())),
        )


__all__ = [
    "FEATURE_NAMES",
    "FALLBACK_WEIGHTS",
    "CITY_RECOMMENDATIONS",
    "normalise_inputs",
    "untrained_predictor",
    "dynamic_recommendations",
    "recommendations_for",
    "project_climate",
    "ClimateImpactAnalyzer",
]
