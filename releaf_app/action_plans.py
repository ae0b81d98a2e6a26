"""Mitigation action plans for scored heat zones.

Each zone gets ``action_quota(severity)`` plans, never repeating an action
type within one run. Candidates come from a ranker: the rule list until the
classifier is trained, then the top four classifier probabilities.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from sklearn.neural_network import MLPClassifier

from .constants import ACTION_TYPES
from .models import (
    ActionImpact,
    ActionPlan,
    City,
    EnvironmentalSnapshot,
    HeatZone,
    Implementation,
    TrainingReport,
)
from .predictors import fit_model, jitter, model_seed
from .scoring import action_quota, aqi_category, priority_from_severity, round_half_up, severity_weight

logger = logging.getLogger(__name__)

CANDIDATE_LIMIT = 4
LOCATION_JITTER_DEGREES = 0.003

BASE_IMPACTS: Dict[str, Tuple[float, float, float, float]] = {
    # temperature reduction, carbon sequestration, energy savings, air quality
    "tree_planting": (2.5, 48, 12, 15),
    "green_roof": (1.8, 22, 18, 8),
    "cool_pavement": (3.2, 5, 25, 3),
    "urban_park": (4.1, 85, 20, 28),
    "shade_structure": (5.2, 2, 30, 5),
    "water_feature": (2.8, 8, 15, 12),
    "smart_irrigation": (1.5, 15, 8, 10),
    "cooling_center": (8.5, 0, 45, 20),
}

BASE_COSTS = {
    "tree_planting": 2500,
    "green_roof": 12000,
    "cool_pavement": 8500,
    "urban_park": 45000,
    "shade_structure": 15000,
    "water_feature": 18000,
    "smart_irrigation": 8000,
    "cooling_center": 25000,
}

BASE_TIMEFRAMES = {
    "tree_planting": "2-4 weeks",
    "green_roof": "6-10 weeks",
    "cool_pavement": "1-3 weeks",
    "urban_park": "12-18 weeks",
    "shade_structure": "4-6 weeks",
    "water_feature": "8-12 weeks",
    "smart_irrigation": "3-5 weeks",
    "cooling_center": "2-4 weeks",
}

DIFFICULTIES = {
    "tree_planting": "easy",
    "green_roof": "moderate",
    "cool_pavement": "moderate",
    "urban_park": "complex",
    "shade_structure": "moderate",
    "water_feature": "moderate",
    "smart_irrigation": "easy",
    "cooling_center": "moderate",
}

LAND_USE_FALLBACKS = {
    "commercial": ("shade_structure", "cool_pavement", "green_roof"),
    "residential": ("tree_planting", "urban_park", "water_feature"),
    "industrial": ("smart_irrigation", "cool_pavement", "green_roof"),
}
DEFAULT_LAND_USE_FALLBACK = ("tree_planting", "urban_park", "water_feature")

CLASSIFIER_FEATURES: Tuple[str, ...] = (
    "building_density",
    "vegetation_index",
    "surface_albedo",
    "severity",
    "city_temperature",
    "city_vegetation",
    "city_population",
    "temperature",
    "humidity",
    "aqi_category",
    "carbon_emissions",
    "energy_consumption",
)

# bd, veg, albedo, severity, city temp, city veg, city pop, weather temp,
# humidity, expected actions.
TRAINING_PATTERNS: Tuple[Tuple[Any, ...], ...] = (
    (85, 15, 20, "critical", 90, 20, 1000000, 85, 60, ("cool_pavement", "green_roof", "shade_structure")),
    (90, 10, 18, "critical", 95, 15, 1500000, 90, 55, ("cool_pavement", "shade_structure", "cooling_center")),
    (80, 20, 25, "high", 85, 25, 800000, 82, 65, ("green_roof", "tree_planting", "water_feature")),
    (75, 8, 15, "critical", 88, 12, 600000, 85, 50, ("cool_pavement", "tree_planting", "smart_irrigation")),
    (70, 12, 18, "high", 82, 18, 500000, 78, 55, ("tree_planting", "urban_park", "water_feature")),
    (65, 15, 20, "moderate", 78, 22, 400000, 75, 60, ("tree_planting", "green_roof", "smart_irrigation")),
    (60, 35, 30, "high", 85, 30, 700000, 82, 70, ("tree_planting", "urban_park", "water_feature")),
    (55, 40, 32, "moderate", 80, 35, 600000, 78, 75, ("urban_park", "tree_planting", "smart_irrigation")),
    (50, 45, 35, "low", 75, 40, 500000, 72, 80, ("tree_planting", "water_feature")),
    (35, 60, 40, "low", 70, 50, 300000, 68, 85, ("urban_park", "water_feature")),
    (30, 65, 42, "low", 68, 55, 250000, 65, 90, ("tree_planting", "smart_irrigation")),
    (25, 70, 45, "low", 65, 60, 200000, 62, 95, ("urban_park", "water_feature")),
    (75, 25, 30, "moderate", 82, 30, 800000, 80, 75, ("tree_planting", "urban_park", "water_feature")),
    (80, 20, 28, "high", 85, 25, 900000, 83, 70, ("green_roof", "tree_planting", "shade_structure")),
    (70, 30, 32, "moderate", 78, 35, 700000, 76, 80, ("urban_park", "tree_planting", "smart_irrigation")),
    (60, 35, 35, "moderate", 75, 40, 500000, 72, 60, ("tree_planting", "urban_park", "water_feature")),
    (65, 30, 32, "high", 78, 35, 600000, 75, 55, ("green_roof", "tree_planting", "smart_irrigation")),
    (55, 40, 38, "low", 72, 45, 400000, 68, 65, ("urban_park", "water_feature")),
)
SAMPLES_PER_PATTERN = 30


@dataclass(frozen=True)
class ActionConditions:
    """Weather and environmental readings the rules and multipliers consult.

    ``live`` is False when no snapshot was available; weather and
    environmental multipliers are then neutral.
    """

    temperature: float
    humidity: float
    aqi_category: int
    carbon_emissions: float
    energy_consumption: float
    air_pollution_category: int
    live: bool

    @classmethod
    def from_snapshot(cls, city: City, snapshot: Optional[EnvironmentalSnapshot]) -> "ActionConditions":
        if snapshot is None:
            return cls(city.average_temperature, 60.0, 3, 0.0, 0.0, 3, False)
        climate = snapshot.climate
        return cls(
            temperature=climate.temperature,
            humidity=climate.humidity,
            aqi_category=aqi_category(climate.air_quality.aqi),
            carbon_emissions=snapshot.carbon_emissions,
            energy_consumption=snapshot.energy_consumption,
            air_pollution_category=aqi_category(snapshot.air_pollution_level),
            live=True,
        )


def _unique(actions: Sequence[str]) -> List[str]:
    seen, ordered = set(), []
    for action in actions:
        if action not in seen:
            seen.add(action)
            ordered.append(action)
    return ordered


def classifier_features(zone: HeatZone, city: City, conditions: ActionConditions) -> Dict[str, float]:
    return {
        "building_density": zone.building_density / 100,
        "vegetation_index": zone.vegetation_index / 100,
        "surface_albedo": zone.surface_albedo / 50,
        "severity": severity_weight(zone.severity),
        "city_temperature": city.average_temperature / 100,
        "city_vegetation": city.vegetation_coverage / 100,
        "city_population": city.population / 2000000,
        "temperature": conditions.temperature / 120,
        "humidity": conditions.humidity / 100,
        "aqi_category": conditions.aqi_category / 5,
        "carbon_emissions": conditions.carbon_emissions / 15000,
        "energy_consumption": conditions.energy_consumption / 20000,
    }


class RuleRanker:
    """Threshold rules on the zone and current conditions, plus city bonuses."""

    is_trained = False

    def rank(self, zone: HeatZone, city: City, conditions: ActionConditions) -> List[str]:
        temp = conditions.temperature
        humidity = conditions.humidity
        carbon = conditions.carbon_emissions
        actions: List[str] = []

        if zone.vegetation_index < 15:
            actions.append("tree_planting")
        if zone.land_use == "commercial" or temp > 85:
            actions.append("green_roof")
        if zone.surface_albedo < 25 or temp > 90:
            actions.append("cool_pavement")
        if zone.building_density > 70 and zone.vegetation_index < 25:
            actions.append("urban_park")
        if temp > 95 and conditions.aqi_category > 3:
            actions.append("shade_structure")
        if humidity > 80 or carbon > 8000:
            actions.append("water_feature")
        if zone.vegetation_index < 20 and temp > 80:
            actions.append("smart_irrigation")
        if temp > 100 or zone.severity == "critical":
            actions.append("cooling_center")

        if city.id == "phoenix" and temp > 95:
            actions += ["cool_pavement", "shade_structure"]
        if city.id == "miami" and humidity > 80:
            actions += ["green_roof", "water_feature"]
        if city.id == "las_vegas" and zone.land_use == "commercial":
            actions += ["green_roof", "shade_structure"]
        if city.id == "houston" and carbon > 8000:
            actions += ["smart_irrigation", "water_feature"]

        return _unique(actions)[:CANDIDATE_LIMIT]


@dataclass(frozen=True)
class ClassifierRanker:
    """Top action types by multi-label classifier probability."""

    model: Any

    is_trained = True

    def rank(self, zone: HeatZone, city: City, conditions: ActionConditions) -> List[str]:
        features = classifier_features(zone, city, conditions)
        row = np.array([[features[name] for name in CLASSIFIER_FEATURES]], dtype=float)
        probabilities = self.model.predict_proba(row)[0]
        order = sorted(range(len(ACTION_TYPES)), key=lambda i: probabilities[i], reverse=True)
        return [ACTION_TYPES[i] for i in order[:CANDIDATE_LIMIT]]


def fallback_actions(zone: HeatZone, conditions: ActionConditions) -> List[str]:
    actions = list(LAND_USE_FALLBACKS.get(zone.land_use, DEFAULT_LAND_USE_FALLBACK))
    if conditions.temperature > 95:
        actions += ["cooling_center", "shade_structure"]
    if conditions.humidity > 80:
        actions += ["water_feature", "smart_irrigation"]
    if conditions.carbon_emissions > 8000:
        actions += ["tree_planting", "urban_park"]
    return actions


def weather_multiplier(action: str, conditions: ActionConditions) -> float:
    if not conditions.live:
        return 1.0
    temp, humidity = conditions.temperature, conditions.humidity
    if action == "cool_pavement":
        return 1.6 if temp > 90 else 1.4 if temp > 85 else 1.2 if temp > 80 else 1.0
    if action == "green_roof":
        return 1.4 if humidity > 80 else 1.2 if humidity > 70 else 1.0
    if action == "tree_planting":
        return 1.3 if temp > 85 else 1.1 if temp > 75 else 1.0
    if action == "urban_park":
        return 1.5 if temp > 85 else 1.2 if temp > 75 else 1.0
    if action == "shade_structure":
        return 1.8 if temp > 95 else 1.5 if temp > 90 else 1.2 if temp > 85 else 1.0
    if action == "water_feature":
        return 1.4 if temp > 85 else 1.2 if humidity > 80 else 1.0
    if action == "smart_irrigation":
        return 1.3 if temp > 80 else 1.2 if humidity < 50 else 1.0
    if action == "cooling_center":
        return 2.0 if temp > 100 else 1.6 if temp > 95 else 1.3 if temp > 90 else 1.0
    return 1.0


def environmental_multiplier(action: str, conditions: ActionConditions) -> float:
    if not conditions.live:
        return 1.0
    carbon, energy = conditions.carbon_emissions, conditions.energy_consumption
    pollution = conditions.air_pollution_category
    if action in ("tree_planting", "urban_park"):
        return 1.4 if carbon > 8000 else 1.2 if carbon > 6000 else 1.0
    if action == "green_roof":
        return 1.3 if energy > 12000 else 1.1 if energy > 8000 else 1.0
    if action == "cool_pavement":
        return 1.5 if pollution > 4 else 1.2 if pollution > 3 else 1.0
    if action == "smart_irrigation":
        return 1.3 if energy > 10000 else 1.1 if energy > 7000 else 1.0
    return 1.0


def city_multipliers(city: City, conditions: ActionConditions) -> Dict[str, float]:
    temp = conditions.temperature
    carbon = conditions.carbon_emissions
    tables = {
        "phoenix": {
            "tree_planting": 1.6 if temp > 95 else 1.4,
            "green_roof": 1.2,
            "cool_pavement": 1.8 if temp > 95 else 1.6,
            "urban_park": 1.3,
            "shade_structure": 1.7 if temp > 95 else 1.4,
            "water_feature": 1.1,
            "smart_irrigation": 1.3,
            "cooling_center": 2.0 if temp > 100 else 1.5,
        },
        "las_vegas": {
            "tree_planting": 1.3,
            "green_roof": 1.5,
            "cool_pavement": 1.6 if temp > 90 else 1.4,
            "urban_park": 1.2,
            "shade_structure": 1.6 if temp > 90 else 1.3,
            "water_feature": 1.1,
            "smart_irrigation": 1.2,
            "cooling_center": 1.8 if temp > 95 else 1.4,
        },
        "miami": {
            "tree_planting": 1.5,
            "green_roof": 1.1,
            "cool_pavement": 1.3,
            "urban_park": 1.4,
            "shade_structure": 1.2,
            "water_feature": 1.4,
            "smart_irrigation": 1.1,
            "cooling_center": 1.6 if temp > 90 else 1.3,
        },
        "atlanta": {
            "tree_planting": 1.6,
            "green_roof": 1.3,
            "cool_pavement": 1.2,
            "urban_park": 1.4,
            "shade_structure": 1.2,
            "water_feature": 1.3,
            "smart_irrigation": 1.2,
            "cooling_center": 1.5 if temp > 90 else 1.2,
        },
        "houston": {
            "tree_planting": 1.5 if carbon > 8000 else 1.3,
            "green_roof": 1.5,
            "cool_pavement": 1.3,
            "urban_park": 1.4,
            "shade_structure": 1.3,
            "water_feature": 1.4,
            "smart_irrigation": 1.3,
            "cooling_center": 1.7 if temp > 90 else 1.4,
        },
        "dallas": {
            "tree_planting": 1.2,
            "green_roof": 1.3,
            "cool_pavement": 1.4,
            "urban_park": 1.2,
            "shade_structure": 1.2,
            "water_feature": 1.2,
            "smart_irrigation": 1.2,
            "cooling_center": 1.5 if temp > 90 else 1.2,
        },
    }
    return tables.get(city.id, {action: 1.2 for action in ACTION_TYPES})


def weather_cost_multiplier(action: str, conditions: ActionConditions) -> float:
    if not conditions.live:
        return 1.0
    temp, humidity = conditions.temperature, conditions.humidity
    if action == "cool_pavement":
        return 1.4 if temp > 90 else 1.3 if temp > 85 else 1.2 if temp > 80 else 1.0
    if action == "green_roof":
        return 1.3 if humidity > 80 else 1.2 if humidity > 70 else 1.0
    if action == "tree_planting":
        return 1.2 if temp > 85 else 1.1 if temp > 75 else 1.0
    if action == "urban_park":
        return 1.3 if temp > 85 else 1.2 if temp > 75 else 1.0
    if action == "shade_structure":
        return 1.4 if temp > 95 else 1.3 if temp > 90 else 1.2 if temp > 85 else 1.0
    if action == "water_feature":
        return 1.3 if temp > 85 else 1.2 if humidity > 80 else 1.0
    if action == "smart_irrigation":
        return 1.2 if temp > 80 else 1.1 if humidity < 50 else 1.0
    if action == "cooling_center":
        return 1.5 if temp > 100 else 1.3 if temp > 95 else 1.2 if temp > 90 else 1.0
    return 1.0


def environmental_cost_multiplier(action: str, conditions: ActionConditions) -> float:
    if not conditions.live:
        return 1.0
    carbon, energy = conditions.carbon_emissions, conditions.energy_consumption
    pollution = conditions.air_pollution_category
    if action in ("tree_planting", "urban_park"):
        return 1.3 if carbon > 8000 else 1.2 if carbon > 6000 else 1.0
    if action == "green_roof":
        return 1.2 if energy > 12000 else 1.1 if energy > 8000 else 1.0
    if action == "cool_pavement":
        return 1.3 if pollution > 4 else 1.2 if pollution > 3 else 1.0
    if action == "smart_irrigation":
        return 1.2 if energy > 10000 else 1.1 if energy > 7000 else 1.0
    return 1.0


def city_cost_multiplier(city: City, conditions: ActionConditions) -> float:
    if city.id == "phoenix":
        return 1.4 if conditions.temperature > 95 else 1.3
    if city.id == "houston":
        return 1.3 if conditions.carbon_emissions > 8000 else 1.2
    return {"las_vegas": 1.4, "miami": 1.2, "atlanta": 1.1, "dallas": 1.1}.get(city.id, 1.0)


def adjusted_timeframe(action: str, conditions: ActionConditions) -> str:
    base = BASE_TIMEFRAMES[action]
    if not conditions.live:
        return base
    temp, humidity = conditions.temperature, conditions.humidity
    if action == "cool_pavement":
        if temp > 95:
            return "2-4 weeks"
        if temp > 85:
            return "1-2 weeks"
    elif action == "green_roof":
        if humidity > 80:
            return "8-12 weeks"
        if humidity > 70:
            return "6-10 weeks"
    elif action == "tree_planting":
        if temp > 85:
            return "3-5 weeks"
        if temp < 50:
            return "4-6 weeks"
    elif action == "urban_park":
        if temp > 85:
            return "14-20 weeks"
        if temp < 50:
            return "16-22 weeks"
    elif action == "shade_structure":
        if temp > 95:
            return "5-7 weeks"
        if temp > 85:
            return "4-6 weeks"
    elif action == "water_feature":
        if temp > 85:
            return "10-14 weeks"
        if humidity > 80:
            return "8-12 weeks"
    elif action == "smart_irrigation":
        if temp > 80:
            return "4-6 weeks"
        if humidity < 50:
            return "3-5 weeks"
    elif action == "cooling_center":
        if temp > 100:
            return "3-5 weeks"
        if temp > 95:
            return "2-4 weeks"
    return base


def estimate_impact(action: str, zone: HeatZone, city: City, conditions: ActionConditions) -> ActionImpact:
    severity_factor = {"critical": 1.4, "high": 1.2}.get(zone.severity, 1.0)
    factor = (
        severity_factor
        * weather_multiplier(action, conditions)
        * environmental_multiplier(action, conditions)
        * city_multipliers(city, conditions)[action]
    )
    temperature, carbon, energy, air = BASE_IMPACTS[action]
    return ActionImpact(
        temperature_reduction=round_half_up(temperature * factor),
        carbon_sequestration=round_half_up(carbon * factor),
        energy_savings=round_half_up(energy * factor),
        air_quality_improvement=round_half_up(air * factor),
    )


def estimate_implementation(action: str, severity: str, city: City, conditions: ActionConditions) -> Implementation:
    severity_factor = {"critical": 1.3, "high": 1.1}.get(severity, 1.0)
    cost = (
        BASE_COSTS[action]
        * severity_factor
        * weather_cost_multiplier(action, conditions)
        * environmental_cost_multiplier(action, conditions)
        * city_cost_multiplier(city, conditions)
    )
    return Implementation(
        cost=round_half_up(cost),
        timeframe=adjusted_timeframe(action, conditions),
        difficulty=DIFFICULTIES[action],
    )


class ActionPlanGenerator:
    name = "action_plan"

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()
        self.ranker: Any = RuleRanker()
        self.report: Optional[TrainingReport] = None
        self._training_seed = model_seed(self.rng)

    @property
    def is_trained(self) -> bool:
        return self.ranker.is_trained

    def training_data(self, rng: Optional[random.Random] = None) -> Tuple[np.ndarray, np.ndarray]:
        rng = rng or random.Random(self._training_seed)
        rows, labels = [], []
        for bd, veg, albedo, severity, city_temp, city_veg, city_pop, weather, humidity, expected in TRAINING_PATTERNS:
            label = [1 if action in expected else 0 for action in ACTION_TYPES]
            for _ in range(SAMPLES_PER_PATTERN):
                rows.append(
                    [
                        jitter(rng, bd, 5, 20, 100) / 100,
                        jitter(rng, veg, 4, 5, 100) / 100,
                        jitter(rng, albedo, 3, 10, 50) / 50,
                        severity_weight(severity),
                        jitter(rng, city_temp, 2.5, 60, 100) / 100,
                        jitter(rng, city_veg, 2.5, 10, 70) / 100,
                        jitter(rng, city_pop, 100000, 100000, 2000000) / 2000000,
                        jitter(rng, weather, 2.5, 50, 110) / 120,
                        jitter(rng, humidity, 10, 20, 100) / 100,
                        round_half_up(jitter(rng, 3, 1, 1, 5)) / 5,
                        jitter(rng, 7000, 2000, 0, 15000) / 15000,
                        jitter(rng, 10000, 3000, 0, 20000) / 20000,
                    ]
                )
                labels.append(label)
        return np.asarray(rows, dtype=float), np.asarray(labels, dtype=int)

    def fit(self) -> Tuple[ClassifierRanker, TrainingReport]:
        features, labels = self.training_data()
        model = MLPClassifier(
            hidden_layer_sizes=(64, 32, 16),
            activation="relu",
            solver="adam",
            learning_rate_init=0.001,
            max_iter=15,
            batch_size=32,
            random_state=self._training_seed,
        )
        report = fit_model(self.name, model, features, labels, self._training_seed)
        return ClassifierRanker(model), report

    def activate(self, ranker: ClassifierRanker, report: Optional[TrainingReport] = None) -> None:
        self.ranker = ranker
        self.report = report

    def candidates(self, zone: HeatZone, city: City, conditions: ActionConditions, used: set) -> List[str]:
        """Ranked, then fallback, then canonical order, minus types already used."""

        ordered = _unique(
            list(self.ranker.rank(zone, city, conditions))
            + fallback_actions(zone, conditions)
            + list(ACTION_TYPES)
        )
        return [action for action in ordered if action not in used]

    def generate(
        self, zones: Sequence[HeatZone], city: City, snapshot: Optional[EnvironmentalSnapshot] = None
    ) -> List[ActionPlan]:
        conditions = ActionConditions.from_snapshot(city, snapshot)
        used: set = set()
        plans: List[ActionPlan] = []

        for zone in zones:
            quota = action_quota(zone.severity)
            selected = self.candidates(zone, city, conditions, used)[:quota]
            if len(selected) < quota:
                logger.debug("Zone %s gets %d of %d actions; types exhausted", zone.id, len(selected), quota)

            center_lat, center_lon = zone.center
            for index, action in enumerate(selected):
                location = (
                    center_lat + (self.rng.random() - 0.5) * LOCATION_JITTER_DEGREES,
                    center_lon + (self.rng.random() - 0.5) * LOCATION_JITTER_DEGREES,
                )
                plans.append(
                    ActionPlan(
                        id=f"action-{zone.id}-{action}-{index}",
                        zone_id=zone.id,
                        action_type=action,
                        location=location,
                        priority=priority_from_severity(zone.severity),
                        impact=estimate_impact(action, zone, city, conditions),
                        implementation=estimate_implementation(action, zone.severity, city, conditions),
                    )
                )
                used.add(action)

        return plans


__all__ = [
    "ACTION_TYPES",
    "BASE_IMPACTS",
    "BASE_COSTS",
    "CLASSIFIER_FEATURES",
    "ActionConditions",
    "RuleRanker",
    "ClassifierRanker",
    "classifier_features",
    "fallback_actions",
    "estimate_impact",
    "estimate_implementation",
    "adjusted_timeframe",
    "ActionPlanGenerator",
]
