"""Heat zone generation and temperature-increase prediction."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
from sklearn.neural_network import MLPRegressor

from .cities import ZONE_TEMPLATES
from .models import City, Coordinate, EnvironmentalSnapshot, HeatZone, TrainingReport, ZonePrediction
from .predictors import LinearPredictor, NetworkPredictor, fit_model, jitter, model_seed
from .scoring import clamp_value, round_half_up, severity_from_risk

logger = logging.getLogger(__name__)

MAX_TEMPERATURE_INCREASE = 15.0
DEFAULT_TEMPERATURE = 75.0
DEFAULT_HUMIDITY = 60.0
GRID_CELL_DEGREES = 0.02
POLYGON_POINTS = 20

FEATURE_NAMES: Tuple[str, ...] = (
    "building_density",
    "vegetation_index",
    "surface_albedo",
    "elevation",
    "coastal_distance",
    "population_density",
    "current_temperature",
    "humidity",
)

FALLBACK_WEIGHTS: Dict[str, float] = {
    "building_density": 0.35,
    "vegetation_index": -0.42,
    "surface_albedo": -0.28,
    "elevation": -0.15,
    "coastal_distance": 0.18,
    "population_density": 0.22,
    "current_temperature": 0.12,
    "humidity": -0.08,
}

# Archetypes: dense urban, suburban, vegetated, industrial, coastal, high
# elevation. Columns follow FEATURE_NAMES, then the temperature increase.
TRAINING_PATTERNS: Tuple[Tuple[float, ...], ...] = (
    (85, 15, 20, 50, 200, 8000, 85, 60, 8.5),
    (90, 10, 18, 30, 150, 12000, 90, 55, 10.2),
    (80, 20, 25, 100, 300, 6000, 80, 65, 7.8),
    (60, 35, 30, 200, 400, 3000, 75, 70, 5.2),
    (55, 40, 32, 150, 350, 2500, 72, 75, 4.8),
    (65, 30, 28, 180, 380, 3500, 78, 68, 5.8),
    (25, 70, 40, 300, 500, 800, 70, 80, 2.1),
    (30, 65, 38, 250, 450, 1200, 68, 85, 2.8),
    (20, 75, 42, 350, 550, 600, 65, 90, 1.9),
    (70, 8, 15, 80, 250, 2000, 82, 50, 9.1),
    (75, 5, 12, 60, 200, 1500, 85, 45, 9.8),
    (65, 12, 18, 120, 300, 2500, 80, 55, 8.2),
    (75, 25, 30, 5, 10, 5000, 78, 75, 4.5),
    (80, 20, 28, 2, 5, 7000, 80, 70, 5.1),
    (70, 30, 32, 8, 15, 4000, 76, 80, 3.9),
    (60, 35, 35, 800, 600, 3000, 70, 60, 3.2),
    (65, 30, 32, 1000, 700, 3500, 68, 55, 3.8),
    (55, 40, 38, 1200, 800, 2500, 65, 65, 2.9),
)
SAMPLES_PER_PATTERN = 50

# (spread, lower, upper) per column, temperature increase last.
TRAINING_NOISE: Tuple[Tuple[float, float, float], ...] = (
    (5, 10, 100),
    (4, 3, 100),
    (3, 10, 50),
    (50, 0, 2000),
    (25, 0, 1000),
    (500, 100, 15000),
    (5, 50, 110),
    (10, 20, 100),
    (0.75, 0, MAX_TEMPERATURE_INCREASE),
)

ALBEDO_BY_LAND_USE = {"industrial": 15.0, "commercial": 25.0}
DEFAULT_ALBEDO = 35.0


@dataclass(frozen=True)
class ZoneTemplate:
    name: str
    land_use: str
    building_density: float
    vegetation_index: float


def normalise_features(
    building_density: float,
    vegetation_index: float,
    surface_albedo: float,
    elevation: float,
    coastal_distance: float,
    population_density: float,
    current_temperature: float,
    humidity: float,
) -> Dict[str, float]:
    return {
        "building_density": building_density / 100,
        "vegetation_index": vegetation_index / 100,
        "surface_albedo": surface_albedo / 50,
        "elevation": min(elevation / 1000, 1.0),
        "coastal_distance": min(coastal_distance / 500, 1.0),
        "population_density": min(population_density / 10000, 1.0),
        "current_temperature": current_temperature / 120,
        "humidity": humidity / 100,
    }


def untrained_predictor() -> LinearPredictor:
    return LinearPredictor(FALLBACK_WEIGHTS, scale=MAX_TEMPERATURE_INCREASE, lower=0.0)


def surface_albedo(land_use: str) -> float:
    return ALBEDO_BY_LAND_USE.get(land_use, DEFAULT_ALBEDO)


def risk_score(temperature_increase: float, population_density: float) -> float:
    """Weighted heat (0.7) and crowding (0.3) risk on a 0-100 scale."""

    heat_risk = min(temperature_increase / 10, 1.0)
    crowd_risk = min(population_density / 8000, 1.0)
    return clamp_value((heat_risk * 0.7 + crowd_risk * 0.3) * 100, 0.0, 100.0)


def dynamic_templates(city: City) -> List[ZoneTemplate]:
    population = city.population
    vegetation = city.vegetation_coverage
    return [
        ZoneTemplate("Downtown Core", "commercial", min(85 + population / 100000, 95), max(vegetation * 0.3, 8)),
        ZoneTemplate("Industrial Zone", "industrial", 65 + population / 500000 * 10, max(vegetation * 0.2, 5)),
        ZoneTemplate("Residential Areas", "residential", 50 + population / 1000000 * 15, max(vegetation * 0.6, 15)),
        ZoneTemplate("Mixed Development", "mixed", 60 + population / 800000 * 12, max(vegetation * 0.4, 12)),
        ZoneTemplate("Commercial Strip", "commercial", 75 + population / 1200000 * 8, max(vegetation * 0.25, 10)),
        ZoneTemplate("Suburban Area", "residential", 40 + population / 1500000 * 10, max(vegetation * 0.7, 20)),
    ]


def city_templates(city: City) -> List[ZoneTemplate]:
    """Per-city templates (or dynamic ones), adjusted for climate and greenery."""

    known = ZONE_TEMPLATES.get(city.id)
    if known:
        base = [ZoneTemplate(*row) for row in known]
    else:
        base = dynamic_templates(city)

    density_shift = 5 if city.average_temperature > 85 else 0
    vegetation_shift = 5 if city.vegetation_coverage > 30 else -3
    return [
        ZoneTemplate(
            template.name,
            template.land_use,
            clamp_value(template.building_density + density_shift, 20, 100),
            clamp_value(template.vegetation_index + vegetation_shift, 3, 100),
        )
        for template in base
    ]


def polygon_ring(center: Coordinate, rng: random.Random) -> Tuple[Coordinate, ...]:
    lat, lon = center
    offset_lat = lat + (rng.random() - 0.5) * 0.06
    offset_lon = lon + (rng.random() - 0.5) * 0.06
    radius = 0.008 + rng.random() * 0.008

    points = []
    for i in range(POLYGON_POINTS):
        angle = i / POLYGON_POINTS * 2 * math.pi
        r = radius * (0.8 + rng.random() * 0.4)
        points.append((offset_lat + math.cos(angle) * r, offset_lon + math.sin(angle) * r))
    points.append(points[0])
    return tuple(points)


def grid_cells(center: Coordinate, count: int, size: float = GRID_CELL_DEGREES) -> List[Tuple[Coordinate, ...]]:
    """Square cells on a fixed lat/lon grid centred on the city."""

    if count <= 0:
        return []
    columns = math.ceil(math.sqrt(count))
    rows = math.ceil(count / columns)
    origin_lat = center[0] - rows * size / 2
    origin_lon = center[1] - columns * size / 2

    cells = []
    for index in range(count):
        row, column = divmod(index, columns)
        south = origin_lat + row * size
        west = origin_lon + column * size
        cells.append(
            (
                (south, west),
                (south, west + size),
                (south + size, west + size),
                (south + size, west),
                (south, west),
            )
        )
    return cells


class HeatZoneGenerator:
    """Builds scored heat zones for a city.

    Starts on the fixed linear formula; :meth:`activate` swaps in a trained
    network (see :class:`~releaf_app.training.ModelTrainer`).
    """

    name = "heat_island"

    def __init__(self, rng: Optional[random.Random] = None, layout: str = "polygon") -> None:
        if layout not in ("polygon", "grid"):
            raise ValueError(f"Unknown zone layout: {layout}")
        self.rng = rng or random.Random()
        self.layout = layout
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
            for _ in range(SAMPLES_PER_PATTERN):
                sample = [
                    jitter(rng, value, spread, lower, upper)
                    for value, (spread, lower, upper) in zip(pattern, TRAINING_NOISE)
                ]
                features = normalise_features(*sample[:-1])
                rows.append([features[name] for name in FEATURE_NAMES])
                labels.append(sample[-1] / MAX_TEMPERATURE_INCREASE)
        return np.asarray(rows, dtype=float), np.asarray(labels, dtype=float)

    def fit(self) -> Tuple[NetworkPredictor, TrainingReport]:
        features, labels = self.training_data()
        model = MLPRegressor(
            hidden_layer_sizes=(32, 16, 8),
            activation="relu",
            solver="adam",
            learning_rate_init=0.001,
            max_iter=20,
            batch_size=32,
            random_state=self._training_seed,
        )
        report = fit_model(
            self.name, model, features, labels, self._training_seed, target_scale=MAX_TEMPERATURE_INCREASE
        )
        predictor = NetworkPredictor(
            model, FEATURE_NAMES, scale=MAX_TEMPERATURE_INCREASE, lower=0.0, upper=MAX_TEMPERATURE_INCREASE
        )
        return predictor, report

    def activate(self, predictor: NetworkPredictor, report: Optional[TrainingReport] = None) -> None:
        self.predictor = predictor
        self.report = report

    def predict_temperature_increase(
        self,
        building_density: float,
        vegetation_index: float,
        surface_albedo: float,
        elevation: float,
        coastal_distance: float,
        population_density: float,
        current_temperature: Optional[float] = None,
        humidity: Optional[float] = None,
    ) -> float:
        features = normalise_features(
            building_density,
            vegetation_index,
            surface_albedo,
            elevation,
            coastal_distance,
            population_density,
            DEFAULT_TEMPERATURE if current_temperature is None else current_temperature,
            DEFAULT_HUMIDITY if humidity is None else humidity,
        )
        return self.predictor.predict(features)

    def _confidence(self) -> float:
        if self.is_trained:
            return round_half_up(85 + self.rng.random() * 12, 1)
        return round_half_up(70 + self.rng.random() * 15, 1)

    def generate(self, city: City, snapshot: Optional[EnvironmentalSnapshot] = None) -> List[HeatZone]:
        """Zones for ``city`` sorted by descending risk score."""

        if snapshot is not None:
            current_temperature = snapshot.climate.temperature
            humidity = snapshot.climate.humidity
        else:
            current_temperature, humidity = DEFAULT_TEMPERATURE, DEFAULT_HUMIDITY

        templates = city_templates(city)
        if self.layout == "grid":
            rings = grid_cells(city.coordinates, len(templates))
        else:
            rings = [polygon_ring(city.coordinates, self.rng) for _ in templates]

        zones = []
        for index, (template, ring) in enumerate(zip(templates, rings)):
            albedo = surface_albedo(template.land_use)
            population_density = city.population / 1000 * (template.building_density / 100)
            increase = self.predict_temperature_increase(
                template.building_density,
                template.vegetation_index,
                albedo,
                city.elevation,
                city.coastal_distance,
                population_density,
                current_temperature,
                humidity,
            )
            risk = round_half_up(risk_score(increase, population_density))
            zones.append(
                HeatZone(
                    id=f"zone-{city.id}-{index}",
                    name=template.name,
                    coordinates=ring,
                    temperature=round_half_up(current_temperature + increase),
                    severity=severity_from_risk(risk),
                    land_use=template.land_use,
                    vegetation_index=round(template.vegetation_index, 1),
                    building_density=round(template.building_density, 1),
                    surface_albedo=albedo,
                    population_density=round(population_density, 1),
                    prediction=ZonePrediction(
                        temperature_increase=round_half_up(increase, 1),
                        risk_score=risk,
                        confidence=self._confidence(),
                    ),
                )
            )

        logger.debug("Generated %d %s zones for %s", len(zones), self.layout, city.name)
        return sorted(zones, key=lambda zone: zone.prediction.risk_score, reverse=True)


__all__ = [
    "FEATURE_NAMES",
    "FALLBACK_WEIGHTS",
    "TRAINING_PATTERNS",
    "ZoneTemplate",
    "normalise_features",
    "untrained_predictor",
    "surface_albedo",
    "risk_score",
    "dynamic_templates",
    "city_templates",
    "polygon_ring",
    "grid_cells",
    "HeatZoneGenerator",
]
