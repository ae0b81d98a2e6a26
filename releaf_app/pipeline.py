"""Composition root: wires sources, cache and model components together."""

from __future__ import annotations

import logging
import random
from typing import Dict, Optional, Tuple

from .aggregator import DataSources, EnvironmentalDataAggregator
from .action_plans import ActionPlanGenerator
from .cache import TTLCache
from .climate_impact import ClimateImpactAnalyzer
from .constants import TRAINING_TIMEOUT_SECONDS
from .heat_zones import HeatZoneGenerator
from .models import City, CityAnalysis, TrainingReport
from .training import ModelTrainer

logger = logging.getLogger(__name__)


class ReleafEngine:
    def __init__(
        self,
        aggregator: EnvironmentalDataAggregator,
        zones: HeatZoneGenerator,
        actions: ActionPlanGenerator,
        impact: ClimateImpactAnalyzer,
        trainer: Optional[ModelTrainer] = None,
    ) -> None:
        self.aggregator = aggregator
        self.zones = zones
        self.actions = actions
        self.impact = impact
        self.trainer = trainer or ModelTrainer()
        self.reports: Dict[str, TrainingReport] = {}

    @classmethod
    def create(
        cls,
        seed: Optional[int] = None,
        sources: Optional[DataSources] = None,
        layout: str = "polygon",
        training_timeout: float = TRAINING_TIMEOUT_SECONDS,
    ) -> "ReleafEngine":
        """Build an engine; ``sources`` defaults to the live HTTP clients."""

        rng = random.Random(seed)
        cache = TTLCache()
        aggregator = EnvironmentalDataAggregator(sources or DataSources.live(), cache=cache, rng=rng)
        return cls(
            aggregator,
            HeatZoneGenerator(rng, layout=layout),
            ActionPlanGenerator(rng),
            ClimateImpactAnalyzer(rng),
            ModelTrainer(timeout=training_timeout),
        )

    @property
    def components(self):
        return self.zones, self.actions, self.impact

    @property
    def trained_components(self) -> Dict[str, bool]:
        return {component.name: component.is_trained for component in self.components}

    def train_models(self) -> Dict[str, TrainingReport]:
        self.reports = self.trainer.train(*self.components)
        return self.reports

    def analysis_key(self, city: City) -> Tuple[City, Tuple[Tuple[str, bool], ...]]:
        """Identifies an analysis worth reusing: same city, same trained models."""

        return city, tuple(sorted(self.trained_components.items()))

    def analyze(self, city: City) -> CityAnalysis:
        snapshot = self.aggregator.snapshot_for_city(city)
        zones = self.zones.generate(city, snapshot)
        plans = self.actions.generate(zones, city, snapshot)
        impact = self.impact.analyze(zones, city, snapshot)
        logger.info(
            "Analyzed %s: %d zones, %d action plans, %s urgency",
            city.name,
            len(zones),
            len(plans),
            impact.adaptation_urgency,
        )
        return CityAnalysis(city, snapshot, tuple(zones), tuple(plans), impact)


__all__ = ["ReleafEngine"]
