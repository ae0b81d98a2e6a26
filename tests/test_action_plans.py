"""
Unit tests for action plan generation.
"""

import random
from dataclasses import replace
from unittest.mock import MagicMock

import numpy as np
import pytest

from releaf_app.action_plans import (
    ActionConditions,
    ActionPlanGenerator,
    ClassifierRanker,
    RuleRanker,
    adjusted_timeframe,
    estimate_impact,
    estimate_implementation,
    weather_multiplier,
)
from releaf_app.constants import ACTION_TYPES
from releaf_app.heat_zones import HeatZoneGenerator
from releaf_app.scoring import action_quota, priority_from_severity


@pytest.fixture
def phoenix_zones(phoenix):
    return HeatZoneGenerator(random.Random(11)).generate(phoenix)


def _expected_counts(zones):
    remaining = len(ACTION_TYPES)
    counts = []
    for zone in zones:
        count = min(action_quota(zone.severity), remaining)
        counts.append(count)
        remaining -= count
    return counts


class TestUniqueness:
    """One run never repeats an action type."""

    def test_no_duplicate_action_types(self, phoenix, phoenix_zones):
        plans = ActionPlanGenerator(random.Random(5)).generate(phoenix_zones, phoenix)
        types = [plan.action_type for plan in plans]
        assert len(types) == len(set(types))

    def test_count_per_zone_matches_quota(self, phoenix, phoenix_zones):
        plans = ActionPlanGenerator(random.Random(5)).generate(phoenix_zones, phoenix)
        counts = [sum(1 for plan in plans if plan.zone_id == zone.id) for zone in phoenix_zones]
        assert counts == _expected_counts(phoenix_zones)

    def test_all_critical_exhausts_types(self, phoenix, phoenix_zones):
        zones = [replace(zone, severity="critical") for zone in phoenix_zones]
        plans = ActionPlanGenerator(random.Random(5)).generate(zones, phoenix)

        counts = [sum(1 for plan in plans if plan.zone_id == zone.id) for zone in zones]
        assert counts == [3, 3, 2, 0, 0, 0]
        assert sorted(plan.action_type for plan in plans) == sorted(ACTION_TYPES)

    def test_with_live_snapshot(self, hot_city, hot_snapshot):
        zones = HeatZoneGenerator(random.Random(11)).generate(hot_city, hot_snapshot)
        plans = ActionPlanGenerator(random.Random(5)).generate(zones, hot_city, hot_snapshot)
        types = [plan.action_type for plan in plans]
        assert len(types) == len(set(types))
        counts = [sum(1 for plan in plans if plan.zone_id == zone.id) for zone in zones]
        assert counts == _expected_counts(zones)


class TestPlanContents:
    def test_priority_follows_zone_severity(self, phoenix, phoenix_zones):
        by_id = {zone.id: zone for zone in phoenix_zones}
        for plan in ActionPlanGenerator(random.Random(5)).generate(phoenix_zones, phoenix):
            assert plan.priority == priority_from_severity(by_id[plan.zone_id].severity)

    def test_location_near_zone_center(self, phoenix, phoenix_zones):
        by_id = {zone.id: zone for zone in phoenix_zones}
        for plan in ActionPlanGenerator(random.Random(5)).generate(phoenix_zones, phoenix):
            lat, lon = by_id[plan.zone_id].center
            assert abs(plan.location[0] - lat) <= 0.0015
            assert abs(plan.location[1] - lon) <= 0.0015

    def test_costs_and_impacts_positive(self, phoenix, phoenix_zones):
        for plan in ActionPlanGenerator(random.Random(5)).generate(phoenix_zones, phoenix):
            assert plan.implementation.cost > 0
            assert plan.impact.temperature_reduction >= 1

    def test_offline_conditions_use_base_timeframe(self, phoenix):
        conditions = ActionConditions.from_snapshot(phoenix, None)
        assert not conditions.live
        assert adjusted_timeframe("cool_pavement", conditions) == "1-3 weeks"

    def test_hot_weather_adjusts_timeframe(self):
        conditions = ActionConditions(97, 30, 2, 5000, 9000, 2, True)
        assert adjusted_timeframe("cool_pavement", conditions) == "2-4 weeks"
        assert adjusted_timeframe("shade_structure", conditions) == "5-7 weeks"

    def test_critical_costs_more_than_low(self, phoenix):
        conditions = ActionConditions.from_snapshot(phoenix, None)
        critical = estimate_implementation("tree_planting", "critical", phoenix, conditions)
        low = estimate_implementation("tree_planting", "low", phoenix, conditions)
        assert critical.cost > low.cost
        assert critical.difficulty == "easy"


class TestImpactMultipliers:
    """Weather, environment and city factors applied to the base impacts."""

    @pytest.mark.parametrize(
        "temperature, expected",
        [(91, 1.6), (90, 1.4), (86, 1.4), (82, 1.2), (80, 1.0)],
    )
    def test_cool_pavement_weather_tiers(self, temperature, expected):
        conditions = ActionConditions(temperature, 30, 2, 5000, 9000, 2, True)
        assert weather_multiplier("cool_pavement", conditions) == expected

    def test_offline_weather_is_neutral(self, phoenix):
        conditions = ActionConditions.from_snapshot(phoenix, None)
        assert weather_multiplier("cooling_center", conditions) == 1.0

    def test_hot_day_cool_pavement_impact(self, hot_city, phoenix_zones):
        # 1.6 weather x 1.2 default city factor on (3.2, 5, 25, 3).
        conditions = ActionConditions(95, 30, 2, 5000, 9000, 2, True)
        zone = replace(phoenix_zones[0], severity="low")

        impact = estimate_impact("cool_pavement", zone, hot_city, conditions)

        assert impact.temperature_reduction == 6
        assert impact.carbon_sequestration == 10
        assert impact.energy_savings == 48
        assert impact.air_quality_improvement == 6

    def test_offline_impact_uses_city_factor_only(self, hot_city, phoenix_zones):
        conditions = ActionConditions.from_snapshot(hot_city, None)
        zone = replace(phoenix_zones[0], severity="low")

        impact = estimate_impact("cool_pavement", zone, hot_city, conditions)

        assert impact.temperature_reduction == 4
        assert impact.energy_savings == 30

    def test_critical_zone_severity_factor(self, hot_city, phoenix_zones):
        conditions = ActionConditions.from_snapshot(hot_city, None)
        zone = replace(phoenix_zones[0], severity="critical")

        # 8.5 x 1.4 x 1.2
        assert estimate_impact("cooling_center", zone, hot_city, conditions).temperature_reduction == 14


class TestRankers:
    def test_rule_ranker_limits_to_four_unique(self, phoenix, phoenix_zones):
        conditions = ActionConditions(101, 20, 4, 9000, 12000, 4, True)
        ranked = RuleRanker().rank(replace(phoenix_zones[0], severity="critical"), phoenix, conditions)
        assert len(ranked) == 4
        assert len(set(ranked)) == 4

    def test_classifier_ranker_orders_by_probability(self, phoenix, phoenix_zones):
        model = MagicMock()
        model.predict_proba.return_value = np.array([[0.1, 0.9, 0.2, 0.8, 0.3, 0.7, 0.0, 0.6]])
        conditions = ActionConditions.from_snapshot(phoenix, None)

        ranked = ClassifierRanker(model).rank(phoenix_zones[0], phoenix, conditions)

        assert ranked == ["green_roof", "urban_park", "water_feature", "cooling_center"]

    def test_activated_classifier_drives_selection(self, phoenix, phoenix_zones):
        model = MagicMock()
        model.predict_proba.return_value = np.array([[0.1, 0.9, 0.2, 0.8, 0.3, 0.7, 0.0, 0.6]])
        generator = ActionPlanGenerator(random.Random(5))
        generator.activate(ClassifierRanker(model))
        zones = [replace(phoenix_zones[0], severity="critical")]

        plans = generator.generate(zones, phoenix)

        assert generator.is_trained
        assert [plan.action_type for plan in plans] == ["green_roof", "urban_park", "water_feature"]

    def test_training_data_is_multilabel(self):
        features, labels = ActionPlanGenerator(random.Random(5)).training_data()
        assert features.shape == (540, 12)
        assert labels.shape == (540, len(ACTION_TYPES))
        assert set(np.unique(labels)) <= {0, 1}
