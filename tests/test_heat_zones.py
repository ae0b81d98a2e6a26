"""
Unit tests for heat zone generation.
"""

import random
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from releaf_app.heat_zones import (
    FEATURE_NAMES,
    HeatZoneGenerator,
    MAX_TEMPERATURE_INCREASE,
    city_templates,
    grid_cells,
    normalise_features,
    risk_score,
    surface_albedo,
    untrained_predictor,
)
from releaf_app.predictors import NetworkPredictor
from releaf_app.scoring import severity_from_risk


class TestZoneHelpers:
    def test_albedo_by_land_use(self):
        assert surface_albedo("industrial") == 15.0
        assert surface_albedo("commercial") == 25.0
        assert surface_albedo("residential") == 35.0

    def test_risk_score_weights(self):
        assert risk_score(10, 8000) == pytest.approx(100.0)
        assert risk_score(5, 0) == pytest.approx(35.0)
        assert risk_score(0, 4000) == pytest.approx(15.0)

    def test_templates_for_unknown_city_are_dynamic(self, hot_city):
        templates = city_templates(hot_city)
        assert len(templates) == 6
        assert templates[0].name == "Downtown Core"
        # Hot city: density shifted up, sparse greenery shifted down.
        assert templates[0].building_density == 100
        assert templates[0].vegetation_index == 5

    def test_grid_cells_are_closed_squares(self):
        cells = grid_cells((30.0, -100.0), 6)
        assert len(cells) == 6
        for cell in cells:
            assert len(cell) == 5
            assert cell[0] == cell[-1]


class TestUntrainedGeneration:
    """End-to-end zone generation on the fixed linear formula."""

    def test_hot_city_scenario(self, hot_city, hot_snapshot):
        generator = HeatZoneGenerator(random.Random(7))
        zones = generator.generate(hot_city, hot_snapshot)

        assert len(zones) == 6
        assert not generator.is_trained
        for zone in zones:
            increase = zone.prediction.temperature_increase
            assert 0 <= increase <= MAX_TEMPERATURE_INCREASE
            assert zone.severity == severity_from_risk(zone.prediction.risk_score)
            assert abs(zone.temperature - (95 + increase)) <= 0.6
            assert 70 <= zone.prediction.confidence <= 85

    def test_zones_sorted_by_risk(self, hot_city, hot_snapshot):
        zones = HeatZoneGenerator(random.Random(7)).generate(hot_city, hot_snapshot)
        risks = [zone.prediction.risk_score for zone in zones]
        assert risks == sorted(risks, reverse=True)

    def test_denser_zone_runs_hotter(self):
        generator = HeatZoneGenerator(random.Random(1))
        dense = generator.predict_temperature_increase(90, 5, 15, 100, 50, 8000, 95, 30)
        green = generator.predict_temperature_increase(30, 70, 35, 100, 50, 1000, 95, 30)
        assert dense > green >= 0

    def test_seeded_generation_is_reproducible(self, phoenix):
        first = HeatZoneGenerator(random.Random(3)).generate(phoenix)
        second = HeatZoneGenerator(random.Random(3)).generate(phoenix)
        assert first == second

    def test_polygon_rings_are_closed(self, phoenix):
        for zone in HeatZoneGenerator(random.Random(3)).generate(phoenix):
            assert len(zone.coordinates) == 21
            assert zone.coordinates[0] == zone.coordinates[-1]

    def test_grid_layout(self, phoenix):
        zones = HeatZoneGenerator(random.Random(3), layout="grid").generate(phoenix)
        assert all(len(zone.coordinates) == 5 for zone in zones)

    def test_unknown_layout_rejected(self):
        with pytest.raises(ValueError):
            HeatZoneGenerator(layout="hexagon")


class TestTrainedGeneration:
    def test_activate_swaps_predictor(self, phoenix):
        model = MagicMock()
        model.predict.return_value = np.array([0.5])
        generator = HeatZoneGenerator(random.Random(2))
        generator.activate(NetworkPredictor(model, FEATURE_NAMES, scale=MAX_TEMPERATURE_INCREASE, lower=0.0))

        zones = generator.generate(phoenix)

        assert generator.is_trained
        assert all(zone.prediction.temperature_increase == 7.5 for zone in zones)
        assert all(85 <= zone.prediction.confidence <= 97 for zone in zones)

    def test_training_data_shape(self):
        features, labels = HeatZoneGenerator(random.Random(2)).training_data()
        assert features.shape == (900, len(FEATURE_NAMES))
        assert labels.min() >= 0 and labels.max() <= 1

    def test_fit_produces_report(self):
        predictor, report = HeatZoneGenerator(random.Random(2)).fit()
        assert predictor.is_trained
        assert report.model == "heat_island"
        assert report.samples == 900
        assert report.validation_mae is not None


class TestFallbackFormula:
    """Pinned outputs of the untrained weighted sum."""

    def test_known_feature_vector(self):
        # Albedo 15 normalises to 0.3; weighted sum 0.46 of a 15°F ceiling.
        features = normalise_features(90, 5, 15, 100, 50, 8000, 95, 30)
        assert features["surface_albedo"] == pytest.approx(0.3)
        assert untrained_predictor().predict(features) == pytest.approx(6.9)

    def test_single_feature_weight(self):
        features = normalise_features(100, 0, 0, 0, 0, 0, 0, 0)
        assert untrained_predictor().predict(features) == pytest.approx(5.25)

    def test_negative_sum_floors_at_zero(self):
        features = normalise_features(0, 100, 50, 1000, 0, 0, 0, 100)
        assert untrained_predictor().predict(features) == 0.0


class TestSeverityBoundary:
    """Severity is derived from the stored, half-up rounded risk score."""

    @pytest.mark.parametrize(
        "raw_risk, stored, severity",
        [(75.5, 76, "critical"), (75.4, 75, "high"), (50.5, 51, "high"), (25.49, 25, "low")],
    )
    def test_rounded_risk_drives_severity(self, phoenix, raw_risk, stored, severity):
        with patch("releaf_app.heat_zones.risk_score", return_value=raw_risk):
            zones = HeatZoneGenerator(random.Random(3)).generate(phoenix)

        for zone in zones:
            assert zone.prediction.risk_score == stored
            assert zone.severity == severity

    def test_increase_stored_to_one_decimal(self, phoenix):
        model = MagicMock()
        model.predict.return_value = np.array([0.497])
        generator = HeatZoneGenerator(random.Random(2))
        generator.activate(NetworkPredictor(model, FEATURE_NAMES, scale=MAX_TEMPERATURE_INCREASE, lower=0.0))

        zones = generator.generate(phoenix)

        # 0.497 * 15 = 7.455
        assert all(zone.prediction.temperature_increase == 7.5 for zone in zones)
