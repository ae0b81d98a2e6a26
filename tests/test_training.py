"""
Unit tests for ModelTrainer with mocked model components.
"""

import logging
import threading
from unittest.mock import Mock

import pytest

from releaf_app.models import TrainingReport
from releaf_app.training import ModelTrainer, TrainingAlreadyAttempted


def _report(name):
    return TrainingReport(name, 100, 10, 0.05, 0.9, 0.4, 0.01)


def _component(name, fit=None):
    component = Mock()
    component.name = name
    predictor = Mock(is_trained=True)
    component.fit = fit or Mock(return_value=(predictor, _report(name)))
    component.predictor = predictor
    return component


class TestModelTrainer:
    """Concurrent one-shot training."""

    def test_successful_components_are_activated(self):
        zones, actions = _component("heat_island"), _component("action_plan")

        reports = ModelTrainer(timeout=5).train(zones, actions)

        assert set(reports) == {"heat_island", "action_plan"}
        zones.activate.assert_called_once_with(zones.predictor, reports["heat_island"])
        actions.activate.assert_called_once_with(actions.predictor, reports["action_plan"])

    def test_second_call_raises(self):
        trainer = ModelTrainer(timeout=5)
        trainer.train(_component("heat_island"))
        with pytest.raises(TrainingAlreadyAttempted):
            trainer.train(_component("heat_island"))

    def test_second_call_raises_even_after_failure(self):
        trainer = ModelTrainer(timeout=5)
        trainer.train(_component("heat_island", fit=Mock(side_effect=RuntimeError("boom"))))
        assert trainer.attempted
        with pytest.raises(TrainingAlreadyAttempted):
            trainer.train()

    def test_failure_is_logged_and_not_activated(self, caplog):
        broken = _component("climate_impact", fit=Mock(side_effect=ValueError("singular matrix")))
        healthy = _component("heat_island")

        with caplog.at_level(logging.WARNING, logger="releaf_app.training"):
            reports = ModelTrainer(timeout=5).train(broken, healthy)

        assert list(reports) == ["heat_island"]
        broken.activate.assert_not_called()
        healthy.activate.assert_called_once()
        assert "singular matrix" in caplog.text

    def test_timeout_keeps_fallback(self, caplog):
        release = threading.Event()

        def slow_fit():
            release.wait(5)
            return Mock(), _report("action_plan")

        slow = _component("action_plan", fit=slow_fit)
        fast = _component("heat_island")
        try:
            with caplog.at_level(logging.WARNING, logger="releaf_app.training"):
                reports = ModelTrainer(timeout=0.2).train(slow, fast)
        finally:
            release.set()

        assert "action_plan" not in reports
        slow.activate.assert_not_called()
        assert "exceeded" in caplog.text

    def test_no_components(self):
        assert ModelTrainer().train() == {}
