"""
Session behaviour of the Streamlit front end, driven offline through AppTest.
"""

from pathlib import Path
from unittest.mock import patch

import pytest
from streamlit.testing.v1 import AppTest

from releaf_app.aggregator import DataSources
from releaf_app.training import ModelTrainer

APP_PATH = Path(__file__).resolve().parents[1] / "streamlit_app.py"


def _instant_training(trainer, *components):
    trainer.attempted = True
    return {}


@pytest.fixture
def app():
    with patch.object(DataSources, "live", return_value=DataSources()), patch.object(
        ModelTrainer, "train", autospec=True, side_effect=_instant_training
    ) as train:
        yield AppTest.from_file(str(APP_PATH), default_timeout=60), train


class TestStartupTraining:
    """Training runs once per session, before the first analysis."""

    def test_first_run_trains(self, app):
        at, train = app
        at.run()

        assert not at.exception
        assert train.call_count == 1
        assert at.session_state["engine"].trainer.attempted

    def test_reruns_do_not_retrain(self, app):
        at, train = app
        at.run()
        at.run()
        at.run()

        assert train.call_count == 1


class TestAnalysisReuse:
    """Widget reruns for the same city reuse the stored analysis."""

    def test_rerun_keeps_same_analysis(self, app):
        at, _ = app
        at.run()
        first = at.session_state["analysis"]

        at.slider[0].set_value(0.3).run()

        assert at.session_state["analysis"] is first

    def test_switching_city_recomputes(self, app):
        at, _ = app
        at.run()
        first = at.session_state["analysis"]

        at.sidebar.selectbox[0].set_value("Miami").run()

        assert at.session_state["analysis"] is not first
        assert at.session_state["analysis"].city.id == "miami"

    def test_refresh_button_recomputes(self, app):
        at, _ = app
        at.run()
        first = at.session_state["analysis"]

        at.sidebar.button[0].click().run()

        assert at.session_state["analysis"] is not first
