"""
Integration tests for the engine, map layers and PDF report, all offline.
"""

from unittest.mock import Mock, patch

import pandas as pd
import pytest

from releaf_app import report
from releaf_app.aggregator import DataSources
from releaf_app.cities import custom_city, get_city, temperature_patterns
from releaf_app.maps import analysis_deck, plans_dataframe, prepare_heatmap_dataframe, zones_dataframe
from releaf_app.pipeline import ReleafEngine
from releaf_app.report import (
    generate_pdf_report,
    pattern_lines,
    projection_chart_png,
    temperature_patterns_png,
    zone_map_png,
)
from releaf_app.training import TrainingAlreadyAttempted


@pytest.fixture
def engine(live_sources):
    return ReleafEngine.create(seed=21, sources=live_sources)


@pytest.fixture
def analysis(engine):
    return engine.analyze(get_city("miami"))


class TestEngine:
    """Composition root wiring."""

    def test_analysis_shape(self, analysis):
        assert analysis.city.id == "miami"
        assert len(analysis.zones) == 6
        assert analysis.snapshot.climate.source == "live"
        types = [plan.action_type for plan in analysis.plans]
        assert len(types) == len(set(types))
        assert len(analysis.impact.future_predictions) == 10

    def test_offline_engine_still_analyzes(self):
        engine = ReleafEngine.create(seed=3, sources=DataSources())
        analysis = engine.analyze(get_city("dallas"))
        assert analysis.snapshot.climate.source == "fallback"
        assert analysis.zones

    def test_repeat_analysis_hits_cache(self, engine, live_sources, weather_source):
        city = get_city("atlanta")
        engine.analyze(city)
        engine.analyze(city)
        assert weather_source.call_count == 1

    def test_components_share_one_rng(self, engine):
        assert engine.zones.rng is engine.actions.rng is engine.impact.rng is engine.aggregator.rng

    def test_seeded_engines_agree(self, live_sources):
        city = get_city("houston")
        first = ReleafEngine.create(seed=5, sources=live_sources).analyze(city)
        second = ReleafEngine.create(seed=5, sources=live_sources).analyze(city)
        assert first.zones == second.zones

    def test_train_models_delegates_once(self, engine):
        engine.trainer = Mock()
        engine.trainer.train.return_value = {}
        engine.train_models()
        engine.trainer.train.assert_called_once_with(engine.zones, engine.actions, engine.impact)

    def test_training_twice_raises(self, engine):
        engine.trainer.attempted = True
        with pytest.raises(TrainingAlreadyAttempted):
            engine.train_models()

    def test_trained_components_flags(self, engine):
        assert engine.trained_components == {
            "heat_island": False,
            "action_plan": False,
            "climate_impact": False,
        }


    def test_analysis_key_stable_for_same_city(self, engine):
        assert engine.analysis_key(get_city("miami")) == engine.analysis_key(get_city("miami"))
        assert engine.analysis_key(get_city("miami")) != engine.analysis_key(get_city("dallas"))

    def test_analysis_key_changes_once_a_model_is_trained(self, engine):
        before = engine.analysis_key(get_city("miami"))
        trained = Mock(is_trained=True)
        engine.zones.activate(trained)
        assert engine.analysis_key(get_city("miami")) != before


class TestMaps:
    def test_zone_and_plan_frames(self, analysis):
        zones = zones_dataframe(analysis)
        plans = plans_dataframe(analysis)
        assert len(zones) == 6
        assert len(plans) == len(analysis.plans)
        # Polygons are emitted as [lon, lat].
        first_ring = zones.iloc[0]["polygon"]
        assert first_ring[0][0] == analysis.zones[0].coordinates[0][1]

    def test_deck_layers(self, analysis):
        deck = analysis_deck(analysis)
        assert [layer.id for layer in deck.layers] == [
            "heat-zones",
            "zone-heatmap",
            "zone-temperatures",
            "action-plans",
        ]

    def test_zone_temperature_markers_use_palette_columns(self, analysis):
        deck = analysis_deck(analysis)
        markers = next(layer for layer in deck.layers if layer.id == "zone-temperatures")
        heatmap = next(layer for layer in deck.layers if layer.id == "zone-heatmap")

        # pydeck stores frames as lists of records.
        assert {"color_r", "color_g", "color_b"} <= set(markers.data[0])
        assert set(heatmap.data[0]) == {"lat", "lon", "value"}

    def test_basemap_prepended(self, analysis):
        deck = analysis_deck(analysis, basemap_tile_url="https://tiles.example/{z}/{x}/{y}.png")
        assert deck.layers[0].id == "base-map"

    def test_heatmap_colors_span_palette(self):
        frame, vmin, vmax = prepare_heatmap_dataframe(pd.DataFrame({"lat": [0, 1], "lon": [0, 1], "value": [80, 100]}))
        assert (vmin, vmax) == (80.0, 100.0)
        assert list(frame["color_r"]) == [15, 220]


class TestReport:
    def test_pdf_bytes(self, analysis):
        pdf = generate_pdf_report(analysis)
        assert pdf.startswith(b"%PDF")
        assert len(pdf) > 1000

    def test_charts_are_png(self, analysis):
        png_header = b"\x89PNG"
        assert projection_chart_png(list(analysis.impact.future_predictions), "Projections").startswith(png_header)
        assert zone_map_png(list(analysis.zones), "Zones").startswith(png_header)


class TestTemperaturePatterns:
    """Hourly, monthly and historical temperatures for the reference cities."""

    def test_reference_city_has_all_series(self):
        patterns = temperature_patterns(get_city("phoenix"))
        assert len(patterns["hourly"]) == 24
        assert len(patterns["monthly"]) == 12
        assert [year for year, _ in patterns["historical"]] == [2020, 2021, 2022, 2023, 2024]

    def test_custom_city_has_none(self):
        assert temperature_patterns(custom_city("Nowhere", 1.0, 1.0, 1000, 70.0, 50.0, 0.0, 0.0)) is None

    def test_summary_lines(self):
        lines = pattern_lines(temperature_patterns(get_city("phoenix")))
        assert lines[0] == "• Daily peak 110 °F at 14:00 · overnight low 66 °F"
        assert lines[1] == "• Hottest month Jul (107 °F) · coolest 67 °F"
        assert lines[2].startswith("• Annual averages 2020: 88.1 °F")

    def test_chart_is_png(self):
        png = temperature_patterns_png(temperature_patterns(get_city("miami")), "Miami")
        assert png.startswith(b"\x89PNG")

    def test_report_draws_patterns_for_reference_city(self, analysis):
        with patch.object(report, "temperature_patterns_png", wraps=report.temperature_patterns_png) as chart:
            generate_pdf_report(analysis)
        chart.assert_called_once()

    def test_report_skips_chart_for_custom_city(self, engine, hot_city):
        analysis = engine.analyze(hot_city)
        with patch.object(report, "temperature_patterns_png") as chart:
            pdf = generate_pdf_report(analysis)
        chart.assert_not_called()
        assert pdf.startswith(b"%PDF")
