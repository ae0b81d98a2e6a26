"""Streamlit front end for the Releaf urban heat-island analysis.

Pick one of the reference cities (or describe your own), and the app pulls
live weather, air quality, surface temperature and vegetation readings,
falls back to calculated or tabulated values where a source is down, and
renders heat zones, cooling action plans and a climate impact outlook.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from releaf_app.cities import CITIES, custom_city, temperature_patterns
from releaf_app.constants import ACTION_DISPLAY, SEVERITY_TIERS
from releaf_app.maps import analysis_deck, plans_dataframe, zones_dataframe
from releaf_app.models import City, CityAnalysis
from releaf_app.pipeline import ReleafEngine
from releaf_app.report import MONTHS, generate_pdf_report, pattern_lines
from releaf_app.training import TrainingAlreadyAttempted

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("releaf")

st.set_page_config(page_title="Releaf · Urban Heat Islands", layout="wide")

BASEMAP_TEMPLATES: Dict[str, Optional[str]] = {
    "Blank canvas": None,
    "Street view": "https://a.tile.openstreetmap.org/{z}/{x}/{y}.png",
    "Satellite view": "https://services.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
}

CUSTOM_CITY_LABEL = "Custom city…"


def _initialise_session_state() -> None:
    if "engine" not in st.session_state:
        st.session_state.engine = ReleafEngine.create()
    st.session_state.setdefault("analysis", None)
    st.session_state.setdefault("analysis_key", None)
    st.session_state.setdefault("pdf", None)
    st.session_state.setdefault("training_error", None)


def _train_once(engine: ReleafEngine) -> None:
    """One training phase per session; reruns find the trainer already spent."""

    if engine.trainer.attempted:
        return
    with st.spinner("Training models (up to 30 seconds)..."):
        try:
            engine.train_models()
        except TrainingAlreadyAttempted as exc:
            logger.warning("Skipping training: %s", exc)
            st.session_state.training_error = str(exc)


def _city_from_sidebar() -> Optional[City]:
    st.sidebar.header("City")
    labels = [city.name for city in CITIES] + [CUSTOM_CITY_LABEL]
    choice = st.sidebar.selectbox("Select a city", labels, index=0)
    if choice != CUSTOM_CITY_LABEL:
        return next(city for city in CITIES if city.name == choice)

    with st.sidebar.form("custom-city"):
        name = st.text_input("Name", value="Tucson")
        lat = st.number_input("Latitude", value=32.2226, format="%.4f")
        lon = st.number_input("Longitude", value=-110.9747, format="%.4f")
        population = st.number_input("Population", min_value=1000, value=545000, step=1000)
        avg_temp = st.number_input("Average temperature (°F)", value=84.0)
        vegetation = st.slider("Vegetation coverage (%)", 0, 100, 20)
        elevation = st.number_input("Elevation (ft)", min_value=0, value=2389)
        coast = st.number_input("Distance to coast (mi)", min_value=0, value=250)
        submitted = st.form_submit_button("Use this city")
    if not submitted and st.session_state.get("custom_city") is None:
        return None
    if submitted:
        st.session_state.custom_city = custom_city(
            name, lat, lon, int(population), avg_temp, vegetation, elevation, coast
        )
    return st.session_state.custom_city


def _model_status(engine: ReleafEngine) -> None:
    st.sidebar.header("Models")
    for name, is_trained in engine.trained_components.items():
        st.sidebar.caption(f"{name}: {'trained network' if is_trained else 'rule-based fallback'}")


def _current_analysis(engine: ReleafEngine, city: City, refresh: bool) -> CityAnalysis:
    key = engine.analysis_key(city)
    if refresh:
        logger.info("Refreshing analysis for %s on request", city.name)
    if refresh or st.session_state.analysis_key != key:
        with st.spinner(f"Analyzing {city.name}..."):
            st.session_state.analysis = engine.analyze(city)
            st.session_state.pdf = generate_pdf_report(st.session_state.analysis)
        st.session_state.analysis_key = key
    return st.session_state.analysis


def _projection_chart(analysis: CityAnalysis) -> go.Figure:
    predictions = analysis.impact.future_predictions
    years = [p.year for p in predictions]
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=years, y=[p.temperature_increase for p in predictions], name="Temp. increase (°F)"))
    fig.add_trace(go.Scatter(x=years, y=[p.air_quality_index for p in predictions], name="Air quality (1-5)"))
    fig.add_trace(go.Bar(x=years, y=[p.sea_level_rise for p in predictions], name="Sea level rise (ft)", opacity=0.5))
    return fig.update_layout(margin=dict(l=20, r=20, t=20, b=20), legend=dict(orientation="h"))


def _render_map(analysis: CityAnalysis) -> None:
    basemap = st.selectbox("Basemap", list(BASEMAP_TEMPLATES), index=0)
    opacity = st.slider("Heatmap opacity", 0.0, 1.0, 0.6, 0.05)
    st.pydeck_chart(analysis_deck(analysis, BASEMAP_TEMPLATES[basemap], opacity), use_container_width=True)
    counts = {tier: sum(1 for zone in analysis.zones if zone.severity == tier) for tier in SEVERITY_TIERS}
    for column, (tier, count) in zip(st.columns(len(counts)), counts.items()):
        column.metric(f"{tier.title()} zones", count)


def _render_zones(analysis: CityAnalysis) -> None:
    zones = zones_dataframe(analysis)
    if zones.empty:
        st.info("No heat zones generated.")
        return
    columns = ["name", "land_use", "severity", "temperature", "temperature_increase", "risk_score", "confidence"]
    st.dataframe(zones[columns], hide_index=True, use_container_width=True)


def _render_plans(analysis: CityAnalysis) -> None:
    plans = plans_dataframe(analysis)
    if plans.empty:
        st.info("No action plans generated.")
        return
    columns = ["action", "zone_id", "priority", "temperature_reduction", "cost_display", "timeframe"]
    st.dataframe(plans[columns], hide_index=True, use_container_width=True)
    total = int(plans["cost"].sum())
    st.metric("Total estimated cost", f"${total:,}")


def _render_impact(analysis: CityAnalysis) -> None:
    impact = analysis.impact
    col_a, col_b, col_c, col_d = st.columns(4)
    col_a.metric("Impact score", f"{impact.impact_score:.2f}")
    col_b.metric("Adaptation urgency", impact.adaptation_urgency.title())
    col_c.metric("Predicted rise", f"{impact.predicted_temperature_rise:.1f} °F")
    col_d.metric("Infrastructure risk", impact.infrastructure_risk)
    st.plotly_chart(_projection_chart(analysis), use_container_width=True)

    st.subheader("Recommendations")
    for rec in impact.recommendations:
        with st.expander(f"[{rec.priority}] {rec.title}"):
            st.write(rec.description)
            st.caption(
                f"{rec.category.title()} · ${rec.estimated_cost:,} · "
                f"{rec.carbon_reduction:,} t CO2/yr · {rec.implementation_time}"
            )
            st.write("**Stakeholders:**", ", ".join(rec.stakeholders))
            st.write("**Success metrics:**", "; ".join(rec.success_metrics))


def _render_environment(analysis: CityAnalysis) -> None:
    snapshot = analysis.snapshot
    climate = snapshot.climate
    rows = [
        {"Metric": "Temperature", "Value": f"{climate.temperature:.1f} °F", "Source": climate.source},
        {"Metric": "Humidity", "Value": f"{climate.humidity:.0f}%", "Source": climate.source},
        {"Metric": "Feels like", "Value": f"{climate.feels_like:.1f} °F", "Source": climate.source},
        {"Metric": "Dew point", "Value": f"{climate.dew_point:.1f} °F", "Source": climate.source},
        {"Metric": "Visibility", "Value": f"{climate.visibility:.1f} km", "Source": climate.source},
        {"Metric": "AQI", "Value": climate.air_quality.aqi, "Source": climate.air_quality.source},
    ]
    for field, tier in snapshot.provenance.items():
        rows.append(
            {"Metric": field.replace("_", " ").capitalize(), "Value": f"{getattr(snapshot, field):,.2f}", "Source": tier}
        )
    st.dataframe(pd.DataFrame(rows).astype({"Value": str}), hide_index=True, use_container_width=True)


def _render_patterns(city: City) -> None:
    patterns = temperature_patterns(city)
    if not patterns:
        st.info("Temperature patterns are recorded for the reference cities only.")
        return
    hourly = go.Figure(go.Scatter(x=list(range(24)), y=patterns["hourly"], mode="lines+markers", name="°F"))
    hourly.update_layout(
        title="Typical summer day", xaxis_title="Hour", yaxis_title="°F", margin=dict(l=20, r=20, t=40, b=20)
    )
    monthly = go.Figure(go.Bar(x=list(MONTHS), y=patterns["monthly"], marker_color="#f97316"))
    monthly.update_layout(title="Monthly highs", yaxis_title="°F", margin=dict(l=20, r=20, t=40, b=20))
    left, right = st.columns(2)
    left.plotly_chart(hourly, use_container_width=True)
    right.plotly_chart(monthly, use_container_width=True)
    history = pd.DataFrame(patterns["historical"], columns=["Year", "Average temperature (°F)"])
    st.dataframe(history, hide_index=True, use_container_width=True)
    for line in pattern_lines(patterns):
        st.caption(line.lstrip("• "))


def _render_models(engine: ReleafEngine) -> None:
    if not engine.reports:
        st.info("Models are running on their rule-based fallbacks; training did not finish in time.")
    else:
        st.dataframe(
            pd.DataFrame([report.__dict__ for report in engine.reports.values()]),
            hide_index=True,
            use_container_width=True,
        )
    if st.session_state.get("training_error"):
        st.warning(st.session_state.training_error)


def main() -> None:
    _initialise_session_state()
    engine: ReleafEngine = st.session_state.engine

    city = _city_from_sidebar()
    refresh = st.sidebar.button("Refresh analysis")
    _train_once(engine)
    _model_status(engine)

    st.title("Releaf · Urban Heat Island Explorer")
    if city is None:
        st.info("Describe a custom city in the sidebar to begin.")
        return

    analysis = _current_analysis(engine, city, refresh)

    tabs = st.tabs(
        ["Map", "Heat zones", "Action plans", "Climate impact", "Temperature patterns", "Environmental data", "Models"]
    )
    with tabs[0]:
        _render_map(analysis)
    with tabs[1]:
        _render_zones(analysis)
    with tabs[2]:
        _render_plans(analysis)
    with tabs[3]:
        _render_impact(analysis)
    with tabs[4]:
        _render_patterns(city)
    with tabs[5]:
        _render_environment(analysis)
    with tabs[6]:
        _render_models(engine)

    st.divider()
    st.download_button(
        "Download PDF report",
        data=st.session_state.pdf,
        file_name=f"releaf-{city.id}.pdf",
        mime="application/pdf",
    )
    st.caption(", ".join(ACTION_DISPLAY.values()) + " are the cooling interventions considered.")


if __name__ == "__main__":
    main()
