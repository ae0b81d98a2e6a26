"""Map layers for a city analysis."""

from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np
import pandas as pd
import pydeck as pdk

from .constants import ACTION_DISPLAY, DEFAULT_HEATMAP_COLORS, PRIORITY_COLORS, SEVERITY_COLORS
from .models import CityAnalysis

ZONE_FILL_ALPHA = 110
ZONE_LINE_ALPHA = 220


def zones_dataframe(analysis: CityAnalysis) -> pd.DataFrame:
    rows = []
    for zone in analysis.zones:
        lat, lon = zone.center
        color = SEVERITY_COLORS.get(zone.severity, SEVERITY_COLORS["moderate"])
        rows.append(
            {
                "id": zone.id,
                "name": zone.name,
                "land_use": zone.land_use,
                "severity": zone.severity,
                "temperature": zone.temperature,
                "temperature_increase": zone.prediction.temperature_increase,
                "risk_score": zone.prediction.risk_score,
                "confidence": zone.prediction.confidence,
                # pydeck wants [lon, lat] pairs.
                "polygon": [[point[1], point[0]] for point in zone.coordinates],
                "lat": lat,
                "lon": lon,
                "fill_color": list(color) + [ZONE_FILL_ALPHA],
                "line_color": list(color) + [ZONE_LINE_ALPHA],
            }
        )
    return pd.DataFrame(rows)


def plans_dataframe(analysis: CityAnalysis) -> pd.DataFrame:
    rows = []
    for plan in analysis.plans:
        rows.append(
            {
                "id": plan.id,
                "zone_id": plan.zone_id,
                "action": ACTION_DISPLAY.get(plan.action_type, plan.action_type),
                "priority": plan.priority,
                "lat": plan.location[0],
                "lon": plan.location[1],
                "temperature_reduction": plan.impact.temperature_reduction,
                "cost": plan.implementation.cost,
                "cost_display": f"${plan.implementation.cost:,.0f}",
                "timeframe": plan.implementation.timeframe,
                "fill_color": PRIORITY_COLORS.get(plan.priority, PRIORITY_COLORS["low"]),
            }
        )
    return pd.DataFrame(rows)


def prepare_heatmap_dataframe(
    df: pd.DataFrame, colors: Optional[list] = None
) -> Tuple[pd.DataFrame, float, float]:
    """Attach interpolated RGB columns for ``df['value']``."""

    vmin = float(df["value"].min())
    vmax = float(df["value"].max())
    if math.isclose(vmin, vmax):
        vmax = vmin + 1e-6

    normalized = (df["value"] - vmin) / (vmax - vmin)
    dataframe = df.copy()
    palette = np.array(colors if colors else DEFAULT_HEATMAP_COLORS, dtype=float)
    if palette.shape[0] < 2:
        palette = np.vstack([palette, palette])
    stops = np.linspace(0.0, 1.0, palette.shape[0])
    values = normalized.to_numpy()
    dataframe["color_r"] = np.clip(np.interp(values, stops, palette[:, 0]), 0, 255).astype(int)
    dataframe["color_g"] = np.clip(np.interp(values, stops, palette[:, 1]), 0, 255).astype(int)
    dataframe["color_b"] = np.clip(np.interp(values, stops, palette[:, 2]), 0, 255).astype(int)
    return dataframe, vmin, vmax


def analysis_deck(
    analysis: CityAnalysis,
    basemap_tile_url: Optional[str] = None,
    heatmap_opacity: float = 0.6,
) -> pdk.Deck:
    city = analysis.city
    view_state = pdk.ViewState(latitude=city.lat, longitude=city.lon, zoom=11, pitch=0)
    layers = []

    if basemap_tile_url:
        layers.append(
            pdk.Layer(
                "TileLayer",
                data=basemap_tile_url,
                id="base-map",
                min_zoom=0,
                max_zoom=19,
                tile_size=256,
                opacity=1.0,
                pickable=False,
            )
        )

    zones = zones_dataframe(analysis)
    if not zones.empty:
        layers.append(
            pdk.Layer(
                "PolygonLayer",
                data=zones,
                id="heat-zones",
                get_polygon="polygon",
                get_fill_color="fill_color",
                get_line_color="line_color",
                line_width_min_pixels=1,
                pickable=True,
                auto_highlight=True,
            )
        )

        heat = zones[["lat", "lon", "name", "severity", "temperature", "risk_score"]]
        heat, _, _ = prepare_heatmap_dataframe(heat.assign(value=heat["temperature"]))
        layers.append(
            pdk.Layer(
                "HeatmapLayer",
                data=heat[["lat", "lon", "value"]],
                id="zone-heatmap",
                get_position="[lon, lat]",
                get_weight="value",
                radius_pixels=60,
                aggregation="MEAN",
                color_range=DEFAULT_HEATMAP_COLORS,
                opacity=max(0.0, min(1.0, heatmap_opacity)),
                pickable=False,
            )
        )
        layers.append(
            pdk.Layer(
                "ScatterplotLayer",
                data=heat,
                id="zone-temperatures",
                get_position="[lon, lat]",
                get_radius=250,
                radius_min_pixels=5,
                get_fill_color="[color_r, color_g, color_b, 230]",
                pickable=True,
            )
        )

    plans = plans_dataframe(analysis)
    if not plans.empty:
        layers.append(
            pdk.Layer(
                "ScatterplotLayer",
                data=plans,
                id="action-plans",
                get_position="[lon, lat]",
                get_radius=150,
                radius_min_pixels=4,
                get_fill_color="fill_color",
                get_line_color=[248, 250, 252, 200],
                line_width_min_pixels=1,
                stroked=True,
                pickable=True,
            )
        )

    tooltip_html = (
        "<b>{name}</b><br/>Severity: {severity}<br/>Temperature: {temperature}°F"
        "<br/>Risk: {risk_score}"
    )
    return pdk.Deck(
        map_style=None,
        initial_view_state=view_state,
        layers=layers,
        tooltip={"html": tooltip_html, "style": {"backgroundColor": "#0f172a", "color": "#f8fafc"}},
    )


__all__ = [
    "zones_dataframe",
    "plans_dataframe",
    "prepare_heatmap_dataframe",
    "analysis_deck",
]
