"""PDF report generation and chart helpers."""

from __future__ import annotations

import datetime
import io
import textwrap
from typing import Dict, List, Optional

import numpy as np
from matplotlib import pyplot as plt
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .cities import temperature_patterns
from .constants import ACTION_DISPLAY, SEVERITY_COLORS
from .models import CityAnalysis, ClimatePrediction, HeatZone

_PDF_MARGIN = 54  # 0.75 inches
_LINE_HEIGHT = 14
MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _png(fig) -> bytes:
    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", bbox_inches="tight")
    plt.close(fig)
    buffer.seek(0)
    return buffer.read()


def projection_chart_png(predictions: List[ClimatePrediction], title: str) -> bytes:
    years = [prediction.year for prediction in predictions]
    fig, ax = plt.subplots(figsize=(4.2, 3.0), dpi=150)
    ax.plot(years, [p.temperature_increase for p in predictions], color="#dc2626", linewidth=2, label="Temp. increase (°F)")
    ax.plot(years, [p.air_quality_index for p in predictions], color="#1d4ed8", linewidth=1.5, label="Air quality (1-5)")
    ax.bar(years, [p.sea_level_rise for p in predictions], width=2.0, color="#0f766e", alpha=0.4, label="Sea level rise (ft)")
    ax.set_title(title, fontsize=11, fontweight="bold")
    ax.set_xlabel("Year", fontsize=8)
    ax.tick_params(labelsize=7)
    ax.grid(True, linestyle="--", linewidth=0.5, color="#cbd5f5")
    ax.legend(loc="upper left", fontsize=7)
    fig.tight_layout()
    return _png(fig)


def zone_map_png(zones: List[HeatZone], title: str) -> bytes:
    fig, ax = plt.subplots(figsize=(3.6, 3.6), dpi=150)
    ax.set_facecolor("#f8fafc")
    for zone in zones:
        color = np.array(SEVERITY_COLORS.get(zone.severity, SEVERITY_COLORS["moderate"])) / 255.0
        ring = list(zone.coordinates) + [zone.coordinates[0]]
        lons = [point[1] for point in ring]
        lats = [point[0] for point in ring]
        ax.fill(lons, lats, color=color, alpha=0.45)
        ax.plot(lons, lats, color=color, linewidth=1)
        lat, lon = zone.center
        ax.text(lon, lat, f"{zone.temperature}°F", fontsize=6, ha="center", va="center")
    ax.set_title(title, fontsize=11, fontweight="bold")
    ax.tick_params(labelsize=7)
    ax.grid(True, linestyle="--", linewidth=0.5, color="#cbd5f5")
    ax.set_aspect("equal", adjustable="datalim")
    fig.tight_layout()
    return _png(fig)


def temperature_patterns_png(patterns: Dict[str, list], title: str) -> bytes:
    fig, (hourly_ax, monthly_ax) = plt.subplots(1, 2, figsize=(7.2, 2.8), dpi=150)
    hourly_ax.plot(range(24), patterns["hourly"], color="#dc2626", linewidth=2)
    hourly_ax.set_title("Typical summer day", fontsize=9)
    hourly_ax.set_xlabel("Hour", fontsize=8)
    hourly_ax.set_ylabel("°F", fontsize=8)
    monthly_ax.bar(MONTHS, patterns["monthly"], color="#f97316", alpha=0.8)
    monthly_ax.set_title("Monthly highs", fontsize=9)
    for ax in (hourly_ax, monthly_ax):
        ax.tick_params(labelsize=6)
        ax.grid(True, linestyle="--", linewidth=0.5, color="#cbd5f5")
    fig.suptitle(title, fontsize=11, fontweight="bold")
    fig.tight_layout()
    return _png(fig)


def pattern_lines(patterns: Dict[str, list]) -> List[str]:
    hourly, monthly = patterns["hourly"], patterns["monthly"]
    peak_hour = max(range(24), key=lambda hour: hourly[hour])
    hottest = max(range(12), key=lambda month: monthly[month])
    history = " · ".join(f"{year}: {value:.1f} °F" for year, value in patterns["historical"])
    return [
        f"• Daily peak {hourly[peak_hour]} °F at {peak_hour:02d}:00 · overnight low {min(hourly)} °F",
        f"• Hottest month {MONTHS[hottest]} ({monthly[hottest]} °F) · coolest {min(monthly)} °F",
        f"• Annual averages {history}",
    ]


def _render_lines(
    can: canvas.Canvas,
    lines: List[str],
    margin: int,
    page_height: int,
    start_y: int,
    line_height: int,
) -> int:
    y = start_y
    for line in lines:
        if y < margin + line_height:
            can.showPage()
            can.setFont("Helvetica", 11)
            y = page_height - margin
        can.drawString(margin, y, line)
        y -= line_height
    return y


def _section(can: canvas.Canvas, title: str, width: float, margin: int, page_height: int, y: int) -> int:
    if y < margin + 4 * _LINE_HEIGHT:
        can.showPage()
        y = page_height - margin
    can.setFont("Helvetica-Bold", 14)
    can.drawString(margin, y, title)
    y -= _LINE_HEIGHT
    can.setLineWidth(0.5)
    can.line(margin, y, width - margin, y)
    can.setFont("Helvetica", 11)
    return y - int(1.2 * _LINE_HEIGHT)


def generate_pdf_report(
    analysis: CityAnalysis,
    projection_png: Optional[bytes] = None,
    map_png: Optional[bytes] = None,
    patterns_png: Optional[bytes] = None,
) -> bytes:
    """Render ``analysis`` as a PDF; charts are drawn when not supplied."""

    city, snapshot, impact = analysis.city, analysis.snapshot, analysis.impact
    climate = snapshot.climate
    patterns = temperature_patterns(city)
    if projection_png is None and impact.future_predictions:
        projection_png = projection_chart_png(list(impact.future_predictions), "Climate projections")
    if map_png is None and analysis.zones:
        map_png = zone_map_png(list(analysis.zones), f"{city.name} heat zones")
    if patterns_png is None and patterns:
        patterns_png = temperature_patterns_png(patterns, f"{city.name} temperature patterns")

    buffer = io.BytesIO()
    can = canvas.Canvas(buffer, pagesize=letter)
    width, height = letter
    margin = _PDF_MARGIN
    page_height = int(height)
    y = page_height - margin

    can.setFont("Helvetica-Bold", 18)
    can.drawString(margin, y, f"Urban Heat Island Report · {city.name}")
    can.setLineWidth(1)
    can.line(margin, y - 4, width - margin, y - 4)
    y -= 2 * _LINE_HEIGHT
    can.setFont("Helvetica", 10)
    can.drawString(margin, y, f"Generated: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    y -= int(1.5 * _LINE_HEIGHT)

    y = _section(can, "Section 1 · Environmental Snapshot", width, margin, page_height, y)
    snapshot_lines = [
        f"Location: {city.lat:.4f}, {city.lon:.4f} · population {city.population:,}",
        f"• Weather ({climate.source}) · {climate.temperature:.1f} °F, humidity {climate.humidity:.0f}%, "
        f"feels like {climate.feels_like:.1f} °F",
        f"• Air quality ({climate.air_quality.source}) · AQI {climate.air_quality.aqi} · "
        f"PM2.5 {climate.air_quality.pm2_5:.1f} µg/m³",
        f"• Surface temperature {snapshot.surface_temperature:.1f} °F · urban heat index {snapshot.urban_heat_index:.1f}",
        f"• Vegetation index {snapshot.vegetation_index:.2f} · green space {snapshot.green_space_coverage:.1f}%",
        f"• Carbon emissions {snapshot.carbon_emissions:,.0f} · energy use {snapshot.energy_consumption:,.0f}",
        f"• Vulnerable residents {snapshot.vulnerable_populations:,}",
    ]
    y = _render_lines(can, snapshot_lines, margin, page_height, y, _LINE_HEIGHT)
    y -= _LINE_HEIGHT

    y = _section(can, "Section 2 · Heat Zones", width, margin, page_height, y)
    zone_lines = [
        f"• {zone.name} ({zone.land_use}) · {zone.severity} · {zone.temperature} °F · "
        f"+{zone.prediction.temperature_increase:.1f} °F · risk {zone.prediction.risk_score}"
        for zone in analysis.zones
    ] or ["No heat zones generated."]
    y = _render_lines(can, zone_lines, margin, page_height, y, _LINE_HEIGHT)
    y -= _LINE_HEIGHT

    y = _section(can, "Section 3 · Action Plans", width, margin, page_height, y)
    plan_lines = [
        f"• {ACTION_DISPLAY.get(plan.action_type, plan.action_type)} · {plan.priority} priority · "
        f"-{plan.impact.temperature_reduction} °F · ${plan.implementation.cost:,} · {plan.implementation.timeframe}"
        for plan in analysis.plans
    ] or ["No action plans generated."]
    y = _render_lines(can, plan_lines, margin, page_height, y, _LINE_HEIGHT)
    y -= _LINE_HEIGHT

    y = _section(can, "Section 4 · Climate Impact", width, margin, page_height, y)
    impact_lines = [
        f"• Impact score {impact.impact_score:.2f} · adaptation urgency {impact.adaptation_urgency}",
        f"• Predicted temperature rise {impact.predicted_temperature_rise:.1f} °F",
        f"• Health risk {impact.health_risk_score:.2f} · infrastructure risk {impact.infrastructure_risk}",
        f"• Vulnerable populations {impact.vulnerable_populations:,} · biodiversity impact {impact.biodiversity_impact:.2f}",
        "Recommendations:",
    ]
    for rec in impact.recommendations:
        impact_lines.append(f"• [{rec.priority}] {rec.title} · ${rec.estimated_cost:,} · {rec.implementation_time}")
        impact_lines.extend("    " + part for part in textwrap.wrap(rec.description, width=85))
    y = _render_lines(can, impact_lines, margin, page_height, y, _LINE_HEIGHT)
    y -= _LINE_HEIGHT

    if projection_png or map_png:
        if y < margin + 260:
            can.showPage()
            y = page_height - margin
        max_width = (letter[0] - 2 * margin) / 2 - 12
        row_height = 0.0
        for index, (png, caption) in enumerate(
            ((projection_png, "Figure · Climate projections"), (map_png, "Figure · Heat zone map"))
        ):
            if not png:
                continue
            reader = ImageReader(io.BytesIO(png))
            img_w, img_h = reader.getSize()
            scale = min(max_width / img_w, 220 / img_h)
            draw_w, draw_h = img_w * scale, img_h * scale
            x_pos = margin + index * (max_width + 24)
            can.drawImage(reader, x_pos, y - draw_h, width=draw_w, height=draw_h, preserveAspectRatio=True)
            can.setFont("Helvetica", 9)
            can.drawString(x_pos, y - draw_h - 12, caption)
            row_height = max(row_height, draw_h)
        y -= int(row_height) + 3 * _LINE_HEIGHT

    y = _section(can, "Section 5 · Temperature Patterns", width, margin, page_height, y)
    y = _render_lines(
        can,
        pattern_lines(patterns) if patterns else ["No recorded temperature patterns for this city."],
        margin,
        page_height,
        y,
        _LINE_HEIGHT,
    )
    if patterns_png:
        reader = ImageReader(io.BytesIO(patterns_png))
        img_w, img_h = reader.getSize()
        scale = min((letter[0] - 2 * margin) / img_w, 200 / img_h)
        draw_w, draw_h = img_w * scale, img_h * scale
        if y - draw_h < margin:
            can.showPage()
            y = page_height - margin
        can.drawImage(reader, margin, y - draw_h, width=draw_w, height=draw_h, preserveAspectRatio=True)

    can.save()
    buffer.seek(0)
    return buffer.read()


__all__ = [
    "projection_chart_png",
    "zone_map_png",
    "temperature_patterns_png",
    "pattern_lines",
    "generate_pdf_report",
]
