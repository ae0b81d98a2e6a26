"""Tiering and rounding helpers shared by the scoring components."""

from __future__ import annotations

import math
from typing import Union

Number = Union[int, float]

PRIORITY_ORDER = {"critical": 4, "high": 3, "medium": 2, "low": 1}

_SEVERITY_WEIGHTS = {"critical": 1.0, "high": 0.75, "moderate": 0.5, "low": 0.25}


def clamp_value(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def round_half_up(value: float, digits: int = 0) -> Number:
    """Round halves away from negative infinity, matching ``Math.round``.

    Python's built-in ``round`` uses banker's rounding, which drifts from the
    published tables at exact .5 boundaries.
    """

    if digits == 0:
        return int(math.floor(value + 0.5))
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def severity_from_risk(risk_score: float) -> str:
    if risk_score > 75:
        return "critical"
    if risk_score > 50:
        return "high"
    if risk_score > 25:
        return "moderate"
    return "low"


def urgency_from_impact(impact_score: float) -> str:
    if impact_score > 0.7:
        return "critical"
    if impact_score > 0.5:
        return "high"
    if impact_score > 0.3:
        return "medium"
    return "low"


def priority_from_severity(severity: str) -> str:
    if severity == "critical":
        return "high"
    if severity == "high":
        return "medium"
    return "low"


def action_quota(severity: str) -> int:
    if severity == "critical":
        return 3
    if severity == "high":
        return 2
    return 1


def severity_weight(severity: str) -> float:
    return _SEVERITY_WEIGHTS.get(severity, 0.5)


def aqi_category(aqi: float) -> int:
    """Map an EPA AQI value onto the 1 (good) to 5 (very unhealthy) scale."""

    if aqi <= 50:
        return 1
    if aqi <= 100:
        return 2
    if aqi <= 150:
        return 3
    if aqi <= 200:
        return 4
    return 5


__all__ = [
    "PRIORITY_ORDER",
    "clamp_value",
    "round_half_up",
    "severity_from_risk",
    "urgency_from_impact",
    "priority_from_severity",
    "action_quota",
    "severity_weight",
    "aqi_category",
]
