"""Urban heat-island analysis: data aggregation, heat zones, action plans and climate impact."""

from . import aggregator, cities, constants, maps, models, pipeline, scoring  # noqa: F401
from .pipeline import ReleafEngine  # noqa: F401

__all__ = [
    "aggregator",
    "cities",
    "constants",
    "maps",
    "models",
    "pipeline",
    "scoring",
    "ReleafEngine",
]
