"""Google Earth Engine integration helpers."""

from __future__ import annotations

import json
from datetime import date, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Tuple

from .constants import GEE_CREDENTIALS_PATH

try:  # pragma: no cover - earthengine is optional in dev environments
    import ee  # type: ignore
except ImportError:  # pragma: no cover
    ee = None  # type: ignore


DEFAULT_WINDOW_DAYS = 90
DEFAULT_CLOUD_COVER = 20
DEFAULT_BUFFER_METERS = 2000


class EarthEngineUnavailable(RuntimeError):
    """Raised when Google Earth Engine cannot be used."""


def _load_service_account(path: Path) -> Tuple[str, Path]:
    data = json.loads(path.read_text())
    service_account = data.get("client_email")
    if not service_account:
        raise EarthEngineUnavailable("Service account email missing in credentials file")
    return service_account, path


@lru_cache(maxsize=4)
def initialise(credentials_path: Path = GEE_CREDENTIALS_PATH) -> Tuple[bool, Optional[str]]:
    """Initialise the Earth Engine client once per process."""

    if ee is None:
        return False, "earthengine-api is not installed."

    resolved = credentials_path.resolve()
    if not resolved.exists():
        return False, f"Credentials file not found at {resolved}"

    try:
        service_account, key_path = _load_service_account(resolved)
        credentials = ee.ServiceAccountCredentials(service_account, str(key_path))  # type: ignore[attr-defined]
        ee.Initialize(credentials=credentials)
        return True, None
    except Exception as exc:  # pragma: no cover - relies on external service
        return False, str(exc)


def _date_window(days: int) -> Tuple[str, str]:
    end = date.today()
    start = end - timedelta(days=days)
    return start.isoformat(), end.isoformat()


@lru_cache(maxsize=128)
def _cached_ndvi(
    lat: float,
    lon: float,
    start_date: str,
    end_date: str,
    max_cloud: int,
    buffer_meters: int,
    credentials_path: Path,
) -> Optional[float]:
    status, error = initialise(credentials_path)
    if not status:
        raise EarthEngineUnavailable(error or "Earth Engine unavailable")

    aoi = ee.Geometry.Point([lon, lat]).buffer(buffer_meters)
    image = (
        ee.ImageCollection("COPERNICUS/S2_SR_HARMONIZED")
        .filterBounds(aoi)
        .filterDate(start_date, end_date)
        .filter(ee.Filter.lt("CLOUDY_PIXEL_PERCENTAGE", max_cloud))
        .median()
    )
    ndvi = image.normalizedDifference(["B8", "B4"]).rename("NDVI")
    stats = ndvi.reduceRegion(reducer=ee.Reducer.mean(), geometry=aoi, scale=30)
    value = stats.getInfo().get("NDVI")
    return float(value) if value is not None else None


def ndvi_at_point(
    lat: float,
    lon: float,
    days: int = DEFAULT_WINDOW_DAYS,
    max_cloud: int = DEFAULT_CLOUD_COVER,
    credentials_path: Optional[Path] = None,
) -> Tuple[Optional[float], str]:
    """Mean Sentinel-2 NDVI (-1..1) within a small buffer around the point."""

    path = credentials_path or GEE_CREDENTIALS_PATH
    start_date, end_date = _date_window(days)
    try:
        value = _cached_ndvi(
            round(float(lat), 4),
            round(float(lon), 4),
            start_date,
            end_date,
            max_cloud,
            DEFAULT_BUFFER_METERS,
            path.resolve(),
        )
    except EarthEngineUnavailable as exc:
        return None, str(exc)
    except Exception as exc:  # pragma: no cover - relies on external service
        return None, f"Earth Engine NDVI request failed: {exc}"

    if value is None:
        return None, "Sentinel-2 returned no cloud-free NDVI for this location."
    return value, f"NDVI from Sentinel-2 (Earth Engine) · {start_date} to {end_date}"


def fetch_vegetation(lat: float, lon: float) -> Tuple[Optional[Dict[str, float]], str]:
    """Vegetation source for the aggregator, NDVI rescaled to 0..1."""

    ndvi, message = ndvi_at_point(lat, lon)
    if ndvi is None:
        return None, message
    return {"vegetation_index": round((ndvi + 1) / 2, 3), "ndvi": ndvi}, message


__all__ = [
    "EarthEngineUnavailable",
    "DEFAULT_WINDOW_DAYS",
    "DEFAULT_CLOUD_COVER",
    "initialise",
    "ndvi_at_point",
    "fetch_vegetation",
]
