"""US Census Bureau demographics for the reference cities."""

from __future__ import annotations

from typing import Dict, Optional, Tuple

import requests

from .cities import CENSUS_PLACES, city_key
from .constants import CENSUS_API_KEY, FETCH_TIMEOUT_SECONDS

# Tried in order until one answers; each returns total population first.
ENDPOINTS = (
    ("https://api.census.gov/data/2020/dec/pl", "P1_001N"),
    ("https://api.census.gov/data/2022/acs/acs5", "B01003_001E"),
)

# Shares of the total population counted as heat-vulnerable.
VULNERABLE_SHARES = {
    "elderly": 0.15,
    "children": 0.22,
    "low_income": 0.12,
    "disabled": 0.13,
    "total": 0.45,
}


def vulnerable_breakdown(population: int) -> Dict[str, int]:
    return {group: int(round(population * share)) for group, share in VULNERABLE_SHARES.items()}


def fetch_demographics(
    city_name: str,
    api_key: Optional[str] = CENSUS_API_KEY,
    timeout: float = FETCH_TIMEOUT_SECONDS,
) -> Tuple[Optional[Dict[str, int]], str]:
    """Return total population and vulnerable-group counts for a known city."""

    place = CENSUS_PLACES.get(city_key(city_name))
    if place is None:
        return None, f"No Census place code for {city_name!r}."
    place_code, state_code = place

    errors = []
    for url, variable in ENDPOINTS:
        params = {"get": variable, "for": f"place:{place_code}", "in": f"state:{state_code}"}
        if api_key:
            params["key"] = api_key
        try:
            response = requests.get(url, params=params, timeout=timeout)
            response.raise_for_status()
            rows = response.json()
            population = int(rows[1][0])
        except (requests.RequestException, ValueError, IndexError, TypeError) as exc:
            errors.append(f"{url}: {exc}")
            continue
        if population <= 0:
            errors.append(f"{url}: empty population")
            continue
        data = {"population": population}
        data.update({f"vulnerable_{k}": v for k, v in vulnerable_breakdown(population).items()})
        return data, f"Population from US Census ({variable})."

    return None, "US Census request failed: " + "; ".join(errors)


__all__ = ["ENDPOINTS", "VULNERABLE_SHARES", "vulnerable_breakdown", "fetch_demographics"]
