"""Environmental data aggregation.

Fans out to the configured data sources in parallel, tolerates any of them
failing, and merges whatever resolved with the calculators and the fallback
tables into one :class:`~releaf_app.models.EnvironmentalSnapshot` per
location. Snapshots are kept in a :class:`~releaf_app.cache.TTLCache`.

Every source is a callable returning ``(payload | None, message)``; a
raised exception or a timeout is treated the same as a ``None`` payload.
"""

from __future__ import annotations

import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from . import calculators
from .airquality import fetch_air_quality, to_aqi_units
from .cache import TTLCache
from .census import fetch_demographics
from .cities import (
    BASE_EMISSIONS,
    BASE_ENERGY,
    CITY_AREA_SQ_MI,
    FALLBACK_WEATHER,
    POPULATION_DENSITY,
    VULNERABLE_POPULATIONS,
    city_key,
)
from .constants import (
    AIR_QUALITY_FALLBACKS,
    CLIMATE_FALLBACKS,
    ENVIRONMENTAL_FALLBACKS,
    FETCH_TIMEOUT_SECONDS,
)
from .earthengine import fetch_vegetation
from .models import AirQuality, City, ClimateSnapshot, EnvironmentalSnapshot
from .nasa import fetch_surface_temperature
from .weather import fetch_current_weather

logger = logging.getLogger(__name__)

Payload = Dict[str, Any]
SourceResult = Tuple[Optional[Payload], str]
LocationSource = Callable[[float, float], SourceResult]
CitySource = Callable[[str], SourceResult]


class MissingFallbackError(RuntimeError):
    """A snapshot field resolved to nothing, not even a fallback constant."""


@dataclass(frozen=True)
class DataSources:
    """The pluggable external collaborators; ``None`` means not configured."""

    weather: Optional[LocationSource] = None
    air_quality: Optional[LocationSource] = None
    surface_temperature: Optional[LocationSource] = None
    vegetation: Optional[LocationSource] = None
    demographics: Optional[CitySource] = None
    emissions: Optional[CitySource] = None
    energy: Optional[CitySource] = None

    @classmethod
    def live(cls) -> "DataSources":
        """Bundled HTTP clients. Emissions and energy have no public feed."""

        return cls(
            weather=fetch_current_weather,
            air_quality=fetch_air_quality,
            surface_temperature=fetch_surface_temperature,
            vegetation=fetch_vegetation,
            demographics=fetch_demographics,
        )


class EnvironmentalDataAggregator:
    def __init__(
        self,
        sources: DataSources,
        cache: Optional[TTLCache] = None,
        rng: Optional[random.Random] = None,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.sources = sources
        self.cache = cache if cache is not None else TTLCache()
        self.rng = rng or random.Random()
        self.timeout = timeout
        self._clock = clock
        self._now = now

    # ------------------------------------------------------------------
    # Public entry points

    def climate_snapshot(self, lat: float, lon: float, city_name: Optional[str] = None) -> ClimateSnapshot:
        key = TTLCache.key("climate", lat, lon)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        results = self._fan_out(
            {
                "weather": (self.sources.weather, (lat, lon)),
                "air_quality": (self.sources.air_quality, (lat, lon)),
            }
        )
        climate = self._build_climate(results["weather"], results["air_quality"], city_name)
        self.cache.set(key, climate)
        return climate

    def environmental_snapshot(
        self, lat: float, lon: float, city_name: Optional[str] = None
    ) -> EnvironmentalSnapshot:
        key = TTLCache.key("environmental", lat, lon)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        climate_key = TTLCache.key("climate", lat, lon)
        climate = self.cache.get(climate_key)

        jobs: Dict[str, Tuple[Optional[Callable[..., SourceResult]], tuple]] = {}
        if climate is None:
            jobs["weather"] = (self.sources.weather, (lat, lon))
            jobs["air_quality"] = (self.sources.air_quality, (lat, lon))
        jobs["surface_temperature"] = (self.sources.surface_temperature, (lat, lon))
        jobs["vegetation"] = (self.sources.vegetation, (lat, lon))
        name = city_name or ""
        jobs["demographics"] = (self.sources.demographics, (name,))
        jobs["emissions"] = (self.sources.emissions, (name,))
        jobs["energy"] = (self.sources.energy, (name,))

        results = self._fan_out(jobs)
        if climate is None:
            climate = self._build_climate(results["weather"], results["air_quality"], city_name)
            self.cache.set(climate_key, climate)

        snapshot = self._build_environmental(climate, results, city_name)
        self.cache.set(key, snapshot)
        return snapshot

    def snapshot_for_city(self, city: City) -> EnvironmentalSnapshot:
        return self.environmental_snapshot(city.lat, city.lon, city.name)

    # ------------------------------------------------------------------
    # Fan-out

    def _fan_out(self, jobs: Dict[str, Tuple[Optional[Callable[..., SourceResult]], tuple]]) -> Dict[str, Optional[Payload]]:
        results: Dict[str, Optional[Payload]] = {name: None for name in jobs}
        active = {name: job for name, job in jobs.items() if job[0] is not None}
        if not active:
            return results

        executor = ThreadPoolExecutor(max_workers=len(active), thread_name_prefix="releaf-source")
        try:
            futures = {name: executor.submit(source, *args) for name, (source, args) in active.items()}
            deadline = time.monotonic() + self.timeout
            for name, future in futures.items():
                remaining = max(0.0, deadline - time.monotonic())
                try:
                    payload, message = future.result(timeout=remaining)
                except FutureTimeout:
                    logger.warning("%s source timed out after %.1fs", name, self.timeout)
                    continue
                except Exception as exc:
                    logger.warning("%s source failed: %s", name, exc)
                    continue
                if payload is None:
                    logger.warning("%s source unavailable: %s", name, message)
                    continue
                logger.debug("%s source: %s", name, message)
                results[name] = payload
        finally:
            # Stragglers keep running in the background but are ignored.
            executor.shutdown(wait=False, cancel_futures=True)
        return results

    # ------------------------------------------------------------------
    # Climate

    def _build_air_quality(self, pollutants: Optional[Payload]) -> AirQuality:
        values = dict(AIR_QUALITY_FALLBACKS)
        source = "fallback"
        if pollutants:
            for pollutant in values:
                reading = pollutants.get(pollutant)
                if reading is not None:
                    values[pollutant] = float(reading)
                    source = "live"
        aqi = calculators.air_quality_index(to_aqi_units(values))
        return AirQuality(aqi=aqi, source=source, **{k: round(v, 2) for k, v in values.items()})

    def _build_climate(
        self, weather: Optional[Payload], pollutants: Optional[Payload], city_name: Optional[str]
    ) -> ClimateSnapshot:
        air_quality = self._build_air_quality(pollutants)
        if weather is None:
            return self._fallback_climate(city_name, air_quality)

        def reading(field: str) -> float:
            value = weather.get(field)
            return float(value) if value is not None else CLIMATE_FALLBACKS[field]

        temperature = reading("temperature")
        humidity = reading("humidity")
        cloud_cover = reading("cloud_cover")
        precipitation = reading("precipitation")
        uv_index = reading("uv_index")
        hour = weather.get("hour")
        if hour is None:
            hour = self._now().hour
        feels_like = weather.get("feels_like")

        return ClimateSnapshot(
            temperature=temperature,
            humidity=humidity,
            pressure=reading("pressure"),
            wind_speed=reading("wind_speed"),
            precipitation=precipitation,
            cloud_cover=cloud_cover,
            uv_index=uv_index,
            solar_radiation=round(calculators.solar_radiation(uv_index, cloud_cover, hour), 1),
            dew_point=calculators.dew_point_fahrenheit(temperature, humidity),
            visibility=round(calculators.visibility(cloud_cover, precipitation, humidity), 1),
            feels_like=float(feels_like) if feels_like is not None else calculators.heat_index(temperature, humidity),
            air_quality=air_quality,
            timestamp=self._clock(),
            source="live",
        )

    def _fallback_climate(self, city_name: Optional[str], air_quality: AirQuality) -> ClimateSnapshot:
        base = FALLBACK_WEATHER.get(city_key(city_name), {})
        logger.info("Using fallback weather for %s", city_name or "unknown location")

        def reading(field: str) -> float:
            return float(base.get(field, CLIMATE_FALLBACKS[field]))

        temperature = reading("temperature")
        humidity = reading("humidity")
        cloud_cover = reading("cloud_cover")
        precipitation = reading("precipitation")
        uv_index = reading("uv_index")

        return ClimateSnapshot(
            temperature=temperature,
            humidity=humidity,
            pressure=reading("pressure"),
            wind_speed=reading("wind_speed"),
            precipitation=precipitation,
            cloud_cover=cloud_cover,
            uv_index=uv_index,
            solar_radiation=round(calculators.solar_radiation(uv_index, cloud_cover, self._now().hour), 1),
            dew_point=calculators.dew_point_fahrenheit(temperature, humidity),
            visibility=round(calculators.visibility(cloud_cover, precipitation, humidity), 1),
            feels_like=calculators.heat_index(temperature, humidity),
            air_quality=air_quality,
            timestamp=self._clock(),
            source="fallback",
        )

    # ------------------------------------------------------------------
    # Environmental merge

    @staticmethod
    def _resolve(
        field: str,
        provenance: Dict[str, str],
        live: Optional[float] = None,
        calculate: Optional[Callable[[], Optional[float]]] = None,
        table: Optional[float] = None,
    ) -> float:
        """Source value, then calculator, then per-city table, then constant."""

        if live is not None:
            provenance[field] = "live"
            return live
        if calculate is not None:
            value = calculate()
            if value is not None:
                provenance[field] = "calculated"
                return value
        if table is not None:
            provenance[field] = "fallback"
            return table
        if field in ENVIRONMENTAL_FALLBACKS:
            provenance[field] = "fallback"
            return ENVIRONMENTAL_FALLBACKS[field]
        raise MissingFallbackError(f"No value or fallback for {field!r}")

    def _build_environmental(
        self, climate: ClimateSnapshot, results: Dict[str, Optional[Payload]], city_name: Optional[str]
    ) -> EnvironmentalSnapshot:
        key = city_key(city_name)
        provenance: Dict[str, str] = {}
        resolve = self._resolve

        weather = climate if climate.source == "live" else None
        aqi_live = climate.air_quality.source == "live"
        surface = results.get("surface_temperature") or {}
        satellite = results.get("vegetation") or {}
        demographics = results.get("demographics") or {}
        emissions = results.get("emissions") or {}
        energy = results.get("energy") or {}

        def when_weather(compute: Callable[[ClimateSnapshot], float]) -> Callable[[], Optional[float]]:
            return lambda: compute(weather) if weather is not None else None

        carbon = resolve(
            "carbon_emissions",
            provenance,
            live=_number(emissions.get("carbon_emissions")),
            calculate=when_weather(
                lambda w: calculators.carbon_emissions(w.temperature, w.air_quality.aqi, city_name)
            ),
            table=BASE_EMISSIONS.get(key),
        )
        energy_use = resolve(
            "energy_consumption",
            provenance,
            live=_number(energy.get("energy_consumption")),
            calculate=when_weather(
                lambda w: calculators.energy_consumption(w.temperature, w.humidity, city_name)
            ),
            table=BASE_ENERGY.get(key),
        )

        population = _number(demographics.get("population"))
        area = CITY_AREA_SQ_MI.get(key)
        density = resolve(
            "population_density",
            provenance,
            calculate=lambda: round(population / area) if population and area else None,
            table=POPULATION_DENSITY.get(key),
        )

        satellite_vegetation = _number(satellite.get("vegetation_index"))
        vegetation = resolve(
            "vegetation_index",
            provenance,
            live=satellite_vegetation,
            calculate=when_weather(
                lambda w: round(calculators.vegetation_index(w.temperature, w.humidity, w.uv_index), 3)
            ),
        )
        surface_temperature = resolve(
            "surface_temperature",
            provenance,
            live=_number(surface.get("surface_temperature")),
            calculate=when_weather(lambda w: w.temperature),
        )
        heat = resolve(
            "urban_heat_index",
            provenance,
            calculate=when_weather(lambda w: calculators.heat_index(w.temperature, w.humidity)),
        )

        def estimate_pollution() -> Optional[float]:
            inputs = {
                "temperature": weather.temperature if weather is not None else None,
                "carbon_emissions": carbon if provenance["carbon_emissions"] != "fallback" else None,
                "vegetation": satellite_vegetation * 100 if satellite_vegetation is not None else None,
                "humidity": weather.humidity if weather is not None else None,
            }
            if all(value is None for value in inputs.values()):
                return None
            return round(calculators.dynamic_air_pollution(**inputs), 1)

        pollution = resolve(
            "air_pollution_level",
            provenance,
            live=float(climate.air_quality.aqi) if aqi_live else None,
            calculate=estimate_pollution,
        )
        water = resolve(
            "water_quality",
            provenance,
            calculate=when_weather(
                lambda w: calculators.water_quality(
                    w.temperature, w.precipitation, w.humidity, w.air_quality.aqi
                )
            ),
        )
        noise = resolve(
            "noise_level",
            provenance,
            calculate=when_weather(lambda w: round(calculators.noise_level(w.wind_speed, self.rng), 1)),
        )
        traffic = resolve(
            "traffic_density",
            provenance,
            calculate=lambda: calculators.traffic_density(
                self._now(),
                self.rng,
                temperature=weather.temperature if weather is not None else None,
                precipitation=weather.precipitation if weather is not None else None,
                visibility_km=weather.visibility if weather is not None else None,
            ),
        )
        green_space = resolve(
            "green_space_coverage",
            provenance,
            calculate=when_weather(
                lambda w: round(calculators.green_space_coverage(w.humidity, w.precipitation), 1)
            ),
        )
        efficiency = resolve(
            "building_energy_efficiency",
            provenance,
            calculate=when_weather(lambda w: calculators.building_efficiency(w.temperature, w.humidity)),
        )
        vulnerable_table = VULNERABLE_POPULATIONS.get(key)
        vulnerable = resolve(
            "vulnerable_populations",
            provenance,
            live=_number(demographics.get("vulnerable_total")),
            table=vulnerable_table["total"] if vulnerable_table else None,
        )

        return EnvironmentalSnapshot(
            carbon_emissions=carbon,
            energy_consumption=energy_use,
            population_density=density,
            vegetation_index=vegetation,
            surface_temperature=surface_temperature,
            urban_heat_index=heat,
            air_pollution_level=pollution,
            water_quality=water,
            noise_level=noise,
            traffic_density=traffic,
            green_space_coverage=green_space,
            building_energy_efficiency=efficiency,
            vulnerable_populations=int(vulnerable),
            climate=climate,
            provenance=provenance,
        )


def _number(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


__all__ = [
    "MissingFallbackError",
    "DataSources",
    "EnvironmentalDataAggregator",
]
