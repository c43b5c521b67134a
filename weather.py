"""Weather orchestration: cache-or-fetch, soft enrichments, parallel fan-out."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import requests

from background import BackgroundSelector
from config import (
    CURRENT_TTL, DEFAULT_FORECAST_DAYS, FETCH_WORKERS, FORECAST_TTL, degree_to_compass,
)
from data_sources import open_meteo
from errors import UpstreamError
from location import LocationService

log = logging.getLogger(__name__)

_FETCH_ERRORS = (requests.RequestException, ValueError, KeyError, TypeError, AttributeError)


class WeatherService:
    """Fetches and normalizes weather for a pair of coordinates.

    Current conditions and forecasts go through ``cache``; air quality is
    always fetched fresh. ``now`` returns the local time and drives both the
    current-weather timestamp and the forecast's notion of today.

    The fan-out pool is shared by all request threads; ``max_workers``
    should be three times the number of requests expected at once
    (``FETCH_WORKERS``), or later requests queue behind earlier ones.
    """

    def __init__(self, cache, locations=None, backgrounds=None, now=datetime.now,
                 max_workers=FETCH_WORKERS):
        self.cache = cache
        self.locations = locations or LocationService(cache)
        self.backgrounds = backgrounds or BackgroundSelector()
        self.now = now
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="weather")

    def _timestamp(self):
        stamp = self.now().astimezone(timezone.utc)
        return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def get_current_weather(self, lat, lng):
        cache_key = f"current_{lat}_{lng}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            log.debug("Current weather cache hit for %s,%s", lat, lng)
            return cached

        try:
            raw = open_meteo.fetch_current(lat, lng)
            current = open_meteo.parse_current(raw, lat, lng, self._timestamp())
        except _FETCH_ERRORS as e:
            log.exception("Failed to fetch current weather for %s,%s", lat, lng)
            raise UpstreamError("Failed to fetch current weather data") from e

        self.cache.set(cache_key, current, CURRENT_TTL)
        log.info("Current weather fetched for %s,%s: %s", lat, lng, current.condition)
        return current

    def get_forecast(self, lat, lng, days=DEFAULT_FORECAST_DAYS):
        cache_key = f"forecast_{lat}_{lng}_{days}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            log.debug("Forecast cache hit for %s,%s (%d days)", lat, lng, days)
            return cached

        today = self.now().date().isoformat()
        try:
            raw = open_meteo.fetch_daily(lat, lng, days)
            forecast = open_meteo.parse_daily(raw, today)
        except _FETCH_ERRORS as e:
            log.exception("Failed to fetch forecast for %s,%s", lat, lng)
            raise UpstreamError("Failed to fetch forecast data") from e

        self.cache.set(cache_key, forecast, FORECAST_TTL)
        log.info("Forecast fetched for %s,%s: %d days", lat, lng, len(forecast.days))
        return forecast

    def get_air_quality(self, lat, lng):
        """Current air quality, or None. Not cached, unlike weather."""
        try:
            raw = open_meteo.fetch_air_quality(lat, lng)
            return open_meteo.parse_air_quality(raw)
        except _FETCH_ERRORS:
            log.warning("Air quality unavailable for %s,%s", lat, lng, exc_info=True)
            return None

    def current_report(self, lat, lng):
        """Current weather merged with background, air quality and place name.

        The three upstream calls run in parallel. Only the weather call is
        mandatory; its UpstreamError propagates.
        """
        weather_f = self._pool.submit(self.get_current_weather, lat, lng)
        air_f = self._pool.submit(self.get_air_quality, lat, lng)
        place_f = self._pool.submit(self.locations.reverse_geocode, lat, lng)

        current = weather_f.result()
        air_quality = air_f.result()
        place = place_f.result()

        report = current.to_dict()
        report["windCompass"] = degree_to_compass(current.wind_direction)
        report["backgroundImage"] = self.backgrounds.choose(current.condition, current.is_day).to_dict()
        report["airQuality"] = air_quality.to_dict() if air_quality else None
        report["locationInfo"] = place.to_dict() if place else None
        return report

    def forecast_report(self, lat, lng, days=DEFAULT_FORECAST_DAYS):
        return self.get_forecast(lat, lng, days).to_dict()

    def shutdown(self):
        self._pool.shutdown(wait=False)
