"""Open-Meteo API client for current conditions, daily forecast, and air quality."""

import logging
import math

import requests

from config import categorize_air_quality, map_weather_code
from models import AirQuality, CurrentWeather, Forecast, ForecastDay

log = logging.getLogger(__name__)

_TIMEOUT = 15  # seconds

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
AIR_QUALITY_URL = "https://air-quality-api.open-meteo.com/v1/air-quality"

_CURRENT_FIELDS = [
    "temperature_2m", "weather_code", "wind_speed_10m",
    "wind_direction_10m", "is_day",
]
_DAILY_FIELDS = [
    "weather_code", "temperature_2m_max", "temperature_2m_min",
    "precipitation_probability_max", "relative_humidity_2m_mean",
    "sunrise", "sunset",
]


def fetch_current(lat, lon):
    """Fetch current-instant conditions from Open-Meteo."""
    params = {
        "latitude": lat,
        "longitude": lon,
        "temperature_unit": "fahrenheit",
        "wind_speed_unit": "mph",
        "current": ",".join(_CURRENT_FIELDS),
        "timezone": "auto",
    }
    resp = requests.get(FORECAST_URL, params=params, timeout=_TIMEOUT)
    resp.raise_for_status()
    return resp.json()


def fetch_daily(lat, lon, days):
    """Fetch ``days`` days of daily aggregates from Open-Meteo."""
    params = {
        "latitude": lat,
        "longitude": lon,
        "temperature_unit": "fahrenheit",
        "daily": ",".join(_DAILY_FIELDS),
        "forecast_days": days,
        "timezone": "auto",
    }
    resp = requests.get(FORECAST_URL, params=params, timeout=_TIMEOUT)
    resp.raise_for_status()
    return resp.json()


def fetch_air_quality(lat, lon):
    """Fetch the current air quality index and particulates."""
    params = {
        "latitude": lat,
        "longitude": lon,
        "current": "us_aqi,pm10,pm2_5",
    }
    resp = requests.get(AIR_QUALITY_URL, params=params, timeout=_TIMEOUT)
    resp.raise_for_status()
    return resp.json()


def _first_key(data, *keys):
    """Value of the first key present; older responses use unsuffixed names."""
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def parse_current(raw, lat, lon, timestamp):
    """Parse current conditions. Raises ValueError when fields are missing."""
    c = raw.get("current") or {}
    temp = c.get("temperature_2m")
    if temp is None:
        raise ValueError("current conditions missing temperature_2m")
    return CurrentWeather(
        temperature=_round_half_up(temp),
        condition=map_weather_code(_first_key(c, "weather_code", "weathercode")),
        wind_speed=float(_first_key(c, "wind_speed_10m", "windspeed_10m") or 0),
        wind_direction=float(_first_key(c, "wind_direction_10m", "winddirection_10m") or 0),
        is_day=_first_key(c, "is_day") == 1,
        timestamp=timestamp,
        latitude=lat,
        longitude=lon,
    )


def parse_daily(raw, today):
    """Parse daily aggregates into a Forecast starting at ``today``.

    ``today`` is an ISO date string; earlier days are dropped and the rest
    sorted by date.
    """
    daily = raw.get("daily")
    if not daily or "time" not in daily:
        raise ValueError("daily forecast missing time axis")

    days = []
    for i, d in enumerate(daily["time"]):
        if d < today:
            continue
        days.append(ForecastDay(
            date=d,
            temp_max=_round_half_up(_required(daily, "temperature_2m_max", i, d)),
            temp_min=_round_half_up(_required(daily, "temperature_2m_min", i, d)),
            condition=map_weather_code(_first_value(daily, i, "weather_code", "weathercode")),
            precipitation_chance=_round_half_up(_safe_get(daily, "precipitation_probability_max", i, 0)),
            humidity=_round_half_up(_safe_get(daily, "relative_humidity_2m_mean", i, 0)),
            sunrise=_safe_get(daily, "sunrise", i, ""),
            sunset=_safe_get(daily, "sunset", i, ""),
        ))
    days.sort(key=lambda day: day.date)
    return Forecast(days=tuple(days))


def parse_air_quality(raw):
    """Parse the current air quality block, or None if the body has none."""
    c = raw.get("current")
    if not c:
        return None
    aqi = c.get("us_aqi")
    return AirQuality(
        aqi=aqi,
        pm10=c.get("pm10"),
        pm25=c.get("pm2_5"),
        category=categorize_air_quality(aqi),
    )


def _round_half_up(value):
    """Round to the nearest integer with halves going up (72.5 -> 73, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def _required(data, key, index, date):
    value = _safe_get(data, key, index, None)
    if value is None:
        raise ValueError(f"daily forecast missing {key} for {date}")
    return value


def _first_value(data, index, *keys):
    for key in keys:
        value = _safe_get(data, key, index, None)
        if value is not None:
            return value
    return None


def _safe_get(data, key, index, default):
    """Safely get a value from an Open-Meteo array response."""
    arr = data.get(key) or []
    if index < len(arr) and arr[index] is not None:
        return arr[index]
    return default
