"""Dataclasses for weather data."""

import math
from dataclasses import dataclass, field
from typing import Optional

from config import LOCATION_SOURCES


def _in_range(value, low, high):
    return isinstance(value, (int, float)) and math.isfinite(value) and low <= value <= high


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    display_name: Optional[str] = None
    source: str = "manual"

    def __post_init__(self):
        if not _in_range(self.latitude, -90, 90) or not _in_range(self.longitude, -180, 180):
            raise ValueError(f"coordinates out of range: {self.latitude},{self.longitude}")
        if self.source not in LOCATION_SOURCES:
            raise ValueError(f"unknown location source: {self.source!r}")

    def to_dict(self):
        d = {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "source": self.source,
        }
        if self.display_name is not None:
            d["displayName"] = self.display_name
        return d


@dataclass(frozen=True)
class PlaceName:
    city: Optional[str]
    state: Optional[str]
    country: Optional[str]

    def to_dict(self):
        return {"city": self.city, "state": self.state, "country": self.country}


@dataclass(frozen=True)
class CurrentWeather:
    temperature: int
    condition: str
    wind_speed: float
    wind_direction: float
    is_day: bool
    timestamp: str
    latitude: float
    longitude: float

    def to_dict(self):
        return {
            "temperature": self.temperature,
            "condition": self.condition,
            "windSpeed": self.wind_speed,
            "windDirection": self.wind_direction,
            "isDay": self.is_day,
            "timestamp": self.timestamp,
            "location": {"latitude": self.latitude, "longitude": self.longitude},
        }


@dataclass(frozen=True)
class ForecastDay:
    date: str
    temp_max: int
    temp_min: int
    condition: str
    precipitation_chance: int
    humidity: int
    sunrise: str
    sunset: str

    def to_dict(self):
        return {
            "date": self.date,
            "tempMax": self.temp_max,
            "tempMin": self.temp_min,
            "condition": self.condition,
            "precipitationChance": self.precipitation_chance,
            "humidity": self.humidity,
            "sunrise": self.sunrise,
            "sunset": self.sunset,
        }


@dataclass(frozen=True)
class Forecast:
    days: tuple = field(default_factory=tuple)

    def to_dict(self):
        return {"days": [d.to_dict() for d in self.days]}


@dataclass(frozen=True)
class AirQuality:
    aqi: Optional[float]
    pm10: Optional[float]
    pm25: Optional[float]
    category: str

    def to_dict(self):
        return {
            "aqi": self.aqi,
            "pm10": self.pm10,
            "pm25": self.pm25,
            "category": self.category,
        }


@dataclass(frozen=True)
class BackgroundChoice:
    type: str
    source: str
    fallback: str
    variant: Optional[int] = None
    base_condition: Optional[str] = None

    def to_dict(self):
        return {
            "type": self.type,
            "source": self.source,
            "fallback": self.fallback,
            "variant": self.variant,
            "baseCondition": self.base_condition,
        }
