"""Constants and lookup tables for the weather dashboard."""

import os

# Process settings
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Each current-weather request fans out three upstream calls
CONCURRENT_REQUESTS = int(os.environ.get("CONCURRENT_REQUESTS", "8"))
FETCH_WORKERS = 3 * CONCURRENT_REQUESTS

# Cache TTLs (seconds)
DEFAULT_CACHE_TTL = 300     # 5 min when a caller gives no TTL
CURRENT_TTL = 600           # 10 min for current conditions
FORECAST_TTL = 3600         # 1 hr for daily forecasts
GEOCODE_TTL = 86400         # 24 hr for location search results
CACHE_SWEEP_INTERVAL = 300  # how often expired entries are purged

# Open-Meteo serves at most 16 forecast days
DEFAULT_FORECAST_DAYS = 14
MAX_FORECAST_DAYS = 16

# Nominatim rejects requests without an identifying agent
USER_AGENT = "LocalWeatherApp/1.0"

# Default location (used for local addresses and failed IP lookups)
DEFAULT_LOCATION = {
    "latitude": 47.6062,
    "longitude": -122.3321,
    "city": "Seattle",
    "state": "WA",
    "country": "US",
}

LOCATION_SOURCES = ("gps", "ip", "manual", "default")

# Address fields tried in order when naming a place
CITY_FIELDS = ("city", "town", "village", "county")

WEATHER_CONDITIONS = (
    "clear", "partly_cloudy", "cloudy", "fog",
    "light_rain", "rain", "heavy_rain",
    "light_snow", "snow", "heavy_snow",
    "thunderstorm",
)

# WMO Weather interpretation codes -> condition
# https://open-meteo.com/en/docs
WMO_CONDITIONS = {
    0:  "clear",
    1:  "partly_cloudy",   # Mainly clear
    2:  "partly_cloudy",
    3:  "cloudy",          # Overcast
    45: "fog",
    48: "fog",             # Depositing rime fog
    51: "light_rain",      # Light drizzle
    53: "light_rain",
    55: "rain",            # Dense drizzle
    56: "light_rain",      # Freezing drizzle
    57: "light_rain",
    61: "rain",
    63: "rain",
    65: "heavy_rain",
    66: "rain",            # Freezing rain
    67: "heavy_rain",
    71: "light_snow",
    73: "snow",
    75: "heavy_snow",
    77: "snow",            # Snow grains
    80: "rain",            # Rain showers
    81: "rain",
    82: "heavy_rain",
    85: "snow",            # Snow showers
    86: "heavy_snow",
    95: "thunderstorm",
    96: "thunderstorm",    # with slight hail
    99: "thunderstorm",    # with heavy hail
}

# AQI levels: (max_value, label)
AQI_LEVELS = [
    (50,  "Good"),
    (100, "Moderate"),
    (150, "Unhealthy for Sensitive Groups"),
    (200, "Unhealthy"),
    (300, "Very Unhealthy"),
]
AQI_UNKNOWN = "Unknown"
AQI_HAZARDOUS = "Hazardous"

# Background images: condition -> (day basename, night basename, gradient key).
# Order matters for partial condition matching.
BACKGROUNDS = {
    "clear":         ("sunny-blue-sky",    "starry-night",    "clear"),
    "partly_cloudy": ("partly-cloudy-day", "cloudy-night",    "cloudy"),
    "cloudy":        ("overcast-clouds",   "cloudy-night",    "cloudy"),
    "light_rain":    ("heavy-rain",        "heavy-rain",      "rain"),
    "rain":          ("heavy-rain",        "heavy-rain",      "rain"),
    "heavy_rain":    ("heavy-rain",        "heavy-rain",      "rain"),
    "thunderstorm":  ("lightning-storm",   "lightning-storm", "thunderstorm"),
    "light_snow":    ("gentle-snowfall",   "gentle-snowfall", "snow"),
    "snow":          ("heavy-snow",        "heavy-snow",      "snow"),
    "heavy_snow":    ("heavy-snow",        "heavy-snow",      "snow"),
    "fog":           ("misty-fog",         "misty-fog",       "fog"),
    "mist":          ("morning-mist",      "morning-mist",    "fog"),
}

BACKGROUND_GRADIENTS = {
    "clear":        "linear-gradient(180deg, #87CEEB, #98D8E8)",
    "cloudy":       "linear-gradient(180deg, #606c88, #3f4c6b)",
    "rain":         "linear-gradient(180deg, #4B79A1, #283E51)",
    "snow":         "linear-gradient(180deg, #e6f3ff, #b8d4f0)",
    "thunderstorm": "linear-gradient(180deg, #2c3e50, #4a6741)",
    "fog":          "linear-gradient(180deg, #bdc3c7, #95a5a6)",
}

BACKGROUND_PATH = "/assets/backgrounds"
IMAGE_VARIANTS = 4  # image files per condition; 1 disables the suffix

# 16-point compass directions
WIND_DIRECTIONS = [
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
]


def degree_to_compass(deg):
    """Convert wind direction in degrees to compass string."""
    if deg is None:
        return "N/A"
    idx = round(deg / 22.5) % 16
    return WIND_DIRECTIONS[idx]


def map_weather_code(code):
    """Return the condition for a WMO weather code.

    Codes outside the table (including None) map to "clear".
    """
    if isinstance(code, bool):
        return "clear"
    try:
        return WMO_CONDITIONS.get(int(code), "clear")
    except (TypeError, ValueError):
        return "clear"


def categorize_air_quality(aqi):
    """Return the US AQI category label for an index value."""
    if aqi is None:
        return AQI_UNKNOWN
    for max_val, label in AQI_LEVELS:
        if aqi <= max_val:
            return label
    return AQI_HAZARDOUS
