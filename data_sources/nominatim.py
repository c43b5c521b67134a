"""Nominatim (OpenStreetMap) client for forward and reverse geocoding."""

import requests

from config import USER_AGENT

_TIMEOUT = 10
_REVERSE_TIMEOUT = 5
_HEADERS = {"User-Agent": USER_AGENT}

SEARCH_URL = "https://nominatim.openstreetmap.org/search"
REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"


def search(query, limit=5):
    """Forward-geocode a free-text query. Returns the raw result list."""
    params = {
        "q": query,
        "format": "json",
        "limit": limit,
        "addressdetails": 1,
    }
    resp = requests.get(SEARCH_URL, params=params, headers=_HEADERS, timeout=_TIMEOUT)
    resp.raise_for_status()
    data = resp.json()
    if not isinstance(data, list):
        raise ValueError("unexpected search response shape")
    return data


def reverse(lat, lon):
    """Reverse-geocode coordinates. Returns the raw response dict."""
    params = {
        "lat": lat,
        "lon": lon,
        "format": "json",
        "addressdetails": 1,
    }
    resp = requests.get(REVERSE_URL, params=params, headers=_HEADERS, timeout=_REVERSE_TIMEOUT)
    resp.raise_for_status()
    return resp.json()
