"""ipapi.co client for IP geolocation."""

import requests

_TIMEOUT = 5


def lookup(ip):
    """Look up an IP address. Raises on transport or provider errors."""
    resp = requests.get(f"https://ipapi.co/{ip}/json/", timeout=_TIMEOUT)
    resp.raise_for_status()
    data = resp.json()
    if data.get("error"):
        raise ValueError(data.get("reason") or "ipapi.co returned an error")
    return data
