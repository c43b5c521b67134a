"""Location resolution: coordinate validation, search, IP lookup, reverse geocoding.

Search fails loud (``SearchFailed``) because an empty result list must stay
distinguishable from a provider outage. IP lookup and reverse geocoding are
enrichments and fail soft: the default location and ``None`` respectively.
"""

import ipaddress
import logging
import math

import requests

from config import CITY_FIELDS, DEFAULT_LOCATION, GEOCODE_TTL
from data_sources import ipapi, nominatim
from errors import SearchFailed, ValidationError
from models import Location, PlaceName

log = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 5

_PROVIDER_ERRORS = (requests.RequestException, ValueError, KeyError, TypeError, AttributeError)


def _to_float(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def validate_coordinates(lat, lng):
    """True if both values parse as finite numbers within lat/lng ranges."""
    lat_f = _to_float(lat)
    lng_f = _to_float(lng)
    if lat_f is None or lng_f is None:
        return False
    return -90 <= lat_f <= 90 and -180 <= lng_f <= 180


def parse_coordinates(lat, lng):
    """Return (lat, lng) as floats or raise ValidationError."""
    if lat is None or lng is None or str(lat).strip() == "" or str(lng).strip() == "":
        raise ValidationError("Latitude and longitude required")
    if not validate_coordinates(lat, lng):
        raise ValidationError("Invalid coordinates")
    return float(lat), float(lng)


def first_present(mapping, fields):
    """First non-empty value among ``fields`` in ``mapping``, else None."""
    for name in fields:
        value = mapping.get(name)
        if value:
            return value
    return None


def is_local_address(ip):
    """True for loopback/private/link-local addresses and unparseable input."""
    if not ip:
        return True
    try:
        addr = ipaddress.ip_address(ip.strip())
    except ValueError:
        return True
    mapped = getattr(addr, "ipv4_mapped", None)
    if mapped is not None:
        addr = mapped
    return addr.is_loopback or addr.is_private or addr.is_link_local or addr.is_unspecified


class LocationService:
    """Turns queries, IP addresses and coordinates into Location records.

    ``cache`` is optional; when given, search results are kept for
    ``GEOCODE_TTL`` seconds.
    """

    def __init__(self, cache=None):
        self.cache = cache

    def default_location(self):
        return Location(source="default", **DEFAULT_LOCATION)

    def search(self, query):
        """Search by free text. Returns up to five Locations in provider order."""
        query = (query or "").strip()
        if not query:
            raise ValidationError("Search query required")

        cache_key = f"search_{query.casefold()}"
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                log.debug("Search cache hit for %r", query)
                return list(cached)

        try:
            raw = nominatim.search(query, limit=MAX_SEARCH_RESULTS)
            results = []
            for item in raw[:MAX_SEARCH_RESULTS]:
                loc = self._parse_search_result(item)
                if loc is not None:
                    results.append(loc)
        except _PROVIDER_ERRORS as e:
            log.exception("Location search failed for %r", query)
            raise SearchFailed("Failed to search locations") from e

        if self.cache is not None:
            self.cache.set(cache_key, results, GEOCODE_TTL)
        log.info("Search %r returned %d locations", query, len(results))
        return results

    def _parse_search_result(self, item):
        lat = _to_float(item.get("lat"))
        lon = _to_float(item.get("lon"))
        if not validate_coordinates(lat, lon):
            log.debug("Skipping search result without usable coordinates: %s", item)
            return None
        address = item.get("address") or {}
        return Location(
            latitude=lat,
            longitude=lon,
            city=first_present(address, CITY_FIELDS) or "",
            state=address.get("state", ""),
            country=address.get("country", ""),
            display_name=item.get("display_name"),
            source="manual",
        )

    def from_ip(self, ip):
        """Locate an IP address, degrading to the default location on any failure."""
        if is_local_address(ip):
            return self.default_location()
        try:
            data = ipapi.lookup(ip)
            return Location(
                latitude=float(data["latitude"]),
                longitude=float(data["longitude"]),
                city=data.get("city"),
                state=data.get("region"),
                country=data.get("country_name"),
                source="ip",
            )
        except _PROVIDER_ERRORS:
            log.warning("IP location failed for %s, using default", ip, exc_info=True)
            return self.default_location()

    def reverse_geocode(self, lat, lng):
        """Best-effort place name for coordinates; None on any failure."""
        try:
            data = nominatim.reverse(lat, lng)
            address = data.get("address")
            if not address:
                return None
            return PlaceName(
                city=first_present(address, CITY_FIELDS),
                state=address.get("state"),
                country=address.get("country"),
            )
        except _PROVIDER_ERRORS:
            log.warning("Reverse geocoding failed for %s,%s", lat, lng, exc_info=True)
            return None
