"""Error types surfaced by the weather services."""


class WeatherAppError(Exception):
    """Base class for errors the HTTP layer knows how to report."""


class ValidationError(WeatherAppError):
    """Bad request input (missing/invalid coordinates, empty query)."""


class UpstreamError(WeatherAppError):
    """A mandatory upstream fetch failed."""


class SearchFailed(UpstreamError):
    """The geocoding provider failed during a location search."""
