"""Weather dashboard: Flask backend with APScheduler."""

import logging

from flask import Flask, jsonify, request
from apscheduler.schedulers.background import BackgroundScheduler

from background import BackgroundSelector
from cache import TTLCache
from config import (
    CACHE_SWEEP_INTERVAL, DEFAULT_FORECAST_DAYS, HOST, LOG_LEVEL,
    MAX_FORECAST_DAYS, PORT,
)
from errors import SearchFailed, UpstreamError, ValidationError
from location import LocationService, parse_coordinates
from weather import WeatherService

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

app = Flask(__name__)

# One cache per process, shared by the services
cache = TTLCache()
locations = LocationService(cache)
backgrounds = BackgroundSelector()
weather = WeatherService(cache, locations=locations, backgrounds=backgrounds)


def _client_ip():
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr


def _parse_days(raw):
    if raw is None or raw == "":
        return DEFAULT_FORECAST_DAYS
    try:
        days = int(raw)
    except ValueError:
        raise ValidationError("Invalid days") from None
    if not 1 <= days <= MAX_FORECAST_DAYS:
        raise ValidationError(f"days must be between 1 and {MAX_FORECAST_DAYS}")
    return days


@app.errorhandler(ValidationError)
def _validation_error(e):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(500)
def _internal_error(e):
    return jsonify({"error": "Something went wrong!"}), 500


# ── Routes ────────────────────────────────────────────────────────────

@app.route("/api/weather/current")
def api_current_weather():
    """Current conditions with background, air quality and place name."""
    lat, lng = parse_coordinates(request.args.get("lat"), request.args.get("lng"))
    try:
        return jsonify(weather.current_report(lat, lng))
    except UpstreamError:
        log.error("Current weather request failed for %s,%s", lat, lng)
        return jsonify({"error": "Failed to fetch weather data"}), 500


@app.route("/api/weather/forecast")
def api_forecast():
    """Daily forecast from today onward."""
    lat, lng = parse_coordinates(request.args.get("lat"), request.args.get("lng"))
    days = _parse_days(request.args.get("days"))
    try:
        return jsonify(weather.forecast_report(lat, lng, days))
    except UpstreamError:
        log.error("Forecast request failed for %s,%s", lat, lng)
        return jsonify({"error": "Failed to fetch forecast data"}), 500


@app.route("/api/location/search")
def api_search():
    """Geocoding search for locations."""
    query = request.args.get("query", "")
    try:
        results = locations.search(query)
    except SearchFailed:
        return jsonify({"error": "Failed to search locations"}), 500
    return jsonify([loc.to_dict() for loc in results])


@app.route("/api/location/ip")
def api_ip_location():
    """Approximate location of the caller; falls back to the default."""
    return jsonify(locations.from_ip(_client_ip()).to_dict())


@app.route("/api/backgrounds")
def api_backgrounds():
    return jsonify(backgrounds.catalog())


@app.route("/api/health")
def api_health():
    return jsonify({"status": "ok", "cache": cache.stats()})


# ── Startup ───────────────────────────────────────────────────────────

if __name__ == "__main__":
    scheduler = BackgroundScheduler()
    scheduler.add_job(cache.purge_expired, "interval", seconds=CACHE_SWEEP_INTERVAL)
    scheduler.start()

    log.info("Starting weather dashboard on port %d", PORT)
    app.run(host=HOST, port=PORT, debug=False, threaded=True)
