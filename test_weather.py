"""Tests for weather orchestration."""
import threading
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
import requests

from cache import TTLCache
from config import CONCURRENT_REQUESTS
from errors import UpstreamError
from weather import WeatherService

LAT, LNG = 47.6062, -122.3321
NOW = datetime(2025, 6, 10, 11, 30, tzinfo=timezone.utc)


def _response(payload):
    resp = Mock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def locations():
    loc = Mock()
    loc.reverse_geocode.return_value = None
    return loc


@pytest.fixture
def backgrounds():
    bg = Mock()
    bg.choose.return_value.to_dict.return_value = {"type": "image", "source": "/x.jpg"}
    return bg


@pytest.fixture
def service(clock, locations, backgrounds):
    svc = WeatherService(
        TTLCache(clock=clock), locations=locations, backgrounds=backgrounds,
        now=lambda: NOW,
    )
    yield svc
    svc.shutdown()


@pytest.fixture
def current_payload():
    return {"current": {
        "temperature_2m": 72.4, "weather_code": 0, "wind_speed_10m": 4.2,
        "wind_direction_10m": 180, "is_day": 1,
    }}


@pytest.fixture
def daily_payload():
    return {"daily": {
        "time": ["2025-06-08", "2025-06-09", "2025-06-10", "2025-06-11",
                 "2025-06-12", "2025-06-13", "2025-06-14"],
        "weather_code": [0, 1, 2, 3, 45, 61, 95],
        "temperature_2m_max": [70, 71, 72, 73, 74, 75, 76],
        "temperature_2m_min": [50, 51, 52, 53, 54, 55, 56],
        "precipitation_probability_max": [0, 0, 10, 20, 30, 40, 50],
        "relative_humidity_2m_mean": [40, 41, 42, 43, 44, 45, 46],
        "sunrise": ["06:00"] * 7,
        "sunset": ["21:00"] * 7,
    }}


def test_current_weather_fetch_and_normalize(service, current_payload):
    with patch("data_sources.open_meteo.requests.get") as mock_get:
        mock_get.return_value = _response(current_payload)
        current = service.get_current_weather(LAT, LNG)

    assert current.temperature == 72
    assert current.condition == "clear"
    assert current.is_day is True
    assert current.timestamp == "2025-06-10T11:30:00.000Z"

    _, kwargs = mock_get.call_args
    assert kwargs["params"]["temperature_unit"] == "fahrenheit"
    assert kwargs["params"]["timezone"] == "auto"


def test_current_weather_cache_hit_skips_upstream(service, current_payload):
    with patch("data_sources.open_meteo.requests.get") as mock_get:
        mock_get.return_value = _response(current_payload)
        first = service.get_current_weather(LAT, LNG)
        second = service.get_current_weather(LAT, LNG)

    assert mock_get.call_count == 1
    assert first is second
    assert f"current_{LAT}_{LNG}" in service.cache.keys()


def test_current_weather_refetched_after_ten_minutes(service, clock, current_payload):
    with patch("data_sources.open_meteo.requests.get") as mock_get:
        mock_get.return_value = _response(current_payload)
        service.get_current_weather(LAT, LNG)
        clock.now += 599
        service.get_current_weather(LAT, LNG)
        assert mock_get.call_count == 1
        clock.now += 1
        service.get_current_weather(LAT, LNG)
        assert mock_get.call_count == 2


@pytest.mark.parametrize("failure", [
    requests.ConnectionError("down"),
    requests.HTTPError("500 Server Error"),
])
def test_current_weather_upstream_failure_raises(service, failure):
    with patch("data_sources.open_meteo.requests.get") as mock_get:
        mock_get.side_effect = failure
        with pytest.raises(UpstreamError):
            service.get_current_weather(LAT, LNG)
    assert service.cache.size() == 0


def test_current_weather_malformed_body_raises(service):
    with patch("data_sources.open_meteo.requests.get") as mock_get:
        mock_get.return_value = _response({"reason": "bad"})
        with pytest.raises(UpstreamError):
            service.get_current_weather(LAT, LNG)


def test_forecast_filters_past_days(service, daily_payload):
    with patch("data_sources.open_meteo.requests.get") as mock_get:
        mock_get.return_value = _response(daily_payload)
        forecast = service.get_forecast(LAT, LNG, days=7)

    assert [d.date for d in forecast.days] == [
        "2025-06-10", "2025-06-11", "2025-06-12", "2025-06-13", "2025-06-14",
    ]
    _, kwargs = mock_get.call_args
    assert kwargs["params"]["forecast_days"] == 7


def test_forecast_cached_per_day_count(service, daily_payload):
    with patch("data_sources.open_meteo.requests.get") as mock_get:
        mock_get.return_value = _response(daily_payload)
        service.get_forecast(LAT, LNG, days=7)
        service.get_forecast(LAT, LNG, days=7)
        service.get_forecast(LAT, LNG, days=3)

    assert mock_get.call_count == 2
    assert f"forecast_{LAT}_{LNG}_7" in service.cache.keys()
    assert f"forecast_{LAT}_{LNG}_3" in service.cache.keys()


def test_forecast_default_days(service, daily_payload):
    with patch("data_sources.open_meteo.requests.get") as mock_get:
        mock_get.return_value = _response(daily_payload)
        service.get_forecast(LAT, LNG)
    _, kwargs = mock_get.call_args
    assert kwargs["params"]["forecast_days"] == 14


def test_forecast_upstream_failure_raises(service):
    with patch("data_sources.open_meteo.requests.get") as mock_get:
        mock_get.side_effect = requests.Timeout("slow")
        with pytest.raises(UpstreamError):
            service.get_forecast(LAT, LNG)


def test_forecast_missing_temperatures_raises(service, daily_payload):
    daily_payload["daily"]["temperature_2m_max"] = [None] * 7
    with patch("data_sources.open_meteo.requests.get") as mock_get:
        mock_get.return_value = _response(daily_payload)
        with pytest.raises(UpstreamError):
            service.get_forecast(LAT, LNG, days=7)
    assert service.cache.size() == 0


def test_air_quality_is_not_cached(service):
    payload = {"current": {"us_aqi": 75, "pm10": 20.0, "pm2_5": 12.5}}
    with patch("data_sources.open_meteo.requests.get") as mock_get:
        mock_get.return_value = _response(payload)
        first = service.get_air_quality(LAT, LNG)
        service.get_air_quality(LAT, LNG)

    assert first.category == "Moderate"
    assert mock_get.call_count == 2
    assert service.cache.size() == 0


def test_air_quality_failure_returns_none(service):
    with patch("data_sources.open_meteo.requests.get") as mock_get:
        mock_get.side_effect = requests.ConnectionError("down")
        assert service.get_air_quality(LAT, LNG) is None


def _route_upstream(current_payload, air=None, air_error=None):
    def fake_get(url, params=None, **kwargs):
        if "air-quality" in url:
            if air_error:
                raise air_error
            return _response(air)
        return _response(current_payload)
    return fake_get


def test_current_report_merges_enrichments(service, locations, backgrounds, current_payload):
    place = Mock()
    place.to_dict.return_value = {"city": "Seattle", "state": "Washington", "country": "US"}
    locations.reverse_geocode.return_value = place
    air = {"current": {"us_aqi": 20, "pm10": 5.0, "pm2_5": 2.0}}

    with patch("data_sources.open_meteo.requests.get", side_effect=_route_upstream(current_payload, air)):
        report = service.current_report(LAT, LNG)

    assert report["temperature"] == 72
    assert report["condition"] == "clear"
    assert report["windCompass"] == "S"
    assert report["airQuality"]["category"] == "Good"
    assert report["locationInfo"]["city"] == "Seattle"
    assert report["backgroundImage"] == {"type": "image", "source": "/x.jpg"}
    backgrounds.choose.assert_called_once_with("clear", True)
    locations.reverse_geocode.assert_called_once_with(LAT, LNG)


def test_current_report_tolerates_missing_enrichments(service, current_payload):
    fake = _route_upstream(current_payload, air_error=requests.ConnectionError("down"))
    with patch("data_sources.open_meteo.requests.get", side_effect=fake):
        report = service.current_report(LAT, LNG)

    assert report["airQuality"] is None
    assert report["locationInfo"] is None
    assert report["temperature"] == 72


def test_concurrent_reports_fan_out_together(service, locations, current_payload):
    """Two requests' six upstream calls must all be in flight at once."""
    barrier = threading.Barrier(6, timeout=5)

    def blocking_get(url, params=None, **kwargs):
        barrier.wait()
        if "air-quality" in url:
            return _response({"current": {"us_aqi": 10, "pm10": 1.0, "pm2_5": 1.0}})
        return _response(current_payload)

    def blocking_reverse(lat, lng):
        barrier.wait()
        return None

    locations.reverse_geocode.side_effect = blocking_reverse
    results, errors = [], []

    def run(lat):
        try:
            results.append(service.current_report(lat, LNG))
        except Exception as e:
            errors.append(e)

    with patch("data_sources.open_meteo.requests.get", side_effect=blocking_get):
        threads = [threading.Thread(target=run, args=(lat,)) for lat in (10.0, 20.0)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

    assert errors == []
    assert sorted(r["location"]["latitude"] for r in results) == [10.0, 20.0]


def test_default_pool_fits_configured_requests(clock):
    svc = WeatherService(TTLCache(clock=clock), locations=Mock(), backgrounds=Mock())
    try:
        assert svc._pool._max_workers == 3 * CONCURRENT_REQUESTS
    finally:
        svc.shutdown()


def test_current_report_weather_failure_propagates(service):
    with patch("data_sources.open_meteo.requests.get") as mock_get:
        mock_get.side_effect = requests.ConnectionError("down")
        with pytest.raises(UpstreamError):
            service.current_report(LAT, LNG)
