"""
Unit tests for the location adapters (geocoding, weather, market).
All HTTP calls are mocked — no network access required.
"""

import sys
import pytest
import requests as req_module
from unittest.mock import patch, MagicMock
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def _mock_response(payload):
    mock_resp = MagicMock()
    mock_resp.json.return_value = payload
    mock_resp.raise_for_status = MagicMock()
    return mock_resp


# ---------- Geocoding tests ----------

class TestGeocoding:
    def test_resolve_success(self):
        """Top OpenCage result becomes live coordinates."""
        from agriadvisor.location.geocoding import OpenCageGeocoder

        payload = {
            "status": {"code": 200, "message": "OK"},
            "results": [{
                "geometry": {"lat": 26.9196, "lng": 75.7878},
                "formatted": "Jaipur, Rajasthan, India",
            }],
        }
        with patch("agriadvisor.location.geocoding.requests.get") as mock_get:
            mock_get.return_value = _mock_response(payload)
            outcome = OpenCageGeocoder("test-key").resolve("Jaipur, India")

        assert outcome.live is True
        assert outcome.value.lat == 26.9196
        assert outcome.value.lng == 75.7878
        assert outcome.value.formatted_address == "Jaipur, Rajasthan, India"

        params = mock_get.call_args.kwargs["params"]
        assert params["q"] == "Jaipur, India"
        assert params["limit"] == 1
        assert params["key"] == "test-key"

    def test_resolve_network_error_uses_fallback(self):
        """Unreachable provider yields the fallback point and the original text."""
        from agriadvisor.location.geocoding import OpenCageGeocoder

        with patch("agriadvisor.location.geocoding.requests.get") as mock_get:
            mock_get.side_effect = req_module.exceptions.ConnectionError("down")
            outcome = OpenCageGeocoder("test-key").resolve("Nashik, India")

        assert outcome.live is False
        assert outcome.value.lat == 26.9124
        assert outcome.value.lng == 75.7873
        assert outcome.value.formatted_address == "Nashik, India"

    def test_resolve_zero_results_uses_fallback(self):
        """An empty result list is treated as a failure."""
        from agriadvisor.location.geocoding import OpenCageGeocoder

        payload = {"status": {"code": 200}, "results": []}
        with patch("agriadvisor.location.geocoding.requests.get") as mock_get:
            mock_get.return_value = _mock_response(payload)
            outcome = OpenCageGeocoder("test-key").resolve("Nowhere")

        assert outcome.live is False
        assert outcome.value.formatted_address == "Nowhere"

    def test_resolve_bad_status_uses_fallback(self):
        """A non-200 status in the payload is treated as a failure."""
        from agriadvisor.location.geocoding import OpenCageGeocoder

        payload = {"status": {"code": 402, "message": "quota exceeded"}, "results": []}
        with patch("agriadvisor.location.geocoding.requests.get") as mock_get:
            mock_get.return_value = _mock_response(payload)
            outcome = OpenCageGeocoder("test-key").resolve("Jaipur, India")

        assert outcome.live is False

    def test_resolve_http_error_uses_fallback(self):
        """HTTP 401 from the provider never reaches the caller."""
        from agriadvisor.location.geocoding import OpenCageGeocoder

        with patch("agriadvisor.location.geocoding.requests.get") as mock_get:
            mock_resp = MagicMock()
            mock_resp.raise_for_status.side_effect = req_module.exceptions.HTTPError("401")
            mock_get.return_value = mock_resp
            outcome = OpenCageGeocoder("test-key").resolve("Jaipur, India")

        assert outcome.live is False

    @pytest.mark.parametrize("payload", [
        {"status": "OK", "results": []},
        {"status": {"code": 200}, "results": ["x"]},
        {"status": {"code": 200}, "results": {"a": 1}},
        {"status": {"code": 200}, "results": [{"geometry": [1, 2]}]},
        {"status": {"code": 200}},
        ["not", "an", "object"],
    ])
    def test_resolve_malformed_payload_uses_fallback(self, payload):
        """Wrongly typed JSON nodes collapse to the fallback point."""
        from agriadvisor.location.geocoding import OpenCageGeocoder

        with patch("agriadvisor.location.geocoding.requests.get") as mock_get:
            mock_get.return_value = _mock_response(payload)
            outcome = OpenCageGeocoder("test-key").resolve("Jaipur, India")

        assert outcome.live is False
        assert (outcome.value.lat, outcome.value.lng) == (26.9124, 75.7873)
        assert outcome.value.formatted_address == "Jaipur, India"

    def test_custom_fallback_point(self):
        """The fallback point is configurable."""
        from agriadvisor.location.geocoding import FallbackGeocoder

        outcome = FallbackGeocoder(fallback_lat=12.97, fallback_lng=77.59).resolve("Bengaluru")

        assert outcome.live is False
        assert (outcome.value.lat, outcome.value.lng) == (12.97, 77.59)
        assert outcome.value.formatted_address == "Bengaluru"


# ---------- Weather tests ----------

class TestWeather:
    def test_fetch_success(self):
        """Parse WeatherAPI.com current conditions into display strings."""
        from agriadvisor.location.weather import WeatherApiClient

        payload = {
            "current": {
                "temp_c": 31.0,
                "humidity": 40,
                "condition": {"text": "Sunny"},
                "wind_kph": 12.2,
            }
        }
        with patch("agriadvisor.location.weather.requests.get") as mock_get:
            mock_get.return_value = _mock_response(payload)
            outcome = WeatherApiClient("test-key").fetch(26.9124, 75.7873)

        assert outcome.live is True
        assert outcome.value.temperature == "31.0°C"
        assert outcome.value.humidity == "40%"
        assert outcome.value.description == "Sunny"
        assert outcome.value.wind_speed == "12.2 kph"

        params = mock_get.call_args.kwargs["params"]
        assert params["q"] == "26.9124,75.7873"
        assert params["aqi"] == "no"

    def test_fetch_network_error_uses_fallback(self):
        """API failure returns the fallback snapshot exactly."""
        from agriadvisor.location.weather import WeatherApiClient, FALLBACK_WEATHER

        with patch("agriadvisor.location.weather.requests.get") as mock_get:
            mock_get.side_effect = req_module.exceptions.Timeout("slow")
            outcome = WeatherApiClient("test-key").fetch(26.9, 75.8)

        assert outcome.live is False
        assert outcome.value == FALLBACK_WEATHER

    def test_fetch_malformed_payload_uses_fallback(self):
        """Missing fields in the payload are treated as a failure."""
        from agriadvisor.location.weather import WeatherApiClient, FALLBACK_WEATHER

        with patch("agriadvisor.location.weather.requests.get") as mock_get:
            mock_get.return_value = _mock_response({"current": {"temp_c": 30}})
            outcome = WeatherApiClient("test-key").fetch(26.9, 75.8)

        assert outcome.live is False
        assert outcome.value == FALLBACK_WEATHER

    def test_keyless_client_never_calls_provider(self):
        from agriadvisor.location.weather import FallbackWeatherClient, FALLBACK_WEATHER

        with patch("agriadvisor.location.weather.requests.get") as mock_get:
            outcome = FallbackWeatherClient().fetch(26.9, 75.8)

        mock_get.assert_not_called()
        assert outcome.live is False
        assert outcome.value == FALLBACK_WEATHER


# ---------- Market tests ----------

class TestMarket:
    def test_unintegrated_always_falls_back(self):
        """Market prices are never live until a provider is integrated."""
        from agriadvisor.location.market import UnintegratedMarketPrices, FALLBACK_PRICES

        source = UnintegratedMarketPrices()
        for region in ["Jaipur, India", "Iowa, USA", ""]:
            outcome = source.fetch(region)
            assert outcome.live is False
            assert outcome.value == FALLBACK_PRICES

    def test_fallback_has_core_commodities(self):
        from agriadvisor.location.market import FALLBACK_PRICES

        assert {"wheat", "corn", "soybeans"} <= set(FALLBACK_PRICES)

    def test_fallback_is_not_shared(self):
        """Mutating a returned table does not change the fallback constant."""
        from agriadvisor.location.market import UnintegratedMarketPrices, FALLBACK_PRICES

        prices = UnintegratedMarketPrices().fetch("Jaipur").value
        prices["rice"] = "$400/ton"

        assert "rice" not in FALLBACK_PRICES
