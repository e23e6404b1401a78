"""Tests for the weather client."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from myhive.weather.service import WeatherService

OWM_PAYLOAD = {
    "main": {"temp": 21.456, "feels_like": 20.04, "humidity": 55, "pressure": 1015},
    "wind": {"speed": 3.6, "deg": 240},
    "visibility": 10000,
    "weather": [{"main": "Clear", "description": "clear sky", "icon": "01d"}],
}


def _settings(api_key: str = "test-key") -> MagicMock:
    return MagicMock(
        openweathermap_api_key=api_key,
        weather_base_url="https://weather.test/data/2.5",
        weather_cache_ttl_seconds=3600,
        weather_timeout_seconds=5.0,
    )


class TestWeatherService:
    """Tests for fetching and normalizing current weather."""

    @patch("myhive.weather.service.get_settings")
    def test_not_configured(self, mock_settings):
        """Test an unconfigured service returns None without calling out."""
        mock_settings.return_value = _settings(api_key="")
        handler = MagicMock()
        service = WeatherService(transport=httpx.MockTransport(handler))

        assert service.configured is False
        assert service.get_current_weather(51.5, -0.12) is None
        handler.assert_not_called()

    @patch("myhive.weather.service.get_settings")
    def test_normalizes_payload(self, mock_settings):
        """Test the upstream payload is mapped to the stored snapshot."""
        mock_settings.return_value = _settings()
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=OWM_PAYLOAD)

        service = WeatherService(transport=httpx.MockTransport(handler))
        weather = service.get_current_weather(51.5, -0.12)

        assert weather["temp"] == 21.5
        assert weather["feels_like"] == 20.0
        assert weather["humidity"] == 55
        assert weather["wind_speed"] == 3.6
        assert weather["wind_direction"] == 240
        assert weather["visibility"] == 10
        assert weather["conditions"] == "Clear"
        assert weather["description"] == "clear sky"
        assert weather["location"] == {"lat": 51.5, "lng": -0.12}
        assert "timestamp" in weather

        params = seen[0].url.params
        assert seen[0].url.path == "/data/2.5/weather"
        assert params["units"] == "metric"
        assert params["appid"] == "test-key"
        assert params["lon"] == "-0.12"

    @patch("myhive.weather.service.get_settings")
    def test_cached_per_coordinate(self, mock_settings):
        """Test a second lookup at the same place is served from cache."""
        mock_settings.return_value = _settings()
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=OWM_PAYLOAD)

        service = WeatherService(transport=httpx.MockTransport(handler))
        first = service.get_current_weather(51.5, -0.12)
        second = service.get_current_weather(51.5, -0.12)
        service.get_current_weather(48.85, 2.35)

        assert second == first
        assert len(calls) == 2

        service.clear_cache()
        service.get_current_weather(51.5, -0.12)
        assert len(calls) == 3

    @pytest.mark.parametrize("status_code", [401, 500])
    @patch("myhive.weather.service.get_settings")
    def test_http_error_returns_none(self, mock_settings, status_code):
        """Test upstream HTTP errors are reported as None."""
        mock_settings.return_value = _settings()
        service = WeatherService(
            transport=httpx.MockTransport(lambda request: httpx.Response(status_code, text="nope"))
        )

        assert service.get_current_weather(51.5, -0.12) is None

    @patch("myhive.weather.service.get_settings")
    def test_network_error_returns_none(self, mock_settings):
        """Test network failures are reported as None."""
        mock_settings.return_value = _settings()

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        service = WeatherService(transport=httpx.MockTransport(handler))

        assert service.get_current_weather(51.5, -0.12) is None

    @patch("myhive.weather.service.get_settings")
    def test_unexpected_payload_returns_none(self, mock_settings):
        """Test a payload without the main block is reported as None."""
        mock_settings.return_value = _settings()
        service = WeatherService(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"cod": 200}))
        )

        assert service.get_current_weather(51.5, -0.12) is None

    @patch("myhive.weather.service.get_settings")
    def test_expired_entries_swept_on_insert(self, mock_settings):
        """Test storing a snapshot drops entries for other places that have expired."""
        settings = _settings()
        settings.weather_cache_ttl_seconds = 0
        mock_settings.return_value = settings
        service = WeatherService(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=OWM_PAYLOAD))
        )

        service.get_current_weather(51.5, -0.12)
        service.get_current_weather(48.85, 2.35)
        service.get_current_weather(40.71, -74.0)

        assert list(service._cache) == [(40.71, -74.0)]

    @patch("myhive.weather.service.get_settings")
    def test_cache_size_capped(self, mock_settings):
        """Test the oldest place is evicted once the cache is full."""
        mock_settings.return_value = _settings()
        service = WeatherService(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=OWM_PAYLOAD))
        )
        service.max_cache_entries = 2

        service.get_current_weather(51.5, -0.12)
        service.get_current_weather(48.85, 2.35)
        service.get_current_weather(40.71, -74.0)

        assert list(service._cache) == [(48.85, 2.35), (40.71, -74.0)]
