"""Weather capture via the OpenWeatherMap current-weather API."""

import logging
import threading
import time
from datetime import UTC, datetime
from typing import Any

import httpx

from myhive.config import get_settings

logger = logging.getLogger(__name__)


class WeatherService:
    """Fetches current conditions for a coordinate.

    Results are cached in memory per coordinate. Every failure is logged and
    reported as ``None``: weather is decoration, never a reason to fail.

    Attributes:
        settings: Application settings containing weather configuration.
        configured: Whether an API key is set.
        max_cache_entries: Upper bound on cached coordinates.
    """

    max_cache_entries = 1024

    def __init__(self, transport: httpx.BaseTransport | None = None):
        """Initialize the weather service with settings.

        Args:
            transport: Optional httpx transport (used by tests).
        """
        self.settings = get_settings()
        self.configured = bool(self.settings.openweathermap_api_key)
        self._transport = transport
        self._cache: dict[tuple[float, float], tuple[float, dict[str, Any]]] = {}
        self._cache_lock = threading.Lock()
        if not self.configured:
            logger.warning("Weather service initialized without API key, weather capture disabled")

    def _cache_key(self, lat: float, lng: float) -> tuple[float, float]:
        return (round(lat, 4), round(lng, 4))

    def _from_cache(self, key: tuple[float, float]) -> dict[str, Any] | None:
        with self._cache_lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            expires_at, data = entry
            if time.monotonic() >= expires_at:
                del self._cache[key]
                return None
            return data

    def get_current_weather(self, lat: float, lng: float) -> dict[str, Any] | None:
        """Get current weather at a location.

        Args:
            lat: Latitude.
            lng: Longitude.

        Returns:
            dict | None: Normalized weather snapshot, or None when the
            service is not configured or the upstream call failed.
        """
        if not self.configured:
            return None

        key = self._cache_key(lat, lng)
        cached = self._from_cache(key)
        if cached is not None:
            return cached

        params = {
            "lat": lat,
            "lon": lng,
            "appid": self.settings.openweathermap_api_key,
            "units": "metric",
        }

        try:
            with httpx.Client(
                timeout=self.settings.weather_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = client.get(f"{self.settings.weather_base_url}/weather", params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Weather API error (HTTP {e.response.status_code}): {e.response.text}")
            return None
        except httpx.RequestError as e:
            logger.error(f"Weather network error: {e}")
            return None

        try:
            weather = self._normalize(data, lat, lng)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unexpected weather payload: {e}")
            return None

        self._store(key, weather)
        return weather

    def _store(self, key: tuple[float, float], weather: dict[str, Any]) -> None:
        """Cache a snapshot, dropping expired entries and the oldest beyond the cap."""
        now = time.monotonic()
        with self._cache_lock:
            for stale in [k for k, (expires_at, _) in self._cache.items() if now >= expires_at]:
                del self._cache[stale]
            self._cache.pop(key, None)
            while len(self._cache) >= self.max_cache_entries:
                del self._cache[next(iter(self._cache))]
            self._cache[key] = (now + self.settings.weather_cache_ttl_seconds, weather)

    def _normalize(self, data: dict[str, Any], lat: float, lng: float) -> dict[str, Any]:
        """Map an OpenWeatherMap payload to the stored snapshot shape.

        Temperatures are in Celsius, wind speed in m/s, visibility in km.
        """
        main = data["main"]
        wind = data.get("wind") or {}
        conditions = (data.get("weather") or [{}])[0]
        visibility = data.get("visibility")

        return {
            "temp": round(main["temp"], 1),
            "feels_like": round(main["feels_like"], 1),
            "humidity": main.get("humidity"),
            "pressure": main.get("pressure"),
            "wind_speed": wind.get("speed", 0),
            "wind_direction": wind.get("deg"),
            "visibility": round(visibility / 1000) if visibility else None,
            "conditions": conditions.get("main", "Unknown"),
            "icon": conditions.get("icon", "01d"),
            "description": conditions.get("description", "Unknown"),
            "timestamp": datetime.now(UTC).isoformat(),
            "location": {"lat": lat, "lng": lng},
        }

    def clear_cache(self) -> None:
        """Drop all cached snapshots."""
        with self._cache_lock:
            self._cache.clear()


# Singleton instance
_weather_service: WeatherService | None = None


def get_weather_service() -> WeatherService:
    """Get the weather service singleton.

    Returns:
        WeatherService: The weather service instance.
    """
    global _weather_service
    if _weather_service is None:
        _weather_service = WeatherService()
    return _weather_service
