"""Weather capture for inspections."""

from myhive.weather.service import WeatherService, get_weather_service

__all__ = ["WeatherService", "get_weather_service"]
