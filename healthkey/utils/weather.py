"""
Open-Meteo API client for the current weather.
"""
from typing import Any, Dict

import requests

from healthkey.models.day_meta import WeatherSnapshot

class OpenMeteoClient:
    """Client for the Open-Meteo forecast API."""

    def __init__(self, base_url: str = "https://api.open-meteo.com/v1", timeout: float = 5.0):
        self.base_url = base_url
        self.timeout = timeout

    def fetch_current(self, latitude: float, longitude: float) -> WeatherSnapshot:
        """
        Fetch the current weather at a location.

        Args:
            latitude: Latitude in degrees
            longitude: Longitude in degrees

        Returns:
            WeatherSnapshot with temperature, humidity and pressure

        Raises:
            requests.exceptions.RequestException: On network or HTTP errors
        """
        params: Dict[str, Any] = {
            "latitude": latitude,
            "longitude": longitude,
            "current": "temperature_2m,relative_humidity_2m,pressure_msl",
            "timezone": "auto"
        }
        response = requests.get(f"{self.base_url}/forecast", params=params, timeout=self.timeout)
        response.raise_for_status()
        current = response.json().get("current") or {}
        return WeatherSnapshot(
            temperature_c=current.get("temperature_2m"),
            humidity=current.get("relative_humidity_2m"),
            pressure_hpa=current.get("pressure_msl"),
            description="实时天气"
        )
