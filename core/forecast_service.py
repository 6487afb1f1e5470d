# core/forecast_service.py

import logging
from typing import Dict, Optional

from tools.geocoding_api import Coordinates, geocode_location
from tools.weather_api import get_rain_probability
from .models import WeatherForecast

logger = logging.getLogger(__name__)

class ForecastService:
    """
    Resolves a farm's location string to today's rain probability.
    Fail-soft: any lookup problem yields None, and evaluation proceeds without a forecast.
    """

    def __init__(self):
        self._coordinates: Dict[str, Coordinates] = {}

    def _locate(self, location: str) -> Optional[Coordinates]:
        if location not in self._coordinates:
            coords = geocode_location(location)
            if coords is None:
                return None
            self._coordinates[location] = coords
        return self._coordinates[location]

    def get(self, location: str) -> Optional[WeatherForecast]:
        if not location:
            return None
        coords = self._locate(location)
        if coords is None:
            return None
        result = get_rain_probability.invoke({"latitude": coords.latitude, "longitude": coords.longitude})
        if "error" in result:
            logger.warning("Forecast unavailable for '%s': %s", location, result["error"])
            return None
        return WeatherForecast(rain_probability_pct=max(0.0, min(100.0, result["rain_probability_pct"])))
