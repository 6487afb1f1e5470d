# tools/weather_api.py
import logging
import requests
from langchain_core.tools import tool

from core.config import settings

logger = logging.getLogger(__name__)

@tool
def get_rain_probability(latitude: float, longitude: float) -> dict:
    """
    Fetches today's maximum precipitation probability for a latitude and longitude.
    Returns a dictionary with 'rain_probability_pct' or an 'error' message.
    """
    logger.debug("---TOOL: Fetching rain probability for Lat=%s, Lon=%s---", latitude, longitude)
    API_URL = "https://api.open-meteo.com/v1/forecast"
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "daily": "precipitation_probability_max",
        "timezone": "auto",
        "forecast_days": 1
    }

    try:
        response = requests.get(API_URL, params=params, timeout=settings.weather_timeout_s)
        response.raise_for_status()
        data = response.json()

        probability = data['daily']['precipitation_probability_max'][0]
        if probability is None:
            return {"error": "No precipitation probability in forecast."}
        return {"rain_probability_pct": float(probability)}
    except requests.exceptions.RequestException as e:
        return {"error": f"Error fetching weather data: {e}"}
    except (KeyError, IndexError, TypeError, ValueError) as e:
        return {"error": f"Error processing weather data: {e}"}
