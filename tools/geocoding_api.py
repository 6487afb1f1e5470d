# tools/geocoding_api.py

import logging
from typing import NamedTuple, Optional
import requests

from core.config import settings

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
USER_AGENT = "IrrigationDecisionEngine/1.0" # Nominatim rejects anonymous clients

class Coordinates(NamedTuple):
    latitude: float
    longitude: float

def geocode_location(location: str, timeout_s: float = settings.weather_timeout_s) -> Optional[Coordinates]:
    """
    Places a free-text farm location (e.g. "Sousse, Tunisia") on the map using
    OpenStreetMap's Nominatim. Returns None when the place cannot be resolved.
    """
    logger.debug("---TOOL: Geocoding '%s'---", location)
    try:
        response = requests.get(
            NOMINATIM_URL,
            params={"q": location, "format": "json", "limit": 1},
            headers={"User-Agent": USER_AGENT},
            timeout=timeout_s,
        )
        response.raise_for_status()
        matches = response.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning("Geocoding request for '%s' failed: %s", location, e)
        return None

    if not matches:
        logger.warning("No coordinates found for '%s'", location)
        return None
    try:
        return Coordinates(float(matches[0]["lat"]), float(matches[0]["lon"]))
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.warning("Unexpected geocoding payload for '%s': %s", location, e)
        return None
