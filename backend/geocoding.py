"""Lumina Backend - Address Resolution"""

import logging
from typing import Optional

from models import RoutePoint
from providers import GeocodingClient

logger = logging.getLogger("lumina.geocoding")


class AddressResolver:
    """Free-text address → RoutePoint via the geocoding provider.

    Never raises: an empty address, a provider failure or an empty result set
    all come back as None. No caching and no retry, every call is one fresh
    provider round trip.
    """

    def __init__(self, geocoder: GeocodingClient):
        self.geocoder = geocoder

    async def resolve(self, address: str) -> Optional[RoutePoint]:
        if not address or not address.strip():
            return None

        try:
            candidates = await self.geocoder.geocode(address)
        except Exception as e:
            logger.warning(f"Geocoding error for '{address}': {e}")
            return None

        if not candidates:
            logger.info(f"No geocoding result for '{address}'")
            return None

        first = candidates[0]
        return RoutePoint(lat=first.lat, lng=first.lng, name=first.formattedAddress)
