"""
Address geocoding.

Bootcamps are created with a free‑form address that is turned into a
GeoJSON point plus normalised address parts.  ``MapQuestGeocoder`` calls
the MapQuest geocoding API with ``requests``; ``NullGeocoder`` is used
when no API key is configured and never finds anything.
"""

import abc
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from ..core.config import Settings
from ..core.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class Location:
    latitude: float
    longitude: float
    street: str = ""
    city: str = ""
    state: str = ""
    zipcode: str = ""
    country: str = ""

    @property
    def formatted_address(self) -> str:
        region = " ".join(part for part in (self.state, self.zipcode) if part)
        return ", ".join(part for part in (self.street, self.city, region, self.country) if part)

    def to_document(self) -> Dict[str, Any]:
        return {
            "type": "Point",
            "coordinates": [self.longitude, self.latitude],
            "formattedAddress": self.formatted_address,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zipcode": self.zipcode,
            "country": self.country,
        }


class Geocoder(abc.ABC):
    @abc.abstractmethod
    def geocode(self, address: str) -> Optional[Location]:
        """Return the best match for ``address`` or ``None``."""


class NullGeocoder(Geocoder):
    def geocode(self, address: str) -> Optional[Location]:
        logger.debug("Geocoding disabled, no location for %r", address)
        return None


class MapQuestGeocoder(Geocoder):
    """Client for the MapQuest ``geocoding/v1/address`` endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def geocode(self, address: str) -> Optional[Location]:
        try:
            response = self.session.get(
                self.url,
                params={"key": self.api_key, "location": address, "maxResults": 1},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Geocoding %r failed: %s", address, exc)
            raise UpstreamError("Geocoding service unavailable") from exc

        results = payload.get("results") or []
        locations = results[0].get("locations") if results else None
        if not locations:
            return None
        match = locations[0]
        lat_lng = match.get("latLng") or {}
        if "lat" not in lat_lng or "lng" not in lat_lng:
            return None
        return Location(
            latitude=float(lat_lng["lat"]),
            longitude=float(lat_lng["lng"]),
            street=match.get("street", ""),
            city=match.get("adminArea5", ""),
            state=match.get("adminArea3", ""),
            zipcode=match.get("postalCode", ""),
            country=match.get("adminArea1", ""),
        )


def build_geocoder(settings: Settings) -> Geocoder:
    if not settings.geocoder_api_key:
        return NullGeocoder()
    return MapQuestGeocoder(api_key=settings.geocoder_api_key, url=settings.geocoder_url)
