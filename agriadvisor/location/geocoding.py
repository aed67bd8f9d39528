"""
Geocoding adapter: converts a free-text location (e.g. 'Jaipur, India')
into coordinates using the OpenCage Geocoding API.

API docs: https://opencagedata.com/api
Requires OPENCAGE_API_KEY; without it the fallback variant is used.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from agriadvisor.config import DEFAULT_FALLBACK_LATITUDE, DEFAULT_FALLBACK_LONGITUDE
from agriadvisor.errors import UpstreamDegraded
from agriadvisor.outcome import Outcome

logger = logging.getLogger(__name__)

OPENCAGE_GEOCODE_URL = "https://api.opencagedata.com/geocode/v1/json"


@dataclass(frozen=True)
class Coordinates:
    """A resolved point with its display address."""
    lat: float
    lng: float
    formatted_address: str


class Geocoder:
    """Interface: resolve(location_text) -> Outcome[Coordinates]. Never raises."""

    def __init__(
        self,
        fallback_lat: float = DEFAULT_FALLBACK_LATITUDE,
        fallback_lng: float = DEFAULT_FALLBACK_LONGITUDE,
    ):
        self.fallback_lat = fallback_lat
        self.fallback_lng = fallback_lng

    def fallback_for(self, location_text: str) -> Coordinates:
        """The configured default point, labelled with the original input."""
        return Coordinates(
            lat=self.fallback_lat,
            lng=self.fallback_lng,
            formatted_address=location_text,
        )

    def resolve(self, location_text: str) -> Outcome[Coordinates]:
        raise NotImplementedError

    @property
    def is_live(self) -> bool:
        return False


class FallbackGeocoder(Geocoder):
    """Always returns the fallback point. Selected when no API key is set."""

    def resolve(self, location_text: str) -> Outcome[Coordinates]:
        logger.info("Geocoding disabled; fallback used for '%s'", location_text)
        return Outcome.fallback(self.fallback_for(location_text))


class OpenCageGeocoder(Geocoder):
    """Geocode through OpenCage, asking for the single best match."""

    def __init__(
        self,
        api_key: str,
        fallback_lat: float = DEFAULT_FALLBACK_LATITUDE,
        fallback_lng: float = DEFAULT_FALLBACK_LONGITUDE,
        timeout: float = 10.0,
        url: str = OPENCAGE_GEOCODE_URL,
    ):
        super().__init__(fallback_lat, fallback_lng)
        self.api_key = api_key
        self.timeout = timeout
        self.url = url

    @property
    def is_live(self) -> bool:
        return True

    def resolve(self, location_text: str) -> Outcome[Coordinates]:
        try:
            coords = self._geocode(location_text)
        except UpstreamDegraded as e:
            logger.warning("Geocoding fallback used for '%s': %s", location_text, e.reason)
            return Outcome.fallback(self.fallback_for(location_text))

        logger.info(
            "Geocoding resolved '%s' to lat=%.4f, lng=%.4f",
            location_text, coords.lat, coords.lng,
        )
        return Outcome.provider(coords)

    def _geocode(self, location_text: str) -> Coordinates:
        params = {"q": location_text, "key": self.api_key, "limit": 1}
        try:
            resp = requests.get(self.url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.exceptions.RequestException as e:
            # str(e) may carry the request URL, which includes the key
            raise UpstreamDegraded("opencage", type(e).__name__) from e
        except ValueError as e:
            raise UpstreamDegraded("opencage", "response is not JSON") from e

        if not isinstance(data, dict):
            raise UpstreamDegraded("opencage", "unexpected payload")

        status = data.get("status")
        status_code = status.get("code") if isinstance(status, dict) else None
        if status_code != 200:
            raise UpstreamDegraded("opencage", f"status code {status_code}")

        results = data.get("results")
        if not isinstance(results, list):
            raise UpstreamDegraded("opencage", "malformed payload")
        if not results:
            raise UpstreamDegraded("opencage", "no results")

        top = results[0]
        if not isinstance(top, dict):
            raise UpstreamDegraded("opencage", "malformed payload")
        geometry = top.get("geometry")
        if not isinstance(geometry, dict):
            raise UpstreamDegraded("opencage", "result has no geometry")
        lat = _parse_float(geometry.get("lat"))
        lng = _parse_float(geometry.get("lng"))
        if lat is None or lng is None:
            raise UpstreamDegraded("opencage", "result has no geometry")

        return Coordinates(
            lat=lat,
            lng=lng,
            formatted_address=str(top.get("formatted") or location_text),
        )


def _parse_float(value: object) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
