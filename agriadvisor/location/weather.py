"""
WeatherAPI.com client: fetches current conditions for a point.
Current conditions only; no forecast and no air-quality data.

API docs: https://www.weatherapi.com/docs/
Requires WEATHER_API_KEY; without it the fallback variant is used.
"""

import logging
from dataclasses import dataclass

import requests

from agriadvisor.errors import UpstreamDegraded
from agriadvisor.outcome import Outcome

logger = logging.getLogger(__name__)

WEATHER_API_CURRENT = "http://api.weatherapi.com/v1/current.json"


@dataclass(frozen=True)
class WeatherSnapshot:
    """Current conditions as display strings."""
    temperature: str
    humidity: str
    description: str
    wind_speed: str


# Degraded-mode contract: returned whenever the provider cannot be used.
FALLBACK_WEATHER = WeatherSnapshot(
    temperature="25°C",
    humidity="70%",
    description="Clear sky",
    wind_speed="10 kph",
)


class WeatherSource:
    """Interface: fetch(lat, lng) -> Outcome[WeatherSnapshot]. Never raises."""

    def fetch(self, lat: float, lng: float) -> Outcome[WeatherSnapshot]:
        raise NotImplementedError

    @property
    def is_live(self) -> bool:
        return False


class FallbackWeatherClient(WeatherSource):
    """Always returns FALLBACK_WEATHER. Selected when no API key is set."""

    def fetch(self, lat: float, lng: float) -> Outcome[WeatherSnapshot]:
        logger.info("Weather disabled; fallback used for %.4f,%.4f", lat, lng)
        return Outcome.fallback(FALLBACK_WEATHER)


class WeatherApiClient(WeatherSource):

    def __init__(self, api_key: str, timeout: float = 10.0, url: str = WEATHER_API_CURRENT):
        self.api_key = api_key
        self.timeout = timeout
        self.url = url

    @property
    def is_live(self) -> bool:
        return True

    def fetch(self, lat: float, lng: float) -> Outcome[WeatherSnapshot]:
        try:
            snapshot = self._current(lat, lng)
        except UpstreamDegraded as e:
            logger.warning("Weather fallback used for %.4f,%.4f: %s", lat, lng, e.reason)
            return Outcome.fallback(FALLBACK_WEATHER)

        logger.info("Weather fetched for %.4f,%.4f: %s", lat, lng, snapshot.description)
        return Outcome.provider(snapshot)

    def _current(self, lat: float, lng: float) -> WeatherSnapshot:
        params = {
            "key": self.api_key,
            "q": f"{lat},{lng}",
            "aqi": "no",
        }
        try:
            resp = requests.get(self.url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.exceptions.RequestException as e:
            raise UpstreamDegraded("weatherapi", type(e).__name__) from e
        except ValueError as e:
            raise UpstreamDegraded("weatherapi", "response is not JSON") from e

        try:
            current = data["current"]
            return WeatherSnapshot(
                temperature=f"{current['temp_c']}°C",
                humidity=f"{current['humidity']}%",
                description=str(current["condition"]["text"]),
                wind_speed=f"{current['wind_kph']} kph",
            )
        except (KeyError, TypeError) as e:
            raise UpstreamDegraded("weatherapi", f"malformed payload ({e!r})") from e
