"""
Advisory pipeline orchestrator: resolves the farmer's identity and location,
fetches weather and market data in parallel, builds a grounded prompt and
asks the advisory model for a recommendation.

Only request validation and identity lookup can fail a request. Every
provider failure is absorbed by its adapter and recorded in the response's
data_collected flags.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from agriadvisor.advisory.generator import (
    AdviceGenerator,
    FallbackAdviceGenerator,
    GeminiAdviceGenerator,
)
from agriadvisor.advisory.prompt import build_prompt
from agriadvisor.config import Settings
from agriadvisor.errors import IdentityNotFound, ValidationError
from agriadvisor.location.geocoding import (
    Coordinates,
    FallbackGeocoder,
    Geocoder,
    OpenCageGeocoder,
)
from agriadvisor.location.market import (
    FALLBACK_PRICES,
    MarketPrices,
    MarketPriceSource,
    UnintegratedMarketPrices,
)
from agriadvisor.location.weather import (
    FALLBACK_WEATHER,
    FallbackWeatherClient,
    WeatherApiClient,
    WeatherSnapshot,
    WeatherSource,
)
from agriadvisor.logging_utils import log_event
from agriadvisor.outcome import Outcome
from agriadvisor.users.directory import UserDirectory

logger = logging.getLogger(__name__)

T = TypeVar("T")

MISSING_FIELDS_MESSAGE = "Query and email are required"
USER_NOT_FOUND_MESSAGE = "User not found"


@dataclass(frozen=True)
class DataCollected:
    """Which providers answered for real (True) versus fell back (False)."""
    weather: bool
    crop_price: bool
    maps: bool


@dataclass(frozen=True)
class AdvisoryResponse:
    advice: str
    location: str
    coordinates: Coordinates
    data_collected: DataCollected


def settle_all(
    tasks: Sequence[Tuple[Callable[[], Outcome[T]], T]],
) -> List[Outcome[T]]:
    """
    Run every task concurrently and wait for all of them.

    Each task is a (call, fallback) pair. A call that raises is turned into
    ``Outcome.fallback(fallback)``, so the result always has one outcome per
    task, in task order, and this function never raises.
    """
    if not tasks:
        return []
    with ThreadPoolExecutor(max_workers=len(tasks)) as executor:
        futures = [executor.submit(call) for call, _ in tasks]
        outcomes = []
        for future, (_, fallback) in zip(futures, tasks):
            try:
                outcomes.append(future.result())
            except Exception:
                logger.exception("Parallel fetch task failed; fallback substituted")
                outcomes.append(Outcome.fallback(fallback))
    return outcomes


class AdvisoryPipeline:
    """
    Orchestrate one advisory request end to end.

    Usage:
        pipeline = build_pipeline(settings, directory)
        response = pipeline.handle("Should I irrigate today?", "a@x.com")
    """

    def __init__(
        self,
        directory: UserDirectory,
        geocoder: Geocoder,
        weather: WeatherSource,
        market: MarketPriceSource,
        advisor: AdviceGenerator,
    ):
        self.directory = directory
        self.geocoder = geocoder
        self.weather = weather
        self.market = market
        self.advisor = advisor

    def handle(self, query: Optional[str], email: Optional[str]) -> AdvisoryResponse:
        """
        Answer ``query`` for the user registered under ``email``.

        Raises:
            ValidationError: query or email is missing or blank.
            IdentityNotFound: no user is registered under email.
        """
        if not query or not query.strip() or not email or not email.strip():
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        start_time = time.time()

        # Step 1: Resolve identity
        identity = self.directory.find_by_email(email)
        if identity is None:
            raise IdentityNotFound(USER_NOT_FOUND_MESSAGE)
        logger.info(
            "Step 1: Processing query for user %s at location '%s'",
            identity.name, identity.location,
        )

        # Step 2: Geocode the saved location
        logger.info("Step 2: Resolving coordinates")
        geo = self.geocoder.resolve(identity.location)
        coords = geo.value

        # Step 3: Fetch weather and market prices in parallel
        logger.info("Step 3: Fetching weather and market prices")
        weather_outcome, price_outcome = settle_all([
            (lambda: self.weather.fetch(coords.lat, coords.lng), FALLBACK_WEATHER),
            (lambda: self.market.fetch(identity.location), dict(FALLBACK_PRICES)),
        ])
        weather: WeatherSnapshot = weather_outcome.value
        prices: MarketPrices = price_outcome.value

        # Step 4: Build the prompt
        logger.info("Step 4: Building prompt")
        prompt = build_prompt(query, identity.location, weather, prices, coords)

        # Step 5: Generate advice
        logger.info("Step 5: Generating advice")
        advice = self.advisor.generate(prompt)

        # Step 6: Assemble
        data_collected = DataCollected(
            weather=weather_outcome.live,
            crop_price=price_outcome.live,
            maps=geo.live,
        )
        log_event(
            "advisory.completed",
            email=identity.email,
            location=identity.location,
            weather=data_collected.weather,
            crop_price=data_collected.crop_price,
            maps=data_collected.maps,
            advice_live=advice.live,
            latency_ms=round((time.time() - start_time) * 1000, 1),
        )
        return AdvisoryResponse(
            advice=advice.value,
            location=identity.location,
            coordinates=coords,
            data_collected=data_collected,
        )


def build_pipeline(settings: Settings, directory: UserDirectory) -> AdvisoryPipeline:
    """Pick each adapter's live or fallback variant from the configured keys."""
    if settings.opencage_api_key:
        geocoder = OpenCageGeocoder(
            settings.opencage_api_key,
            fallback_lat=settings.fallback_latitude,
            fallback_lng=settings.fallback_longitude,
            timeout=settings.http_timeout_seconds,
        )
    else:
        logger.warning("OPENCAGE_API_KEY not set; geocoding will use the fallback point")
        geocoder = FallbackGeocoder(settings.fallback_latitude, settings.fallback_longitude)

    if settings.weather_api_key:
        weather = WeatherApiClient(
            settings.weather_api_key, timeout=settings.http_timeout_seconds
        )
    else:
        logger.warning("WEATHER_API_KEY not set; weather will use fallback conditions")
        weather = FallbackWeatherClient()

    if settings.gemini_api_key:
        advisor = GeminiAdviceGenerator(settings.gemini_api_key, settings.gemini_model)
    else:
        logger.warning("GEMINI_API_KEY not set; advice will use the fallback text")
        advisor = FallbackAdviceGenerator()

    return AdvisoryPipeline(
        directory=directory,
        geocoder=geocoder,
        weather=weather,
        market=UnintegratedMarketPrices(),
        advisor=advisor,
    )
