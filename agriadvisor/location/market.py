"""
Commodity market prices for a region.

No live price provider is integrated yet. UnintegratedMarketPrices keeps the
interface stable so a real source can be dropped in later; until then every
fetch returns FALLBACK_PRICES with ``live=False``.
"""

import logging
from typing import Dict

from agriadvisor.outcome import Outcome

logger = logging.getLogger(__name__)

MarketPrices = Dict[str, str]

# Degraded-mode contract: reference prices used when no provider is available.
FALLBACK_PRICES: MarketPrices = {
    "wheat": "$280/ton",
    "corn": "$220/ton",
    "soybeans": "$480/ton",
}


class MarketPriceSource:
    """Interface: fetch(region_text) -> Outcome[MarketPrices]. Never raises."""

    def fetch(self, region_text: str) -> Outcome[MarketPrices]:
        raise NotImplementedError

    @property
    def is_live(self) -> bool:
        return False


class UnintegratedMarketPrices(MarketPriceSource):

    def fetch(self, region_text: str) -> Outcome[MarketPrices]:
        logger.info("Market prices not integrated; fallback used for '%s'", region_text)
        return Outcome.fallback(dict(FALLBACK_PRICES))
