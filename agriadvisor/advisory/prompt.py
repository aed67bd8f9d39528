"""
Prompt construction for the advisory model.

build_prompt is pure: identical inputs give byte-identical output. Section
order is identity/query, environment, market, instruction; the labels shape
how the model structures its answer, so keep them stable.
"""

from agriadvisor.location.geocoding import Coordinates
from agriadvisor.location.market import MarketPrices
from agriadvisor.location.weather import WeatherSnapshot

# Listed first and in this order; anything else follows in insertion order.
CORE_COMMODITIES = ("wheat", "corn", "soybeans")

INSTRUCTION = (
    "Please provide a concise, actionable recommendation based on this data. "
    "Focus on what the farmer should do today or this week."
)


def _header(query: str, location_text: str, coordinates: Coordinates) -> str:
    return (
        f"You are an expert agricultural advisor. A farmer from {location_text} "
        f"(coordinates: {coordinates.lat:.4f}, {coordinates.lng:.4f}) "
        f'asked: "{query}"'
    )


def _environment(weather: WeatherSnapshot) -> str:
    return "\n".join([
        "Current Environmental Conditions:",
        f"- Temperature: {weather.temperature}",
        f"- Humidity: {weather.humidity}",
        f"- Weather: {weather.description}",
        f"- Wind Speed: {weather.wind_speed}",
    ])


def _market(prices: MarketPrices) -> str:
    ordered = [c for c in CORE_COMMODITIES if c in prices]
    ordered += [c for c in prices if c not in CORE_COMMODITIES]
    lines = ["Current Market Prices (example data):"]
    lines += [f"- {commodity.capitalize()}: {prices[commodity]}" for commodity in ordered]
    return "\n".join(lines)


def build_prompt(
    query: str,
    location_text: str,
    weather: WeatherSnapshot,
    prices: MarketPrices,
    coordinates: Coordinates,
) -> str:
    """
    Compose the advisory prompt.

    Args:
        query: The farmer's question, quoted verbatim.
        location_text: The farmer's saved location.
        weather: Current conditions (live or fallback).
        prices: Commodity -> price string (live or fallback).
        coordinates: Resolved point; printed to 4 decimal places.

    Returns:
        A single text block ready to send to the generative model.
    """
    sections = [
        _header(query, location_text, coordinates),
        _environment(weather),
        _market(prices),
        INSTRUCTION,
    ]
    return "\n\n".join(sections)
