"""
Location-aware data fetching modules for the advisory pipeline.

Modules:
    geocoding — Resolve a free-text location to coordinates (OpenCage)
    weather   — Fetch current conditions for a point (WeatherAPI.com)
    market    — Commodity market prices (reserved, fallback only)

Every adapter absorbs its provider's failures and returns an Outcome whose
``live`` flag records whether the provider or the fallback was used.
"""
