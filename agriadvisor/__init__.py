"""
Farmer advisory service: answers a farmer's question using their location,
current weather, market prices and a generative advisory model.
"""

__version__ = "1.0.0"
