"""
Catalog API clients.

The FastAPI app lives in `moodweather.api.backend` and is imported
explicitly by the server entry point.
"""

from .base_client import BaseAPIClient, SpotifyAPIError
from .client_factory import APIClientFactory, get_client_factory, reset_client_factory
from .rate_limiter import UnifiedRateLimiter
from .spotify_client import SpotifyClient

__all__ = [
    "APIClientFactory",
    "BaseAPIClient",
    "SpotifyAPIError",
    "SpotifyClient",
    "UnifiedRateLimiter",
    "get_client_factory",
    "reset_client_factory",
]
