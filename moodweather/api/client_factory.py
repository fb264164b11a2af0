"""
API Client Factory

Builds SpotifyClient instances from SystemConfig. Clients created for the
same call rate draw from one shared UnifiedRateLimiter, so concurrent
requests served by one process stay inside a single budget.
"""

import os
from typing import Any, Dict, Optional, Tuple

import structlog

from ..models.config_models import SystemConfig
from .rate_limiter import UnifiedRateLimiter
from .spotify_client import SpotifyClient

logger = structlog.get_logger(__name__)


class APIClientFactory:
    """Creates catalog clients and owns their shared rate limiters."""

    def __init__(self, system_config: Optional[SystemConfig] = None):
        self.config = system_config or SystemConfig()
        self._limiters: Dict[str, UnifiedRateLimiter] = {}
        self.logger = logger.bind(component="APIClientFactory")

    def create_spotify_client(
        self,
        access_token: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        rate_limit: Optional[float] = None
    ) -> SpotifyClient:
        """
        Create a client; enter it with `async with` before use.

        A listener `access_token` is used as-is. Without one the client
        authenticates with the app's client credentials, taken from the
        arguments, then SystemConfig, then the environment.

        Raises:
            ValueError: If neither a token nor client credentials are available
        """
        if not access_token:
            client_id, client_secret = self._app_credentials(client_id, client_secret)

        rate_limit = rate_limit or self.config.spotify_rate_limit
        client = SpotifyClient(
            client_id=client_id,
            client_secret=client_secret,
            access_token=access_token,
            rate_limiter=self._limiter_for(rate_limit),
            timeout=self.config.request_timeout
        )
        self.logger.debug("Spotify client created", rate_limit=rate_limit, listener_token=bool(access_token))
        return client

    def _app_credentials(self, client_id: Optional[str], client_secret: Optional[str]) -> Tuple[str, str]:
        client_id = client_id or self.config.spotify_client_id or os.getenv("SPOTIFY_CLIENT_ID")
        client_secret = client_secret or self.config.spotify_client_secret or os.getenv("SPOTIFY_CLIENT_SECRET")
        if not client_id or not client_secret:
            raise ValueError("Spotify client ID and secret are required without an access token")
        return client_id, client_secret

    def _limiter_for(self, rate_limit: float) -> UnifiedRateLimiter:
        key = f"spotify_{float(rate_limit)}"
        if key not in self._limiters:
            self._limiters[key] = UnifiedRateLimiter.for_spotify(rate_limit)
            self.logger.info("Rate limiter created", key=key)
        return self._limiters[key]

    def get_rate_limiter_stats(self) -> Dict[str, Dict[str, Any]]:
        return {key: limiter.get_current_usage() for key, limiter in self._limiters.items()}

    def reset_rate_limiters(self) -> None:
        for limiter in self._limiters.values():
            limiter.reset()


_global_factory: Optional[APIClientFactory] = None


def get_client_factory(system_config: Optional[SystemConfig] = None) -> APIClientFactory:
    """Process-wide factory, created on first use."""
    global _global_factory
    if _global_factory is None:
        _global_factory = APIClientFactory(system_config)
    return _global_factory


def reset_client_factory() -> None:
    global _global_factory
    _global_factory = None
