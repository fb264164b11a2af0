"""
Spotify Web API Client

Catalog access for the discovery pipeline: track search, batch audio
features, and the playlist write endpoints used when publishing.
"""

import base64
import time
from typing import Any, Dict, List, Optional

import structlog

from ..models.track_models import AudioFeatures, Track
from .base_client import BaseAPIClient, SpotifyAPIError
from .rate_limiter import UnifiedRateLimiter

logger = structlog.get_logger(__name__)

FEATURE_BATCH_SIZE = 100
PLAYLIST_ADD_BATCH_SIZE = 100


class SpotifyClient(BaseAPIClient):
    """
    Spotify Web API client with unified authentication and rate limiting.

    Authenticates either with a user bearer token issued elsewhere (needed
    for the playlist endpoints) or with the client-credentials flow when a
    client id and secret are configured.
    """

    BASE_URL = "https://api.spotify.com/v1"
    AUTH_URL = "https://accounts.spotify.com/api/token"

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        access_token: Optional[str] = None,
        rate_limiter: Optional[UnifiedRateLimiter] = None,
        timeout: int = 10
    ):
        """
        Initialize Spotify client.

        Args:
            client_id: Spotify client ID (client-credentials flow)
            client_secret: Spotify client secret (client-credentials flow)
            access_token: User bearer token; takes precedence over client credentials
            rate_limiter: Rate limiter instance (optional, will create default if not provided)
            timeout: Request timeout in seconds
        """
        if not access_token and not (client_id and client_secret):
            raise ValueError("Either an access token or client ID and secret are required")

        if rate_limiter is None:
            rate_limiter = UnifiedRateLimiter.for_spotify()

        super().__init__(
            base_url=self.BASE_URL,
            rate_limiter=rate_limiter,
            timeout=timeout,
            service_name="Spotify"
        )

        self.client_id = client_id
        self.client_secret = client_secret
        self.access_token: Optional[str] = access_token
        self.user_token = access_token is not None
        # User tokens are refreshed by the session issuer, not here
        self.token_expires_at: float = float("inf") if self.user_token else 0.0

        self.logger.info("Spotify client initialized", user_token=self.user_token)

    def _extract_api_error(self, data: Dict[str, Any]) -> Optional[str]:
        """Spotify wraps errors as {"error": {"status": .., "message": ..}}."""
        if "error" in data:
            error_info = data["error"]
            if isinstance(error_info, dict):
                return error_info.get("message", f"Error {error_info.get('status', 'unknown')}")
            return str(error_info)
        return None

    async def __aenter__(self):
        """Async context manager entry with authentication."""
        await super().__aenter__()
        if not self.user_token:
            await self._authenticate()
        return self

    async def _authenticate(self) -> None:
        """Authenticate with Spotify API using client credentials flow."""
        if not self.session:
            raise RuntimeError("Client not initialized. Use async context manager.")

        auth_str = f"{self.client_id}:{self.client_secret}"
        auth_b64 = base64.b64encode(auth_str.encode()).decode()

        headers = {
            "Authorization": f"Basic {auth_b64}",
            "Content-Type": "application/x-www-form-urlencoded"
        }

        async with self.session.post(
            self.AUTH_URL,
            headers=headers,
            data={"grant_type": "client_credentials"}
        ) as response:
            if response.status != 200:
                body = await response.text()
                self.logger.error(
                    "Spotify authentication failed",
                    status=response.status,
                    error=body[:200]
                )
                raise SpotifyAPIError(f"Spotify auth failed: {response.status}", status=response.status)

            token_data = await response.json()
            self.access_token = token_data["access_token"]
            expires_in = token_data.get("expires_in", 3600)
            self.token_expires_at = time.time() + expires_in - 60  # 1min buffer

            self.logger.info("Spotify authentication successful", expires_in=expires_in)

    async def _ensure_valid_token(self) -> None:
        if self.user_token:
            return
        if not self.access_token or time.time() >= self.token_expires_at:
            await self._authenticate()

    async def _make_spotify_request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        method: str = "GET",
        json_body: Optional[Dict[str, Any]] = None,
        retries: int = 3
    ) -> Dict[str, Any]:
        """Make authenticated request to Spotify API."""
        await self._ensure_valid_token()

        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json"
        }

        return await self._make_request(
            endpoint=endpoint,
            params=params,
            method=method,
            headers=headers,
            json_body=json_body,
            retries=retries
        )

    async def search_tracks(
        self,
        query: str,
        limit: int = 20,
        market: Optional[str] = None
    ) -> List[Track]:
        """
        Search for tracks with a free-text query.

        Args:
            query: Search query
            limit: Number of results (the catalog caps this at 50)
            market: Optional market code

        Returns:
            List of matching tracks

        Raises:
            SpotifyAPIError: When the request fails after retries
        """
        params: Dict[str, Any] = {
            "q": query,
            "type": "track",
            "limit": max(1, min(limit, 50))
        }
        if market:
            params["market"] = market

        data = await self._make_spotify_request("search", params)

        tracks = [
            Track.from_spotify(item)
            for item in (data.get("tracks") or {}).get("items") or []
            if item and item.get("id")
        ]

        self.logger.debug("Spotify search completed", query=query, results_count=len(tracks))
        return tracks

    async def search_by_genre(
        self,
        genre: str,
        limit: int = 20,
        market: Optional[str] = None
    ) -> List[Track]:
        """Search using the catalog's genre filter."""
        return await self.search_tracks(f'genre:"{genre}"', limit=limit, market=market)

    async def get_batch_audio_features(
        self,
        track_ids: List[str]
    ) -> List[Optional[AudioFeatures]]:
        """
        Get audio features for many tracks.

        Ids are requested in chunks of 100. A failing chunk is logged and
        yields None for each of its ids; the other chunks are unaffected.

        Args:
            track_ids: Spotify track IDs

        Returns:
            Features in the same order as `track_ids`, None where unavailable
        """
        results: List[Optional[AudioFeatures]] = []

        for start in range(0, len(track_ids), FEATURE_BATCH_SIZE):
            chunk = track_ids[start:start + FEATURE_BATCH_SIZE]
            try:
                data = await self._make_spotify_request(
                    "audio-features",
                    {"ids": ",".join(chunk)}
                )
            except SpotifyAPIError as e:
                self.logger.warning(
                    "Audio features chunk failed",
                    chunk_start=start,
                    chunk_size=len(chunk),
                    status=e.status,
                    error=str(e)
                )
                results.extend([None] * len(chunk))
                continue

            by_id = {
                item["id"]: AudioFeatures.from_spotify(item)
                for item in data.get("audio_features") or []
                if item and item.get("id")
            }
            results.extend(by_id.get(track_id) for track_id in chunk)

        self.logger.info(
            "Audio features retrieved",
            requested=len(track_ids),
            retrieved=sum(1 for features in results if features is not None)
        )
        return results

    async def get_user_profile(self) -> Dict[str, Any]:
        """Profile of the user owning the bearer token."""
        return await self._make_spotify_request("me")

    async def create_playlist(
        self,
        user_id: str,
        name: str,
        description: str = "",
        is_private: bool = True
    ) -> Dict[str, Any]:
        """
        Create a playlist in the user's account.

        The catalog sometimes ignores the requested visibility on creation,
        so a private playlist that comes back public is updated explicitly.
        """
        playlist = await self._make_spotify_request(
            f"users/{user_id}/playlists",
            method="POST",
            json_body={
                "name": name,
                "description": description,
                "public": not is_private,
                "collaborative": False
            }
        )

        if is_private and playlist.get("public"):
            self.logger.info("Playlist created public, re-applying privacy", playlist_id=playlist.get("id"))
            await self.update_playlist_privacy(playlist["id"], is_public=False)
            playlist["public"] = False

        self.logger.info("Playlist created", playlist_id=playlist.get("id"), is_private=is_private)
        return playlist

    async def update_playlist_privacy(self, playlist_id: str, is_public: bool) -> None:
        await self._make_spotify_request(
            f"playlists/{playlist_id}",
            method="PUT",
            json_body={"public": is_public}
        )

    async def add_tracks(self, playlist_id: str, uris: List[str]) -> None:
        """Add track URIs to a playlist, 100 per request."""
        for start in range(0, len(uris), PLAYLIST_ADD_BATCH_SIZE):
            await self._make_spotify_request(
                f"playlists/{playlist_id}/tracks",
                method="POST",
                json_body={"uris": uris[start:start + PLAYLIST_ADD_BATCH_SIZE]}
            )

        self.logger.info("Tracks added to playlist", playlist_id=playlist_id, count=len(uris))
