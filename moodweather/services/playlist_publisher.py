"""
Playlist publishing to the listener's catalog account.
"""

from typing import Any, Dict, List, Optional

import structlog

from ..api.base_client import SpotifyAPIError
from ..models.track_models import Track, WeatherContext

logger = structlog.get_logger(__name__)

DESCRIPTION_MOOD_CHARS = 150

FRIENDLY_ERRORS = {
    401: "Your Spotify session has expired, please sign in again",
    403: "Your Spotify account does not allow playlist creation",
    429: "Too many requests, please wait a minute and try again",
}
DEFAULT_ERROR = "Something went wrong while creating the playlist"


def friendly_error_message(error: Exception) -> str:
    """User-facing message for a catalog failure."""
    if isinstance(error, SpotifyAPIError) and error.status in FRIENDLY_ERRORS:
        return FRIENDLY_ERRORS[error.status]
    return DEFAULT_ERROR


def build_description(mood_summary: str, weather: Optional[WeatherContext] = None) -> str:
    """Playlist description from the mood summary and the weather."""
    summary = mood_summary.strip()
    if len(summary) > DESCRIPTION_MOOD_CHARS:
        summary = summary[:DESCRIPTION_MOOD_CHARS].rstrip() + "..."

    parts = [summary] if summary else []
    if weather is not None:
        parts.append(f"Made for {weather.temperature:g}°C {weather.description or weather.condition.value} weather.")
    parts.append("(MoodWeather)")
    return " ".join(parts)


class PlaylistPublisher:
    """Creates a playlist in the token owner's account and fills it."""

    def __init__(self, client):
        self.client = client
        self.logger = logger.bind(component="PlaylistPublisher")

    async def publish(
        self,
        tracks: List[Track],
        name: str,
        description: str = "",
        is_private: bool = True
    ) -> Dict[str, Any]:
        """
        Publish tracks as a new playlist.

        Raises:
            SpotifyAPIError: When any catalog call fails
            ValueError: When there is nothing to publish
        """
        uris = [track.uri for track in tracks if track.uri]
        if not uris:
            raise ValueError("No tracks to publish")

        profile = await self.client.get_user_profile()
        playlist = await self.client.create_playlist(profile["id"], name, description, is_private=is_private)
        await self.client.add_tracks(playlist["id"], uris)

        total_seconds = round(sum(track.duration_ms for track in tracks) / 1000)
        self.logger.info(
            "Playlist published",
            playlist_id=playlist["id"],
            track_count=len(uris),
            is_private=is_private
        )
        return {
            "id": playlist["id"],
            "name": playlist.get("name", name),
            "description": playlist.get("description", description),
            "spotify_url": (playlist.get("external_urls") or {}).get("spotify"),
            "is_private": is_private,
            "track_count": len(uris),
            "total_duration": total_seconds,
        }
