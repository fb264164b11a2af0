"""
Tests for PlaylistPublisher and its helpers.
"""

import pytest
from unittest.mock import AsyncMock, Mock

from moodweather.api.base_client import SpotifyAPIError
from moodweather.models.track_models import WeatherCondition, WeatherContext
from moodweather.services.playlist_publisher import (
    DEFAULT_ERROR,
    FRIENDLY_ERRORS,
    PlaylistPublisher,
    build_description,
    friendly_error_message,
)


@pytest.fixture
def client():
    client = Mock()
    client.get_user_profile = AsyncMock(return_value={"id": "listener1"})
    client.create_playlist = AsyncMock(return_value={
        "id": "p1",
        "name": "Rainy Mix",
        "description": "desc",
        "external_urls": {"spotify": "https://open.spotify.com/playlist/p1"},
    })
    client.add_tracks = AsyncMock(return_value=None)
    return client


class TestPublish:

    @pytest.mark.asyncio
    async def test_publish(self, client, make_track):
        tracks = [make_track(f"t{i}", duration_ms=200000) for i in range(3)]

        playlist = await PlaylistPublisher(client).publish(tracks, "Rainy Mix", "desc")

        client.create_playlist.assert_awaited_once_with("listener1", "Rainy Mix", "desc", is_private=True)
        client.add_tracks.assert_awaited_once_with("p1", ["spotify:track:t0", "spotify:track:t1", "spotify:track:t2"])
        assert playlist["spotify_url"] == "https://open.spotify.com/playlist/p1"
        assert playlist["track_count"] == 3
        assert playlist["total_duration"] == 600
        assert playlist["is_private"] is True

    @pytest.mark.asyncio
    async def test_nothing_to_publish(self, client):
        with pytest.raises(ValueError):
            await PlaylistPublisher(client).publish([], "Empty")

        client.create_playlist.assert_not_called()

    @pytest.mark.asyncio
    async def test_catalog_error_propagates(self, client, make_track):
        client.create_playlist = AsyncMock(side_effect=SpotifyAPIError("forbidden", status=403))

        with pytest.raises(SpotifyAPIError):
            await PlaylistPublisher(client).publish([make_track("t1")], "Mix")

        client.add_tracks.assert_not_called()


class TestHelpers:

    @pytest.mark.parametrize("status", [401, 403, 429])
    def test_friendly_messages(self, status):
        assert friendly_error_message(SpotifyAPIError("x", status=status)) == FRIENDLY_ERRORS[status]

    def test_unknown_errors_get_default(self):
        assert friendly_error_message(SpotifyAPIError("x", status=500)) == DEFAULT_ERROR
        assert friendly_error_message(RuntimeError("x")) == DEFAULT_ERROR

    def test_description_with_weather(self):
        weather = WeatherContext(condition=WeatherCondition.RAINY, temperature=12.0, description="light rain")

        description = build_description("Calm and thoughtful", weather)

        assert description == "Calm and thoughtful Made for 12°C light rain weather. (MoodWeather)"

    def test_description_truncates_long_summary(self):
        description = build_description("x" * 400)

        assert description.startswith("x" * 150 + "...")
        assert description.endswith("(MoodWeather)")

    def test_description_falls_back_to_condition(self):
        description = build_description("", WeatherContext(condition=WeatherCondition.SNOWY, temperature=-2.5))

        assert description == "Made for -2.5°C snowy weather. (MoodWeather)"
