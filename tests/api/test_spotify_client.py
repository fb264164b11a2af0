"""
Tests for SpotifyClient and the BaseAPIClient retry logic.

HTTP traffic is faked at the session level; no network access.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, patch

from moodweather.api.base_client import SpotifyAPIError
from moodweather.api.rate_limiter import UnifiedRateLimiter
from moodweather.api.spotify_client import SpotifyClient


class FakeResponse:
    def __init__(self, status=200, payload=None, headers=None, text=""):
        self.status = status
        self._payload = payload
        self.headers = headers or {}
        self._text = text

    async def json(self, content_type=None):
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Replays a scripted list of responses (or exceptions) in order."""

    def __init__(self, script):
        self.script = list(script)
        self.calls = []

    def request(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.script.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self):
        pass


def track_payload(track_id, popularity=50):
    return {
        "id": track_id,
        "name": f"Track {track_id}",
        "artists": [{"name": f"Artist {track_id}"}],
        "album": {"name": "Album", "images": []},
        "popularity": popularity,
        "duration_ms": 180000,
    }


@pytest.fixture
def client():
    spotify = SpotifyClient(access_token="user-token", rate_limiter=UnifiedRateLimiter(calls_per_second=1000))
    yield spotify


@pytest.fixture
def no_sleep():
    with patch("moodweather.api.base_client.asyncio.sleep", new=AsyncMock()) as sleep:
        yield sleep


class TestConstruction:

    def test_requires_credentials(self):
        with pytest.raises(ValueError):
            SpotifyClient()

    def test_user_token_skips_client_credentials(self, client):
        assert client.user_token
        assert client.token_expires_at == float("inf")

    @pytest.mark.asyncio
    async def test_request_outside_context_manager(self, client):
        with pytest.raises(RuntimeError):
            await client._make_request("search")


class TestRetries:

    @pytest.mark.asyncio
    async def test_retry_after_is_honoured(self, client, no_sleep):
        client.session = FakeSession([
            FakeResponse(status=429, headers={"Retry-After": "3"}),
            FakeResponse(payload={"ok": True}),
        ])

        data = await client._make_request("me")

        assert data == {"ok": True}
        no_sleep.assert_any_await(3.0)

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, client, no_sleep):
        client.session = FakeSession([FakeResponse(status=404, text="missing")])

        with pytest.raises(SpotifyAPIError) as exc_info:
            await client._make_request("tracks/x")

        assert exc_info.value.status == 404
        assert len(client.session.calls) == 1

    @pytest.mark.asyncio
    async def test_server_error_retried_then_raised(self, client, no_sleep):
        client.session = FakeSession([FakeResponse(status=503) for _ in range(3)])

        with pytest.raises(SpotifyAPIError) as exc_info:
            await client._make_request("search", retries=2)

        assert exc_info.value.status == 503
        assert len(client.session.calls) == 3

    @pytest.mark.asyncio
    async def test_timeout_then_success(self, client, no_sleep):
        client.session = FakeSession([asyncio.TimeoutError(), FakeResponse(payload={"id": "u1"})])

        assert await client._make_request("me") == {"id": "u1"}

    @pytest.mark.asyncio
    async def test_error_body_on_success_status(self, client, no_sleep):
        client.session = FakeSession([
            FakeResponse(payload={"error": {"status": 400, "message": "Invalid id"}})
        ])

        with pytest.raises(SpotifyAPIError, match="Invalid id"):
            await client._make_request("audio-features")

    @pytest.mark.asyncio
    async def test_no_content(self, client, no_sleep):
        client.session = FakeSession([FakeResponse(status=204)])

        assert await client._make_request("playlists/p1", method="PUT") == {}


class TestSearch:

    @pytest.mark.asyncio
    async def test_search_tracks_parses_items(self, client):
        client._make_spotify_request = AsyncMock(return_value={
            "tracks": {"items": [track_payload("a"), None, {"name": "no id"}, track_payload("b")]}
        })

        tracks = await client.search_tracks("rainy day music", limit=80, market="US")

        assert [track.id for track in tracks] == ["a", "b"]
        params = client._make_spotify_request.await_args.args[1]
        assert params["limit"] == 50
        assert params["market"] == "US"

    @pytest.mark.asyncio
    async def test_search_by_genre_uses_filter(self, client):
        client._make_spotify_request = AsyncMock(return_value={"tracks": {"items": []}})

        await client.search_by_genre("indie pop", limit=20)

        params = client._make_spotify_request.await_args.args[1]
        assert params["q"] == 'genre:"indie pop"'
        assert "market" not in params


class TestAudioFeatures:

    @pytest.mark.asyncio
    async def test_order_preserved_and_missing_are_none(self, client):
        client._make_spotify_request = AsyncMock(return_value={
            "audio_features": [
                {"id": "c", "energy": 0.3, "valence": 0.2, "tempo": 90},
                None,
                {"id": "a", "energy": 0.9, "valence": 0.8, "tempo": 128},
            ]
        })

        features = await client.get_batch_audio_features(["a", "b", "c"])

        assert [f.track_id if f else None for f in features] == ["a", None, "c"]

    @pytest.mark.asyncio
    async def test_chunks_of_one_hundred_and_failed_chunk(self, client):
        ids = [f"id{i}" for i in range(150)]
        second_chunk = {"audio_features": [{"id": i, "energy": 0.5, "valence": 0.5, "tempo": 100} for i in ids[100:]]}
        client._make_spotify_request = AsyncMock(side_effect=[SpotifyAPIError("boom", status=502), second_chunk])

        features = await client.get_batch_audio_features(ids)

        assert client._make_spotify_request.await_count == 2
        assert len(features) == 150
        assert all(f is None for f in features[:100])
        assert all(f is not None for f in features[100:])


class TestPlaylists:

    @pytest.mark.asyncio
    async def test_private_playlist_reapplies_privacy(self, client):
        client._make_spotify_request = AsyncMock(side_effect=[{"id": "p1", "public": True}, {}])

        playlist = await client.create_playlist("user1", "Rainy Mix", "desc", is_private=True)

        assert playlist["public"] is False
        last_call = client._make_spotify_request.await_args_list[-1]
        assert last_call.args[0] == "playlists/p1"
        assert last_call.kwargs["json_body"] == {"public": False}

    @pytest.mark.asyncio
    async def test_public_playlist_single_call(self, client):
        client._make_spotify_request = AsyncMock(return_value={"id": "p2", "public": True})

        await client.create_playlist("user1", "Sunny Mix", is_private=False)

        assert client._make_spotify_request.await_count == 1
        assert client._make_spotify_request.await_args.kwargs["json_body"]["public"] is True

    @pytest.mark.asyncio
    async def test_add_tracks_in_batches(self, client):
        client._make_spotify_request = AsyncMock(return_value={})
        uris = [f"spotify:track:{i}" for i in range(230)]

        await client.add_tracks("p1", uris)

        sizes = [len(call.kwargs["json_body"]["uris"]) for call in client._make_spotify_request.await_args_list]
        assert sizes == [100, 100, 30]
