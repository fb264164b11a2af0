"""
Tests for the FastAPI backend.

The pipeline services are replaced through FastAPI dependency overrides so
endpoint behaviour is tested without catalog access.
"""

import time

import pytest
from unittest.mock import AsyncMock, Mock
from fastapi.testclient import TestClient

from moodweather.api import backend
from moodweather.api.backend import AssembleRequest, PipelineServices, app, get_services
from moodweather.api.base_client import SpotifyAPIError
from moodweather.models.config_models import SystemConfig
from moodweather.models.pipeline_models import AssemblyResult, AssemblyStatus
from moodweather.models.track_models import TargetFeatures, WeatherCondition
from moodweather.services.playlist_publisher import FRIENDLY_ERRORS


class FakeClient:
    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeServices:
    def __init__(self, result=None, error=None, playlist=None):
        self.tokens = []
        self.assembler = Mock()
        self.assembler.assemble = AsyncMock(return_value=result, side_effect=error)
        self.publisher = Mock()
        self.publisher.publish = AsyncMock(return_value=playlist)

    def client_for(self, access_token):
        self.tokens.append(access_token)
        return FakeClient()

    def assembler_for(self, client):
        return self.assembler

    def publisher_for(self, client):
        return self.publisher


@pytest.fixture
def success_result(make_track):
    return AssemblyResult(
        status=AssemblyStatus.SUCCESS,
        tracks=[make_track(f"t{i}") for i in range(10)],
        target_features=TargetFeatures(energy=0.8, valence=0.7),
        tier_log=["validated", "selector"]
    )


@pytest.fixture
def override():
    """Install a FakeServices instance for the duration of a test."""
    def _install(fake):
        app.dependency_overrides[get_services] = lambda: fake
        return fake
    yield _install
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


AUTH = {"Authorization": "Bearer listener-token"}


class TestHealthEndpoint:

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert abs(time.time() - data["timestamp"]) < 10
        assert "pipeline" in data["components"]


class TestAssembleEndpoint:

    def test_success(self, client, override, success_result):
        fake = override(FakeServices(result=success_result))

        response = client.post("/playlists/assemble", json={"genres": ["pop"]}, headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["count"] == 10
        assert len(data["tracks"]) == 10
        assert fake.tokens == ["listener-token"]
        assert response.headers.get("X-Request-ID")

    def test_insufficient_returns_404(self, client, override, make_track):
        result = AssemblyResult(
            status=AssemblyStatus.INSUFFICIENT,
            tracks=[make_track(f"t{i}") for i in range(5)],
            message="Only 5 matching tracks found (need 8)."
        )
        override(FakeServices(result=result))

        response = client.post("/playlists/assemble", json={"genres": ["jazz"]}, headers=AUTH)

        assert response.status_code == 404
        assert response.json()["status"] == "insufficient"
        assert response.json()["count"] == 5
        assert len(response.json()["tracks"]) == 5

    def test_missing_token(self, client, override, success_result):
        fake = override(FakeServices(result=success_result))

        response = client.post("/playlists/assemble", json={"genres": ["pop"]})

        assert response.status_code == 401
        fake.assembler.assemble.assert_not_called()

    def test_non_bearer_token_rejected(self, client, override, success_result):
        override(FakeServices(result=success_result))

        response = client.post("/playlists/assemble", json={}, headers={"Authorization": "Basic abc"})

        assert response.status_code == 401

    def test_invalid_target_count(self, client, override, success_result):
        override(FakeServices(result=success_result))

        response = client.post("/playlists/assemble", json={"target_count": 0}, headers=AUTH)

        assert response.status_code == 422

    def test_catalog_error_maps_to_friendly_message(self, client, override):
        override(FakeServices(error=SpotifyAPIError("Spotify API Error: 401", status=401)))

        response = client.post("/playlists/assemble", json={"genres": ["pop"]}, headers=AUTH)

        assert response.status_code == 500
        assert response.json()["error"] == FRIENDLY_ERRORS[401]

    def test_explicit_target_features_passed_through(self, client, override, success_result):
        fake = override(FakeServices(result=success_result))

        client.post(
            "/playlists/assemble",
            json={
                "genres": ["house"],
                "target_features": {"energy": 0.9, "valence": 0.8, "tempo": 128},
                "include_excluded_language": True,
                "target_count": 20,
            },
            headers=AUTH
        )

        kwargs = fake.assembler.assemble.await_args.kwargs
        assert kwargs["target_features"].energy == 0.9
        assert kwargs["target_features"].tempo == 128
        assert kwargs["include_excluded_language"] is True
        assert kwargs["target_count"] == 20
        assert kwargs["weather_context"] is None

    def test_pipeline_not_initialized(self, client):
        response = client.post("/playlists/assemble", json={}, headers=AUTH)

        assert response.status_code == 503


class TestPublishEndpoint:

    def test_publish(self, client, override, success_result):
        playlist = {"id": "p1", "name": "Rainy Mix", "track_count": 10}
        fake = override(FakeServices(result=success_result, playlist=playlist))

        response = client.post(
            "/playlists",
            json={
                "genres": ["jazz"],
                "name": "Rainy Mix",
                "mood": {"energy_level": "low", "valence": "negative", "summary": "Quiet and reflective"},
                "weather": {"condition": "rainy", "temperature": 9, "description": "light rain"},
            },
            headers=AUTH
        )

        assert response.status_code == 200
        assert response.json()["playlist"] == playlist
        tracks, name, description = fake.publisher.publish.await_args.args
        assert len(tracks) == 10
        assert name == "Rainy Mix"
        assert description.startswith("Quiet and reflective")
        assert fake.publisher.publish.await_args.kwargs["is_private"] is True

    def test_publish_skipped_when_insufficient(self, client, override):
        fake = override(FakeServices(result=AssemblyResult(status=AssemblyStatus.INSUFFICIENT, message="none")))

        response = client.post("/playlists", json={"genres": ["jazz"]}, headers=AUTH)

        assert response.status_code == 404
        fake.publisher.publish.assert_not_called()


class TestRequestModels:

    def test_mood_and_weather_resolve_target(self):
        request = AssembleRequest(
            mood={"energy_level": "high", "valence": "positive", "mood_score": 6},
            weather={"condition": "clear", "temperature": 28}
        )

        target = request.resolve_target()

        assert request.weather_context().condition is WeatherCondition.CLEAR
        assert 0.1 <= target.energy <= 0.9
        assert 60 <= target.tempo <= 180

    def test_defaults_without_mood_or_weather(self):
        target = AssembleRequest().resolve_target()

        assert target.energy == 0.6
        assert target.valence == 0.5


class TestPipelineServices:

    def test_assemblers_share_cache(self):
        services = PipelineServices(SystemConfig())
        first = services.assembler_for(Mock())
        second = services.assembler_for(Mock())

        assert first.engine.cache is second.engine.cache is services.cache
        assert first.validator is services.validator

    def test_lifespan_initializes_services(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LOG_DIR", str(tmp_path))

        with TestClient(app) as client:
            assert backend.services is not None
            assert client.get("/health").json()["components"]["pipeline"] == "active"

        assert backend.services is None
