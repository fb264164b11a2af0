"""
FastAPI Backend for moodweather

HTTP surface over the discovery pipeline. Callers pass the listener's
Spotify bearer token in the `Authorization` header; token issuance is
handled by the caller's own sign-in flow.

Endpoints:
- GET  /health
- POST /playlists/assemble   build a playlist without saving it
- POST /playlists            build a playlist and publish it to the account
"""

import os
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .. import __version__
from ..discovery.feature_validator import AudioFeatureValidator
from ..discovery.language_classifier import LanguageClassifier
from ..discovery.repetition_cache import RepetitionCache
from ..discovery.search_engine import SearchStrategyEngine
from ..discovery.track_selector import TrackSelector
from ..models.config_models import SystemConfig
from ..models.pipeline_models import AssemblyResult
from ..models.track_models import TargetFeatures, WeatherContext
from ..services.feature_targets import adjust_for_weather, calculate_target_features
from ..services.playlist_assembler import PlaylistAssembler
from ..services.playlist_publisher import PlaylistPublisher, build_description, friendly_error_message
from ..utils.logging_config import setup_logging
from .base_client import SpotifyAPIError
from .client_factory import APIClientFactory
from .logging_middleware import RequestLoggingMiddleware
from .spotify_client import SpotifyClient

logger = structlog.get_logger(__name__)


class PipelineServices:
    """
    Process-wide pipeline state.

    The repetition cache, classifier and validator are shared by every
    request; catalog clients are built per request around the caller's
    token and share the factory's rate limiter.
    """

    def __init__(self, config: SystemConfig):
        self.config = config
        pipeline = config.pipeline
        self.factory = APIClientFactory(config)
        self.cache = RepetitionCache(
            ttl_seconds=pipeline.cache.ttl_seconds,
            max_entries=pipeline.cache.max_entries,
            max_uses=pipeline.cache.max_uses,
            time_bucket_seconds=pipeline.cache.time_bucket_seconds
        )
        self.classifier = LanguageClassifier()
        self.validator = AudioFeatureValidator(pipeline.validation)

    def client_for(self, access_token: str) -> SpotifyClient:
        return self.factory.create_spotify_client(access_token=access_token)

    def assembler_for(self, client: SpotifyClient) -> PlaylistAssembler:
        pipeline = self.config.pipeline
        engine = SearchStrategyEngine(
            client,
            config=pipeline.search,
            cache=self.cache,
            classifier=self.classifier
        )
        selector = TrackSelector(classifier=self.classifier, config=pipeline.selection)
        return PlaylistAssembler(client, engine, self.validator, selector, config=pipeline.assembly)

    def publisher_for(self, client: SpotifyClient) -> PlaylistPublisher:
        return PlaylistPublisher(client)


services: Optional[PipelineServices] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown."""
    global services

    config = SystemConfig.from_env()
    setup_logging(log_dir=config.log_dir, log_level=config.log_level)
    services = PipelineServices(config)
    logger.info("moodweather pipeline initialized", version=__version__)

    yield

    logger.info("Shutting down moodweather pipeline", cached_pools=len(services.cache))
    services = None


app = FastAPI(
    title="moodweather API",
    description="Mood and weather driven track discovery",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware, slow_request_threshold=5.0)


# Request/Response Models
class MoodAnalysisModel(BaseModel):
    """Output of the mood translator."""
    energy_level: str = Field("medium", description="low, medium or high")
    valence: str = Field("neutral", description="negative, neutral or positive")
    mood_score: int = Field(5, ge=1, le=10)
    energy_modifier: float = Field(0.0, ge=-1.0, le=1.0, description="Environmental energy shift")
    valence_modifier: float = Field(0.0, ge=-1.0, le=1.0, description="Environmental valence shift")
    summary: str = Field("", description="Short mood description used in playlist descriptions")


class TargetFeaturesModel(BaseModel):
    energy: float = Field(0.5, ge=0.0, le=1.0)
    valence: float = Field(0.5, ge=0.0, le=1.0)
    tempo: float = Field(120.0, gt=0.0)
    acousticness: float = Field(0.5, ge=0.0, le=1.0)
    instrumentalness: float = Field(0.1, ge=0.0, le=1.0)
    danceability: Optional[float] = Field(None, ge=0.0, le=1.0)


class WeatherModel(BaseModel):
    condition: str = "unknown"
    temperature: float = 20.0
    description: str = ""
    humidity: float = 0.0
    wind_speed: float = 0.0

    def to_context(self) -> WeatherContext:
        return WeatherContext.from_dict(self.model_dump())


class AssembleRequest(BaseModel):
    """
    Playlist request.

    Explicit `target_features` are used as given. Otherwise they are
    derived from `mood` and shifted for the weather and local hour.
    """
    genres: List[str] = Field(default_factory=list, max_length=10)
    target_features: Optional[TargetFeaturesModel] = None
    mood: Optional[MoodAnalysisModel] = None
    weather: Optional[WeatherModel] = None
    include_excluded_language: bool = False
    target_count: Optional[int] = Field(None, ge=1, le=100)

    def weather_context(self) -> Optional[WeatherContext]:
        return self.weather.to_context() if self.weather else None

    def resolve_target(self, now: Optional[datetime] = None) -> TargetFeatures:
        if self.target_features is not None:
            return TargetFeatures(**self.target_features.model_dump())

        mood = self.mood or MoodAnalysisModel()
        target = calculate_target_features(mood.model_dump())
        return adjust_for_weather(
            target,
            self.weather_context(),
            now=now,
            energy_modifier=mood.energy_modifier,
            valence_modifier=mood.valence_modifier
        )


class PublishRequest(AssembleRequest):
    name: str = Field("MoodWeather Mix", min_length=1, max_length=100)
    is_private: bool = True


class HealthResponse(BaseModel):
    status: str
    timestamp: float
    version: str
    components: Dict[str, str]


# Dependencies
def get_services() -> PipelineServices:
    if services is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialized")
    return services


def bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """Extract the listener's token from `Authorization: Bearer <token>`."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Expected a bearer token")
    return token.strip()


async def _assemble(pipeline: PipelineServices, client: SpotifyClient, request: AssembleRequest) -> AssemblyResult:
    return await pipeline.assembler_for(client).assemble(
        target_features=request.resolve_target(),
        genres=request.genres,
        weather_context=request.weather_context(),
        include_excluded_language=request.include_excluded_language,
        target_count=request.target_count
    )


def _catalog_failure(error: Exception, operation: str) -> HTTPException:
    logger.error(
        "Catalog operation failed",
        operation=operation,
        error_type=type(error).__name__,
        error=str(error),
        status=getattr(error, "status", None)
    )
    return HTTPException(status_code=500, detail=friendly_error_message(error))


# API Endpoints
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=time.time(),
        version=__version__,
        components={
            "pipeline": "active" if services else "inactive",
            "cached_pools": str(len(services.cache)) if services else "0",
        }
    )


@app.post("/playlists/assemble")
async def assemble_playlist(
    request: AssembleRequest,
    token: str = Depends(bearer_token),
    pipeline: PipelineServices = Depends(get_services)
):
    """
    Assemble a playlist without saving it.

    Returns 200 with the tracks, or 404 with `status: insufficient` when
    too few tracks matched.
    """
    try:
        async with pipeline.client_for(token) as client:
            result = await _assemble(pipeline, client, request)
    except SpotifyAPIError as e:
        raise _catalog_failure(e, "assemble")

    if not result.is_success:
        return JSONResponse(status_code=404, content=result.to_dict())
    return result.to_dict()


@app.post("/playlists")
async def create_playlist(
    request: PublishRequest,
    token: str = Depends(bearer_token),
    pipeline: PipelineServices = Depends(get_services)
):
    """Assemble a playlist and publish it to the listener's account."""
    try:
        async with pipeline.client_for(token) as client:
            result = await _assemble(pipeline, client, request)
            if not result.is_success:
                return JSONResponse(status_code=404, content=result.to_dict())

            description = build_description(
                request.mood.summary if request.mood else "",
                request.weather_context()
            )
            playlist = await pipeline.publisher_for(client).publish(
                result.tracks,
                request.name,
                description,
                is_private=request.is_private
            )
    except SpotifyAPIError as e:
        raise _catalog_failure(e, "publish")

    response: Dict[str, Any] = result.to_dict()
    response["playlist"] = playlist
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "timestamp": time.time(),
            "path": request.url.path
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """General exception handler for unexpected errors."""
    logger.error("Unexpected error", error_type=type(exc).__name__, error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": friendly_error_message(exc),
            "timestamp": time.time(),
            "path": request.url.path
        }
    )


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "moodweather.api.backend:app",
        host=os.getenv("MOODWEATHER_HOST", "127.0.0.1"),
        port=int(os.getenv("MOODWEATHER_PORT", "8000"))
    )


if __name__ == "__main__":
    main()
