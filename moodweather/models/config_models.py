"""
Configuration Models for moodweather

Pydantic models holding every tunable threshold of the discovery pipeline.
The numbers are heuristic defaults, not invariants; override them through
the environment or by constructing the models directly.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class SearchConfig(BaseModel):
    """Search strategy engine configuration."""

    max_queries_per_request: int = Field(default=8, ge=1, description="Upper bound on catalog calls per search")
    max_genres: int = Field(default=2, ge=1, description="Genres queried per request")
    max_aux_queries: int = Field(default=2, ge=0, description="Weather/mood keyword queries per tier")
    query_limit: int = Field(default=20, ge=10, le=25, description="Results requested per catalog query")
    min_pool_size: int = Field(default=30, ge=1, description="Pool size at which later tiers are skipped")
    genre_min_popularity: int = Field(default=20, ge=0, le=100)
    weather_min_popularity: int = Field(default=25, ge=0, le=100)
    mood_min_popularity: int = Field(default=30, ge=0, le=100)
    fallback_min_popularity: int = Field(default=0, ge=0, le=100)
    inter_query_delay: float = Field(default=0.075, ge=0.0, description="Seconds between queries inside a tier")
    cache_min_hit_size: int = Field(default=15, ge=1, description="Cached pools smaller than this are ignored")
    tie_window: int = Field(default=10, ge=0, description="Quality points treated as a tie when shuffling")
    market: Optional[str] = Field(default=None, description="Catalog market passed to search")


class CacheConfig(BaseModel):
    """Repetition-avoidance cache configuration."""

    ttl_seconds: float = Field(default=300.0, gt=0, description="Entry lifetime (5 minutes)")
    max_entries: int = Field(default=20, ge=1, description="Capacity before oldest-first eviction")
    max_uses: Optional[int] = Field(default=None, ge=1, description="Reads allowed per entry, unlimited if unset")
    time_bucket_seconds: int = Field(default=300, ge=1, description="Epoch bucket folded into fingerprints")


class SelectionConfig(BaseModel):
    """Track selector / diversifier configuration."""

    max_per_artist: int = Field(default=3, ge=1)
    min_popularity: int = Field(default=15, ge=0, le=100)
    popularity_relaxation: int = Field(default=15, ge=0, description="Points subtracted from the floor up front")
    popularity_tie_window: int = Field(default=20, ge=0, description="Popularity points randomized as ties")
    emergency_min_popularity: int = Field(default=5, ge=0, le=100)


class ValidationConfig(BaseModel):
    """Audio-feature validator configuration."""

    general_min_score: int = Field(default=50, ge=0, le=100)
    use_denylist: bool = Field(default=True)


class AssemblyConfig(BaseModel):
    """Playlist assembly orchestrator configuration."""

    target_count: int = Field(default=25, ge=1)
    minimum_tracks: int = Field(default=8, ge=1, description="Below this the result is INSUFFICIENT")
    search_limit: int = Field(default=60, ge=1, description="Candidate pool requested from search")
    supplement_limit: int = Field(default=10, ge=0, description="Featureless tracks admitted as supplement")
    supplement_min_popularity: int = Field(default=40, ge=0, le=100)
    feature_batch_size: int = Field(default=100, ge=1, le=100)


class PipelineConfig(BaseModel):
    """All pipeline configuration sections."""

    search: SearchConfig = Field(default_factory=SearchConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    assembly: AssemblyConfig = Field(default_factory=AssemblyConfig)


class SystemConfig(BaseModel):
    """Overall system configuration."""

    spotify_client_id: Optional[str] = Field(default=None, description="Spotify client ID")
    spotify_client_secret: Optional[str] = Field(default=None, description="Spotify client secret")
    spotify_rate_limit: float = Field(default=10.0, gt=0, description="Spotify requests per second")
    request_timeout: int = Field(default=10, ge=1, description="Per-request timeout in seconds")
    log_level: str = Field(default="INFO")
    log_dir: str = Field(default="logs")
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "SystemConfig":
        """
        Build configuration from environment variables.

        A `.env` file is loaded first when present.

        Args:
            env_file: Optional explicit path to a dotenv file

        Returns:
            Populated SystemConfig
        """
        load_dotenv(env_file)

        pipeline = PipelineConfig()
        if os.getenv("MOODWEATHER_MARKET"):
            pipeline.search.market = os.getenv("MOODWEATHER_MARKET")
        if os.getenv("MOODWEATHER_CACHE_TTL"):
            pipeline.cache.ttl_seconds = float(os.getenv("MOODWEATHER_CACHE_TTL"))
        if os.getenv("MOODWEATHER_MAX_PER_ARTIST"):
            pipeline.selection.max_per_artist = int(os.getenv("MOODWEATHER_MAX_PER_ARTIST"))
        if os.getenv("MOODWEATHER_MIN_POPULARITY"):
            pipeline.selection.min_popularity = int(os.getenv("MOODWEATHER_MIN_POPULARITY"))
        if os.getenv("MOODWEATHER_TARGET_COUNT"):
            pipeline.assembly.target_count = int(os.getenv("MOODWEATHER_TARGET_COUNT"))
        if os.getenv("MOODWEATHER_MINIMUM_TRACKS"):
            pipeline.assembly.minimum_tracks = int(os.getenv("MOODWEATHER_MINIMUM_TRACKS"))

        return cls(
            spotify_client_id=os.getenv("SPOTIFY_CLIENT_ID"),
            spotify_client_secret=os.getenv("SPOTIFY_CLIENT_SECRET"),
            spotify_rate_limit=float(os.getenv("SPOTIFY_RATE_LIMIT", "10")),
            request_timeout=int(os.getenv("MOODWEATHER_REQUEST_TIMEOUT", "10")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_dir=os.getenv("LOG_DIR", "logs"),
            pipeline=pipeline
        )
