"""
Models Module

Track records, pipeline results and configuration models.
"""

from .track_models import (
    Album,
    AlbumImage,
    Artist,
    AudioFeatures,
    CandidateTrack,
    SearchRequest,
    TargetFeatures,
    Track,
    WeatherCondition,
    WeatherContext,
)
from .pipeline_models import (
    AssemblyResult,
    AssemblyStatus,
    CacheEntry,
    SelectionOptions,
    ValidationReport,
    ValidationResult,
    ValidationStats,
)
from .config_models import (
    AssemblyConfig,
    CacheConfig,
    PipelineConfig,
    SearchConfig,
    SelectionConfig,
    SystemConfig,
    ValidationConfig,
)

__all__ = [
    # Catalog records
    "Album",
    "AlbumImage",
    "Artist",
    "AudioFeatures",
    "CandidateTrack",
    "Track",

    # Request side
    "SearchRequest",
    "TargetFeatures",
    "WeatherCondition",
    "WeatherContext",

    # Pipeline results
    "AssemblyResult",
    "AssemblyStatus",
    "CacheEntry",
    "SelectionOptions",
    "ValidationReport",
    "ValidationResult",
    "ValidationStats",

    # Configuration
    "AssemblyConfig",
    "CacheConfig",
    "PipelineConfig",
    "SearchConfig",
    "SelectionConfig",
    "SystemConfig",
    "ValidationConfig",
]
