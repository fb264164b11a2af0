"""
Discovery pipeline components.

Leaf-first: quality scoring, language classification, deduplication,
shuffling, caching, tiered search, feature validation and selection.
"""

from .deduplicator import deduplicate_tracks
from .feature_validator import AudioFeatureValidator
from .language_classifier import LanguageClassifier, LanguageProfile, LanguageVerdict
from .quality_scorer import QualityScorer, QualityWeights
from .repetition_cache import RepetitionCache, avoid_recent
from .search_engine import SearchStrategyEngine
from .smart_shuffle import SmartShuffle, spread_artists, time_seeded_shuffle
from .track_selector import TrackSelector
from .validation_profiles import Denylist, ProfileRule, ValidationProfile

__all__ = [
    # Scoring and text heuristics
    "QualityScorer",
    "QualityWeights",
    "LanguageClassifier",
    "LanguageProfile",
    "LanguageVerdict",

    # Ordering and dedup
    "deduplicate_tracks",
    "SmartShuffle",
    "spread_artists",
    "time_seeded_shuffle",

    # Search
    "RepetitionCache",
    "avoid_recent",
    "SearchStrategyEngine",

    # Validation and selection
    "AudioFeatureValidator",
    "Denylist",
    "ProfileRule",
    "ValidationProfile",
    "TrackSelector",
]
