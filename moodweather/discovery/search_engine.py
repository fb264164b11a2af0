"""
Search Strategy Engine

Turns a SearchRequest into a candidate pool with a bounded number of
catalog queries:

1. Cache probe (fast path on a sufficiently large hit)
2. Genre tier
3. Weather keyword tier (only with weather context)
4. Mood keyword tier
5. Popularity fallback

Each tier runs only while the pool is below its target size. The merged
pool is language filtered, deduplicated, quality shuffled, cached and
truncated to the requested limit.
"""

import random
from typing import List, Optional, Sequence

import structlog

from ..models.config_models import SearchConfig
from ..models.track_models import SearchRequest, Track
from .deduplicator import deduplicate_tracks
from .language_classifier import LanguageClassifier
from .repetition_cache import RepetitionCache, avoid_recent
from .search_strategies import (
    BaseSearchStrategy,
    GenreSearchStrategy,
    MoodKeywordStrategy,
    PopularityFallbackStrategy,
    QueryBudget,
    WeatherKeywordStrategy,
)
from .smart_shuffle import SmartShuffle

logger = structlog.get_logger(__name__)


class SearchStrategyEngine:
    """
    Tiered catalog search with caching.

    Query failures are absorbed inside the tiers, so `search` only raises
    for programmer errors or cancellation.
    """

    def __init__(
        self,
        client,
        config: Optional[SearchConfig] = None,
        cache: Optional[RepetitionCache] = None,
        classifier: Optional[LanguageClassifier] = None,
        shuffle: Optional[SmartShuffle] = None,
        rng: Optional[random.Random] = None,
        strategies: Optional[List[BaseSearchStrategy]] = None
    ):
        """
        Initialize the engine.

        Args:
            client: Catalog client (see SpotifyClient)
            config: Search configuration
            cache: Repetition cache owned by this engine
            classifier: Excluded-language classifier
            shuffle: Quality-weighted shuffle
            rng: Random source for query variety
            strategies: Override the default tier list
        """
        self.client = client
        self.config = config or SearchConfig()
        self.cache = cache or RepetitionCache()
        self.classifier = classifier or LanguageClassifier()
        self.rng = rng or random.Random()
        self.shuffle = shuffle or SmartShuffle(rng=self.rng, tie_window=self.config.tie_window)
        self.strategies = strategies if strategies is not None else self._default_strategies()
        self.logger = logger.bind(component="SearchStrategyEngine")

    def _default_strategies(self) -> List[BaseSearchStrategy]:
        return [
            GenreSearchStrategy(self.client, self.config, rng=self.rng),
            WeatherKeywordStrategy(self.client, self.config, rng=self.rng),
            MoodKeywordStrategy(self.client, self.config),
            PopularityFallbackStrategy(self.client, self.config, rng=self.rng),
        ]

    async def search(
        self,
        request: SearchRequest,
        previous_tracks: Optional[Sequence[Track]] = None
    ) -> List[Track]:
        """
        Produce up to `request.limit` candidate tracks.

        Args:
            request: Search request
            previous_tracks: Tracks served to the caller last time; on a
                cache hit these are pushed to the back

        Returns:
            Deduplicated, language-filtered, shuffled tracks
        """
        if request.limit <= 0:
            raise ValueError("limit must be positive")

        now = self.cache.clock()
        key = self.cache.fingerprint(request, now)

        cached = self.cache.get(key)
        if cached is not None and len(cached) >= self.config.cache_min_hit_size:
            self.logger.info("Cache hit", key=key, cached=len(cached))
            return avoid_recent(list(cached), previous_tracks, now)[:request.limit]

        budget = QueryBudget(self.config.max_queries_per_request)
        pool_target = max(request.limit, self.config.min_pool_size)
        pool: List[Track] = []

        for strategy in self.strategies:
            if self._unique_count(pool) >= pool_target:
                break
            if budget.exhausted:
                self.logger.info("Query budget spent", used=budget.used)
                break
            if not strategy.applies(request):
                continue

            found = await strategy.collect(request, budget)
            pool.extend(found)
            self.logger.info(
                "Search tier finished",
                tier=strategy.name,
                found=len(found),
                pool=self._unique_count(pool),
                queries_used=budget.used
            )

        if not request.include_excluded_language:
            pool = self.classifier.filter_tracks(pool)
        pool = deduplicate_tracks(pool)
        pool = self.shuffle.shuffle(pool)

        if pool:
            self.cache.put(key, pool)

        self.logger.info(
            "Search completed",
            pool=len(pool),
            returned=min(len(pool), request.limit),
            queries_used=budget.used
        )
        return pool[:request.limit]

    @staticmethod
    def _unique_count(tracks: List[Track]) -> int:
        return len({track.id for track in tracks})
