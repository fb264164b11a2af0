"""
Keyword-driven search tiers: weather keywords, mood quadrant keywords and
the broad popularity fallback.
"""

import random
from typing import List, Optional

from ...models.config_models import SearchConfig
from ...models.track_models import SearchRequest, Track
from ..query_templates import POPULARITY_FALLBACK_QUERIES, mood_keyword_queries, weather_keyword_queries
from .base_strategy import BaseSearchStrategy, QueryBudget


class _TextQueryStrategy(BaseSearchStrategy):
    """Shared plumbing for tiers that issue free-text queries."""

    async def _search_text(self, query: str) -> List[Track]:
        return await self.client.search_tracks(query, limit=self.query_limit, market=self.config.market)

    async def _collect_queries(self, queries: List[str], budget: QueryBudget) -> List[Track]:
        self.logger.info(f"{self.name.capitalize()} search", queries=queries)
        return await self._run_queries(queries, self._search_text, budget)


class WeatherKeywordStrategy(_TextQueryStrategy):
    """Condition-specific natural-language queries ("rainy day music")."""

    name = "weather"

    def __init__(self, client, config: SearchConfig, rng: Optional[random.Random] = None):
        super().__init__(client, config, min_popularity=config.weather_min_popularity)
        self.rng = rng or random.Random()

    def applies(self, request: SearchRequest) -> bool:
        return request.weather_context is not None

    async def collect(self, request: SearchRequest, budget: QueryBudget) -> List[Track]:
        templates = weather_keyword_queries(request.weather_context)
        count = min(self.config.max_aux_queries, len(templates))
        return await self._collect_queries(self.rng.sample(templates, count), budget)


class MoodKeywordStrategy(_TextQueryStrategy):
    """Queries for the (energy, valence) quadrant of the target features."""

    name = "mood"

    def __init__(self, client, config: SearchConfig):
        super().__init__(client, config, min_popularity=config.mood_min_popularity)

    async def collect(self, request: SearchRequest, budget: QueryBudget) -> List[Track]:
        queries = mood_keyword_queries(request.target_features)[:self.config.max_aux_queries]
        return await self._collect_queries(queries, budget)


class PopularityFallbackStrategy(_TextQueryStrategy):
    """One broad query with no genre constraint, used as the last tier."""

    name = "popularity"

    def __init__(self, client, config: SearchConfig, rng: Optional[random.Random] = None):
        super().__init__(client, config, min_popularity=config.fallback_min_popularity)
        self.rng = rng or random.Random()

    async def collect(self, request: SearchRequest, budget: QueryBudget) -> List[Track]:
        return await self._collect_queries([self.rng.choice(POPULARITY_FALLBACK_QUERIES)], budget)
