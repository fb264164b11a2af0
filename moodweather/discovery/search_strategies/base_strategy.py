"""
Base Strategy Class for catalog search

Defines the common interface shared by all search tiers plus the query
budget that bounds catalog calls per request.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List

import structlog

from ...models.config_models import SearchConfig
from ...models.track_models import SearchRequest, Track


class QueryBudget:
    """Counts catalog queries issued for one search request."""

    def __init__(self, max_queries: int):
        self.max_queries = max_queries
        self.used = 0

    @property
    def remaining(self) -> int:
        return max(0, self.max_queries - self.used)

    @property
    def exhausted(self) -> bool:
        return self.used >= self.max_queries

    def consume(self) -> bool:
        """Reserve one query; False when the budget is spent."""
        if self.exhausted:
            return False
        self.used += 1
        return True


class BaseSearchStrategy(ABC):
    """
    Abstract base class for search tiers.

    Each tier issues a few catalog queries and keeps tracks at or above its
    popularity floor. A failing query is logged and contributes nothing;
    only cancellation propagates.
    """

    name = "base"

    def __init__(self, client, config: SearchConfig, min_popularity: int = 0):
        """
        Initialize the search strategy.

        Args:
            client: Catalog client exposing search_tracks / search_by_genre
            config: Search configuration (query size, delay, market)
            min_popularity: Popularity floor applied to this tier's results
        """
        self.client = client
        self.config = config
        self.min_popularity = min_popularity
        self.logger = structlog.get_logger(__name__).bind(strategy=self.name)

    def applies(self, request: SearchRequest) -> bool:
        """Whether this tier has anything to query for the request."""
        return True

    @abstractmethod
    async def collect(self, request: SearchRequest, budget: QueryBudget) -> List[Track]:
        """
        Run this tier's queries.

        Args:
            request: Search request
            budget: Shared query budget; queries stop once it is spent

        Returns:
            Tracks at or above the tier's popularity floor
        """

    async def _run_queries(
        self,
        labels: List[str],
        run: Callable[[str], Awaitable[List[Track]]],
        budget: QueryBudget
    ) -> List[Track]:
        """Issue one query per label, sequentially with the configured delay."""
        collected: List[Track] = []
        for index, label in enumerate(labels):
            if index:
                await self._pause()
            collected.extend(await self._run_query(label, run, budget))
        return collected

    async def _pause(self) -> None:
        if self.config.inter_query_delay:
            await asyncio.sleep(self.config.inter_query_delay)

    async def _run_query(
        self,
        label: str,
        run: Callable[[str], Awaitable[List[Track]]],
        budget: QueryBudget
    ) -> List[Track]:
        if not budget.consume():
            self.logger.debug("Query budget exhausted", query=label)
            return []

        try:
            tracks = await run(label)
        except Exception as e:
            self.logger.warning(
                "Search query failed",
                query=label,
                error=str(e),
                error_type=type(e).__name__
            )
            return []

        kept = self._above_floor(tracks)
        self.logger.debug("Search query completed", query=label, returned=len(tracks), kept=len(kept))
        return kept

    def _above_floor(self, tracks: List[Track]) -> List[Track]:
        return [track for track in tracks if track.popularity >= self.min_popularity]

    @property
    def query_limit(self) -> int:
        return self.config.query_limit
