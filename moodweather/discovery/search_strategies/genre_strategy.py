"""
Genre-targeted search tier.
"""

import random
from typing import List, Optional

from ...models.config_models import SearchConfig
from ...models.track_models import SearchRequest, Track
from ..query_templates import enhance_genres_with_weather, expand_related_genres, genre_queries
from .base_strategy import BaseSearchStrategy, QueryBudget


class GenreSearchStrategy(BaseSearchStrategy):
    """
    Direct genre-filtered queries for up to `max_genres` genres.

    The request's own genres come first. When it names fewer than
    `max_genres`, the remaining slot is filled with a random pick from the
    weather genre tags and related sub-genres, which varies repeated
    requests. A genre filter that returns nothing is retried once as a
    free-text query.
    """

    name = "genre"

    def __init__(self, client, config: SearchConfig, rng: Optional[random.Random] = None):
        super().__init__(client, config, min_popularity=config.genre_min_popularity)
        self.rng = rng or random.Random()

    def applies(self, request: SearchRequest) -> bool:
        return bool(request.genres)

    def pick_genres(self, request: SearchRequest) -> List[str]:
        base = list(dict.fromkeys(genre.strip() for genre in request.genres if genre.strip()))
        picked = base[:self.config.max_genres]
        if len(picked) >= self.config.max_genres:
            return picked

        enhanced = enhance_genres_with_weather(picked, request.weather_context)
        extras = [
            genre for genre in enhanced + expand_related_genres(picked)
            if genre not in picked
        ]
        extras = list(dict.fromkeys(extras))
        while extras and len(picked) < self.config.max_genres:
            picked.append(extras.pop(self.rng.randrange(len(extras))))
        return picked

    async def collect(self, request: SearchRequest, budget: QueryBudget) -> List[Track]:
        genres = self.pick_genres(request)
        self.logger.info("Genre search", genres=genres)

        collected: List[Track] = []
        for index, genre in enumerate(genres):
            if index:
                await self._pause()
            tracks = await self._run_query(genre, self._search_genre, budget)
            if not tracks:
                fallback = self._free_text_fallback(genre)
                if fallback:
                    tracks = await self._run_query(fallback, self._search_text, budget)
            collected.extend(tracks)

        return collected

    async def _search_genre(self, genre: str) -> List[Track]:
        return await self.client.search_by_genre(genre, limit=self.query_limit, market=self.config.market)

    async def _search_text(self, query: str) -> List[Track]:
        return await self.client.search_tracks(query, limit=self.query_limit, market=self.config.market)

    @staticmethod
    def _free_text_fallback(genre: str) -> Optional[str]:
        direct = f'genre:"{genre.lower()}"'
        for query in genre_queries([genre]):
            if query.lower() != direct:
                return query
        return None

