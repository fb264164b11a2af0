"""
Tests for the search strategy engine and its tiers.

The catalog client is an AsyncMock; no network access.
"""

import asyncio
import random

import pytest
from unittest.mock import AsyncMock, Mock

from moodweather.api.base_client import SpotifyAPIError
from moodweather.discovery.repetition_cache import RepetitionCache
from moodweather.discovery.search_engine import SearchStrategyEngine
from moodweather.discovery.search_strategies import (
    GenreSearchStrategy,
    MoodKeywordStrategy,
    PopularityFallbackStrategy,
    QueryBudget,
    WeatherKeywordStrategy,
)
from moodweather.models.config_models import SearchConfig
from moodweather.models.track_models import SearchRequest, TargetFeatures, WeatherCondition, WeatherContext


@pytest.fixture
def config():
    return SearchConfig(inter_query_delay=0.0, min_pool_size=30, max_queries_per_request=8)


@pytest.fixture
def catalog(make_track):
    """Client returning a fresh page of unique tracks per query."""
    counter = {"n": 0}

    async def page(query, limit=20, market=None):
        start = counter["n"]
        counter["n"] += limit
        return [make_track(f"q{start + i}", popularity=60) for i in range(limit)]

    client = Mock()
    client.search_tracks = AsyncMock(side_effect=page)
    client.search_by_genre = AsyncMock(side_effect=page)
    return client


def make_engine(client, config, cache=None, seed=7):
    return SearchStrategyEngine(client, config=config, cache=cache or RepetitionCache(), rng=random.Random(seed))


class TestQueryBudget:

    def test_consume_until_exhausted(self):
        budget = QueryBudget(2)

        assert budget.consume() and budget.consume()
        assert not budget.consume()
        assert budget.exhausted
        assert budget.remaining == 0


class TestSearchEngine:

    @pytest.mark.asyncio
    async def test_genre_tier_fills_pool(self, catalog, config):
        engine = make_engine(catalog, config)

        tracks = await engine.search(SearchRequest(genres=["pop", "rock"], limit=25))

        assert len(tracks) == 25
        assert catalog.search_by_genre.await_count == 2
        catalog.search_tracks.assert_not_called()

    @pytest.mark.asyncio
    async def test_query_budget_bounds_calls(self, catalog, config):
        config.max_queries_per_request = 3
        config.min_pool_size = 500
        engine = make_engine(catalog, config)

        await engine.search(SearchRequest(
            genres=["pop", "rock"],
            weather_context=WeatherContext(condition=WeatherCondition.RAINY),
            limit=50
        ))

        total = catalog.search_by_genre.await_count + catalog.search_tracks.await_count
        assert total == 3

    @pytest.mark.asyncio
    async def test_failures_are_tolerated(self, config, make_track):
        client = Mock()
        client.search_by_genre = AsyncMock(side_effect=SpotifyAPIError("boom", status=500))
        client.search_tracks = AsyncMock(side_effect=[
            SpotifyAPIError("boom", status=500),
            [make_track("ok1", popularity=80)],
            [make_track("ok2", popularity=80)],
            [make_track("ok3", popularity=80)],
            [make_track("ok4", popularity=80)],
            [make_track("ok5", popularity=80)],
        ])
        engine = make_engine(client, config)

        tracks = await engine.search(SearchRequest(genres=["pop"], limit=10))

        assert {track.id for track in tracks} <= {f"ok{i}" for i in range(1, 6)}
        assert tracks

    @pytest.mark.asyncio
    async def test_everything_failing_returns_empty(self, config):
        client = Mock()
        client.search_by_genre = AsyncMock(side_effect=SpotifyAPIError("down"))
        client.search_tracks = AsyncMock(side_effect=SpotifyAPIError("down"))
        engine = make_engine(client, config)

        assert await engine.search(SearchRequest(genres=["pop"], limit=10)) == []
        assert len(engine.cache) == 0

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, config):
        client = Mock()
        client.search_by_genre = AsyncMock(side_effect=asyncio.CancelledError())
        engine = make_engine(client, config)

        with pytest.raises(asyncio.CancelledError):
            await engine.search(SearchRequest(genres=["pop"], limit=10))

    @pytest.mark.asyncio
    async def test_cache_hit_skips_catalog(self, catalog, config):
        cache = RepetitionCache()
        engine = make_engine(catalog, config, cache=cache)
        request = SearchRequest(genres=["pop", "rock"], limit=20)

        await engine.search(request)
        calls = catalog.search_by_genre.await_count
        cached_ids = {track.id for track in cache.get(cache.fingerprint(request))}
        second = await engine.search(request)

        assert catalog.search_by_genre.await_count == calls
        assert len(second) == 20
        assert {track.id for track in second} <= cached_ids

    @pytest.mark.asyncio
    async def test_small_cached_pool_is_ignored(self, catalog, config, make_track):
        cache = RepetitionCache()
        engine = make_engine(catalog, config, cache=cache)
        request = SearchRequest(genres=["pop"], limit=10)
        cache.put(cache.fingerprint(request), [make_track("c1")])

        await engine.search(request)

        assert catalog.search_by_genre.await_count >= 1

    @pytest.mark.asyncio
    async def test_excluded_language_filtered_and_deduplicated(self, config, make_track):
        client = Mock()
        client.search_by_genre = AsyncMock(return_value=[
            make_track("a", name="Midnight Drive", popularity=70),
            make_track("a", name="Midnight Drive", popularity=70),
            make_track("b", name="Gönül Yarası", popularity=70),
        ])
        client.search_tracks = AsyncMock(return_value=[])
        engine = make_engine(client, config)

        tracks = await engine.search(SearchRequest(genres=["pop"], limit=10))

        assert [track.id for track in tracks] == ["a"]

    @pytest.mark.asyncio
    async def test_excluded_language_kept_on_request(self, config, make_track):
        client = Mock()
        client.search_by_genre = AsyncMock(return_value=[make_track("b", name="Gönül Yarası", popularity=70)])
        client.search_tracks = AsyncMock(return_value=[])
        engine = make_engine(client, config)

        tracks = await engine.search(SearchRequest(genres=["pop"], limit=10, include_excluded_language=True))

        assert [track.id for track in tracks] == ["b"]

    @pytest.mark.asyncio
    async def test_invalid_limit(self, catalog, config):
        with pytest.raises(ValueError):
            await make_engine(catalog, config).search(SearchRequest(genres=["pop"], limit=0))


class TestStrategies:

    @pytest.mark.asyncio
    async def test_genre_floor(self, config, make_track):
        client = Mock()
        client.search_by_genre = AsyncMock(return_value=[
            make_track("low", popularity=5), make_track("high", popularity=50)
        ])
        strategy = GenreSearchStrategy(client, config, rng=random.Random(1))

        tracks = await strategy.collect(SearchRequest(genres=["pop", "rock"]), QueryBudget(8))

        assert {track.id for track in tracks} == {"high"}

    @pytest.mark.asyncio
    async def test_genre_free_text_fallback_on_empty(self, config, make_track):
        client = Mock()
        client.search_by_genre = AsyncMock(return_value=[])
        client.search_tracks = AsyncMock(return_value=[make_track("x", popularity=50)])
        config.max_genres = 1
        strategy = GenreSearchStrategy(client, config, rng=random.Random(1))

        tracks = await strategy.collect(SearchRequest(genres=["shoegaze"]), QueryBudget(8))

        assert [track.id for track in tracks] == ["x"]
        assert client.search_tracks.await_args.args[0] == '"shoegaze" music'

    def test_pick_genres_fills_open_slot(self, config):
        strategy = GenreSearchStrategy(Mock(), config, rng=random.Random(3))
        request = SearchRequest(genres=["pop"], weather_context=WeatherContext(condition=WeatherCondition.RAINY))

        picked = strategy.pick_genres(request)

        assert picked[0] == "pop"
        assert len(picked) == 2

    def test_genre_applies_only_with_genres(self, config):
        strategy = GenreSearchStrategy(Mock(), config)

        assert not strategy.applies(SearchRequest(genres=[]))

    def test_weather_applies_only_with_weather(self, config):
        strategy = WeatherKeywordStrategy(Mock(), config)

        assert not strategy.applies(SearchRequest(genres=["pop"]))
        assert strategy.applies(SearchRequest(genres=[], weather_context=WeatherContext()))

    @pytest.mark.asyncio
    async def test_mood_queries_follow_quadrant(self, config):
        client = Mock()
        client.search_tracks = AsyncMock(return_value=[])
        strategy = MoodKeywordStrategy(client, config)

        await strategy.collect(SearchRequest(genres=[], target_features=TargetFeatures(energy=0.2, valence=0.2)), QueryBudget(8))

        queries = [call.args[0] for call in client.search_tracks.await_args_list]
        assert queries == ['genre:"indie folk"', 'genre:"sad"']

    @pytest.mark.asyncio
    async def test_popularity_fallback_has_no_floor(self, config, make_track):
        client = Mock()
        client.search_tracks = AsyncMock(return_value=[make_track("z", popularity=0)])
        strategy = PopularityFallbackStrategy(client, config, rng=random.Random(0))

        tracks = await strategy.collect(SearchRequest(genres=[]), QueryBudget(1))

        assert [track.id for track in tracks] == ["z"]
        assert client.search_tracks.await_args.args[0] in ("popular", "trending")
