"""
Search strategies for the discovery pipeline.

Each strategy is one tier of the search: genre filters, weather keywords,
mood keywords and a popularity fallback.
"""

from .base_strategy import BaseSearchStrategy, QueryBudget
from .genre_strategy import GenreSearchStrategy
from .keyword_strategies import MoodKeywordStrategy, PopularityFallbackStrategy, WeatherKeywordStrategy

__all__ = [
    "BaseSearchStrategy",
    "QueryBudget",
    "GenreSearchStrategy",
    "WeatherKeywordStrategy",
    "MoodKeywordStrategy",
    "PopularityFallbackStrategy",
]
