"""
Query Templates

Vocabulary used to turn genres, weather and mood into catalog queries.
Everything here is data; the search strategies only look values up.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from ..models.track_models import TargetFeatures, WeatherCondition, WeatherContext

# (substrings matched against the lower-cased genre, genre filters to query)
GENRE_QUERY_EXPANSIONS: List[Tuple[Tuple[str, ...], Tuple[str, ...]]] = [
    (("latin",), ("latin pop", "reggaeton", "latin")),
    (("funk",), ("funk", "soul", "disco")),
    (("elektronik", "electronic"), ("electronic", "house", "techno")),
    (("pop",), ("pop", "indie pop", "electropop")),
    (("rock",), ("rock", "indie rock", "alternative rock")),
    (("folk", "acoustic"), ("folk", "acoustic", "indie folk")),
    (("ambient", "chill"), ("ambient", "chillout", "downtempo")),
    (("jazz",), ("jazz", "smooth jazz", "contemporary jazz")),
    (("classical",), ("classical", "neoclassical", "modern classical")),
    (("hip-hop", "hip hop", "rap"), ("hip hop", "rap", "hip-hop")),
    (("r-n-b", "rnb", "r&b"), ("r&b", "soul", "neo soul")),
]

WEATHER_GENRE_TAGS: Dict[WeatherCondition, Tuple[str, ...]] = {
    WeatherCondition.RAINY: ("jazz", "blues", "lo-fi", "indie", "melancholic", "acoustic"),
    WeatherCondition.DRIZZLE: ("lo-fi", "jazz", "acoustic", "indie"),
    WeatherCondition.CLEAR: ("pop", "dance", "electronic", "upbeat", "happy", "energetic"),
    WeatherCondition.CLEAR_NIGHT: ("ambient", "chillout", "downtempo", "atmospheric", "chill"),
    WeatherCondition.CLOUDY_NIGHT: ("atmospheric", "ambient", "dark", "moody", "indie"),
    WeatherCondition.CLOUDY: ("indie", "alternative", "mellow", "contemplative"),
    WeatherCondition.STORMY: ("alternative", "rock", "dramatic", "intense", "powerful"),
    WeatherCondition.SNOWY: ("ambient", "peaceful", "serene", "acoustic", "chill"),
    WeatherCondition.FOGGY: ("atmospheric", "ambient", "ethereal", "mysterious"),
}

HOT_TEMPERATURE = 25.0
COLD_TEMPERATURE = 10.0
HOT_WEATHER_TAGS = ("upbeat", "energetic", "dance", "pop")
COLD_WEATHER_TAGS = ("acoustic", "ambient", "chill", "indie")

WEATHER_KEYWORD_QUERIES: Dict[WeatherCondition, Tuple[str, ...]] = {
    WeatherCondition.RAINY: (
        "rain songs", "rainy day music", "cozy rain",
        "melancholic rain", "jazz rain", "acoustic rain",
    ),
    WeatherCondition.DRIZZLE: ("rainy day music", "cozy rain", "soft rain songs"),
    WeatherCondition.CLEAR: (
        "sunny day music", "feel good sunshine", "bright songs",
        "happy sunshine", "summer vibes", "upbeat sunny",
    ),
    WeatherCondition.CLEAR_NIGHT: (
        "midnight music", "night chill", "peaceful night",
        "starry night", "late night vibes", "calm evening",
    ),
    WeatherCondition.CLOUDY_NIGHT: (
        "moody evening", "atmospheric night", "dark ambient",
        "contemplative night", "introspective evening",
    ),
    WeatherCondition.STORMY: (
        "storm music", "dramatic weather", "powerful songs",
        "intense storm", "dramatic music", "powerful energy",
    ),
    WeatherCondition.SNOWY: (
        "winter music", "cozy snow", "peaceful snow",
        "winter wonderland", "snowy evening", "winter chill",
    ),
}
DEFAULT_WEATHER_QUERIES = ("ambient music", "atmospheric songs", "nature music")

MOOD_QUERIES_HAPPY_ENERGETIC = (
    'genre:"dance pop"', 'genre:"electropop"', 'upbeat genre:"pop"',
    "energetic dance music", "feel good pop songs",
)
MOOD_QUERIES_SAD_CALM = (
    'genre:"indie folk"', 'genre:"sad"', 'melancholic genre:"alternative"',
    "emotional ballads", "heartbreak songs",
)
MOOD_QUERIES_PEACEFUL = (
    'genre:"chillout"', 'genre:"ambient"', 'relaxing genre:"acoustic"',
    "peaceful music", "calm instrumental",
)
MOOD_QUERIES_TENSE = (
    'genre:"alternative rock"', 'genre:"indie rock"', 'intense genre:"rock"',
    "powerful guitar music", "dramatic rock songs",
)
MOOD_QUERIES_NEUTRAL = (
    'genre:"indie pop"', 'genre:"alternative"', 'mainstream genre:"pop"',
)

POPULARITY_FALLBACK_QUERIES = ("popular", "trending")

RELATED_GENRES: Dict[str, Tuple[str, ...]] = {
    "electro house": ("progressive house", "tech house", "big room house", "future house"),
    "progressive house": ("electro house", "tech house", "deep house", "trance"),
    "tech house": ("electro house", "progressive house", "minimal techno", "deep house"),
    "electronic": ("synthwave", "electronica", "downtempo", "ambient electronic"),
    "pop": ("electropop", "synth-pop", "indie pop", "dance pop"),
    "dance": ("electronic dance music", "eurodance", "club", "rave"),
    "ambient": ("chillout", "downtempo", "new age", "atmospheric"),
    "rock": ("indie rock", "alternative rock", "electronic rock", "synth rock"),
}


def _unique(items: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(items))


def genre_queries(genres: Sequence[str]) -> List[str]:
    """
    Expand user-facing genres into concrete catalog queries.

    Known families map to `genre:"x"` filters; anything else becomes a pair
    of free-text queries.
    """
    queries: List[str] = []
    for genre in genres:
        genre_lower = genre.lower()
        for needles, expansions in GENRE_QUERY_EXPANSIONS:
            if any(needle in genre_lower for needle in needles):
                queries.extend(f'genre:"{expansion}"' for expansion in expansions)
                break
        else:
            queries.extend([f'"{genre}" music', f"{genre} songs"])
    return _unique(queries)


def enhance_genres_with_weather(genres: Sequence[str], weather: Optional[WeatherContext]) -> List[str]:
    """Append condition and temperature genre tags to the requested genres."""
    enhanced = list(genres)
    if weather is None:
        return _unique(enhanced)

    enhanced.extend(WEATHER_GENRE_TAGS.get(weather.condition, ()))

    if weather.temperature > HOT_TEMPERATURE:
        enhanced.extend(HOT_WEATHER_TAGS)
    elif weather.temperature < COLD_TEMPERATURE:
        enhanced.extend(COLD_WEATHER_TAGS)

    return _unique(enhanced)


def weather_keyword_queries(weather: WeatherContext) -> List[str]:
    return list(WEATHER_KEYWORD_QUERIES.get(weather.condition, DEFAULT_WEATHER_QUERIES))


def mood_keyword_queries(target: TargetFeatures) -> List[str]:
    """Keyword queries for the (energy, valence) quadrant of the target."""
    energy, valence = target.energy, target.valence

    if energy > 0.7 and valence > 0.6:
        return list(MOOD_QUERIES_HAPPY_ENERGETIC)
    if energy < 0.4 and valence < 0.4:
        return list(MOOD_QUERIES_SAD_CALM)
    if energy < 0.4 and valence > 0.5:
        return list(MOOD_QUERIES_PEACEFUL)
    if energy > 0.6 and valence < 0.5:
        return list(MOOD_QUERIES_TENSE)
    return list(MOOD_QUERIES_NEUTRAL)


def expand_related_genres(genres: Sequence[str]) -> List[str]:
    """Genres plus their related sub-genres, used to vary repeated searches."""
    expanded = list(genres)
    for genre in genres:
        expanded.extend(RELATED_GENRES.get(genre.lower(), ()))
    return _unique(expanded)
