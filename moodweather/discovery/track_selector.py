"""
Track Selector / Diversifier

Fills a playlist from a candidate pool under a popularity floor, a
per-artist cap and a target count, relaxing constraints in passes until the
target is met or the pool runs out. The fallback tiers used by the playlist
assembler live here as well; each logs a distinct tier name.
"""

import random
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional, Sequence, Set

import structlog

from ..models.config_models import SelectionConfig
from ..models.pipeline_models import SelectionOptions
from ..models.track_models import CandidateTrack, Track
from .language_classifier import LanguageClassifier

logger = structlog.get_logger(__name__)


class TrackSelector:
    """
    Diversifying selector.

    Passes:
    1. Relaxed popularity floor (min_popularity - relaxation)
    2. Language filter when exclusion is requested
    3. Popularity sort, randomized among tracks within the tie window
    4. First pass honouring the per-artist cap
    5. Last-resort pass ignoring the cap
    """

    def __init__(
        self,
        classifier: Optional[LanguageClassifier] = None,
        rng: Optional[random.Random] = None,
        config: Optional[SelectionConfig] = None
    ):
        self.classifier = classifier or LanguageClassifier()
        self.rng = rng or random.Random()
        self.config = config or SelectionConfig()
        self.logger = logger.bind(component="TrackSelector")

    def options_from_config(self, target_count: int, include_excluded_language: bool = False, weather=None) -> SelectionOptions:
        return SelectionOptions(
            max_per_artist=self.config.max_per_artist,
            min_popularity=self.config.min_popularity,
            target_count=target_count,
            include_excluded_language=include_excluded_language,
            weather_preference=weather
        )

    def select(self, tracks: Sequence[Track], options: SelectionOptions) -> List[Track]:
        """
        Select up to `options.target_count` diversified tracks.

        Args:
            tracks: Candidate pool (any order, may contain duplicates)
            options: Selection knobs

        Returns:
            Tracks with unique ids; no artist exceeds the cap unless the
            last-resort pass was needed
        """
        if options.target_count <= 0:
            raise ValueError("target_count must be positive")

        floor = max(0, options.min_popularity - self.config.popularity_relaxation)
        pool = [track for track in _unique_by_id(tracks) if track.popularity >= floor]
        self.logger.info(
            "Selecting tracks",
            pool=len(tracks),
            after_floor=len(pool),
            floor=floor,
            target=options.target_count,
            weather=options.weather_preference.condition.value if options.weather_preference else None
        )

        if not options.include_excluded_language:
            pool = self.classifier.filter_tracks(pool)

        ranked = self.rank_by_popularity(pool)

        selected: List[Track] = []
        artist_counts: Dict[str, int] = {}
        for track in ranked:
            if len(selected) >= options.target_count:
                break
            artist = track.primary_artist.lower()
            if artist_counts.get(artist, 0) < options.max_per_artist:
                selected.append(track)
                artist_counts[artist] = artist_counts.get(artist, 0) + 1

        if len(selected) < options.target_count:
            chosen = {track.id for track in selected}
            extra = [track for track in ranked if track.id not in chosen]
            extra = extra[:options.target_count - len(selected)]
            if extra:
                self.logger.warning(
                    "Artist cap exceeded as last resort",
                    added=len(extra),
                    max_per_artist=options.max_per_artist
                )
                selected.extend(extra)

        self.logger.info("Selection completed", selected=len(selected), target=options.target_count)
        return selected

    def rank_by_popularity(self, tracks: Sequence[Track]) -> List[Track]:
        """Popularity descending; pairs within the tie window order randomly."""
        window = self.config.popularity_tie_window

        def compare(a: Track, b: Track) -> int:
            difference = b.popularity - a.popularity
            if abs(difference) < window:
                return self.rng.choice((-1, 1))
            return difference

        return sorted(tracks, key=cmp_to_key(compare))

    def popular_without_features(
        self,
        pool: Sequence[CandidateTrack],
        limit: int,
        options: SelectionOptions,
        exclude_ids: Iterable[str] = (),
        min_popularity: int = 0
    ) -> List[Track]:
        """Most popular candidates that lack audio features."""
        excluded = set(exclude_ids)
        featureless = [
            candidate.track for candidate in pool
            if not candidate.has_features
            and candidate.id not in excluded
            and candidate.track.popularity >= min_popularity
        ]
        picked = self._language_ok(_by_popularity(_unique_by_id(featureless)), options)[:max(0, limit)]
        self.logger.info("Fallback tier", tier="popular_without_features", added=len(picked))
        return picked

    def emergency_low_floor(
        self,
        pool: Sequence[Track],
        already: Sequence[Track],
        needed: int,
        options: SelectionOptions,
        floor: Optional[int] = None
    ) -> List[Track]:
        """Any unused track above a very low popularity floor, artist cap honoured."""
        floor = self.config.emergency_min_popularity if floor is None else floor
        taken: Set[str] = {track.id for track in already}
        artist_counts: Dict[str, int] = {}
        for track in already:
            artist = track.primary_artist.lower()
            artist_counts[artist] = artist_counts.get(artist, 0) + 1

        candidates = [track for track in _unique_by_id(pool) if track.id not in taken and track.popularity >= floor]
        picked: List[Track] = []
        for track in self._language_ok(_by_popularity(candidates), options):
            if len(picked) >= needed:
                break
            artist = track.primary_artist.lower()
            if artist_counts.get(artist, 0) < options.max_per_artist:
                picked.append(track)
                artist_counts[artist] = artist_counts.get(artist, 0) + 1

        self.logger.warning("Fallback tier", tier="emergency_low_floor", floor=floor, added=len(picked))
        return picked

    def ultimate_most_popular(
        self,
        pool: Sequence[Track],
        already: Sequence[Track],
        needed: int,
        options: SelectionOptions
    ) -> List[Track]:
        """Most popular unused tracks with no floor and no artist cap."""
        taken = {track.id for track in already}
        candidates = [track for track in _unique_by_id(pool) if track.id not in taken]
        picked = self._language_ok(_by_popularity(candidates), options)[:max(0, needed)]
        self.logger.warning("Fallback tier", tier="ultimate_most_popular", added=len(picked))
        return picked

    def _language_ok(self, tracks: List[Track], options: SelectionOptions) -> List[Track]:
        if options.include_excluded_language:
            return tracks
        return self.classifier.filter_tracks(tracks)


def _unique_by_id(tracks: Iterable[Track]) -> List[Track]:
    seen: Set[str] = set()
    unique = []
    for track in tracks:
        if track.id not in seen:
            seen.add(track.id)
            unique.append(track)
    return unique


def _by_popularity(tracks: List[Track]) -> List[Track]:
    return sorted(tracks, key=lambda track: track.popularity, reverse=True)
