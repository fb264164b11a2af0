"""
Quality Scoring for catalog tracks

Scores a single track 0-100 from its catalog metadata only:
1. Popularity (up to 50 points)
2. Artwork presence and resolution
3. Preview availability
4. Artist and track name sanity
5. Duration in a listenable range
"""

import re
from dataclasses import dataclass

import structlog

from ..models.track_models import Track

logger = structlog.get_logger(__name__)

_PUNCTUATION_OR_DIGITS = re.compile(r"^[\W\d_]+$")


@dataclass(frozen=True)
class QualityWeights:
    """Point values for each quality signal."""
    popularity_factor: float = 0.5
    popularity_cap: float = 50.0
    artwork: int = 10
    large_artwork: int = 5
    preview: int = 5
    artist_name: int = 10
    track_name: int = 10
    duration: int = 10
    large_artwork_min_width: int = 640
    min_duration_minutes: float = 1.5
    max_duration_minutes: float = 8.0


class QualityScorer:
    """
    Deterministic metadata quality scorer.

    Pure function of the track: no I/O, no randomness, no failure mode.
    """

    def __init__(self, weights: QualityWeights = QualityWeights()):
        self.weights = weights
        self.logger = logger.bind(component="QualityScorer")

    def score(self, track: Track) -> int:
        """
        Calculate the quality score of a track.

        Args:
            track: Catalog track

        Returns:
            Integer score clamped to [0, 100]
        """
        w = self.weights
        total = min(w.popularity_cap, track.popularity * w.popularity_factor)

        if track.album.images:
            total += w.artwork
            if self._has_large_artwork(track):
                total += w.large_artwork

        if track.preview_url:
            total += w.preview

        if self._is_meaningful_artist(track.primary_artist):
            total += w.artist_name

        if self._is_meaningful_title(track.name):
            total += w.track_name

        if w.min_duration_minutes <= track.duration_minutes <= w.max_duration_minutes:
            total += w.duration

        return int(max(0, min(100, round(total))))

    def _has_large_artwork(self, track: Track) -> bool:
        images = track.album.images
        widths = [image.width for image in images if image.width]
        if widths:
            return max(widths) >= self.weights.large_artwork_min_width
        # Catalog lists three sizes largest first; without sizes assume the first is large
        return len(images) >= 3

    @staticmethod
    def _is_meaningful_artist(name: str) -> bool:
        name = name.strip()
        return len(name) > 2 and not name.isdigit()

    @staticmethod
    def _is_meaningful_title(name: str) -> bool:
        name = name.strip()
        return bool(name) and not _PUNCTUATION_OR_DIGITS.match(name)
