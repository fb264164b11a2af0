"""
Quality-weighted shuffling.

SmartShuffle orders tracks by quality score but randomizes the order of
tracks whose scores are close, so repeated requests yield different
playlists without promoting poor tracks.
"""

import random
import time
from functools import cmp_to_key
from typing import Dict, List, Optional

import structlog

from ..models.track_models import Track
from .quality_scorer import QualityScorer

logger = structlog.get_logger(__name__)


class SmartShuffle:
    """
    Sort by quality with randomized tie-breaking.

    Pairs whose scores differ by less than `tie_window` compare by a random
    sign drawn from the injected RNG. Python's sort tolerates the resulting
    inconsistent comparator, so the output is always a permutation.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        tie_window: int = 10,
        scorer: Optional[QualityScorer] = None
    ):
        self.rng = rng or random.Random()
        self.tie_window = tie_window
        self.scorer = scorer or QualityScorer()

    def shuffle(self, tracks: List[Track]) -> List[Track]:
        if len(tracks) < 2:
            return list(tracks)

        scores: Dict[str, int] = {track.id: self.scorer.score(track) for track in tracks}

        def compare(a: Track, b: Track) -> int:
            difference = scores[b.id] - scores[a.id]
            if abs(difference) < self.tie_window:
                return self.rng.choice((-1, 1))
            return difference

        return sorted(tracks, key=cmp_to_key(compare))


def time_seeded_shuffle(
    tracks: List[Track],
    now: Optional[float] = None,
    bucket_seconds: int = 300
) -> List[Track]:
    """
    Fisher-Yates shuffle seeded by the current time bucket.

    Within one bucket (5 minutes by default) the order is stable; it changes
    when the bucket rolls over.
    """
    now = time.time() if now is None else now
    shuffled = list(tracks)
    random.Random(int(now // bucket_seconds)).shuffle(shuffled)
    return shuffled


def spread_artists(tracks: List[Track], rng: Optional[random.Random] = None) -> List[Track]:
    """
    Reorder so the same primary artist does not play twice in a row.

    Each step picks a random remaining track by a different artist than the
    previous one; when only the same artist is left it is placed anyway.
    """
    if len(tracks) <= 2:
        return list(tracks)

    rng = rng or random.Random()
    remaining = list(tracks)
    spread = [remaining.pop(rng.randrange(len(remaining)))]

    while remaining:
        last_artist = spread[-1].primary_artist
        choices = [i for i, track in enumerate(remaining) if track.primary_artist != last_artist]
        if not choices:
            choices = list(range(len(remaining)))
        spread.append(remaining.pop(rng.choice(choices)))

    return spread
