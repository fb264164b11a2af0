"""
Repetition-Avoidance Cache

In-memory TTL cache of search pools keyed by a coarse request fingerprint.
Serving a reshuffled cached pool reduces catalog load; the time bucket in
the fingerprint guarantees fresh searches every few minutes so repeated
requests do not keep returning the same playlist.
"""

import threading
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import structlog

from ..models.pipeline_models import CacheEntry
from ..models.track_models import SearchRequest, Track
from .smart_shuffle import time_seeded_shuffle

logger = structlog.get_logger(__name__)

REPEAT_SHARE = 0.3


class RepetitionCache:
    """
    Bounded TTL cache with an injectable clock.

    An entry stored at T is servable while now - T <= ttl. Expired entries
    are removed on read and swept on every put; when capacity is exceeded
    the oldest entry is evicted. All access goes through one lock so
    concurrent request handlers can share an instance.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 20,
        clock: Callable[[], float] = time.time,
        max_uses: Optional[int] = None,
        time_bucket_seconds: int = 300
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.clock = clock
        self.max_uses = max_uses
        self.time_bucket_seconds = time_bucket_seconds

        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.logger = logger.bind(component="RepetitionCache")

    def fingerprint(self, request: SearchRequest, now: Optional[float] = None) -> str:
        """
        Coarse cache key for a search request.

        Built from the first two genres, energy and valence rounded to one
        decimal, the language flag, the hour of day and the epoch bucket.
        """
        now = self.clock() if now is None else now
        genres = ",".join(genre.lower().strip() for genre in request.genres[:2])
        target = request.target_features
        hour = datetime.fromtimestamp(now).hour
        bucket = int(now // self.time_bucket_seconds)

        return (
            f"{genres}|e{round(target.energy, 1)}|v{round(target.valence, 1)}"
            f"|lang{int(request.include_excluded_language)}|h{hour}|b{bucket}"
        )

    def get(self, key: str) -> Optional[Tuple[Track, ...]]:
        """Cached tracks for `key`, or None on miss, expiry or exhausted uses."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if self._is_expired(entry, self.clock()):
                del self._entries[key]
                self.logger.debug("Cache entry expired", key=key)
                return None

            if self.max_uses is not None and entry.use_count >= self.max_uses:
                self.logger.debug("Cache entry use limit reached", key=key, uses=entry.use_count)
                return None

            entry.use_count += 1
            return entry.tracks

    def put(self, key: str, tracks: Sequence[Track]) -> None:
        with self._lock:
            now = self.clock()
            self._entries[key] = CacheEntry(tracks=tuple(tracks), timestamp=now)
            self._sweep(now)

            while len(self._entries) > self.max_entries:
                oldest_key = min(self._entries, key=lambda k: self._entries[k].timestamp)
                del self._entries[oldest_key]
                self.logger.debug("Cache entry evicted", key=oldest_key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp > self.ttl_seconds

    def _sweep(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]


def avoid_recent(
    tracks: List[Track],
    previous: Optional[Sequence[Track]] = None,
    now: Optional[float] = None
) -> List[Track]:
    """
    Put tracks unseen in `previous` first and limit repeats.

    A track counts as a repeat when its id or its primary artist appeared in
    the previous playlist. Repeats fill at most 30% of the result; both
    groups are time-seeded shuffled. The result is never longer than the
    input.
    """
    if not previous:
        return time_seeded_shuffle(tracks, now)

    previous_ids = {track.id for track in previous}
    previous_artists = {track.primary_artist.lower() for track in previous}

    fresh: List[Track] = []
    repeated: List[Track] = []
    for track in tracks:
        if track.id in previous_ids or track.primary_artist.lower() in previous_artists:
            repeated.append(track)
        else:
            fresh.append(track)

    logger.debug("Repetition split", fresh=len(fresh), repeated=len(repeated))

    repeat_budget = int(len(tracks) * REPEAT_SHARE)
    ordered = time_seeded_shuffle(fresh, now) + time_seeded_shuffle(repeated[:repeat_budget], now)
    return ordered[:len(tracks)]
