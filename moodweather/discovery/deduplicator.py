"""
Track deduplication.

Removes exact id duplicates and near-duplicate versions of the same song
("Song" vs "Song (Remix)") by the same primary artist. The substring check
is a heuristic: distinct songs whose titles overlap ("Home" and "Homeward")
by one artist are also collapsed, which is accepted.
"""

import re
from typing import Dict, List, Set, TypeVar, Union

import structlog

from ..models.track_models import CandidateTrack, Track

logger = structlog.get_logger(__name__)

T = TypeVar("T", Track, CandidateTrack)

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, drop punctuation (bracket contents stay), collapse whitespace."""
    text = _NON_WORD.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def _as_track(item: Union[Track, CandidateTrack]) -> Track:
    return item.track if isinstance(item, CandidateTrack) else item


def deduplicate_tracks(tracks: List[T]) -> List[T]:
    """
    Remove duplicate tracks, preserving first-seen order.

    Accepts plain tracks or candidates carrying a `.track`. Idempotent:
    running it on its own output changes nothing.
    """
    seen_ids: Set[str] = set()
    titles_by_artist: Dict[str, List[str]] = {}
    unique: List[T] = []

    for item in tracks:
        track = _as_track(item)
        if track.id in seen_ids:
            continue

        artist = normalize_text(track.primary_artist)
        title = normalize_text(track.name)
        kept_titles = titles_by_artist.setdefault(artist, [])

        if title and any(kept in title or title in kept for kept in kept_titles if kept):
            continue

        seen_ids.add(track.id)
        kept_titles.append(title)
        unique.append(item)

    if len(unique) != len(tracks):
        logger.debug("Duplicates removed", before=len(tracks), after=len(unique))
    return unique
