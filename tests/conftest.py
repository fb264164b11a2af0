"""
Shared fixtures for the moodweather test suite.
"""

import pytest

from moodweather.models.track_models import (
    Album,
    AlbumImage,
    Artist,
    AudioFeatures,
    CandidateTrack,
    Track,
)


def build_track(
    track_id,
    name=None,
    artist=None,
    popularity=50,
    duration_ms=200000,
    images=3,
    preview=True,
    album="Album"
):
    """Track with plain ASCII metadata that no language rule matches."""
    return Track(
        id=str(track_id),
        name=name if name is not None else f"Track {track_id}",
        artists=(Artist(name=artist if artist is not None else f"Artist {track_id}"),),
        album=Album(
            name=album,
            images=tuple(
                AlbumImage(url=f"https://img.example/{track_id}/{size}", width=size, height=size)
                for size in (640, 300, 64)[:images]
            )
        ),
        duration_ms=duration_ms,
        popularity=popularity,
        preview_url=f"https://preview.example/{track_id}" if preview else None,
        external_url=f"https://open.spotify.com/track/{track_id}",
        uri=f"spotify:track:{track_id}"
    )


@pytest.fixture
def make_track():
    """Factory fixture returning `build_track`."""
    return build_track


@pytest.fixture
def make_candidate():
    """Candidate factory; pass `features=None` for a featureless candidate."""
    def _make(track, energy=0.5, valence=0.5, tempo=120.0, acousticness=0.3, features=True, **extra):
        if not features:
            return CandidateTrack(track=track, features=None)
        return CandidateTrack(
            track=track,
            features=AudioFeatures(
                energy=energy,
                valence=valence,
                tempo=tempo,
                acousticness=acousticness,
                track_id=track.id,
                **extra
            )
        )
    return _make
