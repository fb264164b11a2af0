"""
Tests for QualityScorer.
"""

import pytest

from moodweather.discovery.quality_scorer import QualityScorer, QualityWeights


@pytest.fixture
def scorer():
    return QualityScorer()


class TestQualityScorer:

    def test_perfect_track_scores_100(self, scorer, make_track):
        track = make_track("t1", popularity=100, duration_ms=210000)

        assert scorer.score(track) == 100

    def test_bare_track_scores_zero(self, scorer, make_track):
        track = make_track("t1", name="", artist="", popularity=0, duration_ms=0, images=0, preview=False)

        assert scorer.score(track) == 0

    @pytest.mark.parametrize("popularity", [0, 1, 37, 64, 99, 100])
    def test_bounds(self, scorer, make_track, popularity):
        score = scorer.score(make_track("t1", popularity=popularity))

        assert 0 <= score <= 100

    def test_popularity_contributes_half(self, scorer, make_track):
        low = scorer.score(make_track("t1", popularity=20))
        high = scorer.score(make_track("t1", popularity=60))

        assert high - low == 20

    def test_small_artwork_misses_large_bonus(self, scorer, make_track):
        full = scorer.score(make_track("t1", images=3))
        small = scorer.score(make_track("t1", images=1))

        assert full - small == 0
        assert scorer.score(make_track("t1", images=0)) == full - 15

    @pytest.mark.parametrize("name", ["123", "...", "!!! 42"])
    def test_meaningless_titles(self, scorer, make_track, name):
        assert scorer.score(make_track("t1", name=name)) == scorer.score(make_track("t1")) - 10

    @pytest.mark.parametrize("artist", ["DJ", "2024"])
    def test_meaningless_artists(self, scorer, make_track, artist):
        assert scorer.score(make_track("t1", artist=artist)) == scorer.score(make_track("t1")) - 10

    @pytest.mark.parametrize("duration_ms, bonus", [(60000, 0), (90000, 10), (480000, 10), (600000, 0)])
    def test_duration_window(self, scorer, make_track, duration_ms, bonus):
        base = scorer.score(make_track("t1", duration_ms=1))

        assert scorer.score(make_track("t1", duration_ms=duration_ms)) - base == bonus

    def test_custom_weights(self, make_track):
        scorer = QualityScorer(QualityWeights(preview=0))
        with_preview = scorer.score(make_track("t1", preview=True))
        without_preview = scorer.score(make_track("t1", preview=False))

        assert with_preview == without_preview
