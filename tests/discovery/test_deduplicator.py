"""
Tests for track deduplication.
"""

from moodweather.discovery.deduplicator import deduplicate_tracks, normalize_text


class TestNormalizeText:

    def test_lowercases_and_strips_punctuation(self):
        assert normalize_text("  Song (Radio Edit) - Remastered!! ") == "song radio edit remastered"


class TestDeduplicateTracks:

    def test_exact_id_duplicates(self, make_track):
        first = make_track("a", name="Northern Lights", artist="Aurora Band")
        repeat = make_track("a", name="Something Else", artist="Other Band")

        assert deduplicate_tracks([first, repeat]) == [first]

    def test_version_of_same_song_by_same_artist(self, make_track):
        original = make_track("a", name="Northern Lights", artist="Aurora Band")
        remix = make_track("b", name="Northern Lights (Club Remix)", artist="Aurora Band")

        assert deduplicate_tracks([original, remix]) == [original]

    def test_same_title_different_artist_kept(self, make_track):
        one = make_track("a", name="Northern Lights", artist="Aurora Band")
        two = make_track("b", name="Northern Lights", artist="Polar Crew")

        assert deduplicate_tracks([one, two]) == [one, two]

    def test_first_seen_order_preserved(self, make_track):
        tracks = [make_track(str(i)) for i in range(5)]

        assert deduplicate_tracks(tracks) == tracks

    def test_idempotent(self, make_track):
        tracks = [
            make_track("a", name="Northern Lights", artist="Aurora Band"),
            make_track("b", name="Northern Lights - Live", artist="aurora band"),
            make_track("c", name="Harbour", artist="Polar Crew"),
            make_track("a", name="Northern Lights", artist="Aurora Band"),
            make_track("d", name="Harbour Lights", artist="Polar Crew"),
        ]

        once = deduplicate_tracks(tracks)

        assert [track.id for track in once] == ["a", "c"]
        assert deduplicate_tracks(once) == once

    def test_candidates_are_accepted(self, make_track, make_candidate):
        candidates = [make_candidate(make_track("a")), make_candidate(make_track("a"))]

        assert len(deduplicate_tracks(candidates)) == 1

    def test_empty_titles_not_collapsed(self, make_track):
        tracks = [make_track("a", name="", artist="Aurora Band"), make_track("b", name="", artist="Aurora Band")]

        assert len(deduplicate_tracks(tracks)) == 2
