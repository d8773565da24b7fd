"""Unit tests for the catalog payload mappers."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from tagresolver.providers.catalog.mappers import (
    clean_text,
    map_bandcamp_search_result,
    map_bandcamp_track_info,
    map_beatport_track,
    map_musicbrainz_recording,
    map_traxsource_details,
    map_traxsource_row,
    normalize_key,
    parse_duration,
    parse_genre_from_tags,
    parse_release_date,
    split_key_bpm,
)

_TRAXSOURCE_BASE = "https://www.traxsource.com"

_TRAXSOURCE_ROW = """
<div class="trk-row">
  <div class="thumb"><img src="/img/thumb/123.jpg"></div>
  <div class="title">
    <a href="/track/123/strings-of-life">Strings of Life</a>
    <span class="version">Original Mix <span class="duration">7:32</span></span>
  </div>
  <div class="artists"><a href="/artist/1">Rhythim Is Rhythim</a></div>
  <div class="label"><a href="/label/9">Transmat</a></div>
  <div class="key-bpm">Amaj 124</div>
  <div class="genre"><a href="/genre/18">Techno</a></div>
  <div class="r-date">2019-03-01</div>
</div>
"""


# ======================================================================
# Field helpers
# ======================================================================


class TestFieldHelpers:
    def test_clean_text(self) -> None:
        assert clean_text("  Transmat  ") == "Transmat"
        assert clean_text("   ") is None
        assert clean_text(None) is None

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("5:32", 332.0),
            ("1:02:03", 3723.0),
            ("PT5M32S", 332.0),
            ("P00H07M32S", 452.0),
            (300, 300.0),
            ("452.5", 452.5),
            ("", None),
            (0, None),
            ("soon", None),
            (None, None),
        ],
    )
    def test_parse_duration(self, value, expected) -> None:
        assert parse_duration(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2019-03-01", "2019-03-01"),
            ("2019-03-01T00:00:00Z", "2019-03-01"),
            ("released March 1, 2019", "2019-03-01"),
            ("01 Mar 2019 00:00:00 GMT", "2019-03-01"),
            ("2019", "2019"),
            ("someday", None),
            (None, None),
        ],
    )
    def test_parse_release_date(self, value, expected) -> None:
        assert parse_release_date(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Amaj", "A"),
            ("A Minor", "Am"),
            ("F#min", "F#m"),
            ("Bb", "Bb"),
            ("c♯ minor", "C#m"),
            ("8A", "8A"),
            (None, None),
        ],
    )
    def test_normalize_key(self, value, expected) -> None:
        assert normalize_key(value) == expected

    def test_split_key_bpm(self) -> None:
        assert split_key_bpm("Amaj 124") == ("A", 124)
        assert split_key_bpm("124") == (None, 124)
        assert split_key_bpm(None) == (None, None)

    def test_parse_genre_from_tags(self) -> None:
        assert parse_genre_from_tags("deep house, techno") == "deep house"
        assert parse_genre_from_tags([" ", "techno"]) == "techno"
        assert parse_genre_from_tags(None) is None


# ======================================================================
# Payload mappers
# ======================================================================


class TestBeatportMapper:
    def test_full_payload(self) -> None:
        candidate = map_beatport_track(
            {
                "track_id": 123,
                "track_name": "Strings of Life",
                "mix_name": "Original Mix",
                "artists": [{"artist_name": "Rhythim Is Rhythim"}],
                "bpm": 124,
                "key_name": "A Minor",
                "length": 452000,
                "genre": [{"genre_name": "Techno"}],
                "label": {"label_name": "Transmat"},
                "release": {"release_name": "Innovator", "release_image_uri": "https://img/1.jpg"},
                "publish_date": "2019-03-01",
            }
        )
        assert candidate is not None
        assert candidate.id == "123"
        assert candidate.full_title == "Strings of Life (Original Mix)"
        assert candidate.artists == ("Rhythim Is Rhythim",)
        assert (candidate.bpm, candidate.key, candidate.duration) == (124, "Am", 452.0)
        assert (candidate.genre, candidate.label, candidate.album) == ("Techno", "Transmat", "Innovator")
        assert candidate.year == 2019

    def test_missing_fields_stay_absent(self) -> None:
        candidate = map_beatport_track({"track_id": 1, "track_name": "Only Title"})
        assert candidate is not None
        assert candidate.bpm is None
        assert candidate.key is None
        assert candidate.duration is None
        assert candidate.genre is None

    def test_payload_without_title_or_artist_is_dropped(self) -> None:
        assert map_beatport_track({"track_id": 1}) is None

    def test_payload_without_id_is_dropped(self) -> None:
        assert map_beatport_track({"track_name": "No Id"}) is None

    def test_artist_only_payload_keeps_title_absent(self) -> None:
        candidate = map_beatport_track(
            {"track_id": 9, "artists": [{"artist_name": "Rhythim Is Rhythim"}]}
        )
        assert candidate is not None
        assert candidate.title is None
        assert candidate.full_title is None
        assert "title" not in candidate.supplied_fields()


class TestTraxsourceMapper:
    def test_search_row(self) -> None:
        row = BeautifulSoup(_TRAXSOURCE_ROW, "html.parser").select_one(".trk-row")
        candidate = map_traxsource_row(row, _TRAXSOURCE_BASE)
        assert candidate is not None
        assert candidate.id == "https://www.traxsource.com/track/123/strings-of-life"
        assert candidate.title == "Strings of Life"
        assert candidate.mix_name == "Original Mix"
        assert candidate.duration == 452.0
        assert (candidate.key, candidate.bpm) == ("A", 124)
        assert candidate.label == "Transmat"
        assert candidate.genre == "Techno"
        assert candidate.artwork_url == "https://www.traxsource.com/img/thumb/123.jpg"
        assert candidate.album is None

    def test_details_overlay_only_sets_page_values(self) -> None:
        details = map_traxsource_details(
            "https://www.traxsource.com/track/123", "Innovator", "2019-03-01", "/cover.jpg", _TRAXSOURCE_BASE
        )
        assert details.album == "Innovator"
        assert details.artwork_url == "https://www.traxsource.com/cover.jpg"
        assert details.title is None
        assert details.bpm is None


class TestBandcampMapper:
    def test_search_result(self) -> None:
        candidate = map_bandcamp_search_result(
            {
                "url": "https://artist.bandcamp.com/track/strings?from=search",
                "name": "Strings of Life",
                "artist": "Rhythim Is Rhythim",
                "album": "Innovator",
                "release_date": "released March 1, 2019",
                "image_url": "https://f4.bcbits.com/img/a1_7.jpg",
                "tags": "techno, detroit",
            }
        )
        assert candidate is not None
        assert candidate.id == "https://artist.bandcamp.com/track/strings"
        assert candidate.genre == "techno"
        assert candidate.release_date == "2019-03-01"
        assert candidate.bpm is None
        assert candidate.key is None

    def test_track_info_json_ld(self) -> None:
        candidate = map_bandcamp_track_info(
            "https://artist.bandcamp.com/track/strings",
            {
                "@type": "MusicRecording",
                "name": "Strings of Life",
                "byArtist": {"name": "Rhythim Is Rhythim"},
                "inAlbum": {"name": "Innovator"},
                "publisher": {"name": "Transmat"},
                "duration": "P00H07M32S",
                "datePublished": "01 Mar 2019 00:00:00 GMT",
                "keywords": ["techno", "detroit"],
                "image": "https://f4.bcbits.com/img/a1_10.jpg",
            },
        )
        assert candidate is not None
        assert candidate.album == "Innovator"
        assert candidate.label == "Transmat"
        assert candidate.duration == 452.0
        assert candidate.genre == "techno"
        assert candidate.artwork_url == "https://f4.bcbits.com/img/a1_10.jpg"


class TestMusicBrainzMapper:
    def test_recording(self) -> None:
        candidate = map_musicbrainz_recording(
            {
                "id": "mbid-1",
                "title": "Strings of Life",
                "length": "452000",
                "artist-credit": [{"artist": {"name": "Rhythim Is Rhythim"}}, " & "],
                "release-list": [
                    {
                        "title": "Innovator",
                        "date": "1991",
                        "label-info-list": [{"label": {"name": "Transmat"}}],
                    }
                ],
                "tag-list": [{"name": "techno", "count": "3"}],
            }
        )
        assert candidate is not None
        assert candidate.artists == ("Rhythim Is Rhythim",)
        assert candidate.duration == 452.0
        assert candidate.album == "Innovator"
        assert candidate.label == "Transmat"
        assert candidate.year == 1991
        assert candidate.genre == "techno"
