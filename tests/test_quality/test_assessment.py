"""Tests for audio quality assessment."""

import pytest

from trackgate.quality.assessment import QualityAssessor, base_score, parse_bitrate
from trackgate.types import SongInfo

MB = 1024 * 1024


@pytest.fixture
def assessor():
    return QualityAssessor()


class TestParseBitrate:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(320, 320), ("320kbps", 320), ("br: 128", 128), (None, 0), ("lossless", 0), (True, 0)],
    )
    def test_parse(self, value, expected):
        assert parse_bitrate(value) == expected


class TestBaseScore:
    def test_lossless(self):
        assert base_score("flac", 0) == 90
        assert base_score("FLAC", 999) == 100

    def test_bitrate_bands(self):
        assert base_score("mp3", 320) == 80
        assert base_score("mp3", 256) == 75
        assert base_score("mp3", 192) == 70
        assert base_score("mp3", 128) == 60

    def test_cap_at_95_for_256(self):
        assert base_score("flac", 256) == 95

    def test_unknown_format(self):
        assert base_score("wma", 0) == 60


class TestAssess:
    def test_consistent_size(self, assessor, sample_song):
        profile = assessor.assess(sample_song)
        assert profile.bitrate == 320
        assert profile.format == "mp3"
        assert profile.score == 80

    def test_mismatched_size_penalised(self, assessor):
        # 1 MB over 200 s is about 40 kbps, far below the declared 320
        profile = assessor.assess(
            SongInfo(url="https://a", br=320, format="mp3", size=1_000_000, duration=200_000)
        )
        assert profile.score == pytest.approx(64)

    def test_missing_fields(self, assessor):
        profile = assessor.assess({"url": "https://a"})
        assert profile.format == "unknown"
        assert profile.bitrate == 0
        assert profile.size == 0
        assert profile.score == 60

    def test_string_bitrate(self, assessor):
        assert assessor.assess({"br": "320kbps", "format": "ogg"}).score == 90


class TestSelect:
    def test_best_of_none(self, assessor):
        assert assessor.select_best([]) is None
        assert assessor.select_for_network([], "wifi") is None

    def test_select_best(self, assessor):
        best = assessor.select_best([
            ("kuwo", {"format": "mp3", "br": 128}),
            ("migu", {"format": "flac", "br": 999}),
        ])
        assert best.source == "migu"
        assert best.quality.score == 100

    def test_wifi_prefers_quality(self, assessor):
        pick = assessor.select_for_network(
            [("a", {"format": "mp3", "br": 128, "size": 2 * MB}),
             ("b", {"format": "flac", "br": 999, "size": 30 * MB})],
            "wifi",
        )
        assert pick.source == "b"

    def test_4g_drops_huge_files(self, assessor):
        pick = assessor.select_for_network(
            [("a", {"format": "mp3", "br": 320, "size": 9 * MB}),
             ("b", {"format": "flac", "br": 999, "size": 30 * MB})],
            "4g",
        )
        assert pick.source == "a"

    def test_3g_limits_bitrate(self, assessor):
        pick = assessor.select_for_network(
            [("a", {"format": "mp3", "br": 320, "size": 7 * MB}),
             ("b", {"format": "aac", "br": 192, "size": 4 * MB})],
            "3g",
        )
        assert pick.source == "b"

    def test_2g_falls_back_when_nothing_fits(self, assessor):
        pick = assessor.select_for_network(
            [("a", {"format": "mp3", "br": 320, "size": 5 * MB}),
             ("b", {"format": "flac", "br": 999, "size": 30 * MB})],
            "2g",
        )
        # Both exceed the limits, so all are considered with size weighting
        assert pick.source == "a"

    def test_2g_size_weighting(self, assessor):
        pick = assessor.select_for_network(
            [("a", {"format": "ogg", "br": 128, "size": 3 * MB}),
             ("b", {"format": "mp3", "br": 96, "size": 1 * MB})],
            "2g",
        )
        # a: 70*0.6 + 0.7*40 = 70, b: 60*0.6 + 0.9*40 = 72
        assert pick.source == "b"
