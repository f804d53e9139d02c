"""Tests for the static source catalog."""

from trackgate.sources.catalog import (
    DEFAULT_QUALITY_SCORES,
    DEFAULT_SOURCES,
    MUSIC_SOURCES,
    describe_source,
    is_known_source,
    seed_quality,
)


class TestCatalog:
    def test_seed_quality(self):
        assert seed_quality("kugou") == 80
        assert seed_quality("ytdlp") == 95

    def test_unknown_source_neutral(self):
        assert seed_quality("spotify") == 70

    def test_default_order(self):
        assert DEFAULT_SOURCES[0] == "kugou"
        assert "pyncmd" not in DEFAULT_SOURCES

    def test_every_seeded_source_is_described(self):
        assert set(DEFAULT_QUALITY_SCORES) == set(MUSIC_SOURCES)

    def test_is_known_source(self):
        assert is_known_source("bilibili")
        assert not is_known_source("netease-cloud")

    def test_describe_source(self):
        assert describe_source(MUSIC_SOURCES["qq"]) == "qq - QQ Music (needs QQ_COOKIE)"
        assert describe_source(MUSIC_SOURCES["kuwo"]) == "kuwo - Kuwo Music"
