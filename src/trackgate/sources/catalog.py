"""Static catalog of known sources: default order, seeded quality, display info."""

from __future__ import annotations

from typing import NamedTuple

NEUTRAL_QUALITY_SCORE = 70

# Hand-assigned audio quality per platform (0-100)
DEFAULT_QUALITY_SCORES: dict[str, int] = {
    "qq": 85,
    "kugou": 80,
    "kuwo": 75,
    "migu": 90,
    "joox": 70,
    "youtube": 88,
    "ytdlp": 95,
    "bilibili": 65,
    "pyncmd": 60,
}

DEFAULT_SOURCES: tuple[str, ...] = (
    "kugou",
    "kuwo",
    "migu",
    "ytdlp",
    "bilibili",
    "qq",
    "youtube",
    "joox",
)


class SourceInfo(NamedTuple):
    code: str
    name: str
    description: str
    needs_cookie: bool = False
    needs_proxy: bool = False
    needs_install: bool = False


MUSIC_SOURCES: dict[str, SourceInfo] = {
    "qq": SourceInfo("qq", "QQ Music", "Requires QQ_COOKIE", needs_cookie=True),
    "kugou": SourceInfo("kugou", "Kugou Music", "Kugou Music"),
    "kuwo": SourceInfo("kuwo", "Kuwo Music", "Kuwo Music"),
    "migu": SourceInfo("migu", "Migu Music", "Requires MIGU_COOKIE", needs_cookie=True),
    "joox": SourceInfo("joox", "JOOX", "Requires JOOX_COOKIE", needs_cookie=True),
    "youtube": SourceInfo(
        "youtube", "YouTube", "Requires a non-mainland-China IP", needs_proxy=True
    ),
    "ytdlp": SourceInfo(
        "ytdlp", "YouTube (yt-dlp)", "Through yt-dlp, must be installed", needs_install=True
    ),
    "bilibili": SourceInfo("bilibili", "Bilibili", "Bilibili audio"),
    "pyncmd": SourceInfo("pyncmd", "pyncmd", "NetEase through pyncmd"),
}


def seed_quality(source: str) -> int:
    """Seeded quality score for a source, neutral for unknown ones."""
    return DEFAULT_QUALITY_SCORES.get(source, NEUTRAL_QUALITY_SCORE)


def is_known_source(source: str) -> bool:
    return source in MUSIC_SOURCES or source in DEFAULT_QUALITY_SCORES


def describe_source(info: SourceInfo) -> str:
    """One-line description with the source's prerequisite, if any."""
    if info.needs_cookie:
        suffix = f" (needs {info.code.upper()}_COOKIE)"
    elif info.needs_proxy:
        suffix = " (needs a non-mainland-China IP)"
    elif info.needs_install:
        suffix = " (needs yt-dlp installed)"
    else:
        suffix = ""
    return f"{info.code} - {info.name}{suffix}"
