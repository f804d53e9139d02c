"""Quality assessment — scores a match from its format, bitrate and size."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Any, NamedTuple

from trackgate.types import NetworkClass, QualityProfile, SongInfo

logger = logging.getLogger(__name__)

_MB = 1024 * 1024

FORMAT_BASE_SCORES: dict[str, int] = {
    "flac": 90,
    "wav": 90,
    "ape": 90,
    "alac": 90,
    "mp3": 70,
    "aac": 75,
    "m4a": 75,
    "ogg": 80,
    "opus": 80,
}
_DEFAULT_BASE_SCORE = 60

# Declared vs. measured bitrate tolerance
_BITRATE_MISMATCH = 0.2
_MISMATCH_PENALTY = 0.8

# (max bitrate kbps or None, max size bytes) per network class
_NETWORK_LIMITS: dict[NetworkClass, tuple[int | None, int]] = {
    NetworkClass.CELLULAR_4G: (None, 15 * _MB),
    NetworkClass.CELLULAR_3G: (192, 8 * _MB),
    NetworkClass.CELLULAR_2G: (128, 3 * _MB),
}
_SIZE_REFERENCE = 10 * _MB

_DIGITS = re.compile(r"(\d+)")


class AssessedMatch(NamedTuple):
    source: str
    data: SongInfo
    quality: QualityProfile


def parse_bitrate(value: Any) -> int:
    """Bitrate in kbps from an int or a string such as ``"320kbps"``; 0 if unknown."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        match = _DIGITS.search(value)
        if match:
            return int(match.group(1))
    return 0


def base_score(fmt: str, bitrate: int) -> float:
    score = FORMAT_BASE_SCORES.get(fmt.lower(), _DEFAULT_BASE_SCORE)
    if bitrate > 0:
        if bitrate >= 320:
            score = min(score + 10, 100)
        elif bitrate >= 256:
            score = min(score + 5, 95)
        elif bitrate <= 128:
            score = max(score - 10, 0)
    return float(score)


class QualityAssessor:
    """Pure scoring of resolver matches. Holds no state."""

    def assess(self, song: SongInfo | dict[str, Any]) -> QualityProfile:
        info = song if isinstance(song, SongInfo) else SongInfo.model_validate(song)
        fmt = (info.format or "unknown").lower()
        bitrate = parse_bitrate(info.br)
        size = info.size or 0
        duration = info.duration or 0

        score = base_score(fmt, bitrate)

        # duration is in milliseconds
        if size > 0 and duration > 0 and bitrate > 0:
            measured = (size * 8) / (duration / 1000) / 1000
            if abs(measured - bitrate) / bitrate > _BITRATE_MISMATCH:
                logger.debug(
                    "Declared bitrate %d differs from measured %.0f kbps", bitrate, measured
                )
                score *= _MISMATCH_PENALTY

        return QualityProfile(
            bitrate=bitrate, format=fmt, size=size, duration=duration, score=score
        )

    def select_best(
        self, results: Iterable[tuple[str, SongInfo | dict[str, Any]]]
    ) -> AssessedMatch | None:
        """Highest-scoring match, or ``None`` for no matches."""
        assessed = self._assess_all(results)
        if not assessed:
            return None
        return max(assessed, key=lambda m: m.quality.score)

    def select_for_network(
        self,
        results: Iterable[tuple[str, SongInfo | dict[str, Any]]],
        network: NetworkClass | str,
    ) -> AssessedMatch | None:
        """Best match that fits the network's bitrate and size limits.

        Falls back to all matches when none fits.
        """
        assessed = self._assess_all(results)
        if not assessed:
            return None

        net = NetworkClass(network)
        candidates = assessed
        limits = _NETWORK_LIMITS.get(net)
        if limits is not None:
            max_bitrate, max_size = limits
            fitting = [
                m
                for m in assessed
                if (max_bitrate is None or m.quality.bitrate <= max_bitrate)
                and m.quality.size <= max_size
            ]
            if fitting:
                candidates = fitting
            else:
                logger.debug("No match fits %s limits, using all %d", net, len(assessed))

        slow = net in (NetworkClass.CELLULAR_3G, NetworkClass.CELLULAR_2G)
        weigh_size = slow and all(m.quality.size > 0 for m in candidates)

        def rank_key(match: AssessedMatch) -> float:
            if weigh_size:
                size_factor = max(0.0, 1 - match.quality.size / _SIZE_REFERENCE)
                return match.quality.score * 0.6 + size_factor * 40
            return match.quality.score

        return max(candidates, key=rank_key)

    def _assess_all(
        self, results: Iterable[tuple[str, SongInfo | dict[str, Any]]]
    ) -> list[AssessedMatch]:
        assessed = []
        for source, data in results:
            info = data if isinstance(data, SongInfo) else SongInfo.model_validate(data)
            assessed.append(AssessedMatch(source, info, self.assess(info)))
        return assessed
