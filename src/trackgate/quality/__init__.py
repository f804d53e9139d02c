"""Audio quality scoring and network-aware match selection."""

from trackgate.quality.assessment import AssessedMatch, QualityAssessor, parse_bitrate

__all__ = ["AssessedMatch", "QualityAssessor", "parse_bitrate"]
