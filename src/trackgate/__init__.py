"""trackgate — source ranking and two-tier caching for blocked-track resolution."""

from trackgate.core import Gateway
from trackgate.types import NetworkClass, ResolutionResult, SongInfo, SourceStats

__version__ = "0.1.0"

__all__ = [
    "Gateway",
    "NetworkClass",
    "ResolutionResult",
    "SongInfo",
    "SourceStats",
    "__version__",
]
