"""Error handling — exception hierarchy shared by every component."""

from trackgate.errors.exceptions import (
    InvalidRequestError,
    ResolutionError,
    ResolutionTimeoutError,
    TrackgateError,
    TransientError,
)

__all__ = [
    "TrackgateError",
    "TransientError",
    "InvalidRequestError",
    "ResolutionError",
    "ResolutionTimeoutError",
]
