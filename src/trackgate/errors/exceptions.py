"""Custom exception hierarchy for trackgate."""

from __future__ import annotations

from typing import Any


class TrackgateError(Exception):
    """Base exception for all trackgate errors."""

    status_code = 500
    error_type = "unknown_error"

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message
        self.data: dict[str, Any] = {k: v for k, v in kwargs.items() if v is not None}

    def to_dict(self) -> dict[str, Any]:
        """Shape used by the HTTP layer for error bodies."""
        body: dict[str, Any] = {
            "code": self.status_code,
            "message": self.message,
            "error": self.error_type,
        }
        if self.data:
            body["data"] = self.data
        return body


class TransientError(TrackgateError):
    """Transient I/O failure — shared cache or stats persistence.

    Always caught at the boundary of the component that started the I/O.
    """

    error_type = "transient_error"

    def __init__(
        self,
        message: str = "",
        error_type: str = "connection_error",
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.original = original


class InvalidRequestError(TrackgateError):
    """Bad track id or source list supplied by a caller."""

    status_code = 400
    error_type = "validation_error"

    def __init__(self, message: str = "", field: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, field=field, **kwargs)
        self.field = field


class ResolutionError(TrackgateError):
    """The upstream resolver failed or returned nothing usable."""

    status_code = 502
    error_type = "resolution_error"

    def __init__(
        self,
        message: str = "",
        track_id: str | None = None,
        sources: list[str] | None = None,
        original: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            track_id=track_id,
            sources=sources,
            original_error=str(original) if original else None,
        )
        self.track_id = track_id
        self.sources = sources or []
        self.original = original


class ResolutionTimeoutError(ResolutionError):
    """The upstream resolver did not answer within the request timeout."""

    status_code = 504
    error_type = "timeout_error"
