"""Tests for custom exception hierarchy."""

from trackgate.errors.exceptions import (
    InvalidRequestError,
    ResolutionError,
    ResolutionTimeoutError,
    TrackgateError,
    TransientError,
)


class TestExceptionHierarchy:
    def test_all_inherit_from_base(self):
        for cls in (TransientError, InvalidRequestError, ResolutionError, ResolutionTimeoutError):
            assert issubclass(cls, TrackgateError)

    def test_timeout_is_resolution_error(self):
        assert issubclass(ResolutionTimeoutError, ResolutionError)


class TestTransientError:
    def test_attributes(self):
        original = OSError("disk full")
        err = TransientError("Write failed", error_type="write_error", original=original)
        assert err.error_type == "write_error"
        assert err.original is original
        assert "Write failed" in str(err)

    def test_defaults(self):
        err = TransientError("test")
        assert err.error_type == "connection_error"
        assert err.original is None


class TestInvalidRequestError:
    def test_to_dict(self):
        err = InvalidRequestError("Invalid id", field="id")
        assert err.field == "id"
        assert err.to_dict() == {
            "code": 400,
            "message": "Invalid id",
            "error": "validation_error",
            "data": {"field": "id"},
        }


class TestResolutionError:
    def test_attributes(self):
        cause = RuntimeError("boom")
        err = ResolutionError("failed", track_id="1", sources=["kugou"], original=cause)
        assert err.track_id == "1"
        assert err.sources == ["kugou"]
        body = err.to_dict()
        assert body["code"] == 502
        assert body["error"] == "resolution_error"
        assert body["data"]["original_error"] == "boom"

    def test_timeout_status(self):
        body = ResolutionTimeoutError("slow").to_dict()
        assert body["code"] == 504
        assert body["error"] == "timeout_error"
        assert "data" not in body

    def test_base_defaults(self):
        err = TrackgateError("oops")
        assert err.to_dict() == {"code": 500, "message": "oops", "error": "unknown_error"}
