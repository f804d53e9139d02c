"""Tests for the HTTP resolver."""

import httpx
import pytest

from trackgate.errors.exceptions import InvalidRequestError, ResolutionError
from trackgate.resolver.http import HttpResolver

API = "https://music.example.com/api.php"


def _resolver(handler, **kwargs) -> HttpResolver:
    return HttpResolver(API, transport=httpx.MockTransport(handler), **kwargs)


def _json(payload, status=200):
    return httpx.Response(status, json=payload)


class TestConstruction:
    def test_requires_url(self):
        with pytest.raises(ValueError):
            HttpResolver("")

    def test_rejects_bad_bitrate(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            HttpResolver(API, bitrate=256)
        assert exc_info.value.field == "br"

    def test_accepts_int_bitrate(self):
        assert HttpResolver(API, bitrate=999).bitrate == "999"


class TestFetchDirectLink:
    async def test_request_shape(self):
        seen = []

        def handler(request):
            seen.append(request)
            return _json({"url": "https://cdn.example.com/a.mp3", "size": 1000})

        resolver = _resolver(handler, user_agent="ua/1", referer="https://ref.example/")
        info = await resolver.fetch_direct_link("12345", "kuwo")
        await resolver.close()

        params = dict(seen[0].url.params)
        assert params == {"types": "url", "id": "12345", "br": "320", "source": "kuwo"}
        assert seen[0].headers["User-Agent"] == "ua/1"
        assert seen[0].headers["Accept"] == "application/json"
        assert seen[0].headers["Referer"] == "https://ref.example/"
        assert info.url == "https://cdn.example.com/a.mp3"
        assert info.source == "kuwo"
        assert info.br == "320"

    async def test_keeps_upstream_fields(self):
        resolver = _resolver(
            lambda r: _json({"url": "https://a.example/x", "br": 999, "level": "lossless"})
        )
        info = await resolver.fetch_direct_link("1", "migu")
        await resolver.close()
        assert info.br == 999
        assert info.model_extra["level"] == "lossless"

    async def test_non_json_rejected(self):
        resolver = _resolver(lambda r: httpx.Response(200, text="<html>"))
        with pytest.raises(ResolutionError):
            await resolver.fetch_direct_link("1", "kuwo")
        await resolver.close()

    async def test_missing_url_rejected(self):
        resolver = _resolver(lambda r: _json({"url": ""}))
        with pytest.raises(ResolutionError):
            await resolver.fetch_direct_link("1", "kuwo")
        await resolver.close()

    async def test_invalid_url_rejected(self):
        resolver = _resolver(lambda r: _json({"url": "not a url"}))
        with pytest.raises(ResolutionError):
            await resolver.fetch_direct_link("1", "kuwo")
        await resolver.close()

    async def test_client_error_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return _json({"error": "nope"}, status=404)

        resolver = _resolver(handler)
        with pytest.raises(httpx.HTTPStatusError):
            await resolver.fetch_direct_link("1", "kuwo")
        await resolver.close()
        assert len(calls) == 1

    async def test_server_error_retried(self):
        responses = [_json({}, status=503), _json({"url": "https://a.example/x"})]

        resolver = _resolver(lambda r: responses.pop(0))
        info = await resolver.fetch_direct_link("1", "kuwo")
        await resolver.close()
        assert info.url == "https://a.example/x"


class TestResolve:
    async def test_first_working_source_wins(self):
        def handler(request):
            if request.url.params["source"] == "kugou":
                return _json({"url": ""})
            return _json({"url": f"https://a.example/{request.url.params['source']}"})

        resolver = _resolver(handler)
        info = await resolver.resolve("1", ["kugou", "kuwo", "migu"])
        await resolver.close()
        assert info.source == "kuwo"

    async def test_all_sources_fail(self):
        resolver = _resolver(lambda r: _json({"url": ""}))
        with pytest.raises(ResolutionError) as exc_info:
            await resolver.resolve("1", ["kugou", "kuwo"])
        await resolver.close()
        assert exc_info.value.sources == ["kugou", "kuwo"]
        assert exc_info.value.original is not None

    async def test_no_sources(self):
        resolver = _resolver(lambda r: _json({"url": "https://a.example/x"}))
        assert await resolver.resolve("1", []) is None
        await resolver.close()
