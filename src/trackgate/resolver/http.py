"""HTTP resolver — asks a music API for a direct link, one source at a time."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from trackgate.errors.exceptions import InvalidRequestError, ResolutionError, TransientError
from trackgate.types import SongInfo

logger = logging.getLogger(__name__)

VALID_BITRATES = ("128", "192", "320", "740", "999")
DEFAULT_BITRATE = "320"

# Failures worth another attempt against the same source
_TRANSIENT_EXCEPTIONS = (httpx.TransportError, TransientError)


class HttpResolver:
    """Queries ``{base_url}?types=url&id=..&br=..&source=..`` for each source."""

    def __init__(
        self,
        base_url: str,
        user_agent: str = "trackgate/0.1",
        timeout: float = 15.0,
        bitrate: str | int = DEFAULT_BITRATE,
        referer: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("HttpResolver needs a music API URL")
        br = str(bitrate).strip()
        if br not in VALID_BITRATES:
            raise InvalidRequestError(
                f"Invalid bitrate {br!r}, expected one of: {', '.join(VALID_BITRATES)}",
                field="br",
            )
        self._base_url = base_url
        self._bitrate = br
        headers = {"User-Agent": user_agent, "Accept": "application/json"}
        if referer:
            headers["Referer"] = referer
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport)

    @property
    def bitrate(self) -> str:
        return self._bitrate

    async def resolve(self, track_id: str, sources: list[str]) -> SongInfo | None:
        """Try each source in order; return the first usable match.

        Raises ``ResolutionError`` carrying the last failure when every source fails.
        """
        last_error: Exception | None = None
        for source in sources:
            try:
                info = await self.fetch_direct_link(track_id, source)
            except (httpx.HTTPError, TransientError, ResolutionError) as exc:
                logger.warning("Source %s failed for %s: %s", source, track_id, exc)
                last_error = exc
                continue
            logger.debug("Resolved %s via %s", track_id, source)
            return info

        if last_error is not None:
            raise ResolutionError(
                f"No source could resolve track {track_id}",
                track_id=track_id,
                sources=list(sources),
                original=last_error,
            )
        return None

    async def fetch_direct_link(self, track_id: str, source: str | None = None) -> SongInfo:
        """Fetch one direct link; validates the payload and its URL."""
        params: dict[str, Any] = {"types": "url", "id": track_id, "br": self._bitrate}
        if source:
            params["source"] = source

        response = await self._request(params)

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            raise ResolutionError(
                f"Music API returned {content_type or 'no content type'}, not JSON",
                track_id=track_id,
                sources=[source] if source else None,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ResolutionError(
                "Music API returned malformed JSON", track_id=track_id, original=exc
            ) from exc
        if not isinstance(payload, dict) or not payload.get("url"):
            raise ResolutionError(
                "Music API returned no link", track_id=track_id, sources=[source] if source else None
            )

        try:
            url = httpx.URL(str(payload["url"]))
        except httpx.InvalidURL:
            url = None
        if url is None or url.scheme not in ("http", "https") or not url.host:
            raise ResolutionError(
                f"Music API returned an invalid link: {payload['url']}", track_id=track_id
            )

        data = {**payload, "br": payload.get("br") or self._bitrate}
        data.setdefault("source", source)
        return SongInfo.model_validate(data)

    @retry(
        retry=retry_if_exception_type(_TRANSIENT_EXCEPTIONS),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _request(self, params: dict[str, Any]) -> httpx.Response:
        response = await self._client.get(self._base_url, params=params)
        if response.status_code >= 500:
            raise TransientError(
                f"Music API responded {response.status_code}", error_type="upstream_error"
            )
        response.raise_for_status()
        return response

    async def close(self) -> None:
        await self._client.aclose()
