"""Authenticated HTTP client for the runner cache service."""

from __future__ import annotations

import logging
from collections.abc import Generator, Mapping
from pathlib import Path
from typing import Any

import httpx

from remotecache.config import API_ACCEPT, CacheSettings, ServiceEndpoint
from remotecache.errors import DownloadError

logger = logging.getLogger(__name__)

# Matches the default per-request budget of the runner's own HTTP stack.
DEFAULT_TIMEOUT = httpx.Timeout(100.0, connect=30.0)
DOWNLOAD_BLOCK_SIZE = 1024 * 1024


class BearerTokenAuth(httpx.Auth):
    """Static bearer token authentication."""

    def __init__(self, token: str, header_name: str = "Authorization") -> None:
        self._token = token
        self._header_name = header_name

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers[self._header_name] = f"Bearer {self._token}"
        yield request

    def __repr__(self) -> str:
        return f"{type(self).__name__}(header_name={self._header_name!r})"


class CacheServiceClient:
    """Thin client bound to the cache service base URL and runtime token.

    Every request carries ``Authorization: Bearer`` and an ``Accept`` header
    pinned to the service API version. Archive downloads go through a separate
    unauthenticated client because archive locations are pre-signed URLs.

    Args:
        endpoint: Service base URL and token
        transport: Optional custom transport (useful for testing)
        timeout: Per-request timeout
    """

    def __init__(
        self,
        endpoint: ServiceEndpoint,
        *,
        transport: httpx.BaseTransport | None = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
    ) -> None:
        self.endpoint = endpoint
        self._transport = transport
        self._timeout = timeout
        self._client = httpx.Client(
            base_url=endpoint.base_url,
            headers={"Accept": API_ACCEPT},
            auth=BearerTokenAuth(endpoint.token),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: CacheSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> CacheServiceClient | None:
        """Build a client, or return ``None`` when no cache service is configured."""
        if settings.endpoint is None:
            return None
        return cls(settings.endpoint, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CacheServiceClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get(self, path: str, *, params: Mapping[str, str] | None = None) -> httpx.Response:
        return self._client.get(path, params=params)

    def post_json(self, path: str, payload: Any) -> httpx.Response:
        return self._client.post(path, json=payload)

    def patch_bytes(
        self,
        path: str,
        content: bytes,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        return self._client.patch(path, content=content, headers=headers)

    def download(self, url: str, dest: Path) -> int:
        """Stream the archive at *url* into *dest* and return the byte count."""
        written = 0
        try:
            with httpx.Client(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as http:
                with http.stream("GET", url) as response:
                    if response.is_error:
                        raise DownloadError(
                            f"Archive download returned {response.status_code}.",
                            hint="The archive location may have expired; rerun the job.",
                            context={"operation": "download", "status": str(response.status_code)},
                        )
                    with dest.open("wb") as handle:
                        for block in response.iter_bytes(DOWNLOAD_BLOCK_SIZE):
                            handle.write(block)
                            written += len(block)
        except httpx.TransportError as exc:
            raise DownloadError(
                "Archive download failed.",
                hint=str(exc),
                context={"operation": "download"},
            ) from exc
        logger.info("Downloaded %s bytes.", f"{written:,}")
        return written
