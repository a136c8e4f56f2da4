"""Cache entry lookup against the cache service."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from remotecache.errors import CacheLookupError
from remotecache.models import CacheEntry
from remotecache.service.client import CacheServiceClient

logger = logging.getLogger(__name__)


def query_cache(client: CacheServiceClient, key: str, version: str) -> CacheEntry | None:
    """Return the entry matching ``{key, version}``, or ``None`` on a miss.

    A lookup never fails the caller: 204, error statuses, request failures
    (transport or body decoding) and unreadable bodies all degrade to a miss,
    so the worst case is a rebuild from scratch.
    """
    try:
        response = client.get("cache", params={"keys": key, "version": version})
    except httpx.RequestError as exc:
        _warn(CacheLookupError("Cache query failed.", hint=str(exc), context={"key": key}))
        return None

    if response.status_code == httpx.codes.NO_CONTENT:
        return None
    if not response.is_success:
        _warn(
            CacheLookupError(
                f"Cache query returned {response.status_code}.",
                context={"key": key, "status": str(response.status_code)},
            )
        )
        return None

    try:
        payload = json.loads(response.content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        _warn(CacheLookupError("Cache query returned invalid JSON.", hint=str(exc)))
        return None
    return parse_cache_entry(payload)


def parse_cache_entry(payload: Any) -> CacheEntry | None:
    """Map a query response body to a ``CacheEntry``; field names match case-insensitively."""
    if not isinstance(payload, dict):
        return None
    fields = {str(name).lower(): value for name, value in payload.items()}
    location = fields.get("archivelocation")
    if not isinstance(location, str) or not location:
        return None
    matched_key = fields.get("cachekey")
    return CacheEntry(
        archive_location=location,
        cache_key=matched_key if isinstance(matched_key, str) else None,
    )


def _warn(error: CacheLookupError) -> None:
    logger.warning("%s Treating as cache miss.", error)
