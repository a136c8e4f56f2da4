"""Cache service client, lookup, and upload protocol."""

from .client import BearerTokenAuth, CacheServiceClient
from .lookup import parse_cache_entry, query_cache
from .upload import (
    commit_cache,
    content_range,
    iter_chunks,
    reserve_cache,
    save_cache,
    upload_cache,
    upload_chunks,
)

__all__ = [
    "BearerTokenAuth",
    "CacheServiceClient",
    "commit_cache",
    "content_range",
    "iter_chunks",
    "parse_cache_entry",
    "query_cache",
    "reserve_cache",
    "save_cache",
    "upload_cache",
    "upload_chunks",
]
