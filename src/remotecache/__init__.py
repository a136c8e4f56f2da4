"""Remote build-cache client: restore and save directories through the runner cache service."""

from .archive import Archiver, InProcessArchiver, TarArchiver
from .config import CacheSettings, ServiceEndpoint
from .errors import (
    ArchiveError,
    CacheLookupError,
    CacheMissError,
    CommitError,
    ConfigError,
    DownloadError,
    ErrorCode,
    RemoteCacheError,
    ReserveError,
    ServiceUnavailableError,
    UploadError,
)
from .models import CacheEntry, ReservedCache, RunState, SaveResult
from .runner import CacheRunner
from .service import CacheServiceClient, query_cache, save_cache, upload_cache
from .version import cache_key, compute_version

__all__ = [
    "ArchiveError",
    "Archiver",
    "CacheEntry",
    "CacheLookupError",
    "CacheMissError",
    "CacheRunner",
    "CacheServiceClient",
    "CacheSettings",
    "CommitError",
    "ConfigError",
    "DownloadError",
    "ErrorCode",
    "InProcessArchiver",
    "RemoteCacheError",
    "ReserveError",
    "ReservedCache",
    "RunState",
    "SaveResult",
    "ServiceEndpoint",
    "ServiceUnavailableError",
    "TarArchiver",
    "UploadError",
    "cache_key",
    "compute_version",
    "query_cache",
    "save_cache",
    "upload_cache",
]
