"""Reserve, chunked upload, and commit of a cache archive.

The service protocol is three steps over an archive of known size:

1. ``POST caches`` with ``{key, version, cacheSize}`` returns a cache id.
2. ``PATCH caches/{id}`` once per chunk, strictly in order, each carrying
   ``Content-Range: bytes {start}-{end}/*``.
3. ``POST caches/{id}`` with ``{size}`` commits the entry.

Reserve and chunk failures abort the save; a failed commit is only logged.
Nothing is retried.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from remotecache.archive import Archiver, temporary_archive
from remotecache.config import DEFAULT_CHUNK_SIZE
from remotecache.errors import CommitError, ReserveError, UploadError
from remotecache.models import ReservedCache, SaveResult
from remotecache.service.client import CacheServiceClient

logger = logging.getLogger(__name__)

BODY_SNIPPET_LIMIT = 4096


def iter_chunks(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[tuple[int, bytes]]:
    """Yield ``(offset, data)`` pairs covering *path* front to back."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    offset = 0
    with path.open("rb") as handle:
        while True:
            data = handle.read(chunk_size)
            if not data:
                return
            yield offset, data
            offset += len(data)


def content_range(offset: int, length: int) -> str:
    return f"bytes {offset}-{offset + length - 1}/*"


def reserve_cache(client: CacheServiceClient, key: str, version: str, size: int) -> ReservedCache:
    response = client.post_json("caches", {"key": key, "version": version, "cacheSize": size})
    if not response.is_success:
        raise ReserveError(
            f"Reserve failed: {_snippet(response.content)}",
            context={"key": key, "status": str(response.status_code)},
        )
    cache_id = _parse_cache_id(response.content)
    if cache_id is None:
        raise ReserveError(
            "Invalid reserve response.",
            hint="The service did not return a positive cacheId.",
            context={"key": key, "body": _snippet(response.content)},
        )
    return ReservedCache(cache_id=cache_id, size=size)


def upload_chunks(
    client: CacheServiceClient,
    reserved: ReservedCache,
    archive_path: Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """PATCH the archive chunk by chunk and return the number of chunks sent."""
    resource = f"caches/{reserved.cache_id}"
    count = 0
    for offset, data in iter_chunks(archive_path, chunk_size):
        response = client.patch_bytes(
            resource,
            data,
            headers={
                "Content-Type": "application/octet-stream",
                "Content-Range": content_range(offset, len(data)),
            },
        )
        if not response.is_success:
            raise UploadError(
                f"Chunk upload failed: {_snippet(response.content)}",
                context={
                    "cache_id": str(reserved.cache_id),
                    "range": content_range(offset, len(data)),
                    "status": str(response.status_code),
                },
            )
        count += 1
    return count


def commit_cache(client: CacheServiceClient, reserved: ReservedCache) -> bool:
    response = client.post_json(f"caches/{reserved.cache_id}", {"size": reserved.size})
    if response.is_success:
        return True
    error = CommitError(
        f"Commit failed: {_snippet(response.content)}",
        context={"cache_id": str(reserved.cache_id), "status": str(response.status_code)},
    )
    logger.error("%s", error)
    return False


def upload_cache(
    client: CacheServiceClient,
    archive_path: Path,
    *,
    key: str,
    version: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> SaveResult:
    size = archive_path.stat().st_size
    reserved = reserve_cache(client, key, version, size)
    logger.info("Reserved cache ID: %s.", reserved.cache_id)
    chunks = upload_chunks(client, reserved, archive_path, chunk_size)
    committed = commit_cache(client, reserved)
    return SaveResult(cache_id=reserved.cache_id, size=size, chunks=chunks, committed=committed)


def save_cache(
    client: CacheServiceClient,
    archiver: Archiver,
    *,
    source_dir: Path,
    member: str,
    key: str,
    version: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    temp_dir: Path | None = None,
) -> SaveResult:
    """Archive ``source_dir/member`` to a temporary file and upload it.

    The temporary archive is deleted on every exit path.
    """
    with temporary_archive(archiver.suffix, directory=temp_dir) as archive_path:
        logger.info("Creating archive...")
        size = archiver.create(source_dir, archive_path, member)
        logger.info("Archive size: %s bytes.", f"{size:,}")
        return upload_cache(client, archive_path, key=key, version=version, chunk_size=chunk_size)


def _parse_cache_id(raw: bytes) -> int | None:
    try:
        payload: Any = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    fields = {str(name).lower(): value for name, value in payload.items()}
    cache_id = fields.get("cacheid")
    if isinstance(cache_id, bool) or not isinstance(cache_id, int) or cache_id <= 0:
        return None
    return cache_id


def _snippet(raw: bytes) -> str:
    return raw[:BODY_SNIPPET_LIMIT].decode("utf-8", errors="replace")
