"""Stub cache service and the runner factory type shared by tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx

from remotecache.config import ServiceEndpoint
from remotecache.runner import CacheRunner
from remotecache.service import CacheServiceClient

SERVICE_BASE = "https://cache.test/_apis/artifactcache/"
API_PREFIX = "/_apis/artifactcache/"
BLOB_HOST = "blob.test"

RunnerFactory = Callable[..., CacheRunner]


class StubCacheService:
    """In-memory stand-in for the runner cache service and its blob storage."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.query_status = 204
        self.query_body: Any = None
        self.reserve_status = 201
        self.reserve_body: Any = None
        self.next_cache_id = 42
        self.patch_status = 204
        self.fail_patch_at: int | None = None
        self.commit_status = 204
        self.reservations: dict[int, dict[str, Any]] = {}
        self.chunks: dict[int, list[tuple[str, bytes]]] = {}
        self.committed: dict[int, int] = {}
        self.blobs: dict[str, bytes] = {}

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> CacheServiceClient:
        endpoint = ServiceEndpoint(SERVICE_BASE, "secret-token")
        return CacheServiceClient(endpoint, transport=self.transport)

    def calls(self, method: str, path: str | None = None) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.method == method and (path is None or request.url.path == API_PREFIX + path)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == BLOB_HOST:
            blob = self.blobs.get(request.url.path)
            if blob is None:
                return httpx.Response(404)
            return httpx.Response(200, content=blob)

        resource = request.url.path.removeprefix(API_PREFIX)
        if request.method == "GET" and resource == "cache":
            if self.query_body is None:
                return httpx.Response(self.query_status)
            return httpx.Response(self.query_status, json=self.query_body)
        if request.method == "POST" and resource == "caches":
            return self._reserve(request)
        if resource.startswith("caches/"):
            cache_id = int(resource.split("/", 1)[1])
            if request.method == "PATCH":
                return self._patch(cache_id, request)
            if request.method == "POST":
                return self._commit(cache_id, request)
        return httpx.Response(404, text="unknown resource")

    def _reserve(self, request: httpx.Request) -> httpx.Response:
        if self.reserve_status >= 400:
            return httpx.Response(self.reserve_status, text="reservation conflict")
        cache_id = self.next_cache_id
        self.reservations[cache_id] = json.loads(request.content)
        self.chunks[cache_id] = []
        body = self.reserve_body if self.reserve_body is not None else {"cacheId": cache_id}
        return httpx.Response(self.reserve_status, json=body)

    def _patch(self, cache_id: int, request: httpx.Request) -> httpx.Response:
        received = self.chunks.setdefault(cache_id, [])
        if self.fail_patch_at is not None and len(received) == self.fail_patch_at:
            return httpx.Response(500, text="chunk rejected")
        received.append((request.headers["Content-Range"], request.content))
        return httpx.Response(self.patch_status)

    def _commit(self, cache_id: int, request: httpx.Request) -> httpx.Response:
        if self.commit_status >= 400:
            return httpx.Response(self.commit_status, text="commit refused")
        self.committed[cache_id] = json.loads(request.content)["size"]
        return httpx.Response(self.commit_status)
