"""Runtime settings read from the CI runner environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from remotecache.errors import ConfigError
from remotecache.models import is_true

DEFAULT_CHUNK_SIZE = 32 * 1024 * 1024
DEFAULT_CACHE_DIRECTORY = "Library"
DEFAULT_KEY_PREFIX = "unity-cache"
API_PATH = "_apis/artifactcache/"
API_ACCEPT = "application/json;api-version=6.0-preview.1"


@dataclass(frozen=True, slots=True)
class ServiceEndpoint:
    """Connection details for the cache service."""

    base_url: str
    token: str

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> ServiceEndpoint | None:
        """Return the endpoint, or ``None`` when the runner exposes no cache service."""
        cache_url = environ.get("ACTIONS_CACHE_URL", "")
        token = environ.get("ACTIONS_RUNTIME_TOKEN", "")
        if not cache_url or not token:
            return None
        return cls(base_url=f"{cache_url.rstrip('/')}/{API_PATH}", token=token)


@dataclass(frozen=True, slots=True)
class CacheSettings:
    project_path: Path | None = None
    endpoint: ServiceEndpoint | None = None
    fail_on_cache_miss: bool = False
    lookup_only: bool = False
    upload_chunk_size: int = DEFAULT_CHUNK_SIZE
    cache_directory: str = DEFAULT_CACHE_DIRECTORY
    key_prefix: str = DEFAULT_KEY_PREFIX
    state_file: Path | None = None
    output_file: Path | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CacheSettings:
        env = os.environ if environ is None else environ
        raw_project = env.get("INPUT_PROJECT_PATH") or env.get("INPUT_UNITY_PROJECT_PATH")
        project_path: Path | None = None
        if raw_project:
            workspace = Path(env.get("GITHUB_WORKSPACE") or os.getcwd())
            project_path = Path(os.path.abspath(workspace / raw_project))
        return cls(
            project_path=project_path,
            endpoint=ServiceEndpoint.from_env(env),
            fail_on_cache_miss=is_true(env.get("INPUT_FAIL_ON_CACHE_MISS")),
            lookup_only=is_true(env.get("INPUT_LOOKUP_ONLY")),
            upload_chunk_size=parse_chunk_size(env.get("INPUT_UPLOAD_CHUNK_SIZE")),
            cache_directory=env.get("INPUT_CACHE_DIRECTORY") or DEFAULT_CACHE_DIRECTORY,
            key_prefix=env.get("INPUT_KEY_PREFIX") or DEFAULT_KEY_PREFIX,
            state_file=_optional_path(env.get("GITHUB_STATE")),
            output_file=_optional_path(env.get("GITHUB_OUTPUT")),
        )

    def require_project_path(self) -> Path:
        """Return the project directory, raising ``ConfigError`` if unset or missing."""
        if self.project_path is None:
            raise ConfigError(
                "No project directory to cache.",
                hint="Set INPUT_PROJECT_PATH to the directory that holds the cached folder.",
                context={"operation": "configure"},
            )
        if not self.project_path.is_dir():
            raise ConfigError(
                "Project directory not found.",
                hint="Check the project path input relative to GITHUB_WORKSPACE.",
                context={"operation": "configure", "path": str(self.project_path)},
            )
        return self.project_path


def parse_chunk_size(raw: str | None) -> int:
    """Parse an upload chunk size override; anything but a positive int yields the default."""
    if not raw:
        return DEFAULT_CHUNK_SIZE
    try:
        value = int(raw.strip())
    except ValueError:
        return DEFAULT_CHUNK_SIZE
    return value if value > 0 else DEFAULT_CHUNK_SIZE


def _optional_path(raw: str | None) -> Path | None:
    return Path(raw) if raw else None
