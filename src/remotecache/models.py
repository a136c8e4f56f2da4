"""Data models for cache lookups, uploads, and cross-phase run state."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

STATE_CACHE_KEY = "CACHE_KEY"
STATE_CACHE_VERSION = "CACHE_VERSION"
STATE_ARCHIVE_PATH = "LIBRARY_PATH"
STATE_PROJECT_PATH = "FULL_PROJECT_PATH"
STATE_LOOKUP_ONLY = "LOOKUP_ONLY"
STATE_CACHE_HIT = "CACHE_HIT"


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A cache hit: where to fetch the archive from and the key it matched."""

    archive_location: str
    cache_key: str | None = None


@dataclass(frozen=True, slots=True)
class ReservedCache:
    cache_id: int
    size: int


@dataclass(frozen=True, slots=True)
class SaveResult:
    cache_id: int
    size: int
    chunks: int
    committed: bool


@dataclass(frozen=True, slots=True)
class RunState:
    """State carried from the main phase to the post phase of one run.

    ``archive_path`` is the directory that gets archived (the designated
    subdirectory of ``project_path``); ``project_path`` is where the archive is
    created from and extracted into.
    """

    cache_key: str
    version: str
    archive_path: Path
    project_path: Path
    lookup_only: bool = False
    cache_hit: bool = False

    def to_pairs(self) -> dict[str, str]:
        """Return the fields persisted before the lookup (the hit flag is written later)."""
        return {
            STATE_CACHE_KEY: self.cache_key,
            STATE_CACHE_VERSION: self.version,
            STATE_ARCHIVE_PATH: str(self.archive_path),
            STATE_PROJECT_PATH: str(self.project_path),
            STATE_LOOKUP_ONLY: flag(self.lookup_only),
        }

    @classmethod
    def from_lookup(cls, get: Callable[[str], str | None]) -> RunState | None:
        """Rebuild state from a name/value getter; ``None`` if a required field is unset."""
        cache_key = get(STATE_CACHE_KEY)
        version = get(STATE_CACHE_VERSION)
        archive_path = get(STATE_ARCHIVE_PATH)
        project_path = get(STATE_PROJECT_PATH)
        if not cache_key or not version or not archive_path or not project_path:
            return None
        return cls(
            cache_key=cache_key,
            version=version,
            archive_path=Path(archive_path),
            project_path=Path(project_path),
            lookup_only=is_true(get(STATE_LOOKUP_ONLY)),
            cache_hit=is_true(get(STATE_CACHE_HIT)),
        )


def is_true(value: str | None) -> bool:
    return value is not None and value.strip().lower() == "true"


def flag(value: bool) -> str:
    """Render a boolean the way step outputs and state entries expect it."""
    return "true" if value else "false"
