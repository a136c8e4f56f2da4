"""Two-phase restore/save orchestration.

The ``main`` phase runs before the build: it computes the cache key and
version, records them for the ``post`` phase, looks the entry up and restores
it on a hit. The ``post`` phase runs after the build and, unless the main
phase hit or ran in lookup-only mode, archives the cached directory and
uploads it.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import httpx

from remotecache.archive import Archiver, TarArchiver, temporary_archive
from remotecache.config import CacheSettings
from remotecache.errors import CacheMissError, ConfigError, ServiceUnavailableError
from remotecache.models import CacheEntry, RunState, SaveResult, flag
from remotecache.observability import StructuredLogger
from remotecache.service import CacheServiceClient, query_cache, save_cache
from remotecache.state import (
    ActionsOutputs,
    ActionsStateStore,
    OutputSink,
    StateStore,
    load_state,
    persist_cache_hit,
    persist_state,
)
from remotecache.version import cache_key, compute_version, default_os_id

Phase = Literal["main", "post"]

HIT_OUTPUT = "cache-hit"

ClientFactory = Callable[[], CacheServiceClient | None]


@dataclass(slots=True)
class CacheRunner:
    settings: CacheSettings
    state: StateStore
    outputs: OutputSink
    client_factory: ClientFactory
    archiver: Archiver = field(default_factory=TarArchiver)
    events: StructuredLogger = field(default_factory=StructuredLogger)
    os_id: str = field(default_factory=default_os_id)
    temp_dir: Path | None = None

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        archiver: Archiver | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> CacheRunner:
        """Wire a runner to the CI runner environment."""
        env = os.environ if environ is None else environ
        settings = CacheSettings.from_env(env)
        return cls(
            settings=settings,
            state=ActionsStateStore(state_file=settings.state_file, environ=env),
            outputs=ActionsOutputs(output_file=settings.output_file),
            client_factory=lambda: CacheServiceClient.from_settings(settings, transport=transport),
            archiver=archiver or TarArchiver(),
        )

    def run_phase(self, phase: Phase) -> int:
        """Run one phase and return the process exit code."""
        try:
            if phase == "post":
                self.run_post()
            else:
                self.run_main()
        except Exception as exc:  # noqa: BLE001 - every phase failure becomes exit code 1
            self.events.log(operation="run", phase=phase, message=str(exc), level="error")
            return 1
        return 0

    def run_main(self) -> bool:
        """Restore the cache entry if one exists and report whether it hit."""
        project_path = self.settings.require_project_path()
        archive_path = Path(os.path.normpath(project_path / self.settings.cache_directory))
        _member_path(archive_path, project_path, operation="lookup")
        key = cache_key(project_path.name, prefix=self.settings.key_prefix)
        version = compute_version(archive_path, self.os_id, self.archiver.compression)
        self._log("lookup", "main", f"key: {key}", key=key)

        persist_state(
            self.state,
            RunState(
                cache_key=key,
                version=version,
                archive_path=archive_path,
                project_path=project_path,
                lookup_only=self.settings.lookup_only,
            ),
        )

        client = self.client_factory()
        with _session(client):
            entry: CacheEntry | None = None
            if client is None:
                self._service_unavailable("lookup", "main", key)
            else:
                entry = query_cache(client, key, version)
            hit = entry is not None
            persist_cache_hit(self.state, hit)

            if not hit and self.settings.fail_on_cache_miss:
                raise CacheMissError(
                    f"Cache not found for key: {key}",
                    hint="Disable fail-on-cache-miss or seed the cache with a run that saves.",
                    context={"key": key, "version": version},
                )

            if entry is not None and client is not None and not self.settings.lookup_only:
                self._log("restore", "main", "Restoring cache...", key=key)
                self._restore(client, entry, project_path)
                self._log("restore", "main", "Cache restored.", key=key)

        self.outputs.set_output(HIT_OUTPUT, flag(hit))
        return hit

    def run_post(self) -> SaveResult | None:
        """Save the cached directory unless there is nothing new to save."""
        state = load_state(self.state)
        if state is None:
            self._log("save", "post", "Missing state; skipping save.")
            return None
        if state.cache_hit or state.lookup_only:
            self._log(
                "save", "post", "Skipping save (cache hit or lookup-only).", key=state.cache_key
            )
            return None
        if not state.archive_path.is_dir():
            self._log(
                "save",
                "post",
                f"Cache directory not found: {state.archive_path}; skipping save.",
                key=state.cache_key,
            )
            return None

        client = self.client_factory()
        if client is None:
            self._service_unavailable("save", "post", state.cache_key)
            return None

        self._log("save", "post", f"Saving cache: {state.cache_key}", key=state.cache_key)
        with client:
            result = save_cache(
                client,
                self.archiver,
                source_dir=state.project_path,
                member=_member_path(state.archive_path, state.project_path, operation="save"),
                key=state.cache_key,
                version=state.version,
                chunk_size=self.settings.upload_chunk_size,
                temp_dir=self.temp_dir,
            )
        if result.committed:
            self._log(
                "save",
                "post",
                "Cache saved.",
                key=state.cache_key,
                extra={"cache_id": result.cache_id, "size": result.size, "chunks": result.chunks},
            )
        else:
            self._log(
                "save",
                "post",
                "Cache uploaded but not committed.",
                key=state.cache_key,
                level="warning",
                extra={"cache_id": result.cache_id},
            )
        return result

    def _restore(self, client: CacheServiceClient, entry: CacheEntry, project_path: Path) -> None:
        with temporary_archive(self.archiver.suffix, directory=self.temp_dir) as archive_path:
            client.download(entry.archive_location, archive_path)
            self.archiver.extract(archive_path, project_path)

    def _service_unavailable(self, operation: str, phase: Phase, key: str) -> None:
        error = ServiceUnavailableError(
            "Cache service not available.",
            hint="ACTIONS_CACHE_URL and ACTIONS_RUNTIME_TOKEN must both be set.",
        )
        self._log(operation, phase, str(error), key=key, extra={"code": error.code})

    def _log(
        self,
        operation: str,
        phase: Phase,
        message: str,
        *,
        key: str | None = None,
        level: str = "info",
        extra: dict[str, object] | None = None,
    ) -> None:
        self.events.log(
            operation=operation,
            phase=phase,
            message=message,
            key=key,
            level=level,
            extra=extra,
        )


def _session(client: CacheServiceClient | None) -> AbstractContextManager[object]:
    return client if client is not None else nullcontext()


def _member_path(archive_path: Path, project_path: Path, *, operation: str) -> str:
    try:
        return str(archive_path.relative_to(project_path))
    except ValueError as exc:
        raise ConfigError(
            "Cache directory is not inside the project directory.",
            context={
                "operation": operation,
                "archive_path": str(archive_path),
                "project_path": str(project_path),
            },
        ) from exc
