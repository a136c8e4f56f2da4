"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from remotecache.archive import InProcessArchiver
from remotecache.config import CacheSettings
from remotecache.runner import CacheRunner
from remotecache.state import InMemoryOutputs, InMemoryStateStore

from .stubs import RunnerFactory, StubCacheService


@pytest.fixture
def stub_service() -> StubCacheService:
    return StubCacheService()


@pytest.fixture
def archiver() -> InProcessArchiver:
    """Provide an in-process archiver so tests need neither tar nor zstd."""
    return InProcessArchiver()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    project = tmp_path / "workspace" / "MyGame"
    library = project / "Library"
    (library / "Artifacts").mkdir(parents=True)
    (library / "Artifacts" / "asset.bin").write_bytes(b"\x00\x01" * 64)
    (library / "ProjectSettings.asset").write_text("version: 1\n", encoding="utf-8")
    return project


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    path = tmp_path / "tmp"
    path.mkdir()
    return path


@pytest.fixture
def make_runner(archiver: InProcessArchiver, temp_dir: Path) -> RunnerFactory:
    """Build a runner over in-memory state and outputs."""

    def _make(
        settings: CacheSettings,
        state: InMemoryStateStore,
        *,
        service: StubCacheService | None = None,
        outputs: InMemoryOutputs | None = None,
    ) -> CacheRunner:
        return CacheRunner(
            settings=settings,
            state=state,
            outputs=outputs if outputs is not None else InMemoryOutputs(),
            client_factory=service.client if service is not None else lambda: None,
            archiver=archiver,
            os_id="Linux",
            temp_dir=temp_dir,
        )

    return _make
