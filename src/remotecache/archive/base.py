"""Protocol for archive backends and temporary archive handling."""

from __future__ import annotations

import tempfile
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

TEMP_PREFIX = "remotecache"


class Archiver(Protocol):
    name: str
    compression: str
    suffix: str

    def create(self, source_dir: Path, archive_path: Path, member: str) -> int:
        """Pack ``source_dir/member`` into ``archive_path`` and return the archive size."""

    def extract(self, archive_path: Path, dest_dir: Path) -> None:
        """Unpack ``archive_path`` into ``dest_dir``."""


@contextmanager
def temporary_archive(suffix: str, *, directory: Path | None = None) -> Iterator[Path]:
    """Yield a unique archive path that is removed on exit, whatever happened inside."""
    root = directory if directory is not None else Path(tempfile.gettempdir())
    path = root / f"{TEMP_PREFIX}-{uuid.uuid4()}{suffix}"
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)
