"""In-process archive backend for testing and development.

Packs directories with the standard library's ``tarfile`` instead of external
tools, making it suitable for unit tests and hosts without ``tar``/``zstd``.
Every create/extract call is recorded so tests can assert on them.
"""

from __future__ import annotations

import tarfile
from dataclasses import dataclass, field
from pathlib import Path

from remotecache.errors import ArchiveError


@dataclass(slots=True)
class InProcessArchiver:
    """Archiver that writes gzip tarballs without spawning processes."""

    name: str = "inprocess"
    compression: str = "gzip"
    suffix: str = ".tar.gz"
    created: list[Path] = field(default_factory=list)
    extracted: list[Path] = field(default_factory=list)

    def create(self, source_dir: Path, archive_path: Path, member: str) -> int:
        member_path = source_dir / member
        if not member_path.exists():
            raise ArchiveError(
                "Directory to archive does not exist.",
                context={"archiver": self.name, "operation": "create", "path": str(member_path)},
            )
        with tarfile.open(archive_path, "w:gz") as archive:
            archive.add(member_path, arcname=member)
        self.created.append(archive_path)
        return archive_path.stat().st_size

    def extract(self, archive_path: Path, dest_dir: Path) -> None:
        dest_dir.mkdir(parents=True, exist_ok=True)
        try:
            with tarfile.open(archive_path, "r:*") as archive:
                archive.extractall(dest_dir, filter="data")
        except tarfile.TarError as exc:
            raise ArchiveError(
                "Archive could not be unpacked.",
                hint=str(exc),
                context={"archiver": self.name, "operation": "extract", "path": str(archive_path)},
            ) from exc
        self.extracted.append(archive_path)
