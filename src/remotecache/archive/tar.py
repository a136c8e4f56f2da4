"""Archive backend that shells out to ``tar`` with an external compressor.

The compressor (``zstd`` by default) is passed through
``--use-compress-program`` so the archive is streamed through it without an
intermediate uncompressed tarball.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from remotecache.errors import ArchiveError

STDERR_LIMIT = 2000


@dataclass(slots=True)
class TarArchiver:
    name: str = "tar"
    compression: str = "zstd"
    suffix: str = ".tar.zst"
    tar_bin: str = "tar"

    def create(self, source_dir: Path, archive_path: Path, member: str) -> int:
        self._ensure_tools("create")
        self._run(
            "create",
            [
                "-C",
                str(source_dir),
                f"--use-compress-program={self.compression}",
                "-cf",
                str(archive_path),
                member,
            ],
        )
        return archive_path.stat().st_size

    def extract(self, archive_path: Path, dest_dir: Path) -> None:
        self._ensure_tools("extract")
        dest_dir.mkdir(parents=True, exist_ok=True)
        self._run(
            "extract",
            [
                "-C",
                str(dest_dir),
                f"--use-compress-program={self.compression}",
                "-xf",
                str(archive_path),
            ],
        )

    def _ensure_tools(self, operation: str) -> None:
        for tool in (self.tar_bin, self.compression):
            if shutil.which(tool) is None:
                raise ArchiveError(
                    f"`{tool}` not found in PATH.",
                    hint=f"Install {tool} on the runner image.",
                    context={"archiver": self.name, "operation": operation},
                )

    def _run(self, operation: str, argv: list[str]) -> None:
        command = [self.tar_bin, *argv]
        # run() drains stderr before reading the exit status.
        completed = subprocess.run(
            command,
            capture_output=True,
            text=True,
            check=False,
        )
        if completed.returncode != 0:
            stderr = completed.stderr.strip() if completed.stderr else ""
            raise ArchiveError(
                f"`{' '.join(command)}` failed (exit {completed.returncode}): {stderr}",
                hint="Check that the directory is readable and the compressor is installed.",
                context={
                    "archiver": self.name,
                    "operation": operation,
                    "returncode": str(completed.returncode),
                    "stderr": stderr[:STDERR_LIMIT],
                },
            )
