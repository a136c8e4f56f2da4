"""Cache key and version derivation."""

from __future__ import annotations

import hashlib
import platform
from pathlib import Path

VERSION_DELIMITER = "\n"


def compute_version(target_path: str | Path, os_id: str, compression_id: str) -> str:
    """Fingerprint an archive encoding for *target_path*.

    Joins the components with a newline and hashes with SHA-256, the scheme
    the runner's own cache tooling uses, so entries written by either side
    resolve to the same version.
    """
    components = [str(target_path), os_id, compression_id]
    payload = VERSION_DELIMITER.join(components).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def default_os_id() -> str:
    return platform.system() or "Linux"


def cache_key(project_name: str, *, prefix: str) -> str:
    return f"{prefix}-{project_name}"
