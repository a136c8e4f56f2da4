"""Structured logging and observability helpers."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

LOG_PREFIX = "[remotecache]"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(slots=True)
class StructuredLogger:
    """Records phase events and mirrors each one to stdlib logging."""

    records: list[dict[str, Any]] = field(default_factory=list)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("remotecache"))

    def log(
        self,
        *,
        operation: str,
        phase: str | None,
        message: str,
        key: str | None = None,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "phase": phase,
            "key": key,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)
        self.logger.log(_LEVELS.get(level, logging.INFO), message)

    def records_for_operation(self, operation: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("operation") == operation]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path


def configure_logging(level: int = logging.INFO) -> None:
    """Send library and phase logs to stderr behind the fixed prefix."""
    logging.basicConfig(level=level, format=f"{LOG_PREFIX} %(message)s", force=True)
