"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import ClassVar


class ErrorCode(StrEnum):
    """Stable error identifiers used across the save and restore paths."""

    CONFIG = "E_CONFIG"
    SERVICE_UNAVAILABLE = "E_SERVICE_UNAVAILABLE"
    LOOKUP = "E_LOOKUP"
    CACHE_MISS = "E_CACHE_MISS"
    ARCHIVE = "E_ARCHIVE"
    DOWNLOAD = "E_DOWNLOAD"
    RESERVE = "E_RESERVE"
    UPLOAD = "E_UPLOAD"
    COMMIT = "E_COMMIT"


class RemoteCacheError(Exception):
    """Base error class that carries code, optional hint, and context.

    Subclasses pin their code through ``_code``; the base class takes it as
    an argument.
    """

    _code: ClassVar[ErrorCode | None] = None

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        resolved = code or self._code
        if resolved is None:
            raise TypeError(f"{type(self).__name__} needs an error code")
        super().__init__(message)
        self.code = resolved.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ConfigError(RemoteCacheError):
    _code = ErrorCode.CONFIG


class ServiceUnavailableError(RemoteCacheError):
    _code = ErrorCode.SERVICE_UNAVAILABLE


class CacheLookupError(RemoteCacheError):
    _code = ErrorCode.LOOKUP


class CacheMissError(RemoteCacheError):
    _code = ErrorCode.CACHE_MISS


class ArchiveError(RemoteCacheError):
    _code = ErrorCode.ARCHIVE


class DownloadError(RemoteCacheError):
    _code = ErrorCode.DOWNLOAD


class ReserveError(RemoteCacheError):
    _code = ErrorCode.RESERVE


class UploadError(RemoteCacheError):
    _code = ErrorCode.UPLOAD


class CommitError(RemoteCacheError):
    _code = ErrorCode.COMMIT


__all__ = [
    "ArchiveError",
    "CacheLookupError",
    "CacheMissError",
    "CommitError",
    "ConfigError",
    "DownloadError",
    "ErrorCode",
    "RemoteCacheError",
    "ReserveError",
    "ServiceUnavailableError",
    "UploadError",
]
