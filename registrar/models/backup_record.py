"""Backup record models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class BackupRecord:
    """A promoted backup discovered in the backup directory.

    Derived from the filesystem on every listing; there is no separate index.
    """

    filename: str
    size: int
    created_at: datetime


@dataclass
class BackupResult:
    """Outcome of a backup request, returned instead of raising."""

    success: bool
    path: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, path: str) -> BackupResult:
        return cls(success=True, path=path)

    @classmethod
    def failed(cls, error: str) -> BackupResult:
        return cls(success=False, error=error)
