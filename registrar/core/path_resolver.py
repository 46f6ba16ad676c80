"""Backup path resolver — backup directory layout, staging names and restore-name validation."""

from __future__ import annotations

import random
import time
from datetime import datetime, timezone
from pathlib import Path

from registrar.utils import sanitize_label

BACKUP_EXTENSION = ".sqlite"

# Durability side-files that travel with the database file
SIDECAR_SUFFIXES = ("-wal", "-shm")


class BackupPaths:
    """Resolves the database file and the backup directory under the data directory."""

    def __init__(
        self,
        data_dir: Path,
        database_filename: str = "registrar.sqlite",
        backup_dir: Path | None = None,
    ) -> None:
        self._data_dir = data_dir
        self._database_filename = database_filename
        self._backup_dir = backup_dir

    @property
    def backup_dir(self) -> Path:
        return self._backup_dir or self._data_dir / "backups"

    @property
    def database_path(self) -> Path:
        return self._data_dir / self._database_filename

    def ensure_backup_dir(self) -> Path:
        root = self.backup_dir
        root.mkdir(parents=True, exist_ok=True)
        return root

    def resolve_restore_path(self, filename: str) -> Path | None:
        return resolve_restore_path(self.backup_dir, filename)


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def backup_filename(label: str, now: datetime | None = None) -> str:
    """Build ``backup-<label>-<timestamp>.sqlite`` with a filesystem-safe ISO timestamp.

    2026-02-14 08:00:00 UTC → "backup-auto-2026-02-14T08-00-00-000Z.sqlite"
    """
    now = (now or datetime.now(tz=timezone.utc)).astimezone(timezone.utc)
    iso = now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"
    stamp = iso.replace(":", "-").replace(".", "-")
    return f"backup-{sanitize_label(label)}-{stamp}{BACKUP_EXTENSION}"


def create_temp_path(target: Path) -> Path:
    """Hidden staging file next to *target*, so the final rename stays on one volume."""
    return target.parent / f".{target.name}.tmp-{_epoch_millis()}-{random.randrange(100000)}"


def previous_path(target: Path) -> Path:
    """Rollback sidecar name used while *target* is being replaced."""
    return target.with_name(f"{target.name}.previous-{_epoch_millis()}")


def sidecar_paths(db_path: Path) -> list[Path]:
    """WAL and SHM side-files belonging to a database file."""
    return [db_path.with_name(db_path.name + suffix) for suffix in SIDECAR_SUFFIXES]


def resolve_restore_path(backup_dir: Path, filename: str) -> Path | None:
    """Resolve an untrusted backup name to a file directly inside *backup_dir*.

    Returns None for blank names, names containing a path separator or NUL byte, names
    without the backup extension, or names that resolve outside the directory.
    """
    trimmed = (filename or "").strip()
    if not trimmed:
        return None

    if "\x00" in trimmed:
        return None

    if "/" in trimmed or "\\" in trimmed or Path(trimmed).name != trimmed:
        return None

    if not trimmed.endswith(BACKUP_EXTENSION):
        return None

    try:
        base = backup_dir.resolve()
        candidate = (base / trimmed).resolve()
    except (OSError, ValueError):
        # NUL bytes and other names the OS cannot represent
        return None
    if candidate == base or not candidate.is_relative_to(base):
        return None

    return candidate
