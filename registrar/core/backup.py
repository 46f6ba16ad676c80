"""Backup manager — verified, atomically promoted snapshots of the live database."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Protocol

from loguru import logger

from registrar.core.atomic import replace_file_atomically
from registrar.core.errors import (
    BackupInProgressError,
    BackupIOError,
    IntegrityError,
    NotInitializedError,
)
from registrar.core.path_resolver import (
    BACKUP_EXTENSION,
    BackupPaths,
    backup_filename,
    create_temp_path,
)
from registrar.core.retention import RetentionPolicy
from registrar.models.backup_record import BackupRecord, BackupResult

if TYPE_CHECKING:
    from registrar.config import BackupSettings
    from registrar.core.integrity import IntegrityVerifier


class DatabaseHandle(Protocol):
    """Narrow capability over the live database used by backup and restore."""

    @property
    def is_open(self) -> bool: ...

    @property
    def path(self) -> Path: ...

    def backup(self, dest: Path) -> None: ...

    def close(self) -> None: ...


class BackupManager:
    """Creates, lists and prunes database backups. Sole writer of the backup directory."""

    def __init__(
        self,
        database: DatabaseHandle,
        verifier: IntegrityVerifier,
        paths: BackupPaths,
        settings: BackupSettings,
        retention: RetentionPolicy | None = None,
    ) -> None:
        self._database = database
        self._verifier = verifier
        self._paths = paths
        self._settings = settings
        self._retention = retention or RetentionPolicy(
            max_backups=settings.max_backups,
            retention_days=settings.retention_days,
        )
        self._lock = threading.Lock()

    @property
    def database(self) -> DatabaseHandle:
        return self._database

    @property
    def paths(self) -> BackupPaths:
        return self._paths

    @property
    def settings(self) -> BackupSettings:
        return self._settings

    @property
    def backup_dir(self) -> Path:
        return self._paths.backup_dir

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Advisory lock shared by backup and restore; fails fast when already held."""
        if not self._lock.acquire(blocking=False):
            raise BackupInProgressError()
        try:
            yield
        finally:
            self._lock.release()

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    # ── Backup creation ──

    def create_backup(self, label: str = "manual") -> BackupResult:
        """Snapshot the live database into the backup directory, then apply retention."""
        try:
            with self.exclusive():
                return self.create_backup_unlocked(label)
        except BackupInProgressError as e:
            logger.warning(f"Backup '{label}' skipped: {e}")
            return BackupResult.failed(str(e))

    def create_backup_unlocked(self, label: str = "manual", prune: bool = True) -> BackupResult:
        """``create_backup`` for callers that already hold :meth:`exclusive`.

        With ``prune=False`` retention is skipped, leaving the catalog as it was.
        """
        if not self._database.is_open:
            return BackupResult.failed(str(NotInitializedError()))

        try:
            backup_dir = self._paths.ensure_backup_dir()
            backup_path = self._unused_backup_path(backup_dir, label)
            self._snapshot_to(backup_path)
        except Exception as e:
            logger.error(f"Backup failed: {e}")
            return BackupResult.failed(str(e))

        if prune:
            self.apply_retention()
        return BackupResult.ok(str(backup_path))

    def create_backup_to_path(self, target_path: str | Path) -> BackupResult:
        """Snapshot the live database to a caller-chosen file (no naming, no retention)."""
        if not self._database.is_open:
            return BackupResult.failed(str(NotInitializedError()))
        if not target_path or not str(target_path).strip():
            return BackupResult.failed("Backup path is required")

        target = Path(target_path)
        try:
            with self.exclusive():
                target.parent.mkdir(parents=True, exist_ok=True)
                self._snapshot_to(target)
        except Exception as e:
            logger.error(f"Backup failed: {e}")
            return BackupResult.failed(str(e))

        return BackupResult.ok(str(target))

    @staticmethod
    def _unused_backup_path(backup_dir: Path, label: str) -> Path:
        """Backup names are only millisecond-unique; suffix a counter instead of overwriting."""
        path = backup_dir / backup_filename(label)
        stem = path.stem
        counter = 1
        while path.exists():
            path = backup_dir / f"{stem}-{counter}{BACKUP_EXTENSION}"
            counter += 1
        return path

    def _snapshot_to(self, target: Path) -> None:
        """Copy into a same-directory temp file, verify it, then promote it over *target*."""
        temp_path = create_temp_path(target)
        logger.info(f"Starting backup to {target}...")
        try:
            try:
                self._database.backup(temp_path)
            except Exception as e:
                # Engine errors (sqlite3.Error and friends) are reported as I/O failures
                raise BackupIOError(f"Failed to copy database: {e}") from e

            if not self._verifier.verify(temp_path):
                raise IntegrityError()

            replace_file_atomically(temp_path, target)
        finally:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError as e:
                    logger.warning(f"Failed to remove temp file {temp_path.name}: {e}")
        logger.info(f"Backup completed: {target.name}")

    # ── Listing & retention ──

    def list_backups(self) -> list[BackupRecord]:
        """List promoted backups, newest first. Never raises."""
        backup_dir = self.backup_dir
        if not backup_dir.exists():
            return []

        records: list[BackupRecord] = []
        try:
            for entry in backup_dir.iterdir():
                if entry.name.startswith(".") or not entry.name.endswith(BACKUP_EXTENSION):
                    continue
                if not entry.is_file():
                    continue
                stat = entry.stat()
                records.append(
                    BackupRecord(
                        filename=entry.name,
                        size=stat.st_size,
                        created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    )
                )
        except OSError as e:
            logger.error(f"Failed to list backups: {e}")
            return []

        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    def latest_backup(self) -> BackupRecord | None:
        records = self.list_backups()
        return records[0] if records else None

    def apply_retention(self) -> list[str]:
        """Prune the backup directory. Errors are logged per file and never raised."""
        try:
            return self._retention.apply(self.list_backups(), self.backup_dir)
        except Exception as e:
            logger.error(f"Retention policy failed: {e}")
            return []
