"""Restore manager — swap a verified backup in for the live database and restart."""

from __future__ import annotations

import shutil
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from registrar.core.atomic import replace_file_atomically
from registrar.core.errors import (
    BackupInProgressError,
    IntegrityError,
    InvalidFilenameError,
    SafetyBackupError,
)
from registrar.core.path_resolver import create_temp_path, sidecar_paths

if TYPE_CHECKING:
    from registrar.core.backup import BackupManager
    from registrar.core.integrity import IntegrityVerifier
    from registrar.core.lifecycle import LifecycleManager


class RestoreState(StrEnum):
    """Phases of a restore. Each phase only starts after the previous one succeeded."""

    IDLE = "idle"
    VALIDATING = "validating"
    INTEGRITY_CHECKING = "integrity_checking"
    SAFETY_BACKING_UP = "safety_backing_up"
    CLOSING = "closing"
    SWAPPING = "swapping"
    SIDECAR_SYNCING = "sidecar_syncing"
    REQUESTING_RESTART = "requesting_restart"
    COMPLETED = "completed"
    FAILED = "failed"


class RestoreManager:
    """Restores the live database from a file in the backup directory."""

    def __init__(
        self,
        backup_manager: BackupManager,
        verifier: IntegrityVerifier,
        lifecycle: LifecycleManager,
    ) -> None:
        self._backups = backup_manager
        self._verifier = verifier
        self._lifecycle = lifecycle
        self.last_state = RestoreState.IDLE
        # Phase that was running when the last restore failed
        self.failed_at: RestoreState | None = None

    def _enter(self, state: RestoreState) -> None:
        self.last_state = state
        logger.debug(f"Restore: {state}")

    def _fail(self, message: str) -> bool:
        self.failed_at = self.last_state
        self.last_state = RestoreState.FAILED
        logger.error(message)
        return False

    def restore_backup(self, filename: str) -> bool:
        """
        Replace the live database with backup *filename* and request a restart.

        Raises InvalidFilenameError for names outside the backup directory or
        with the wrong extension. Every other failure is logged and returns
        False; the live database is left as it was before the failing phase.
        """
        self.failed_at = None
        self._enter(RestoreState.VALIDATING)
        backup_path = self._backups.paths.resolve_restore_path(filename)
        if backup_path is None:
            self.failed_at = RestoreState.VALIDATING
            self.last_state = RestoreState.FAILED
            raise InvalidFilenameError()

        if not backup_path.is_file():
            return self._fail(f"Restore aborted: backup file not found: {backup_path.name}")

        try:
            with self._backups.exclusive():
                return self._restore_locked(backup_path)
        except BackupInProgressError as e:
            return self._fail(f"Restore aborted: {e}")

    def _restore_locked(self, backup_path: Path) -> bool:
        self._enter(RestoreState.INTEGRITY_CHECKING)
        if not self._verifier.verify(backup_path):
            return self._fail(f"Restore aborted: {IntegrityError('backup file failed integrity check')}")

        self._enter(RestoreState.SAFETY_BACKING_UP)
        logger.info("Creating safety backup before restore...")
        # No pruning: retention could otherwise delete the backup being restored
        safety = self._backups.create_backup_unlocked("pre-restore", prune=False)
        if not safety.success:
            error = SafetyBackupError(f"failed to create pre-restore backup ({safety.error or 'unknown error'})")
            return self._fail(f"Restore aborted: {error}")
        logger.info(f"Safety backup written to {safety.path}")

        database = self._backups.database
        db_path = Path(database.path)
        temp_path = create_temp_path(db_path)
        try:
            # The live handle must be released before its file is replaced
            self._enter(RestoreState.CLOSING)
            database.close()

            self._enter(RestoreState.SWAPPING)
            shutil.copyfile(backup_path, temp_path)
            replace_file_atomically(temp_path, db_path)

            self._enter(RestoreState.SIDECAR_SYNCING)
            self._sync_sidecars(backup_path, db_path)

            self._enter(RestoreState.REQUESTING_RESTART)
            logger.info(f"Restored {db_path.name} from {backup_path.name}, restarting")
            self._lifecycle.relaunch_process()
            self._lifecycle.exit_process(0)
        except Exception as e:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError as cleanup_error:
                    logger.warning(f"Failed to remove restore temp file: {cleanup_error}")
            return self._fail(f"Restore failed: {e}")

        self._enter(RestoreState.COMPLETED)
        return True

    @staticmethod
    def _sync_sidecars(backup_path: Path, db_path: Path) -> None:
        """Make the live WAL/SHM set mirror exactly what the backup carries."""
        for source, target in zip(sidecar_paths(backup_path), sidecar_paths(db_path)):
            if source.exists():
                shutil.copyfile(source, target)
                logger.debug(f"Copied {source.name} -> {target.name}")
            elif target.exists():
                target.unlink()
                logger.debug(f"Removed stale {target.name}")
