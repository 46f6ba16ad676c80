"""Auto-backup scheduler — hourly check that a backup exists and is less than a day old."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from loguru import logger
from PySide6.QtCore import QObject, QThread, QTimer, Signal

from registrar.models.backup_record import BackupResult

if TYPE_CHECKING:
    from registrar.core.backup import BackupManager

AUTO_LABEL = "auto"


class BackupCheckWorker(QThread):
    """Runs one scheduler check off the UI thread."""

    result_ready = Signal(object)  # BackupResult | None

    def __init__(self, scheduler: BackupScheduler) -> None:
        super().__init__()
        self._scheduler = scheduler

    def run(self) -> None:
        self.result_ready.emit(self._scheduler.check_and_backup())


class BackupScheduler(QObject):
    """
    Owns the auto-backup timer.

    The timer is single-shot and re-armed only after the previous check's
    worker finished, so two scheduled checks never overlap. Manual backups
    are kept apart by the backup manager's lock.
    """

    backup_finished = Signal(object)  # BackupResult

    def __init__(self, backup_manager: BackupManager, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._backups = backup_manager
        settings = backup_manager.settings
        self._interval_ms = settings.check_interval_minutes * 60 * 1000
        self._max_age_hours = settings.max_age_hours
        self._worker: BackupCheckWorker | None = None
        self._running = False

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_tick)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._timer.start(self._interval_ms)
        logger.info(f"Auto-backup scheduler started (every {self._interval_ms // 60000} min)")

    def stop(self) -> None:
        self._running = False
        self._timer.stop()
        if self._worker is not None:
            self._worker.wait()
        logger.info("Auto-backup scheduler stopped")

    def is_backup_due(self, now: datetime | None = None) -> bool:
        latest = self._backups.latest_backup()
        if latest is None:
            logger.info("No backups found. Creating initial auto-backup...")
            return True
        now = now or datetime.now(tz=timezone.utc)
        hours_since = (now - latest.created_at).total_seconds() / 3600
        if hours_since >= self._max_age_hours:
            logger.info(f"Last backup was {hours_since:.1f}h ago. Creating auto-backup...")
            return True
        return False

    def check_and_backup(self, now: datetime | None = None) -> BackupResult | None:
        """Create an ``auto`` backup if one is due. Never raises."""
        try:
            if not self.is_backup_due(now):
                return None
            result = self._backups.create_backup(AUTO_LABEL)
            if not result.success:
                logger.warning(f"Scheduled backup failed: {result.error}")
            return result
        except Exception as e:
            logger.exception(f"Scheduled backup check crashed: {e}")
            return BackupResult.failed(str(e))

    def _on_tick(self) -> None:
        if not self._running or self._worker is not None:
            return
        worker = BackupCheckWorker(self)
        worker.result_ready.connect(self._on_result)
        worker.finished.connect(self._on_worker_finished)
        self._worker = worker
        worker.start()

    def _on_result(self, result: BackupResult | None) -> None:
        if result is not None:
            self.backup_finished.emit(result)

    def _on_worker_finished(self) -> None:
        if self._worker is not None:
            self._worker.deleteLater()
        self._worker = None
        if self._running:
            self._timer.start(self._interval_ms)
