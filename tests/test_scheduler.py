"""Tests for the auto-backup scheduler."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from PySide6.QtCore import QCoreApplication

from registrar.config import BackupSettings
from registrar.core.scheduler import BackupScheduler
from registrar.models.backup_record import BackupRecord, BackupResult

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="module")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def backups() -> MagicMock:
    manager = MagicMock()
    manager.settings = BackupSettings(check_interval_minutes=60, max_age_hours=24)
    manager.latest_backup.return_value = None
    manager.create_backup.return_value = BackupResult.ok("/data/backups/backup-auto.sqlite")
    return manager


@pytest.fixture
def scheduler(qapp, backups: MagicMock):
    sched = BackupScheduler(backups)
    yield sched
    sched.stop()


def _latest(hours_ago: float) -> BackupRecord:
    return BackupRecord("backup-auto.sqlite", 10, NOW - timedelta(hours=hours_ago))


class TestCheck:
    def test_creates_initial_backup(self, scheduler: BackupScheduler, backups: MagicMock) -> None:
        result = scheduler.check_and_backup(NOW)
        assert result.success is True
        backups.create_backup.assert_called_once_with("auto")

    def test_skips_recent_backup(self, scheduler: BackupScheduler, backups: MagicMock) -> None:
        backups.latest_backup.return_value = _latest(3)
        assert scheduler.check_and_backup(NOW) is None
        backups.create_backup.assert_not_called()

    def test_backs_up_after_a_day(self, scheduler: BackupScheduler, backups: MagicMock) -> None:
        backups.latest_backup.return_value = _latest(24)
        scheduler.check_and_backup(NOW)
        backups.create_backup.assert_called_once_with("auto")

    def test_failed_backup_is_reported_not_raised(self, scheduler: BackupScheduler, backups: MagicMock) -> None:
        backups.create_backup.return_value = BackupResult.failed("Database not initialized")
        result = scheduler.check_and_backup(NOW)
        assert result.success is False

    def test_crash_is_contained(self, scheduler: BackupScheduler, backups: MagicMock) -> None:
        backups.latest_backup.side_effect = RuntimeError("listing exploded")
        result = scheduler.check_and_backup(NOW)
        assert result.success is False
        assert "listing exploded" in result.error


class TestTimer:
    def test_start_is_idempotent(self, scheduler: BackupScheduler) -> None:
        scheduler.start()
        scheduler.start()
        assert scheduler.is_running
        assert scheduler.interval_ms == 60 * 60 * 1000

    def test_stop(self, scheduler: BackupScheduler) -> None:
        scheduler.start()
        scheduler.stop()
        assert not scheduler.is_running

    def test_tick_ignored_when_stopped(self, scheduler: BackupScheduler, backups: MagicMock) -> None:
        scheduler._on_tick()
        backups.create_backup.assert_not_called()

    def test_rearms_only_after_worker_finishes(
        self, qapp, scheduler: BackupScheduler, backups: MagicMock
    ) -> None:
        finished = []
        scheduler.backup_finished.connect(lambda result: finished.append(result))
        scheduler.start()
        # What the single-shot timeout leaves behind when it fires
        scheduler._timer.stop()

        scheduler._on_tick()
        worker = scheduler._worker
        assert worker is not None
        scheduler._on_tick()
        assert scheduler._worker is worker
        assert not scheduler._timer.isActive()

        worker.wait()
        deadline = time.monotonic() + 5
        while scheduler._worker is not None and time.monotonic() < deadline:
            qapp.processEvents()

        assert scheduler._worker is None
        assert scheduler._timer.isActive()
        assert len(finished) == 1 and finished[0].success is True
        backups.create_backup.assert_called_once_with("auto")
