"""Retention policy — which backups to delete after a successful backup."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from registrar.models.backup_record import BackupRecord

_SECONDS_PER_DAY = 24 * 60 * 60


class RetentionPolicy:
    """
    Rolling window plus one survivor per older age bucket.

    Backups inside the retention window are capped at ``max_backups`` (newest
    kept). Older backups are grouped into buckets of ``retention_days`` and
    only the newest of each bucket survives. The newest backup overall is
    never deleted.
    """

    def __init__(self, max_backups: int = 7, retention_days: int = 30) -> None:
        self.max_backups = max_backups
        self.retention_days = retention_days

    def _age_days(self, record: BackupRecord, now: datetime) -> float:
        return (now - record.created_at).total_seconds() / _SECONDS_PER_DAY

    def select_for_deletion(
        self,
        records: list[BackupRecord],
        now: datetime | None = None,
    ) -> list[BackupRecord]:
        """Return the records to delete. *records* must be sorted newest first."""
        now = now or datetime.now(tz=timezone.utc)
        to_delete: list[BackupRecord] = []
        recent: list[BackupRecord] = []
        seen_buckets: set[int] = set()

        for record in records:
            age = self._age_days(record, now)
            if age <= self.retention_days:
                recent.append(record)
                continue
            bucket = int(age // self.retention_days)
            if bucket in seen_buckets:
                to_delete.append(record)
            else:
                seen_buckets.add(bucket)  # newest of this bucket survives

        to_delete.extend(recent[self.max_backups :])

        if records and len(to_delete) == len(records):
            to_delete.remove(records[0])

        return to_delete

    def apply(
        self,
        records: list[BackupRecord],
        backup_dir: Path,
        now: datetime | None = None,
    ) -> list[str]:
        """Delete the selected backups, one failure never stopping the rest."""
        deleted: list[str] = []
        for record in self.select_for_deletion(records, now):
            try:
                (backup_dir / record.filename).unlink()
                deleted.append(record.filename)
                logger.info(f"Deleted old backup (retention policy): {record.filename}")
            except OSError as e:
                logger.error(f"Failed to delete old backup {record.filename}: {e}")
        return deleted
