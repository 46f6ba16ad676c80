"""Backup and restore error taxonomy."""

from __future__ import annotations


class BackupError(Exception):
    """Base class for backup and restore failures."""


class NotInitializedError(BackupError):
    """There is no open live database to back up."""

    def __init__(self, message: str = "Database not initialized") -> None:
        super().__init__(message)


class InvalidFilenameError(BackupError):
    """A requested backup name escapes the backup directory or has the wrong extension."""

    def __init__(self, message: str = "Invalid backup filename") -> None:
        super().__init__(message)


class IntegrityError(BackupError):
    """A candidate database file failed both integrity check attempts."""

    def __init__(self, message: str = "Created backup failed integrity validation") -> None:
        super().__init__(message)


class BackupIOError(BackupError):
    """Copy, rename or delete failed at the filesystem level."""


class SafetyBackupError(BackupError):
    """The pre-restore snapshot of the live database could not be created."""


class BackupInProgressError(BackupError):
    """Another backup or restore already holds the backup lock."""

    def __init__(self, message: str = "Another backup or restore is already in progress") -> None:
        super().__init__(message)
