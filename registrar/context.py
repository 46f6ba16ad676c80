"""Application context — service container for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from registrar.config import Config
    from registrar.core.backup import BackupManager
    from registrar.core.integrity import IntegrityVerifier
    from registrar.core.lifecycle import LifecycleManager
    from registrar.core.restore import RestoreManager
    from registrar.core.scheduler import BackupScheduler
    from registrar.data.database import SqliteDatabase
    from registrar.data.key_provider import KeyProvider


@dataclass
class AppContext:
    """
    Central service container.

    Screens and command handlers receive this at construction time instead
    of reaching for module-level singletons.
    """

    config: Config
    key_provider: KeyProvider
    database: SqliteDatabase
    lifecycle: LifecycleManager

    # Backup services
    verifier: IntegrityVerifier
    backup_manager: BackupManager
    restore_manager: RestoreManager
    scheduler: BackupScheduler | None = None
