"""Application entry point — wires the database and backup services and runs the event loop."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger
from PySide6.QtCore import QCoreApplication

from registrar.config import Config, get_config
from registrar.context import AppContext
from registrar.core.atomic import recover_interrupted_replace
from registrar.core.backup import BackupManager
from registrar.core.integrity import IntegrityVerifier
from registrar.core.lifecycle import LifecycleManager, QtLifecycleManager
from registrar.core.path_resolver import BackupPaths, sidecar_paths
from registrar.core.restore import RestoreManager
from registrar.core.scheduler import BackupScheduler
from registrar.data.database import SqliteDatabase
from registrar.data.key_provider import FileKeyProvider
from registrar.logger import setup_logger


def create_context(
    config: Config | None = None,
    with_scheduler: bool = True,
    lifecycle: LifecycleManager | None = None,
) -> AppContext:
    """Wire all services and return an AppContext."""
    config = config or get_config()

    # Logger
    setup_logger(config.data_dir / "logs", level=config.log_level)

    paths = BackupPaths(
        config.data_dir,
        database_filename=config.database_path.name,
        backup_dir=config.backup_dir,
    )

    # A crash mid-restore can leave the database under a .previous-* name
    for path in [paths.database_path, *sidecar_paths(paths.database_path)]:
        recover_interrupted_replace(path)

    key_provider = FileKeyProvider(config.data_dir)
    database = SqliteDatabase(paths.database_path, key_provider)
    database.open()

    settings = config.backup_settings()
    verifier = IntegrityVerifier(key_provider)
    lifecycle = lifecycle or QtLifecycleManager()
    backup_manager = BackupManager(database, verifier, paths, settings)
    restore_manager = RestoreManager(backup_manager, verifier, lifecycle)

    scheduler = None
    if with_scheduler and settings.auto_backup_enabled:
        scheduler = BackupScheduler(backup_manager)

    return AppContext(
        config=config,
        key_provider=key_provider,
        database=database,
        lifecycle=lifecycle,
        verifier=verifier,
        backup_manager=backup_manager,
        restore_manager=restore_manager,
        scheduler=scheduler,
    )


def main() -> int:
    """Application entry point."""
    app = QCoreApplication(sys.argv)
    app.setApplicationName("Registrar")
    app.setOrganizationName("Registrar")

    data_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    ctx = create_context(Config(data_dir) if data_dir else None)

    if ctx.scheduler is not None:
        ctx.scheduler.start()
        app.aboutToQuit.connect(ctx.scheduler.stop)
    app.aboutToQuit.connect(ctx.database.close)

    logger.info(f"Registrar backup service running, data in {ctx.config.data_dir}")
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
