"""Loguru-based logging setup."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<7} | {name}:{line} | {message}"


def _is_backup_event(record: dict) -> bool:
    return record["name"].startswith("registrar.core")


def setup_logger(log_dir: Path | None = None, level: str = "INFO") -> None:
    """
    Configure loguru sinks.

    Console gets *level* and above. With a log directory, everything goes to
    a rotating ``registrar.log`` and backup/restore activity is additionally
    kept in ``backups.log`` for a month, so operators can audit past snapshots
    and restores after the main log has rotated away.
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level:<7}</level> | {message}",
        colorize=True,
    )

    if not log_dir:
        return

    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        str(log_dir / "registrar.log"),
        level="DEBUG",
        format=_FILE_FORMAT,
        rotation="5 MB",
        retention="7 days",
        encoding="utf-8",
    )
    logger.add(
        str(log_dir / "backups.log"),
        level="INFO",
        format=_FILE_FORMAT,
        filter=_is_backup_event,
        rotation="1 MB",
        retention="30 days",
        encoding="utf-8",
    )
