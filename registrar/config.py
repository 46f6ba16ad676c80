"""Application configuration — JSON-based, with file locking and batch update support."""

from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

from loguru import logger

_instance: "Config | None" = None

# Default data directory
_DEFAULT_DATA_DIR = Path.home() / ".registrar"


def get_config() -> Config:
    """Module-level factory — single global Config instance."""
    global _instance
    if _instance is None:
        _instance = Config()
    return _instance


def reset_config() -> None:
    """Reset the global config instance (for testing)."""
    global _instance
    _instance = None


@dataclass(frozen=True)
class BackupSettings:
    """Snapshot of the backup-related settings handed to the backup services."""

    max_backups: int = 7
    retention_days: int = 30
    check_interval_minutes: int = 60
    max_age_hours: int = 24
    auto_backup_enabled: bool = True


class Config:
    """JSON-based application configuration with file locking."""

    _DEFAULTS: dict[str, Any] = {
        "database_filename": "registrar.sqlite",
        "backup_dir": "",
        "max_backups": 7,
        "retention_days": 30,
        "backup_check_interval_minutes": 60,
        "backup_max_age_hours": 24,
        "auto_backup_enabled": True,
        "log_level": "INFO",
    }

    def __init__(self, data_dir: Path | None = None) -> None:
        self._data: dict[str, Any] = {}
        self._dir = data_dir or _DEFAULT_DATA_DIR
        self._path = self._dir / "config.json"
        self._lock = threading.Lock()
        self._defer_save = False
        self._load()

    def _load(self) -> None:
        """Load config from disk, merging with defaults."""
        self._data = json.loads(json.dumps(self._DEFAULTS))  # deep copy defaults
        if self._path.exists():
            try:
                with open(self._path, encoding="utf-8") as f:
                    user_data = json.load(f)
                self._data.update(user_data)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Failed to load config, using defaults: {e}")

    def _save(self) -> None:
        """Persist config to disk with file locking."""
        if self._defer_save:
            return
        with self._lock:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".tmp")
            try:
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(self._data, f, ensure_ascii=False, indent=2)
                tmp_path.replace(self._path)
            except OSError as e:
                logger.error(f"Failed to save config: {e}")
                if tmp_path.exists():
                    tmp_path.unlink(missing_ok=True)

    @contextmanager
    def batch_update(self) -> Iterator[None]:
        """Context manager for batching multiple config changes into a single write."""
        self._defer_save = True
        try:
            yield
        finally:
            self._defer_save = False
            self._save()

    # ── Generic access ──

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    # ── Typed properties ──

    @property
    def data_dir(self) -> Path:
        return self._dir

    @property
    def database_path(self) -> Path:
        return self._dir / self._data.get("database_filename", "registrar.sqlite")

    @property
    def backup_dir(self) -> Path:
        raw = self._data.get("backup_dir", "")
        return Path(raw) if raw else self._dir / "backups"

    @backup_dir.setter
    def backup_dir(self, value: Path | None) -> None:
        self.set("backup_dir", str(value) if value else "")

    @property
    def max_backups(self) -> int:
        return max(1, int(self._data.get("max_backups", 7)))

    @max_backups.setter
    def max_backups(self, value: int) -> None:
        self.set("max_backups", value)

    @property
    def retention_days(self) -> int:
        return max(1, int(self._data.get("retention_days", 30)))

    @retention_days.setter
    def retention_days(self, value: int) -> None:
        self.set("retention_days", value)

    @property
    def log_level(self) -> str:
        return str(self._data.get("log_level", "INFO")).upper()

    def backup_settings(self) -> BackupSettings:
        """Build an immutable settings snapshot for the backup core."""
        return BackupSettings(
            max_backups=self.max_backups,
            retention_days=self.retention_days,
            check_interval_minutes=max(1, int(self._data.get("backup_check_interval_minutes", 60))),
            max_age_hours=max(1, int(self._data.get("backup_max_age_hours", 24))),
            auto_backup_enabled=bool(self._data.get("auto_backup_enabled", True)),
        )
