"""Encryption key provider — supplies the secret used to open the encrypted database."""

from __future__ import annotations

import os
import secrets
from pathlib import Path
from typing import Protocol

from loguru import logger

KEY_FILE_NAME = "secure.key"


class KeyUnavailableError(RuntimeError):
    """The database secret could not be read or created."""


class KeyProvider(Protocol):
    """Source of the database encryption secret (hex string)."""

    def get_encryption_secret(self) -> str: ...


class FileKeyProvider:
    """Keeps a random 32-byte hex key in the data directory, created on first use."""

    def __init__(self, data_dir: Path) -> None:
        self._path = data_dir / KEY_FILE_NAME
        self._cached: str | None = None

    @property
    def key_path(self) -> Path:
        return self._path

    def get_encryption_secret(self) -> str:
        if self._cached:
            return self._cached
        try:
            if self._path.exists():
                key = self._path.read_text(encoding="ascii").strip()
                if not key:
                    raise KeyUnavailableError(f"Key file is empty: {self._path}")
            else:
                key = secrets.token_hex(32)
                self._write_key(key)
                logger.info(f"Generated new database key at {self._path}")
        except OSError as e:
            raise KeyUnavailableError(f"Failed to read or create key file: {e}") from e
        self._cached = key
        return key

    def _write_key(self, key: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="ascii") as f:
            f.write(key)
