"""Live database handle — the single embedded SQLite file behind the application."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import closing
from pathlib import Path

from loguru import logger

from registrar.core.integrity import key_pragma
from registrar.data.key_provider import KeyProvider


class SqliteDatabase:
    """
    Owns the application's connection to the live database file.

    Exposes the narrow capability the backup core needs: ``is_open``,
    ``path``, ``backup(dest)`` and ``close()``.
    """

    def __init__(self, path: Path, key_provider: KeyProvider | None = None) -> None:
        self._path = path
        self._key_provider = key_provider
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database is not open")
        return self._conn

    def open(self) -> None:
        """Open (creating if needed) the live database in WAL mode."""
        if self._conn is not None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._path), check_same_thread=False)
        self._apply_key(conn)
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        self._conn = conn
        logger.info(f"Opened database {self._path}")

    def backup(self, dest: Path) -> None:
        """Copy a transactionally consistent snapshot into *dest* with the online backup API."""
        with self._lock:
            conn = self.connection
            with closing(sqlite3.connect(str(dest))) as target:
                self._apply_key(target)
                conn.backup(target)
                # A snapshot is a single self-contained file, without -wal/-shm
                target.execute("PRAGMA journal_mode = DELETE")
        logger.debug(f"Database snapshot written to {dest.name}")

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            try:
                self._conn.close()
            finally:
                self._conn = None
        logger.info(f"Closed database {self._path}")

    def _apply_key(self, conn: sqlite3.Connection) -> None:
        if self._key_provider is None:
            return
        secret = self._key_provider.get_encryption_secret()
        try:
            conn.execute(key_pragma(secret))
        except sqlite3.Error as e:
            logger.debug(f"Key pragma not supported by this SQLite build: {e}")
