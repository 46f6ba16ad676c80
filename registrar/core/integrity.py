"""Integrity verifier — decides whether a database file is safe to trust as a backup."""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path

from loguru import logger

from registrar.data.key_provider import KeyProvider


def key_pragma(secret: str) -> str:
    """SQLCipher raw-key pragma for a hex secret."""
    return f"PRAGMA key = \"x'{secret}'\""


class IntegrityVerifier:
    """
    Read-only structural check of a database file.

    The file is probed twice: with the current encryption secret, then without
    one (legacy or intentionally plain files). Either clean pass is accepted.
    This is a heuristic: a pass does not prove the file was encrypted with the
    current key, only that some open mode reads it without corruption.
    """

    def __init__(self, key_provider: KeyProvider | None = None) -> None:
        self._key_provider = key_provider

    def verify(self, path: str | Path) -> bool:
        """Return True if the file opens read-only and passes ``PRAGMA integrity_check``."""
        path = Path(path)
        try:
            if not path.is_file() or path.stat().st_size == 0:
                logger.warning(f"Integrity check skipped, not a usable file: {path}")
                return False
        except OSError as e:
            logger.warning(f"Integrity check could not stat {path}: {e}")
            return False

        secret = self._current_secret()
        if secret and self._try_integrity_check(path, secret):
            return True
        if self._try_integrity_check(path):
            return True

        logger.warning(f"Backup {path.name} failed integrity checks for encrypted and plain modes")
        return False

    def _current_secret(self) -> str | None:
        if self._key_provider is None:
            return None
        try:
            return self._key_provider.get_encryption_secret()
        except Exception as e:
            logger.warning(f"Encryption key unavailable, checking plain mode only: {e}")
            return None

    @staticmethod
    def _try_integrity_check(path: Path, secret: str | None = None) -> bool:
        uri = f"{path.resolve().as_uri()}?mode=ro"
        try:
            with closing(sqlite3.connect(uri, uri=True)) as conn:
                if secret:
                    try:
                        conn.execute(key_pragma(secret))
                    except sqlite3.Error:
                        # Builds without SQLCipher reject or ignore the key pragma
                        pass
                conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
                rows = conn.execute("PRAGMA integrity_check").fetchall()
                return len(rows) == 1 and rows[0][0] == "ok"
        except Exception as e:
            mode = "encrypted" if secret else "plain"
            logger.debug(f"Integrity check ({mode}) failed for {path.name}: {e}")
            return False
