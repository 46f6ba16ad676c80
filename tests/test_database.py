"""Tests for the live database handle and the key provider."""

from __future__ import annotations

import os
import sqlite3
from contextlib import closing
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from conftest import student_names
from registrar.data.database import SqliteDatabase
from registrar.data.key_provider import FileKeyProvider, KeyUnavailableError


class TestSqliteDatabase:
    def test_open_uses_wal(self, tmp_path: Path) -> None:
        db = SqliteDatabase(tmp_path / "live.sqlite")
        db.open()
        try:
            mode = db.connection.execute("PRAGMA journal_mode").fetchone()[0]
            assert mode == "wal"
            assert db.is_open
        finally:
            db.close()
        assert not db.is_open

    def test_backup_is_consistent_copy(self, database, tmp_path: Path) -> None:
        dest = tmp_path / "copy.sqlite"
        database.backup(dest)
        assert student_names(dest) == ["Amina", "Brian", "Chen"]
        with closing(sqlite3.connect(str(dest))) as conn:
            assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "delete"

    def test_backup_requires_open_database(self, tmp_path: Path) -> None:
        db = SqliteDatabase(tmp_path / "live.sqlite")
        with pytest.raises(RuntimeError):
            db.backup(tmp_path / "copy.sqlite")

    def test_key_is_requested_when_provider_given(self, tmp_path: Path) -> None:
        provider = MagicMock()
        provider.get_encryption_secret.return_value = "cd" * 32
        db = SqliteDatabase(tmp_path / "live.sqlite", provider)
        db.open()
        db.close()
        provider.get_encryption_secret.assert_called()

    def test_close_is_idempotent(self, tmp_path: Path) -> None:
        db = SqliteDatabase(tmp_path / "live.sqlite")
        db.open()
        db.close()
        db.close()
        assert not db.is_open


class TestFileKeyProvider:
    def test_generates_and_reuses_key(self, tmp_path: Path) -> None:
        key = FileKeyProvider(tmp_path).get_encryption_secret()
        assert len(key) == 64
        int(key, 16)
        assert FileKeyProvider(tmp_path).get_encryption_secret() == key

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_key_file_is_private(self, tmp_path: Path) -> None:
        provider = FileKeyProvider(tmp_path)
        provider.get_encryption_secret()
        assert provider.key_path.stat().st_mode & 0o777 == 0o600

    def test_empty_key_file_is_an_error(self, tmp_path: Path) -> None:
        (tmp_path / "secure.key").write_text("", encoding="ascii")
        with pytest.raises(KeyUnavailableError):
            FileKeyProvider(tmp_path).get_encryption_secret()
