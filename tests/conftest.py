"""Shared fixtures for the backup core tests."""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path

import pytest

from registrar.config import BackupSettings
from registrar.core.backup import BackupManager
from registrar.core.integrity import IntegrityVerifier
from registrar.core.path_resolver import BackupPaths
from registrar.data.database import SqliteDatabase


def make_sqlite(path: Path, students: list[str] | None = None) -> Path:
    """Write a small plain database with a ``students`` table."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with closing(sqlite3.connect(str(path))) as conn:
        conn.execute("CREATE TABLE IF NOT EXISTS students (id INTEGER PRIMARY KEY, name TEXT)")
        conn.executemany(
            "INSERT INTO students (name) VALUES (?)",
            [(name,) for name in (students or ["Amina", "Brian"])],
        )
        conn.commit()
    return path


def student_names(path: Path) -> list[str]:
    with closing(sqlite3.connect(str(path))) as conn:
        return [row[0] for row in conn.execute("SELECT name FROM students ORDER BY id")]


@pytest.fixture
def paths(tmp_path: Path) -> BackupPaths:
    return BackupPaths(tmp_path, database_filename="registrar.sqlite")


@pytest.fixture
def database(paths: BackupPaths):
    db = SqliteDatabase(paths.database_path)
    db.open()
    db.connection.execute("CREATE TABLE students (id INTEGER PRIMARY KEY, name TEXT)")
    db.connection.executemany(
        "INSERT INTO students (name) VALUES (?)", [("Amina",), ("Brian",), ("Chen",)]
    )
    db.connection.commit()
    yield db
    db.close()


@pytest.fixture
def verifier() -> IntegrityVerifier:
    return IntegrityVerifier()


@pytest.fixture
def settings() -> BackupSettings:
    return BackupSettings()


@pytest.fixture
def manager(database, verifier, paths, settings) -> BackupManager:
    return BackupManager(database, verifier, paths, settings)
