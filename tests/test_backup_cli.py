"""Tests for the backup command line tool."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import make_sqlite
from registrar.config import Config
from tools import backup_cli


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    make_sqlite(Config(data_dir=tmp_path).database_path)
    return tmp_path


def _run(data_dir: Path, *args: str) -> int:
    return backup_cli.main(["--data-dir", str(data_dir), *args])


class TestBackupCli:
    def test_create_then_list(self, data_dir: Path, capsys) -> None:
        assert _run(data_dir, "create", "--label", "term close") == 0
        assert "backup-term-close-" in capsys.readouterr().out

        assert _run(data_dir, "list") == 0
        assert "backup-term-close-" in capsys.readouterr().out

    def test_list_empty(self, data_dir: Path, capsys) -> None:
        assert _run(data_dir, "list") == 0
        assert "No backups found." in capsys.readouterr().out

    def test_create_to(self, data_dir: Path, tmp_path: Path) -> None:
        target = tmp_path / "exports" / "copy.sqlite"
        assert _run(data_dir, "create-to", str(target)) == 0
        assert target.exists()

    def test_restore_rejects_traversal(self, data_dir: Path, capsys) -> None:
        assert _run(data_dir, "restore", "../outside.sqlite") == 2
        assert "Invalid backup filename" in capsys.readouterr().out

    def test_restore(self, data_dir: Path, capsys) -> None:
        make_sqlite(data_dir / "backups" / "backup-old.sqlite", ["Zawadi"])
        assert _run(data_dir, "restore", "backup-old.sqlite") == 0
        out = capsys.readouterr().out
        assert "Restore initiated. App will restart." in out
