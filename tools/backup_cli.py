"""Operator command line for database backups.

Usage:
    python -m tools.backup_cli [--data-dir DIR] create [--label LABEL]
    python -m tools.backup_cli [--data-dir DIR] create-to <path>
    python -m tools.backup_cli [--data-dir DIR] list
    python -m tools.backup_cli [--data-dir DIR] restore <filename>
    python -m tools.backup_cli [--data-dir DIR] open-folder

Examples:
    python -m tools.backup_cli create --label before-term-close
    python -m tools.backup_cli create-to "D:/exports/registrar-2026.sqlite"
    python -m tools.backup_cli restore backup-auto-2026-02-14T08-00-00-000Z.sqlite

``restore`` only swaps the database file; start the application again
afterwards to load the restored data.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

from main import create_context
from registrar.config import Config
from registrar.context import AppContext
from registrar.core.errors import InvalidFilenameError
from registrar.utils import format_size, open_folder


class ConsoleLifecycle:
    """Restart requests from the command line just tell the operator what to do."""

    def relaunch_process(self) -> None:
        print("Start Registrar again to load the restored database.")

    def exit_process(self, code: int = 0) -> None:
        logger.debug(f"Exit requested with code {code}")


def _cmd_create(ctx: AppContext, args: argparse.Namespace) -> int:
    result = ctx.backup_manager.create_backup(args.label)
    if not result.success:
        print(f"Error: {result.error}")
        return 1
    print(f"Backup written to {result.path}")
    return 0


def _cmd_create_to(ctx: AppContext, args: argparse.Namespace) -> int:
    result = ctx.backup_manager.create_backup_to_path(Path(args.path).resolve())
    if not result.success:
        print(f"Error: {result.error}")
        return 1
    print(f"Backup written to {result.path}")
    return 0


def _cmd_list(ctx: AppContext, args: argparse.Namespace) -> int:
    records = ctx.backup_manager.list_backups()
    if not records:
        print("No backups found.")
        return 0
    for record in records:
        created = record.created_at.astimezone().strftime("%Y-%m-%d %H:%M")
        print(f"{created}  {format_size(record.size):>10}  {record.filename}")
    return 0


def _cmd_restore(ctx: AppContext, args: argparse.Namespace) -> int:
    try:
        success = ctx.restore_manager.restore_backup(args.filename)
    except InvalidFilenameError as e:
        print(f"Error: {e}")
        return 2
    print("Restore initiated. App will restart." if success else "Restore failed")
    return 0 if success else 1


def _cmd_open_folder(ctx: AppContext, args: argparse.Namespace) -> int:
    open_folder(ctx.backup_manager.backup_dir)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Back up and restore the Registrar database.")
    parser.add_argument("--data-dir", type=Path, default=None, help="Application data directory")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create a backup in the backup directory")
    create.add_argument("--label", default="manual", help="Label embedded in the filename")
    create.set_defaults(func=_cmd_create)

    create_to = sub.add_parser("create-to", help="Write a backup to a specific file")
    create_to.add_argument("path")
    create_to.set_defaults(func=_cmd_create_to)

    sub.add_parser("list", help="List backups, newest first").set_defaults(func=_cmd_list)

    restore = sub.add_parser("restore", help="Restore the database from a backup")
    restore.add_argument("filename", help="Backup filename as shown by 'list'")
    restore.set_defaults(func=_cmd_restore)

    sub.add_parser("open-folder", help="Open the backup directory").set_defaults(func=_cmd_open_folder)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = Config(args.data_dir) if args.data_dir else None
    ctx = create_context(config, with_scheduler=False, lifecycle=ConsoleLifecycle())
    try:
        return args.func(ctx, args)
    finally:
        ctx.database.close()


if __name__ == "__main__":
    sys.exit(main())
