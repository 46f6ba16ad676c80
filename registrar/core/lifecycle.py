"""Application lifecycle — process relaunch after a database restore."""

from __future__ import annotations

import sys
from typing import Protocol

from loguru import logger
from PySide6.QtCore import QCoreApplication, QProcess


class LifecycleManager(Protocol):
    """Restarts the running application."""

    def relaunch_process(self) -> None: ...

    def exit_process(self, code: int = 0) -> None: ...


class QtLifecycleManager:
    """Relaunches the same command line as a detached process and leaves the Qt event loop."""

    def __init__(self, argv: list[str] | None = None) -> None:
        self._argv = list(argv if argv is not None else sys.argv)

    def relaunch_process(self) -> None:
        program = sys.executable
        ok = QProcess.startDetached(program, self._argv)
        # PySide6 returns (bool, pid) for some overloads
        if isinstance(ok, tuple):
            ok = ok[0]
        if ok:
            logger.info("Relaunch scheduled")
        else:
            logger.error(f"Failed to relaunch {program} {' '.join(self._argv)}")

    def exit_process(self, code: int = 0) -> None:
        app = QCoreApplication.instance()
        if app is None:
            logger.info(f"No event loop running, exiting with code {code}")
            sys.exit(code)
        logger.info(f"Exiting event loop with code {code}")
        app.exit(code)
