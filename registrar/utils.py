"""Shared utility functions."""

from __future__ import annotations

import os
import platform
import subprocess
from pathlib import Path

ILLEGAL_FILENAME_CHARS = '<>:"/\\|?*'


def format_size(size_bytes: int) -> str:
    """Format byte count to human-readable string."""
    size = float(size_bytes)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size_bytes} B" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.2f} GB"


def open_folder(path: str | Path) -> None:
    """Open a folder (or the folder holding a file) in the system file manager."""
    path = Path(path)
    target = path if path.is_dir() else path.parent
    target.mkdir(parents=True, exist_ok=True)

    system = platform.system()
    if system == "Windows":
        os.startfile(str(target))  # noqa: S606
    elif system == "Darwin":
        subprocess.Popen(["open", str(target)])  # noqa: S603, S607
    else:
        subprocess.Popen(["xdg-open", str(target)])  # noqa: S603, S607


def sanitize_label(label: str) -> str:
    """Make a backup label safe to embed in a filename.

    "pre restore" → "pre-restore", "a/b" → "a_b". Empty input yields "manual".
    """
    for ch in ILLEGAL_FILENAME_CHARS:
        label = label.replace(ch, "_")
    label = label.replace("\n", " ").replace("\r", "").strip()
    label = "-".join(label.split())
    while "__" in label:
        label = label.replace("__", "_")
    return label.strip(". ") or "manual"
