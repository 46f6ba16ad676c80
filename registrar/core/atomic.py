"""Atomic file replacement via same-volume renames and a rollback sidecar."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from registrar.core.path_resolver import previous_path


def _remove_quietly(path: Path, what: str) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Failed to remove {what} {path.name}: {e}")


def _sidecar_stamp(path: Path) -> int:
    stamp = path.name.rsplit("-", 1)[-1]
    return int(stamp) if stamp.isdigit() else 0


def replace_file_atomically(temp_path: Path, target_path: Path) -> None:
    """
    Move a fully written *temp_path* over *target_path*.

    The existing target is first renamed to a ``.previous-<ts>`` sidecar; if
    the final rename fails, the sidecar is renamed back so the target is never
    left missing. The original error is re-raised. A leftover temp file is
    always removed.
    """
    backup = previous_path(target_path)
    moved_previous = False

    try:
        if target_path.exists():
            target_path.replace(backup)
            moved_previous = True

        temp_path.replace(target_path)

        if moved_previous:
            _remove_quietly(backup, "previous copy")
    except OSError:
        if moved_previous and backup.exists():
            _remove_quietly(target_path, "partial target")
            try:
                backup.replace(target_path)
            except OSError as rollback_error:
                logger.error(f"Rollback of {target_path.name} failed, kept at {backup}: {rollback_error}")
        raise
    finally:
        if temp_path.exists():
            _remove_quietly(temp_path, "temp file")


def recover_interrupted_replace(target_path: Path) -> bool:
    """
    Repair the state left by a process that died mid-replace.

    A missing target with ``.previous-*`` sidecars is restored from the newest
    sidecar. When the target exists, sidecars are stale and removed.
    Returns True if the target was rolled back. Orphaned staging files for
    the target are removed as well.
    """
    for orphan in target_path.parent.glob(f".{target_path.name}.tmp-*"):
        _remove_quietly(orphan, "orphaned temp file")

    sidecars = sorted(
        target_path.parent.glob(f"{target_path.name}.previous-*"),
        key=_sidecar_stamp,
        reverse=True,
    )
    if not sidecars:
        return False

    recovered = False
    if not target_path.exists():
        newest = sidecars.pop(0)
        newest.replace(target_path)
        logger.warning(f"Recovered {target_path.name} from interrupted replace ({newest.name})")
        recovered = True

    for stale in sidecars:
        _remove_quietly(stale, "stale previous copy")
    return recovered
