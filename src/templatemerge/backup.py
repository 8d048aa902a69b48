"""Backup and rollback of merge targets.

All backup file I/O lives here. A backup is a sibling ``<path>.backup``
created before the first write to ``<path>`` and kept after a successful
merge so an explicit rollback can still restore it.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable

from templatemerge.errors import BackupFailure, BackupNotFound, RestoreFailure
from templatemerge.schema import RollbackReport

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup"


def backup_path_for(path: str | Path) -> Path:
    """Return the backup location for *path*."""
    p = Path(path)
    return p.with_name(p.name + BACKUP_SUFFIX)


def has_backup(path: str | Path) -> bool:
    return backup_path_for(path).is_file()


def create_backup(path: str | Path) -> Path:
    """Copy *path* to its backup location and verify the copy.

    Raises:
        BackupFailure: when the copy cannot be made or does not match.
    """
    src = Path(path)
    dst = backup_path_for(src)
    try:
        shutil.copy2(src, dst)
        if dst.stat().st_size != src.stat().st_size:
            msg = f"Backup size mismatch for {src}"
            raise BackupFailure(msg)
    except OSError as e:
        msg = f"Failed to create backup {dst}: {e}"
        raise BackupFailure(msg) from e
    logger.info("Backup created: %s", dst)
    return dst


def restore_from_backup(path: str | Path) -> None:
    """Copy the backup of *path* back over it.

    Raises:
        BackupNotFound: when no backup exists.
        RestoreFailure: when the copy fails.
    """
    dst = Path(path)
    src = backup_path_for(dst)
    if not src.is_file():
        msg = f"Backup not found: {src}"
        raise BackupNotFound(msg)
    try:
        shutil.copy2(src, dst)
    except OSError as e:
        msg = f"Failed to restore {dst} from {src}: {e}"
        raise RestoreFailure(msg) from e
    logger.info("Restored from backup: %s", dst)


def rollback_entity(candidate_paths: Iterable[str | Path]) -> RollbackReport:
    """Restore every candidate that has a backup.

    A candidate without a backup is reported, not treated as an error;
    a failed restore is recorded and the remaining candidates still run.
    """
    report = RollbackReport()
    for candidate in candidate_paths:
        path = str(candidate)
        try:
            restore_from_backup(path)
        except BackupNotFound:
            report.missing.append(path)
        except RestoreFailure as e:
            logger.warning("%s", e)
            report.failed[path] = str(e)
        else:
            report.restored.append(path)
    return report
