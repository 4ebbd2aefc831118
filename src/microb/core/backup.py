"""
Atomic writes and index backups.

Files under the site root are replaced by writing a sibling temp file and
renaming it over the target, so a reader sees either the old or the new
bytes. Saving posts.json first copies the current file to
``.microb/backups/posts_<YYYYmmdd_HHMMSS>.json`` and prunes old copies.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import re
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_KEEP_COUNT = 10
DEFAULT_KEEP_DAYS = 30
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
BACKUP_NAME = re.compile(r"^(?P<stem>.+)_(?P<ts>\d{8}_\d{6})\.json$")


@dataclass
class BackupInfo:
    """One timestamped copy of an index file."""

    path: Path
    timestamp: datetime
    size_bytes: int
    db_name: str

    @property
    def age_days(self) -> float:
        return (datetime.now() - self.timestamp).total_seconds() / 86400

    @property
    def size_human(self) -> str:
        if self.size_bytes < 1024:
            return f"{self.size_bytes} B"
        if self.size_bytes < 1024 * 1024:
            return f"{self.size_bytes / 1024:.1f} KB"
        return f"{self.size_bytes / (1024 * 1024):.1f} MB"


def parse_backup_timestamp(filename: str) -> datetime | None:
    """Return the timestamp encoded in ``posts_20240101_120000.json``, if any."""
    match = BACKUP_NAME.match(filename)
    if not match:
        return None
    try:
        return datetime.strptime(match.group("ts"), TIMESTAMP_FORMAT)
    except ValueError:
        return None


def list_backups(backup_dir: Path, db_name: str | None = None) -> list[BackupInfo]:
    """Backups in ``backup_dir``, newest first, optionally only for one stem."""
    backup_dir = Path(backup_dir)
    if not backup_dir.is_dir():
        return []

    found = []
    for path in backup_dir.glob(f"{db_name}_*.json" if db_name else "*.json"):
        match = BACKUP_NAME.match(path.name)
        timestamp = parse_backup_timestamp(path.name)
        if match is None or timestamp is None:
            continue
        if db_name is not None and match.group("stem") != db_name:
            continue
        found.append(BackupInfo(path, timestamp, path.stat().st_size, match.group("stem")))

    return sorted(found, key=lambda b: b.timestamp, reverse=True)


def backups_to_prune(
    backups: list[BackupInfo],
    keep_count: int = DEFAULT_KEEP_COUNT,
    keep_days: int | None = DEFAULT_KEEP_DAYS,
) -> list[BackupInfo]:
    """Select the backups a prune would delete.

    ``backups`` is newest first. The newest ``keep_count`` always survive;
    beyond those, a backup goes once it is older than ``keep_days`` (or
    immediately when ``keep_days`` is None).
    """
    cutoff = None if keep_days is None else datetime.now() - timedelta(days=keep_days)
    return [
        info
        for i, info in enumerate(backups)
        if i >= keep_count and (cutoff is None or info.timestamp < cutoff)
    ]


def prune_backups(
    backup_dir: Path,
    db_name: str,
    keep_count: int = DEFAULT_KEEP_COUNT,
    keep_days: int | None = DEFAULT_KEEP_DAYS,
) -> list[Path]:
    """Delete old backups of ``db_name``; returns the removed paths."""
    removed = []
    for info in backups_to_prune(list_backups(backup_dir, db_name), keep_count, keep_days):
        try:
            info.path.unlink()
        except OSError as e:
            logger.warning("Could not remove backup %s: %s", info.path, e)
            continue
        removed.append(info.path)
    if removed:
        logger.debug("Pruned %d backup(s) of %s", len(removed), db_name)
    return removed


def create_backup(file_path: Path, backup_dir: Path | None = None) -> Path:
    """Copy ``file_path`` to ``<backup_dir>/<stem>_<timestamp><suffix>``.

    Raises:
        FileNotFoundError: If there is nothing to back up
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Cannot backup non-existent file: {file_path}")

    backup_dir = Path(backup_dir) if backup_dir is not None else file_path.parent / "backups"
    backup_dir.mkdir(parents=True, exist_ok=True)

    stamp = datetime.now().strftime(TIMESTAMP_FORMAT)
    backup_path = backup_dir / f"{file_path.stem}_{stamp}{file_path.suffix}"
    shutil.copy2(file_path, backup_path)
    logger.debug("Backed up %s to %s", file_path, backup_path)
    return backup_path


def restore_backup(index_path: Path, backup_dir: Path, backup_index: int = 0) -> Path:
    """Replace ``index_path`` with its ``backup_index``-th newest backup.

    The file being replaced is backed up first, so a restore can itself be
    rolled back. Returns the backup that was restored.

    Raises:
        FileNotFoundError: If there is no backup at that position
    """
    index_path = Path(index_path)
    backups = list_backups(backup_dir, index_path.stem)
    if not backups:
        raise FileNotFoundError(f"No backups found for {index_path.name}")
    if not 0 <= backup_index < len(backups):
        raise FileNotFoundError(
            f"Backup index {backup_index} out of range (only {len(backups)} backups)"
        )

    chosen = backups[backup_index]
    if index_path.exists():
        create_backup(index_path, backup_dir)
    _atomic_write(index_path, chosen.path.read_text(encoding="utf-8"), suffix=".json")
    logger.info("Restored %s from %s", index_path, chosen.path)
    return chosen.path


def _atomic_write(file_path: Path, text: str, suffix: str) -> None:
    file_path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(suffix=suffix, prefix=f".{file_path.name}.", dir=file_path.parent)
    temp_path = Path(temp_name)

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        temp_path.replace(file_path)
    except Exception as e:
        with contextlib.suppress(OSError):
            temp_path.unlink()
        raise OSError(f"Failed to write {file_path}: {e}") from e


def safe_write_json(
    file_path: Path,
    data: dict[str, Any],
    create_backup_first: bool = True,
    backup_dir: Path | None = None,
    indent: int | None = 4,
    keep_backups: int = DEFAULT_KEEP_COUNT,
    keep_days: int | None = DEFAULT_KEEP_DAYS,
) -> Path | None:
    """Atomically replace a JSON file, optionally backing up the old one.

    The document is serialised before anything on disk changes, so bad data
    never costs a backup slot or a partial write. Non-ASCII text is written
    as-is (UTF-8).

    Returns:
        The backup created, or None

    Raises:
        ValueError: If ``data`` is not JSON serialisable
        OSError: If the file cannot be written
    """
    file_path = Path(file_path)

    try:
        text = json.dumps(data, indent=indent, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Cannot serialize data to JSON: {e}") from e

    backup_path = None
    if create_backup_first and file_path.exists():
        target_dir = Path(backup_dir) if backup_dir is not None else file_path.parent / "backups"
        backup_path = create_backup(file_path, target_dir)
        prune_backups(target_dir, file_path.stem, keep_backups, keep_days)

    _atomic_write(file_path, text + "\n", suffix=".json")
    logger.debug("Wrote %s", file_path)
    return backup_path


def safe_write_text(file_path: Path, text: str) -> None:
    """Atomically write a content file.

    Raises:
        OSError: If the file cannot be written
    """
    file_path = Path(file_path)
    _atomic_write(file_path, text, suffix=file_path.suffix or ".tmp")
    logger.debug("Wrote %s (%d chars)", file_path, len(text))
