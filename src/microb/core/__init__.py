"""Core utilities for microb."""

from microb.core.backup import (
    DEFAULT_KEEP_COUNT,
    DEFAULT_KEEP_DAYS,
    BackupInfo,
    create_backup,
    list_backups,
    prune_backups,
    restore_backup,
    safe_write_json,
    safe_write_text,
)
from microb.core.cache import CacheState, ReadCache
from microb.core.config import get_paths, get_site_root
from microb.core.database import Post, PostIndex
from microb.core.errors import (
    AuthorizationError,
    CacheError,
    ContentWriteFailure,
    IndexReadFailure,
    IndexWriteFailure,
    LockTimeout,
    MediaError,
    NotFound,
    StoreError,
    ValidationError,
)
from microb.core.store import PostStore

__all__ = [
    # Backup
    "create_backup",
    "safe_write_json",
    "safe_write_text",
    "prune_backups",
    "list_backups",
    "restore_backup",
    "BackupInfo",
    "DEFAULT_KEEP_COUNT",
    "DEFAULT_KEEP_DAYS",
    # Store
    "Post",
    "PostIndex",
    "PostStore",
    "ReadCache",
    "CacheState",
    # Errors
    "StoreError",
    "ValidationError",
    "NotFound",
    "IndexReadFailure",
    "IndexWriteFailure",
    "ContentWriteFailure",
    "LockTimeout",
    "AuthorizationError",
    "CacheError",
    "MediaError",
    # Config
    "get_site_root",
    "get_paths",
]
