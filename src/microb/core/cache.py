"""
Read cache for the post index.

A single-slot snapshot of posts.json kept in cache/posts.cache. The
snapshot's modification time is its clock: younger than the TTL and built from
the current posts.json it is served as-is, otherwise it is rebuilt from the
canonical index. Store mutations call invalidate(), which deletes the
snapshot.

State per slot::

    ABSENT --build--> FRESH --ttl elapses--> STALE --rebuild--> FRESH
    invalidate(): any state --> ABSENT
"""

from __future__ import annotations

import contextlib
import json
import logging
import time
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from microb.core.backup import safe_write_json
from microb.core.database import Post, read_index_document
from microb.core.errors import CacheError

logger = logging.getLogger(__name__)

DEFAULT_TTL = 86400  # 24 hours
SOURCE_KEY = "_source"


class CacheState(Enum):
    """Lifecycle states of the snapshot slot."""

    ABSENT = "absent"
    FRESH = "fresh"
    STALE = "stale"


class ReadCache:
    """Time-boxed snapshot of the index for read-only callers.

    Usage::

        cache = ReadCache(paths.index, paths.cache_file, ttl=86400)
        posts = cache.posts()  # rebuilds transparently when stale
        cache.invalidate()     # next get() rebuilds unconditionally

    Each snapshot also records the inode, mtime and size of the posts.json
    it was built from. A snapshot whose source no longer matches the index
    on disk is STALE regardless of age, so a rebuild that races a store
    write can never outlive it.
    """

    def __init__(
        self,
        index_path: Path,
        cache_path: Path,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.index_path = Path(index_path)
        self.cache_path = Path(cache_path)
        self.ttl = ttl
        self._clock = clock

    def age(self) -> float | None:
        """Seconds since the snapshot was written, or None if there is none."""
        try:
            mtime = self.cache_path.stat().st_mtime
        except FileNotFoundError:
            return None
        return self._clock() - mtime

    def state(self) -> CacheState:
        age = self.age()
        if age is None:
            return CacheState.ABSENT
        if age >= self.ttl:
            return CacheState.STALE
        raw = self._load_raw()
        if raw is None or raw.get(SOURCE_KEY) != self._index_stamp():
            return CacheState.STALE
        return CacheState.FRESH

    def get(self) -> dict[str, Any]:
        """Return the index document, from the snapshot when it is fresh.

        Raises:
            IndexReadFailure: If a rebuild is needed and posts.json is corrupt
        """
        age = self.age()
        if age is not None and age < self.ttl:
            snapshot = self._read_snapshot()
            if snapshot is not None and snapshot.pop(SOURCE_KEY, None) == self._index_stamp():
                return snapshot
        return self.rebuild()

    def posts(self) -> list[Post]:
        return [
            Post.from_dict(entry)
            for entry in self.get().get("posts", [])
            if isinstance(entry, dict)
        ]

    def rebuild(self) -> dict[str, Any]:
        """Re-read posts.json and write a fresh snapshot."""
        # Stamp before reading: a write landing in between leaves a mismatch
        stamp = self._index_stamp()
        document = read_index_document(self.index_path)
        try:
            safe_write_json(
                self.cache_path,
                {**document, SOURCE_KEY: stamp},
                create_backup_first=False,
                indent=None,
            )
            logger.debug("Rebuilt cache snapshot %s", self.cache_path)
        except OSError as e:
            # Readers still get correct data; the next call retries the write
            logger.warning("Could not write cache snapshot %s: %s", self.cache_path, e)
        return document

    def peek(self) -> dict[str, Any] | None:
        """The cached document as stored, without rebuilding or deleting anything."""
        raw = self._load_raw()
        if raw is None:
            return None
        raw.pop(SOURCE_KEY, None)
        return raw

    def invalidate(self) -> bool:
        """Delete the snapshot. Returns True if one existed.

        Raises:
            CacheError: If the snapshot exists but cannot be removed
        """
        try:
            self.cache_path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheError(f"Error: Could not clear the cache ({e})") from e
        logger.debug("Invalidated cache snapshot %s", self.cache_path)
        return True

    def _index_stamp(self) -> list[int] | None:
        try:
            st = self.index_path.stat()
        except FileNotFoundError:
            return None
        return [st.st_ino, st.st_mtime_ns, st.st_size]

    def _load_raw(self) -> dict[str, Any] | None:
        try:
            with open(self.cache_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            return None
        if not isinstance(data, dict) or not isinstance(data.get("posts"), list):
            return None
        return data

    def _read_snapshot(self) -> dict[str, Any] | None:
        data = self._load_raw()
        if data is None:
            logger.warning("Discarding unreadable cache snapshot %s", self.cache_path)
            with contextlib.suppress(OSError):
                self.cache_path.unlink()
        return data
