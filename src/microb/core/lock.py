"""
Single-writer lock for the index document.

Two layers: a threading.Lock per lock path serialises writers inside one
process, and an O_EXCL lock file serialises writers across processes. The
lock file holds the owner's PID; one older than ``stale_after`` seconds is
treated as abandoned and removed.
"""

from __future__ import annotations

import contextlib
import logging
import os
import threading
import time
from pathlib import Path
from types import TracebackType

from microb.core.errors import LockTimeout

logger = logging.getLogger(__name__)

_registry_guard = threading.Lock()
_thread_locks: dict[str, threading.Lock] = {}


def _thread_lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _registry_guard:
        lock = _thread_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _thread_locks[key] = lock
        return lock


class IndexLock:
    """Context manager holding exclusive write access to the index.

    Usage::

        with IndexLock(paths.lock_file, timeout=10):
            ...  # read-modify-write posts.json
    """

    def __init__(
        self,
        lock_path: Path,
        timeout: float = 10.0,
        poll_interval: float = 0.05,
        stale_after: float = 300.0,
    ) -> None:
        self.lock_path = Path(lock_path)
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.stale_after = stale_after
        self._thread_lock = _thread_lock_for(self.lock_path)
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        """Block until the lock is held or the timeout elapses.

        Raises:
            LockTimeout: If the lock is not acquired in time
        """
        deadline = time.monotonic() + self.timeout
        if not self._thread_lock.acquire(timeout=max(self.timeout, 0)):
            raise LockTimeout(self.lock_path, self.timeout)

        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            while not self._try_create():
                self._break_if_stale()
                if time.monotonic() >= deadline:
                    raise LockTimeout(self.lock_path, self.timeout)
                time.sleep(self.poll_interval)
        except BaseException:
            self._thread_lock.release()
            raise

        self._held = True
        logger.debug("Acquired %s", self.lock_path)

    def release(self) -> None:
        if not self._held:
            return
        self._held = False
        try:
            self.lock_path.unlink()
        except FileNotFoundError:
            logger.warning("Lock file %s vanished while held", self.lock_path)
        finally:
            self._thread_lock.release()
        logger.debug("Released %s", self.lock_path)

    def _try_create(self) -> bool:
        try:
            fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        with os.fdopen(fd, "w") as f:
            f.write(str(os.getpid()))
        return True

    def _break_if_stale(self) -> None:
        try:
            age = time.time() - self.lock_path.stat().st_mtime
        except FileNotFoundError:
            return
        if age > self.stale_after:
            logger.warning("Breaking stale lock %s (%.0fs old)", self.lock_path, age)
            with contextlib.suppress(FileNotFoundError):
                self.lock_path.unlink()

    def __enter__(self) -> IndexLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
