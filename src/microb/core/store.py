"""
Post store: the only writer of posts.json and posts/<slug>.html.

Every mutation takes the single-writer lock, re-reads the index inside it,
writes the index before the content file, and invalidates the read cache on
success. Index and content writes are sequenced with a Transaction so a failed
content write restores the previous index.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable
from pathlib import Path

from microb.core.backup import DEFAULT_KEEP_COUNT, DEFAULT_KEEP_DAYS, safe_write_text
from microb.core.cache import ReadCache
from microb.core.config import SitePaths
from microb.core.database import Post, PostIndex, now_timestamp
from microb.core.errors import (
    CacheError,
    ContentWriteFailure,
    IndexWriteFailure,
    NotFound,
    ValidationError,
)
from microb.core.lock import IndexLock
from microb.core.settings import DEFAULT_PLACEHOLDER
from microb.core.slugs import (
    clean_tags,
    clean_text,
    clean_title,
    clean_url,
    is_valid_slug,
    unique_slug,
)
from microb.core.transaction import Transaction, TransactionError

logger = logging.getLogger(__name__)

DIRECTIONS = ("up", "down")

UPDATE_CONTENT_FAILURE = "Error: Post data updated but could not update HTML file!"


class PostStore:
    """CRUD and ordering operations over the index + content files.

    The store holds no state between calls other than its paths; every
    operation reads the index from disk. Authorization is the caller's job.
    """

    def __init__(
        self,
        paths: SitePaths,
        cache: ReadCache | None = None,
        lock_timeout: float = 10.0,
        placeholder: str = DEFAULT_PLACEHOLDER,
        keep_backups: int = DEFAULT_KEEP_COUNT,
        keep_days: int | None = DEFAULT_KEEP_DAYS,
    ):
        self.paths = paths
        self.cache = cache
        self.lock_timeout = lock_timeout
        self.placeholder = placeholder
        self.keep_backups = keep_backups
        self.keep_days = keep_days

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _index(self) -> PostIndex:
        return PostIndex(
            self.paths.index,
            backup_dir=self.paths.backups,
            keep_backups=self.keep_backups,
            keep_days=self.keep_days,
        ).load()

    def _lock(self) -> IndexLock:
        return IndexLock(self.paths.lock_file, timeout=self.lock_timeout)

    def content_path(self, slug: str) -> Path:
        return self.paths.posts / f"{slug}.html"

    def _save_index(self, index: PostIndex, create_backup: bool = True) -> None:
        try:
            index.save(create_backup=create_backup)
        except (OSError, ValueError) as e:
            logger.error("Index write failed: %s", e)
            raise IndexWriteFailure() from e

    def _write_content(self, slug: str, content: str) -> None:
        safe_write_text(self.content_path(slug), content)

    def _remove_content(self, slug: str) -> None:
        """Best-effort removal of a content file."""
        path = self.content_path(slug)
        try:
            path.unlink()
            logger.debug("Removed %s", path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove content file %s: %s", path, e)

    def _invalidate_cache(self) -> None:
        if self.cache is None:
            return
        try:
            self.cache.invalidate()
        except CacheError as e:
            # The write is committed; the snapshot no longer matches posts.json
            # so readers rebuild it anyway
            logger.warning("%s", e)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(self) -> list[Post]:
        """All posts in display order (metadata only)."""
        return list(self._index())

    def find_by_slug(self, slug: str) -> Post | None:
        """Find a post; malformed slugs are simply not found."""
        if not is_valid_slug(slug):
            return None
        return self._index().get(slug)

    def slug_exists(self, slug: str) -> bool:
        return self.find_by_slug(slug) is not None

    def load_content(self, slug: str) -> str:
        """Raw content markup for ``slug``, or the placeholder if unavailable."""
        if not is_valid_slug(slug):
            return self.placeholder
        try:
            return self.content_path(slug).read_text(encoding="utf-8")
        except FileNotFoundError:
            return self.placeholder
        except OSError as e:
            logger.warning("Could not read content for %s: %s", slug, e)
            return self.placeholder

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(
        self,
        title: str,
        description: str = "",
        tags: str | Iterable[str] | None = None,
        featured_image: str = "",
        content: str = "",
    ) -> Post:
        """Create a post at the head of the order.

        Raises:
            ValidationError: If the title yields no slug
            IndexWriteFailure: If posts.json cannot be written (nothing changed)
            ContentWriteFailure: If the content file cannot be written; the
                index is restored to its pre-call state first
        """
        title = clean_title(title)

        with self._lock():
            index = self._index()
            slug = unique_slug(title, index.slugs())
            post = Post(
                slug=slug,
                title=title,
                description=clean_text(description),
                tags=clean_tags(tags),
                featured_image=clean_url(featured_image),
                date=now_timestamp(),
            )

            def write_index() -> None:
                index.insert_first(post)
                try:
                    self._save_index(index)
                except IndexWriteFailure:
                    index.remove(slug)
                    raise

            def unwrite_index() -> None:
                index.remove(slug)
                self._save_index(index, create_backup=False)

            txn = Transaction()
            txn.add("index", write_index, compensate=unwrite_index)
            txn.add("content", lambda: self._write_content(slug, content))
            self._run(txn, slug)

        self._invalidate_cache()
        logger.info("Created post %s", slug)
        return post

    def update(
        self,
        original_slug: str,
        title: str,
        description: str = "",
        tags: str | Iterable[str] | None = None,
        featured_image: str = "",
        content: str = "",
    ) -> Post:
        """Edit a post in place, keeping its position in the order.

        The slug is recomputed only when the title changes. If the slug
        changes, the old content file is removed once the new one exists.

        Raises:
            ValidationError: If ``original_slug`` is malformed or the new
                title yields no slug
            NotFound: If no post has ``original_slug``
            IndexWriteFailure: If posts.json cannot be written (nothing changed)
            ContentWriteFailure: If the content file cannot be written; the
                index entry is restored and the old content file kept
        """
        if not is_valid_slug(original_slug):
            raise ValidationError(f"Invalid slug: {original_slug!r}")
        title = clean_title(title)

        with self._lock():
            index = self._index()
            pos = index.position(original_slug)
            if pos is None:
                raise NotFound(original_slug)

            previous = index.posts[pos]
            if title != clean_title(previous.title):
                slug = unique_slug(title, index.slugs(), current=original_slug)
            else:
                slug = original_slug

            updated = Post(
                slug=slug,
                title=title,
                description=clean_text(description),
                tags=clean_tags(tags),
                featured_image=clean_url(featured_image),
                date=now_timestamp(),
                extra=dict(previous.extra),
            )

            def write_index() -> None:
                index.posts[pos] = updated
                try:
                    self._save_index(index)
                except IndexWriteFailure:
                    index.posts[pos] = previous
                    raise

            def restore_index() -> None:
                index.posts[pos] = previous
                self._save_index(index, create_backup=False)

            txn = Transaction()
            txn.add("index", write_index, compensate=restore_index)
            txn.add("content", lambda: self._write_content(slug, content))
            self._run(txn, slug, UPDATE_CONTENT_FAILURE)

            if slug != original_slug:
                self._remove_content(original_slug)

        self._invalidate_cache()
        if slug != original_slug:
            logger.info("Updated post %s (renamed from %s)", slug, original_slug)
        else:
            logger.info("Updated post %s", slug)
        return updated

    def delete(self, slug: str) -> Post:
        """Remove a post's index entry, then its content file (best effort).

        Raises:
            ValidationError: If ``slug`` is malformed
            NotFound: If no post has ``slug``
            IndexWriteFailure: If posts.json cannot be written; no file is
                deleted in that case
        """
        if not is_valid_slug(slug):
            raise ValidationError(f"Invalid slug: {slug!r}")

        with self._lock():
            index = self._index()
            removed = index.remove(slug)
            if removed is None:
                raise NotFound(slug)
            self._save_index(index)
            self._remove_content(slug)

        self._invalidate_cache()
        logger.info("Deleted post %s", slug)
        return removed

    def reorder(self, slug: str, direction: str) -> bool:
        """Swap a post with its neighbour ("up" = towards the head).

        Returns:
            True if the order changed, False at a boundary (no write happens)

        Raises:
            ValidationError: If ``direction`` is not "up" or "down" or ``slug``
                is malformed
            NotFound: If no post has ``slug``
            IndexWriteFailure: If posts.json cannot be written
        """
        if direction not in DIRECTIONS:
            raise ValidationError(f"Direction must be 'up' or 'down', not {direction!r}")
        if not is_valid_slug(slug):
            raise ValidationError(f"Invalid slug: {slug!r}")

        with self._lock():
            index = self._index()
            pos = index.position(slug)
            if pos is None:
                raise NotFound(slug)

            target = pos - 1 if direction == "up" else pos + 1
            if target < 0 or target >= len(index):
                return False

            index.swap(pos, target)
            self._save_index(index)

        self._invalidate_cache()
        logger.info("Moved post %s %s", slug, direction)
        return True

    def move_up(self, slug: str) -> bool:
        return self.reorder(slug, "up")

    def move_down(self, slug: str) -> bool:
        return self.reorder(slug, "down")

    def shuffle_all(self, rng: random.Random | None = None) -> list[Post]:
        """Randomise the whole order. Returns the new order."""
        rng = rng or random.Random()

        with self._lock():
            index = self._index()
            posts = index.posts
            rng.shuffle(posts)
            index.posts = posts
            self._save_index(index)

        self._invalidate_cache()
        logger.info("Shuffled %d posts", len(posts))
        return list(posts)

    def _run(self, txn: Transaction, slug: str, failure_message: str | None = None) -> None:
        """Run an index-then-content transaction, mapping failures to store errors."""
        try:
            txn.run()
        except TransactionError as e:
            if isinstance(e.cause, IndexWriteFailure):
                raise e.cause from None
            for name, comp_error in e.compensation_errors.items():
                logger.error(
                    "Index left inconsistent for %s: %s compensation failed: %s",
                    slug,
                    name,
                    comp_error,
                )
            raise ContentWriteFailure(failure_message) from e.cause
