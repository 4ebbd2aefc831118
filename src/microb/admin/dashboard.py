"""
Admin dashboard actions.

Each action checks the session, calls the post store, and reports the outcome
as an ActionResult with a single status message. Store failures are caught
here and never propagate to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from microb.admin.auth import AdminSession
from microb.core.database import Post
from microb.core.errors import AuthorizationError, StoreError
from microb.core.store import PostStore
from microb.media.library import import_image

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Outcome of one dashboard action."""

    ok: bool
    message: str
    post: Post | None = None
    path: Path | None = None

    def __bool__(self) -> bool:
        return self.ok


class Dashboard:
    """Authenticated admin operations over a PostStore."""

    def __init__(self, store: PostStore, session: AdminSession | None):
        self.store = store
        self.session = session

    def _require_session(self) -> None:
        if not (isinstance(self.session, AdminSession) and self.session.active):
            raise AuthorizationError()

    def _failure(self, error: StoreError) -> ActionResult:
        logger.warning("Admin action failed: %s", error)
        return ActionResult(ok=False, message=error.status)

    def add_post(
        self,
        title: str,
        description: str = "",
        tags: str | Iterable[str] | None = None,
        featured_image: str = "",
        content: str = "",
    ) -> ActionResult:
        try:
            self._require_session()
            post = self.store.create(title, description, tags, featured_image, content)
        except StoreError as e:
            return self._failure(e)
        return ActionResult(ok=True, message="Post added successfully!", post=post)

    def update_post(
        self,
        original_slug: str,
        title: str,
        description: str = "",
        tags: str | Iterable[str] | None = None,
        featured_image: str = "",
        content: str = "",
    ) -> ActionResult:
        try:
            self._require_session()
            post = self.store.update(
                original_slug, title, description, tags, featured_image, content
            )
        except StoreError as e:
            return self._failure(e)
        return ActionResult(ok=True, message="Post updated successfully!", post=post)

    def delete_post(self, slug: str) -> ActionResult:
        try:
            self._require_session()
            post = self.store.delete(slug)
        except StoreError as e:
            return self._failure(e)
        return ActionResult(ok=True, message="Post deleted successfully!", post=post)

    def _move(self, slug: str, direction: str) -> ActionResult:
        try:
            self._require_session()
            moved = self.store.reorder(slug, direction)
        except StoreError as e:
            return self._failure(e)
        if not moved:
            edge = "top" if direction == "up" else "bottom"
            return ActionResult(ok=True, message=f"Post is already at the {edge}.")
        return ActionResult(ok=True, message=f"Post moved {direction} successfully!")

    def move_up(self, slug: str) -> ActionResult:
        return self._move(slug, "up")

    def move_down(self, slug: str) -> ActionResult:
        return self._move(slug, "down")

    def reshuffle(self) -> ActionResult:
        try:
            self._require_session()
            self.store.shuffle_all()
        except StoreError as e:
            return self._failure(e)
        return ActionResult(ok=True, message="Posts reshuffled successfully!")

    def clear_cache(self) -> ActionResult:
        try:
            self._require_session()
            if self.store.cache is not None:
                self.store.cache.invalidate()
        except StoreError as e:
            return self._failure(e)
        return ActionResult(ok=True, message="Cache cleared successfully!")

    def import_image(self, source: Path) -> ActionResult:
        try:
            self._require_session()
            target = import_image(source, self.store.paths.images)
        except StoreError as e:
            return self._failure(e)
        return ActionResult(ok=True, message="Image uploaded successfully!", path=target)

    def edit_form(self, slug: str) -> tuple[Post, str] | None:
        """The post and its content for the edit form, or None if not found."""
        try:
            self._require_session()
        except AuthorizationError:
            return None
        post = self.store.find_by_slug(slug)
        if post is None:
            return None
        return post, self.store.load_content(slug)

