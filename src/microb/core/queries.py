"""
Read-side queries over a list of posts.

Pure functions, so they work the same on the read cache's snapshot and on
the store's canonical list.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from microb.core.database import Post

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp")


def search(posts: Sequence[Post], query: str) -> list[Post]:
    """Case-insensitive search.

    A post matches when the query equals one of its tags, or appears in its
    title or description.
    """
    needle = query.strip().lower()
    if not needle:
        return list(posts)

    results = []
    for post in posts:
        tags = [t.lower() for t in post.tags]
        if (
            needle in tags
            or needle in post.title.lower()
            or needle in post.description.lower()
        ):
            results.append(post)
    return results


def filter_by_tag(posts: Sequence[Post], tag: str) -> list[Post]:
    return [post for post in posts if tag in post.tags]


def all_tags(posts: Sequence[Post]) -> list[str]:
    """Unique tags in first-seen order."""
    seen: dict[str, None] = {}
    for post in posts:
        for tag in post.tags:
            seen.setdefault(tag, None)
    return list(seen)


def recent(posts: Sequence[Post], limit: int = 5) -> list[Post]:
    """The first ``limit`` posts in display order."""
    return list(posts[:limit])


def related(posts: Sequence[Post], slug: str, limit: int = 2) -> list[Post]:
    """The first ``limit`` posts other than ``slug``."""
    return [post for post in posts if post.slug != slug][:limit]


@dataclass
class Page:
    """One page of a post listing."""

    items: list[Post]
    page: int
    per_page: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.per_page) if self.per_page else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def paginate(posts: Sequence[Post], page: int = 1, per_page: int = 25) -> Page:
    """Slice out page ``page`` (1-based; values below 1 are clamped)."""
    if per_page < 1:
        raise ValueError("per_page must be at least 1")
    page = max(1, page)
    offset = (page - 1) * per_page
    return Page(
        items=list(posts[offset : offset + per_page]),
        page=page,
        per_page=per_page,
        total=len(posts),
    )


def count_images(images_dir: Path) -> int:
    if not images_dir.is_dir():
        return 0
    return sum(
        1
        for p in images_dir.iterdir()
        if p.is_file() and p.suffix.lower().lstrip(".") in IMAGE_EXTENSIONS
    )


def stats(posts: Sequence[Post], images_dir: Path | None = None) -> dict[str, Any]:
    """Dashboard figures: post count, unique tags, images, recent posts."""
    return {
        "total_posts": len(posts),
        "total_tags": len(all_tags(posts)),
        "images_count": count_images(images_dir) if images_dir else 0,
        "recent_posts": recent(posts, 5),
    }
