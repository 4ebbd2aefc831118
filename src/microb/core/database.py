"""
The posts.json index document.

Provides the Post record and PostIndex, an in-memory ordered view of the
index that loads and saves the whole document at once.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from microb.core.backup import DEFAULT_KEEP_COUNT, DEFAULT_KEEP_DAYS, safe_write_json
from microb.core.errors import IndexReadFailure

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Record keys owned by Post; anything else in an entry is carried through untouched
_KNOWN_KEYS = {"slug", "title", "description", "tags", "featuredImage", "date"}


def now_timestamp() -> str:
    return datetime.now().strftime(DATE_FORMAT)


@dataclass
class Post:
    """One blog entry's metadata. Content lives in ``posts/<slug>.html``."""

    slug: str
    title: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    featured_image: str = ""
    date: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Post:
        tags = data.get("tags") or []
        return cls(
            slug=str(data.get("slug", "")),
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            tags=[str(t) for t in tags] if isinstance(tags, list) else [],
            featured_image=str(data.get("featuredImage") or ""),
            date=str(data.get("date", "")),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "tags": list(self.tags),
            "featuredImage": self.featured_image,
            "date": self.date,
        }
        result.update(self.extra)
        return result

    @property
    def day(self) -> str:
        """The date portion (YYYY-MM-DD) of the timestamp."""
        return self.date[:10]

    def copy(self) -> Post:
        return Post.from_dict(self.to_dict())


def read_index_document(path: Path) -> dict[str, Any]:
    """Read an index document from disk.

    Returns ``{"posts": []}`` when the file does not exist.

    Raises:
        IndexReadFailure: If the file is not valid JSON or has the wrong shape
    """
    if not path.exists():
        return {"posts": []}

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise IndexReadFailure(path, str(e)) from e

    if data is None:
        return {"posts": []}
    if not isinstance(data, dict) or not isinstance(data.get("posts", []), list):
        raise IndexReadFailure(path, "expected an object with a 'posts' array")
    data.setdefault("posts", [])
    return data


class PostIndex:
    """Manages posts.json: the ordered list of post records.

    Order is significant: it is the display order and only changes through
    explicit moves or a shuffle.
    """

    def __init__(
        self,
        index_path: Path,
        backup_dir: Path | None = None,
        keep_backups: int = DEFAULT_KEEP_COUNT,
        keep_days: int | None = DEFAULT_KEEP_DAYS,
    ):
        self.index_path = Path(index_path)
        self.backup_dir = backup_dir
        self.keep_backups = keep_backups
        self.keep_days = keep_days
        self._meta: dict[str, Any] = {}
        self._posts: list[Post] = []
        self._loaded = False

    def load(self) -> PostIndex:
        """Load the index from disk (an absent file is an empty index)."""
        data = read_index_document(self.index_path)
        self._meta = {k: v for k, v in data.items() if k != "posts"}
        self._posts = [
            Post.from_dict(entry) for entry in data["posts"] if isinstance(entry, dict)
        ]
        self._loaded = True
        return self

    def to_document(self) -> dict[str, Any]:
        document = dict(self._meta)
        document["posts"] = [post.to_dict() for post in self._posts]
        return document

    def save(self, create_backup: bool = True) -> None:
        """Write the whole index atomically.

        Raises:
            RuntimeError: If the index was never loaded
            OSError: If the file cannot be written
        """
        if not self._loaded:
            raise RuntimeError("Index not loaded. Call load() first.")

        safe_write_json(
            self.index_path,
            self.to_document(),
            create_backup_first=create_backup,
            backup_dir=self.backup_dir,
            keep_backups=self.keep_backups,
            keep_days=self.keep_days,
        )

    @property
    def posts(self) -> list[Post]:
        return self._posts

    @posts.setter
    def posts(self, value: list[Post]) -> None:
        self._posts = list(value)

    def __contains__(self, slug: str) -> bool:
        return self.position(slug) is not None

    def __iter__(self) -> Iterator[Post]:
        return iter(self._posts)

    def __len__(self) -> int:
        return len(self._posts)

    def slugs(self) -> list[str]:
        return [post.slug for post in self._posts]

    def position(self, slug: str) -> int | None:
        """Index of the post with ``slug`` in display order, or None."""
        for i, post in enumerate(self._posts):
            if post.slug == slug:
                return i
        return None

    def get(self, slug: str) -> Post | None:
        pos = self.position(slug)
        return None if pos is None else self._posts[pos]

    def insert_first(self, post: Post) -> None:
        self._posts.insert(0, post)

    def remove(self, slug: str) -> Post | None:
        """Remove and return the post with ``slug``, or None if absent."""
        pos = self.position(slug)
        if pos is None:
            return None
        return self._posts.pop(pos)

    def swap(self, i: int, j: int) -> None:
        self._posts[i], self._posts[j] = self._posts[j], self._posts[i]
