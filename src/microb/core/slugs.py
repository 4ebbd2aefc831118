"""
Slug generation and admin input normalisation.

Titles, tags and URLs arrive from the admin surface as free text; these
helpers reduce them to the shapes the index stores. HTML escaping is left to
whatever renders the posts.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Iterable
from urllib.parse import urlparse

from microb.core.errors import ValidationError

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

MAX_TITLE_LENGTH = 200
MAX_TAGS = 10

_TITLE_DISALLOWED = re.compile(r"[^\w\s\-.,!?]")
_TAG_DISALLOWED = re.compile(r"[^\w\s\-]")


def slugify(title: str) -> str:
    """Convert a title to a URL-friendly slug.

    Lowercase, replace anything outside ``[a-z0-9-]`` with hyphens, collapse
    runs of hyphens, and strip leading/trailing hyphens.

    >>> slugify("Hello, World!")
    'hello-world'
    """
    slug = title.strip().lower()
    slug = re.sub(r"[^a-z0-9-]", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def is_valid_slug(slug: object) -> bool:
    """Check that ``slug`` is a non-empty string of ``[a-z0-9-]``."""
    return isinstance(slug, str) and bool(SLUG_PATTERN.match(slug))


def unique_slug(
    title: str,
    existing: Collection[str],
    current: str | None = None,
) -> str:
    """Derive a slug from ``title`` that collides with no existing slug.

    Tries ``base``, ``base-1``, ``base-2`` ... A slug equal to ``current``
    (the post being renamed) does not count as a collision.

    Raises:
        ValidationError: If the title produces an empty slug
    """
    base = slugify(title)
    if not base:
        raise ValidationError(f"Title {title!r} does not produce a usable slug")

    taken = set(existing)
    if current is not None:
        taken.discard(current)

    slug = base
    counter = 1
    while slug in taken:
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def clean_title(title: str | None) -> str:
    """Keep word characters, whitespace and ``-.,!?``; cap at 200 characters.

    Stripping comes last, so cleaning a cleaned title changes nothing.
    """
    if title is None:
        return ""
    return _TITLE_DISALLOWED.sub("", title)[:MAX_TITLE_LENGTH].strip()


def clean_text(text: str | None) -> str:
    if text is None:
        return ""
    return text.strip()


def clean_tags(tags: str | Iterable[str] | None) -> list[str]:
    """Normalise a comma separated string (or a sequence) into a tag list.

    At most 10 tags are kept. Duplicates are left alone.
    """
    if tags is None:
        return []
    raw = tags.split(",") if isinstance(tags, str) else list(tags)

    result = []
    for tag in raw[:MAX_TAGS]:
        cleaned = _TAG_DISALLOWED.sub("", str(tag)).strip()
        if cleaned:
            result.append(cleaned)
    return result


def clean_url(url: str | None) -> str:
    """Return the URL if it is an absolute http(s) URL, else an empty string."""
    if not url:
        return ""
    url = url.strip()
    if any(c.isspace() for c in url):
        return ""
    parsed = urlparse(url)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return url
    return ""
