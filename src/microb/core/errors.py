"""
Exception types for the post store.

Every failure the admin surface can report derives from StoreError so that
callers can catch one type at the operation boundary.
"""

from __future__ import annotations

from pathlib import Path


class StoreError(Exception):
    """Base class for post store failures."""

    message = "Post store error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)

    @property
    def status(self) -> str:
        """Human-readable status line for the dashboard."""
        return str(self)


class ValidationError(StoreError, ValueError):
    """Malformed slug or input. Raised before any write."""

    message = "Invalid input"


class NotFound(StoreError, LookupError):
    """No post matches the requested slug."""

    message = "Post not found"

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Post not found: {slug}")


class IndexReadFailure(StoreError):
    """The index document exists but cannot be parsed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(
            f"{path} contains invalid JSON ({reason}). Refusing to continue; "
            f"fix the file or run 'microb backup rollback'."
        )


class IndexWriteFailure(StoreError):
    """The index document could not be persisted."""

    message = "Error: Could not write to posts.json file!"


class ContentWriteFailure(StoreError):
    """A content file could not be written after the index was updated."""

    message = "Error: Post data saved but could not create HTML file!"


class LockTimeout(StoreError):
    """The single-writer lock on the index could not be acquired."""

    def __init__(self, path: Path, timeout: float):
        self.path = path
        super().__init__(f"Timed out after {timeout:.1f}s waiting for lock {path}")


class AuthorizationError(StoreError):
    """A mutation was attempted without an authenticated admin session."""

    message = "Not authorized: admin login required"


class MediaError(StoreError):
    """An image import was rejected."""

    message = "Sorry, there was an error uploading your file."


class CacheError(StoreError):
    """The read-cache snapshot could not be removed."""

    message = "Error: Could not clear the cache!"
