"""
Index/content integrity checker.

Detects index entries without a content file, content files without an
index entry, malformed or duplicate slugs, and a cache snapshot that no
longer matches the index.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from microb.core.cache import ReadCache
from microb.core.config import SitePaths
from microb.core.database import read_index_document
from microb.core.errors import CacheError
from microb.core.slugs import is_valid_slug

logger = logging.getLogger(__name__)


class IssueType(Enum):
    """Types of integrity issues."""

    ORPHANED_INDEX_ENTRY = "orphaned_index_entry"  # Index entry without content file
    ORPHANED_CONTENT_FILE = "orphaned_content_file"  # Content file not in index
    INVALID_SLUG = "invalid_slug"
    DUPLICATE_SLUG = "duplicate_slug"
    STALE_CACHE = "stale_cache"  # Snapshot differs from posts.json


class IssueSeverity(Enum):
    """Severity levels for integrity issues."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class IntegrityIssue:
    """A single integrity issue."""

    entry_id: str
    issue_type: IssueType
    message: str
    severity: IssueSeverity = IssueSeverity.ERROR
    fixable: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "entry_id": self.entry_id,
            "issue_type": self.issue_type.value,
            "message": self.message,
            "severity": self.severity.value,
            "fixable": self.fixable,
        }
        if self.extra:
            result["extra"] = self.extra
        return result


@dataclass
class IntegrityResult:
    """Result of an integrity check."""

    issues: list[IntegrityIssue] = field(default_factory=list)
    checked: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "issues": [i.to_dict() for i in self.issues],
            "checked": self.checked,
            "by_severity": self.group_by_severity(),
            "fixable_count": len(self.fixable_issues()),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def group_by_severity(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for issue in self.issues:
            counts[issue.severity.value] = counts.get(issue.severity.value, 0) + 1
        return counts

    @property
    def has_errors(self) -> bool:
        return any(i.severity == IssueSeverity.ERROR for i in self.issues)

    def errors(self) -> list[IntegrityIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.ERROR]

    def fixable_issues(self) -> list[IntegrityIssue]:
        return [i for i in self.issues if i.fixable]

    def of_type(self, issue_type: IssueType) -> list[IntegrityIssue]:
        return [i for i in self.issues if i.issue_type == issue_type]


class IntegrityChecker:
    """Checks that posts.json, posts/ and the cache snapshot agree."""

    def __init__(self, paths: SitePaths, cache: ReadCache | None = None):
        self.paths = paths
        self.cache = cache or ReadCache(paths.index, paths.cache_file)

    def check(self) -> IntegrityResult:
        """Run all checks.

        Raises:
            IndexReadFailure: If posts.json is not valid JSON
        """
        result = IntegrityResult()
        document = read_index_document(self.paths.index)
        entries = [e for e in document["posts"] if isinstance(e, dict)]
        slugs = [str(e.get("slug", "")) for e in entries]

        self._check_slugs(slugs, result)
        self._check_content_files(slugs, result)
        self._check_cache(document, result)

        result.checked["posts"] = len(entries)
        return result

    def _check_slugs(self, slugs: list[str], result: IntegrityResult) -> None:
        for slug in slugs:
            if not is_valid_slug(slug):
                result.issues.append(
                    IntegrityIssue(
                        entry_id=slug or "(empty)",
                        issue_type=IssueType.INVALID_SLUG,
                        message=f"Slug {slug!r} is not lowercase letters, digits and hyphens",
                    )
                )

        for slug, count in Counter(slugs).items():
            if count > 1:
                result.issues.append(
                    IntegrityIssue(
                        entry_id=slug,
                        issue_type=IssueType.DUPLICATE_SLUG,
                        message=f"Slug '{slug}' appears {count} times in the index",
                        extra={"count": count},
                    )
                )

    def _check_content_files(self, slugs: list[str], result: IntegrityResult) -> None:
        content_slugs: set[str] = set()
        if self.paths.posts.is_dir():
            content_slugs = {
                p.stem
                for p in self.paths.posts.glob("*.html")
                if p.is_file() and not p.name.startswith(".")
            }
        result.checked["content_files"] = len(content_slugs)

        for slug in dict.fromkeys(slugs):
            if is_valid_slug(slug) and slug not in content_slugs:
                result.issues.append(
                    IntegrityIssue(
                        entry_id=slug,
                        issue_type=IssueType.ORPHANED_INDEX_ENTRY,
                        message=f"Post '{slug}' is in the index but posts/{slug}.html is missing",
                    )
                )

        indexed = set(slugs)
        for slug in sorted(content_slugs - indexed):
            result.issues.append(
                IntegrityIssue(
                    entry_id=slug,
                    issue_type=IssueType.ORPHANED_CONTENT_FILE,
                    message=f"posts/{slug}.html has no index entry",
                    severity=IssueSeverity.WARNING,
                    fixable=True,
                )
            )

    def _check_cache(self, document: dict[str, Any], result: IntegrityResult) -> None:
        cache_path = self.cache.cache_path
        if not cache_path.exists():
            return
        snapshot = self.cache.peek()

        if snapshot != document:
            result.issues.append(
                IntegrityIssue(
                    entry_id=cache_path.name,
                    issue_type=IssueType.STALE_CACHE,
                    message="Cache snapshot does not match posts.json",
                    severity=IssueSeverity.INFO,
                    fixable=True,
                )
            )

    def fix(self, result: IntegrityResult) -> list[IntegrityIssue]:
        """Apply repairs for fixable issues. Returns the issues fixed."""
        fixed = []
        for issue in result.fixable_issues():
            if issue.issue_type == IssueType.ORPHANED_CONTENT_FILE:
                path = self.paths.posts / f"{issue.entry_id}.html"
                try:
                    path.unlink()
                except FileNotFoundError:
                    pass
                except OSError as e:
                    logger.warning("Could not remove %s: %s", path, e)
                    continue
                fixed.append(issue)
            elif issue.issue_type == IssueType.STALE_CACHE:
                try:
                    self.cache.invalidate()
                except CacheError as e:
                    logger.warning("%s", e)
                    continue
                fixed.append(issue)
        return fixed
