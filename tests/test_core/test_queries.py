"""Tests for microb.core.queries module."""

import pytest

from microb.core.database import Post
from microb.core.queries import (
    all_tags,
    filter_by_tag,
    paginate,
    recent,
    related,
    search,
    stats,
)


@pytest.fixture
def posts():
    return [
        Post("python-tips", title="Python Tips", description="Small tricks", tags=["Python", "howto"]),
        Post("web-basics", title="Web Basics", description="HTML and python servers", tags=["web"]),
        Post("cooking", title="Cooking", description="Recipes", tags=["food", "howto"]),
        Post("travel", title="Travel", description="Trips", tags=[]),
    ]


class TestSearch:
    """Tests for search and tag filtering."""

    def test_matches_tag_title_or_description(self, posts):
        """Test that search covers tags, titles and descriptions."""
        assert [p.slug for p in search(posts, "python")] == ["python-tips", "web-basics"]

    def test_case_insensitive(self, posts):
        """Test that case does not matter."""
        assert [p.slug for p in search(posts, "COOKING")] == ["cooking"]

    def test_tag_must_match_exactly(self, posts):
        """Test that tags match whole, not by substring."""
        assert search(posts, "how") == []
        assert [p.slug for p in search(posts, "howto")] == ["python-tips", "cooking"]

    def test_blank_query_returns_all(self, posts):
        """Test that an empty query is no filter."""
        assert len(search(posts, "  ")) == 4

    def test_filter_by_tag(self, posts):
        """Test exact, case-sensitive tag filtering."""
        assert [p.slug for p in filter_by_tag(posts, "howto")] == ["python-tips", "cooking"]
        assert filter_by_tag(posts, "python") == []


class TestSelections:
    """Tests for recent, related and all_tags."""

    def test_all_tags_first_seen_order(self, posts):
        """Test that tags are unique and ordered by first appearance."""
        assert all_tags(posts) == ["Python", "howto", "web", "food"]

    def test_recent(self, posts):
        """Test that recent takes the head of the order."""
        assert [p.slug for p in recent(posts, 2)] == ["python-tips", "web-basics"]

    def test_related_excludes_self(self, posts):
        """Test that related posts never include the current one."""
        assert [p.slug for p in related(posts, "python-tips")] == ["web-basics", "cooking"]


class TestPaginate:
    """Tests for paginate."""

    def test_pages(self, posts):
        """Test slicing and page arithmetic."""
        page = paginate(posts, page=2, per_page=3)

        assert [p.slug for p in page.items] == ["travel"]
        assert page.total == 4
        assert page.total_pages == 2
        assert page.has_previous
        assert not page.has_next

    def test_clamps_low_page(self, posts):
        """Test that pages below 1 show the first page."""
        assert paginate(posts, page=0, per_page=2).page == 1

    def test_past_the_end(self, posts):
        """Test that a page past the end is empty."""
        assert paginate(posts, page=9, per_page=2).items == []

    def test_bad_per_page(self, posts):
        """Test that per_page must be positive."""
        with pytest.raises(ValueError):
            paginate(posts, per_page=0)


class TestStats:
    """Tests for stats."""

    def test_counts(self, posts, tmp_path):
        """Test the dashboard figures."""
        images = tmp_path / "images"
        images.mkdir()
        (images / "a.png").write_bytes(b"x")
        (images / "b.JPG").write_bytes(b"x")
        (images / "notes.txt").write_text("x")

        result = stats(posts, images)

        assert result["total_posts"] == 4
        assert result["total_tags"] == 4
        assert result["images_count"] == 2
        assert len(result["recent_posts"]) == 4

    def test_missing_images_dir(self, posts, tmp_path):
        """Test that a missing images directory counts zero."""
        assert stats(posts, tmp_path / "nope")["images_count"] == 0
