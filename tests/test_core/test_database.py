"""Tests for microb.core.database module."""

import json

import pytest

from microb.core.database import Post, PostIndex, read_index_document
from microb.core.errors import IndexReadFailure


class TestPost:
    """Tests for the Post record."""

    def test_from_dict_uses_featured_image_key(self):
        """Test that featuredImage maps to featured_image."""
        post = Post.from_dict({"slug": "a", "featuredImage": "https://x/y.png"})
        assert post.featured_image == "https://x/y.png"
        assert post.to_dict()["featuredImage"] == "https://x/y.png"

    def test_round_trip_keeps_unknown_keys(self):
        """Test that keys the store does not own survive."""
        entry = {
            "title": "A",
            "slug": "a",
            "description": "",
            "tags": ["x"],
            "featuredImage": "",
            "date": "2024-01-01 00:00:00",
            "author": "someone",
        }
        assert Post.from_dict(entry).to_dict() == entry

    def test_tolerates_missing_fields(self):
        """Test that sparse entries load with empty defaults."""
        post = Post.from_dict({"slug": "bare"})
        assert post.title == ""
        assert post.tags == []
        assert post.featured_image == ""

    def test_day(self):
        """Test the date-only accessor."""
        assert Post("a", date="2024-03-05 10:11:12").day == "2024-03-05"

    def test_copy_is_independent(self):
        """Test that copies do not share tag lists."""
        post = Post("a", tags=["x"])
        clone = post.copy()
        clone.tags.append("y")
        assert post.tags == ["x"]


class TestReadIndexDocument:
    """Tests for read_index_document."""

    def test_absent_is_empty(self, tmp_path):
        """Test that a missing index reads as no posts."""
        assert read_index_document(tmp_path / "posts.json") == {"posts": []}

    def test_invalid_json_raises(self, tmp_path):
        """Test that corrupt JSON raises IndexReadFailure naming the file."""
        path = tmp_path / "posts.json"
        path.write_text("{oops")

        with pytest.raises(IndexReadFailure, match="posts.json"):
            read_index_document(path)

    def test_wrong_shape_raises(self, tmp_path):
        """Test that a non-object document is rejected."""
        path = tmp_path / "posts.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(IndexReadFailure):
            read_index_document(path)

    def test_missing_posts_key(self, tmp_path):
        """Test that an object without 'posts' reads as empty."""
        path = tmp_path / "posts.json"
        path.write_text("{}")
        assert read_index_document(path) == {"posts": []}


class TestPostIndex:
    """Tests for PostIndex."""

    def _write(self, path, slugs, **meta):
        document = dict(meta)
        document["posts"] = [{"slug": s, "title": s.upper()} for s in slugs]
        path.write_text(json.dumps(document))

    def test_load_and_query(self, tmp_path):
        """Test ordered access by slug."""
        path = tmp_path / "posts.json"
        self._write(path, ["a", "b", "c"])

        index = PostIndex(path).load()

        assert index.slugs() == ["a", "b", "c"]
        assert index.position("b") == 1
        assert index.get("c").title == "C"
        assert "a" in index
        assert "z" not in index
        assert len(index) == 3

    def test_insert_remove_swap(self, tmp_path):
        """Test the in-memory mutations."""
        path = tmp_path / "posts.json"
        self._write(path, ["a", "b"])
        index = PostIndex(path).load()

        index.insert_first(Post("new"))
        index.swap(1, 2)
        removed = index.remove("new")

        assert removed.slug == "new"
        assert index.slugs() == ["b", "a"]
        assert index.remove("missing") is None

    def test_save_preserves_top_level_keys(self, tmp_path):
        """Test that extra top-level keys in posts.json are kept."""
        path = tmp_path / "posts.json"
        self._write(path, ["a"], generator="microb")
        index = PostIndex(path, backup_dir=tmp_path / "backups").load()

        index.remove("a")
        index.save()

        assert json.loads(path.read_text()) == {"generator": "microb", "posts": []}
        assert len(list((tmp_path / "backups").glob("posts_*.json"))) == 1

    def test_save_before_load_raises(self, tmp_path):
        """Test that saving an unloaded index is refused."""
        with pytest.raises(RuntimeError):
            PostIndex(tmp_path / "posts.json").save()

    def test_skips_non_object_entries(self, tmp_path):
        """Test that junk entries in the posts array are ignored."""
        path = tmp_path / "posts.json"
        path.write_text(json.dumps({"posts": [{"slug": "a"}, "junk", 3]}))
        assert PostIndex(path).load().slugs() == ["a"]
