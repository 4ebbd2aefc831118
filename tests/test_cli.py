"""Tests for microb.cli module."""

import json

from microb import __version__
from microb.cli import main


class TestInit:
    """Tests for 'microb init'."""

    def test_creates_layout(self, runner, tmp_path, monkeypatch):
        """Test that init creates the site directories and empty index."""
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(main, ["init"])

        assert result.exit_code == 0
        for name in (".microb", ".microb/backups", "posts", "cache", "images"):
            assert (tmp_path / name).is_dir()
        assert json.loads((tmp_path / "posts.json").read_text()) == {"posts": []}
        assert "cache/" in (tmp_path / ".gitignore").read_text().splitlines()

    def test_existing_site(self, runner, tmp_path, monkeypatch):
        """Test that init refuses to reinitialise without --force."""
        monkeypatch.chdir(tmp_path)
        runner.invoke(main, ["init"])

        result = runner.invoke(main, ["init"])

        assert "already exists" in result.output

    def test_force_keeps_index(self, runner, tmp_path, monkeypatch):
        """Test that --force never clobbers posts.json."""
        monkeypatch.chdir(tmp_path)
        runner.invoke(main, ["init"])
        (tmp_path / "posts.json").write_text('{"posts": [{"slug": "keep"}]}')

        result = runner.invoke(main, ["init", "--force"])

        assert result.exit_code == 0
        assert "keep" in (tmp_path / "posts.json").read_text()

    def test_gitignore_entry_added_once(self, runner, tmp_path, monkeypatch):
        """Test that the cache entry is not duplicated."""
        monkeypatch.chdir(tmp_path)
        runner.invoke(main, ["init"])
        runner.invoke(main, ["init", "--force"])

        lines = (tmp_path / ".gitignore").read_text().splitlines()
        assert lines.count("cache/") == 1


class TestMain:
    """Tests for the top-level group."""

    def test_version(self, runner):
        """Test --version."""
        result = runner.invoke(main, ["--version"])
        assert __version__ in result.output

    def test_groups_registered(self, runner):
        """Test that every command group is reachable."""
        result = runner.invoke(main, ["--help"])
        for name in ("posts", "cache", "media", "backup", "config", "integrity", "init"):
            assert name in result.output

    def test_verbose_end_to_end(self, runner, mock_site_root, admin_env):
        """Test a write and a read through the top-level command."""
        result = runner.invoke(
            main, ["-v", "posts", "new", "--title", "Via Main"], env=admin_env
        )
        assert result.exit_code == 0

        listing = runner.invoke(main, ["posts", "list", "--json"])
        assert [p["slug"] for p in json.loads(listing.output)] == ["via-main"]
